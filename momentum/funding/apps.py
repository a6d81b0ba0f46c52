from django.apps import AppConfig


class FundingConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'momentum.funding'

    def ready(self):
        """Import signals when app is ready"""
        import momentum.funding.signals  # noqa: F401  # Budget alerts on allocation changes
