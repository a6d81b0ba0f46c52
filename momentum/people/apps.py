from django.apps import AppConfig


class PeopleConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'momentum.people'

    def ready(self):
        """Import signals when app is ready"""
        import momentum.people.signals  # noqa: F401  # Default allocation for new members
