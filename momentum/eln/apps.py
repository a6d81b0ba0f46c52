from django.apps import AppConfig


class ElnConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'momentum.eln'
