from django.apps import AppConfig


class BureauConfig(AppConfig):
    name = 'bureau'
    verbose_name = 'Bureau de Change'
