from django.apps import AppConfig


class PredictionsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'predictions'
    verbose_name = 'Predictions and standings'

    def ready(self):
        # back-fills default predictions when a fixture kicks off
        import predictions.signals  # noqa: F401
