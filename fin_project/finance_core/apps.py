from django.apps import AppConfig


class FinanceCoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "finance_core"
    verbose_name = "Finance core"

    # ensure receivers are registered
    def ready(self):
        import finance_core.signals  # noqa: F401
