from django.apps import AppConfig


class ReceiptsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'receipts'
    verbose_name = 'Receipts'

    def ready(self):
        """Register the built-in receipt templates."""
        import receipts.printing.templates  # noqa: F401
