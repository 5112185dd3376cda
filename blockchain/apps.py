from django.apps import AppConfig
from django.conf import settings


class BlockchainConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'blockchain'
    verbose_name = 'Credit Ledger'

    def ready(self):
        from .services import configure_ledger_service
        from .storage import create_ledger_store

        configure_ledger_service(create_ledger_store(getattr(settings, 'LEDGER_STORAGE', 'database')))
