import json

from django.core.management.base import BaseCommand, CommandError

from blockchain.exceptions import ChainContinuityError
from blockchain.services import get_ledger_service


class Command(BaseCommand):
    help = "Replay an export document onto the configured ledger. Any chain break aborts the import."

    def add_arguments(self, parser):
        parser.add_argument('path', help="Export document produced by export_ledger")

    def handle(self, *args, **options):
        try:
            with open(options['path'], encoding='utf-8') as f:
                payload = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise CommandError(f"Cannot read {options['path']}: {e}")

        try:
            appended = get_ledger_service().import_export(payload)
        except ChainContinuityError as e:
            if e.index is None:
                raise CommandError(f"Import rejected: {e}")
            raise CommandError(f"Import stopped at block #{e.index}: {e}")

        self.stdout.write(self.style.SUCCESS(f"Imported {len(appended)} block(s)"))
