import json

from django.core.management.base import BaseCommand

from blockchain.services import get_ledger_service


class Command(BaseCommand):
    help = "Write the ledger export document (blocks, transactions, integrity) as JSON."

    def add_arguments(self, parser):
        parser.add_argument('--output', '-o', help="File to write; stdout when omitted")

    def handle(self, *args, **options):
        document = json.dumps(get_ledger_service().export(), indent=2)

        if options['output']:
            with open(options['output'], 'w', encoding='utf-8') as f:
                f.write(document)
            self.stdout.write(self.style.SUCCESS(f"Ledger exported to {options['output']}"))
        else:
            self.stdout.write(document)
