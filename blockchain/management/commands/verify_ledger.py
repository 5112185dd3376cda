from django.core.management.base import BaseCommand, CommandError

from blockchain.services import get_ledger_service


class Command(BaseCommand):
    help = "Re-derive every block hash and chain link and report any break."

    def handle(self, *args, **options):
        service = get_ledger_service()
        report = service.verify()
        pending = len(service.store.pending_transactions())

        self.stdout.write(f"Blocks: {report.block_count}  Pending transactions: {pending}")
        for problem in report.problems:
            self.stderr.write(problem)

        if not report.valid:
            raise CommandError(f"Ledger integrity broken ({len(report.problems)} problem(s))")
        self.stdout.write(self.style.SUCCESS("Ledger integrity verified"))
