"""
Management command to reconcile balances with the ledger.

Usage:
    python manage.py reconcile_balances
    python manage.py reconcile_balances --dry-run
"""

from django.core.management.base import BaseCommand

from stockledger.services.reconciliation import LedgerReconciliation


class Command(BaseCommand):
    """Reconcile balances command."""

    help = 'Recalculates stock balances that disagree with the ledger'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Report discrepancies without fixing them'
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        found = LedgerReconciliation.reconcile(fix=not dry_run)

        for d in found:
            self.stdout.write(
                f'balance {d.balance_id}: quantity={d.quantity} ledger={d.ledger_total}'
            )

        if dry_run:
            self.stdout.write(f'{len(found)} balance(s) would be recalculated')
        else:
            self.stdout.write(
                self.style.SUCCESS(f'{len(found)} balance(s) recalculated')
            )
