"""
Balance reconciliation — compare balances with the ledger.

A balance is consistent when its quantity equals both the sum of its
ledger changes and the balance_after of its latest entry.

Usage:
    from stockledger.services.reconciliation import LedgerReconciliation

    # Run periodically (cron) or from the reconcile_balances command
    drift = LedgerReconciliation.reconcile()
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from stockledger.models.balance import StockBalance
from stockledger.models.entry import LedgerEntry

logger = logging.getLogger('stockledger')


@dataclass(frozen=True)
class Discrepancy:
    """A balance that disagrees with its ledger."""

    balance_id: int
    product_id: int
    warehouse_id: int
    quantity: Decimal
    ledger_total: Decimal
    last_balance_after: Decimal | None

    @property
    def diff(self) -> Decimal:
        return self.ledger_total - self.quantity


class LedgerReconciliation:
    """Ledger/balance consistency checks."""

    @classmethod
    def verify(cls, balance: StockBalance) -> Discrepancy | None:
        """Check one balance; None when consistent."""
        total = balance.ledger_total()
        last = LedgerEntry.objects.filter(
            product_id=balance.product_id,
            warehouse_id=balance.warehouse_id,
        ).order_by('-id').values_list('balance_after', flat=True).first()

        consistent = total == balance.quantity and (last is None or last == balance.quantity)
        if consistent:
            return None

        return Discrepancy(
            balance_id=balance.pk,
            product_id=balance.product_id,
            warehouse_id=balance.warehouse_id,
            quantity=balance.quantity,
            ledger_total=total,
            last_balance_after=last,
        )

    @classmethod
    def reconcile(cls, fix: bool = False) -> list[Discrepancy]:
        """
        Scan every balance.

        Args:
            fix: Recalculate inconsistent balances from the ledger

        Returns:
            Discrepancies found (before fixing)
        """
        found = []
        for balance in StockBalance.objects.order_by('pk').iterator():
            discrepancy = cls.verify(balance)
            if discrepancy is None:
                continue

            found.append(discrepancy)
            logger.warning(
                "ledger.reconcile.discrepancy",
                extra={
                    "balance_id": balance.pk,
                    "quantity": str(discrepancy.quantity),
                    "ledger_total": str(discrepancy.ledger_total),
                },
            )
            if fix:
                balance.recalculate()

        return found
