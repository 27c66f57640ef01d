"""
StockBalance model — On-hand quantity per product and warehouse.
"""

import logging
from decimal import Decimal

from django.db import models
from django.db.models import F, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

logger = logging.getLogger('stockledger')


class StockBalanceManager(models.Manager):
    """Manager with helper methods for StockBalance queries."""

    def for_product(self, product):
        return self.filter(product=product)

    def at_warehouse(self, warehouse):
        return self.filter(warehouse=warehouse)

    def non_empty(self):
        return self.filter(quantity__gt=0)


class StockBalance(models.Model):
    """
    Quantity of a product at a warehouse.

    Rules:
    - Created lazily by the first inbound posting
    - Written only by the ledger poster (and recalculate())
    - ``version`` increments on every write; writes are conditional on it
    - Never negative
    """

    product = models.ForeignKey(
        'stockledger.Product',
        on_delete=models.PROTECT,
        related_name='balances',
        verbose_name=_('Product'),
    )
    warehouse = models.ForeignKey(
        'stockledger.Warehouse',
        on_delete=models.PROTECT,
        related_name='balances',
        verbose_name=_('Warehouse'),
    )
    quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=_('Quantity'),
    )
    version = models.PositiveIntegerField(default=0, verbose_name=_('Version'))
    updated_at = models.DateTimeField(auto_now=True)

    objects = StockBalanceManager()

    class Meta:
        verbose_name = _('Stock balance')
        verbose_name_plural = _('Stock balances')
        constraints = [
            models.UniqueConstraint(
                fields=['product', 'warehouse'],
                name='unique_balance_per_product_warehouse',
            )
        ]

    def ledger_total(self) -> Decimal:
        """Sum of every ledger change recorded for this coordinate."""
        from stockledger.models.entry import LedgerEntry

        return LedgerEntry.objects.filter(
            product_id=self.product_id,
            warehouse_id=self.warehouse_id,
        ).aggregate(
            t=Coalesce(Sum('quantity_change'), Decimal('0'))
        )['t']

    def recalculate(self) -> Decimal:
        """
        Recalculate quantity from the ledger.

        Use for integrity audits and for correcting a detected drift.

        Returns:
            New calculated quantity
        """
        total = self.ledger_total()

        if total != self.quantity:
            old = self.quantity
            StockBalance.objects.filter(pk=self.pk).update(
                quantity=total,
                version=F('version') + 1,
                updated_at=timezone.now(),
            )
            self.refresh_from_db()
            logger.warning(
                "ledger.balance.recalculated",
                extra={
                    "balance_id": self.pk,
                    "old": str(old),
                    "new": str(total),
                    "diff": str(total - old),
                },
            )

        return total

    def __str__(self) -> str:
        return f"{self.product} [{self.warehouse.code}]: {self.quantity}"
