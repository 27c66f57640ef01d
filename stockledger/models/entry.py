"""
LedgerEntry model — Immutable record of a posted stock change.
"""

from django.conf import settings
from django.contrib.contenttypes.fields import GenericForeignKey
from django.contrib.contenttypes.models import ContentType
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from stockledger.models.enums import TransactionType


class LedgerEntryQuerySet(models.QuerySet):

    def for_document(self, document):
        ct = ContentType.objects.get_for_model(document)
        return self.filter(reference_type=ct, reference_id=document.pk)


class LedgerEntry(models.Model):
    """
    Immutable record of one signed quantity change.

    Rules:
    - NEVER update() or delete()
    - quantity_change is the delta actually applied to the balance
    - balance_after is the balance right after this entry was applied
    - One entry per document, product and warehouse
    """

    product = models.ForeignKey(
        'stockledger.Product',
        on_delete=models.PROTECT,
        related_name='ledger_entries',
        verbose_name=_('Product'),
    )
    warehouse = models.ForeignKey(
        'stockledger.Warehouse',
        on_delete=models.PROTECT,
        related_name='ledger_entries',
        verbose_name=_('Warehouse'),
    )
    transaction_type = models.CharField(
        max_length=20,
        choices=TransactionType.choices,
        db_index=True,
        verbose_name=_('Transaction type'),
    )

    # Source document (receipt, delivery, transfer, adjustment)
    reference_type = models.ForeignKey(
        ContentType,
        on_delete=models.PROTECT,
        related_name='+',
        verbose_name=_('Reference type'),
    )
    reference_id = models.PositiveIntegerField(verbose_name=_('Reference ID'))
    reference = GenericForeignKey('reference_type', 'reference_id')
    reference_number = models.CharField(
        max_length=30,
        blank=True,
        default='',
        verbose_name=_('Reference number'),
    )
    line_number = models.PositiveIntegerField(
        default=1,
        verbose_name=_('Line'),
        help_text=_('Position of this entry within its posting.'),
    )

    quantity_change = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Change'),
        help_text=_('Positive = in, negative = out'),
    )
    balance_after = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Balance after'),
    )
    metadata = models.JSONField(default=dict, blank=True, verbose_name=_('Metadata'))

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('User'),
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True, verbose_name=_('Created at'))

    objects = LedgerEntryQuerySet.as_manager()

    class Meta:
        verbose_name = _('Ledger entry')
        verbose_name_plural = _('Ledger entries')
        ordering = ['created_at', 'id']
        constraints = [
            models.UniqueConstraint(
                fields=['reference_type', 'reference_id', 'product', 'warehouse'],
                name='unique_ledger_entry_per_document_leg',
            )
        ]
        indexes = [
            models.Index(fields=['product', 'warehouse'], name='ledger_product_wh_idx'),
        ]

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValueError(
                "Ledger entries are immutable. "
                "Post a new document to correct a balance."
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError(
            "Ledger entries are immutable. "
            "Post a new document to correct a balance."
        )

    def __str__(self) -> str:
        signal = '+' if self.quantity_change > 0 else ''
        return f"{self.reference_number} {signal}{self.quantity_change} → {self.balance_after}"
