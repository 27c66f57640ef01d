"""
Document models — Receipts, deliveries, transfers and adjustments.

Every document goes through the same workflow:

    ┌───────┐      ┌─────────┐      ┌───────┐   post()   ┌──────┐
    │ DRAFT │ ───► │ WAITING │ ───► │ READY │ ─────────► │ DONE │
    └───────┘      └─────────┘      └───────┘            └──────┘
        │               │               │
        └───────────────┴───────────────┴──► CANCELED

Lines are editable while the document is open. Posting is the only way
into DONE and the only moment stock balances change.
"""

from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils.translation import gettext_lazy as _

from stockledger.models.enums import OPEN_STATUSES, DocumentStatus, TransactionType


class StockDocument(models.Model):
    """Common shape of every stock document."""

    transaction_type: str = ''

    document_number = models.CharField(
        max_length=30,
        unique=True,
        verbose_name=_('Number'),
    )
    status = models.CharField(
        max_length=20,
        choices=DocumentStatus.choices,
        default=DocumentStatus.DRAFT,
        db_index=True,
        verbose_name=_('Status'),
    )
    notes = models.TextField(blank=True, default='', verbose_name=_('Notes'))
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Created by'),
    )
    validated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Validated by'),
    )
    validated_at = models.DateTimeField(null=True, blank=True, verbose_name=_('Validated at'))
    metadata = models.JSONField(default=dict, blank=True, verbose_name=_('Metadata'))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ['-created_at', '-id']

    @property
    def is_posted(self) -> bool:
        return self.status == DocumentStatus.DONE

    @property
    def is_editable(self) -> bool:
        return self.status in OPEN_STATUSES

    def get_lines(self):
        """Lines in posting order."""
        return self.lines.select_related('product').order_by('pk')

    def __str__(self) -> str:
        return self.document_number


class DocumentLine(models.Model):
    """Common shape of a document line."""

    product = models.ForeignKey(
        'stockledger.Product',
        on_delete=models.PROTECT,
        related_name='+',
        verbose_name=_('Product'),
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        abstract = True
        ordering = ['pk']


class QuantityLine(DocumentLine):
    """Line moving an absolute quantity; direction comes from the document."""

    quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Quantity'),
    )

    class Meta(DocumentLine.Meta):
        abstract = True

    def clean(self):
        super().clean()
        if self.quantity is not None and self.quantity <= 0:
            raise ValidationError({'quantity': _('Quantity must be greater than zero.')})

    def __str__(self) -> str:
        return f"{self.quantity} × {self.product}"


# ══════════════════════════════════════════════════════════════
# RECEIPTS
# ══════════════════════════════════════════════════════════════


class Receipt(StockDocument):
    """Incoming goods from a supplier."""

    transaction_type = TransactionType.RECEIPT

    warehouse = models.ForeignKey(
        'stockledger.Warehouse',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='receipts',
        verbose_name=_('Warehouse'),
    )
    supplier_name = models.CharField(max_length=200, blank=True, default='', verbose_name=_('Supplier'))
    receipt_date = models.DateField(null=True, blank=True, verbose_name=_('Receipt date'))

    class Meta(StockDocument.Meta):
        verbose_name = _('Receipt')
        verbose_name_plural = _('Receipts')


class ReceiptLine(QuantityLine):
    document = models.ForeignKey(
        Receipt,
        on_delete=models.CASCADE,
        related_name='lines',
        verbose_name=_('Receipt'),
    )

    class Meta(QuantityLine.Meta):
        verbose_name = _('Receipt line')
        verbose_name_plural = _('Receipt lines')
        constraints = [
            models.UniqueConstraint(fields=['document', 'product'], name='unique_receipt_line_product'),
        ]


# ══════════════════════════════════════════════════════════════
# DELIVERIES
# ══════════════════════════════════════════════════════════════


class Delivery(StockDocument):
    """Outgoing goods to a customer."""

    transaction_type = TransactionType.DELIVERY

    warehouse = models.ForeignKey(
        'stockledger.Warehouse',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='deliveries',
        verbose_name=_('Warehouse'),
    )
    customer_name = models.CharField(max_length=200, blank=True, default='', verbose_name=_('Customer'))
    delivery_date = models.DateField(null=True, blank=True, verbose_name=_('Delivery date'))

    class Meta(StockDocument.Meta):
        verbose_name = _('Delivery')
        verbose_name_plural = _('Deliveries')


class DeliveryLine(QuantityLine):
    document = models.ForeignKey(
        Delivery,
        on_delete=models.CASCADE,
        related_name='lines',
        verbose_name=_('Delivery'),
    )

    class Meta(QuantityLine.Meta):
        verbose_name = _('Delivery line')
        verbose_name_plural = _('Delivery lines')
        constraints = [
            models.UniqueConstraint(fields=['document', 'product'], name='unique_delivery_line_product'),
        ]


# ══════════════════════════════════════════════════════════════
# TRANSFERS
# ══════════════════════════════════════════════════════════════


class Transfer(StockDocument):
    """Internal move between two warehouses."""

    transaction_type = TransactionType.TRANSFER

    from_warehouse = models.ForeignKey(
        'stockledger.Warehouse',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='transfers_out',
        verbose_name=_('From warehouse'),
    )
    to_warehouse = models.ForeignKey(
        'stockledger.Warehouse',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='transfers_in',
        verbose_name=_('To warehouse'),
    )
    transfer_date = models.DateField(null=True, blank=True, verbose_name=_('Transfer date'))

    class Meta(StockDocument.Meta):
        verbose_name = _('Transfer')
        verbose_name_plural = _('Transfers')


class TransferLine(QuantityLine):
    document = models.ForeignKey(
        Transfer,
        on_delete=models.CASCADE,
        related_name='lines',
        verbose_name=_('Transfer'),
    )

    class Meta(QuantityLine.Meta):
        verbose_name = _('Transfer line')
        verbose_name_plural = _('Transfer lines')
        constraints = [
            models.UniqueConstraint(fields=['document', 'product'], name='unique_transfer_line_product'),
        ]


# ══════════════════════════════════════════════════════════════
# ADJUSTMENTS
# ══════════════════════════════════════════════════════════════


class Adjustment(StockDocument):
    """Inventory correction after a count."""

    transaction_type = TransactionType.ADJUSTMENT

    warehouse = models.ForeignKey(
        'stockledger.Warehouse',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='adjustments',
        verbose_name=_('Warehouse'),
    )
    reason = models.CharField(max_length=255, blank=True, default='', verbose_name=_('Reason'))

    class Meta(StockDocument.Meta):
        verbose_name = _('Adjustment')
        verbose_name_plural = _('Adjustments')


class AdjustmentLine(DocumentLine):
    """
    Signed correction for one product.

    ``quantity_change`` is the requested delta. When it comes from a count,
    ``system_quantity`` and ``counted_quantity`` keep the figures it was
    derived from.
    """

    document = models.ForeignKey(
        Adjustment,
        on_delete=models.CASCADE,
        related_name='lines',
        verbose_name=_('Adjustment'),
    )
    quantity_change = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        verbose_name=_('Change'),
    )
    system_quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        null=True,
        blank=True,
        verbose_name=_('System quantity'),
    )
    counted_quantity = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        null=True,
        blank=True,
        verbose_name=_('Counted quantity'),
    )

    class Meta(DocumentLine.Meta):
        verbose_name = _('Adjustment line')
        verbose_name_plural = _('Adjustment lines')
        constraints = [
            models.UniqueConstraint(fields=['document', 'product'], name='unique_adjustment_line_product'),
        ]

    def clean(self):
        super().clean()
        if self.quantity_change is not None and self.quantity_change == 0:
            raise ValidationError({'quantity_change': _('Change must not be zero.')})

    def __str__(self) -> str:
        signal = '+' if self.quantity_change > Decimal('0') else ''
        return f"{signal}{self.quantity_change} × {self.product}"


DOCUMENT_MODELS = (Receipt, Delivery, Transfer, Adjustment)
