"""
Stock queries — read-only operations (balance, on_hand, history, dashboard).
"""

from decimal import Decimal

from django.db.models import F, Sum
from django.db.models.functions import Coalesce

from stockledger.models.balance import StockBalance
from stockledger.models.document import DOCUMENT_MODELS
from stockledger.models.entry import LedgerEntry
from stockledger.models.enums import OPEN_STATUSES
from stockledger.models.product import Product
from stockledger.models.warehouse import Warehouse


class LedgerQueries:
    """Read-only stock query methods."""

    @classmethod
    def balance(cls, product, warehouse) -> Decimal:
        """Quantity of product at warehouse (0 when it never had stock)."""
        return StockBalance.objects.filter(
            product=product,
            warehouse=warehouse,
        ).values_list('quantity', flat=True).first() or Decimal('0')

    @classmethod
    def on_hand(cls, product) -> Decimal:
        """
        Quantity of product across all warehouses.

        This is the product's global stock figure; it is always derived
        from balances, never stored.
        """
        return StockBalance.objects.filter(product=product).aggregate(
            t=Coalesce(Sum('quantity'), Decimal('0'))
        )['t']

    @classmethod
    def list_balances(cls, product=None, warehouse=None, include_empty: bool = False):
        """List balances with filters."""
        qs = StockBalance.objects.select_related('product', 'warehouse')

        if product is not None:
            qs = qs.filter(product=product)

        if warehouse is not None:
            qs = qs.filter(warehouse=warehouse)

        if not include_empty:
            qs = qs.filter(quantity__gt=0)

        return qs.order_by('warehouse__code', 'product__sku')

    @classmethod
    def history(cls, product=None, warehouse=None, transaction_type=None, document=None):
        """Ledger entries, newest first."""
        qs = LedgerEntry.objects.select_related('product', 'warehouse', 'created_by')

        if product is not None:
            qs = qs.filter(product=product)

        if warehouse is not None:
            qs = qs.filter(warehouse=warehouse)

        if transaction_type is not None:
            qs = qs.filter(transaction_type=transaction_type)

        if document is not None:
            qs = qs.for_document(document)

        return qs.order_by('-created_at', '-id')

    @classmethod
    def low_stock(cls):
        """Products whose on-hand quantity is at or below their reorder level."""
        return Product.objects.with_on_hand().filter(
            on_hand_qty__lte=F('reorder_level')
        ).order_by('name')

    @classmethod
    def pending_documents(cls) -> dict[str, int]:
        """Count of open (draft, waiting, ready) documents per type."""
        return {
            model.transaction_type: model.objects.filter(status__in=OPEN_STATUSES).count()
            for model in DOCUMENT_MODELS
        }

    @classmethod
    def dashboard(cls) -> dict:
        """Summary figures for an overview screen."""
        pending = cls.pending_documents()
        total_on_hand = StockBalance.objects.aggregate(
            t=Coalesce(Sum('quantity'), Decimal('0'))
        )['t']

        return {
            'total_products': Product.objects.count(),
            'low_stock_items': cls.low_stock().count(),
            'pending_receipts': pending['receipt'],
            'pending_deliveries': pending['delivery'],
            'pending_transfers': pending['transfer'],
            'pending_adjustments': pending['adjustment'],
            'total_on_hand': total_on_hand,
            'warehouse_count': Warehouse.objects.count(),
        }
