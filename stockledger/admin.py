"""
Stockledger Admin.

Provides views for production debugging:
- Category, Product, Warehouse: list + edit
- StockBalance: read-only (product, warehouse, quantity)
- LedgerEntry: read-only audit trail
- Receipt, Delivery, Transfer, Adjustment: editable while open, with
  a "post selected documents" action
"""

import logging

from django.contrib import admin, messages
from django.utils.translation import gettext_lazy as _

from stockledger.exceptions import LedgerError
from stockledger.models import (
    Adjustment,
    AdjustmentLine,
    Category,
    Delivery,
    DeliveryLine,
    LedgerEntry,
    Product,
    Receipt,
    ReceiptLine,
    StockBalance,
    Transfer,
    TransferLine,
    Warehouse,
)

logger = logging.getLogger(__name__)


# =========================================================================
# CATALOG
# =========================================================================

@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'created_at']
    search_fields = ['name']


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    """Product admin — on-hand is computed from balances."""

    list_display = ['sku', 'name', 'category', 'unit_of_measure', 'reorder_level', 'on_hand_display']
    list_filter = ['category']
    search_fields = ['sku', 'name']
    readonly_fields = ['created_by', 'created_at', 'updated_at']

    def get_queryset(self, request):
        return super().get_queryset(request).with_on_hand()

    @admin.display(description=_('On hand'), ordering='on_hand_qty')
    def on_hand_display(self, obj):
        return obj.on_hand


@admin.register(Warehouse)
class WarehouseAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'is_active']
    list_filter = ['is_active']
    search_fields = ['code', 'name']
    readonly_fields = ['created_by', 'created_at', 'updated_at']


# =========================================================================
# BALANCES AND LEDGER (read-only)
# =========================================================================

class ReadOnlyAdmin(admin.ModelAdmin):
    """Stock only changes through the ledger service."""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(StockBalance)
class StockBalanceAdmin(ReadOnlyAdmin):
    list_display = ['product', 'warehouse', 'quantity', 'updated_at']
    list_filter = ['warehouse']
    search_fields = ['product__sku', 'product__name']


@admin.register(LedgerEntry)
class LedgerEntryAdmin(ReadOnlyAdmin):
    """Immutable audit trail."""

    list_display = ['created_at', 'reference_number', 'transaction_type', 'product',
                    'warehouse', 'quantity_change', 'balance_after', 'created_by']
    list_filter = ['transaction_type', 'warehouse', 'created_at']
    search_fields = ['reference_number', 'product__sku']
    date_hierarchy = 'created_at'


# =========================================================================
# DOCUMENTS
# =========================================================================

class DocumentAdmin(admin.ModelAdmin):
    """Shared admin for stock documents."""

    list_display = ['document_number', 'status', 'created_by', 'validated_at']
    list_filter = ['status']
    search_fields = ['document_number']
    readonly_fields = ['document_number', 'status', 'created_by', 'validated_by',
                       'validated_at', 'metadata', 'created_at', 'updated_at']
    actions = ['post_documents']

    def has_add_permission(self, request):
        # Documents are numbered by the ledger service
        return False

    def has_change_permission(self, request, obj=None):
        if obj is not None and not obj.is_editable:
            return False
        return super().has_change_permission(request, obj)

    @admin.action(description=_('Post selected documents'))
    def post_documents(self, request, queryset):
        from stockledger import ledger

        count = 0
        for document in queryset:
            try:
                ledger.post(document, user=request.user)
                count += 1
            except LedgerError as exc:
                logger.warning("post_documents: failed to post %s: %s", document, exc.code)
                self.message_user(request, f"{document}: {exc.message}", level=messages.ERROR)

        self.message_user(request, _('{count} document(s) posted.').format(count=count))


class ReceiptLineInline(admin.TabularInline):
    model = ReceiptLine
    extra = 0


class DeliveryLineInline(admin.TabularInline):
    model = DeliveryLine
    extra = 0


class TransferLineInline(admin.TabularInline):
    model = TransferLine
    extra = 0


class AdjustmentLineInline(admin.TabularInline):
    model = AdjustmentLine
    extra = 0


@admin.register(Receipt)
class ReceiptAdmin(DocumentAdmin):
    list_display = ['document_number', 'warehouse', 'supplier_name', 'status', 'validated_at']
    list_filter = ['status', 'warehouse']
    inlines = [ReceiptLineInline]


@admin.register(Delivery)
class DeliveryAdmin(DocumentAdmin):
    list_display = ['document_number', 'warehouse', 'customer_name', 'status', 'validated_at']
    list_filter = ['status', 'warehouse']
    inlines = [DeliveryLineInline]


@admin.register(Transfer)
class TransferAdmin(DocumentAdmin):
    list_display = ['document_number', 'from_warehouse', 'to_warehouse', 'status', 'validated_at']
    list_filter = ['status']
    inlines = [TransferLineInline]


@admin.register(Adjustment)
class AdjustmentAdmin(DocumentAdmin):
    list_display = ['document_number', 'warehouse', 'reason', 'status', 'validated_at']
    list_filter = ['status', 'warehouse']
    inlines = [AdjustmentLineInline]
