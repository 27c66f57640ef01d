"""
Stockledger Models.

Core models for stock posting:
- Product / Category: What is stocked
- Warehouse: Where stock is kept
- StockBalance: On-hand quantity per product and warehouse
- LedgerEntry: Immutable ledger of posted changes
- Receipt, Delivery, Transfer, Adjustment: Documents that move stock
- DocumentSequence: Counters for document numbers
"""

from stockledger.models.balance import StockBalance
from stockledger.models.document import (
    DOCUMENT_MODELS,
    Adjustment,
    AdjustmentLine,
    Delivery,
    DeliveryLine,
    Receipt,
    ReceiptLine,
    StockDocument,
    Transfer,
    TransferLine,
)
from stockledger.models.entry import LedgerEntry
from stockledger.models.enums import OPEN_STATUSES, DocumentStatus, TransactionType
from stockledger.models.product import Category, Product
from stockledger.models.sequence import DocumentSequence
from stockledger.models.warehouse import Warehouse

__all__ = [
    'DocumentStatus',
    'TransactionType',
    'OPEN_STATUSES',
    'Category',
    'Product',
    'Warehouse',
    'StockBalance',
    'LedgerEntry',
    'StockDocument',
    'Receipt',
    'ReceiptLine',
    'Delivery',
    'DeliveryLine',
    'Transfer',
    'TransferLine',
    'Adjustment',
    'AdjustmentLine',
    'DOCUMENT_MODELS',
    'DocumentSequence',
]
