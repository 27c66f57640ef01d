"""
Django Stockledger — warehouse stock ledger.

Receipts, deliveries, transfers and adjustments are posted against
per-warehouse balances, each change recorded as an immutable ledger entry.

Usage:
    from stockledger import ledger, LedgerError

    receipt = ledger.create_receipt(main, [(bolts, Decimal('10'))], user=alice)
    ledger.set_status(receipt, 'ready')
    ledger.post(receipt, user=alice)
    ledger.balance(bolts, main)  # 10
"""


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name == 'ledger':
        from stockledger.service import Ledger
        return Ledger
    elif name == 'LedgerError':
        from stockledger.exceptions import LedgerError
        return LedgerError
    elif name == 'Product':
        from stockledger.models.product import Product
        return Product
    elif name == 'Warehouse':
        from stockledger.models.warehouse import Warehouse
        return Warehouse
    elif name == 'StockBalance':
        from stockledger.models.balance import StockBalance
        return StockBalance
    elif name == 'LedgerEntry':
        from stockledger.models.entry import LedgerEntry
        return LedgerEntry
    elif name == 'DocumentStatus':
        from stockledger.models.enums import DocumentStatus
        return DocumentStatus
    elif name == 'TransactionType':
        from stockledger.models.enums import TransactionType
        return TransactionType
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'ledger',
    'LedgerError',
    'Product',
    'Warehouse',
    'StockBalance',
    'LedgerEntry',
    'DocumentStatus',
    'TransactionType',
]

__version__ = '0.1.0'
