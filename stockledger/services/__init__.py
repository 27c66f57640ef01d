"""
Ledger services — modular organization of stock operations.

    from stockledger.services import (
        LedgerQueries, LedgerDocuments, LedgerPosting, LedgerReconciliation,
    )
"""

from stockledger.services.documents import LedgerDocuments
from stockledger.services.posting import LedgerPosting
from stockledger.services.queries import LedgerQueries
from stockledger.services.reconciliation import LedgerReconciliation

__all__ = [
    'LedgerQueries',
    'LedgerDocuments',
    'LedgerPosting',
    'LedgerReconciliation',
]
