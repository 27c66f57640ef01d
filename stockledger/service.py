"""
Ledger Service — The single public interface for all stock operations.

Usage:
    from stockledger import ledger, LedgerError

    receipt = ledger.create_receipt(main, [(bolts, Decimal('10'))])
    ledger.set_status(receipt, 'ready')
    ledger.post(receipt, user=alice)
    ledger.balance(bolts, main)  # 10
"""

from stockledger.services.documents import LedgerDocuments
from stockledger.services.posting import LedgerPosting
from stockledger.services.queries import LedgerQueries
from stockledger.services.reconciliation import LedgerReconciliation


class Ledger(LedgerQueries, LedgerDocuments, LedgerPosting, LedgerReconciliation):
    """
    Single interface for all stock operations.

    IMPORTANT: All state-changing methods run in atomic transactions
    with row locking. See each method's docstring.
    """
