"""
Document numbering — REC-00001, DEL-00001, TR-00001, ADJ-00001.

Numbers come from a locked counter row per sequence, so two concurrent
creations never receive the same number. A rolled back transaction
does not consume its number.
"""

import logging

from django.db import IntegrityError, transaction

from stockledger.conf import stockledger_settings
from stockledger.models.sequence import DocumentSequence

logger = logging.getLogger('stockledger')


def next_value(sequence_name: str) -> int:
    """
    Allocate the next value of a sequence.

    Must run inside the caller's transaction: the counter row stays
    locked until it commits.
    """
    with transaction.atomic():
        counter = DocumentSequence.objects.select_for_update().filter(name=sequence_name).first()

        if counter is None:
            try:
                # Savepoint so a lost creation race doesn't poison the caller
                with transaction.atomic():
                    DocumentSequence.objects.create(name=sequence_name, current_value=1)
                return 1
            except IntegrityError:
                logger.debug(
                    "ledger.sequence.race_retry",
                    extra={"sequence_name": sequence_name},
                )
                counter = DocumentSequence.objects.select_for_update().get(name=sequence_name)

        counter.current_value += 1
        counter.save(update_fields=['current_value'])
        return counter.current_value


def format_number(transaction_type: str, value: int) -> str:
    """Format a sequence value as a document number."""
    prefix = stockledger_settings.NUMBER_PREFIXES.get(transaction_type, transaction_type.upper())
    padding = stockledger_settings.NUMBER_PADDING
    return f"{prefix}-{value:0{padding}d}"


def next_document_number(transaction_type: str) -> str:
    """Allocate and format the next number for a document type."""
    return format_number(transaction_type, next_value(transaction_type))
