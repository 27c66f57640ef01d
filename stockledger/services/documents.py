"""
Document workflow — create, edit lines, move through statuses, cancel.

Posting (the transition into DONE) lives in services/posting.py.
"""

import logging
from decimal import Decimal, InvalidOperation

from django.db import transaction

from stockledger.adapters.identity import resolve_user
from stockledger.exceptions import LedgerError
from stockledger.models.balance import StockBalance
from stockledger.models.document import (
    Adjustment,
    AdjustmentLine,
    Delivery,
    DeliveryLine,
    Receipt,
    ReceiptLine,
    Transfer,
    TransferLine,
)
from stockledger.models.enums import OPEN_STATUSES, DocumentStatus
from stockledger.services.numbering import next_document_number

logger = logging.getLogger('stockledger')

LINE_MODELS = {
    Receipt: ReceiptLine,
    Delivery: DeliveryLine,
    Transfer: TransferLine,
    Adjustment: AdjustmentLine,
}

WAREHOUSE_FIELDS = ('warehouse', 'from_warehouse', 'to_warehouse')

# Forward moves only; DONE is reached through post(), CANCELED through cancel()
TRANSITIONS = {
    DocumentStatus.DRAFT: {DocumentStatus.WAITING, DocumentStatus.READY},
    DocumentStatus.WAITING: {DocumentStatus.READY},
    DocumentStatus.READY: set(),
}


def to_decimal(value) -> Decimal:
    """Convert user input to Decimal without float artifacts."""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise LedgerError('INVALID_QUANTITY', requested=value) from None


def _merge_quantities(lines) -> list[tuple]:
    """Sum quantities of repeated products, keeping first-seen order."""
    merged: dict = {}
    for product, quantity in lines:
        quantity = to_decimal(quantity)
        if product.pk in merged:
            merged[product.pk][1] += quantity
        else:
            merged[product.pk] = [product, quantity]
    return [(product, quantity) for product, quantity in merged.values()]


def _quantity_lines(line_model, document, lines) -> list:
    objs = []
    for product, quantity in _merge_quantities(lines):
        if quantity <= 0:
            raise LedgerError('INVALID_QUANTITY', product=product.sku, requested=quantity)
        objs.append(line_model(document=document, product=product, quantity=quantity))
    return objs


def _adjustment_lines(document, lines, counts) -> list:
    """
    Build adjustment lines from signed changes and from physical counts.

    A count is turned into a change against the current balance at the
    adjustment's warehouse; counts matching the balance add no line.
    """
    objs = []
    seen = set()

    for product, change in _merge_quantities(lines or []):
        if change == 0:
            raise LedgerError('INVALID_QUANTITY', product=product.sku, requested=change)
        seen.add(product.pk)
        objs.append(AdjustmentLine(document=document, product=product, quantity_change=change))

    for product, counted in counts or []:
        counted = to_decimal(counted)
        if counted < 0:
            raise LedgerError('INVALID_QUANTITY', product=product.sku, requested=counted)
        if product.pk in seen:
            raise LedgerError(
                'INVALID_DOCUMENT',
                'Product appears more than once in adjustment',
                product=product.sku,
            )
        seen.add(product.pk)

        if document.warehouse_id is None:
            raise LedgerError('MISSING_REFERENCE', field='warehouse', document=document.document_number)
        balance = StockBalance.objects.filter(
            product=product,
            warehouse_id=document.warehouse_id,
        ).first()
        system = balance.quantity if balance else Decimal('0')

        change = counted - system
        if change == 0:
            continue
        objs.append(AdjustmentLine(
            document=document,
            product=product,
            quantity_change=change,
            system_quantity=system,
            counted_quantity=counted,
        ))

    return objs


def _build_lines(document, lines, counts=None) -> list:
    if isinstance(document, Adjustment):
        return _adjustment_lines(document, lines, counts)
    if counts:
        raise LedgerError('INVALID_DOCUMENT', 'Counts only apply to adjustments')
    return _quantity_lines(LINE_MODELS[type(document)], document, lines)


def _check_active(fields):
    for name in WAREHOUSE_FIELDS:
        warehouse = fields.get(name)
        if warehouse is not None and not warehouse.is_active:
            raise LedgerError('INACTIVE_WAREHOUSE', field=name, warehouse=warehouse.code)


def _lock(document):
    return type(document).objects.select_for_update().get(pk=document.pk)


class LedgerDocuments:
    """Document lifecycle methods."""

    @classmethod
    def _create(cls, model, lines, user, status, counts=None, **fields):
        if status not in OPEN_STATUSES:
            raise LedgerError('INVALID_STATUS', current=status, expected=list(OPEN_STATUSES))

        _check_active(fields)

        user = resolve_user(user)

        with transaction.atomic():
            document = model.objects.create(
                document_number=next_document_number(model.transaction_type),
                status=status,
                created_by=user,
                **fields
            )
            model_lines = _build_lines(document, lines, counts)
            LINE_MODELS[model].objects.bulk_create(model_lines)

            logger.info(
                "ledger.document.created",
                extra={
                    "document": document.document_number,
                    "type": model.transaction_type,
                    "lines": len(model_lines),
                    "status": status,
                },
            )
            return document

    @classmethod
    def create_receipt(cls, warehouse, lines, supplier_name='', user=None,
                       status=DocumentStatus.DRAFT, receipt_date=None, notes=''):
        """
        Create a receipt.

        Args:
            warehouse: Destination Warehouse
            lines: Sequence of (product, quantity) pairs; quantity > 0

        Raises:
            LedgerError('INVALID_QUANTITY'): If a quantity is not positive
            LedgerError('INACTIVE_WAREHOUSE'): If the warehouse is deactivated
        """
        return cls._create(
            Receipt, lines, user, status,
            warehouse=warehouse,
            supplier_name=supplier_name,
            receipt_date=receipt_date,
            notes=notes,
        )

    @classmethod
    def create_delivery(cls, warehouse, lines, customer_name='', user=None,
                        status=DocumentStatus.DRAFT, delivery_date=None, notes=''):
        """Create a delivery. Same line rules as create_receipt()."""
        return cls._create(
            Delivery, lines, user, status,
            warehouse=warehouse,
            customer_name=customer_name,
            delivery_date=delivery_date,
            notes=notes,
        )

    @classmethod
    def create_transfer(cls, from_warehouse, to_warehouse, lines, user=None,
                        status=DocumentStatus.DRAFT, transfer_date=None, notes=''):
        """
        Create a transfer between two warehouses.

        Raises:
            LedgerError('INVALID_DOCUMENT'): If both warehouses are the same
        """
        if from_warehouse is not None and from_warehouse == to_warehouse:
            raise LedgerError(
                'INVALID_DOCUMENT',
                'Source and destination warehouses must differ',
                warehouse=from_warehouse.code,
            )
        return cls._create(
            Transfer, lines, user, status,
            from_warehouse=from_warehouse,
            to_warehouse=to_warehouse,
            transfer_date=transfer_date,
            notes=notes,
        )

    @classmethod
    def create_adjustment(cls, warehouse, lines=None, counts=None, reason='',
                          user=None, status=DocumentStatus.DRAFT, notes=''):
        """
        Create an inventory adjustment.

        Args:
            warehouse: Warehouse being corrected
            lines: Sequence of (product, signed change) pairs; change != 0
            counts: Sequence of (product, counted quantity) pairs; the change
                is counted - current balance

        Raises:
            LedgerError('INVALID_QUANTITY'): Zero change or negative count
        """
        return cls._create(
            Adjustment, lines or [], user, status,
            counts=counts,
            warehouse=warehouse,
            reason=reason,
            notes=notes,
        )

    @classmethod
    def replace_lines(cls, document, lines, counts=None):
        """
        Replace all lines of an open document (delete and reinsert).

        Raises:
            LedgerError('INVALID_STATUS'): If the document is done or canceled
        """
        with transaction.atomic():
            locked = _lock(document)

            if not locked.is_editable:
                raise LedgerError(
                    'INVALID_STATUS',
                    current=locked.status,
                    expected=list(OPEN_STATUSES),
                )

            new_lines = _build_lines(locked, lines, counts)
            locked.lines.all().delete()
            LINE_MODELS[type(locked)].objects.bulk_create(new_lines)
            locked.save(update_fields=['updated_at'])

            logger.info(
                "ledger.document.lines_replaced",
                extra={"document": locked.document_number, "lines": len(new_lines)},
            )
            return locked

    @classmethod
    def set_status(cls, document, status):
        """
        Move an open document forward in the workflow.

        Transitions: DRAFT -> WAITING -> READY (DRAFT -> READY allowed).
        Use post() to reach DONE and cancel() to reach CANCELED.
        """
        if status == DocumentStatus.CANCELED:
            return cls.cancel(document)

        with transaction.atomic():
            locked = _lock(document)

            if locked.status == DocumentStatus.DONE:
                raise LedgerError('ALREADY_POSTED', document=locked.document_number)

            allowed = TRANSITIONS.get(locked.status, set())
            if status not in allowed:
                raise LedgerError(
                    'INVALID_STATUS',
                    current=locked.status,
                    expected=sorted(allowed),
                )

            previous = locked.status
            locked.status = status
            locked.save(update_fields=['status', 'updated_at'])
            logger.info(
                "ledger.document.status",
                extra={
                    "document": locked.document_number,
                    "from": previous,
                    "to": status,
                },
            )
            return locked

    @classmethod
    def cancel(cls, document, reason=''):
        """
        Cancel an open document.

        Transition: DRAFT|WAITING|READY -> CANCELED
        """
        with transaction.atomic():
            locked = _lock(document)

            if locked.status == DocumentStatus.DONE:
                raise LedgerError('ALREADY_POSTED', document=locked.document_number)
            if locked.status not in OPEN_STATUSES:
                raise LedgerError(
                    'INVALID_STATUS',
                    current=locked.status,
                    expected=list(OPEN_STATUSES),
                )

            locked.status = DocumentStatus.CANCELED
            if reason:
                locked.metadata['cancel_reason'] = reason
            locked.save(update_fields=['status', 'metadata', 'updated_at'])
            logger.info(
                "ledger.document.canceled",
                extra={"document": locked.document_number, "reason": reason},
            )
            return locked
