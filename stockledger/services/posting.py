"""
Ledger posting — validate a document and apply it to stock balances.

Posting is all-or-nothing: every balance write, every ledger entry and
the status change happen in one transaction. Any failure leaves the
document and every balance exactly as they were.

Concurrency:
    - The document row is locked, so a document posts at most once
    - Balance rows are locked in (product_id, warehouse_id) order; missing
      rows for inbound legs and adjustments are created in that same order
    - Balance writes are conditional on the row version
    - Ledger entries are unique per document, product and warehouse
"""

import logging
import time
from dataclasses import dataclass
from decimal import Decimal

from django.contrib.contenttypes.models import ContentType
from django.db import IntegrityError, InterfaceError, OperationalError, transaction
from django.db.models import F
from django.utils import timezone

from stockledger.adapters.identity import resolve_user
from stockledger.conf import stockledger_settings
from stockledger.exceptions import LedgerError
from stockledger.models.balance import StockBalance
from stockledger.models.entry import LedgerEntry
from stockledger.models.enums import DocumentStatus, TransactionType
from stockledger.models.product import Product
from stockledger.models.warehouse import Warehouse

logger = logging.getLogger('stockledger')


@dataclass(frozen=True)
class Leg:
    """One signed change to one (product, warehouse) balance."""

    line_number: int
    product_id: int
    warehouse_id: int
    delta: Decimal
    outbound: bool = False  # must not drive the balance negative
    clamp: bool = False     # floor the balance at zero instead of failing

    @property
    def key(self) -> tuple[int, int]:
        return (self.product_id, self.warehouse_id)


def _positive(line, document) -> Decimal:
    if line.quantity <= 0:
        raise LedgerError(
            'INVALID_QUANTITY',
            document=document.document_number,
            product_id=line.product_id,
            requested=line.quantity,
        )
    return line.quantity


def build_legs(document, lines) -> list[Leg]:
    """
    Translate document lines into signed balance changes.

    receipt: +q at warehouse
    delivery: -q at warehouse
    transfer: -q at from_warehouse, then +q at to_warehouse
    adjustment: +quantity_change at warehouse (clamped at zero)
    """
    ttype = document.transaction_type
    legs = []

    if ttype == TransactionType.TRANSFER:
        if document.from_warehouse_id is None or document.to_warehouse_id is None:
            raise LedgerError(
                'MISSING_REFERENCE',
                field='warehouse',
                document=document.document_number,
            )
        if document.from_warehouse_id == document.to_warehouse_id:
            raise LedgerError(
                'INVALID_DOCUMENT',
                'Source and destination warehouses must differ',
                document=document.document_number,
            )
    elif document.warehouse_id is None:
        raise LedgerError(
            'MISSING_REFERENCE',
            field='warehouse',
            document=document.document_number,
        )

    for line in lines:
        if ttype == TransactionType.RECEIPT:
            legs.append(Leg(len(legs) + 1, line.product_id, document.warehouse_id,
                            _positive(line, document)))
        elif ttype == TransactionType.DELIVERY:
            legs.append(Leg(len(legs) + 1, line.product_id, document.warehouse_id,
                            -_positive(line, document), outbound=True))
        elif ttype == TransactionType.TRANSFER:
            quantity = _positive(line, document)
            legs.append(Leg(len(legs) + 1, line.product_id, document.from_warehouse_id,
                            -quantity, outbound=True))
            legs.append(Leg(len(legs) + 1, line.product_id, document.to_warehouse_id,
                            quantity))
        elif ttype == TransactionType.ADJUSTMENT:
            if line.quantity_change == 0:
                raise LedgerError(
                    'INVALID_QUANTITY',
                    document=document.document_number,
                    product_id=line.product_id,
                    requested=line.quantity_change,
                )
            legs.append(Leg(len(legs) + 1, line.product_id, document.warehouse_id,
                            line.quantity_change, clamp=True))
        else:
            raise LedgerError('INVALID_DOCUMENT', transaction_type=ttype)

    return legs


def _check_references(legs, document):
    """Every product and warehouse a leg points to must exist; warehouses must be active."""
    product_ids = {leg.product_id for leg in legs}
    warehouse_ids = {leg.warehouse_id for leg in legs}

    missing_products = product_ids - set(
        Product.objects.filter(pk__in=product_ids).values_list('pk', flat=True)
    )
    if missing_products:
        raise LedgerError(
            'MISSING_REFERENCE',
            field='product',
            ids=sorted(missing_products),
            document=document.document_number,
        )

    active = dict(
        Warehouse.objects.filter(pk__in=warehouse_ids).values_list('pk', 'is_active')
    )
    missing_warehouses = warehouse_ids - set(active)
    if missing_warehouses:
        raise LedgerError(
            'MISSING_REFERENCE',
            field='warehouse',
            ids=sorted(missing_warehouses),
            document=document.document_number,
        )

    inactive = sorted(pk for pk, is_active in active.items() if not is_active)
    if inactive:
        raise LedgerError(
            'INACTIVE_WAREHOUSE',
            ids=inactive,
            document=document.document_number,
        )


def _lock_balances(legs) -> dict:
    """
    Lock balances in key order.

    Keys with an inbound or adjustment leg get a row created at zero when
    absent. Keys touched only by outbound legs map to None when absent.
    """
    creatable = {leg.key for leg in legs if not leg.outbound}
    balances = {}
    for product_id, warehouse_id in sorted({leg.key for leg in legs}):
        balance = StockBalance.objects.select_for_update().filter(
            product_id=product_id,
            warehouse_id=warehouse_id,
        ).first()
        if balance is None and (product_id, warehouse_id) in creatable:
            balance = _create_balance(product_id, warehouse_id)
        balances[(product_id, warehouse_id)] = balance
    return balances


def _create_balance(product_id, warehouse_id) -> StockBalance:
    balance, _ = StockBalance.objects.get_or_create(
        product_id=product_id,
        warehouse_id=warehouse_id,
    )
    return StockBalance.objects.select_for_update().get(pk=balance.pk)


def write_balance(balance: StockBalance, quantity: Decimal) -> None:
    """
    Compare-and-swap a balance quantity on its version.

    Raises:
        LedgerError('CONCURRENCY_CONFLICT'): If the row changed since it was read
    """
    updated = StockBalance.objects.filter(
        pk=balance.pk,
        version=balance.version,
    ).update(
        quantity=quantity,
        version=F('version') + 1,
        updated_at=timezone.now(),
    )
    if not updated:
        raise LedgerError(
            'CONCURRENCY_CONFLICT',
            balance_id=balance.pk,
            version=balance.version,
        )
    balance.quantity = quantity
    balance.version += 1


class LedgerPosting:
    """Document posting."""

    @classmethod
    def post(cls, document, user=None) -> list[LedgerEntry]:
        """
        Post a document: apply every line to stock and mark it DONE.

        Args:
            document: Receipt, Delivery, Transfer or Adjustment
            user: Acting user (None = resolve through the identity provider)

        Returns:
            Created ledger entries, in posting order

        Raises:
            LedgerError('NOT_AUTHENTICATED'): No acting user; nothing is touched
            LedgerError('ALREADY_POSTED'): Document is already DONE
            LedgerError('INVALID_STATUS'): Document is not in a postable status
            LedgerError('EMPTY_DOCUMENT'): Document has no lines
            LedgerError('MISSING_REFERENCE'): Warehouse or product not found
            LedgerError('INACTIVE_WAREHOUSE'): A warehouse on the document is deactivated
            LedgerError('INSUFFICIENT_STOCK'): An outbound leg would go negative
            LedgerError('TRANSPORT_ERROR'): Database failure, after retries
            LedgerError('CONCURRENCY_CONFLICT'): Lost balance race, after retries
        """
        user = resolve_user(user)
        if user is None:
            raise LedgerError('NOT_AUTHENTICATED', document=document.document_number)

        attempts = max(1, stockledger_settings.MAX_ATTEMPTS)
        backoff = stockledger_settings.RETRY_BACKOFF_SECONDS

        for attempt in range(1, attempts + 1):
            try:
                entries = cls._post_once(document, user)
            except LedgerError as exc:
                if not exc.retryable or attempt == attempts:
                    raise
                logger.warning(
                    "ledger.post.retry",
                    extra={
                        "document": document.document_number,
                        "code": exc.code,
                        "attempt": attempt,
                        "max_attempts": attempts,
                    },
                )
                time.sleep(backoff * attempt)
            else:
                document.refresh_from_db(fields=['status', 'validated_at', 'validated_by', 'updated_at'])
                return entries

    @classmethod
    def _post_once(cls, document, user) -> list[LedgerEntry]:
        try:
            with transaction.atomic():
                return cls._apply(document, user)
        except IntegrityError as exc:
            # Unique ledger key already taken: another posting won
            if document.pk is not None and LedgerEntry.objects.for_document(document).exists():
                raise LedgerError('ALREADY_POSTED', document=document.document_number) from exc
            raise
        except (OperationalError, InterfaceError) as exc:
            raise LedgerError(
                'TRANSPORT_ERROR',
                document=document.document_number,
                detail=str(exc),
            ) from exc

    @classmethod
    def _apply(cls, document, user) -> list[LedgerEntry]:
        model = type(document)
        try:
            locked = model.objects.select_for_update().get(pk=document.pk)
        except model.DoesNotExist:
            raise LedgerError('MISSING_REFERENCE', field='document', id=document.pk) from None

        cls._check_postable(locked)

        lines = list(locked.lines.order_by('pk'))
        if not lines:
            raise LedgerError('EMPTY_DOCUMENT', document=locked.document_number)

        legs = build_legs(locked, lines)
        _check_references(legs, locked)
        balances = _lock_balances(legs)

        ct = ContentType.objects.get_for_model(model)
        # Read after the balance locks so entry timestamps per key follow commit order
        now = timezone.now()
        entries = []

        for leg in legs:
            balance = balances[leg.key]

            if balance is None:
                raise LedgerError(
                    'INSUFFICIENT_STOCK',
                    document=locked.document_number,
                    product_id=leg.product_id,
                    warehouse_id=leg.warehouse_id,
                    available=Decimal('0'),
                    requested=-leg.delta,
                )

            applied = leg.delta
            new_quantity = balance.quantity + applied

            if new_quantity < 0:
                if not leg.clamp:
                    raise LedgerError(
                        'INSUFFICIENT_STOCK',
                        document=locked.document_number,
                        product_id=leg.product_id,
                        warehouse_id=leg.warehouse_id,
                        available=balance.quantity,
                        requested=-leg.delta,
                    )
                applied = -balance.quantity
                new_quantity = Decimal('0')

            write_balance(balance, new_quantity)

            metadata = {}
            if applied != leg.delta:
                metadata['requested_change'] = str(leg.delta)

            entries.append(LedgerEntry.objects.create(
                product_id=leg.product_id,
                warehouse_id=leg.warehouse_id,
                transaction_type=locked.transaction_type,
                reference_type=ct,
                reference_id=locked.pk,
                reference_number=locked.document_number,
                line_number=leg.line_number,
                quantity_change=applied,
                balance_after=new_quantity,
                metadata=metadata,
                created_by=user,
                created_at=now,
            ))

        locked.status = DocumentStatus.DONE
        locked.validated_at = now
        locked.validated_by = user
        locked.save(update_fields=['status', 'validated_at', 'validated_by', 'updated_at'])

        logger.info(
            "ledger.post",
            extra={
                "document": locked.document_number,
                "type": locked.transaction_type,
                "entries": len(entries),
                "user": str(user),
            },
        )
        return entries

    @classmethod
    def _check_postable(cls, document):
        if document.status == DocumentStatus.DONE:
            raise LedgerError('ALREADY_POSTED', document=document.document_number)

        postable = stockledger_settings.POSTABLE_STATUSES
        if document.status == DocumentStatus.CANCELED or document.status not in postable:
            raise LedgerError(
                'INVALID_STATUS',
                document=document.document_number,
                current=document.status,
                expected=list(postable),
            )
