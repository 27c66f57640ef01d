"""
Tests for ledger.post().
"""

from decimal import Decimal

import pytest
from django.contrib.auth.models import AnonymousUser
from django.contrib.contenttypes.models import ContentType

from stockledger import ledger, LedgerError
from stockledger.adapters import acting_as
from stockledger.models import (
    AdjustmentLine,
    DocumentStatus,
    LedgerEntry,
    Receipt,
    StockBalance,
    TransactionType,
    Warehouse,
)


pytestmark = pytest.mark.django_db


def ready(document):
    return ledger.set_status(document, DocumentStatus.READY)


class TestReceipts:

    def test_receipt_into_empty_balance(self, product, main, user):
        """10 received into an empty warehouse: balance 10, one entry."""
        receipt = ready(ledger.create_receipt(main, [(product, Decimal('10'))], user=user))

        entries = ledger.post(receipt, user=user)

        assert ledger.balance(product, main) == Decimal('10')
        assert len(entries) == 1
        entry = entries[0]
        assert entry.quantity_change == Decimal('10')
        assert entry.balance_after == Decimal('10')
        assert entry.transaction_type == TransactionType.RECEIPT
        assert entry.reference == receipt
        assert entry.reference_number == receipt.document_number
        assert entry.created_by == user

    def test_post_marks_document_done(self, product, main, user):
        receipt = ready(ledger.create_receipt(main, [(product, 5)], user=user))

        ledger.post(receipt, user=user)

        # The caller's instance is refreshed
        assert receipt.status == DocumentStatus.DONE
        assert receipt.is_posted
        assert receipt.validated_by == user
        assert receipt.validated_at is not None

    def test_receipt_adds_to_existing_balance(self, product, main, user, receive):
        receive(product, main, Decimal('4'))
        receive(product, main, Decimal('6'))

        assert ledger.balance(product, main) == Decimal('10')
        assert StockBalance.objects.filter(product=product, warehouse=main).count() == 1

    def test_multi_line_receipt_numbers_entries(self, product, other_product, main, user):
        receipt = ready(ledger.create_receipt(
            main,
            [(product, Decimal('3')), (other_product, Decimal('7'))],
            user=user,
        ))

        entries = ledger.post(receipt, user=user)

        assert [e.line_number for e in entries] == [1, 2]
        assert [e.product for e in entries] == [product, other_product]
        assert ledger.balance(other_product, main) == Decimal('7')

    def test_balance_version_increments(self, product, main, receive):
        receive(product, main, Decimal('1'))
        receive(product, main, Decimal('1'))

        balance = StockBalance.objects.get(product=product, warehouse=main)
        assert balance.version == 2


class TestDeliveries:

    def test_delivery_reduces_balance(self, product, main, user, receive):
        """Balance 5, deliver 3: balance 2, entry -3."""
        receive(product, main, Decimal('5'))
        delivery = ready(ledger.create_delivery(main, [(product, Decimal('3'))], user=user))

        entries = ledger.post(delivery, user=user)

        assert ledger.balance(product, main) == Decimal('2')
        assert entries[0].quantity_change == Decimal('-3')
        assert entries[0].balance_after == Decimal('2')

    def test_delivery_exceeding_balance_rejected(self, product, main, user, receive):
        """Balance 2, deliver 5: rejected, nothing changes."""
        receive(product, main, Decimal('2'))
        delivery = ready(ledger.create_delivery(main, [(product, Decimal('5'))], user=user))

        with pytest.raises(LedgerError) as exc:
            ledger.post(delivery, user=user)

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert exc.value.available == Decimal('2')
        assert exc.value.requested == Decimal('5')
        assert ledger.balance(product, main) == Decimal('2')
        assert not LedgerEntry.objects.for_document(delivery).exists()
        delivery.refresh_from_db()
        assert delivery.status == DocumentStatus.READY

    def test_delivery_with_no_balance_rejected(self, product, main, user):
        delivery = ready(ledger.create_delivery(main, [(product, 1)], user=user))

        with pytest.raises(LedgerError) as exc:
            ledger.post(delivery, user=user)

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert exc.value.available == Decimal('0')
        assert not StockBalance.objects.filter(product=product, warehouse=main).exists()

    def test_delivery_of_entire_balance(self, product, main, user, receive):
        receive(product, main, Decimal('5'))
        delivery = ready(ledger.create_delivery(main, [(product, Decimal('5'))], user=user))

        ledger.post(delivery, user=user)

        assert ledger.balance(product, main) == Decimal('0')

    def test_failing_line_rolls_back_earlier_lines(self, product, other_product, main, user, receive):
        """Line 2 fails: line 1's balance and entries are untouched."""
        receive(product, main, Decimal('10'))
        receive(other_product, main, Decimal('1'))
        delivery = ready(ledger.create_delivery(
            main,
            [(product, Decimal('4')), (other_product, Decimal('2'))],
            user=user,
        ))

        with pytest.raises(LedgerError) as exc:
            ledger.post(delivery, user=user)

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert ledger.balance(product, main) == Decimal('10')
        assert ledger.balance(other_product, main) == Decimal('1')
        assert not LedgerEntry.objects.for_document(delivery).exists()
        assert StockBalance.objects.get(product=product, warehouse=main).version == 1


class TestTransfers:

    def test_transfer_moves_stock(self, product, main, backup, user, receive):
        receive(product, main, Decimal('10'))
        transfer = ready(ledger.create_transfer(main, backup, [(product, Decimal('4'))], user=user))

        entries = ledger.post(transfer, user=user)

        assert ledger.balance(product, main) == Decimal('6')
        assert ledger.balance(product, backup) == Decimal('4')
        assert ledger.on_hand(product) == Decimal('10')

        out_leg, in_leg = entries
        assert (out_leg.warehouse, out_leg.quantity_change, out_leg.balance_after) == (
            main, Decimal('-4'), Decimal('6'))
        assert (in_leg.warehouse, in_leg.quantity_change, in_leg.balance_after) == (
            backup, Decimal('4'), Decimal('4'))
        assert [out_leg.line_number, in_leg.line_number] == [1, 2]

    def test_transfer_exceeding_source_rejected(self, product, main, backup, user, receive):
        receive(product, main, Decimal('3'))
        transfer = ready(ledger.create_transfer(main, backup, [(product, Decimal('4'))], user=user))

        with pytest.raises(LedgerError) as exc:
            ledger.post(transfer, user=user)

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert ledger.balance(product, main) == Decimal('3')
        assert ledger.balance(product, backup) == Decimal('0')
        assert not StockBalance.objects.filter(warehouse=backup).exists()

    def test_transfer_missing_destination(self, product, main, user, receive):
        receive(product, main, Decimal('3'))
        transfer = ready(ledger.create_transfer(main, None, [(product, 1)], user=user))

        with pytest.raises(LedgerError) as exc:
            ledger.post(transfer, user=user)

        assert exc.value.code == 'MISSING_REFERENCE'
        assert exc.value.data['field'] == 'warehouse'


class TestAdjustments:

    def test_adjustment_clamps_at_zero(self, product, main, user, receive):
        """Balance 4, adjust -10: balance 0, entry records the -4 applied."""
        receive(product, main, Decimal('4'))
        adjustment = ready(ledger.create_adjustment(
            main, [(product, Decimal('-10'))], reason='Damaged', user=user,
        ))

        entries = ledger.post(adjustment, user=user)

        assert ledger.balance(product, main) == Decimal('0')
        entry = entries[0]
        assert entry.quantity_change == Decimal('-4')
        assert entry.balance_after == Decimal('0')
        assert Decimal(entry.metadata['requested_change']) == Decimal('-10')

    def test_adjustment_without_clamp_has_no_metadata(self, product, main, user, receive):
        receive(product, main, Decimal('4'))
        adjustment = ready(ledger.create_adjustment(main, [(product, Decimal('-1'))], user=user))

        entries = ledger.post(adjustment, user=user)

        assert ledger.balance(product, main) == Decimal('3')
        assert entries[0].metadata == {}

    def test_positive_adjustment_creates_balance(self, product, main, user):
        adjustment = ready(ledger.create_adjustment(main, [(product, Decimal('8'))], user=user))

        ledger.post(adjustment, user=user)

        assert ledger.balance(product, main) == Decimal('8')

    def test_counted_adjustment(self, product, main, user, receive):
        receive(product, main, Decimal('4'))
        adjustment = ready(ledger.create_adjustment(main, counts=[(product, Decimal('7'))], user=user))

        entries = ledger.post(adjustment, user=user)

        assert entries[0].quantity_change == Decimal('3')
        assert ledger.balance(product, main) == Decimal('7')


class TestPostingRules:

    def test_post_twice_applies_once(self, product, main, user):
        receipt = ready(ledger.create_receipt(main, [(product, Decimal('10'))], user=user))
        ledger.post(receipt, user=user)

        with pytest.raises(LedgerError) as exc:
            ledger.post(receipt, user=user)

        assert exc.value.code == 'ALREADY_POSTED'
        assert ledger.balance(product, main) == Decimal('10')
        assert LedgerEntry.objects.for_document(receipt).count() == 1

    def test_stale_instance_cannot_post_twice(self, product, main, user):
        receipt = ready(ledger.create_receipt(main, [(product, 2)], user=user))
        stale = Receipt.objects.get(pk=receipt.pk)

        ledger.post(receipt, user=user)

        with pytest.raises(LedgerError) as exc:
            ledger.post(stale, user=user)
        assert exc.value.code == 'ALREADY_POSTED'

    def test_existing_entry_for_document_reports_already_posted(self, product, main, user):
        """The unique ledger key rejects a second application of a document."""
        receipt = ready(ledger.create_receipt(main, [(product, Decimal('2'))], user=user))
        LedgerEntry.objects.create(
            product=product,
            warehouse=main,
            transaction_type=TransactionType.RECEIPT,
            reference_type=ContentType.objects.get_for_model(Receipt),
            reference_id=receipt.pk,
            reference_number=receipt.document_number,
            quantity_change=Decimal('2'),
            balance_after=Decimal('2'),
        )

        with pytest.raises(LedgerError) as exc:
            ledger.post(receipt, user=user)

        assert exc.value.code == 'ALREADY_POSTED'
        assert not StockBalance.objects.filter(product=product, warehouse=main).exists()
        receipt.refresh_from_db()
        assert receipt.status == DocumentStatus.READY

    def test_requires_authenticated_user(self, product, main, user):
        receipt = ready(ledger.create_receipt(main, [(product, 1)], user=user))

        with pytest.raises(LedgerError) as exc:
            ledger.post(receipt)

        assert exc.value.code == 'NOT_AUTHENTICATED'
        receipt.refresh_from_db()
        assert receipt.status == DocumentStatus.READY
        assert not StockBalance.objects.exists()

    def test_anonymous_user_rejected(self, product, main, user):
        receipt = ready(ledger.create_receipt(main, [(product, 1)], user=user))

        with pytest.raises(LedgerError) as exc:
            ledger.post(receipt, user=AnonymousUser())

        assert exc.value.code == 'NOT_AUTHENTICATED'

    def test_acting_user_from_context(self, product, main, user):
        receipt = ready(ledger.create_receipt(main, [(product, 1)], user=user))

        with acting_as(user):
            entries = ledger.post(receipt)

        assert entries[0].created_by == user

    def test_draft_is_not_postable(self, product, main, user):
        receipt = ledger.create_receipt(main, [(product, 1)], user=user)

        with pytest.raises(LedgerError) as exc:
            ledger.post(receipt, user=user)

        assert exc.value.code == 'INVALID_STATUS'
        assert exc.value.data['current'] == DocumentStatus.DRAFT

    def test_postable_statuses_are_configurable(self, settings, product, main, user):
        settings.STOCKLEDGER = {
            **settings.STOCKLEDGER,
            'POSTABLE_STATUSES': ['draft', 'waiting', 'ready'],
        }
        receipt = ledger.create_receipt(main, [(product, 1)], user=user)

        ledger.post(receipt, user=user)

        assert receipt.status == DocumentStatus.DONE

    def test_canceled_is_not_postable(self, settings, product, main, user):
        settings.STOCKLEDGER = {
            **settings.STOCKLEDGER,
            'POSTABLE_STATUSES': ['draft', 'waiting', 'ready', 'canceled'],
        }
        receipt = ledger.create_receipt(main, [(product, 1)], user=user)
        ledger.cancel(receipt)

        with pytest.raises(LedgerError) as exc:
            ledger.post(receipt, user=user)

        assert exc.value.code == 'INVALID_STATUS'

    def test_empty_document(self, main, user):
        receipt = ready(ledger.create_receipt(main, [], user=user))

        with pytest.raises(LedgerError) as exc:
            ledger.post(receipt, user=user)

        assert exc.value.code == 'EMPTY_DOCUMENT'

    def test_missing_warehouse(self, product, user):
        receipt = ready(ledger.create_receipt(None, [(product, 1)], user=user))

        with pytest.raises(LedgerError) as exc:
            ledger.post(receipt, user=user)

        assert exc.value.code == 'MISSING_REFERENCE'

    def test_deleted_document(self, product, main, user):
        receipt = ready(ledger.create_receipt(main, [(product, 1)], user=user))
        Receipt.objects.filter(pk=receipt.pk).delete()

        with pytest.raises(LedgerError) as exc:
            ledger.post(receipt, user=user)

        assert exc.value.code == 'MISSING_REFERENCE'
        assert exc.value.data['field'] == 'document'

    def test_ledger_sums_to_balance(self, product, main, backup, user, receive):
        """Across mixed postings the ledger always sums to the balance."""
        receive(product, main, Decimal('20'))
        ledger.post(ready(ledger.create_delivery(main, [(product, 7)], user=user)), user=user)
        ledger.post(ready(ledger.create_transfer(main, backup, [(product, 5)], user=user)), user=user)
        ledger.post(ready(ledger.create_adjustment(backup, [(product, -9)], user=user)), user=user)

        for warehouse in (main, backup):
            balance = StockBalance.objects.get(product=product, warehouse=warehouse)
            assert balance.ledger_total() == balance.quantity
            assert balance.quantity >= 0

        assert ledger.balance(product, main) == Decimal('8')
        assert ledger.balance(product, backup) == Decimal('0')


def deactivate(warehouse):
    Warehouse.objects.filter(pk=warehouse.pk).update(is_active=False)


class TestInactiveWarehouses:

    def test_receipt_into_inactive_warehouse(self, product, main, user):
        receipt = ready(ledger.create_receipt(main, [(product, 5)], user=user))
        deactivate(main)

        with pytest.raises(LedgerError) as exc:
            ledger.post(receipt, user=user)

        assert exc.value.code == 'INACTIVE_WAREHOUSE'
        assert exc.value.data['ids'] == [main.pk]
        assert not StockBalance.objects.exists()
        receipt.refresh_from_db()
        assert receipt.status == DocumentStatus.READY

    def test_delivery_from_inactive_warehouse(self, product, main, user, receive):
        receive(product, main, Decimal('5'))
        delivery = ready(ledger.create_delivery(main, [(product, 2)], user=user))
        deactivate(main)

        with pytest.raises(LedgerError) as exc:
            ledger.post(delivery, user=user)

        assert exc.value.code == 'INACTIVE_WAREHOUSE'
        assert ledger.balance(product, main) == Decimal('5')

    def test_transfer_into_inactive_warehouse(self, product, main, backup, user, receive):
        receive(product, main, Decimal('5'))
        transfer = ready(ledger.create_transfer(main, backup, [(product, 2)], user=user))
        deactivate(backup)

        with pytest.raises(LedgerError) as exc:
            ledger.post(transfer, user=user)

        assert exc.value.code == 'INACTIVE_WAREHOUSE'
        assert exc.value.data['ids'] == [backup.pk]
        assert ledger.balance(product, main) == Decimal('5')
        assert not LedgerEntry.objects.for_document(transfer).exists()


class TestAdjustmentEdges:

    def test_zero_change_line_is_not_posted(self, product, main, user, receive):
        receive(product, main, Decimal('5'))
        adjustment = ready(ledger.create_adjustment(main, [(product, 1)], user=user))
        AdjustmentLine.objects.filter(document=adjustment).update(quantity_change=Decimal('0'))

        with pytest.raises(LedgerError) as exc:
            ledger.post(adjustment, user=user)

        assert exc.value.code == 'INVALID_QUANTITY'
        assert not LedgerEntry.objects.for_document(adjustment).exists()

    def test_negative_adjustment_without_balance(self, product, main, user):
        """No stock yet: the row is created at zero and the entry applies nothing."""
        adjustment = ready(ledger.create_adjustment(main, [(product, Decimal('-3'))], user=user))

        entries = ledger.post(adjustment, user=user)

        entry = entries[0]
        assert entry.quantity_change == Decimal('0')
        assert entry.balance_after == Decimal('0')
        assert Decimal(entry.metadata['requested_change']) == Decimal('-3')
        balance = StockBalance.objects.get(product=product, warehouse=main)
        assert balance.quantity == Decimal('0')
        assert balance.ledger_total() == balance.quantity


class TestLedgerEntryImmutability:

    def test_cannot_update_entry(self, product, main, receive):
        receipt = receive(product, main, Decimal('1'))
        entry = LedgerEntry.objects.for_document(receipt).get()

        entry.quantity_change = Decimal('100')
        with pytest.raises(ValueError):
            entry.save()

    def test_cannot_delete_entry(self, product, main, receive):
        receipt = receive(product, main, Decimal('1'))
        entry = LedgerEntry.objects.for_document(receipt).get()

        with pytest.raises(ValueError):
            entry.delete()
