"""
Tests for conditional balance writes and posting retries.
"""

from decimal import Decimal
from unittest.mock import patch

import pytest
from django.db import IntegrityError, OperationalError

from stockledger import ledger, LedgerError
from stockledger.models import DocumentStatus, LedgerEntry, StockBalance
from stockledger.services import posting
from stockledger.services.posting import LedgerPosting, build_legs, write_balance


pytestmark = pytest.mark.django_db


def ready_delivery(warehouse, product, quantity, user):
    delivery = ledger.create_delivery(warehouse, [(product, quantity)], user=user)
    return ledger.set_status(delivery, DocumentStatus.READY)


class TestWriteBalance:

    def test_write_bumps_version(self, product, main, receive):
        receive(product, main, Decimal('5'))
        balance = StockBalance.objects.get(product=product, warehouse=main)

        write_balance(balance, Decimal('3'))

        balance.refresh_from_db()
        assert balance.quantity == Decimal('3')
        assert balance.version == 2

    def test_stale_write_conflicts(self, product, main, receive):
        """Two writers read version 1; the second write is refused."""
        receive(product, main, Decimal('5'))
        first = StockBalance.objects.get(product=product, warehouse=main)
        second = StockBalance.objects.get(product=product, warehouse=main)

        write_balance(first, Decimal('2'))

        with pytest.raises(LedgerError) as exc:
            write_balance(second, Decimal('4'))

        assert exc.value.code == 'CONCURRENCY_CONFLICT'
        assert exc.value.retryable
        assert ledger.balance(product, main) == Decimal('2')


class TestRetries:

    def test_conflict_is_retried(self, product, main, user, receive):
        receive(product, main, Decimal('5'))
        delivery = ready_delivery(main, product, Decimal('3'), user)
        real_write = posting.write_balance
        calls = []

        def flaky_write(balance, quantity):
            calls.append(quantity)
            if len(calls) == 1:
                raise LedgerError('CONCURRENCY_CONFLICT', balance_id=balance.pk)
            return real_write(balance, quantity)

        with patch.object(posting, 'write_balance', side_effect=flaky_write):
            entries = ledger.post(delivery, user=user)

        assert len(calls) == 2
        assert len(entries) == 1
        assert ledger.balance(product, main) == Decimal('2')
        assert LedgerEntry.objects.for_document(delivery).count() == 1

    def test_retries_exhausted(self, product, main, user, receive):
        receive(product, main, Decimal('5'))
        delivery = ready_delivery(main, product, Decimal('3'), user)

        with patch.object(
            LedgerPosting, '_post_once',
            side_effect=LedgerError('CONCURRENCY_CONFLICT'),
        ) as post_once:
            with pytest.raises(LedgerError) as exc:
                ledger.post(delivery, user=user)

        assert exc.value.code == 'CONCURRENCY_CONFLICT'
        assert post_once.call_count == 3

    def test_max_attempts_setting(self, settings, product, main, user, receive):
        settings.STOCKLEDGER = {**settings.STOCKLEDGER, 'MAX_ATTEMPTS': 2}
        receive(product, main, Decimal('5'))
        delivery = ready_delivery(main, product, Decimal('3'), user)

        with patch.object(
            LedgerPosting, '_post_once',
            side_effect=LedgerError('TRANSPORT_ERROR'),
        ) as post_once:
            with pytest.raises(LedgerError):
                ledger.post(delivery, user=user)

        assert post_once.call_count == 2

    def test_business_errors_are_not_retried(self, product, main, user, receive):
        receive(product, main, Decimal('1'))
        delivery = ready_delivery(main, product, Decimal('3'), user)
        real_post_once = LedgerPosting._post_once

        with patch.object(
            LedgerPosting, '_post_once',
            side_effect=real_post_once,
        ) as post_once:
            with pytest.raises(LedgerError) as exc:
                ledger.post(delivery, user=user)

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert post_once.call_count == 1

    def test_database_failure_is_transport_error(self, product, main, user, receive):
        receive(product, main, Decimal('5'))
        delivery = ready_delivery(main, product, Decimal('3'), user)

        with patch.object(
            posting, 'build_legs',
            side_effect=OperationalError('database is locked'),
        ) as legs:
            with pytest.raises(LedgerError) as exc:
                ledger.post(delivery, user=user)

        assert exc.value.code == 'TRANSPORT_ERROR'
        assert legs.call_count == 3
        assert ledger.balance(product, main) == Decimal('5')
        delivery.refresh_from_db()
        assert delivery.status == DocumentStatus.READY

    def test_transient_database_failure_recovers(self, product, main, user, receive):
        receive(product, main, Decimal('5'))
        delivery = ready_delivery(main, product, Decimal('3'), user)
        outcomes = [OperationalError('database is locked')]

        def flaky_legs(document, lines):
            if outcomes:
                raise outcomes.pop()
            return build_legs(document, lines)

        with patch.object(posting, 'build_legs', side_effect=flaky_legs):
            ledger.post(delivery, user=user)

        assert ledger.balance(product, main) == Decimal('2')


class TestIndependentKeys:

    def test_disjoint_pairs_post_independently(self, product, other_product, main, backup, user, receive):
        receive(product, main, Decimal('5'))
        receive(other_product, backup, Decimal('5'))
        first = ready_delivery(main, product, Decimal('2'), user)
        second = ready_delivery(backup, other_product, Decimal('3'), user)

        ledger.post(first, user=user)
        ledger.post(second, user=user)

        assert ledger.balance(product, main) == Decimal('3')
        assert ledger.balance(other_product, backup) == Decimal('2')

    def test_competing_deliveries_on_same_pair(self, product, main, user, other_user, receive):
        """Both read balance 5; only one 3-unit delivery can succeed."""
        receive(product, main, Decimal('5'))
        first = ready_delivery(main, product, Decimal('3'), user)
        second = ready_delivery(main, product, Decimal('3'), other_user)

        ledger.post(first, user=user)
        with pytest.raises(LedgerError) as exc:
            ledger.post(second, user=other_user)

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert exc.value.available == Decimal('2')
        assert ledger.balance(product, main) == Decimal('2')

    def test_legs_locked_in_key_order(self, product, other_product, main, backup, user, receive):
        receive(product, main, Decimal('5'))
        receive(other_product, main, Decimal('5'))
        transfer = ledger.create_transfer(
            main, backup,
            [(other_product, Decimal('1')), (product, Decimal('1'))],
            user=user,
        )
        legs = build_legs(transfer, list(transfer.lines.order_by('pk')))

        balances = posting._lock_balances(legs)

        assert list(balances) == sorted(leg.key for leg in legs)
        # Inbound keys get a zero row before any leg is applied
        created = balances[(product.pk, backup.pk)]
        assert created.quantity == Decimal('0')
        assert created.version == 0

    def test_missing_rows_created_in_key_order(self, product, other_product, main, backup, user):
        receipt = ledger.create_receipt(
            backup,
            [(other_product, Decimal('1')), (product, Decimal('1'))],
            user=user,
        )
        legs = build_legs(receipt, list(receipt.lines.order_by('pk')))

        posting._lock_balances(legs)

        created = StockBalance.objects.filter(warehouse=backup).order_by('pk')
        assert [b.product_id for b in created] == sorted([product.pk, other_product.pk])

    def test_outbound_only_keys_are_not_created(self, product, main, user):
        delivery = ledger.create_delivery(main, [(product, Decimal('1'))], user=user)
        legs = build_legs(delivery, list(delivery.lines.order_by('pk')))

        balances = posting._lock_balances(legs)

        assert balances == {(product.pk, main.pk): None}
        assert not StockBalance.objects.exists()

    def test_integrity_errors_from_other_constraints_propagate(self, product, main, user):
        receipt = ledger.create_receipt(
            main, [(product, Decimal('1'))], user=user, status=DocumentStatus.READY,
        )

        with patch.object(
            posting, 'write_balance',
            side_effect=IntegrityError('CHECK constraint failed: quantity'),
        ):
            with pytest.raises(IntegrityError):
                ledger.post(receipt, user=user)

        receipt.refresh_from_db()
        assert receipt.status == DocumentStatus.READY
        assert not LedgerEntry.objects.for_document(receipt).exists()
