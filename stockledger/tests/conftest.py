"""
Pytest fixtures for Stockledger tests.
"""

from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model

from stockledger import ledger
from stockledger.adapters import reset_identity_provider
from stockledger.models import Category, DocumentStatus, Product, Warehouse


User = get_user_model()


@pytest.fixture(autouse=True)
def _fresh_identity_provider():
    """Each test loads the identity provider from its own settings."""
    reset_identity_provider()
    yield
    reset_identity_provider()


@pytest.fixture
def user(db):
    """Create a test user."""
    return User.objects.create_user(
        username='testuser',
        password='testpass123'
    )


@pytest.fixture
def other_user(db):
    return User.objects.create_user(
        username='otheruser',
        password='testpass123'
    )


@pytest.fixture
def category(db):
    return Category.objects.create(name='Hardware')


@pytest.fixture
def product(db, category):
    """Create a test product (reorder level 10)."""
    return Product.objects.create(
        sku='BOLT-M6',
        name='Bolt M6',
        category=category,
        reorder_level=Decimal('10'),
    )


@pytest.fixture
def other_product(db, category):
    return Product.objects.create(
        sku='NUT-M6',
        name='Nut M6',
        category=category,
        reorder_level=Decimal('5'),
    )


@pytest.fixture
def main(db):
    """Main warehouse."""
    return Warehouse.objects.create(code='WH-MAIN', name='Main Warehouse')


@pytest.fixture
def backup(db):
    """Secondary warehouse."""
    return Warehouse.objects.create(code='WH-BACKUP', name='Backup Warehouse')


@pytest.fixture
def receive(user):
    """Post a ready receipt; returns the posted document."""

    def _receive(product, warehouse, quantity):
        receipt = ledger.create_receipt(
            warehouse,
            [(product, quantity)],
            user=user,
            status=DocumentStatus.READY,
        )
        ledger.post(receipt, user=user)
        return receipt

    return _receive
