"""
Catalog models — Category and Product.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Sum
from django.db.models.functions import Coalesce
from django.utils.translation import gettext_lazy as _


class Category(models.Model):
    """Product grouping."""

    name = models.CharField(
        max_length=100,
        unique=True,
        verbose_name=_('Name'),
    )
    description = models.TextField(blank=True, default='', verbose_name=_('Description'))
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _('Category')
        verbose_name_plural = _('Categories')
        ordering = ['name']

    def __str__(self) -> str:
        return self.name


class ProductQuerySet(models.QuerySet):
    """QuerySet with the on-hand projection."""

    def with_on_hand(self):
        """Annotate ``on_hand_qty`` = sum of balances over all warehouses."""
        return self.annotate(
            on_hand_qty=Coalesce(Sum('balances__quantity'), Decimal('0'))
        )


class Product(models.Model):
    """
    Stockable product.

    There is no stored global stock counter. The quantity on hand is
    always derived from StockBalance rows (see ``on_hand``).
    """

    sku = models.CharField(
        max_length=50,
        unique=True,
        verbose_name=_('SKU'),
    )
    name = models.CharField(max_length=200, verbose_name=_('Name'))
    description = models.TextField(blank=True, default='', verbose_name=_('Description'))
    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='products',
        verbose_name=_('Category'),
    )
    unit_of_measure = models.CharField(
        max_length=20,
        default='unit',
        verbose_name=_('Unit of measure'),
    )
    reorder_level = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal('10'),
        verbose_name=_('Reorder level'),
        help_text=_('Product is low on stock when on-hand quantity is at or below this value.'),
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Created by'),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ProductQuerySet.as_manager()

    class Meta:
        verbose_name = _('Product')
        verbose_name_plural = _('Products')
        ordering = ['name']

    @property
    def on_hand(self) -> Decimal:
        """Quantity on hand across all warehouses."""
        cached = getattr(self, 'on_hand_qty', None)
        if cached is not None:
            return cached
        return self.balances.aggregate(
            t=Coalesce(Sum('quantity'), Decimal('0'))
        )['t']

    @property
    def is_low_stock(self) -> bool:
        return self.on_hand <= self.reorder_level

    def __str__(self) -> str:
        return f"{self.sku} — {self.name}"
