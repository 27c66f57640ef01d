"""
Warehouse model — Where stock is kept.
"""

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


class Warehouse(models.Model):
    """
    Physical location holding stock.

    Examples:
        Warehouse.objects.create(code='WH-MAIN', name='Main Warehouse')
    """

    code = models.CharField(
        max_length=50,
        unique=True,
        verbose_name=_('Code'),
        help_text=_('Unique identifier (e.g. WH-MAIN)'),
    )
    name = models.CharField(max_length=100, verbose_name=_('Name'))
    address = models.TextField(blank=True, default='', verbose_name=_('Address'))
    is_active = models.BooleanField(default=True, verbose_name=_('Active'))
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

    class Meta:
        verbose_name = _('Warehouse')
        verbose_name_plural = _('Warehouses')
        ordering = ['code']

    def __str__(self) -> str:
        return self.name
