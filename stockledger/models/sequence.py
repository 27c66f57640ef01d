"""
DocumentSequence model — Counters behind document numbers.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class DocumentSequence(models.Model):
    """Monotonic counter, one row per sequence name (e.g. 'receipt')."""

    name = models.CharField(max_length=50, unique=True, verbose_name=_('Name'))
    current_value = models.PositiveIntegerField(default=0, verbose_name=_('Current value'))

    class Meta:
        verbose_name = _('Document sequence')
        verbose_name_plural = _('Document sequences')

    def __str__(self) -> str:
        return f"{self.name}: {self.current_value}"
