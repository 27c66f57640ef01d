"""
Enums for Stockledger models.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class DocumentStatus(models.TextChoices):
    """
    Document workflow status.

    draft → waiting → ready → done, canceled from any state before done.
    DONE is only reached by posting the document.
    """
    DRAFT = 'draft', _('Draft')
    WAITING = 'waiting', _('Waiting')
    READY = 'ready', _('Ready')
    DONE = 'done', _('Done')
    CANCELED = 'canceled', _('Canceled')


class TransactionType(models.TextChoices):
    """Kind of document that produced a ledger entry."""
    RECEIPT = 'receipt', _('Receipt')
    DELIVERY = 'delivery', _('Delivery')
    TRANSFER = 'transfer', _('Transfer')
    ADJUSTMENT = 'adjustment', _('Adjustment')


# Statuses in which a document and its lines may still be edited
OPEN_STATUSES = (DocumentStatus.DRAFT, DocumentStatus.WAITING, DocumentStatus.READY)
