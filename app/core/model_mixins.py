"""
Model mixins providing reusable functionality for Django models.

Available Mixins:
    UUIDPrimaryKeyMixin: Use UUID as primary key
    MetadataMixin: Flexible JSON metadata storage

Usage:
    from core.models import BaseModel
    from core.model_mixins import MetadataMixin, UUIDPrimaryKeyMixin

    class Account(UUIDPrimaryKeyMixin, MetadataMixin, BaseModel):
        name = models.CharField(max_length=100)
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from django.db import models

if TYPE_CHECKING:
    from typing import Any


class UUIDPrimaryKeyMixin(models.Model):
    """
    Use UUID as primary key instead of auto-increment integer.

    Identifiers are non-guessable and do not reveal row counts, which keeps
    group-scoped lookups from leaking how many records other groups own.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for this record",
    )

    class Meta:
        abstract = True


class MetadataMixin(models.Model):
    """
    Flexible JSON metadata storage.

    Usage:
        account.set_meta("icon", "wallet")
        account.get_meta("icon")  # "wallet"
        account.get_meta("color", default="grey")  # "grey"
    """

    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Flexible key-value metadata storage",
    )

    class Meta:
        abstract = True

    def get_meta(self, key: str, default: Any = None) -> Any:
        return self.metadata.get(key, default)

    def set_meta(self, key: str, value: Any, save: bool = True) -> None:
        """
        Set metadata value and optionally save.

        Only the metadata column is written, so this never touches other
        fields a concurrent writer may be updating.
        """
        self.metadata[key] = value
        if save:
            self.save(update_fields=["metadata", "updated_at"])

    def has_meta(self, key: str) -> bool:
        return key in self.metadata
