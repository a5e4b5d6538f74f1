"""
Snapshot and Document Models

A Document is the whole persisted state: an ordered list of
snapshots. Each snapshot exclusively owns its four item lists.

DESIGN DECISION: The persisted JSON keeps the field names the
browser version of the tracker wrote (`createdAt`), so documents
exported from either side import into the other unchanged.
"""

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from finsnap.models.items import (
    ITEM_MODELS,
    Asset,
    BaseItem,
    Expense,
    Income,
    ItemKind,
    Liability,
)


def generate_snapshot_id() -> str:
    """Opaque, unique snapshot identifier."""
    return uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SnapshotData(BaseModel):
    """The four item lists of one snapshot."""

    model_config = ConfigDict(extra="ignore")

    assets: list[Asset] = Field(default_factory=list)
    liabilities: list[Liability] = Field(default_factory=list)
    incomes: list[Income] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)

    def items(self, kind: ItemKind) -> list[BaseItem]:
        """The live list for a kind (callers inside the store mutate it)."""
        return getattr(self, ItemKind(kind).value)

    def is_empty(self) -> bool:
        return not any(self.items(kind) for kind in ItemKind)

    def item_count(self) -> int:
        return sum(len(self.items(kind)) for kind in ItemKind)


class Snapshot(BaseModel):
    """
    One point-in-time record of a complete financial position.

    `id` and `created_at` are assigned once at creation and never
    change; duplication produces a new id and timestamp.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="allow",
    )

    id: str = Field(
        default_factory=generate_snapshot_id,
        min_length=1,
        description="Opaque unique identifier"
    )
    label: str = Field(
        ...,
        min_length=1,
        description="User-facing snapshot name"
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        alias="createdAt",
        description="When the snapshot was created (UTC)"
    )
    data: SnapshotData = Field(default_factory=SnapshotData)

    @field_validator("created_at")
    @classmethod
    def naive_is_utc(cls, v: datetime) -> datetime:
        """Timestamps without an offset are read as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready dict in the persisted document shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Document(BaseModel):
    """The entire persisted state, snapshots in insertion order."""

    model_config = ConfigDict(extra="ignore")

    snapshots: list[Snapshot] = Field(default_factory=list)

    def find(self, snapshot_id: Optional[str]) -> Optional[Snapshot]:
        if snapshot_id is None:
            return None
        for snapshot in self.snapshots:
            if snapshot.id == snapshot_id:
                return snapshot
        return None

    def index_of(self, snapshot_id: str) -> int:
        for index, snapshot in enumerate(self.snapshots):
            if snapshot.id == snapshot_id:
                return index
        return -1

    def to_dict(self) -> dict[str, Any]:
        return {"snapshots": [snapshot.to_dict() for snapshot in self.snapshots]}


def build_item(kind: ItemKind, fields: dict[str, Any]) -> BaseItem:
    """Validate raw fields into the item model for `kind`."""
    return ITEM_MODELS[ItemKind(kind)].model_validate(fields)
