"""
Snapshot Store

Owns the Document, the active-snapshot pointer, and every mutation
of snapshots and their items.

DESIGN DECISION: Mutations are prepare-then-commit.
1. Validate inputs (fail fast, nothing touched)
2. Apply the change to a deep copy of the document
3. Persist the copy through the storage backend
4. Only then swap the copy in as the current document

If step 3 fails the store still holds the previous document, so a
caller can never observe a change that was not durably written.

Item identity is positional. Deleting an item shifts every later
item down by one, so callers must re-read indices after any
mutation of the same list.

The active snapshot is an id lookup, never an owning reference.
"""

import json
from datetime import date
from typing import Any, Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from finsnap.audit import AuditLogger
from finsnap.exceptions import (
    MalformedDocumentError,
    NoActiveSnapshotError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from finsnap.models.audit import AuditEventBuilder, AuditEventType
from finsnap.models.items import (
    BaseItem,
    ItemKind,
    ItemUpdate,
    categorical_fields,
)
from finsnap.models.snapshot import (
    Document,
    Snapshot,
    SnapshotData,
    build_item,
    generate_snapshot_id,
    utc_now,
)
from finsnap.services.storage import DocumentStorageInterface, StorageError
from finsnap.validation import DocumentValidator, validate_label, validate_name


DEFAULT_DOCUMENT_KEY = "financeData"
EXPORT_FILENAME_PREFIX = "myfinsnap.com"


def _pydantic_message(error: PydanticValidationError) -> str:
    first = error.errors()[0]
    field = ".".join(str(part) for part in first["loc"]) or "value"
    return f"Invalid {field}: {first['msg']}"


class SnapshotStore:
    """
    The only mutation surface for financial snapshots.

    Lifecycle:
        store = SnapshotStore(storage)
        store.init()        # reload the document from storage
        store.create_snapshot("January")
        store.add_item("assets", "Savings", 1000, category="cash")

    Read accessors return copies; mutate through the methods only.
    """

    def __init__(
        self,
        storage: DocumentStorageInterface,
        document_key: str = DEFAULT_DOCUMENT_KEY,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[DocumentValidator] = None,
        clock: Callable = utc_now,
        id_factory: Callable[[], str] = generate_snapshot_id,
    ):
        self._storage = storage
        self._document_key = document_key
        self._audit = audit_logger or AuditLogger()
        self._validator = validator or DocumentValidator()
        self._clock = clock
        self._id_factory = id_factory

        self._document = Document()
        self._active_id: Optional[str] = None

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def init(self) -> "SnapshotStore":
        """Load the persisted document once at startup."""
        self.load()
        return self

    def load(self) -> Document:
        """
        Reload the document from storage.

        An absent payload, unreadable storage, or a payload that fails
        to parse or validate yields an empty document instead of an
        error. Nothing is written back until the next mutation.
        """
        document = Document()
        try:
            payload = self._storage.get(self._document_key)
            if payload is not None:
                document = self._validator.build_document(json.loads(payload))
        except (StorageError, ValueError, MalformedDocumentError) as e:
            message = getattr(e, "message", None) or str(e)
            self._audit.log(AuditEventBuilder.document_load_failed(message))
            document = Document()

        self._document = document
        self._active_id = document.snapshots[0].id if document.snapshots else None

        if document.snapshots:
            self._audit.log(AuditEventBuilder.document_event(
                AuditEventType.DOCUMENT_LOADED,
                len(document.snapshots),
                f"Loaded {len(document.snapshots)} snapshot(s)",
            ))
        return self.document

    def persist(self) -> None:
        """Write the current document to storage."""
        self._write(self._document)

    def _write(self, document: Document) -> None:
        self._storage.set(self._document_key, json.dumps(document.to_dict()))

    def _commit(
        self,
        operation: str,
        document: Document,
        active_id: Optional[str],
    ) -> None:
        """
        Persist a prepared document, then make it current.

        Raises:
            StorageError: the write failed; the previous state is kept
        """
        try:
            self._write(document)
        except StorageError as e:
            self._audit.log(AuditEventBuilder.persist_failed(operation, str(e)))
            raise
        self._document = document
        self._active_id = active_id

    def _reject(self, operation: str, error: StoreError) -> StoreError:
        """Audit a rejected operation and hand the error back for raising."""
        self._audit.log(AuditEventBuilder.operation_rejected(
            operation=operation,
            error_code=error.code,
            error_message=error.message,
        ))
        return error

    # =========================================================================
    # READ ACCESSORS
    # =========================================================================

    @property
    def document(self) -> Document:
        """A copy of the current document."""
        return self._document.model_copy(deep=True)

    @property
    def active_snapshot_id(self) -> Optional[str]:
        """The active id, or None if unset or no longer present."""
        if self._document.find(self._active_id) is None:
            return None
        return self._active_id

    @property
    def active_snapshot(self) -> Optional[Snapshot]:
        """A copy of the active snapshot, or None."""
        snapshot = self._document.find(self._active_id)
        return snapshot.model_copy(deep=True) if snapshot else None

    @property
    def has_active_snapshot(self) -> bool:
        return self.active_snapshot_id is not None

    @property
    def snapshot_count(self) -> int:
        return len(self._document.snapshots)

    def list_snapshots(self) -> list[Snapshot]:
        """Copies of all snapshots in storage order."""
        return [s.model_copy(deep=True) for s in self._document.snapshots]

    def get_snapshot(self, snapshot_id: str) -> Snapshot:
        snapshot = self._document.find(snapshot_id)
        if snapshot is None:
            raise NotFoundError(f"Snapshot not found: {snapshot_id}")
        return snapshot.model_copy(deep=True)

    def get_items(self, kind: ItemKind) -> list[BaseItem]:
        """Copies of one item list of the active snapshot."""
        kind = self._resolve_kind("get_items", kind)
        snapshot = self._document.find(self._active_id)
        if snapshot is None:
            raise self._reject("get_items", NoActiveSnapshotError())
        return [item.model_copy(deep=True) for item in snapshot.data.items(kind)]

    def next_default_label(self) -> str:
        """Suggested label for the next snapshot, e.g. "Snapshot 3"."""
        return f"Snapshot {len(self._document.snapshots) + 1}"

    # =========================================================================
    # SNAPSHOT OPERATIONS
    # =========================================================================

    def create_snapshot(self, label: str) -> Snapshot:
        """
        Create an empty snapshot and make it active.

        Raises:
            ValidationError: label is empty after trimming
        """
        try:
            label = validate_label(label)
        except ValidationError as e:
            raise self._reject("create_snapshot", e)

        snapshot = Snapshot(
            id=self._id_factory(),
            label=label,
            created_at=self._clock(),
            data=SnapshotData(),
        )
        document = self.document
        document.snapshots.append(snapshot)
        self._commit("create_snapshot", document, snapshot.id)

        self._audit.log(AuditEventBuilder.snapshot_created(snapshot.id, label))
        return snapshot.model_copy(deep=True)

    def duplicate_snapshot(self, source_id: Optional[str] = None) -> Snapshot:
        """
        Deep-copy a snapshot's items into a new active snapshot.

        The copy is labelled "<source label> (Copy)" and gets a new id
        and timestamp. `source_id` defaults to the active snapshot.

        Raises:
            NoActiveSnapshotError: no source given and none active
            NotFoundError: source_id does not exist
        """
        if source_id is None:
            source_id = self.active_snapshot_id
            if source_id is None:
                raise self._reject("duplicate_snapshot", NoActiveSnapshotError(
                    "No snapshot selected"
                ))

        source = self._document.find(source_id)
        if source is None:
            raise self._reject("duplicate_snapshot", NotFoundError(
                f"Snapshot not found: {source_id}"
            ))

        snapshot = Snapshot(
            id=self._id_factory(),
            label=f"{source.label} (Copy)",
            created_at=self._clock(),
            data=source.data.model_copy(deep=True),
        )
        document = self.document
        document.snapshots.append(snapshot)
        self._commit("duplicate_snapshot", document, snapshot.id)

        self._audit.log(AuditEventBuilder.snapshot_duplicated(
            snapshot.id, source.id, snapshot.label
        ))
        return snapshot.model_copy(deep=True)

    def rename_snapshot(self, snapshot_id: str, new_label: str) -> Snapshot:
        """
        Replace a snapshot's label in place.

        Raises:
            ValidationError: new label is empty after trimming
            NotFoundError: snapshot_id does not exist
        """
        try:
            label = validate_label(new_label)
        except ValidationError as e:
            raise self._reject("rename_snapshot", e)

        document = self.document
        snapshot = document.find(snapshot_id)
        if snapshot is None:
            raise self._reject("rename_snapshot", NotFoundError(
                f"Snapshot not found: {snapshot_id}"
            ))

        old_label = snapshot.label
        snapshot.label = label
        self._commit("rename_snapshot", document, self._active_id)

        self._audit.log(AuditEventBuilder.snapshot_renamed(snapshot_id, old_label, label))
        return snapshot.model_copy(deep=True)

    def delete_snapshot(self, snapshot_id: str) -> Optional[str]:
        """
        Remove a snapshot.

        If the deleted snapshot was active, the first remaining snapshot
        in storage order becomes active. Deleting the last snapshot
        empties the document and clears the active pointer.

        Returns:
            The active snapshot id after deletion (or None)

        Raises:
            NotFoundError: snapshot_id does not exist
        """
        document = self.document
        index = document.index_of(snapshot_id)
        if index < 0:
            raise self._reject("delete_snapshot", NotFoundError(
                f"Snapshot not found: {snapshot_id}"
            ))

        removed = document.snapshots.pop(index)
        active_id = self.active_snapshot_id
        if not document.snapshots:
            active_id = None
        elif active_id == snapshot_id or active_id is None:
            active_id = document.snapshots[0].id

        self._commit("delete_snapshot", document, active_id)

        self._audit.log(AuditEventBuilder.snapshot_deleted(
            snapshot_id, removed.label, active_id
        ))
        return active_id

    def switch_active(self, snapshot_id: str) -> Snapshot:
        """
        Point the active reference at another snapshot.

        The active pointer is not part of the document, so nothing is
        persisted.

        Raises:
            NotFoundError: snapshot_id does not exist
        """
        snapshot = self._document.find(snapshot_id)
        if snapshot is None:
            raise self._reject("switch_active", NotFoundError(
                f"Snapshot not found: {snapshot_id}"
            ))
        self._active_id = snapshot_id
        self._audit.log(AuditEventBuilder.snapshot_switched(snapshot_id))
        return snapshot.model_copy(deep=True)

    # =========================================================================
    # ITEM OPERATIONS (active snapshot only)
    # =========================================================================

    def _resolve_kind(self, operation: str, kind: ItemKind) -> ItemKind:
        try:
            return ItemKind(kind)
        except ValueError:
            raise self._reject(operation, ValidationError(
                f"Unknown item category: {kind}", field="kind"
            ))

    def _active_in(self, operation: str, document: Document) -> Snapshot:
        snapshot = document.find(self._active_id)
        if snapshot is None:
            raise self._reject(operation, NoActiveSnapshotError())
        return snapshot

    def _check_fields(
        self,
        operation: str,
        kind: ItemKind,
        fields: dict[str, Any],
    ) -> dict[str, Any]:
        """
        Keep only the categorical fields valid for `kind`.

        A non-empty value for a field the kind does not carry is an error;
        empty ones are dropped.
        """
        allowed = categorical_fields(kind)
        accepted = {}
        for field, value in fields.items():
            if field in allowed:
                accepted[field] = value
            elif value not in (None, ""):
                raise self._reject(operation, ValidationError(
                    f"{kind.value} items have no '{field}' field", field=field
                ))
        return accepted

    def _build(self, operation: str, kind: ItemKind, fields: dict[str, Any]) -> BaseItem:
        try:
            return build_item(kind, fields)
        except PydanticValidationError as e:
            raise self._reject(operation, ValidationError(_pydantic_message(e)))

    def _check_index(
        self,
        operation: str,
        items: list[BaseItem],
        kind: ItemKind,
        index: int,
    ) -> None:
        if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index < len(items):
            raise self._reject(operation, NotFoundError(
                f"No item at index {index} in {kind.value}"
            ))

    def add_item(
        self,
        kind: ItemKind,
        name: str,
        amount: Any,
        **attributes: Any,
    ) -> BaseItem:
        """
        Append an item to a list of the active snapshot.

        `attributes` holds the kind's categorical fields
        (category/liquidity for assets, term for liabilities,
        category for incomes and expenses). Amounts are coerced.

        Raises:
            NoActiveSnapshotError: no active snapshot
            ValidationError: empty name or invalid categorical value
        """
        operation = "add_item"
        kind = self._resolve_kind(operation, kind)

        document = self.document
        snapshot = self._active_in(operation, document)

        try:
            name = validate_name(name)
        except ValidationError as e:
            raise self._reject(operation, e)

        fields = self._check_fields(operation, kind, attributes)
        item = self._build(operation, kind, {"name": name, "amount": amount, **fields})

        items = snapshot.data.items(kind)
        items.append(item)
        self._commit(operation, document, self._active_id)

        self._audit.log(AuditEventBuilder.item_changed(
            AuditEventType.ITEM_ADDED, snapshot.id, kind.value, len(items) - 1, item.name
        ))
        return item.model_copy(deep=True)

    def _apply_update(
        self,
        operation: str,
        kind: ItemKind,
        item: BaseItem,
        update: ItemUpdate,
    ) -> BaseItem:
        changes = update.changes()
        base_changes = {
            field: changes.pop(field)
            for field in ("name", "amount")
            if field in changes
        }
        # "" and None are kept here so they clear the stored value
        categorical = self._check_fields(operation, kind, changes)

        merged = item.model_dump()
        merged.update(base_changes)
        merged.update(categorical)

        try:
            merged["name"] = validate_name(merged.get("name"))
        except ValidationError as e:
            raise self._reject(operation, e)

        return self._build(operation, kind, merged)

    def update_item(
        self,
        kind: ItemKind,
        index: int,
        update: Optional[ItemUpdate] = None,
        **fields: Any,
    ) -> BaseItem:
        """
        Partially update one item of the active snapshot.

        Pass an ItemUpdate or keyword fields. Omitted fields keep their
        value; an explicit None or "" for a categorical field clears it.
        Name and amount are re-validated.

        Raises:
            NoActiveSnapshotError: no active snapshot
            NotFoundError: index outside the list
            ValidationError: empty name or invalid categorical value
        """
        operation = "update_item"
        kind = self._resolve_kind(operation, kind)
        if update is None:
            try:
                update = ItemUpdate(**fields)
            except PydanticValidationError as e:
                raise self._reject(operation, ValidationError(_pydantic_message(e)))

        document = self.document
        snapshot = self._active_in(operation, document)
        items = snapshot.data.items(kind)
        self._check_index(operation, items, kind, index)

        updated = self._apply_update(operation, kind, items[index], update)
        items[index] = updated
        self._commit(operation, document, self._active_id)

        self._audit.log(AuditEventBuilder.item_changed(
            AuditEventType.ITEM_UPDATED, snapshot.id, kind.value, index, updated.name
        ))
        return updated.model_copy(deep=True)

    def bulk_update_items(
        self,
        kind: ItemKind,
        rows: list[ItemUpdate],
    ) -> int:
        """
        Apply one update per row, row i to item i, in a single commit.

        Rows whose name is explicitly blank are skipped. Any invalid
        index or field aborts the whole batch.

        Returns:
            Number of rows applied
        """
        operation = "bulk_update_items"
        kind = self._resolve_kind(operation, kind)

        document = self.document
        snapshot = self._active_in(operation, document)
        items = snapshot.data.items(kind)

        applied = 0
        for index, row in enumerate(rows):
            if "name" in row.model_fields_set and not (row.name or "").strip():
                continue
            self._check_index(operation, items, kind, index)
            items[index] = self._apply_update(operation, kind, items[index], row)
            applied += 1

        if applied:
            self._commit(operation, document, self._active_id)
            self._audit.log(AuditEventBuilder.items_bulk_updated(
                snapshot.id, kind.value, applied
            ))
        return applied

    def delete_item(self, kind: ItemKind, index: int) -> BaseItem:
        """
        Remove one item from a list of the active snapshot.

        Every item after `index` shifts down by one.

        Returns:
            The removed item

        Raises:
            NoActiveSnapshotError: no active snapshot
            NotFoundError: index outside the list
        """
        operation = "delete_item"
        kind = self._resolve_kind(operation, kind)

        document = self.document
        snapshot = self._active_in(operation, document)
        items = snapshot.data.items(kind)
        self._check_index(operation, items, kind, index)

        removed = items.pop(index)
        self._commit(operation, document, self._active_id)

        self._audit.log(AuditEventBuilder.item_changed(
            AuditEventType.ITEM_DELETED, snapshot.id, kind.value, index, removed.name
        ))
        return removed

    # =========================================================================
    # WHOLE-DOCUMENT OPERATIONS
    # =========================================================================

    def import_document(self, raw: Any) -> Document:
        """
        Replace the whole document with a validated import payload.

        All-or-nothing: any structural violation rejects the import
        and leaves the current document untouched. On success the
        first snapshot (or none) becomes active.

        Raises:
            MalformedDocumentError: naming every failed rule
        """
        try:
            document = self._validator.build_document(raw)
        except MalformedDocumentError as e:
            raise self._reject("import_document", e)

        active_id = document.snapshots[0].id if document.snapshots else None
        self._commit("import_document", document, active_id)

        self._audit.log(AuditEventBuilder.document_event(
            AuditEventType.DOCUMENT_IMPORTED,
            len(document.snapshots),
            f"Imported {len(document.snapshots)} snapshot(s)",
        ))
        return self.document

    def import_json(self, text: str) -> Document:
        """Parse JSON text and import it."""
        try:
            raw = json.loads(text)
        except (ValueError, TypeError) as e:
            raise self._reject("import_document", MalformedDocumentError(
                f"Invalid JSON: {e}"
            ))
        return self.import_document(raw)

    def export_document(self) -> dict[str, Any]:
        """The full document as JSON-ready data, unredacted."""
        self._audit.log(AuditEventBuilder.document_event(
            AuditEventType.DOCUMENT_EXPORTED,
            len(self._document.snapshots),
            "Document exported",
        ))
        return self._document.to_dict()

    def export_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.export_document(), indent=indent)

    @staticmethod
    def export_filename(today: Optional[date] = None) -> str:
        today = today or date.today()
        return f"{EXPORT_FILENAME_PREFIX}-{today.isoformat()}.json"

    def clear(self) -> None:
        """Delete every snapshot and clear the active pointer."""
        self._commit("clear", Document(), None)
        self._audit.log(AuditEventBuilder.document_event(
            AuditEventType.DOCUMENT_CLEARED,
            0,
            "All data cleared",
        ))
