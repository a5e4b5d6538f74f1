"""
Document and Field Validation

DESIGN DECISION: Validation of an import payload happens in two stages:

STAGE 1 - STRUCTURE:
- `snapshots` is present and is a list
- every snapshot is an object with non-empty `id`, `label` and `data`
- every category list that is present is a list of objects
- snapshot ids are unique
- a missing category list is NOT an error; it becomes an empty list
  (reported as a warning)

STAGE 2 - CONTENT:
- item fields build into their models (categorical values must be known)
- `createdAt` parses as a timestamp (a missing one becomes "now")
- amounts are coerced with the non-negative rule, never rejected

WHY TWO STAGES:
1. Structural problems get precise, path-qualified messages
2. Stage 2 only runs on payloads whose shape is already trusted
3. An import is all-or-nothing: any error rejects the whole payload

Field checks used by the store (names, labels) live here too so
the create/update boundary applies one rule everywhere.
"""

from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from finsnap.models.items import ItemKind
from finsnap.models.snapshot import Document, Snapshot
from finsnap.models.validation import ValidationIssue, ValidationResult
from finsnap.exceptions import MalformedDocumentError, ValidationError


REQUIRED_SNAPSHOT_FIELDS = ("id", "label", "data")


def validate_label(label: Any) -> str:
    """Return the trimmed label or raise ValidationError if it is empty."""
    trimmed = label.strip() if isinstance(label, str) else ""
    if not trimmed:
        raise ValidationError("Snapshot name cannot be empty", field="label")
    return trimmed


def validate_name(name: Any) -> str:
    """Return the trimmed item name or raise ValidationError if it is empty."""
    trimmed = name.strip() if isinstance(name, str) else ""
    if not trimmed:
        raise ValidationError("Name cannot be empty", field="name")
    return trimmed


def _is_present(value: Any) -> bool:
    """Truthiness check for required identifier fields."""
    if value is None or isinstance(value, bool):
        return False
    if isinstance(value, str):
        return bool(value.strip())
    # Numbers and containers (even empty ones) count as present
    return True


class DocumentValidator:
    """
    Validates raw import payloads and turns them into a Document.

    Stage 1 runs on plain JSON-like data, stage 2 on pydantic models.
    """

    def _validate_structure(self, raw: Any) -> list[ValidationIssue]:
        """
        Stage 1: Structural validation.

        Returns the list of issues; errors make the payload unusable.
        """
        issues: list[ValidationIssue] = []

        if not isinstance(raw, dict) or not isinstance(raw.get("snapshots"), list):
            issues.append(ValidationIssue(
                field="snapshots",
                issue_type="missing",
                message="Invalid data structure: 'snapshots' must be a list",
                severity="error",
                suggested_fix="Import a file exported from FinSnap",
            ))
            return issues

        seen_ids: set[str] = set()

        for index, snapshot in enumerate(raw["snapshots"]):
            path = f"snapshots[{index}]"

            if not isinstance(snapshot, dict):
                issues.append(ValidationIssue(
                    field=path,
                    issue_type="invalid_type",
                    message=f"Invalid snapshot structure: {path} is not an object",
                    severity="error",
                ))
                continue

            missing = [
                name for name in REQUIRED_SNAPSHOT_FIELDS
                if not _is_present(snapshot.get(name))
            ]
            for name in missing:
                issues.append(ValidationIssue(
                    field=f"{path}.{name}",
                    issue_type="missing",
                    message=f"Invalid snapshot structure: {path} is missing '{name}'",
                    severity="error",
                ))
            if missing:
                continue

            snapshot_id = str(snapshot["id"]).strip()
            if snapshot_id in seen_ids:
                issues.append(ValidationIssue(
                    field=f"{path}.id",
                    issue_type="duplicate",
                    message=f"Invalid snapshot structure: duplicate id '{snapshot_id}'",
                    severity="error",
                ))
            seen_ids.add(snapshot_id)

            if not isinstance(snapshot["label"], str):
                issues.append(ValidationIssue(
                    field=f"{path}.label",
                    issue_type="invalid_type",
                    message=f"Invalid snapshot structure: {path}.label must be text",
                    severity="error",
                ))

            data = snapshot["data"]
            if not isinstance(data, dict):
                issues.append(ValidationIssue(
                    field=f"{path}.data",
                    issue_type="invalid_type",
                    message=f"Invalid snapshot structure: {path}.data is not an object",
                    severity="error",
                ))
                continue

            for kind in ItemKind:
                list_path = f"{path}.data.{kind.value}"
                items = data.get(kind.value)
                if items is None:
                    issues.append(ValidationIssue(
                        field=list_path,
                        issue_type="missing",
                        message=f"{list_path} was missing and is treated as empty",
                        severity="warning",
                    ))
                    continue
                if not isinstance(items, list):
                    issues.append(ValidationIssue(
                        field=list_path,
                        issue_type="invalid_type",
                        message=f"Invalid data categories: {list_path} must be a list",
                        severity="error",
                    ))
                    continue
                for item_index, item in enumerate(items):
                    if not isinstance(item, dict):
                        issues.append(ValidationIssue(
                            field=f"{list_path}[{item_index}]",
                            issue_type="invalid_type",
                            message=(
                                f"Invalid data categories: {list_path}[{item_index}] "
                                "is not an object"
                            ),
                            severity="error",
                        ))

        return issues

    def _build_snapshot(
        self,
        raw: dict[str, Any],
        path: str,
    ) -> tuple[Optional[Snapshot], list[ValidationIssue]]:
        """
        Stage 2: Build one snapshot model.

        Missing category lists become empty; amounts are coerced by
        the item models themselves.
        """
        data = {
            kind.value: raw["data"].get(kind.value) or []
            for kind in ItemKind
        }
        payload = {
            key: value for key, value in raw.items()
            if key not in ("createdAt", "created_at")
        }
        payload.update({
            "id": str(raw["id"]).strip(),
            "label": raw["label"],
            "data": data,
        })
        if raw.get("createdAt") not in (None, ""):
            payload["createdAt"] = raw["createdAt"]

        try:
            return Snapshot.model_validate(payload), []
        except PydanticValidationError as e:
            issues = []
            for error in e.errors():
                location = ".".join(str(part) for part in error["loc"])
                issues.append(ValidationIssue(
                    field=f"{path}.{location}",
                    issue_type="invalid_value",
                    message=f"Invalid value at {path}.{location}: {error['msg']}",
                    severity="error",
                ))
            return None, issues

    def validate(self, raw: Any) -> tuple[ValidationResult, Optional[Document]]:
        """
        Run both stages.

        Returns the result and, when valid, the built Document.
        Stage 2 is skipped if stage 1 found errors.
        """
        issues = self._validate_structure(raw)
        structure_valid = not any(issue.severity == "error" for issue in issues)

        if not structure_valid:
            return ValidationResult(
                structure_valid=False,
                content_valid=False,
                issues=issues,
            ), None

        snapshots = []
        content_valid = True
        for index, raw_snapshot in enumerate(raw["snapshots"]):
            snapshot, snapshot_issues = self._build_snapshot(
                raw_snapshot, f"snapshots[{index}]"
            )
            issues.extend(snapshot_issues)
            if snapshot is None:
                content_valid = False
            else:
                snapshots.append(snapshot)

        result = ValidationResult(
            structure_valid=True,
            content_valid=content_valid,
            issues=issues,
        )
        if not content_valid:
            return result, None
        return result, Document(snapshots=snapshots)

    def build_document(self, raw: Any) -> Document:
        """
        Validate a raw payload and return the Document.

        Raises:
            MalformedDocumentError: naming every failed rule
        """
        result, document = self.validate(raw)
        if document is None:
            errors = result.errors
            summary = errors[0].message if errors else "Invalid data structure"
            if len(errors) > 1:
                summary += f" (and {len(errors) - 1} more)"
            raise MalformedDocumentError(summary, issues=result.issues)
        return document
