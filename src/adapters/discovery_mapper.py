"""Discovery-output-to-core mapping adapter.

This keeps the JSON layout written by the discovery tooling out of the core
pipeline. The same layout is used when diffs are written back to storage.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from core.audience import normalize_address
from core.models import DiffEntry, DiffKind, DiscoveredUpdate, FieldDiff, UpdateMetadata


def _render_value(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    # Structured values are rendered canonically so identical diffs format identically.
    return json.dumps(value, sort_keys=True, separators=(",", ":"))


def _require(raw: dict, key: str, where: str) -> Any:
    if key not in raw or raw[key] is None:
        raise ValueError(f"Missing '{key}' in {where}")
    return raw[key]


def build_field_diff(raw: dict) -> FieldDiff:
    if not isinstance(raw, dict):
        raise ValueError(f"Field diff must be an object, got {type(raw).__name__}")
    return FieldDiff(
        key=str(_require(raw, "key", "field diff")),
        before=_render_value(raw.get("before")),
        after=_render_value(raw.get("after")),
    )


def build_entry(raw: dict) -> DiffEntry:
    """Map one discovery diff entry to a core DiffEntry."""

    if not isinstance(raw, dict):
        raise ValueError(f"Diff entry must be an object, got {type(raw).__name__}")

    kind_raw = _require(raw, "type", "diff entry")
    try:
        kind = DiffKind(kind_raw)
    except ValueError:
        raise ValueError(f"Unsupported diff type: {kind_raw}") from None

    fields = raw.get("diff") or []
    if not isinstance(fields, list):
        raise ValueError("Diff entry 'diff' must be a list")

    return DiffEntry(
        kind=kind,
        name=str(raw.get("name") or "unknown"),
        address=str(_require(raw, "address", "diff entry")),
        fields=tuple(build_field_diff(item) for item in fields),
    )


def entry_to_payload(entry: DiffEntry) -> dict:
    """Inverse of build_entry, used for persistence."""

    return {
        "type": entry.kind.value,
        "name": entry.name,
        "address": entry.address,
        "diff": [
            {"key": field_diff.key, "before": field_diff.before, "after": field_diff.after}
            for field_diff in entry.fields
        ],
    }


def build_update(payload: dict) -> DiscoveredUpdate:
    """Build a DiscoveredUpdate from one discovery payload.

    Raises ValueError when the payload does not have the expected shape.
    """

    if not isinstance(payload, dict):
        raise ValueError("Discovery payload must be a JSON object")

    block_number = _require(payload, "block_number", "payload")
    if isinstance(block_number, bool) or not isinstance(block_number, int) or block_number < 0:
        raise ValueError(f"block_number must be a non-negative integer, got {block_number!r}")

    raw_diff = payload.get("diff") or []
    if not isinstance(raw_diff, list):
        raise ValueError("Payload 'diff' must be a list")

    metadata = UpdateMetadata(
        block_number=block_number,
        chain=str(_require(payload, "chain", "payload")),
        dependents=tuple(str(name) for name in payload.get("dependents") or []),
        unknown_contracts=frozenset(
            normalize_address(str(address)) for address in payload.get("unknown_contracts") or []
        ),
    )
    return DiscoveredUpdate(
        name=str(_require(payload, "project", "payload")),
        diff=tuple(build_entry(item) for item in raw_diff),
        metadata=metadata,
    )
