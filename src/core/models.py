"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to the discovery tooling, the chat client, or the storage layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


class DiffKind(str, Enum):
    """Kind of change detected for a single contract."""

    CREATED = "created"
    DELETED = "deleted"
    MODIFIED = "modified"


class Channel(str, Enum):
    """Audience a notification is delivered to."""

    INTERNAL = "internal"
    PUBLIC = "public"


@dataclass(frozen=True)
class FieldDiff:
    """One field-level change inside a modified contract.

    A missing ``before`` means the field was added, a missing ``after``
    means it was removed.
    """

    key: str
    before: Optional[str] = None
    after: Optional[str] = None


@dataclass(frozen=True)
class DiffEntry:
    """A single contract-level change produced by the discovery tooling."""

    kind: DiffKind
    name: str
    address: str
    fields: Tuple[FieldDiff, ...] = ()


@dataclass(frozen=True)
class UpdateMetadata:
    block_number: int
    chain: str
    dependents: Tuple[str, ...] = ()
    unknown_contracts: frozenset[str] = frozenset()


@dataclass(frozen=True)
class MessageContext:
    """Optional context rendered in the header of diff notifications."""

    nonce: Optional[int] = None
    block_number: Optional[int] = None
    dependents: Tuple[str, ...] = ()
    chain: Optional[str] = None


@dataclass(frozen=True)
class NotificationRecord:
    """Persisted representation of one internal notification."""

    project_name: str
    diff: Tuple[DiffEntry, ...]
    block_number: int


@dataclass(frozen=True)
class StoredRecord:
    """Read model for a record already written to storage."""

    id: int
    project_name: str
    block_number: int
    change_count: int
    created_at: datetime


@dataclass(frozen=True)
class DiscoveredUpdate:
    """One discovery run for a project, as handed over by the diff source."""

    name: str
    diff: Tuple[DiffEntry, ...]
    metadata: UpdateMetadata
