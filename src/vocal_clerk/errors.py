"""Failure taxonomy for the ingestion pipeline."""

from __future__ import annotations


class IngestionError(Exception):
    """Base class for pipeline errors."""


class BackendUnavailable(IngestionError):
    """The AI backend could not produce a response (transport, status, timeout)."""


class MalformedExtraction(IngestionError):
    """The backend answered, but no task array could be recovered from it."""


class ConflictOnCreate(IngestionError):
    """A concurrent writer created the same (owner, name) record first."""

    def __init__(self, kind: str, owner_id: str, name: str):
        super().__init__(f"{kind} {name!r} already exists for owner {owner_id}")
        self.kind = kind
        self.owner_id = owner_id
        self.name = name


class OwnerNotFound(IngestionError):
    def __init__(self, owner_id: str):
        super().__init__(f"Owner {owner_id} does not exist")
        self.owner_id = owner_id
