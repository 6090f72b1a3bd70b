from __future__ import annotations


class DocMasterError(Exception):
    """Base error for DocMaster."""


class UnknownEntityKindError(DocMasterError):
    """Store operation addressed a table that does not exist."""


class InvalidRoleError(DocMasterError, ValueError):
    """Role string outside the supported vocabulary."""


class InvalidTransitionError(DocMasterError):
    """Ingestion status change that would move backwards or leave a terminal state."""

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(f"Cannot move ingestion from {current} to {requested}")
        self.current = current
        self.requested = requested
