"""Per-process instance identity.

The identity is generated once when this module is first imported and lives
for the lifetime of the process. Restarting the process yields a new identity,
and every process in a horizontal cluster has its own.
"""

from __future__ import annotations

from uuid import UUID, uuid4

LOCAL_PROCESS_UUID = str(uuid4())


def local_identity() -> str:
    """Return the identity of this running process."""
    return LOCAL_PROCESS_UUID


def new_identity() -> str:
    """Generate a fresh identity (for tests and embedded multi-instance setups)."""
    return str(uuid4())


def normalize_identity(value: object) -> str | None:
    """Return the canonical form of a UUID identity, or None if `value` is not one.

    Identities are compared in this form on both the write and the read side.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return str(UUID(value.strip()))
    except ValueError:
        return None
