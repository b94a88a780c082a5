"""Cheap answer to "is this process currently the bot instance?"."""

from __future__ import annotations

from .identity import local_identity, normalize_identity
from .lease_store import LeaseStore


class RoleOracle:
    """Compares the locally known lease owner with this process's identity.

    `am_i_leader` never touches the store, so collaborators may poll it every
    few seconds (e.g. before opening the chat connection). Its view is as fresh
    as the owner cache, or the last owner the monitor observed.
    """

    def __init__(self, store: LeaseStore, identity: str | None = None) -> None:
        self.store = store
        normalized = normalize_identity(identity or local_identity())
        if normalized is None:
            msg = f"instance identity must be a UUID, got {identity!r}"
            raise ValueError(msg)
        self.identity = normalized
        self._last_owner: str | None = None

    def observe(self, owner: str | None) -> None:
        self._last_owner = owner

    @property
    def known_owner(self) -> str | None:
        hit, owner = self.store.cached_owner()
        if hit:
            return owner
        return self._last_owner

    def am_i_leader(self) -> bool:
        return self.known_owner == self.identity

    async def check(self) -> bool:
        """Like `am_i_leader`, but reads the store when the owner cache has expired."""
        owner = await self.store.get_owner()
        self.observe(owner)
        return owner == self.identity
