"""Protocols for the host collaborators this package drives.

The host owns document persistence, the scene, turn order, chat and event
dispatch. Writes are coroutines because the host applies them
asynchronously; reads of already-loaded collections (scene tokens, turn
order) are synchronous, as they are in the host itself.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from pf1_summons.models import (
    ActorDocument,
    ChatCard,
    Combatant,
    HookEvent,
    IndexEntry,
    ItemDocument,
    PackInfo,
    PlacementRequest,
    TokenDocument,
)


HookHandler = Callable[..., Awaitable[None]]


class ActorStore(Protocol):
    """World actor collection."""

    def get(self, actor_id: str) -> ActorDocument | None:
        """Look up a world actor by id."""
        ...

    def contents(self) -> list[ActorDocument]:
        """All world actors, in collection order."""
        ...

    async def create(self, actor: ActorDocument) -> ActorDocument:
        """Create a world actor from document data."""
        ...

    async def update(self, actor: ActorDocument) -> ActorDocument:
        """Persist changes made to an actor document."""
        ...

    async def delete(self, actor_id: str) -> None:
        """Delete a world actor."""
        ...


class FlagStore(Protocol):
    """Per-entity key/value storage."""

    def get_flag(self, owner_id: str, key: str) -> Any | None:
        """Read a flag value, None when unset."""
        ...

    async def set_flag(self, owner_id: str, key: str, value: Any) -> None:
        """Write a flag value."""
        ...


class FolderStore(Protocol):
    """Actor folders."""

    async def get_or_create(self, name: str) -> str:
        """Return the id of the named actor folder, creating it if needed."""
        ...


class Catalog(Protocol):
    """Compendium packs."""

    def packs(self) -> list[PackInfo]:
        """All packs known to the host."""
        ...

    async def index(self, pack_id: str) -> list[IndexEntry]:
        """Index rows of a pack.

        Raises:
            CatalogError: If the pack does not exist.
        """
        ...

    async def get_actor(self, pack_id: str, entry_id: str) -> ActorDocument:
        """Load a full actor document from a pack.

        Raises:
            CatalogError: If the pack or entry does not exist.
        """
        ...

    async def get_item(self, pack_id: str, entry_id: str) -> ItemDocument:
        """Load a full item document from a pack.

        Raises:
            CatalogError: If the pack or entry does not exist.
        """
        ...


class PlacementTool(Protocol):
    """Interactive pick-and-confirm placement."""

    async def place(self, request: PlacementRequest) -> list[str]:
        """Let the user pick a location and place the actor there.

        Returns:
            Identifiers of the tokens actually placed.

        Raises:
            PlacementError: If the placement failed or was cancelled.
        """
        ...


class CombatSession(Protocol):
    """An active turn-order session."""

    @property
    def id(self) -> str: ...

    @property
    def round(self) -> int: ...

    @property
    def turn(self) -> int | None: ...

    def combatants(self) -> list[Combatant]:
        """All entries, in creation order."""
        ...

    def turns(self) -> list[Combatant]:
        """Entries in turn order."""
        ...

    async def create_combatants(self, data: list[Combatant]) -> list[Combatant]:
        """Create entries and return them as stored."""
        ...

    async def update_combatant(self, combatant_id: str, **changes: Any) -> Combatant:
        """Update fields of one entry."""
        ...

    async def delete_combatants(self, combatant_ids: list[str]) -> None:
        """Delete entries."""
        ...

    async def setup_turns(self) -> None:
        """Recompute the turn order from initiative values."""
        ...

    async def set_turn(self, index: int) -> None:
        """Move the active-turn pointer."""
        ...


class SceneIndex(Protocol):
    """Tokens on the active scene."""

    @property
    def id(self) -> str | None: ...

    def tokens(self) -> list[TokenDocument]:
        """All placed tokens with their ``defeated`` status resolved."""
        ...

    def get_token(self, token_id: str) -> TokenDocument | None:
        """Look up a placed token."""
        ...

    def controlled_tokens(self) -> list[TokenDocument]:
        """Tokens currently selected by the user."""
        ...

    def owned_tokens(self) -> list[TokenDocument]:
        """Tokens the current user owns."""
        ...

    async def delete_tokens(self, token_ids: list[str]) -> None:
        """Delete several tokens in one batch; may reject the batch."""
        ...

    async def delete_token(self, token_id: str) -> None:
        """Delete one token."""
        ...


class Notifications(Protocol):
    """Transient banners."""

    def info(self, message: str) -> None: ...

    def warn(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class ChatSink(Protocol):
    """Chat log."""

    async def post(self, card: ChatCard) -> str:
        """Post a card and return the message id."""
        ...


class HookBus(Protocol):
    """Host event dispatch."""

    def on(self, event: HookEvent, handler: HookHandler) -> int:
        """Register a handler and return its registration id."""
        ...

    def off(self, event: HookEvent, handler_id: int) -> None:
        """Unregister a handler."""
        ...


class WorldClock(Protocol):
    """The world's in-game clock, in seconds."""

    @property
    def world_time(self) -> float: ...


class UserContext(Protocol):
    """The user driving the current action."""

    @property
    def id(self) -> str: ...

    @property
    def is_gm(self) -> bool: ...

    @property
    def character_id(self) -> str | None: ...


class Host(Protocol):
    """Aggregate of every collaborator."""

    actors: ActorStore
    flags: FlagStore
    folders: FolderStore
    catalog: Catalog
    placement: PlacementTool
    scene: SceneIndex
    notifications: Notifications
    chat: ChatSink
    hooks: HookBus
    clock: WorldClock
    user: UserContext

    def active_combat(self) -> CombatSession | None:
        """The active turn-order session, if any."""
        ...


__all__ = [
    "HookHandler",
    "ActorStore",
    "FlagStore",
    "FolderStore",
    "Catalog",
    "PlacementTool",
    "CombatSession",
    "SceneIndex",
    "Notifications",
    "ChatSink",
    "HookBus",
    "WorldClock",
    "UserContext",
    "Host",
]
