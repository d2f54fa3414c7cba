"""Host collaborators: the protocols the engine drives and an in-memory host.

Submodules:
    protocols: Protocol interfaces (ActorStore, CombatSession, HookBus, ...)
    memory: Dictionary-backed implementation of every protocol
"""

from __future__ import annotations

from pf1_summons.host.memory import (
    InMemoryHost,
    MemoryCombat,
    MemoryHookBus,
    MemoryScene,
    ScriptedPlacement,
)
from pf1_summons.host.protocols import (
    ActorStore,
    Catalog,
    ChatSink,
    CombatSession,
    FlagStore,
    FolderStore,
    Host,
    HookBus,
    HookHandler,
    Notifications,
    PlacementTool,
    SceneIndex,
    UserContext,
    WorldClock,
)


__all__ = [
    # Protocols
    "ActorStore",
    "Catalog",
    "ChatSink",
    "CombatSession",
    "FlagStore",
    "FolderStore",
    "Host",
    "HookBus",
    "HookHandler",
    "Notifications",
    "PlacementTool",
    "SceneIndex",
    "UserContext",
    "WorldClock",
    # In-memory host
    "InMemoryHost",
    "MemoryCombat",
    "MemoryHookBus",
    "MemoryScene",
    "ScriptedPlacement",
]
