"""pf1-summons - Summon lifecycle management for Pathfinder 1e virtual tables.

Creates temporary actors from catalog templates, places them on the scene,
tracks how long they last across combat rounds and the world clock, and
reclaims them when their duration runs out.

Example:
    >>> from pf1_summons import InMemoryHost, SummonsModule
    >>>
    >>> host = InMemoryHost()
    >>> module = SummonsModule(host, collector=form)
    >>> module.initialize()
    >>> outcome = await module.open(summoner)

Modules:
    core: Configuration, logging, and base exceptions.
    models: Pydantic V2 schemas for documents, records and requests.
    host: Host collaborator protocols and the in-memory host.
    engine: Resolvers, spawning, combat integration and expiration.
    lifecycle: One-time hook registration and the public entry points.
"""

from __future__ import annotations

# Core
from pf1_summons.core.config import Settings, get_settings
from pf1_summons.core.exceptions import SummonsError
from pf1_summons.core.logging import configure_logging, get_logger

# Engine
from pf1_summons.engine import (
    ExpirationLedger,
    ExpirationTracker,
    SummonDeleter,
    SummonManager,
    SummonOutcome,
    open_summon_workflow,
)

# Host
from pf1_summons.host import Host, InMemoryHost

# Lifecycle
from pf1_summons.lifecycle import SummonsModule

# Models
from pf1_summons.models import (
    ActorDocument,
    CalendarExpiration,
    CombatExpiration,
    SummonRequest,
)


__version__ = "0.1.0"
__all__ = [
    # Version info
    "__version__",
    # Core
    "SummonsError",
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    # Engine
    "ExpirationLedger",
    "ExpirationTracker",
    "SummonDeleter",
    "SummonManager",
    "SummonOutcome",
    "open_summon_workflow",
    # Host
    "Host",
    "InMemoryHost",
    # Lifecycle
    "SummonsModule",
    # Models
    "ActorDocument",
    "CalendarExpiration",
    "CombatExpiration",
    "SummonRequest",
]
