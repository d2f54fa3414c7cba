"""Pydantic V2 schemas for pf1-summons.

Submodules:
    enums: Enumeration types (Ability, HarrowSuit, SpellbookKey, ...)
    documents: Host documents (ActorDocument, TokenDocument, Combatant, ...)
    expiration: Expiration records (CombatExpiration, CalendarExpiration)
    summon: Workflow models (SummonRequest, CasterLevel, ChatCard, ...)
"""

from __future__ import annotations

# =============================================================================
# Enumerations
# =============================================================================
from pf1_summons.models.enums import (
    Ability,
    AlignmentMatch,
    BonusType,
    ChangeTarget,
    EnergyType,
    ExpirationMode,
    HarrowSuit,
    HookEvent,
    ItemType,
    OwnershipLevel,
    SpellbookKey,
    TemplateName,
    TokenDisposition,
)

# =============================================================================
# Documents
# =============================================================================
from pf1_summons.models.documents import (
    ActorDocument,
    BuffChange,
    Combatant,
    DamageReduction,
    IndexEntry,
    ItemDocument,
    PackInfo,
    PrototypeToken,
    Resistance,
    Spellbook,
    TokenDocument,
    new_id,
)

# =============================================================================
# Expiration Records
# =============================================================================
from pf1_summons.models.expiration import (
    EXPIRATIONS_FLAG,
    CalendarExpiration,
    CombatExpiration,
    ExpirationRecord,
    dump_record,
    load_record,
    utc_now,
)

# =============================================================================
# Workflow
# =============================================================================
from pf1_summons.models.summon import (
    CasterLevel,
    ChatCard,
    PlacementRequest,
    SpawnResult,
    SpellbookChoice,
    SummonCount,
    SummonDeleteControl,
    SummonFormOptions,
    SummonRequest,
)


__all__ = [
    # Enums
    "Ability",
    "AlignmentMatch",
    "BonusType",
    "ChangeTarget",
    "EnergyType",
    "ExpirationMode",
    "HarrowSuit",
    "HookEvent",
    "ItemType",
    "OwnershipLevel",
    "SpellbookKey",
    "TemplateName",
    "TokenDisposition",
    # Documents
    "ActorDocument",
    "BuffChange",
    "Combatant",
    "DamageReduction",
    "IndexEntry",
    "ItemDocument",
    "PackInfo",
    "PrototypeToken",
    "Resistance",
    "Spellbook",
    "TokenDocument",
    "new_id",
    # Expiration
    "EXPIRATIONS_FLAG",
    "CalendarExpiration",
    "CombatExpiration",
    "ExpirationRecord",
    "dump_record",
    "load_record",
    "utc_now",
    # Workflow
    "CasterLevel",
    "ChatCard",
    "PlacementRequest",
    "SpawnResult",
    "SpellbookChoice",
    "SummonCount",
    "SummonDeleteControl",
    "SummonFormOptions",
    "SummonRequest",
]
