"""Enumerations shared across pf1-summons models.

String-valued enums match the identifiers the host stores, so documents
round-trip through JSON without translation tables.
"""

from __future__ import annotations

from enum import Enum, IntEnum, StrEnum


class Ability(StrEnum):
    """Pathfinder ability score keys."""

    STR = "str"
    DEX = "dex"
    CON = "con"
    INT = "int"
    WIS = "wis"
    CHA = "cha"


class HarrowSuit(StrEnum):
    """Harrow deck suits, each tied to one ability score."""

    HAMMERS = "hammers"
    KEYS = "keys"
    SHIELDS = "shields"
    BOOKS = "books"
    STARS = "stars"
    CROWNS = "crowns"

    @property
    def ability(self) -> Ability:
        """The ability score a card of this suit enhances."""
        return _SUIT_ABILITIES[self]


_SUIT_ABILITIES: dict[HarrowSuit, Ability] = {
    HarrowSuit.HAMMERS: Ability.STR,
    HarrowSuit.KEYS: Ability.DEX,
    HarrowSuit.SHIELDS: Ability.CON,
    HarrowSuit.BOOKS: Ability.INT,
    HarrowSuit.STARS: Ability.WIS,
    HarrowSuit.CROWNS: Ability.CHA,
}


class AlignmentMatch(float, Enum):
    """Duration multiplier from a harrow alignment match."""

    NONE = 1.0
    DOUBLE = 2.0
    HALF = 0.5


class SpellbookKey(StrEnum):
    """Recognised spellbook slots on a Pathfinder actor."""

    PRIMARY = "primary"
    SECONDARY = "secondary"
    TERTIARY = "tertiary"
    SPELLLIKE = "spelllike"


class EnergyType(StrEnum):
    """Energy types a template may grant resistance against."""

    ACID = "acid"
    COLD = "cold"
    ELECTRIC = "electric"
    FIRE = "fire"


class TemplateName(StrEnum):
    """Summon templates with known resistance and DR tables."""

    CELESTIAL = "Celestial"
    FIENDISH = "Fiendish"
    ENTROPIC = "Entropic"
    RESOLUTE = "Resolute"
    COUNTERPOISED = "Counterpoised"
    DARK = "Dark"


class ItemType(StrEnum):
    """Kinds of embedded items this package creates or copies."""

    BUFF = "buff"
    FEAT = "feat"


class ChangeTarget(StrEnum):
    """What a buff change modifies."""

    ABILITY = "ability"
    AC = "ac"


class BonusType(StrEnum):
    """Bonus type of a buff change."""

    ENHANCEMENT = "enh"
    DEFLECTION = "deflection"


class OwnershipLevel(IntEnum):
    """Document ownership levels."""

    NONE = 0
    LIMITED = 1
    OBSERVER = 2
    OWNER = 3


class TokenDisposition(IntEnum):
    """Token disposition towards the party."""

    SECRET = -2
    HOSTILE = -1
    NEUTRAL = 0
    FRIENDLY = 1


class ExpirationMode(StrEnum):
    """Clock regime governing an expiration record."""

    COMBAT = "combat"
    CALENDAR = "calendar"


class HookEvent(StrEnum):
    """Host signals this package listens to."""

    UPDATE_COMBAT = "update_combat"
    UPDATE_WORLD_TIME = "update_world_time"
    DELETE_COMBAT = "delete_combat"
    ACTIVATE_DELETE_CONTROL = "activate_delete_control"


__all__ = [
    "Ability",
    "HarrowSuit",
    "AlignmentMatch",
    "SpellbookKey",
    "EnergyType",
    "TemplateName",
    "ItemType",
    "ChangeTarget",
    "BonusType",
    "OwnershipLevel",
    "TokenDisposition",
    "ExpirationMode",
    "HookEvent",
]
