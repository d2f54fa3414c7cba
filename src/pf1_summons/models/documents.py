"""Pydantic V2 schemas for host documents.

These models give a typed shape to the actor, token, combatant and item
records the host stores, so that summon logic never walks optional paths
through loosely shaped dictionaries. Defaults are resolved explicitly on the
models (see ``Spellbook.caster_level``).
"""

from __future__ import annotations

from typing import Annotated
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from pf1_summons.models.enums import (
    Ability,
    BonusType,
    ChangeTarget,
    EnergyType,
    ItemType,
    OwnershipLevel,
    SpellbookKey,
    TokenDisposition,
)


def new_id() -> str:
    """Generate a 16 character document identifier."""
    return uuid4().hex[:16]


# =============================================================================
# Actor Components
# =============================================================================


class Spellbook(BaseModel):
    """One spellbook slot of a spellcasting actor.

    Attributes:
        class_name: Casting class feeding the book, if any.
        in_use: Whether the book is enabled on the sheet.
        cl_total: Total caster level, if the sheet computed one.
    """

    model_config = ConfigDict(extra="forbid")

    class_name: str | None = Field(default=None, description="Casting class")
    in_use: bool = Field(default=False, description="Book enabled")
    cl_total: Annotated[int, Field(ge=0)] | None = Field(
        default=None,
        description="Total caster level",
    )

    @property
    def caster_level(self) -> int:
        """Caster level with a missing or zero value resolved to 1."""
        return self.cl_total or 1


class Resistance(BaseModel):
    """An energy resistance entry."""

    model_config = ConfigDict(extra="forbid")

    amount: Annotated[int, Field(ge=0)]
    types: list[EnergyType] = Field(default_factory=list)


class DamageReduction(BaseModel):
    """A damage reduction entry; ``types`` holds the bypass types or ``-``."""

    model_config = ConfigDict(extra="forbid")

    amount: Annotated[int, Field(ge=0)]
    types: list[str] = Field(default_factory=list)


class BuffChange(BaseModel):
    """A single modifier carried by a buff item."""

    model_config = ConfigDict(extra="forbid")

    formula: str = Field(description="Bonus formula")
    priority: int = Field(default=1)
    target: ChangeTarget = Field(description="Modified statistic")
    sub_target: Ability | None = Field(default=None, description="Ability for ability changes")
    bonus_type: BonusType = Field(description="Bonus type")


class ItemDocument(BaseModel):
    """An item embedded in an actor (buffs and template bundles).

    Attributes:
        id: Item identifier.
        name: Display name.
        item_type: Kind of item.
        buff_type: Buff duration category ("temp" for summon buffs).
        changes: Modifiers applied while active.
        hide_from_token: Whether the buff icon is hidden on the token.
        active: Whether the item is currently applied.
        img: Icon path.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    id: str = Field(default_factory=new_id)
    name: str = Field(min_length=1)
    item_type: ItemType = Field(default=ItemType.BUFF)
    buff_type: str | None = Field(default=None)
    changes: list[BuffChange] = Field(default_factory=list)
    hide_from_token: bool = Field(default=False)
    active: bool = Field(default=False)
    img: str | None = Field(default=None)


class PrototypeToken(BaseModel):
    """Token defaults used when an actor is placed."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    name: str = Field(default="")
    disposition: TokenDisposition = Field(default=TokenDisposition.HOSTILE)


# =============================================================================
# Documents
# =============================================================================


class ActorDocument(BaseModel):
    """An actor record in the world or in a catalog pack.

    Attributes:
        id: Actor identifier.
        name: Display name.
        folder_id: Containing folder, if any.
        ownership: Ownership level per user id ("default" for everyone).
        alignment: Alignment code (e.g. "lg", "n").
        hit_dice: Total hit dice.
        energy_resistances: Energy resistance entries.
        damage_reductions: Damage reduction entries.
        items: Embedded items.
        prototype_token: Token defaults.
        spellbooks: Spellbooks keyed by slot.
        conjuration_cl_bonus: Caster level bonus for conjuration spells.
        is_dead: Whether the actor carries the dead condition.
        has_player_owner: Whether a non-GM user owns the actor.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    id: str = Field(default_factory=new_id)
    name: str = Field(min_length=1)
    folder_id: str | None = Field(default=None)
    ownership: dict[str, OwnershipLevel] = Field(default_factory=dict)
    alignment: str = Field(default="n")
    hit_dice: Annotated[int, Field(ge=0)] = 1
    energy_resistances: list[Resistance] = Field(default_factory=list)
    damage_reductions: list[DamageReduction] = Field(default_factory=list)
    items: list[ItemDocument] = Field(default_factory=list)
    prototype_token: PrototypeToken = Field(default_factory=PrototypeToken)
    spellbooks: dict[SpellbookKey, Spellbook] = Field(default_factory=dict)
    conjuration_cl_bonus: int = Field(default=0)
    is_dead: bool = Field(default=False)
    has_player_owner: bool = Field(default=False)

    def rename(self, name: str) -> None:
        """Rename the actor and its prototype token together."""
        self.name = name
        self.prototype_token.name = name

    def find_item(self, name: str, item_type: ItemType) -> ItemDocument | None:
        """Find the first embedded item with the given name and type."""
        return next(
            (i for i in self.items if i.name == name and i.item_type == item_type),
            None,
        )


class TokenDocument(BaseModel):
    """A placed instance of an actor on the scene.

    Attributes:
        id: Token identifier.
        actor_id: Underlying actor.
        name: Display name.
        disposition: Disposition towards the party.
        x: Horizontal scene coordinate.
        y: Vertical scene coordinate.
        defeated: Whether the token's actor is dead.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    id: str = Field(default_factory=new_id)
    actor_id: str | None = Field(default=None)
    name: str = Field(default="")
    disposition: TokenDisposition = Field(default=TokenDisposition.HOSTILE)
    x: float = Field(default=0.0)
    y: float = Field(default=0.0)
    defeated: bool = Field(default=False)


class Combatant(BaseModel):
    """An entry in a turn-order session.

    Attributes:
        id: Combatant identifier.
        token_id: Token the entry acts for.
        actor_id: Actor behind the token.
        scene_id: Scene holding the token.
        name: Display name.
        initiative: Initiative value, None until rolled.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    id: str = Field(default_factory=new_id)
    token_id: str | None = Field(default=None)
    actor_id: str | None = Field(default=None)
    scene_id: str | None = Field(default=None)
    name: str = Field(default="")
    initiative: float | None = Field(default=None)


class PackInfo(BaseModel):
    """Metadata of a catalog pack."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str
    title: str
    package_name: str
    name: str
    document_name: str = "Actor"
    visible: bool = True


class IndexEntry(BaseModel):
    """A lightweight catalog index row."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str
    name: str


__all__ = [
    "new_id",
    "Spellbook",
    "Resistance",
    "DamageReduction",
    "BuffChange",
    "ItemDocument",
    "PrototypeToken",
    "ActorDocument",
    "TokenDocument",
    "Combatant",
    "PackInfo",
    "IndexEntry",
]
