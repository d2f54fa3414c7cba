"""Pydantic V2 schemas for the summon workflow.

Covers what the form collects (SummonRequest), what the resolvers produce
(CasterLevel, SummonCount), what the spawn loop reports (SpawnResult) and
the chat cards announcing summons, expirations and deletions.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from pf1_summons.models.documents import ActorDocument, PackInfo, TokenDocument
from pf1_summons.models.enums import AlignmentMatch, HarrowSuit, SpellbookKey


# =============================================================================
# Form Input
# =============================================================================


class SummonRequest(BaseModel):
    """Selections gathered by the summon form.

    Options whose feature flag is disabled in settings are ignored by the
    summon pipeline, mirroring the form not offering them.

    Attributes:
        pack_id: Catalog pack to summon from.
        monster_id: Catalog entry to summon.
        class_key: Spellbook whose caster level is used.
        cl_override: Manual caster level (e.g. casting from a scroll).
        template: Template to apply, if any.
        count_formula: Number to summon as a dice formula.
        augment: Apply Augment Summoning.
        extend: Apply the Extend metamagic.
        reach: Apply the Reach metamagic.
        conjured_armor: Apply Conjured Armor.
        harrow_suits: First and second harrow suits.
        alignment_match: Harrow alignment-match duration multiplier.
        give_owner_ownership: Copy the summoner's ownership to the summon.
    """

    model_config = ConfigDict(extra="forbid")

    pack_id: str = Field(min_length=1, description="Source pack")
    monster_id: str = Field(min_length=1, description="Catalog entry id")
    class_key: SpellbookKey = Field(default=SpellbookKey.PRIMARY, description="Spellbook")
    cl_override: int | None = Field(default=None, description="Manual caster level")
    template: str | None = Field(default=None, description="Template name")
    count_formula: str = Field(default="1", description="Number to summon")
    augment: bool = Field(default=False)
    extend: bool = Field(default=False)
    reach: bool = Field(default=False)
    conjured_armor: bool = Field(default=False)
    harrow_suits: tuple[HarrowSuit | None, HarrowSuit | None] = Field(default=(None, None))
    alignment_match: AlignmentMatch = Field(default=AlignmentMatch.NONE)
    give_owner_ownership: bool = Field(default=False)


class SpellbookChoice(BaseModel):
    """A spellbook offered by the form."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    key: SpellbookKey
    label: str


class SummonFormOptions(BaseModel):
    """Everything the form needs to render its choices.

    Attributes:
        summoner: The summoning actor.
        summoner_token: The summoner's token on the scene.
        spellbooks: Spellbooks the summoner can cast from.
        packs: Actor packs offered as sources.
        templates: Template names offered.
        owner_check: Whether the ownership checkbox is offered.
        augment: Whether Augment Summoning is offered.
        extend: Whether Extend is offered.
        reach: Whether Reach is offered.
        conjured_armor: Whether Conjured Armor is offered.
        harrowed: Whether the harrow options are offered.
    """

    model_config = ConfigDict(extra="forbid")

    summoner: ActorDocument
    summoner_token: TokenDocument
    spellbooks: list[SpellbookChoice] = Field(default_factory=list)
    packs: list[PackInfo] = Field(default_factory=list)
    templates: list[str] = Field(default_factory=list)
    owner_check: bool = False
    augment: bool = False
    extend: bool = False
    reach: bool = False
    conjured_armor: bool = False
    harrowed: bool = False


# =============================================================================
# Resolver Output
# =============================================================================


class CasterLevel(BaseModel):
    """Resolved caster levels.

    ``base`` drives the placement radius; ``final`` drives the duration and
    additionally carries the metamagic and alignment-match modifiers.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    base: Annotated[int, Field(ge=0)]
    final: Annotated[int, Field(ge=0)]
    override_rejected: bool = False


class SummonCount(BaseModel):
    """Resolved number of instances to place."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    formula: str = Field(description="Formula actually rolled")
    total: Annotated[int, Field(ge=1)]
    description: str = Field(description="Rendered roll for display")
    fell_back: bool = Field(default=False, description="Formula replaced by '1'")


class PlacementRequest(BaseModel):
    """One interactive placement handed to the placement tool."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    actor: ActorDocument
    origin: TokenDocument
    radius: Annotated[int, Field(ge=0)]
    color: str = "#9e17cf"
    icon: str = "icons/magic/symbols/runes-triangle-magenta.webp"


class SpawnResult(BaseModel):
    """Outcome of the spawn loop."""

    model_config = ConfigDict(extra="forbid")

    first_token_id: str | None = Field(default=None, description="Tracked token")
    token_ids: list[str] = Field(default_factory=list, description="All placed tokens")
    spawned: int = Field(default=0, ge=0)
    needed: int = Field(default=0, ge=0)

    @property
    def complete(self) -> bool:
        """Whether every requested placement happened."""
        return self.spawned >= self.needed


# =============================================================================
# Chat
# =============================================================================


class SummonDeleteControl(BaseModel):
    """An interactive control that deletes one summon when activated."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    actor_id: str
    summoner_id: str
    label: str = "Delete Summon"


class ChatCard(BaseModel):
    """A chat message announcing a summon event.

    Attributes:
        title: Card header.
        body: Card text.
        roll: Rendered dice roll shown with the card, if any.
        controls: Delete controls embedded in the card.
    """

    model_config = ConfigDict(extra="forbid")

    title: str
    body: str
    roll: str | None = None
    controls: list[SummonDeleteControl] = Field(default_factory=list)


__all__ = [
    "SummonRequest",
    "SpellbookChoice",
    "SummonFormOptions",
    "CasterLevel",
    "SummonCount",
    "PlacementRequest",
    "SpawnResult",
    "SummonDeleteControl",
    "ChatCard",
]
