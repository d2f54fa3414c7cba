"""Caster level and placement radius resolution.

Pure computations over the summoner's spellbooks and the form selections.
The base caster level sizes the placement radius; the final caster level,
which additionally carries the Extend metamagic and the harrow alignment
match, sets the duration in rounds.
"""

from __future__ import annotations

import math

from pf1_summons.core.logging import get_logger
from pf1_summons.models import (
    ActorDocument,
    AlignmentMatch,
    CasterLevel,
    SpellbookChoice,
    SpellbookKey,
)


logger = get_logger(__name__)


def conjuration_bonus(summoner: ActorDocument) -> int:
    """The summoner's conjuration-school caster level bonus, never negative."""
    return max(summoner.conjuration_cl_bonus, 0)


def class_caster_level(summoner: ActorDocument, class_key: SpellbookKey) -> int:
    """Caster level of one spellbook, 1 when the book is missing or unset."""
    book = summoner.spellbooks.get(class_key)
    return book.caster_level if book is not None else 1


def resolve_caster_level(
    summoner: ActorDocument,
    class_key: SpellbookKey,
    *,
    override: int | None = None,
    extend: bool = False,
    alignment_match: AlignmentMatch = AlignmentMatch.NONE,
) -> CasterLevel:
    """Resolve the base and final caster level of a summon.

    Args:
        summoner: The summoning actor.
        class_key: Spellbook chosen on the form.
        override: Manual caster level; only a positive value is accepted.
        extend: Whether the Extend metamagic doubles the duration.
        alignment_match: Harrow alignment-match multiplier, applied last.

    Returns:
        CasterLevel with ``override_rejected`` set when a non-positive
        override was supplied and ignored.
    """
    base = class_caster_level(summoner, class_key) + conjuration_bonus(summoner)

    override_rejected = False
    if override is not None:
        if override > 0:
            base = override
        else:
            override_rejected = True
            logger.debug("Caster level override rejected", override=override)

    final = base * 2 if extend else base
    final = math.floor(final * alignment_match.value)

    logger.debug(
        "Caster level resolved",
        class_key=class_key,
        base=base,
        final=final,
        extend=extend,
        alignment_match=alignment_match.value,
    )
    return CasterLevel(base=base, final=final, override_rejected=override_rejected)


def placement_radius(caster_level: int, *, reach: bool = False) -> int:
    """Radius around the summoner within which summons may be placed.

    Args:
        caster_level: Base caster level.
        reach: Whether the Reach metamagic is applied.

    Returns:
        The radius in scene distance units.
    """
    if reach:
        return 100 + caster_level * 10
    return 25 + (caster_level // 2) * 5


def spellbook_choices(summoner: ActorDocument) -> list[SpellbookChoice]:
    """Spellbooks the summoner can cast from, labelled for the form.

    Only books in use with a casting class are offered. The label shows
    the caster level including the conjuration bonus, e.g.
    ``Wizard (CL 7 (+2 Conj))``.
    """
    bonus = conjuration_bonus(summoner)
    bonus_text = f" (+{bonus} Conj)" if bonus else ""

    choices: list[SpellbookChoice] = []
    for key, book in summoner.spellbooks.items():
        if not book.in_use or not book.class_name:
            continue
        class_name = book.class_name[0].upper() + book.class_name[1:]
        label = f"{class_name} (CL {book.caster_level + bonus}{bonus_text})"
        choices.append(SpellbookChoice(key=key, label=label))
    return choices


__all__ = [
    "conjuration_bonus",
    "class_caster_level",
    "resolve_caster_level",
    "placement_radius",
    "spellbook_choices",
]
