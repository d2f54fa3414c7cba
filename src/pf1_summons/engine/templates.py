"""Template and buff application for freshly created summons.

A template is an item bundle looked up by name in the template pack. Applying
it renames the summon, adds energy resistances and damage reduction scaled
by hit dice, and copies the summoner's alignment. Buffs (Augment Summoning,
Harrowed Summoning, Conjured Armor) are independent, hidden, pre-activated
temporary items.
"""

from __future__ import annotations

from pf1_summons.core.exceptions import CatalogError, TemplateNotFoundError
from pf1_summons.core.logging import get_logger
from pf1_summons.host.protocols import Catalog
from pf1_summons.models import (
    Ability,
    ActorDocument,
    BonusType,
    BuffChange,
    ChangeTarget,
    DamageReduction,
    EnergyType,
    HarrowSuit,
    ItemDocument,
    Resistance,
    TemplateName,
    new_id,
)


logger = get_logger(__name__)


# =============================================================================
# Constants
# =============================================================================

TEMPLATE_MARKER = "*"

AUGMENT_BUFF = "Augment Summoning"
HARROW_BUFF = "Harrowed Summoning"
CONJURED_ARMOR_BUFF = "Conjured Armor"
CONJURED_ARMOR_IMG = "icons/magic/defensive/shield-barrier-glowing-blue.webp"
AUGMENTED_SUFFIX = " (Augmented)"

TEMPLATE_RESISTANCES: dict[TemplateName, tuple[EnergyType, ...]] = {
    TemplateName.CELESTIAL: (EnergyType.ACID, EnergyType.COLD, EnergyType.ELECTRIC),
    TemplateName.FIENDISH: (EnergyType.COLD, EnergyType.FIRE),
    TemplateName.ENTROPIC: (EnergyType.ACID, EnergyType.FIRE),
    TemplateName.RESOLUTE: (
        EnergyType.ACID,
        EnergyType.COLD,
        EnergyType.ELECTRIC,
        EnergyType.FIRE,
    ),
    TemplateName.COUNTERPOISED: (EnergyType.COLD, EnergyType.ELECTRIC, EnergyType.FIRE),
    TemplateName.DARK: (EnergyType.COLD,),
}

TEMPLATE_DR_BYPASS: dict[TemplateName, str] = {
    TemplateName.CELESTIAL: "Evil",
    TemplateName.FIENDISH: "Good",
    TemplateName.RESOLUTE: "Chaos",
    TemplateName.ENTROPIC: "Law",
}

NO_BYPASS = "-"


# =============================================================================
# Pure Helpers
# =============================================================================


def template_allowed(monster_name: str) -> bool:
    """Whether a catalog entry accepts a template (name ends with ``*``)."""
    return monster_name.endswith(TEMPLATE_MARKER)


def resistance_tiers(hit_dice: int) -> tuple[int, int]:
    """Energy resistance and damage reduction magnitudes for a hit-die total.

    Returns:
        ``(5, 0)`` below 5 HD, ``(10, 5)`` for 5-10 HD, ``(15, 10)`` from 11 HD.
    """
    if hit_dice >= 11:
        return 15, 10
    if hit_dice >= 5:
        return 10, 5
    return 5, 0


def template_defenses(
    template_name: str, hit_dice: int
) -> tuple[list[Resistance], DamageReduction | None]:
    """Resistances and damage reduction a template grants.

    Args:
        template_name: Template name as listed in the template pack.
        hit_dice: The summon's hit-die total.

    Returns:
        One resistance per energy type, and a damage reduction entry when the
        summon has at least 5 HD. Templates without a bypass type get ``/-``.
    """
    res_amount, dr_amount = resistance_tiers(hit_dice)
    resistances = [
        Resistance(amount=res_amount, types=[energy])
        for energy in TEMPLATE_RESISTANCES.get(template_name, ())
    ]
    reduction = None
    if hit_dice >= 5:
        bypass = TEMPLATE_DR_BYPASS.get(template_name, NO_BYPASS)
        reduction = DamageReduction(amount=dr_amount, types=[bypass])
    return resistances, reduction


def conjured_armor_bonus(caster_level: int) -> int:
    """Deflection bonus of Conjured Armor: 2, +1 at CL 8, +1 more at CL 15."""
    bonus = 2
    if caster_level >= 8:
        bonus += 1
    if caster_level >= 15:
        bonus += 1
    return bonus


def harrow_changes(first: HarrowSuit, second: HarrowSuit | None) -> list[BuffChange]:
    """Ability bonuses of Harrowed Summoning.

    Matching suits, or no second suit, give +6 to one ability; two
    different suits give +4 to each.
    """
    if second is None or second == first:
        return [_ability_change(first.ability, 6)]
    return [_ability_change(first.ability, 4), _ability_change(second.ability, 4)]


def _ability_change(ability: Ability, amount: int) -> BuffChange:
    return BuffChange(
        formula=str(amount),
        target=ChangeTarget.ABILITY,
        sub_target=ability,
        bonus_type=BonusType.ENHANCEMENT,
    )


def _temp_buff(name: str, changes: list[BuffChange], img: str | None = None) -> ItemDocument:
    return ItemDocument(
        name=name,
        buff_type="temp",
        changes=changes,
        hide_from_token=True,
        active=True,
        img=img,
    )


# =============================================================================
# Applicator
# =============================================================================


class TemplateApplicator:
    """Applies templates and buffs to a created summon.

    Mutations are made on the actor document in place; the caller persists
    the actor once everything has been applied.

    Attributes:
        catalog: Catalog holding the template pack.
        template_pack: Pack id the templates are looked up in.
    """

    def __init__(self, catalog: Catalog, template_pack: str) -> None:
        self.catalog = catalog
        self.template_pack = template_pack

    async def find_template(self, template_name: str) -> ItemDocument:
        """Load a template bundle by exact name.

        Raises:
            TemplateNotFoundError: If the pack or the name is missing.
        """
        try:
            index = await self.catalog.index(self.template_pack)
        except CatalogError as exc:
            raise TemplateNotFoundError(
                f"Template {template_name} not found.",
                template=template_name,
                pack_id=self.template_pack,
            ) from exc

        entry = next((e for e in index if e.name == template_name), None)
        if entry is None:
            raise TemplateNotFoundError(
                f"Template {template_name} not found.",
                template=template_name,
                pack_id=self.template_pack,
            )
        return await self.catalog.get_item(self.template_pack, entry.id)

    async def apply_template(
        self,
        actor: ActorDocument,
        template_name: str,
        summoner: ActorDocument,
    ) -> None:
        """Attach a template bundle and its passive modifications.

        Args:
            actor: The created summon.
            template_name: Template to apply.
            summoner: Source of the alignment copied onto the summon.

        Raises:
            TemplateNotFoundError: If the template cannot be found; the
                actor is left untouched.
        """
        template = await self.find_template(template_name)
        actor.items.append(template.model_copy(update={"id": new_id()}))
        actor.rename(f"{actor.name}, {template_name}")

        resistances, reduction = template_defenses(template_name, actor.hit_dice)
        actor.energy_resistances = [*actor.energy_resistances, *resistances]
        if reduction is not None:
            actor.damage_reductions = [*actor.damage_reductions, reduction]

        actor.alignment = summoner.alignment
        logger.info(
            "Template applied",
            actor_id=actor.id,
            template=template_name,
            hit_dice=actor.hit_dice,
            resistances=len(resistances),
            damage_reduction=reduction.amount if reduction else None,
        )

    def apply_augment(self, actor: ActorDocument, *, rename: bool = True) -> ItemDocument:
        """Add Augment Summoning (+4 enhancement to STR and CON)."""
        buff = _temp_buff(
            AUGMENT_BUFF,
            [_ability_change(Ability.STR, 4), _ability_change(Ability.CON, 4)],
        )
        actor.items.append(buff)
        if rename:
            actor.rename(actor.name + AUGMENTED_SUFFIX)
        logger.debug("Augment applied", actor_id=actor.id, renamed=rename)
        return buff

    def apply_harrow(
        self,
        actor: ActorDocument,
        first: HarrowSuit,
        second: HarrowSuit | None = None,
    ) -> ItemDocument:
        """Add Harrowed Summoning for the chosen suits."""
        buff = _temp_buff(HARROW_BUFF, harrow_changes(first, second))
        actor.items.append(buff)
        logger.debug("Harrow applied", actor_id=actor.id, first=first, second=second)
        return buff

    def apply_conjured_armor(
        self,
        actor: ActorDocument,
        summoner: ActorDocument,
    ) -> ItemDocument | None:
        """Add Conjured Armor when the summoner casts as a psychic.

        Returns:
            The created buff, or None when the summoner has no psychic
            spellbook with a caster level.
        """
        psychic_level = next(
            (
                book.cl_total or 0
                for book in summoner.spellbooks.values()
                if book.class_name and "psychic" in book.class_name.lower()
            ),
            0,
        )
        if psychic_level <= 0:
            logger.debug("No psychic spellbook, skipping conjured armor", summoner_id=summoner.id)
            return None

        change = BuffChange(
            formula=str(conjured_armor_bonus(psychic_level)),
            target=ChangeTarget.AC,
            bonus_type=BonusType.DEFLECTION,
        )
        buff = _temp_buff(CONJURED_ARMOR_BUFF, [change], img=CONJURED_ARMOR_IMG)
        actor.items.append(buff)
        logger.debug("Conjured armor applied", actor_id=actor.id, bonus=change.formula)
        return buff


__all__ = [
    "TEMPLATE_MARKER",
    "AUGMENT_BUFF",
    "HARROW_BUFF",
    "CONJURED_ARMOR_BUFF",
    "TEMPLATE_RESISTANCES",
    "TEMPLATE_DR_BYPASS",
    "template_allowed",
    "resistance_tiers",
    "template_defenses",
    "conjured_armor_bonus",
    "harrow_changes",
    "TemplateApplicator",
]
