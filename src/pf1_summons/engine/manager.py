"""Summon pipeline.

Runs one summon from a completed form to the announcement card:

1. Import the chosen catalog actor into the destination folder.
2. Hand ownership to the current user (or the summoner's owners).
3. Resolve count, caster level and placement radius.
4. Apply the template and buffs, copy the summoner's disposition.
5. Place the instances and record one expiration against the first token.
6. Wire the instances into the active turn order.
7. Post the "Summoning!" card, or remove the actor if nothing was placed.

Input problems (bad formula, bad override, missing template) are reported to
the user and replaced by safe defaults; the pipeline always continues.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from pf1_summons.core.config import Settings
from pf1_summons.core.exceptions import (
    CombatIntegrationError,
    SpawnAbortedError,
    TemplateNotFoundError,
)
from pf1_summons.core.logging import get_logger
from pf1_summons.engine.caster_level import placement_radius, resolve_caster_level
from pf1_summons.engine.chat import summoned_card
from pf1_summons.engine.combat import CombatIntegrator
from pf1_summons.engine.count import resolve_count
from pf1_summons.engine.dice import DiceRoller
from pf1_summons.engine.ledger import ExpirationLedger, Record
from pf1_summons.engine.spawn import SpawnLoop
from pf1_summons.engine.templates import TemplateApplicator, template_allowed
from pf1_summons.host.protocols import Host
from pf1_summons.models import (
    ActorDocument,
    AlignmentMatch,
    CalendarExpiration,
    CasterLevel,
    CombatExpiration,
    OwnershipLevel,
    SpawnResult,
    SummonCount,
    SummonRequest,
    TokenDocument,
    utc_now,
)


logger = get_logger(__name__)


@dataclass(frozen=True)
class SummonOutcome:
    """What one summon produced.

    Attributes:
        actor: The created world actor, as last persisted.
        count: Resolved number of instances.
        caster_level: Resolved caster levels.
        radius: Placement radius used.
        spawn: Placed token ids and the tracked token.
        record: The expiration record written, None if nothing was placed.
    """

    actor: ActorDocument
    count: SummonCount
    caster_level: CasterLevel
    radius: int
    spawn: SpawnResult
    record: Record | None


class SummonManager:
    """Runs the summon pipeline against a host.

    Example:
        >>> manager = SummonManager(host, get_settings(), ExpirationLedger(host.flags))
        >>> outcome = await manager.summon(summoner, summoner_token, request)
        >>> outcome.spawn.token_ids
    """

    def __init__(
        self,
        host: Host,
        settings: Settings,
        ledger: ExpirationLedger,
        *,
        roller: DiceRoller | None = None,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self.host = host
        self.settings = settings
        self.ledger = ledger
        self.roller = roller or DiceRoller()
        self.now = now
        self.applicator = TemplateApplicator(host.catalog, settings.summons.pack_template_source)
        self.spawner = SpawnLoop(host.placement, host.scene, host.notifications)
        self.integrator = CombatIntegrator(host.scene, settings.tracking)

    async def summon(
        self,
        summoner: ActorDocument,
        summoner_token: TokenDocument,
        request: SummonRequest,
    ) -> SummonOutcome:
        """Summon from a completed form.

        Args:
            summoner: The summoning actor.
            summoner_token: The summoner's token, origin of placement.
            request: The form selections.

        Returns:
            The outcome of the summon.

        Raises:
            CatalogError: If the selected catalog entry cannot be loaded.
        """
        logger.info(
            "Summoning",
            summoner_id=summoner.id,
            pack_id=request.pack_id,
            monster_id=request.monster_id,
        )
        flags = self.settings.summons

        folder_id = None
        if flags.destination_folder:
            folder_id = await self.host.folders.get_or_create(flags.destination_folder)

        source = await self.host.catalog.get_actor(request.pack_id, request.monster_id)
        actor = await self.host.actors.create(source)
        actor.folder_id = folder_id
        actor.ownership = self._ownership(actor, summoner, request)

        count = resolve_count(request.count_formula, self.roller)
        if count.fell_back:
            self.host.notifications.error(
                f"{request.count_formula} not a valid roll formula. Defaulting to 1."
            )

        harrowed = flags.enable_harrowed_summoning
        caster_level = resolve_caster_level(
            summoner,
            request.class_key,
            override=request.cl_override,
            extend=request.extend and flags.enable_extend_metamagic,
            alignment_match=request.alignment_match if harrowed else AlignmentMatch.NONE,
        )
        if caster_level.override_rejected:
            self.host.notifications.error(
                f"{request.cl_override} not a valid caster level. Defaulting to spellbook CL."
            )
        radius = placement_radius(
            caster_level.base, reach=request.reach and flags.enable_reach_metamagic
        )

        await self._apply_template(actor, source.name, summoner, request)
        self._apply_buffs(actor, summoner, request)
        actor.prototype_token.disposition = summoner_token.disposition
        actor = await self.host.actors.update(actor)

        try:
            spawn = await self.spawner.run(actor, summoner_token, radius=radius, needed=count.total)
        except SpawnAbortedError as exc:
            spawn = exc.result
            self.host.notifications.warn(
                f"Summoning stopped after {spawn.spawned} of {spawn.needed} placements."
            )

        record = await self._track_duration(actor, summoner, spawn, caster_level.final)

        combat = self.host.active_combat()
        if combat is not None and spawn.token_ids:
            try:
                await self.integrator.integrate(
                    combat,
                    actor_id=actor.id,
                    summoner_id=summoner.id,
                    token_ids=spawn.token_ids,
                )
            except CombatIntegrationError:
                logger.exception("Combat integration failed", actor_id=actor.id)

        if spawn.spawned:
            await self.host.chat.post(
                summoned_card(count, actor.name, caster_level.final, placed=spawn.spawned)
            )
        else:
            logger.warning("Nothing placed, removing summoned actor", actor_id=actor.id)
            await self.host.actors.delete(actor.id)
        logger.info(
            "Summon complete",
            actor_id=actor.id,
            count=count.total,
            spawned=spawn.spawned,
            rounds=caster_level.final,
        )
        return SummonOutcome(
            actor=actor,
            count=count,
            caster_level=caster_level,
            radius=radius,
            spawn=spawn,
            record=record,
        )

    def _ownership(
        self,
        actor: ActorDocument,
        summoner: ActorDocument,
        request: SummonRequest,
    ) -> dict[str, OwnershipLevel]:
        user = self.host.user
        if user.is_gm and summoner.has_player_owner and request.give_owner_ownership:
            return dict(summoner.ownership)
        return {**actor.ownership, user.id: OwnershipLevel.OWNER}

    async def _apply_template(
        self,
        actor: ActorDocument,
        monster_name: str,
        summoner: ActorDocument,
        request: SummonRequest,
    ) -> None:
        if not request.template:
            return
        if not template_allowed(monster_name):
            logger.debug("Monster takes no template", monster=monster_name, template=request.template)
            return
        try:
            await self.applicator.apply_template(actor, request.template, summoner)
        except TemplateNotFoundError as exc:
            logger.warning("Template lookup failed", **exc.details)
            self.host.notifications.error(exc.message)

    def _apply_buffs(
        self,
        actor: ActorDocument,
        summoner: ActorDocument,
        request: SummonRequest,
    ) -> None:
        flags = self.settings.summons
        if request.augment and flags.enable_augment_summoning:
            self.applicator.apply_augment(actor, rename=flags.rename_augmented)

        first_suit, second_suit = request.harrow_suits
        if first_suit is not None and flags.enable_harrowed_summoning:
            self.applicator.apply_harrow(actor, first_suit, second_suit)

        if request.conjured_armor and flags.enable_conjured_armor:
            self.applicator.apply_conjured_armor(actor, summoner)

    async def _track_duration(
        self,
        actor: ActorDocument,
        summoner: ActorDocument,
        spawn: SpawnResult,
        rounds: int,
    ) -> Record | None:
        if spawn.first_token_id is None:
            logger.warning("No token placed, duration not tracked", actor_id=actor.id)
            return None

        combat = self.host.active_combat()
        record: Record
        if combat is not None:
            record = CombatExpiration(
                actor_id=actor.id,
                token_id=spawn.first_token_id,
                combat_id=combat.id,
                expire_round=combat.round + rounds,
                created=self.now(),
            )
        else:
            seconds = rounds * self.settings.tracking.seconds_per_round
            record = CalendarExpiration(
                actor_id=actor.id,
                token_id=spawn.first_token_id,
                expire_time=self.host.clock.world_time + seconds,
                created=self.now(),
            )
        await self.ledger.append(summoner.id, record)
        return record


__all__ = ["SummonOutcome", "SummonManager"]
