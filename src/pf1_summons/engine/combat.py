"""Turn-order integration for freshly placed summons.

When a turn-order session is active, every placed instance gets an entry
acting right after the summoner: the new entries share the summoner's
initiative plus 0.01, and any other entry already holding that value is
pushed further up, 0.01 at a time, until no value collides.
"""

from __future__ import annotations

from tenacity import retry, retry_if_result, stop_after_delay, wait_exponential

from pf1_summons.core.config import TrackingSettings
from pf1_summons.core.exceptions import CombatIntegrationError
from pf1_summons.core.logging import get_logger
from pf1_summons.host.protocols import CombatSession, SceneIndex
from pf1_summons.models import Combatant


logger = get_logger(__name__)

INITIATIVE_STEP = 0.01


def step_initiative(value: float) -> float:
    """The next initiative slot above ``value``, kept to two decimals."""
    return round(value + INITIATIVE_STEP, 2)


def plan_initiative_bumps(
    combatants: list[Combatant],
    *,
    new_ids: set[str],
    summoner_id: str | None,
    target: float,
) -> dict[str, float]:
    """Work out which existing entries must move to free up ``target``.

    Entries sitting on the target move up one step; entries already on that
    next step move up again, and so on. New entries and the summoner's own
    entry never move, and no entry moves twice.

    Args:
        combatants: All entries of the session.
        new_ids: Ids of the summon's new entries.
        summoner_id: Id of the summoner's entry, if it has one.
        target: Initiative given to the new entries.

    Returns:
        New initiative per bumped entry id.
    """
    movable = {
        c.id: round(c.initiative, 2)
        for c in combatants
        if c.initiative is not None and c.id not in new_ids and c.id != summoner_id
    }
    bumps: dict[str, float] = {}
    slot = target
    colliding = [cid for cid, value in movable.items() if value == slot]
    while colliding:
        slot = step_initiative(slot)
        for combatant_id in colliding:
            bumps[combatant_id] = slot
        colliding = [
            cid for cid, value in movable.items() if value == slot and cid not in bumps
        ]
    return bumps


class CombatIntegrator:
    """Adds placed summons to the active turn order.

    Attributes:
        scene: Scene index the placed tokens are resolved against.
        tracking: Bounds of the token registration wait.
    """

    def __init__(self, scene: SceneIndex, tracking: TrackingSettings) -> None:
        self.scene = scene
        self.tracking = tracking

    async def wait_for_tokens(self, token_ids: list[str]) -> bool:
        """Wait until every token id resolves in the scene index.

        Returns:
            False when the wait timed out; the caller proceeds with whatever
            tokens are resolvable.
        """
        if not token_ids:
            return True

        @retry(
            stop=stop_after_delay(self.tracking.token_wait_timeout),
            wait=wait_exponential(
                multiplier=self.tracking.token_poll_interval,
                min=self.tracking.token_poll_interval,
                max=self.tracking.token_poll_max_interval,
            ),
            retry=retry_if_result(lambda found: not found),
            retry_error_callback=lambda retry_state: False,
        )
        async def _all_resolved() -> bool:
            return all(self.scene.get_token(tid) is not None for tid in token_ids)

        found = await _all_resolved()
        if not found:
            logger.warning(
                "Some spawned tokens did not register in time",
                token_ids=token_ids,
                timeout=self.tracking.token_wait_timeout,
            )
        return found

    async def integrate(
        self,
        combat: CombatSession,
        *,
        actor_id: str,
        summoner_id: str,
        token_ids: list[str],
    ) -> list[Combatant]:
        """Create turn-order entries for the summon and hand it the turn.

        Args:
            combat: The active session.
            actor_id: The summoned actor.
            summoner_id: The summoning actor.
            token_ids: Ids reported by the spawn loop.

        Returns:
            The created entries, empty when no token of the actor was found.

        Raises:
            CombatIntegrationError: If the session rejects the new entries.
        """
        await self.wait_for_tokens(token_ids)

        tokens = [t for t in self.scene.tokens() if t.actor_id == actor_id]
        if not tokens:
            logger.warning("No tokens found after spawn, skipping combat setup", actor_id=actor_id)
            return []

        summoner_entry = next(
            (c for c in combat.combatants() if c.actor_id == summoner_id), None
        )
        base_initiative = 0.0
        if summoner_entry is not None and summoner_entry.initiative is not None:
            base_initiative = summoner_entry.initiative

        try:
            created = await combat.create_combatants(
                [
                    Combatant(
                        token_id=t.id,
                        actor_id=actor_id,
                        scene_id=self.scene.id,
                        name=t.name,
                    )
                    for t in tokens
                ]
            )
        except Exception as exc:
            raise CombatIntegrationError(
                f"Failed to add summon to turn order: {exc}",
                combat_id=combat.id,
                round_number=combat.round,
                details={"actor_id": actor_id},
            ) from exc
        logger.debug("Combatants created", combat_id=combat.id, count=len(created))

        await self._sync_with_tokens(combat, created, actor_id)

        target = step_initiative(base_initiative)
        for combatant in created:
            await self._update(combat, combatant.id, initiative=target)

        bumps = plan_initiative_bumps(
            combat.combatants(),
            new_ids={c.id for c in created},
            summoner_id=summoner_entry.id if summoner_entry else None,
            target=target,
        )
        for combatant_id, initiative in bumps.items():
            await self._update(combat, combatant_id, initiative=initiative)
        if bumps:
            logger.info("Initiative collisions resolved", combat_id=combat.id, bumps=bumps)

        await combat.setup_turns()
        await self._hand_turn_to(combat, {c.id for c in created})
        return created

    async def _sync_with_tokens(
        self,
        combat: CombatSession,
        created: list[Combatant],
        actor_id: str,
    ) -> None:
        for combatant in created:
            token = self.scene.get_token(combatant.token_id) if combatant.token_id else None
            if token is None:
                continue
            await self._update(
                combat,
                combatant.id,
                token_id=token.id,
                actor_id=actor_id,
                scene_id=self.scene.id,
                name=token.name,
            )

    async def _update(self, combat: CombatSession, combatant_id: str, **changes: object) -> None:
        """Update one entry; a rejected update is logged and skipped."""
        try:
            await combat.update_combatant(combatant_id, **changes)
        except Exception:
            logger.warning(
                "Failed to update combatant",
                combat_id=combat.id,
                combatant_id=combatant_id,
                changes=list(changes),
                exc_info=True,
            )

    async def _hand_turn_to(self, combat: CombatSession, new_ids: set[str]) -> None:
        turn_index = next(
            (i for i, c in enumerate(combat.turns()) if c.id in new_ids), None
        )
        if turn_index is None:
            logger.debug("No summoned entry in turn order", combat_id=combat.id)
            return
        try:
            await combat.set_turn(turn_index)
        except Exception:
            logger.warning(
                "Failed to set turn to summoned combatant",
                combat_id=combat.id,
                turn=turn_index,
                exc_info=True,
            )
            return
        logger.debug("Turn set to summoned combatant", combat_id=combat.id, turn=turn_index)


__all__ = [
    "INITIATIVE_STEP",
    "step_initiative",
    "plan_initiative_bumps",
    "CombatIntegrator",
]
