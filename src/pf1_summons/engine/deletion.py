"""Manual and post-expiry removal of a summon."""

from __future__ import annotations

from collections.abc import Awaitable

from pf1_summons.core.logging import get_logger
from pf1_summons.engine.chat import deleted_card
from pf1_summons.engine.ledger import ExpirationLedger
from pf1_summons.host.protocols import CombatSession, Host


logger = get_logger(__name__)


class SummonDeleter:
    """Reclaims everything a summon left behind.

    Steps run in order: turn-order entries, scene tokens, the actor, the
    owner's ledger entries, turn-order recomputation, announcement. A failing
    step is logged and the remaining steps still run, and every step is a
    no-op when its target is already gone, so deleting twice is harmless.
    """

    def __init__(self, host: Host, ledger: ExpirationLedger) -> None:
        self.host = host
        self.ledger = ledger

    async def delete(self, actor_id: str, summoner_id: str) -> None:
        """Delete a summon by actor and owner identity.

        Args:
            actor_id: The summoned actor.
            summoner_id: The actor whose ledger holds the summon's record.
        """
        combat = self.host.active_combat()
        if combat is not None:
            await self._step("remove combatants", self._remove_combatants(combat, actor_id))
        await self._step("remove tokens", self._remove_tokens(actor_id))
        await self._step("delete actor", self._delete_actor(actor_id))
        await self._step("strip ledger", self._strip_ledger(actor_id, summoner_id))
        if combat is not None:
            await self._step("setup turns", combat.setup_turns())
        await self._step("announce", self.host.chat.post(deleted_card()))
        logger.info("Summon deleted", actor_id=actor_id, summoner_id=summoner_id)

    async def _step(self, name: str, operation: Awaitable[object]) -> None:
        try:
            await operation
        except Exception:
            logger.warning("Summon deletion step failed", step=name, exc_info=True)

    async def _remove_combatants(self, combat: CombatSession, actor_id: str) -> None:
        ids = [c.id for c in combat.combatants() if c.actor_id == actor_id]
        if not ids:
            return
        await combat.delete_combatants(ids)
        logger.debug("Combatants removed", combat_id=combat.id, count=len(ids))

    async def _remove_tokens(self, actor_id: str) -> None:
        scene = self.host.scene
        ids = [t.id for t in scene.tokens() if t.actor_id == actor_id]
        if not ids:
            return
        try:
            await scene.delete_tokens(ids)
        except Exception:
            logger.warning("Batch token deletion rejected, deleting one by one", count=len(ids))
            for token_id in ids:
                await scene.delete_token(token_id)
        logger.debug("Tokens removed", actor_id=actor_id, count=len(ids))

    async def _delete_actor(self, actor_id: str) -> None:
        if self.host.actors.get(actor_id) is None:
            logger.debug("Summoned actor already gone", actor_id=actor_id)
            return
        await self.host.actors.delete(actor_id)

    async def _strip_ledger(self, actor_id: str, summoner_id: str) -> None:
        if self.host.actors.get(summoner_id) is None:
            logger.debug("Summoner not found, ledger untouched", summoner_id=summoner_id)
            return
        async with self.ledger.edit(summoner_id) as edit:
            edit.records = [r for r in edit.records if r.actor_id != actor_id]


__all__ = ["SummonDeleter"]
