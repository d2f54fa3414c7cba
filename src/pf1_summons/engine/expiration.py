"""Expiration tracking driven by time-moving signals.

Three host signals move time forward: a turn or round change in a session,
a world-clock change, and the end of a session. Each handler walks the
world's actors in collection order, and for every owner with records it
re-evaluates that owner's ledger inside the ledger lock. A record younger
than the grace period is never evaluated, so a summon cannot expire in the
same tick that created it.

Processing is isolated per owner: a failure is logged with its traceback,
the owner's stored list keeps its prior state, and the next owner is
processed as usual.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Collection
from datetime import datetime

from pf1_summons.core.config import TrackingSettings
from pf1_summons.core.logging import get_logger
from pf1_summons.engine.chat import expired_card
from pf1_summons.engine.ledger import ExpirationLedger, Record
from pf1_summons.host.protocols import CombatSession, Host
from pf1_summons.models import (
    ActorDocument,
    CalendarExpiration,
    Combatant,
    CombatExpiration,
    SummonDeleteControl,
    utc_now,
)


logger = get_logger(__name__)

TURN_KEYS = frozenset({"round", "turn"})


def current_combatant(combat: CombatSession) -> Combatant | None:
    """The entry whose turn it is, if the pointer is valid."""
    turns = combat.turns()
    if combat.turn is None or not 0 <= combat.turn < len(turns):
        return None
    return turns[combat.turn]


class ExpirationTracker:
    """Expires, announces and converts summon durations.

    Attributes:
        host: Host collaborators.
        ledger: Per-owner record storage.
        tracking: Grace period and round length.
        now: Wall-clock source used for record ages.
    """

    def __init__(
        self,
        host: Host,
        ledger: ExpirationLedger,
        tracking: TrackingSettings,
        *,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self.host = host
        self.ledger = ledger
        self.tracking = tracking
        self.now = now

    # -------------------------------------------------------------------------
    # Signals
    # -------------------------------------------------------------------------

    async def on_update_combat(
        self,
        combat: CombatSession | None,
        changed: Collection[str],
    ) -> None:
        """Handle a turn or round change in a session."""
        if combat is None:
            logger.debug("Combat update without a session, skipping")
            return
        if not TURN_KEYS.intersection(changed):
            return

        async def expire(owner: ActorDocument) -> None:
            await self._expire_combat_records(owner, combat)

        await self._for_each_owner("update_combat", expire)

    async def on_update_world_time(self, world_time: float, delta: float = 0.0) -> None:
        """Handle a world-clock change."""
        logger.debug("World time updated", world_time=world_time, delta=delta)

        async def expire(owner: ActorDocument) -> None:
            await self._expire_calendar_records(owner, world_time)

        await self._for_each_owner("update_world_time", expire)

    async def on_delete_combat(self, combat: CombatSession) -> None:
        """Convert the ended session's records to world-clock deadlines."""
        final_round = combat.round or 0
        world_time = self.host.clock.world_time
        logger.info("Combat ended, converting durations", combat_id=combat.id, final_round=final_round)

        async def convert(owner: ActorDocument) -> None:
            await self._convert_records(owner, combat.id, final_round, world_time)

        await self._for_each_owner("delete_combat", convert)

    # -------------------------------------------------------------------------
    # Per-owner processing
    # -------------------------------------------------------------------------

    async def _for_each_owner(
        self,
        signal: str,
        process: Callable[[ActorDocument], Awaitable[None]],
    ) -> None:
        for owner in self.host.actors.contents():
            if not self.ledger.has_records(owner.id):
                continue
            try:
                await process(owner)
            except Exception:
                logger.exception("Expiration processing failed", signal=signal, owner_id=owner.id)

    async def _expire_combat_records(self, owner: ActorDocument, combat: CombatSession) -> None:
        now = self.now()
        active = current_combatant(combat)

        async with self.ledger.edit(owner.id) as edit:
            kept: list[Record] = []
            for record in edit.records:
                if not isinstance(record, CombatExpiration) or record.combat_id != combat.id:
                    kept.append(record)
                    continue
                if self._is_fresh(record, now):
                    kept.append(record)
                    continue

                live = self.live_token_ids(record.actor_id)
                if not live:
                    await self._announce(owner, [record], all_defeated=True)
                elif (
                    combat.round >= record.expire_round
                    and active is not None
                    and active.token_id in live
                ):
                    await self._announce(owner, [record])
                else:
                    kept.append(record)
            edit.records = kept

    async def _expire_calendar_records(self, owner: ActorDocument, world_time: float) -> None:
        now = self.now()

        async with self.ledger.edit(owner.id) as edit:
            kept: list[Record] = []
            expired: list[Record] = []
            defeated: list[bool] = []
            for record in edit.records:
                if not isinstance(record, CalendarExpiration) or self._is_fresh(record, now):
                    kept.append(record)
                    continue

                live = self.live_token_ids(record.actor_id)
                if not live or world_time >= record.expire_time:
                    expired.append(record)
                    defeated.append(not live)
                else:
                    kept.append(record)

            if expired:
                await self._announce(owner, expired, all_defeated=all(defeated))
            edit.records = kept

    async def _convert_records(
        self,
        owner: ActorDocument,
        combat_id: str,
        final_round: int,
        world_time: float,
    ) -> None:
        async with self.ledger.edit(owner.id) as edit:
            converted: list[Record] = []
            for record in edit.records:
                if not isinstance(record, CombatExpiration) or record.combat_id != combat_id:
                    converted.append(record)
                    continue

                calendar = record.to_calendar(
                    final_round=final_round,
                    world_time=world_time,
                    seconds_per_round=self.tracking.seconds_per_round,
                    now=self.now(),
                )
                if calendar is None:
                    logger.debug(
                        "Dropping already expired record",
                        owner_id=owner.id,
                        actor_id=record.actor_id,
                        expire_round=record.expire_round,
                    )
                    continue
                converted.append(calendar)
                logger.debug(
                    "Record converted to calendar",
                    owner_id=owner.id,
                    actor_id=record.actor_id,
                    expire_time=calendar.expire_time,
                )
            edit.records = converted

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def live_token_ids(self, actor_id: str) -> list[str]:
        """Placed tokens of an actor that are not defeated."""
        return [
            t.id for t in self.host.scene.tokens() if t.actor_id == actor_id and not t.defeated
        ]

    def _is_fresh(self, record: Record, now: datetime) -> bool:
        fresh = record.age_seconds(now) < self.tracking.expiration_grace_seconds
        if fresh:
            logger.debug("Skipping freshly created record", actor_id=record.actor_id)
        return fresh

    async def _announce(
        self,
        owner: ActorDocument,
        records: list[Record],
        *,
        all_defeated: bool = False,
    ) -> None:
        controls = [
            SummonDeleteControl(actor_id=r.actor_id, summoner_id=owner.id) for r in records
        ]
        await self.host.chat.post(expired_card(controls, all_defeated=all_defeated))
        logger.info(
            "Summon expired",
            owner_id=owner.id,
            actor_ids=[r.actor_id for r in records],
            all_defeated=all_defeated,
        )


__all__ = ["TURN_KEYS", "current_combatant", "ExpirationTracker"]
