"""Process-wide lifecycle of the summons module.

``SummonsModule`` owns the ledger, tracker, deleter and pipeline for one
host. ``initialize`` registers the four hook handlers exactly once and
remembers their registration ids; ``shutdown`` removes them again.
"""

from __future__ import annotations

from collections.abc import Callable, Collection
from datetime import datetime

from pf1_summons.core.config import Settings, get_settings
from pf1_summons.core.logging import bind_context, clear_context, configure_logging, get_logger
from pf1_summons.engine.deletion import SummonDeleter
from pf1_summons.engine.dice import DiceRoller
from pf1_summons.engine.expiration import ExpirationTracker
from pf1_summons.engine.ledger import ExpirationLedger
from pf1_summons.engine.manager import SummonManager, SummonOutcome
from pf1_summons.engine.workflow import FormCollector, open_summon_workflow
from pf1_summons.host.protocols import CombatSession, Host
from pf1_summons.models import ActorDocument, HookEvent, SummonDeleteControl, utc_now


logger = get_logger(__name__)


class SummonsModule:
    """The summons module bound to one host.

    Example:
        >>> module = SummonsModule(host, collector=form)
        >>> module.initialize()
        >>> await module.open(summoner)
        >>> await module.delete_summon(actor_id, summoner_id)

    Attributes:
        host: Host collaborators.
        settings: Package settings.
        collector: Default summon form.
        ledger: Per-owner expiration records.
        tracker: Expiration state machine.
        deleter: Summon removal.
        manager: Summon pipeline.
    """

    def __init__(
        self,
        host: Host,
        settings: Settings | None = None,
        *,
        collector: FormCollector | None = None,
        roller: DiceRoller | None = None,
        now: Callable[[], datetime] = utc_now,
        configure_logs: bool = False,
    ) -> None:
        self.host = host
        self.settings = settings or get_settings()
        self.collector = collector
        self.ledger = ExpirationLedger(host.flags)
        self.tracker = ExpirationTracker(host, self.ledger, self.settings.tracking, now=now)
        self.deleter = SummonDeleter(host, self.ledger)
        self.manager = SummonManager(host, self.settings, self.ledger, roller=roller, now=now)
        self._configure_logs = configure_logs
        self._handler_ids: dict[HookEvent, int] = {}

    @property
    def initialized(self) -> bool:
        """Whether the hook handlers are registered."""
        return bool(self._handler_ids)

    def initialize(self) -> None:
        """Register the hook handlers; later calls do nothing."""
        if self.initialized:
            logger.debug("Summons module already initialized")
            return

        if self._configure_logs:
            configure_logging(level="DEBUG" if self.settings.debug else self.settings.log_level)

        hooks = self.host.hooks
        self._handler_ids = {
            HookEvent.UPDATE_COMBAT: hooks.on(HookEvent.UPDATE_COMBAT, self._on_update_combat),
            HookEvent.UPDATE_WORLD_TIME: hooks.on(
                HookEvent.UPDATE_WORLD_TIME, self.tracker.on_update_world_time
            ),
            HookEvent.DELETE_COMBAT: hooks.on(HookEvent.DELETE_COMBAT, self.tracker.on_delete_combat),
            HookEvent.ACTIVATE_DELETE_CONTROL: hooks.on(
                HookEvent.ACTIVATE_DELETE_CONTROL, self._on_activate_control
            ),
        }
        logger.info("Summons module initialized", hooks=[str(e) for e in self._handler_ids])

    def shutdown(self) -> None:
        """Unregister the hook handlers."""
        for event, handler_id in self._handler_ids.items():
            self.host.hooks.off(event, handler_id)
        self._handler_ids = {}
        logger.info("Summons module shut down")

    async def open(
        self,
        summoner: ActorDocument | None = None,
        *,
        collector: FormCollector | None = None,
    ) -> SummonOutcome | None:
        """Open the summon workflow for a summoner.

        Args:
            summoner: Actor to summon as; resolved from the scene when omitted.
            collector: Form to use instead of the module default.

        Returns:
            The summon outcome, or None if nothing was summoned.

        Raises:
            ValueError: If no form collector is available.
        """
        form = collector or self.collector
        if form is None:
            raise ValueError("A form collector is required to open the summon workflow")

        bind_context(summoner_id=summoner.id if summoner else None)
        try:
            return await open_summon_workflow(
                self.host, self.settings, self.manager, form, summoner
            )
        finally:
            clear_context()

    async def delete_summon(self, actor_id: str, summoner_id: str) -> None:
        """Delete a summon by actor and owner identity."""
        bind_context(actor_id=actor_id, summoner_id=summoner_id)
        try:
            await self.deleter.delete(actor_id, summoner_id)
        finally:
            clear_context()

    async def _on_update_combat(
        self,
        combat: CombatSession | None,
        changed: Collection[str],
        *args: object,
    ) -> None:
        await self.tracker.on_update_combat(combat, changed)

    async def _on_activate_control(self, control: SummonDeleteControl) -> None:
        await self.delete_summon(control.actor_id, control.summoner_id)


__all__ = ["SummonsModule"]
