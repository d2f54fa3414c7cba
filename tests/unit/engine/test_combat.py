"""Tests for turn-order integration."""

from __future__ import annotations

import pytest

from pf1_summons.core.config import Settings
from pf1_summons.core.exceptions import CombatIntegrationError
from pf1_summons.engine.combat import (
    CombatIntegrator,
    plan_initiative_bumps,
    step_initiative,
)
from pf1_summons.host.memory import InMemoryHost, MemoryCombat
from pf1_summons.models import ActorDocument, Combatant, HookEvent


@pytest.fixture
def integrator(host: InMemoryHost, settings: Settings) -> CombatIntegrator:
    """Integrator bound to the scene with a short token wait."""
    return CombatIntegrator(host.scene, settings.tracking)


@pytest.fixture
def combat(host: InMemoryHost, summoner: ActorDocument) -> MemoryCombat:
    """A session with the summoner on 10 and a goblin on 10.01."""
    session = host.start_combat(combat_id="combat-1")
    session.add(
        Combatant(
            id="c-ezren",
            token_id="ezren-token",
            actor_id=summoner.id,
            name="Ezren",
            initiative=10.0,
        )
    )
    session.add(Combatant(id="c-goblin", name="Goblin", initiative=10.01))
    session.sort()
    return session


@pytest.fixture
def placed_rats(host: InMemoryHost) -> list[str]:
    """Two placed tokens of one summoned actor."""
    rat = host.actors.add(ActorDocument(id="rat", name="Dire Rat"))
    return [host.scene.place_actor(rat, x=5.0).id, host.scene.place_actor(rat, x=10.0).id]


def entry(combat: MemoryCombat, combatant_id: str) -> Combatant:
    return next(c for c in combat.combatants() if c.id == combatant_id)


class TestPlanInitiativeBumps:
    """Tests for collision planning."""

    def test_step_rounds_to_two_decimals(self) -> None:
        """Test steps do not accumulate float error."""
        assert step_initiative(10.0) == 10.01
        assert step_initiative(0.29) == 0.3

    def test_no_collision(self) -> None:
        """Test nothing moves when the slot is free."""
        combatants = [Combatant(id="a", initiative=12.0), Combatant(id="b", initiative=8.0)]

        assert plan_initiative_bumps(combatants, new_ids=set(), summoner_id=None, target=10.01) == {}

    def test_cascading_bumps(self) -> None:
        """Test entries on consecutive slots cascade upward."""
        combatants = [
            Combatant(id="summoner", initiative=10.0),
            Combatant(id="a", initiative=10.01),
            Combatant(id="b", initiative=10.02),
            Combatant(id="c", initiative=10.05),
            Combatant(id="new", initiative=10.01),
        ]

        bumps = plan_initiative_bumps(
            combatants,
            new_ids={"new"},
            summoner_id="summoner",
            target=10.01,
        )

        assert bumps == {"a": 10.02, "b": 10.03}

    def test_summoner_never_bumped(self) -> None:
        """Test the summoner's own entry keeps its initiative."""
        combatants = [Combatant(id="summoner", initiative=10.01)]

        bumps = plan_initiative_bumps(
            combatants,
            new_ids=set(),
            summoner_id="summoner",
            target=10.01,
        )

        assert bumps == {}

    def test_unrolled_initiative_ignored(self) -> None:
        """Test entries without initiative are never moved."""
        combatants = [Combatant(id="a", initiative=None), Combatant(id="b", initiative=5.01)]

        assert plan_initiative_bumps(combatants, new_ids=set(), summoner_id=None, target=5.01) == {
            "b": 5.02
        }


class TestIntegrate:
    """Tests for CombatIntegrator.integrate."""

    @pytest.mark.asyncio
    async def test_summons_act_after_summoner(
        self,
        integrator: CombatIntegrator,
        combat: MemoryCombat,
        placed_rats: list[str],
    ) -> None:
        """Test new entries sit just above the summoner and take the turn."""
        created = await integrator.integrate(
            combat,
            actor_id="rat",
            summoner_id="ezren",
            token_ids=placed_rats,
        )

        assert {c.token_id for c in created} == set(placed_rats)
        assert all(entry(combat, c.id).initiative == 10.01 for c in created)
        assert entry(combat, "c-goblin").initiative == 10.02
        assert entry(combat, "c-ezren").initiative == 10.0
        assert [c.id for c in combat.turns()][0] == "c-goblin"
        current = combat.current()
        assert current is not None
        assert current.id in {c.id for c in created}

    @pytest.mark.asyncio
    async def test_turn_change_is_signalled(
        self,
        host: InMemoryHost,
        integrator: CombatIntegrator,
        combat: MemoryCombat,
        placed_rats: list[str],
    ) -> None:
        """Test handing the turn over fires the combat update hook."""
        seen: list[set[str]] = []

        async def record(_combat: MemoryCombat, changed: set[str]) -> None:
            seen.append(changed)

        host.hooks.on(HookEvent.UPDATE_COMBAT, record)

        await integrator.integrate(combat, actor_id="rat", summoner_id="ezren", token_ids=placed_rats)

        assert seen == [{"turn"}]

    @pytest.mark.asyncio
    async def test_summoner_without_entry_starts_from_zero(
        self,
        host: InMemoryHost,
        integrator: CombatIntegrator,
        placed_rats: list[str],
    ) -> None:
        """Test summons get 0.01 when the summoner is not in the session."""
        combat = host.start_combat()

        created = await integrator.integrate(
            combat, actor_id="rat", summoner_id="ezren", token_ids=placed_rats
        )

        assert all(entry(combat, c.id).initiative == 0.01 for c in created)

    @pytest.mark.asyncio
    async def test_no_tokens_skips_setup(
        self,
        integrator: CombatIntegrator,
        combat: MemoryCombat,
    ) -> None:
        """Test nothing is created when the actor has no tokens."""
        created = await integrator.integrate(
            combat, actor_id="ghost", summoner_id="ezren", token_ids=[]
        )

        assert created == []
        assert len(combat.combatants()) == 2

    @pytest.mark.asyncio
    async def test_rejected_bump_is_isolated(
        self,
        integrator: CombatIntegrator,
        combat: MemoryCombat,
        placed_rats: list[str],
    ) -> None:
        """Test a failed update leaves the entry and integration continues."""
        combat.fail_updates_for = {"c-goblin"}

        created = await integrator.integrate(
            combat, actor_id="rat", summoner_id="ezren", token_ids=placed_rats
        )

        assert len(created) == 2
        assert entry(combat, "c-goblin").initiative == 10.01
        assert combat.current() is not None

    @pytest.mark.asyncio
    async def test_rejected_creation_raises(
        self,
        integrator: CombatIntegrator,
        combat: MemoryCombat,
        placed_rats: list[str],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test a session refusing new entries raises CombatIntegrationError."""

        async def refuse(data: list[Combatant]) -> list[Combatant]:
            raise RuntimeError("Session locked")

        monkeypatch.setattr(combat, "create_combatants", refuse)

        with pytest.raises(CombatIntegrationError) as exc_info:
            await integrator.integrate(
                combat, actor_id="rat", summoner_id="ezren", token_ids=placed_rats
            )

        assert exc_info.value.details["combat_id"] == "combat-1"
        assert exc_info.value.details["round_number"] == 1


class TestWaitForTokens:
    """Tests for the bounded token wait."""

    @pytest.mark.asyncio
    async def test_resolved_immediately(
        self,
        integrator: CombatIntegrator,
        placed_rats: list[str],
    ) -> None:
        """Test registered tokens end the wait at once."""
        assert await integrator.wait_for_tokens(placed_rats) is True

    @pytest.mark.asyncio
    async def test_times_out(self, integrator: CombatIntegrator) -> None:
        """Test unknown tokens give up after the timeout."""
        assert await integrator.wait_for_tokens(["missing"]) is False

    @pytest.mark.asyncio
    async def test_nothing_to_wait_for(self, integrator: CombatIntegrator) -> None:
        """Test an empty id list needs no wait."""
        assert await integrator.wait_for_tokens([]) is True
