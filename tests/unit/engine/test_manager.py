"""Tests for the summon pipeline."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

import pytest

from pf1_summons.core.config import Settings, TrackingSettings
from pf1_summons.core.exceptions import CatalogError
from pf1_summons.engine.chat import SUMMONED_TITLE
from pf1_summons.engine.dice import DiceRoller
from pf1_summons.engine.ledger import ExpirationLedger
from pf1_summons.engine.manager import SummonManager
from pf1_summons.engine.templates import AUGMENT_BUFF, CONJURED_ARMOR_BUFF, HARROW_BUFF
from pf1_summons.host.memory import InMemoryHost
from pf1_summons.models import (
    ActorDocument,
    AlignmentMatch,
    CalendarExpiration,
    Combatant,
    CombatExpiration,
    HarrowSuit,
    ItemType,
    OwnershipLevel,
    SummonRequest,
    TokenDisposition,
    TokenDocument,
)


if TYPE_CHECKING:
    from tests.conftest import WallClock


@pytest.fixture
def ledger(host: InMemoryHost) -> ExpirationLedger:
    """Ledger over the in-memory flag store."""
    return ExpirationLedger(host.flags)


@pytest.fixture
def manager(
    host: InMemoryHost,
    settings: Settings,
    ledger: ExpirationLedger,
    wall_clock: WallClock,
) -> SummonManager:
    """Pipeline with every feature enabled."""
    return SummonManager(host, settings, ledger, roller=DiceRoller(seed=5), now=wall_clock)


@pytest.fixture
def plain_manager(host: InMemoryHost, ledger: ExpirationLedger) -> SummonManager:
    """Pipeline with the stock feature flags."""
    settings = Settings(tracking=TrackingSettings(token_wait_timeout=0.2, token_poll_interval=0.01))
    return SummonManager(host, settings, ledger, roller=DiceRoller(seed=5))


class TestSummonOutsideCombat:
    """Tests for summons resolved against the world clock."""

    @pytest.mark.asyncio
    async def test_full_summon(
        self,
        host: InMemoryHost,
        manager: SummonManager,
        ledger: ExpirationLedger,
        summoner: ActorDocument,
        summoner_token: TokenDocument,
        make_request: Callable[..., SummonRequest],
        wall_clock: WallClock,
    ) -> None:
        """Test import, placement, tracking and announcement."""
        outcome = await manager.summon(summoner, summoner_token, make_request(count_formula="3"))

        assert outcome.count.total == 3
        assert outcome.caster_level.final == 5
        assert outcome.radius == 35
        assert outcome.spawn.spawned == 3
        assert len(outcome.spawn.token_ids) == 3

        actor = host.actors.get(outcome.actor.id)
        assert actor is not None
        assert actor.name == "Dire Rat*"
        assert actor.folder_id == host.folders.folders["Summons"]
        assert actor.ownership[host.user.id] == OwnershipLevel.OWNER
        assert actor.prototype_token.disposition == TokenDisposition.FRIENDLY

        record = outcome.record
        assert isinstance(record, CalendarExpiration)
        assert record.expire_time == 1030.0
        assert record.token_id == outcome.spawn.first_token_id
        assert record.created == wall_clock()
        assert ledger.records("ezren") == [record]

        cards = host.chat.titled(SUMMONED_TITLE)
        assert len(cards) == 1
        assert cards[0].body == "3 Dire Rat* summoned for 5 rounds."
        assert cards[0].roll

    @pytest.mark.asyncio
    async def test_catalog_actor_not_modified(
        self,
        host: InMemoryHost,
        manager: SummonManager,
        summoner: ActorDocument,
        summoner_token: TokenDocument,
        make_request: Callable[..., SummonRequest],
    ) -> None:
        """Test the pack entry is copied, never changed."""
        await manager.summon(summoner, summoner_token, make_request(template="Celestial"))

        source = await host.catalog.get_actor("summons-for-pf1e.summon-monster", "direrat")
        assert source.name == "Dire Rat*"
        assert source.items == []

    @pytest.mark.asyncio
    async def test_unknown_monster_raises(
        self,
        manager: SummonManager,
        summoner: ActorDocument,
        summoner_token: TokenDocument,
        make_request: Callable[..., SummonRequest],
    ) -> None:
        """Test a missing catalog entry aborts the summon."""
        with pytest.raises(CatalogError):
            await manager.summon(summoner, summoner_token, make_request(monster_id="tarrasque"))

    @pytest.mark.asyncio
    async def test_invalid_count_formula(
        self,
        host: InMemoryHost,
        manager: SummonManager,
        summoner: ActorDocument,
        summoner_token: TokenDocument,
        make_request: Callable[..., SummonRequest],
    ) -> None:
        """Test an unsafe formula is reported and one summon is placed."""
        outcome = await manager.summon(
            summoner, summoner_token, make_request(count_formula="1d4-1")
        )

        assert outcome.count.total == 1
        assert host.notifications.of_level("error") == [
            "1d4-1 not a valid roll formula. Defaulting to 1."
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("formula", ["1d0", "1001d1"])
    async def test_unrollable_count_formula(
        self,
        host: InMemoryHost,
        manager: SummonManager,
        summoner: ActorDocument,
        summoner_token: TokenDocument,
        make_request: Callable[..., SummonRequest],
        formula: str,
    ) -> None:
        """Test a formula the dice cannot roll still summons one creature."""
        outcome = await manager.summon(summoner, summoner_token, make_request(count_formula=formula))

        assert outcome.count.fell_back is True
        assert outcome.spawn.spawned == 1
        assert outcome.record is not None
        assert host.notifications.of_level("error") == [
            f"{formula} not a valid roll formula. Defaulting to 1."
        ]
        assert len(host.chat.titled(SUMMONED_TITLE)) == 1

    @pytest.mark.asyncio
    async def test_rolled_count_drives_placement(
        self,
        host: InMemoryHost,
        ledger: ExpirationLedger,
        settings: Settings,
        summoner: ActorDocument,
        summoner_token: TokenDocument,
        make_request: Callable[..., SummonRequest],
    ) -> None:
        """Test a seeded dice formula places exactly the rolled number."""
        expected = DiceRoller(seed=9).roll("1d4+1").total
        manager = SummonManager(host, settings, ledger, roller=DiceRoller(seed=9))

        outcome = await manager.summon(
            summoner, summoner_token, make_request(count_formula="1d4+1")
        )

        assert outcome.count.fell_back is False
        assert outcome.count.total == expected
        assert outcome.spawn.spawned == expected
        assert len(host.placement.requests) == expected
        assert len(outcome.spawn.token_ids) == expected
        assert outcome.radius == 35
        assert isinstance(outcome.record, CalendarExpiration)
        assert outcome.record.expire_time == 1000.0 + 30
        cards = host.chat.titled(SUMMONED_TITLE)
        assert cards[0].body == f"{expected} Dire Rat* summoned for 5 rounds."

    @pytest.mark.asyncio
    async def test_rejected_override(
        self,
        host: InMemoryHost,
        manager: SummonManager,
        summoner: ActorDocument,
        summoner_token: TokenDocument,
        make_request: Callable[..., SummonRequest],
    ) -> None:
        """Test a non-positive override falls back to the spellbook."""
        outcome = await manager.summon(summoner, summoner_token, make_request(cl_override=0))

        assert outcome.caster_level.final == 5
        assert host.notifications.of_level("error") == [
            "0 not a valid caster level. Defaulting to spellbook CL."
        ]

    @pytest.mark.asyncio
    async def test_override_sets_radius_and_duration(
        self,
        manager: SummonManager,
        summoner: ActorDocument,
        summoner_token: TokenDocument,
        make_request: Callable[..., SummonRequest],
    ) -> None:
        """Test a manual caster level drives both range and rounds."""
        outcome = await manager.summon(
            summoner, summoner_token, make_request(cl_override=12, reach=True)
        )

        assert outcome.radius == 220
        assert outcome.caster_level.final == 12


class TestTemplatesAndBuffs:
    """Tests for template and buff selections."""

    @pytest.mark.asyncio
    async def test_template_applied(
        self,
        manager: SummonManager,
        summoner: ActorDocument,
        summoner_token: TokenDocument,
        make_request: Callable[..., SummonRequest],
    ) -> None:
        """Test a starred monster takes the template."""
        outcome = await manager.summon(summoner, summoner_token, make_request(template="Celestial"))

        assert outcome.actor.name == "Dire Rat*, Celestial"
        assert outcome.actor.alignment == "ng"
        assert len(outcome.actor.energy_resistances) == 3

    @pytest.mark.asyncio
    async def test_template_ignored_for_unstarred_monster(
        self,
        manager: SummonManager,
        summoner: ActorDocument,
        summoner_token: TokenDocument,
        make_request: Callable[..., SummonRequest],
    ) -> None:
        """Test monsters without the marker keep their name."""
        outcome = await manager.summon(
            summoner,
            summoner_token,
            make_request(monster_id="lantern", template="Celestial"),
        )

        assert outcome.actor.name == "Lantern Archon"
        assert outcome.actor.energy_resistances == []

    @pytest.mark.asyncio
    async def test_missing_template_reported(
        self,
        host: InMemoryHost,
        manager: SummonManager,
        summoner: ActorDocument,
        summoner_token: TokenDocument,
        make_request: Callable[..., SummonRequest],
    ) -> None:
        """Test a missing template is reported and the summon proceeds."""
        outcome = await manager.summon(summoner, summoner_token, make_request(template="Entropic"))

        assert host.notifications.of_level("error") == ["Template Entropic not found."]
        assert outcome.actor.name == "Dire Rat*"
        assert outcome.spawn.spawned == 1

    @pytest.mark.asyncio
    async def test_buffs_applied(
        self,
        manager: SummonManager,
        summoner: ActorDocument,
        summoner_token: TokenDocument,
        make_request: Callable[..., SummonRequest],
    ) -> None:
        """Test augment and harrow buffs are added when requested."""
        outcome = await manager.summon(
            summoner,
            summoner_token,
            make_request(augment=True, harrow_suits=(HarrowSuit.BOOKS, HarrowSuit.BOOKS)),
        )

        actor = outcome.actor
        assert actor.name == "Dire Rat* (Augmented)"
        assert actor.find_item(AUGMENT_BUFF, ItemType.BUFF) is not None
        assert actor.find_item(HARROW_BUFF, ItemType.BUFF) is not None
        assert actor.find_item(CONJURED_ARMOR_BUFF, ItemType.BUFF) is None

    @pytest.mark.asyncio
    async def test_harrow_alignment_match_and_extend(
        self,
        manager: SummonManager,
        summoner: ActorDocument,
        summoner_token: TokenDocument,
        make_request: Callable[..., SummonRequest],
    ) -> None:
        """Test Extend and a harrow match both lengthen the duration."""
        outcome = await manager.summon(
            summoner,
            summoner_token,
            make_request(extend=True, alignment_match=AlignmentMatch.DOUBLE),
        )

        assert outcome.caster_level.final == 20
        assert outcome.radius == 35

    @pytest.mark.asyncio
    async def test_disabled_features_ignored(
        self,
        plain_manager: SummonManager,
        summoner: ActorDocument,
        summoner_token: TokenDocument,
        make_request: Callable[..., SummonRequest],
    ) -> None:
        """Test options whose feature flag is off have no effect."""
        outcome = await plain_manager.summon(
            summoner,
            summoner_token,
            make_request(
                augment=True,
                extend=True,
                reach=True,
                conjured_armor=True,
                harrow_suits=(HarrowSuit.STARS, None),
                alignment_match=AlignmentMatch.DOUBLE,
            ),
        )

        assert outcome.caster_level.final == 5
        assert outcome.radius == 35
        assert outcome.actor.items == []
        assert outcome.actor.name == "Dire Rat*"


class TestOwnership:
    """Tests for ownership of the created actor."""

    @pytest.mark.asyncio
    async def test_gm_copies_player_ownership(
        self,
        host: InMemoryHost,
        manager: SummonManager,
        summoner: ActorDocument,
        summoner_token: TokenDocument,
        make_request: Callable[..., SummonRequest],
    ) -> None:
        """Test the summon can inherit the summoner's owners."""
        summoner.has_player_owner = True
        summoner.ownership = {"default": OwnershipLevel.NONE, "player-1": OwnershipLevel.OWNER}

        outcome = await manager.summon(
            summoner, summoner_token, make_request(give_owner_ownership=True)
        )

        assert outcome.actor.ownership == summoner.ownership

    @pytest.mark.asyncio
    async def test_player_owns_summon(
        self,
        host: InMemoryHost,
        manager: SummonManager,
        summoner: ActorDocument,
        summoner_token: TokenDocument,
        make_request: Callable[..., SummonRequest],
    ) -> None:
        """Test the summoning user owns the summon otherwise."""
        host.user.is_gm = False

        outcome = await manager.summon(
            summoner, summoner_token, make_request(give_owner_ownership=True)
        )

        assert outcome.actor.ownership == {host.user.id: OwnershipLevel.OWNER}


class TestSpawnOutcomes:
    """Tests for partial and failed placement."""

    @pytest.mark.asyncio
    async def test_partial_spawn_is_tracked(
        self,
        host: InMemoryHost,
        manager: SummonManager,
        ledger: ExpirationLedger,
        summoner: ActorDocument,
        summoner_token: TokenDocument,
        make_request: Callable[..., SummonRequest],
    ) -> None:
        """Test a cancelled placement keeps what was placed."""
        host.placement.cancel_on = {1}

        outcome = await manager.summon(summoner, summoner_token, make_request(count_formula="3"))

        assert outcome.spawn.spawned == 1
        assert outcome.record is not None
        assert len(ledger.records("ezren")) == 1
        assert host.notifications.of_level("warn") == [
            "Summoning stopped after 1 of 3 placements."
        ]
        cards = host.chat.titled(SUMMONED_TITLE)
        assert [c.body for c in cards] == ["1 Dire Rat* summoned for 5 rounds."]

    @pytest.mark.asyncio
    async def test_nothing_placed_is_not_tracked(
        self,
        host: InMemoryHost,
        manager: SummonManager,
        ledger: ExpirationLedger,
        summoner: ActorDocument,
        summoner_token: TokenDocument,
        make_request: Callable[..., SummonRequest],
    ) -> None:
        """Test no record is written when the first placement is cancelled."""
        host.placement.cancel_on = {0}

        outcome = await manager.summon(summoner, summoner_token, make_request())

        assert outcome.record is None
        assert ledger.records("ezren") == []
        assert host.actors.get(outcome.actor.id) is None
        assert host.chat.titled(SUMMONED_TITLE) == []


class TestSummonInCombat:
    """Tests for summons inside a turn-order session."""

    @pytest.mark.asyncio
    async def test_combat_record_and_entries(
        self,
        host: InMemoryHost,
        manager: SummonManager,
        summoner: ActorDocument,
        summoner_token: TokenDocument,
        make_request: Callable[..., SummonRequest],
    ) -> None:
        """Test the record counts rounds and the summons join the turn order."""
        combat = host.start_combat(combat_id="combat-1")
        combat.add(Combatant(id="c-ezren", token_id="ezren-token", actor_id="ezren", initiative=14))
        combat.sort()

        outcome = await manager.summon(summoner, summoner_token, make_request(count_formula="2"))

        record = outcome.record
        assert isinstance(record, CombatExpiration)
        assert record.combat_id == "combat-1"
        assert record.expire_round == 6
        summons = [c for c in combat.combatants() if c.actor_id == outcome.actor.id]
        assert len(summons) == 2
        assert {c.initiative for c in summons} == {14.01}
        current = combat.current()
        assert current is not None
        assert current.actor_id == outcome.actor.id

    @pytest.mark.asyncio
    async def test_integration_failure_does_not_abort(
        self,
        host: InMemoryHost,
        manager: SummonManager,
        summoner: ActorDocument,
        summoner_token: TokenDocument,
        make_request: Callable[..., SummonRequest],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test a session refusing entries still completes the summon."""
        combat = host.start_combat(combat_id="combat-1")

        async def refuse(data: list[Combatant]) -> list[Combatant]:
            raise RuntimeError("Session locked")

        monkeypatch.setattr(combat, "create_combatants", refuse)

        outcome = await manager.summon(summoner, summoner_token, make_request())

        assert isinstance(outcome.record, CombatExpiration)
        assert len(host.chat.titled(SUMMONED_TITLE)) == 1
