"""Pytest configuration and shared fixtures.

This module provides the in-memory host, a summoner standing on the scene,
seeded catalog packs and a controllable wall clock for the pf1-summons test
suite.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import pytest

from pf1_summons.core.config import (
    Settings,
    SummonSettings,
    TrackingSettings,
    clear_settings_cache,
)
from pf1_summons.engine.dice import DiceRoller
from pf1_summons.host.memory import InMemoryHost
from pf1_summons.lifecycle import SummonsModule
from pf1_summons.models import (
    ActorDocument,
    ItemDocument,
    OwnershipLevel,
    PackInfo,
    Spellbook,
    SpellbookKey,
    SummonFormOptions,
    SummonRequest,
    TokenDisposition,
    TokenDocument,
)


if TYPE_CHECKING:
    from collections.abc import Callable, Generator


MONSTER_PACK = "summons-for-pf1e.summon-monster"
TEMPLATE_PACK = "summons-for-pf1e.summon-templates"


# =============================================================================
# Helpers
# =============================================================================


class WallClock:
    """Controllable replacement for the wall-clock source."""

    def __init__(self) -> None:
        self.current = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


class StaticForm:
    """Form collector that submits a fixed request."""

    def __init__(self, request: SummonRequest | None) -> None:
        self.request = request
        self.options: list[SummonFormOptions] = []

    async def collect(self, options: SummonFormOptions) -> SummonRequest | None:
        self.options.append(options)
        return self.request


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def settings() -> Settings:
    """Settings with every optional feature enabled and a short token wait."""
    return Settings(
        summons=SummonSettings(
            enable_augment_summoning=True,
            enable_extend_metamagic=True,
            enable_reach_metamagic=True,
            enable_conjured_armor=True,
            enable_harrowed_summoning=True,
        ),
        tracking=TrackingSettings(
            token_wait_timeout=0.2,
            token_poll_interval=0.01,
            token_poll_max_interval=0.05,
        ),
    )


# =============================================================================
# Host Fixtures
# =============================================================================


@pytest.fixture
def wall_clock() -> WallClock:
    """Wall clock starting at a fixed instant."""
    return WallClock()


@pytest.fixture
def host() -> InMemoryHost:
    """In-memory host with monster and template packs."""
    host = InMemoryHost(world_time=1000.0)
    host.catalog.add_pack(
        PackInfo(
            id=MONSTER_PACK,
            title="Summon Monster",
            package_name="summons-for-pf1e",
            name="summon-monster",
        ),
        actors=[
            ActorDocument(id="direrat", name="Dire Rat*", hit_dice=1),
            ActorDocument(id="eagle", name="Eagle*", hit_dice=6),
            ActorDocument(id="lantern", name="Lantern Archon", hit_dice=2),
        ],
    )
    host.catalog.add_pack(
        PackInfo(
            id=TEMPLATE_PACK,
            title="Summon Templates",
            package_name="summons-for-pf1e",
            name="summon-templates",
            document_name="Item",
        ),
        items=[
            ItemDocument(id="celestial", name="Celestial"),
            ItemDocument(id="fiendish", name="Fiendish"),
            ItemDocument(id="dark", name="Dark"),
        ],
    )
    return host


@pytest.fixture
def summoner(host: InMemoryHost) -> ActorDocument:
    """A CL 5 wizard with its token on the scene, selected and owned."""
    actor = host.actors.add(
        ActorDocument(
            id="ezren",
            name="Ezren",
            alignment="ng",
            spellbooks={
                SpellbookKey.PRIMARY: Spellbook(class_name="wizard", in_use=True, cl_total=5),
            },
            ownership={"default": OwnershipLevel.NONE},
        )
    )
    token = host.scene.add_token(
        TokenDocument(
            id="ezren-token",
            actor_id=actor.id,
            name=actor.name,
            disposition=TokenDisposition.FRIENDLY,
        )
    )
    host.scene.controlled.add(token.id)
    host.scene.owned.add(token.id)
    return actor


@pytest.fixture
def summoner_token(host: InMemoryHost, summoner: ActorDocument) -> TokenDocument:
    """The summoner's token."""
    token = host.scene.get_token("ezren-token")
    assert token is not None
    return token


@pytest.fixture
def module(host: InMemoryHost, settings: Settings, wall_clock: WallClock) -> SummonsModule:
    """Initialized summons module bound to the in-memory host."""
    summons = SummonsModule(
        host,
        settings,
        roller=DiceRoller(seed=42),
        now=wall_clock,
    )
    summons.initialize()
    return summons


@pytest.fixture
def make_request() -> Callable[..., SummonRequest]:
    """Factory for form submissions, summoning one Dire Rat by default."""

    def _make(**overrides: object) -> SummonRequest:
        data: dict[str, object] = {"pack_id": MONSTER_PACK, "monster_id": "direrat"}
        data.update(overrides)
        return SummonRequest.model_validate(data)

    return _make


@pytest.fixture
def make_form() -> Callable[[SummonRequest | None], StaticForm]:
    """Factory for forms submitting a fixed request."""
    return StaticForm
