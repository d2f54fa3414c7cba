"""Summon engine for pf1-summons.

This module provides the summon pipeline and the expiration state machine:
resolving caster level, count and radius, applying templates and buffs,
placing instances, wiring them into turn order, and tracking and
reclaiming them once their duration runs out.

Submodules:
    dice: Dice evaluation (d20 library)
    caster_level: Caster level and placement radius
    count: Summon count resolution
    templates: Template and buff application
    spawn: Sequential placement loop
    combat: Turn-order integration and initiative collisions
    ledger: Per-owner expiration records
    expiration: Expiration tracking across both clocks
    deletion: Summon removal
    chat: Chat cards
    manager: The summon pipeline
    workflow: Summoner resolution and the form entry point

Example:
    >>> from pf1_summons.engine import ExpirationLedger, SummonManager
    >>>
    >>> ledger = ExpirationLedger(host.flags)
    >>> manager = SummonManager(host, get_settings(), ledger)
    >>> outcome = await manager.summon(summoner, token, request)
"""

from __future__ import annotations

# =============================================================================
# Resolvers
# =============================================================================
from pf1_summons.engine.caster_level import (
    placement_radius,
    resolve_caster_level,
    spellbook_choices,
)
from pf1_summons.engine.count import resolve_count
from pf1_summons.engine.dice import DiceExpression, DiceRoller

# =============================================================================
# Templates & Spawning
# =============================================================================
from pf1_summons.engine.combat import CombatIntegrator, plan_initiative_bumps
from pf1_summons.engine.spawn import SpawnLoop
from pf1_summons.engine.templates import (
    TemplateApplicator,
    template_allowed,
    template_defenses,
)

# =============================================================================
# Expiration
# =============================================================================
from pf1_summons.engine.deletion import SummonDeleter
from pf1_summons.engine.expiration import ExpirationTracker
from pf1_summons.engine.ledger import ExpirationLedger, LedgerEdit

# =============================================================================
# Pipeline
# =============================================================================
from pf1_summons.engine.manager import SummonManager, SummonOutcome
from pf1_summons.engine.workflow import (
    FormCollector,
    build_form_options,
    monster_choices,
    open_summon_workflow,
    resolve_summoner,
)


__all__ = [
    # Resolvers
    "DiceExpression",
    "DiceRoller",
    "placement_radius",
    "resolve_caster_level",
    "resolve_count",
    "spellbook_choices",
    # Templates & Spawning
    "CombatIntegrator",
    "SpawnLoop",
    "TemplateApplicator",
    "plan_initiative_bumps",
    "template_allowed",
    "template_defenses",
    # Expiration
    "ExpirationLedger",
    "ExpirationTracker",
    "LedgerEdit",
    "SummonDeleter",
    # Pipeline
    "FormCollector",
    "SummonManager",
    "SummonOutcome",
    "build_form_options",
    "monster_choices",
    "open_summon_workflow",
    "resolve_summoner",
]
