"""Entry point of the summon workflow.

Resolves who is summoning and from which token, gathers the choices the
summon form offers, hands them to a form collector and runs the pipeline
with whatever the user submitted.
"""

from __future__ import annotations

from typing import Protocol

from pf1_summons.core.config import Settings
from pf1_summons.core.exceptions import CatalogError
from pf1_summons.core.logging import get_logger
from pf1_summons.engine.caster_level import spellbook_choices
from pf1_summons.engine.manager import SummonManager, SummonOutcome
from pf1_summons.host.protocols import Catalog, Host
from pf1_summons.models import (
    ActorDocument,
    IndexEntry,
    PackInfo,
    SummonFormOptions,
    SummonRequest,
    TokenDocument,
)


logger = get_logger(__name__)


class FormCollector(Protocol):
    """The summon form."""

    async def collect(self, options: SummonFormOptions) -> SummonRequest | None:
        """Show the form and return the selections, None if cancelled."""
        ...


def resolve_summoner(
    host: Host,
    settings: Settings,
    summoner: ActorDocument | None = None,
) -> tuple[ActorDocument, TokenDocument] | None:
    """Find the summoning actor and the token it summons from.

    GMs, and every user when ``use_user_linked_actor_only`` is off, summon
    from the given actor's first scene token or from the first selected
    token. Other users summon as the given actor or their linked character,
    from one of their own tokens of it.

    Returns:
        The summoner and its token, or None after warning the user.
    """
    user = host.user
    scene = host.scene
    notifications = host.notifications

    if user.is_gm or not settings.summons.use_user_linked_actor_only:
        if summoner is None:
            controlled = scene.controlled_tokens()
            if not controlled:
                notifications.warn("No token chosen as summoner.")
                return None
            token = controlled[0]
            actor = host.actors.get(token.actor_id) if token.actor_id else None
            if actor is None:
                notifications.warn("No token chosen as summoner.")
                return None
            return actor, token

        token = next((t for t in scene.tokens() if t.actor_id == summoner.id), None)
        if token is None:
            notifications.warn(f"No token for {summoner.name} found on the canvas.")
            return None
        return summoner, token

    if summoner is None and user.character_id:
        summoner = host.actors.get(user.character_id)
    if summoner is None:
        notifications.warn("No token chosen as summoner.")
        return None

    token = next((t for t in scene.owned_tokens() if t.actor_id == summoner.id), None)
    if token is None:
        notifications.warn(f"No token of summoner {summoner.name} available.")
        return None
    return summoner, token


def source_packs(catalog: Catalog, settings: Settings) -> list[PackInfo]:
    """Actor packs offered as summon sources."""
    flags = settings.summons
    return [
        p
        for p in catalog.packs()
        if p.document_name == "Actor"
        and p.package_name in flags.pack_source
        and p.name not in flags.ignore_compendiums
        and p.visible
    ]


async def template_names(catalog: Catalog, settings: Settings) -> list[str]:
    """Names of the templates in the template pack, empty if it is missing."""
    pack_id = settings.summons.pack_template_source
    try:
        index = await catalog.index(pack_id)
    except CatalogError:
        logger.debug("Template pack unavailable", pack_id=pack_id)
        return []
    return [entry.name for entry in index]


async def monster_choices(catalog: Catalog, pack_id: str) -> list[IndexEntry]:
    """A pack's entries sorted by name, as listed on the form."""
    index = await catalog.index(pack_id)
    return sorted(index, key=lambda entry: entry.name)


async def build_form_options(
    host: Host,
    settings: Settings,
    summoner: ActorDocument,
    summoner_token: TokenDocument,
) -> SummonFormOptions:
    """Collect everything the summon form renders."""
    flags = settings.summons
    return SummonFormOptions(
        summoner=summoner,
        summoner_token=summoner_token,
        spellbooks=spellbook_choices(summoner),
        packs=source_packs(host.catalog, settings),
        templates=await template_names(host.catalog, settings),
        owner_check=host.user.is_gm and summoner.has_player_owner,
        augment=flags.enable_augment_summoning,
        extend=flags.enable_extend_metamagic,
        reach=flags.enable_reach_metamagic,
        conjured_armor=flags.enable_conjured_armor,
        harrowed=flags.enable_harrowed_summoning,
    )


async def open_summon_workflow(
    host: Host,
    settings: Settings,
    manager: SummonManager,
    collector: FormCollector,
    summoner: ActorDocument | None = None,
) -> SummonOutcome | None:
    """Open the summon form for a summoner and run the submitted summon.

    Args:
        host: Host collaborators.
        settings: Package settings.
        manager: Pipeline that performs the summon.
        collector: The form.
        summoner: Actor to summon as; resolved from the scene when omitted.

    Returns:
        The summon outcome, or None if no summoner was found or the form
        was cancelled.
    """
    resolved = resolve_summoner(host, settings, summoner)
    if resolved is None:
        return None
    actor, token = resolved

    options = await build_form_options(host, settings, actor, token)
    request = await collector.collect(options)
    if request is None:
        logger.debug("Summon form cancelled", summoner_id=actor.id)
        return None
    return await manager.summon(actor, token, request)


__all__ = [
    "FormCollector",
    "resolve_summoner",
    "source_packs",
    "template_names",
    "monster_choices",
    "build_form_options",
    "open_summon_workflow",
]
