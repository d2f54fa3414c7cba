"""Chat cards announcing summon events."""

from __future__ import annotations

from pf1_summons.models import ChatCard, SummonCount, SummonDeleteControl


SUMMONED_TITLE = "Summoning!"
EXPIRED_TITLE = "Summon Expired"
DELETED_TITLE = "Summon Deleted"


def summoned_card(
    count: SummonCount,
    actor_name: str,
    rounds: int,
    *,
    placed: int | None = None,
) -> ChatCard:
    """Card posted once the summon has been placed.

    ``placed`` replaces the rolled total when placement stopped early.
    """
    number = count.total if placed is None else placed
    return ChatCard(
        title=SUMMONED_TITLE,
        body=f"{number} {actor_name} summoned for {rounds} rounds.",
        roll=count.description,
    )


def expired_card(
    controls: list[SummonDeleteControl],
    *,
    all_defeated: bool = False,
) -> ChatCard:
    """Card announcing expiry, with a delete control per expired summon.

    Args:
        controls: Delete controls for the expired summons.
        all_defeated: Whether the summon expired because no live token
            remains rather than because its duration ran out.
    """
    body = "The summon duration has expired"
    body += " (all tokens defeated)." if all_defeated else "."
    return ChatCard(title=EXPIRED_TITLE, body=body, controls=controls)


def deleted_card() -> ChatCard:
    """Card confirming a summon was deleted."""
    return ChatCard(title=DELETED_TITLE, body="The summon has been deleted.")


__all__ = [
    "SUMMONED_TITLE",
    "EXPIRED_TITLE",
    "DELETED_TITLE",
    "summoned_card",
    "expired_card",
    "deleted_card",
]
