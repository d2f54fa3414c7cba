"""Summon count resolution."""

from __future__ import annotations

from pf1_summons.core.exceptions import DiceRollError
from pf1_summons.core.logging import get_logger
from pf1_summons.engine.dice import DiceExpression, DiceRoller
from pf1_summons.models import SummonCount


logger = get_logger(__name__)

FALLBACK_FORMULA = "1"


def formula_is_safe(formula: str, roller: DiceRoller) -> bool:
    """Whether a formula parses and can never resolve below one."""
    try:
        return roller.minimum(formula) > 0
    except DiceRollError as exc:
        logger.debug("Count formula rejected", formula=formula, error=exc.message)
        return False


def _roll_formula(formula: str, roller: DiceRoller) -> DiceExpression | None:
    try:
        return roller.roll(formula)
    except DiceRollError as exc:
        # Zero-sided dice and oversized pools pass the screen but not the roll
        logger.debug("Count formula failed to roll", formula=formula, error=exc.message)
        return None


def resolve_count(formula: str, roller: DiceRoller) -> SummonCount:
    """Roll the number of summons to place.

    The formula is first checked at its minimum, then rolled. An invalid
    formula, one that could roll zero or less, or one the dice library
    refuses to roll is replaced by ``"1"`` and the result is marked
    ``fell_back`` so the caller can warn the user.

    Args:
        formula: Dice formula or plain integer, e.g. ``"1d4+1"``.
        roller: Dice roller, seeded for reproducible counts.

    Returns:
        The resolved count with its rendered roll.
    """
    rolled = _roll_formula(formula, roller) if formula_is_safe(formula, roller) else None
    fell_back = rolled is None
    if rolled is None:
        logger.warning("Invalid count formula, defaulting to 1", formula=formula)
        formula = FALLBACK_FORMULA
        rolled = roller.roll(formula)

    logger.debug("Summon count rolled", formula=formula, total=rolled.total)
    total = rolled.total
    description = rolled.description
    # Subtracted dice are screened at their lowest face, so a roll can still dip below one
    if total < 1:
        total = 1
        description = f"{description}, raised to `1`"
    return SummonCount(
        formula=formula,
        total=total,
        description=description,
        fell_back=fell_back,
    )


__all__ = ["FALLBACK_FORMULA", "formula_is_safe", "resolve_count"]
