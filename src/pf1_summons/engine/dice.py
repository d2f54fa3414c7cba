"""Dice evaluation for summon counts.

This module wraps the d20 library to roll count formulas such as
``1d4+1`` and to evaluate them at their guaranteed minimum, which is how a
formula is screened before it is trusted to produce a positive count.
"""

from __future__ import annotations

import random
import re
from dataclasses import dataclass

import d20

from pf1_summons.core.exceptions import DiceRollError
from pf1_summons.core.logging import get_logger


logger = get_logger(__name__)

_DICE_TERM = re.compile(r"(\d*)d(\d+)")


@dataclass(frozen=True)
class DiceExpression:
    """A rolled dice expression.

    Attributes:
        expression: The expression as rolled.
        total: The total result of the roll.
        description: The rendered roll, e.g. ``1d4 (2) + 1 = `3```.
    """

    expression: str
    total: int
    description: str


class DiceRoller:
    """Dice rolling backed by the d20 library.

    Example:
        >>> roller = DiceRoller(seed=7)
        >>> roller.minimum("2d6-1")
        1
        >>> roller.roll("1d4+1").total in range(2, 6)
        True
    """

    def __init__(self, *, seed: int | None = None) -> None:
        """Initialize the dice roller.

        Args:
            seed: Optional random seed for reproducible rolls.
        """
        self._seed = seed
        if seed is not None:
            random.seed(seed)
        logger.debug("DiceRoller initialized", seed=seed)

    def roll(self, expression: str) -> DiceExpression:
        """Roll dice according to the given expression.

        Args:
            expression: Dice expression (e.g., '1d4+1', '3').

        Returns:
            DiceExpression containing roll results.

        Raises:
            DiceRollError: If the expression is invalid.
        """
        if not expression or not expression.strip():
            raise DiceRollError("Empty dice expression", expression=expression)

        try:
            result: d20.RollResult = d20.roll(expression)
        except d20.RollError as exc:
            raise DiceRollError(
                f"Invalid dice expression: {exc}",
                expression=expression,
            ) from exc

        rolled = DiceExpression(
            expression=expression,
            total=result.total,
            description=result.result,
        )
        logger.debug("Dice rolled", expression=expression, total=rolled.total)
        return rolled

    def minimum(self, expression: str) -> int:
        """Evaluate an expression with every die showing its lowest face.

        Each ``NdM`` term is replaced by ``N`` (a bare ``dM`` counts as one
        die) and the remaining arithmetic is evaluated.

        Args:
            expression: Dice expression (e.g., '1d4+1').

        Returns:
            The smallest value the expression can produce.

        Raises:
            DiceRollError: If the expression is invalid.
        """
        if not expression or not expression.strip():
            raise DiceRollError("Empty dice expression", expression=expression)

        def lowest_faces(match: re.Match[str]) -> str:
            return str(int(match.group(1) or 1))

        floor_expression = _DICE_TERM.sub(lowest_faces, expression)
        try:
            return d20.roll(floor_expression).total
        except d20.RollError as exc:
            raise DiceRollError(
                f"Invalid dice expression: {exc}",
                expression=expression,
            ) from exc


__all__ = ["DiceExpression", "DiceRoller"]
