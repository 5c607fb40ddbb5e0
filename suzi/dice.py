"""
Dice notation: parse and roll `NdM` expressions.

Supports 1 to 100 dice with 2 to 100 sides each. The random source is
injectable so callers (and tests) can make rolls reproducible.

Usage:
    from suzi.dice import parse_dice, roll_dice

    count, sides = parse_dice("2d20")
    roll = roll_dice(count, sides)
    roll.total == sum(roll.rolls)
"""

from __future__ import annotations

import random
import re
from dataclasses import dataclass
from typing import Callable, Optional

from suzi.exceptions import DiceExpressionError

MIN_COUNT = 1
MAX_COUNT = 100
MIN_SIDES = 2
MAX_SIDES = 100

_DICE = re.compile(r"^(\d+)d(\d+)$", re.IGNORECASE)

_ERROR_MESSAGE = (
    f"Invalid expression. Use NdM with N between {MIN_COUNT} and {MAX_COUNT} "
    f"and M between {MIN_SIDES} and {MAX_SIDES}. Examples: 1d2, 2d20, 100d100."
)

# Callable taking inclusive (low, high) bounds, like random.randint.
RandInt = Callable[[int, int], int]

_system_random = random.SystemRandom()


@dataclass(frozen=True)
class DiceRoll:
    count: int
    sides: int
    rolls: tuple[int, ...]

    @property
    def total(self) -> int:
        return sum(self.rolls)

    @property
    def expression(self) -> str:
        return f"{self.count}d{self.sides}"


def parse_dice(expression: str) -> tuple[int, int]:
    """
    Parse `NdM` notation (whitespace ignored).

    Returns:
        (count, sides)

    Raises:
        DiceExpressionError: If the notation is malformed or out of bounds.
    """
    normalized = re.sub(r"\s+", "", expression)
    match = _DICE.match(normalized)
    if not match:
        raise DiceExpressionError(_ERROR_MESSAGE, expression=expression)

    count, sides = int(match.group(1)), int(match.group(2))
    if not (MIN_COUNT <= count <= MAX_COUNT and MIN_SIDES <= sides <= MAX_SIDES):
        raise DiceExpressionError(_ERROR_MESSAGE, expression=expression)

    return count, sides


def roll_dice(count: int, sides: int, rand_int: Optional[RandInt] = None) -> DiceRoll:
    """Roll `count` dice of `sides` faces each."""
    rand_int = rand_int or _system_random.randint
    rolls = tuple(rand_int(1, sides) for _ in range(count))
    return DiceRoll(count=count, sides=sides, rolls=rolls)
