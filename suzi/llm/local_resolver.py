"""
Answers dice sub-questions locally, without calling a provider.

Any question containing an `NdM` expression within the supported bounds
("quanto dá 2d6?", "roll 3 d 20 for me") is answered here, for free.
Out-of-bounds or malformed expressions yield no local answer and the
router goes on to the providers.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from suzi.dice import DiceRoll, RandInt, parse_dice, roll_dice
from suzi.exceptions import DiceExpressionError

logger = logging.getLogger(__name__)

MAX_SHOWN_ROLLS = 100

_DICE_IN_TEXT = re.compile(r"(\d+)\s*d\s*(\d+)", re.IGNORECASE)


@dataclass(frozen=True)
class LocalAnswer:
    text: str
    roll: DiceRoll


def format_roll(roll: DiceRoll, max_shown: int = MAX_SHOWN_ROLLS) -> str:
    """Three-line answer: expression, (truncated) results, total."""
    shown = ", ".join(str(value) for value in roll.rolls[:max_shown])
    remaining = len(roll.rolls) - max_shown
    if remaining > 0:
        shown = f"{shown}, ... +{remaining} more"
    return f"Roll: {roll.expression}\nResults: {shown}\nTotal: {roll.total}"


class LocalResolver:
    """Finds and rolls the first dice expression in a question."""

    def __init__(self, rand_int: Optional[RandInt] = None):
        self._rand_int = rand_int

    def try_resolve(self, question: str) -> Optional[LocalAnswer]:
        match = _DICE_IN_TEXT.search(question)
        if not match:
            return None

        try:
            count, sides = parse_dice(f"{match.group(1)}d{match.group(2)}")
        except DiceExpressionError:
            return None

        roll = roll_dice(count, sides, self._rand_int)
        logger.debug(
            "local_answer",
            extra={"expression": roll.expression, "total": roll.total},
        )
        return LocalAnswer(text=format_roll(roll), roll=roll)
