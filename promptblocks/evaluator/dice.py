"""
Dice notation parsing and rolling for the ``roll`` filter.
"""
import random
import re
from dataclasses import dataclass

from ..constants import MAX_DICE_COUNT, MAX_DICE_SIDES

_DICE_PATTERN = re.compile(r"^\s*(\d*)\s*[dD]\s*(\d+)\s*$")


@dataclass(frozen=True)
class DiceExpression:
    """A parsed ``<count>d<sides>`` expression."""
    count: int
    sides: int

    @classmethod
    def parse(cls, expression: str) -> "DiceExpression":
        """Parse dice notation such as ``"2d4"`` or ``"d20"``.

        Raises:
            ValueError: If the notation is malformed or out of range.
        """
        match = _DICE_PATTERN.match(expression)
        if not match:
            raise ValueError(f"Invalid dice expression: '{expression}'")
        count = int(match.group(1)) if match.group(1) else 1
        sides = int(match.group(2))
        if not 1 <= count <= MAX_DICE_COUNT:
            raise ValueError(f"Dice count must be between 1 and {MAX_DICE_COUNT}, got {count}")
        if not 1 <= sides <= MAX_DICE_SIDES:
            raise ValueError(f"Dice sides must be between 1 and {MAX_DICE_SIDES}, got {sides}")
        return cls(count=count, sides=sides)

    @property
    def minimum(self) -> int:
        return self.count

    @property
    def maximum(self) -> int:
        return self.count * self.sides

    def roll(self, rng: random.Random) -> int:
        """Sum ``count`` independent uniform rolls over ``[1, sides]``."""
        return sum(rng.randint(1, self.sides) for _ in range(self.count))
