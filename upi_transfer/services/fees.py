from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..core.money import Money


@dataclass(frozen=True, slots=True)
class FeePolicy:
    """Flat fee for amounts strictly above ``threshold``; nothing at or below it."""

    threshold: Money = field(default_factory=lambda: Money.of("1000.00"))
    flat_fee: Money = field(default_factory=lambda: Money.of("5.00"))

    def calculate_fee(self, amount: Optional[Money]) -> Money:
        # Amount presence is the validator's job; a missing amount costs nothing.
        if amount is None:
            return Money.zero()
        return self.flat_fee if amount > self.threshold else Money.zero()
