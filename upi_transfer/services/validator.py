"""Pure validation of transfer input.

Checks run in a fixed order so callers always see the same message for the
same input: required fields, then self-transfer, then UPI format, then amount
bounds and precision, then remarks length.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from ..core.errors import (
    InvalidAmountError,
    InvalidTransferError,
    InvalidUpiError,
    TransferError,
)
from ..core.money import SCALE, Money, fractional_digits, to_decimal

UPI_PATTERN = re.compile(r"[A-Za-z0-9._-]+@[A-Za-z]+")


class TransferValidator:
    def __init__(
        self,
        min_amount: Money = Money.of("1.00"),
        max_amount: Money = Money.of("100000.00"),
        max_remarks_length: int = 255,
    ) -> None:
        self.min_amount = min_amount
        self.max_amount = max_amount
        self.max_remarks_length = max_remarks_length

    def validate(
        self,
        source_upi: Optional[str],
        destination_upi: Optional[str],
        amount: Any,
        remarks: Optional[str] = None,
    ) -> Optional[TransferError]:
        """Return the first rule the input breaks, or ``None`` when it is valid."""
        try:
            self.check(source_upi, destination_upi, amount, remarks)
        except TransferError as exc:
            return exc
        return None

    def check(
        self,
        source_upi: Optional[str],
        destination_upi: Optional[str],
        amount: Any,
        remarks: Optional[str] = None,
    ) -> Money:
        """Raise on the first broken rule; return the parsed amount otherwise."""
        self._require_upi(source_upi, "Source")
        self._require_upi(destination_upi, "Destination")
        if amount is None:
            raise InvalidAmountError("Amount is required")

        if source_upi == destination_upi:
            raise InvalidUpiError("Cannot transfer to the same account")

        self._check_format(source_upi, "Source")
        self._check_format(destination_upi, "Destination")

        parsed = self._check_amount(amount)

        if remarks is not None and len(remarks) > self.max_remarks_length:
            raise InvalidTransferError(
                f"Remarks cannot exceed {self.max_remarks_length} characters"
            )
        return parsed

    def _require_upi(self, upi_id: Optional[str], side: str) -> None:
        if upi_id is None or not upi_id.strip():
            raise InvalidUpiError(f"{side} UPI ID is required")

    def _check_format(self, upi_id: str, side: str) -> None:
        if not UPI_PATTERN.fullmatch(upi_id):
            raise InvalidUpiError(f"Invalid {side.lower()} UPI ID format: {upi_id}")

    def _check_amount(self, amount: Any) -> Money:
        value = to_decimal(amount)
        if value < self.min_amount.to_decimal():
            raise InvalidAmountError(f"Minimum transfer amount is {self.min_amount}")
        if value > self.max_amount.to_decimal():
            raise InvalidAmountError(
                f"Maximum per-transaction limit is {self.max_amount}"
            )
        if fractional_digits(value) > SCALE:
            raise InvalidAmountError(
                f"Amount cannot have more than {SCALE} decimal places"
            )
        return Money.amount(value)
