"""
Account number generation and formatting.

Account numbers are 9 digits and never start with 0. They are
stored raw ("123456789") and displayed grouped ("123 456 789").
"""

import random
import re
from typing import Container

from retail_ledger.errors import ExhaustedRetryError, ValidationError

ACCOUNT_NUMBER_LENGTH = 9

_ACCOUNT_NUMBER_RE = re.compile(r"^[1-9]\d{8}$")


def normalize_account_number(value: str) -> str:
    """Strip display spacing: '123 456 789' -> '123456789'."""
    return re.sub(r"\s+", "", value or "")


def is_valid_account_number(value: str) -> bool:
    return bool(_ACCOUNT_NUMBER_RE.match(value or ""))


def require_account_number(value: str) -> str:
    """Normalize and validate, raising ValidationError when malformed."""
    cleaned = normalize_account_number(value)
    if not is_valid_account_number(cleaned):
        raise ValidationError(f"Malformed account number '{value}'")
    return cleaned


def format_account_number(value: str) -> str:
    if value and len(value) == ACCOUNT_NUMBER_LENGTH:
        return f"{value[0:3]} {value[3:6]} {value[6:9]}"
    return value


class AccountNumberGenerator:
    """
    Draws uniform random 9-digit numbers from an explicit RNG.

    Pass a seeded ``random.Random`` for deterministic tests.
    """

    def __init__(self, rng: random.Random | None = None, max_attempts: int = 1000):
        self.rng = rng or random.Random()
        self.max_attempts = max_attempts

    def candidate(self) -> str:
        first = str(self.rng.randint(1, 9))
        rest = "".join(str(self.rng.randint(0, 9)) for _ in range(8))
        return first + rest

    def generate(self, existing: Container[str]) -> str:
        """
        Return a number not contained in ``existing``.

        Raises ExhaustedRetryError after max_attempts collisions:
        either the number space is exhausted or the existing-set
        query is returning garbage.
        """
        for _ in range(self.max_attempts):
            number = self.candidate()
            if number not in existing:
                return number
        raise ExhaustedRetryError(
            f"Unable to generate unique account number after "
            f"{self.max_attempts} attempts"
        )
