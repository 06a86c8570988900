from __future__ import annotations

import math
from typing import Any


class ValidationError(ValueError):
    """400-level input problem."""


def parse_amount(value: Any, field: str = "amount") -> float:
    """
    Strict money parsing for API input.

    Accepts ints, floats and numeric strings (thousands separators allowed).
    Rejects booleans, blanks, NaN and infinities.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        stripped = value.strip().replace(",", "")
        if not stripped:
            raise ValidationError(f"{field} must be a number")
        try:
            number = float(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be a number")
    else:
        raise ValidationError(f"{field} must be a number")

    if math.isnan(number) or math.isinf(number):
        raise ValidationError(f"{field} must be a finite number")
    return number
