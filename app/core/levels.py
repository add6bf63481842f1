from enum import IntEnum
from typing import Iterable, Union

from app.core.exceptions import ValidationError


class RiskLevel(IntEnum):
    """Ordered severity lattice shared by alerts and weather risk.

    Integer ranks keep comparisons and ``max`` consistent with severity,
    which label strings are not ("HIGH" < "LOW" alphabetically).
    """

    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @classmethod
    def parse(cls, value: Union[str, int, "RiskLevel"]) -> "RiskLevel":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValidationError(f"invalid level: {value}")
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            raise ValidationError(f"invalid level: {value}")

    @classmethod
    def highest(cls, levels: Iterable["RiskLevel"]) -> "RiskLevel":
        return max(levels, default=cls.LOW)


# alerts call it severity
Severity = RiskLevel
