from __future__ import annotations

import math
from typing import Any, Iterable, List, TypeVar

N = TypeVar("N", int, float)


def clamp(value: N, lo: N, hi: N) -> N:
    return max(lo, min(hi, value))


def round_half_up(x: float, ndigits: int = 0) -> float:
    """0.5 làm tròn lên (round() của Python là banker's rounding)."""
    factor = 10 ** ndigits
    return math.floor(x * factor + 0.5) / factor


def round_int(x: float) -> int:
    return int(round_half_up(x))


def norm(s: Any) -> str:
    return str(s or "").strip().lower()


def contains_any(text: str, needles: Iterable[str]) -> bool:
    return any(n in text for n in needles)


def lowered(items: Iterable[Any]) -> List[str]:
    return [norm(x) for x in items or [] if norm(x)]
