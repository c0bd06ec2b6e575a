from __future__ import annotations

import math
from typing import Optional

NodeId = int
Cost = float

INFINITY: Cost = math.inf


def is_finite(cost: Cost) -> bool:
    return cost < INFINITY


def cost_add(a: Cost, b: Cost, limit: Cost = INFINITY) -> Cost:
    """Saturating addition: anything at or past ``limit`` becomes ``INFINITY``."""
    if a >= INFINITY or b >= INFINITY:
        return INFINITY
    total = float(a) + float(b)
    if total >= limit:
        return INFINITY
    return total


def normalize_cost(raw: Optional[float], limit: Cost = INFINITY) -> Cost:
    if raw is None:
        return INFINITY
    value = float(raw)
    if math.isnan(value) or value >= limit:
        return INFINITY
    return max(0.0, value)
