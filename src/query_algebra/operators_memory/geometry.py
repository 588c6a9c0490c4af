"""Geographic distance operator (great-circle, kilometres)."""

from __future__ import annotations

from typing import Any

from ..evaluator import ConditionEvaluator, MemoryOperator
from ..operators import AlgebraOperator


class GeoDistanceOperator(MemoryOperator):
    """Distance from the node's point lies in ``[min_km, max_km]``; open bounds are unbounded."""

    @property
    def name(self) -> AlgebraOperator:
        return AlgebraOperator.GEO_DISTANCE

    def evaluate(self, field_value: Any, node: Any, context: ConditionEvaluator) -> bool:
        distance = node.point.distance_km(
            field_value, radius_km=context.settings.earth_radius_km
        )
        if node.min_km is not None and distance < node.min_km:
            return False
        return not (node.max_km is not None and distance > node.max_km)
