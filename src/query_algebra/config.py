"""Runtime settings shared by evaluators, appliers and translators."""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class AlgebraSettings:
    """
    Immutable settings bundle.

    Attributes:
        earth_radius_km: Radius used for great-circle distances.
        token_pattern: Regex that extracts full-text search tokens.
        default_max_edit_distance: Fuzzy tolerance used when a full-text
            search is built without an explicit distance.
        default_require_all_terms: Whether built full-text searches need
            every query term to match.
    """

    earth_radius_km: float = 6371.0088
    token_pattern: str = r"\w+"
    default_max_edit_distance: int = 2
    default_require_all_terms: bool = True

    def __post_init__(self) -> None:
        if self.earth_radius_km <= 0:
            raise ValueError("earth_radius_km must be positive")
        if self.default_max_edit_distance < 0:
            raise ValueError("default_max_edit_distance must not be negative")
        try:
            re.compile(self.token_pattern)
        except re.error as exc:
            raise ValueError(f"Invalid token_pattern: {exc}") from exc

    @property
    def token_regex(self) -> re.Pattern[str]:
        return _compiled(self.token_pattern)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> AlgebraSettings:
        """Build settings from a plain mapping, rejecting unknown keys."""
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown setting(s): {', '.join(unknown)}")
        return cls(**dict(data))

    def merge(self, **overrides: Any) -> AlgebraSettings:
        """Return a copy with *overrides* applied."""
        return dataclasses.replace(self, **overrides)


_PATTERNS: dict[str, re.Pattern[str]] = {}


def _compiled(pattern: str) -> re.Pattern[str]:
    compiled = _PATTERNS.get(pattern)
    if compiled is None:
        compiled = _PATTERNS[pattern] = re.compile(pattern)
    return compiled


DEFAULT_SETTINGS = AlgebraSettings()
