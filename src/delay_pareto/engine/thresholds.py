"""Threshold store — the two adjustable tier fractions (A% and B%).

ThresholdConfig is an immutable value handed to the classifier. The store
holds the current value and replaces it whenever a slider moves, so an
evaluation always sees one consistent pair.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from delay_pareto.config.settings import settings

logger = logging.getLogger(__name__)


class InvalidThreshold(ValueError):
    """Raised when a tier fraction is not a number in [0, 1]."""


def _check_fraction(name: str, value: float) -> float:
    if isinstance(value, bool):
        raise InvalidThreshold(f"{name} must be a number, got {value!r}")
    try:
        fval = float(value)
    except (TypeError, ValueError):
        raise InvalidThreshold(f"{name} must be a number, got {value!r}") from None
    if math.isnan(fval) or not 0.0 <= fval <= 1.0:
        raise InvalidThreshold(f"{name} must be within [0, 1], got {value!r}")
    return fval


@dataclass(frozen=True)
class ThresholdConfig:
    """A% and B% as fractions of the grand total."""
    a_pct: float
    b_pct: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "a_pct", _check_fraction("a_pct", self.a_pct))
        object.__setattr__(self, "b_pct", _check_fraction("b_pct", self.b_pct))

    @property
    def ab_pct(self) -> float:
        """Upper cumulative bound of tier B."""
        return self.a_pct + self.b_pct

    @property
    def exceeds_total(self) -> bool:
        return self.ab_pct > 1.0 and not math.isclose(self.ab_pct, 1.0)


class ThresholdStore:
    """Holds the current ThresholdConfig and accepts slider updates."""

    def __init__(self, a_pct: float | None = None, b_pct: float | None = None) -> None:
        self._config = self._make(
            settings.default_a_pct if a_pct is None else a_pct,
            settings.default_b_pct if b_pct is None else b_pct,
        )

    @property
    def config(self) -> ThresholdConfig:
        return self._config

    def set_a(self, a_pct: float) -> ThresholdConfig:
        self._config = self._make(a_pct, self._config.b_pct)
        return self._config

    def set_b(self, b_pct: float) -> ThresholdConfig:
        self._config = self._make(self._config.a_pct, b_pct)
        return self._config

    def update(self, a_pct: float, b_pct: float) -> ThresholdConfig:
        self._config = self._make(a_pct, b_pct)
        return self._config

    @staticmethod
    def _make(a_pct: float, b_pct: float) -> ThresholdConfig:
        config = ThresholdConfig(a_pct, b_pct)
        if config.exceeds_total:
            # Passed through: tier C still absorbs whatever lies above A+B
            logger.warning(
                "Threshold A%% + B%% = %.4f exceeds 1; tier C only catches the remainder",
                config.ab_pct,
            )
        logger.info("Thresholds set: A=%.4f B=%.4f", config.a_pct, config.b_pct)
        return config
