"""
kpi/base.py

Abstract base class for campaign KPI formulas.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class BaseKPIFormula(ABC):
    """
    Contract for KPI formula implementations.

    Subclasses receive a plain dictionary of already-coerced numeric inputs
    and return a plain dictionary of computed ratios. :meth:`calculate` must
    stay free of I/O, logging, and side effects so it can run inside the
    ingestion hot path.
    """

    @abstractmethod
    def calculate(self, inputs: dict[str, Any]) -> dict[str, float]:
        """
        Compute metrics from *inputs* and return them keyed by metric name.
        """
