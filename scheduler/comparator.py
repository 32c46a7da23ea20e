"""
Comparison of released actual values against their forecast.
"""

from decimal import Decimal
from typing import Optional

from scheduler.models import Comparison


def compare_with_forecast(actual: Optional[Decimal], forecast: Optional[Decimal]) -> Comparison:
    """
    Classify an actual value against its forecast.

    Equality is exact on the coerced numbers. Either side being absent
    yields ``Comparison.NO_COMPARISON``.
    """
    if actual is None or forecast is None:
        return Comparison.NO_COMPARISON
    if actual > forecast:
        return Comparison.ABOVE
    if actual < forecast:
        return Comparison.BELOW
    return Comparison.IN_LINE
