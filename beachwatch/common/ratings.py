"""Water-quality rating classifiers.

Sources report quality in two incompatible ways: NSW Beachwatch publishes a
categorical 1-5 code, Victoria EPA publishes raw enterococci concentrations.
Each source declares which classifier it uses in ``SOURCE_CLASSIFIERS``.
"""

from __future__ import annotations

from typing import Callable

from beachwatch.common.constants import SOURCE_NSW_BEACHWATCH, SOURCE_VIC_EPA

NSW_RATING_CODES = {
    4: "good",
    3: "fair",
    2: "poor",
    1: "bad",
}

# (inclusive upper bound in cfu/100ml, rating)
ENTEROCOCCI_THRESHOLDS = (
    (40, "excellent"),
    (100, "good"),
    (200, "fair"),
    (500, "poor"),
)


def classify_nsw_rating(code: int) -> str:
    """Map an NSW Beachwatch result code to a rating; unknown codes fall back to ``bad``."""
    return NSW_RATING_CODES.get(code, "bad")


def classify_enterococci_value(value: float) -> str:
    """Classify a concentration in cfu/100ml against the NHMRC-style thresholds."""
    for upper, rating in ENTEROCOCCI_THRESHOLDS:
        if value <= upper:
            return rating
    return "very_poor"


SOURCE_CLASSIFIERS: dict[str, Callable] = {
    SOURCE_NSW_BEACHWATCH: classify_nsw_rating,
    SOURCE_VIC_EPA: classify_enterococci_value,
}


def classifier_for(source: str) -> Callable:
    try:
        return SOURCE_CLASSIFIERS[source]
    except KeyError:
        raise KeyError(f"No rating classifier declared for source {source!r}") from None
