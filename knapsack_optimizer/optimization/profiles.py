"""Selection profiles: how a capacity problem is labelled and summarized.

The shopping and portfolio tabs solve the same problem. A bag capacity and a
budget are both a capacity, a weight and a cost per share are both a weight,
and a value and an expected return are both a value. A profile carries the
wording for one framing and nothing else; the selector never sees it.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from knapsack_optimizer.optimization.greedy_selector import Item, SelectionResult


@dataclass(frozen=True)
class SelectionProfile:
    """Display vocabulary and defaults for one kind of selection."""

    key: str
    title: str
    item_noun: str
    capacity_label: str
    weight_label: str
    value_label: str
    default_capacity: float
    fixed_fractional: Optional[bool] = None

    @property
    def fractional_is_fixed(self) -> bool:
        return self.fixed_fractional is not None

    def resolve_fractional(self, requested: bool) -> bool:
        if self.fixed_fractional is None:
            return bool(requested)
        return self.fixed_fractional


SHOPPING = SelectionProfile(
    key="shopping",
    title="Shopping Optimizer",
    item_noun="item",
    capacity_label="Bag Capacity (kg)",
    weight_label="Weight (kg)",
    value_label="Value ($)",
    default_capacity=50.0,
)

PORTFOLIO = SelectionProfile(
    key="portfolio",
    title="Portfolio Optimizer",
    item_noun="stock",
    capacity_label="Budget ($)",
    weight_label="Cost per share ($)",
    value_label="Expected return ($)",
    default_capacity=10000.0,
    fixed_fractional=True,
)

PROFILES: Dict[str, SelectionProfile] = {
    profile.key: profile for profile in (SHOPPING, PORTFOLIO)
}


def get_profile(key: str) -> SelectionProfile:
    try:
        return PROFILES[key]
    except KeyError:
        raise KeyError(f"Unknown selection profile '{key}'.") from None


@dataclass(frozen=True)
class SelectionSummary:
    """Aggregate figures shown next to a selection."""

    total_weight: float
    total_value: float
    item_count: int
    capacity_used_pct: Optional[float]
    roi_pct: Optional[float]


def summarize(result: SelectionResult, capacity: float) -> SelectionSummary:
    """Compute display figures for ``result``; undefined ratios become None."""
    capacity_used_pct = None
    if capacity > 0:
        capacity_used_pct = result.total_weight_used / capacity * 100.0

    roi_pct = None
    if result.total_weight_used > 0:
        roi_pct = (result.total_value_gained / result.total_weight_used - 1.0) * 100.0

    return SelectionSummary(
        total_weight=result.total_weight_used,
        total_value=result.total_value_gained,
        item_count=result.item_count,
        capacity_used_pct=capacity_used_pct,
        roi_pct=roi_pct,
    )


def item_roi_pct(item: Item) -> float:
    """Return on investment of a single stock, in percent."""
    return (item.ratio - 1.0) * 100.0
