"""Greedy ratio-based knapsack selector."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple


@dataclass(frozen=True)
class Item:
    """A candidate with a weight (capacity consumed) and a value (benefit)."""

    id: str
    name: str
    weight: float
    value: float

    @property
    def ratio(self) -> float:
        return self.value / self.weight


@dataclass(frozen=True)
class SelectedItem(Item):
    """An item together with the portion of it that was taken."""

    selected_weight: float
    selected_value: float
    fraction: float

    @classmethod
    def from_item(cls, item: Item, selected_weight: float) -> "SelectedItem":
        fraction = selected_weight / item.weight
        return cls(
            id=item.id,
            name=item.name,
            weight=item.weight,
            value=item.value,
            selected_weight=selected_weight,
            selected_value=item.value * fraction,
            fraction=fraction,
        )


@dataclass(frozen=True)
class SelectionResult:
    """Result of a greedy selection."""

    selected_items: Tuple[SelectedItem, ...]
    total_weight_used: float
    total_value_gained: float

    @property
    def item_count(self) -> int:
        return len(self.selected_items)

    @classmethod
    def empty(cls) -> "SelectionResult":
        return cls(selected_items=(), total_weight_used=0.0, total_value_gained=0.0)

    def to_dict(self) -> dict:
        return {
            "selected_items": [
                {
                    "id": item.id,
                    "name": item.name,
                    "weight": item.weight,
                    "value": item.value,
                    "ratio": item.ratio,
                    "selected_weight": item.selected_weight,
                    "selected_value": item.selected_value,
                    "fraction": item.fraction,
                }
                for item in self.selected_items
            ],
            "total_weight_used": self.total_weight_used,
            "total_value_gained": self.total_value_gained,
        }


class GreedySelector:
    """Fill a single capacity with the highest value-to-weight items first.

    With ``allow_fractional`` the last item that does not fit entirely is
    taken partially, which is optimal for the fractional knapsack. Without it
    an item is either taken whole or skipped; a skipped item does not end the
    scan, so a lighter item further down the order may still be taken. This
    variant is a heuristic and can miss the 0/1 optimum.
    """

    def __init__(self, capacity: float, *, allow_fractional: bool = False) -> None:
        self.capacity = capacity
        self.allow_fractional = allow_fractional

    def select(self, items: Sequence[Item]) -> SelectionResult:
        if not items or not self.capacity > 0:
            return SelectionResult.empty()

        # sorted() is stable with reverse=True, equal ratios keep input order
        ordered = sorted(items, key=lambda item: item.ratio, reverse=True)

        remaining = self.capacity
        selected = []
        for item in ordered:
            if remaining <= 0:
                break

            if self.allow_fractional:
                take = min(item.weight, remaining)
                selected.append(SelectedItem.from_item(item, take))
                remaining -= take
            elif item.weight <= remaining:
                selected.append(SelectedItem.from_item(item, item.weight))
                remaining -= item.weight

        return SelectionResult(
            selected_items=tuple(selected),
            total_weight_used=sum((item.selected_weight for item in selected), 0.0),
            total_value_gained=sum((item.selected_value for item in selected), 0.0),
        )


def select(
    items: Sequence[Item], capacity: float, allow_fractional: bool = False
) -> SelectionResult:
    """Run a one-off greedy selection of ``items`` under ``capacity``."""
    return GreedySelector(capacity, allow_fractional=allow_fractional).select(items)
