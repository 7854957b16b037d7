"""Caller-side item list and input coercion for the selector."""
from __future__ import annotations

import math
import uuid
from typing import Callable, Iterable, Iterator, List, Optional, Tuple

from knapsack_optimizer.errors import CapacityValidationError, ItemValidationError
from knapsack_optimizer.optimization.greedy_selector import Item


def _to_finite_float(raw: object) -> Optional[float]:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return None
    try:
        number = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def parse_item_fields(name: object, weight: object, value: object) -> Tuple[str, float, float]:
    """Coerce raw form values into ``(name, weight, value)``.

    Raises
    ------
    ItemValidationError
        If the name is blank, a number is missing or not finite, or the
        weight is not strictly positive.
    """
    clean_name = str(name).strip() if name is not None else ""
    if not clean_name:
        raise ItemValidationError("Item name must not be empty.")

    clean_weight = _to_finite_float(weight)
    if clean_weight is None:
        raise ItemValidationError(f"Weight of '{clean_name}' must be a number.")
    if clean_weight <= 0:
        raise ItemValidationError(f"Weight of '{clean_name}' must be greater than zero.")

    clean_value = _to_finite_float(value)
    if clean_value is None:
        raise ItemValidationError(f"Value of '{clean_name}' must be a number.")

    return clean_name, clean_weight, clean_value


def parse_capacity(raw: object) -> float:
    capacity = _to_finite_float(raw)
    if capacity is None:
        raise CapacityValidationError("Capacity must be a finite number.")
    return capacity


def new_item_id() -> str:
    return uuid.uuid4().hex


class ItemCatalog:
    """An ordered list of items with unique ids.

    Items keep their insertion order, which is also the tie-break order the
    selector uses for equal ratios.
    """

    def __init__(
        self,
        items: Optional[Iterable[Item]] = None,
        *,
        id_factory: Callable[[], str] = new_item_id,
    ) -> None:
        self._items: List[Item] = []
        self._id_factory = id_factory
        if items is not None:
            self.extend(items)

    def __iter__(self) -> Iterator[Item]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return any(item.id == item_id for item in self._items)

    @property
    def items(self) -> Tuple[Item, ...]:
        return tuple(self._items)

    def get(self, item_id: str) -> Optional[Item]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def add(self, name: object, weight: object, value: object) -> Item:
        clean_name, clean_weight, clean_value = parse_item_fields(name, weight, value)
        item = Item(
            id=self._id_factory(),
            name=clean_name,
            weight=clean_weight,
            value=clean_value,
        )
        self._append(item)
        return item

    def extend(self, items: Iterable[Item]) -> None:
        for item in items:
            parse_item_fields(item.name, item.weight, item.value)
            self._append(item)

    def remove(self, item_id: str) -> bool:
        before = len(self._items)
        self._items = [item for item in self._items if item.id != item_id]
        return len(self._items) != before

    def clear(self) -> None:
        self._items = []

    def _append(self, item: Item) -> None:
        if item.id in self:
            raise ItemValidationError(f"Duplicate item id '{item.id}'.")
        self._items.append(item)

    def to_records(self) -> List[dict]:
        return [
            {"id": item.id, "name": item.name, "weight": item.weight, "value": item.value}
            for item in self._items
        ]

    @classmethod
    def from_records(
        cls,
        records: Iterable[dict],
        *,
        id_factory: Callable[[], str] = new_item_id,
    ) -> "ItemCatalog":
        items = []
        for record in records:
            name, weight, value = parse_item_fields(
                record.get("name"), record.get("weight"), record.get("value")
            )
            raw_id = record.get("id")
            item_id = id_factory() if raw_id is None else str(raw_id)
            items.append(Item(id=item_id, name=name, weight=weight, value=value))
        return cls(items, id_factory=id_factory)
