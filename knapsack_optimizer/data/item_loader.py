"""Utilities for importing item lists from CSV files."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import numpy as np
import pandas as pd

from knapsack_optimizer.errors import ItemFileError
from knapsack_optimizer.optimization.greedy_selector import Item
from knapsack_optimizer.services.catalog import new_item_id

NAME_COLUMN = "name"
WEIGHT_COLUMNS = ("weight", "cost")
VALUE_COLUMNS = ("value", "return")


@dataclass
class ItemFileMetadata:
    """Metadata describing an imported item file."""

    path: Path
    num_rows: int
    num_items: int
    num_skipped: int


def _find_column(columns: Sequence[str], aliases: Sequence[str]) -> Optional[str]:
    for alias in aliases:
        if alias in columns:
            return alias
    return None


class ItemLoader:
    """Reads ``name,weight,value`` (or ``name,cost,return``) CSV files into items.

    Rows whose weight is missing, non-numeric or not positive, or whose value
    is missing or non-numeric, are skipped rather than rejected so that one
    bad line does not discard an otherwise usable list.
    """

    def __init__(self, *, id_factory: Callable[[], str] = new_item_id) -> None:
        self.id_factory = id_factory

    def load(self, file_path: Path) -> tuple[List[Item], ItemFileMetadata]:
        if not file_path.exists():
            raise FileNotFoundError(f"Item file not found: {file_path}")

        try:
            # only blank cells are missing, so names such as "NA" survive
            frame = pd.read_csv(file_path, keep_default_na=False, na_values=[""])
        except pd.errors.EmptyDataError as exc:
            raise ItemFileError("The provided item file is empty.") from exc
        except pd.errors.ParserError as exc:
            raise ItemFileError(f"Could not parse item file: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise ItemFileError("Item file must be UTF-8 encoded text.") from exc

        frame.columns = [str(column).strip().lower() for column in frame.columns]
        weight_column = _find_column(frame.columns, WEIGHT_COLUMNS)
        value_column = _find_column(frame.columns, VALUE_COLUMNS)
        missing = []
        if NAME_COLUMN not in frame.columns:
            missing.append(NAME_COLUMN)
        if weight_column is None:
            missing.append("/".join(WEIGHT_COLUMNS))
        if value_column is None:
            missing.append("/".join(VALUE_COLUMNS))
        if missing:
            raise ItemFileError(f"Item file is missing columns: {', '.join(missing)}.")

        names = frame[NAME_COLUMN].fillna("").astype(str).str.strip()
        weights = pd.to_numeric(frame[weight_column], errors="coerce")
        values = pd.to_numeric(frame[value_column], errors="coerce")

        usable = (names != "") & (weights > 0) & np.isfinite(weights) & np.isfinite(values)

        items = [
            Item(id=self.id_factory(), name=name, weight=float(weight), value=float(value))
            for name, weight, value in zip(names[usable], weights[usable], values[usable])
        ]

        metadata = ItemFileMetadata(
            path=file_path,
            num_rows=len(frame),
            num_items=len(items),
            num_skipped=len(frame) - len(items),
        )
        return items, metadata
