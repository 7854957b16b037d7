"""End-to-end pipeline: select items under a capacity, summarize, record history."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import pandas as pd

from knapsack_optimizer.optimization.greedy_selector import (
    GreedySelector,
    Item,
    SelectionResult,
)
from knapsack_optimizer.optimization.profiles import (
    SelectionProfile,
    SelectionSummary,
    summarize,
)
from knapsack_optimizer.services.catalog import parse_item_fields
from knapsack_optimizer.storage import database

logger = logging.getLogger(__name__)

SELECTION_COLUMNS = [
    "id",
    "name",
    "weight",
    "value",
    "ratio",
    "selected_weight",
    "selected_value",
    "fraction",
]


@dataclass
class PipelineResult:
    """Summary of a completed optimization run."""

    profile: SelectionProfile
    capacity: float
    allow_fractional: bool
    selection: SelectionResult
    summary: SelectionSummary
    steps: List[str] = field(default_factory=list)
    run_id: Optional[int] = None

    @property
    def remaining_capacity(self) -> float:
        return self.capacity - self.selection.total_weight_used


class OptimizationPipeline:
    """Coordinates validation, greedy selection and run bookkeeping."""

    def __init__(self, *, database_path: Optional[Path] = None) -> None:
        self.database_path = database_path

    def _log(self, steps: List[str], message: str) -> None:
        logger.info(message)
        steps.append(message)

    def run(
        self,
        items: Sequence[Item],
        *,
        profile: SelectionProfile,
        capacity: float,
        allow_fractional: bool = False,
        record: bool = True,
    ) -> PipelineResult:
        steps: List[str] = []
        allow_fractional = profile.resolve_fractional(allow_fractional)

        self._log(steps, f"Validating {len(items)} {profile.item_noun}(s) ...")
        for item in items:
            parse_item_fields(item.name, item.weight, item.value)

        mode = "fractional" if allow_fractional else "whole-item"
        self._log(
            steps,
            f"Running {mode} greedy selection with {profile.capacity_label} = {capacity:g} ...",
        )
        selector = GreedySelector(capacity, allow_fractional=allow_fractional)
        selection = selector.select(items)
        self._log(
            steps,
            f"{selection.item_count} of {len(items)} {profile.item_noun}(s) selected.",
        )

        summary = summarize(selection, capacity)

        run_id = None
        if record:
            run_id = database.record_run(
                profile=profile.key,
                capacity=capacity,
                allow_fractional=allow_fractional,
                total_weight=selection.total_weight_used,
                total_value=selection.total_value_gained,
                selected_items=selection.to_dict()["selected_items"],
                steps=steps,
                path=self.database_path,
            )
            logger.debug("Recorded run %s for profile %s", run_id, profile.key)

        return PipelineResult(
            profile=profile,
            capacity=capacity,
            allow_fractional=allow_fractional,
            selection=selection,
            summary=summary,
            steps=steps,
            run_id=run_id,
        )


def describe_selection(selected_items: Iterable) -> pd.DataFrame:
    """Return a dataframe with one row per selected item.

    Accepts either a ``SelectionResult`` or the stored list of selected item
    dictionaries of a recorded run.
    """
    if isinstance(selected_items, SelectionResult):
        selected_items = selected_items.to_dict()["selected_items"]
    data = list(selected_items)
    if not data:
        return pd.DataFrame(columns=SELECTION_COLUMNS)
    return pd.DataFrame(data, columns=SELECTION_COLUMNS)
