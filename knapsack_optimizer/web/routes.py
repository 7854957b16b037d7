"""Route registration for the knapsack optimizer dashboard."""
from __future__ import annotations

from flask import Blueprint

bp = Blueprint("dashboard", __name__, template_folder="templates")

# The actual route handlers are imported to register with the blueprint.
from knapsack_optimizer.web import views  # noqa: E402,F401  pylint: disable=wrong-import-position
