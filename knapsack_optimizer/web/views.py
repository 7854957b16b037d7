"""Flask view functions for the knapsack optimizer dashboard."""
from __future__ import annotations

import json
import uuid
from typing import Optional

from flask import (
    Response,
    abort,
    current_app,
    flash,
    jsonify,
    redirect,
    render_template,
    request,
    send_file,
    session,
    url_for,
)
from werkzeug.utils import secure_filename

from knapsack_optimizer.config import ALLOWED_UPLOAD_EXTENSIONS
from knapsack_optimizer.data.item_loader import ItemLoader
from knapsack_optimizer.errors import (
    CapacityValidationError,
    ItemFileError,
    ItemValidationError,
)
from knapsack_optimizer.optimization.greedy_selector import select
from knapsack_optimizer.optimization.profiles import (
    PROFILES,
    SHOPPING,
    SelectionProfile,
    get_profile,
    item_roi_pct,
)
from knapsack_optimizer.services.catalog import ItemCatalog, parse_capacity
from knapsack_optimizer.services.pipeline import (
    OptimizationPipeline,
    PipelineResult,
    describe_selection,
)
from knapsack_optimizer.storage import database
from knapsack_optimizer.web.routes import bp


def allowed_file(filename: str) -> bool:
    return (
        "." in filename
        and filename.rsplit(".", 1)[1].lower() in ALLOWED_UPLOAD_EXTENSIONS
    )


def _profile_or_404(profile_key: str) -> SelectionProfile:
    try:
        return get_profile(profile_key)
    except KeyError:
        abort(404)


def _list_token() -> str:
    # item lists live in the database; the cookie only names them
    if "list_token" not in session:
        session["list_token"] = uuid.uuid4().hex
    return session["list_token"]


def _load_catalog(profile: SelectionProfile) -> ItemCatalog:
    records = database.fetch_item_list(
        _list_token(), profile.key, path=current_app.config["DATABASE_PATH"]
    )
    return ItemCatalog.from_records(records)


def _save_catalog(profile: SelectionProfile, catalog: ItemCatalog) -> None:
    database.save_item_list(
        _list_token(),
        profile.key,
        catalog.to_records(),
        path=current_app.config["DATABASE_PATH"],
    )


def _settings(profile: SelectionProfile) -> tuple[float, bool]:
    capacity = session.get(f"{profile.key}_capacity", profile.default_capacity)
    allow_fractional = profile.resolve_fractional(
        session.get(f"{profile.key}_fractional", False)
    )
    return capacity, allow_fractional


def _render_dashboard(
    profile: SelectionProfile, *, result: Optional[PipelineResult] = None
) -> str:
    capacity, allow_fractional = _settings(profile)
    history = database.fetch_history(
        limit=current_app.config["HISTORY_PAGE_SIZE"],
        profile=profile.key,
        path=current_app.config["DATABASE_PATH"],
    )
    return render_template(
        "dashboard.html",
        profile=profile,
        profiles=list(PROFILES.values()),
        items=_load_catalog(profile).items,
        capacity=capacity,
        allow_fractional=allow_fractional,
        result=result,
        history=history,
        item_roi_pct=item_roi_pct,
    )


@bp.route("/")
def index() -> Response:
    return redirect(url_for("dashboard.dashboard", profile_key=SHOPPING.key))


@bp.route("/<profile_key>")
def dashboard(profile_key: str) -> str:
    profile = _profile_or_404(profile_key)
    return _render_dashboard(profile)


@bp.route("/<profile_key>/items", methods=["POST"])
def add_item(profile_key: str) -> Response:
    profile = _profile_or_404(profile_key)
    catalog = _load_catalog(profile)
    try:
        item = catalog.add(
            request.form.get("name"),
            request.form.get("weight"),
            request.form.get("value"),
        )
    except ItemValidationError as exc:
        current_app.logger.warning("Rejected %s: %s", profile.item_noun, exc)
        flash(str(exc), "error")
    else:
        _save_catalog(profile, catalog)
        flash(f"Added {profile.item_noun} '{item.name}'.", "success")
    return redirect(url_for("dashboard.dashboard", profile_key=profile.key))


@bp.route("/<profile_key>/items/<item_id>/delete", methods=["POST"])
def remove_item(profile_key: str, item_id: str) -> Response:
    profile = _profile_or_404(profile_key)
    catalog = _load_catalog(profile)
    if catalog.remove(item_id):
        _save_catalog(profile, catalog)
    else:
        flash(f"No {profile.item_noun} with id '{item_id}'.", "error")
    return redirect(url_for("dashboard.dashboard", profile_key=profile.key))


@bp.route("/<profile_key>/items/clear", methods=["POST"])
def clear_items(profile_key: str) -> Response:
    profile = _profile_or_404(profile_key)
    _save_catalog(profile, ItemCatalog())
    return redirect(url_for("dashboard.dashboard", profile_key=profile.key))


@bp.route("/<profile_key>/items/upload", methods=["POST"])
def upload_items(profile_key: str) -> Response:
    profile = _profile_or_404(profile_key)
    target = url_for("dashboard.dashboard", profile_key=profile.key)

    uploaded = request.files.get("items_file")
    if not uploaded or uploaded.filename == "":
        flash("Please choose a CSV file to import.", "error")
        return redirect(target)

    if not allowed_file(uploaded.filename):
        flash("Only CSV files are supported.", "error")
        return redirect(target)

    upload_dir = current_app.config["UPLOAD_DIR"]
    upload_dir.mkdir(parents=True, exist_ok=True)
    file_path = upload_dir / secure_filename(uploaded.filename)
    uploaded.save(file_path)

    catalog = _load_catalog(profile)
    try:
        items, metadata = ItemLoader().load(file_path)
        catalog.extend(items)
    except (ItemFileError, ItemValidationError) as exc:
        current_app.logger.warning("Rejected item file %s: %s", file_path.name, exc)
        flash(str(exc), "error")
        return redirect(target)

    _save_catalog(profile, catalog)
    message = f"Imported {metadata.num_items} {profile.item_noun}(s)"
    if metadata.num_skipped:
        message += f", skipped {metadata.num_skipped} invalid row(s)"
    flash(message + ".", "success")
    return redirect(target)


@bp.route("/<profile_key>/optimize", methods=["POST"])
def optimize(profile_key: str) -> str:
    profile = _profile_or_404(profile_key)
    catalog = _load_catalog(profile)

    try:
        capacity = parse_capacity(request.form.get("capacity"))
    except CapacityValidationError as exc:
        current_app.logger.warning("Rejected %s: %s", profile.capacity_label, exc)
        flash(f"{profile.capacity_label}: {exc}", "error")
        return _render_dashboard(profile)

    allow_fractional = profile.resolve_fractional(
        request.form.get("allow_fractional") in ("on", "true", "1")
    )
    session[f"{profile.key}_capacity"] = capacity
    session[f"{profile.key}_fractional"] = allow_fractional

    if not len(catalog):
        flash(f"Add at least one {profile.item_noun} before optimizing.", "error")
        return _render_dashboard(profile)

    result = None
    pipeline = OptimizationPipeline(database_path=current_app.config["DATABASE_PATH"])
    try:
        result = pipeline.run(
            catalog.items,
            profile=profile,
            capacity=capacity,
            allow_fractional=allow_fractional,
        )
        flash("Optimization completed.", "success")
    except Exception as exc:  # pylint: disable=broad-except
        current_app.logger.exception("Optimization failed: %s", exc)
        flash(f"Optimization failed: {exc}", "error")

    return _render_dashboard(profile, result=result)


@bp.route("/history")
def history_view() -> str:
    history = database.fetch_history(
        limit=100, path=current_app.config["DATABASE_PATH"]
    )
    return render_template(
        "history.html",
        history=history,
        profiles=list(PROFILES.values()),
        profile_titles={key: profile.title for key, profile in PROFILES.items()},
    )


def _fetch_run(run_id: int) -> Optional[dict]:
    run = database.fetch_run(run_id, path=current_app.config["DATABASE_PATH"])
    if not run:
        flash("Run not found.", "error")
    return run


@bp.route("/downloads/<int:run_id>/selection")
def download_selection(run_id: int) -> Response:
    run = _fetch_run(run_id)
    if not run:
        return redirect(url_for("dashboard.history_view"))

    content = json.dumps(
        {
            "profile": run["profile"],
            "capacity": run["capacity"],
            "allow_fractional": run["allow_fractional"],
            "total_weight_used": run["total_weight"],
            "total_value_gained": run["total_value"],
            "selected_items": run["selected_items"],
        },
        ensure_ascii=False,
    )
    export_dir = current_app.config["EXPORT_DIR"]
    export_dir.mkdir(parents=True, exist_ok=True)
    path = export_dir / f"run_{run_id}_selection.json"
    path.write_text(content, encoding="utf-8")
    return send_file(path, as_attachment=True)


@bp.route("/downloads/<int:run_id>/selection.csv")
def download_selection_csv(run_id: int) -> Response:
    run = _fetch_run(run_id)
    if not run:
        return redirect(url_for("dashboard.history_view"))

    export_dir = current_app.config["EXPORT_DIR"]
    export_dir.mkdir(parents=True, exist_ok=True)
    path = export_dir / f"run_{run_id}_selection.csv"
    describe_selection(run["selected_items"]).to_csv(path, index=False)
    return send_file(path, as_attachment=True, mimetype="text/csv")


@bp.route("/api/select", methods=["POST"])
def api_select() -> Response:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"error": "Request body must be a JSON object."}), 400

    records = payload.get("items", [])
    if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
        return jsonify({"error": "'items' must be a list of objects."}), 400

    try:
        catalog = ItemCatalog.from_records(records)
        capacity = parse_capacity(payload.get("capacity"))
    except (ItemValidationError, CapacityValidationError) as exc:
        return jsonify({"error": str(exc)}), 400

    allow_fractional = payload.get("allow_fractional", False)
    if not isinstance(allow_fractional, bool):
        return jsonify({"error": "'allow_fractional' must be true or false."}), 400

    result = select(catalog.items, capacity, allow_fractional=allow_fractional)
    return jsonify(result.to_dict())
