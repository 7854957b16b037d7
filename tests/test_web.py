from __future__ import annotations

import io
import json

from knapsack_optimizer.storage import database


def _add(client, profile: str, name: str, weight: str, value: str):
    return client.post(
        f"/{profile}/items",
        data={"name": name, "weight": weight, "value": value},
        follow_redirects=True,
    )


def _stored_items(client, db_path, profile: str) -> list[dict]:
    with client.session_transaction() as sess:
        token = sess.get("list_token")
    if token is None:
        return []
    return database.fetch_item_list(token, profile, path=db_path)


def test_index_redirects_to_shopping(client) -> None:
    response = client.get("/")
    assert response.status_code == 302
    assert response.headers["Location"].endswith("/shopping")


def test_unknown_profile_is_404(client) -> None:
    assert client.get("/groceries").status_code == 404


def test_dashboards_render(client) -> None:
    shopping = client.get("/shopping")
    portfolio = client.get("/portfolio")
    assert shopping.status_code == 200
    assert b"Bag Capacity (kg)" in shopping.data
    assert b"No items added yet" in shopping.data
    assert portfolio.status_code == 200
    assert b"Budget ($)" in portfolio.data
    assert b"No stocks added yet" in portfolio.data


def test_add_and_remove_item(client, db_path) -> None:
    response = _add(client, "shopping", "Tent", "10", "60")
    assert response.status_code == 200
    assert b"Tent" in response.data

    items = _stored_items(client, db_path, "shopping")
    assert [item["name"] for item in items] == ["Tent"]
    assert _stored_items(client, db_path, "portfolio") == []

    response = client.post(
        f"/shopping/items/{items[0]['id']}/delete", follow_redirects=True
    )
    assert response.status_code == 200
    assert _stored_items(client, db_path, "shopping") == []


def test_invalid_item_is_flashed(client, db_path) -> None:
    response = _add(client, "shopping", "Rock", "0", "1")
    assert b"must be greater than zero" in response.data
    assert _stored_items(client, db_path, "shopping") == []


def test_clear_items(client, db_path) -> None:
    _add(client, "shopping", "Tent", "10", "60")
    client.post("/shopping/items/clear")
    assert _stored_items(client, db_path, "shopping") == []


def test_optimize_shopping(client, db_path) -> None:
    _add(client, "shopping", "A", "10", "60")
    _add(client, "shopping", "B", "20", "100")
    _add(client, "shopping", "C", "30", "120")

    response = client.post("/shopping/optimize", data={"capacity": "50"})

    assert response.status_code == 200
    assert b"Optimization completed." in response.data
    assert b"160.00" in response.data
    assert b"60.0%" in response.data

    history = database.fetch_history(path=db_path)
    assert len(history) == 1
    assert history[0]["allow_fractional"] is False
    assert history[0]["total_value"] == 160.0


def test_optimize_shopping_fractional(client, db_path) -> None:
    _add(client, "shopping", "A", "10", "60")
    _add(client, "shopping", "B", "20", "100")
    _add(client, "shopping", "C", "30", "120")

    response = client.post(
        "/shopping/optimize", data={"capacity": "50", "allow_fractional": "on"}
    )

    assert b"240.00" in response.data
    assert b"67%" in response.data
    with client.session_transaction() as sess:
        assert sess["shopping_fractional"] is True
        assert sess["shopping_capacity"] == 50.0


def test_optimize_portfolio_is_fractional(client, db_path) -> None:
    _add(client, "portfolio", "ACME", "1000", "1200")
    _add(client, "portfolio", "INIT", "4000", "4400")

    response = client.post("/portfolio/optimize", data={"capacity": "3000"})

    assert response.status_code == 200
    assert b"3400.00" in response.data
    assert b"ROI" in response.data
    assert database.fetch_history(path=db_path)[0]["allow_fractional"] is True


def test_optimize_rejects_bad_capacity(client, db_path) -> None:
    _add(client, "shopping", "A", "10", "60")
    response = client.post("/shopping/optimize", data={"capacity": "lots"})
    assert b"Capacity must be a finite number." in response.data
    assert database.fetch_history(path=db_path) == []


def test_optimize_without_items(client, db_path) -> None:
    response = client.post("/shopping/optimize", data={"capacity": "50"})
    assert b"Add at least one item before optimizing." in response.data
    assert database.fetch_history(path=db_path) == []


def test_upload_items(client, db_path) -> None:
    data = {
        "items_file": (io.BytesIO(b"name,weight,value\nTent,10,60\nRock,0,1\n"), "bag.csv")
    }
    response = client.post(
        "/shopping/items/upload",
        data=data,
        content_type="multipart/form-data",
        follow_redirects=True,
    )
    assert b"Imported 1 item(s), skipped 1 invalid row(s)." in response.data
    assert [item["name"] for item in _stored_items(client, db_path, "shopping")] == ["Tent"]


def test_upload_rejects_other_extensions(client) -> None:
    data = {"items_file": (io.BytesIO(b"{}"), "bag.json")}
    response = client.post(
        "/shopping/items/upload",
        data=data,
        content_type="multipart/form-data",
        follow_redirects=True,
    )
    assert b"Only CSV files are supported." in response.data


def test_history_and_downloads(client, db_path) -> None:
    _add(client, "shopping", "A", "10", "60")
    _add(client, "shopping", "B", "20", "100")
    client.post("/shopping/optimize", data={"capacity": "15"})
    run_id = database.fetch_history(path=db_path)[0]["id"]

    history = client.get("/history")
    assert history.status_code == 200
    assert b"Shopping Optimizer" in history.data

    download = client.get(f"/downloads/{run_id}/selection")
    assert download.status_code == 200
    payload = json.loads(download.data)
    assert payload["profile"] == "shopping"
    assert [row["name"] for row in payload["selected_items"]] == ["A"]
    download.close()

    csv_download = client.get(f"/downloads/{run_id}/selection.csv")
    assert csv_download.status_code == 200
    assert csv_download.data.decode("utf-8").splitlines()[0].startswith("id,name,weight")
    csv_download.close()


def test_download_missing_run_redirects(client) -> None:
    response = client.get("/downloads/404/selection")
    assert response.status_code == 302


def test_api_select(client) -> None:
    response = client.post(
        "/api/select",
        json={
            "items": [
                {"id": "a", "name": "A", "weight": 10, "value": 60},
                {"id": "b", "name": "B", "weight": 20, "value": 100},
                {"id": "c", "name": "C", "weight": 30, "value": 120},
            ],
            "capacity": 50,
            "allow_fractional": True,
        },
    )
    assert response.status_code == 200
    body = response.get_json()
    assert [row["id"] for row in body["selected_items"]] == ["a", "b", "c"]
    assert abs(body["total_value_gained"] - 240.0) < 1e-9


def test_api_select_validation(client) -> None:
    bad_weight = client.post(
        "/api/select",
        json={"items": [{"name": "A", "weight": 0, "value": 1}], "capacity": 5},
    )
    assert bad_weight.status_code == 400
    assert "greater than zero" in bad_weight.get_json()["error"]

    bad_capacity = client.post("/api/select", json={"items": [], "capacity": "x"})
    assert bad_capacity.status_code == 400

    not_json = client.post("/api/select", data="capacity=5")
    assert not_json.status_code == 400


def test_upload_rejects_non_utf8_file(client, db_path) -> None:
    data = {
        "items_file": (
            io.BytesIO("name,weight,value\nCr\xe8me,1,2\n".encode("latin-1")),
            "bag.csv",
        )
    }
    response = client.post(
        "/shopping/items/upload",
        data=data,
        content_type="multipart/form-data",
        follow_redirects=True,
    )
    assert response.status_code == 200
    assert b"Item file must be UTF-8 encoded text." in response.data
    assert _stored_items(client, db_path, "shopping") == []


def test_large_import_stays_out_of_the_cookie(client, db_path) -> None:
    rows = "".join(f"Product number {i},{i + 1},{i * 3 + 1}\n" for i in range(150))
    data = {"items_file": (io.BytesIO(f"name,weight,value\n{rows}".encode("utf-8")), "big.csv")}

    response = client.post(
        "/shopping/items/upload", data=data, content_type="multipart/form-data"
    )

    for cookie in response.headers.getlist("Set-Cookie"):
        assert len(cookie) < 1024
    assert len(_stored_items(client, db_path, "shopping")) == 150

    page = client.get("/shopping")
    assert b"Product number 149" in page.data


def test_item_lists_are_per_client(app, client, db_path) -> None:
    _add(client, "shopping", "Tent", "10", "60")
    other = app.test_client()
    assert b"No items added yet" in other.get("/shopping").data


def test_dashboard_history_is_filtered_by_profile(client, db_path) -> None:
    for _ in range(12):
        database.record_run(
            profile="shopping",
            capacity=50.0,
            allow_fractional=False,
            total_weight=1.0,
            total_value=1.0,
            selected_items=[],
            steps=[],
            path=db_path,
        )
    portfolio_run = database.record_run(
        profile="portfolio",
        capacity=100.0,
        allow_fractional=True,
        total_weight=100.0,
        total_value=110.0,
        selected_items=[],
        steps=[],
        path=db_path,
    )

    page = client.get("/portfolio")

    assert b"Recent runs" in page.data
    assert f"#{portfolio_run}:".encode() in page.data


def test_api_select_requires_boolean_fractional_flag(client) -> None:
    payload = {
        "items": [{"id": "a", "name": "A", "weight": 10, "value": 10}],
        "capacity": 5,
    }

    for flag in ("false", "0", 1, None):
        response = client.post("/api/select", json={**payload, "allow_fractional": flag})
        assert response.status_code == 400
        assert "allow_fractional" in response.get_json()["error"]

    whole = client.post("/api/select", json={**payload, "allow_fractional": False})
    assert whole.get_json()["selected_items"] == []

    default = client.post("/api/select", json=payload)
    assert default.get_json()["selected_items"] == []
