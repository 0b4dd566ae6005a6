import re
import sqlite3
from datetime import datetime

TIME_RE = re.compile(r"^\d{2}:\d{2}:\d{2}$")


def _today() -> str:
    return datetime.now().strftime("%Y-%m-%d")


def _create(client, payload):
    r = client.post("/api/okr", json=payload)
    assert r.status_code == 201, r.text
    return r.json()


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_metadata_endpoint(client):
    r = client.get("/api/units/meta")
    assert r.status_code == 200
    assert r.json() == {"columns": ["id", "unitofmeasurement"], "primaryKey": "id"}


def test_metadata_for_unknown_table_is_a_client_error(client):
    r = client.get("/api/bogus/meta")
    assert r.status_code == 400
    body = r.json()["detail"]
    assert body["status"] == 400
    assert body["details"]["error"] == "table_not_found"
    assert body["details"]["message"] == "Table or view not found: bogus"


def test_metadata_for_broken_view_is_a_client_error(client, db_path):
    with sqlite3.connect(db_path) as conn:
        conn.execute("CREATE TABLE tmp (id INTEGER)")
        conn.execute("CREATE VIEW v AS SELECT * FROM tmp")
        conn.execute("DROP TABLE tmp")
    conn.close()

    for path in ("/api/v/meta", "/api/v"):
        r = client.get(path)
        assert r.status_code == 400, r.text
        assert r.json()["detail"]["details"]["error"] == "table_not_found"


def test_list_is_newest_first(client):
    r = client.get("/api/units")
    assert r.status_code == 200
    ids = [row["id"] for row in r.json()]
    assert ids == [7, 6, 5, 4, 3, 2, 1]
    assert r.json()[0] == {"id": 7, "unitofmeasurement": None}


def test_list_unknown_table(client):
    assert client.get("/api/bogus").status_code == 400


def test_create_populates_timestamps_and_key(client, okr_payload):
    before = _today()
    created = _create(client, okr_payload)
    after = _today()

    for key, value in okr_payload.items():
        assert created[key] == value
    assert isinstance(created["id"], int)
    assert created["createdon"] in (before, after)
    assert created["modifiedon"] == created["createdon"]
    assert TIME_RE.match(created["modifiedtime"])

    stored = client.get(f"/api/okr/{created['id']}").json()
    assert stored == created


def test_create_ignores_unknown_keys_and_supplied_key(client, okr_payload):
    created = _create(client, {**okr_payload, "id": 500, "colour": "red"})
    assert "colour" not in created
    assert created["id"] == 1
    assert client.get("/api/okr/500").status_code == 404


def test_create_keeps_caller_timestamp(client, okr_payload):
    created = _create(client, {**okr_payload, "createdon": "2020-01-01"})
    assert created["createdon"] == "2020-01-01"
    assert created["modifiedon"] != "2020-01-01"


def test_create_without_timestamp_columns(client):
    r = client.post("/api/units", json={"unitofmeasurement": "kilograms"})
    assert r.status_code == 201
    assert r.json() == {"unitofmeasurement": "kilograms", "id": 8}


def test_create_with_only_unknown_keys_inserts_nothing(client):
    r = client.post("/api/okr", json={"nonexistent_field": "x"})
    assert r.status_code == 400
    assert r.json()["detail"]["details"]["error"] == "no_valid_columns"
    assert client.get("/api/okr").json() == []


def test_create_rejects_non_object_body(client):
    r = client.post("/api/okr", json=["objective"])
    assert r.status_code == 400
    r = client.post(
        "/api/okr", content=b"not json", headers={"Content-Type": "application/json"}
    )
    assert r.status_code == 400


def test_store_errors_are_500_with_store_message(client):
    r = client.post("/api/okr", json={"objective": "Missing the rest"})
    assert r.status_code == 500
    details = r.json()["detail"]["details"]
    assert details["error"] == "internal_error"
    assert details["message"].startswith("Internal server error: NOT NULL constraint failed")


def test_integers_outside_store_range_are_500_and_logged(client, caplog):
    with caplog.at_level("ERROR", logger="app"):
        created = client.post("/api/units", json={"unitofmeasurement": 2**70})
        updated = client.put("/api/units/1", json={"unitofmeasurement": -(2**70)})

    for r in (created, updated):
        assert r.status_code == 500
        assert r.json()["detail"]["details"]["error"] == "internal_error"
    sql_lines = [m for m in caplog.messages if m.startswith("SQL: ")]
    assert any(m.startswith("SQL: INSERT INTO") for m in sql_lines)
    assert any(m.startswith("SQL: UPDATE") for m in sql_lines)


def test_update_changes_only_submitted_and_modified_fields(client, okr_payload):
    created = _create(client, {**okr_payload, "createdon": "2024-01-01"})
    row_id = created["id"]

    r = client.put(f"/api/okr/{row_id}", json={"objective": "Grow revenue faster"})
    assert r.status_code == 200
    updated = r.json()
    assert updated["id"] == str(row_id)
    assert updated["objective"] == "Grow revenue faster"
    assert set(updated) == {"objective", "modifiedon", "modifiedtime", "id"}

    stored = client.get(f"/api/okr/{row_id}").json()
    assert stored["objective"] == "Grow revenue faster"
    assert stored["createdon"] == "2024-01-01"
    assert stored["modifiedon"] == updated["modifiedon"]
    for key in ("keyreesulttext", "keyresultmetric", "unit", "targetdate"):
        assert stored[key] == okr_payload[key]


def test_update_missing_row_is_404(client):
    r = client.put("/api/okr/99999", json={"objective": "x"})
    assert r.status_code == 404
    assert r.json()["detail"]["details"]["message"] == "Item not found"


def test_update_without_valid_columns(client, okr_payload):
    created = _create(client, okr_payload)
    r = client.put(f"/api/okr/{created['id']}", json={"id": 3, "bogus": 1})
    assert r.status_code == 400
    assert r.json()["detail"]["details"]["error"] == "no_valid_columns"


def test_get_missing_row_is_404(client):
    assert client.get("/api/okr/99999").status_code == 404
    assert client.get("/api/bogus/1").status_code == 400


def test_delete(client, okr_payload):
    created = _create(client, okr_payload)

    r = client.delete(f"/api/okr/{created['id']}")
    assert r.status_code == 204
    assert r.content == b""
    assert client.get(f"/api/okr/{created['id']}").status_code == 404


def test_delete_missing_row_is_404(client):
    assert client.delete("/api/okr/99999").status_code == 404


def test_search_matches_any_column(client, okr_payload):
    percent = _create(client, okr_payload)
    _create(client, {**okr_payload, "unit": "dollars", "objective": "Cut costs"})
    metric = _create(client, {**okr_payload, "unit": "tons", "keyresultmetric": 12345})

    r = client.get("/api/okr/search/percent")
    assert r.status_code == 200
    assert [row["id"] for row in r.json()] == [percent["id"]]

    # numeric columns are matched through their text form
    r = client.get("/api/okr/search/2345")
    assert [row["id"] for row in r.json()] == [metric["id"]]


def test_search_follows_sqlite_like_semantics(client, okr_payload):
    _create(client, okr_payload)
    # ASCII LIKE is case-insensitive in SQLite
    assert len(client.get("/api/okr/search/PERCENT").json()) == 1
    assert client.get("/api/okr/search/nothing-like-this").json() == []
    # NULL never matches; "percent" has no "s"
    found = {row["id"] for row in client.get("/api/units/search/s").json()}
    assert found == {2, 3, 4, 5, 6}


def test_search_unknown_table(client):
    assert client.get("/api/bogus/search/x").status_code == 400
