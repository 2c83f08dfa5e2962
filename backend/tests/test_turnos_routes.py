from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from sqlalchemy.exc import SQLAlchemyError

from app.models.turno import Turno


def _create_batch(client, **overrides):
    payload = {
        "nombre": "Ana",
        "servicio": "corte",
        "fecha": "2025-03-01",
        "hora": "10:00",
        "nTurnos": 3,
    }
    payload.update(overrides)
    res = client.post("/turnos/batch", json=payload)
    assert res.status_code == 200, res.text
    return res.json()


def _group(client, group_id):
    res = client.get("/turnos")
    assert res.status_code == 200
    items = [t for t in res.json()["items"] if t["grupoId"] == group_id]
    return sorted(items, key=lambda t: t["turnoIndex"])


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json() == {"ok": True}


def test_batch_create_and_list(client):
    body = _create_batch(client)
    assert body["ok"] is True
    assert body["count"] == 3
    group_id = body["groupId"]

    items = _group(client, group_id)
    assert [t["turnoIndex"] for t in items] == [1, 2, 3]
    first = items[0]
    assert first["fecha"] == "2025-03-01"
    assert first["hora"] == "10:00"
    assert first["nombre"] == "Ana"
    assert first["otroServicio"] is None
    assert "expiresAt" in first


def test_batch_accepts_turno_alias_and_numeric_string(client):
    body = _create_batch(client, nTurnos=None, turno="2")
    assert body["count"] == 2


def test_batch_validation_errors_are_400(client):
    for bad in (
        {"nTurnos": 0},
        {"nTurnos": 21},
        {"fecha": "01/03/2025"},
        {"fecha": "2025-02-30"},
        {"hora": "10h"},
        {"nombre": ""},
    ):
        payload = {"nombre": "Ana", "servicio": "corte", "fecha": "2025-03-01", "hora": "10:00", "nTurnos": 3}
        payload.update(bad)
        res = client.post("/turnos/batch", json=payload)
        assert res.status_code == 400, bad
        data = res.json()
        assert data["error"] == "VALIDATION_ERROR"
        assert isinstance(data["message"], str) and data["message"]


def test_patch_resize_grows_then_shrinks(client):
    group_id = _create_batch(client)["groupId"]
    first_id = _group(client, group_id)[0]["id"]

    res = client.patch(f"/turnos/{first_id}", json={"nTurnos": 5})
    assert res.status_code == 200
    item = res.json()["item"]
    assert item["id"] == first_id
    assert item["fecha"] == "2025-03-01"

    grown = _group(client, group_id)
    assert [t["turnoIndex"] for t in grown] == [1, 2, 3, 4, 5]
    assert {(t["nombre"], t["servicio"], t["fecha"], t["hora"]) for t in grown} == {
        ("Ana", "corte", "2025-03-01", "10:00")
    }

    res = client.patch(f"/turnos/{first_id}", json={"nTurnos": 2})
    assert res.status_code == 200
    assert [t["turnoIndex"] for t in _group(client, group_id)] == [1, 2]


def test_patch_ignores_blank_fields(client):
    group_id = _create_batch(client, telefono="555")["groupId"]
    turno_id = _group(client, group_id)[0]["id"]

    res = client.patch(
        f"/turnos/{turno_id}",
        json={"nombre": "Ana B", "fecha": "", "hora": None, "telefono": "", "nTurnos": ""},
    )
    assert res.status_code == 200
    item = res.json()["item"]
    assert item["nombre"] == "Ana B"
    assert item["fecha"] == "2025-03-01"
    assert item["hora"] == "10:00"
    assert item["telefono"] == "555"
    assert len(_group(client, group_id)) == 3


def test_patch_invalid_field_is_400(client):
    group_id = _create_batch(client)["groupId"]
    turno_id = _group(client, group_id)[0]["id"]

    res = client.patch(f"/turnos/{turno_id}", json={"hora": "25"})
    assert res.status_code == 400
    assert res.json()["error"] == "VALIDATION_ERROR"

    res = client.patch(f"/turnos/{turno_id}", json={"nTurnos": 50})
    assert res.status_code == 400


def test_patch_otros_keeps_previous_text(client):
    group_id = _create_batch(client, servicio="otros", otroServicio="tinte", nTurnos=1)["groupId"]
    turno_id = _group(client, group_id)[0]["id"]

    res = client.patch(f"/turnos/{turno_id}", json={"servicio": "otros"})
    assert res.status_code == 200
    assert res.json()["item"]["otroServicio"] == "tinte"

    res = client.patch(f"/turnos/{turno_id}", json={"servicio": "otros", "otroServicio": "mechas"})
    assert res.status_code == 200
    assert res.json()["item"]["otroServicio"] == "mechas"


def test_patch_missing_turno_is_404(client):
    res = client.patch("/turnos/999999", json={"nombre": "x"})
    assert res.status_code == 404
    assert res.json()["error"] == "NOT_FOUND"


def test_delete_one_leaves_siblings_untouched(client):
    group_id = _create_batch(client)["groupId"]
    items = _group(client, group_id)

    res = client.delete(f"/turnos/{items[1]['id']}")
    assert res.status_code == 200
    assert res.json() == {"ok": True}

    remaining = _group(client, group_id)
    assert [t["turnoIndex"] for t in remaining] == [1, 3]

    res = client.delete(f"/turnos/{items[1]['id']}")
    assert res.status_code == 404


def test_list_hides_expired(client, db_session):
    db_session.add(
        Turno(
            nombre="Viejo",
            servicio="corte",
            fecha=date(2024, 1, 1),
            hora="09:00",
            expires_at=datetime.now(timezone.utc) - timedelta(minutes=1),
        )
    )
    db_session.commit()
    _create_batch(client, nTurnos=1)

    names = [t["nombre"] for t in client.get("/turnos").json()["items"]]
    assert names == ["Ana"]


def test_patch_shrink_past_edited_row_returns_first_survivor(client):
    group_id = _create_batch(client)["groupId"]
    items = _group(client, group_id)

    res = client.patch(f"/turnos/{items[2]['id']}", json={"nTurnos": 1})
    assert res.status_code == 200
    item = res.json()["item"]
    assert item["id"] == items[0]["id"]
    assert item["id"] != items[2]["id"]
    assert [t["id"] for t in _group(client, group_id)] == [items[0]["id"]]

    description = client.get("/openapi.json").json()["paths"]["/turnos/{turno_id}"]["patch"]["description"]
    assert "first surviving row" in description


def _assert_generic_500(res, message):
    assert res.status_code == 500
    assert res.json() == {"error": "INTERNAL_ERROR", "message": message}
    assert "secret detail" not in res.text


def test_batch_persistence_failure_is_500_and_creates_nothing(client, db_session, monkeypatch):
    def _boom():
        raise SQLAlchemyError("secret detail")

    monkeypatch.setattr(db_session, "commit", _boom)

    res = client.post(
        "/turnos/batch",
        json={"nombre": "Ana", "servicio": "corte", "fecha": "2025-03-01", "hora": "10:00", "nTurnos": 3},
    )
    _assert_generic_500(res, "No se pudo crear el lote de turnos")
    assert db_session.query(Turno).count() == 0


def test_patch_persistence_failure_is_500_and_group_unchanged(client, monkeypatch):
    group_id = _create_batch(client)["groupId"]
    turno_id = _group(client, group_id)[0]["id"]

    def _boom(*args, **kwargs):
        raise SQLAlchemyError("secret detail")

    monkeypatch.setattr("app.services.turnos.resize_group", _boom)

    res = client.patch(f"/turnos/{turno_id}", json={"nombre": "X", "nTurnos": 5})
    _assert_generic_500(res, "No se pudo actualizar el turno")

    group = _group(client, group_id)
    assert [(t["turnoIndex"], t["nombre"]) for t in group] == [(1, "Ana"), (2, "Ana"), (3, "Ana")]


def test_delete_persistence_failure_is_500(client, monkeypatch):
    group_id = _create_batch(client)["groupId"]
    turno_id = _group(client, group_id)[0]["id"]

    def _boom(db, turno_id):  # noqa: ARG001
        raise SQLAlchemyError("secret detail")

    monkeypatch.setattr("app.routes.turnos.delete_turno", _boom)

    res = client.delete(f"/turnos/{turno_id}")
    _assert_generic_500(res, "No se pudo eliminar el turno")
    assert len(_group(client, group_id)) == 3
