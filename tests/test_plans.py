# tests/test_plans.py

import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from app.errors import ValidationError
from app.models.plan import Plan
from app.models.types import point_ewkt
from app.services import plans as plans_service


def _future(hours=24):
    return (datetime.now(timezone.utc) + timedelta(hours=hours)).isoformat()


def plan_payload(**overrides):
    body = {
        "title": "Sunset coffee",
        "description": "Grab a coffee by the river",
        "category": "coffee",
        "lat": 50.4501,
        "lng": 30.5234,
        "placeName": "Riverside Cafe",
        "datetime": _future(),
        "maxParticipants": 4,
    }
    body.update(overrides)
    return body


def nearby_row(**overrides):
    row = {
        "id": "4b8c2c0e-9d9a-4d35-8a43-0d3f1b1b2f10",
        "title": "Board games",
        "description": None,
        "category": "games",
        "location_name": "Library",
        "time": datetime(2026, 10, 20, 18, 0, tzinfo=timezone.utc),
        "max_people": 6,
        "current_people": 2,
        "creator_name": "Ada Lovelace",
        "verification_status": "email_verified",
        "lat": 50.45,
        "lng": 30.52,
        "distance_m": 1530.0,
    }
    row.update(overrides)
    return row


# ---------- nearby query ----------

def test_initials():
    assert plans_service.initials("Ada Lovelace") == "AL"
    assert plans_service.initials("  grace   brewster hopper ") == "gbh"
    assert plans_service.initials("") == ""


def test_format_km_one_decimal():
    assert plans_service.format_km(1530.0) == "1.5"
    assert plans_service.format_km(0) == "0.0"
    assert plans_service.format_km(9999.0) == "10.0"


def test_nearby_row_is_flattened():
    out = plans_service.nearby_row_to_plan(nearby_row())
    assert out["location"] == {"lat": 50.45, "lng": 30.52, "placeName": "Library"}
    assert out["distance"] == "1.5"
    assert out["participants"] == 2
    assert out["maxParticipants"] == 6
    assert out["creator"] == {"name": "Ada Lovelace", "verified": True, "initials": "AL"}

    out = plans_service.nearby_row_to_plan(nearby_row(verification_status="unverified"))
    assert out["creator"]["verified"] is False


def test_nearby_query_delegates_to_postgis():
    db = MagicMock()
    db.execute.return_value.mappings.return_value.all.return_value = [
        nearby_row(distance_m=800.0),
        nearby_row(distance_m=9400.0),
    ]

    out = plans_service.nearby_plans(db, lat=50.45, lng=30.52, radius=10000)

    stmt, params = db.execute.call_args[0]
    sql = str(stmt)
    assert "ST_DWithin" in sql
    assert "ST_MakePoint(:lng, :lat)" in sql
    assert "ORDER BY distance_m ASC" in sql
    assert "LIMIT :limit" in sql
    assert "INTERVAL" not in sql
    assert params == {"lat": 50.45, "lng": 30.52, "radius": 10000, "limit": 50}
    assert [p["distance"] for p in out] == ["0.8", "9.4"]


@pytest.mark.parametrize("filter, interval", [("today", "24 hours"), ("soon", "3 hours")])
def test_nearby_time_filters(filter, interval):
    assert f"INTERVAL '{interval}'" in str(plans_service.build_nearby_query(filter))


def test_nearby_rejects_unknown_filter():
    with pytest.raises(ValidationError):
        plans_service.build_nearby_query("tomorrow")


def test_nearby_endpoint_requires_auth(client):
    resp = client.get("/plans/nearby", params={"lat": 1, "lng": 2})
    assert resp.status_code == 401


def test_nearby_endpoint_requires_coordinates(client, create_user, login):
    user = create_user()
    login(user.email)

    resp = client.get("/plans/nearby", params={"lat": 50.45})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "lat and lng required"


def test_nearby_endpoint_passes_params(client, create_user, login, monkeypatch):
    user = create_user()
    login(user.email)
    calls = []

    def fake_nearby(db, lat, lng, radius, filter):
        calls.append((lat, lng, radius, filter))
        return [plans_service.nearby_row_to_plan(nearby_row())]

    monkeypatch.setattr(plans_service, "nearby_plans", fake_nearby)

    resp = client.get("/plans/nearby", params={"lat": 50.45, "lng": 30.52})
    assert resp.status_code == 200
    assert resp.json()[0]["distance"] == "1.5"

    client.get("/plans/nearby", params={"lat": 50.45, "lng": 30.52, "radius": 10000, "filter": "soon"})
    resp = client.get("/plans/nearby", params={"lat": 50.45, "lng": 30.52, "radius": 500000})
    assert resp.status_code == 200
    assert calls == [
        (50.45, 30.52, 5000, "all"),
        (50.45, 30.52, 10000, "soon"),
        (50.45, 30.52, 500000, "all"),
    ]


# ---------- create ----------

def test_point_ewkt_is_lng_first():
    assert point_ewkt(50.5, 30.25) == "SRID=4326;POINT(30.25 50.5)"


def test_create_plan(client, create_user, login, db_session):
    user = create_user(name="Ada Lovelace")
    login(user.email)

    resp = client.post("/plans/create", json=plan_payload())
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    plan = body["plan"]
    assert plan["title"] == "Sunset coffee"
    assert plan["location"] == {"lat": 50.4501, "lng": 30.5234, "placeName": "Riverside Cafe"}
    assert plan["participants"] == 1
    assert plan["maxParticipants"] == 4
    assert plan["distance"] == 0
    assert plan["status"] == "active"
    assert plan["creator"] == {"name": "Ada Lovelace", "verified": True, "initials": "AL"}

    row = db_session.get(Plan, uuid.UUID(plan["id"]))
    assert row.user_id == user.id
    assert row.location == "SRID=4326;POINT(30.5234 50.4501)"


def test_create_plan_requires_auth(client):
    resp = client.post("/plans/create", json=plan_payload())
    assert resp.status_code == 401


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"title": ""}, "title"),
        ({"placeName": " "}, "placeName"),
        ({"lat": 123}, "lat"),
        ({"maxParticipants": 0}, "maxParticipants"),
        ({"maxParticipants": 11}, "maxParticipants"),
    ],
)
def test_create_plan_validation(client, create_user, login, overrides, field):
    user = create_user()
    login(user.email)

    resp = client.post("/plans/create", json=plan_payload(**overrides))
    assert resp.status_code == 400
    assert resp.json()["detail"].startswith(field)


def test_create_plan_in_the_past(client, create_user, login):
    user = create_user()
    login(user.email)

    resp = client.post("/plans/create", json=plan_payload(datetime=_future(hours=-1)))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "datetime: Date must be in the future"
