import pytest

from conftest import ADMIN_USER, FakeDB
from safetyapp.services.favorites_service import FavoritesService
from safetyapp.services.record_query_service import RecordQueryService


def thiv_machines(count=12):
    return {
        f"m{i}": {"bu": "vn", "site": "thiv", "type": "Forklift" if i % 2 else "mixer", "id": f"{i:03d}"}
        for i in range(count)
    }


def favorites_service(db):
    return FavoritesService(db, RecordQueryService(db))


@pytest.mark.asyncio
async def test_add_favorites_for_site_writes_every_machine_key():
    db = FakeDB({"machine": {**thiv_machines(), "other": {"bu": "vn", "site": "hiep", "type": "mixer", "id": "900"}}})
    success, keys, error = await favorites_service(db).add_favorites_for_site("user_1", "vn", "thiv")

    assert success is True
    assert len(keys) == 12
    assert "vn_forklift_001" in keys
    assert "vn_mixer_000" in keys
    assert db.docs("machineFavourites")["user_1"] == {key: True for key in keys}


@pytest.mark.asyncio
async def test_add_favorites_is_idempotent_and_keeps_existing_keys():
    db = FakeDB({
        "machine": thiv_machines(3),
        "machineFavourites": {"user_1": {"th_mixer_77": True}},
    })
    service = favorites_service(db)
    await service.add_favorites_for_site("user_1", "vn", "thiv")
    first = dict(db.docs("machineFavourites")["user_1"])
    await service.add_favorites_for_site("user_1", "vn", "thiv")

    assert db.docs("machineFavourites")["user_1"] == first
    assert first["th_mixer_77"] is True
    assert len(first) == 4


@pytest.mark.asyncio
async def test_no_matching_machines_writes_nothing():
    db = FakeDB({"machine": thiv_machines(2)})
    success, keys, error = await favorites_service(db).add_favorites_for_site("user_1", "th", "sccc")
    assert success is True
    assert keys == []
    assert "user_1" not in db.docs("machineFavourites")


@pytest.mark.asyncio
async def test_remove_and_list_favorites():
    db = FakeDB({"machineFavourites": {"user_1": {"vn_mixer_1": True, "vn_mixer_2": True, "old": False}}})
    service = favorites_service(db)
    await service.remove_favorite("user_1", "vn_mixer_1")
    success, keys, _ = await service.get_favorites("user_1")
    assert keys == ["vn_mixer_2"]


@pytest.mark.asyncio
async def test_favorites_of_unknown_user_are_empty():
    success, keys, error = await favorites_service(FakeDB()).get_favorites("nobody")
    assert success is True
    assert keys == []


def test_add_favorites_endpoint(make_client, fake_db):
    fake_db.collections["machine"] = thiv_machines()
    response = make_client().post("/api/add-favorites", json={"userId": "user_1", "bu": "vn", "site": "thiv"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Successfully added machine favorites"
    assert body["count"] == 12
    assert len(body["favorites"]) == 12


def test_add_favorites_endpoint_with_no_matches(make_client):
    response = make_client().post("/api/add-favorites", json={"userId": "user_1", "bu": "vn", "site": "thiv"})
    assert response.status_code == 200
    assert response.json()["message"] == "No machines found with the specified criteria"
    assert response.json()["count"] == 0


def test_add_favorites_for_another_user_needs_admin(make_client, fake_db):
    fake_db.collections["machine"] = thiv_machines(2)
    response = make_client().post("/api/add-favorites", json={"userId": "someone_else", "bu": "vn", "site": "thiv"})
    assert response.status_code == 403
    assert "someone_else" not in fake_db.docs("machineFavourites")


def test_admin_can_add_favorites_for_another_user(make_client, fake_db):
    fake_db.collections["machine"] = thiv_machines(2)
    response = make_client(user=ADMIN_USER).post(
        "/api/add-favorites", json={"userId": "someone_else", "bu": "vn", "site": "thiv"}
    )
    assert response.status_code == 200
    assert len(fake_db.docs("machineFavourites")["someone_else"]) == 2


def test_add_favorites_requires_fields(make_client):
    response = make_client().post("/api/add-favorites", json={"userId": "user_1", "bu": "vn"})
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_single_favorite_add_and_remove(make_client, fake_db):
    client = make_client()
    assert client.post("/api/favorites/vn_mixer_1").status_code == 200
    assert client.get("/api/favorites").json()["favorites"] == ["vn_mixer_1"]
    assert client.delete("/api/favorites/vn_mixer_1").status_code == 200
    assert client.get("/api/favorites").json()["favorites"] == []
