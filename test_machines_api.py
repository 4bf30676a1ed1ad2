import pytest

from conftest import DEFAULT_USER, FakeDB
from safetyapp.models.api_models import MachineCreate
from safetyapp.services.equipment_service import DUPLICATE_MACHINE_ERROR, EquipmentService
from safetyapp.services.favorites_service import FavoritesService
from safetyapp.services.record_query_service import RecordQueryService

NEW_MACHINE = {"bu": "th", "site": "rmx", "type": "Mixer", "id": "M-001"}


def test_create_machine_adds_favorite(make_client, fake_db):
    response = make_client().post("/api/machines", json=NEW_MACHINE)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Machine created and added to favorites"
    assert body["machineKey"] == "th_mixer_M-001"
    assert body["favorited"] is True

    stored = fake_db.docs("machine")[body["machineId"]]
    assert stored["type"] == "mixer"
    assert stored["plantId"] == "rmx"
    assert stored["email"] == DEFAULT_USER["email"]
    assert stored["status"] == "active"
    assert stored["images"] == []
    assert fake_db.docs("machineFavourites")["user_1"] == {"th_mixer_M-001": True}


def test_duplicate_machine_is_rejected(make_client, fake_db):
    fake_db.collections["machine"] = {"legacy": {"bu": "th", "site": "srb", "type": "mixer", "id": "M-001"}}
    response = make_client().post("/api/machines", json=NEW_MACHINE)

    assert response.status_code == 409
    assert response.json() == {"success": False, "error": DUPLICATE_MACHINE_ERROR}
    assert list(fake_db.docs("machine")) == ["legacy"]


def test_create_machine_requires_identity_fields(make_client):
    response = make_client().post("/api/machines", json={"bu": "th", "site": "rmx", "type": "mixer"})
    assert response.status_code == 400


def test_create_machine_without_token_is_unauthorized(make_client, fake_db):
    response = make_client(authenticate=False).post("/api/machines", json=NEW_MACHINE)
    assert response.status_code == 401
    assert fake_db.docs("machine") == {}


def test_create_machine_with_invalid_token_is_unauthorized(make_client):
    client = make_client(authenticate=False)
    response = client.post("/api/machines", json=NEW_MACHINE, headers={"Authorization": "Bearer forged"})
    assert response.status_code == 401


def test_session_cookie_is_accepted(make_client, fake_db):
    client = make_client(authenticate=False)
    client.cookies.set("firebaseAuthToken", "valid:cookie_user")
    response = client.post("/api/machines", json=NEW_MACHINE)
    assert response.status_code == 200
    assert "cookie_user" in fake_db.docs("machineFavourites")


def test_list_and_get_machines(make_client, fake_db):
    fake_db.collections["machine"] = {
        "a": {"bu": "th", "site": "rmx", "type": "mixer", "id": "1"},
        "b": {"bu": "th", "site": "srb", "type": "mixer", "id": "2"},
        "c": {"bu": "vn", "site": "thiv", "type": "forklift", "id": "3"},
    }
    client = make_client()

    listing = client.get("/api/machines", params={"bu": "th", "type": "MIXER"}).json()
    assert listing["count"] == 2
    assert {m["docId"] for m in listing["machines"]} == {"a", "b"}

    one = client.get("/api/machines/c").json()
    assert one["machine"]["machineKey"] == "vn_forklift_3"

    assert client.get("/api/machines/missing").status_code == 404


def test_update_machine_keeps_identity(make_client, fake_db):
    fake_db.collections["machine"] = {"a": {"bu": "th", "site": "rmx", "type": "mixer", "id": "1"}}
    response = make_client().put(
        "/api/machines", json={"docId": "a", "location": "Gate 2", "id": "999", "type": "car"}
    )
    assert response.status_code == 200
    stored = fake_db.docs("machine")["a"]
    assert stored["location"] == "Gate 2"
    assert stored["id"] == "1"
    assert stored["type"] == "mixer"
    assert stored["updatedBy"] == DEFAULT_USER["email"]


def test_update_machine_errors(make_client):
    client = make_client()
    assert client.put("/api/machines", json={"location": "x"}).status_code == 400
    assert client.put("/api/machines", json={"docId": "nope", "location": "x"}).status_code == 404


def test_delete_machine_requires_doc_id(make_client):
    assert make_client().delete("/api/machines").status_code == 400


def test_delete_with_favorite_removes_both(make_client, fake_db):
    fake_db.collections["machine"] = {"a": {"bu": "th", "site": "rmx", "type": "mixer", "id": "1"}}
    fake_db.collections["machineFavourites"] = {"user_1": {"th_mixer_1": True, "th_mixer_2": True}}

    response = make_client().delete("/api/machines/delete", params={"docId": "a", "machineKey": "th_mixer_1"})

    assert response.status_code == 200
    assert response.json()["favoriteRemoved"] is True
    assert "a" not in fake_db.docs("machine")
    assert fake_db.docs("machineFavourites")["user_1"] == {"th_mixer_2": True}


def test_delete_with_favorite_requires_both_params(make_client):
    response = make_client().delete("/api/machines/delete", params={"docId": "a"})
    assert response.status_code == 400
    assert response.json()["error"] == "Missing docId or machineKey"


class FavoriteWriteFails(FavoritesService):
    async def add_favorite(self, user_id, machine_key):
        return False, "favorites unavailable"


@pytest.mark.asyncio
async def test_create_succeeds_when_favorite_write_fails():
    db = FakeDB()
    query = RecordQueryService(db)
    service = EquipmentService(db, query, FavoriteWriteFails(db, query))

    success, result, error = await service.create_equipment(MachineCreate(**NEW_MACHINE), DEFAULT_USER)

    assert success is True
    assert result["favorited"] is False
    assert result["machineId"] in db.docs("machine")


@pytest.mark.asyncio
async def test_concurrent_duplicate_is_caught_by_document_id():
    db = FakeDB()
    query = RecordQueryService(db)
    service = EquipmentService(db, query, FavoritesService(db, query))
    payload = MachineCreate(**NEW_MACHINE)

    # the second create sees no existing machine in its pre-check
    original_find = query.find

    async def stale_find(*args, **kwargs):
        return True, [], None

    ok, first, _ = await service.create_equipment(payload, DEFAULT_USER)
    query.find = stale_find
    try:
        ok_again, _, error = await service.create_equipment(payload, DEFAULT_USER)
    finally:
        query.find = original_find

    assert ok is True
    assert ok_again is False
    assert error == DUPLICATE_MACHINE_ERROR
    assert len(db.docs("machine")) == 1


@pytest.mark.asyncio
async def test_get_by_key():
    db = FakeDB({"machine": {"a": {"bu": "th", "site": "rmx", "type": "mixer", "id": "1"}}})
    query = RecordQueryService(db)
    service = EquipmentService(db, query, FavoritesService(db, query))

    success, machine, _ = await service.get_by_key("th", "Mixer", "1")
    assert success is True
    assert machine["docId"] == "a"

    success, machine, error = await service.get_by_key("th", "mixer", "2")
    assert success is False
    assert error == "Document not found"
