import pytest

from conftest import FakeDB
from safetyapp.services.man_record_service import ManRecordService, parse_range_bound
from safetyapp.services.record_query_service import RecordQueryService


def man_db(extra=None):
    data = {
        "mantr": {
            "a": {"bu": "th", "site": "rmx", "type": "toolbox", "id": "E1", "timestamp": "2024-05-02T08:00:00Z", "topic": "Heat"},
            "b": {"bu": "th", "site": "srb", "type": "boot", "id": "E2", "timestamp": "2024-05-20T08:00:00Z", "alertNo": "A-7"},
            "c": {"bu": "th", "site": "rmx", "type": "toolbox", "id": "E3", "createdAt": "2024-05-31T10:00:00Z"},
            "d": {"bu": "th", "site": "rmx", "type": "toolbox", "id": "E1", "timestamp": "2024-06-02T08:00:00Z"},
            "e": {"bu": "vn", "site": "thiv", "type": "toolbox", "id": "E9", "timestamp": "2024-05-02T08:00:00Z"},
        },
        "employees": {
            "x": {"empId": "E1", "fullName": "Somchai P."},
            "y": {"empId": "E2", "fullName": "Anan K."},
        },
    }
    data.update(extra or {})
    return FakeDB(data)


def service(db):
    return ManRecordService(db, RecordQueryService(db))


@pytest.mark.asyncio
async def test_range_with_all_filters_and_names():
    db = man_db()
    success, records, _ = await service(db).get_records_in_range(
        "th", parse_range_bound("2024-05-01"), parse_range_bound("2024-05-31", end=True),
        site="all", record_type="all",
    )
    assert success is True
    assert [r["docId"] for r in records] == ["c", "b", "a"]
    assert records[2]["employeeName"] == "Somchai P."
    assert records[2]["topic"] == "Heat"
    assert records[0]["employeeName"] is None


@pytest.mark.asyncio
async def test_range_filters_by_site_type_and_alert():
    db = man_db()
    start, end = parse_range_bound("2024-05-01"), parse_range_bound("2024-05-31", end=True)
    _, by_site, _ = await service(db).get_records_in_range("th", start, end, site="rmx", record_type="toolbox")
    assert [r["docId"] for r in by_site] == ["c", "a"]

    _, by_alert, _ = await service(db).get_records_in_range("th", start, end, alert_no="A-7")
    assert [r["docId"] for r in by_alert] == ["b"]


@pytest.mark.asyncio
async def test_employee_names_are_fetched_in_batches_of_ten():
    employees = {f"emp{i}": {"empId": f"E{i:02d}", "fullName": f"Person {i}"} for i in range(23)}
    db = FakeDB({"employees": employees})
    names = await service(db).get_employee_names([f"E{i:02d}" for i in range(23)] + ["E00", ""])

    assert len(names) == 23
    batches = [filters[0][2] for collection, filters in db.queries if collection == "employees"]
    assert [len(b) for b in batches] == [10, 10, 3]


@pytest.mark.asyncio
async def test_employee_lookup_failure_is_ignored():
    db = man_db()
    db.fail = True
    assert await service(db).get_employee_names(["E1"]) == {}


@pytest.mark.asyncio
async def test_training_records_come_from_trainings_by_emp_id():
    db = man_db({"trainings": {
        "t1": {"empId": "E1", "courseName": "Forklift", "trainingDate": {"_seconds": 1704067200}, "timestamp": "2024-01-01T00:00:00Z"},
        "t2": {"empId": "E2", "courseName": "First aid"},
    }})
    success, records, _ = await service(db).get_person_records("th", "Training", "E1")
    assert success is True
    assert len(records) == 1
    assert records[0]["docId"] == "t1"
    assert records[0]["trainingDate"] == "2024-01-01T00:00:00+00:00"
    assert db.queries[-1] == ("trainings", [("empId", "==", "E1")])


@pytest.mark.asyncio
async def test_grease_records_come_from_method_records():
    db = man_db({"methodtr": {
        "g1": {"bu": "th", "type": "greaseform", "id": "P-1", "timestamp": "2024-01-01T00:00:00Z"},
        "g2": {"bu": "th", "type": "greaseform", "id": "P-2"},
    }})
    _, records, _ = await service(db).get_person_records("th", "grease", "P-1")
    assert [r["docId"] for r in records] == ["g1"]


@pytest.mark.asyncio
async def test_person_lookup_does_not_widen():
    db = man_db()
    _, records, _ = await service(db).get_person_records("th", "boot", "E1")
    assert records == []
    assert len(db.queries) == 1


def test_range_endpoint(make_client, fake_db):
    fake_db.collections.update(man_db().collections)
    response = make_client().get("/api/man-records", params={
        "bu": "th", "site": "all", "type": "toolbox", "startDate": "2024-05-01", "endDate": "2024-05-31",
    })
    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 2
    assert body["records"][0]["docId"] == "c"


def test_range_endpoint_requires_dates(make_client):
    response = make_client().get("/api/man-records", params={"bu": "th", "startDate": "2024-05-01"})
    assert response.status_code == 400
    assert response.json()["error"] == "Missing required parameters"


def test_range_endpoint_rejects_bad_dates(make_client):
    response = make_client().get("/api/man-records", params={"bu": "th", "startDate": "soon", "endDate": "later"})
    assert response.status_code == 400


def test_person_endpoint_decodes_ids(make_client, fake_db):
    fake_db.collections["mantr"] = {"a": {"bu": "th", "type": "toolbox", "id": "สมชาย 1"}}
    response = make_client().get("/api/man-records/th/Toolbox/%E0%B8%AA%E0%B8%A1%E0%B8%8A%E0%B8%B2%E0%B8%A2%201")
    assert response.json()["count"] == 1


def test_submit_and_delete_man_record(make_client, fake_db):
    client = make_client()
    response = client.post("/api/man-records", json={"id": "E1", "bu": "th", "type": "Toolbox", "topic": "Ladders"})
    assert response.status_code == 200
    doc_id = response.json()["docId"]
    stored = fake_db.docs("mantr")[doc_id]
    assert stored["type"] == "toolbox"
    assert stored["topic"] == "Ladders"

    assert client.delete(f"/api/man-records/{doc_id}").status_code == 200
    assert client.delete(f"/api/man-records/{doc_id}").status_code == 404


def test_submit_man_record_store_failure_is_500(make_client, fake_db):
    fake_db.fail = True
    response = make_client().post("/api/man-records", json={"id": "E1", "bu": "th", "type": "toolbox"})

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Failed to save record"}


def test_submit_man_record_missing_stored_field_is_400(make_client, fake_db):
    # a blank type survives the request model but not the collection schema
    response = make_client().post("/api/man-records", json={"id": "E1", "bu": "th", "type": "  "})

    assert response.status_code == 400
    assert response.json()["error"] == "Missing required fields for mantr: type"
    assert fake_db.docs("mantr") == {}


def test_submit_and_delete_method_record_with_images(make_client, fake_db, fake_bucket):
    client = make_client()
    response = client.post("/api/method-records", json={
        "id": "M-12", "bu": "th", "type": "GreaseForm", "site": "rmx",
        "images": [
            "https://firebasestorage.googleapis.com/v0/b/test-bucket/o/methods%2Fth%2Fg1.jpg?alt=media",
            "gs://test-bucket/methods/th/g2.jpg",
        ],
        "greaseType": "EP2",
    })
    assert response.status_code == 200
    doc_id = response.json()["docId"]
    stored = fake_db.docs("methodtr")[doc_id]
    assert stored["type"] == "greaseform"
    assert stored["greaseType"] == "EP2"

    deleted = client.delete(f"/api/method-records/{doc_id}")
    assert deleted.status_code == 200
    assert deleted.json()["imagesDeleted"] == 2
    assert deleted.json()["imagesTotal"] == 2
    assert fake_bucket.deleted == ["methods/th/g1.jpg", "methods/th/g2.jpg"]
    assert doc_id not in fake_db.docs("methodtr")

    assert client.delete(f"/api/method-records/{doc_id}").status_code == 404


def test_method_record_store_failure_is_500(make_client, fake_db):
    fake_db.fail = True
    response = make_client().post("/api/method-records", json={"id": "M-12", "bu": "th", "type": "greaseform"})

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Failed to save method record"}


def test_method_record_delete_requires_login(make_client):
    assert make_client(authenticate=False).delete("/api/method-records/anything").status_code == 401
