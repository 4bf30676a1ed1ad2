import pytest

from conftest import FakeDB
from safetyapp.services.employee_service import EmployeeService


def employee_db():
    return FakeDB({"employees": {
        "x": {"empId": "E1", "fullName": "Somchai P.", "department": "Safety", "updatedAt": "2024-03-01T00:00:00Z"},
        "y": {"empId": "สมชาย 1", "fullName": "Anan K."},
    }})


@pytest.mark.asyncio
async def test_get_employee_by_emp_id():
    success, employee, _ = await EmployeeService(employee_db()).get_employee("E1")

    assert success is True
    assert employee["id"] == "x"
    assert employee["fullName"] == "Somchai P."
    assert "_doc_id" not in employee


@pytest.mark.asyncio
async def test_unknown_employee():
    assert await EmployeeService(employee_db()).get_employee("E404") == (False, None, "Employee not found")


def test_employee_endpoints(make_client, fake_db):
    fake_db.collections.update(employee_db().collections)
    client = make_client()

    listing = client.get("/api/employees").json()
    assert listing["count"] == 2

    response = client.get("/api/employees/%E0%B8%AA%E0%B8%A1%E0%B8%8A%E0%B8%B2%E0%B8%A2%201")
    assert response.status_code == 200
    assert response.json()["employee"]["id"] == "y"

    missing = client.get("/api/employees/E404")
    assert missing.status_code == 404
    assert missing.json() == {"success": False, "error": "No employee found with ID: E404"}


def test_employee_store_failure(make_client, fake_db):
    fake_db.fail = True
    assert make_client().get("/api/employees/E1").status_code == 500
