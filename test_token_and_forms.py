from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from conftest import FakeDB
from safetyapp.services.form_service import DEFAULT_ICON, FormService, fallback_title, parse_questions
from safetyapp.services.record_query_service import RecordQueryService
from safetyapp.services.token_service import TokenService, today_tokens

BANGKOK = ZoneInfo("Asia/Bangkok")

TOKEN_DOC = {
    "bu": "th", "type": "token", "id": "E1", "name": "Somchai P.", "site": "rmx",
    "trans": [
        {"date": "2024-06-15T08:00:00", "token": "b1042"},
        {"date": "2024-06-15T09:00:00"},
        {"date": "2024-06-14T23:30:00", "token": "y0831"},
        "not-a-transaction",
    ],
}


def test_today_tokens_use_local_date():
    # 00:30 on the 15th in Bangkok
    now = datetime(2024, 6, 14, 17, 30, tzinfo=timezone.utc)
    assert today_tokens(TOKEN_DOC, BANGKOK, now) == ["b1042"]
    assert today_tokens({"trans": None}, BANGKOK, now) == []


@pytest.mark.asyncio
async def test_token_lookup_is_a_single_query():
    db = FakeDB({"vehicleTr": {"tk1": TOKEN_DOC, "tk2": {**TOKEN_DOC, "bu": "vn"}}})
    success, token, error = await TokenService(RecordQueryService(db)).get_token_data("th", "E1")

    assert success is True
    assert token["_id"] == "tk1"
    assert token["name"] == "Somchai P."
    assert len(token["trans"]) == 3
    assert len(db.queries) == 1


@pytest.mark.asyncio
async def test_missing_token_is_none():
    success, token, error = await TokenService(RecordQueryService(FakeDB())).get_token_data("th", "E1")
    assert success is True
    assert token is None


def test_token_endpoint(make_client, fake_db):
    fake_db.collections["vehicleTr"] = {"tk1": TOKEN_DOC}
    client = make_client()

    body = client.get("/api/token-data", params={"bu": "th", "id": "E1"}).json()
    assert body["success"] is True
    assert body["data"]["id"] == "E1"
    assert isinstance(body["todayTokens"], list)

    missing = client.get("/api/token-data", params={"bu": "th", "id": "E404"})
    assert missing.status_code == 404
    assert client.get("/api/token-data", params={"bu": "th"}).status_code == 400


def test_fallback_titles():
    assert fallback_title("th", "mixer") == "แบบตรวจเช็ครถโม่ก่อนใช้งานประจำวัน"
    assert fallback_title("th", "truck") == "แบบฟอร์ม F-TES-053 ตรวจสอบสภาพรถบรรทุกประจำวัน"
    # the mining site keeps the plain truck form, under its parent unit's titles
    assert fallback_title("srb", "truck") == "แบบฟอร์มตรวจรถบรรทุกประจำวัน ของฝ่ายเหมือง (เท่านั้น)"
    assert fallback_title("rmx", "Forklift") == "Forklift"
    assert fallback_title("vn", "spaceship") is None


def test_parse_questions():
    assert parse_questions('[{"q": "Brakes?"}, 3]') == [{"q": "Brakes?"}]
    assert parse_questions("{broken") == []
    assert parse_questions(None) == []


@pytest.mark.asyncio
async def test_form_title_prefers_stored_form():
    db = FakeDB({"forms": {"f1": {"bu": "vn", "type": "forklift", "title": "Custom", "emoji": "⭐"}}})
    service = FormService(db, RecordQueryService(db))

    assert (await service.get_form_title("vn", "Forklift"))[1] == {"title": "Custom", "emoji": "⭐"}
    assert (await service.get_form_title("vn", "harness"))[1] == {
        "title": "HƯỚNG DẪN KIỂM TRA DÂY AN TOÀN / Safety Harness",
        "emoji": "🦺",
    }


def test_form_title_endpoint(make_client):
    client = make_client()
    body = client.get("/api/form-title", params={"bu": "lk", "type": "unknown"}).json()
    assert body == {"title": None, "emoji": DEFAULT_ICON}
    assert client.get("/api/form-title", params={"bu": "lk"}).status_code == 400
