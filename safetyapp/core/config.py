# safetyapp/core/config.py
import os
from typing import Dict, List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from dotenv import load_dotenv

load_dotenv()

# Site codes that are stored under their parent business unit
BU_ALIASES: Dict[str, str] = {
    "office": "th",
    "srb": "th",
    "mkt": "th",
    "lbm": "th",
    "rmx": "th",
    "iagg": "th",
    "ieco": "th",
    "cmic": "kh",
}


def _parse_mapping(raw: str) -> Dict[str, str]:
    """Parse "th=Asia/Bangkok,vn=Asia/Ho_Chi_Minh" into a dict."""
    mapping: Dict[str, str] = {}
    for pair in raw.split(","):
        if "=" not in pair:
            continue
        key, value = pair.split("=", 1)
        if key.strip() and value.strip():
            mapping[key.strip().lower()] = value.strip()
    return mapping


def _parse_list(raw: str) -> List[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


def normalize_bu_code(bu: str) -> str:
    if not bu:
        return bu
    return BU_ALIASES.get(bu.lower(), bu)


class Settings:
    FIREBASE_PROJECT_ID: str = os.getenv("FIREBASE_PROJECT_ID", "sccc-inseesafety-prod")
    FIREBASE_STORAGE_BUCKET: str = os.getenv(
        "FIREBASE_STORAGE_BUCKET",
        "sccc-inseesafety-prod.firebasestorage.app",
    )
    FIREBASE_SERVICE_ACCOUNT_PATH: str = os.getenv(
        "FIREBASE_SERVICE_ACCOUNT_PATH",
        "firebase-service-account.json",
    )

    # Session cookie set by the web client after sign-in
    AUTH_COOKIE_NAME: str = os.getenv("AUTH_COOKIE_NAME", "firebaseAuthToken")

    # Old inspection pages still live on the legacy host
    LEGACY_BASE_URL: str = os.getenv("LEGACY_BASE_URL", "https://sccc-inseesafety-prod.web.app")

    # "Today" is evaluated in the business unit's local zone
    DEFAULT_TIMEZONE: str = os.getenv("DEFAULT_TIMEZONE", "Asia/Bangkok")
    BU_TIMEZONES: Dict[str, str] = _parse_mapping(
        os.getenv(
            "BU_TIMEZONES",
            "th=Asia/Bangkok,vn=Asia/Ho_Chi_Minh,kh=Asia/Phnom_Penh,"
            "lk=Asia/Colombo,bd=Asia/Dhaka",
        )
    )

    # Firestore "in" queries are chunked to this size
    EMPLOYEE_BATCH_SIZE: int = int(os.getenv("EMPLOYEE_BATCH_SIZE", "10"))
    SUMMARY_RECORD_LIMIT: int = int(os.getenv("SUMMARY_RECORD_LIMIT", "10000"))
    MACHINE_LIST_LIMIT: int = int(os.getenv("MACHINE_LIST_LIMIT", "100"))

    CORS_ORIGINS: List[str] = _parse_list(os.getenv("CORS_ORIGINS", "*"))

    def timezone_for(self, bu: str = None) -> ZoneInfo:
        """Resolve the configured zone for a business unit (aliases included)."""
        name = self.DEFAULT_TIMEZONE
        if bu:
            name = self.BU_TIMEZONES.get(normalize_bu_code(bu).lower(), self.DEFAULT_TIMEZONE)
        try:
            return ZoneInfo(name)
        except ZoneInfoNotFoundError:
            return ZoneInfo("UTC")


settings = Settings()
