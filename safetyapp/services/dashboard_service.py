"""
Dashboard Service
Aggregates inspection records into the counts shown on the dashboard and the
transaction summary cards.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo
import logging
import time

from ..core.config import Settings
from ..database.collections import COLLECTIONS
from ..models.database_models import INSPECTION_CORE_FIELDS, split_sidecar
from .record_query_service import RecordQueryService
from .timestamp_normalizer import now_utc, record_time, serialize_document, start_of_day, to_iso

logger = logging.getLogger(__name__)

# Look-back window per dashboard period; "daily" means since local midnight
PERIOD_DAYS = {
    "daily": 1,
    "weekly": 7,
    "monthly": 30,
    "quarterly": 90,
    "annually": 365,
}
DEFAULT_PERIOD = "monthly"

FAIL_VALUES = {"fail", "failed", "ng", "no"}
PASS_VALUES = {"pass", "passed", "ok", "yes"}


def bucket_counts(records: Iterable[Dict[str, Any]], tz: ZoneInfo,
                  now: Optional[datetime] = None) -> Dict[str, int]:
    """
    Count records into overlapping today / last-7-days / last-30-days buckets.
    Records without a readable timestamp, or dated after ``now``, are skipped.
    """
    current = now or now_utc()
    today_start = start_of_day(tz, current)
    week_start = current - timedelta(days=7)
    month_start = current - timedelta(days=30)

    counts = {"today": 0, "last7Days": 0, "last30Days": 0}
    for record in records:
        moment = record_time(record)
        if moment is None or moment > current:
            continue
        if moment >= today_start:
            counts["today"] += 1
        if moment >= week_start:
            counts["last7Days"] += 1
        if moment >= month_start:
            counts["last30Days"] += 1
    return counts


def group_counts(records: Iterable[Dict[str, Any]], key: str, fallback: Optional[str] = None) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for record in records:
        value = record.get(key)
        if value in (None, "") and fallback:
            value = record.get(fallback)
        group = str(value) if value not in (None, "") else "unknown"
        counts[group] = counts.get(group, 0) + 1
    return counts


def inspection_status(record: Dict[str, Any]) -> Tuple[str, List[str]]:
    """Return ("fail" | "pass" | "na", failed answer keys) for one inspection."""
    answers = split_sidecar(record, INSPECTION_CORE_FIELDS)
    failed: List[str] = []
    passed = False
    for key, value in answers.items():
        values = value if isinstance(value, list) else [value]
        for item in values:
            if not isinstance(item, str):
                continue
            normalized = item.strip().lower()
            if normalized in FAIL_VALUES:
                failed.append(key)
                break
            if normalized in PASS_VALUES:
                passed = True
    if failed:
        return "fail", sorted(failed)
    return ("pass" if passed else "na"), []


def resolve_period(period: Optional[str]) -> Optional[str]:
    """Normalized period name, or None when it is not one we know."""
    name = (period or DEFAULT_PERIOD).strip().lower()
    return name if name in PERIOD_DAYS else None


def period_start(period: str, tz: ZoneInfo, now: Optional[datetime] = None) -> datetime:
    current = now or now_utc()
    if period == "daily":
        return start_of_day(tz, current)
    return current - timedelta(days=PERIOD_DAYS[period])


class DashboardService:
    def __init__(self, query_service: RecordQueryService, settings: Settings):
        self.query = query_service
        self.settings = settings
        self.transactions = COLLECTIONS['machine_transactions']
        self.machines = COLLECTIONS['machine']

    async def get_dashboard_stats(self, period: Optional[str] = None, bu: Optional[str] = None,
                                  site: Optional[str] = None,
                                  now: Optional[datetime] = None) -> Tuple[bool, Optional[Dict[str, Any]], Optional[str]]:
        resolved = resolve_period(period)
        if resolved is None:
            return False, None, f"Invalid period '{period}'. Use one of: {', '.join(PERIOD_DAYS)}"

        current = now or now_utc()
        tz = self.settings.timezone_for(bu)
        since = period_start(resolved, tz, current)

        records = await self.query.find_or_empty(
            self.transactions, bu=bu, site=site, start=since, end=current,
        )
        logger.info(f"[Dashboard] {resolved} stats for bu={bu or 'all'} site={site or 'all'}: {len(records)} records")

        if bu:
            machines = await self.query.find_or_empty(self.machines, bu=bu, site=site)
            data = {
                "stats": self._stats_by_type_and_site(records, machines),
                "departmentStats": group_counts(records, "department", fallback="site"),
                "buckets": bucket_counts(records, tz, current),
            }
        else:
            data = {"stats": self._stats_by_bu_and_type(records)}

        data["period"] = resolved
        data["records"] = [serialize_document(r) for r in records]
        return True, data, None

    def _stats_by_type_and_site(self, records: List[Dict[str, Any]],
                                machines: List[Dict[str, Any]]) -> Dict[str, Dict[str, Dict[str, Any]]]:
        stats: Dict[str, Dict[str, Dict[str, Any]]] = {}
        inspected_ids: Dict[Tuple[str, str], set] = {}

        def cell(machine_type: str, site: str) -> Dict[str, Any]:
            return stats.setdefault(machine_type, {}).setdefault(
                site, {"inspected": 0, "defected": 0, "total": 0, "percentage": 0.0}
            )

        for machine in machines:
            cell((machine.get("type") or "unknown").lower(), machine.get("site") or "unknown")["total"] += 1

        for record in records:
            machine_type = (record.get("type") or "unknown").lower()
            site = record.get("site") or "unknown"
            entry = cell(machine_type, site)
            entry["inspected"] += 1
            if inspection_status(record)[0] == "fail":
                entry["defected"] += 1
            inspected_ids.setdefault((machine_type, site), set()).add(record.get("id"))

        for (machine_type, site), ids in inspected_ids.items():
            entry = stats[machine_type][site]
            if entry["total"]:
                entry["percentage"] = round(min(len(ids) / entry["total"], 1.0) * 100, 1)
        return stats

    def _stats_by_bu_and_type(self, records: List[Dict[str, Any]]) -> Dict[str, Dict[str, Dict[str, int]]]:
        stats: Dict[str, Dict[str, Dict[str, int]]] = {}
        for record in records:
            bu = record.get("bu") or "unknown"
            machine_type = (record.get("type") or "unknown").lower()
            entry = stats.setdefault(bu, {}).setdefault(machine_type, {"inspected": 0, "defected": 0})
            entry["inspected"] += 1
            if inspection_status(record)[0] == "fail":
                entry["defected"] += 1
        return stats

    async def get_transaction_summary(self, bu: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Today/week inspection counts for one business unit. Never fails."""
        started = time.monotonic()
        current = now or now_utc()
        tz = self.settings.timezone_for(bu)

        records = await self.query.find_or_empty(
            self.transactions, bu=bu, limit=self.settings.SUMMARY_RECORD_LIMIT,
        )
        buckets = bucket_counts(records, tz, current)

        latest = None
        for record in records:
            moment = record_time(record, fallback=None)
            if moment and (latest is None or moment > latest):
                latest = moment

        processing_time = int((time.monotonic() - started) * 1000)
        logger.info(f"Transaction summary for {bu} completed in {processing_time}ms")
        return {
            "totalToday": buckets["today"],
            "totalWeek": buckets["last7Days"],
            "lastInspection": to_iso(latest),
            # Older clients read totalRecords as the weekly count
            "totalRecords": buckets["last7Days"],
            "processingTime": processing_time,
        }
