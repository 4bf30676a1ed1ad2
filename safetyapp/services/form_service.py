from typing import Any, Dict, List, Optional, Tuple
import json
import logging

from ..core.config import normalize_bu_code
from ..database.collections import COLLECTIONS
from ..database.database_service import DatabaseService
from .record_query_service import RecordQueryService

logger = logging.getLogger(__name__)

# Built-in titles keyed "{bu}{Type}", used when a form document has no title
MACHINE_TITLES: Dict[str, str] = {
    "jkcementForklift": "Forklift Inspection",
    "vnLifting": "Kiểm định thiết bị nâng / Lifting Equipment",
    "vnLiftinggear": "Kiểm định dụng cụ nâng hạ / Lifting Gear",
    "vnForklift": "Kiểm định thiết bị nâng / Forklift",
    "vnMobile": "Kiểm tra thiết bị di động / Mobile Equipment",
    "vnVehicle": "Kiểm tra xe cơ giới / Vehicle",
    "vnExtinguisher": "Kiểm tra bình chữa cháy / Fire Extinguisher",
    "vnHydrant": "Kiểm tra trụ nước cứu hỏa / Fire Hydrant",
    "vnFoam": "Kiểm tra Foam chữa cháy / Foam Tank",
    "vnPump": "HƯỚNG DẪN KIỂM TRA BƠM NƯỚC CHỮA CHÁY / Water Pump",
    "vnValve": "HƯỚNG DẪN KIỂM TRA VAN NGUỒN NƯỚC / Water Valve",
    "vnHarness": "HƯỚNG DẪN KIỂM TRA DÂY AN TOÀN / Safety Harness",
    "vnPortable": "HƯỚNG DẪN KIỂM TRA SÀN DI ĐỘNG / Portable Platform",
    "vnLifeline": "HƯỚNG DẪN KIỂM TRA DÂY AN TOÀN / Safety Lifeline",
    "vnLifering": "Hướng dẫn kiểm tra phao cứu sinh / Safety Life Ring",
    "vnLifevest": "Hướng dẫn kiểm tra áo phao cứu sinh / Safety Life Vest",
    "vnWelding": "Hướng dẫn kiểm tra máy hàn / Welding Machine",
    "vnCable": "Hướng dẫn kiểm tra dây nguồn / Power Cable",
    "vnFan": "Hướng dẫn kiểm tra quạt thông gió / Ventilation Fan",
    "vnLight": "Hướng dẫn kiểm tra đèn chiếu sáng di động / Mobile Light",
    "vnCctv": "Hướng dẫn kiểm tra hệ thống camera giám sát / Plant CCTV",
    "vnEquipment": "Hướng dẫn kiểm tra thiết bị di động / Portable Equipment",
    "vnRescue": "Gangway, Rescue Boat",
    # CMIC
    "cmicBulk": "ការត្រួតពិនិត្យរថយន្តមុនពេលប្រើប្រាស់ប្រចាំថ្ងៃ",
    "cmicLoader": "ការត្រួតពិនិត្យរថយន្តមុនពេលប្រើប្រាស់ប្រចាំថ្ងៃ",
    "cmicForklift": "ការត្រួតពិនិត្យរថយន្តមុនពេលប្រើប្រាស់ប្រចាំថ្ងៃ",
    "cmicDump": "ការត្រួតពិនិត្យរថយន្តមុនពេលប្រើប្រាស់ប្រចាំថ្ងៃ",
    "cmicExcavator": "ការត្រួតពិនិត្យរថយន្តមុនពេលប្រើប្រាស់ប្រចាំថ្ងៃ",
    "cmicCrane": "ការត្រួតពិនិត្យឧបករណ៍ជើងយកឬក្រេនមុនពេលប្រើប្រាស់ប្រចាំថ្ងៃ",
    "cmicExtinguisher": "ការត្រួតពិនិត្យបំពង់ពន្លត់អគ្គីភ័យមុនពេលប្រើប្រាស់ប្រចាំថ្ងៃ",
    "cmicHydrant": "ការត្រួតពិនិត្យប្រព័ន្ធទឹកបាញ់អគ្គីភ័យមុនពេលប្រើប្រាស់ប្រចាំថ្ងៃ",
    "cmicVehicle": "ការត្រួតពិនិត្យយានជំនិះស្រាលមុនពេលប្រើប្រាស់ប្រចាំថ្ងៃ",
    # BD
    "bdBulk": "Bulk Truck inspection form",
    "bdForklift": "Forklift inspection form",
    "bdLoader": "Loader inspection form",
    "bdHarness": "Safety Harness inspection form",
    "bdLadder": "Mobile Ladder inspection form",
    "bdExtinguisher": "Fire Extinguisher inspection form",
    # LK
    "lkForklift": "Forklift Inspection Form",
    "lkExtinguisher": "Fire Extinguisher Inspection Form",
    "lkCar": "Light Vehicle Inspection Form",
    # TH
    "thTruck": "แบบฟอร์มตรวจรถบรรทุกประจำวัน ของฝ่ายเหมือง (เท่านั้น)",
    "thTruckall": "แบบฟอร์ม F-TES-053 ตรวจสอบสภาพรถบรรทุกประจำวัน",
    "thCrane": "แบบตรวจสภาพความพร้อมรอก/เครนก่อนการใช้งานประจำวัน",
    "thEquipment": "แบบตรวจสภาพความของเครืองมือ/อุปกรณ์ที่สามารถเคลื่อนย้ายได้",
    "thCar": "แบบตรวจเช็ครถเล็กก่อนใช้งานประจำวัน",
    "thMixer": "แบบตรวจเช็ครถโม่ก่อนใช้งานประจำวัน",
    "thMixerweek": "แบบตรวจเช็ครถโม่ก่อนใช้งานประจำสัปดาห์",
    "thMixertrainer": "แบบตรวจเช็ครถโม่สำหรับครูฝึกอบรม",
    "thMixertsm": "แบบตรวจเช็ครถโม่สำหรับ TSM ของ ผจส",
    "thMotorbike": "แบบตรวจเช็คมอเตอร์ไซด์ก่อนใช้งานประจำวัน",
    "thBulk": "แบบตรวจเช็ครถซีเมนต์ผงก่อนใช้งานประจำวัน",
    "thBag": "แบบตรวจเช็ครถซีเมนต์ถุงก่อนใช้งานประจำวัน",
    "thPlant": "Daily (FM-SCCO-PROD-003 Production)",
    "thAed": "แบบตรวจเช็คเครื่อง AED ประจำเดือน",
    "thEmergency": "แบบตรวจสอบป้ายทางหนีไฟ แผนผังเส้นทางหนีไฟ และจุดรวมพล",
    "thExtinguisher": "แบบตรวจเช็คถัง Fire Extinguisher ประจำเดือน",
    "thHydrant": "แบบตรวจหัวฉีดน้ำดับเพลิง Fire Hydrant ประจำเดือน",
    "thWaste": "แบบตรวจเช็ครถขนส่ง Waste ก่อนใช้งานประจำวัน",
    "thHarness": "แบบตรวจสายรัดตัวก่อนใช้งานประจำเดือน",
    "thForklift": "Forklift",
    "thFrontend": "Frontend Loader",
    "thWelding": "แบบตรวจเช็ค Welding Machine",
    "thShower": "แบบตรวจเช็คEmergency Shower and Eye Wash Station",
    "thWaterjet": "แบบตรวจเช็ค High Pressure Water Jet",
    "thCompressor": "แบบตรวจเช็ค Air Compressor",
    "thFallarrest": "แบบตรวจสายดึงตัวก่อนใช้งานประจำเดือน",
    "thFirealarm": "แบบตรวจเช็ค Fire Alarm",
    "thFirepump": "แบบตรวจเช็ค Fire Pump",
    "thFullbodyharness": "แบบตรวจเช็ค Full Body Harness",
    "thHoist": "แบบตรวจเช็ค Hoist",
    "thOverheadcrane": "แบบตรวจเช็ค Overhead Crane",
}

EQUIPMENT_ICONS: Dict[str, str] = {
    "forklift": "🚜",
    "lifting": "🏗️",
    "liftinggear": "⚙️",
    "mobile": "📱",
    "vehicle": "🚗",
    "extinguisher": "🧯",
    "hydrant": "🚰",
    "electrical": "⚡",
    "cable": "🔌",
    "equipment": "🔧",
    "harness": "🦺",
    "rescue": "🆘",
    "firstaid": "🏥",
    "car": "🚗",
    "lifevest": "🦺",
}
DEFAULT_ICON = "🔧"


def fallback_title(bu: str, machine_type: str) -> Optional[str]:
    """Built-in title for a BU/type pair. Thai sites share the "th" titles."""
    type_key = (machine_type or "").lower()
    # Only the mining site uses the plain truck form
    if type_key == "truck" and bu != "srb":
        type_key = "truckall"
    for code in (bu, normalize_bu_code(bu)):
        title = MACHINE_TITLES.get(f"{code}{type_key.capitalize()}")
        if title:
            return title
    return None


def equipment_icon(machine_type: str) -> str:
    return EQUIPMENT_ICONS.get((machine_type or "").lower(), DEFAULT_ICON)


def parse_questions(raw: Any) -> List[Dict[str, Any]]:
    """Form questions may be stored as a list or as a JSON string."""
    if raw is None:
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            logger.error(f"Error parsing questions JSON: {e}")
            return []
    if not isinstance(raw, list):
        return []
    return [q for q in raw if isinstance(q, dict)]


class FormService:
    def __init__(self, db: DatabaseService, query_service: RecordQueryService):
        self.db = db
        self.query = query_service
        self.collection = COLLECTIONS['forms']

    async def get_form(self, bu: str, machine_type: str) -> Tuple[bool, Optional[Dict[str, Any]], Optional[str]]:
        success, docs, error = await self.query.find(self.collection, bu=bu, type=machine_type, limit=1)
        if not success:
            return False, None, error
        if not docs:
            return True, None, None
        form = docs[0]
        return True, {
            "questions": parse_questions(form.get("questions")),
            "title": form.get("title"),
            "emoji": form.get("emoji"),
            "image": form.get("image"),
        }, None

    async def get_form_title(self, bu: str, machine_type: str) -> Tuple[bool, Dict[str, Optional[str]], Optional[str]]:
        """``{title, emoji}`` from the form document, falling back to the built-in tables."""
        success, form, error = await self.get_form(bu, machine_type)
        if not success:
            return False, {"title": None, "emoji": None}, error

        title = (form or {}).get("title") or fallback_title(bu, machine_type)
        emoji = (form or {}).get("emoji") or equipment_icon(machine_type)
        return True, {"title": title, "emoji": emoji}, None
