from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional, Tuple, Union
from datetime import datetime
import logging
import math

from ..services.timestamp_normalizer import to_datetime, to_iso

logger = logging.getLogger(__name__)

Primitive = Union[str, int, float, bool, None]
# Sidecar values: a primitive, or a list of primitives for multi-select answers
FieldValue = Union[Primitive, List[Primitive]]


def is_primitive(value: Any) -> bool:
    return value is None or isinstance(value, (str, int, float, bool))


def is_field_value(value: Any) -> bool:
    if isinstance(value, list):
        return all(is_primitive(v) for v in value)
    return is_primitive(value)


def coerce_field_value(value: Any) -> Tuple[bool, FieldValue]:
    """
    Bring a stored sidecar value into FieldValue shape.
    Timestamps become ISO strings; anything else non-primitive is rejected.
    """
    if isinstance(value, datetime) or hasattr(value, "to_datetime") or hasattr(value, "toDate"):
        return True, to_iso(value)
    if isinstance(value, dict) and ("_seconds" in value or "seconds" in value):
        return True, to_iso(value)
    if is_field_value(value):
        return True, value
    return False, None


def _str_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _float_or_none(value: Any) -> Optional[float]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _string_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value] if value else []
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def split_sidecar(doc: Dict[str, Any], core_fields: Tuple[str, ...]) -> Dict[str, FieldValue]:
    sidecar: Dict[str, FieldValue] = {}
    for key, value in doc.items():
        if key in core_fields or key.startswith("_") or key == "docId":
            continue
        ok, coerced = coerce_field_value(value)
        if ok:
            sidecar[key] = coerced
        else:
            logger.debug(f"Dropping non-primitive field '{key}' from record {doc.get('_doc_id')}")
    return sidecar


# Equipment (Machine) Model
class Machine(BaseModel):
    doc_id: Optional[str] = None
    bu: str
    site: str
    type: str  # lower-case equipment type: mixer, forklift, extinguisher, ...
    id: str
    kind: str = ""
    location: str = ""
    plantId: Optional[str] = None
    email: Optional[str] = None
    status: str = Field(default="active")
    images: List[str] = Field(default_factory=list)
    createdBy: Optional[str] = None
    updatedBy: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @property
    def machine_key(self) -> str:
        return build_machine_key(self.bu, self.type, self.id)

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Machine":
        return cls(
            doc_id=doc.get("_doc_id") or doc.get("docId"),
            bu=_str_or_none(doc.get("bu")) or "",
            site=_str_or_none(doc.get("site")) or "",
            type=(_str_or_none(doc.get("type")) or "").lower(),
            id=_str_or_none(doc.get("id")) or "",
            kind=_str_or_none(doc.get("kind")) or "",
            location=_str_or_none(doc.get("location")) or "",
            plantId=_str_or_none(doc.get("plantId")),
            email=_str_or_none(doc.get("email")),
            status=_str_or_none(doc.get("status")) or "active",
            images=_string_list(doc.get("images")),
            createdBy=_str_or_none(doc.get("createdBy")),
            updatedBy=_str_or_none(doc.get("updatedBy")),
            createdAt=to_datetime(doc.get("createdAt")),
            updatedAt=to_datetime(doc.get("updatedAt")),
        )

    def to_response(self) -> Dict[str, Any]:
        data = self.model_dump(exclude={"doc_id", "createdAt", "updatedAt"})
        data["docId"] = self.doc_id
        data["machineKey"] = self.machine_key
        data["createdAt"] = to_iso(self.createdAt)
        data["updatedAt"] = to_iso(self.updatedAt)
        return data


def build_machine_key(bu: str, machine_type: str, machine_id: str) -> str:
    """Composite favorites key: ``{bu}_{type}_{id}``."""
    return f"{bu}_{(machine_type or '').lower()}_{machine_id}"


INSPECTION_CORE_FIELDS = (
    "id", "bu", "site", "type", "inspector", "timestamp", "createdAt",
    "remark", "images", "lat", "lng",
)


# Machine inspection record (machinetr)
class InspectionRecord(BaseModel):
    doc_id: Optional[str] = None
    id: str = ""
    bu: str = ""
    type: str = ""
    site: Optional[str] = None
    inspector: Optional[str] = None
    timestamp: Optional[datetime] = None
    createdAt: Optional[datetime] = None
    remark: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    lat: Optional[float] = None
    lng: Optional[float] = None
    # Per-type answers (question name -> pass/fail/value)
    answers: Dict[str, FieldValue] = Field(default_factory=dict)

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "InspectionRecord":
        return cls(
            doc_id=doc.get("_doc_id") or doc.get("docId"),
            id=_str_or_none(doc.get("id")) or "",
            bu=_str_or_none(doc.get("bu")) or "",
            type=_str_or_none(doc.get("type")) or "",
            site=_str_or_none(doc.get("site")),
            inspector=_str_or_none(doc.get("inspector")),
            timestamp=to_datetime(doc.get("timestamp")),
            createdAt=to_datetime(doc.get("createdAt")),
            remark=_str_or_none(doc.get("remark")),
            images=_string_list(doc.get("images")),
            lat=_float_or_none(doc.get("lat")),
            lng=_float_or_none(doc.get("lng")),
            answers=split_sidecar(doc, INSPECTION_CORE_FIELDS),
        )

    def to_document(self) -> Dict[str, Any]:
        """Flat Firestore shape; answers are written as top-level keys."""
        doc: Dict[str, Any] = dict(self.answers)
        doc.update(self.model_dump(exclude={"doc_id", "answers"}, exclude_none=True))
        return doc

    def to_response(self) -> Dict[str, Any]:
        data: Dict[str, Any] = dict(self.answers)
        data.update(self.model_dump(exclude={"doc_id", "answers", "timestamp", "createdAt"}))
        data["docId"] = self.doc_id
        data["timestamp"] = to_iso(self.timestamp)
        data["createdAt"] = to_iso(self.createdAt)
        return data


MAN_CORE_FIELDS = (
    "id", "bu", "site", "type", "images", "timestamp", "createdAt", "remark", "alertNo",
)


# Personnel safety-activity record (mantr / trainings / methodtr)
class ManRecord(BaseModel):
    doc_id: Optional[str] = None
    id: str = ""
    bu: str = ""
    type: str = ""
    site: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    timestamp: Optional[datetime] = None
    createdAt: Optional[datetime] = None
    remark: Optional[str] = None
    alertNo: Optional[str] = None
    employeeName: Optional[str] = None
    details: Dict[str, FieldValue] = Field(default_factory=dict)

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "ManRecord":
        return cls(
            doc_id=doc.get("_doc_id") or doc.get("docId"),
            id=_str_or_none(doc.get("id")) or "",
            bu=_str_or_none(doc.get("bu")) or "",
            type=_str_or_none(doc.get("type")) or "",
            site=_str_or_none(doc.get("site")),
            images=_string_list(doc.get("images")),
            timestamp=to_datetime(doc.get("timestamp")),
            createdAt=to_datetime(doc.get("createdAt")),
            remark=_str_or_none(doc.get("remark")),
            alertNo=_str_or_none(doc.get("alertNo")),
            details=split_sidecar(doc, MAN_CORE_FIELDS + ("employeeName",)),
        )

    @property
    def occurred_at(self) -> Optional[datetime]:
        return self.timestamp or self.createdAt

    def to_document(self) -> Dict[str, Any]:
        doc: Dict[str, Any] = dict(self.details)
        doc.update(self.model_dump(exclude={"doc_id", "details", "employeeName"}, exclude_none=True))
        return doc

    def to_response(self) -> Dict[str, Any]:
        data: Dict[str, Any] = dict(self.details)
        data.update(self.model_dump(exclude={"doc_id", "details", "timestamp", "createdAt"}))
        data["docId"] = self.doc_id
        data["timestamp"] = to_iso(self.timestamp)
        data["createdAt"] = to_iso(self.createdAt)
        return data


class TokenData(BaseModel):
    doc_id: str
    id: str
    name: str = ""
    position: str = ""
    department: str = ""
    site: str = ""
    type: str = "token"
    eSite: str = ""
    status: str = ""
    company: str = ""
    trans: List[Dict[str, Any]] = Field(default_factory=list)

    def to_response(self) -> Dict[str, Any]:
        data = self.model_dump(exclude={"doc_id"})
        data["_id"] = self.doc_id
        return data


class Choice(BaseModel):
    value: str
    text: str = ""
    colorClass: str = ""


class Vocabulary(BaseModel):
    bu: str
    name: str = ""
    flag: str = ""
    sites: List[str] = Field(default_factory=list)
    choices: List[Choice] = Field(default_factory=list)
    accept: Optional[str] = None
    howto: Optional[str] = None
    inspector: Optional[str] = None
    picture: Optional[str] = None
    remark: Optional[str] = None
    remarkr: Optional[str] = None
    submit: Optional[str] = None


class Country(BaseModel):
    code: str
    name: str
    flag: str = ""
    sites: List[str] = Field(default_factory=list)


class SafetyStat(BaseModel):
    plantId: str
    lastAccidentDate: Optional[str] = None
    bestRecord: Optional[int] = None


def _int_or_none(value: Any) -> Optional[int]:
    number = _float_or_none(value)
    if number is None or not math.isfinite(number):
        return None
    return int(number)


# Fixed-asset register entry (asset collection), one per asset/sub number
class Asset(BaseModel):
    doc_id: Optional[str] = None
    asset: int
    sub: int = 0
    bu: str = ""
    type: str = ""
    site: str = ""
    description: str = ""
    assetClass: Optional[int] = None
    quantity: Optional[float] = None
    uom: str = ""
    usefulLife: Optional[float] = None
    depreciationKey: str = ""
    bookVal: Optional[float] = None
    accumDep: Optional[float] = None
    acquisVal: Optional[float] = None
    OrdDepStartDate: str = ""
    capitalizedOn: str = ""
    location: str = ""
    department: str = ""
    plant: str = ""
    plantName: str = ""
    plantLocation: str = ""
    costCenter: str = ""
    costCenterOwner: str = ""
    uploadedAt: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Asset":
        text = {
            name: _str_or_none(doc.get(name)) or ""
            for name in (
                "bu", "type", "site", "description", "uom", "depreciationKey",
                "OrdDepStartDate", "capitalizedOn", "location", "department",
                "plant", "plantName", "plantLocation", "costCenter", "costCenterOwner",
            )
        }
        return cls(
            doc_id=doc.get("_doc_id"),
            asset=_int_or_none(doc.get("asset")) or 0,
            sub=_int_or_none(doc.get("sub")) or 0,
            assetClass=_int_or_none(doc.get("assetClass")),
            quantity=_float_or_none(doc.get("quantity")),
            usefulLife=_float_or_none(doc.get("usefulLife")),
            bookVal=_float_or_none(doc.get("bookVal")),
            accumDep=_float_or_none(doc.get("accumDep")),
            acquisVal=_float_or_none(doc.get("acquisVal")),
            uploadedAt=to_datetime(doc.get("uploadedAt")),
            **text,
        )

    def to_response(self) -> Dict[str, Any]:
        data = self.model_dump(exclude={"doc_id", "uploadedAt"})
        data["docId"] = self.doc_id
        data["uploadedAt"] = to_iso(self.uploadedAt)
        return data


# Asset tracking transaction (assettr collection)
class AssetTransaction(BaseModel):
    doc_id: Optional[str] = None
    asset: int
    sub: int = 0
    bu: str = ""
    type: str = ""
    site: str = ""
    date: str = ""  # "DD-MM-YY HH:mm", BU local time
    inspector: str = ""
    status: str = ""
    qty: Union[int, float, str] = 1
    qtyR: str = ""
    place: str = ""
    url: str = ""
    lat: float = 0
    lng: float = 0
    remark: str = ""
    transferTo: str = ""
    uploadedAt: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "AssetTransaction":
        qty = doc.get("qty")
        return cls(
            doc_id=doc.get("_doc_id"),
            asset=_int_or_none(doc.get("asset")) or 0,
            sub=_int_or_none(doc.get("sub")) or 0,
            bu=_str_or_none(doc.get("bu")) or "",
            type=_str_or_none(doc.get("type")) or "",
            site=_str_or_none(doc.get("site")) or "",
            date=_str_or_none(doc.get("date")) or "",
            inspector=_str_or_none(doc.get("inspector")) or "",
            status=_str_or_none(doc.get("status")) or "",
            qty=qty if isinstance(qty, (int, float, str)) and not isinstance(qty, bool) else 1,
            qtyR=_str_or_none(doc.get("qtyR")) or "",
            place=_str_or_none(doc.get("place")) or "",
            url=_str_or_none(doc.get("url")) or "",
            lat=_float_or_none(doc.get("lat")) or 0,
            lng=_float_or_none(doc.get("lng")) or 0,
            remark=_str_or_none(doc.get("remark")) or "",
            transferTo=_str_or_none(doc.get("transferTo")) or "",
            uploadedAt=to_datetime(doc.get("uploadedAt")),
        )

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(exclude={"doc_id"})

    def to_response(self) -> Dict[str, Any]:
        data = self.model_dump(exclude={"doc_id", "uploadedAt"})
        data["id"] = self.doc_id
        data["uploadedAt"] = to_iso(self.uploadedAt)
        return data
