from pydantic import BaseModel, Field, validator, root_validator
from typing import Any, Dict, List, Optional, Union

from .database_models import FieldValue, is_field_value

# Keys the server stamps itself; ignored when a client sends them
SERVER_MANAGED_KEYS = {"timestamp", "createdAt", "docId", "_doc_id", "_id"}


def _fold_extra_keys(model_cls, values: Dict[str, Any], sidecar: str) -> Dict[str, Any]:
    """Move every key that is not a declared field into the sidecar mapping."""
    if not isinstance(values, dict):
        return values
    known = set(model_cls.model_fields)
    folded: Dict[str, Any] = {}
    extras: Dict[str, Any] = dict(values.get(sidecar) or {})
    for key, value in values.items():
        if key == sidecar or key in SERVER_MANAGED_KEYS:
            continue
        if key in known:
            folded[key] = value
        else:
            extras[key] = value
    folded[sidecar] = extras
    return folded


def _check_sidecar(values: Dict[str, Any]) -> Dict[str, Any]:
    if not isinstance(values, dict):
        raise ValueError("must be an object of answers")
    bad = sorted(k for k, v in values.items() if not is_field_value(v))
    if bad:
        raise ValueError(f"only text, number, boolean or list values are accepted: {', '.join(bad)}")
    return values


class MachineCreate(BaseModel):
    bu: str = Field(..., min_length=1)
    site: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1, description="Equipment type, stored lower-case")
    id: str = Field(..., min_length=1, description="Equipment number within the BU/type")
    kind: Optional[str] = None
    location: Optional[str] = None
    plantId: Optional[str] = None
    email: Optional[str] = None
    status: Optional[str] = None

    @validator("type")
    def _lower_type(cls, v: str) -> str:
        return v.strip().lower()


class AddFavoritesRequest(BaseModel):
    userId: str = Field(..., min_length=1)
    bu: str = Field(..., min_length=1)
    site: str = Field(..., min_length=1)


class InspectionSubmission(BaseModel):
    id: str = Field(..., min_length=1)
    bu: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    site: Optional[str] = None
    inspector: Optional[str] = None
    remark: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    lat: Optional[float] = None
    lng: Optional[float] = None
    answers: Dict[str, FieldValue] = Field(default_factory=dict)

    @root_validator(pre=True)
    def _fold_answers(cls, values):
        return _fold_extra_keys(cls, values, "answers")

    @validator("answers", pre=True)
    def _primitive_answers(cls, v):
        return _check_sidecar(v)

    @validator("type")
    def _lower_type(cls, v: str) -> str:
        return v.strip().lower()


class ManRecordSubmission(BaseModel):
    id: str = Field(..., min_length=1)
    bu: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    site: Optional[str] = None
    remark: Optional[str] = None
    alertNo: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    details: Dict[str, FieldValue] = Field(default_factory=dict)

    @root_validator(pre=True)
    def _fold_details(cls, values):
        return _fold_extra_keys(cls, values, "details")

    @validator("details", pre=True)
    def _primitive_details(cls, v):
        return _check_sidecar(v)

    @validator("type")
    def _lower_type(cls, v: str) -> str:
        return v.strip().lower()


class AssetSubmission(BaseModel):
    """Asset tracking form; ``id`` is ``"{asset}-{sub}"`` or just ``"{asset}"``."""
    id: str = Field(..., min_length=1)
    bu: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    site: str = ""
    inspector: Optional[str] = None
    status: str = ""
    qty: Optional[Union[int, float, str]] = None
    qtyR: Optional[str] = None
    place: str = ""
    images: List[str] = Field(default_factory=list)
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    remark: str = ""
    transferTo: str = ""

    @validator("type")
    def _lower_type(cls, v: str) -> str:
        return v.strip().lower()
