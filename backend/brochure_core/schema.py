from __future__ import annotations

"""Property payload validation.

The JSON keeps the camelCase names the front-end sends (`yearBuilt`,
`contactInfo`, `companyLogos`); Python code uses snake_case attributes.
Every failure is reported, each as a short Arabic message for the client.
"""

from datetime import date
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import PropertyValidationError


class PropertyStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    SOLD = "SOLD"


# Display strings accepted on input and mapped to the canonical code.
_STATUS_ALIASES = {
    "متاح": PropertyStatus.AVAILABLE,
    "مباع": PropertyStatus.SOLD,
}


NonEmptyStr = Annotated[str, Field(min_length=1)]


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")


class Marketer(_Model):
    name: str = Field(min_length=1)
    role: str = Field(min_length=1)


class UserInfo(_Model):
    name: str = Field(min_length=1)
    email: str = Field(min_length=1, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: str = Field(min_length=1)


class PropertyRecord(_Model):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    price: float = Field(ge=0)
    currency: str = "SAR"
    property_type: str = Field(alias="type", min_length=1)
    status: PropertyStatus = PropertyStatus.AVAILABLE
    bedrooms: int = Field(0, ge=0)
    bathrooms: int = Field(0, ge=0)
    parking: int = Field(0, ge=0)
    area: float = Field(ge=0)
    location: str = Field(min_length=1)
    city: str = Field(min_length=1)
    country: str = "السعودية"
    images: List[NonEmptyStr] = Field(min_length=1)
    features: List[NonEmptyStr] = Field(default_factory=list)
    year_built: Optional[int] = Field(None, alias="yearBuilt", ge=1800)
    contact_info: str = Field(alias="contactInfo", min_length=1)
    company_logos: List[NonEmptyStr] = Field(default_factory=list, alias="companyLogos")
    marketer: Marketer

    @field_validator("status", mode="before")
    @classmethod
    def _status_alias(cls, value: Any) -> Any:
        if isinstance(value, str):
            key = value.strip()
            return _STATUS_ALIASES.get(key, key.upper())
        return value

    @field_validator("year_built")
    @classmethod
    def _not_in_future(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value > date.today().year:
            raise ValueError("year_in_future")
        return value

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# (field, kind) -> message. kind is one of required/empty/type/min/max.
MESSAGES: Dict[Tuple[str, str], str] = {
    ("title", "required"): "عنوان العقار مطلوب",
    ("title", "empty"): "عنوان العقار مطلوب",
    ("description", "required"): "وصف العقار مطلوب",
    ("description", "empty"): "وصف العقار مطلوب",
    ("price", "required"): "السعر مطلوب",
    ("price", "type"): "يجب أن يكون السعر رقم",
    ("price", "min"): "يجب أن يكون السعر أكبر من أو يساوي الصفر",
    ("type", "required"): "نوع العقار مطلوب",
    ("type", "empty"): "نوع العقار مطلوب",
    ("status", "type"): "حالة العقار يجب أن تكون AVAILABLE أو SOLD",
    ("area", "required"): "المساحة مطلوبة",
    ("area", "type"): "يجب أن تكون المساحة رقم",
    ("area", "min"): "يجب أن تكون المساحة أكبر من أو تساوي الصفر",
    ("location", "required"): "الموقع مطلوب",
    ("location", "empty"): "الموقع مطلوب",
    ("city", "required"): "المدينة مطلوبة",
    ("city", "empty"): "المدينة مطلوبة",
    ("images", "required"): "الصور مطلوبة",
    ("images", "type"): "يجب أن تكون الصور مصفوفة",
    ("images", "min"): "يجب إضافة صورة واحدة على الأقل",
    ("images", "empty"): "رابط الصورة لا يمكن أن يكون فارغاً",
    ("features", "empty"): "الميزة لا يمكن أن تكون فارغة",
    ("companyLogos", "empty"): "رابط الشعار لا يمكن أن يكون فارغاً",
    ("yearBuilt", "min"): "سنة البناء يجب أن تكون 1800 أو بعدها",
    ("yearBuilt", "max"): "سنة البناء لا يمكن أن تكون في المستقبل",
    ("contactInfo", "required"): "معلومات التواصل مطلوبة",
    ("contactInfo", "empty"): "معلومات التواصل مطلوبة",
    ("marketer", "required"): "بيانات المسوق مطلوبة",
    ("marketer.name", "required"): "اسم المسوق مطلوب",
    ("marketer.name", "empty"): "اسم المسوق مطلوب",
    ("marketer.role", "required"): "دور المسوق مطلوب",
    ("marketer.role", "empty"): "دور المسوق مطلوب",
    ("user.name", "required"): "اسم المستخدم مطلوب",
    ("user.name", "empty"): "اسم المستخدم مطلوب",
    ("user.email", "required"): "البريد الإلكتروني مطلوب",
    ("user.email", "empty"): "البريد الإلكتروني مطلوب",
    ("user.email", "format"): "البريد الإلكتروني غير صالح",
    ("user.phone", "required"): "رقم الجوال مطلوب",
    ("user.phone", "empty"): "رقم الجوال مطلوب",
}

_KIND_BY_TYPE = {
    "missing": "required",
    "string_too_short": "empty",
    "too_short": "min",
    "greater_than_equal": "min",
    "less_than_equal": "max",
    "string_pattern_mismatch": "format",
    "enum": "type",
}


def _kind(err: Dict[str, Any]) -> str:
    etype = str(err.get("type") or "")
    if etype == "value_error" and "year_in_future" in str(err.get("msg") or ""):
        return "max"
    if etype in _KIND_BY_TYPE:
        return _KIND_BY_TYPE[etype]
    if etype.endswith("_type") or etype.endswith("_parsing"):
        return "type"
    return etype


def _messages(exc: ValidationError, prefix: str = "") -> List[str]:
    out: List[str] = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if not isinstance(p, int)]
        field = ".".join(([prefix] if prefix else []) + loc) or prefix
        msg = MESSAGES.get((field, _kind(err))) or f"{field}: {err.get('msg')}"
        if msg not in out:
            out.append(msg)
    return out


def validate_property(payload: Any) -> PropertyRecord:
    """Validate a raw property payload, raising PropertyValidationError with every message."""
    if not isinstance(payload, dict):
        raise PropertyValidationError(["بيانات العقار يجب أن تكون كائن JSON"])
    try:
        return PropertyRecord.model_validate(payload)
    except ValidationError as exc:
        raise PropertyValidationError(_messages(exc)) from exc


def validate_user(payload: Any) -> Optional[UserInfo]:
    if payload is None:
        return None
    if not isinstance(payload, dict):
        raise PropertyValidationError(["بيانات المستخدم يجب أن تكون كائن JSON"])
    try:
        return UserInfo.model_validate(payload)
    except ValidationError as exc:
        raise PropertyValidationError(_messages(exc, prefix="user")) from exc
