import re
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from insekta.models.banner import BANNER_TYPES
from insekta.models.chart import CHART_TYPES

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
ROLES = ("admin", "client")


class CamelModel(BaseModel):
    """Accepts camelCase (wire) and snake_case names alike"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def validate_password_strength(password: str) -> str:
    if len(password) < 8:
        raise ValueError("Password minimal 8 karakter")
    if not any(c.isdigit() for c in password):
        raise ValueError("Password harus mengandung minimal 1 angka")
    if not any(c.isalpha() for c in password):
        raise ValueError("Password harus mengandung minimal 1 huruf")
    return password


def required_text(value: Optional[str], label: str) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value:
        raise ValueError(f"{label} wajib diisi")
    return value


def _validate_email(value: str) -> str:
    value = (value or "").strip().lower()
    if not _EMAIL_RE.match(value):
        raise ValueError("Format email tidak valid")
    return value


# --- auth / users ---

class LoginIn(BaseModel):
    email: str = Field(..., min_length=1, max_length=256)
    password: str = Field(..., min_length=1, max_length=128)


class RegisterIn(CamelModel):
    name: str = Field(..., min_length=1, max_length=128)
    email: str
    password: str
    company_name: str = ""

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return required_text(v, "Nama")

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return _validate_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return validate_password_strength(v)


class UserCreateIn(CamelModel):
    name: str = Field(..., min_length=1, max_length=128)
    email: str
    role: str = "client"
    company_name: str = ""

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return required_text(v, "Nama")

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        return _validate_email(v)

    @field_validator("role")
    @classmethod
    def validate_role(cls, v):
        v = v or "client"
        if v not in ROLES:
            raise ValueError(f"role harus salah satu dari: {', '.join(ROLES)}")
        return v


class UserAdminUpdateIn(CamelModel):
    name: Optional[str] = None
    role: Optional[str] = None
    company_name: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return required_text(v, "Nama")

    @field_validator("role")
    @classmethod
    def validate_role(cls, v):
        if v is not None and v not in ROLES:
            raise ValueError(f"role harus salah satu dari: {', '.join(ROLES)}")
        return v


# --- features ---

class SubMenuIn(BaseModel):
    title: str = ""
    url: str = ""


class AssignmentIn(CamelModel):
    """One entry of the `assignedTo` JSON sent by the feature form"""
    user: int
    is_custom: bool = False
    type: Optional[str] = "single"
    url: Optional[str] = ""
    sub_menus: List[SubMenuIn] = Field(default_factory=list)
    company_name: Optional[str] = None  # ignored; re-joined from the user row

    @field_validator("user", mode="before")
    @classmethod
    def unwrap_user(cls, v):
        # the SPA may send the populated user object back
        if isinstance(v, dict):
            return v.get("id")
        return v


# --- banners ---

class BannerIn(CamelModel):
    title: str = Field(..., min_length=1, max_length=256)
    content: str = Field(..., min_length=1)
    type: str = "info"
    link_url: Optional[str] = None
    is_active: bool = True

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        return required_text(v, "Judul")

    @field_validator("content")
    @classmethod
    def validate_content(cls, v):
        return required_text(v, "Konten")

    @field_validator("type")
    @classmethod
    def validate_type(cls, v):
        if v not in BANNER_TYPES:
            raise ValueError(f"type harus salah satu dari: {', '.join(BANNER_TYPES)}")
        return v


class BannerUpdateIn(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=256)
    content: Optional[str] = Field(None, min_length=1)
    type: Optional[str] = None
    link_url: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        return required_text(v, "Judul")

    @field_validator("content")
    @classmethod
    def validate_content(cls, v):
        return required_text(v, "Konten")

    @field_validator("type")
    @classmethod
    def validate_type(cls, v):
        if v is not None and v not in BANNER_TYPES:
            raise ValueError(f"type harus salah satu dari: {', '.join(BANNER_TYPES)}")
        return v


# --- charts ---

class ChartConfigIn(CamelModel):
    x_axis_key: Optional[str] = None
    data_keys: List[str] = Field(default_factory=list)

    def to_dict(self) -> dict:
        return {"xAxisKey": self.x_axis_key or "", "dataKeys": list(self.data_keys)}


class ChartIn(CamelModel):
    title: str = Field(..., min_length=1, max_length=256)
    type: str = "bar"
    sheet_url: str = Field(..., min_length=1)
    description: Optional[str] = None
    config: ChartConfigIn = Field(default_factory=ChartConfigIn)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        return required_text(v, "Judul")

    @field_validator("sheet_url")
    @classmethod
    def validate_sheet_url(cls, v):
        return required_text(v, "Link Google Sheet")

    @field_validator("type")
    @classmethod
    def validate_type(cls, v):
        if v not in CHART_TYPES:
            raise ValueError(f"type harus salah satu dari: {', '.join(CHART_TYPES)}")
        return v


class ChartUpdateIn(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=256)
    type: Optional[str] = None
    sheet_url: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    config: Optional[ChartConfigIn] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        return required_text(v, "Judul")

    @field_validator("sheet_url")
    @classmethod
    def validate_sheet_url(cls, v):
        return required_text(v, "Link Google Sheet")

    @field_validator("type")
    @classmethod
    def validate_type(cls, v):
        if v is not None and v not in CHART_TYPES:
            raise ValueError(f"type harus salah satu dari: {', '.join(CHART_TYPES)}")
        return v


class PreviewIn(BaseModel):
    url: str = Field(..., min_length=1)

    @field_validator("url")
    @classmethod
    def validate_url(cls, v):
        return required_text(v, "Link Google Sheet")
