from datetime import date, datetime
from uuid import UUID

from pydantic import Field, field_validator
from typing import List, Optional, Union

from backoffice.schemas.listing import ApiModel
from backoffice.services.permissions import normalize_permission_payload


def _required_text(value: str) -> str:
    text = str(value or "").strip()
    if not text:
        raise ValueError("must not be blank")
    return text


def _optional_text(value: Optional[str]) -> Optional[str]:
    text = str(value or "").strip()
    return text or None


def _permission_mask(value):
    if value is None:
        return None
    return normalize_permission_payload(value)


class LoginIn(ApiModel):
    email: str
    password: str


class TokenPair(ApiModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    roles: List[str] = Field(default_factory=list)
    permissions: int = 0
    full_name: Optional[str] = None
    profile_image_url: Optional[str] = None


class RefreshIn(ApiModel):
    refresh_token: str


class ForgotPasswordIn(ApiModel):
    email: str
    client_reset_url: str

    @field_validator("client_reset_url")
    @classmethod
    def validate_reset_url(cls, value: str) -> str:
        text = _required_text(value)
        if not text.lower().startswith(("http://", "https://")):
            raise ValueError("clientResetUrl must be an absolute http(s) URL")
        return text


class ResetPasswordIn(ApiModel):
    email: str
    token: str
    password: str


class MeOut(ApiModel):
    id: str
    email: str
    full_name: Optional[str] = None
    roles: List[str] = Field(default_factory=list)
    permissions: int = 0
    permission_names: List[str] = Field(default_factory=list)


class UserListItem(ApiModel):
    id: str
    full_name: str
    email: str
    phone_number: Optional[str] = None
    date_of_birth: Optional[date] = None
    country_id: Optional[int] = None
    country_name: Optional[str] = None
    state_id: Optional[int] = None
    state_name: Optional[str] = None
    city_id: Optional[int] = None
    city_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    roles: List[str] = Field(default_factory=list)


class UserCreate(ApiModel):
    full_name: str
    email: str
    phone_number: Optional[str] = None
    password: str
    date_of_birth: Optional[date] = None
    country_id: Optional[int] = None
    state_id: Optional[int] = None
    city_id: Optional[int] = None
    is_active: bool = True
    role_ids: List[UUID] = Field(default_factory=list)

    check_full_name = field_validator("full_name")(_required_text)
    check_email = field_validator("email")(_required_text)
    clean_phone_number = field_validator("phone_number")(_optional_text)


class UserUpdate(ApiModel):
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    password: Optional[str] = None
    date_of_birth: Optional[date] = None
    country_id: Optional[int] = None
    state_id: Optional[int] = None
    city_id: Optional[int] = None
    is_active: Optional[bool] = None
    role_ids: Optional[List[UUID]] = None


class RoleOut(ApiModel):
    id: str
    name: str
    description: Optional[str] = None
    is_active: bool
    permissions: int
    permission_names: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None


class RoleCreate(ApiModel):
    name: str
    description: Optional[str] = None
    is_active: bool = True
    permissions: Union[int, List[Union[int, str]]] = 0

    check_name = field_validator("name")(_required_text)
    clean_description = field_validator("description")(_optional_text)
    check_permissions = field_validator("permissions")(_permission_mask)


class RolePatch(ApiModel):
    name: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None
    permissions: Optional[Union[int, List[Union[int, str]]]] = None

    check_permissions = field_validator("permissions")(_permission_mask)


class CmsOut(ApiModel):
    id: int
    key: str
    title: str
    meta_keyword: Optional[str] = None
    content: str
    is_active: bool
    created_at: Optional[datetime] = None


class CmsUpsert(ApiModel):
    key: str
    title: str
    meta_keyword: Optional[str] = None
    content: str = ""
    is_active: bool = True

    check_key_title = field_validator("key", "title")(_required_text)
    clean_meta_keyword = field_validator("meta_keyword")(_optional_text)


class FaqOut(ApiModel):
    id: int
    question: str
    answer: str
    is_active: bool
    created_at: Optional[datetime] = None


class FaqUpsert(ApiModel):
    question: str
    answer: str
    is_active: bool = True

    check_texts = field_validator("question", "answer")(_required_text)


class GeoOption(ApiModel):
    id: int
    name: str
