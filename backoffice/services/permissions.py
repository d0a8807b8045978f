"""Role permission flags and their integer bitmask form.

A role stores its permissions as one integer: every flag is a distinct power
of two and a set of flags is the bitwise OR of its members. Bits that do not
belong to a known flag are dropped on decode.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntFlag
from typing import Iterable


class Permission(IntFlag):
    # User management
    VIEW_USER = 1
    ADD_USER = 2
    EDIT_USER = 4
    DELETE_USER = 8

    # Role management
    VIEW_ROLE = 16
    ADD_ROLE = 32
    EDIT_ROLE = 64
    DELETE_ROLE = 128

    # FAQ management
    VIEW_FAQ = 256
    ADD_FAQ = 512
    EDIT_FAQ = 1024
    DELETE_FAQ = 2048

    # CMS management
    VIEW_CMS = 4096
    ADD_CMS = 8192
    EDIT_CMS = 16384
    DELETE_CMS = 32768


ALL_PERMISSIONS: tuple[Permission, ...] = tuple(Permission.__members__.values())
KNOWN_MASK = 0
for _flag in ALL_PERMISSIONS:
    KNOWN_MASK |= int(_flag)
del _flag


def wire_name(flag: Permission) -> str:
    # VIEW_USER -> ViewUser
    return "".join(part.capitalize() for part in str(flag.name).split("_"))


_BY_WIRE_NAME = {wire_name(flag): flag for flag in ALL_PERMISSIONS}


@dataclass(frozen=True)
class PermissionOption:
    key: str
    label: str
    value: int


@dataclass(frozen=True)
class PermissionGroup:
    key: str
    label: str
    items: tuple[PermissionOption, ...]


def _group(key: str, label: str, view: Permission, add: Permission, edit: Permission, delete: Permission) -> PermissionGroup:
    items = (
        PermissionOption(wire_name(view), "List", int(view)),
        PermissionOption(wire_name(add), "Add", int(add)),
        PermissionOption(wire_name(edit), "Edit", int(edit)),
        PermissionOption(wire_name(delete), "Delete", int(delete)),
    )
    return PermissionGroup(key=key, label=label, items=items)


PERMISSION_GROUPS: tuple[PermissionGroup, ...] = (
    _group("user", "User", Permission.VIEW_USER, Permission.ADD_USER, Permission.EDIT_USER, Permission.DELETE_USER),
    _group("role", "Role", Permission.VIEW_ROLE, Permission.ADD_ROLE, Permission.EDIT_ROLE, Permission.DELETE_ROLE),
    _group("faq", "FAQ", Permission.VIEW_FAQ, Permission.ADD_FAQ, Permission.EDIT_FAQ, Permission.DELETE_FAQ),
    _group("cms", "CMS Management", Permission.VIEW_CMS, Permission.ADD_CMS, Permission.EDIT_CMS, Permission.DELETE_CMS),
)


def encode(flags: Iterable[Permission | int]) -> int:
    """OR the flags together. An empty iterable encodes to 0."""
    value = 0
    for flag in flags:
        value |= int(flag)
    return value


def decode(value: int | None) -> set[Permission]:
    """Return every known flag fully contained in ``value``."""
    if not value:
        return set()
    raw = int(value)
    return {flag for flag in ALL_PERMISSIONS if raw & int(flag) == int(flag)}


def permission_names(value: int | None) -> list[str]:
    members = decode(value)
    return [wire_name(flag) for flag in ALL_PERMISSIONS if flag in members]


def permission_from_name(name: str) -> Permission | None:
    return _BY_WIRE_NAME.get(str(name or "").strip())


def _member_value(item: int | str) -> int:
    if isinstance(item, bool):
        raise ValueError("permission members must be integers or flag names")
    if isinstance(item, int):
        return item
    flag = permission_from_name(item)
    if flag is None:
        raise ValueError(f"Unknown permission: {item}")
    return int(flag)


def normalize_permission_payload(raw: int | Iterable[int | str] | None) -> int:
    """Accept the stored integer form or the array-of-members form.

    Array members are flag values or wire names (``"ViewUser"``) and are
    OR-combined. The result keeps only known bits, so a role never persists
    flags the API cannot decode again.
    """
    if raw is None:
        return 0
    if isinstance(raw, bool):
        raise ValueError("permissions must be an integer or a list")
    if isinstance(raw, int):
        combined = raw
    else:
        combined = encode(_member_value(item) for item in raw)
    return combined & KNOWN_MASK


def has_permissions(value: int | None, required: Permission | int) -> bool:
    needed = int(required)
    return int(value or 0) & needed == needed


def permission_catalog() -> list[dict]:
    return [
        {
            "key": group.key,
            "label": group.label,
            "items": [{"key": item.key, "label": item.label, "value": item.value} for item in group.items],
        }
        for group in PERMISSION_GROUPS
    ]
