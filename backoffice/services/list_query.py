"""Filtered, sorted and paginated listings over one entity collection.

A :class:`Listing` names the filter keys an entity understands and the
columns it may be sorted by. :func:`run_listing` applies a
:class:`~backoffice.schemas.listing.ListQuery` to a base query (already
restricted to non-deleted rows), counts the matches, takes one page and
projects it for display.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, TypeVar

from sqlalchemy import asc, desc, false, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session
from sqlalchemy.sql.elements import ColumnElement

from backoffice.schemas.listing import ListQuery, PagedData, ResponseData

logger = logging.getLogger(__name__)

T = TypeVar("T")

FilterBuilder = Callable[[str], "ColumnElement[bool] | None"]


@dataclass(frozen=True)
class Listing:
    label: str
    default_sort: Any
    filters: Mapping[str, FilterBuilder] = field(default_factory=dict)
    sort_columns: Mapping[str, Any] = field(default_factory=dict)

    def sort_column_for(self, raw: str | None):
        key = str(raw or "").strip().lower()
        if not key:
            return None
        for name, column in self.sort_columns.items():
            if name.lower() == key:
                return column
        return None


def _filter_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value).strip()


def _coerce_bool_filter_value(text: str) -> bool | None:
    lowered = text.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    return None


def exact_filter(column, parse: Callable[[str], Any] = str) -> FilterBuilder:
    """Equality on ``column`` after ``parse``; unparseable text matches nothing."""

    def _build(text: str):
        try:
            value = parse(text)
        except ValueError:
            return false()
        return column == value
    return _build


def uuid_filter(column) -> FilterBuilder:
    return exact_filter(column, uuid.UUID)


def int_filter(column) -> FilterBuilder:
    return exact_filter(column, int)


def boolean_filter(column) -> FilterBuilder:
    def _build(text: str):
        value = _coerce_bool_filter_value(text)
        if value is None:
            return None
        return column.is_(value)
    return _build


def prefix_filter(column) -> FilterBuilder:
    def _build(text: str):
        return func.lower(column).startswith(text.lower(), autoescape=True)
    return _build


def related_prefix_filter(relation, name_column) -> FilterBuilder:
    """Prefix match on the name of a many-to-one related row."""

    def _build(text: str):
        return relation.has(func.lower(name_column).startswith(text.lower(), autoescape=True))
    return _build


def related_contains_filter(relation, name_column) -> FilterBuilder:
    """Substring match on any row of a to-many relation."""

    def _build(text: str):
        return relation.any(func.lower(name_column).contains(text.lower(), autoescape=True))
    return _build


def apply_filters(q: Query, listing: Listing, filters: Mapping[str, Any] | None) -> Query:
    for key, raw in (filters or {}).items():
        builder = listing.filters.get(str(key))
        if builder is None:
            continue
        text = _filter_text(raw)
        if not text:
            continue
        predicate = builder(text)
        if predicate is None:
            continue
        q = q.filter(predicate)
    return q


def apply_sort(q: Query, listing: Listing, sort_column: str | None, sort_direction: str | None) -> Query:
    column = listing.sort_column_for(sort_column)
    if column is None:
        return q.order_by(desc(listing.default_sort))
    direction = str(sort_direction or "asc").strip().lower()
    return q.order_by(desc(column) if direction == "desc" else asc(column))


def _failure_message(exc: SQLAlchemyError) -> str:
    detail = str(getattr(exc, "orig", None) or exc).strip().splitlines()
    return f"Error Occurred: {detail[0] if detail else exc.__class__.__name__}"


def run_listing(
    db: Session,
    base_query: Query,
    listing: Listing,
    lq: ListQuery,
    project: Callable[[Any], T],
    *,
    options: Iterable[Any] = (),
) -> ResponseData[PagedData[T]]:
    try:
        q = apply_filters(base_query, listing, lq.filters)
        total = q.count()
        q = apply_sort(q, listing, lq.sort_column, lq.sort_direction)
        loader_options = list(options)
        if loader_options:
            q = q.options(*loader_options)
        rows = q.offset(lq.offset).limit(lq.page_size).all()
        items = [project(row) for row in rows]
    except SQLAlchemyError as exc:
        logger.exception("listing query failed: %s", listing.label)
        db.rollback()
        return ResponseData(success=False, message=_failure_message(exc))
    return ResponseData(
        success=True,
        message=f"{listing.label} Fetched Successfully",
        data=PagedData(total_items=total, page=lq.page, page_size=lq.page_size, data=items),
    )
