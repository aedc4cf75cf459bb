"""
Keyset pagination.

A cursor names the last row a client has seen by its sort value and id. The
next page is everything strictly after that pair in ``(sort, id)`` order, so
pages stay stable while rows are inserted elsewhere in the table.
"""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Optional, Sequence, TypeVar, Union

from sqlalchemy import Select, and_, or_

from app.core.errors import ValidationError

T = TypeVar("T")
SortValue = Union[str, int, float, None]


@dataclass(frozen=True)
class Cursor:
    sort_value: SortValue
    id: str


@dataclass
class Page(Generic[T]):
    items: List[T]
    next_cursor: Optional[str]
    has_more: bool


def encode_cursor(cursor: Cursor) -> str:
    """Render ``cursor`` as an opaque URL-safe token."""
    raw = json.dumps({"sort_value": cursor.sort_value, "id": cursor.id}, separators=(",", ":"))
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii").rstrip("=")


def decode_cursor(token: str) -> Cursor:
    """Inverse of ``encode_cursor``; raises ``ValidationError`` for anything else."""
    try:
        padded = token + "=" * (-len(token) % 4)
        data = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8"))
        sort_value = data["sort_value"]
        row_id = data["id"]
    except (ValueError, KeyError, TypeError) as exc:
        raise ValidationError("Invalid cursor format") from exc
    if not isinstance(row_id, str) or isinstance(sort_value, (dict, list, bool)):
        raise ValidationError("Invalid cursor format")
    return Cursor(sort_value=sort_value, id=row_id)


class CursorPager:
    """
    Apply a cursor to a SELECT and cut the fetched rows into a page.

    ``sort_column`` need not be unique; ``id_column`` breaks ties. Direction
    flips both comparisons of the keyset predicate together.
    """

    def __init__(self, sort_column: Any, id_column: Any, *, direction: str = "desc", limit: int = 20) -> None:
        if direction not in ("asc", "desc"):
            raise ValidationError("Sort order must be 'asc' or 'desc'")
        if limit < 1:
            raise ValidationError("Limit must be positive")
        self.sort_column = sort_column
        self.id_column = id_column
        self.direction = direction
        self.limit = limit

    def predicate(self, sort_value: Any, row_id: str) -> Any:
        if self.direction == "desc":
            return or_(
                self.sort_column < sort_value,
                and_(self.sort_column == sort_value, self.id_column < row_id),
            )
        return or_(
            self.sort_column > sort_value,
            and_(self.sort_column == sort_value, self.id_column > row_id),
        )

    def order_by(self) -> List[Any]:
        if self.direction == "desc":
            return [self.sort_column.desc(), self.id_column.desc()]
        return [self.sort_column.asc(), self.id_column.asc()]

    def apply(
        self,
        stmt: Select,
        cursor: Optional[Cursor],
        coerce: Optional[Callable[[SortValue], Any]] = None,
    ) -> Select:
        """Filter after ``cursor``, order by ``(sort, id)`` and fetch one extra row."""
        if cursor is not None:
            sort_value = coerce(cursor.sort_value) if coerce else cursor.sort_value
            stmt = stmt.where(self.predicate(sort_value, cursor.id))
        return stmt.order_by(*self.order_by()).limit(self.limit + 1)

    def page(
        self,
        rows: Sequence[T],
        sort_value_of: Callable[[T], SortValue],
        id_of: Callable[[T], str],
    ) -> Page[T]:
        has_more = len(rows) > self.limit
        items = list(rows[: self.limit])
        next_cursor = None
        if has_more and items:
            last = items[-1]
            next_cursor = encode_cursor(Cursor(sort_value=sort_value_of(last), id=id_of(last)))
        return Page(items=items, next_cursor=next_cursor, has_more=has_more)


__all__ = ["Cursor", "CursorPager", "Page", "decode_cursor", "encode_cursor"]
