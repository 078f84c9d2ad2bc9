from __future__ import annotations

from dataclasses import asdict, dataclass, field

from constants import (
    ACTIVITY_PURCHASE,
    ACTIVITY_VIEW,
    DEFAULT_PAGE_SIZE,
    DEFAULT_SORT_FIELD,
    DEFAULT_SORT_ORDER,
    SORT_ORDERS,
    SORTABLE_FIELDS,
)
from helpers import parse_float, parse_int

RECOMMENDABLE_ACTIVITY_TYPES = (ACTIVITY_VIEW, ACTIVITY_PURCHASE)


def normalize_activity_type(value) -> str | None:
    if value is None:
        return None
    text = str(value).strip().upper()
    return text or None


@dataclass
class SearchRequest:
    query: str | None = None
    category: str | None = None
    min_price: float | None = None
    max_price: float | None = None
    sort_by: str = DEFAULT_SORT_FIELD
    sort_order: str = DEFAULT_SORT_ORDER
    page: int = 1
    size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self):
        if self.page < 1:
            raise ValueError("page must be 1 or greater")
        if self.size < 1:
            raise ValueError("size must be greater than 0")

    @classmethod
    def from_payload(cls, payload) -> "SearchRequest":
        """Build a request from a JSON body, raising ``ValueError`` on malformed input."""
        if payload is None:
            payload = {}
        if not isinstance(payload, dict):
            raise ValueError("search payload must be a JSON object")

        def text(key):
            raw = payload.get(key)
            if raw is None:
                return None
            if not isinstance(raw, str):
                raise ValueError(f"{key} must be a string")
            return raw.strip() or None

        def number(key, parse):
            raw = payload.get(key)
            if isinstance(raw, bool):
                raise ValueError(f"{key} must be a number")
            value = parse(raw)
            if raw not in (None, "") and value is None:
                raise ValueError(f"{key} must be a number")
            return value

        sort_by = text("sort_by") or DEFAULT_SORT_FIELD
        if sort_by not in SORTABLE_FIELDS:
            raise ValueError(f"sort_by must be one of: {', '.join(SORTABLE_FIELDS)}")
        sort_order = (text("sort_order") or DEFAULT_SORT_ORDER).lower()
        if sort_order not in SORT_ORDERS:
            raise ValueError("sort_order must be 'asc' or 'desc'")

        page = number("page", parse_int)
        size = number("size", parse_int)
        return cls(
            query=text("query"),
            category=text("category"),
            min_price=number("min_price", parse_float),
            max_price=number("max_price", parse_float),
            sort_by=sort_by,
            sort_order=sort_order,
            page=1 if page is None else page,
            size=DEFAULT_PAGE_SIZE if size is None else size,
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size


@dataclass
class FacetEntry:
    key: str
    doc_count: int


@dataclass
class SearchResult:
    data: list = field(default_factory=list)
    total_hits: int = 0
    facets: dict = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "SearchResult":
        return cls(data=[], total_hits=0, facets={})

    def to_dict(self) -> dict:
        return {
            "data": self.data,
            "total_hits": self.total_hits,
            "facets": {
                name: [asdict(entry) for entry in entries]
                for name, entries in self.facets.items()
            },
        }
