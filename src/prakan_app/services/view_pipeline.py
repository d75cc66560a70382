"""Filter -> sort -> paginate derivation over the policy collection."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any, Sequence

from prakan_app.models.policy import AMOUNT_FIELDS, PolicyRecord

if TYPE_CHECKING:
    from prakan_app.services.record_store import RecordStore

DEFAULT_PAGE_SIZE = 10
PAGE_WINDOW_RADIUS = 2

TEXT_SEARCH_FIELDS = (
    "cust_name",
    "plate",
    "model",
    "insurance_type",
    "company_prb",
    "company_vol",
)


@dataclass(frozen=True)
class SortSpec:
    column: str = ""
    descending: bool = False


@dataclass(frozen=True)
class ViewState:
    """Everything the derived view depends on besides the records."""

    search_term: str = ""
    sort: SortSpec = field(default_factory=SortSpec)
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE


@dataclass(frozen=True)
class ViewPage:
    """One page of the derived view plus what a pagination control needs."""

    rows: tuple[PolicyRecord, ...]
    page: int
    page_size: int
    total_filtered: int
    total_pages: int
    first_visible_index: int
    last_visible_index: int

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    def page_window(self) -> list[int]:
        """Page numbers shown around the current page, e.g. [1, 2, 3, 4, 5]."""
        if self.total_pages == 0:
            return []
        start = max(1, self.page - PAGE_WINDOW_RADIUS)
        end = min(self.total_pages, self.page + PAGE_WINDOW_RADIUS)
        return list(range(start, end + 1))


def matches(record: PolicyRecord, term: str) -> bool:
    """term must already be lowercased and stripped."""
    if not term:
        return True
    if term in (record.phone or ""):
        return True
    return any(term in str(getattr(record, name, "") or "").lower() for name in TEXT_SEARCH_FIELDS)


def filter_records(records: Sequence[PolicyRecord], term: str) -> list[PolicyRecord]:
    normalized = (term or "").strip().lower()
    if not normalized:
        return list(records)
    return [record for record in records if matches(record, normalized)]


def _amount_key(value: Any) -> Decimal:
    try:
        amount = Decimal(str(value)) if value not in (None, "") else Decimal("0")
    except InvalidOperation:
        return Decimal("0")
    return amount if amount.is_finite() else Decimal("0")


def _text_key(value: Any) -> str:
    if value is None:
        return ""
    if hasattr(value, "describe"):
        value = value.describe()
    return str(value).casefold()


def sort_key(column: str):
    """Key function for one column; unknown columns sort as empty text."""
    if column in AMOUNT_FIELDS:
        return lambda record: _amount_key(getattr(record, column, None))
    return lambda record: _text_key(getattr(record, column, None))


def sort_records(records: Sequence[PolicyRecord], sort: SortSpec) -> list[PolicyRecord]:
    """Stable sort; equal keys keep their incoming order in both directions."""
    if not sort.column:
        return list(records)
    return sorted(records, key=sort_key(sort.column), reverse=sort.descending)


def total_pages_for(count: int, page_size: int) -> int:
    return math.ceil(count / page_size) if count else 0


def clamp_page(page: int, count: int, page_size: int) -> int:
    last = max(1, total_pages_for(count, page_size))
    return min(max(1, page), last)


def paginate(records: Sequence[PolicyRecord], page: int, page_size: int) -> ViewPage:
    """Slice [(page-1)*size, page*size) with page clamped to the valid range."""
    if page_size < 1:
        raise ValueError("page_size must be at least 1")
    count = len(records)
    page = clamp_page(page, count, page_size)
    start = (page - 1) * page_size
    rows = tuple(records[start : start + page_size])
    return ViewPage(
        rows=rows,
        page=page,
        page_size=page_size,
        total_filtered=count,
        total_pages=total_pages_for(count, page_size),
        first_visible_index=start + 1 if rows else 0,
        last_visible_index=start + len(rows),
    )


def derive_view(records: Sequence[PolicyRecord], state: ViewState) -> ViewPage:
    filtered = filter_records(records, state.search_term)
    ordered = sort_records(filtered, state.sort)
    return paginate(ordered, state.page, state.page_size)


class ViewPipeline:
    """Holds view state and recomputes the current page when records change."""

    def __init__(self, page_size: int = DEFAULT_PAGE_SIZE):
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self._state = ViewState(page_size=page_size)
        self._records: tuple[PolicyRecord, ...] = ()
        self._current = derive_view(self._records, self._state)

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def current(self) -> ViewPage:
        return self._current

    def attach(self, store: RecordStore) -> None:
        """Follow a RecordStore: take its snapshot now and after every mutation."""
        store.subscribe(self.refresh)
        self.refresh(store.all())

    def refresh(self, records: Sequence[PolicyRecord]) -> ViewPage:
        self._records = tuple(records)
        return self._recompute()

    def set_search(self, term: str) -> ViewPage:
        self._state = replace(self._state, search_term=term or "", page=1)
        return self._recompute()

    def toggle_sort(self, column: str) -> ViewPage:
        """Same column flips direction; a new column starts ascending. Page is kept."""
        current = self._state.sort
        if current.column == column:
            sort = SortSpec(column=column, descending=not current.descending)
        else:
            sort = SortSpec(column=column, descending=False)
        self._state = replace(self._state, sort=sort)
        return self._recompute()

    def set_page_size(self, page_size: int) -> ViewPage:
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self._state = replace(self._state, page_size=page_size, page=1)
        return self._recompute()

    def go_to_page(self, page: int) -> ViewPage:
        self._state = replace(self._state, page=page)
        return self._recompute()

    def _recompute(self) -> ViewPage:
        self._current = derive_view(self._records, self._state)
        if self._current.page != self._state.page:
            self._state = replace(self._state, page=self._current.page)
        return self._current
