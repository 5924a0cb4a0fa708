"""
List query builder shared by every paginated endpoint.

Translates the raw query-string parameters (page, limit, search, startDate,
endDate, type, category) into a MongoDB filter plus skip/limit. Parsing is
lenient: a value that cannot be parsed is dropped rather than rejected, so a
bad `page=abc` behaves like no pagination at all.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Sequence, Union

from schemas.dto.requests.request import ListQuery
from shared.datetime_utils import end_of_day, parse_datetime

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class BuiltQuery:
    """Result of ListQueryBuilder.build()."""

    filter: dict[str, Any] = field(default_factory=dict)
    skip: int = 0
    limit: Optional[int] = None
    page: Optional[int] = None


class ListQueryBuilder:
    """Builder for list filters with pagination, search and date ranges.

    Usage:
        built = (
            ListQueryBuilder(query, search_fields=("name", "phone_number"))
            .parse_pagination()
            .parse_search()
            .parse_date_range()
            .parse_exact_filters()
            .build()
        )
    """

    def __init__(
        self,
        query: Union[ListQuery, dict[str, Any]],
        *,
        search_fields: Sequence[str] = (),
        date_field: str = "created_at",
    ) -> None:
        if isinstance(query, dict):
            query = ListQuery.model_validate(query)
        self.args = query
        self.search_fields = tuple(search_fields)
        self.date_field = date_field
        self.page: Optional[int] = None
        self.limit: Optional[int] = None
        self.query: dict[str, Any] = {}

    @staticmethod
    def _parse_positive_int(value: Optional[str]) -> Optional[int]:
        if value is None:
            return None
        try:
            return max(int(str(value).strip()), 1)
        except ValueError:
            return None

    def parse_pagination(self) -> "ListQueryBuilder":
        self.page = self._parse_positive_int(self.args.page)
        limit = self._parse_positive_int(self.args.limit)
        self.limit = min(limit, MAX_PAGE_SIZE) if limit is not None else None
        return self

    def parse_search(self) -> "ListQueryBuilder":
        term = (self.args.search or "").strip()
        if term and self.search_fields:
            pattern = re.compile(re.escape(term), re.IGNORECASE)
            self.query["$or"] = [{name: pattern} for name in self.search_fields]
        return self

    def parse_date_range(self) -> "ListQueryBuilder":
        start: Optional[datetime] = parse_datetime(self.args.start_date)
        end: Optional[datetime] = parse_datetime(self.args.end_date)

        date_range: dict[str, Any] = {}
        if start is not None:
            date_range["$gte"] = start
        if end is not None:
            date_range["$lte"] = end_of_day(end)
        if date_range:
            self.query[self.date_field] = date_range
        return self

    def parse_exact_filters(self) -> "ListQueryBuilder":
        if self.args.type:
            self.query["type"] = self.args.type
        category = (self.args.category or "").strip()
        if category:
            self.query["category"] = re.compile(
                f"^{re.escape(category)}$", re.IGNORECASE
            )
        return self

    def build(self) -> BuiltQuery:
        skip = 0
        if self.page is not None and self.limit is not None:
            skip = (self.page - 1) * self.limit
        return BuiltQuery(
            filter=dict(self.query),
            skip=skip,
            limit=self.limit,
            page=self.page,
        )
