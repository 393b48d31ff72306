"""
Care Guide Notes API — List Query Builder
===========================================

What:  Turns the query string of a list request into a filtered, searched,
       sorted, projected and paginated SQLAlchemy statement, plus the
       pagination metadata for the same filtered set.
Who:   Used by every list endpoint (notes, posts, users).

Query string contract:
    searchTerm=foo          case-insensitive substring match over the
                            searchable fields of the collection (OR)
    sort=-created_at,title  comma-separated, "-" prefix = descending
                            (default: -created_at)
    fields=title,content    only return these fields (id is always returned)
    page=2&limit=10         1-based page, default limit 10
    <field>=<value>         equality filter
    <field>[<op>]=<value>   operator filter: eq ne gt gte lt lte in nin
                            (in / nin take a comma-separated list)

Usage:
    builder = QueryBuilder(select(Note).where(Note.author_id == user.id), params)
    builder.filter().search(["title", "content"]).sort().fields().paginate()
    data, meta = await builder.execute(session_factory)

SQLAlchemy statements are generative: every .where()/.order_by() returns a
new Select. The page statement and the count statement are derived from the
same filtered statement and never affect each other.
"""

import asyncio
import logging
import math
import operator
import re
import uuid
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import JSON, Select, and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import load_only
from sqlalchemy.sql.elements import ColumnElement

from careguide.config import settings
from careguide.exceptions import InvalidQueryError
from careguide.schemas.common import PaginationMeta

logger = logging.getLogger(__name__)

# Control keys; every other query parameter is a filter
RESERVED_PARAMS = frozenset({"searchTerm", "sort", "fields", "page", "limit"})

DEFAULT_SORT = "-created_at"
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10

# OFFSET is bound as a signed 64-bit integer by every supported driver
MAX_OFFSET = 2**63 - 1

# ?age[gte]=18 → Column >= 18
FILTER_OPERATORS: Dict[str, Callable[[Any, Any], ColumnElement]] = {
    "eq": operator.eq,
    "ne": operator.ne,
    "gt": operator.gt,
    "gte": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
    "in": lambda column, values: column.in_(values),
    "nin": lambda column, values: column.not_in(values),
}

# Operators that expect a comma-separated list of values
LIST_OPERATORS = frozenset({"in", "nin"})

_OPERATOR_KEY = re.compile(r"^(?P<field>[^\[\]]+)\[(?P<op>[^\[\]]*)\]$")

_TRUE_VALUES = frozenset({"true", "1", "yes"})
_FALSE_VALUES = frozenset({"false", "0", "no"})


def _parse_positive_int(raw: Optional[str], default: int) -> int:
    try:
        value = int(raw) if raw is not None else default
    except (TypeError, ValueError):
        return default
    return value if value >= 1 else default


def _split_csv(raw: str) -> List[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


class QueryBuilder:
    """
    Composes a list query from raw query-string parameters.

    The chain is filter → search → sort → fields → paginate; each stage
    records state and returns the builder. Nothing touches the database until
    `build()` / `get_meta()` (or `execute()`, which runs both concurrently).

    Malformed input never raises from a stage. Bad page/limit values fall back
    to defaults, as does a page too large for a database OFFSET. Unknown field
    names are ignored; a sort naming no known field keeps the default order.
    Rejected filter operators and values that cannot be converted to the
    column type are collected and raised as InvalidQueryError when the query
    is executed.

    One instance serves one request.
    """

    def __init__(
        self,
        base_query: Select,
        query: Mapping[str, str],
        max_limit: Optional[int] = None,
    ):
        self.base_query = base_query
        # Private copy; callers keep their mapping untouched
        self.query: Dict[str, str] = dict(query)
        self.max_limit = max_limit or settings.query_max_limit

        self.model = base_query.column_descriptions[0]["entity"]
        self._mapper = self.model.__mapper__
        self._hidden = getattr(self.model, "__hidden__", frozenset())

        self.applied_filters: Dict[str, str] = {}
        self._conditions: List[ColumnElement] = []
        self._problems: List[str] = []
        self._order_by: List[ColumnElement] = []
        self._projection: Optional[List[str]] = None
        self._paginated = False

    # ── Pipeline stages ───────────────────────────────────────────────────

    def filter(self) -> "QueryBuilder":
        filters = {
            key: value for key, value in self.query.items() if key not in RESERVED_PARAMS
        }
        self.applied_filters = filters

        for key, raw in filters.items():
            condition = self._filter_condition(key, raw)
            if condition is not None:
                self._conditions.append(condition)
        return self

    def search(self, fields: Sequence[str]) -> "QueryBuilder":
        term = self.query.get("searchTerm")
        if not term:
            return self

        clauses = [
            getattr(self.model, name).icontains(term, autoescape=True)
            for name in fields
            if self._is_queryable(name)
        ]
        if clauses:
            self._conditions.append(or_(*clauses))
        return self

    def sort(self) -> "QueryBuilder":
        raw = self.query.get("sort") or DEFAULT_SORT

        # Nothing usable requested: keep the newest-first order
        self._order_by.extend(self._sort_keys(raw) or self._sort_keys(DEFAULT_SORT))

        # Tiebreaker: rows with equal sort keys keep a stable order across pages
        self._order_by.extend(attr.asc() for attr in self._pk_attrs())
        return self

    def fields(self) -> "QueryBuilder":
        raw = self.query.get("fields")
        if raw:
            self._projection = [
                name for name in _split_csv(raw) if name not in self._hidden
            ]
        return self

    def paginate(self) -> "QueryBuilder":
        self._paginated = True
        return self

    # ── Resolved pagination ───────────────────────────────────────────────

    @property
    def page(self) -> int:
        page = _parse_positive_int(self.query.get("page"), DEFAULT_PAGE)
        if (page - 1) * self.limit > MAX_OFFSET:
            return DEFAULT_PAGE
        return page

    @property
    def limit(self) -> int:
        return min(_parse_positive_int(self.query.get("limit"), DEFAULT_LIMIT), self.max_limit)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def projection(self) -> Optional[List[str]]:
        return list(self._projection) if self._projection is not None else None

    # ── Statements ────────────────────────────────────────────────────────

    def filtered_statement(self) -> Select:
        """Base query + filter + search conditions."""
        if not self._conditions:
            return self.base_query
        return self.base_query.where(and_(*self._conditions))

    def page_statement(self) -> Select:
        stmt = self.filtered_statement()
        if self._order_by:
            stmt = stmt.order_by(*self._order_by)
        if self._projection is not None:
            columns = [
                getattr(self.model, name)
                for name in self._projection
                if self._is_column(name)
            ]
            # load_only() always keeps the primary key
            stmt = stmt.options(load_only(*columns) if columns else load_only(*self._pk_attrs()))
        if self._paginated:
            stmt = stmt.offset(self.skip).limit(self.limit)
        return stmt

    def count_statement(self) -> Select:
        """COUNT over the filtered set; sort, projection and pagination never apply."""
        return select(func.count()).select_from(self.filtered_statement().subquery())

    # ── Execution ─────────────────────────────────────────────────────────

    async def build(self, session: AsyncSession) -> List[Dict[str, Any]]:
        """Execute the composed query and return the page of serialized rows."""
        self._raise_for_problems()
        result = await session.execute(self.page_statement())
        rows = result.scalars().unique().all()
        return [row.to_dict(fields=self._projection) for row in rows]

    async def get_meta(self, session: AsyncSession) -> PaginationMeta:
        """Count the filtered set and compute the pagination metadata."""
        self._raise_for_problems()
        result = await session.execute(self.count_statement())
        total = result.scalar_one()
        limit = self.limit
        return PaginationMeta(
            total=total,
            page=self.page,
            limit=limit,
            total_page=math.ceil(total / limit),
        )

    async def execute(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> Tuple[List[Dict[str, Any]], PaginationMeta]:
        """
        Run build() and get_meta() concurrently, each in its own session.

        An AsyncSession cannot run two statements at once, so each read gets a
        session of its own. A row inserted between the two reads can make
        `total` disagree with the page by one; that is accepted.
        """
        self._raise_for_problems()

        async def _page() -> List[Dict[str, Any]]:
            async with session_factory() as session:
                return await self.build(session)

        async def _meta() -> PaginationMeta:
            async with session_factory() as session:
                return await self.get_meta(session)

        data, meta = await asyncio.gather(_page(), _meta())
        return data, meta

    # ── Internals ─────────────────────────────────────────────────────────

    def _is_column(self, name: str) -> bool:
        return name not in self._hidden and name in self._mapper.column_attrs

    def _is_queryable(self, name: str) -> bool:
        """Scalar, visible columns; JSON columns cannot be compared or ordered portably."""
        if not self._is_column(name):
            return False
        column = self._mapper.column_attrs[name].columns[0]
        return not isinstance(column.type, JSON)

    def _sort_keys(self, raw: str) -> List[ColumnElement]:
        keys = []
        for token in _split_csv(raw):
            descending = token.startswith("-")
            name = token[1:] if descending else token
            if not self._is_queryable(name):
                logger.debug("Ignoring sort on unknown field %r of %s", name, self.model.__name__)
                continue
            column = getattr(self.model, name)
            keys.append(column.desc() if descending else column.asc())
        return keys

    def _pk_attrs(self) -> List[Any]:
        return [getattr(self.model, col.key) for col in self._mapper.primary_key]

    def _filter_condition(self, key: str, raw: str) -> Optional[ColumnElement]:
        name, op = key, "eq"
        match = _OPERATOR_KEY.match(key)
        if match:
            name, op = match.group("field"), match.group("op")

        if not self._is_queryable(name):
            # Unknown keys (e.g. the client's sortField/sortOrder) are dropped
            logger.debug("Ignoring filter on unknown field %r of %s", name, self.model.__name__)
            return None

        compare = FILTER_OPERATORS.get(op)
        if compare is None:
            self._problems.append(f"unknown operator '{op}' for field '{name}'")
            return None

        column_type = self._mapper.column_attrs[name].columns[0].type
        try:
            if op in LIST_OPERATORS:
                value: Any = [self._coerce(column_type, item) for item in _split_csv(raw)]
            else:
                value = self._coerce(column_type, raw)
        except ValueError:
            self._problems.append(f"invalid value '{raw}' for field '{name}'")
            return None

        return compare(getattr(self.model, name), value)

    @staticmethod
    def _coerce(column_type: Any, raw: str) -> Any:
        try:
            python_type = column_type.python_type
        except NotImplementedError:
            return raw

        if python_type is bool:
            lowered = raw.strip().lower()
            if lowered in _TRUE_VALUES:
                return True
            if lowered in _FALSE_VALUES:
                return False
            raise ValueError(raw)
        if python_type is datetime:
            return datetime.fromisoformat(raw)
        if python_type is date:
            return date.fromisoformat(raw)
        if python_type is uuid.UUID:
            return uuid.UUID(raw)
        if python_type in (int, float):
            return python_type(raw)
        return raw

    def _raise_for_problems(self) -> None:
        if self._problems:
            raise InvalidQueryError(self._problems)
