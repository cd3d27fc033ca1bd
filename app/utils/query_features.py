"""
Query feature builder translating request parameters into a composed SELECT.

Stages can be chained in any order:

    features = (
        QueryFeatures(Property, base_query, request.query_params, ...)
        .filter()
        .search()
        .sort()
        .limit_fields()
        .paginate()
    )

Only ``filter`` and ``search`` narrow the row set, so ``count_query`` is built
from the base query plus those predicates and always matches the data query.
"""

from sqlalchemy import Select, select, func, or_
from sqlalchemy.sql.elements import ColumnElement
from app.utils.exceptions import BadRequestError
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence
import enum
import math
import re
import uuid
import logging

logger = logging.getLogger(__name__)

# Control keys that never become filter predicates
EXCLUDED_KEYS = frozenset({"page", "limit", "sort", "fields", "keyword", "search"})

RANGE_OPERATORS = {
    "gte": lambda column, value: column >= value,
    "lte": lambda column, value: column <= value,
    "gt": lambda column, value: column > value,
    "lt": lambda column, value: column < value,
}

_BRACKET_KEY = re.compile(r"^(?P<field>[\w.]+)\[(?P<op>\w+)\]$")

_TRUE_VALUES = {"true", "1", "yes"}
_FALSE_VALUES = {"false", "0", "no"}


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def coerce_value(column: ColumnElement, raw: str) -> Any:
    """
    Convert a raw query-string value into the column's Python type.

    Raises:
        ValueError: If the value cannot be represented in the column type
    """
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return raw

    if python_type is bool:
        lowered = raw.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ValueError(f"'{raw}' is not a boolean")
    if python_type is int:
        return int(raw)
    if python_type is float:
        return float(raw)
    if python_type is Decimal:
        try:
            value = Decimal(raw)
        except InvalidOperation:
            raise ValueError(f"'{raw}' is not a number")
        if not value.is_finite():
            raise ValueError(f"'{raw}' is not a finite number")
        return value
    if python_type is uuid.UUID:
        return uuid.UUID(raw)
    if isinstance(python_type, type) and issubclass(python_type, enum.Enum):
        return python_type(raw.strip().lower())
    return raw


class QueryFeatures:
    """
    Chainable builder over a SQLAlchemy ``Select``.

    Args:
        model: Mapped class the base query selects from
        base_query: Starting ``Select``, already restricted by any base predicates
        params: Request query parameters
        filter_fields: Public parameter name to column for equality/range filters
        search_columns: Columns matched case-insensitively by ``keyword``/``search``
        sort_fields: Public sort key to column
        projection_fields: Top-level response keys accepted by ``fields``
        default_sort: Sort expression used when none is requested
        default_limit: Page size when ``limit`` is absent
        max_limit: Upper bound applied to ``limit``
    """

    def __init__(
        self,
        model,
        base_query: Select,
        params: Mapping[str, Any],
        *,
        filter_fields: Mapping[str, ColumnElement],
        search_columns: Sequence[ColumnElement] = (),
        sort_fields: Optional[Mapping[str, ColumnElement]] = None,
        projection_fields: Iterable[str] = (),
        default_sort: str = "-created_at",
        default_limit: int = 10,
        max_limit: int = 100,
    ):
        self.model = model
        self.query = base_query
        self.params: Dict[str, Any] = dict(params)
        self.filter_fields = dict(filter_fields)
        self.search_columns = list(search_columns)
        self.sort_fields = dict(sort_fields or filter_fields)
        self.projection_fields = set(projection_fields)
        self.default_sort = default_sort
        self.default_limit = default_limit
        self.max_limit = max_limit

        # Base query plus filter/search predicates only
        self._counted = base_query
        self._searched = False

        self.projection: Optional[List[str]] = None
        self.page = 1
        self.limit = default_limit

    def _narrow(self, *conditions) -> None:
        self.query = self.query.where(*conditions)
        self._counted = self._counted.where(*conditions)

    def filter(self) -> "QueryFeatures":
        """Apply equality and bracket range constraints on whitelisted fields."""
        conditions = []

        for key, raw in self.params.items():
            if key in EXCLUDED_KEYS or raw is None or raw == "":
                continue

            match = _BRACKET_KEY.match(key)
            field, op = (match.group("field"), match.group("op")) if match else (key, None)

            column = self.filter_fields.get(field)
            if column is None:
                continue

            if op is not None and op not in RANGE_OPERATORS:
                raise BadRequestError(f"Unsupported filter operator '{op}' for '{field}'")

            try:
                value = coerce_value(column, str(raw))
            except ValueError:
                raise BadRequestError(f"Invalid value '{raw}' for filter '{field}'")

            if op is None:
                conditions.append(column == value)
            else:
                conditions.append(RANGE_OPERATORS[op](column, value))

        if conditions:
            self._narrow(*conditions)
            logger.debug(f"Applied {len(conditions)} filter conditions")

        return self

    def search(self) -> "QueryFeatures":
        """Case-insensitive substring match of ``keyword`` (or ``search``). Applies at most once."""
        if self._searched:
            return self
        self._searched = True

        term = self.params.get("keyword") or self.params.get("search")
        if not term or not self.search_columns:
            return self

        pattern = f"%{escape_like(str(term).strip())}%"
        self._narrow(or_(*[column.ilike(pattern, escape="\\") for column in self.search_columns]))
        return self

    def sort(self) -> "QueryFeatures":
        """Order by ``sort=-price,created_at``; unknown keys are ignored."""
        requested = self.params.get("sort") or ""
        clauses = self._order_clauses(str(requested))
        if not clauses:
            clauses = self._order_clauses(self.default_sort)

        # id as final key keeps page boundaries stable
        self.query = self.query.order_by(None).order_by(*clauses, self.model.id.asc())
        return self

    def _order_clauses(self, expression: str) -> list:
        clauses = []
        for part in expression.split(","):
            part = part.strip()
            if not part:
                continue
            descending = part.startswith("-")
            column = self.sort_fields.get(part.lstrip("-+"))
            if column is None:
                continue
            clauses.append(column.desc() if descending else column.asc())
        return clauses

    def limit_fields(self) -> "QueryFeatures":
        """Record a projection for serialization; ``id`` is always kept."""
        requested = self.params.get("fields")
        if not requested:
            return self

        selected = [
            name.strip() for name in str(requested).split(",")
            if name.strip() in self.projection_fields
        ]
        if selected:
            self.projection = ["id"] + [name for name in selected if name != "id"]
        return self

    def paginate(self) -> "QueryFeatures":
        """Apply ``page`` and ``limit`` as OFFSET/LIMIT."""
        self.page = self._positive_int("page", 1)
        self.limit = min(self._positive_int("limit", self.default_limit), self.max_limit)
        self.query = self.query.offset((self.page - 1) * self.limit).limit(self.limit)
        return self

    def _positive_int(self, key: str, default: int) -> int:
        raw = self.params.get(key)
        if raw is None or raw == "":
            return default
        try:
            value = int(str(raw))
        except ValueError:
            raise BadRequestError(f"'{key}' must be a positive integer")
        if value < 1:
            raise BadRequestError(f"'{key}' must be a positive integer")
        return value

    def count_query(self) -> Select:
        """SELECT count(*) over the base, filter and search predicates only."""
        return select(func.count()).select_from(self._counted.order_by(None).subquery())

    def pagination(self, total: int) -> Dict[str, Any]:
        total_pages = math.ceil(total / self.limit) if total else 0
        return {
            "currentPage": self.page,
            "totalPages": total_pages,
            "totalDocs": total,
            "itemsPerPage": self.limit,
            "hasNext": self.page < total_pages,
            "hasPrev": self.page > 1,
        }
