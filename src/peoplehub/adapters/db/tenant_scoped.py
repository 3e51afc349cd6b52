"""Tenant-scoped data access.

Every query against an organization-owned table goes through a
``TenantScopedRepository``. Reads, updates, deletes and aggregates get
``organization_id = <current tenant>`` merged into their filter, overriding
whatever the caller passed; writes stamp the current tenant on every row and
refuse to run without one.

Filters are plain dicts::

    {"receiver_id": user_id}                  # equality
    {"deleted_at": None}                      # IS NULL
    {"start_date": {"lte": end, "gte": x}}    # operators
    {"status": {"in": ["PENDING", "APPROVED"]}}
    {"name": {"contains": "ann"}}             # case-insensitive substring
    {"OR": [{"name": ...}, {"email": ...}]}   # any alternative matches

Column names are checked against the table's SQLAlchemy metadata, so only
values (never identifiers) ever come from callers.

Without a tenant context, filter-bearing operations run unfiltered. That is
the caller's responsibility (background jobs, registration).
"""

from typing import Any

import structlog

from peoplehub.adapters.db.app_db import AppDatabase, rows_affected
from peoplehub.core.exceptions import ValidationError
from peoplehub.core.tenancy import current, current_or_none
from peoplehub.models import TENANT_MODELS, TenantModel

logger = structlog.get_logger()

TENANT_COLUMN = "organization_id"

_OPERATORS = {
    "eq": "=",
    "not": "<>",
    "gt": ">",
    "gte": ">=",
    "lt": "<",
    "lte": "<=",
}
_AGGREGATES = ("avg", "sum", "min", "max")

ANY_OF = "OR"


def _like_pattern(value: str) -> str:
    """Substring pattern with LIKE wildcards in ``value`` escaped."""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class _Params:
    """Collects positional query arguments and hands out ``$n`` placeholders."""

    def __init__(self) -> None:
        self.values: list[Any] = []

    def add(self, value: Any) -> str:
        self.values.append(value)
        return f"${len(self.values)}"


class TenantScopedRepository:
    """CRUD for one organization-owned table, always scoped to the current tenant."""

    def __init__(self, db: AppDatabase, model: type[TenantModel]) -> None:
        """Initialize the repository.

        Args:
            db: Application database.
            model: SQLAlchemy model of the table; must carry ``organization_id``.
        """
        table = model.__table__
        if TENANT_COLUMN not in table.columns:
            raise ValueError(f"{model.__name__} has no {TENANT_COLUMN} column")
        self._db = db
        self.model = model
        self.table: str = table.name
        self.columns: frozenset[str] = frozenset(c.name for c in table.columns)

    # Reads

    async def find_many(
        self,
        where: dict[str, Any] | None = None,
        order_by: list[str] | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[dict[str, Any]]:
        """Return all matching rows of the current tenant.

        ``order_by`` entries are column names; prefix with ``-`` for descending.
        """
        params = _Params()
        query = f"SELECT * FROM {self._table()}{self._where(where, params)}"
        query += self._order_by(order_by)
        if limit is not None:
            query += f" LIMIT {params.add(limit)}"
        if offset is not None:
            query += f" OFFSET {params.add(offset)}"
        return await self._db.fetch_all(query, *params.values)

    async def find_first(
        self,
        where: dict[str, Any] | None = None,
        order_by: list[str] | None = None,
    ) -> dict[str, Any] | None:
        """Return the first matching row of the current tenant, or None."""
        params = _Params()
        query = f"SELECT * FROM {self._table()}{self._where(where, params)}"
        query += self._order_by(order_by) + " LIMIT 1"
        return await self._db.fetch_one(query, *params.values)

    async def find_unique(self, id: Any) -> dict[str, Any] | None:
        """Fetch a row by primary key.

        The lookup itself is unfiltered; a row owned by another tenant is
        treated as nonexistent.
        """
        row = await self._db.fetch_one(f"SELECT * FROM {self._table()} WHERE id = $1", id)
        if row is None:
            return None

        tenant = current_or_none()
        if tenant is not None and row.get(TENANT_COLUMN) != tenant.organization_id:
            logger.warning(
                "cross_tenant_lookup_blocked",
                table=self.table,
                row_id=str(id),
                organization_id=str(tenant.organization_id),
            )
            return None
        return row

    async def count(self, where: dict[str, Any] | None = None) -> int:
        """Count matching rows of the current tenant."""
        params = _Params()
        query = f"SELECT COUNT(*) AS count FROM {self._table()}{self._where(where, params)}"
        row = await self._db.fetch_one(query, *params.values)
        return int(row["count"]) if row else 0

    async def aggregate(
        self,
        where: dict[str, Any] | None = None,
        *,
        avg: list[str] | None = None,
        sum: list[str] | None = None,
        min: list[str] | None = None,
        max: list[str] | None = None,
    ) -> dict[str, Any]:
        """Compute aggregates over matching rows of the current tenant.

        Returns ``{"count": n, "avg": {column: value}, ...}`` with one key per
        requested aggregate.
        """
        requested = {"avg": avg, "sum": sum, "min": min, "max": max}
        selects = ["COUNT(*) AS count"]
        aliases: list[tuple[str, str, str]] = []
        for fn in _AGGREGATES:
            for column in requested[fn] or []:
                self._check_column(column)
                alias = f"{fn}_{column}"
                selects.append(f'{fn.upper()}("{column}") AS "{alias}"')
                aliases.append((fn, column, alias))

        params = _Params()
        query = f"SELECT {', '.join(selects)} FROM {self._table()}{self._where(where, params)}"
        row = await self._db.fetch_one(query, *params.values) or {}

        result: dict[str, Any] = {"count": int(row.get("count") or 0)}
        for fn, column, alias in aliases:
            result.setdefault(fn, {})[column] = row.get(alias)
        return result

    # Writes

    async def create(self, data: dict[str, Any]) -> dict[str, Any]:
        """Insert a row owned by the current tenant.

        Raises:
            TenantContextError: If no tenant is bound.
        """
        tenant = current()
        row = {**data, TENANT_COLUMN: tenant.organization_id}
        query, args = self._insert(row)
        result = await self._db.execute_returning(query, *args)
        if result is None:
            raise RuntimeError(f"Failed to insert into {self.table}")
        return result

    async def create_many(self, rows: list[dict[str, Any]]) -> int:
        """Insert several rows owned by the current tenant in one transaction.

        Raises:
            TenantContextError: If no tenant is bound.
        """
        tenant = current()
        statements = [self._insert({**r, TENANT_COLUMN: tenant.organization_id}) for r in rows]
        if not statements:
            return 0
        async with self._db.transaction() as conn:
            for query, args in statements:
                await conn.execute(query, *args)
        return len(statements)

    async def update(self, where: dict[str, Any], data: dict[str, Any]) -> dict[str, Any] | None:
        """Update the first matching row of the current tenant.

        Returns the updated row, or None if nothing matched.
        """
        params = _Params()
        assignments = self._set_clause(data, params)
        table = self._table()
        query = (
            f"UPDATE {table} SET {assignments} WHERE id = "
            f"(SELECT id FROM {table}{self._where(where, params)} LIMIT 1) RETURNING *"
        )
        return await self._db.execute_returning(query, *params.values)

    async def update_many(self, where: dict[str, Any], data: dict[str, Any]) -> int:
        """Update all matching rows of the current tenant; returns the count."""
        params = _Params()
        assignments = self._set_clause(data, params)
        query = f"UPDATE {self._table()} SET {assignments}{self._where(where, params)}"
        return rows_affected(await self._db.execute(query, *params.values))

    async def delete(self, where: dict[str, Any]) -> dict[str, Any] | None:
        """Delete the first matching row of the current tenant.

        Returns the deleted row, or None if nothing matched.
        """
        params = _Params()
        table = self._table()
        query = (
            f"DELETE FROM {table} WHERE id = "
            f"(SELECT id FROM {table}{self._where(where, params)} LIMIT 1) RETURNING *"
        )
        return await self._db.execute_returning(query, *params.values)

    async def delete_many(self, where: dict[str, Any] | None = None) -> int:
        """Delete all matching rows of the current tenant; returns the count."""
        params = _Params()
        query = f"DELETE FROM {self._table()}{self._where(where, params)}"
        return rows_affected(await self._db.execute(query, *params.values))

    # SQL building

    def _table(self) -> str:
        return f'"{self.table}"'

    def _check_column(self, column: str) -> None:
        if column not in self.columns:
            raise ValidationError(
                f"Unknown column for {self.table}: {column}",
                fields={column: "unknown column"},
            )

    def _scoped(self, where: dict[str, Any] | None) -> dict[str, Any]:
        """Merge the tenant filter into ``where``; the tenant always wins."""
        scoped = dict(where or {})
        tenant = current_or_none()
        if tenant is not None:
            scoped[TENANT_COLUMN] = tenant.organization_id
        return scoped

    def _where(self, where: dict[str, Any] | None, params: _Params) -> str:
        clauses = self._clauses(self._scoped(where), params)
        if not clauses:
            return ""
        return " WHERE " + " AND ".join(clauses)

    def _clauses(self, where: dict[str, Any], params: _Params) -> list[str]:
        clauses: list[str] = []
        for column, condition in where.items():
            if column == ANY_OF:
                clauses.append(self._any_of(condition, params))
                continue
            self._check_column(column)
            if isinstance(condition, dict):
                if not condition:
                    raise ValidationError(f"Empty condition for {column}")
                for op, value in condition.items():
                    clauses.append(self._condition(column, op, value, params))
            else:
                clauses.append(self._condition(column, "eq", condition, params))
        return clauses

    def _any_of(self, alternatives: list[dict[str, Any]], params: _Params) -> str:
        """OR of alternatives. The tenant filter stays outside, ANDed with the result."""
        parts = []
        for alternative in alternatives:
            clauses = self._clauses(alternative, params)
            if not clauses:
                raise ValidationError("Empty alternative in OR filter")
            parts.append("(" + " AND ".join(clauses) + ")")
        if not parts:
            raise ValidationError("OR filter needs at least one alternative")
        return "(" + " OR ".join(parts) + ")"

    def _condition(self, column: str, op: str, value: Any, params: _Params) -> str:
        quoted = f'"{column}"'
        if op == "in":
            return f"{quoted} = ANY({params.add(list(value))})"
        if op == "contains":
            if value is None:
                raise ValidationError("Operator contains does not accept null")
            return f"{quoted} ILIKE {params.add(_like_pattern(str(value)))}"
        if op not in _OPERATORS:
            raise ValidationError(f"Unknown operator for {column}: {op}")
        if value is None:
            if op == "eq":
                return f"{quoted} IS NULL"
            if op == "not":
                return f"{quoted} IS NOT NULL"
            raise ValidationError(f"Operator {op} does not accept null")
        return f"{quoted} {_OPERATORS[op]} {params.add(value)}"

    def _order_by(self, order_by: list[str] | None) -> str:
        if not order_by:
            return ""
        terms = []
        for entry in order_by:
            column = entry.lstrip("-")
            self._check_column(column)
            terms.append(f'"{column}" {"DESC" if entry.startswith("-") else "ASC"}')
        return " ORDER BY " + ", ".join(terms)

    def _set_clause(self, data: dict[str, Any], params: _Params) -> str:
        """Build ``SET`` assignments. Ownership can never be reassigned."""
        changes = {k: v for k, v in data.items() if k not in (TENANT_COLUMN, "id")}
        if not changes:
            raise ValidationError("No fields to update")
        assignments = []
        for column, value in changes.items():
            self._check_column(column)
            assignments.append(f'"{column}" = {params.add(value)}')
        if "updated_at" in self.columns and "updated_at" not in changes:
            assignments.append('"updated_at" = NOW()')
        return ", ".join(assignments)

    def _insert(self, row: dict[str, Any]) -> tuple[str, list[Any]]:
        params = _Params()
        columns = []
        placeholders = []
        for column, value in row.items():
            self._check_column(column)
            columns.append(f'"{column}"')
            placeholders.append(params.add(value))
        query = (
            f"INSERT INTO {self._table()} ({', '.join(columns)}) "
            f"VALUES ({', '.join(placeholders)}) RETURNING *"
        )
        return query, params.values


class TenantScopedDatabase:
    """One ``TenantScopedRepository`` per organization-owned entity kind."""

    def __init__(self, db: AppDatabase) -> None:
        """Build a repository for every tenant model."""
        self.db = db
        self._repositories = {
            name: TenantScopedRepository(db, model) for name, model in TENANT_MODELS.items()
        }

    def repository(self, name: str) -> TenantScopedRepository:
        """Look up a repository by entity kind (``"feedback"``, ``"user"``...)."""
        try:
            return self._repositories[name]
        except KeyError:
            raise ValueError(f"Not a tenant-scoped model: {name}") from None

    @property
    def users(self) -> TenantScopedRepository:
        return self._repositories["user"]

    @property
    def feedback(self) -> TenantScopedRepository:
        return self._repositories["feedback"]

    @property
    def absence_requests(self) -> TenantScopedRepository:
        return self._repositories["absence_request"]

    @property
    def notifications(self) -> TenantScopedRepository:
        return self._repositories["notification"]

    @property
    def invitations(self) -> TenantScopedRepository:
        return self._repositories["invitation"]
