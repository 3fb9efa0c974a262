"""Simple query builder for PostgreSQL catalog queries."""

from __future__ import annotations


def select(*columns: str) -> Query:
    """Start a SELECT query with the given columns."""
    return Query(columns or ("*",))


class Query:
    """A fluent SELECT query builder."""

    def __init__(self, columns: tuple[str, ...]) -> None:
        """Initialize with the selected column expressions."""
        self._columns = columns
        self._table: str | None = None
        self._joins: list[str] = []
        self._where: list[str] = []
        self._order_by: list[str] = []

    def from_(self, table: str) -> Query:
        """Set the table expression that joins attach to."""
        self._table = table
        return self

    def join(self, table: str, condition: str, *, outer: bool = False) -> Query:
        """Add a JOIN clause."""
        kind = "LEFT JOIN" if outer else "JOIN"
        self._joins.append(f"{kind} {table} ON {condition}")
        return self

    def where(self, *conditions: str) -> Query:
        """Add WHERE conditions, combined with AND."""
        self._where.extend(conditions)
        return self

    def order_by(self, *expressions: str) -> Query:
        """Add ORDER BY expressions."""
        self._order_by.extend(expressions)
        return self

    def __str__(self) -> str:
        """Render the query as SQL."""
        if not self._table:
            msg = "FROM clause is required"
            raise ValueError(msg)

        query = f"SELECT {', '.join(self._columns)} FROM {self._table}"  # noqa: S608
        if self._joins:
            query += f" {' '.join(self._joins)}"
        if self._where:
            query += f" WHERE {' AND '.join(self._where)}"
        if self._order_by:
            query += f" ORDER BY {', '.join(self._order_by)}"

        return query
