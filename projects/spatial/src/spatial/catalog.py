"""Queries against the PostgreSQL system catalog."""

from sqlalchemy import TextClause, text

from spatial.query import select

TABLE_OID = "CAST(:table_name AS regclass)"


def column_definitions_query(table_name: str) -> TextClause:
    """Name, declared type, default expression and NOT NULL flag per column."""
    query = (
        select(
            "a.attname",
            "format_type(a.atttypid, a.atttypmod)",
            "pg_get_expr(d.adbin, d.adrelid)",
            "a.attnotnull",
        )
        .from_("pg_attribute a")
        .join(
            "pg_attrdef d",
            "a.attrelid = d.adrelid AND a.attnum = d.adnum",
            outer=True,
        )
        .where(f"a.attrelid = {TABLE_OID}", "a.attnum > 0", "NOT a.attisdropped")
        .order_by("a.attnum")
    )
    return text(str(query)).bindparams(table_name=table_name)


def check_constraints_query(table_name: str) -> TextClause:
    """Definition text of every check constraint on the table."""
    query = (
        select("pg_get_constraintdef(oid)")
        .from_("pg_constraint")
        .where(f"conrelid = {TABLE_OID}", "contype = 'c'")
    )
    return text(str(query)).bindparams(table_name=table_name)


def indexes_query(table_name: str) -> TextClause:
    """One row per indexed column, grouped by index name in key order.

    Primary key indexes are excluded.
    """
    query = (
        select("i.relname", "d.indisunique", "a.attname", "am.amname")
        .from_("pg_class t")
        .join("pg_index d", "t.oid = d.indrelid")
        .join("pg_class i", "d.indexrelid = i.oid")
        .join("pg_am am", "i.relam = am.oid")
        .join("pg_attribute a", "a.attrelid = t.oid AND a.attnum = ANY(d.indkey)")
        .where("i.relkind = 'i'", "NOT d.indisprimary", "t.relname = :table_name")
        .order_by("i.relname", "array_position(CAST(d.indkey AS int2[]), a.attnum)")
    )
    return text(str(query)).bindparams(table_name=table_name)
