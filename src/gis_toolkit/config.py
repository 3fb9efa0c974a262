"""Database connection settings from the environment."""

import os

from sqlalchemy import URL, make_url

DRIVER = "postgresql+psycopg"
SUPPORTED_DIALECTS = {"postgres", "postgresql"}


def _clean(value: str | None, default: str) -> str:
    """Strip matching single or double quotes around an environment value."""
    text = default if value is None else value
    if len(text) >= 2 and text[0] == text[-1] and text[0] in {"'", '"'}:
        text = text[1:-1]
    return text


def database_url(
    *,
    host: str | None = None,
    port: str | None = None,
    user: str | None = None,
    password: str | None = None,
    dbname: str | None = None,
) -> URL:
    """Build a SQLAlchemy URL from overrides, ``DATABASE_URL`` or ``DB_*`` vars.

    Expected env vars:
    - DATABASE_URL (used as is when no override is given)
    - DB_DIALECT (must be postgres or postgresql)
    - DB_HOST, DB_PORT, DB_USER, DB_PASS, DB_NAME
    """
    overrides = (host, port, user, password, dbname)
    if all(value is None for value in overrides) and (url := os.getenv("DATABASE_URL")):
        return make_url(_clean(url, ""))

    dialect = _clean(os.getenv("DB_DIALECT"), "postgres").strip()
    if dialect not in SUPPORTED_DIALECTS:
        msg = f"Unsupported DB_DIALECT: {dialect}"
        raise ValueError(msg)

    return URL.create(
        DRIVER,
        username=_clean(user or os.getenv("DB_USER"), "postgres"),
        password=_clean(password or os.getenv("DB_PASS"), "") or None,
        host=_clean(host or os.getenv("DB_HOST"), "localhost"),
        port=int(_clean(port or os.getenv("DB_PORT"), "5432")),
        database=_clean(dbname or os.getenv("DB_NAME"), "postgres"),
    )
