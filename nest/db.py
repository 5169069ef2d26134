from __future__ import annotations

import os
import re
from contextlib import contextmanager
from typing import Iterator

import psycopg

_SCHEMA_RE = re.compile(r"^[a-z_][a-z0-9_]{0,62}$")


def get_database_url() -> str:
    url = os.environ.get("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is not set")
    return url


def get_schema() -> str | None:
    schema = (os.environ.get("NEST_SCHEMA") or "").strip().lower()
    if not schema:
        return None
    if not _SCHEMA_RE.match(schema):
        raise RuntimeError(f"NEST_SCHEMA is not a valid schema name: {schema!r}")
    return schema


@contextmanager
def db_conn() -> Iterator[psycopg.Connection]:
    """Yield a database connection with the correct ``search_path``.

    - If ``NEST_SCHEMA`` is set, family tables are looked up in that schema
      first, then ``public``.
    - The connection commits on clean exit and rolls back on error.
    """
    with psycopg.connect(get_database_url()) as conn:
        schema = get_schema()
        if schema:
            conn.execute(f"SET search_path TO {schema}, public")
        yield conn
