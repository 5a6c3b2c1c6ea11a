"""Repository backing catalog 'db' reads."""

from __future__ import annotations

import re
from typing import Any

from backend import db
from composer.kernel.collaborators import Database

# ':name' but not the second colon of a '::type' cast
_NAMED_PARAM = re.compile(r"(?<!:):([A-Za-z_][A-Za-z0-9_]*)")


def bind_named_params(sql: str, params: dict[str, Any]) -> tuple[str, list[Any]]:
    """
    Rewrite ':name' placeholders to asyncpg's positional '$n'.

    A name used twice maps to the same position. Raises KeyError when the
    template references a parameter the caller did not supply.

    >>> bind_named_params("SELECT * FROM t WHERE a = :a AND b = :a", {"a": 1})
    ('SELECT * FROM t WHERE a = $1 AND b = $1', [1])
    """
    positions: dict[str, int] = {}
    args: list[Any] = []

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in positions:
            if name not in params:
                raise KeyError(f"Missing query parameter: {name}")
            args.append(params[name])
            positions[name] = len(args)
        return f"${positions[name]}"

    return _NAMED_PARAM.sub(_replace, sql), args


class PostgresDatabase(Database):
    """Runs catalog query templates against Postgres. Rows come back as dicts."""

    async def query(self, sql: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        statement, args = bind_named_params(sql, params)
        tenant_id = params.get("tenantId")

        if tenant_id is not None:
            async with db.tenant_conn(tenant_id) as conn:
                rows = await conn.fetch(statement, *args)
        else:
            async with db.system_conn() as conn:
                rows = await conn.fetch(statement, *args)

        return [dict(row) for row in rows]
