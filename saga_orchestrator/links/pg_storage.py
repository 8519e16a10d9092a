import typing

from psycopg import errors, sql
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb
from psycopg_pool import AsyncConnectionPool

from saga_orchestrator.links.interfaces import ILinkStorage
from saga_orchestrator.links.link import LinkAttributes, LinkKey, LinkRecord
from saga_orchestrator.workflow.errors import DuplicateLinkError

__all__ = ('PgLinkStorage',)


class PgLinkStorage(ILinkStorage):
    """Link records in a PostgreSQL table.

    The composite primary key (left_id, right_id) is the uniqueness
    guarantee; concurrent writers of the same pair get a UniqueViolation
    which is reported as DuplicateLinkError.
    """
    _columns = (
        'left_id', 'right_id', 'planned_quantity', 'consumed_quantity',
        'consumed_at', 'location_id', 'metadata',
    )

    def __init__(self, pool: AsyncConnectionPool, table: str = 'design_inventory_link'):
        self._pool = pool
        self._table = sql.Identifier(table)

    async def setup(self):
        query = sql.SQL("""
            CREATE TABLE IF NOT EXISTS {table} (
                left_id varchar(128) NOT NULL,
                right_id varchar(128) NOT NULL,
                planned_quantity double precision NULL,
                consumed_quantity double precision NULL,
                consumed_at timestamptz NULL,
                location_id varchar(128) NULL,
                metadata jsonb NOT NULL DEFAULT '{{}}'::jsonb,
                created_at timestamptz NOT NULL DEFAULT now(),
                PRIMARY KEY (left_id, right_id)
            )
        """).format(table=self._table)
        async with self._pool.connection() as conn:
            await conn.execute(query)

    async def cleanup(self):
        async with self._pool.connection() as conn:
            await conn.execute(sql.SQL("DROP TABLE IF EXISTS {table}").format(table=self._table))

    async def insert(self, records: typing.Sequence[LinkRecord]) -> None:
        query = sql.SQL("INSERT INTO {table} ({columns}) VALUES ({values})").format(
            table=self._table,
            columns=sql.SQL(", ").join(map(sql.Identifier, self._columns)),
            values=sql.SQL(", ").join(map(sql.Placeholder, self._columns)),
        )
        async with self._pool.connection() as conn:
            async with conn.transaction():
                for record in records:
                    try:
                        async with conn.transaction():
                            await conn.execute(query, self._export(record))
                    except errors.UniqueViolation as e:
                        raise DuplicateLinkError(record.key) from e

    async def delete(self, keys: typing.Sequence[LinkKey]) -> list[LinkRecord]:
        if not keys:
            return []
        query = sql.SQL("""
            DELETE FROM {table}
            WHERE (left_id, right_id) IN (
                SELECT * FROM unnest(%(left_ids)s::varchar[], %(right_ids)s::varchar[])
            )
            RETURNING {columns}
        """).format(
            table=self._table,
            columns=sql.SQL(", ").join(map(sql.Identifier, self._columns)),
        )
        params = {
            'left_ids': [key.left_id for key in keys],
            'right_ids': [key.right_id for key in keys],
        }
        async with self._pool.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as acursor:
                await acursor.execute(query, params)
                return [self._import(row) for row in await acursor.fetchall()]

    async def get(self, key: LinkKey) -> LinkRecord | None:
        records = await self._select(
            sql.SQL("left_id = %(left_id)s AND right_id = %(right_id)s"),
            {'left_id': key.left_id, 'right_id': key.right_id}
        )
        return records[0] if records else None

    async def find(self, left_id: str | None = None, right_id: str | None = None) -> list[LinkRecord]:
        conditions = [sql.SQL("TRUE")]
        params = {}
        if left_id is not None:
            conditions.append(sql.SQL("left_id = %(left_id)s"))
            params['left_id'] = left_id
        if right_id is not None:
            conditions.append(sql.SQL("right_id = %(right_id)s"))
            params['right_id'] = right_id
        return await self._select(sql.SQL(" AND ").join(conditions), params)

    async def _select(self, where: sql.Composable, params: dict) -> list[LinkRecord]:
        query = sql.SQL("SELECT {columns} FROM {table} WHERE {where} ORDER BY created_at, left_id, right_id").format(
            columns=sql.SQL(", ").join(map(sql.Identifier, self._columns)),
            table=self._table,
            where=where,
        )
        async with self._pool.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as acursor:
                await acursor.execute(query, params)
                return [self._import(row) for row in await acursor.fetchall()]

    @staticmethod
    def _export(record: LinkRecord) -> dict[str, typing.Any]:
        state = record.attributes.as_dict()
        state['metadata'] = Jsonb(state['metadata'])
        state['left_id'] = record.left_id
        state['right_id'] = record.right_id
        return state

    @staticmethod
    def _import(row: dict[str, typing.Any]) -> LinkRecord:
        return LinkRecord(
            row['left_id'],
            row['right_id'],
            LinkAttributes(
                planned_quantity=row['planned_quantity'],
                consumed_quantity=row['consumed_quantity'],
                consumed_at=row['consumed_at'],
                location_id=row['location_id'],
                metadata=row['metadata'] or {},
            )
        )
