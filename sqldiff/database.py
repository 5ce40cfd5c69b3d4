import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .enums import InteractionStatus, OperationType
from .exceptions import ShadowDatabaseError
from .interaction import SqlInteraction

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = 'sqlite://'


class ShadowDatabase:
    """
    Pooled access to the shadow database.

    Every statement borrows one connection and runs in its own transaction:
    there is no cross-statement atomicity, just like the REST calls it mirrors.
    DML failures become FAILED outcome records; DDL failures raise.
    """

    def __init__(self, url: str = DEFAULT_DATABASE_URL, engine: Optional[Engine] = None, **engine_kwargs):
        self.url = url
        self.engine = engine or create_engine(url, **engine_kwargs)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def close(self):
        self.engine.dispose()

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    @property
    def paramstyle(self) -> str:
        return self.engine.dialect.paramstyle

    def execute_ddl(self, sql: str) -> int:
        try:
            with self.engine.begin() as conn:
                result = conn.exec_driver_sql(*self._prepare(sql, ()))
                return max(result.rowcount, 0)
        except SQLAlchemyError as e:
            raise ShadowDatabaseError(f"Failed to execute SQL: {sql}: {e}") from e

    def execute_insert(self, sql: str, column_values: Dict[str, Any], table_name: str) -> SqlInteraction:
        interaction = SqlInteraction(
            operation_type=OperationType.CREATE,
            executed_sql=sql,
            column_values=column_values,
        )
        try:
            with self.engine.begin() as conn:
                result = conn.exec_driver_sql(*self._prepare(sql, list(column_values.values())))
                interaction.rows_affected = result.rowcount
                new_id = result.lastrowid
                if new_id:
                    select_sql = f"SELECT * FROM {table_name} WHERE id = ?"
                    rows = conn.exec_driver_sql(*self._prepare(select_sql, [new_id]))
                    interaction.query_results = [dict(row) for row in rows.mappings()]
                    interaction.status = InteractionStatus.SUCCESS
                else:
                    interaction.status = InteractionStatus.FAILED
                    interaction.error_message = "No generated key returned"
        except SQLAlchemyError as e:
            self._record_failure(interaction, e)
        return interaction

    def execute_update(self, sql: str, set_values: Dict[str, Any],
                       where_values: Dict[str, Any]) -> SqlInteraction:
        interaction = SqlInteraction(
            operation_type=OperationType.UPDATE,
            executed_sql=sql,
            set_values=set_values,
            where_values=where_values,
        )
        params = list(set_values.values()) + list(where_values.values())
        return self._execute_write(interaction, sql, params)

    def execute_delete(self, sql: str, where_values: Dict[str, Any]) -> SqlInteraction:
        interaction = SqlInteraction(
            operation_type=OperationType.DELETE,
            executed_sql=sql,
            where_values=where_values,
        )
        return self._execute_write(interaction, sql, list(where_values.values()))

    def execute_select(self, sql: str, where_values: Dict[str, Any]) -> SqlInteraction:
        interaction = SqlInteraction(
            operation_type=OperationType.GET,
            executed_sql=sql,
            where_values=where_values,
        )
        try:
            with self.engine.begin() as conn:
                result = conn.exec_driver_sql(*self._prepare(sql, list(where_values.values())))
                interaction.query_results = [dict(row) for row in result.mappings()]
                interaction.rows_affected = len(interaction.query_results)
                interaction.status = InteractionStatus.SUCCESS
        except SQLAlchemyError as e:
            self._record_failure(interaction, e)
        return interaction

    def _execute_write(self, interaction: SqlInteraction, sql: str, params: List[Any]) -> SqlInteraction:
        try:
            with self.engine.begin() as conn:
                result = conn.exec_driver_sql(*self._prepare(sql, params))
                interaction.rows_affected = result.rowcount
            if interaction.rows_affected > 0:
                interaction.status = InteractionStatus.SUCCESS
            else:
                interaction.status = InteractionStatus.FAILED
                interaction.error_message = "No rows affected"
        except SQLAlchemyError as e:
            self._record_failure(interaction, e)
        return interaction

    def _record_failure(self, interaction: SqlInteraction, error: SQLAlchemyError):
        interaction.status = InteractionStatus.FAILED
        interaction.error_message = str(getattr(error, 'orig', None) or error)
        interaction.exception = error
        logger.debug("Shadow %s failed: %s", interaction.operation_type, interaction.error_message)

    def _prepare(self, sql: str, params: Sequence[Any]) -> Tuple[str, Any]:
        return convert_placeholders(sql, params, self.paramstyle)


def convert_placeholders(sql: str, params: Sequence[Any], paramstyle: str) -> Tuple[str, Any]:
    """
    Rewrite ``?`` placeholders (outside quoted literals) for the driver's paramstyle.
    Returns the statement and the parameters in the shape the driver expects.
    """
    params = tuple(params)
    if paramstyle == 'qmark':
        return sql, params

    out = []
    in_quote = False
    index = 0
    for ch in sql:
        if ch == "'":
            in_quote = not in_quote
            out.append(ch)
        elif ch == '?' and not in_quote:
            index += 1
            if paramstyle in ('format', 'pyformat'):
                out.append('%s')
            elif paramstyle == 'numeric':
                out.append(f':{index}')
            else:
                out.append(f':p{index}')
        elif ch == '%' and paramstyle in ('format', 'pyformat'):
            out.append('%%')
        else:
            out.append(ch)

    converted = ''.join(out)
    if paramstyle == 'named':
        return converted, {f'p{i + 1}': value for i, value in enumerate(params)}
    return converted, params
