"""Translate one concrete API call into the equivalent shadow SQL statement"""
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Tuple

from .database import ShadowDatabase
from .enums import HTTPMethod, OperationType, ParameterLocation
from .exceptions import UnsafeOperationError
from .interaction import SqlInteraction
from .operation import Operation
from .parameter import ArrayParameter, Parameter
from .schema import ShadowSchema
from .where_clause import generate_where_clause

logger = logging.getLogger(__name__)


class RestStrategy(ABC):
    """Base class for the per-method SQL translation strategies"""

    def __init__(self, database: ShadowDatabase):
        self.database = database

    @abstractmethod
    def operation_to_sql(self, operation: Operation, schema: ShadowSchema) -> SqlInteraction:
        pass

    @staticmethod
    def where_candidates(operation: Operation) -> Dict[str, Any]:
        """Raw parameter name -> value for every non-element leaf and non-empty array"""
        candidates: Dict[str, Any] = {}
        for leaf in operation.leaves():
            if not leaf.is_array_element():
                candidates[leaf.name] = leaf.value
        for array in operation.arrays():
            if array.elements:
                candidates[array.name] = array.values()
        return {name: value for name, value in candidates.items() if value is not None}


class GetStrategy(RestStrategy):

    def operation_to_sql(self, operation, schema):
        where_values = self.where_candidates(operation)
        where_clause = generate_where_clause(where_values, operation, schema)
        if not where_clause:
            logger.warning("SELECT without conditions (full table scan) for %s", operation)

        sql = f"SELECT * FROM {schema.table_name}{where_clause};"
        return self.database.execute_select(sql, where_values)


class DeleteStrategy(RestStrategy):

    def operation_to_sql(self, operation, schema):
        where_values = self.where_candidates(operation)
        where_clause = generate_where_clause(where_values, operation, schema)
        sql = f"DELETE FROM {schema.table_name}{where_clause};"
        if not where_clause.startswith(' WHERE '):
            logger.warning("DELETE skipped, no conditions for %s", operation)
            raise UnsafeOperationError(f"DELETE without WHERE clause is not allowed for {operation}", sql)

        return self.database.execute_delete(sql, where_values)


class PostStrategy(RestStrategy):

    def operation_to_sql(self, operation, schema):
        column_values: Dict[str, Any] = {}
        for leaf in operation.leaves():
            if leaf.is_array_element() or leaf.value is None:
                continue
            column = schema.column_for_parameter(leaf)
            if column is not None:
                column_values[column] = leaf.value
        for array in operation.arrays():
            if not array.elements:
                continue
            column = schema.column_for_parameter(array)
            if column is not None:
                column_values[column] = json.dumps(array.values())

        if not column_values:
            logger.error("INSERT skipped, no resolvable columns for %s", operation)
            raise UnsafeOperationError(f"INSERT without columns is not allowed for {operation}")

        columns = ', '.join(column_values)
        placeholders = ', '.join('?' for _ in column_values)
        sql = f"INSERT INTO {schema.table_name} ({columns}) VALUES ({placeholders});"
        return self.database.execute_insert(sql, column_values, schema.table_name)


class PutStrategy(RestStrategy):
    """
    PATH parameters always filter and BODY parameters always set. QUERY
    parameters set when the request has no body and filter otherwise.
    """

    def operation_to_sql(self, operation, schema):
        set_values, where_values = self.partition(operation, schema)

        if not set_values:
            logger.warning("UPDATE skipped, SET clause empty for %s", operation)
            return SqlInteraction.failed(OperationType.UPDATE, '',
                                         "UPDATE skipped: no columns to update (SET clause empty)")

        where_values = {name: value for name, value in where_values.items() if value is not None}
        if not where_values:
            logger.warning("UPDATE skipped, WHERE clause empty for %s", operation)
            return SqlInteraction.failed(OperationType.UPDATE, '',
                                         "UPDATE skipped: no conditions specified (WHERE clause empty)")

        where_clause = generate_where_clause(where_values, operation, schema)
        assignments = ', '.join(f"{column} = ?" for column in set_values)
        sql = f"UPDATE {schema.table_name} SET {assignments}{where_clause};"
        if not where_clause.startswith(' WHERE '):
            raise UnsafeOperationError(f"UPDATE without WHERE clause is not allowed for {operation}", sql)

        return self.database.execute_update(sql, set_values, where_values)

    @staticmethod
    def partition(operation: Operation, schema: ShadowSchema) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        """Split the parameters actually sent into SET columns and WHERE filters"""
        units: List[Tuple[Parameter, Any, Any]] = []
        for leaf in operation.leaves():
            if not leaf.is_array_element() and leaf.value is not None:
                units.append((leaf, leaf.value, leaf.value))
        for array in operation.arrays():
            if array.elements:
                values = array.values()
                units.append((array, json.dumps(values), values))

        has_body = any(param.location == ParameterLocation.BODY for param, _, _ in units)

        set_values: Dict[str, Any] = {}
        where_values: Dict[str, Any] = {}
        for param, set_value, where_value in units:
            column = schema.column_for_parameter(param)
            if param.location == ParameterLocation.PATH:
                where_values[param.name] = where_value
            elif param.location == ParameterLocation.BODY or (
                    param.location == ParameterLocation.QUERY and not has_body):
                if column is not None:
                    set_values[column] = set_value
            elif param.location == ParameterLocation.QUERY:
                where_values[param.name] = where_value
        return set_values, where_values


_STRATEGIES = {
    HTTPMethod.GET: GetStrategy,
    HTTPMethod.POST: PostStrategy,
    HTTPMethod.PUT: PutStrategy,
    HTTPMethod.PATCH: PutStrategy,
    HTTPMethod.DELETE: DeleteStrategy,
}


def get_strategy(method: HTTPMethod, database: ShadowDatabase) -> RestStrategy:
    strategy_class = _STRATEGIES.get(method)
    if strategy_class is None:
        raise ValueError(f"No SQL strategy for {method.value}")
    return strategy_class(database)


def translate(operation: Operation, schema: ShadowSchema, database: ShadowDatabase) -> SqlInteraction:
    """Outcome record of the shadow statement equivalent to ``operation``"""
    return get_strategy(operation.method, database).operation_to_sql(operation, schema)
