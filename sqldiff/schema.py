import logging
from typing import Dict, Iterable, List, Optional

from .cluster import ParameterCluster, sanitize_column_name
from .clustering import ClusteringEngine, bucket_key
from .enums import ParameterType
from .exceptions import ShadowDatabaseError
from .operation import Operation
from .parameter import ArrayParameter, ObjectParameter, Parameter

logger = logging.getLogger(__name__)

TABLE_PREFIX = 'api_test_data_'

SQL_TYPES = {
    ParameterType.INTEGER: 'INT',
    ParameterType.NUMBER: 'DECIMAL(10,4)',
    ParameterType.BOOLEAN: 'TINYINT(1) DEFAULT 0',
    ParameterType.STRING: 'VARCHAR(100)',
    ParameterType.OBJECT: 'JSON',
    ParameterType.ARRAY: 'JSON',
}


class ShadowSchema:
    """
    Relational shadow of an API: one table, one column per parameter cluster.

    Built from a set of operations (the whole graph or one test sequence):
    parameters are flattened, clustered, given canonical column names, and every
    (method, endpoint, parameter name) is mapped to its column.
    """

    def __init__(self, operations: Iterable[Operation], api_name: str,
                 engine: Optional[ClusteringEngine] = None):
        self.api_name = api_name
        self.table_name = TABLE_PREFIX + sanitize_column_name(api_name)
        self.engine = engine or ClusteringEngine()

        self.operations: List[Operation] = _unique(operations)
        self.table_parameters: List[Parameter] = []
        self.clusters: List[ParameterCluster] = []
        self.column_map: Dict[str, str] = {}
        self.column_types: Dict[str, str] = {}
        # canonical column -> raw control parameter name (limit, sort...)
        self.control_columns: Dict[str, str] = {}

        self._derive()

    @classmethod
    def from_graph(cls, graph, api_name: str, **kwargs) -> "ShadowSchema":
        return cls([node.operation for node in graph.all_nodes()], api_name, **kwargs)

    @classmethod
    def from_sequence(cls, operations: Iterable[Operation], api_name: str, **kwargs) -> "ShadowSchema":
        return cls(operations, api_name, **kwargs)

    def _derive(self):
        for operation in self.operations:
            for param in operation.top_level_parameters():
                if param.type == ParameterType.OBJECT:
                    self.table_parameters.extend(flatten(param))
                elif param.type == ParameterType.ARRAY:
                    flatten(param)
                    self.table_parameters.append(param)
                else:
                    self.table_parameters.append(param)

        # Fixed processing order keeps canonical names stable across derivations
        self.table_parameters.sort(key=_processing_key)
        self.clusters = self.engine.perform_clustering(self.table_parameters)

        # "id" is the surrogate primary key
        used_names = {"id"}
        for cluster in self.clusters:
            column = cluster.compute_canonical_name(used_names, self.control_columns)
            self.column_types[column] = SQL_TYPES.get(cluster.cluster_type, 'VARCHAR(100)')
            for param in cluster.parameters:
                self.column_map[schema_map_key(param.operation, param.name)] = column

        logger.info("Shadow schema %s: %d parameter(s) in %d column(s)",
                    self.table_name, len(self.table_parameters), len(self.clusters))

    @property
    def columns(self) -> List[str]:
        return [cluster.canonical_name for cluster in self.clusters]

    def column_for_parameter(self, param: Parameter) -> Optional[str]:
        if param.operation is None:
            return None
        return self.column_map.get(schema_map_key(param.operation, param.name))

    def column_for_name(self, name: str, operation: Operation) -> Optional[str]:
        return self.column_map.get(schema_map_key(operation, name))

    def column_type(self, column: str) -> Optional[str]:
        return self.column_types.get(column)

    def is_json_column(self, column: str) -> bool:
        return self.column_types.get(column) == 'JSON'

    def create_table_sql(self, dialect: str = 'mysql') -> str:
        if dialect == 'sqlite':
            lines = ['    id INTEGER PRIMARY KEY AUTOINCREMENT']
            suffix = '\n)'
        else:
            lines = ['    id INT PRIMARY KEY AUTO_INCREMENT']
            suffix = '\n) ENGINE=InnoDB ROW_FORMAT=DYNAMIC'
        for cluster in self.clusters:
            lines.append(f"    {cluster.canonical_name} {self.column_types[cluster.canonical_name]}")
        return f"CREATE TABLE IF NOT EXISTS {self.table_name} (\n" + ',\n'.join(lines) + suffix

    def drop_table_sql(self) -> str:
        return f"DROP TABLE IF EXISTS {self.table_name}"

    def create_table(self, database):
        try:
            database.execute_ddl(self.create_table_sql(database.dialect_name))
        except ShadowDatabaseError:
            logger.error("Failed to create table %s", self.table_name)
            raise

    def drop_table(self, database):
        try:
            database.execute_ddl(self.drop_table_sql())
        except ShadowDatabaseError:
            logger.error("Failed to drop table %s", self.table_name)
            raise


def schema_map_key(operation: Operation, name: str) -> str:
    return f"{operation.method.value} {operation.endpoint} # {name}"


def flatten(root: Parameter) -> List[Parameter]:
    """
    Assign table paths below ``root`` and return the units to persist.

    Object leaves get the underscore-joined path of their ancestors. Arrays are
    kept whole: the array gets ``<path>_arr`` and anything beneath it is anchored
    at that suffix but not returned.
    """
    collected: List[Parameter] = []
    _extract(root, collected, '', False)
    return collected


def _extract(param: Parameter, collected: List[Parameter], parent_path: str, under_array: bool):
    name = param.name or ''
    if not parent_path:
        path = name
    elif isinstance(param.parent, ArrayParameter):
        path = parent_path + '_arr'
    else:
        path = parent_path + '_' + name

    if isinstance(param, ObjectParameter):
        for prop in param.properties:
            _extract(prop, collected, path, under_array)
    elif isinstance(param, ArrayParameter):
        param.table_path = path + '_arr'
        if not under_array:
            collected.append(param)
        if param.reference_element is not None:
            _extract(param.reference_element, collected, path, True)
    else:
        param.table_path = path
        if not under_array:
            collected.append(param)


def _processing_key(param: Parameter):
    operation = param.operation
    return (
        bucket_key(param),
        operation.endpoint if operation else '',
        operation.method.value if operation else '',
        param.location.value,
        param.table_path or '',
        param.name,
    )


def _unique(operations: Iterable[Operation]) -> List[Operation]:
    seen = set()
    result = []
    for operation in operations:
        if operation.signature not in seen:
            seen.add(operation.signature)
            result.append(operation)
    return result
