import logging
import re
import uuid
from typing import Dict, List, Optional, Set

from .control import is_control_parameter
from .enums import ParameterLocation, ParameterType
from .keywords import is_reserved
from .matcher import extract_path_resource_context
from .parameter import Parameter

logger = logging.getLogger(__name__)


class ParameterCluster:
    """A set of parameters judged to be the same field, persisted as one column"""

    def __init__(self, parameters: Optional[List[Parameter]] = None):
        self.parameters: List[Parameter] = []
        self._type: Optional[ParameterType] = None
        self.canonical_name: Optional[str] = None
        for param in parameters or []:
            self.add_parameter(param)

    def add_parameter(self, param: Parameter):
        self.parameters.append(param)
        # First concrete type wins
        if self._type is None and param.type != ParameterType.UNKNOWN:
            self._type = param.type

    @property
    def cluster_type(self) -> ParameterType:
        return self._type or ParameterType.STRING

    @property
    def representative(self) -> Optional[Parameter]:
        """The parameter literally named ``id`` if any, else the first one"""
        for param in self.parameters:
            if param.name == 'id':
                return param
        return self.parameters[0] if self.parameters else None

    def is_path_parameter(self) -> bool:
        return any(p.location == ParameterLocation.PATH for p in self.parameters)

    def is_object_value(self) -> bool:
        """Every member is nested under an object (or array) and carries a table path"""
        return all(p.table_path for p in self.parameters)

    def compute_canonical_name(self, used_names: Set[str], control_columns: Dict[str, str]) -> str:
        """
        Derive a unique, non-reserved column name.
        ``used_names`` is shared across all clusters of a schema and is updated
        with the chosen name; ``control_columns`` collects columns whose
        representative is a control parameter (limit, sort...).
        """
        if self.canonical_name is not None:
            return self.canonical_name

        param = self.representative
        context = _resource_context(param)

        if self.cluster_type == ParameterType.ARRAY:
            base = param.table_path or param.name
        elif self.is_path_parameter():
            base = f"{context}_{param.name}"
        elif self.is_object_value():
            base = param.table_path
        else:
            base = param.normalized_name or param.name

        self.canonical_name = self._resolve_collision(sanitize_column_name(base), used_names, context)
        used_names.add(self.canonical_name)

        if is_control_parameter(param.name):
            control_columns[self.canonical_name] = param.name

        logger.debug("Cluster of %d parameter(s) -> column '%s'", len(self.parameters), self.canonical_name)
        return self.canonical_name

    def _resolve_collision(self, candidate: str, used_names: Set[str], context: str) -> str:
        if _is_free(candidate, used_names):
            return candidate

        current = candidate
        if not self.is_path_parameter():
            current = sanitize_column_name(f"{context}_{candidate}")
            if _is_free(current, used_names):
                return current

        counter = 2
        while not _is_free(f"{current}_{counter}", used_names):
            counter += 1
        return f"{current}_{counter}"

    def __len__(self):
        return len(self.parameters)

    def __repr__(self):
        names = ', '.join(p.name for p in self.parameters)
        return f"ParameterCluster({self.canonical_name or '?'}: {names})"


def sanitize_column_name(raw: Optional[str]) -> str:
    if not raw:
        return 'unknown_column'
    s = re.sub(r'[^a-z0-9]', '_', raw.lower())
    s = re.sub(r'_+', '_', s).strip('_')
    if not s:
        return 'param_' + uuid.uuid4().hex
    return s


def _is_free(name: str, used_names: Set[str]) -> bool:
    return name not in used_names and not is_reserved(name)


def _resource_context(param: Parameter) -> str:
    endpoint = param.operation.endpoint if param.operation is not None else ''
    return extract_path_resource_context(endpoint, param)
