import logging
import time
from collections import defaultdict
from typing import Any, Dict, List

from .operation import Operation

logger = logging.getLogger(__name__)


class ResponseDictionary:
    """
    Values observed in successful responses, keyed by normalized parameter name.

    Feeds producer outputs back into later requests and marks the matching
    dependency edges of the graph as satisfied.
    """

    def __init__(self, graph=None, max_values_per_name: int = 50):
        self.graph = graph
        self.max_values_per_name = max_values_per_name
        self.values: Dict[str, List[Any]] = defaultdict(list)
        self.execution_history: List[Dict[str, Any]] = []

    def record_execution(self, operation: Operation, success: bool, response: Any):
        """Record one call; successful responses contribute their values"""
        self.execution_history.append({
            'operation': operation.signature,
            'success': success,
            'timestamp': time.time(),
        })
        if not success or response is None:
            return

        found = self._extract_values(operation, response)
        for normalized_name, value in found.items():
            bucket = self.values[normalized_name]
            if value not in bucket:
                bucket.append(value)
                if len(bucket) > self.max_values_per_name:
                    bucket.pop(0)

        if found and self.graph is not None:
            self._mark_satisfied(operation, set(found))

    def values_for(self, normalized_name: str) -> List[Any]:
        return list(self.values.get(normalized_name, []))

    def count_available_values_for(self, normalized_name: str) -> int:
        return len(self.values.get(normalized_name, []))

    def _extract_values(self, operation: Operation, response: Any) -> Dict[str, Any]:
        names: Dict[str, str] = {}
        for param in operation.output_parameters:
            names[param.name] = param.normalized_name
        found: Dict[str, Any] = {}

        def extract_recursive(obj):
            if isinstance(obj, dict):
                for key, value in obj.items():
                    if isinstance(value, (dict, list)):
                        extract_recursive(value)
                    elif value is not None and key in names:
                        found[names[key]] = value
            elif isinstance(obj, list) and obj:
                extract_recursive(obj[0])

        extract_recursive(response)
        return found

    def _mark_satisfied(self, producer: Operation, normalized_names):
        for dep in self.graph.dependencies:
            if dep.source == producer and dep.normalized_name in normalized_names and not dep.satisfied:
                dep.satisfied = True
                self.graph.graph.edges[dep.target.signature, dep.source.signature,
                                       dep.normalized_name]['satisfied'] = True
                logger.debug("Dependency %s -> %s on '%s' satisfied",
                             dep.target, dep.source, dep.normalized_name)

