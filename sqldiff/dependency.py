from dataclasses import dataclass
from typing import Any, Dict

from .operation import Operation


@dataclass(slots=True)
class DependencyEdge:
    """
    Data dependency between two operations.
    ``source`` produces an output whose normalized name matches an input of
    ``target``. One edge exists per shared normalized name.
    """
    source: Operation
    target: Operation
    normalized_name: str
    satisfied: bool = False

    @property
    def label(self) -> str:
        return self.normalized_name

    def get_graph_summary(self) -> Dict[str, Any]:
        """Lightweight attributes stored on the networkx edge"""
        return {
            "parameter": self.normalized_name,
            "satisfied": self.satisfied,
        }
