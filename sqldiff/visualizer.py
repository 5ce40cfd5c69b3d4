import json
import logging
import os

import pydot

from .enums import HTTPMethod
from .operation import Operation

logger = logging.getLogger(__name__)


class GraphVisualizer:
    """Diagnostic exports of the operation dependency graph"""

    def __init__(self, graph):
        self.graph = graph

    def export_dot(self, output_path: str):
        """Export graph to DOT format (Graphviz)"""
        _ensure_parent(output_path)
        dot_graph = pydot.Dot(graph_type='digraph', rankdir='TB')

        for key, node in self.graph.nodes.items():
            dot_graph.add_node(pydot.Node(
                _quote(key),
                label=_quote(key),
                shape='box',
                style='filled',
                fillcolor=self._get_node_color(node.operation),
            ))

        for dep in self.graph.dependencies:
            dot_graph.add_edge(pydot.Edge(
                _quote(dep.target.signature),
                _quote(dep.source.signature),
                label=_quote(dep.label),
            ))

        dot_graph.write_raw(output_path)
        logger.info("Exported DOT graph to %s", output_path)

    def export_json(self, output_path: str):
        """Export to JSON format"""
        _ensure_parent(output_path)
        graph_data = {
            'nodes': [],
            'edges': [],
            'metadata': {
                'num_operations': len(self.graph.nodes),
                'num_dependencies': len(self.graph.dependencies),
            },
        }

        for key, node in self.graph.nodes.items():
            graph_data['nodes'].append({
                'id': key,
                'method': node.operation.method.value,
                'endpoint': node.operation.endpoint,
                'in_degree': self.graph.in_degree(node),
                'out_degree': self.graph.out_degree(node),
                'testing_attempts': node.testing_attempts,
                'tested': node.tested,
            })

        for dep in self.graph.dependencies:
            graph_data['edges'].append({
                'source': dep.target.signature,
                'target': dep.source.signature,
                'parameter': dep.normalized_name,
                'satisfied': dep.satisfied,
            })

        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(graph_data, f, indent=2)

        logger.info("Exported JSON graph to %s", output_path)

    def _get_node_color(self, operation: Operation) -> str:
        """Get color for operation node based on HTTP method"""
        color_map = {
            HTTPMethod.GET: '#4CAF50',      # Green
            HTTPMethod.POST: '#2196F3',     # Blue
            HTTPMethod.PUT: '#FF9800',      # Orange
            HTTPMethod.PATCH: '#FF9800',    # Orange
            HTTPMethod.DELETE: '#F44336',   # Red
        }
        return color_map.get(operation.method, '#9E9E9E')


def _quote(text: str) -> str:
    # DOT ids with spaces, slashes or braces must be quoted
    return '"' + text.replace('"', '\\"') + '"'


def _ensure_parent(path: str):
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
