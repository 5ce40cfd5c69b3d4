import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

import networkx as nx

from .dependency import DependencyEdge
from .operation import Operation

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class OperationNode:
    """Graph vertex wrapping one operation, with its testing bookkeeping"""
    operation: Operation
    testing_attempts: int = 0
    tested: bool = False

    def __eq__(self, other):
        if not isinstance(other, OperationNode):
            return NotImplemented
        return self.operation == other.operation

    def __hash__(self):
        return hash(self.operation)

    @property
    def key(self) -> str:
        return self.operation.signature

    def increase_testing_attempts(self):
        self.testing_attempts += 1


class OperationDependencyGraph:
    """
    Multigraph of operations linked by shared parameter names.

    Edges point from the consuming operation (target) to the producing one
    (source), so the in-degree of a node counts its consumers and the
    out-degree counts the producers it depends on.
    """

    def __init__(self, operations: Iterable[Operation], export_path: Optional[str] = None):
        self.graph = nx.MultiDiGraph()
        # Full node objects live in a registry, networkx only holds signatures
        self.nodes: Dict[str, OperationNode] = {}
        self.dependencies: List[DependencyEdge] = []

        for operation in operations:
            self.add_operation(operation)
        self.extract_data_dependencies()

        if export_path:
            self.save_to_file(export_path)

    def add_operation(self, operation: Operation) -> OperationNode:
        key = operation.signature
        if key not in self.nodes:
            self.nodes[key] = OperationNode(operation)
            self.graph.add_node(key, method=operation.method.value, endpoint=operation.endpoint)
        return self.nodes[key]

    def extract_data_dependencies(self):
        """Add one edge target->source per normalized name shared by an output of source and an input of target"""
        nodes = list(self.nodes.values())
        for source in nodes:
            outputs = {p.normalized_name for p in source.operation.output_parameters}
            if not outputs:
                continue
            for target in nodes:
                if target is source:
                    continue
                inputs = {p.normalized_name for p in target.operation.reference_leaves()}
                for name in sorted(outputs & inputs):
                    self._add_dependency(DependencyEdge(source.operation, target.operation, name))

    def _add_dependency(self, dependency: DependencyEdge):
        target_key = dependency.target.signature
        source_key = dependency.source.signature
        if self.graph.has_edge(target_key, source_key, key=dependency.normalized_name):
            return
        self.dependencies.append(dependency)
        self.graph.add_edge(target_key, source_key, key=dependency.normalized_name,
                            dependency=dependency, **dependency.get_graph_summary())
        logger.debug("Dependency %s -> %s on '%s'", target_key, source_key, dependency.normalized_name)

    def node_for(self, operation: Operation) -> Optional[OperationNode]:
        return self.nodes.get(operation.signature)

    def contains(self, node: OperationNode) -> bool:
        return node.key in self.nodes

    def all_nodes(self) -> List[OperationNode]:
        return list(self.nodes.values())

    def in_degree(self, node: OperationNode) -> int:
        return self.graph.in_degree(node.key)

    def out_degree(self, node: OperationNode) -> int:
        return self.graph.out_degree(node.key)

    def successors(self, node: OperationNode) -> List[OperationNode]:
        """Distinct producers this node depends on"""
        return [self.nodes[key] for key in self.graph.successors(node.key)]

    def edges_between(self, target: OperationNode, source: OperationNode) -> List[DependencyEdge]:
        data = self.graph.get_edge_data(target.key, source.key) or {}
        return [attrs['dependency'] for attrs in data.values()]

    def find_best_dfs_start_node(self, candidates: List[OperationNode]) -> Optional[OperationNode]:
        """Candidate with the fewest consumers, ties broken by the most producers"""
        best = None
        best_in = best_out = 0
        for node in candidates:
            if not self.contains(node):
                continue
            in_deg = self.in_degree(node)
            out_deg = self.out_degree(node)
            if best is None or in_deg < best_in or (in_deg == best_in and out_deg > best_out):
                best, best_in, best_out = node, in_deg, out_deg
        return best

    def set_operation_as_tested(self, operation: Operation):
        node = self.node_for(operation)
        if node is not None:
            node.tested = True

    def increase_operation_testing_attempts(self, operation: Operation):
        node = self.node_for(operation)
        if node is not None:
            node.increase_testing_attempts()

    def save_to_file(self, output_path: str):
        """Write the diagnostic DOT export plus a JSON twin"""
        from .visualizer import GraphVisualizer

        visualizer = GraphVisualizer(self)
        visualizer.export_dot(output_path)
        base = output_path.rsplit('.', 1)[0] if output_path.endswith('.dot') else output_path
        visualizer.export_json(base + '.json')

    def __len__(self):
        return len(self.nodes)
