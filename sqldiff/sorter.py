import logging
import random
from collections import deque
from typing import Callable, Deque, Dict, Iterable, List, Optional, Protocol

from .core import OperationDependencyGraph, OperationNode
from .enums import HTTPMethod
from .exceptions import NoSeedOperationError
from .operation import Operation

logger = logging.getLogger(__name__)

MAX_DEPTH = 20
CLEANUP_DELETES = 3


class OperationsSorter(Protocol):
    """Ordered queue of operations to test, drained by a single consumer"""

    @property
    def queue(self) -> Deque[Operation]: ...

    def is_empty(self) -> bool: ...

    def get_first(self) -> Operation: ...

    def remove_first(self) -> Operation: ...


class StaticOperationsSorter:
    """Queue computed once up front"""

    def __init__(self, operations: Iterable[Operation] = (), graph: Optional[OperationDependencyGraph] = None):
        self.queue: Deque[Operation] = deque(operations)
        self.graph = graph

    def is_empty(self) -> bool:
        return not self.queue

    def get_first(self) -> Operation:
        return self.queue[0]

    def remove_first(self) -> Operation:
        operation = self.queue.popleft()
        if self.graph is not None:
            self.graph.increase_operation_testing_attempts(operation)
        return operation

    def __len__(self):
        return len(self.queue)


class DynamicOperationsSorter:
    """Queue recomputed by ``refresh`` before every read"""

    def __init__(self, refresh: Callable[[Deque[Operation]], None],
                 graph: Optional[OperationDependencyGraph] = None):
        self.queue: Deque[Operation] = deque()
        self.graph = graph
        self._refresh = refresh

    def refresh(self):
        self._refresh(self.queue)

    def is_empty(self) -> bool:
        self.refresh()
        return not self.queue

    def get_first(self) -> Operation:
        self.refresh()
        return self.queue[0]

    def remove_first(self) -> Operation:
        operation = self.queue.popleft()
        if self.graph is not None:
            self.graph.increase_operation_testing_attempts(operation)
        return operation


class RandomOperationsSorter(StaticOperationsSorter):
    """Every operation once, in random order"""

    def __init__(self, operations: Iterable[Operation], graph: Optional[OperationDependencyGraph] = None,
                 rng: Optional[random.Random] = None):
        operations = list(operations)
        (rng or random.Random()).shuffle(operations)
        super().__init__(operations, graph)


class DiffBasedGraphSorter(StaticOperationsSorter):
    """
    One test sequence from the dependency graph.

    Depth-first from the best creation operation, preferring producers with
    more dependencies of their own, then a few deletions appended to clean up
    what the sequence created.
    """

    def __init__(self, graph: OperationDependencyGraph, rng: Optional[random.Random] = None,
                 max_depth: int = MAX_DEPTH, cleanup_deletes: int = CLEANUP_DELETES):
        super().__init__((), graph)
        self.random = rng or random.Random()
        self.max_depth = max_depth
        self.cleanup_deletes = cleanup_deletes
        self._maximum_attempts = 10

        self.post_to_delete_map: Dict[Operation, Operation] = {}
        self.post_nodes: List[OperationNode] = []
        self.delete_nodes: List[OperationNode] = []

        self.compute_post_to_delete_map()
        self.compute_all_post()
        self.compute_all_delete()
        self.compute_test_sequence()

    @property
    def maximum_attempts(self) -> int:
        return self._maximum_attempts

    @maximum_attempts.setter
    def maximum_attempts(self, value: int):
        if value < 1:
            raise ValueError("The number of maximum attempts must be greater or equal to 1.")
        self._maximum_attempts = value

    def all_nodes(self) -> List[OperationNode]:
        return self.graph.all_nodes()

    def _nodes_with(self, method: HTTPMethod) -> List[OperationNode]:
        return [node for node in self.graph.all_nodes() if node.operation.method == method]

    def compute_post_to_delete_map(self):
        """Pair each creation with a deletion on the same or an enclosing/enclosed endpoint; last match wins"""
        deletes = self._nodes_with(HTTPMethod.DELETE)
        for post in self._nodes_with(HTTPMethod.POST):
            post_endpoint = post.operation.endpoint
            for delete in deletes:
                delete_endpoint = delete.operation.endpoint
                if post_endpoint == delete_endpoint or post_endpoint in delete_endpoint \
                        or delete_endpoint in post_endpoint:
                    self.post_to_delete_map[post.operation] = delete.operation

    def compute_all_post(self):
        self.post_nodes = self._nodes_with(HTTPMethod.POST)
        self.random.shuffle(self.post_nodes)

    def compute_all_delete(self):
        self.delete_nodes = self._nodes_with(HTTPMethod.DELETE)
        self.random.shuffle(self.delete_nodes)

    def compute_test_sequence(self):
        self.queue.clear()

        start = self.graph.find_best_dfs_start_node(self.post_nodes)
        if start is None:
            raise NoSeedOperationError("No POST operation found in the operation dependency graph.")

        visited = set()
        stack = [start]
        while stack:
            node = stack.pop()
            if node in visited:
                continue
            visited.add(node)
            self.queue.append(node.operation)
            if len(self.queue) >= self.max_depth:
                break

            neighbors = [n for n in self.graph.successors(node) if n not in visited]
            # Pushed ascending, so the neighbor with the highest out-degree pops next
            neighbors.sort(key=self.graph.out_degree)
            stack.extend(neighbors)

        self.queue.extend(self._cleanup_operations())
        logger.debug("Sequence of %d operation(s) seeded by %s", len(self.queue), start.key)

    def _cleanup_operations(self) -> List[Operation]:
        to_add: List[Operation] = []
        for operation in self.queue:
            if len(to_add) >= self.cleanup_deletes:
                break
            if operation.method == HTTPMethod.POST and operation in self.post_to_delete_map:
                to_add.append(self.post_to_delete_map[operation])

        fillers = [n.operation for n in self.delete_nodes if n.operation not in to_add]
        while len(to_add) < self.cleanup_deletes and fillers:
            to_add.append(fillers.pop(self.random.randrange(len(fillers))))
        return to_add
