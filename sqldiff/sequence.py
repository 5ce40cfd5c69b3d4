from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from .operation import Operation


@dataclass(frozen=True)
class HttpStatusCode:
    code: int

    def is_successful(self) -> bool:
        return 200 <= self.code < 300

    def is_redirection(self) -> bool:
        return 300 <= self.code < 400

    def is_client_error(self) -> bool:
        return 400 <= self.code < 500

    def is_server_error(self) -> bool:
        return 500 <= self.code < 600

    def __str__(self):
        return str(self.code)


@dataclass(eq=False)
class TestInteraction:
    """One HTTP call: the fuzzed operation, its response and free-form tags"""
    fuzzed_operation: Operation
    response_status_code: Optional[HttpStatusCode] = None
    response_body: Optional[str] = None
    executed: bool = False
    tags: Dict[str, Any] = field(default_factory=dict)

    __test__ = False

    def add_tag(self, name: str, value: Any):
        self.tags[name] = value

    def get_tag(self, name: str) -> Any:
        return self.tags.get(name)

    def set_response(self, status_code: int, body: Optional[str] = None):
        self.response_status_code = HttpStatusCode(status_code)
        self.response_body = body
        self.executed = True


@dataclass(eq=False)
class TestSequence:
    interactions: List[TestInteraction] = field(default_factory=list)
    # oracle name -> TestResult
    test_results: Dict[str, Any] = field(default_factory=dict)

    __test__ = False

    def __iter__(self) -> Iterator[TestInteraction]:
        return iter(self.interactions)

    def __len__(self):
        return len(self.interactions)

    @property
    def first(self) -> TestInteraction:
        return self.interactions[0]

    def append(self, interaction: TestInteraction):
        self.interactions.append(interaction)

    def is_executed(self) -> bool:
        return bool(self.interactions) and all(i.executed for i in self.interactions)

    def add_test_result(self, oracle_name: str, result):
        self.test_results[oracle_name] = result
