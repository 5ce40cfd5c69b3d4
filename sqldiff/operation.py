from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .enums import HTTPMethod
from .parameter import ArrayParameter, LeafParameter, ObjectParameter, Parameter


@dataclass(eq=False)
class Operation:
    """Represents a single API operation. Identity is (method, endpoint)."""
    method: HTTPMethod
    endpoint: str
    operation_id: Optional[str] = None
    header_parameters: List[Parameter] = field(default_factory=list)
    query_parameters: List[Parameter] = field(default_factory=list)
    path_parameters: List[Parameter] = field(default_factory=list)
    cookie_parameters: List[Parameter] = field(default_factory=list)
    request_body: Optional[Parameter] = None
    output_parameters: List[Parameter] = field(default_factory=list)
    description: Optional[str] = None
    tags: List[str] = field(default_factory=list)

    def __post_init__(self):
        if self.operation_id is None:
            self.operation_id = f"{self.method.value}_{self.endpoint.replace('/', '_')}"
        for param in self.all_request_parameters():
            param.attach(self)
        for param in self.output_parameters:
            param.attach(self, param.parent)

    def __eq__(self, other):
        if not isinstance(other, Operation):
            return NotImplemented
        return self.method == other.method and self.endpoint == other.endpoint

    def __hash__(self):
        return hash((self.method, self.endpoint))

    def __str__(self):
        return self.signature

    @property
    def signature(self) -> str:
        return f"{self.method.value} {self.endpoint}"

    def top_level_parameters(self) -> List[Parameter]:
        """Header, query, path and cookie parameters plus request body properties"""
        params = []
        params.extend(self.header_parameters)
        params.extend(self.query_parameters)
        params.extend(self.path_parameters)
        params.extend(self.cookie_parameters)
        if isinstance(self.request_body, ObjectParameter):
            params.extend(self.request_body.properties)
        elif self.request_body is not None:
            params.append(self.request_body)
        return params

    def all_request_parameters(self) -> List[Parameter]:
        params = []
        params.extend(self.header_parameters)
        params.extend(self.query_parameters)
        params.extend(self.path_parameters)
        params.extend(self.cookie_parameters)
        if self.request_body is not None:
            params.append(self.request_body)
        return params

    def leaves(self) -> List[LeafParameter]:
        """All request leaves, including array elements"""
        result = []
        for param in self.all_request_parameters():
            result.extend(param.leaves())
        return result

    def arrays(self) -> List[ArrayParameter]:
        """Request arrays that are not themselves elements of another array"""
        result = []
        for param in self.all_request_parameters():
            result.extend(a for a in param.arrays() if not a.is_array_element())
        return result

    def reference_leaves(self) -> List[LeafParameter]:
        """Input leaves that can consume values produced by other operations"""
        result = []
        for param in self.all_request_parameters():
            result.extend(_prototype_leaves(param))
        return result

    def fuzz_copy(self) -> "Operation":
        """Independent copy whose parameters can receive concrete values"""
        clone = Operation(
            method=self.method,
            endpoint=self.endpoint,
            operation_id=self.operation_id,
            description=self.description,
            tags=list(self.tags),
        )
        clone.header_parameters = [p.copy_for(clone) for p in self.header_parameters]
        clone.query_parameters = [p.copy_for(clone) for p in self.query_parameters]
        clone.path_parameters = [p.copy_for(clone) for p in self.path_parameters]
        clone.cookie_parameters = [p.copy_for(clone) for p in self.cookie_parameters]
        clone.request_body = self.request_body.copy_for(clone) if self.request_body else None
        clone.output_parameters = self.output_parameters
        return clone

    def request_values(self) -> Dict[str, Any]:
        """Concrete values grouped by location, used to build the HTTP request"""
        return {
            'path': {p.name: p.to_value() for p in self.path_parameters},
            'query': {p.name: p.to_value() for p in self.query_parameters},
            'header': {p.name: p.to_value() for p in self.header_parameters},
            'cookie': {p.name: p.to_value() for p in self.cookie_parameters},
            'body': self.request_body.to_value() if self.request_body is not None else None,
        }


def _prototype_leaves(param: Parameter) -> List[LeafParameter]:
    # Arrays contribute their reference element only, never concrete elements
    if isinstance(param, LeafParameter):
        return [param]
    if isinstance(param, ObjectParameter):
        result = []
        for prop in param.properties:
            result.extend(_prototype_leaves(prop))
        return result
    if isinstance(param, ArrayParameter) and param.reference_element is not None:
        return _prototype_leaves(param.reference_element)
    return []
