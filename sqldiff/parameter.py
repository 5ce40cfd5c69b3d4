import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from .enums import ParameterLocation, ParameterType

if TYPE_CHECKING:
    from .operation import Operation


@dataclass(eq=False)
class Parameter:
    """Represents an API parameter (leaf, object or array)"""
    name: str
    location: ParameterLocation
    type: ParameterType = ParameterType.UNKNOWN
    normalized_name: Optional[str] = None
    required: bool = False
    description: Optional[str] = None
    format: Optional[str] = None
    style: Optional[str] = None
    enum_values: List[Any] = field(default_factory=list)
    default: Optional[Any] = None
    examples: List[Any] = field(default_factory=list)
    value: Optional[Any] = None
    operation: Optional["Operation"] = field(default=None, repr=False)
    parent: Optional["Parameter"] = field(default=None, repr=False)
    # Synthetic column path assigned while flattening for the shadow table
    table_path: Optional[str] = None

    def __post_init__(self):
        if self.normalized_name is None:
            self.normalized_name = self.name

    def __hash__(self):
        return id(self)

    def is_array_element(self) -> bool:
        """True when any ancestor of this parameter is an array"""
        ancestor = self.parent
        while ancestor is not None:
            if isinstance(ancestor, ArrayParameter):
                return True
            ancestor = ancestor.parent
        return False

    def leaves(self) -> List["LeafParameter"]:
        return []

    def arrays(self) -> List["ArrayParameter"]:
        return []

    def to_value(self) -> Any:
        return self.value

    def attach(self, operation: "Operation", parent: Optional["Parameter"] = None):
        """Set the owning operation and parent links on this subtree"""
        self.operation = operation
        self.parent = parent

    def copy_for(self, operation: "Operation", parent: Optional["Parameter"] = None) -> "Parameter":
        """Deep copy of this subtree re-linked to another operation"""
        clone = copy.copy(self)
        clone.enum_values = list(self.enum_values)
        clone.examples = list(self.examples)
        clone.operation = operation
        clone.parent = parent
        return clone


@dataclass(eq=False)
class LeafParameter(Parameter):

    def leaves(self) -> List["LeafParameter"]:
        return [self]


@dataclass(eq=False)
class ObjectParameter(Parameter):
    properties: List[Parameter] = field(default_factory=list)

    def __post_init__(self):
        super().__post_init__()
        self.type = ParameterType.OBJECT
        for prop in self.properties:
            prop.parent = self

    def leaves(self) -> List[LeafParameter]:
        result = []
        for prop in self.properties:
            result.extend(prop.leaves())
        return result

    def arrays(self) -> List["ArrayParameter"]:
        result = []
        for prop in self.properties:
            result.extend(prop.arrays())
        return result

    def to_value(self) -> Dict[str, Any]:
        return {prop.name: prop.to_value() for prop in self.properties}

    def attach(self, operation, parent=None):
        super().attach(operation, parent)
        for prop in self.properties:
            prop.attach(operation, self)

    def copy_for(self, operation, parent=None):
        clone = super().copy_for(operation, parent)
        clone.properties = [prop.copy_for(operation, clone) for prop in self.properties]
        return clone


@dataclass(eq=False)
class ArrayParameter(Parameter):
    # Prototype describing every element; concrete values live in ``elements``
    reference_element: Optional[Parameter] = None
    elements: List[Parameter] = field(default_factory=list)

    def __post_init__(self):
        super().__post_init__()
        self.type = ParameterType.ARRAY
        if self.reference_element is not None:
            self.reference_element.parent = self
        for element in self.elements:
            element.parent = self

    @property
    def element_type(self) -> ParameterType:
        if self.reference_element is None:
            return ParameterType.UNKNOWN
        return self.reference_element.type

    def leaves(self) -> List[LeafParameter]:
        result = []
        if self.reference_element is not None:
            result.extend(self.reference_element.leaves())
        for element in self.elements:
            result.extend(element.leaves())
        return result

    def arrays(self) -> List["ArrayParameter"]:
        result = [self]
        for element in self.elements:
            result.extend(element.arrays())
        return result

    def values(self) -> List[Any]:
        """Values of every concrete element (objects become dicts, arrays lists)"""
        return [element.to_value() for element in self.elements]

    def to_value(self) -> List[Any]:
        return self.values()

    def new_element(self) -> Parameter:
        """Fresh element built from the reference prototype and appended"""
        if self.reference_element is None:
            raise ValueError(f"Array parameter '{self.name}' has no reference element")
        element = self.reference_element.copy_for(self.operation, self)
        self.elements.append(element)
        return element

    def attach(self, operation, parent=None):
        super().attach(operation, parent)
        if self.reference_element is not None:
            self.reference_element.attach(operation, self)
        for element in self.elements:
            element.attach(operation, self)

    def copy_for(self, operation, parent=None):
        clone = super().copy_for(operation, parent)
        if self.reference_element is not None:
            clone.reference_element = self.reference_element.copy_for(operation, clone)
        clone.elements = [element.copy_for(operation, clone) for element in self.elements]
        return clone
