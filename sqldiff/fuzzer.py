import datetime
import logging
import random
import string
import uuid
from typing import Any, List, Optional

from .dictionary import ResponseDictionary
from .enums import ParameterLocation, ParameterType
from .operation import Operation
from .parameter import ArrayParameter, ObjectParameter, Parameter
from .sequence import TestInteraction, TestSequence

logger = logging.getLogger(__name__)


class ExampleValueProvider:
    """
    Concrete values for request parameters.
    Preference order: a value seen in an earlier response, a declared example,
    the default, an enum member, then a random value of the declared type.
    """

    def __init__(self, rng: Optional[random.Random] = None, dictionary: Optional[ResponseDictionary] = None,
                 optional_probability: float = 0.5):
        self.random = rng or random.Random()
        self.dictionary = dictionary
        self.optional_probability = optional_probability

    def fill(self, operation: Operation) -> Operation:
        """Assign values in place to every parameter of a fuzzed copy"""
        for param in operation.all_request_parameters():
            self._fill(param, top_level=True)
        return operation

    def _fill(self, param: Parameter, top_level: bool = False):
        if self._skip_optional(param, top_level):
            param.value = None
            return
        if isinstance(param, ObjectParameter):
            for prop in param.properties:
                self._fill(prop)
        elif isinstance(param, ArrayParameter):
            param.elements = []
            if param.reference_element is None:
                return
            for _ in range(self.random.randint(1, 3)):
                self._fill(param.new_element())
        else:
            param.value = self.value_for(param)

    def _skip_optional(self, param: Parameter, top_level: bool) -> bool:
        if param.required or param.location in (ParameterLocation.PATH, ParameterLocation.BODY):
            return False
        if not top_level:
            return False
        return self.random.random() < self.optional_probability

    def value_for(self, param: Parameter) -> Any:
        if self.dictionary is not None:
            seen = self.dictionary.values_for(param.normalized_name)
            if seen:
                return self.random.choice(seen)
        if param.examples:
            return self.random.choice(param.examples)
        if param.default is not None:
            return param.default
        if param.enum_values:
            return self.random.choice(param.enum_values)
        return self.random_value(param.type, param.format)

    def random_value(self, param_type: ParameterType, fmt: Optional[str] = None) -> Any:
        if param_type == ParameterType.INTEGER:
            return self.random.randint(1, 1000)
        if param_type == ParameterType.NUMBER:
            return round(self.random.uniform(0, 1000), 2)
        if param_type == ParameterType.BOOLEAN:
            return self.random.choice([True, False])
        return self._random_string(fmt)

    def _random_string(self, fmt: Optional[str]) -> str:
        if fmt == 'date':
            return self._random_date().isoformat()
        if fmt == 'date-time':
            moment = datetime.datetime.combine(self._random_date(), datetime.time(self.random.randint(0, 23),
                                                                                  self.random.randint(0, 59)))
            return moment.isoformat() + 'Z'
        if fmt == 'email':
            return f"{self._letters(6)}@example.com"
        if fmt == 'uuid':
            return str(uuid.UUID(int=self.random.getrandbits(128)))
        if fmt in ('uri', 'url'):
            return f"https://example.com/{self._letters(8)}"
        return self._letters(self.random.randint(5, 10))

    def _random_date(self) -> datetime.date:
        return datetime.date(2020, 1, 1) + datetime.timedelta(days=self.random.randint(0, 2000))

    def _letters(self, length: int) -> str:
        return ''.join(self.random.choice(string.ascii_lowercase) for _ in range(length))


class NominalFuzzer:
    """Generates well-formed single-call test sequences for one operation"""

    def __init__(self, operation: Operation, provider: Optional[ExampleValueProvider] = None):
        self.operation = operation
        self.provider = provider or ExampleValueProvider()

    def generate_test_sequences(self, count: int) -> List[TestSequence]:
        sequences = []
        for _ in range(count):
            fuzzed = self.provider.fill(self.operation.fuzz_copy())
            sequences.append(TestSequence([TestInteraction(fuzzed)]))
        logger.debug("Generated %d nominal sequence(s) for %s", count, self.operation)
        return sequences
