import random

from conftest import QUERY, leaf
from sqldiff.dictionary import ResponseDictionary
from sqldiff.enums import HTTPMethod, ParameterType
from sqldiff.fuzzer import ExampleValueProvider, NominalFuzzer
from sqldiff.operation import Operation


def test_fill_works_on_a_copy(petstore):
    provider = ExampleValueProvider(random.Random(1))
    filled = provider.fill(petstore['get'].fuzz_copy())

    assert isinstance(filled.path_parameters[0].value, int)
    assert petstore['get'].path_parameters[0].value is None


def test_arrays_get_one_to_three_elements(petstore):
    provider = ExampleValueProvider(random.Random(5))
    for _ in range(10):
        create = provider.fill(petstore['create'].fuzz_copy())
        photos = next(a for a in create.arrays() if a.name == 'photoUrls')
        assert 1 <= len(photos.elements) <= 3
        assert all(isinstance(v, str) for v in photos.values())


def test_optional_parameters_are_sometimes_unset(petstore):
    provider = ExampleValueProvider(random.Random(0), optional_probability=1.0)
    listed = provider.fill(petstore['list'].fuzz_copy())
    assert all(p.value is None for p in listed.query_parameters)

    provider = ExampleValueProvider(random.Random(0), optional_probability=0.0)
    listed = provider.fill(petstore['list'].fuzz_copy())
    assert all(p.value is not None for p in listed.query_parameters)


def test_value_preference_order():
    provider = ExampleValueProvider(random.Random(0))
    assert provider.value_for(leaf('a', QUERY, examples=['ex'], default='dflt')) == 'ex'
    assert provider.value_for(leaf('a', QUERY, default='dflt', enum_values=['e'])) == 'dflt'
    assert provider.value_for(leaf('a', QUERY, enum_values=['only'])) == 'only'


def test_recorded_response_values_come_first(petstore):
    dictionary = ResponseDictionary()
    dictionary.record_execution(petstore['create'], True, {'id': 42, 'name': 'rex'})
    provider = ExampleValueProvider(random.Random(0), dictionary)

    filled = provider.fill(petstore['delete'].fuzz_copy())
    assert filled.path_parameters[0].value == 42


def test_random_values_follow_type_and_format():
    provider = ExampleValueProvider(random.Random(3))
    assert isinstance(provider.random_value(ParameterType.INTEGER), int)
    assert isinstance(provider.random_value(ParameterType.NUMBER), float)
    assert isinstance(provider.random_value(ParameterType.BOOLEAN), bool)
    assert '@' in provider.random_value(ParameterType.STRING, 'email')
    assert len(provider.random_value(ParameterType.STRING, 'uuid')) == 36
    assert provider.random_value(ParameterType.STRING, 'date-time').endswith('Z')
    assert len(provider.random_value(ParameterType.STRING, 'date')) == 10


def test_nominal_fuzzer_builds_single_call_sequences(petstore):
    fuzzer = NominalFuzzer(petstore['update'], ExampleValueProvider(random.Random(2)))
    sequences = fuzzer.generate_test_sequences(4)

    assert len(sequences) == 4
    assert all(len(s) == 1 for s in sequences)
    operations = [s.first.fuzzed_operation for s in sequences]
    assert all(op == petstore['update'] for op in operations)
    assert len({id(op) for op in operations}) == 4
    assert not any(s.is_executed() for s in sequences)


def test_operation_without_parameters():
    fuzzer = NominalFuzzer(Operation(HTTPMethod.GET, '/health'))
    assert fuzzer.generate_test_sequences(1)[0].first.fuzzed_operation.leaves() == []
