import pytest

from conftest import BODY, PATH, QUERY, leaf
from sqldiff import semantic
from sqldiff.control import get_control_type, is_control_parameter
from sqldiff.enums import ControlType, HTTPMethod, ParameterType
from sqldiff.keywords import RESERVED_KEYWORDS, is_reserved
from sqldiff.matcher import (compare, extract_path_resource_context, is_same_parameter, levenshtein_similarity,
                             object_similarity, schema_similarity, string_similarity)
from sqldiff.operation import Operation
from sqldiff.parameter import ArrayParameter, ObjectParameter


def _on(method, endpoint, *params):
    """Attach params to a throwaway operation so they know their endpoint"""
    Operation(method, endpoint,
              query_parameters=[p for p in params if p.location == QUERY],
              path_parameters=[p for p in params if p.location == PATH])
    return params


def test_same_name_on_same_path_is_identical():
    get_id, = _on(HTTPMethod.GET, '/pets/{petId}', leaf('petId', PATH, ParameterType.INTEGER))
    delete_id, = _on(HTTPMethod.DELETE, '/pets/{petId}', leaf('petId', PATH, ParameterType.INTEGER))
    assert compare(get_id, delete_id) == 1.0
    assert is_same_parameter(get_id, delete_id)


def test_type_mismatch_vetoes():
    a, = _on(HTTPMethod.GET, '/a', leaf('id', QUERY, ParameterType.INTEGER))
    b, = _on(HTTPMethod.GET, '/b', leaf('id', QUERY, ParameterType.STRING))
    assert compare(a, b) == 0.0


def test_sibling_fields_never_merge():
    a, b = _on(HTTPMethod.GET, '/pets', leaf('color', QUERY), leaf('colour', QUERY))
    assert compare(a, b) == 0.0


def test_semantic_conflict_vetoes():
    a, = _on(HTTPMethod.GET, '/a', leaf('start_date', QUERY))
    b, = _on(HTTPMethod.GET, '/b', leaf('end_date', QUERY))
    assert compare(a, b) == 0.0


def test_same_normalized_name_across_resources():
    a, = _on(HTTPMethod.GET, '/users', leaf('userName', QUERY, normalized='user_name'))
    b, = _on(HTTPMethod.GET, '/accounts', leaf('user_name', QUERY, normalized='user_name'))
    assert compare(a, b) == pytest.approx(0.95)


def test_path_parameters_on_different_resources():
    a, = _on(HTTPMethod.GET, '/pets/{id}', leaf('id', PATH, ParameterType.INTEGER))
    b, = _on(HTTPMethod.GET, '/owners/{id}', leaf('id', PATH, ParameterType.INTEGER))
    # Same name, different resource: partial resource credit only
    assert compare(a, b) == pytest.approx(0.05 + 0.4 + 0.4 * 0.5)


def test_arrays_with_different_element_types():
    a = ArrayParameter(name='tags', location=QUERY, reference_element=leaf('tags', QUERY))
    b = ArrayParameter(name='tags', location=QUERY, reference_element=leaf('tags', QUERY, ParameterType.INTEGER))
    Operation(HTTPMethod.GET, '/a', query_parameters=[a])
    Operation(HTTPMethod.GET, '/b', query_parameters=[b])
    assert compare(a, b) == 0.0


def test_nested_never_merges_with_top_level():
    nested = ObjectParameter(name='owner', location=BODY, properties=[leaf('email', BODY)])
    Operation(HTTPMethod.POST, '/a', request_body=nested)
    nested.properties[0].table_path = 'owner_email'
    top, = _on(HTTPMethod.GET, '/b', leaf('email', QUERY))
    assert compare(nested.properties[0], top) == 0.0


def test_schema_similarity_counts_constraints():
    a = leaf('a', QUERY, format='date', enum_values=[1, 2])
    b = leaf('b', QUERY, format='date', enum_values=[3])
    assert schema_similarity(a, b) == pytest.approx(2 / 3)
    assert schema_similarity(leaf('x', QUERY), leaf('y', QUERY)) == 1.0


def test_object_similarity_is_jaccard():
    p1 = [leaf('name', BODY), leaf('age', BODY, ParameterType.INTEGER)]
    p2 = [leaf('name', BODY), leaf('email', BODY)]
    assert object_similarity(p1, p2) == pytest.approx(1 / 3)
    assert object_similarity([], []) == 1.0
    assert object_similarity(p1, []) == 0.0


def test_resource_context():
    assert extract_path_resource_context('/pets/{petId}/toys', leaf('petId', PATH)) == 'pets'
    assert extract_path_resource_context('/pets/{petId}/toys', leaf('q', QUERY)) == 'toys'
    assert extract_path_resource_context('/{id}', leaf('id', PATH)) == 'root'


def test_string_similarity():
    assert string_similarity('user_id', 'userId') == 1.0
    assert string_similarity('pet-name', 'pet_name') == 1.0
    assert string_similarity(None, 'x') == 0.0
    assert levenshtein_similarity('kitten', 'sitting') == pytest.approx(1 - 3 / 7)


@pytest.mark.parametrize('first, second', [
    ('min_price', 'max_price'),
    ('include', 'exclude'),
    ('user_id', 'user_name'),
    ('start_date_format', 'start_time_format'),
    ('latitude', 'longitude'),
])
def test_semantic_conflicts(first, second):
    assert semantic.is_semantic_conflict(first, second)


def test_no_conflict_for_same_name():
    assert not semantic.is_semantic_conflict('min_price', 'MinPrice')
    assert not semantic.is_semantic_conflict('price', 'cost')


@pytest.mark.parametrize('name, expected', [
    ('limit', ControlType.LIMIT),
    ('pageSize', ControlType.LIMIT),
    ('page', ControlType.OFFSET),
    ('sort_by', ControlType.SORT),
    ('not_in', ControlType.EXCLUDE),
    ('name', ControlType.NONE),
    (None, ControlType.NONE),
])
def test_control_types(name, expected):
    assert get_control_type(name) == expected


def test_control_and_reserved_keywords():
    assert is_control_parameter('per_page')
    assert not is_control_parameter('')
    assert is_reserved('select') and is_reserved('ORDER')
    assert not is_reserved('pet_name')


def test_reserved_keywords_are_immutable():
    with pytest.raises(AttributeError):
        RESERVED_KEYWORDS.add('PETSTORE_ONLY')
    assert not is_reserved('petstore_only')
