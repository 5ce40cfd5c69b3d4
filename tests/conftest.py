import random

import pytest

from sqldiff.core import OperationDependencyGraph
from sqldiff.database import ShadowDatabase
from sqldiff.enums import HTTPMethod, ParameterLocation, ParameterType
from sqldiff.operation import Operation
from sqldiff.parameter import ArrayParameter, LeafParameter, ObjectParameter

PATH = ParameterLocation.PATH
QUERY = ParameterLocation.QUERY
BODY = ParameterLocation.BODY
RESPONSE = ParameterLocation.RESPONSE


def leaf(name, location, type_=ParameterType.STRING, normalized=None, **kwargs):
    return LeafParameter(name=name, location=location, type=type_, normalized_name=normalized, **kwargs)


def pet_outputs():
    return [
        leaf('id', RESPONSE, ParameterType.INTEGER, 'pet_id'),
        leaf('name', RESPONSE, ParameterType.STRING, 'pet_name'),
    ]


def pet_id_path():
    return leaf('petId', PATH, ParameterType.INTEGER, 'pet_id', required=True)


def pet_body(with_photos=True):
    properties = [
        leaf('name', BODY, ParameterType.STRING, 'pet_name', required=True),
        leaf('tag', BODY, ParameterType.STRING, 'tag'),
    ]
    if with_photos:
        properties.append(ArrayParameter(
            name='photoUrls', location=BODY, normalized_name='photo_urls',
            reference_element=leaf('photoUrls', BODY, ParameterType.STRING, 'photo_url'),
        ))
    return ObjectParameter(name='body', location=BODY, properties=properties)


def make_petstore():
    """Five CRUD operations on /pets, built without a contract file"""
    create = Operation(HTTPMethod.POST, '/pets', request_body=pet_body(), output_parameters=pet_outputs())
    get_pet = Operation(HTTPMethod.GET, '/pets/{petId}', path_parameters=[pet_id_path()],
                        output_parameters=pet_outputs())
    list_pets = Operation(HTTPMethod.GET, '/pets',
                          query_parameters=[leaf('limit', QUERY, ParameterType.INTEGER, 'limit'),
                                            leaf('name', QUERY, ParameterType.STRING, 'pet_name')],
                          output_parameters=pet_outputs())
    update = Operation(HTTPMethod.PUT, '/pets/{petId}', path_parameters=[pet_id_path()],
                       request_body=pet_body(with_photos=False))
    delete = Operation(HTTPMethod.DELETE, '/pets/{petId}', path_parameters=[pet_id_path()])
    return {
        'create': create,
        'get': get_pet,
        'list': list_pets,
        'update': update,
        'delete': delete,
    }


@pytest.fixture
def petstore():
    return make_petstore()


@pytest.fixture
def petstore_graph(petstore):
    return OperationDependencyGraph(petstore.values())


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture
def database():
    with ShadowDatabase('sqlite://') as db:
        yield db
