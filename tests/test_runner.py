import json

import requests

from sqldiff.dictionary import ResponseDictionary
from sqldiff.runner import HttpTestRunner
from sqldiff.sequence import TestInteraction, TestSequence


class FakeResponse:
    def __init__(self, status_code, body=None):
        self.status_code = status_code
        self.text = json.dumps(body) if body is not None else ''


class FakeSession:
    """Records every request and answers from a queue of responses"""

    def __init__(self, *responses, error=None):
        self.responses = list(responses)
        self.error = error
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)


def _filled(operation, **values):
    copy = operation.fuzz_copy()
    for param in copy.leaves():
        param.value = values.get(param.name)
    return copy


def test_request_is_built_from_parameter_values(petstore):
    session = FakeSession(FakeResponse(200, {'id': 7}))
    runner = HttpTestRunner('http://api.local/v1/', session=session)
    sequence = TestSequence([TestInteraction(_filled(petstore['get'], petId=7))])

    runner.run(sequence)

    method, url, kwargs = session.calls[0]
    assert method == 'GET'
    assert url == 'http://api.local/v1/pets/7'
    assert kwargs['params'] == {}
    assert kwargs['json'] is None
    assert sequence.is_executed()
    assert sequence.first.response_status_code.code == 200


def test_body_drops_unset_fields(petstore):
    session = FakeSession(FakeResponse(201, {'id': 1, 'name': 'rex'}))
    runner = HttpTestRunner('http://api.local', session=session)
    create = _filled(petstore['create'], name='rex')

    runner.execute(TestInteraction(create))

    assert session.calls[0][2]['json'] == {'name': 'rex', 'photoUrls': []}


def test_path_values_are_url_encoded(petstore):
    session = FakeSession(FakeResponse(404))
    runner = HttpTestRunner('http://api.local', session=session)
    runner.execute(TestInteraction(_filled(petstore['delete'], petId='a/b')))
    assert session.calls[0][1] == 'http://api.local/pets/a%2Fb'


def test_network_error_leaves_interaction_unexecuted(petstore):
    session = FakeSession(error=requests.ConnectionError('refused'))
    dictionary = ResponseDictionary()
    runner = HttpTestRunner('http://api.local', session=session, dictionary=dictionary)

    interaction = runner.execute(TestInteraction(_filled(petstore['get'], petId=1)))

    assert not interaction.executed
    assert interaction.response_status_code is None
    assert dictionary.execution_history[-1]['success'] is False


def test_successful_responses_feed_dictionary_and_graph(petstore, petstore_graph):
    session = FakeSession(FakeResponse(201, {'id': 11, 'name': 'rex'}), FakeResponse(500, {'id': 12}))
    dictionary = ResponseDictionary(petstore_graph)
    runner = HttpTestRunner('http://api.local', session=session, dictionary=dictionary, graph=petstore_graph)

    runner.execute(TestInteraction(_filled(petstore['create'], name='rex')))
    runner.execute(TestInteraction(_filled(petstore['get'], petId=11)))

    assert dictionary.values_for('pet_id') == [11]
    assert petstore_graph.node_for(petstore['create']).tested
    assert not petstore_graph.node_for(petstore['get']).tested


def test_build_path():
    assert HttpTestRunner.build_path('/a/{x}/b/{y}', {'x': 1, 'y': 'z z'}) == '/a/1/b/z%20z'
