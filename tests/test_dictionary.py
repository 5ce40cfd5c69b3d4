from sqldiff.dictionary import ResponseDictionary


def test_values_are_keyed_by_normalized_name(petstore):
    dictionary = ResponseDictionary()
    dictionary.record_execution(petstore['create'], True, {'id': 5, 'name': 'rex', 'extra': 'x'})

    assert dictionary.values_for('pet_id') == [5]
    assert dictionary.values_for('pet_name') == ['rex']
    assert dictionary.values_for('extra') == []
    assert dictionary.count_available_values_for('pet_id') == 1


def test_lists_use_their_first_item(petstore):
    dictionary = ResponseDictionary()
    dictionary.record_execution(petstore['list'], True, [{'id': 1}, {'id': 2}])
    assert dictionary.values_for('pet_id') == [1]


def test_failures_are_only_recorded_in_history(petstore):
    dictionary = ResponseDictionary()
    dictionary.record_execution(petstore['create'], False, {'id': 5})

    assert dictionary.values_for('pet_id') == []
    assert len(dictionary.execution_history) == 1
    assert dictionary.execution_history[0]['operation'] == 'POST /pets'


def test_values_are_deduplicated_and_bounded(petstore):
    dictionary = ResponseDictionary(max_values_per_name=2)
    for pet_id in (1, 1, 2, 3):
        dictionary.record_execution(petstore['create'], True, {'id': pet_id})
    assert dictionary.values_for('pet_id') == [2, 3]


def test_observed_outputs_satisfy_dependencies(petstore, petstore_graph):
    dictionary = ResponseDictionary(petstore_graph)
    dictionary.record_execution(petstore['create'].fuzz_copy(), True, {'id': 5})

    satisfied = {(d.target.signature, d.normalized_name) for d in petstore_graph.dependencies if d.satisfied}
    assert ('DELETE /pets/{petId}', 'pet_id') in satisfied
    assert all(d.source == petstore['create'] for d in petstore_graph.dependencies if d.satisfied)
    assert all(d.normalized_name == 'pet_id' for d in petstore_graph.dependencies if d.satisfied)
    assert petstore_graph.graph.edges['DELETE /pets/{petId}', 'POST /pets', 'pet_id']['satisfied']
