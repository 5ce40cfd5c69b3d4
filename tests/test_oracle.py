import pytest

from sqldiff.enums import InteractionStatus, OperationType, TestOutcome
from sqldiff.interaction import SqlInteraction
from sqldiff.oracle import SQL_INTERACTION_TAG, SqlDiffOracle
from sqldiff.sequence import HttpStatusCode, TestInteraction, TestSequence


def _interaction(operation, sql_success, status_code):
    interaction = TestInteraction(operation)
    if sql_success is not None:
        status = InteractionStatus.SUCCESS if sql_success else InteractionStatus.FAILED
        interaction.add_tag(SQL_INTERACTION_TAG, SqlInteraction(status=status, error_message='boom'))
    interaction.set_response(status_code)
    return interaction


@pytest.mark.parametrize('sql_success, status_code, expected', [
    (True, 200, TestOutcome.PASS),
    (True, 404, TestOutcome.FAIL),
    (True, 500, TestOutcome.FAIL),
    (False, 201, TestOutcome.FAIL),
    (False, 400, TestOutcome.PASS),
    (False, 500, TestOutcome.FAIL),
])
def test_decision_table(petstore, sql_success, status_code, expected):
    sequence = TestSequence([_interaction(petstore['get'], sql_success, status_code)])
    result = SqlDiffOracle().assert_test_sequence(sequence)

    assert result.outcome == expected
    assert result.message
    assert sequence.test_results['SqlDiffOracle'] is result


def test_failure_message_mentions_database_error(petstore):
    sequence = TestSequence([_interaction(petstore['get'], False, 200)])
    result = SqlDiffOracle().assert_test_sequence(sequence)
    assert 'boom' in result.message


def test_unexecuted_sequence_is_an_error(petstore):
    sequence = TestSequence([TestInteraction(petstore['get'])])
    assert SqlDiffOracle().assert_test_sequence(sequence).outcome == TestOutcome.ERROR


def test_untagged_interactions_are_skipped(petstore):
    sequence = TestSequence([_interaction(petstore['get'], None, 500)])
    assert SqlDiffOracle().assert_test_sequence(sequence).outcome == TestOutcome.UNKNOWN


def test_any_failure_fails_the_sequence(petstore):
    sequence = TestSequence([
        _interaction(petstore['create'], True, 201),
        _interaction(petstore['get'], True, 404),
        _interaction(petstore['delete'], False, 400),
    ])
    result = SqlDiffOracle().assert_test_sequence(sequence)
    assert result.is_fail
    assert '404' in result.message


def test_redirects_are_not_compared(petstore):
    sequence = TestSequence([_interaction(petstore['get'], True, 302)])
    assert SqlDiffOracle().assert_test_sequence(sequence).outcome == TestOutcome.UNKNOWN


def test_status_classes():
    assert HttpStatusCode(204).is_successful()
    assert HttpStatusCode(404).is_client_error()
    assert HttpStatusCode(503).is_server_error()
    assert HttpStatusCode(301).is_redirection()
    assert str(HttpStatusCode(200)) == '200'


def test_failed_interaction_serializes_for_reports():
    interaction = SqlInteraction.failed(OperationType.UPDATE, '', 'no columns')
    data = interaction.to_dict()

    assert data['operation_type'] == 'UPDATE'
    assert data['status'] == 'FAILED'
    assert data['error_message'] == 'no columns'
    assert 'exception' not in data
