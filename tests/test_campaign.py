import random

from sqldiff.campaign import CampaignReport, SqlDiffCampaign
from sqldiff.config import DiffTestConfig
from sqldiff.core import OperationDependencyGraph
from sqldiff.database import ShadowDatabase
from sqldiff.enums import HTTPMethod, TestOutcome
from sqldiff.exceptions import ShadowDatabaseError
from sqldiff.oracle import SQL_INTERACTION_TAG


class EchoRunner:
    """Answers 201 to POST and 200 to everything else without any network"""

    def __init__(self):
        self.sequences = []

    def run(self, sequence):
        self.sequences.append(sequence)
        for interaction in sequence:
            status = 201 if interaction.fuzzed_operation.method == HTTPMethod.POST else 200
            interaction.set_response(status)
        return sequence


def _config(**overrides):
    config = DiffTestConfig(iterations=2, sequences_per_operation=2, seed=4, api_name='petstore')
    return config.update(overrides)


def test_campaign_runs_every_iteration(petstore_graph, database):
    runner = EchoRunner()
    campaign = SqlDiffCampaign(petstore_graph, database, _config(), runner=runner, rng=random.Random(4))

    report = campaign.run()

    assert report.iterations == 2
    assert report.failed_iterations == 0
    assert report.sequences == len(campaign.sequences) > 0
    assert sum(report.outcomes.values()) == report.sequences
    for sequence in campaign.sequences:
        assert sequence.first.get_tag(SQL_INTERACTION_TAG) is not None
        assert 'SqlDiffOracle' in sequence.test_results


def test_inserts_agree_with_created_responses(petstore_graph, database):
    campaign = SqlDiffCampaign(petstore_graph, database, _config(iterations=1), runner=EchoRunner())
    campaign.run()

    posts = [s for s in campaign.sequences if s.first.fuzzed_operation.method == HTTPMethod.POST]
    assert posts
    assert all(s.test_results['SqlDiffOracle'].outcome == TestOutcome.PASS for s in posts)


def test_tables_are_dropped_between_iterations(petstore_graph, database):
    campaign = SqlDiffCampaign(petstore_graph, database, _config(iterations=1), runner=EchoRunner())
    campaign.run()
    assert not database.execute_select("SELECT * FROM api_test_data_petstore", {}).is_success


def test_tables_are_kept_on_request(petstore_graph, database):
    campaign = SqlDiffCampaign(petstore_graph, database, _config(iterations=1, drop_tables=False),
                               runner=EchoRunner())
    campaign.run()
    assert database.execute_select("SELECT * FROM api_test_data_petstore", {}).is_success


def test_failing_iteration_does_not_stop_the_campaign(petstore, database):
    # No creation operation: every iteration fails to seed a sequence
    graph = OperationDependencyGraph([petstore['get'], petstore['delete']])
    campaign = SqlDiffCampaign(graph, database, _config(iterations=3), runner=EchoRunner())

    report = campaign.run()

    assert report.iterations == 3
    assert report.failed_iterations == 3
    assert report.sequences == 0


def test_report_summary():
    report = CampaignReport(iterations=2, sequences=3)
    report.outcomes[TestOutcome.PASS] = 2
    report.outcomes[TestOutcome.FAIL] = 1
    summary = report.get_summary()
    assert summary['iterations'] == 2
    assert summary['pass'] == 2
    assert summary['fail'] == 1
    assert summary['error'] == 0


class NoDropDatabase(ShadowDatabase):

    def execute_ddl(self, sql):
        if sql.startswith('DROP'):
            raise ShadowDatabaseError(f"Failed to execute SQL: {sql}: locked")
        return super().execute_ddl(sql)


class DownRunner:

    def run(self, sequence):
        raise RuntimeError('api down')


def test_failed_drop_keeps_the_iteration_error(petstore_graph, caplog):
    with NoDropDatabase('sqlite://') as database:
        campaign = SqlDiffCampaign(petstore_graph, database, _config(iterations=1), runner=DownRunner())
        report = campaign.run()

    assert report.failed_iterations == 1
    failed = [r for r in caplog.records if r.getMessage() == 'Iteration 1 failed']
    assert failed and failed[0].exc_info[0] is RuntimeError
    assert any('left behind' in r.getMessage() for r in caplog.records)
