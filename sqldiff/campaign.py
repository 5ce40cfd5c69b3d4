import logging
import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .clustering import ClusteringEngine
from .config import DiffTestConfig
from .core import OperationDependencyGraph
from .database import ShadowDatabase
from .dictionary import ResponseDictionary
from .enums import TestOutcome
from .exceptions import ShadowDatabaseError, UnsafeOperationError
from .fuzzer import ExampleValueProvider, NominalFuzzer
from .oracle import SQL_INTERACTION_TAG, SqlDiffOracle, TestResult
from .runner import HttpTestRunner
from .schema import ShadowSchema
from .sequence import TestSequence
from .sorter import DiffBasedGraphSorter
from .strategies import translate

logger = logging.getLogger(__name__)


@dataclass
class CampaignReport:
    iterations: int = 0
    failed_iterations: int = 0
    sequences: int = 0
    skipped_operations: int = 0
    outcomes: Dict[TestOutcome, int] = field(default_factory=lambda: {o: 0 for o in TestOutcome})
    failures: List[str] = field(default_factory=list)

    def add(self, sequence: TestSequence, result: TestResult):
        self.sequences += 1
        self.outcomes[result.outcome] += 1
        if result.is_fail:
            self.failures.append(f"{sequence.first.fuzzed_operation}: {result.message}")
            sql_interaction = sequence.first.get_tag(SQL_INTERACTION_TAG)
            if sql_interaction is not None:
                logger.debug("Shadow outcome for %s: %s", sequence.first.fuzzed_operation, sql_interaction.to_dict())

    def get_summary(self) -> Dict[str, int]:
        summary = {
            'iterations': self.iterations,
            'failed_iterations': self.failed_iterations,
            'sequences': self.sequences,
            'skipped_operations': self.skipped_operations,
        }
        summary.update({outcome.value: count for outcome, count in self.outcomes.items()})
        return summary


class SqlDiffCampaign:
    """
    Differential testing loop: every iteration sorts one sequence of operations
    from the graph, derives its shadow table, then replays nominal requests both
    against the API and as SQL, letting the oracle compare the two outcomes.
    """

    def __init__(self, graph: OperationDependencyGraph, database: ShadowDatabase, config: DiffTestConfig,
                 runner: Optional[HttpTestRunner] = None, rng: Optional[random.Random] = None):
        self.graph = graph
        self.database = database
        self.config = config
        self.random = rng or random.Random(config.seed)
        self.dictionary = ResponseDictionary(graph)
        self.runner = runner or HttpTestRunner(config.base_url, timeout=config.request_timeout,
                                               dictionary=self.dictionary, graph=graph)
        self.provider = ExampleValueProvider(self.random, self.dictionary)
        self.oracle = SqlDiffOracle()
        self.api_name = config.api_name or 'api'
        self.report = CampaignReport()
        self.sequences: List[TestSequence] = []

    def run(self) -> CampaignReport:
        for iteration in range(1, self.config.iterations + 1):
            self.report.iterations += 1
            try:
                self.run_iteration(iteration)
            except Exception:
                self.report.failed_iterations += 1
                logger.exception("Iteration %d failed", iteration)
        return self.report

    def run_iteration(self, iteration: int):
        sorter = DiffBasedGraphSorter(self.graph, self.random, max_depth=self.config.max_depth,
                                      cleanup_deletes=self.config.cleanup_deletes)
        schema = ShadowSchema.from_sequence(list(sorter.queue), self.api_name,
                                            engine=ClusteringEngine(self.config.cut_height))
        logger.info("Iteration %d: %d operation(s), table %s with %d column(s)",
                    iteration, len(sorter), schema.table_name, len(schema.columns))
        schema.create_table(self.database)
        try:
            while not sorter.is_empty():
                self.test_operation(sorter.get_first(), schema)
                sorter.remove_first()
        finally:
            if self.config.drop_tables:
                try:
                    schema.drop_table(self.database)
                except ShadowDatabaseError:
                    logger.exception("Iteration %d: table %s left behind", iteration, schema.table_name)

    def test_operation(self, operation, schema: ShadowSchema):
        fuzzer = NominalFuzzer(operation, self.provider)
        for sequence in fuzzer.generate_test_sequences(self.config.sequences_per_operation):
            interaction = sequence.first
            try:
                sql_interaction = translate(interaction.fuzzed_operation, schema, self.database)
            except UnsafeOperationError as e:
                self.report.skipped_operations += 1
                logger.warning("Skipping %s: %s", operation, e)
                continue
            interaction.add_tag(SQL_INTERACTION_TAG, sql_interaction)

            self.runner.run(sequence)
            result = self.oracle.assert_test_sequence(sequence)
            self.report.add(sequence, result)
            self.sequences.append(sequence)
            if result.is_fail:
                logger.info("%s: %s", operation, result.message)
