import logging
from dataclasses import dataclass
from typing import Optional

from .enums import TestOutcome
from .interaction import SqlInteraction
from .sequence import TestSequence

logger = logging.getLogger(__name__)

SQL_INTERACTION_TAG = 'SQL_INTERACTION'


@dataclass
class TestResult:
    outcome: TestOutcome = TestOutcome.UNKNOWN
    message: str = ''

    __test__ = False

    def set_pass(self, message: str) -> "TestResult":
        self.outcome = TestOutcome.PASS
        self.message = message
        return self

    def set_fail(self, message: str) -> "TestResult":
        self.outcome = TestOutcome.FAIL
        self.message = message
        return self

    def set_error(self, message: str) -> "TestResult":
        self.outcome = TestOutcome.ERROR
        self.message = message
        return self

    @property
    def is_pass(self) -> bool:
        return self.outcome == TestOutcome.PASS

    @property
    def is_fail(self) -> bool:
        return self.outcome == TestOutcome.FAIL


class SqlDiffOracle:
    """
    Compares the shadow SQL outcome of each interaction with its HTTP status class.

    | SQL     | 2xx  | 4xx  | 5xx  |
    | success | pass | fail | fail |
    | failure | fail | pass | fail |

    Interactions without a shadow outcome are skipped. One failing interaction
    fails the whole sequence.
    """

    name = 'SqlDiffOracle'

    def assert_test_sequence(self, sequence: TestSequence) -> TestResult:
        result = TestResult()
        if not sequence.is_executed():
            result.set_error("One or more interactions in the sequence have not been executed.")
            sequence.add_test_result(self.name, result)
            return result

        for interaction in sequence:
            sql_interaction = interaction.get_tag(SQL_INTERACTION_TAG)
            if not isinstance(sql_interaction, SqlInteraction):
                continue
            verdict = self.compare(sql_interaction, interaction.response_status_code)
            if verdict is None:
                continue
            if verdict.is_fail:
                result = verdict
                break
            result = verdict

        sequence.add_test_result(self.name, result)
        return result

    @staticmethod
    def compare(sql_interaction: SqlInteraction, status) -> Optional[TestResult]:
        result = TestResult()
        if status is None:
            return None
        if sql_interaction.is_success:
            if status.is_successful():
                return result.set_pass("Both SQL simulation and API execution succeeded.")
            if status.is_client_error():
                return result.set_fail(
                    f"Difference detected: SQL simulation succeeded, but API returned Client Error ({status}).")
            if status.is_server_error():
                return result.set_fail(
                    f"Difference detected: SQL simulation succeeded, but API returned Server Error ({status}).")
        else:
            if status.is_successful():
                return result.set_fail(
                    f"Difference detected: SQL simulation failed ({sql_interaction.error_message}), "
                    f"but API succeeded ({status}).")
            if status.is_client_error():
                return result.set_pass("Both SQL simulation and API execution rejected the request.")
            if status.is_server_error():
                return result.set_fail(
                    f"SQL simulation failed, and API crashed with Server Error ({status}). Expected Client Error.")
        return None
