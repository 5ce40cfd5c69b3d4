class SqlDiffError(Exception):
    """Base class for errors raised by the differential tester"""


class ContractError(SqlDiffError):
    """The interface contract could not be read or is malformed"""


class ShadowDatabaseError(SqlDiffError):
    """Shadow database connectivity or schema creation failed (fatal for an iteration)"""


class UnsafeOperationError(SqlDiffError):
    """Refused to emit an unconditioned UPDATE/DELETE or an INSERT without columns"""

    def __init__(self, message: str, statement: str = ""):
        super().__init__(message)
        self.statement = statement


class NoSeedOperationError(SqlDiffError):
    """No creation operation is available to start a test sequence"""
