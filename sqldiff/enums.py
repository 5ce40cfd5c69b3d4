from enum import Enum


class HTTPMethod(Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


class ParameterLocation(Enum):
    """Where a parameter travels in the HTTP request (or response)"""
    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"
    BODY = "body"
    RESPONSE = "response"


class ParameterType(Enum):
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"
    UNKNOWN = "unknown"

    @classmethod
    def from_schema(cls, value) -> "ParameterType":
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.UNKNOWN


class OperationType(Enum):
    """Kind of shadow statement an operation maps to"""
    CREATE = "CREATE"    # POST   -> INSERT
    GET = "GET"          # GET    -> SELECT
    UPDATE = "UPDATE"    # PUT    -> UPDATE
    DELETE = "DELETE"    # DELETE -> DELETE


class InteractionStatus(Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    PENDING = "PENDING"


class ControlType(Enum):
    LIMIT = "limit"        # page size
    OFFSET = "offset"      # page offset
    SORT = "sort"          # ORDER BY column
    EXCLUDE = "exclude"    # NOT IN collection
    NONE = "none"          # plain WHERE condition


class SqlOperator(Enum):
    EQUALS = "="
    NOT_EQUALS = "<>"
    GREATER_THAN = ">"
    GREATER_THAN_OR_EQUALS = ">="
    LESS_THAN = "<"
    LESS_THAN_OR_EQUALS = "<="
    IN = "IN"
    NOT_IN = "NOT IN"
    BETWEEN = "BETWEEN"
    LIKE = "LIKE"
    IS_NULL = "IS NULL"

    @property
    def binds_value(self) -> bool:
        """Only plain comparisons keep a ``?`` placeholder"""
        return self in (
            SqlOperator.EQUALS,
            SqlOperator.NOT_EQUALS,
            SqlOperator.GREATER_THAN,
            SqlOperator.GREATER_THAN_OR_EQUALS,
            SqlOperator.LESS_THAN,
            SqlOperator.LESS_THAN_OR_EQUALS,
        )


class TestOutcome(Enum):
    PASS = "pass"
    FAIL = "fail"
    ERROR = "error"
    UNKNOWN = "unknown"

    __test__ = False
