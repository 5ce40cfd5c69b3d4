from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .enums import InteractionStatus, OperationType


@dataclass
class SqlInteraction:
    """Outcome of one simulated SQL statement, read by the differential oracle"""
    operation_type: Optional[OperationType] = None
    executed_sql: Optional[str] = None
    status: InteractionStatus = InteractionStatus.PENDING
    rows_affected: int = 0
    query_results: Optional[List[Dict[str, Any]]] = None
    column_values: Optional[Dict[str, Any]] = None
    set_values: Optional[Dict[str, Any]] = None
    where_values: Optional[Dict[str, Any]] = None
    error_message: Optional[str] = None
    exception: Optional[BaseException] = field(default=None, repr=False)

    @classmethod
    def failed(cls, operation_type: OperationType, executed_sql: Optional[str], error_message: str,
               exception: Optional[BaseException] = None) -> "SqlInteraction":
        return cls(
            operation_type=operation_type,
            executed_sql=executed_sql,
            status=InteractionStatus.FAILED,
            error_message=error_message,
            exception=exception,
        )

    @property
    def is_success(self) -> bool:
        return self.status == InteractionStatus.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        return {
            'operation_type': self.operation_type.value if self.operation_type else None,
            'executed_sql': self.executed_sql,
            'status': self.status.value,
            'rows_affected': self.rows_affected,
            'query_results': self.query_results,
            'column_values': self.column_values,
            'set_values': self.set_values,
            'where_values': self.where_values,
            'error_message': self.error_message,
        }
