"""
WHERE-clause synthesis shared by the GET, DELETE and UPDATE strategies.

The candidate map is consumed in place: control parameters and parameters
whose values are inlined as literals are removed, so afterwards it only holds
the values bound to ``?`` placeholders, in placeholder order.
"""
import logging
import re
from typing import Any, Dict, List, Optional

from .control import get_control_type
from .enums import ControlType, SqlOperator
from .operation import Operation

logger = logging.getLogger(__name__)

RANGE_HINTS = ('range', 'between', 'interval', 'period')
DATE_HINTS = ('date', 'time')

# Operator affixes removed before a filter name is resolved to a column
_AFFIX_RE = re.compile(
    r'^(?:min|max|include|exclude)_(?=.)|(?<=.)_(?:min|max|gte|lte|gt|lt|neq|ne|like|include|exclude|not_in)$',
    re.IGNORECASE,
)


def generate_where_clause(params: Dict[str, Any], operation: Operation, schema) -> str:
    """
    Build `` WHERE ... [ORDER BY ...] [LIMIT n [OFFSET m]]`` from candidate parameters.
    ``schema`` needs a ``column_for_name(name, operation)`` lookup.
    """
    if not params:
        return ''

    conditions: List[str] = []
    limit_value = offset_value = None
    order_column: Optional[str] = None
    order_direction: Optional[str] = None

    for name in list(params):
        value = params[name]
        control = get_control_type(name)

        if control in (ControlType.LIMIT, ControlType.OFFSET, ControlType.SORT):
            del params[name]
            if control == ControlType.LIMIT:
                limit_value = value
            elif control == ControlType.OFFSET:
                offset_value = value
            else:
                text = str(value)
                if text.lower() in ('asc', 'desc'):
                    order_direction = text.lower()
                    order_column = order_column or 'id'
                else:
                    order_column = schema.column_for_name(text, operation) or 'id'
            continue

        operator = infer_operator(name, value)
        column = resolve_column(name, operation, schema)

        if operator.binds_value:
            conditions.append(f"{column} {operator.value} ?")
            continue

        # inlined as literals, no longer bound
        del params[name]
        if operator == SqlOperator.IS_NULL:
            conditions.append(f"{column} IS NULL")
        elif operator in (SqlOperator.IN, SqlOperator.NOT_IN):
            conditions.append(f"{column} {operator.value} {format_list(value)}")
        elif operator == SqlOperator.BETWEEN:
            low, high = value[0], value[1]
            conditions.append(f"{column} BETWEEN {format_literal(low)} AND {format_literal(high)}")
        else:
            conditions.append(f"{column} LIKE {format_literal('%' + str(value) + '%')}")

    sql = ''
    if conditions:
        sql = ' WHERE ' + ' AND '.join(conditions)
    if order_column is not None:
        sql += f" ORDER BY {order_column} {order_direction or 'asc'}"
    if limit_value is not None:
        sql += f" LIMIT {parse_safe_int(limit_value)}"
        # OFFSET without LIMIT is not valid MySQL
        if offset_value is not None:
            sql += f" OFFSET {parse_safe_int(offset_value)}"
    return sql


def infer_operator(name: str, value: Any) -> SqlOperator:
    lowered = name.lower()
    if value is None or str(value).lower() == 'null':
        return SqlOperator.IS_NULL
    if lowered.endswith('_exclude') or lowered.endswith('_not_in'):
        return SqlOperator.NOT_IN
    if lowered.endswith('_include'):
        return SqlOperator.IN
    if isinstance(value, (list, tuple)):
        if get_control_type(name) == ControlType.EXCLUDE:
            return SqlOperator.NOT_IN
        has_range = any(hint in lowered for hint in RANGE_HINTS)
        looks_like_time = any(hint in lowered for hint in DATE_HINTS) or lowered.endswith('_at')
        if (has_range or looks_like_time) and len(value) == 2:
            return SqlOperator.BETWEEN
        return SqlOperator.IN
    if lowered.endswith('_like') or 'search' in lowered or lowered == 'q':
        return SqlOperator.LIKE
    if lowered.startswith('min_') or lowered.endswith('_min') or lowered.endswith('_gte'):
        return SqlOperator.GREATER_THAN_OR_EQUALS
    if lowered.startswith('max_') or lowered.endswith('_max') or lowered.endswith('_lte'):
        return SqlOperator.LESS_THAN_OR_EQUALS
    if lowered.endswith('_gt'):
        return SqlOperator.GREATER_THAN
    if lowered.endswith('_lt'):
        return SqlOperator.LESS_THAN
    if lowered.endswith('_ne') or lowered.endswith('_neq'):
        return SqlOperator.NOT_EQUALS
    return SqlOperator.EQUALS


def resolve_column(name: str, operation: Operation, schema) -> str:
    """
    Column for a filter: ``{resource}_id``, ``{name}_id``, ``{name}``, else ``id``.
    Bare ``include``/``exclude`` only try the resource id.
    """
    subject = strip_operator_affix(name)
    resource = extract_resource_context(operation.endpoint, subject)

    if subject.lower() in ('include', 'exclude'):
        candidates = [f"{resource}_id"]
    else:
        candidates = [f"{resource}_id", f"{subject}_id", subject]

    for candidate in candidates:
        column = schema.column_for_name(candidate, operation)
        if column is not None:
            return column
    return schema.column_for_name('id', operation) or 'id'


def strip_operator_affix(name: str) -> str:
    return _AFFIX_RE.sub('', name, count=1)


def extract_resource_context(endpoint: str, name: str) -> str:
    """``/pages/{id}/test``: ``pages`` for ``id``, ``test`` for anything else"""
    if not endpoint:
        return ''
    segments = endpoint.strip('/').split('/')
    if name.lower() == 'id':
        for i, segment in enumerate(segments):
            if segment.lower() == '{id}' and i > 0:
                return segments[i - 1]
    for segment in reversed(segments):
        if '{' not in segment and '}' not in segment:
            return segment
    return ''


def format_literal(value: Any) -> str:
    if value is None:
        return 'NULL'
    if isinstance(value, bool):
        return 'TRUE' if value else 'FALSE'
    if isinstance(value, (int, float)):
        return str(value)
    return "'" + str(value).replace("'", "''") + "'"


def format_list(value: Any) -> str:
    items = list(value) if isinstance(value, (list, tuple)) else [value]
    if not items:
        return '(NULL)'
    return '(' + ','.join(format_literal(item) for item in items) + ')'


def parse_safe_int(value: Any) -> int:
    """LIMIT/OFFSET value as an integer; anything unparseable becomes 0"""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    try:
        return int(str(value).strip())
    except ValueError:
        return 0
