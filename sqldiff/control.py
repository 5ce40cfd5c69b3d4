"""
Control parameters shape the result (paging, sorting, exclusion) instead of
selecting rows. Names are compared lowercased with underscores removed, so
``pageSize``, ``page_size`` and ``PAGESIZE`` are the same keyword.
"""
from typing import Optional

from .enums import ControlType

LIMIT_KEYWORDS = {'limit', 'count', 'size', 'pagesize', 'perpage', 'max'}
OFFSET_KEYWORDS = {'offset', 'page', 'p', 'start', 'skip'}
SORT_KEYWORDS = {'sort', 'sortby', 'order', 'orderby', 'ordering'}
EXCLUDE_KEYWORDS = {'exclude', 'except', 'without', 'notin', 'not'}

ALL_CONTROL_KEYWORDS = LIMIT_KEYWORDS | OFFSET_KEYWORDS | SORT_KEYWORDS | EXCLUDE_KEYWORDS


def _normalize(name: str) -> str:
    return name.lower().replace('_', '')


def get_control_type(name: Optional[str]) -> ControlType:
    if not name:
        return ControlType.NONE
    key = _normalize(name)
    if key in LIMIT_KEYWORDS:
        return ControlType.LIMIT
    if key in OFFSET_KEYWORDS:
        return ControlType.OFFSET
    if key in SORT_KEYWORDS:
        return ControlType.SORT
    if key in EXCLUDE_KEYWORDS:
        return ControlType.EXCLUDE
    return ControlType.NONE


def is_control_parameter(name: Optional[str]) -> bool:
    return bool(name) and _normalize(name) in ALL_CONTROL_KEYWORDS
