"""
Pairwise similarity between two API parameters.

The score is 0.0 to 1.0. Hard vetoes (type mismatch, sibling fields of the same
operation, semantic conflicts) short-circuit to 0; everything else is a weighted
mix of description, schema-constraint and resource/context similarity.
"""
import logging
from typing import Any, List, Optional

from .enums import ParameterLocation, ParameterType
from .parameter import ArrayParameter, ObjectParameter, Parameter
from .semantic import is_semantic_conflict

logger = logging.getLogger(__name__)

WEIGHT_DESCRIPTION = 0.1
WEIGHT_SCHEMA = 0.4
WEIGHT_RESOURCE = 0.5

SAME_PARAMETER_THRESHOLD = 0.80
STRUCTURE_THRESHOLD = 0.7


def is_same_parameter(p1: Parameter, p2: Parameter) -> bool:
    return compare(p1, p2) >= SAME_PARAMETER_THRESHOLD


def compare(p1: Parameter, p2: Parameter) -> float:
    if p1.type != p2.type:
        return 0.0

    path1 = _endpoint(p1)
    path2 = _endpoint(p2)
    same_path = path1 is not None and path1 == path2

    # Same field reused by several methods of one resource
    if same_path and p1.name == p2.name:
        return 1.0
    # Two different fields of the same operation
    if same_path and p1.name != p2.name and _method(p1) == _method(p2):
        return 0.0
    if is_semantic_conflict(p1.name, p2.name):
        return 0.0

    return deep_similarity(p1, path1 or '', p2, path2 or '')


def deep_similarity(p1: Parameter, path1: str, p2: Parameter, path2: str) -> float:
    score = description_similarity(p1.description, p2.description) * WEIGHT_DESCRIPTION
    score += schema_similarity(p1, p2) * WEIGHT_SCHEMA

    resource_score = 0.0
    loc1, loc2 = p1.location, p2.location

    if loc1 == ParameterLocation.PATH and loc2 == ParameterLocation.PATH:
        res1 = extract_path_resource_context(path1, p1)
        res2 = extract_path_resource_context(path2, p2)
        if res1 == res2:
            resource_score = 0.2 * string_similarity(p1.name, p2.name) + 0.8
        elif p1.name == p2.name:
            resource_score = 0.4
        else:
            score *= 0.5
    elif loc1 == ParameterLocation.PATH or loc2 == ParameterLocation.PATH:
        resource_score = string_similarity(p1.normalized_name, p2.normalized_name)
    elif p1.type == ParameterType.ARRAY:
        resource_score = _array_similarity(p1, p2)
        if resource_score is None:
            return 0.0
    elif p1.table_path is not None and p2.table_path is not None:
        if _same_parent(p1, p2):
            if p1.table_path == p2.table_path:
                resource_score = 1.0
            else:
                resource_score = string_similarity(p1.normalized_name, p2.normalized_name)
        else:
            resource_score = string_similarity(p1.table_path, p2.table_path)
    elif p1.table_path is not None or p2.table_path is not None:
        # A nested field never merges with a top-level one
        score = 0.0
    else:
        resource_score = string_similarity(p1.normalized_name, p2.normalized_name)

    score += resource_score * WEIGHT_RESOURCE
    return min(score, 1.0)


def _array_similarity(p1: Parameter, p2: Parameter) -> Optional[float]:
    """Similarity of two arrays, or None when their element types differ"""
    ref1 = p1.reference_element if isinstance(p1, ArrayParameter) else None
    ref2 = p2.reference_element if isinstance(p2, ArrayParameter) else None
    if ref1 is None or ref2 is None:
        if ref1 is None and ref2 is None:
            return string_similarity(p1.normalized_name, p2.normalized_name)
        return None
    if ref1.type != ref2.type:
        return None
    if ref1.type != ParameterType.OBJECT:
        return string_similarity(ref1.normalized_name, ref2.normalized_name)

    props1 = ref1.properties if isinstance(ref1, ObjectParameter) else []
    props2 = ref2.properties if isinstance(ref2, ObjectParameter) else []
    structure = object_similarity(props1, props2)
    return structure if structure >= STRUCTURE_THRESHOLD else 0.0


def _same_parent(p1: Parameter, p2: Parameter) -> bool:
    if p1.parent is None or p2.parent is None:
        return p1.parent is p2.parent
    return p1.parent.normalized_name == p2.parent.normalized_name and p1.parent.type == p2.parent.type


def description_similarity(desc1: Optional[str], desc2: Optional[str]) -> float:
    d1, d2 = normalize(desc1), normalize(desc2)
    if d1 and d2:
        return levenshtein_similarity(d1, d2)
    if not d1 and not d2:
        return 0.5
    return 0.0


def schema_similarity(p1: Parameter, p2: Parameter) -> float:
    """
    Fraction of matching schema constraints.

    Starts from one implicit matching check so a pair without any constraint
    scores 1.0. A PATH parameter paired with a QUERY/BODY one differs in style by
    construction: the style check counts as matched and the denominator grows.
    """
    matches = 1.0
    checks = 1.0
    no_path = 0.0

    if p1.format or p2.format:
        checks += 1
        if p1.format and p2.format and p1.format == p2.format:
            matches += 1

    if p1.style is not None or p2.style is not None:
        checks += 1
        if p1.style == p2.style:
            matches += 1
        if _path_vs_payload(p1.location, p2.location):
            matches += 1
            no_path += 1

    if p1.enum_values or p2.enum_values:
        checks += 1
        if p1.enum_values and p2.enum_values and p1.enum_values == p2.enum_values:
            matches += 1

    if p1.default is not None or p2.default is not None:
        checks += 1
        if p1.default == p2.default:
            matches += 1

    if p1.examples and p2.examples:
        checks += 1
        if p1.examples == p2.examples:
            matches += 1

    if checks == 1:
        return 1.0
    return matches / (checks + no_path)


def _path_vs_payload(loc1: ParameterLocation, loc2: ParameterLocation) -> bool:
    payload = (ParameterLocation.QUERY, ParameterLocation.BODY)
    return (loc1 == ParameterLocation.PATH and loc2 in payload) or \
        (loc2 == ParameterLocation.PATH and loc1 in payload)


def object_similarity(props1: List[Parameter], props2: List[Parameter]) -> float:
    """Jaccard index over {name:type} signatures of two property lists"""
    if not props1:
        return 1.0 if not props2 else 0.0
    if not props2:
        return 0.0
    set1 = {_signature(p) for p in props1}
    set2 = {_signature(p) for p in props2}
    union = set1 | set2
    if not union:
        return 0.0
    return len(set1 & set2) / len(union)


def _signature(param: Parameter) -> str:
    return f"{normalize(param.name)}:{param.type.value}"


def extract_path_resource_context(path: str, param: Parameter) -> str:
    """
    Resource a parameter belongs to.
    PATH parameters: the segment preceding ``{name}`` (or ``:name``).
    Others: the last literal segment. Defaults to ``root``.
    """
    segments = (path or '').split('/')
    if param.location == ParameterLocation.PATH:
        for i, segment in enumerate(segments):
            segment = segment.strip()
            if segment in ('{' + param.name + '}', ':' + param.name):
                if i > 0 and segments[i - 1]:
                    return segments[i - 1]
                return 'root'
    else:
        for segment in reversed(segments):
            segment = segment.strip()
            if not segment or '{' in segment or '}' in segment or segment.startswith(':'):
                continue
            return segment
    return 'root'


def string_similarity(s1: Optional[str], s2: Optional[str]) -> float:
    if s1 is None or s2 is None:
        return 0.0
    n1, n2 = normalize(s1), normalize(s2)
    if n1 == n2:
        return 1.0
    return levenshtein_similarity(n1, n2)


def normalize(s: Optional[Any]) -> str:
    if s is None:
        return ''
    return str(s).replace('_', '').replace('-', '').lower()


def levenshtein_similarity(a: str, b: str) -> float:
    """1 - edit_distance / max(len(a), len(b))"""
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0

    prev_row = list(range(len(b) + 1))
    for i in range(1, len(a) + 1):
        curr_row = [i] + [0] * len(b)
        for j in range(1, len(b) + 1):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            curr_row[j] = min(prev_row[j] + 1, curr_row[j - 1] + 1, prev_row[j - 1] + cost)
        prev_row = curr_row

    return 1.0 - prev_row[len(b)] / max(len(a), len(b))


def _endpoint(param: Parameter) -> Optional[str]:
    return param.operation.endpoint if param.operation is not None else None


def _method(param: Parameter):
    return param.operation.method if param.operation is not None else None
