"""Name-level vetoes that stop two parameters from ever sharing a column"""

ANTONYM_PAIRS = [
    ('include', 'exclude'),
    ('min', 'max'),
    ('start', 'end'),
    ('begin', 'finish'),
    ('first', 'last'),
    ('prev', 'next'),
    ('before', 'after'),
    ('width', 'height'),
    ('lat', 'lon'),
    ('latitude', 'longitude'),
]

# Suffixes that imply incompatible value domains
DATA_TYPE_CONFLICTS = [
    ('ip', 'url'),
    ('ip', 'uri'),
    ('ip', 'domain'),
    ('id', 'name'),
    ('id', 'title'),
    ('id', 'desc'),
    ('email', 'name'),
    ('email', 'username'),
    ('phone', 'email'),
]

NOISE_SUFFIXES = ['format', 'config', 'type', 'mode', 'style', 'value', 'str', 'list', 'array', 'info']


def normalize(name: str) -> str:
    return name.replace('_', '').replace('-', '').lower()


def is_semantic_conflict(name1: str, name2: str) -> bool:
    """True when two parameter names must not be merged, however similar they look"""
    if name1 is None or name2 is None:
        return False
    n1, n2 = normalize(name1), normalize(name2)
    if n1 == n2:
        return False
    return has_antonyms(n1, n2) or has_data_type_conflict(n1, n2) or has_stem_conflict(n1, n2)


def has_antonyms(n1: str, n2: str) -> bool:
    for a, b in ANTONYM_PAIRS:
        if (a in n1 and b in n2) or (b in n1 and a in n2):
            return True
    return False


def has_data_type_conflict(n1: str, n2: str) -> bool:
    for a, b in DATA_TYPE_CONFLICTS:
        if (n1.endswith(a) and n2.endswith(b)) or (n1.endswith(b) and n2.endswith(a)):
            return True
    return False


def has_stem_conflict(n1: str, n2: str) -> bool:
    """``start_date_format`` vs ``start_time_format``: same noise suffix, date vs time stem"""
    for suffix in NOISE_SUFFIXES:
        if n1.endswith(suffix) and n2.endswith(suffix):
            stem1 = n1[:-len(suffix)]
            stem2 = n2[:-len(suffix)]
            if stem1 and stem2 and _is_date_time_conflict(stem1, stem2):
                return True
    return False


def _is_date_time_conflict(s1: str, s2: str) -> bool:
    pure_date1 = 'date' in s1 and 'time' not in s1
    pure_time1 = 'time' in s1 and 'date' not in s1
    pure_date2 = 'date' in s2 and 'time' not in s2
    pure_time2 = 'time' in s2 and 'date' not in s2
    return (pure_date1 and pure_time2) or (pure_time1 and pure_date2)
