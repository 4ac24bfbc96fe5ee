# -*- coding: utf-8 -*-
"""
Pulse query engine - Layer 3
Turns the dashboard's search box + filter controls into a filtered, sorted guest list.

Term grammar (lowest precedence first):

    term    := branch ('|' branch)*        any branch may match
    branch  := atom (whitespace atom)*     every atom must match
    atom    := see ATOM_RULES, first rule that applies decides

`|` binds looser than whitespace, so "primary running|stopped" means
(primary AND running) OR stopped. Metric expressions ("cpu > 50") and the
"virtual machine" alias stay one atom even though they contain spaces.

Separate entries in the search term list are AND-combined on top of that.
"""

import re
import math
import logging
import operator
from enum import Enum

from pulse.constants import (
    METRIC_RESOURCES, NETWORK_SLIDER_FACTOR,
    VM_ALIASES, CONTAINER_ALIASES,
    SHARED_KEYWORDS, PRIMARY_KEYWORDS, SECONDARY_KEYWORDS,
    ROLE_COLUMN_PRIMARY, ROLE_COLUMN_SECONDARY, ROLE_COLUMN_NONE,
)
from pulse.core.guests import (
    GuestRole, guest_id, guest_role, is_vm, extract_numeric_id, get_node_name,
    build_searchable_text, resource_value, has_resource_data,
    cpu_percent, memory_percent, disk_percent, get_metric_entry,
)
from pulse.core.sorting import sort_guests


class StatusFilter(str, Enum):
    ALL = 'all'
    RUNNING = 'running'
    STOPPED = 'stopped'


_RESOURCE = r'(?:cpu|memory|mem|disk|network|net)'
_OP = r'(?:>=|<=|>|<|=)'
_NUMBER = r'\d+(?:\.\d+)?'

METRIC_EXPRESSION_RE = re.compile(rf'^({_RESOURCE})\s*({_OP})\s*({_NUMBER})$')
METRIC_INCOMPLETE_RE = re.compile(rf'^({_RESOURCE})\s*({_OP})$')
METRIC_MALFORMED_RE = re.compile(rf'^({_RESOURCE})\s*({_OP})\s*\S')
COLUMN_VALUE_RE = re.compile(rf'^({_OP})\s*({_NUMBER})?$')

# metric expressions and "virtual machine" survive the whitespace split,
# "cpu > web" stays one (malformed) atom
_TOKEN_RE = re.compile(
    rf'{_RESOURCE}\s*{_OP}(?:\s*{_NUMBER}(?=\s|$)|\s*$|\s*\S+)'
    r'|virtual\s+machine(?=\s|$)'
    r'|\S+'
)

_COMPARATORS = {
    '>': operator.gt,
    '<': operator.lt,
    '>=': operator.ge,
    '<=': operator.le,
    '=': lambda a, b: math.isclose(a, b, rel_tol=0.0, abs_tol=1e-9),
}


class _GuestView:
    """One guest plus everything the atom rules read, searchable text built once per query."""

    __slots__ = ('guest', 'nodes', 'metrics', '_text')

    def __init__(self, guest, nodes, metrics):
        self.guest = guest
        self.nodes = nodes
        self.metrics = metrics
        self._text = None

    @property
    def text(self):
        if self._text is None:
            self._text = build_searchable_text(self.guest, self.nodes)
        return self._text


# =====================================================
# ATOM RULES
# each rule returns None when it does not apply, else the match result
# =====================================================

def _rule_empty(view, term):
    if not term:
        return True
    return None


def _rule_type_alias(view, term):
    if term in CONTAINER_ALIASES:
        return not is_vm(view.guest)
    if term in VM_ALIASES:
        return is_vm(view.guest)
    return None


def _compare(value, op, threshold):
    # no data never satisfies a comparison
    if value is None:
        return False
    return _COMPARATORS[op](value, threshold)


def _match_metric_column(view, resource, value):
    col = COLUMN_VALUE_RE.match(value)
    if col:
        op, number = col.group(1), col.group(2)
        if number is None:
            return has_resource_data(view.guest, resource, view.metrics)
        return _compare(resource_value(view.guest, resource, view.metrics), op, float(number))

    try:
        threshold = float(value)
    except ValueError:
        return False
    if math.isnan(threshold):
        return False
    return _compare(resource_value(view.guest, resource, view.metrics), '>=', threshold)


def _match_role_column(view, value):
    role = guest_role(view.guest)
    if value in ROLE_COLUMN_PRIMARY:
        return role == GuestRole.PRIMARY
    if value in ROLE_COLUMN_SECONDARY:
        return role == GuestRole.SECONDARY
    if value in ROLE_COLUMN_NONE:
        return role == GuestRole.NONE
    if value == 'shared':
        return role != GuestRole.NONE
    return value in view.text


def _match_type_column(view, value):
    gtype = str(view.guest.get('type') or '').lower()
    if value in ('qemu', 'lxc'):
        return gtype == value
    if value in ('vm', 'virtual'):
        return is_vm(view.guest)
    if value in ('ct', 'container'):
        return not is_vm(view.guest)
    return value in view.text


def _rule_column(view, term):
    if ':' not in term:
        return None

    prefix, value = term.split(':', 1)
    prefix = prefix.strip()
    value = value.strip()

    # "role:" while still typing keeps every row
    if not value:
        return True

    guest = view.guest
    if prefix == 'name':
        return value in str(guest.get('name') or '').lower()
    if prefix == 'id':
        gid = guest_id(guest)
        return value in ('' if gid is None else str(gid)).lower()
    if prefix == 'status':
        return value in str(guest.get('status') or '').lower()
    if prefix == 'node':
        node = guest.get('node')
        node_name = get_node_name(node, view.nodes)
        return value in str(node or '').lower() or value in str(node_name or '').lower()
    if prefix == 'type':
        return _match_type_column(view, value)
    if prefix == 'role':
        return _match_role_column(view, value)
    if prefix in METRIC_RESOURCES:
        return _match_metric_column(view, prefix, value)

    return value in view.text


def _rule_metric_expression(view, term):
    match = METRIC_EXPRESSION_RE.match(term)
    if match:
        resource, op, number = match.groups()
        return _compare(resource_value(view.guest, resource, view.metrics), op, float(number))

    match = METRIC_INCOMPLETE_RE.match(term)
    if match:
        # "cpu>" mid-typing: keep whoever has cpu data instead of blanking the table
        return has_resource_data(view.guest, match.group(1), view.metrics)

    if METRIC_MALFORMED_RE.match(term):
        return False
    return None


def _rule_resource_keyword(view, term):
    if term in METRIC_RESOURCES:
        return True
    return None


def _rule_single_char(view, term):
    if len(term) != 1:
        return None
    if term.isdigit():
        return extract_numeric_id(guest_id(view.guest)).startswith(term)
    return term in view.text


def _rule_role_keyword(view, term):
    if term in SHARED_KEYWORDS:
        return guest_role(view.guest) != GuestRole.NONE
    if term in PRIMARY_KEYWORDS:
        return guest_role(view.guest) == GuestRole.PRIMARY
    if term in SECONDARY_KEYWORDS:
        return guest_role(view.guest) == GuestRole.SECONDARY
    return None


def _rule_substring(view, term):
    return term in view.text


ATOM_RULES = (
    ('empty', _rule_empty),
    ('type_alias', _rule_type_alias),
    ('column', _rule_column),
    ('metric_expression', _rule_metric_expression),
    ('resource_keyword', _rule_resource_keyword),
    ('single_char', _rule_single_char),
    ('role_keyword', _rule_role_keyword),
    ('substring', _rule_substring),
)


def classify_atom(term):
    """Name of the rule that decides an atom - handy for debugging odd searches."""
    term = term.strip().lower()
    probe = _GuestView({}, None, None)
    for name, rule in ATOM_RULES:
        if rule(probe, term) is not None:
            return name
    return 'substring'


def _match_atom(view, term):
    for _name, rule in ATOM_RULES:
        result = rule(view, term)
        if result is not None:
            return result
    return False


# =====================================================
# OR / AND EVALUATOR
# =====================================================

def tokenize(branch):
    return [t.strip() for t in _TOKEN_RE.findall(branch) if t.strip()]


def split_or(term):
    return [b.strip() for b in term.split('|') if b.strip()]


def _match_branch(view, branch):
    tokens = tokenize(branch)
    if len(tokens) <= 1:
        return _match_atom(view, tokens[0] if tokens else '')
    return all(_match_atom(view, t) for t in tokens)


def _match_view(view, term):
    term = (term or '').strip().lower()
    if not term:
        return True

    if '|' in term:
        branches = split_or(term)
        if not branches:
            return True
        return any(_match_branch(view, b) for b in branches)

    return _match_branch(view, term)


def matches_term(guest, term, nodes=None, metrics=None) -> bool:
    """Does a single raw search term match this guest"""
    return _match_view(_GuestView(guest, nodes, metrics), term)


def collect_search_terms(search_terms=None, single_search_term=''):
    """Outer AND list: the term chips plus whatever is still in the search box, no duplicates."""
    terms = []
    seen = set()
    candidates = list(search_terms or [])
    if single_search_term:
        candidates.append(single_search_term)
    for term in candidates:
        if term is None:
            continue
        key = str(term).strip().lower()
        if not key or key in seen:
            continue
        seen.add(key)
        terms.append(key)
    return terms


def apply_search_terms(guests, terms, nodes=None, metrics=None):
    if not terms:
        return list(guests)
    result = []
    for guest in guests:
        view = _GuestView(guest, nodes, metrics)
        if all(_match_view(view, term) for term in terms):
            result.append(guest)
    return result


# =====================================================
# FILTER STAGES
# =====================================================

def normalize_status_filter(status_filter):
    if status_filter is None:
        return StatusFilter.ALL
    if isinstance(status_filter, StatusFilter):
        return status_filter
    try:
        return StatusFilter(str(status_filter).strip().lower())
    except ValueError:
        logging.warning(f"[SEARCH] unknown status filter {status_filter!r}, showing all")
        return StatusFilter.ALL


def filter_by_type(guests, guest_type_filter):
    wanted = str(guest_type_filter or 'all').strip().lower()
    if wanted == 'all':
        return list(guests)
    if wanted in ('vm', 'qemu'):
        return [g for g in guests if is_vm(g)]
    if wanted in ('lxc', 'ct', 'container'):
        return [g for g in guests if not is_vm(g)]
    logging.warning(f"[SEARCH] unknown guest type filter {guest_type_filter!r}, ignoring")
    return list(guests)


def filter_by_status(guests, status_filter):
    status_filter = normalize_status_filter(status_filter)
    if status_filter == StatusFilter.ALL:
        return list(guests)
    if status_filter == StatusFilter.RUNNING:
        return [g for g in guests if str(g.get('status') or '').lower() == 'running']
    # stopped = everything that isn't running (paused/suspended included)
    return [g for g in guests if str(g.get('status') or '').lower() != 'running']


def _threshold(metric_filters, key):
    value = metric_filters.get(key)
    if value is None or isinstance(value, bool):
        return None
    try:
        value = float(value)
    except (TypeError, ValueError):
        logging.warning(f"[SEARCH] ignoring non-numeric {key} filter {value!r}")
        return None
    if math.isnan(value) or value <= 0:
        return None
    return value


def _network_rate(guest, metrics, field):
    entry = get_metric_entry(metrics, 'network', guest_id(guest))
    if not entry:
        return None
    rate = entry.get(field)
    if rate is None:
        return None
    try:
        return float(rate)
    except (TypeError, ValueError):
        return None


def apply_metric_filters(guests, metric_filters, metrics=None):
    """Slider filters, each keeps guests at or above its threshold. No data = filtered out."""
    if not metric_filters:
        return list(guests)

    readers = {
        'cpu': lambda g: cpu_percent(g, metrics),
        'memory': lambda g: memory_percent(g, metrics),
        'disk': lambda g: disk_percent(g, metrics),
    }

    result = list(guests)
    for key, reader in readers.items():
        threshold = _threshold(metric_filters, key)
        if threshold is None:
            continue
        result = [g for g in result if _compare(reader(g), '>=', threshold)]

    for key, field in (('download', 'inRate'), ('upload', 'outRate')):
        threshold = _threshold(metric_filters, key)
        if threshold is None:
            continue
        bytes_per_sec = threshold * NETWORK_SLIDER_FACTOR
        result = [g for g in result if _compare(_network_rate(g, metrics, field), '>=', bytes_per_sec)]

    return result


def filter_and_sort(
    guests,
    sort=None,
    metric_filters=None,
    status_filter=StatusFilter.ALL,
    search_terms=(),
    single_search_term='',
    metrics=None,
    guest_type_filter='all',
    nodes=None,
):
    """
    Filtered + sorted copy of the guest list.

    Stages run in order: guest type, status, search terms (AND across terms),
    metric sliders, sort. Never raises for bad input, a missing or non-list
    guest list just gives [].
    """
    if not guests or not isinstance(guests, (list, tuple)):
        return []

    result = filter_by_type(guests, guest_type_filter)
    result = filter_by_status(result, status_filter)

    terms = collect_search_terms(search_terms, single_search_term)
    if terms:
        result = apply_search_terms(result, terms, nodes, metrics)

    result = apply_metric_filters(result, metric_filters, metrics)

    if sort:
        result = sort_guests(result, sort, metrics)

    logging.debug(f"[SEARCH] {len(result)}/{len(guests)} guests after filters, terms={terms}")
    return result
