# -*- coding: utf-8 -*-
"""
Pulse active filter columns - Layer 3
Which table columns the current query filters on, so the UI can highlight them.
"""

import re

from pulse.constants import STATUS_KEYWORDS, VM_ALIASES, CONTAINER_ALIASES
from pulse.core.guests import canonical_resource
from pulse.core.query import (
    METRIC_EXPRESSION_RE, METRIC_INCOMPLETE_RE, METRIC_MALFORMED_RE,
    collect_search_terms, normalize_status_filter, split_or, tokenize, StatusFilter,
)

_COLUMN_PREFIXES = {
    'name': 'name',
    'id': 'id',
    'node': 'node',
    'status': 'status',
    'type': 'type',
    'role': 'role',
    'cpu': 'cpu',
    'memory': 'memory',
    'mem': 'memory',
    'disk': 'disk',
    'network': 'network',
    'net': 'network',
}

_FILTER_COLUMNS = (
    ('cpu', 'cpu'),
    ('memory', 'memory'),
    ('disk', 'disk'),
    ('download', 'netIn'),
    ('upload', 'netOut'),
)

_DIGITS = re.compile(r'^\d+$')


def _atom_column(atom, nodes):
    if ':' in atom:
        prefix = atom.split(':', 1)[0].strip()
        if prefix in _COLUMN_PREFIXES:
            return _COLUMN_PREFIXES[prefix]

    for regex in (METRIC_EXPRESSION_RE, METRIC_INCOMPLETE_RE, METRIC_MALFORMED_RE):
        match = regex.match(atom)
        if match:
            return canonical_resource(match.group(1))

    resource = canonical_resource(atom)
    if resource in ('cpu', 'memory', 'disk', 'network'):
        return resource

    if atom in VM_ALIASES or atom in CONTAINER_ALIASES:
        return 'type'
    if _DIGITS.match(atom):
        return 'id'
    if atom in STATUS_KEYWORDS:
        return 'status'
    if atom in ('primary', 'pri', 'secondary', 'sec', 'shared', 'role'):
        return 'role'
    for node in nodes or []:
        name = str(node.get('name') or '').lower()
        nid = str(node.get('id') or '').lower()
        if (name and atom in name) or (nid and atom in nid):
            return 'node'
    return 'name'


def get_active_filtered_columns(
    metric_filters=None,
    search_terms=(),
    single_search_term='',
    guest_type_filter='all',
    status_filter=StatusFilter.ALL,
    nodes=None,
):
    columns = {}

    for key, column in _FILTER_COLUMNS:
        value = (metric_filters or {}).get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0:
            columns[column] = True

    for term in collect_search_terms(search_terms, single_search_term):
        for branch in split_or(term):
            for atom in tokenize(branch):
                columns[_atom_column(atom, nodes)] = True

    if str(guest_type_filter or 'all').lower() != 'all':
        columns['type'] = True
    if normalize_status_filter(status_filter) != StatusFilter.ALL:
        columns['status'] = True

    return columns
