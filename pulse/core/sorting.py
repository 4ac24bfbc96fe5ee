# -*- coding: utf-8 -*-
"""
Pulse guest sorting - Layer 2
Sort keys for the guest table columns.
"""

import logging

from pulse.constants import STATUS_SORT_PRIORITY, STATUS_SORT_DEFAULT
from pulse.core.guests import (
    GuestRole, guest_id, guest_role, is_vm, extract_numeric_id, get_metric_entry,
)

_ROLE_ORDER = {
    GuestRole.PRIMARY: 0,
    GuestRole.SECONDARY: 1,
    GuestRole.NONE: 2,
}


def _num(value):
    if value is None or isinstance(value, bool):
        return 0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0


def _metric_key(metrics, resource, field):
    def key(guest):
        entry = get_metric_entry(metrics, resource, guest_id(guest))
        return _num(entry.get(field)) if entry else 0
    return key


def _network_key(metrics):
    def key(guest):
        entry = get_metric_entry(metrics, 'network', guest_id(guest))
        if not entry:
            return 0
        return _num(entry.get('inRate')) + _num(entry.get('outRate'))
    return key


def _id_key(guest):
    # numeric ids first, numerically; anything unparsable after them by text
    raw = extract_numeric_id(guest_id(guest))
    try:
        return (0, int(raw), '')
    except ValueError:
        return (1, 0, raw.lower())


def _status_key(guest):
    status = str(guest.get('status') or '').lower()
    return STATUS_SORT_PRIORITY.get(status, STATUS_SORT_DEFAULT)


def _type_key(guest):
    return 1 if is_vm(guest) else 0


def _role_key(guest):
    return (_ROLE_ORDER[guest_role(guest)], str(guest.get('name') or '').lower())


def _text_key(field):
    def key(guest):
        value = guest.get(field)
        return '' if value is None else str(value).lower()
    return key


def get_sort_key(sort_key, metrics=None):
    if sort_key == 'cpu':
        return _metric_key(metrics, 'cpu', 'usage')
    if sort_key in ('memory', 'disk'):
        return _metric_key(metrics, sort_key, 'usagePercent')
    if sort_key == 'download':
        return _metric_key(metrics, 'network', 'inRate')
    if sort_key == 'upload':
        return _metric_key(metrics, 'network', 'outRate')
    if sort_key == 'network':
        return _network_key(metrics)
    if sort_key == 'uptime':
        return lambda g: _num(g.get('uptime'))
    if sort_key == 'id':
        return _id_key
    if sort_key == 'status':
        return _status_key
    if sort_key == 'type':
        return _type_key
    if sort_key == 'role':
        return _role_key
    return _text_key(sort_key)


def sort_guests(guests, sort, metrics=None):
    """
    Stable sort of a guest list by a column.

    sort is {'key': ..., 'direction': 'asc'|'desc'}. Equal keys keep their
    input order in both directions (sorted() with reverse=True is stable too).
    """
    if not sort or not sort.get('key'):
        return list(guests)

    direction = str(sort.get('direction') or 'asc').lower()
    if direction not in ('asc', 'desc'):
        logging.debug(f"[SEARCH] unknown sort direction {direction!r}, using asc")
        direction = 'asc'

    return sorted(guests, key=get_sort_key(sort['key'], metrics), reverse=direction == 'desc')
