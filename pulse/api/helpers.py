# -*- coding: utf-8 -*-
"""shared helpers for the api routes - query parsing + error responses"""

import math
import logging

from pulse.constants import METRIC_FILTER_KEYS
from pulse.core.query import StatusFilter


class QueryParamError(ValueError):
    pass


def parse_search_terms(values):
    """Search chips come as repeated ?search= args and/or one comma separated arg"""
    terms = []
    for value in values or []:
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            terms.extend(parse_search_terms(value))
            continue
        for part in str(value).split(','):
            part = part.strip()
            if part:
                terms.append(part)
    return terms


def parse_sort(key, direction=None):
    if not key:
        return None
    direction = (direction or 'asc').lower()
    if direction not in ('asc', 'desc'):
        raise QueryParamError(f"direction must be 'asc' or 'desc', got {direction!r}")
    return {'key': key, 'direction': direction}


def parse_status_filter(value):
    if value is None or value == '':
        return StatusFilter.ALL
    try:
        return StatusFilter(str(value).strip().lower())
    except ValueError:
        raise QueryParamError(f"status must be one of all, running, stopped - got {value!r}")


def parse_guest_type(value):
    value = str(value or 'all').strip().lower()
    if value not in ('all', 'vm', 'qemu', 'lxc', 'ct', 'container'):
        raise QueryParamError(f"type must be all, vm or lxc - got {value!r}")
    return value


def parse_metric_filters(source):
    """cpu/memory/disk/download/upload thresholds from args or a json body, None when none are set"""
    filters = {}
    for key in METRIC_FILTER_KEYS:
        raw = source.get(key)
        if raw is None or raw == '':
            continue
        if isinstance(raw, bool):
            raise QueryParamError(f"{key} must be a number")
        try:
            value = float(raw)
        except (TypeError, ValueError):
            raise QueryParamError(f"{key} must be a number, got {raw!r}")
        if math.isnan(value) or value < 0:
            raise QueryParamError(f"{key} must be a positive number")
        filters[key] = value
    return filters or None


def safe_error(e, default_msg='An internal error occurred'):
    """Log the full exception, hand the client a generic message"""
    logging.error(f"[API] {default_msg}: {e}", exc_info=True)
    return default_msg
