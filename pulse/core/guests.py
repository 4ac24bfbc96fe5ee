# -*- coding: utf-8 -*-
"""
Pulse guest helpers - Layer 2
Identity, role, node names and metric lookups for guest records.

Guests are the plain dicts the poller sends (id/vmid, name, type, status,
node, shared, primaryNode, tags). Nothing in here mutates them.
"""

import re
import logging
from enum import Enum

from pulse.constants import NETWORK_MBPS_DIVISOR, CPU_PERCENT_PRECISION


class GuestRole(str, Enum):
    PRIMARY = 'primary'
    SECONDARY = 'secondary'
    NONE = 'none'


_TRAILING_DIGITS = re.compile(r'(\d+)$')


def guest_id(guest):
    """id the metrics tables are keyed by - falls back to vmid"""
    gid = guest.get('id')
    if gid is None or gid == '':
        gid = guest.get('vmid')
    return gid


def extract_numeric_id(full_id) -> str:
    """Pull the numeric vmid out of ids like "qemu/105", "qemu/105:node-1" or "node-1-ct-105"."""
    if full_id is None or full_id == '':
        return ''
    full_id = str(full_id)

    if '/' in full_id:
        parts = full_id.split('/')
        if len(parts) > 1:
            return parts[1].split(':')[0]

    match = _TRAILING_DIGITS.search(full_id)
    if match:
        return match.group(1)

    return full_id


def get_node_name(node_id, nodes):
    # unknown node -> raw id, the table just shows the id then
    if not node_id or not nodes:
        return node_id
    for node in nodes:
        if node.get('id') == node_id:
            return node.get('name') or node_id
    return node_id


def _lookup(table, gid):
    if not table or gid is None:
        return None
    entry = table.get(gid)
    if entry is None:
        entry = table.get(str(gid))
    return entry


def get_metric_entry(metrics, resource, gid):
    if not metrics:
        return None
    return _lookup(metrics.get(resource), gid)


def get_metrics_for_guest(gid, metrics):
    if not metrics or gid is None:
        return None
    return {
        'cpu': get_metric_entry(metrics, 'cpu', gid),
        'memory': get_metric_entry(metrics, 'memory', gid),
        'disk': get_metric_entry(metrics, 'disk', gid),
        'network': get_metric_entry(metrics, 'network', gid),
    }


def is_vm(guest) -> bool:
    return guest.get('type') == 'qemu'


def guest_role(guest) -> GuestRole:
    if not guest.get('shared'):
        return GuestRole.NONE
    if guest.get('primaryNode') == guest.get('node'):
        return GuestRole.PRIMARY
    return GuestRole.SECONDARY


def _number(value):
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


# =====================================================
# METRIC VALUES AT THE MATCHER BOUNDARY
# everything below returns None when there is no data
# =====================================================

def cpu_percent(guest, metrics):
    """cpu usage as 0-100. The metrics table stores it as a 0-1 fraction."""
    entry = get_metric_entry(metrics, 'cpu', guest_id(guest))
    if not entry:
        return None
    usage = _number(entry.get('usage'))
    if usage is None:
        return None
    return round(usage * 100, CPU_PERCENT_PRECISION)


def memory_percent(guest, metrics):
    entry = get_metric_entry(metrics, 'memory', guest_id(guest))
    if not entry:
        return None
    return _number(entry.get('usagePercent'))


def disk_percent(guest, metrics):
    entry = get_metric_entry(metrics, 'disk', guest_id(guest))
    if not entry:
        return None
    return _number(entry.get('usagePercent'))


def network_mbps(guest, metrics):
    entry = get_metric_entry(metrics, 'network', guest_id(guest))
    if not entry:
        return None
    in_rate = _number(entry.get('inRate'))
    out_rate = _number(entry.get('outRate'))
    if in_rate is None and out_rate is None:
        return None
    return ((in_rate or 0) + (out_rate or 0)) / NETWORK_MBPS_DIVISOR


_RESOURCE_READERS = {
    'cpu': cpu_percent,
    'memory': memory_percent,
    'mem': memory_percent,
    'disk': disk_percent,
    'network': network_mbps,
    'net': network_mbps,
}

_RESOURCE_TABLES = {
    'cpu': 'cpu',
    'memory': 'memory',
    'mem': 'memory',
    'disk': 'disk',
    'network': 'network',
    'net': 'network',
}


def resource_value(guest, resource, metrics):
    """Current value of cpu/memory/mem/disk/network/net, in the units search terms use."""
    reader = _RESOURCE_READERS.get(resource)
    if reader is None:
        return None
    return reader(guest, metrics)


def has_resource_data(guest, resource, metrics) -> bool:
    table = _RESOURCE_TABLES.get(resource)
    if table is None:
        return False
    entries = get_metrics_for_guest(guest_id(guest), metrics)
    return bool(entries and entries[table])


def canonical_resource(resource):
    return _RESOURCE_TABLES.get(resource, resource)


# =====================================================
# SEARCHABLE TEXT
# =====================================================

def split_tags(tags):
    if not tags:
        return []
    return [t.strip() for t in str(tags).split(',') if t.strip()]


def build_searchable_text(guest, nodes=None) -> str:
    """
    Lower-cased blob every plain substring search runs against.

    name, id, status, type words (vm virtual machine / ct container), node
    name + node id, role words (shared role primary|secondary, or none),
    each tag and the raw tag string. Metric words are left out on purpose,
    typing "cpu" must not match on text.
    """
    fields = []

    name = guest.get('name')
    if name:
        fields.append(str(name))
    gid = guest_id(guest)
    if gid is not None and gid != '':
        fields.append(str(gid))
    status = guest.get('status')
    if status:
        fields.append(str(status))

    if is_vm(guest):
        fields.extend(('vm', 'virtual', 'machine'))
    else:
        fields.extend(('ct', 'container'))

    node = guest.get('node')
    node_name = get_node_name(node, nodes)
    if node_name:
        fields.append(str(node_name))
    if node:
        fields.append(str(node))

    role = guest_role(guest)
    if role == GuestRole.NONE:
        fields.append('none')
    else:
        fields.extend(('shared', 'role', role.value))

    tags = guest.get('tags')
    if tags:
        fields.extend(split_tags(tags))
        fields.append(str(tags))

    return ' '.join(fields).lower()


# =====================================================
# NODE SELECTOR
# =====================================================

def get_node_filtered_guests(guests, selected_node):
    """Guests on one node, 'all' keeps everyone. Guests without a node are dropped."""
    if not isinstance(guests, list):
        logging.warning(f"[SEARCH] node filter got {type(guests).__name__} instead of a guest list")
        return []

    if not selected_node or selected_node == 'all':
        return list(guests)

    filtered = [g for g in guests if g.get('node') and g.get('node') == selected_node]
    logging.debug(f"[SEARCH] node {selected_node}: {len(filtered)}/{len(guests)} guests")
    return filtered
