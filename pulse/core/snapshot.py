# -*- coding: utf-8 -*-
"""
Pulse snapshot store - Layer 2
Latest guests/nodes/metrics pushed by the poller, plus an optional JSON copy on disk.

The poller sends the whole state every cycle, we never merge - replace it.
"""

import os
import json
import logging
from datetime import datetime

from pulse import globals as g

METRIC_TABLES = ('cpu', 'memory', 'disk', 'network')


class SnapshotError(ValueError):
    """Payload from the poller doesn't look like a snapshot"""


def validate_snapshot(payload):
    """Check + normalize a pushed snapshot, returns {guests, nodes, metrics}."""
    if not isinstance(payload, dict):
        raise SnapshotError('Snapshot must be a JSON object')

    guests = payload.get('guests')
    if guests is None:
        guests = []
    if not isinstance(guests, list):
        raise SnapshotError("'guests' must be a list")
    for i, guest in enumerate(guests):
        if not isinstance(guest, dict):
            raise SnapshotError(f"guest #{i} is not an object")
        gid = guest.get('id', guest.get('vmid'))
        if gid is None or gid == '':
            raise SnapshotError(f"guest #{i} has no id")

    nodes = payload.get('nodes')
    if nodes is None:
        nodes = []
    if not isinstance(nodes, list) or not all(isinstance(n, dict) for n in nodes):
        raise SnapshotError("'nodes' must be a list of objects")

    raw_metrics = payload.get('metrics')
    if raw_metrics is None:
        raw_metrics = {}
    if not isinstance(raw_metrics, dict):
        raise SnapshotError("'metrics' must be an object")

    metrics = {}
    for table in METRIC_TABLES:
        entries = raw_metrics.get(table)
        if entries is None:
            entries = {}
        if not isinstance(entries, dict):
            raise SnapshotError(f"'metrics.{table}' must be an object keyed by guest id")
        metrics[table] = entries

    return {'guests': guests, 'nodes': nodes, 'metrics': metrics}


def update_snapshot(payload, updated_at=None):
    snapshot = validate_snapshot(payload)
    snapshot['updated_at'] = updated_at or datetime.now().isoformat()

    with g.snapshot_lock:
        g.guest_snapshot = snapshot

    logging.info(f"[SNAPSHOT] {len(snapshot['guests'])} guests, {len(snapshot['nodes'])} nodes")
    return snapshot


def get_snapshot():
    """Shallow copy of the current snapshot, safe to query without holding the lock"""
    with g.snapshot_lock:
        current = g.guest_snapshot
        return {
            'guests': list(current['guests']),
            'nodes': list(current['nodes']),
            'metrics': dict(current['metrics']),
            'updated_at': current['updated_at'],
        }


def save_snapshot_file(path):
    if not path:
        return False
    snapshot = get_snapshot()
    tmp_path = f"{path}.tmp"
    try:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(tmp_path, 'w') as f:
            json.dump(snapshot, f)
        os.replace(tmp_path, path)
        return True
    except (OSError, TypeError, ValueError) as e:
        logging.error(f"[SNAPSHOT] Failed to save snapshot to {path}: {e}")
        return False


def load_snapshot_file(path):
    """Restore the last snapshot from disk. Missing/broken file just means we wait for the poller."""
    if not path or not os.path.exists(path):
        return False
    try:
        with open(path, 'r') as f:
            payload = json.load(f)
        update_snapshot(payload, updated_at=payload.get('updated_at') if isinstance(payload, dict) else None)
        logging.info(f"[SNAPSHOT] Restored snapshot from {path}")
        return True
    except (OSError, ValueError) as e:
        # SnapshotError is a ValueError too
        logging.error(f"[SNAPSHOT] Could not load snapshot from {path}: {e}")
        return False
