# -*- coding: utf-8 -*-
"""snapshot ingest + health routes"""

import logging
from flask import Blueprint, jsonify, request

from pulse.constants import PULSE_VERSION, PULSE_BUILD, SNAPSHOT_FILE
from pulse.core.snapshot import SnapshotError, update_snapshot, get_snapshot, save_snapshot_file
from pulse.api.helpers import safe_error

bp = Blueprint('state', __name__)


@bp.route('/api/health', methods=['GET'])
def health():
    snapshot = get_snapshot()
    return jsonify({
        'status': 'ok',
        'version': PULSE_VERSION,
        'build': PULSE_BUILD,
        'guests': len(snapshot['guests']),
        'nodes': len(snapshot['nodes']),
        'updated_at': snapshot['updated_at'],
    })


@bp.route('/api/state', methods=['PUT', 'POST'])
def push_state():
    """Poller pushes the full guests/nodes/metrics state here every cycle"""
    if not request.is_json:
        return jsonify({'error': 'Expected application/json'}), 415

    payload = request.get_json(silent=True)
    if payload is None:
        return jsonify({'error': 'Invalid JSON body'}), 400

    try:
        snapshot = update_snapshot(payload)
    except SnapshotError as e:
        logging.warning(f"[API] Rejected snapshot: {e}")
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        return jsonify({'error': safe_error(e, 'Failed to store snapshot')}), 500

    if SNAPSHOT_FILE:
        save_snapshot_file(SNAPSHOT_FILE)

    return jsonify({
        'success': True,
        'guests': len(snapshot['guests']),
        'nodes': len(snapshot['nodes']),
        'updated_at': snapshot['updated_at'],
    })
