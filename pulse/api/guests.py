# -*- coding: utf-8 -*-
"""guest table routes - filtered/sorted views over the current snapshot"""

import logging
from flask import Blueprint, jsonify, request

from pulse.core.snapshot import get_snapshot
from pulse.core.guests import get_node_filtered_guests
from pulse.core.query import filter_and_sort
from pulse.core.columns import get_active_filtered_columns
from pulse.api.helpers import (
    QueryParamError, parse_search_terms, parse_sort, parse_status_filter,
    parse_guest_type, parse_metric_filters, safe_error,
)

bp = Blueprint('guests', __name__)


def _run_query(node, sort, metric_filters, status_filter, search_terms, single_term, guest_type):
    snapshot = get_snapshot()
    guests = get_node_filtered_guests(snapshot['guests'], node or 'all')

    result = filter_and_sort(
        guests,
        sort=sort,
        metric_filters=metric_filters,
        status_filter=status_filter,
        search_terms=search_terms,
        single_search_term=single_term,
        metrics=snapshot['metrics'],
        guest_type_filter=guest_type,
        nodes=snapshot['nodes'],
    )
    columns = get_active_filtered_columns(
        metric_filters=metric_filters,
        search_terms=search_terms,
        single_search_term=single_term,
        guest_type_filter=guest_type,
        status_filter=status_filter,
        nodes=snapshot['nodes'],
    )

    return jsonify({
        'guests': result,
        'total': len(snapshot['guests']),
        'count': len(result),
        'columns': columns,
        'updated_at': snapshot['updated_at'],
    })


@bp.route('/api/guests', methods=['GET'])
def list_guests():
    """Guest list for the dashboard table

    ?search=a&search=b or ?search=a,b  - AND combined terms
    ?q=...                             - whatever is still in the search box
    ?sort=cpu&direction=desc, ?status=running|stopped, ?type=vm|lxc, ?node=pve1
    ?cpu=50&memory=...&disk=...&download=...&upload=... - slider thresholds
    """
    try:
        search_terms = parse_search_terms(request.args.getlist('search'))
        sort = parse_sort(request.args.get('sort'), request.args.get('direction'))
        status_filter = parse_status_filter(request.args.get('status'))
        guest_type = parse_guest_type(request.args.get('type'))
        metric_filters = parse_metric_filters(request.args)
    except QueryParamError as e:
        return jsonify({'error': str(e)}), 400

    try:
        return _run_query(
            request.args.get('node'), sort, metric_filters, status_filter,
            search_terms, request.args.get('q', ''), guest_type,
        )
    except Exception as e:
        return jsonify({'error': safe_error(e, 'Failed to filter guests')}), 500


@bp.route('/api/guests/search', methods=['POST'])
def search_guests():
    """Same as GET /api/guests but from a json body, terms may contain commas here"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'Expected a JSON object'}), 400

    raw_terms = data.get('search_terms') or []
    if not isinstance(raw_terms, list):
        return jsonify({'error': "'search_terms' must be a list"}), 400
    search_terms = [str(t) for t in raw_terms if t is not None]

    sort_data = data.get('sort') or {}
    if not isinstance(sort_data, dict):
        return jsonify({'error': "'sort' must be an object"}), 400
    filters_data = data.get('filters') or {}
    if not isinstance(filters_data, dict):
        return jsonify({'error': "'filters' must be an object"}), 400

    try:
        sort = parse_sort(sort_data.get('key'), sort_data.get('direction'))
        status_filter = parse_status_filter(data.get('status'))
        guest_type = parse_guest_type(data.get('type'))
        metric_filters = parse_metric_filters(filters_data)
    except QueryParamError as e:
        return jsonify({'error': str(e)}), 400

    single_term = data.get('search_term') or ''
    logging.debug(f"[API] guest search terms={search_terms} term={single_term!r}")

    try:
        return _run_query(
            data.get('node'), sort, metric_filters, status_filter,
            search_terms, str(single_term), guest_type,
        )
    except Exception as e:
        return jsonify({'error': safe_error(e, 'Failed to filter guests')}), 500
