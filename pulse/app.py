# -*- coding: utf-8 -*-
"""
Pulse Flask App Factory
Creates and configures the Flask application.
"""

import sys
import logging
import signal

from flask import Flask, jsonify, request
from flask_cors import CORS
from flask_compress import Compress

from pulse.constants import (
    PULSE_VERSION, PULSE_HOST, PULSE_PORT, PULSE_DEBUG, MAX_REQUEST_SIZE, SNAPSHOT_FILE,
)
from pulse import globals as g
from pulse.api import register_blueprints


def get_allowed_origins():
    """CORS origins from PULSE_ALLOWED_ORIGINS, None = same-origin only"""
    origins = [o.strip() for o in (g._cors_origins_env or '').split(',') if o.strip() and o.strip() != '*']
    return origins or None


def create_app():
    """Flask application factory."""
    app = Flask(__name__)

    # only enable CORS if origins are explicitly set
    allowed_origins = get_allowed_origins()
    if allowed_origins:
        CORS(app, resources={
            r"/api/*": {
                "origins": allowed_origins,
                "methods": ["GET", "POST", "PUT", "OPTIONS"],
                "allow_headers": ["Content-Type"],
            }
        })

    # guest lists compress really well
    app.config['COMPRESS_MIMETYPES'] = ['application/json', 'text/plain']
    app.config['COMPRESS_LEVEL'] = 6
    app.config['COMPRESS_MIN_SIZE'] = 500
    Compress(app)

    app.config['MAX_CONTENT_LENGTH'] = MAX_REQUEST_SIZE

    @app.before_request
    def validate_request():
        if request.content_length and request.content_length > MAX_REQUEST_SIZE:
            return jsonify({'error': f'Request too large. Max {MAX_REQUEST_SIZE // (1024*1024)} MB'}), 413

        if request.method in ('POST', 'PUT') and request.content_length:
            content_type = request.content_type or ''
            if 'application/json' not in content_type:
                return jsonify({'error': 'Invalid Content-Type'}), 415

        return None

    @app.after_request
    def add_security_headers(response):
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        return response

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({'error': 'Method not allowed'}), 405

    register_blueprints(app)

    return app


def main(debug_mode=False):
    """Main entry point - starts the Pulse API server."""
    from pulse.core.snapshot import load_snapshot_file

    debug_mode = debug_mode or PULSE_DEBUG

    log_level = logging.DEBUG if debug_mode else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s [%(name)s] %(levelname)s: %(message)s' if debug_mode else '%(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    if not debug_mode:
        logging.getLogger('werkzeug').setLevel(logging.ERROR)
        logging.getLogger('gevent').setLevel(logging.ERROR)

    print(f"Pulse {PULSE_VERSION}")

    if SNAPSHOT_FILE:
        if load_snapshot_file(SNAPSHOT_FILE):
            print(f"  Restored last snapshot from {SNAPSHOT_FILE}")
        else:
            print("  No stored snapshot, waiting for the poller")

    app = create_app()

    try:
        from gevent.pywsgi import WSGIServer
    except ImportError:
        WSGIServer = None
        print("gevent not installed, using the Flask development server")
        print("  Install with: pip install gevent")

    if WSGIServer is None:
        app.run(host=PULSE_HOST, port=PULSE_PORT, debug=debug_mode, use_reloader=False)
        return

    print(f"HTTP on http://{PULSE_HOST}:{PULSE_PORT}")
    http_server = WSGIServer((PULSE_HOST, PULSE_PORT), app, log=None if not debug_mode else 'default')

    def signal_handler(signum, frame):
        print("\nShutting down gracefully...")
        http_server.stop()
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    http_server.serve_forever()
