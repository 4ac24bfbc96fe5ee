#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Pulse - guest search API for Proxmox VE / PBS dashboards

The poller pushes guests, nodes and metrics to /api/state, the dashboard
asks /api/guests for filtered + sorted tables.
"""

# gevent has to patch before anything else imports socket/threading
import os
import sys

USE_GEVENT = os.environ.get('PULSE_NO_GEVENT', '').lower() not in ('1', 'true', 'yes')

if USE_GEVENT:
    try:
        from gevent import monkey
        monkey.patch_all()
    except ImportError:
        pass


USAGE = """
Pulse Server

Usage:
  pulse-server [options]
  python pulse_dashboard.py [options]

Options:
  --debug           verbose logging
  --help, -h        this message

Env vars:
  PULSE_HOST                bind address (default 0.0.0.0)
  PULSE_PORT                port (default 7655)
  PULSE_ALLOWED_ORIGINS     cors origins, comma separated
  PULSE_MAX_REQUEST_SIZE    max request size in bytes (default 20MB)
  PULSE_SNAPSHOT_FILE       keep the last snapshot on disk here
  PULSE_NO_GEVENT           don't monkey-patch with gevent
"""


def run(argv=None):
    """Console entry point, the module import above has already patched"""
    argv = sys.argv[1:] if argv is None else argv
    if '--help' in argv or '-h' in argv:
        print(USAGE)
        return

    debug_mode = '--debug' in argv or os.environ.get('PULSE_DEBUG', '').lower() in ('1', 'true', 'yes')
    try:
        from pulse.app import main
    except ImportError as e:
        print(f"\n  Missing dependency: {e}")
        print("\n  Install the package first:")
        print("    pip install -e .\n")
        sys.exit(1)
    main(debug_mode=debug_mode)


if __name__ == '__main__':
    run()
