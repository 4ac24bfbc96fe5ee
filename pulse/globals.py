# -*- coding: utf-8 -*-
"""
Pulse shared state - Layer 1
Process wide objects, import from here instead of passing them around.
"""

import threading

from pulse.constants import PULSE_ALLOWED_ORIGINS

# latest poll result pushed by the collector, replaced as a whole on every push
guest_snapshot = {
    'guests': [],
    'nodes': [],
    'metrics': {'cpu': {}, 'memory': {}, 'disk': {}, 'network': {}},
    'updated_at': None,
}
snapshot_lock = threading.Lock()

_cors_origins_env = PULSE_ALLOWED_ORIGINS
