# -*- coding: utf-8 -*-
"""
Pulse constants - Layer 0
Env driven settings + the fixed tables the query engine uses.
"""

import os

PULSE_VERSION = "1.2.0"
PULSE_BUILD = "2026.10"

# Server
PULSE_HOST = os.environ.get('PULSE_HOST', '0.0.0.0')
PULSE_PORT = int(os.environ.get('PULSE_PORT', 7655))
PULSE_DEBUG = os.environ.get('PULSE_DEBUG', '').lower() in ('1', 'true', 'yes')
PULSE_ALLOWED_ORIGINS = os.environ.get('PULSE_ALLOWED_ORIGINS', '')
MAX_REQUEST_SIZE = int(os.environ.get('PULSE_MAX_REQUEST_SIZE', 20 * 1024 * 1024))  # snapshots of big clusters get large

# Optional on-disk copy of the last snapshot, empty = memory only
SNAPSHOT_FILE = os.environ.get('PULSE_SNAPSHOT_FILE', '')

# =====================================================
# QUERY ENGINE
# =====================================================

# bytes/sec -> Mbps
NETWORK_MBPS_DIVISOR = 1024 * 1024 / 8

# network filter sliders are 0-100, max ~10 MB/s
NETWORK_SLIDER_FACTOR = 104858

# cpu usage comes in as a fraction, rounded after *100 so 0.7 compares as 70
CPU_PERCENT_PRECISION = 6

METRIC_RESOURCES = ('cpu', 'memory', 'mem', 'disk', 'network', 'net')
METRIC_FILTER_KEYS = ('cpu', 'memory', 'disk', 'download', 'upload')

VM_ALIASES = ('vm', 'virtual machine', 'qemu')
CONTAINER_ALIASES = ('ct', 'container', 'lxc')

# exact-word role shorthands, checked before the substring fallback
SHARED_KEYWORDS = ('role', 'shared')
PRIMARY_KEYWORDS = ('primary', 'pri')
SECONDARY_KEYWORDS = ('secondary', 'sec')

# role:<value> column search
ROLE_COLUMN_PRIMARY = ('p', 'pri', 'primary')
ROLE_COLUMN_SECONDARY = ('s', 'sec', 'secondary')
ROLE_COLUMN_NONE = ('-', 'none')

STATUS_SORT_PRIORITY = {
    'running': 1,
    'paused': 2,
    'suspended': 3,
    'stopped': 4,
}
STATUS_SORT_DEFAULT = 999

STATUS_KEYWORDS = ('running', 'stopped', 'paused', 'suspended', 'online', 'offline', 'active', 'inactive')
