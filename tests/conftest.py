"""
Shared guest/node/metrics fixtures.

Twelve guests across five nodes: primaries on node-1 and node-2, secondaries
on node-2, unshared guests everywhere else, plus paused/suspended ones.
cpu usage is a 0-1 fraction, memory/disk are percentages, network in bytes/sec.
"""

import copy

import pytest


NODES = [
    {'id': 'node-1', 'name': 'prod-01'},
    {'id': 'node-2', 'name': 'prod-02'},
    {'id': 'node-3', 'name': 'stage-01'},
    {'id': 'node-4', 'name': 'test-01'},
    {'id': 'node-5', 'name': 'dev-01'},
]

GUESTS = [
    {'id': '101', 'name': 'web-server', 'type': 'qemu', 'status': 'running', 'node': 'node-1',
     'shared': True, 'primaryNode': 'node-1', 'tags': 'prod,web,nginx', 'uptime': 86400},
    {'id': '102', 'name': 'database', 'type': 'qemu', 'status': 'running', 'node': 'node-1',
     'shared': True, 'primaryNode': 'node-1', 'tags': 'prod,db,postgres', 'uptime': 172800},
    {'id': '103', 'name': 'redis-cache', 'type': 'lxc', 'status': 'running', 'node': 'node-1',
     'shared': True, 'primaryNode': 'node-1', 'tags': 'prod,cache,redis', 'uptime': 3600},
    {'id': '201', 'name': 'web-server', 'type': 'qemu', 'status': 'stopped', 'node': 'node-2',
     'shared': True, 'primaryNode': 'node-1', 'tags': 'prod,web,nginx'},
    {'id': '202', 'name': 'database', 'type': 'qemu', 'status': 'stopped', 'node': 'node-2',
     'shared': True, 'primaryNode': 'node-1', 'tags': 'prod,db,postgres'},
    {'id': '301', 'name': 'app-server', 'type': 'qemu', 'status': 'running', 'node': 'node-3',
     'tags': 'stage,app', 'uptime': 600},
    {'id': '302', 'name': 'test-container', 'type': 'lxc', 'status': 'stopped', 'node': 'node-3',
     'tags': 'stage,test'},
    {'id': '401', 'name': 'heavy-workload-vm', 'type': 'qemu', 'status': 'running', 'node': 'node-5',
     'tags': 'dev,performance', 'uptime': 7200},
    {'id': '402', 'name': 'light-container', 'type': 'lxc', 'status': 'running', 'node': 'node-5',
     'tags': 'dev,light', 'uptime': 60},
    {'id': '501', 'name': 'paused-vm', 'type': 'qemu', 'status': 'paused', 'node': 'node-5',
     'tags': 'dev,paused'},
    {'id': '601', 'name': 'suspended-vm', 'type': 'qemu', 'status': 'suspended', 'node': 'node-4',
     'tags': 'test,suspended'},
    {'id': '701', 'name': 'backup-server', 'type': 'qemu', 'status': 'running', 'node': 'node-2',
     'shared': True, 'primaryNode': 'node-2', 'tags': 'prod,backup', 'uptime': 1200},
]

_CPU = {'101': 0.50, '102': 0.75, '103': 0.25, '201': 0, '202': 0, '301': 0.30,
        '302': 0, '401': 0.90, '402': 0.05, '501': 0.10, '601': 0, '701': 0.60}
_MEMORY = {'101': 25, '102': 75, '103': 50, '201': 0, '202': 0, '301': 37.5,
           '302': 0, '401': 87.5, '402': 12.5, '501': 12.5, '601': 0, '701': 75}
_DISK = {'101': 20, '102': 75, '103': 50, '201': 10, '202': 10, '301': 30,
         '302': 10, '401': 90, '402': 10, '501': 10, '601': 0, '701': 60}
# KB/s in, out
_NETWORK = {'101': (500, 300), '102': (800, 400), '103': (200, 100), '201': (0, 0),
            '202': (0, 0), '301': (350, 150), '302': (0, 0), '401': (1000, 500),
            '402': (100, 50), '501': (75, 30), '601': (0, 0), '701': (600, 250)}

METRICS = {
    'cpu': {gid: {'usage': v} for gid, v in _CPU.items()},
    'memory': {gid: {'usagePercent': v} for gid, v in _MEMORY.items()},
    'disk': {gid: {'usagePercent': v} for gid, v in _DISK.items()},
    'network': {gid: {'inRate': i * 1024, 'outRate': o * 1024} for gid, (i, o) in _NETWORK.items()},
}

ALL_IDS = [g['id'] for g in GUESTS]


@pytest.fixture
def guests():
    return copy.deepcopy(GUESTS)


@pytest.fixture
def nodes():
    return copy.deepcopy(NODES)


@pytest.fixture
def metrics():
    return copy.deepcopy(METRICS)


@pytest.fixture
def search(guests, nodes, metrics):
    """Run a search the way the dashboard does and return the matching ids, sorted."""
    from pulse.core.query import filter_and_sort

    def run(terms, single_term=''):
        if isinstance(terms, str):
            terms = [terms]
        result = filter_and_sort(
            guests,
            sort=None,
            metric_filters=None,
            status_filter=None,
            search_terms=terms,
            single_search_term=single_term,
            metrics=metrics,
            guest_type_filter='all',
            nodes=nodes,
        )
        return sorted(g['id'] for g in result)

    return run
