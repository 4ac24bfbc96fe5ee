"""Single-term matching: atom rules, tokenizer, OR/AND evaluation."""

import pytest

from pulse.core.query import classify_atom, matches_term, tokenize, split_or

from conftest import GUESTS, NODES, METRICS


def guest(gid):
    return next(g for g in GUESTS if g['id'] == gid)


@pytest.mark.parametrize('atom,rule', [
    ('', 'empty'),
    ('vm', 'type_alias'),
    ('virtual machine', 'type_alias'),
    ('lxc', 'type_alias'),
    ('name:web', 'column'),
    ('role:', 'column'),
    ('cpu>50', 'metric_expression'),
    ('cpu >= 50.5', 'metric_expression'),
    ('cpu>', 'metric_expression'),
    ('cpu>abc', 'metric_expression'),
    ('cpu', 'resource_keyword'),
    ('net', 'resource_keyword'),
    ('p', 'single_char'),
    ('7', 'single_char'),
    ('pri', 'role_keyword'),
    ('shared', 'role_keyword'),
    ('nginx', 'substring'),
    ('primary-app', 'substring'),
])
def test_classify_atom(atom, rule):
    assert classify_atom(atom) == rule


@pytest.mark.parametrize('branch,tokens', [
    ('cpu > 50 running', ['cpu > 50', 'running']),
    ('running cpu>50', ['running', 'cpu>50']),
    ('virtual machine web', ['virtual machine', 'web']),
    ('cpu>', ['cpu>']),
    ('cpu >', ['cpu >']),
    ('  web   db  ', ['web', 'db']),
    ('cpu>abc', ['cpu>abc']),
    ('cpu > web running', ['cpu > web', 'running']),
    ('cpu > 50x', ['cpu > 50x']),
])
def test_tokenize_keeps_expressions_together(branch, tokens):
    assert tokenize(branch) == tokens


def test_split_or_drops_empty_branches():
    assert split_or('a | b ||') == ['a', 'b']
    assert split_or('|') == []


class TestMatchesTerm:

    def test_plain_substring(self):
        assert matches_term(guest('101'), 'nginx', NODES, METRICS)
        assert not matches_term(guest('102'), 'nginx', NODES, METRICS)

    def test_case_and_whitespace_are_ignored(self):
        assert matches_term(guest('101'), '  WEB-Server ', NODES, METRICS)

    def test_empty_term_matches(self):
        assert matches_term(guest('101'), '')
        assert matches_term(guest('101'), None)

    def test_node_name_needs_nodes(self):
        assert matches_term(guest('101'), 'prod-01', NODES)
        assert not matches_term(guest('101'), 'prod-01')
        # raw node id still works without the node list
        assert matches_term(guest('101'), 'node-1')

    def test_metric_words_are_not_text(self):
        # "cpu" is a keyword, the substring rule never sees it
        odd = {'id': 1, 'name': 'cpu-hog', 'type': 'qemu', 'status': 'running'}
        assert matches_term(odd, 'cpu')
        assert not matches_term(odd, 'cpu>10', metrics={})

    def test_metric_without_data_never_matches(self):
        assert not matches_term(guest('101'), 'cpu<100', NODES, {})
        assert not matches_term(guest('101'), 'cpu:0', NODES, None)

    def test_spaced_and_tight_malformed_expressions_agree(self):
        assert not matches_term(guest('101'), 'cpu>web', NODES, METRICS)
        assert not matches_term(guest('101'), 'cpu > web', NODES, METRICS)

    def test_network_without_rates_never_compares(self):
        g = {'id': 1, 'type': 'qemu'}
        assert not matches_term(g, 'net<5', metrics={'network': {'1': {'inRate': None}}})
        assert not matches_term(g, 'net:0', metrics={'network': {'1': {}}})

    def test_incomplete_expression_keeps_guests_with_data(self):
        partial = {'cpu': {'101': {'usage': 0.5}}}
        assert matches_term(guest('101'), 'cpu>', NODES, partial)
        assert not matches_term(guest('102'), 'cpu>', NODES, partial)
        assert matches_term(guest('101'), 'cpu:>', NODES, partial)

    def test_equality_tolerates_float_noise(self):
        g = {'id': 1, 'type': 'qemu'}
        assert matches_term(g, 'cpu=70', metrics={'cpu': {'1': {'usage': 0.7}}})

    def test_unknown_column_prefix_searches_the_text(self):
        assert matches_term(guest('102'), 'tag:postgres', NODES)
        assert not matches_term(guest('101'), 'tag:postgres', NODES)

    def test_role_column_matches_text_for_other_values(self):
        assert matches_term(guest('101'), 'role:prim', NODES)

    def test_or_and_precedence(self):
        # (stopped AND lxc) OR nginx
        term = 'stopped lxc | nginx'
        assert matches_term(guest('302'), term, NODES)
        assert matches_term(guest('101'), term, NODES)
        assert not matches_term(guest('202'), term, NODES)

    def test_secondary_needs_shared(self):
        unshared = {'id': 9, 'name': 'x', 'type': 'qemu', 'node': 'a', 'primaryNode': 'b'}
        assert not matches_term(unshared, 'secondary')
        assert matches_term(unshared, 'role:none')
