"""
Tests for Graphviz dot export.
"""

import re

from hmmkit.config import set_config
from hmmkit.draw import HmmDrawerDot, InputHmmDrawerDot


def edges(dot):
    return re.findall(r"^\t(\d+) -> (\d+) \[label=(.+)\];$", dot, flags=re.MULTILINE)


class TestHmmDrawerDot:
    """Test plain model export."""

    def test_digraph_structure(self, integer_hmm):
        dot = HmmDrawerDot().to_dot(integer_hmm)

        assert dot.startswith("digraph {\n")
        assert dot.rstrip().endswith("}")
        assert len(edges(dot)) == 4

    def test_only_edges_above_threshold(self, integer_hmm):
        dot = HmmDrawerDot(minimum_aij=0.35).to_dot(integer_hmm)

        assert sorted((i, j) for i, j, _ in edges(dot)) == [('0', '0'), ('1', '0'), ('1', '1')]
        assert "\t0 -> 0 [label=0.70];" in dot

    def test_initial_states_double_circled(self, integer_hmm):
        dot = HmmDrawerDot(minimum_pi=0.5).to_dot(integer_hmm)

        assert '\t0 [shape=doublecircle, label="0 - Pi= 0.60 - [ Integer distribution --- 0.90 0.10 ]"];' in dot
        assert '\t1 [shape=circle, label="1 - [ Integer distribution --- 0.20 0.80 ]"];' in dot

    def test_decimals(self, integer_hmm):
        dot = HmmDrawerDot(decimals=3).to_dot(integer_hmm)

        assert "[label=0.700]" in dot

    def test_defaults_from_config(self, integer_hmm):
        set_config('draw', 'minimum_aij', 0.5)

        assert len(edges(HmmDrawerDot().to_dot(integer_hmm))) == 2

    def test_write_file(self, integer_hmm, temp_dir):
        path = temp_dir / "model.dot"

        HmmDrawerDot().write_file(integer_hmm, path)

        assert path.read_text(encoding='utf-8') == HmmDrawerDot().to_dot(integer_hmm)


class TestInputHmmDrawerDot:
    """Test input-driven model export."""

    def test_edges_labeled_with_input(self, input_hmm):
        dot = InputHmmDrawerDot(minimum_aij=0.5).to_dot(input_hmm)

        assert '\t0 -> 0 [label="stay: 0.90"];' in dot
        assert '\t0 -> 1 [label="switch: 0.90"];' in dot
        assert '\t0 -> 1 [label="stay: 0.10"];' not in dot
        assert len(edges(dot)) == 4
