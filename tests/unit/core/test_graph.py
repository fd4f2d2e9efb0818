"""
Tests for the dependency graph helpers.
"""

from planwatch.core.graph import is_cycle, strongly_connected_components


class TestStronglyConnectedComponents:
    def test_chain_comes_out_dependencies_first(self):
        edges = {"C": ["B"], "B": ["A"], "A": []}

        components = strongly_connected_components(["C", "B", "A"], edges)

        assert components == [["A"], ["B"], ["C"]]

    def test_cycle_members_share_a_component_in_node_order(self):
        edges = {"A": ["B"], "B": ["C"], "C": ["A"], "D": ["A"]}

        components = strongly_connected_components(["A", "B", "C", "D"], edges)

        assert components == [["A", "B", "C"], ["D"]]
        assert is_cycle(components[0], edges)
        assert not is_cycle(components[1], edges)

    def test_self_edge_is_a_cycle(self):
        edges = {"S": ["S"]}

        components = strongly_connected_components(["S"], edges)

        assert components == [["S"]]
        assert is_cycle(components[0], edges)

    def test_deep_chain_does_not_recurse(self):
        """A chain longer than the default recursion limit."""
        nodes = [f"T{i}" for i in range(5000)]
        edges = {nodes[i]: [nodes[i - 1]] for i in range(1, len(nodes))}

        components = strongly_connected_components(list(reversed(nodes)), edges)

        assert [c[0] for c in components] == nodes
