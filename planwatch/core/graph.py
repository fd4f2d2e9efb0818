"""Dependency graph helpers shared by the queue parser and the state engine."""

from typing import Mapping, Sequence


def strongly_connected_components(
    nodes: Sequence[str], edges: Mapping[str, Sequence[str]]
) -> list[list[str]]:
    """Tarjan's algorithm, iterative.

    Edges point from a task to the tasks it depends on, so components come
    out dependencies-first: every component is emitted after all components
    it can reach. Members of each component keep the order of ``nodes``.

    Args:
        nodes: All node ids, in the order used to start the search
        edges: Adjacency lists; targets must be members of ``nodes``

    Returns:
        Components in dependency order
    """
    position = {node: i for i, node in enumerate(nodes)}
    index: dict[str, int] = {}
    lowlink: dict[str, int] = {}
    on_stack: set[str] = set()
    stack: list[str] = []
    components: list[list[str]] = []
    counter = 0

    for root in nodes:
        if root in index:
            continue

        index[root] = lowlink[root] = counter
        counter += 1
        stack.append(root)
        on_stack.add(root)
        work = [(root, iter(edges.get(root, ())))]

        while work:
            node, children = work[-1]
            descended = False
            for child in children:
                if child not in index:
                    index[child] = lowlink[child] = counter
                    counter += 1
                    stack.append(child)
                    on_stack.add(child)
                    work.append((child, iter(edges.get(child, ()))))
                    descended = True
                    break
                if child in on_stack:
                    lowlink[node] = min(lowlink[node], index[child])
            if descended:
                continue

            work.pop()
            if work:
                parent = work[-1][0]
                lowlink[parent] = min(lowlink[parent], lowlink[node])

            if lowlink[node] == index[node]:
                component = []
                while True:
                    member = stack.pop()
                    on_stack.discard(member)
                    component.append(member)
                    if member == node:
                        break
                component.sort(key=position.__getitem__)
                components.append(component)

    return components


def is_cycle(component: Sequence[str], edges: Mapping[str, Sequence[str]]) -> bool:
    """True when a component is a cycle (several members or a self edge)."""
    if len(component) > 1:
        return True
    node = component[0]
    return node in edges.get(node, ())
