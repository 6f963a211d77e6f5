from collections import defaultdict, deque
from dataclasses import dataclass

from app.services.course_graph import CourseRequirements


@dataclass
class PrereqGraph:
    nodes: set[str]
    edges: dict[str, set[str]]  # prereq -> dependents
    prereqs: dict[str, set[str]]  # course -> prereqs


def build_graph(prereq_map: dict[str, set[str]]) -> PrereqGraph:
    nodes = set(prereq_map.keys())
    edges: dict[str, set[str]] = defaultdict(set)
    prereqs: dict[str, set[str]] = defaultdict(set)

    for course, reqs in prereq_map.items():
        nodes.update(reqs)
        prereqs[course].update(reqs)
        for req in reqs:
            edges[req].add(course)

    return PrereqGraph(nodes=nodes, edges=edges, prereqs=prereqs)


def blocking_prereq_map(
    requirements: dict[str, CourseRequirements],
    pending: set[str],
) -> dict[str, set[str]]:
    """Hard edges between pending courses.

    A group only counts when every alternative is itself pending, since any
    other alternative could still satisfy it. Concurrent courses have no hard
    edges.
    """
    prereq_map: dict[str, set[str]] = {}
    for key in pending:
        req = requirements.get(key)
        reqs: set[str] = set()
        if req is not None and not req.allow_concurrent:
            for group in req.groups:
                if group and all(code in pending for code in group):
                    reqs.update(group)
        prereq_map[key] = reqs
    return prereq_map


def cycle_members(graph: PrereqGraph) -> set[str]:
    """Courses that sit on (or between) prerequisite cycles.

    Peels courses with no prerequisites forward, then courses with no
    dependents backward; whatever survives both passes is cyclic.
    """
    _, leftover = _kahn(graph.nodes, graph.prereqs, graph.edges)
    if not leftover:
        return set()
    sub_prereqs = {n: graph.prereqs.get(n, set()) & leftover for n in leftover}
    sub_edges = {n: graph.edges.get(n, set()) & leftover for n in leftover}
    _, core = _kahn(leftover, sub_edges, sub_prereqs)
    return core


def _kahn(
    nodes: set[str],
    incoming: dict[str, set[str]],
    outgoing: dict[str, set[str]],
) -> tuple[list[str], set[str]]:
    indegree = {n: 0 for n in nodes}
    for node in nodes:
        for req in incoming.get(node, set()):
            if req in indegree:
                indegree[node] += 1

    queue = deque(sorted(n for n, d in indegree.items() if d == 0))
    order: list[str] = []

    while queue:
        node = queue.popleft()
        order.append(node)
        for nxt in sorted(outgoing.get(node, set())):
            if nxt not in indegree:
                continue
            indegree[nxt] -= 1
            if indegree[nxt] == 0:
                queue.append(nxt)

    return order, set(indegree) - set(order)
