from archlens.agents import circular_deps
from archlens.agents.circular_deps import find_cycles
from archlens.models import Severity

from helpers import chain, cycle, graph_of, module


def run(graph):
    return circular_deps.run(graph, {})


def test_three_cycle_is_one_warning():
    graph = graph_of(*cycle("src/lib/a.ts", "src/lib/b.ts", "src/lib/c.ts"))
    (finding,) = run(graph)
    assert finding.severity is Severity.WARNING
    assert finding.agent_id == "circular-deps"
    assert finding.title == "Circular dependency (3 files)"
    assert finding.message == "Import cycle: src/lib/a.ts → src/lib/b.ts → src/lib/c.ts → src/lib/a.ts"
    assert finding.file_path == "src/lib/a.ts"


def test_two_cycle_is_one_error():
    graph = graph_of(*cycle("src/lib/a.ts", "src/lib/b.ts"))
    (finding,) = run(graph)
    assert finding.severity is Severity.ERROR
    assert finding.title == "Circular dependency (2 files)"


def test_acyclic_graph_has_no_findings():
    graph = graph_of(*chain("src/lib/a.ts", "src/lib/b.ts", "src/lib/c.ts"))
    assert run(graph) == []


def test_same_cycle_reached_from_several_entries_is_reported_once():
    graph = graph_of(
        *cycle("src/lib/a.ts", "src/lib/b.ts"),
        module("src/lib/c.ts", imports=["./a", "./b"]),
        module("src/lib/d.ts", imports=["./b"]),
    )
    assert len(find_cycles(graph)) == 1


def test_distinct_cycles_are_all_found():
    graph = graph_of(
        module("src/lib/hub.ts", imports=["./x", "./y"]),
        module("src/lib/x.ts", imports=["./hub"]),
        module("src/lib/y.ts", imports=["./hub"]),
        *cycle("src/lib/p.ts", "src/lib/q.ts"),
    )
    members = sorted(tuple(sorted(set(c))) for c in find_cycles(graph))
    assert members == [
        ("src/lib/hub.ts", "src/lib/x.ts"),
        ("src/lib/hub.ts", "src/lib/y.ts"),
        ("src/lib/p.ts", "src/lib/q.ts"),
    ]


def test_cycles_are_closed_paths_along_edges():
    graph = graph_of(*cycle("src/lib/a.ts", "src/lib/b.ts", "src/lib/c.ts", "src/lib/d.ts"))
    (path,) = find_cycles(graph)
    assert path[0] == path[-1]
    edges = {(e.source, e.target) for e in graph.edges}
    assert all((a, b) in edges for a, b in zip(path, path[1:]))


def test_long_chain_does_not_hit_recursion_limit():
    paths = [f"src/lib/m{i:04d}.ts" for i in range(3000)]
    graph = graph_of(*cycle(*paths))
    (path,) = find_cycles(graph)
    assert len(path) == 3001
