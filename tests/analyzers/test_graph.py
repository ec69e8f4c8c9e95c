"""Tests for stackmap.analyzers.graph."""

from __future__ import annotations

from stackmap.analyzers.graph import GraphBuilder, find_cycles, find_hubs, node_id
from stackmap.models import DependencyGraph, FileAnalysis, GraphEdge, GraphNode, GraphStats

from tests._fixtures.repo_builder import RepoBuilder


def _chain_graph(size: int, *, closed: bool) -> DependencyGraph:
    nodes = [GraphNode(id=f"f{i}.js", label=f"f{i}.js", kind="module", path=f"f{i}.js", imports=1, exports=0) for i in range(size)]
    edges = [GraphEdge(from_id=f"f{i}.js", to_id=f"f{i + 1}.js", source=f"./f{i + 1}") for i in range(size - 1)]
    if closed:
        edges.append(GraphEdge(from_id=f"f{size - 1}.js", to_id="f0.js", source="./f0"))
    return DependencyGraph(nodes=nodes, edges=edges, stats=GraphStats(size, len(edges), 0))


def test_three_file_cycle_reported_once(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "a.js": "import { b } from './b';\nexport const a = 1;\n",
            "b.js": "import { c } from './c';\nexport const b = 2;\n",
            "c.js": "import { a } from './a';\nexport const c = 3;\n",
        }
    )
    scan = repo_builder.scan()
    builder = GraphBuilder()

    graph = builder.build(scan.files, scan.root)
    patterns = builder.analyze_patterns(graph)

    assert len(patterns.cycles) == 1
    cycle = patterns.cycles[0]
    assert cycle.files == ["a.js", "b.js", "c.js", "a.js"]
    assert cycle.length == 3
    assert patterns.entry_points == []


def test_nodes_unique_and_edges_valid(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "index.js": "import app from './src/app';\nimport lodash from 'lodash';\n",
            "src/app.js": "import { helper } from './lib/helper';\nimport './missing';\nexport default 1;\n",
            "src/lib/helper.ts": "export function helper() {}\n",
            "src/lib/index.js": "export * from './helper';\n",
        }
    )
    scan = repo_builder.scan()

    graph = GraphBuilder().build(scan.files, scan.root)

    ids = [node.id for node in graph.nodes]
    assert len(ids) == len(set(ids))
    for edge in graph.edges:
        assert edge.from_id in graph.node_ids()
        assert edge.to_id in graph.node_ids()
    assert {(edge.from_id, edge.to_id) for edge in graph.edges} == {
        ("index.js", "src/app.js"),
        ("src/app.js", "src/lib/helper.ts"),
        ("src/lib/index.js", "src/lib/helper.ts"),
    }
    assert graph.stats.total_files == 4
    assert graph.stats.total_connections == 3
    assert graph.stats.isolated_files == 0


def test_directory_import_resolves_to_index(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "main.js": "const routes = require('./routes');\n",
            "routes/index.js": "module.exports = [];\n",
            "orphan.js": "function lonely() {}\n",
        }
    )
    scan = repo_builder.scan()

    graph = GraphBuilder().build(scan.files, scan.root)

    assert [edge.to_dict() for edge in graph.edges] == [
        {"from": "main.js", "to": "routes/index.js", "type": "import", "source": "./routes"}
    ]
    assert graph.stats.isolated_files == 1


def test_node_ids_are_case_folded_and_first_path_wins() -> None:
    files = {
        "src/App.js": FileAnalysis(path="src/App.js", kind="module", summary=""),
        "src/app.js": FileAnalysis(path="src/app.js", kind="unknown", summary=""),
    }

    graph = GraphBuilder().build(files, "/nonexistent")

    assert [node.id for node in graph.nodes] == ["src/app.js"]
    assert graph.nodes[0].path == "src/App.js"
    assert graph.nodes[0].label == "App.js"
    assert node_id("src\\Components\\Nav.jsx") == "src/components/nav.jsx"


def test_hubs_entry_points_and_clusters(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "src/shared.js": "export function shared() {}\n",
            "src/one.js": "import { shared } from './shared';\n",
            "src/two.js": "import { shared } from './shared';\n",
            "src/three.js": "import { shared } from './shared';\n",
            "pages/four.js": "import { shared } from '../src/shared';\n",
            "pages/five.js": "export const Five = () => null;\n",
        }
    )
    scan = repo_builder.scan()
    builder = GraphBuilder()

    patterns = builder.analyze_patterns(builder.build(scan.files, scan.root))

    assert [(hub.file, hub.connections) for hub in patterns.hubs] == [("src/shared.js", 4)]
    entry_files = {entry.file: entry.outgoing_connections for entry in patterns.entry_points}
    assert entry_files == {
        "pages/five.js": 0,
        "pages/four.js": 1,
        "src/one.js": 1,
        "src/three.js": 1,
        "src/two.js": 1,
    }
    clusters = {cluster.directory: cluster for cluster in patterns.clusters}
    assert clusters["src"].file_count == 4
    assert clusters["pages"].file_count == 2
    assert clusters["pages"].kinds == ["react-component", "unknown"]


def test_hubs_sorted_by_degree_descending() -> None:
    nodes = [GraphNode(id=name, label=name, kind="module", path=name, imports=0, exports=0) for name in "abcdefgh"]
    edges = [GraphEdge(from_id=src, to_id="a", source="./a") for src in "bcde"]
    edges += [GraphEdge(from_id=src, to_id="b", source="./b") for src in "cdefgh"]
    graph = DependencyGraph(nodes=nodes, edges=edges, stats=GraphStats(len(nodes), len(edges), 0))

    hubs = find_hubs(graph)

    assert [(hub.file, hub.connections) for hub in hubs] == [("b", 7), ("a", 4)]


def test_deep_chain_does_not_exhaust_the_stack() -> None:
    assert find_cycles(_chain_graph(5000, closed=False)) == []

    cycles = find_cycles(_chain_graph(5000, closed=True))

    assert len(cycles) == 1
    assert cycles[0].length == 5000
    assert cycles[0].files[0] == cycles[0].files[-1] == "f0.js"


def test_node_visited_once_across_roots() -> None:
    # a -> b -> a and c -> b: b is fully explored from a, so c finds nothing new.
    nodes = [GraphNode(id=n, label=n, kind="module", path=n, imports=0, exports=0) for n in ("a", "b", "c")]
    edges = [
        GraphEdge(from_id="a", to_id="b", source="./b"),
        GraphEdge(from_id="b", to_id="a", source="./a"),
        GraphEdge(from_id="c", to_id="b", source="./b"),
    ]
    graph = DependencyGraph(nodes=nodes, edges=edges, stats=GraphStats(3, 3, 0))

    assert [cycle.files for cycle in find_cycles(graph)] == [["a", "b", "a"]]


def test_repeated_imports_report_one_cycle(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "a.js": "import './b';\nexport const a = 1;\n",
            "b.js": "import './a';\nexport * from './a';\n",
        }
    )
    scan = repo_builder.scan()
    builder = GraphBuilder()

    graph = builder.build(scan.files, scan.root)
    patterns = builder.analyze_patterns(graph)

    assert len(graph.edges) == 3
    assert [cycle.files for cycle in patterns.cycles] == [["a.js", "b.js", "a.js"]]
