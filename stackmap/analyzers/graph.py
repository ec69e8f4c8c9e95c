"""File dependency graph construction and structural pattern detection."""

from __future__ import annotations

import posixpath
from collections import Counter
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from ..logging import get_logger
from ..models import (
    Cluster,
    Cycle,
    DependencyGraph,
    EntryPoint,
    FileAnalysis,
    GraphEdge,
    GraphNode,
    GraphPatterns,
    GraphStats,
    Hub,
)
from ..resolver import PathResolver

HUB_THRESHOLD = 3


def node_id(relative_path: str) -> str:
    """Join key for graph lookups: forward slashes, lower case."""
    return PathResolver.normalize(relative_path).lower()


class GraphBuilder:
    """Builds the import graph for an analysed project."""

    def __init__(self, resolver: Optional[PathResolver] = None) -> None:
        self.resolver = resolver or PathResolver()
        self.logger = get_logger("graph")

    def build(self, files: Dict[str, FileAnalysis], project_root: str | Path) -> DependencyGraph:
        nodes: Dict[str, GraphNode] = {}
        for path, analysis in files.items():
            key = node_id(path)
            if key in nodes:
                # Paths differing only by case collapse onto the first node.
                self.logger.debug("Skipping %s: node id %s already taken", path, key)
                continue
            nodes[key] = GraphNode(
                id=key,
                label=posixpath.basename(PathResolver.normalize(path)),
                kind=analysis.kind,
                path=path,
                imports=len(analysis.imports),
                exports=len(analysis.exports),
            )

        edges: List[GraphEdge] = []
        for path, analysis in files.items():
            from_id = node_id(path)
            for ref in analysis.imports:
                resolved = self.resolver.resolve(ref.source, path, project_root)
                if resolved is None:
                    continue
                to_id = node_id(resolved)
                if to_id in nodes:
                    edges.append(GraphEdge(from_id=from_id, to_id=to_id, source=ref.source))

        touched = {edge.from_id for edge in edges} | {edge.to_id for edge in edges}
        stats = GraphStats(
            total_files=len(nodes),
            total_connections=len(edges),
            isolated_files=sum(1 for key in nodes if key not in touched),
        )
        self.logger.debug("Graph built with %d nodes and %d edges", stats.total_files, stats.total_connections)
        return DependencyGraph(nodes=list(nodes.values()), edges=edges, stats=stats)

    def analyze_patterns(self, graph: DependencyGraph) -> GraphPatterns:
        return GraphPatterns(
            entry_points=find_entry_points(graph),
            hubs=find_hubs(graph),
            clusters=find_clusters(graph),
            cycles=find_cycles(graph),
        )


def find_entry_points(graph: DependencyGraph) -> List[EntryPoint]:
    """Files nothing else imports, with their fan-out."""
    incoming = {edge.to_id for edge in graph.edges}
    outgoing = Counter(edge.from_id for edge in graph.edges)
    return [
        EntryPoint(file=node.path, kind=node.kind, outgoing_connections=outgoing[node.id])
        for node in graph.nodes
        if node.id not in incoming
    ]


def find_hubs(graph: DependencyGraph, threshold: int = HUB_THRESHOLD) -> List[Hub]:
    degree: Counter[str] = Counter()
    for edge in graph.edges:
        degree[edge.from_id] += 1
        degree[edge.to_id] += 1
    hubs = [
        Hub(file=node.path, kind=node.kind, connections=degree[node.id])
        for node in graph.nodes
        if degree[node.id] > threshold
    ]
    # sorted() is stable, so equal degrees keep node order.
    return sorted(hubs, key=lambda hub: hub.connections, reverse=True)


def find_clusters(graph: DependencyGraph) -> List[Cluster]:
    groups: Dict[str, List[GraphNode]] = {}
    for node in graph.nodes:
        directory = posixpath.dirname(PathResolver.normalize(node.path)) or "."
        groups.setdefault(directory, []).append(node)

    return [
        Cluster(
            directory=directory,
            file_count=len(members),
            kinds=list(dict.fromkeys(member.kind for member in members)),
        )
        for directory, members in groups.items()
        if len(members) > 1
    ]


def find_cycles(graph: DependencyGraph) -> List[Cycle]:
    """Report cycles found by a visited-once depth-first search.

    Every node is expanded at most once across all roots, so this yields at
    least one representative cycle per strongly connected region reached,
    not every elementary cycle.
    """
    paths = {node.id: node.path for node in graph.nodes}
    adjacency: Dict[str, List[str]] = {key: [] for key in paths}
    for edge in graph.edges:
        adjacency[edge.from_id].append(edge.to_id)
    # Repeated imports of one target would replay the same cycle.
    adjacency = {key: list(dict.fromkeys(targets)) for key, targets in adjacency.items()}

    cycles: List[Cycle] = []
    for walk in _cycle_walks(list(paths), adjacency):
        files = [paths[key] for key in walk]
        cycles.append(Cycle(files=files, length=len(files) - 1))
    return cycles


def _cycle_walks(order: List[str], adjacency: Dict[str, List[str]]) -> Iterator[List[str]]:
    visited: set[str] = set()
    for root in order:
        if root in visited:
            continue
        visited.add(root)
        path = [root]
        on_path = {root}
        stack = [iter(adjacency[root])]
        while stack:
            target = next(stack[-1], None)
            if target is None:
                stack.pop()
                on_path.discard(path.pop())
                continue
            if target in on_path:
                yield path[path.index(target):] + [target]
            elif target not in visited:
                visited.add(target)
                on_path.add(target)
                path.append(target)
                stack.append(iter(adjacency[target]))


__all__ = [
    "GraphBuilder",
    "HUB_THRESHOLD",
    "find_clusters",
    "find_cycles",
    "find_entry_points",
    "find_hubs",
    "node_id",
]
