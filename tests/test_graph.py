from __future__ import annotations

import math
from collections import Counter

from pulse.graph import build_graph, word_similarity


def _entry(id_: int, title: str, content: str, created_at: str) -> dict:
    return {"id": str(id_), "title": title, "content": content, "date": created_at[:10], "created_at": created_at}


ENTRIES = [
    # deliberately out of order: the graph sorts chronologically
    _entry(3, "tax forms", "filled paperwork", "2025-08-03T09:00:00"),
    _entry(1, "sunny walk", "happy walk outside", "2025-08-01T09:00:00"),
    _entry(2, "sunny walk", "happy walk outside", "2025-08-02T09:00:00"),
]


def test_word_similarity() -> None:
    assert word_similarity(["a", "b", "c"], ["a", "b", "d"]) == 2 / 3
    assert word_similarity([], []) == 0.0
    # repeated tokens of the first list each count
    assert word_similarity(["a", "a"], ["a"]) == 1.0
    assert word_similarity(["a"], ["a", "b", "c", "d"]) == 0.25


def test_nodes_are_chronological_and_tagged() -> None:
    graph = build_graph(ENTRIES)
    assert [n.id for n in graph.nodes] == ["1", "2", "3"]
    first = graph.nodes[0]
    assert (first.sentiment, first.mood, first.category) == ("positive", "very-low", "exercise")
    assert graph.nodes[2].mood == "moderate"
    assert graph.nodes[2].category == "general"
    assert [n.cluster for n in graph.nodes] == [0, 0, 0]


def test_link_types() -> None:
    graph = build_graph(ENTRIES)
    counts = Counter(l.type for l in graph.links)
    assert counts == {"temporal": 2, "semantic": 1, "mood": 1, "category": 1}

    temporal = [(l.source, l.target) for l in graph.links if l.type == "temporal"]
    assert temporal == [("1", "2"), ("2", "3")]

    semantic = next(l for l in graph.links if l.type == "semantic")
    assert (semantic.source, semantic.target, semantic.strength) == ("1", "2", 1.0)

    strengths = {l.type: l.strength for l in graph.links if l.type in ("mood", "category")}
    assert strengths == {"mood": 0.7, "category": 0.6}


def test_semantic_threshold_is_exclusive() -> None:
    # 1 shared token out of 5 is exactly 0.2, which is not enough
    entries = [
        _entry(1, "alpha", "b c d e", "2025-08-01T09:00:00"),
        _entry(2, "alpha", "x y z w", "2025-08-02T09:00:00"),
    ]
    graph = build_graph(entries)
    assert not [l for l in graph.links if l.type == "semantic"]


def test_clusters_of_three() -> None:
    entries = [_entry(i, f"entry {i}", "plain text", f"2025-08-0{i}T09:00:00") for i in range(1, 8)]
    graph = build_graph(entries)
    assert [n.cluster for n in graph.nodes] == [0, 0, 0, 1, 1, 1, 2]


def test_render_hints() -> None:
    entries = [_entry(1, "A very long title that keeps on going", "x" * 60, "2025-08-01T09:00:00")]
    node = build_graph(entries).as_dict()["nodes"][0]
    assert node["label"] == "A very long title th..."
    assert node["excerpt"] == "x" * 50 + "..."
    assert node["color"] == "#fbbf24"

    link = build_graph(ENTRIES).as_dict()["links"][0]
    assert link["type"] == "temporal"
    assert link["color"] == "#3b82f6"
    assert math.isclose(link["width"], 2.0)


def test_hide_links() -> None:
    graph = build_graph(ENTRIES, show_links=False)
    assert len(graph.nodes) == 3
    assert graph.links == []


def test_empty() -> None:
    assert build_graph([]).as_dict() == {"nodes": [], "links": []}
