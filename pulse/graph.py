# pulse/graph.py
import math
from dataclasses import dataclass, field, asdict
from itertools import combinations
from typing import Any, Dict, Iterable, List

from pulse.analysis import analyze_entry
from pulse.models import Category, LinkType, Mood, Sentiment

TEMPORAL_STRENGTH = 1.0
MOOD_STRENGTH = 0.7
CATEGORY_STRENGTH = 0.6
SEMANTIC_THRESHOLD = 0.2
CLUSTER_SIZE = 3

LABEL_CHARS = 20
EXCERPT_CHARS = 50

MOOD_COLORS = {
    "very-low": "#10b981",
    "low": "#34d399",
    "moderate": "#fbbf24",
    "high": "#f97316",
    "very-high": "#ef4444",
}
LINK_COLORS = {
    "temporal": "#3b82f6",
    "semantic": "#10b981",
    "mood": "#f59e0b",
    "category": "#8b5cf6",
}
FALLBACK_COLOR = "#6b7280"


def truncate(text: str, limit: int) -> str:
    return text[:limit] + "..." if len(text) > limit else text


@dataclass
class JournalNode:
    id: str
    title: str
    content: str
    date: str
    sentiment: Sentiment
    mood: Mood
    category: Category
    cluster: int

    @property
    def label(self) -> str:
        return truncate(self.title, LABEL_CHARS)

    @property
    def excerpt(self) -> str:
        return truncate(self.content, EXCERPT_CHARS)

    @property
    def color(self) -> str:
        return MOOD_COLORS.get(self.mood, FALLBACK_COLOR)

    def as_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out.update(label=self.label, excerpt=self.excerpt, color=self.color)
        return out


@dataclass
class JournalLink:
    source: str
    target: str
    strength: float
    type: LinkType

    @property
    def color(self) -> str:
        return LINK_COLORS.get(self.type, FALLBACK_COLOR)

    @property
    def width(self) -> float:
        return math.sqrt(self.strength) * 2

    def as_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out.update(color=self.color, width=self.width)
        return out


@dataclass
class JournalGraph:
    nodes: List[JournalNode] = field(default_factory=list)
    links: List[JournalLink] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [n.as_dict() for n in self.nodes],
            "links": [l.as_dict() for l in self.links],
        }


def _tokens(node: JournalNode) -> List[str]:
    return f"{node.title} {node.content}".lower().split()


def word_similarity(words1: List[str], words2: List[str]) -> float:
    """Share of words1 tokens that occur in words2, over the longer token count."""
    longest = max(len(words1), len(words2))
    if longest == 0:
        return 0.0
    vocab = set(words2)
    common = sum(1 for w in words1 if w in vocab)
    return common / longest


def _id_key(value: Any):
    s = str(value)
    return (0, int(s), "") if s.isdigit() else (1, 0, s)


def _chronological(entries: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(entries, key=lambda e: (e.get("created_at") or "", _id_key(e.get("id"))))


def build_nodes(entries: Iterable[Dict[str, Any]]) -> List[JournalNode]:
    nodes = []
    for index, entry in enumerate(_chronological(entries)):
        analysis = analyze_entry(entry.get("content") or "", entry.get("title") or "")
        nodes.append(
            JournalNode(
                id=str(entry["id"]),
                title=entry.get("title") or "",
                content=entry.get("content") or "",
                date=entry.get("date") or "",
                sentiment=analysis.sentiment,
                mood=analysis.mood,
                category=analysis.category,
                cluster=index // CLUSTER_SIZE,
            )
        )
    return nodes


def temporal_links(nodes: List[JournalNode]) -> List[JournalLink]:
    return [
        JournalLink(a.id, b.id, TEMPORAL_STRENGTH, "temporal")
        for a, b in zip(nodes, nodes[1:])
    ]


def semantic_links(nodes: List[JournalNode]) -> List[JournalLink]:
    tokens = {n.id: _tokens(n) for n in nodes}
    links = []
    for a, b in combinations(nodes, 2):
        similarity = word_similarity(tokens[a.id], tokens[b.id])
        if similarity > SEMANTIC_THRESHOLD:
            links.append(JournalLink(a.id, b.id, similarity, "semantic"))
    return links


def _group_links(nodes: List[JournalNode], attr: str, strength: float, link_type: LinkType) -> List[JournalLink]:
    groups: Dict[str, List[JournalNode]] = {}
    for node in nodes:
        groups.setdefault(getattr(node, attr), []).append(node)

    links = []
    for group in groups.values():
        for a, b in combinations(group, 2):
            links.append(JournalLink(a.id, b.id, strength, link_type))
    return links


def build_graph(entries: Iterable[Dict[str, Any]], show_links: bool = True) -> JournalGraph:
    nodes = build_nodes(entries)
    if not show_links:
        return JournalGraph(nodes=nodes)

    links = temporal_links(nodes)
    links += semantic_links(nodes)
    links += _group_links(nodes, "mood", MOOD_STRENGTH, "mood")
    links += _group_links(nodes, "category", CATEGORY_STRENGTH, "category")
    return JournalGraph(nodes=nodes, links=links)
