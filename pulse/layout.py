# pulse/layout.py
"""
Force-directed layout for the journal graph.

The simulation follows the velocity-Verlet scheme used by browser force
layouts: every tick cools ``alpha`` towards ``alpha_target``, each force
nudges node velocities (or, for the center force, positions), and velocities
are damped by ``velocity_decay`` before being added to positions. Nodes with a
fixed coordinate (a node being dragged) stay where they are pinned.

Forces applied, in order:
  link     springs pulling linked entries towards ``link_distance``
  charge   pairwise repulsion (``charge_strength`` is negative)
  center   shifts the whole cloud so its mean sits at the canvas center
  cluster  pulls every node towards the horizontal mid-line
"""
import math
from typing import Dict, Iterable, Mapping, Optional, Tuple

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator

from pulse.graph import JournalGraph, JournalLink, JournalNode

DEFAULT_WIDTH = 800
DEFAULT_HEIGHT = 600

ALPHA_MIN = 0.001
ALPHA_DECAY = 1 - ALPHA_MIN ** (1 / 300)
VELOCITY_DECAY = 0.4
DRAG_ALPHA_TARGET = 0.3

INITIAL_RADIUS = 10
INITIAL_ANGLE = math.pi * (3 - math.sqrt(5))
DISTANCE_MIN2 = 1.0
LINK_DISTANCE_STEP = 10


class GraphSettings(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    link_distance: float = Field(default=80, ge=20, le=200)
    node_size: float = Field(default=12, ge=6, le=20)
    charge_strength: float = -400
    center_strength: float = Field(default=0.1, ge=0, le=1)
    cluster_strength: float = Field(default=0.2, ge=0, le=1)

    @field_validator("link_distance")
    @classmethod
    def _on_step(cls, v: float) -> float:
        if v % LINK_DISTANCE_STEP:
            raise ValueError(f"link_distance must be a multiple of {LINK_DISTANCE_STEP}")
        return v


Position = Tuple[float, float]


class ForceSimulation:
    def __init__(
        self,
        nodes: Iterable[JournalNode],
        links: Iterable[JournalLink],
        settings: Optional[GraphSettings] = None,
        width: float = DEFAULT_WIDTH,
        height: float = DEFAULT_HEIGHT,
        seed: int = 0,
    ):
        self.settings = settings or GraphSettings()
        self.width = float(width)
        self.height = float(height)
        self.rng = np.random.default_rng(seed)

        self.ids = [n.id for n in nodes]
        self.index = {node_id: i for i, node_id in enumerate(self.ids)}
        n = len(self.ids)

        i = np.arange(n, dtype=float)
        radius = INITIAL_RADIUS * np.sqrt(0.5 + i)
        angle = i * INITIAL_ANGLE
        self.pos = np.column_stack([radius * np.cos(angle), radius * np.sin(angle)])
        self.vel = np.zeros((n, 2))
        self.fixed = np.full((n, 2), np.nan)

        src, tgt, strength = [], [], []
        for link in links:
            if link.source not in self.index or link.target not in self.index:
                raise ValueError(f"link references unknown node: {link.source} -> {link.target}")
            src.append(self.index[link.source])
            tgt.append(self.index[link.target])
            strength.append(link.strength)
        self.src = np.array(src, dtype=int)
        self.tgt = np.array(tgt, dtype=int)
        self.link_strength = np.array(strength, dtype=float)

        degree = np.bincount(self.src, minlength=n) + np.bincount(self.tgt, minlength=n)
        if len(self.src):
            self.bias = degree[self.src] / (degree[self.src] + degree[self.tgt])
        else:
            self.bias = np.zeros(0)

        self.alpha = 1.0
        self.alpha_target = 0.0
        self.ticks = 0

    # -------------------------
    # Control
    # -------------------------
    def restart(self, alpha: float = 1.0):
        self.alpha = float(alpha)
        return self

    def pin(self, node_id: str, x: float, y: float):
        i = self._node(node_id)
        self.fixed[i] = (x, y)
        self.pos[i] = (x, y)
        self.vel[i] = 0

    def unpin(self, node_id: str):
        self.fixed[self._node(node_id)] = np.nan

    def drag(self, node_id: str, x: float, y: float):
        """Pin a node under the pointer and keep the layout warm while dragging."""
        self.pin(node_id, x, y)
        self.alpha_target = DRAG_ALPHA_TARGET
        self.alpha = max(self.alpha, DRAG_ALPHA_TARGET)

    def release(self, node_id: str):
        self.unpin(node_id)
        self.alpha_target = 0.0

    def _node(self, node_id: str) -> int:
        try:
            return self.index[node_id]
        except KeyError:
            raise LookupError(f"node not found: {node_id}") from None

    # -------------------------
    # Forces
    # -------------------------
    def _jiggle(self, shape) -> np.ndarray:
        return (self.rng.random(shape) - 0.5) * 1e-6

    def _apply_links(self):
        if not len(self.src):
            return
        delta = (self.pos[self.tgt] + self.vel[self.tgt]) - (self.pos[self.src] + self.vel[self.src])
        zero = delta == 0
        if zero.any():
            delta[zero] = self._jiggle(int(zero.sum()))
        length = np.linalg.norm(delta, axis=1)
        k = (length - self.settings.link_distance) / length * self.alpha * self.link_strength
        delta *= k[:, None]
        np.add.at(self.vel, self.tgt, -delta * self.bias[:, None])
        np.add.at(self.vel, self.src, delta * (1 - self.bias)[:, None])

    def _apply_charge(self):
        n = len(self.ids)
        if n < 2:
            return
        # delta[i, j] points from node i to node j
        delta = self.pos[None, :, :] - self.pos[:, None, :]
        dist2 = np.einsum("ijk,ijk->ij", delta, delta)
        np.fill_diagonal(dist2, np.inf)
        coincident = dist2 == 0
        if coincident.any():
            delta[coincident] = self._jiggle((int(coincident.sum()), 2))
            dist2 = np.einsum("ijk,ijk->ij", delta, delta)
            np.fill_diagonal(dist2, np.inf)
        dist2 = np.where(dist2 < DISTANCE_MIN2, np.sqrt(DISTANCE_MIN2 * dist2), dist2)
        weight = self.settings.charge_strength * self.alpha / dist2
        self.vel += np.einsum("ijk,ij->ik", delta, weight)

    def _apply_center(self):
        center = np.array([self.width / 2, self.height / 2])
        shift = (self.pos.mean(axis=0) - center) * self.settings.center_strength
        self.pos -= shift

    def _apply_cluster(self):
        self.vel[:, 1] += (self.height / 2 - self.pos[:, 1]) * self.settings.cluster_strength * self.alpha

    # -------------------------
    # Integration
    # -------------------------
    def step(self):
        self.alpha += (self.alpha_target - self.alpha) * ALPHA_DECAY
        if len(self.ids):
            self._apply_links()
            self._apply_charge()
            self._apply_center()
            self._apply_cluster()

            free = np.isnan(self.fixed)
            self.vel[free] *= 1 - VELOCITY_DECAY
            self.pos[free] += self.vel[free]
            self.pos[~free] = self.fixed[~free]
            self.vel[~free] = 0
        self.ticks += 1
        return self

    def run(self, max_ticks: int = 300):
        for _ in range(max_ticks):
            self.step()
            if self.alpha < ALPHA_MIN:
                break
        return self

    def positions(self) -> Dict[str, Position]:
        return {node_id: (float(x), float(y)) for node_id, (x, y) in zip(self.ids, self.pos)}


def layout_graph(
    graph: JournalGraph,
    settings: Optional[GraphSettings] = None,
    width: float = DEFAULT_WIDTH,
    height: float = DEFAULT_HEIGHT,
    pinned: Optional[Mapping[str, Position]] = None,
    max_ticks: int = 300,
) -> Dict[str, Position]:
    sim = ForceSimulation(graph.nodes, graph.links, settings, width, height)
    for node_id, (x, y) in (pinned or {}).items():
        sim.pin(node_id, x, y)
    sim.run(max_ticks)
    return sim.positions()
