#
# Copyright (C) 2026 The scoresim developers
#
# This file is part of scoresim.
#
# scoresim is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# scoresim is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with scoresim.  If not, see <http://www.gnu.org/licenses/>.
#
"""
The reassortment network: an append-only arena of nodes and edges, where
each edge carries the set of genome segments passing along it.
"""
from __future__ import annotations

import dataclasses
import enum
import logging
from typing import List

import tskit

from . import core

logger: logging.Logger = logging.getLogger(__name__)

NULL = tskit.NULL


class NodeType(enum.Flag):
    """
    The kind of event that created an internal node. The values are used
    as the node flags when a network is converted to tskit tables, and are
    chosen to match the flags msprime uses for the same events.
    """

    REASSORTMENT = 1 << 17
    COALESCENT = 1 << 18
    MIGRANT = 1 << 19


def full_mask(num_segments):
    """
    Returns the segment mask with all of the specified number of segments
    present.
    """
    return (1 << num_segments) - 1


def mask_segments(mask):
    """
    Returns the list of segment indexes present in the specified mask.
    """
    segments = []
    j = 0
    while mask > 0:
        if mask & 1:
            segments.append(j)
        mask >>= 1
        j += 1
    return segments


def segment_runs(mask):
    """
    Returns the maximal runs of consecutive segments in the specified mask
    as a list of half-open (left, right) intervals.
    """
    runs = []
    for j in mask_segments(mask):
        if len(runs) > 0 and runs[-1][1] == j:
            runs[-1][1] = j + 1
        else:
            runs.append([j, j + 1])
    return [tuple(run) for run in runs]


@dataclasses.dataclass
class Node:
    """
    A node of the network. The time is the height of the node above the
    present, increasing backwards in time.
    """

    id: int  # noqa: A003
    time: float
    deme: int
    flags: int = 0
    taxon: str | None = None
    children: List[int] = dataclasses.field(default_factory=list)
    parents: List[int] = dataclasses.field(default_factory=list)

    @property
    def is_sample(self):
        return bool(self.flags & tskit.NODE_IS_SAMPLE)

    @property
    def is_coalescent(self):
        return bool(self.flags & NodeType.COALESCENT.value)

    @property
    def is_reassortment(self):
        return bool(self.flags & NodeType.REASSORTMENT.value)

    @property
    def is_migration(self):
        return bool(self.flags & NodeType.MIGRANT.value)


@dataclasses.dataclass
class Edge:
    """
    An edge of the network, leading from the child node backwards in time
    to the parent node. The parent is NULL while the edge is the lineage
    being extended, and stays NULL for the root edge.
    """

    id: int  # noqa: A003
    child: int
    segments: int
    parent: int = NULL


class NetworkGraph:
    """
    A reassortment network under construction. Nodes and edges are stored
    in lists and refer to each other by index. Nodes and edges are never
    removed during simulation; removing migration nodes afterwards leaves
    None in their slots so that the indexes of the remaining entries are
    unchanged.

    The random seed of the simulation that built the network, if any, is
    kept as ``random_seed``.
    """

    def __init__(self, num_segments, deme_names, random_seed=None):
        assert num_segments > 0
        self.num_segments = num_segments
        self.deme_names = tuple(deme_names)
        self.random_seed = random_seed
        self.root_edge = NULL
        self._nodes: List[Node | None] = []
        self._edges: List[Edge | None] = []

    @property
    def num_demes(self):
        return len(self.deme_names)

    @property
    def num_nodes(self):
        return sum(node is not None for node in self._nodes)

    @property
    def num_edges(self):
        return sum(edge is not None for edge in self._edges)

    @property
    def num_samples(self):
        return sum(1 for _ in self.samples())

    @property
    def root(self):
        """
        The node at the top of the network, i.e., the child of the root edge.
        """
        if self.root_edge == NULL:
            return NULL
        return self.edge(self.root_edge).child

    def node(self, u):
        node = self._nodes[u]
        if node is None:
            raise KeyError(f"Node {u} has been removed")
        return node

    def edge(self, e):
        edge = self._edges[e]
        if edge is None:
            raise KeyError(f"Edge {e} has been removed")
        return edge

    def nodes(self):
        return (node for node in self._nodes if node is not None)

    def edges(self):
        return (edge for edge in self._edges if edge is not None)

    def samples(self):
        return (node for node in self.nodes() if node.is_sample)

    def count(self, node_type):
        """
        Returns the number of nodes with the specified NodeType flag.
        """
        return sum(1 for node in self.nodes() if node.flags & node_type.value)

    def add_node(self, *, time, deme, flags=0, taxon=None):
        u = len(self._nodes)
        self._nodes.append(Node(u, time, deme, flags=flags, taxon=taxon))
        return u

    def add_edge(self, child, segments):
        """
        Adds a new edge above the specified child node and returns its index.
        """
        e = len(self._edges)
        self._edges.append(Edge(e, child, segments))
        self._nodes[child].parents.append(e)
        return e

    def set_parent(self, e, u):
        """
        Closes the edge e by making node u its parent.
        """
        edge = self._edges[e]
        assert edge.parent == NULL
        edge.parent = u
        self._nodes[u].children.append(e)

    def remove_migration_nodes(self):
        """
        Splices all migration nodes out of the network, from the top down.
        The node below a migration node takes the migration node's parent
        edge in place of its own; the migration node and the edge below it
        are removed. Returns the number of nodes removed.
        """
        migration_nodes = sorted(
            (
                node
                for node in self.nodes()
                if len(node.children) == 1 and len(node.parents) == 1
            ),
            key=lambda node: (node.time, node.id),
            reverse=True,
        )
        for node in migration_nodes:
            child_edge = self._edges[node.children[0]]
            parent_edge = self._edges[node.parents[0]]
            below = self._nodes[child_edge.child]
            below.parents[below.parents.index(child_edge.id)] = parent_edge.id
            parent_edge.child = below.id
            self._nodes[node.id] = None
            self._edges[child_edge.id] = None
        logger.info("Removed %d migration nodes", len(migration_nodes))
        return len(migration_nodes)

    def to_tables(self):
        """
        Returns a :class:`tskit.TableCollection` describing this network.
        Each segment occupies a unit of the genome, so that the sequence
        length is the number of segments and there is one marginal tree per
        run of segments sharing a history. Node and edge indexes are not
        preserved.
        """
        tables = tskit.TableCollection(sequence_length=self.num_segments)
        tables.populations.metadata_schema = tskit.MetadataSchema.permissive_json()
        for name in self.deme_names:
            tables.populations.add_row(metadata={"name": name})
        tables.nodes.metadata_schema = tskit.MetadataSchema.permissive_json()
        node_map = {}
        for node in self.nodes():
            metadata = {} if node.taxon is None else {"taxon": node.taxon}
            node_map[node.id] = tables.nodes.add_row(
                flags=node.flags,
                time=node.time,
                population=node.deme,
                metadata=metadata,
            )
        for edge in self.edges():
            if edge.parent == NULL:
                continue
            for left, right in segment_runs(edge.segments):
                tables.edges.add_row(
                    left=left,
                    right=right,
                    parent=node_map[edge.parent],
                    child=node_map[edge.child],
                )
        tables.sort()
        return tables

    def verify(self):
        """
        Checks the structural invariants of the network.
        """
        all_segments = full_mask(self.num_segments)
        for edge in self.edges():
            assert 0 < edge.segments <= all_segments
            assert edge.id in self.node(edge.child).parents
            if edge.parent != NULL:
                assert edge.id in self.node(edge.parent).children
                assert self.node(edge.parent).time >= self.node(edge.child).time
        for node in self.nodes():
            children = [self.edge(e) for e in node.children]
            parents = [self.edge(e) for e in node.parents]
            assert 0 <= node.deme < self.num_demes
            if node.is_sample:
                assert len(children) == 0
                assert node.taxon is not None
                assert len(parents) <= 1
                for edge in parents:
                    assert edge.segments == all_segments
            elif node.is_coalescent:
                assert len(children) == 2
                assert len(parents) <= 1
                for edge in parents:
                    assert edge.segments == children[0].segments | children[1].segments
            elif node.is_reassortment:
                assert len(children) == 1
                assert len(parents) == 2
                left, right = parents[0].segments, parents[1].segments
                assert left > 0 and right > 0
                assert left & right == 0
                assert left | right == children[0].segments
            elif node.is_migration:
                assert len(children) == 1
                assert len(parents) <= 1
                for edge in parents:
                    assert edge.segments == children[0].segments
        if self.root_edge != NULL:
            roots = [edge.id for edge in self.edges() if edge.parent == NULL]
            assert roots == [self.root_edge]

    def _summary_text(self):
        headers = ["deme", "samples", "coalescent", "reassortment", "migration"]
        counts = [[0, 0, 0, 0] for _ in range(self.num_demes)]
        for node in self.nodes():
            row = counts[node.deme]
            row[0] += node.is_sample
            row[1] += node.is_coalescent
            row[2] += node.is_reassortment
            row[3] += node.is_migration
        rows = [
            [name] + [str(value) for value in row]
            for name, row in zip(self.deme_names, counts)
        ]
        return core.text_table("Nodes", headers, "<>>>>", rows)

    def __str__(self):
        root = self.root
        root_time = "NA" if root == NULL else f"{self.node(root).time:.6g}"
        lines = self._summary_text().splitlines()
        s = (
            "NetworkGraph\n"
            f"╟  segments = {self.num_segments}\n"
            f"╟  nodes = {self.num_nodes}\n"
            f"╟  edges = {self.num_edges}\n"
            f"╟  root time = {root_time}\n"
        )
        s += "╟  " + lines[0] + "\n"
        for line in lines[1:]:
            s += "║  " + line + "\n"
        return s
