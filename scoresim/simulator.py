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
Simulation of a reassortment network under the structured coalescent with
an immigrant time window.
"""
from __future__ import annotations

import collections
import enum
import logging
import math
import random
import warnings

import tskit

from .exceptions import InfiniteWaitingTimeError
from .exceptions import MultipleRootsWarning
from .lineages import Lineage
from .lineages import LineageRegistry
from .network import full_mask
from .network import mask_segments
from .network import NetworkGraph
from .network import NodeType
from .network import NULL
from .scheduler import EventScheduler
from .scheduler import EventType

logger: logging.Logger = logging.getLogger(__name__)


class SimulationState(enum.Enum):
    RUNNING = "running"
    DONE = "done"


class Simulator:
    """
    Simulates a network backwards in time from a set of samples.

    The samples are a list of ``(taxon, time, deme)`` tuples, with deme an
    index into the demes of the rate model. All random draws come from a
    :class:`random.Random` seeded with ``random_seed``, so two simulators
    with the same seed and inputs produce identical networks.
    """

    def __init__(self, *, rate_model, samples, random_seed):
        assert len(samples) > 0
        self.rate_model = rate_model
        self.random_seed = random_seed
        self.rng = random.Random(random_seed)
        self.registry = LineageRegistry(rate_model.num_demes)
        self.network = NetworkGraph(
            rate_model.num_segments, rate_model.deme_names, random_seed=random_seed
        )
        self.scheduler = EventScheduler(rate_model, self.registry, self.rng)
        self.time = 0.0
        self.state = SimulationState.RUNNING

        sample_nodes = []
        for taxon, time, deme in samples:
            assert 0 <= deme < rate_model.num_demes
            u = self.network.add_node(
                time=time, deme=deme, flags=tskit.NODE_IS_SAMPLE, taxon=taxon
            )
            sample_nodes.append(u)
        # Stable, so samples at equal times are introduced in input order.
        sample_nodes.sort(key=lambda u: self.network.node(u).time)
        self.pending_samples = collections.deque(sample_nodes)

        self.num_coalescence_events = 0
        self.num_reassortment_events = 0
        self.num_unobservable_reassortments = 0
        self.num_migration_events = 0
        self.num_sample_events = 0

    @property
    def num_lineages(self):
        return len(self.registry)

    def is_completed(self):
        return len(self.registry) == 1 and len(self.pending_samples) == 0

    def time_until_next_sample(self):
        if len(self.pending_samples) == 0:
            return math.inf
        return self.network.node(self.pending_samples[0]).time - self.time

    def run(self, end_time=None, debug_func=None, verify=False):
        """
        Runs the simulation until a single lineage remains and all samples
        have been introduced, or until the end time is reached. Returns the
        network.

        If specified, ``debug_func`` is called with the simulator after
        every event.
        """
        if end_time is None:
            end_time = math.inf
        logger.info(
            "Simulating network for %d samples in %d demes (seed=%s)",
            len(self.pending_samples),
            self.rate_model.num_demes,
            self.random_seed,
        )
        while not self.is_completed():
            if verify:
                self.verify()
            self.registry.expire_windows(self.time)
            event = self.scheduler.next_event(self.time_until_next_sample())
            if self.time + event.waiting_time > end_time:
                logger.info("Reached end time %f", end_time)
                self.time = end_time
                break
            if event.waiting_time == math.inf:
                raise InfiniteWaitingTimeError(
                    f"Infinite waiting time until next event at time={self.time} "
                    f"with {len(self.registry)} lineages; check that the "
                    "migration rates connect all demes containing lineages"
                )
            if event.type == EventType.SAMPLE:
                self.time = self.network.node(self.pending_samples[0]).time
                self.sample_event()
            else:
                self.time += event.waiting_time
                if event.type == EventType.COALESCENCE:
                    self.coalescence_event(event.deme)
                elif event.type == EventType.REASSORTMENT:
                    self.reassortment_event(event.deme, event.substate)
                else:
                    self.migration_event(event.deme, event.substate, event.dest)
            logger.debug(
                "%s time=%f n=%d", event.type.name, self.time, len(self.registry)
            )
            if debug_func is not None:
                debug_func(self)
        if verify:
            self.verify()
        self.finalise()
        logger.info(
            "Completed at time=%g nodes=%d edges=%d",
            self.time,
            self.network.num_nodes,
            self.network.num_edges,
        )
        return self.network

    def finalise(self):
        lineages = self.registry.all()
        if len(lineages) > 1 or len(self.pending_samples) > 0:
            message = (
                f"{len(lineages)} lineages and {len(self.pending_samples)} samples "
                "remaining at the end of the simulation; using the first lineage "
                "as the root edge"
            )
            logger.warning(message)
            warnings.warn(message, MultipleRootsWarning, stacklevel=3)
        if len(lineages) > 0:
            self.network.root_edge = lineages[0].edge
        self.state = SimulationState.DONE

    def sample_event(self):
        """
        Introduces the next pending sample as a resident lineage carrying
        all segments.
        """
        u = self.pending_samples.popleft()
        node = self.network.node(u)
        e = self.network.add_edge(u, full_mask(self.rate_model.num_segments))
        self.registry.add(Lineage(e, node.deme))
        self.num_sample_events += 1

    def coalescence_event(self, deme):
        """
        Merges two distinct lineages chosen uniformly from the residents and
        immigrants of the specified deme.
        """
        pool = self.registry.pooled(deme)
        assert len(pool) >= 2
        x = self.registry.choose(pool, self.rng)
        y = x
        while y is x:
            y = self.registry.choose(pool, self.rng)

        u = self.network.add_node(
            time=self.time, deme=deme, flags=NodeType.COALESCENT.value
        )
        self.network.set_parent(x.edge, u)
        self.network.set_parent(y.edge, u)
        segments = (
            self.network.edge(x.edge).segments | self.network.edge(y.edge).segments
        )
        e = self.network.add_edge(u, segments)
        # The merged lineage stays an immigrant until the later of the two
        # windows expires.
        windows = [t for t in (x.expires_at, y.expires_at) if t is not None]
        expires_at = max(windows) if len(windows) > 0 else None
        self.registry.remove(x)
        self.registry.remove(y)
        self.registry.add(Lineage(e, deme, expires_at))
        self.num_coalescence_events += 1

    def reassortment_event(self, deme, substate):
        """
        Splits the segments of a lineage chosen uniformly from the specified
        deme and substate between two parent lineages. Splits that leave
        either parent with no segments cannot be observed and are discarded.
        """
        lineage = self.registry.choose(
            self.registry.lineages(deme, substate), self.rng
        )
        segments = self.network.edge(lineage.edge).segments
        left = 0
        right = 0
        for j in mask_segments(segments):
            if self.rng.random() < 0.5:
                left |= 1 << j
            else:
                right |= 1 << j
        if left == 0 or right == 0:
            self.num_unobservable_reassortments += 1
            return

        u = self.network.add_node(
            time=self.time, deme=deme, flags=NodeType.REASSORTMENT.value
        )
        self.network.set_parent(lineage.edge, u)
        self.registry.remove(lineage)
        for mask in (left, right):
            e = self.network.add_edge(u, mask)
            self.registry.add(Lineage(e, deme, lineage.expires_at))
        self.num_reassortment_events += 1

    def migration_event(self, source, substate, dest):
        """
        Moves a lineage chosen uniformly from the specified deme and
        substate into the destination deme as an immigrant. The window
        starts again from the current time, even if the lineage was already
        an immigrant.
        """
        assert source != dest
        lineage = self.registry.choose(
            self.registry.lineages(source, substate), self.rng
        )
        u = self.network.add_node(
            time=self.time, deme=dest, flags=NodeType.MIGRANT.value
        )
        segments = self.network.edge(lineage.edge).segments
        self.network.set_parent(lineage.edge, u)
        lineage.edge = self.network.add_edge(u, segments)
        self.registry.relocate(
            lineage, dest, expires_at=self.time + self.rate_model.time_window
        )
        self.num_migration_events += 1

    def print_state(self):
        print("Simulator state at time", self.time)
        print("\tstate =", self.state.value)
        print("\tpending samples =", len(self.pending_samples))
        print("\tcoalescences =", self.num_coalescence_events)
        print("\treassortments =", self.num_reassortment_events)
        print("\tunobservable reassortments =", self.num_unobservable_reassortments)
        print("\tmigrations =", self.num_migration_events)
        self.registry.print_state()

    def verify(self):
        """
        Checks that the registry and the network under construction agree.
        """
        self.registry.verify()
        open_edges = {
            edge.id for edge in self.network.edges() if edge.parent == NULL
        }
        active_edges = {lineage.edge for lineage in self.registry}
        assert len(active_edges) == len(self.registry)
        assert open_edges == active_edges
        for lineage in self.registry:
            edge = self.network.edge(lineage.edge)
            node = self.network.node(edge.child)
            assert node.deme == lineage.deme
            assert node.time <= self.time
        self.network.verify()
