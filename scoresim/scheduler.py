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
Drawing the waiting time until the next event from competing exponential
clocks.
"""
from __future__ import annotations

import dataclasses
import enum
import logging
import math

from .rates import Substate

logger: logging.Logger = logging.getLogger(__name__)


class EventType(enum.IntEnum):
    """
    The kinds of event, in order of precedence when two candidate events
    have exactly the same waiting time.
    """

    COALESCENCE = 0
    REASSORTMENT = 1
    MIGRATION = 2
    SAMPLE = 3


@dataclasses.dataclass
class Event:
    """
    The next event to happen, after the specified waiting time. Coalescence
    events have a deme; reassortment events have a deme and substate;
    migration events have a source deme, source substate and destination
    deme.
    """

    type: EventType  # noqa: A003
    waiting_time: float
    deme: int | None = None
    substate: Substate | None = None
    dest: int | None = None

    def __str__(self):
        s = f"{self.type.name} after {self.waiting_time:.6g}"
        if self.deme is not None:
            s += f" deme={self.deme}"
        if self.substate is not None:
            s += f" {self.substate.name}"
        if self.dest is not None:
            s += f" -> {self.dest}"
        return s


class EventScheduler:
    """
    Chooses the next event for the current state of the lineage registry.
    Each possible event gets an independent exponential waiting time at its
    rate and the earliest wins. Draws are always made in the same order
    (demes ascending; coalescence, then reassortment and migration for
    residents and then for immigrants) so that a seeded random generator
    determines the outcome.
    """

    def __init__(self, rate_model, registry, rng):
        self.rate_model = rate_model
        self.registry = registry
        self.rng = rng

    def _exponential(self, rate):
        if rate <= 0:
            return math.inf
        return self.rng.expovariate(rate)

    def coalescence_waiting_time(self, deme):
        """
        Returns the waiting time until the next coalescence in the specified
        deme. Residents and immigrants are pooled.
        """
        k = self.registry.count(deme)
        if k < 2:
            return math.inf
        rate = 0.5 * k * (k - 1) * self.rate_model.coalescent_rate(deme)
        return self._exponential(rate)

    def reassortment_waiting_time(self, deme, substate):
        k = self.registry.count(deme, substate)
        if k < 1:
            return math.inf
        return self._exponential(k * self.rate_model.reassortment_rate(deme, substate))

    def migration_waiting_time(self, source, substate, dest):
        assert source != dest
        k = self.registry.count(source, substate)
        if k < 1:
            return math.inf
        return self._exponential(k * self.rate_model.migration_rate(source, dest))

    def next_event(self, time_until_next_sample=math.inf):
        """
        Returns the next Event. The time until the next sample is not random
        and competes with the drawn waiting times; ties go to coalescence,
        then reassortment, then migration, then sampling. If no event can
        occur, a SAMPLE event with infinite waiting time is returned.
        """
        num_demes = self.rate_model.num_demes
        t_ca = math.inf
        t_re = math.inf
        t_mig = math.inf
        ca_deme = None
        re_state = None
        mig_state = None
        for deme in range(num_demes):
            t = self.coalescence_waiting_time(deme)
            if t < t_ca:
                t_ca = t
                ca_deme = deme
            for substate in Substate:
                t = self.reassortment_waiting_time(deme, substate)
                if t < t_re:
                    t_re = t
                    re_state = (deme, substate)
                # A lineage cannot migrate into the deme it is already in,
                # whatever its substate.
                for dest in range(num_demes):
                    if dest == deme:
                        continue
                    t = self.migration_waiting_time(deme, substate, dest)
                    if t < t_mig:
                        t_mig = t
                        mig_state = (deme, substate, dest)

        min_time = min(t_ca, t_re, t_mig, time_until_next_sample)
        if min_time == math.inf:
            event = Event(EventType.SAMPLE, math.inf)
        elif min_time == t_ca:
            event = Event(EventType.COALESCENCE, t_ca, deme=ca_deme)
        elif min_time == t_re:
            deme, substate = re_state
            event = Event(EventType.REASSORTMENT, t_re, deme=deme, substate=substate)
        elif min_time == t_mig:
            deme, substate, dest = mig_state
            event = Event(
                EventType.MIGRATION, t_mig, deme=deme, substate=substate, dest=dest
            )
        else:
            event = Event(EventType.SAMPLE, time_until_next_sample)
        return event
