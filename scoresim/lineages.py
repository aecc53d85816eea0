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
Bookkeeping of the active lineages, bucketed by deme and substate.
"""
from __future__ import annotations

import dataclasses
import logging

from .rates import Substate

logger: logging.Logger = logging.getLogger(__name__)


@dataclasses.dataclass(eq=False)
class Lineage:
    """
    An active lineage: the network edge currently being extended backwards
    in time, the deme it is in, and the time at which its immigrant window
    expires (None if the lineage is a resident).
    """

    edge: int
    deme: int
    expires_at: float | None = None

    @property
    def substate(self):
        if self.expires_at is None:
            return Substate.RESIDENT
        return Substate.IMMIGRANT

    def __str__(self):
        window = "" if self.expires_at is None else f" expires_at={self.expires_at}"
        return f"Lineage(edge={self.edge}, deme={self.deme}{window})"


class LineageRegistry:
    """
    Maps each (deme, substate) pair to the list of lineages currently in
    it. Lists keep insertion order so that a seeded simulation draws the
    same lineages each time, but no event depends on that order: lineages
    are always chosen uniformly at random.
    """

    def __init__(self, num_demes):
        assert num_demes > 0
        self.num_demes = num_demes
        self._buckets = {
            (deme, substate): []
            for deme in range(num_demes)
            for substate in Substate
        }

    def __len__(self):
        return sum(len(bucket) for bucket in self._buckets.values())

    def __iter__(self):
        for bucket in self._buckets.values():
            yield from bucket

    def all(self):  # noqa: A003
        return list(self)

    def add(self, lineage):
        """
        Adds the lineage to the bucket given by its deme and window.
        """
        self._buckets[lineage.deme, lineage.substate].append(lineage)

    def remove(self, lineage):
        bucket = self._buckets[lineage.deme, lineage.substate]
        for j, other in enumerate(bucket):
            if other is lineage:
                del bucket[j]
                return
        raise ValueError(f"{lineage} is not in the registry")

    def relocate(self, lineage, deme, expires_at=None):
        """
        Moves the lineage into the specified deme with the specified window
        expiry time.
        """
        self.remove(lineage)
        lineage.deme = deme
        lineage.expires_at = expires_at
        self.add(lineage)

    def lineages(self, deme, substate):
        return self._buckets[deme, Substate(substate)]

    def pooled(self, deme):
        """
        Returns the resident lineages in the deme followed by its immigrant
        lineages.
        """
        return (
            self._buckets[deme, Substate.RESIDENT]
            + self._buckets[deme, Substate.IMMIGRANT]
        )

    def count(self, deme, substate=None):
        if substate is None:
            return sum(len(self._buckets[deme, s]) for s in Substate)
        return len(self._buckets[deme, Substate(substate)])

    def expire_windows(self, time):
        """
        Moves every immigrant lineage whose window has expired at the
        specified time into the resident bucket of its deme. Returns the
        number of lineages moved.
        """
        num_expired = 0
        for deme in range(self.num_demes):
            immigrants = self._buckets[deme, Substate.IMMIGRANT]
            expired = [lin for lin in immigrants if lin.expires_at <= time]
            if len(expired) > 0:
                self._buckets[deme, Substate.IMMIGRANT] = [
                    lin for lin in immigrants if lin.expires_at > time
                ]
                for lineage in expired:
                    lineage.expires_at = None
                    self._buckets[deme, Substate.RESIDENT].append(lineage)
                num_expired += len(expired)
        if num_expired > 0:
            logger.debug("Expired %d immigrant windows at time=%f", num_expired, time)
        return num_expired

    @staticmethod
    def choose(lineages, rng):
        """
        Returns a lineage chosen uniformly at random from the specified list.
        """
        assert len(lineages) > 0
        return lineages[rng.randrange(len(lineages))]

    def print_state(self):
        print("Lineages:", len(self))
        for (deme, substate), bucket in self._buckets.items():
            print(f"\tdeme={deme} {substate.name}: {len(bucket)}")
            for lineage in bucket:
                print(f"\t\t{lineage}")

    def verify(self):
        seen = set()
        for (deme, substate), bucket in self._buckets.items():
            for lineage in bucket:
                assert lineage.deme == deme
                assert lineage.substate == substate
                assert id(lineage) not in seen
                seen.add(id(lineage))
