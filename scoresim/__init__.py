# Turn off flake8 and reorder-python-imports for this file.
# flake8: NOQA
# noreorder
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
Scoresim simulates reassortment networks for segmented genomes under the
structured coalescent, where lineages that have recently migrated are
treated as immigrants of their new deme for a fixed time window.
"""

from scoresim.core import __version__

from scoresim.ancestry import (
    Sample,
    sim_network,
)

from scoresim.exceptions import (
    ConfigurationError,
    InfiniteWaitingTimeError,
    MigrationDimensionWarning,
    MultipleRootsWarning,
    ScoresimException,
)

from scoresim.lineages import (
    Lineage,
    LineageRegistry,
)

from scoresim.network import (
    Edge,
    NetworkGraph,
    Node,
    NodeType,
    NULL,
)

from scoresim.rates import (
    RateModel,
    Substate,
)

from scoresim.scheduler import (
    Event,
    EventScheduler,
    EventType,
)

from scoresim.simulator import (
    SimulationState,
    Simulator,
)

__all__ = [
    "ConfigurationError",
    "Edge",
    "Event",
    "EventScheduler",
    "EventType",
    "InfiniteWaitingTimeError",
    "Lineage",
    "LineageRegistry",
    "MigrationDimensionWarning",
    "MultipleRootsWarning",
    "NULL",
    "NetworkGraph",
    "Node",
    "NodeType",
    "RateModel",
    "Sample",
    "ScoresimException",
    "SimulationState",
    "Simulator",
    "Substate",
    "sim_network",
]
