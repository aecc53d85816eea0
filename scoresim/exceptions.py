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
Exceptions and warnings defined in scoresim.
"""


class ScoresimException(Exception):
    """
    Superclass of all exceptions thrown.
    """


class ConfigurationError(ScoresimException, ValueError):
    """
    The simulation parameters are invalid. Raised before any simulation
    takes place.
    """


class InfiniteWaitingTimeError(ScoresimException):
    """
    No event can ever occur in the current state, so the lineages can never
    coalesce (e.g., lineages isolated in demes with no migration between
    them).
    """


class MigrationDimensionWarning(UserWarning):
    """
    The migration rate vector had neither the symmetric nor the asymmetric
    length and was resized to the asymmetric length.
    """


class MultipleRootsWarning(UserWarning):
    """
    More than one lineage remained when the simulation finished, and the
    first was taken as the root.
    """
