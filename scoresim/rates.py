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
Per-deme rates of coalescence, reassortment and migration.
"""
from __future__ import annotations

import enum
import logging
import warnings

import numpy as np

from . import core
from .exceptions import ConfigurationError
from .exceptions import MigrationDimensionWarning

logger: logging.Logger = logging.getLogger(__name__)


class Substate(enum.IntEnum):
    """
    The two substates of a deme. A lineage is an immigrant for the length of
    the time window following a migration into its deme, and a resident
    otherwise.
    """

    RESIDENT = 0
    IMMIGRANT = 1


class MigrationType(enum.Enum):
    SYMMETRIC = "symmetric"
    ASYMMETRIC = "asymmetric"


def _parse_rate_vector(values, num_demes, name):
    rates = np.array(values, dtype=float).reshape(-1)
    if rates.shape != (num_demes,):
        raise ConfigurationError(
            f"The {name} rates must have one value per deme: expected "
            f"{num_demes}, got {rates.shape[0]}"
        )
    if np.any(rates < 0) or not np.all(np.isfinite(rates)):
        raise ConfigurationError(f"The {name} rates must be finite and non-negative")
    return rates


class RateModel:
    """
    A validated, read-only view of the rates of a structured coalescent
    with reassortment and an immigrant time window.

    The migration rates are given as a flat vector. A vector of length
    ``D * (D - 1)`` is interpreted as asymmetric rates, listed row by row
    over the off-diagonal entries of the ``D x D`` matrix (source-major,
    destinations ascending, skipping the source). A vector of length
    ``D * (D - 1) / 2`` is interpreted as symmetric rates, listed row by
    row over the upper triangle. Any other length falls back to asymmetric
    rates: the vector is truncated or padded with zeros and a
    :class:`.MigrationDimensionWarning` is emitted.
    """

    def __init__(
        self,
        *,
        num_demes,
        coalescent_rates,
        reassortment_rates,
        migration_rates,
        reassortment_scalar=1.0,
        time_window=0.0,
        num_segments=1,
        deme_names=None,
    ):
        if not core.isinteger(num_demes) or num_demes < 1:
            raise ConfigurationError("Must have at least one deme")
        num_demes = int(num_demes)
        if not core.isinteger(num_segments) or num_segments < 1:
            raise ConfigurationError("Need at least one segment")
        if deme_names is None:
            deme_names = [f"deme_{j}" for j in range(num_demes)]
        deme_names = [str(name) for name in deme_names]
        if len(deme_names) != num_demes:
            raise ConfigurationError("Must have one name per deme")
        if len(set(deme_names)) != num_demes:
            raise ConfigurationError("Deme names must be unique")
        reassortment_scalar = float(reassortment_scalar)
        if not reassortment_scalar > 0 or not np.isfinite(reassortment_scalar):
            raise ConfigurationError("The reassortment scalar must be positive")
        time_window = float(time_window)
        if not time_window >= 0 or not np.isfinite(time_window):
            raise ConfigurationError("The time window must be finite and >= 0")

        self._num_demes = num_demes
        self._num_segments = int(num_segments)
        self._deme_names = tuple(deme_names)
        self._coalescent_rates = _parse_rate_vector(
            coalescent_rates, num_demes, "coalescent"
        )
        self._reassortment_rates = _parse_rate_vector(
            reassortment_rates, num_demes, "reassortment"
        )
        self._reassortment_scalar = reassortment_scalar
        self._time_window = time_window
        self._migration_type, self._migration_rates = self._parse_migration_rates(
            migration_rates
        )
        self._migration_matrix = self._build_migration_matrix()
        for array in [
            self._coalescent_rates,
            self._reassortment_rates,
            self._migration_rates,
            self._migration_matrix,
        ]:
            array.flags.writeable = False

    def _parse_migration_rates(self, migration_rates):
        D = self._num_demes
        rates = np.array(migration_rates, dtype=float).reshape(-1)
        if np.any(rates < 0) or not np.all(np.isfinite(rates)):
            raise ConfigurationError("Migration rates must be finite and non-negative")
        asymmetric_dim = D * (D - 1)
        if rates.shape[0] == asymmetric_dim:
            return MigrationType.ASYMMETRIC, rates
        if rates.shape[0] == asymmetric_dim // 2:
            return MigrationType.SYMMETRIC, rates
        message = (
            f"Wrong number of migration rates ({rates.shape[0]}) for {D} demes; "
            f"assuming asymmetric migration and setting the dimension to "
            f"{asymmetric_dim}"
        )
        logger.warning(message)
        warnings.warn(message, MigrationDimensionWarning, stacklevel=3)
        resized = np.zeros(asymmetric_dim)
        n = min(asymmetric_dim, rates.shape[0])
        resized[:n] = rates[:n]
        return MigrationType.ASYMMETRIC, resized

    def _migration_index(self, source, dest):
        D = self._num_demes
        if self._migration_type == MigrationType.ASYMMETRIC:
            return source * (D - 1) + (dest if dest < source else dest - 1)
        i, j = min(source, dest), max(source, dest)
        # Number of upper triangle entries in the rows before i.
        return i * (2 * D - i - 1) // 2 + (j - i - 1)

    def _build_migration_matrix(self):
        D = self._num_demes
        M = np.zeros((D, D))
        for source in range(D):
            for dest in range(D):
                if source != dest:
                    M[source, dest] = self._migration_rates[
                        self._migration_index(source, dest)
                    ]
        return M

    def _check_deme(self, deme):
        if not 0 <= deme < self._num_demes:
            raise IndexError(f"Deme index {deme} out of bounds")

    @property
    def num_demes(self):
        return self._num_demes

    @property
    def num_segments(self):
        return self._num_segments

    @property
    def deme_names(self):
        return self._deme_names

    @property
    def time_window(self):
        return self._time_window

    @property
    def reassortment_scalar(self):
        return self._reassortment_scalar

    @property
    def is_symmetric(self):
        return self._migration_type == MigrationType.SYMMETRIC

    @property
    def migration_rates(self):
        """
        The (possibly resized) flat vector of migration rates.
        """
        return self._migration_rates

    @property
    def migration_matrix(self):
        """
        The ``D x D`` matrix of migration rates, where entry ``[j, k]`` is
        the rate at which a lineage in deme ``j`` moves to deme ``k``. The
        diagonal is zero.
        """
        return self._migration_matrix

    def coalescent_rate(self, deme):
        self._check_deme(deme)
        return float(self._coalescent_rates[deme])

    def reassortment_rate(self, deme, substate=Substate.RESIDENT):
        """
        Returns the per lineage reassortment rate in the specified deme and
        substate. Immigrant lineages reassort at the resident rate
        multiplied by the reassortment scalar.
        """
        self._check_deme(deme)
        rate = float(self._reassortment_rates[deme])
        if Substate(substate) == Substate.IMMIGRANT:
            rate *= self._reassortment_scalar
        return rate

    def migration_rate(self, source, dest):
        """
        Returns the per lineage rate of migration from the source deme into
        the destination deme. The rate does not depend on the substate of
        the migrating lineage, and is zero when source == dest.
        """
        self._check_deme(source)
        self._check_deme(dest)
        return float(self._migration_matrix[source, dest])

    def _demes_text(self):
        headers = ["id", "name", "coalescent_rate", "reassortment_rate"]
        rows = [
            [
                str(j),
                self._deme_names[j],
                f"{self._coalescent_rates[j]:.4g}",
                f"{self._reassortment_rates[j]:.4g}",
            ]
            for j in range(self._num_demes)
        ]
        return core.text_table("Demes", headers, "^<>>", rows)

    def _migration_matrix_text(self):
        headers = [""] + list(self._deme_names)
        rows = [
            [name] + [f"{rate:.4g}" for rate in self._migration_matrix[j]]
            for j, name in enumerate(self._deme_names)
        ]
        caption = f"Migration Matrix ({self._migration_type.value})"
        return core.text_table(caption, headers, ">" + "^" * self._num_demes, rows)

    def __str__(self):
        def indent(table):
            lines = table.splitlines()
            s = "╟  " + lines[0] + "\n"
            for line in lines[1:]:
                s += "║  " + line + "\n"
            return s

        return (
            "RateModel\n"
            f"╟  segments = {self._num_segments}\n"
            f"╟  time_window = {self._time_window:.4g}\n"
            f"╟  reassortment_scalar = {self._reassortment_scalar:.4g}\n"
            + indent(self._demes_text())
            + indent(self._migration_matrix_text())
        )
