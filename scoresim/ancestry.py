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
Module responsible for parsing the simulation parameters and running
network simulations.
"""
from __future__ import annotations

import collections.abc
import dataclasses
import logging
import math
from typing import Any

import numpy as np

from . import core
from .exceptions import ConfigurationError
from .rates import RateModel
from .simulator import Simulator

logger: logging.Logger = logging.getLogger(__name__)


@dataclasses.dataclass
class Sample:
    """
    A sampled genome: its taxon label, the deme it was sampled in and the
    time (height above the present) at which it was sampled.
    """

    taxon: str
    deme: Any
    """
    The label of the deme the sample was taken from. Demes are numbered in
    the sorted order of their labels unless the ``demes`` argument to
    :func:`sim_network` is given.
    """
    time: float = 0.0

    def asdict(self):
        return dataclasses.asdict(self)


def _parse_random_seed(seed):
    """
    Parse the specified random seed value. If no seed is provided, generate a
    high-quality random seed.
    """
    if seed is None:
        seed = core.get_random_seed()
    if isinstance(seed, np.ndarray):
        seed = seed[0]
    seed = int(seed)
    return seed


def _parse_samples(samples, sample_times):
    if isinstance(samples, collections.abc.Mapping):
        sample_times = {} if sample_times is None else dict(sample_times)
        unknown = set(sample_times) - set(samples)
        if len(unknown) > 0:
            raise ConfigurationError(
                f"Sample times given for unknown taxa: {sorted(unknown)}"
            )
        samples = [
            Sample(taxon, deme, sample_times.get(taxon, 0.0))
            for taxon, deme in samples.items()
        ]
    elif sample_times is not None:
        raise ConfigurationError(
            "sample_times can only be used when samples is a mapping of taxa to demes"
        )
    parsed = []
    for sample in samples:
        if not isinstance(sample, Sample):
            sample = Sample(*sample)
        parsed.append(sample)
    if len(parsed) == 0:
        raise ConfigurationError("Must specify at least one sample")

    taxa = set()
    for sample in parsed:
        if sample.deme is None:
            raise ConfigurationError(f"Sample '{sample.taxon}' has no deme assigned")
        if sample.taxon in taxa:
            raise ConfigurationError(f"Duplicate taxon label '{sample.taxon}'")
        taxa.add(sample.taxon)
        time = float(sample.time)
        if not time >= 0 or not math.isfinite(time):
            raise ConfigurationError(
                f"Sample '{sample.taxon}' must have a finite, non-negative time"
            )
    return parsed


def _parse_demes(samples, demes):
    """
    Returns the list of deme labels. If demes is None these are the distinct
    labels of the samples in sorted order.
    """
    if demes is None:
        try:
            demes = sorted({sample.deme for sample in samples})
        except TypeError as te:
            raise ConfigurationError(
                "Deme labels must be mutually comparable (e.g., all strings)"
            ) from te
    else:
        demes = list(demes)
        if len(demes) == 0:
            raise ConfigurationError("Must specify at least one deme")
        if len(set(demes)) != len(demes):
            raise ConfigurationError("Deme labels must be unique")
        for sample in samples:
            if sample.deme not in demes:
                raise ConfigurationError(
                    f"Sample '{sample.taxon}' is in unknown deme '{sample.deme}'"
                )
    return demes


def _parse_per_deme_rates(rates, num_demes, name):
    if rates is None:
        raise ConfigurationError(f"Must specify the {name} rates")
    rates = np.array(rates, dtype=float)
    if rates.ndim == 0:
        rates = np.full(num_demes, float(rates))
    return rates


def _parse_sim_network(
    samples=None,
    *,
    num_segments=None,
    coalescent_rates=None,
    reassortment_rates=None,
    migration_rates=None,
    reassortment_scalar=None,
    time_window=None,
    demes=None,
    sample_times=None,
    random_seed=None,
):
    """
    Argument parser for the sim_network frontend. Interprets all the
    parameters and returns an appropriate instance of Simulator.
    """
    if samples is None:
        raise ConfigurationError("Must specify the samples")
    if num_segments is None:
        raise ConfigurationError("Must specify the number of segments")
    if not core.isinteger(num_segments) or num_segments < 1:
        raise ConfigurationError("Need at least one segment")
    if migration_rates is None:
        migration_rates = []
    reassortment_scalar = 1.0 if reassortment_scalar is None else reassortment_scalar
    time_window = 0.0 if time_window is None else time_window

    samples = _parse_samples(samples, sample_times)
    demes = _parse_demes(samples, demes)
    deme_index = {deme: j for j, deme in enumerate(demes)}
    num_demes = len(demes)

    rate_model = RateModel(
        num_demes=num_demes,
        coalescent_rates=_parse_per_deme_rates(coalescent_rates, num_demes, "coalescent"),
        reassortment_rates=_parse_per_deme_rates(
            reassortment_rates, num_demes, "reassortment"
        ),
        migration_rates=migration_rates,
        reassortment_scalar=reassortment_scalar,
        time_window=time_window,
        num_segments=int(num_segments),
        deme_names=[str(deme) for deme in demes],
    )
    random_seed = _parse_random_seed(random_seed)
    return Simulator(
        rate_model=rate_model,
        samples=[
            (str(sample.taxon), float(sample.time), deme_index[sample.deme])
            for sample in samples
        ],
        random_seed=random_seed,
    )


def sim_network(
    samples=None,
    *,
    num_segments=None,
    coalescent_rates=None,
    reassortment_rates=None,
    migration_rates=None,
    reassortment_scalar=None,
    time_window=None,
    demes=None,
    sample_times=None,
    remove_migration_nodes=None,
    end_time=None,
    random_seed=None,
):
    """
    Simulates a reassortment network for the specified samples under the
    structured coalescent with reassortment, where lineages that have
    recently migrated are immigrants of their new deme for the length of
    the time window.

    :param samples: A list of :class:`.Sample` objects (or
        ``(taxon, deme, time)`` tuples), or a mapping of taxon labels to
        deme labels.
    :param int num_segments: The number of genome segments.
    :param coalescent_rates: The rate of coalescence per pair of lineages
        in each deme. A single value applies to all demes.
    :param reassortment_rates: The rate of reassortment per resident
        lineage in each deme. A single value applies to all demes.
    :param migration_rates: The flat vector of migration rates. See
        :class:`.RateModel` for how it is interpreted.
    :param float reassortment_scalar: The factor applied to the reassortment
        rate of immigrant lineages (default 1).
    :param float time_window: How long a lineage stays an immigrant after
        migrating (default 0).
    :param demes: The list of deme labels. Defaults to the sorted distinct
        deme labels of the samples.
    :param sample_times: A mapping of taxon labels to sampling times, used
        when ``samples`` is a mapping. Taxa not listed are sampled at time 0.
    :param bool remove_migration_nodes: If True, splice the migration nodes
        out of the finished network (default False).
    :param float end_time: If specified, stop the simulation at this time.
        The resulting network is incomplete if more than one lineage remains.
    :param int random_seed: The random seed. If None, a seed is generated.
    :return: The simulated network.
    :rtype: .NetworkGraph
    """
    remove_migration_nodes = core._parse_flag(remove_migration_nodes, default=False)
    if end_time is not None:
        end_time = float(end_time)
        if not end_time >= 0:
            raise ConfigurationError("end_time must be >= 0")
    sim = _parse_sim_network(
        samples,
        num_segments=num_segments,
        coalescent_rates=coalescent_rates,
        reassortment_rates=reassortment_rates,
        migration_rates=migration_rates,
        reassortment_scalar=reassortment_scalar,
        time_window=time_window,
        demes=demes,
        sample_times=sample_times,
        random_seed=random_seed,
    )
    network = sim.run(end_time=end_time)
    if remove_migration_nodes:
        network.remove_migration_nodes()
    return network
