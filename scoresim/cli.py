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
Command line interface for scoresim. Runs a single simulation and prints a
summary of the rates and the resulting network.
"""
import argparse
import logging
import os
import signal
import sys

import daiquiri

from . import ancestry
from . import core
from .exceptions import ConfigurationError
from .exceptions import InfiniteWaitingTimeError


def set_sigpipe_handler():
    if os.name == "posix":
        # Set signal handler for SIGPIPE to quietly kill the program.
        signal.signal(signal.SIGPIPE, signal.SIG_DFL)


def setup_logging(args):
    log_output = daiquiri.output.Stream(
        sys.stderr,
        formatter=daiquiri.formatter.ColorFormatter(fmt="[%(levelname)s] %(message)s"),
    )
    daiquiri.setup(level=args.log_level, outputs=[log_output])


def make_samples(samples_per_deme):
    """
    Returns the samples for the specified number of samples in each deme,
    labelled ``d<j>_<k>`` in deme ``deme_<j>`` and sampled at time 0.
    """
    samples = []
    for j, count in enumerate(samples_per_deme):
        for k in range(count):
            samples.append(ancestry.Sample(f"d{j}_{k}", f"deme_{j}", 0))
    return samples


def run_simulate(args):
    samples = make_samples(args.samples_per_deme)
    sim = ancestry._parse_sim_network(
        samples,
        num_segments=args.num_segments,
        coalescent_rates=args.coalescent_rates,
        reassortment_rates=args.reassortment_rates,
        migration_rates=args.migration_rates,
        reassortment_scalar=args.reassortment_scalar,
        time_window=args.time_window,
        demes=[f"deme_{j}" for j in range(len(args.samples_per_deme))],
        random_seed=args.random_seed,
    )
    network = sim.run(end_time=args.end_time)
    if args.remove_migration_nodes:
        network.remove_migration_nodes()
    print(sim.rate_model)
    print(network)
    if args.verbose:
        sim.print_state()


def add_simulator_arguments(parser):
    parser.add_argument(
        "samples_per_deme",
        type=int,
        nargs="+",
        help="The number of samples in each deme",
    )
    parser.add_argument(
        "-v", "--verbose", help="increase output verbosity", action="store_true"
    )
    parser.add_argument(
        "-l",
        "--log-level",
        type=int,
        help="Set log-level to the specified value",
        default=logging.WARNING,
    )
    parser.add_argument("--random-seed", "-s", type=int, default=None)
    parser.add_argument("--num-segments", "-S", type=int, default=2)
    parser.add_argument(
        "--coalescent-rates",
        "-c",
        type=float,
        nargs="+",
        default=[1.0],
        help="Coalescent rate in each deme, or a single rate for all demes",
    )
    parser.add_argument(
        "--reassortment-rates",
        "-r",
        type=float,
        nargs="+",
        default=[0.0],
        help="Reassortment rate in each deme, or a single rate for all demes",
    )
    parser.add_argument(
        "--migration-rates",
        "-m",
        type=float,
        nargs="*",
        default=[],
        help=(
            "Flat vector of migration rates, of length D(D-1) for asymmetric "
            "or D(D-1)/2 for symmetric migration"
        ),
    )
    parser.add_argument(
        "--reassortment-scalar",
        type=float,
        default=1.0,
        help="Factor applied to the reassortment rate of immigrant lineages",
    )
    parser.add_argument(
        "--time-window",
        "-w",
        type=float,
        default=0.0,
        help="How long a lineage stays an immigrant after migrating",
    )
    parser.add_argument(
        "--remove-migration-nodes",
        action="store_true",
        default=False,
        help="Splice migration nodes out of the finished network",
    )
    parser.add_argument(
        "--end-time", type=float, default=None, help="The end for simulations."
    )


def get_scoresim_parser():
    parser = argparse.ArgumentParser(
        description=(
            "Simulate a reassortment network under the structured coalescent "
            "with an immigrant time window."
        )
    )
    parser.add_argument(
        "-V", "--version", action="version", version=f"%(prog)s {core.__version__}"
    )
    add_simulator_arguments(parser)
    return parser


def scoresim_main(arg_list=None):
    set_sigpipe_handler()
    parser = get_scoresim_parser()
    args = parser.parse_args(arg_list)
    if len(args.coalescent_rates) == 1:
        args.coalescent_rates = args.coalescent_rates[0]
    if len(args.reassortment_rates) == 1:
        args.reassortment_rates = args.reassortment_rates[0]
    setup_logging(args)
    try:
        run_simulate(args)
    except ConfigurationError as ce:
        parser.error(str(ce))
    except InfiniteWaitingTimeError as iwte:
        parser.exit(1, f"{parser.prog}: {iwte}\n")
