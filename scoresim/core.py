#
# Copyright (C) 2015-2021 University of Oxford
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
Seeding, argument checking and text formatting shared by the scoresim
modules.
"""
from __future__ import annotations

import math
import numbers
import os
import random
from typing import Dict
from typing import List

__version__ = "0.1.0"

# One generator of default seeds per process ID, so that a forked worker
# starts its own sequence instead of repeating its parent's.
_seed_rngs: Dict[int, random.Random] = {}


def reset_seed_rng():
    """
    Discards the default seed generator of the current process.
    """
    _seed_rngs.pop(os.getpid(), None)


def get_random_seed() -> int:
    """
    Returns a seed for a simulation that was not given one. The generator
    of these seeds is itself seeded from the operating system.
    """
    pid = os.getpid()
    if pid not in _seed_rngs:
        _seed_rngs[pid] = random.Random()
    return _seed_rngs[pid].randint(1, 2**32 - 1)


def isinteger(value) -> bool:
    """
    Returns True if the value is a finite real number with no fractional
    part, e.g. 3, 3.0 or numpy.int32(3). Booleans are not integers here.
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    value = float(value)
    return math.isfinite(value) and value.is_integer()


def _parse_flag(value, *, default: bool) -> bool:
    # None means "not specified"; anything but a real bool is rejected so
    # that e.g. an empty list is not silently read as False.
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    raise TypeError(f"Flags must be True, False or None, not {value!r}")


def text_table(
    caption: str,
    headers: List[str],
    alignments: str,
    rows: List[List[str]],
) -> str:
    """
    Returns the rows of strings as a box-drawn table under the caption.
    Each character of ``alignments`` is a format alignment ("<", ">" or
    "^") for the corresponding column.
    """
    assert len(headers) == len(alignments)
    widths = [len(header) for header in headers]
    for row in rows:
        assert len(row) == len(headers)
        widths = [max(width, len(cell)) for width, cell in zip(widths, row)]

    def format_row(cells):
        formatted = (
            f" {cell:{align}{width}} "
            for cell, align, width in zip(cells, alignments, widths)
        )
        return "│" + "│".join(formatted) + "│\n"

    rule = "─" * (sum(widths) + 3 * len(widths) - 1)
    lines = [f"{caption}\n", f"┌{rule}┐\n", format_row(headers), f"├{rule}┤\n"]
    lines.extend(format_row(row) for row in rows)
    lines.append(f"└{rule}┘\n")
    return "".join(lines)
