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
Tests for the rate model.
"""
import warnings

import numpy as np
import pytest

import scoresim
from scoresim import rates


def make_model(num_demes=2, migration_rates=None, **kwargs):
    if migration_rates is None:
        migration_rates = [0.1] * (num_demes * (num_demes - 1))
    params = dict(
        num_demes=num_demes,
        coalescent_rates=[1.0] * num_demes,
        reassortment_rates=[0.5] * num_demes,
        migration_rates=migration_rates,
    )
    params.update(kwargs)
    return rates.RateModel(**params)


class TestConstruction:
    def test_defaults(self):
        model = make_model()
        assert model.num_demes == 2
        assert model.num_segments == 1
        assert model.time_window == 0
        assert model.reassortment_scalar == 1
        assert model.deme_names == ("deme_0", "deme_1")

    def test_deme_names(self):
        model = make_model(deme_names=["A", "B"])
        assert model.deme_names == ("A", "B")

    @pytest.mark.parametrize("names", [["A"], ["A", "A"], ["A", "B", "C"]])
    def test_bad_deme_names(self, names):
        with pytest.raises(scoresim.ConfigurationError):
            make_model(deme_names=names)

    @pytest.mark.parametrize("num_segments", [0, -1, 1.5])
    def test_bad_num_segments(self, num_segments):
        with pytest.raises(scoresim.ConfigurationError, match="segment"):
            make_model(num_segments=num_segments)

    @pytest.mark.parametrize("num_demes", [0, -1])
    def test_bad_num_demes(self, num_demes):
        with pytest.raises(scoresim.ConfigurationError):
            rates.RateModel(
                num_demes=num_demes,
                coalescent_rates=[],
                reassortment_rates=[],
                migration_rates=[],
            )

    @pytest.mark.parametrize("values", [[1], [1, 2, 3], [1, -1], [1, np.inf]])
    def test_bad_coalescent_rates(self, values):
        with pytest.raises(scoresim.ConfigurationError):
            make_model(coalescent_rates=values)

    @pytest.mark.parametrize("values", [[1], [1, 2, 3], [-1, 1]])
    def test_bad_reassortment_rates(self, values):
        with pytest.raises(scoresim.ConfigurationError):
            make_model(reassortment_rates=values)

    @pytest.mark.parametrize("scalar", [0, -1, np.inf])
    def test_bad_scalar(self, scalar):
        with pytest.raises(scoresim.ConfigurationError):
            make_model(reassortment_scalar=scalar)

    @pytest.mark.parametrize("window", [-0.1, np.inf, np.nan])
    def test_bad_time_window(self, window):
        with pytest.raises(scoresim.ConfigurationError):
            make_model(time_window=window)

    def test_negative_migration_rate(self):
        with pytest.raises(scoresim.ConfigurationError):
            make_model(migration_rates=[0.1, -0.1])

    def test_read_only(self):
        model = make_model()
        with pytest.raises(ValueError):
            model.migration_matrix[0, 1] = 10


class TestReassortmentRate:
    def test_scalar_applies_to_immigrants(self):
        model = make_model(reassortment_rates=[0.5, 2.0], reassortment_scalar=3)
        assert model.reassortment_rate(0, rates.Substate.RESIDENT) == 0.5
        assert model.reassortment_rate(0, rates.Substate.IMMIGRANT) == 1.5
        assert model.reassortment_rate(1, rates.Substate.RESIDENT) == 2.0
        assert model.reassortment_rate(1, rates.Substate.IMMIGRANT) == 6.0

    def test_default_substate(self):
        model = make_model(reassortment_scalar=10)
        assert model.reassortment_rate(1) == 0.5

    def test_bad_deme(self):
        model = make_model()
        with pytest.raises(IndexError):
            model.reassortment_rate(2)
        with pytest.raises(IndexError):
            model.coalescent_rate(-1)

    def test_accessors_return_floats(self):
        model = make_model(num_demes=3, migration_rates=[1, 2, 3, 4, 5, 6])
        assert type(model.coalescent_rate(0)) is float
        assert type(model.migration_rate(2, 1)) is float
        for substate in rates.Substate:
            assert type(model.reassortment_rate(1, substate)) is float


class TestMigrationRates:
    def test_asymmetric_two_demes(self):
        model = make_model(migration_rates=[0.2, 0.3])
        assert not model.is_symmetric
        assert model.migration_rate(0, 1) == 0.2
        assert model.migration_rate(1, 0) == 0.3
        assert model.migration_rate(0, 0) == 0

    def test_asymmetric_three_demes(self):
        model = make_model(num_demes=3, migration_rates=[1, 2, 3, 4, 5, 6])
        M = np.array([[0, 1, 2], [3, 0, 4], [5, 6, 0]])
        np.testing.assert_array_equal(model.migration_matrix, M)
        for j in range(3):
            for k in range(3):
                assert model.migration_rate(j, k) == M[j, k]

    def test_symmetric_two_demes(self):
        model = make_model(migration_rates=[0.25])
        assert model.is_symmetric
        assert model.migration_rate(0, 1) == 0.25
        assert model.migration_rate(1, 0) == 0.25

    def test_symmetric_four_demes(self):
        model = make_model(num_demes=4, migration_rates=[1, 2, 3, 4, 5, 6])
        assert model.is_symmetric
        M = np.array(
            [[0, 1, 2, 3], [1, 0, 4, 5], [2, 4, 0, 6], [3, 5, 6, 0]], dtype=float
        )
        np.testing.assert_array_equal(model.migration_matrix, M)
        np.testing.assert_array_equal(M, M.T)

    def test_single_deme(self):
        model = rates.RateModel(
            num_demes=1,
            coalescent_rates=[1],
            reassortment_rates=[0],
            migration_rates=[],
        )
        assert model.migration_matrix.shape == (1, 1)
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            assert model.migration_rate(0, 0) == 0

    def test_wrong_dimension_pads(self):
        with pytest.warns(scoresim.MigrationDimensionWarning):
            model = make_model(num_demes=3, migration_rates=[1, 2, 3, 4])
        assert not model.is_symmetric
        np.testing.assert_array_equal(model.migration_rates, [1, 2, 3, 4, 0, 0])
        assert model.migration_rate(2, 0) == 0

    def test_wrong_dimension_truncates(self):
        with pytest.warns(scoresim.MigrationDimensionWarning):
            model = make_model(migration_rates=[1, 2, 3])
        np.testing.assert_array_equal(model.migration_rates, [1, 2])

    def test_wrong_dimension_logged(self, caplog):
        with pytest.warns(scoresim.MigrationDimensionWarning):
            make_model(migration_rates=[])
        assert "Wrong number of migration rates" in caplog.text


class TestStr:
    def test_contents(self):
        model = make_model(deme_names=["north", "south"], time_window=0.5)
        s = str(model)
        assert s.startswith("RateModel")
        assert "north" in s
        assert "south" in s
        assert "asymmetric" in s
        assert "time_window = 0.5" in s
