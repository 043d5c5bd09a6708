################################################################################
# Copyright (c) 2024-2026, National Research Foundation (SARAO)
#
# Licensed under the BSD 3-Clause License (the "License"); you may not use
# this file except in compliance with the License. You may obtain a copy
# of the License at
#
#   https://opensource.org/licenses/BSD-3-Clause
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
################################################################################

"""Tests for the empirical coefficient sources."""

import logging
from dataclasses import FrozenInstanceError, dataclass

import numpy as np
import pytest

from gmftropo import (
    GRS80,
    AprioriValues,
    EmpiricalCoefficients,
    EmpiricalCoefficientSource,
    GlobalMappingFunction,
    NotInitialisedError,
    SeasonalEmpiricalCoefficients,
    StaticEmpiricalCoefficients,
    StationArrays,
    lla_to_ecef,
)
from gmftropo.troposphere.empirical import (
    askne_zenith_wet_delay,
    saastamoinen_zenith_hydrostatic_delay,
)
from gmftropo.troposphere.harmonics import StationGeometry, SynthesisedCoefficients

# MJD where the annual cycle has zero phase (28 January 1980)
MJD_ZERO_PHASE = 44239 - 1 + 28
LATITUDE = np.radians([-30.7, 52.0])
LONGITUDE = np.radians([21.4, 6.6])
HEIGHT = np.array([1086.6, 30.0])


def test_saastamoinen_zenith_hydrostatic_delay():
    """Check Saastamoinen zenith delay for standard pressure."""
    zhd = saastamoinen_zenith_hydrostatic_delay(1013.25, 0.0, 0.0)
    assert zhd == pytest.approx(2.313121, abs=1e-6)
    # Gravity is stronger towards the poles, giving a shorter delay
    assert saastamoinen_zenith_hydrostatic_delay(1013.25, np.pi / 2, 0.0) < zhd
    # Proportional to pressure
    zhd = saastamoinen_zenith_hydrostatic_delay(np.array([500.0, 1000.0]), 0.3, 1e3)
    assert zhd[1] == pytest.approx(2 * zhd[0])


def test_askne_zenith_wet_delay():
    """Check Askne & Nordius zenith wet delay for typical conditions."""
    zwd = askne_zenith_wet_delay(10.0, 270.0, 3.0)
    assert zwd == pytest.approx(0.10355, rel=1e-3)
    assert askne_zenith_wet_delay(20.0, 270.0, 3.0) == pytest.approx(2 * zwd)
    # Faster decrease of water vapour with height means less of it
    assert askne_zenith_wet_delay(10.0, 270.0, 4.0) < zwd
    assert askne_zenith_wet_delay(0.0, 270.0, 3.0) == 0.0


def test_source_interface():
    """The base source leaves everything to subclasses."""
    source = EmpiricalCoefficientSource()
    with pytest.raises(NotImplementedError):
        source.init(LATITUDE, LONGITUDE, HEIGHT)
    with pytest.raises(NotImplementedError):
        source.compute(59000.0)


def test_empirical_coefficients():
    """Check array handling of empirical coefficients."""
    ones = np.ones(2)
    coefs = EmpiricalCoefficients(
        zenith_dry=[2.3, 2.2],
        zenith_wet=[0.1, 0.2],
        gradient_dry_north=ones,
        gradient_wet_north=ones,
        gradient_dry_east=ones,
        gradient_wet_east=ones,
        a_dry=ones,
        a_wet=[np.nan, 1e-3],
    )
    assert len(coefs) == 2
    assert coefs.zenith_dry.dtype == float
    with pytest.raises(ValueError):
        coefs.zenith_dry[0] = 0.0
    with pytest.raises(FrozenInstanceError):
        coefs.zenith_dry = ones
    values = coefs.station(1)
    assert values == AprioriValues(2.2, 0.2, 1.0, 1.0, 1.0, 1.0, 1.0, 1e-3)
    assert isinstance(values.zenith_dry, float)
    assert np.isnan(coefs.station(0).a_wet)
    with pytest.raises(ValueError):
        EmpiricalCoefficients(*([ones] * 7 + [np.ones(3)]))
    with pytest.raises(ValueError):
        EmpiricalCoefficients(*([np.ones((2, 2))] * 8))


def test_station_arrays():
    """Per-station containers share a read-only array base from the interface."""
    assert issubclass(EmpiricalCoefficients, StationArrays)
    assert issubclass(StationGeometry, StationArrays)
    assert issubclass(SynthesisedCoefficients, StationArrays)

    @dataclass(frozen=True, eq=False)
    class Pressures(StationArrays):
        surface: np.ndarray
        sea_level: np.ndarray

    pressures = Pressures(surface=[900, 1000], sea_level=(1013, 1012))
    assert len(pressures) == 2
    assert pressures.surface.dtype == float
    np.testing.assert_array_equal(pressures.sea_level, [1013.0, 1012.0])
    with pytest.raises(ValueError):
        pressures.surface[1] = 950.0


def test_static_coefficients(caplog):
    """Check that static coefficients are broadcast to all stations."""
    source = StaticEmpiricalCoefficients(
        [2.3, 2.25], 0.1, gradient_dry_east=-0.001, a_dry=1.2e-3
    )
    with pytest.raises(NotInitialisedError):
        source.compute(59000.0)
    with caplog.at_level(logging.DEBUG, logger="gmftropo"):
        source.init(LATITUDE, LONGITUDE, HEIGHT)
    assert "2 stations" in caplog.text
    coefs = source.compute(59000.0)
    assert source.compute(60000.0) is coefs
    np.testing.assert_array_equal(coefs.zenith_dry, [2.3, 2.25])
    np.testing.assert_array_equal(coefs.zenith_wet, [0.1, 0.1])
    np.testing.assert_array_equal(coefs.gradient_dry_east, [-0.001, -0.001])
    np.testing.assert_array_equal(coefs.gradient_wet_north, [0.0, 0.0])
    np.testing.assert_array_equal(coefs.a_dry, [1.2e-3, 1.2e-3])
    assert np.all(np.isnan(coefs.a_wet))
    source = StaticEmpiricalCoefficients([2.3, 2.25, 2.2], 0.1)
    with pytest.raises(ValueError):
        source.init(LATITUDE, LONGITUDE, HEIGHT)


def test_seasonal_parameter_shapes():
    """Seasonal parameters are scalars, single rows or one row per station."""
    with pytest.raises(ValueError):
        SeasonalEmpiricalCoefficients([1013.0, 0.0, 0.0, 0.0], 10.0, 270.0, 3.0)
    with pytest.raises(ValueError):
        SeasonalEmpiricalCoefficients(np.zeros((2, 2, 5)), 10.0, 270.0, 3.0)
    source = SeasonalEmpiricalCoefficients(np.zeros((3, 5)), 10.0, 270.0, 3.0)
    with pytest.raises(ValueError):
        source.init(LATITUDE, LONGITUDE, HEIGHT)
    with pytest.raises(NotInitialisedError):
        source.evaluate(59000.0)
    with pytest.raises(NotInitialisedError):
        source.compute(59000.0)


def test_seasonal_coefficients():
    """Check seasonal weather model and resulting zenith delays."""
    pressure = [[900.0, 2.0, 1.0, 0.5, 0.25], [1010.0, -3.0, 0.5, 0.0, 0.0]]
    water_vapour_pressure = [12.0, 4.0, -2.0, 1.0, 0.0]
    source = SeasonalEmpiricalCoefficients(
        pressure, water_vapour_pressure, 275.0, 2.5, gradient_wet_north=1e-4
    )
    source.init(LATITUDE, LONGITUDE, HEIGHT)
    # At zero phase only the mean and cosine terms contribute
    values = source.evaluate(MJD_ZERO_PHASE)
    np.testing.assert_allclose(values["pressure"], [902.5, 1007.0])
    np.testing.assert_allclose(values["water_vapour_pressure"], [17.0, 17.0])
    np.testing.assert_allclose(values["mean_temperature"], [275.0, 275.0])
    # A quarter of a year later the annual sine peaks and semi-annual cosine dips
    values = source.evaluate(MJD_ZERO_PHASE + 365.25 / 4)
    np.testing.assert_allclose(values["pressure"], [900.5, 1010.5])
    np.testing.assert_allclose(values["water_vapour_pressure"], [9.0, 9.0])
    coefs = source.compute(MJD_ZERO_PHASE)
    assert len(coefs) == 2
    np.testing.assert_allclose(
        coefs.zenith_dry,
        saastamoinen_zenith_hydrostatic_delay(
            np.array([902.5, 1007.0]), LATITUDE, HEIGHT
        ),
    )
    np.testing.assert_allclose(
        coefs.zenith_wet, askne_zenith_wet_delay(17.0, 275.0, 2.5) * np.ones(2)
    )
    np.testing.assert_array_equal(coefs.gradient_wet_north, [1e-4, 1e-4])
    np.testing.assert_array_equal(coefs.gradient_dry_north, [0.0, 0.0])
    assert np.all(np.isnan(coefs.a_dry))
    # Periodic with a year
    later = source.compute(MJD_ZERO_PHASE + 365.25)
    np.testing.assert_allclose(later.zenith_dry, coefs.zenith_dry, rtol=1e-12)


def test_seasonal_coefficients_with_gmf():
    """Seasonal source drives the a-priori values of the mapping function."""
    source = SeasonalEmpiricalCoefficients(1013.25, 10.0, 270.0, 3.0)
    tropo = GlobalMappingFunction(source)
    tropo.init(np.transpose(lla_to_ecef(LATITUDE, LONGITUDE, HEIGHT, GRS80)))
    expected_zhd = saastamoinen_zenith_hydrostatic_delay(1013.25, LATITUDE, HEIGHT)
    for n in range(2):
        values = tropo.get_apriori_values(59000.0, n)
        assert values.zenith_dry == pytest.approx(expected_zhd[n], rel=1e-9)
        assert values.zenith_wet == pytest.approx(0.10355, rel=1e-3)
