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

"""Empirical coefficients: a-priori zenith delays and gradients per station.

The mapping functions turn zenith delays into slant delays, but the zenith
delays themselves (and the horizontal gradients) come from elsewhere. A
source of empirical coefficients produces these for all stations at a given
epoch. Two sources are provided: fixed values, and a seasonal model in the
style of the Global Pressure and Temperature (GPT) grids, where each
meteorological quantity is a mean plus annual and semi-annual harmonics.
"""

import logging
from dataclasses import dataclass, fields

import numpy as np

from .base import NotInitialisedError, StationArrays

logger = logging.getLogger(__name__)

# Saastamoinen excess path per unit of surface pressure, in m / hPa
_EXCESS_PATH_PER_PRESSURE = 2.2768e-3
# Refractivity constants of Bevis et al. (1994), in K / hPa and K^2 / hPa
_K1 = 77.604
_K2 = 64.79
_K2_PRIME = _K2 - _K1 * 18.0152 / 28.9644
_K3 = 377600.0
# Specific gas constant of dry air (J / kg / K) and mean gravity (m / s^2)
_R_DRY = 8.3143 / 28.965e-3
_GRAVITY = 9.80665


def saastamoinen_zenith_hydrostatic_delay(pressure_hPa, lat_rad, height_m):
    """Zenith hydrostatic delay according to Saastamoinen (1972).

    Parameters
    ----------
    pressure_hPa : float or array
        Total barometric pressure at surface, in hectopascal
    lat_rad : float or array
        Geodetic latitude, in radians
    height_m : float or array
        Ellipsoidal height, in metres

    Returns
    -------
    zhd_m : float or array
        Zenith hydrostatic delay, in metres

    Notes
    -----
    Local gravity is reduced to its value at the centroid of the atmospheric
    column as in Davis et al (1985).
    """
    gravity_correction = 1.0 - 0.00266 * np.cos(2 * lat_rad) - 0.28e-6 * height_m
    return _EXCESS_PATH_PER_PRESSURE * pressure_hPa / gravity_correction


def askne_zenith_wet_delay(water_vapour_pressure_hPa, mean_temperature_K, decrease):
    """Zenith wet delay according to Askne and Nordius (1987).

    Parameters
    ----------
    water_vapour_pressure_hPa : float or array
        Partial pressure of water vapour at surface, in hectopascal
    mean_temperature_K : float or array
        Mean temperature of water vapour in the column above the site, in kelvin
    decrease : float or array
        Water vapour decrease factor (lambda), dimensionless

    Returns
    -------
    zwd_m : float or array
        Zenith wet delay, in metres

    Notes
    -----
    This is equation (18) of Askne & Nordius, as used with the GPT2w and
    GPT3 models.
    """
    refractivity = 1e-6 * (_K2_PRIME + _K3 / mean_temperature_K)
    return (
        refractivity * _R_DRY / (decrease + 1.0) / _GRAVITY * water_vapour_pressure_hPa
    )


@dataclass(frozen=True)
class AprioriValues:
    """A-priori tropospheric values of a single station at a single epoch.

    Delays and gradients are in metres, "a" coefficients are dimensionless.
    """

    zenith_dry: float
    zenith_wet: float
    gradient_dry_north: float
    gradient_wet_north: float
    gradient_dry_east: float
    gradient_wet_east: float
    a_dry: float
    a_wet: float


@dataclass(frozen=True, eq=False)
class EmpiricalCoefficients(StationArrays):
    """Empirical coefficients of all stations at a single epoch.

    Attributes
    ----------
    zenith_dry, zenith_wet : array of float, shape (N,)
        Zenith hydrostatic and wet delays, in metres
    gradient_dry_north, gradient_wet_north : array of float, shape (N,)
        North gradients of hydrostatic and wet delays, in metres
    gradient_dry_east, gradient_wet_east : array of float, shape (N,)
        East gradients of hydrostatic and wet delays, in metres
    a_dry, a_wet : array of float, shape (N,)
        Hydrostatic and wet "a" coefficients of continued fraction

    Raises
    ------
    ValueError
        If the arrays do not all have the same shape (N,)
    """

    zenith_dry: np.ndarray
    zenith_wet: np.ndarray
    gradient_dry_north: np.ndarray
    gradient_wet_north: np.ndarray
    gradient_dry_east: np.ndarray
    gradient_wet_east: np.ndarray
    a_dry: np.ndarray
    a_wet: np.ndarray

    def __post_init__(self):
        super().__post_init__()
        shapes = {f.name: getattr(self, f.name).shape for f in fields(self)}
        if len(set(shapes.values())) != 1 or len(self.zenith_dry.shape) != 1:
            raise ValueError(f"Empirical coefficients have mismatched shapes {shapes}")

    def station(self, station_id):
        """A-priori values of a single station (see :class:`AprioriValues`)."""
        return AprioriValues(
            **{f.name: float(getattr(self, f.name)[station_id]) for f in fields(self)}
        )


class EmpiricalCoefficientSource:
    """Provider of empirical coefficients for a fixed list of stations.

    The troposphere model calls :meth:`init` once with the station geometry
    and then :meth:`compute` for every new epoch. An implementation may do
    I/O in either step and should raise :exc:`OSError` if that fails.
    """

    def init(self, latitude, longitude, height):
        """Prepare coefficients for the given stations.

        Parameters
        ----------
        latitude, longitude : array of float, shape (N,)
            Geodetic latitude and longitude of stations, in radians
        height : array of float, shape (N,)
            Ellipsoidal height of stations, in metres
        """
        raise NotImplementedError

    def compute(self, mjd):
        """Empirical coefficients of all stations at the given epoch.

        Parameters
        ----------
        mjd : float
            Epoch, as Modified Julian Date in UTC

        Returns
        -------
        coefs : :class:`EmpiricalCoefficients`
            Coefficients with one value per station
        """
        raise NotImplementedError


def _per_station(value, shape, name):
    """Broadcast scalar / shared `value` to per-station array of given `shape`."""
    value = np.asarray(value, dtype=float)
    try:
        return np.broadcast_to(value, shape)
    except ValueError as err:
        raise ValueError(
            f"Parameter {name!r} with shape {value.shape} does not match "
            f"expected per-station shape {shape}"
        ) from err


class StaticEmpiricalCoefficients(EmpiricalCoefficientSource):
    """Empirical coefficients that stay the same at all epochs.

    Each parameter is either a scalar shared by all stations or a sequence
    with one value per station.

    Parameters
    ----------
    zenith_dry, zenith_wet : float or sequence of float
        Zenith hydrostatic and wet delays, in metres
    gradient_dry_north, gradient_wet_north : float or sequence of float, optional
        North gradients of hydrostatic and wet delays, in metres
    gradient_dry_east, gradient_wet_east : float or sequence of float, optional
        East gradients of hydrostatic and wet delays, in metres
    a_dry, a_wet : float or sequence of float, optional
        Hydrostatic and wet "a" coefficients (NaN if unknown)
    """

    def __init__(
        self,
        zenith_dry,
        zenith_wet,
        gradient_dry_north=0.0,
        gradient_wet_north=0.0,
        gradient_dry_east=0.0,
        gradient_wet_east=0.0,
        a_dry=np.nan,
        a_wet=np.nan,
    ):
        self._values = dict(
            zenith_dry=zenith_dry,
            zenith_wet=zenith_wet,
            gradient_dry_north=gradient_dry_north,
            gradient_wet_north=gradient_wet_north,
            gradient_dry_east=gradient_dry_east,
            gradient_wet_east=gradient_wet_east,
            a_dry=a_dry,
            a_wet=a_wet,
        )
        self._coefs = None

    def init(  # noqa: D102 (docstring inherited from base class)
        self,
        latitude,
        longitude,
        height,
    ):
        shape = (len(latitude),)
        self._coefs = EmpiricalCoefficients(
            **{
                name: _per_station(value, shape, name)
                for name, value in self._values.items()
            }
        )
        logger.debug("Static empirical coefficients set up for %d stations", *shape)

    def compute(self, mjd):  # noqa: D102 (docstring inherited from base class)
        if self._coefs is None:
            raise NotInitialisedError("Static empirical coefficients lack stations")
        return self._coefs


# Columns of seasonal parameter arrays
_SEASONAL_TERMS = (
    "mean",
    "annual cos",
    "annual sin",
    "semi-annual cos",
    "semi-annual sin",
)


def _seasonal_params(value, name):
    """Turn scalar or (..., 5) `value` into array of seasonal parameters."""
    value = np.asarray(value, dtype=float)
    if value.ndim == 0:
        return np.r_[value, np.zeros(len(_SEASONAL_TERMS) - 1)]
    if value.shape[-1] != len(_SEASONAL_TERMS) or value.ndim > 2:
        raise ValueError(
            f"Seasonal parameter {name!r} should be a scalar or have shape "
            f"(5,) or (N, 5) for terms {_SEASONAL_TERMS}, not {value.shape}"
        )
    return value


class SeasonalEmpiricalCoefficients(EmpiricalCoefficientSource):
    """Empirical coefficients from a GPT-style seasonal weather model.

    Each meteorological quantity at a station is described by five
    parameters [mean, A1, B1, A2, B2] that combine into

        mean + A1 cos(w) + B1 sin(w) + A2 cos(2w) + B2 sin(2w)

    where w = 2 pi doy / 365.25 is the annual phase, with the day of year
    counted from 28 January 1980 as in Niell (1996). Parameters are given
    as an array of shape (N, 5) with one row per station, a single row of
    shape (5,) shared by all stations, or a scalar for a constant quantity.

    The zenith hydrostatic delay follows from pressure via Saastamoinen, and
    the zenith wet delay from water vapour pressure, mean temperature and
    decrease factor via Askne & Nordius.

    Parameters
    ----------
    pressure : float or array
        Surface pressure, in hectopascal
    water_vapour_pressure : float or array
        Surface water vapour pressure, in hectopascal
    mean_temperature : float or array
        Mean temperature of water vapour column, in kelvin
    water_vapour_decrease : float or array
        Water vapour decrease factor (lambda), dimensionless
    a_dry, a_wet : float or array, optional
        Hydrostatic and wet "a" coefficients (NaN if unknown)
    gradient_dry_north, gradient_wet_north : float or array, optional
        North gradients of hydrostatic and wet delays, in metres
    gradient_dry_east, gradient_wet_east : float or array, optional
        East gradients of hydrostatic and wet delays, in metres

    Raises
    ------
    ValueError
        If a parameter does not have a valid shape
    """

    def __init__(
        self,
        pressure,
        water_vapour_pressure,
        mean_temperature,
        water_vapour_decrease,
        a_dry=np.nan,
        a_wet=np.nan,
        gradient_dry_north=0.0,
        gradient_wet_north=0.0,
        gradient_dry_east=0.0,
        gradient_wet_east=0.0,
    ):
        params = dict(
            pressure=pressure,
            water_vapour_pressure=water_vapour_pressure,
            mean_temperature=mean_temperature,
            water_vapour_decrease=water_vapour_decrease,
            a_dry=a_dry,
            a_wet=a_wet,
            gradient_dry_north=gradient_dry_north,
            gradient_wet_north=gradient_wet_north,
            gradient_dry_east=gradient_dry_east,
            gradient_wet_east=gradient_wet_east,
        )
        self._params = {k: _seasonal_params(v, k) for k, v in params.items()}
        self._station_params = None
        self._latitude = self._height = None

    def init(  # noqa: D102 (docstring inherited from base class)
        self,
        latitude,
        longitude,
        height,
    ):
        shape = (len(latitude), len(_SEASONAL_TERMS))
        self._station_params = {
            name: _per_station(value, shape, name)
            for name, value in self._params.items()
        }
        self._latitude = np.asarray(latitude, dtype=float)
        self._height = np.asarray(height, dtype=float)
        logger.debug("Seasonal weather model set up for %d stations", shape[0])

    def evaluate(self, mjd):
        """Seasonal quantities of all stations at the given epoch.

        Parameters
        ----------
        mjd : float
            Epoch, as Modified Julian Date in UTC

        Returns
        -------
        values : dict mapping str to array of float, shape (N,)
            Value of each parameter (by constructor parameter name)
        """
        if self._station_params is None:
            raise NotInitialisedError("Seasonal empirical coefficients lack stations")
        day_of_year = mjd - 44239 + 1 - 28
        w = 2.0 * np.pi * day_of_year / 365.25
        basis = np.array([1.0, np.cos(w), np.sin(w), np.cos(2 * w), np.sin(2 * w)])
        return {name: p @ basis for name, p in self._station_params.items()}

    def compute(self, mjd):  # noqa: D102 (docstring inherited from base class)
        values = self.evaluate(mjd)
        return EmpiricalCoefficients(
            zenith_dry=saastamoinen_zenith_hydrostatic_delay(
                values["pressure"], self._latitude, self._height
            ),
            zenith_wet=askne_zenith_wet_delay(
                values["water_vapour_pressure"],
                values["mean_temperature"],
                values["water_vapour_decrease"],
            ),
            gradient_dry_north=values["gradient_dry_north"],
            gradient_wet_north=values["gradient_wet_north"],
            gradient_dry_east=values["gradient_dry_east"],
            gradient_wet_east=values["gradient_wet_east"],
            a_dry=values["a_dry"],
            a_wet=values["a_wet"],
        )
