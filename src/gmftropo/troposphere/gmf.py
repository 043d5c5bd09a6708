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

"""Global Mapping Function (GMF).

This maps zenith hydrostatic and wet delays to any elevation angle with the
empirical mapping functions of Boehm et al. (2006), and adds the effect of
horizontal delay gradients with the gradient mapping function of Chen &
Herring (1997).
"""

import logging
import operator
from dataclasses import dataclass

import numpy as np

from ..conversion import GRS80, to_mjd, to_radians
from .base import NotInitialisedError, Troposphere
from .harmonics import StationGeometry, synthesise

logger = logging.getLogger(__name__)

# Constant parts of continued fractions
_B_HYDROSTATIC = 0.0029
_C0_HYDROSTATIC = 0.062
_B_WET = 0.00146
_C_WET = 0.04391
# Gradient mapping functions of Chen & Herring (1997)
_C_GRADIENT_HYDROSTATIC = 0.0031
_C_GRADIENT_WET = 0.0007


def _continued_fraction(sin_el, a, b, c):
    """Marini-style continued fraction normalised to 1 at zenith."""
    topcon = 1.0 + a / (1.0 + b / (1.0 + c))
    return topcon / (sin_el + a / (sin_el + b / (sin_el + c)))


def _annual_phase(mjd):
    """Phase of annual cycle, in radians (zero on 28 January)."""
    # Subtract the first day of an arbitrary year (1980) to line up the phase.
    # Reference day is 28 January, consistent with Niell (1996).
    day_of_year = mjd - 44239 + 1 - 28
    return 2.0 * np.pi * day_of_year / 365.25


def _gradient_mapping(sin_el, tan_el, c):
    """Gradient mapping function of Chen & Herring (1997)."""
    return 1.0 / (sin_el * tan_el + c)


@dataclass(frozen=True)
class HeightCorrection:
    """Niell's correction of hydrostatic mapping function for station height.

    Parameters
    ----------
    a, b, c : float, optional
        Coefficients of continued fraction (defaults from Niell 1996)
    """

    a: float = 2.53e-5
    b: float = 5.49e-3
    c: float = 1.14e-3

    def coefficient(self, elevation):
        """Change in hydrostatic mapping function per km of height.

        Parameters
        ----------
        elevation : float or array
            Elevation angle, in radians

        Returns
        -------
        coef : float or array
            Correction to add to mapping function per km of station height
        """
        sin_el = np.sin(to_radians(elevation))
        return 1.0 / sin_el - _continued_fraction(sin_el, self.a, self.b, self.c)


class GlobalMappingFunction(Troposphere):
    """Tropospheric delay model based on the Global Mapping Function (GMF).

    This maps zenith delays to any elevation angle, based on the site
    coordinates and the day of year. The hydrostatic and wet mapping functions
    are three-term continued fractions of which the leading "a" coefficients
    come from a spherical harmonic model of global weather up to degree and
    order 9, varying with an annual period. The a-priori zenith delays and
    horizontal gradients are provided by a separate source of empirical
    coefficients and refreshed whenever the epoch changes.

    Parameters
    ----------
    source : :class:`~gmftropo.troposphere.empirical.EmpiricalCoefficientSource`
        Provider of zenith delays, gradients and "a" coefficients per epoch
    height_correction : :class:`HeightCorrection`, optional
        Coefficients of the hydrostatic height correction
    ellipsoid : :class:`~gmftropo.conversion.Ellipsoid`, optional
        Reference ellipsoid used to obtain station latitude and height
    observer : callable, optional
        Function called as ``observer(name, mjd, station_id, value)`` with
        each evaluated mapping function, where `name` is 'hydrostatic' or
        'wet' (for diagnostics)

    Notes
    -----
    The mapping functions follow [Boehm2006]_, which refines Niell's mapping
    function [Niell1996]_ and shares its height correction and seasonal
    formulas. The direction vector of the spherical harmonics treats the
    ellipsoidal latitude as if it were geocentric, as in the GMF reference
    code, in order to reproduce the published model. Gradients are mapped
    following [Chen1997]_.

    No special care is taken at elevations of 0 and 90 degrees, where the
    mapping functions (or gradient mapping functions) become singular and
    result in inf or NaN.

    References
    ----------
    .. [Boehm2006] J. Boehm, A. Niell, P. Tregoning, H. Schuh, "Global Mapping
       Function (GMF): A new empirical mapping function based on numerical
       weather model data," Geophysical Research Letters, vol. 33, no. L07304,
       Apr 2006. DOI: 10.1029/2005GL025546

    .. [Niell1996] A.E. Niell, "Global mapping functions for the atmosphere delay
       at radio wavelengths," Journal of Geophysical Research: Solid Earth, vol.
       101, no. B2, pp. 3227-3246, Feb 1996. DOI: 10.1029/95JB03048

    .. [Chen1997] G. Chen, T.A. Herring, "Effects of atmospheric azimuthal
       asymmetry on the analysis of space geodetic data," Journal of Geophysical
       Research: Solid Earth, vol. 102, no. B9, pp. 20489-20502, 1997.
       DOI: 10.1029/97JB01739
    """

    def __init__(
        self,
        source,
        height_correction=HeightCorrection(),
        ellipsoid=GRS80,
        observer=None,
    ):
        self.source = source
        self.height_correction = height_correction
        self.ellipsoid = ellipsoid
        self.observer = observer
        self.geometry = None
        self.coefficients = None
        self._empirical = None
        self._epoch = None

    def __repr__(self):
        """Short human-friendly string representation of mapping function."""
        stations = "no stations" if self.geometry is None else f"{self.num_stations}"
        return (
            f"<gmftropo.{self.__class__.__name__} {stations} "
            f"source={self.source.__class__.__name__} at {id(self):#x}>"
        )

    @property
    def num_stations(self):
        """Number of stations set up by :meth:`init`."""
        if self.geometry is None:
            raise NotInitialisedError("Call init() with station positions first")
        return len(self.geometry)

    def _station_index(self, station_id):
        """Check that `station_id` is a valid index into station list."""
        num_stations = self.num_stations
        if isinstance(station_id, (bool, np.bool_)):
            raise TypeError(f"Station index should be an integer, not {station_id!r}")
        index = operator.index(station_id)
        if not 0 <= index < num_stations:
            raise IndexError(
                f"Station index {station_id} out of range for {num_stations} stations"
            )
        return index

    def _notify(self, name, mjd, index, value):
        if self.observer is not None:
            self.observer(name, mjd, index, value)

    def init(self, stations):  # noqa: D102 (docstring inherited from base class)
        geometry = StationGeometry.from_positions(stations, self.ellipsoid)
        coefficients = synthesise(geometry)
        self.source.init(geometry.latitude, geometry.longitude, geometry.height)
        self.geometry = geometry
        self.coefficients = coefficients
        self._empirical = self._epoch = None

    def refresh_empirical(self, time):
        """Obtain empirical coefficients of all stations at epoch.

        The coefficients are cached, so that repeated calls for the same epoch
        do not trouble the source again. If the source fails, the cache is
        left empty instead of holding coefficients of an earlier epoch.

        Parameters
        ----------
        time : float or :class:`~astropy.time.Time`
            Epoch, as MJD in UTC (a single value)

        Returns
        -------
        coefs : :class:`~gmftropo.troposphere.empirical.EmpiricalCoefficients`
            Zenith delays, gradients and "a" coefficients of all stations

        Raises
        ------
        NotInitialisedError
            If :meth:`init` has not been called yet
        ValueError
            If `time` contains multiple epochs, or the source returns the
            wrong number of stations
        OSError
            If the source failed to obtain the coefficients
        """
        num_stations = self.num_stations
        mjd = to_mjd(time)
        if np.ndim(mjd) != 0:
            raise ValueError(
                f"Empirical coefficients are refreshed one epoch at a time, not {time}"
            )
        if self._empirical is not None and mjd == self._epoch:
            return self._empirical
        self._empirical = self._epoch = None
        logger.debug("Refreshing empirical coefficients for MJD %.6f", mjd)
        coefs = self.source.compute(mjd)
        if len(coefs) != num_stations:
            raise ValueError(
                f"Empirical coefficient source returned {len(coefs)} stations "
                f"instead of {num_stations}"
            )
        self._empirical, self._epoch = coefs, mjd
        return coefs

    def mapping_function_hydrostatic(  # noqa: D102 (docstring inherited)
        self,
        time,
        station_id,
        elevation,
        azimuth=None,
    ):
        index = self._station_index(station_id)
        mjd = to_mjd(time)
        coefs = self.coefficients
        phase = _annual_phase(mjd)
        a = (
            coefs.mean_hydrostatic[index]
            + coefs.amplitude_hydrostatic[index] * np.cos(phase)
        ) * 1e-5
        # Southern hemisphere has the opposite season for c but not a,
        # since a already has a global model
        season = np.cos(phase + coefs.phase[index])
        c = _C0_HYDROSTATIC + (
            (season + 1) * coefs.c11[index] / 2 + coefs.c10[index]
        ) * (1 - self.geometry.cos_lat[index])
        elevation = to_radians(elevation)
        gmf = _continued_fraction(np.sin(elevation), a, _B_HYDROSTATIC, c)
        height_km = self.geometry.height[index] / 1000.0
        gmf = gmf + self.height_correction.coefficient(elevation) * height_km
        self._notify("hydrostatic", mjd, index, gmf)
        return gmf

    def mapping_function_wet(  # noqa: D102 (docstring inherited)
        self,
        time,
        station_id,
        elevation,
        azimuth=None,
    ):
        index = self._station_index(station_id)
        mjd = to_mjd(time)
        coefs = self.coefficients
        phase = _annual_phase(mjd)
        a = (coefs.mean_wet[index] + coefs.amplitude_wet[index] * np.cos(phase)) * 1e-5
        sin_el = np.sin(to_radians(elevation))
        gmf = _continued_fraction(sin_el, a, _B_WET, _C_WET)
        self._notify("wet", mjd, index, gmf)
        return gmf

    def mapping_function_gradient(  # noqa: D102 (docstring inherited)
        self,
        azimuth,
        elevation,
        time=None,
        station_id=None,
    ):
        azimuth = to_radians(azimuth)
        elevation = to_radians(elevation)
        # This is the hydrostatic gradient mapping function, also used for wet
        mfg = _gradient_mapping(
            np.sin(elevation), np.tan(elevation), _C_GRADIENT_HYDROSTATIC
        )
        return mfg * np.cos(azimuth), mfg * np.sin(azimuth)

    def slant_delay(  # noqa: D102 (docstring inherited)
        self,
        time,
        station_id,
        azimuth,
        elevation,
    ):
        index = self._station_index(station_id)
        coefs = self.refresh_empirical(time)
        azimuth = to_radians(azimuth)
        elevation = to_radians(elevation)
        gmfh = self.mapping_function_hydrostatic(time, index, elevation)
        gmfw = self.mapping_function_wet(time, index, elevation)
        sin_el, tan_el = np.sin(elevation), np.tan(elevation)
        mfgh = _gradient_mapping(sin_el, tan_el, _C_GRADIENT_HYDROSTATIC)
        mfgw = _gradient_mapping(sin_el, tan_el, _C_GRADIENT_WET)
        north = mfgh * coefs.gradient_dry_north[index]
        north = north + mfgw * coefs.gradient_wet_north[index]
        east = mfgh * coefs.gradient_dry_east[index]
        east = east + mfgw * coefs.gradient_wet_east[index]
        return (
            gmfh * coefs.zenith_dry[index]
            + gmfw * coefs.zenith_wet[index]
            + north * np.cos(azimuth)
            + east * np.sin(azimuth)
        )

    def get_apriori_values(  # noqa: D102 (docstring inherited)
        self,
        time,
        station_id,
    ):
        index = self._station_index(station_id)
        return self.refresh_empirical(time).station(index)
