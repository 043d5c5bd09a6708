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

"""Spherical harmonic synthesis of the Global Mapping Function coefficients.

The GMF describes the mean and annual amplitude of the hydrostatic and wet
"a" coefficients of its continued fractions as spherical harmonic expansions
up to degree and order 9, fitted to three years of ECMWF data. This module
turns a list of station positions into those four coefficients per station,
together with the hemisphere-dependent terms of the hydrostatic "c"
coefficient.
"""

import logging
from dataclasses import dataclass

import astropy.units as u
import numpy as np
from astropy.coordinates import EarthLocation

from ..conversion import GRS80, ecef_to_lla
from .base import StationArrays

logger = logging.getLogger(__name__)

_NMAX = 9
# The GMF was fitted to surface data, so flag stations in orbit or underground
_MAX_ABS_HEIGHT_M = 100e3

# Coefficients of V (A tables) and W (B tables) functions, in the flattened
# degree / order sequence of :func:`degree_order_pairs`, scaled by 1e5.
# fmt: off
_GMF_H_MEAN_A = np.array(
    [
        +1.2517e2, +8.503e-01, +6.936e-02, -6.760e0, +1.771e-01,
        +1.130e-02, +5.963e-01, +1.808e-02, +2.801e-03, -1.414e-03,
        -1.212e0, +9.300e-02, +3.683e-03, +1.095e-03, +4.671e-05,
        +3.959e-01, -3.867e-02, +5.413e-03, -5.289e-04, +3.229e-04,
        +2.067e-05, +3.000e-01, +2.031e-02, +5.900e-03, +4.573e-04,
        -7.619e-05, +2.327e-06, +3.845e-06, +1.182e-01, +1.158e-02,
        +5.445e-03, +6.219e-05, +4.204e-06, -2.093e-06, +1.540e-07,
        -4.280e-08, -4.751e-01, -3.490e-02, +1.758e-03, +4.019e-04,
        -2.799e-06, -1.287e-06, +5.468e-07, +7.580e-08, -6.300e-09,
        -1.160e-01, +8.301e-03, +8.771e-04, +9.955e-05, -1.718e-06,
        -2.012e-06, +1.170e-08, +1.790e-08, -1.300e-09, +1.000e-10,
    ]
)

_GMF_H_MEAN_B = np.array(
    [
        +0.000e0, +0.000e0, +3.249e-02, +0.000e0, +3.324e-02,
        +1.850e-02, +0.000e0, -1.115e-01, +2.519e-02, +4.923e-03,
        +0.000e0, +2.737e-02, +1.595e-02, -7.332e-04, +1.933e-04,
        +0.000e0, -4.796e-02, +6.381e-03, -1.599e-04, -3.685e-04,
        +1.815e-05, +0.000e0, +7.033e-02, +2.426e-03, -1.111e-03,
        -1.357e-04, -7.828e-06, +2.547e-06, +0.000e0, +5.779e-03,
        +3.133e-03, -5.312e-04, -2.028e-05, +2.323e-07, -9.100e-08,
        -1.650e-08, +0.000e0, +3.688e-02, -8.638e-04, -8.514e-05,
        -2.828e-05, +5.403e-07, +4.390e-07, +1.350e-08, +1.800e-09,
        +0.000e0, -2.736e-02, -2.977e-04, +8.113e-05, +2.329e-07,
        +8.451e-07, +4.490e-08, -8.100e-09, -1.500e-09, +2.000e-10,
    ]
)

_GMF_H_AMPLITUDE_A = np.array(
    [
        -2.738e-01, -2.837e0, +1.298e-02, -3.588e-01, +2.413e-02,
        +3.427e-02, -7.624e-01, +7.272e-02, +2.160e-02, -3.385e-03,
        +4.424e-01, +3.722e-02, +2.195e-02, -1.503e-03, +2.426e-04,
        +3.013e-01, +5.762e-02, +1.019e-02, -4.476e-04, +6.790e-05,
        +3.227e-05, +3.123e-01, -3.535e-02, +4.840e-03, +3.025e-06,
        -4.363e-05, +2.854e-07, -1.286e-06, -6.725e-01, -3.730e-02,
        +8.964e-04, +1.399e-04, -3.990e-06, +7.431e-06, -2.796e-07,
        -1.601e-07, +4.068e-02, -1.352e-02, +7.282e-04, +9.594e-05,
        +2.070e-06, -9.620e-08, -2.742e-07, -6.370e-08, -6.300e-09,
        +8.625e-02, -5.971e-03, +4.705e-04, +2.335e-05, +4.226e-06,
        +2.475e-07, -8.850e-08, -3.600e-08, -2.900e-09, +0.000e0,
    ]
)

_GMF_H_AMPLITUDE_B = np.array(
    [
        +0.000e0, +0.000e0, -1.136e-01, +0.000e0, -1.868e-01,
        -1.399e-02, +0.000e0, -1.043e-01, +1.175e-02, -2.240e-03,
        +0.000e0, -3.222e-02, +1.333e-02, -2.647e-03, -2.316e-05,
        +0.000e0, +5.339e-02, +1.107e-02, -3.116e-03, -1.079e-04,
        -1.299e-05, +0.000e0, +4.861e-03, +8.891e-03, -6.448e-04,
        -1.279e-05, +6.358e-06, -1.417e-07, +0.000e0, +3.041e-02,
        +1.150e-03, -8.743e-04, -2.781e-05, +6.367e-07, -1.140e-08,
        -4.200e-08, +0.000e0, -2.982e-02, -3.000e-03, +1.394e-05,
        -3.290e-05, -1.705e-07, +7.440e-08, +2.720e-08, -6.600e-09,
        +0.000e0, +1.236e-02, -9.981e-04, -3.792e-05, -1.355e-05,
        +1.162e-06, -1.789e-07, +1.470e-08, -2.400e-09, -4.000e-10,
    ]
)

_GMF_W_MEAN_A = np.array(
    [
        +5.640e1, +1.555e0, -1.011e0, -3.975e0, +3.171e-02,
        +1.065e-01, +6.175e-01, +1.376e-01, +4.229e-02, +3.028e-03,
        +1.688e0, -1.692e-01, +5.478e-02, +2.473e-02, +6.059e-04,
        +2.278e0, +6.614e-03, -3.505e-04, -6.697e-03, +8.402e-04,
        +7.033e-04, -3.236e0, +2.184e-01, -4.611e-02, -1.613e-02,
        -1.604e-03, +5.420e-05, +7.922e-05, -2.711e-01, -4.406e-01,
        -3.376e-02, -2.801e-03, -4.090e-04, -2.056e-05, +6.894e-06,
        +2.317e-06, +1.941e0, -2.562e-01, +1.598e-02, +5.449e-03,
        +3.544e-04, +1.148e-05, +7.503e-06, -5.667e-07, -3.660e-08,
        +8.683e-01, -5.931e-02, -1.864e-03, -1.277e-04, +2.029e-04,
        +1.269e-05, +1.629e-06, +9.660e-08, -1.015e-07, -5.000e-10,
    ]
)

_GMF_W_MEAN_B = np.array(
    [
        +0.000e0, +0.000e0, +2.592e-01, +0.000e0, +2.974e-02,
        -5.471e-01, +0.000e0, -5.926e-01, -1.030e-01, -1.567e-02,
        +0.000e0, +1.710e-01, +9.025e-02, +2.689e-02, +2.243e-03,
        +0.000e0, +3.439e-01, +2.402e-02, +5.410e-03, +1.601e-03,
        +9.669e-05, +0.000e0, +9.502e-02, -3.063e-02, -1.055e-03,
        -1.067e-04, -1.130e-04, +2.124e-05, +0.000e0, -3.129e-01,
        +8.463e-03, +2.253e-04, +7.413e-05, -9.376e-05, -1.606e-06,
        +2.060e-06, +0.000e0, +2.739e-01, +1.167e-03, -2.246e-05,
        -1.287e-04, -2.438e-05, -7.561e-07, +1.158e-06, +4.950e-08,
        +0.000e0, -1.344e-01, +5.342e-03, +3.775e-04, -6.756e-05,
        -1.686e-06, -1.184e-06, +2.768e-07, +2.730e-08, +5.700e-09,
    ]
)

_GMF_W_AMPLITUDE_A = np.array(
    [
        +1.023e-01, -2.695e0, +3.417e-01, -1.405e-01, +3.175e-01,
        +2.116e-01, +3.536e0, -1.505e-01, -1.660e-02, +2.967e-02,
        +3.819e-01, -1.695e-01, -7.444e-02, +7.409e-03, -6.262e-03,
        -1.836e0, -1.759e-02, -6.256e-02, -2.371e-03, +7.947e-04,
        +1.501e-04, -8.603e-01, -1.360e-01, -3.629e-02, -3.706e-03,
        -2.976e-04, +1.857e-05, +3.021e-05, +2.248e0, -1.178e-01,
        +1.255e-02, +1.134e-03, -2.161e-04, -5.817e-06, +8.836e-07,
        -1.769e-07, +7.313e-01, -1.188e-01, +1.145e-02, +1.011e-03,
        +1.083e-04, +2.570e-06, -2.140e-06, -5.710e-08, +2.000e-08,
        -1.632e0, -6.948e-03, -3.893e-03, +8.592e-04, +7.577e-05,
        +4.539e-06, -3.852e-07, -2.213e-07, -1.370e-08, +5.800e-09,
    ]
)

_GMF_W_AMPLITUDE_B = np.array(
    [
        +0.000e0, +0.000e0, -8.865e-02, +0.000e0, -4.309e-01,
        +6.340e-02, +0.000e0, +1.162e-01, +6.176e-02, -4.234e-03,
        +0.000e0, +2.530e-01, +4.017e-02, -6.204e-03, +4.977e-03,
        +0.000e0, -1.737e-01, -5.638e-03, +1.488e-04, +4.857e-04,
        -1.809e-04, +0.000e0, -1.514e-01, -1.685e-02, +5.333e-03,
        -7.611e-05, +2.394e-05, +8.195e-06, +0.000e0, +9.326e-02,
        -1.275e-02, -3.071e-04, +5.374e-05, -3.391e-05, -7.436e-06,
        +6.747e-07, +0.000e0, -8.637e-02, -3.807e-03, -6.833e-04,
        -3.861e-05, -2.268e-05, +1.454e-06, +3.860e-07, -1.068e-07,
        +0.000e0, -2.658e-02, -1.947e-03, +7.131e-04, -3.506e-05,
        +1.885e-07, +5.792e-07, +3.990e-08, +2.000e-08, -5.700e-09,
    ]
)
# fmt: on


def degree_order_pairs(nmax=_NMAX):
    """Flattened sequence of (degree, order) pairs of a spherical harmonic series.

    The sequence runs over degree n = 0..`nmax` and, within each degree, over
    order m = 0..n. This is the lower triangle of an (n, m) matrix in
    row-major order, with (nmax + 1) * (nmax + 2) / 2 entries (55 for nmax=9).

    Parameters
    ----------
    nmax : int, optional
        Maximum degree and order

    Returns
    -------
    pairs : list of tuple of int
        Sequence of (n, m) pairs
    """
    return [(n, m) for n in range(nmax + 1) for m in range(n + 1)]


_DEGREE, _ORDER = np.array(degree_order_pairs()).T


def legendre_vw(x, y, z, nmax=_NMAX):
    """Legendre-based V and W functions of a unit direction vector.

    This evaluates V(n, m) = P_n^m(z) cos(m lon) and W(n, m) = P_n^m(z) sin(m lon)
    for the direction (x, y, z) = (cos lat cos lon, cos lat sin lon, sin lat),
    where P_n^m are the unnormalised associated Legendre functions without the
    Condon-Shortley phase. The functions are obtained with the usual recursions
    directly in terms of x, y and z, which avoids any trigonometry.

    Parameters
    ----------
    x, y, z : float or array
        Components of unit vector(s) (broadcast against each other)
    nmax : int, optional
        Maximum degree and order

    Returns
    -------
    V, W : array of float, shape (..., nmax + 1, nmax + 1)
        Function values indexed by [..., n, m], with zeros above the diagonal
    """
    x, y, z = np.broadcast_arrays(*(np.asarray(c, dtype=float) for c in (x, y, z)))
    V = np.zeros(x.shape + (nmax + 1, nmax + 1))
    W = np.zeros_like(V)
    V[..., 0, 0] = 1.0
    if nmax >= 1:
        V[..., 1, 0] = z * V[..., 0, 0]
    # Zonal terms (W vanishes for m = 0)
    for n in range(2, nmax + 1):
        V[..., n, 0] = (
            (2 * n - 1) * z * V[..., n - 1, 0] - (n - 1) * V[..., n - 2, 0]
        ) / n
    for m in range(1, nmax + 1):
        # Sectorial terms
        V_prev, W_prev = V[..., m - 1, m - 1], W[..., m - 1, m - 1]
        V[..., m, m] = (2 * m - 1) * (x * V_prev - y * W_prev)
        W[..., m, m] = (2 * m - 1) * (x * W_prev + y * V_prev)
        if m < nmax:
            V[..., m + 1, m] = (2 * m + 1) * z * V[..., m, m]
            W[..., m + 1, m] = (2 * m + 1) * z * W[..., m, m]
        # Tesseral terms
        for n in range(m + 2, nmax + 1):
            V[..., n, m] = (
                (2 * n - 1) * z * V[..., n - 1, m] - (n + m - 1) * V[..., n - 2, m]
            ) / (n - m)
            W[..., n, m] = (
                (2 * n - 1) * z * W[..., n - 1, m] - (n + m - 1) * W[..., n - 2, m]
            ) / (n - m)
    return V, W


def hemisphere_terms(z):
    """Seasonal phase and blend weights of hydrostatic "c" coefficient.

    Southern hemisphere stations (z < 0) have their seasons flipped and
    slightly larger weights. Stations on the equator (z == 0) are treated
    as northern.

    Parameters
    ----------
    z : float or array
        Z component of station unit vector

    Returns
    -------
    phase : float or array
        Seasonal phase offset, either 0 or pi radians
    c11, c10 : float or array
        Seasonal amplitude and offset of latitude-dependent part of "c"
    """
    south = np.asarray(z) < 0
    phase = np.where(south, np.pi, 0.0)
    c11 = np.where(south, 0.007, 0.005)
    c10 = np.where(south, 0.002, 0.001)
    return phase, c11, c10


@dataclass(frozen=True, eq=False)
class StationGeometry(StationArrays):
    """Geometry of stations as seen by the Global Mapping Function.

    Attributes
    ----------
    latitude, longitude : array of float, shape (N,)
        Ellipsoidal (geodetic) latitude and longitude, in radians
    height : array of float, shape (N,)
        Ellipsoidal height, in metres
    x, y, z : array of float, shape (N,)
        Unit direction vector built from latitude and longitude
    cos_lat : array of float, shape (N,)
        Cosine of latitude
    """

    latitude: np.ndarray
    longitude: np.ndarray
    height: np.ndarray
    x: np.ndarray
    y: np.ndarray
    z: np.ndarray
    cos_lat: np.ndarray

    @classmethod
    def from_positions(cls, positions, ellipsoid=GRS80):
        """Obtain station geometry from Cartesian positions.

        Parameters
        ----------
        positions : array-like of float, shape (N, 3), or
            :class:`~astropy.coordinates.EarthLocation`
            Station positions as earth-centred, earth-fixed (ECEF) X, Y, Z
            coordinates in metres. A single position of shape (3,) is also
            accepted. An empty sequence gives an empty geometry.
        ellipsoid : :class:`~gmftropo.conversion.Ellipsoid`, optional
            Reference ellipsoid for latitude / longitude / height (GRS80)

        Returns
        -------
        geometry : :class:`StationGeometry`
            Station geometry

        Raises
        ------
        ValueError
            If `positions` cannot be interpreted as a list of 3-D vectors
        """
        if isinstance(positions, EarthLocation):
            xyz = [positions.x, positions.y, positions.z]
            positions = np.stack([c.to_value(u.m) for c in xyz], axis=-1)
        positions = np.asarray(positions, dtype=float)
        if positions.size == 0:
            positions = positions.reshape(0, 3)
        if positions.shape[-1] != 3:
            raise ValueError(
                f"Station positions should have shape (N, 3), not {positions.shape}"
            )
        positions = positions.reshape(-1, 3)
        lat, lon, height = ecef_to_lla(*positions.T, ellipsoid=ellipsoid)
        remote = np.abs(height) > _MAX_ABS_HEIGHT_M
        if remote.any():
            logger.warning(
                "Stations %s are more than %g km from the ellipsoid surface - "
                "mapping functions will be unreliable",
                np.flatnonzero(remote).tolist(),
                _MAX_ABS_HEIGHT_M / 1e3,
            )
        # Boehm et al. (2006) use cos(lat) * cos(lon), i.e. they
        # interpret the ellipsoidal latitude as a geocentric one
        cos_lat = np.cos(lat)
        return cls(
            latitude=lat,
            longitude=lon,
            height=height,
            x=cos_lat * np.cos(lon),
            y=cos_lat * np.sin(lon),
            z=np.sin(lat),
            cos_lat=cos_lat,
        )


@dataclass(frozen=True, eq=False)
class SynthesisedCoefficients(StationArrays):
    """Station-dependent coefficients of the Global Mapping Function.

    Attributes
    ----------
    mean_hydrostatic, amplitude_hydrostatic : array of float, shape (N,)
        Mean and annual amplitude of hydrostatic "a" coefficient (scaled by 1e5)
    mean_wet, amplitude_wet : array of float, shape (N,)
        Mean and annual amplitude of wet "a" coefficient (scaled by 1e5)
    phase : array of float, shape (N,)
        Seasonal phase offset of hydrostatic "c" coefficient (0 or pi)
    c11, c10 : array of float, shape (N,)
        Seasonal amplitude and offset of hydrostatic "c" coefficient
    """

    mean_hydrostatic: np.ndarray
    amplitude_hydrostatic: np.ndarray
    mean_wet: np.ndarray
    amplitude_wet: np.ndarray
    phase: np.ndarray
    c11: np.ndarray
    c10: np.ndarray


def synthesise(geometry):
    """Evaluate the GMF spherical harmonic expansions at each station.

    Parameters
    ----------
    geometry : :class:`StationGeometry`
        Station geometry

    Returns
    -------
    coefs : :class:`SynthesisedCoefficients`
        Mean / amplitude of hydrostatic / wet "a" coefficients and the
        hemisphere terms, one value per station
    """
    V, W = legendre_vw(geometry.x, geometry.y, geometry.z)
    # Unravel lower triangles into basis vectors of length 55
    v = V[..., _DEGREE, _ORDER]
    w = W[..., _DEGREE, _ORDER]
    phase, c11, c10 = hemisphere_terms(geometry.z)
    coefs = SynthesisedCoefficients(
        mean_hydrostatic=v @ _GMF_H_MEAN_A + w @ _GMF_H_MEAN_B,
        amplitude_hydrostatic=v @ _GMF_H_AMPLITUDE_A + w @ _GMF_H_AMPLITUDE_B,
        mean_wet=v @ _GMF_W_MEAN_A + w @ _GMF_W_MEAN_B,
        amplitude_wet=v @ _GMF_W_AMPLITUDE_A + w @ _GMF_W_AMPLITUDE_B,
        phase=phase,
        c11=c11,
        c10=c10,
    )
    logger.debug("Synthesised GMF coefficients for %d stations", len(coefs))
    return coefs
