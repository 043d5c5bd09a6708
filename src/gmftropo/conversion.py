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

"""Geodetic coordinate transformations, and angle and time conversions."""

from dataclasses import dataclass

import astropy.units as u
import numpy as np
from astropy.coordinates import Angle
from astropy.time import Time, TimeDelta

# -------------------------------------------------------------------------------------
# --- Angle and time conversion utilities
# -------------------------------------------------------------------------------------


def to_angle(s, sexagesimal_unit=u.deg):
    """Construct an `Angle` with default units.

    This creates an :class:`~astropy.coordinates.Angle` with the following
    default units:

      - A number is in radians.
      - A decimal string ('123.4') is in degrees.
      - A sexagesimal string ('12:34:56.7' or '12 34 56.7')
        has `sexagesimal_unit`, which defaults to degrees.

    Parameters
    ----------
    s : :class:`~astropy.coordinates.Angle` or equivalent, string, float
        Anything accepted by `Angle` and also unitless strings and numbers
    sexagesimal_unit : :class:`~astropy.units.UnitBase` or str, optional
        The unit applied to sexagesimal strings

    Returns
    -------
    angle : :class:`~astropy.coordinates.Angle`
        Astropy `Angle`
    """
    try:
        return Angle(s)
    except u.UnitsError:
        if isinstance(s, bytes):
            raise TypeError(
                f"Raw bytes {s} not supported: first decode to string (or add unit)"
            ) from None
        try:
            float(s)
        except ValueError:
            return Angle(s, unit=sexagesimal_unit)
        except TypeError:
            # Arrays of numbers end up here
            pass
        if isinstance(s, str):
            return Angle(s, unit=u.deg)
        return Angle(s, unit=u.rad)


def to_radians(s):
    """Angle(s) as plain float or array in radians (see :func:`to_angle`)."""
    if isinstance(s, (float, int, np.ndarray)) and not isinstance(s, u.Quantity):
        # Fast path for the inner loops of grid evaluations
        return s
    return to_angle(s).rad


def to_mjd(t):
    """Convert time(s) to Modified Julian Date (MJD) in the UTC scale.

    A number (or array of numbers) is already taken to be an MJD. An
    :class:`~astropy.time.Time` object and ISO date strings such as
    '2020-12-25 12:00:00' are converted via UTC.

    Parameters
    ----------
    t : float, string, :class:`~astropy.time.Time`, or sequence / array thereof
        Time(s) to convert

    Returns
    -------
    mjd : float or array of float
        Modified Julian Date, in fractional days

    Raises
    ------
    ValueError
        If `t` is a time interval instead of an absolute time
    """
    if isinstance(t, TimeDelta):
        raise ValueError(f"Cannot convert time interval {t} to MJD")
    if isinstance(t, Time):
        return t.utc.mjd
    val = np.asarray(t)
    if val.dtype.kind == "S":
        val = np.char.decode(val)
    if val.dtype.kind == "U":
        mjd = Time(np.char.strip(val), scale="utc").mjd
    else:
        mjd = val.astype(float)
    return mjd if np.ndim(mjd) else float(mjd)


# -------------------------------------------------------------------------------------
# --- Geodetic coordinate transformations
# -------------------------------------------------------------------------------------


@dataclass(frozen=True)
class Ellipsoid:
    """Reference ellipsoid of revolution.

    Parameters
    ----------
    a : float
        Semi-major axis, in metres
    inverse_flattening : float
        Reciprocal of the flattening f = (a - b) / a
    """

    a: float
    inverse_flattening: float

    @property
    def f(self):
        """Flattening of ellipsoid."""
        return 1.0 / self.inverse_flattening

    @property
    def b(self):
        """Semi-minor axis, in metres."""
        return self.a * (1.0 - self.f)

    @property
    def e2(self):
        """First eccentricity squared."""
        return 2 * self.f - self.f**2


GRS80 = Ellipsoid(a=6378137.0, inverse_flattening=298.257222101)
WGS84 = Ellipsoid(a=6378137.0, inverse_flattening=298.257223563)


def lla_to_ecef(lat_rad, lon_rad, alt_m, ellipsoid=WGS84):
    """Convert ellipsoidal coordinates to ECEF cartesian coordinates.

    This converts a position on the Earth specified in geodetic latitude,
    longitude and altitude to earth-centered, earth-fixed (ECEF) cartesian
    coordinates. The WGS84 earth model is used by default, as described in
    [NIMA2004]_.

    Parameters
    ----------
    lat_rad : float or array
        Latitude (customary geodetic, not geocentric), in radians
    lon_rad : float or array
        Longitude, in radians
    alt_m : float or array
        Altitude, in metres above reference ellipsoid
    ellipsoid : :class:`Ellipsoid`, optional
        Earth model (WGS84 by default)

    Returns
    -------
    x_m, y_m, z_m : float or array
        X, Y, Z coordinates, in metres

    References
    ----------
    .. [NIMA2004] National Imagery and Mapping Agency, "Department of Defense
       World Geodetic System 1984," NIMA TR8350.2, Page 4-4, last updated
       June, 2004.
    """
    e2 = ellipsoid.e2
    # Prime vertical radius of curvature
    R = ellipsoid.a / np.sqrt(1.0 - e2 * np.sin(lat_rad) ** 2)

    x_m = (R + alt_m) * np.cos(lat_rad) * np.cos(lon_rad)
    y_m = (R + alt_m) * np.cos(lat_rad) * np.sin(lon_rad)
    z_m = ((1.0 - e2) * R + alt_m) * np.sin(lat_rad)

    return x_m, y_m, z_m


def ecef_to_lla(x_m, y_m, z_m, ellipsoid=WGS84):
    """Convert ECEF cartesian coordinates to ellipsoidal coordinates.

    This converts an earth-centered, earth-fixed (ECEF) cartesian position to a
    position on the Earth specified in geodetic latitude, longitude and altitude.

    Parameters
    ----------
    x_m, y_m, z_m : float or array
        X, Y, Z coordinates, in metres
    ellipsoid : :class:`Ellipsoid`, optional
        Earth model (WGS84 by default)

    Returns
    -------
    lat_rad : float or array
        Latitude (customary geodetic, not geocentric), in radians
    lon_rad : float or array
        Longitude, in radians
    alt_m : float or array
        Altitude, in metres above reference ellipsoid

    Notes
    -----
    Based on the closed-form algorithm of Zhu [zhu]_, which is summarised by
    Kaplan [kaplan]_. It is not defined at the centre of the Earth.

    .. [zhu] J. Zhu, "Conversion of Earth-centered Earth-fixed coordinates to
       geodetic coordinates," Aerospace and Electronic Systems, IEEE Transactions
       on, vol. 30, pp. 957-961, 1994.
    .. [kaplan] Kaplan, "Understanding GPS: principles and applications," 1 ed.,
       Norwood, MA 02062, USA: Artech House, Inc, 1996.
    """
    a, b, f, e2 = ellipsoid.a, ellipsoid.b, ellipsoid.f, ellipsoid.e2
    ep2 = f * (2.0 - f) / (1.0 - f) ** 2  # second eccentricity squared
    a2, b2 = a**2, b**2
    z2 = z_m**2

    r = np.hypot(x_m, y_m)
    F = 54.0 * b2 * z2
    G = r**2 + (1 - e2) * z2 - e2 * (a2 - b2)
    C = (e2**2 * F * r**2) / (G**3)
    S = np.cbrt(1.0 + C + np.sqrt(C**2 + 2 * C))
    P = F / (3.0 * (S + 1.0 / S + 1.0) ** 2 * G**2)
    Q = np.sqrt(1.0 + 2.0 * e2**2 * P)
    r0 = -P * e2 * r / (1.0 + Q) + np.sqrt(
        0.5 * a2 * (1.0 + 1.0 / Q)
        - P * (1 - e2) * z2 / (Q * (1.0 + Q))
        - 0.5 * P * r**2
    )
    U = np.hypot(r - e2 * r0, z_m)
    V = np.sqrt((r - e2 * r0) ** 2 + (1.0 - e2) * z2)
    z0 = (b2 * z_m) / (a * V)
    alt_m = U * (1.0 - b2 / (a * V))
    lat_rad = np.arctan2(z_m + ep2 * z0, r)
    lon_rad = np.arctan2(y_m, x_m)

    return lat_rad, lon_rad, alt_m
