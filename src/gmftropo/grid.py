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

"""Evaluate a troposphere model on a grid of epochs and directions."""

from dataclasses import dataclass

import numpy as np

from .conversion import GRS80, lla_to_ecef, to_mjd, to_radians


def sampling_grid(start, stop, step):
    """Regular sampling of an angle range, including both end points.

    Parameters
    ----------
    start, stop, step : float or :class:`~astropy.coordinates.Angle`
        First and last sample and spacing of samples, in radians by default

    Returns
    -------
    samples : array of float
        Angles from `start` up to (and including) `stop`, in radians

    Raises
    ------
    ValueError
        If `step` is not positive
    """
    start, stop, step = to_radians(start), to_radians(stop), to_radians(step)
    if not step > 0:
        raise ValueError(f"Sampling step should be positive, not {step}")
    # Allow for round-off in the last sample
    num_samples = int(np.floor((stop - start) / step + 1e-9)) + 1
    return start + step * np.arange(max(num_samples, 0))


def station_position(longitude, latitude, height, ellipsoid=GRS80):
    """ECEF position of a station given its ellipsoidal coordinates.

    Parameters
    ----------
    longitude, latitude : float or :class:`~astropy.coordinates.Angle`
        Geodetic longitude and latitude, in radians by default
    height : float
        Ellipsoidal height, in metres
    ellipsoid : :class:`~gmftropo.conversion.Ellipsoid`, optional
        Reference ellipsoid (GRS80 by default)

    Returns
    -------
    position : array of float, shape (3,)
        Earth-centred, earth-fixed X, Y, Z coordinates, in metres
    """
    xyz = lla_to_ecef(to_radians(latitude), to_radians(longitude), height, ellipsoid)
    return np.array(xyz, dtype=float)


@dataclass(frozen=True, eq=False)
class GridEvaluation:
    """Troposphere model evaluated on a grid of epochs and directions.

    The directions are flattened into points, with elevation descending
    from the first to the last point and azimuth varying fastest. Each
    result has shape (T, P) for T epochs and P points.

    Attributes
    ----------
    mjd : array of float, shape (T,)
        Epochs, as MJD in UTC
    azimuth, elevation : array of float, shape (P,)
        Direction of each point, in radians
    slant_delay : array of float, shape (T, P)
        Slant delay, in metres
    mapping_function_wet, mapping_function_hydrostatic : array, shape (T, P)
        Wet and hydrostatic mapping functions
    gradient_x, gradient_y : array of float, shape (T, P)
        North and east gradient mapping functions
    """

    mjd: np.ndarray
    azimuth: np.ndarray
    elevation: np.ndarray
    slant_delay: np.ndarray
    mapping_function_wet: np.ndarray
    mapping_function_hydrostatic: np.ndarray
    gradient_x: np.ndarray
    gradient_y: np.ndarray


def evaluate_grid(troposphere, times, elevations, azimuths, station_id=0):
    """Evaluate slant delays and mapping functions of a station on a grid.

    Parameters
    ----------
    troposphere : :class:`~gmftropo.troposphere.base.Troposphere`
        Initialised troposphere model
    times : sequence of float or :class:`~astropy.time.Time`
        Epochs, as MJD in UTC
    elevations, azimuths : sequence of float or :class:`~astropy.coordinates.Angle`
        Elevation and azimuth samples, in radians by default
    station_id : int, optional
        Index of station in troposphere model

    Returns
    -------
    grid : :class:`GridEvaluation`
        Results on the grid
    """
    mjd = np.atleast_1d(to_mjd(times))
    elevations = np.sort(np.atleast_1d(to_radians(elevations)))[::-1]
    azimuths = np.atleast_1d(to_radians(azimuths))
    elevation = np.repeat(elevations, len(azimuths))
    azimuth = np.tile(azimuths, len(elevations))
    shape = (len(mjd), len(elevation))
    results = {
        name: np.full(shape, np.nan)
        for name in ("delay", "wet", "hydrostatic", "grad_x", "grad_y")
    }
    for n, epoch in enumerate(mjd):
        results["delay"][n] = troposphere.slant_delay(
            epoch, station_id, azimuth, elevation
        )
        results["wet"][n] = troposphere.mapping_function_wet(
            epoch, station_id, elevation, azimuth
        )
        results["hydrostatic"][n] = troposphere.mapping_function_hydrostatic(
            epoch, station_id, elevation, azimuth
        )
        results["grad_x"][n], results["grad_y"][n] = (
            troposphere.mapping_function_gradient(
                azimuth, elevation, time=epoch, station_id=station_id
            )
        )
    return GridEvaluation(
        mjd=mjd,
        azimuth=azimuth,
        elevation=elevation,
        slant_delay=results["delay"],
        mapping_function_wet=results["wet"],
        mapping_function_hydrostatic=results["hydrostatic"],
        gradient_x=results["grad_x"],
        gradient_y=results["grad_y"],
    )
