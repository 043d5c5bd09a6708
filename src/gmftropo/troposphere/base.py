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

"""Interface and data containers shared by tropospheric mapping models."""

from dataclasses import dataclass, fields

import numpy as np


def _read_only(values):
    """Copy `values` to a float array that cannot be modified in-place."""
    arr = np.array(values, dtype=float)
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True, eq=False)
class StationArrays:
    """Base for dataclasses of read-only per-station arrays.

    Every field of a subclass is converted to a float array that cannot be
    modified in-place, and the length of the container is the number of
    stations (the length of the first field).
    """

    def __post_init__(self):
        for f in fields(self):
            # Set attribute on base class because this class is frozen
            super().__setattr__(f.name, _read_only(getattr(self, f.name)))

    def __len__(self):
        return len(getattr(self, fields(self)[0].name))


class NotInitialisedError(RuntimeError):
    """Troposphere model was evaluated before its stations were set up."""


class Troposphere:
    """A tropospheric delay model evaluated for a fixed set of stations.

    The stations are set up once via :meth:`init`, after which delays and
    mapping functions can be evaluated for any station index, time and
    direction. Angles are in radians (or Astropy angles), times are MJD
    (or Astropy times) and delays are in metres.
    """

    def init(self, stations):
        """Set up the model for the given station positions.

        Parameters
        ----------
        stations : array-like of float, shape (N, 3), or
            :class:`~astropy.coordinates.EarthLocation`
            Earth-centred, earth-fixed (ECEF) station positions, in metres
        """
        raise NotImplementedError

    def slant_delay(self, time, station_id, azimuth, elevation):
        """Tropospheric delay along the line of sight to a satellite.

        Parameters
        ----------
        time : float or :class:`~astropy.time.Time`
            Epoch, as MJD in UTC
        station_id : int
            Index of station in list passed to :meth:`init`
        azimuth, elevation : float or array
            Direction of satellite as seen from station, in radians

        Returns
        -------
        delay : float or array
            Slant delay, in metres
        """
        raise NotImplementedError

    def mapping_function_hydrostatic(self, time, station_id, elevation, azimuth=None):
        """Mapping function of hydrostatic ("dry") zenith delay.

        Parameters
        ----------
        time : float or array or :class:`~astropy.time.Time`
            Epoch(s), as MJD in UTC
        station_id : int
            Index of station in list passed to :meth:`init`
        elevation : float or array
            Elevation angle, in radians
        azimuth : float or array, optional
            Azimuth angle, in radians (ignored by azimuthally symmetric models)

        Returns
        -------
        mf : float or array
            Scale factor that turns zenith delay into delay at elevation angle
        """
        raise NotImplementedError

    def mapping_function_wet(self, time, station_id, elevation, azimuth=None):
        """Mapping function of wet (non-hydrostatic) zenith delay.

        Parameters are the same as for :meth:`mapping_function_hydrostatic`.
        """
        raise NotImplementedError

    def mapping_function_gradient(self, azimuth, elevation, time=None, station_id=None):
        """Mapping functions of north and east delay gradients.

        Parameters
        ----------
        azimuth, elevation : float or array
            Direction of satellite as seen from station, in radians
        time, station_id : optional
            Epoch and station index, for models that depend on them

        Returns
        -------
        dx, dy : float or array
            Partial derivatives of slant delay with respect to north and
            east gradients, respectively
        """
        raise NotImplementedError

    def get_apriori_values(self, time, station_id):
        """A-priori zenith delays, gradients and "a" coefficients at station.

        Parameters
        ----------
        time : float or :class:`~astropy.time.Time`
            Epoch, as MJD in UTC
        station_id : int
            Index of station in list passed to :meth:`init`

        Returns
        -------
        values : :class:`~gmftropo.troposphere.empirical.AprioriValues`
            A-priori values of station at epoch
        """
        raise NotImplementedError
