#!/usr/bin/env python3

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

#
# Evaluate the Global Mapping Function of a single station on a grid of
# epochs, elevations and azimuths, and summarise the slant delays and
# mapping functions (optionally saving the full grid as a NumPy .npz file).
#

import argparse

import numpy as np

import gmftropo
from gmftropo.conversion import to_angle


def epoch(s):
    """Parse epoch as MJD number or ISO date string."""
    try:
        return float(s)
    except ValueError:
        return gmftropo.to_mjd(s)


parser = argparse.ArgumentParser(
    description="Evaluate GMF slant delays and mapping functions on a grid."
)
parser.add_argument("times", nargs="+", type=epoch, help="epochs (MJD or ISO date)")
parser.add_argument("--lon", default="0.0", help="station longitude (degrees)")
parser.add_argument("--lat", default="0.0", help="station latitude (degrees)")
parser.add_argument("--height", type=float, default=0.0, help="station height (m)")
parser.add_argument("--zhd", type=float, default=2.3, help="zenith dry delay (m)")
parser.add_argument("--zwd", type=float, default=0.1, help="zenith wet delay (m)")
parser.add_argument("--el-min", default="0.5", help="min elevation (degrees)")
parser.add_argument("--el-max", default="89.5", help="max elevation (degrees)")
parser.add_argument("--el-step", default="1", help="elevation sampling (degrees)")
parser.add_argument("--az-min", default="-179.5", help="min azimuth (degrees)")
parser.add_argument("--az-max", default="179.5", help="max azimuth (degrees)")
parser.add_argument("--az-step", default="1", help="azimuth sampling (degrees)")
parser.add_argument("--wgs84", action="store_true", help="use WGS84 instead of GRS80")
parser.add_argument("-o", "--output", help="save full grid to this .npz file")
args = parser.parse_args()

ellipsoid = gmftropo.WGS84 if args.wgs84 else gmftropo.GRS80
position = gmftropo.station_position(
    to_angle(args.lon), to_angle(args.lat), args.height, ellipsoid
)
source = gmftropo.StaticEmpiricalCoefficients(args.zhd, args.zwd)
tropo = gmftropo.GlobalMappingFunction(source, ellipsoid=ellipsoid)
tropo.init([position])

elevations = gmftropo.sampling_grid(
    to_angle(args.el_min), to_angle(args.el_max), to_angle(args.el_step)
)
azimuths = gmftropo.sampling_grid(
    to_angle(args.az_min), to_angle(args.az_max), to_angle(args.az_step)
)
grid = gmftropo.evaluate_grid(tropo, args.times, elevations, azimuths)

lowest = grid.elevation == grid.elevation.min()
print(f"Station at lon {args.lon}, lat {args.lat}, height {args.height} m")
print(f"{len(elevations)} elevations x {len(azimuths)} azimuths")
print("       MJD   lowest el (deg)   delay (m)    mfh       mfw")
for n, mjd in enumerate(grid.mjd):
    print(
        f"{mjd:12.5f}  {np.degrees(grid.elevation[lowest][0]):8.3f}  "
        f"{grid.slant_delay[n, lowest].mean():12.4f}  "
        f"{grid.mapping_function_hydrostatic[n, lowest].mean():8.4f}  "
        f"{grid.mapping_function_wet[n, lowest].mean():8.4f}"
    )

if args.output:
    np.savez(
        args.output,
        mjd=grid.mjd,
        azimuth=grid.azimuth,
        elevation=grid.elevation,
        slant_delay=grid.slant_delay,
        mapping_function_wet=grid.mapping_function_wet,
        mapping_function_hydrostatic=grid.mapping_function_hydrostatic,
        gradient_x=grid.gradient_x,
        gradient_y=grid.gradient_y,
    )
    print(f"Saved grid to {args.output}")
