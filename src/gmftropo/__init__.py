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

"""
Tropospheric slant delays based on the Global Mapping Function (GMF).

This maps zenith hydrostatic and wet delays of ground stations to the line of
sight of a satellite, using the empirical GMF mapping functions of Boehm et
al. (2006) with a spherical harmonic model of global weather, Niell's height
correction and the gradient mapping function of Chen & Herring (1997).
"""

import logging as _logging
from types import ModuleType as _ModuleType

from ._version import __version__
from .conversion import GRS80, WGS84, Ellipsoid, ecef_to_lla, lla_to_ecef, to_mjd
from .grid import GridEvaluation, evaluate_grid, sampling_grid, station_position
from .troposphere.base import NotInitialisedError, StationArrays, Troposphere
from .troposphere.empirical import (
    AprioriValues,
    EmpiricalCoefficients,
    EmpiricalCoefficientSource,
    SeasonalEmpiricalCoefficients,
    StaticEmpiricalCoefficients,
)
from .troposphere.gmf import GlobalMappingFunction, HeightCorrection


# Setup library logger and add a print-like handler used when no logging is configured
class _NoConfigFilter(_logging.Filter):
    """Filter which only allows event if top-level logging is not configured."""

    def filter(self, record):
        return 1 if not _logging.root.handlers else 0


_no_config_handler = _logging.StreamHandler()
_no_config_handler.setFormatter(_logging.Formatter(_logging.BASIC_FORMAT))
_no_config_handler.addFilter(_NoConfigFilter())
logger = _logging.getLogger(__name__)
logger.addHandler(_no_config_handler)

# Document public API in __all__ / __dir__ by discarding modules and private variables
__all__ = [
    n
    for n, o in globals().items()
    if not isinstance(o, _ModuleType) and not n.startswith("_")
]
__all__ += ["__version__"]


def __dir__():
    """Tab completion in IPython seems to respect this."""
    return __all__
