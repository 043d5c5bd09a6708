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

"""Shared pytest utilities."""

import numpy as np


def assert_angles_almost_equal(x, y, **kwargs):
    """Check that two angles / arrays are almost equal (modulo 2 pi)."""

    def primary_angle(x):
        return x - np.round(x / (2.0 * np.pi)) * 2.0 * np.pi

    x = np.asarray(x)
    y = np.asarray(y)
    np.testing.assert_array_equal(
        0 * x, 0 * y, "Array shapes and/or NaN patterns differ"
    )
    d = primary_angle(np.nan_to_num(x - y))
    np.testing.assert_almost_equal(d, np.zeros(np.shape(x)), **kwargs)


def associated_legendre_functions(n, m, x):
    """Matrix of associated Legendre functions via explicit sum.

    This computes :math:`P_n^m(x)` of degrees ``0..n`` and orders ``0..m`` at
    the real value `x`, without the Condon-Shortley phase. It is based on
    Equation 1-62 of Heiskanen & Moritz, "Physical Geodesy" (1967), which is
    independent of the recursions under test.
    """
    # Sequence of factorials from 0..2n + 1
    fact = np.ones(2 * n + 2)
    fact[2:] = np.cumprod(np.arange(2.0, len(fact)))
    P = np.zeros((n + 1, m + 1))
    for i in range(n + 1):
        for j in range(min(i, m) + 1):
            s = 0
            for k in range((i - j) // 2 + 1):
                s += (
                    (-1) ** k
                    * fact[2 * i - 2 * k]
                    / fact[k]
                    / fact[i - k]
                    / fact[i - j - 2 * k]
                    * x ** (i - j - 2 * k)
                )
            P[i, j] = 1.0 / 2**i * np.sqrt((1 - x**2) ** j) * s
    return P
