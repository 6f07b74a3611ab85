"""
pytest configuration and shared fixtures.
"""

import pytest
import numpy as np

from pyeffectsize import DataSource


# Motor Trend Car Road Tests (R datasets::mtcars), columns used here.
MTCARS = {
    'mpg': [21.0, 21.0, 22.8, 21.4, 18.7, 18.1, 14.3, 24.4, 22.8, 19.2, 17.8,
            16.4, 17.3, 15.2, 10.4, 10.4, 14.7, 32.4, 30.4, 33.9, 21.5, 15.5,
            15.2, 13.3, 19.2, 27.3, 26.0, 30.4, 15.8, 19.7, 15.0, 21.4],
    'wt': [2.620, 2.875, 2.320, 3.215, 3.440, 3.460, 3.570, 3.190, 3.150, 3.440,
           3.440, 4.070, 3.730, 3.780, 5.250, 5.424, 5.345, 2.200, 1.615, 1.835,
           2.465, 3.520, 3.435, 3.840, 3.845, 1.935, 2.140, 1.513, 3.170, 2.770,
           3.570, 2.780],
    'hp': [110, 110, 93, 110, 175, 105, 245, 62, 95, 123, 123, 180, 180, 180,
           205, 215, 230, 66, 52, 65, 97, 150, 150, 245, 175, 66, 91, 113, 264,
           175, 335, 109],
    'cyl': [6, 6, 4, 6, 8, 6, 8, 4, 4, 6, 6, 8, 8, 8, 8, 8, 8, 4, 4, 4, 4, 8, 8,
            8, 8, 4, 4, 4, 8, 6, 8, 4],
    'am': [1, 1, 1, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 1, 1, 1, 0, 0, 0,
           0, 0, 1, 1, 1, 1, 1, 1, 1],
}


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def mtcars():
    """mtcars with am and cyl as factors and am_num as the 0/1 numeric copy."""
    return DataSource.from_arrays(
        mpg=MTCARS['mpg'],
        wt=MTCARS['wt'],
        hp=MTCARS['hp'],
        cyl=MTCARS['cyl'],
        am=MTCARS['am'],
        am_num=MTCARS['am'],
        factors=('am', 'cyl'),
    )


@pytest.fixture
def regression_data(rng):
    """Two correlated numeric predictors plus noise."""
    n = 120
    x1 = rng.normal(10.0, 3.0, n)
    x2 = 0.4 * x1 + rng.normal(0.0, 2.0, n)
    y = 2.0 + 0.8 * x1 - 1.5 * x2 + rng.normal(0.0, 1.5, n)
    return DataSource.from_arrays(y=y, x1=x1, x2=x2)


@pytest.fixture
def multilevel_data(rng):
    """
    Random-intercept data: 12 groups of 10.

    x varies within groups (level-1); z is constant within each group
    (level-2). Random intercept SD 1.5, residual SD 1.0.
    """
    n_groups, per_group = 12, 10
    g = np.repeat(np.arange(n_groups), per_group)
    u = rng.normal(0.0, 1.5, n_groups)
    z_group = rng.normal(5.0, 2.0, n_groups)
    x = rng.normal(0.0, 1.0, n_groups * per_group) + 0.3 * u[g]
    z = z_group[g]
    y = 1.0 + 0.5 * x + 0.8 * z + u[g] + rng.normal(0.0, 1.0, g.size)
    return DataSource.from_arrays(
        y=y, x=x, z=z, g=[f"s{k:02d}" for k in g],
    )
