"""
pytest configuration and shared fixtures.
"""

import numpy as np
import pytest

from fitme.core.datasource import Dataset
from fitme.core.headers import HeaderIndex


# (y, x) observations of a straight line with a little noise
LINE_OBSERVATIONS = [
    (0.19000429, -1.7237128),
    (6.5807428, 1.8712276),
    (1.4582725, -0.96608055),
    (2.7270851, -0.28394297),
    (5.5969253, 1.3416969),
    (5.6249280, 1.3757038),
    (0.787615, -1.3703436),
    (3.2599759, 0.042581975),
    (2.9771762, -0.14970151),
    (4.5936475, 0.82065094),
]

# Reference fit of y = m * x + c on LINE_OBSERVATIONS
LINE_FIT = {
    'm': 1.7709542029456211,
    'c': 3.2099657167997013,
    'se_m': 0.011883297834310212,
    'se_c': 0.013936863525869892,
    'rmsr': 0.04392493014188053,
    'adjusted_r_squared': 0.9995948974725735,
    'n': 10,
}


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def line_data():
    """Ten (y, x, a Space Col) rows; the third column is unrelated noise."""
    rows = [
        (y, x, float(i) * 1.5 - 3.0)
        for i, (y, x) in enumerate(LINE_OBSERVATIONS)
    ]
    return Dataset.from_rows(["y", "x", "a Space Col"], rows)


@pytest.fixture
def line_headers(line_data):
    return line_data.headers


@pytest.fixture
def line_csv(tmp_path):
    """LINE_OBSERVATIONS written as a CSV file."""
    path = tmp_path / "line.csv"
    lines = ["y,x,a Space Col"]
    for i, (y, x) in enumerate(LINE_OBSERVATIONS):
        lines.append(f"{y},{x},{i * 1.5 - 3.0}")
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def text_cell_csv(tmp_path):
    """CSV whose x column holds text at row index 2."""
    path = tmp_path / "text_cell.csv"
    path.write_text(
        "y,x\n"
        "1.0,0.5\n"
        "2.0,1.0\n"
        "3.0,bar\n"
        "4.0,2.0\n"
    )
    return path


@pytest.fixture
def xy_headers():
    return HeaderIndex.from_names(["y", "x"])


@pytest.fixture
def line_observations():
    return list(LINE_OBSERVATIONS)


@pytest.fixture
def line_fit():
    return dict(LINE_FIT)
