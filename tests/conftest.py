"""
Pytest configuration for the GB anisotropy tests.
"""

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest

from gb_anisotropy.anisotropy import GBCalibration
from gb_anisotropy.config import GBAnisotropyConfig
from gb_anisotropy.gb_data import GrainPairTable


def write_gb_file(path, sigma, mobility, activation_energy, header=("header line 1", "header line 2")):
    lines = list(header)
    for matrix in (sigma, mobility, activation_energy):
        for row in matrix:
            lines.append(" ".join(repr(float(v)) for v in row))
    path.write_text("\n".join(lines) + "\n")
    return str(path)


def make_config(num_grains, wGB=6.0, **kwargs):
    kwargs.setdefault("data_file", "in-memory")
    kwargs.setdefault("inclination_anisotropy", False)
    return GBAnisotropyConfig(wGB=wGB, num_grains=num_grains, **kwargs)


def converted_table(sigma, mobility=None, activation_energy=None):
    sigma = np.asarray(sigma, dtype=float)
    N = sigma.shape[0]
    if mobility is None:
        mobility = np.ones((N, N))
    if activation_energy is None:
        activation_energy = np.zeros((N, N))
    return GrainPairTable(sigma=sigma, mobility=mobility,
                          activation_energy=activation_energy, converted=True)


@pytest.fixture
def three_grain_raw():
    sigma = np.array([[0.0, 0.708, 0.816],
                      [0.708, 0.0, 0.9],
                      [0.816, 0.9, 0.0]])
    mobility = np.array([[0.0, 2.5e-6, 3.0e-6],
                         [2.5e-6, 0.0, 2.2e-6],
                         [3.0e-6, 2.2e-6, 0.0]])
    activation_energy = np.array([[0.0, 0.23, 0.25],
                                  [0.23, 0.0, 0.21],
                                  [0.25, 0.21, 0.0]])
    return sigma, mobility, activation_energy


@pytest.fixture
def three_grain_file(tmp_path, three_grain_raw):
    return write_gb_file(tmp_path / "gb_data.txt", *three_grain_raw)


@pytest.fixture
def single_pair_table():
    """sigma[0][1] = 1.0 in simulation units, mobility 2.0, activation energy 0.2 eV."""
    return converted_table([[0.0, 1.0], [1.0, 0.0]],
                           mobility=[[0.0, 2.0], [2.0, 0.0]],
                           activation_energy=[[0.0, 0.2], [0.2, 0.0]])


@pytest.fixture
def single_pair_calibration(single_pair_table):
    return GBCalibration.from_table(single_pair_table, make_config(2, wGB=6.0))


@pytest.fixture
def three_grain_table():
    sigma = [[0.0, 1.0, 1.2],
             [1.0, 0.0, 0.9],
             [1.2, 0.9, 0.0]]
    mobility = [[0.0, 2.0, 3.0],
                [2.0, 0.0, 1.5],
                [3.0, 1.5, 0.0]]
    activation_energy = [[0.0, 0.2, 0.25],
                         [0.2, 0.0, 0.15],
                         [0.25, 0.15, 0.0]]
    return converted_table(sigma, mobility, activation_energy)
