import logging
from dataclasses import dataclass

import numpy as np

from gb_anisotropy.errors import ConfigurationError, GBDataError

logger = logging.getLogger(__name__)

KB = 8.617343e-5          # Boltzmann constant in eV/K
J_TO_EV = 6.24150974e18   # Joule to eV conversion

HEADER_LINES = 2


def _frozen(array):
    array = np.array(array, dtype=float)
    array.flags.writeable = False
    return array


@dataclass(frozen=True)
class GrainPairTable:
    """
    Per-pair GB data, indexed [m, n] with m < n.

    sigma:             GB energy, J/m^2 (eV/ls^2 once converted)
    mobility:          GB mobility prefactor, m^4/(J s) (ls^4/(eV ts) once converted)
    activation_energy: GB migration activation energy, eV
    """
    sigma: np.ndarray
    mobility: np.ndarray
    activation_energy: np.ndarray
    converted: bool = False

    def __post_init__(self):
        for name in ("sigma", "mobility", "activation_energy"):
            object.__setattr__(self, name, _frozen(getattr(self, name)))

        N = self.sigma.shape[0]
        for name in ("sigma", "mobility", "activation_energy"):
            if getattr(self, name).shape != (N, N):
                raise GBDataError(f"{name} must be a square {N}x{N} matrix, "
                                  f"got shape {getattr(self, name).shape}")

    @property
    def num_grains(self):
        return self.sigma.shape[0]

    def pairs(self):
        """Unordered grain pairs (m, n), m < n, in row-major order."""
        N = self.num_grains
        return [(m, n) for m in range(N - 1) for n in range(m + 1, N)]


def read_gb_data(path, num_grains):
    """
    Reads the anisotropic GB data file.

    Layout: 2 ignored header lines, then N rows of GB energy (J/m^2),
    N rows of mobility prefactor (m^4/(J s)) and N rows of activation
    energy (eV), N values per row.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            lines = f.readlines()
    except OSError as exc:
        raise GBDataError(f"Can't open GB anisotropy input file {path!r}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise GBDataError(f"{path!r} is not a text GB anisotropy file: {exc}") from exc

    rows = [line.split() for line in lines[HEADER_LINES:] if line.strip()]

    expected_rows = 3 * num_grains
    if len(rows) != expected_rows:
        raise GBDataError(f"{path!r}: expected {expected_rows} data rows for {num_grains} grains, "
                          f"found {len(rows)}")

    for i, row in enumerate(rows):
        if len(row) != num_grains:
            raise GBDataError(f"{path!r}: data row {i + 1} has {len(row)} values, "
                              f"expected {num_grains}")

    try:
        data = np.array(rows, dtype=float)
    except ValueError as exc:
        raise GBDataError(f"{path!r}: non-numeric GB data ({exc})") from exc

    logger.info("Read GB anisotropy data for %d grains from %s", num_grains, path)

    N = num_grains
    return GrainPairTable(sigma=data[:N], mobility=data[N:2 * N], activation_energy=data[2 * N:])


def convert_units(table, length_scale, time_scale):
    """
    Converts the upper triangle of the GB energy to eV/ls^2 and of the
    mobility to ls^4/(eV ts). Activation energies stay in eV.
    """
    if table.converted:
        raise ConfigurationError("GB data has already been converted to simulation units")

    sigma = table.sigma.copy()
    mobility = table.mobility.copy()

    for m, n in table.pairs():
        sigma[m, n] *= J_TO_EV * (length_scale * length_scale)
        mobility[m, n] *= time_scale / (J_TO_EV * length_scale ** 4)

    return GrainPairTable(sigma=sigma, mobility=mobility,
                          activation_energy=table.activation_energy, converted=True)


def sigma_extremes(table):
    """Largest and smallest GB energy over all pairs, seeded with pair (0, 1)."""
    sigma_big = sigma_small = table.sigma[0, 1]

    for m, n in table.pairs()[1:]:
        if table.sigma[m, n] > sigma_big:
            sigma_big = table.sigma[m, n]
        elif table.sigma[m, n] < sigma_small:
            sigma_small = table.sigma[m, n]

    return float(sigma_big), float(sigma_small)


def reference_mu(sigma_big, sigma_small, wGB):
    sigma_init = (sigma_big + sigma_small) / 2.0
    return 6.0 * sigma_init / wGB
