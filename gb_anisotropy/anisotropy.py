import logging
from dataclasses import dataclass, fields

import numpy as np

from gb_anisotropy.calibration import calibrate_pairs, interaction_correlation
from gb_anisotropy.config import GBAnisotropyConfig
from gb_anisotropy.errors import ConfigurationError
from gb_anisotropy.gb_data import (KB, J_TO_EV, convert_units, read_gb_data, reference_mu,
                                   sigma_extremes)

logger = logging.getLogger(__name__)

# Names under which the host simulation sees the evaluated properties
MATERIAL_PROPERTY_NAMES = {
    "kappa": "kappa_op",
    "gamma": "gamma_asymm",
    "L": "L",
    "mu": "mu",
    "molar_volume": "molar_volume",
    "entropy_diff": "entropy_diff",
    "act_wGB": "act_wGB",
    "tgrad_corr_mult": "tgrad_corr_mult",
}

# Parameters that the calibrated tables depend on
_CALIBRATION_KEYS = ("num_grains", "wGB", "length_scale", "time_scale",
                     "initial_guess", "tolerance", "max_iterations")


@dataclass(frozen=True)
class GBProperties:
    """
    Effective GB properties at one sample point (floats) or at a batch of
    points (arrays of the batch shape).
    """
    kappa: object
    gamma: object
    L: object
    mu: object
    molar_volume: object
    entropy_diff: object
    act_wGB: object
    tgrad_corr_mult: object

    def as_material_properties(self):
        return {MATERIAL_PROPERTY_NAMES[f.name]: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class GBCalibration:
    """
    Converted GB data, the reference coefficient mu and the calibrated pair
    parameters. Built once and shared read-only between evaluators.
    """
    config: GBAnisotropyConfig
    table: object
    pairs: object
    mu: float
    sigma_big: float
    sigma_small: float

    @classmethod
    def from_config(cls, config):
        raw = read_gb_data(config.data_file, config.num_grains)
        table = convert_units(raw, config.length_scale, config.time_scale)
        return cls.from_table(table, config)

    @classmethod
    def from_table(cls, table, config):
        if not table.converted:
            raise ConfigurationError("GB data must be converted to simulation units before calibration")
        if table.num_grains != config.num_grains:
            raise ConfigurationError(f"GB data describes {table.num_grains} grains, "
                                     f"but num_grains={config.num_grains}")

        sigma_big, sigma_small = sigma_extremes(table)
        mu = reference_mu(sigma_big, sigma_small, config.wGB)
        logger.info("GB energy range [%g, %g] eV/ls^2, mu = %g", sigma_small, sigma_big, mu)

        pairs = calibrate_pairs(table.sigma, config.wGB, mu, a0=config.initial_guess,
                                tol=config.tolerance, max_iterations=config.max_iterations)

        return cls(config=config, table=table, pairs=pairs, mu=mu,
                   sigma_big=sigma_big, sigma_small=sigma_small)

    @property
    def num_grains(self):
        return self.table.num_grains

    def compatible_with(self, config):
        return all(getattr(self.config, key) == getattr(config, key) for key in _CALIBRATION_KEYS)


@dataclass(frozen=True)
class _PairTerms:
    m: int
    n: int
    kappa: float
    gamma: float
    a: float
    g2: float
    mobility: float
    activation_energy: float
    phi_ave: float


class GBAnisotropy:
    """
    Anisotropic GB material: evaluates kappa, gamma, L, mu and the auxiliary
    thermodynamic constants from the order parameters at each sample point.
    """

    def __init__(self, config, calibration=None):
        config.validate()

        if calibration is None:
            calibration = GBCalibration.from_config(config)
        elif not calibration.compatible_with(config):
            raise ConfigurationError("Shared GB calibration was built with different "
                                     "grain count, width, scales or solver settings")

        self.config = config
        self.calibration = calibration

        N = calibration.num_grains
        table = calibration.table
        self._pairs = [
            _PairTerms(m=m, n=n, kappa=p.kappa, gamma=p.gamma, a=p.a, g2=p.g2,
                       mobility=float(table.mobility[m, n]),
                       activation_energy=float(table.activation_energy[m, n]),
                       phi_ave=np.pi * n / (2.0 * N))
            for (m, n), p in calibration.pairs.items()
        ]

        ls = config.length_scale
        self._molar_volume = config.molar_volume_value / (ls * ls * ls)  # m^3/mol to ls^3/mol
        self._entropy_diff = 9.5 * J_TO_EV  # J/(K mol) to eV/(K mol)
        self._act_wGB = 0.5e-9 / ls  # 0.5 nm

    @property
    def num_grains(self):
        return self.calibration.num_grains

    def _inclination_factors(self, pair, grad_eta):
        sin_phi = np.sin(2.0 * pair.phi_ave)
        cos_phi = np.cos(2.0 * pair.phi_ave)

        a = grad_eta[..., pair.m, 0] - grad_eta[..., pair.n, 0]
        b = grad_eta[..., pair.m, 1] - grad_eta[..., pair.n, 1]
        # smaller is more accurate but harder to converge
        ab = a * a + b * b + 1.0e-7

        cos_2phi = cos_phi * (a * a - b * b) / ab + sin_phi * 2.0 * a * b / ab
        cos_4phi = 2.0 * cos_2phi * cos_2phi - 1.0

        f_sigma = 1.0 + self.config.delta_sigma * cos_4phi
        f_mob = 1.0 + self.config.delta_mob * cos_4phi

        g2 = pair.g2 * f_sigma
        gamma_value = 1.0 / interaction_correlation(g2)
        return f_sigma, f_mob, gamma_value

    def evaluate_fields(self, eta, grad_eta=None, temperature=None):
        """
        eta:         (..., N) order parameters
        grad_eta:    (..., N, dim) gradients, needed for inclination anisotropy
        temperature: scalar or (...) in K; defaults to the configured value

        Returns GBProperties of arrays with the leading shape of eta.
        """
        eta = np.asarray(eta, dtype=float)
        N = self.num_grains
        if eta.shape[-1:] != (N,):
            raise ValueError(f"eta must have {N} order parameters in its last axis, got shape {eta.shape}")

        inclination = self.config.inclination_anisotropy
        if inclination:
            if grad_eta is None:
                raise ValueError("grad_eta is required when inclination anisotropy is enabled")
            grad_eta = np.asarray(grad_eta, dtype=float)
            if grad_eta.shape[:-1] != eta.shape or grad_eta.shape[-1] < 2:
                raise ValueError(f"grad_eta must have shape {eta.shape + (2,)}, got {grad_eta.shape}")

        T = self.config.temperature if temperature is None else np.asarray(temperature, dtype=float)

        shape = eta.shape[:-1]
        sum_val = np.zeros(shape)
        sum_kappa = np.zeros(shape)
        sum_gamma = np.zeros(shape)
        sum_L = np.zeros(shape)

        wGB = self.config.wGB
        for pair in self._pairs:
            mob = pair.mobility * np.exp(-pair.activation_energy / (KB * T))  # Arrhenius relation

            f_sigma = 1.0
            f_mob = 1.0
            gamma_value = pair.gamma
            if inclination:
                f_sigma, f_mob, gamma_value = self._inclination_factors(pair, grad_eta)

            eta_m = eta[..., pair.m]
            eta_n = eta[..., pair.n]
            val = (100000.0 * eta_m * eta_m + 0.01) * (100000.0 * eta_n * eta_n + 0.01)

            sum_val += val
            sum_kappa += pair.kappa * f_sigma * val
            sum_gamma += gamma_value * val
            sum_L += val * mob * f_mob / (wGB * pair.a)

        mu = np.full(shape, self.calibration.mu)
        return GBProperties(
            kappa=sum_kappa / sum_val,
            gamma=sum_gamma / sum_val,
            L=sum_L / sum_val,
            mu=mu,
            molar_volume=np.full(shape, self._molar_volume),
            entropy_diff=np.full(shape, self._entropy_diff),
            act_wGB=np.full(shape, self._act_wGB),
            tgrad_corr_mult=mu * 9.0 / 8.0,
        )

    def evaluate_point(self, eta, grad_eta=None, temperature=None):
        """Properties at a single sample point; eta has length N, grad_eta shape (N, dim)."""
        eta = np.asarray(eta, dtype=float)
        if eta.ndim != 1:
            raise ValueError(f"eta must be one-dimensional for a single point, got shape {eta.shape}")
        if temperature is not None and np.ndim(temperature) != 0:
            raise ValueError("temperature must be a scalar for a single point")

        props = self.evaluate_fields(eta, grad_eta, temperature)
        return GBProperties(**{f.name: float(getattr(props, f.name)) for f in fields(props)})
