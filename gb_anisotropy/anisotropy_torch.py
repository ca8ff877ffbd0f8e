import math

import torch

from gb_anisotropy.anisotropy import GBProperties
from gb_anisotropy.calibration import interaction_correlation
from gb_anisotropy.gb_data import KB, J_TO_EV

dtype = torch.float64


def default_device():
    return torch.device("cuda" if torch.cuda.is_available() else "cpu")


def evaluate_fields_torch(calibration, eta, grad_eta=None, temperature=None, device=None):
    """
    PyTorch version of GBAnisotropy.evaluate_fields for large batches of
    sample points. Inputs may be numpy arrays or tensors; outputs are float64
    tensors on the chosen device.
    """
    config = calibration.config
    device = default_device() if device is None else torch.device(device)

    eta = torch.as_tensor(eta, dtype=dtype, device=device)
    N = calibration.num_grains
    if eta.shape[-1] != N:
        raise ValueError(f"eta must have {N} order parameters in its last axis, got shape {tuple(eta.shape)}")

    inclination = config.inclination_anisotropy
    if inclination:
        if grad_eta is None:
            raise ValueError("grad_eta is required when inclination anisotropy is enabled")
        grad_eta = torch.as_tensor(grad_eta, dtype=dtype, device=device)
        if grad_eta.shape[:-1] != eta.shape or grad_eta.shape[-1] < 2:
            raise ValueError(f"grad_eta must have shape {tuple(eta.shape) + (2,)}, got {tuple(grad_eta.shape)}")

    if temperature is None:
        temperature = config.temperature
    T = torch.as_tensor(temperature, dtype=dtype, device=device)

    shape = eta.shape[:-1]
    sum_val = torch.zeros(shape, dtype=dtype, device=device)
    sum_kappa = torch.zeros_like(sum_val)
    sum_gamma = torch.zeros_like(sum_val)
    sum_L = torch.zeros_like(sum_val)

    table = calibration.table
    for (m, n), p in calibration.pairs.items():
        mob = float(table.mobility[m, n]) * torch.exp(-float(table.activation_energy[m, n]) / (KB * T))

        f_sigma = 1.0
        f_mob = 1.0
        gamma_value = p.gamma
        if inclination:
            phi_ave = math.pi * n / (2.0 * N)
            sin_phi = math.sin(2.0 * phi_ave)
            cos_phi = math.cos(2.0 * phi_ave)

            a = grad_eta[..., m, 0] - grad_eta[..., n, 0]
            b = grad_eta[..., m, 1] - grad_eta[..., n, 1]
            ab = a * a + b * b + 1.0e-7

            cos_2phi = cos_phi * (a * a - b * b) / ab + sin_phi * 2.0 * a * b / ab
            cos_4phi = 2.0 * cos_2phi * cos_2phi - 1.0

            f_sigma = 1.0 + config.delta_sigma * cos_4phi
            f_mob = 1.0 + config.delta_mob * cos_4phi
            gamma_value = 1.0 / interaction_correlation(p.g2 * f_sigma)

        eta_m = eta[..., m]
        eta_n = eta[..., n]
        val = (100000.0 * eta_m * eta_m + 0.01) * (100000.0 * eta_n * eta_n + 0.01)

        sum_val += val
        sum_kappa += p.kappa * f_sigma * val
        sum_gamma += gamma_value * val
        sum_L += val * mob * f_mob / (config.wGB * p.a)

    ls = config.length_scale
    mu = torch.full(shape, calibration.mu, dtype=dtype, device=device)
    return GBProperties(
        kappa=sum_kappa / sum_val,
        gamma=sum_gamma / sum_val,
        L=sum_L / sum_val,
        mu=mu,
        molar_volume=torch.full(shape, config.molar_volume_value / (ls * ls * ls), dtype=dtype, device=device),
        entropy_diff=torch.full(shape, 9.5 * J_TO_EV, dtype=dtype, device=device),
        act_wGB=torch.full(shape, 0.5e-9 / ls, dtype=dtype, device=device),
        tgrad_corr_mult=mu * 9.0 / 8.0,
    )
