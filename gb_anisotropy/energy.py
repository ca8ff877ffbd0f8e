import numpy as np


def local_free_energy_derivative(eta, mu, gamma):
    """
    d f_0 / d eta_i of the multi-order free energy
    f_0 = mu * [ sum(eta^4/4 - eta^2/2) + gamma * sum_{i<j} eta_i^2 eta_j^2 + 1/4 ]
    eta: (Nx, N_grains)
    """
    sum_sq = np.sum(eta**2, axis=-1, keepdims=True)
    df_bulk = mu * (eta**3 - eta)
    df_inter = 2.0 * mu * gamma * eta * (sum_sq - eta**2)
    return df_bulk + df_inter


def compute_interface_properties_1d(eta, dx, mu, gamma, kappa):
    """
    GB energy and width of a relaxed 1D bicrystal profile.

    eta: (Nx, 2)
    Returns sigma, width, the total energy density and the two profiles.
    """
    eta0 = eta[:, 0]
    eta1 = eta[:, 1]

    f_bulk_0 = eta0**4/4.0 - eta0**2/2.0
    f_bulk_1 = eta1**4/4.0 - eta1**2/2.0
    f_inter = gamma * (eta0**2) * (eta1**2) + 1/4
    f_local = (f_bulk_0 + f_bulk_1 + f_inter) * mu

    grad_eta0 = np.gradient(eta0, dx)
    grad_eta1 = np.gradient(eta1, dx)
    f_grad = 0.5 * kappa * (grad_eta0**2 + grad_eta1**2)

    total_energy_density = f_local + f_grad
    sigma_calculated = np.sum(total_energy_density) * dx

    # Defined by the slope at the crossing point
    max_slope = np.max(np.abs(grad_eta0))
    width_calculated = 1.0 / max_slope if max_slope > 1e-6 else 0.0

    return sigma_calculated, width_calculated, total_energy_density, eta0, eta1
