import numpy as np


def initial_bicrystal_1d(Lx, Nx, width_init=5.0):
    """Two grains crossing at the domain centre. Returns eta (Nx, 2) and x."""
    eta = np.zeros((Nx, 2))
    x = np.linspace(0, Lx, Nx)
    center = Lx / 2.0

    eta[:, 0] = 0.5 * (1.0 - np.tanh((x - center)/(width_init/2.0)))
    eta[:, 1] = 0.5 * (1.0 + np.tanh((x - center)/(width_init/2.0)))
    return eta, x


def initial_polycrystal(Lx, Ly, Nx, Ny, num_grains, width_init=5.0, tilt=0.0):
    """
    Vertical stripe grains with smooth tanh boundaries, shape (Nx, Ny, num_grains).
    tilt (radians) inclines the boundaries so the inclination factor varies.
    """
    eta = np.zeros((Nx, Ny, num_grains))

    x = np.linspace(0, Lx, Nx)
    y = np.linspace(0, Ly, Ny)
    X_grid, Y_grid = np.meshgrid(x, y, indexing='ij')
    # Distance along the tilted stripe normal
    s = X_grid * np.cos(tilt) + (Y_grid - Ly / 2.0) * np.sin(tilt)

    edges = np.linspace(0, Lx, num_grains + 1)
    for i in range(num_grains):
        left = 0.5 * (1.0 + np.tanh((s - edges[i])/(width_init/2.0)))
        right = 0.5 * (1.0 - np.tanh((s - edges[i + 1])/(width_init/2.0)))
        if i == 0:
            left = np.ones_like(s)
        if i == num_grains - 1:
            right = np.ones_like(s)
        eta[:, :, i] = left * right

    return eta, x, y


def order_parameter_gradients(eta, dx, dy):
    """Central-difference gradients of eta (Nx, Ny, N), returned as (Nx, Ny, N, 2)."""
    d_dx, d_dy = np.gradient(eta, dx, dy, axis=(0, 1))
    return np.stack((d_dx, d_dy), axis=-1)
