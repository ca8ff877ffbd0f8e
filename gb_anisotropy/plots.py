import os

import numpy as np
import matplotlib.pyplot as plt


def plot_pair_parameters(output_dir, calibration):
    """Heatmaps of the calibrated kappa*, gamma*, a* and g2 over the grain-pair matrix."""
    N = calibration.num_grains
    names = ("kappa", "gamma", "a", "g2")
    titles = (r"$\kappa^*$", r"$\gamma^*$", r"$a^*$", r"$g^2$")

    maps = {name: np.full((N, N), np.nan) for name in names}
    for (m, n), p in calibration.pairs.items():
        for name in names:
            maps[name][m, n] = getattr(p, name)
            maps[name][n, m] = getattr(p, name)

    fig, ax = plt.subplots(1, 4, figsize=(18, 4))
    for a, name, title in zip(ax, names, titles):
        im = a.imshow(maps[name], cmap='viridis', origin='upper')
        fig.colorbar(im, ax=a, fraction=0.046, pad=0.04)
        a.set_title(title)
        a.set_xlabel("grain n")
        a.set_ylabel("grain m")

    plt.tight_layout()
    path = os.path.join(output_dir, "pair_parameters.png")
    plt.savefig(path)
    plt.close(fig)
    return path


def plot_property_fields(output_dir, n, properties, eta, Lx, Ly, length_scale):
    """Grain map and the kappa, gamma and L fields of one evaluation."""
    fig, ax = plt.subplots(1, 4, figsize=(22, 5))
    extent = [0, Lx*length_scale*1e9, 0, Ly*length_scale*1e9]

    # 1. Grain structure, colour = index of the dominant grain
    grains = np.argmax(eta, axis=-1)
    ax[0].imshow(grains.T, origin='lower', extent=extent, cmap='tab10')
    ax[0].set_title(f"Grains (Step {n})")

    # 2-4. Property fields
    for a, field, title in zip(ax[1:],
                               (properties.kappa, properties.gamma, properties.L),
                               (r"$\kappa$", r"$\gamma$", r"$L$")):
        im = a.imshow(np.asarray(field).T, origin='lower', extent=extent, cmap='inferno')
        fig.colorbar(im, ax=a, orientation='horizontal', fraction=0.046, pad=0.2)
        a.set_title(title)

    for a in ax:
        a.set_xlabel("x (nm)")
        a.set_ylabel("y (nm)")

    plt.tight_layout()
    path = os.path.join(output_dir, f"properties_step_{n:05d}.png")
    plt.savefig(path)
    plt.close(fig)
    return path
