import numpy as np
import scipy.sparse as sp
import scipy.sparse.linalg as spla


class AllenCahnSolver1D:
    """Semi-implicit Allen-Cahn step on a 1D grid with Neumann boundaries."""

    def __init__(self, Nx, dx, L, kappa, dt):
        self.Nx = Nx
        self.dx = dx
        self.L = L
        self.dt = dt
        self.Lap = self._build_laplacian()
        self.Eye = sp.eye(Nx, format='csc')
        # (I - dt * L * kappa * Lap) is fixed, factorise once
        self._solve = spla.factorized((self.Eye - (dt * L * kappa) * self.Lap).tocsc())

    def _build_laplacian(self):
        main_x = -2.0 * np.ones(self.Nx); main_x[0] = -1.0; main_x[-1] = -1.0
        off_x = np.ones(self.Nx - 1)
        return (sp.diags([off_x, main_x, off_x], [-1, 0, 1]) / (self.dx**2)).tocsc()

    def step(self, eta, explicit_df):
        """eta, explicit_df: (Nx, N_grains). Returns eta at the next step."""
        b = eta - (self.dt * self.L) * explicit_df
        eta_new = np.empty_like(eta)
        for i in range(eta.shape[1]):
            eta_new[:, i] = self._solve(b[:, i])
        return eta_new
