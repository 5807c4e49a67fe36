"""Two-time correlation functions via the quantum regression theorem."""

import logging
from typing import Optional, Sequence

import numpy as np
from scipy.linalg import expm, svd

from .errors import GridError
from .lindblad import evolve_lindblad, generator_matrices, is_uniform, validate_time_grid
from .operators import Operator, as_matrices, density
from ..models import CorrelationSeries, SolverOptions

logger = logging.getLogger(__name__)


def liouvillian(H: Operator, J: Sequence[Operator],
                Jdagger: Optional[Sequence[Operator]] = None) -> np.ndarray:
    """Dense superoperator L acting on row-major flattened density matrices.

    Uses vec(A X B) = (A ⊗ Bᵀ) vec(X) for the row-major vec.
    """
    Hm, Jm, Jdm = generator_matrices(H.bases, H, J, Jdagger)
    d = Hm.shape[0]
    eye = np.eye(d, dtype=np.complex128)
    L = -1j * (np.kron(Hm, eye) - np.kron(eye, Hm.T))
    for Jk, Jkd in zip(Jm, Jdm):
        JdJ = Jkd @ Jk
        L += 2.0 * np.kron(Jk, Jkd.T) - np.kron(JdJ, eye) - np.kron(eye, JdJ.T)
    return L


def steady_state(H: Operator, J: Sequence[Operator],
                 Jdagger: Optional[Sequence[Operator]] = None) -> Operator:
    """Density operator spanning the null space of the Liouvillian.

    Assumes the steady state is unique; the returned matrix is Hermitized and
    normalized to unit trace.
    """
    L = liouvillian(H, J, Jdagger)
    _, s, vh = svd(L)
    logger.debug("Steady state: smallest singular values %s", s[-2:])
    d = H.dim
    rho = vh[-1].conj().reshape(d, d)
    rho = rho / np.trace(rho)
    return Operator(H.bases, 0.5 * (rho + rho.conj().T))


def _propagate(L: np.ndarray, tau: np.ndarray, sigma0: np.ndarray, A: np.ndarray) -> np.ndarray:
    """Tr(A exp(L τ)[σ0]) for each τ, stepping with precomputed propagators."""
    # Tr(A σ) = Σ_ij A_ji σ_ij
    a_vec = A.T.reshape(-1)
    v = sigma0.reshape(-1).copy()
    values = np.empty(tau.size, dtype=np.complex128)

    uniform_step = None
    if tau.size > 1 and is_uniform(tau):
        uniform_step = expm(L * ((tau[-1] - tau[0]) / (tau.size - 1)))

    t_prev = 0.0
    for k, t in enumerate(tau):
        if t > t_prev:
            if uniform_step is not None and k > 0:
                v = uniform_step @ v
            else:
                v = expm(L * (t - t_prev)) @ v
        values[k] = a_vec @ v
        t_prev = t
    return values


def correlation(times, rho0: Optional[Operator], H: Operator, J: Sequence[Operator],
                A: Operator, B: Operator, Jdagger: Optional[Sequence[Operator]] = None,
                method: str = "propagator",
                options: Optional[SolverOptions] = None) -> CorrelationSeries:
    """Two-time correlation g(τ) = ⟨A(τ) B(0)⟩.

    σ(0) = B ρ0 is propagated under the master-equation generator of (H, J) and
    g(τ) = Tr(A σ(τ)). At τ = 0 the value is exactly Tr(A B ρ0).

    Args:
        times: Non-negative, strictly increasing delays.
        rho0: Initial density operator or ket; None uses the steady state.
        H, J, Jdagger: Fixed generator.
        A, B: Operators of the correlation.
        method: ``"propagator"`` steps with exp(L dτ) (one precomputed matrix on
            uniform grids); ``"ode"`` reuses :func:`evolve_lindblad`.
        options: Integrator settings for ``method="ode"``.
    """
    tau = validate_time_grid(times)
    if tau[0] < 0:
        raise GridError(f"correlation delays must be non-negative, got {tau[0]}")
    rho0 = steady_state(H, J, Jdagger) if rho0 is None else density(rho0)
    Hm, Am, Bm = as_matrices([H, A, B], rho0.bases)

    sigma0 = Bm @ rho0.data
    g0 = complex(np.trace(Am @ sigma0))

    logger.debug("Correlation over %d delays (tau_max=%g) via %s", tau.size, tau[-1], method)
    if method == "propagator":
        values = _propagate(liouvillian(H, J, Jdagger), tau, sigma0, Am)
    elif method == "ode":
        grid = tau if tau[0] == 0.0 else np.concatenate([[0.0], tau])
        trajectory = evolve_lindblad(grid, H, J, Jdagger, Operator._wrap(rho0.bases, sigma0), options)
        values = trajectory.expect(A)[grid.size - tau.size:]
    else:
        raise ValueError(f"unknown correlation method '{method}'")

    values = np.array(values, dtype=np.complex128)
    values[tau == 0.0] = g0
    values.flags.writeable = False
    tau = tau.copy()
    tau.flags.writeable = False
    return CorrelationSeries(times=tau, values=values)
