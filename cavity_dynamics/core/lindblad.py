"""Master-equation integration with optional mean-field coupled classical variables.

The density matrix and the classical variables are packed into one complex
vector, viewed as float64 for the integrator. Every right-hand-side
evaluation unpacks a single private snapshot of that vector and hands the
same (t, ρ, x) to both the quantum generator and the classical derivative.
"""

import logging
from typing import Callable, Optional, Sequence, Tuple

import numpy as np
from scipy.integrate import DOP853, RK45

from .errors import GridError, IntegrationError, ShapeError
from .operators import BasisTuple, Operator, as_matrices
from ..models import IntegrationMethod, SemiclassicalState, SolverOptions, Trajectory

logger = logging.getLogger(__name__)

Generator = Tuple[Operator, Sequence[Operator], Optional[Sequence[Operator]]]
QuantumGenerator = Callable[[float, Operator, np.ndarray], Generator]
ClassicalDerivative = Callable[[float, Operator, np.ndarray], Sequence[complex]]

_ADAPTIVE = {IntegrationMethod.RK45: RK45, IntegrationMethod.DOP853: DOP853}


def validate_time_grid(times) -> np.ndarray:
    """Return `times` as a float array, checking it is finite and strictly increasing."""
    t = np.asarray(times, dtype=np.float64)
    if t.ndim != 1 or t.size == 0:
        raise GridError(f"time grid must be a non-empty 1-D sequence, got shape {t.shape}")
    if not np.all(np.isfinite(t)):
        raise GridError("time grid contains non-finite values")
    if t.size > 1 and np.any(np.diff(t) <= 0):
        raise GridError("time grid must be strictly increasing")
    return t


def time_grid(t_max: float, dt: float, t0: float = 0.0) -> np.ndarray:
    """Uniform grid t0, t0+dt, ... up to the last whole step not past t_max."""
    if not (np.isfinite(dt) and np.isfinite(t0) and np.isfinite(t_max)) or dt <= 0:
        raise GridError(f"cannot build a grid from t0={t0} to t_max={t_max} with dt={dt}")
    n = int(np.floor((t_max - t0) / dt + 1e-9))
    if n < 1:
        raise GridError(f"interval from t0={t0} to t_max={t_max} is shorter than dt={dt}")
    return t0 + dt * np.arange(n + 1)


def is_uniform(times: np.ndarray, rtol: float = 1e-9) -> bool:
    if times.size < 3:
        return True
    steps = np.diff(times)
    return bool(np.all(np.abs(steps - steps[0]) <= rtol * abs(steps[0])))


def lindblad_rhs(rho: np.ndarray, H: np.ndarray, J: Sequence[np.ndarray],
                 Jdagger: Sequence[np.ndarray]) -> np.ndarray:
    """-i[H, ρ] + Σ_k (2 J ρ J† - J†J ρ - ρ J†J)"""
    drho = -1j * (H @ rho - rho @ H)
    for Jk, Jkd in zip(J, Jdagger):
        JdJ = Jkd @ Jk
        drho += 2.0 * (Jk @ rho @ Jkd) - JdJ @ rho - rho @ JdJ
    return drho


def generator_matrices(bases: BasisTuple, H: Operator, J: Sequence[Operator],
                       Jdagger: Optional[Sequence[Operator]] = None):
    """Raw matrices of a (H, J, J†) generator living on `bases`."""
    (Hm,) = as_matrices([H], bases)
    Jm = as_matrices(J, bases)
    if Jdagger is None:
        Jdm = tuple(Jk.conj().T for Jk in Jm)
    else:
        Jdm = as_matrices(Jdagger, bases)
    if len(Jdm) != len(Jm):
        raise ShapeError("jump operators and their adjoints differ in number",
                         expected=(len(Jm),), actual=(len(Jdm),))
    return Hm, Jm, Jdm


def _make_rhs(bases: BasisTuple, d: int, n_classical: int,
              quantum_generator: QuantumGenerator,
              classical_derivative: Optional[ClassicalDerivative]):
    n_rho = d * d

    def rhs(t, y):
        rhs.calls += 1
        snapshot = np.array(y, dtype=np.float64).view(np.complex128)
        rho = Operator._wrap(bases, snapshot[:n_rho].reshape(d, d))
        classical = snapshot[n_rho:]
        classical.flags.writeable = False

        H, J, Jdagger = quantum_generator(t, rho, classical)
        Hm, Jm, Jdm = generator_matrices(bases, H, J, Jdagger)

        out = np.empty(n_rho + n_classical, dtype=np.complex128)
        out[:n_rho] = lindblad_rhs(rho.data, Hm, Jm, Jdm).reshape(-1)
        if classical_derivative is not None:
            dx = np.asarray(classical_derivative(t, rho, classical), dtype=np.complex128).reshape(-1)
            if dx.shape != (n_classical,):
                raise ShapeError(f"classical derivative at t={t:.6g} has the wrong length",
                                 expected=(n_classical,), actual=dx.shape)
            out[n_rho:] = dx
        elif n_classical:
            out[n_rho:] = 0.0
        return out.view(np.float64)

    rhs.calls = 0
    return rhs


def _integrate_adaptive(rhs, t: np.ndarray, y0: np.ndarray, options: SolverOptions,
                        should_stop) -> np.ndarray:
    solver = _ADAPTIVE[options.method](rhs, t[0], y0, t[-1], rtol=options.rtol,
                                       atol=options.atol, max_step=options.max_step)
    out = np.empty((t.size, y0.size))
    out[0] = y0
    k = 1
    while k < t.size:
        message = solver.step()
        if solver.status == "failed":
            raise IntegrationError(f"{options.method.value} failed: {message}", last_time=solver.t)
        if not np.all(np.isfinite(solver.y)):
            raise IntegrationError("state became non-finite", last_time=solver.t_old)
        if solver.step_size < options.min_step and solver.t < t[-1]:
            raise IntegrationError(f"step size {solver.step_size:.3g} fell below "
                                   f"min_step={options.min_step:.3g}", last_time=solver.t_old)
        if k < t.size and t[k] <= solver.t:
            dense = solver.dense_output()
            while k < t.size and t[k] <= solver.t:
                out[k] = dense(t[k])
                k += 1
        if should_stop is not None and k < t.size and should_stop(solver.t):
            raise IntegrationError("integration cancelled", last_time=solver.t)
    return out


def _integrate_rk4(rhs, t: np.ndarray, y0: np.ndarray, substeps: int, should_stop) -> np.ndarray:
    out = np.empty((t.size, y0.size))
    out[0] = y0
    y = y0.copy()
    for k in range(1, t.size):
        tc = t[k - 1]
        h = (t[k] - t[k - 1]) / substeps
        for _ in range(substeps):
            k1 = rhs(tc, y)
            k2 = rhs(tc + 0.5 * h, y + 0.5 * h * k1)
            k3 = rhs(tc + 0.5 * h, y + 0.5 * h * k2)
            k4 = rhs(tc + h, y + h * k3)
            y_new = y + (h / 6.0) * (k1 + 2.0 * k2 + 2.0 * k3 + k4)
            if not np.all(np.isfinite(y_new)):
                raise IntegrationError("fixed-step integration diverged", last_time=tc)
            y = y_new
            tc += h
        out[k] = y
        if should_stop is not None and k < t.size - 1 and should_stop(t[k]):
            raise IntegrationError("integration cancelled", last_time=t[k])
    return out


def evolve_semiclassical(times, initial_state: SemiclassicalState,
                         quantum_generator: QuantumGenerator,
                         classical_derivative: Optional[ClassicalDerivative] = None,
                         options: Optional[SolverOptions] = None,
                         should_stop: Optional[Callable[[float], bool]] = None) -> Trajectory:
    """Integrate a density matrix and classical variables with mean-field feedback.

    Args:
        times: Strictly increasing output times; the first one is the initial time.
        initial_state: Quantum state (kets are promoted to density operators)
            and classical variables at ``times[0]``.
        quantum_generator: ``(t, rho, x) -> (H, J, Jdagger)``; ``Jdagger`` may be
            None, in which case adjoints are taken.
        classical_derivative: ``(t, rho, x) -> dx/dt``; None means the classical
            variables stay constant.
        options: Integrator settings.
        should_stop: Optional ``t -> bool`` polled between steps; returning True
            aborts the run with an IntegrationError.

    Returns:
        Trajectory sampled exactly on ``times``.

    Raises:
        GridError: ``times`` is not a valid grid.
        ShapeError: generator or classical derivative dimensions do not match.
        IntegrationError: the integrator failed; carries the last successful time.
    """
    t = validate_time_grid(times)
    options = options or SolverOptions()
    rho0 = initial_state.quantum
    x0 = initial_state.classical
    bases, d = rho0.bases, rho0.dim

    y0 = np.concatenate([rho0.data.reshape(-1), x0]).view(np.float64)
    rhs = _make_rhs(bases, d, x0.size, quantum_generator, classical_derivative)

    logger.debug("Integrating dim=%d state with %d classical variables over %d points (%s)",
                 d, x0.size, t.size, options.method.value)
    if t.size == 1:
        ys = y0[None, :].copy()
    elif options.method is IntegrationMethod.RK4:
        ys = _integrate_rk4(rhs, t, y0, options.substeps, should_stop)
    else:
        ys = _integrate_adaptive(rhs, t, y0, options, should_stop)
    logger.debug("Integration finished after %d right-hand-side evaluations", rhs.calls)

    z = ys.view(np.complex128)
    states = tuple(Operator._wrap(bases, row[:d * d].reshape(d, d).copy()) for row in z)
    classical = z[:, d * d:].copy()
    classical.flags.writeable = False
    t = t.copy()
    t.flags.writeable = False
    return Trajectory(times=t, states=states, classical=classical)


def evolve_lindblad(times, H: Operator, J: Sequence[Operator],
                    Jdagger: Optional[Sequence[Operator]], rho0: Operator,
                    options: Optional[SolverOptions] = None,
                    should_stop: Optional[Callable[[float], bool]] = None) -> Trajectory:
    """Master-equation evolution under a fixed generator (no classical part)."""
    J = tuple(J)
    Jdagger = None if Jdagger is None else tuple(Jdagger)

    def fixed_generator(t, rho, x):
        return H, J, Jdagger

    return evolve_semiclassical(times, SemiclassicalState(rho0), fixed_generator,
                                None, options, should_stop)
