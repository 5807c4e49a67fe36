"""Cavity models built on the evolution and correlation engines."""

import logging
import numpy as np
from typing import Dict, Any, Optional
from dataclasses import asdict

from ..models import (
    CoolingParameters,
    FockSpectrumParameters,
    SemiclassicalState,
    SimulationResult,
    SolverOptions,
    Spectrum,
    CorrelationSeries,
    Trajectory,
)
from .operators import (
    Operator,
    create,
    destroy,
    fock_basis,
    fock_state,
    identity,
    number,
    sigma_minus,
    spin_basis,
    spin_down,
    tensor,
)
from .lindblad import evolve_semiclassical, time_grid
from .correlation import correlation
from .spectrum import analytical_fock_spectrum, correlation_to_spectrum

logger = logging.getLogger(__name__)


class CavityCoolingModel:
    """Two-level atom moving along a pumped, damped cavity standing wave.

    The position x (in units of 1/k) and momentum p (in units of ħk) are
    classical; the force on the atom is the mean field 2g sin(x) Re⟨a†σ⁻⟩.
    """

    def __init__(self, params: CoolingParameters):
        self.params = params
        self.fock = fock_basis(params.Nc)
        self.spin = spin_basis()

        a = tensor(destroy(self.fock), identity(self.spin))
        sm = tensor(identity(self.fock), sigma_minus(self.spin))
        ad, sp = a.dag(), sm.dag()
        self.a, self.sm = a, sm

        # H(x) = H0 + cos(x) Hx, both parts built once
        self.H0 = (-params.delta_c * ad @ a + params.eta * (a + ad)
                   - params.delta_a * sp @ sm)
        self.Hx = params.g * (ad @ sm + sp @ a)
        self.J = (np.sqrt(params.kappa) * a, np.sqrt(params.gamma) * sm)
        self.Jdagger = tuple(j.dag() for j in self.J)

        self._ad_sm = ad @ sm
        self._photon_number = ad @ a
        self._excitation = sp @ sm

    def initial_state(self) -> SemiclassicalState:
        """Empty cavity, atom in the ground state, at (x0, p0)."""
        psi0 = tensor(fock_state(self.fock, 0), spin_down(self.spin))
        return SemiclassicalState.from_ket(psi0, (self.params.x0, self.params.p0))

    def time_grid(self) -> np.ndarray:
        return np.linspace(0.0, self.params.t_max, self.params.n_steps)

    def quantum_generator(self, t: float, rho: Operator, u: np.ndarray):
        return self.H0 + float(np.cos(u[0].real)) * self.Hx, self.J, self.Jdagger

    def classical_derivative(self, t: float, rho: Operator, u: np.ndarray) -> np.ndarray:
        x, p = u[0].real, u[1].real
        force = 2 * self.params.g * np.sin(x) * self._ad_sm.expect(rho).real
        return np.array([2 * self.params.omega_r * p, force], dtype=np.complex128)

    def simulate(self, options: Optional[SolverOptions] = None, times=None) -> Trajectory:
        times = self.time_grid() if times is None else times
        return evolve_semiclassical(times, self.initial_state(), self.quantum_generator,
                                    self.classical_derivative, options)

    def run(self, options: Optional[SolverOptions] = None) -> SimulationResult:
        """Integrate the cooling dynamics and reduce them to observables."""
        logger.info("Cavity cooling run: Nc=%d, t_max=%g, %d samples",
                    self.params.Nc, self.params.t_max, self.params.n_steps)
        trajectory = self.simulate(options)
        x = trajectory.classical_variable(0).real
        p = trajectory.classical_variable(1).real

        return SimulationResult(
            parameters={
                'cooling': asdict(self.params),
                'solver': _solver_dict(options)
            },
            data={
                'times': np.asarray(trajectory.times),
                'position': x,
                'momentum': p,
                'photon_number': trajectory.expect(self._photon_number).real,
                'excited_population': trajectory.expect(self._excitation).real
            },
            metadata={
                'trace_drift': trajectory.trace_drift(),
                'hermiticity_drift': trajectory.hermiticity_drift(),
                'kinetic_energy_change': float(p[-1] ** 2 - p[0] ** 2)
            }
        )


class DampedFockModel:
    """Cavity mode in a Fock state decaying at rate κ, detuned by Δ from the frame.

    ⟨a†(τ) a(0)⟩ = n e^{-iΔτ} e^{-κτ}, so the emission spectrum is a Lorentzian
    of width κ centred at ω = -Δ.
    """

    def __init__(self, params: FockSpectrumParameters):
        self.params = params
        self.basis = fock_basis(params.Nc)
        self.a = destroy(self.basis)
        self.ad = create(self.basis)
        self.H = -params.delta * number(self.basis)
        self.J = (np.sqrt(params.kappa) * self.a,)
        self.rho0 = fock_state(self.basis, params.n).to_density()

    def time_grid(self) -> np.ndarray:
        return time_grid(self.params.t_max, self.params.dt)

    def correlation(self, times=None, method: str = "propagator",
                    options: Optional[SolverOptions] = None) -> CorrelationSeries:
        times = self.time_grid() if times is None else times
        return correlation(times, self.rho0, self.H, self.J, self.ad, self.a,
                           method=method, options=options)

    def analytical_correlation(self, tau) -> np.ndarray:
        tau = np.asarray(tau, dtype=np.float64)
        return self.params.n * np.exp(-1j * self.params.delta * tau - self.params.kappa * tau)

    def spectrum(self, series: CorrelationSeries) -> Spectrum:
        return correlation_to_spectrum(series.times, series, normalize=self.params.normalize)

    def analytical_spectrum(self, omega) -> np.ndarray:
        return analytical_fock_spectrum(omega, self.params.n, self.params.kappa,
                                        self.params.delta, normalize=self.params.normalize)

    def run(self, method: str = "propagator",
            options: Optional[SolverOptions] = None) -> SimulationResult:
        """Correlation, numerical spectrum and analytical comparison."""
        logger.info("Damped Fock spectrum run: n=%d, kappa=%g, delta=%g, tau_max=%g",
                    self.params.n, self.params.kappa, self.params.delta, self.params.t_max)
        series = self.correlation(method=method, options=options)
        spec = self.spectrum(series)
        analytic = self.analytical_spectrum(spec.omega)

        return SimulationResult(
            parameters={
                'spectrum': asdict(self.params),
                'method': method
            },
            data={
                'tau': np.asarray(series.times),
                'correlation': np.asarray(series.values),
                'omega': spec.omega,
                'spectrum': spec.power,
                'analytical_spectrum': analytic
            },
            metadata=self.compare_with_analytical(spec, analytic)
        )

    def compare_with_analytical(self, spec: Spectrum, analytic: np.ndarray,
                                window: Optional[float] = None) -> Dict[str, Any]:
        """Peak positions and largest relative deviation within `window` of the peak."""
        window = 4 * self.params.kappa if window is None else window
        near = np.abs(spec.omega + self.params.delta) <= window
        rel = np.abs(spec.power[near] - analytic[near]) / np.abs(analytic[near])
        return {
            'numerical_peak': spec.peak_frequency(),
            'analytical_peak': -self.params.delta,
            'frequency_step': float(spec.omega[1] - spec.omega[0]),
            'max_relative_deviation': float(rel.max()) if rel.size else float('nan')
        }


def _solver_dict(options: Optional[SolverOptions]) -> Dict[str, Any]:
    options = options or SolverOptions()
    out = asdict(options)
    out['method'] = options.method.value
    out['max_step'] = None if np.isinf(options.max_step) else options.max_step
    return out
