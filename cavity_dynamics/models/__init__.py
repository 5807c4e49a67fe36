"""Core data models for cavity dynamics simulations."""

from dataclasses import dataclass, field
from typing import Tuple, Optional, Dict, Any
import numpy as np
from enum import Enum

from ..core.operators import Ket, Operator, density


class IntegrationMethod(str, Enum):
    RK45 = "RK45"
    DOP853 = "DOP853"
    RK4 = "RK4"


class SpectrumMethod(str, Enum):
    FFT = "fft"
    TRAPEZOID = "trapezoid"


@dataclass
class SolverOptions:
    """Integrator settings shared by all evolution runs."""
    method: IntegrationMethod = IntegrationMethod.RK45
    rtol: float = 1e-6
    atol: float = 1e-8
    max_step: float = np.inf
    min_step: float = 0.0  # adaptive steps below this floor abort the run
    substeps: int = 10  # fixed-step RK4 steps per grid interval

    def __post_init__(self):
        self.method = IntegrationMethod(self.method)
        if self.substeps < 1:
            raise ValueError("substeps must be at least 1")
        if self.min_step < 0:
            raise ValueError("min_step must be non-negative")


@dataclass
class CoolingParameters:
    """Atom in a pumped, damped cavity with classical motion along the standing wave."""
    Nc: int = 16                  # Fock truncation
    gamma: float = 1.0            # atomic decay
    g: float = 0.5                # atom-cavity coupling
    kappa: float = 0.5            # cavity decay
    omega_r: float = 0.15         # recoil frequency
    delta_c: float = -1.0         # pump-cavity detuning
    delta_a: float = -2.0         # pump-atom detuning
    eta: float = 1.0              # pump strength
    x0: float = float(np.sqrt(2.0))  # position in units of 1/k
    p0: float = 7.0               # momentum in units of ħk
    t_max: float = 10.0
    n_steps: int = 101


@dataclass
class FockSpectrumParameters:
    """Damped cavity mode prepared in a Fock state."""
    Nc: int = 8
    kappa: float = 1.0
    n: int = 4
    delta: float = 5.0
    dt: float = 0.05
    t_max: float = 1000.0
    normalize: bool = True


@dataclass(frozen=True)
class SemiclassicalState:
    """Quantum state together with a tuple of classical variables."""
    quantum: Operator
    classical: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.complex128))

    def __post_init__(self):
        # kets are promoted so that dissipation can act on them
        object.__setattr__(self, "quantum", density(self.quantum))
        classical = np.array(self.classical, dtype=np.complex128).reshape(-1)
        classical.flags.writeable = False
        object.__setattr__(self, "classical", classical)

    @classmethod
    def from_ket(cls, ket: Ket, classical=()) -> "SemiclassicalState":
        return cls(ket.to_density(), np.asarray(classical, dtype=np.complex128))


@dataclass(frozen=True)
class Trajectory:
    """Time-ordered states and classical variables produced by one evolution run."""
    times: np.ndarray
    states: Tuple[Operator, ...]
    classical: np.ndarray  # shape (len(times), n_classical)

    def __len__(self) -> int:
        return len(self.times)

    def expect(self, op: Operator) -> np.ndarray:
        """Expectation value of `op` at every sample."""
        return np.array([op.expect(rho) for rho in self.states], dtype=np.complex128)

    def classical_variable(self, index: int) -> np.ndarray:
        return np.asarray(self.classical[:, index])

    def trace_drift(self) -> float:
        """Largest deviation of Tr(ρ) from one along the run."""
        return float(max(abs(rho.trace() - 1.0) for rho in self.states))

    def hermiticity_drift(self) -> float:
        """Largest entry of ρ − ρ† along the run."""
        return float(max(np.max(np.abs(rho.data - rho.data.conj().T)) for rho in self.states))


@dataclass(frozen=True)
class CorrelationSeries:
    """Samples of ⟨A(τ)B(0)⟩ on a time grid."""
    times: np.ndarray
    values: np.ndarray

    def __len__(self) -> int:
        return len(self.values)


@dataclass(frozen=True)
class Spectrum:
    """Power spectrum on a frequency grid; values are not clamped to be non-negative."""
    omega: np.ndarray
    power: np.ndarray
    normalized: bool = False

    def peak_frequency(self) -> float:
        return float(self.omega[int(np.argmax(self.power))])


@dataclass
class SimulationResult:
    """Container for simulation results and analysis."""
    parameters: Dict[str, Any]
    data: Dict[str, np.ndarray]
    metadata: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to a serializable dictionary."""
        return {
            "parameters": self.parameters,
            "data": {k: _jsonable(v) for k, v in self.data.items()},
            "metadata": self.metadata
        }


def _jsonable(value):
    if isinstance(value, np.ndarray):
        if np.iscomplexobj(value):
            return {"real": value.real.tolist(), "imag": value.imag.tolist()}
        return value.tolist()
    return value
