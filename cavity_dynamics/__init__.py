"""Cavity dynamics simulation package.

This package integrates Lindblad master equations for cavity QED systems,
optionally coupled to classical atomic motion through mean-field feedback,
and computes two-time correlation functions and emission spectra.
"""

__version__ = "0.1.0"

from .core.errors import (
    CavityDynamicsError,
    ShapeError,
    CompositionError,
    IntegrationError,
    InsufficientDataError,
    GridError
)

from .core.operators import (
    Basis,
    Operator,
    Ket,
    fock_basis,
    spin_basis,
    destroy,
    create,
    number,
    identity,
    sigma_minus,
    sigma_plus,
    sigma_z,
    fock_state,
    spin_up,
    spin_down,
    tensor,
    expect,
    density,
    commutator_residual
)

from .models import (
    SolverOptions,
    IntegrationMethod,
    SpectrumMethod,
    SemiclassicalState,
    Trajectory,
    CorrelationSeries,
    Spectrum,
    CoolingParameters,
    FockSpectrumParameters,
    SimulationResult
)

from .core.lindblad import evolve_semiclassical, evolve_lindblad, lindblad_rhs, time_grid
from .core.correlation import correlation, liouvillian, steady_state
from .core.spectrum import correlation_to_spectrum, analytical_fock_spectrum
from .core.physics import CavityCoolingModel, DampedFockModel
from .config import ConfigManager, get_default_config, setup_logging

__all__ = [
    'CavityDynamicsError',
    'ShapeError',
    'CompositionError',
    'IntegrationError',
    'InsufficientDataError',
    'GridError',
    'Basis',
    'Operator',
    'Ket',
    'fock_basis',
    'spin_basis',
    'destroy',
    'create',
    'number',
    'identity',
    'sigma_minus',
    'sigma_plus',
    'sigma_z',
    'fock_state',
    'spin_up',
    'spin_down',
    'tensor',
    'expect',
    'density',
    'commutator_residual',
    'SolverOptions',
    'IntegrationMethod',
    'SpectrumMethod',
    'SemiclassicalState',
    'Trajectory',
    'CorrelationSeries',
    'Spectrum',
    'CoolingParameters',
    'FockSpectrumParameters',
    'SimulationResult',
    'evolve_semiclassical',
    'evolve_lindblad',
    'lindblad_rhs',
    'time_grid',
    'correlation',
    'liouvillian',
    'steady_state',
    'correlation_to_spectrum',
    'analytical_fock_spectrum',
    'CavityCoolingModel',
    'DampedFockModel',
    'ConfigManager',
    'get_default_config',
    'setup_logging'
]
