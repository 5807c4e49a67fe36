"""Cavity cooling and damped Fock-state models."""

import json

import pytest
import numpy as np

from cavity_dynamics import (
    CavityCoolingModel,
    CoolingParameters,
    DampedFockModel,
    FockSpectrumParameters,
    SolverOptions,
    ShapeError,
)


@pytest.fixture
def cooling_params():
    return CoolingParameters(Nc=4, gamma=1.0, g=0.5, kappa=0.5, omega_r=0.15,
                             delta_c=-1.0, delta_a=-2.0, eta=1.0,
                             x0=float(np.sqrt(2.0)), p0=7.0, t_max=1.0, n_steps=10)


# =============================================================================
# Semiclassical cavity cooling
# =============================================================================

class TestCavityCooling:

    def test_short_run_completes(self, cooling_params):
        model = CavityCoolingModel(cooling_params)
        trajectory = model.simulate()
        assert len(trajectory) == 10
        assert trajectory.classical.shape == (10, 2)
        assert len(trajectory.classical_variable(0)) == len(model.time_grid())
        assert trajectory.trace_drift() < 1e-5
        assert trajectory.hermiticity_drift() < 1e-5

    def test_initial_state(self, cooling_params):
        model = CavityCoolingModel(cooling_params)
        state = model.initial_state()
        assert state.quantum.dim == 10
        assert np.allclose(state.classical, [np.sqrt(2.0), 7.0])
        # cavity empty, atom in the ground state
        assert (model.a.dag() @ model.a).expect(state.quantum) == pytest.approx(0.0)
        assert (model.sm.dag() @ model.sm).expect(state.quantum) == pytest.approx(0.0)

    def test_position_follows_momentum(self, cooling_params):
        model = CavityCoolingModel(cooling_params)
        trajectory = model.simulate(SolverOptions(rtol=1e-8, atol=1e-10))
        x = trajectory.classical_variable(0).real
        p = trajectory.classical_variable(1).real
        # dx/dt = 2 ωr p with p nearly constant over a short run
        slope = np.gradient(x, trajectory.times)
        assert np.allclose(slope, 2 * cooling_params.omega_r * p, rtol=1e-2)
        assert np.allclose(trajectory.classical.imag, 0.0)

    def test_generator_decomposition(self, cooling_params):
        model = CavityCoolingModel(cooling_params)
        rho = model.initial_state().quantum
        H_nodes, J, Jdagger = model.quantum_generator(0.0, rho, np.array([np.pi / 2, 0.0]))
        assert np.allclose(H_nodes.data, model.H0.data)
        H_antinode, _, _ = model.quantum_generator(0.0, rho, np.array([0.0, 0.0]))
        assert np.allclose(H_antinode.data, (model.H0 + model.Hx).data)
        assert np.allclose(H_antinode.data, H_antinode.data.conj().T)
        assert len(J) == len(Jdagger) == 2

    def test_rk4_agrees_with_adaptive(self, cooling_params):
        model = CavityCoolingModel(cooling_params)
        adaptive = model.simulate(SolverOptions(rtol=1e-9, atol=1e-11))
        fixed = model.simulate(SolverOptions(method="RK4", substeps=20))
        assert np.allclose(adaptive.classical, fixed.classical, atol=1e-6)
        for r1, r2 in zip(adaptive.states, fixed.states):
            assert np.allclose(r1.data, r2.data, atol=1e-6)

    def test_run_result(self, cooling_params):
        result = CavityCoolingModel(cooling_params).run()
        assert set(result.data) == {'times', 'position', 'momentum',
                                    'photon_number', 'excited_population'}
        assert result.data['photon_number'][0] == pytest.approx(0.0)
        assert np.all(result.data['photon_number'][1:] > 0)
        assert result.metadata['trace_drift'] < 1e-5
        json.dumps(result.to_dict())


# =============================================================================
# Damped Fock-state emission spectrum
# =============================================================================

class TestDampedFock:

    @pytest.fixture
    def model(self):
        return DampedFockModel(FockSpectrumParameters(Nc=6, kappa=1.0, n=4, delta=5.0,
                                                      dt=0.05, t_max=100.0, normalize=True))

    def test_correlation_matches_closed_form(self, model):
        series = model.correlation()
        assert series.values[0] == 4
        assert np.allclose(series.values, model.analytical_correlation(series.times), atol=1e-9)

    def test_run_compares_with_analytical(self, model):
        result = model.run()
        meta = result.metadata
        assert abs(meta['numerical_peak'] - meta['analytical_peak']) <= meta['frequency_step']
        assert meta['max_relative_deviation'] < 1e-2
        assert result.data['spectrum'].max() == pytest.approx(1.0)
        json.dumps(result.to_dict())

    def test_fock_state_beyond_truncation(self):
        with pytest.raises(ShapeError):
            DampedFockModel(FockSpectrumParameters(Nc=3, n=4))
