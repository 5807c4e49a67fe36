"""Two-time correlations via the quantum regression theorem."""

import pytest
import numpy as np

from cavity_dynamics import (
    GridError,
    SolverOptions,
    correlation,
    liouvillian,
    steady_state,
    fock_basis,
    destroy,
    create,
    number,
    fock_state,
    expect,
)
from cavity_dynamics.core.lindblad import lindblad_rhs


KAPPA, N_PHOTONS, DELTA = 1.0, 4, 5.0


@pytest.fixture
def damped_fock():
    b = fock_basis(6)
    a = destroy(b)
    H = -DELTA * number(b)
    J = [np.sqrt(KAPPA) * a]
    rho0 = fock_state(b, N_PHOTONS).to_density()
    return b, a, H, J, rho0


def analytic(tau):
    return N_PHOTONS * np.exp(-1j * DELTA * tau - KAPPA * tau)


# =============================================================================
# Liouvillian and steady state
# =============================================================================

class TestLiouvillian:

    def test_matches_master_equation(self, damped_fock):
        b, a, H, J, _ = damped_fock
        H = H + 0.7 * (a + a.dag())
        rng = np.random.default_rng(3)
        rho = rng.normal(size=(7, 7)) + 1j * rng.normal(size=(7, 7))
        L = liouvillian(H, J)
        expected = lindblad_rhs(rho, H.data, [j.data for j in J], [j.dag().data for j in J])
        assert np.allclose((L @ rho.reshape(-1)).reshape(7, 7), expected)

    def test_steady_state_of_driven_cavity(self):
        b = fock_basis(15)
        a = destroy(b)
        kappa, delta, eta = 1.0, 1.0, 0.5
        H = -delta * number(b) + eta * (a + a.dag())
        rho = steady_state(H, [np.sqrt(kappa) * a])

        alpha = eta / (delta + 1j * kappa)
        assert rho.trace() == pytest.approx(1.0)
        assert np.allclose(rho.data, rho.data.conj().T)
        assert expect(a, rho) == pytest.approx(alpha, abs=1e-8)
        assert expect(number(b), rho).real == pytest.approx(abs(alpha) ** 2, abs=1e-8)


# =============================================================================
# Correlation
# =============================================================================

class TestCorrelation:

    def test_zero_delay_bypasses_propagation(self, damped_fock):
        b, a, H, J, rho0 = damped_fock
        A, B = create(b), a
        series = correlation([0.0, 0.1, 0.2], rho0, H, J, A, B)
        assert series.values[0] == complex(np.trace(A.data @ B.data @ rho0.data))
        assert series.values[0] == N_PHOTONS

    def test_damped_fock_propagator(self, damped_fock):
        b, a, H, J, rho0 = damped_fock
        tau = np.arange(0, 401) * 0.05
        series = correlation(tau, rho0, H, J, a.dag(), a)
        assert len(series) == tau.size
        assert np.array_equal(series.times, tau)
        assert np.allclose(series.values, analytic(tau), atol=1e-9)

    def test_damped_fock_ode(self, damped_fock):
        b, a, H, J, rho0 = damped_fock
        tau = np.linspace(0, 5, 51)
        series = correlation(tau, rho0, H, J, a.dag(), a, method="ode",
                             options=SolverOptions(rtol=1e-9, atol=1e-11))
        assert np.allclose(series.values, analytic(tau), atol=1e-6)

    def test_non_uniform_delays(self, damped_fock):
        b, a, H, J, rho0 = damped_fock
        tau = np.array([0.0, 0.01, 0.3, 0.31, 1.7, 4.0])
        series = correlation(tau, rho0, H, J, a.dag(), a)
        assert np.allclose(series.values, analytic(tau), atol=1e-9)

    def test_grid_not_starting_at_zero(self, damped_fock):
        b, a, H, J, rho0 = damped_fock
        tau = 0.5 + 0.1 * np.arange(10)
        for method in ("propagator", "ode"):
            series = correlation(tau, rho0, H, J, a.dag(), a, method=method,
                                 options=SolverOptions(rtol=1e-9, atol=1e-11))
            assert series.values.size == 10
            assert np.allclose(series.values, analytic(tau), atol=1e-6)

    def test_steady_state_default(self):
        b = fock_basis(10)
        a = destroy(b)
        H = -1.0 * number(b) + 0.3 * (a + a.dag())
        J = [np.sqrt(0.5) * a]
        series = correlation([0.0, 1.0], None, H, J, a.dag(), a)
        rho_ss = steady_state(H, J)
        assert series.values[0] == pytest.approx(expect(number(b), rho_ss))

    def test_negative_delay(self, damped_fock):
        b, a, H, J, rho0 = damped_fock
        with pytest.raises(GridError):
            correlation([-0.1, 0.0], rho0, H, J, a.dag(), a)

    def test_unknown_method(self, damped_fock):
        b, a, H, J, rho0 = damped_fock
        with pytest.raises(ValueError):
            correlation([0.0, 1.0], rho0, H, J, a.dag(), a, method="euler")
