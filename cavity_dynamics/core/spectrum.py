"""Power spectra from two-time correlation functions."""

import logging
from typing import Optional, Union

import numpy as np
from scipy.integrate import trapezoid

from .errors import GridError, InsufficientDataError, ShapeError
from .lindblad import is_uniform, validate_time_grid
from ..models import CorrelationSeries, Spectrum, SpectrumMethod

logger = logging.getLogger(__name__)

# upper bound on the size of the (ω, τ) phase matrix built per chunk
_CHUNK_ELEMENTS = 2_000_000


def default_frequency_grid(times: np.ndarray) -> np.ndarray:
    """Angular frequencies 2π·fftfreq(n, dτ), sorted ascending."""
    n = times.size
    dtau = (times[-1] - times[0]) / (n - 1)
    return np.fft.fftshift(2 * np.pi * np.fft.fftfreq(n, d=dtau))


def _fft_transform(tau: np.ndarray, g: np.ndarray):
    # Trapezoid weights make the DFT equal to the trapezoid rule on the FFT frequency grid.
    n = tau.size
    dtau = (tau[-1] - tau[0]) / (n - 1)
    weights = np.full(n, dtau)
    weights[0] = weights[-1] = 0.5 * dtau
    omega = 2 * np.pi * np.fft.fftfreq(n, d=dtau)
    integral = np.fft.fft(weights * g) * np.exp(-1j * omega * tau[0])
    return np.fft.fftshift(omega), np.fft.fftshift(integral)


def _trapezoid_transform(tau: np.ndarray, g: np.ndarray, omega: np.ndarray) -> np.ndarray:
    integral = np.empty(omega.size, dtype=np.complex128)
    chunk = max(1, _CHUNK_ELEMENTS // tau.size)
    for start in range(0, omega.size, chunk):
        w = omega[start:start + chunk, None]
        integral[start:start + chunk] = trapezoid(np.exp(-1j * w * tau[None, :]) * g[None, :],
                                                  tau, axis=1)
    return integral


def correlation_to_spectrum(times, correlation: Union[CorrelationSeries, np.ndarray],
                            normalize: bool = False, omega=None,
                            method: Optional[Union[str, SpectrumMethod]] = None) -> Spectrum:
    """S(ω) = 2 Re ∫ e^{-iωτ} g(τ) dτ over the sampled range of τ.

    Args:
        times: Delays at which `correlation` is sampled.
        correlation: CorrelationSeries or array of g(τ) values.
        normalize: Divide by the maximum so that the peak is 1.
        omega: Frequencies to evaluate; only for the trapezoid method.
            Defaults to the FFT frequency grid of `times`.
        method: ``"fft"`` (uniform grids only) or ``"trapezoid"``. By default
            FFT is used when the grid is uniform and no `omega` is given.

    Negative values produced by the finite integration range are kept.
    """
    g = correlation.values if isinstance(correlation, CorrelationSeries) else correlation
    g = np.asarray(g, dtype=np.complex128).reshape(-1)
    if g.size < 2:
        raise InsufficientDataError(f"a spectrum needs at least two correlation samples, got {g.size}")
    tau = validate_time_grid(times)
    if tau.shape != g.shape:
        raise ShapeError("correlation series and time grid differ in length",
                         expected=tau.shape, actual=g.shape)

    uniform = is_uniform(tau)
    if method is None:
        method = SpectrumMethod.FFT if uniform and omega is None else SpectrumMethod.TRAPEZOID
    method = SpectrumMethod(method)

    if method is SpectrumMethod.FFT:
        if not uniform:
            raise GridError("the FFT spectrum requires a uniformly spaced time grid")
        if omega is not None:
            raise ValueError("the FFT spectrum is evaluated on its own frequency grid; pass method='trapezoid'")
        omega, integral = _fft_transform(tau, g)
    else:
        omega = default_frequency_grid(tau) if omega is None else np.asarray(omega, dtype=np.float64)
        integral = _trapezoid_transform(tau, g, omega)

    power = 2.0 * integral.real
    if normalize:
        peak = power.max()
        if peak <= 0:
            raise InsufficientDataError("cannot normalize a spectrum without a positive maximum")
        power = power / peak
    logger.debug("Spectrum of %d samples via %s, peak at omega=%g",
                 g.size, method.value, omega[np.argmax(power)])
    return Spectrum(omega=omega, power=power, normalized=normalize)


def analytical_fock_spectrum(omega, n: float, kappa: float, delta: float,
                             normalize: bool = False) -> np.ndarray:
    """2nκ / ((ω+Δ)² + κ²), the spectrum of n·exp(-iΔτ - κτ)."""
    omega = np.asarray(omega, dtype=np.float64)
    spec = 2.0 * n * kappa / ((omega + delta) ** 2 + kappa ** 2)
    if normalize:
        spec = spec / spec.max()
    return spec
