"""Numerical core: operators, evolution engine, correlations and spectra."""
