# Tests for cavity_dynamics
#
# Test organization mirrors source structure:
#   - test_operators.py:   operator/state layer
#   - test_lindblad.py:    master-equation and semiclassical integration
#   - test_correlation.py: two-time correlations and steady states
#   - test_spectrum.py:    correlation -> spectrum transforms
#   - test_physics.py:     cavity cooling and damped Fock models
#   - test_config.py:      configuration manager and command line
#
# Running tests:
#   pytest tests/
#   pytest tests/test_spectrum.py -v
