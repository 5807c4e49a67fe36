"""Configuration management for cavity dynamics simulations."""

from typing import Dict, Any
import json
import logging
import sys
from dataclasses import asdict

import numpy as np

from ..models import CoolingParameters, FockSpectrumParameters, SolverOptions


class ConfigManager:
    """Manages simulation configuration and parameters."""

    @staticmethod
    def load_config(filepath: str) -> Dict[str, Any]:
        """Load configuration from a JSON file."""
        with open(filepath, 'r') as f:
            return json.load(f)

    @staticmethod
    def save_config(config: Dict[str, Any], filepath: str) -> None:
        """Save configuration to a JSON file."""
        with open(filepath, 'w') as f:
            json.dump(config, f, indent=2)

    @staticmethod
    def validate_config(config: Dict[str, Any]) -> bool:
        """Validate configuration dictionary."""
        required_sections = ['cooling', 'spectrum', 'solver']
        for section in required_sections:
            if section not in config:
                raise ValueError(f"Missing required section: {section}")
        return True

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> Dict[str, Any]:
        """Create parameter objects from configuration dictionary."""
        cls.validate_config(config_dict)

        solver_config = dict(config_dict['solver'])
        if solver_config.get('max_step') is None:
            solver_config['max_step'] = np.inf

        return {
            'cooling': CoolingParameters(**config_dict['cooling']),
            'spectrum': FockSpectrumParameters(**config_dict['spectrum']),
            'solver': SolverOptions(**solver_config)
        }

    @classmethod
    def to_dict(cls, params: Dict[str, Any]) -> Dict[str, Any]:
        """Convert parameter objects back to dictionary."""
        solver = asdict(params['solver'])
        solver['method'] = params['solver'].method.value
        if np.isinf(solver['max_step']):
            solver['max_step'] = None
        return {
            'cooling': asdict(params['cooling']),
            'spectrum': asdict(params['spectrum']),
            'solver': solver
        }


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Route package log records to stdout at the given level."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))

    logger = logging.getLogger('cavity_dynamics')
    logger.setLevel(log_level)
    logger.handlers.clear()
    logger.addHandler(handler)
    return logger


# Default configuration
def get_default_config() -> Dict[str, Any]:
    """Get default configuration parameters."""
    return {
        "cooling": {
            "Nc": 16,
            "gamma": 1.0,
            "g": 0.5,
            "kappa": 0.5,
            "omega_r": 0.15,
            "delta_c": -1.0,
            "delta_a": -2.0,
            "eta": 1.0,
            "x0": float(np.sqrt(2.0)),  # units of 1/k
            "p0": 7.0,                  # units of ħk
            "t_max": 10.0,
            "n_steps": 101
        },
        "spectrum": {
            "Nc": 8,
            "kappa": 1.0,
            "n": 4,
            "delta": 5.0,
            "dt": 0.05,
            "t_max": 1000.0,
            "normalize": True
        },
        "solver": {
            "method": "RK45",
            "rtol": 1e-6,
            "atol": 1e-8,
            "max_step": None,
            "min_step": 0.0,
            "substeps": 10
        }
    }
