"""Command-line interface for cavity dynamics simulations."""

import argparse
import json
import logging
from pathlib import Path

from .core.physics import CavityCoolingModel, DampedFockModel
from .config import ConfigManager, get_default_config, setup_logging

logger = logging.getLogger('cavity_dynamics.cli')


def main(argv=None):
    # Set up argument parser
    parser = argparse.ArgumentParser(description='Cavity Dynamics Simulation Tool')
    parser.add_argument('scenario', choices=['cooling', 'spectrum'],
                        help='Semiclassical cavity cooling or damped Fock-state spectrum')

    # Input/output arguments
    parser.add_argument('-c', '--config', type=str, help='Path to configuration file')
    parser.add_argument('-o', '--output', type=str, default='results',
                        help='Output directory for results')
    parser.add_argument('--save', action='store_true', help='Save results to file')
    parser.add_argument('--method', choices=['propagator', 'ode'], default='propagator',
                        help='Correlation propagation method (spectrum scenario)')
    parser.add_argument('--log-level', default='INFO', help='Logging level')

    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    # Load configuration
    if args.config:
        config = ConfigManager.load_config(args.config)
    else:
        logger.info("Using default configuration")
        config = get_default_config()

    params = ConfigManager.from_dict(config)

    try:
        if args.scenario == 'cooling':
            result = CavityCoolingModel(params['cooling']).run(params['solver'])
        else:
            result = DampedFockModel(params['spectrum']).run(args.method, params['solver'])
    except Exception:
        logger.exception("Error during %s simulation", args.scenario)
        raise

    for key, value in result.metadata.items():
        logger.info("  %s: %s", key, value)

    if args.save:
        output_dir = Path(args.output)
        output_dir.mkdir(parents=True, exist_ok=True)
        result_file = output_dir / f'{args.scenario}_results.json'
        with open(result_file, 'w') as f:
            json.dump(result.to_dict(), f, indent=2)
        logger.info("Results saved to %s", result_file)

    logger.info("Simulation completed successfully!")
    return result


if __name__ == "__main__":
    main()
