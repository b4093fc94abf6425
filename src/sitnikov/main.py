"""
Sitnikov Problem Command-Line Tool

Integrates the Sitnikov problem (optionally with the MEGNO chaos
indicator) and writes the result vectors as binary files into the
output directory.

Usage:
    python -m src.sitnikov.main -o data -e 0.2 -p 1.5 -s 1e-2 -P 1000 --megno
    sitnikov --config config/sitnikov.yml
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from src.common.config import MEGNO_SCHEMES, SitnikovConfig, get_config
from src.common.constants import SUPPORTED_DTYPES
from src.common.exceptions import NumericsError, format_error_chain
from src.common.logging_config import ServiceLogger, setup_logging
from src.integrators.factory import IntegratorFactory
from src.sitnikov.model import SitnikovModel

SERVICE_NAME = "sitnikov"


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog=SERVICE_NAME,
        description='Integrate the Sitnikov problem and compute MEGNOs',
    )
    parser.add_argument('--config', help='Path to configuration file')
    parser.add_argument('-o', '--output', type=Path,
                        help='Output directory (must exist)')
    parser.add_argument('--megno', action='store_true', default=None,
                        help='Compute MEGNOs')
    parser.add_argument('--megno-scheme', choices=MEGNO_SCHEMES,
                        help='How the MEGNO integrals are computed')
    parser.add_argument('-e', type=float, dest='e',
                        help='Eccentricity, in the range [0, 1)')
    parser.add_argument('-t', '--tau', type=float,
                        help='Time at the pericenter (a fraction of 2*pi), in the range [0, 1)')
    parser.add_argument('-p', '--position', type=float,
                        help='Initial value of position')
    parser.add_argument('-v', '--velocity', type=float,
                        help='Initial value of velocity')
    parser.add_argument('-s', '--step', type=float,
                        help='Time step (a multiple of pi/2); 4/h must be an integer')
    parser.add_argument('-P', '--periods', type=int,
                        help='Number of periods of the primaries')
    parser.add_argument('--method', choices=sorted(IntegratorFactory.available_aliases()),
                        help='Integration method for the equations of motion')
    parser.add_argument('--dtype', choices=sorted(SUPPORTED_DTYPES),
                        help='Floating point type')
    parser.add_argument('--log-level',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level')
    parser.add_argument('--json-logs', action='store_true', default=None,
                        help='Log in JSON format')
    return parser


def apply_arguments(config: SitnikovConfig, args: argparse.Namespace) -> SitnikovConfig:
    """
    Override configuration values with the given command-line arguments.

    Args:
        config: Configuration loaded from file or defaults
        args: Parsed arguments; None values are left alone

    Returns:
        The same configuration
    """
    overrides = [
        (config.model, 'e', args.e),
        (config.model, 'tau', args.tau),
        (config.model, 'z_0', args.position),
        (config.model, 'z_v_0', args.velocity),
        (config.integration, 'h', args.step),
        (config.integration, 'periods', args.periods),
        (config.integration, 'method', args.method),
        (config.integration, 'dtype', args.dtype),
        (config.megno, 'enabled', args.megno),
        (config.megno, 'scheme', args.megno_scheme),
        (config.logging, 'level', args.log_level),
        (config.logging, 'json_format', args.json_logs),
    ]
    for section, name, value in overrides:
        if value is not None:
            setattr(section, name, value)

    if args.output is not None:
        config.output_dir = args.output

    return config


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point

    Returns:
        Exit status: 0 on success, 1 if the integration or the output
        failed (invalid arguments exit with 2 through argparse)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.config and not Path(args.config).exists():
        parser.error(f"Configuration file {args.config} doesn't exist")

    try:
        config = apply_arguments(get_config(args.config), args)
        errors = config.validation_errors()
    except (TypeError, yaml.YAMLError) as e:
        parser.error(f"Invalid configuration: {e}")

    if not config.output_dir.is_dir():
        errors.append(f"Output directory {config.output_dir} doesn't exist")
    if errors:
        parser.error("; ".join(errors))

    setup_logging(
        service_name=SERVICE_NAME,
        log_level=config.logging.level,
        log_file=config.logging.log_file,
        json_format=config.logging.json_format,
    )

    logger = ServiceLogger(SERVICE_NAME, "main")
    logger.info("=" * 60)
    logger.info("Sitnikov problem integrator")
    logger.info("=" * 60)

    if args.config:
        logger.info(f"Using config: {args.config}")

    try:
        model = SitnikovModel.from_config(config)
        model.integrate()
        model.write(config.output_dir)
    except NumericsError as e:
        message = format_error_chain(e)
        logger.error(message)
        print(f"Error: {message}", file=sys.stderr)
        return 1

    logger.info(f"Results written to {config.output_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
