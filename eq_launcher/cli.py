"""
Questionnaire Launcher Command Line Interface.

Provides commands for generating launcher keys, deriving schema names and
issuing launch tokens.
"""

import argparse
import logging
import os
import sys
from typing import Dict, List

from eq_launcher.config import SURVEY_REGISTRY_PATH, LauncherConfig
from eq_launcher.errors import LauncherError
from eq_launcher.keys import generate_key_pair
from eq_launcher.launcher import Launcher
from eq_launcher.schema import transform_schema_params_to_name
from eq_launcher.surveys import SurveyRegistry


SIGNING_KEY_FILE = "sdc-user-authentication-signing-launcher-private-key.pem"
SIGNING_PUBLIC_KEY_FILE = "sdc-user-authentication-signing-launcher-public-key.pem"
ENCRYPTION_KEY_FILE = "sdc-user-authentication-encryption-sr-private-key.pem"
ENCRYPTION_PUBLIC_KEY_FILE = "sdc-user-authentication-encryption-sr-public-key.pem"


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(levelname)s: %(message)s'
    )


def parse_attributes(pairs: List[str]) -> Dict[str, List[str]]:
    """Turn repeated ``name=value`` arguments into launch attribute values."""
    values: Dict[str, List[str]] = {}
    for pair in pairs:
        if "=" not in pair:
            raise ValueError(f"Attribute must be name=value: {pair}")
        name, value = pair.split("=", 1)
        values.setdefault(name, []).append(value)
    return values


def census_values(args: argparse.Namespace) -> Dict[str, List[str]]:
    values: Dict[str, List[str]] = {}
    for name in ("survey", "form_type", "region_code", "schema_name"):
        value = getattr(args, name, None)
        if value:
            values[name] = [value]
    return values


def cmd_keys(args: argparse.Namespace) -> int:
    """Generate the signing and encryption key pairs the launcher reads."""
    try:
        os.makedirs(args.out, exist_ok=True)

        signing = generate_key_pair(args.size)
        encryption = generate_key_pair(args.size)

        files = {
            SIGNING_KEY_FILE: signing.private_key_pem,
            SIGNING_PUBLIC_KEY_FILE: signing.public_key_pem,
            ENCRYPTION_KEY_FILE: encryption.private_key_pem,
            ENCRYPTION_PUBLIC_KEY_FILE: encryption.public_key_pem,
        }
        for filename, data in files.items():
            path = os.path.join(args.out, filename)
            with open(path, "wb") as f:
                f.write(data)
            print(path)

        print(f"\nexport JWT_SIGNING_KEY_PATH='{os.path.join(args.out, SIGNING_KEY_FILE)}'")
        print(f"export JWT_ENCRYPTION_KEY_PATH='{os.path.join(args.out, ENCRYPTION_PUBLIC_KEY_FILE)}'")
        return 0

    except OSError as e:
        print(f"Error writing keys: {e}", file=sys.stderr)
        return 1


def cmd_schema_name(args: argparse.Namespace) -> int:
    """Print the schema name derived from census launch parameters."""
    print(transform_schema_params_to_name(census_values(args)))
    return 0


def cmd_token(args: argparse.Namespace) -> int:
    """Issue a launch token and print it."""
    try:
        values = parse_attributes(args.attribute or [])
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    config = LauncherConfig.from_env()
    if args.validator_url:
        config.schema_validator_url = args.validator_url

    registry = SurveyRegistry()
    registry_path = args.registry or SURVEY_REGISTRY_PATH
    if registry_path:
        try:
            registry.load_from_file(registry_path)
        except (OSError, ValueError, KeyError) as e:
            print(f"Error loading registry {registry_path}: {e}", file=sys.stderr)
            return 1

    launcher = Launcher(config, registry=registry)

    try:
        if args.schema_url:
            token = launcher.token_from_defaults(
                args.schema_url,
                args.account_service_url,
                args.account_service_log_out_url,
                values,
            )
        else:
            values.update(census_values(args))
            token = launcher.token_from_post(values)
    except LauncherError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(token)
    return 0


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog='eq-launcher',
        description='Questionnaire Launcher CLI - launch tokens for the questionnaire runner'
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose output')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # keys command
    p_keys = subparsers.add_parser('keys', help='Generate signing and encryption keys')
    p_keys.add_argument('--out', default='jwt-test-keys', help='Directory to write keys to')
    p_keys.add_argument('--size', type=int, default=2048, help='RSA key size in bits')

    # schema-name command
    p_name = subparsers.add_parser('schema-name', help='Derive a schema name from census params')
    p_name.add_argument('--survey', help='Survey, e.g. lms')
    p_name.add_argument('--form-type', dest='form_type', help='Form type: H, I or C')
    p_name.add_argument('--region-code', dest='region_code', help='Region code, e.g. GB-ENG')
    p_name.add_argument('--schema-name', dest='schema_name', help='Explicit schema name')

    # token command
    p_token = subparsers.add_parser('token', help='Issue a launch token')
    p_token.add_argument('--schema-url', help='Quick launch the schema at this URL')
    p_token.add_argument('--survey', help='Survey, e.g. lms')
    p_token.add_argument('--form-type', dest='form_type', help='Form type: H, I or C')
    p_token.add_argument('--region-code', dest='region_code', help='Region code, e.g. GB-ENG')
    p_token.add_argument('--schema-name', dest='schema_name', help='Explicit schema name')
    p_token.add_argument('-a', '--attribute', action='append', help='Launch attribute name=value')
    p_token.add_argument('--registry', help='JSON file of known schemas')
    p_token.add_argument('--validator-url', help='Schema validator base URL')
    p_token.add_argument('--account-service-url', default='', help='Account service URL')
    p_token.add_argument(
        '--account-service-log-out-url', default='', help='Account service log out URL'
    )

    args = parser.parse_args()

    setup_logging(args.verbose if hasattr(args, 'verbose') else False)

    if args.command == 'keys':
        return cmd_keys(args)
    elif args.command == 'schema-name':
        return cmd_schema_name(args)
    elif args.command == 'token':
        return cmd_token(args)
    else:
        parser.print_help()
        return 0


if __name__ == '__main__':
    sys.exit(main())
