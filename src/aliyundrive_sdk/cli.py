"""
Command-line interface for the AliyunDrive Python SDK
Key generation, offline signing and device session setup
"""

import argparse
import hashlib
import json
import logging
import sys
from typing import Optional

from . import __version__
from .auth.signature_manager import signing_digest
from .client import AliyunDriveClient
from .config import SDKConfig, load_config
from .crypto.secp256k1 import (
    generate_key_pair,
    key_pair_from_scalar,
    parse_private_key_hex,
    sign_digest,
)
from .exceptions import AliyunDriveSDKError


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog='aliyundrive-auth',
        description='AliyunDrive SDK command-line interface for device signatures and access tokens'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'AliyunDrive Python SDK {__version__}'
    )

    parser.add_argument(
        '--config',
        help='Path to a JSON configuration file'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable debug logging'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    setup_keygen_parser(subparsers)
    setup_sign_parser(subparsers)
    setup_session_parser(subparsers)

    return parser


def setup_keygen_parser(subparsers):
    """Setup key generation subcommand."""
    subparsers.add_parser('keygen', help='Generate a secp256k1 key pair')


def setup_sign_parser(subparsers):
    """Setup offline signing subcommand."""
    sign_parser = subparsers.add_parser('sign', help='Deterministically sign a message or digest')
    sign_parser.add_argument('--private-key-hex', required=True, help='Private key in hex format')
    group = sign_parser.add_mutually_exclusive_group(required=True)
    group.add_argument('--message', help='UTF-8 message, hashed with SHA-256 before signing')
    group.add_argument('--digest-hex', help='Pre-computed digest in hex (at most 32 bytes)')
    group.add_argument('--device', nargs=2, metavar=('DEVICE_ID', 'USER_ID'),
                       help='Sign the device-binding message for DEVICE_ID and USER_ID')
    sign_parser.add_argument('--suffix', help='Hex format byte appended to the signature')


def setup_session_parser(subparsers):
    """Setup session subcommand."""
    session_parser = subparsers.add_parser('session', help='Refresh the access token and register a device session')
    session_parser.add_argument('--refresh-token', required=True, help='Refresh token')
    session_parser.add_argument('--user-id', help='User id (looked up when omitted)')
    session_parser.add_argument('--device-id', help='Device id (derived from the user id when omitted)')


def _load_config(args) -> SDKConfig:
    if args.config:
        return load_config(args.config)
    return SDKConfig.from_env()


def handle_keygen_command(args) -> int:
    """Handle key generation command."""
    key_pair = generate_key_pair()
    print(f"Private Key: {key_pair.private_key_bytes.hex()}")
    print(f"Public Key: {key_pair.public_key_hex()}")
    return 0


def handle_sign_command(args, config: SDKConfig) -> int:
    """Handle offline signing command."""
    private_scalar = parse_private_key_hex(args.private_key_hex)

    if args.message is not None:
        digest = hashlib.sha256(args.message.encode('utf-8')).digest()
    elif args.device is not None:
        device_id, user_id = args.device
        digest = signing_digest(config.device.app_id, device_id, user_id)
    else:
        try:
            digest = bytes.fromhex(args.digest_hex)
        except ValueError:
            print("Error: --digest-hex must be hex encoded", file=sys.stderr)
            return 1

    suffix = args.suffix if args.suffix is not None else config.credentials.signature_suffix
    signature = sign_digest(digest, private_scalar, max_attempts=config.credentials.max_nonce_attempts)

    print(f"Public Key: {key_pair_from_scalar(private_scalar).public_key_hex()}")
    print(f"Signature: {signature.to_header(suffix)}")
    return 0


def handle_session_command(args, config: SDKConfig) -> int:
    """Handle session setup command."""
    if args.device_id:
        config.device.device_id = args.device_id

    client = AliyunDriveClient(args.refresh_token, config=config, user_id=args.user_id)
    try:
        client.start(keepalive=False)
        result = {
            'user_id': client.user_id,
            'device_id': client.device_id,
            'refresh_token': client.token_manager.refresh_token,
            'headers': client.credential_headers(),
        }
    finally:
        client.close()

    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


def main(argv: Optional[list] = None) -> int:
    """
    Main entry point for the CLI

    Args:
        argv: Command line arguments (None to use sys.argv)

    Returns:
        int: Exit code (0 for success, non-zero for failure)
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        config = _load_config(args)
        level = 'DEBUG' if args.verbose else config.logging.level
        logging.basicConfig(level=getattr(logging, level), format='%(asctime)s %(levelname)s %(name)s: %(message)s')

        if args.command == 'keygen':
            return handle_keygen_command(args)
        elif args.command == 'sign':
            return handle_sign_command(args, config)
        elif args.command == 'session':
            return handle_session_command(args, config)
        else:
            # No command specified, show help
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 130
    except AliyunDriveSDKError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
