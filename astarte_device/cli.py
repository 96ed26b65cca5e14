#!/usr/bin/env python3
"""
Device Command Line Tool
========================
Pairs the device and inspects its property cache.

Usage:
    astarte-device pair [--output DIR]
    astarte-device props list
    astarte-device props clear

Configuration comes from ASTARTE_* environment variables or a .env file.

Examples:
    ASTARTE_REALM=test ASTARTE_DEVICE_ID=2TBn-jNESuuHamE2Zo1anA \\
    ASTARTE_CREDENTIALS_SECRET=... astarte-device pair --output ./credentials
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from .config import DeviceSettings, get_settings
from .database import SqlitePropertyStore
from .errors import PairingError
from .logging_config import get_logger, setup_logging
from .provisioning import provision_device, save_credentials

logger = get_logger(__name__)


async def _pair(settings: DeviceSettings, output: str) -> int:
    credentials = await provision_device(settings)
    directory = save_credentials(credentials, output)

    print(f"✅ Device {settings.realm}/{settings.device_id} paired")
    print(f"   • Broker URL: {credentials.broker_url}")
    print(f"   • Certificate SHA-256: {credentials.fingerprint}")
    print(f"   • Credentials: {directory}")
    return 0


async def _list_props(settings: DeviceSettings) -> int:
    async with SqlitePropertyStore(settings.database_url) as store:
        props = await store.list_all_properties()

    if not props:
        print("No cached properties")
        return 0

    for prop in props:
        value = "<unset>" if not prop.value else f"{len(prop.value)} bytes"
        print(f"{prop.interface} v{prop.interface_major} {prop.path}: {value}")
    print(f"\n{len(props)} cached properties")
    return 0


async def _clear_props(settings: DeviceSettings) -> int:
    async with SqlitePropertyStore(settings.database_url) as store:
        await store.clear()

    print("✅ Property cache cleared")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='astarte-device',
        description='Device pairing and property cache tool',
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    pair = subparsers.add_parser('pair', help='Obtain a client certificate and the broker URL')
    pair.add_argument(
        '--output',
        default=None,
        help='Directory for the key and certificate (default: ASTARTE_CREDENTIALS_DIR)'
    )

    props = subparsers.add_parser('props', help='Inspect the property cache')
    props.add_argument('action', choices=['list', 'clear'])

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    settings = get_settings()
    setup_logging(settings)

    try:
        if args.command == 'pair':
            return asyncio.run(_pair(settings, args.output or settings.credentials_dir))
        if args.action == 'list':
            return asyncio.run(_list_props(settings))
        return asyncio.run(_clear_props(settings))
    except PairingError as e:
        logger.error(f"Pairing failed: {e}")
        print(f"❌ Pairing failed: {e}")
        return 1
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        print(f"❌ Error: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
