"""
Operations utilities - CLI tools for administrative operations.
"""

import argparse
import json
import sys
from datetime import datetime, timezone
from pathlib import Path

import dotenv

dotenv.load_dotenv()

sys.path.insert(0, str(Path(__file__).parent.parent))

from nash.core.errors import StorageError
from nash.core.services import build_services
from nash.util.logging import logger, mask_token


def sweep_keys_command(args):
    """Remove expired API keys now instead of waiting for the heartbeat."""
    services = build_services()
    services.knowledge.initialize()

    removed = services.credentials.sweep()
    print(f"✅ Removed {removed} expired API key(s)")


def list_keys_command(args):
    """List stored API keys with their expiry state."""
    services = build_services()
    services.knowledge.initialize()

    now = datetime.now(timezone.utc)
    keys = services.credentials.list_all()

    if args.json:
        print(json.dumps([
            {
                "api_key": key.token if args.reveal else mask_token(key.token),
                "expiration": key.expires_at.isoformat(),
                "expired": key.is_expired(now)
            }
            for key in keys
        ], indent=2))
        return

    print(f"📋 {len(keys)} API key(s)")
    for key in keys:
        token = key.token if args.reveal else mask_token(key.token)
        state = "expired" if key.is_expired(now) else "active"
        print(f"   {token}  {key.expires_at.isoformat()}  {state}")


def reconcile_command(args):
    """Run one auto-learning pass against the stored snapshot."""
    services = build_services()
    services.learning.bootstrap()

    report = services.learning.reconcile()
    print(f"✅ Reconciled {report['answers']} answer(s) across {report['questions']} question(s)")
    print(f"   Newly registered: {report['newly_registered']}")


def main():
    parser = argparse.ArgumentParser(description="Nash operations utilities")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("sweep-keys", help="Remove expired API keys")

    list_parser = subparsers.add_parser("list-keys", help="List API keys")
    list_parser.add_argument("--json", action="store_true", help="Output results in JSON format")
    list_parser.add_argument("--reveal", action="store_true", help="Show full key values")

    subparsers.add_parser("reconcile", help="Re-register stored answers and retrain")

    args = parser.parse_args()
    commands = {
        "sweep-keys": sweep_keys_command,
        "list-keys": list_keys_command,
        "reconcile": reconcile_command,
    }

    try:
        commands[args.command](args)
    except StorageError as e:
        print(f"❌ {args.command} failed: {e}")
        logger.error(f"CLI {args.command} failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
