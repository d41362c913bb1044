"""Command line entry point.

Usage:
    bridgelet init-db
    bridgelet keygen
    bridgelet init-controller PUBLIC_KEY
    bridgelet nonce
    bridgelet create-account ADDRESS --creator C --recovery R [--expiry-height H]
    bridgelet record-payment ADDRESS --asset A --amount N
    bridgelet fund ADDRESS --asset A --amount N
    bridgelet status ADDRESS
    bridgelet digest DESTINATION --nonce N --timestamp T
    bridgelet sign-sweep DESTINATION [--timestamp T]
    bridgelet sweep ADDRESS DESTINATION SIGNATURE_HEX
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

from dotenv import load_dotenv

from bridgelet.accounts.ephemeral import EphemeralAccount
from bridgelet.codec import SweepMessage
from bridgelet.config import get_settings
from bridgelet.controller.sweep import SweepController
from bridgelet.crypto import decode_public_key, generate_keypair
from bridgelet.errors import BridgeletError
from bridgelet.ledger.host import Ledger
from bridgelet.signing import SigningError, SweepAuthorizer, get_signer
from bridgelet.transfer import LedgerTransferService

logger = logging.getLogger(__name__)


def configure_logging(debug: bool) -> None:
    log_level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _print(data: dict) -> None:
    print(json.dumps(data, indent=2, sort_keys=True))


async def _run(args: argparse.Namespace) -> dict:
    settings = get_settings()
    ledger = Ledger.from_settings(settings)
    controller = SweepController(ledger, settings.controller_id)

    try:
        if args.command == "init-db":
            await ledger.create_schema()
            return {"initialized": True, "database_url": settings.get_safe_dict()["database_url"]}

        if args.command == "init-controller":
            await controller.initialize(decode_public_key(args.public_key))
            return {"controller_id": controller.controller_id, "nonce": 0}

        if args.command == "nonce":
            return {
                "controller_id": controller.controller_id,
                "nonce": await controller.get_sweep_nonce(),
            }

        if args.command == "create-account":
            account = EphemeralAccount(ledger, args.address, controller.controller_id)
            expiry = args.expiry_height
            if expiry is None:
                expiry = ledger.clock.sequence() + settings.default_expiry_ledgers
            await account.initialize(args.creator, expiry, args.recovery)
            return {"address": args.address, "expiry_height": expiry}

        if args.command == "record-payment":
            account = EphemeralAccount(ledger, args.address, controller.controller_id)
            await account.record_payment(args.amount, args.asset)
            return {"address": args.address, "balances": await account.get_balances()}

        if args.command == "fund":
            async with ledger.invocation() as inv:
                await LedgerTransferService().mint(inv, args.address, args.asset, args.amount)
                holdings = await inv.repo.get_holdings(args.address)
            return {"address": args.address, "holdings": holdings}

        if args.command == "status":
            account = EphemeralAccount(ledger, args.address, controller.controller_id)
            info = await account.get_info()
            return {
                "address": info.address,
                "status": info.status.value,
                "expiry_height": info.expiry_height,
                "is_expired": info.is_expired,
                "payment_count": info.payment_count,
                "balances": info.balances,
                "can_sweep": await controller.can_sweep(account),
            }

        if args.command == "sign-sweep":
            authorization = await SweepAuthorizer(get_signer(), controller).authorize(
                args.destination, timestamp=args.timestamp
            )
            return {
                "destination": args.destination,
                "nonce": authorization.message.nonce,
                "timestamp": authorization.message.timestamp,
                "digest": authorization.digest.hex(),
                "signature": authorization.signature.hex(),
            }

        if args.command == "sweep":
            account = EphemeralAccount(ledger, args.address, controller.controller_id)
            receipt = await controller.execute_sweep(
                account, args.destination, bytes.fromhex(args.signature)
            )
            return {
                "account": receipt.account,
                "destination": receipt.destination,
                "nonce": receipt.nonce,
                "balances": receipt.balances,
            }

        raise ValueError(f"Unknown command: {args.command}")
    finally:
        await ledger.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bridgelet", description="Ephemeral accounts and signature-gated sweeps"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create the ledger schema")
    sub.add_parser("keygen", help="Generate an Ed25519 signer key pair")
    sub.add_parser("nonce", help="Show the controller's current sweep nonce")

    p = sub.add_parser("init-controller", help="Register the authorized signer")
    p.add_argument("public_key", help="Hex or base64url 32-byte Ed25519 public key")

    p = sub.add_parser("create-account", help="Initialize an ephemeral account")
    p.add_argument("address")
    p.add_argument("--creator", required=True)
    p.add_argument("--recovery", required=True)
    p.add_argument("--expiry-height", type=int, default=None)

    p = sub.add_parser("record-payment", help="Record a payment into an account")
    p.add_argument("address")
    p.add_argument("--asset", required=True)
    p.add_argument("--amount", type=int, required=True)

    p = sub.add_parser("fund", help="Credit an address holding on the ledger")
    p.add_argument("address")
    p.add_argument("--asset", required=True)
    p.add_argument("--amount", type=int, required=True)

    p = sub.add_parser("status", help="Show an account")
    p.add_argument("address")

    p = sub.add_parser("digest", help="Print the sweep digest for the given fields")
    p.add_argument("destination")
    p.add_argument("--nonce", type=int, required=True)
    p.add_argument("--timestamp", type=int, required=True)
    p.add_argument("--controller-id", default=None)

    p = sub.add_parser("sign-sweep", help="Sign a sweep with the configured key")
    p.add_argument("destination")
    p.add_argument("--timestamp", type=int, default=None)

    p = sub.add_parser("sweep", help="Execute a signed sweep")
    p.add_argument("address")
    p.add_argument("destination")
    p.add_argument("signature", help="Hex-encoded 64-byte signature")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings.debug)

    # Commands that never touch the ledger
    if args.command == "keygen":
        private_hex, public_hex = generate_keypair()
        _print({"private_key": private_hex, "public_key": public_hex})
        return 0

    try:
        if args.command == "digest":
            message = SweepMessage(
                destination=args.destination,
                nonce=args.nonce,
                controller_id=args.controller_id or settings.controller_id,
                timestamp=args.timestamp,
            )
            _print({"message": message.to_bytes().hex(), "digest": message.digest_hex()})
            return 0

        settings.ensure_valid()
        _print(asyncio.run(_run(args)))
    except (BridgeletError, SigningError, ValueError) as e:
        logger.error(f"{args.command} failed: {e.__class__.__name__}: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
