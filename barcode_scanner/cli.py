"""
==============================================================================
Command Line Interface
==============================================================================

Console front-end for the scanner and the product/history service.

Commands:
---------
    barcode-scanner scan [--image PATH ...] [--facing user] [--yes]
    barcode-scanner lookup CODE
    barcode-scanner record CODE
    barcode-scanner history [--limit N]
    barcode-scanner serve [--host H] [--port P] [--reload]
    barcode-scanner reset-db

Settings come from the environment / .env; --mode and --base-url
override the remote service options for one run.

==============================================================================
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import List, Optional

from barcode_scanner.config import get_settings
from barcode_scanner.config.settings import FACING_MODES, REMOTE_MODES, Settings
from barcode_scanner.core.exceptions import AppException
from barcode_scanner.remote.client import RemoteServiceClient, SubmissionResult
from barcode_scanner.scanner.capture import ImageSequenceSource, camera_factory
from barcode_scanner.scanner.session import ScanSessionController


# Module logger
logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="barcode-scanner", description="Scan barcodes and look up products")
    p.add_argument("--mode", choices=sorted(REMOTE_MODES), help="Remote contract (default: REMOTE_MODE)")
    p.add_argument("--base-url", help="Product/history service URL (default: REMOTE_BASE_URL)")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = p.add_subparsers(dest="command", required=True)

    scan = sub.add_parser("scan", help="Scan a barcode from the camera or image files")
    scan.add_argument("--facing", choices=sorted(FACING_MODES), help="Camera facing mode (default: FACING_MODE)")
    scan.add_argument("--image", action="append", default=[], help="Decode these images instead of a camera (repeatable)")
    scan.add_argument("--timeout", type=float, default=None, help="Give up after this many seconds")
    scan.add_argument("-y", "--yes", action="store_true", help="Submit the detected code without asking")

    lookup = sub.add_parser("lookup", help="Look up a product by barcode")
    lookup.add_argument("code")

    record = sub.add_parser("record", help="Record a barcode and show the history")
    record.add_argument("code")

    history = sub.add_parser("history", help="Show recorded barcodes")
    history.add_argument("--limit", type=int, default=None)

    serve = sub.add_parser("serve", help="Run the product/history service")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    serve.add_argument("--reload", action="store_true")

    sub.add_parser("reset-db", help="Drop and recreate the service tables (not in production)")

    return p.parse_args(argv)


def _settings_for(args: argparse.Namespace) -> Settings:
    settings = get_settings()
    overrides = {}
    if args.mode:
        overrides["remote_mode"] = args.mode
    if args.base_url:
        overrides["remote_base_url"] = args.base_url.rstrip("/")
    if getattr(args, "facing", None):
        overrides["facing_mode"] = args.facing
    return settings.model_copy(update=overrides) if overrides else settings


# =============================================================================
# OUTPUT
# =============================================================================

def print_result(result: SubmissionResult) -> None:
    if result.product is not None:
        product = result.product
        print(f"Barcode:    {result.barcode}")
        print(f"Name:       {product.name}")
        print(f"Brand:      {product.brand or '-'}")
        print(f"Categories: {product.categories or '-'}")
        if product.image_url:
            print(f"Image:      {product.image_url}")
        return

    print(f"Recorded {result.barcode}")
    if result.history is None:
        print(f"History unavailable: {result.history_error}")
        return
    print_history(result.history)


def print_history(entries) -> None:
    if not entries:
        print("No barcodes recorded yet.")
        return
    for entry in entries:
        print(f"{entry.timestamp}\t{entry.barcode}")


# =============================================================================
# COMMANDS
# =============================================================================

async def run_scan(args: argparse.Namespace, settings: Settings) -> int:
    if args.image:
        def source_factory(_facing_mode: str):
            return ImageSequenceSource(args.image)
    else:
        source_factory = camera_factory(settings)

    async with RemoteServiceClient.from_settings(settings) as remote:
        controller = ScanSessionController.from_settings(settings, remote=remote, source_factory=source_factory)

        await controller.start()
        print("Scanning... (Ctrl+C to stop)")

        try:
            code = await controller.wait_for_candidate(args.timeout)
        finally:
            if controller.candidate is None:
                await controller.stop()

        if code is None:
            session = controller.session
            if session is not None and session.error:
                raise SystemExit(f"Scan failed: {session.error}")
            raise SystemExit("No barcode detected.")

        print(f"Detected: {code}")
        if not args.yes:
            answer = await asyncio.to_thread(input, "Submit this barcode? [y/N] ")
            if answer.strip().lower() not in ("y", "yes"):
                await controller.cancel()
                print("Cancelled.")
                return 1

        result = await controller.confirm()
        print_result(result)
        return 0


async def run_lookup(args: argparse.Namespace, settings: Settings) -> int:
    async with RemoteServiceClient.from_settings(settings) as remote:
        controller = ScanSessionController.from_settings(settings, remote=remote)
        result = await controller.submit_manual(args.code)
    print_result(result)
    return 0


async def run_record(args: argparse.Namespace, settings: Settings) -> int:
    async with RemoteServiceClient.from_settings(settings) as remote:
        entry = await remote.record(args.code)
        print(f"Recorded {entry.barcode} at {entry.timestamp}")
        print_history(await remote.fetch_history())
    return 0


async def run_history(args: argparse.Namespace, settings: Settings) -> int:
    async with RemoteServiceClient.from_settings(settings) as remote:
        print_history(await remote.fetch_history(args.limit))
    return 0


def run_serve(args: argparse.Namespace, settings: Settings) -> int:
    import uvicorn

    uvicorn.run(
        "barcode_scanner.main:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload,
        log_level="debug" if settings.debug else "info"
    )
    return 0


COMMANDS = {
    "scan": run_scan,
    "lookup": run_lookup,
    "record": run_record,
    "history": run_history,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    settings = _settings_for(args)

    logging.basicConfig(
        level=logging.DEBUG if (args.verbose or settings.debug) else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )

    logger.debug(f"Running {args.command} with {settings!r}")

    if args.command == "serve":
        return run_serve(args, settings)

    if args.command == "reset-db":
        from barcode_scanner.db import reset_db

        try:
            reset_db()
        except RuntimeError as e:
            raise SystemExit(f"Error: {e}")
        print("Database reset.")
        return 0

    try:
        return asyncio.run(COMMANDS[args.command](args, settings))
    except AppException as e:
        raise SystemExit(f"Error: {e.message}")
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
