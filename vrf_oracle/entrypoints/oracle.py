"""VRF oracle entrypoint.

Long-running process that watches the coordinator program for pending
randomness requests and fulfills each with a verified VRF proof.

No database, no inbound server: state is the ledger plus an in-memory
record of what this process already fulfilled.
"""

import argparse
import asyncio
import json
import os
import signal
import sys

import bittensor as bt
from dotenv import load_dotenv

from vrf_oracle.base.config import OracleSettings, add_args, load_settings
from vrf_oracle.errors import ConfigError, OracleError


def build_prover(settings: OracleSettings):
    if settings.prover == "cli":
        from vrf_oracle.prover.cli import CliProver

        prover = CliProver(cli_path=settings.prover_cli_path, timeout=settings.prover_timeout_seconds)
        prover.check_available()
        return prover

    from vrf_oracle.prover.ecvrf import EcvrfProver

    return EcvrfProver()


def append_stats(path: str, stats: dict) -> None:
    """Append one JSON line of final statistics."""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "a") as f:
        f.write(json.dumps(stats, sort_keys=True) + "\n")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="VRF Oracle")
    bt.logging.add_args(parser)
    add_args(parser)
    parser.add_argument(
        "--test-pipeline",
        action="store_true",
        help="Prove and verify a fixed seed before serving.",
    )
    parser.add_argument(
        "--test-connection",
        action="store_true",
        help="Query the RPC node version and exit.",
    )
    parser.add_argument(
        "--show-stats",
        action="store_true",
        help="Print the resolved identities and zeroed counters, then exit. Creates nothing.",
    )
    return parser.parse_args(argv)


def show_stats(settings: OracleSettings) -> dict:
    """Zeroed counters plus resolved identities. Never creates a VRF keypair."""
    from vrf_oracle.ledger.signer import OracleKeypair
    from vrf_oracle.oracle.runtime import OracleStats
    from vrf_oracle.prover.keystore import load_vrf_keypair

    program_id = settings.program_pubkey()
    oracle = OracleKeypair.from_file(settings.oracle_keypair_path)
    vrf_public_key = None
    if settings.vrf_keypair_path and os.path.exists(settings.vrf_keypair_path):
        vrf_public_key = load_vrf_keypair(settings.vrf_keypair_path).public_key.hex()

    stats = OracleStats().as_dict()
    stats.update({
        "processed_requests": 0,
        "vrf_public_key": vrf_public_key,
        "oracle_pubkey": str(oracle.pubkey),
        "program_id": str(program_id),
    })
    return stats


async def _prepare(settings: OracleSettings, args: argparse.Namespace):
    from vrf_oracle.ledger.signer import OracleKeypair
    from vrf_oracle.ledger.store.rpc_client import RpcLedgerClient
    from vrf_oracle.oracle.dedup import DedupTracker
    from vrf_oracle.oracle.proofs import run_pipeline_self_test
    from vrf_oracle.oracle.runtime import OracleRuntime
    from vrf_oracle.oracle.scan import ScanCycle
    from vrf_oracle.oracle.submitter import Submitter
    from vrf_oracle.oracle.tx_builder import FulfillmentTxBuilder
    from vrf_oracle.prover.keystore import load_or_create_vrf_keypair

    program_id = settings.program_pubkey()
    oracle = OracleKeypair.from_file(settings.oracle_keypair_path)
    prover = build_prover(settings)
    vrf_keypair = await load_or_create_vrf_keypair(prover, settings.vrf_keypair_path)

    if args.test_pipeline:
        await run_pipeline_self_test(prover, vrf_keypair)

    ledger = RpcLedgerClient(
        rpc_url=settings.rpc_url,
        commitment=settings.commitment,
        timeout=settings.rpc_timeout_seconds,
        confirm_timeout=settings.confirm_timeout_seconds,
    )
    builder = FulfillmentTxBuilder(ledger=ledger, program_id=program_id, oracle=oracle)
    submitter = Submitter(
        ledger=ledger,
        max_attempts=settings.submit_max_attempts,
        retry_delay=settings.submit_retry_delay_seconds,
        backoff_multiplier=settings.submit_backoff_multiplier,
    )
    scan = ScanCycle(
        ledger=ledger,
        program_id=program_id,
        prover=prover,
        vrf_keypair=vrf_keypair,
        builder=builder,
        submitter=submitter,
        dedup=DedupTracker(),
    )
    runtime = OracleRuntime(scan=scan, poll_interval=settings.poll_interval_seconds)
    return ledger, runtime


def main(argv=None) -> None:
    # Load .env if not in test mode
    if os.environ.get("VRF_ORACLE_TEST_MODE") != "true":
        load_dotenv()

    args = parse_args(argv)
    bt.logging.info({"vrf_oracle": "starting"})

    try:
        settings = load_settings(args)
    except ConfigError as e:
        bt.logging.error({"vrf_oracle_config_error": str(e)})
        sys.exit(1)

    bt.logging.info({
        "vrf_oracle_config": {
            "rpc_url": settings.rpc_url,
            "program_id": settings.program_id,
            "prover": settings.prover,
            "poll_interval": settings.poll_interval_seconds,
            "submit_max_attempts": settings.submit_max_attempts,
            "commitment": settings.commitment,
        }
    })

    if args.show_stats:
        try:
            stats = show_stats(settings)
        except OracleError as e:
            bt.logging.error({"vrf_oracle_startup_failed": str(e), "kind": type(e).__name__})
            sys.exit(1)
        print(json.dumps(stats, indent=2, sort_keys=True))
        return

    loop = asyncio.new_event_loop()
    try:
        ledger, runtime = loop.run_until_complete(_prepare(settings, args))
    except OracleError as e:
        bt.logging.error({"vrf_oracle_startup_failed": str(e), "kind": type(e).__name__})
        loop.close()
        sys.exit(1)

    if args.test_connection:
        try:
            version = loop.run_until_complete(ledger.get_version())
            bt.logging.info({"vrf_oracle_connection": "ok", "version": version})
        except OracleError as e:
            bt.logging.error({"vrf_oracle_connection": "failed", "error": str(e)})
            sys.exit(1)
        finally:
            loop.run_until_complete(ledger.close())
            loop.close()
        return

    # Graceful shutdown
    def _signal_handler(sig, frame):
        bt.logging.info({"vrf_oracle": "shutdown_signal_received"})
        runtime.stop()

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    try:
        loop.run_until_complete(runtime.run())
    except KeyboardInterrupt:
        bt.logging.info({"vrf_oracle": "keyboard_interrupt"})
    finally:
        loop.run_until_complete(ledger.close())
        loop.close()
        if settings.stats_log_path:
            append_stats(settings.stats_log_path, runtime.get_stats())
        bt.logging.info({"vrf_oracle": "stopped"})


if __name__ == "__main__":
    main()
