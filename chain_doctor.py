"""
Detect and benchmark an RPC endpoint from the command line.

Usage:
    python3 chain_doctor.py https://rpc.example.org
    python3 chain_doctor.py https://10.0.0.5:8545 --chain evm --skip-cups --json

Ctrl-C stops the run after the step in progress. During detection the
interrupt is noticed once the probe pass returns, so an opaque URL may take
up to one probe timeout per chain family before the run stops.
"""

import argparse
import asyncio
import functools
import json
import logging
import signal
import sys

import config
from benchmark import run_benchmark
from chains import UNKNOWN, lookup_name
from detect import detect_chain
from probes import CHAIN_CHECK_FUNCTIONS, get_check_function
from utils import format_cups, format_rps, make_client

LABELS = {
    "latest_block": "Latest block",
    "cups": "CUPS",
    "effective_rps": "Effective RPS",
    "burst_rps": "Burst RPS",
}


def print_step(name, value):
    if name == "cups":
        shown = format_cups(value)
    elif name == "latest_block":
        shown = value
    else:
        shown = format_rps(value)
    print(f"{LABELS[name]:<14} {shown}")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Detect and benchmark a blockchain RPC endpoint")
    parser.add_argument("rpc_url", help="RPC endpoint URL")
    parser.add_argument("--chain", choices=sorted(CHAIN_CHECK_FUNCTIONS),
                        help="Skip detection and use this chain family")
    parser.add_argument("--skip-latest-block", action="store_true",
                        help="Do not fetch the latest block before measuring")
    parser.add_argument("--skip-cups", action="store_true", help="Do not measure CUPS")
    parser.add_argument("--skip-effective", action="store_true", help="Do not measure effective RPS")
    parser.add_argument("--skip-burst", action="store_true", help="Do not measure burst RPS")
    parser.add_argument("--json", action="store_true", help="Print the result record as JSON")
    return parser.parse_args(argv)


async def run(args) -> int:
    cancel_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, cancel_event.set)
    except (NotImplementedError, RuntimeError):
        pass  # Windows: Ctrl-C falls back to KeyboardInterrupt
    try:
        return await benchmark_url(args, cancel_event)
    finally:
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except (NotImplementedError, RuntimeError):
            pass


async def benchmark_url(args, cancel_event) -> int:
    async with make_client() as client:
        chain_id = args.chain or await detect_chain(args.rpc_url, client=client)
        if cancel_event.is_set():
            print("Benchmark cancelled.", file=sys.stderr)
            return 130
        chain_name = lookup_name(chain_id)
        if chain_id == UNKNOWN:
            print(f"Could not identify the chain behind {args.rpc_url}.", file=sys.stderr)
            return 1
        if not args.json:
            print(f"Chain          {chain_name} ({chain_id})")

        check_func = functools.partial(get_check_function(chain_id), client=client)
        report = await run_benchmark(
            check_func,
            args.rpc_url,
            chain_name,
            cancel_event=cancel_event,
            latest_block=not args.skip_latest_block,
            cups=not args.skip_cups,
            effective_rps=not args.skip_effective,
            burst_rps=not args.skip_burst,
            on_step=None if args.json else print_step,
        )

    if report.error:
        print(f"Benchmark failed: {report.error}", file=sys.stderr)
        return 1
    if report.cancelled:
        print("Benchmark cancelled.", file=sys.stderr)
        return 130
    if args.json:
        print(json.dumps(report.to_record(), indent=2))
    return 0


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=config.LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        print("\nBenchmark cancelled.", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
