"""
Benchmark engine: CUPS, effective (sequential) RPS and burst (parallel) RPS.

Every measurement takes a bound probe function `check_func(rpc) -> int`
and the RPC URL. None of them keep state between calls, so callers may run
all three against the same endpoint at once.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

import config
from probes import ProbeError

logger = logging.getLogger(__name__)

CheckFunc = Callable[[str], Awaitable[int]]


async def measure_cups(check_func: CheckFunc, rpc: str,
                       interval: Optional[float] = None) -> Optional[float]:
    """
    Chain units per second: how fast the chain's own counter advances.

    Samples the counter, sleeps `interval` seconds, samples again. Either
    sample failing yields None; there is no retry.
    """
    interval = interval or config.CUPS_INTERVAL_SECONDS
    try:
        first = await check_func(rpc)
        await asyncio.sleep(interval)
        second = await check_func(rpc)
    except ProbeError as e:
        logger.error("CUPS measurement failed for %s: %s", rpc, e)
        return None
    except Exception:
        logger.exception("CUPS measurement failed for %s", rpc)
        return None
    return (second - first) / interval


async def measure_effective_rps(check_func: CheckFunc, rpc: str,
                                num_requests: Optional[int] = None) -> Optional[float]:
    """Successful calls per second when each call waits for the previous one."""
    num_requests = num_requests or config.EFFECTIVE_RPS_REQUESTS
    try:
        success_count = 0
        start = time.perf_counter()
        for _ in range(num_requests):
            try:
                await check_func(rpc)
                success_count += 1
            except ProbeError:
                pass  # counted as a miss
        duration = time.perf_counter() - start
    except Exception:
        logger.exception("Effective RPS measurement failed for %s", rpc)
        return None

    if duration == 0:
        return float(success_count)
    return success_count / duration


@dataclass
class BurstResult:
    successes: int
    attempts: int
    duration: float

    @property
    def is_rate(self) -> bool:
        """False when `rate` is a raw count because the batch beat one second."""
        return self.duration > 1

    @property
    def rate(self) -> float:
        if self.is_rate:
            return self.successes / self.duration
        return float(self.successes)


async def run_burst(check_func: CheckFunc, rpc: str,
                    batch_size: Optional[int] = None) -> BurstResult:
    """Fire `batch_size` probe calls at once and wait for all to settle."""
    batch_size = batch_size or config.BURST_BATCH_SIZE
    start = time.perf_counter()
    results = await asyncio.gather(
        *(check_func(rpc) for _ in range(batch_size)),
        return_exceptions=True,
    )
    duration = time.perf_counter() - start

    successes = sum(1 for r in results if not isinstance(r, BaseException))
    return BurstResult(successes=successes, attempts=batch_size, duration=duration)


async def measure_burst_rps(check_func: CheckFunc, rpc: str,
                            batch_size: Optional[int] = None) -> Optional[float]:
    """
    Successful concurrent calls per second.

    Batches finishing within one second report the raw success count rather
    than dividing by a near-zero duration.
    """
    try:
        burst = await run_burst(check_func, rpc, batch_size)
    except Exception:
        logger.exception("Burst RPS measurement failed for %s", rpc)
        return None
    return burst.rate


# --- Suite runner ---

@dataclass
class BenchmarkReport:
    rpc_url: str
    chain_name: str
    latest_block: Optional[int] = None
    cups: Optional[float] = None
    effective_rps: Optional[float] = None
    burst_rps: Optional[float] = None
    timestamp: float = field(default_factory=time.time)
    cancelled: bool = False
    error: Optional[str] = None

    def to_record(self) -> dict:
        """Flat record handed to history storage."""
        return {
            "rpcUrl": self.rpc_url,
            "chainName": self.chain_name,
            "latestBlock": self.latest_block,
            "cups": self.cups,
            "effectiveRps": self.effective_rps,
            "burstRps": self.burst_rps,
            "timestamp": self.timestamp,
        }


async def run_benchmark(check_func: CheckFunc, rpc_url: str, chain_name: str,
                        cancel_event: Optional[asyncio.Event] = None,
                        latest_block: bool = True,
                        cups: bool = True, effective_rps: bool = True, burst_rps: bool = True,
                        on_step: Optional[Callable[[str, object], None]] = None) -> BenchmarkReport:
    """
    Run latest block, CUPS, effective RPS and burst RPS in that order.

    `cancel_event` is checked between steps; a set event stops the run and
    marks the report cancelled. A failing latest-block fetch stops the run
    since nothing after it can succeed. With `latest_block=False` that
    connectivity check is skipped and the measurements run unguarded.
    """
    report = BenchmarkReport(rpc_url=rpc_url, chain_name=chain_name)

    def cancelled() -> bool:
        if cancel_event is not None and cancel_event.is_set():
            report.cancelled = True
        return report.cancelled

    if latest_block:
        try:
            report.latest_block = await check_func(rpc_url)
        except ProbeError as e:
            report.error = str(e) or "The RPC endpoint is unreachable or invalid."
            return report
        if on_step:
            on_step("latest_block", report.latest_block)

    selected = (
        ("cups", cups, measure_cups),
        ("effective_rps", effective_rps, measure_effective_rps),
        ("burst_rps", burst_rps, measure_burst_rps),
    )
    for name, enabled, measure in selected:
        if cancelled():
            return report
        if not enabled:
            continue
        value = await measure(check_func, rpc_url)
        setattr(report, name, value)
        if on_step:
            on_step(name, value)

    return report
