"""
Chain detection for an arbitrary RPC URL.

Keyword matching runs first since hosted provider URLs usually name their
chain and it costs no network traffic. Opaque URLs fall through to probing
every chain family in PROBE_ORDER until one answers.
"""

import logging
from typing import Optional

import httpx

from chains import UNKNOWN, match_keywords
from probes import PROBE_ORDER, ProbeError
from utils import make_client

logger = logging.getLogger(__name__)


async def probe_chain(rpc_url: str, client: httpx.AsyncClient) -> str:
    """Try each probe in order; the first one that answers names the chain."""
    for chain_id, check_func in PROBE_ORDER:
        try:
            await check_func(rpc_url, client=client)
        except ProbeError as e:
            logger.debug("Probe %s failed for %s: %s", chain_id, rpc_url, e)
            continue
        return chain_id
    return UNKNOWN


async def detect_chain(rpc_url: str, client: Optional[httpx.AsyncClient] = None) -> str:
    """
    Resolve the chain family behind `rpc_url`.

    Never raises; "unknown" means no keyword matched and every probe failed,
    and callers should not benchmark the endpoint.
    """
    chain_id = match_keywords(rpc_url)
    if chain_id != UNKNOWN:
        return chain_id

    if client is not None:
        chain_id = await probe_chain(rpc_url, client)
    else:
        async with make_client() as owned:
            chain_id = await probe_chain(rpc_url, owned)

    if chain_id == UNKNOWN:
        logger.info("Could not identify chain for %s", rpc_url)
    return chain_id
