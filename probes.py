"""
Liveness probes, one per chain family.

Each probe sends a single request in the chain's native RPC dialect and
returns the chain's current progress counter (block height, slot,
checkpoint, epoch or ledger version). Any failure along the way raises
ProbeError; a probe never returns a partial or null height.

Probes take an optional httpx.AsyncClient so callers running many probes
(the burst benchmark, the classifier's probe pass) can share one
connection pool. Without one, a short-lived client is opened per call.
"""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

import httpx

import config
from utils import make_client

logger = logging.getLogger(__name__)

ProbeFunction = Callable[..., Awaitable[int]]

UTXO_REQUEST_ID = "chaindoctor"

COSMOS_PATHS = (
    "/blocks/latest",
    "/cosmos/base/tendermint/v1beta1/blocks/latest",
    "/status",
)


class ProbeError(Exception):
    """Malformed URL, timeout, bad status, RPC error payload or missing height field."""


class UnsupportedChainError(ValueError):
    pass


# --- Request helpers ---

@asynccontextmanager
async def _session(client: Optional[httpx.AsyncClient]):
    if client is not None:
        yield client
        return
    async with make_client() as owned:
        yield owned


def _base(rpc: str) -> str:
    return rpc.rstrip("/")


def _dig(data: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _error_message(error: Any) -> str:
    if isinstance(error, dict):
        return str(error.get("message") or error)
    return str(error)


async def _send(client, method: str, url: str, label: str, **kwargs) -> Any:
    """Perform one request and return the decoded JSON body."""
    timeout = config.PROBE_TIMEOUT_SECONDS
    async with _session(client) as session:
        try:
            res = await asyncio.wait_for(
                session.request(method, url, timeout=timeout, **kwargs),
                timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise ProbeError(f"{label} check failed: request timed out after {timeout:g}s") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise ProbeError(f"{label} check failed: {e}") from e

    if not res.is_success:
        raise ProbeError(f"{label} check failed: Server responded with status {res.status_code}")
    try:
        return res.json()
    except ValueError as e:
        raise ProbeError(f"{label} check failed: response is not valid JSON") from e


async def _json_rpc(client, rpc: str, method: str, label: str, params: Any = None,
                    request_id: Any = 1) -> Any:
    payload = {
        "jsonrpc": "2.0",
        "method": method,
        "params": [] if params is None else params,
        "id": request_id,
    }
    data = await _send(client, "POST", rpc, label, json=payload)
    error = _dig(data, "error")
    if error:
        raise ProbeError(f"{label} check failed: {_error_message(error)}")
    return _dig(data, "result")


def _to_int(value: Any, label: str, base: int = 10) -> int:
    """Parse a height field; numbers pass through, strings are parsed in `base`."""
    if isinstance(value, bool) or value is None:
        raise ProbeError(f"Invalid response from {label} RPC")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, str):
        try:
            value = int(value, base)
        except ValueError:
            raise ProbeError(f"Invalid response from {label} RPC") from None
    if not isinstance(value, int) or value < 0:
        raise ProbeError(f"Invalid response from {label} RPC")
    return value


def _require_number(value: Any, label: str) -> int:
    """Strict variant for dialects that always return a JSON number."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ProbeError(f"Invalid response from {label} RPC")
    return _to_int(value, label)


# --- Chain specific checkers ---

async def check_evm(rpc: str, client: Optional[httpx.AsyncClient] = None) -> int:
    result = await _json_rpc(client, rpc, "eth_blockNumber", "EVM")
    return _to_int(result, "EVM", base=16)


async def check_tron(rpc: str, client: Optional[httpx.AsyncClient] = None) -> int:
    data = await _send(client, "POST", f"{_base(rpc)}/wallet/getnowblock", "TRON",
                       headers={"Content-Type": "application/json"})
    number = _dig(data, "block_header", "raw_data", "number")
    if not number:
        raise ProbeError("Invalid response from TRON RPC")
    return _to_int(number, "TRON")


async def check_solana(rpc: str, client: Optional[httpx.AsyncClient] = None) -> int:
    result = await _json_rpc(client, rpc, "getSlot", "Solana")
    return _require_number(result, "Solana")


async def check_sui(rpc: str, client: Optional[httpx.AsyncClient] = None) -> int:
    result = await _json_rpc(client, rpc, "sui_getLatestCheckpointSequenceNumber", "Sui")
    return _to_int(result, "Sui")


async def check_aptos(rpc: str, client: Optional[httpx.AsyncClient] = None) -> int:
    data = await _send(client, "GET", f"{_base(rpc)}/v1", "Aptos")
    return _to_int(_dig(data, "ledger_version"), "Aptos")


def _cosmos_height(path: str, data: Any) -> Any:
    if path.endswith("/blocks/latest"):
        # Legacy LCD nests under "block", some gateways return the header bare
        return _dig(data, "block", "header", "height") or _dig(data, "header", "height")
    return _dig(data, "result", "sync_info", "latest_block_height")


async def check_cosmos(rpc: str, client: Optional[httpx.AsyncClient] = None) -> int:
    base_url = _base(rpc)
    async with _session(client) as session:
        for path in COSMOS_PATHS:
            try:
                data = await _send(session, "GET", f"{base_url}{path}", "Cosmos")
                height = _cosmos_height(path, data)
                if height:
                    return _to_int(height, "Cosmos")
            except ProbeError as e:
                logger.debug("Cosmos endpoint %s%s failed: %s", base_url, path, e)
    raise ProbeError("All Cosmos endpoints failed. The RPC might be incorrect or offline.")


async def check_substrate(rpc: str, client: Optional[httpx.AsyncClient] = None) -> int:
    result = await _json_rpc(client, rpc, "chain_getHeader", "Substrate")
    return _to_int(_dig(result, "number"), "Substrate", base=16)


async def check_beacon(rpc: str, client: Optional[httpx.AsyncClient] = None) -> int:
    url = f"{_base(rpc)}/eth/v1/beacon/states/head/finality_checkpoints"
    data = await _send(client, "GET", url, "Beacon")
    return _to_int(_dig(data, "data", "finalized", "epoch"), "Beacon")


async def check_starknet(rpc: str, client: Optional[httpx.AsyncClient] = None) -> int:
    result = await _json_rpc(client, rpc, "starknet_blockNumber", "Starknet")
    return _require_number(result, "Starknet")


async def check_stacks(rpc: str, client: Optional[httpx.AsyncClient] = None) -> int:
    data = await _send(client, "GET", f"{_base(rpc)}/v2/info", "Stacks")
    return _require_number(_dig(data, "stacks_tip_height"), "Stacks")


async def check_utxo(rpc: str, client: Optional[httpx.AsyncClient] = None) -> int:
    # bitcoind and forks still speak JSON-RPC 1.0
    payload = {"jsonrpc": "1.0", "method": "getblockcount", "params": [], "id": UTXO_REQUEST_ID}
    data = await _send(client, "POST", rpc, "UTXO",
                       content=json.dumps(payload),
                       headers={"Content-Type": "text/plain;"})
    error = _dig(data, "error")
    if error:
        raise ProbeError(f"UTXO check failed: {_error_message(error)}")
    return _require_number(_dig(data, "result"), "UTXO")


async def check_kaspa(rpc: str, client: Optional[httpx.AsyncClient] = None) -> int:
    payload = {"method": "getBlockDagInfoRequest", "params": {}, "id": 1}
    data = await _send(client, "POST", rpc, "Kaspa", json=payload)
    response = _dig(data, "getBlockDagInfoResponse")
    error = _dig(response, "error")
    if error:
        raise ProbeError(f"Kaspa check failed: {_error_message(error)}")
    block_count = _dig(response, "blockCount")
    if not block_count:
        raise ProbeError("Invalid response from Kaspa RPC")
    return _to_int(block_count, "Kaspa")


async def check_ironfish(rpc: str, client: Optional[httpx.AsyncClient] = None) -> int:
    result = await _json_rpc(client, rpc, "chain_head", "Iron Fish")
    return _require_number(_dig(result, "sequence"), "Iron Fish")


async def check_near(rpc: str, client: Optional[httpx.AsyncClient] = None) -> int:
    result = await _json_rpc(client, rpc, "block", "Near",
                             params={"finality": "final"}, request_id="dontcare")
    return _require_number(_dig(result, "header", "height"), "Near")


CHAIN_CHECK_FUNCTIONS: Dict[str, ProbeFunction] = {
    "evm": check_evm,
    "solana": check_solana,
    "injective": check_cosmos,
    "cosmos": check_cosmos,
    "aptos": check_aptos,
    "sui": check_sui,
    "dydx": check_cosmos,
    "substrate": check_substrate,
    "beacon": check_beacon,
    "starknet": check_starknet,
    "stacks": check_stacks,
    "utxo": check_utxo,
    "kaspa": check_kaspa,
    "ironfish": check_ironfish,
    "near": check_near,
    "tron": check_tron,
}

# Order the classifier tries probes against an opaque URL
PROBE_ORDER: Tuple[Tuple[str, ProbeFunction], ...] = (
    ("evm", check_evm),
    ("tron", check_tron),
    ("solana", check_solana),
    ("cosmos", check_cosmos),
    ("sui", check_sui),
    ("aptos", check_aptos),
    ("substrate", check_substrate),
    ("starknet", check_starknet),
    ("utxo", check_utxo),
    ("near", check_near),
    ("stacks", check_stacks),
    ("kaspa", check_kaspa),
    ("ironfish", check_ironfish),
    ("beacon", check_beacon),
)


def get_check_function(chain_id: str) -> Optional[ProbeFunction]:
    return CHAIN_CHECK_FUNCTIONS.get(chain_id)


async def probe(chain_id: str, rpc: str, client: Optional[httpx.AsyncClient] = None) -> int:
    """Fetch the current height of `rpc` using the probe registered for `chain_id`."""
    check_func = get_check_function(chain_id)
    if check_func is None:
        raise UnsupportedChainError(f"Unsupported chain: {chain_id}")
    return await check_func(rpc, client=client)
