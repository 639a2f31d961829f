"""
Static chain registry: display names and URL keywords per chain family.

Keyword order matters. detect.py walks PRIORITY_KEYWORDS and then
CHAIN_KEYWORDS front to back and the first substring hit wins, so both
tables are tuples rather than dicts.
"""

from typing import Tuple

UNKNOWN = "unknown"

CHAIN_NAMES = {
    "evm": "EVM",
    "aptos": "Aptos",
    "sui": "Sui",
    "solana": "Solana",
    "injective": "Injective",
    "cosmos": "Cosmos",
    "dydx": "dYdX",
    "substrate": "Substrate",
    "beacon": "Beacon",
    "starknet": "StarkNet",
    "stacks": "Stacks",
    "utxo": "Bitcoin-like (UTXO)",
    "kaspa": "Kaspa",
    "ironfish": "Iron Fish",
    "near": "Near",
    "tron": "TRON",
    UNKNOWN: "Unknown",
}

# Chains whose keywords collide with a broader family ("inj", "stark", ...)
PRIORITY_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("tron", ("tron", "trx")),
    ("injective", ("injective", "inj")),
    ("beacon", ("beacon",)),
    ("dydx", ("dydx",)),
    ("starknet", ("starknet", "stark")),
)

CHAIN_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("evm", (
        "eth", "ethereum", "bsc", "binance", "bnb", "polygon", "matic", "avalanche", "avax",
        "arbitrum", "optimism", "fantom", "base", "gnosis", "xdai", "celo",
        "moonbeam", "moonriver", "cronos", "boba", "metis", "aurora", "zksync",
        "scroll", "linea", "mantle", "blast", "mode", "sonic", "harmony", "fuse",
        "filecoin", "kava", "ronin", "core", "conflux", "oasis", "palm", "telos",
        "evmos", "meter", "tomochain", "klaytn", "bittorrent", "dogechain", "thundercore",
        "callisto", "rei", "gochain", "horizen", "eon", "chiliz", "shiden", "shibuya",
        "astar", "platon", "bittensor", "x1", "holesky", "fraxtal", "zora",
        "taiko", "canto", "berachain", "degen", "morph", "lightlink", "cyber", "mitosis",
        "zklink", "aevo", "shardeum", "neon", "rootstock", "rsk", "bitlayer", "merlin",
        "bouncebit", "bitgert", "velas", "velocore", "coredao", "aleph", "unichain",
    )),
    ("cosmos", (
        "cosmos", "atom", "gaia", "osmosis", "osmo", "juno", "terra", "luna",
        "secret", "scrt", "mantra", "kava", "akash", "axelar", "stargaze", "agoric",
        "stride", "sei", "neutron", "celestia", "nomic", "archway", "persistence",
        "sommelier", "kujira", "evmos", "canto", "comdex", "chihuahua", "crescent",
        "desmos", "irisnet", "regen", "sentinel", "sifchain", "umee", "onomy", "kichain",
        "bitsong", "assetmantle", "decentr", "likecoin", "cybermiles", "certik", "iov",
        "fetch.ai", "andromeda", "quicksilver", "provenance", "dymension", "lava", "analog",
        "xpla", "oraichain",
    )),
    ("aptos", ("apt", "aptos")),
    ("sui", ("sui",)),
    ("solana", ("sol", "solana")),
    ("injective", ("inj", "injective")),
    ("dydx", ("dydx",)),
    ("substrate", ("polkadot", "dot", "kusama", "ksm", "substrate", "aleph zero", "manta")),
    ("beacon", ("beacon", "consensus")),
    ("starknet", ("starknet", "stark")),
    ("stacks", ("stacks", "stx")),
    ("utxo", ("bitcoin", "btc", "litecoin", "ltc", "dogecoin", "doge", "dash")),
    ("kaspa", ("kaspa", "ksp")),
    ("ironfish", ("ironfish", "iron")),
    ("near", ("near",)),
    ("tron", ("tron", "trx")),
)

_KEYWORDS_BY_CHAIN = dict(CHAIN_KEYWORDS)


def lookup_name(chain_id: str) -> str:
    """Human-readable chain name, "Unknown" for anything unrecognised."""
    return CHAIN_NAMES.get(chain_id, CHAIN_NAMES[UNKNOWN])


def keywords_for(chain_id: str) -> Tuple[str, ...]:
    return _KEYWORDS_BY_CHAIN.get(chain_id, ())


def match_keywords(rpc_url: str) -> str:
    """Return the chain id whose keywords appear in the URL, or UNKNOWN."""
    lowered = rpc_url.lower()
    for table in (PRIORITY_KEYWORDS, CHAIN_KEYWORDS):
        for chain_id, words in table:
            if any(word in lowered for word in words):
                return chain_id
    return UNKNOWN
