"""
Tests for the chain registry and keyword matching.
"""
import os
import sys
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from chains import (
    CHAIN_KEYWORDS,
    CHAIN_NAMES,
    PRIORITY_KEYWORDS,
    UNKNOWN,
    keywords_for,
    lookup_name,
    match_keywords,
)
from probes import CHAIN_CHECK_FUNCTIONS, PROBE_ORDER


class TestRegistry(unittest.TestCase):

    def test_lookup_name(self):
        self.assertEqual(lookup_name("evm"), "EVM")
        self.assertEqual(lookup_name("utxo"), "Bitcoin-like (UTXO)")
        self.assertEqual(lookup_name("dydx"), "dYdX")

    def test_lookup_name_falls_back_to_unknown(self):
        self.assertEqual(lookup_name("not-a-chain"), "Unknown")
        self.assertEqual(lookup_name(UNKNOWN), "Unknown")

    def test_keywords_for(self):
        self.assertEqual(keywords_for("aptos"), ("apt", "aptos"))
        self.assertEqual(keywords_for(UNKNOWN), ())
        self.assertEqual(keywords_for("nope"), ())

    def test_every_probe_has_one_registry_entry(self):
        for chain_id in CHAIN_CHECK_FUNCTIONS:
            self.assertIn(chain_id, CHAIN_NAMES)
        for chain_id, _ in PROBE_ORDER:
            self.assertIn(chain_id, CHAIN_CHECK_FUNCTIONS)

    def test_unknown_has_no_probe(self):
        self.assertNotIn(UNKNOWN, CHAIN_CHECK_FUNCTIONS)

    def test_keyword_table_order(self):
        order = [chain_id for chain_id, _ in CHAIN_KEYWORDS]
        self.assertEqual(order, [
            "evm", "cosmos", "aptos", "sui", "solana", "injective", "dydx", "substrate",
            "beacon", "starknet", "stacks", "utxo", "kaspa", "ironfish", "near", "tron",
        ])
        self.assertEqual([c for c, _ in PRIORITY_KEYWORDS],
                         ["tron", "injective", "beacon", "dydx", "starknet"])


class TestMatchKeywords(unittest.TestCase):

    def test_simple_matches(self):
        self.assertEqual(match_keywords("https://api.mainnet-beta.solana.com"), "solana")
        self.assertEqual(match_keywords("https://fullnode.mainnet.sui.io:443"), "sui")
        self.assertEqual(match_keywords("https://kaspa-node.example.io"), "kaspa")

    def test_case_insensitive(self):
        self.assertEqual(match_keywords("HTTPS://MAINNET.ETHEREUM.ORG"), "evm")

    def test_priority_keywords_beat_table(self):
        self.assertEqual(match_keywords("https://api.trongrid.io"), "tron")
        self.assertEqual(match_keywords("https://sentry.lcd.injective.network"), "injective")
        # "blastapi" alone would match the evm keyword "blast"
        self.assertEqual(match_keywords("https://starknet-mainnet.public.blastapi.io"), "starknet")

    def test_first_table_entry_wins(self):
        # "evmos" is listed under both evm and cosmos; evm comes first
        self.assertEqual(match_keywords("https://evmos-rpc.example.org"), "evm")
        # "kava" appears in both too
        self.assertEqual(match_keywords("https://kava-api.example.org"), "evm")

    def test_no_match(self):
        self.assertEqual(match_keywords("http://10.1.2.3:8545/"), UNKNOWN)


if __name__ == "__main__":
    unittest.main()
