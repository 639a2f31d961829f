"""
HTTP API tests. Network-facing pieces (detection, probes, measurements,
failure emails) are patched at the server module.
"""
import os
import sys
import unittest
from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from probes import ProbeError
from server import app
from troubleshoot import TroubleshootError

RPC = "https://rpc.example.org"


class ServerTestCase(unittest.TestCase):

    def setUp(self):
        self.client = TestClient(app)
        patcher = patch("server.is_safe_url", return_value=(True, None))
        self.is_safe_url = patcher.start()
        self.addCleanup(patcher.stop)
        patcher = patch("server.send_failure_report")
        self.send_failure_report = patcher.start()
        self.addCleanup(patcher.stop)


class TestChainsEndpoint(ServerTestCase):

    def test_lists_supported_chains(self):
        res = self.client.get("/api/chains")
        self.assertEqual(res.status_code, 200)
        ids = [c["chainId"] for c in res.json()]
        self.assertIn({"chainId": "utxo", "chainName": "Bitcoin-like (UTXO)"}, res.json())
        self.assertEqual(len(ids), 16)
        self.assertNotIn("unknown", ids)


class TestDetectEndpoint(ServerTestCase):

    def test_detect(self):
        with patch("server.detect_chain", new=AsyncMock(return_value="cosmos")) as detect:
            res = self.client.post("/api/detect", json={"rpcUrl": RPC})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json(), {"chainId": "cosmos", "chainName": "Cosmos"})
        detect.assert_awaited_once_with(RPC)

    def test_unknown_chain(self):
        with patch("server.detect_chain", new=AsyncMock(return_value="unknown")):
            res = self.client.post("/api/detect", json={"rpcUrl": RPC})
        self.assertEqual(res.json(), {"chainId": "unknown", "chainName": "Unknown"})

    def test_missing_url(self):
        res = self.client.post("/api/detect", json={})
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json(), {"error": "RPC URL is required."})

    def test_private_url_rejected(self):
        self.is_safe_url.return_value = (False, "private_ip_blocked")
        with patch("config.ALLOW_PRIVATE_RPC", False):
            res = self.client.post("/api/detect", json={"rpcUrl": "http://10.0.0.1:8545"})
        self.assertEqual(res.status_code, 400)
        self.assertIn("private_ip_blocked", res.json()["error"])

    def test_private_url_allowed_by_config(self):
        self.is_safe_url.return_value = (False, "private_ip_blocked")
        with patch("config.ALLOW_PRIVATE_RPC", True), \
                patch("server.detect_chain", new=AsyncMock(return_value="evm")):
            res = self.client.post("/api/detect", json={"rpcUrl": "http://10.0.0.1:8545"})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["chainId"], "evm")

    def test_malformed_url_with_private_rpc_allowed(self):
        with patch("config.ALLOW_PRIVATE_RPC", True):
            res = self.client.post("/api/detect", json={"rpcUrl": "http://host:abc/"})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json(), {"chainId": "unknown", "chainName": "Unknown"})


class TestBenchmarkEndpoints(ServerTestCase):

    def test_missing_chain_id(self):
        res = self.client.post("/api/latest-block", json={"rpcUrl": RPC})
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json(), {"error": "Chain ID is required."})

    def test_unsupported_chain(self):
        res = self.client.post("/api/cups", json={"rpcUrl": RPC, "chainId": "unknown"})
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json(), {"error": "Unsupported chain: unknown"})

    def test_latest_block(self):
        check = AsyncMock(return_value=19500000)
        with patch("server.get_check_function", return_value=check):
            res = self.client.post("/api/latest-block", json={"rpcUrl": RPC, "chainId": "evm"})
        self.assertEqual(res.json(), {"latestBlock": 19500000})
        check.assert_awaited_once_with(RPC)

    def test_latest_block_failure_reports(self):
        check = AsyncMock(side_effect=ProbeError("EVM check failed: Server responded with status 429"))
        with patch("server.get_check_function", return_value=check):
            res = self.client.post("/api/latest-block", json={"rpcUrl": RPC, "chainId": "evm"})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json(), {"error": "EVM check failed: Server responded with status 429"})
        self.send_failure_report.assert_called_once_with(
            RPC, "Get Latest Block", "EVM check failed: Server responded with status 429", "testclient",
        )

    def test_cups_formatted(self):
        with patch("server.measure_cups", new=AsyncMock(return_value=0.41666)):
            res = self.client.post("/api/cups", json={"rpcUrl": RPC, "chainId": "solana"})
        self.assertEqual(res.json(), {"cups": "0.42"})
        self.send_failure_report.assert_not_called()

    def test_cups_absent(self):
        with patch("server.measure_cups", new=AsyncMock(return_value=None)):
            res = self.client.post("/api/cups", json={"rpcUrl": RPC, "chainId": "solana"})
        self.assertEqual(res.json(), {"cups": "-"})
        self.send_failure_report.assert_called_once()

    def test_effective_rps_rounded(self):
        with patch("server.measure_effective_rps", new=AsyncMock(return_value=12.4)):
            res = self.client.post("/api/effective-rps", json={"rpcUrl": RPC, "chainId": "near"})
        self.assertEqual(res.json(), {"effectiveRps": 12})

    def test_effective_rps_zero_is_numeric(self):
        with patch("server.measure_effective_rps", new=AsyncMock(return_value=0.0)):
            res = self.client.post("/api/effective-rps", json={"rpcUrl": RPC, "chainId": "near"})
        self.assertEqual(res.json(), {"effectiveRps": 0})

    def test_burst_rps(self):
        with patch("server.measure_burst_rps", new=AsyncMock(return_value=7.5)):
            res = self.client.post("/api/burst-rps", json={"rpcUrl": RPC, "chainId": "cosmos"})
        self.assertEqual(res.json(), {"burstRps": 8})

    def test_burst_rps_absent(self):
        with patch("server.measure_burst_rps", new=AsyncMock(return_value=None)):
            res = self.client.post("/api/burst-rps", json={"rpcUrl": RPC, "chainId": "cosmos"})
        self.assertEqual(res.json(), {"burstRps": "-"})


class TestTroubleshootEndpoint(ServerTestCase):

    body = {"chain": "Solana", "rpcUrl": RPC, "cups": 2.5, "effectiveRps": 3, "burstRps": 20}

    def test_suggestions(self):
        with patch("server.troubleshoot_rpc_endpoint",
                   new=AsyncMock(return_value="Check rate limits.")) as ask:
            res = self.client.post("/api/troubleshoot", json=self.body)
        self.assertEqual(res.json(), {"suggestions": "Check rate limits."})
        ask.assert_awaited_once_with("Solana", RPC, 2.5, 3.0, 20.0)

    def test_error(self):
        with patch("server.troubleshoot_rpc_endpoint",
                   new=AsyncMock(side_effect=TroubleshootError("OPENAI_API_KEY is not set"))):
            res = self.client.post("/api/troubleshoot", json=self.body)
        self.assertEqual(res.json(), {"error": "OPENAI_API_KEY is not set"})

    def test_invalid_body(self):
        res = self.client.post("/api/troubleshoot", json={"chain": "Solana"})
        self.assertEqual(res.status_code, 422)


class TestFeedbackEndpoint(ServerTestCase):

    def test_sends_feedback(self):
        with patch("server.send_feedback") as send:
            res = self.client.post("/api/feedback", json={"feedback": "Burst RPS looks off for Sui."})
        self.assertEqual(res.json(), {"success": "Thank you for your feedback!"})
        send.assert_called_once_with("Burst RPS looks off for Sui.")

    def test_too_short(self):
        with patch("server.send_feedback") as send:
            res = self.client.post("/api/feedback", json={"feedback": "short"})
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json(), {"error": "Feedback must be at least 10 characters long."})
        send.assert_not_called()

    def test_too_long(self):
        res = self.client.post("/api/feedback", json={"feedback": "x" * 2001})
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.json(), {"error": "Feedback must be less than 2000 characters."})

    def test_missing_text(self):
        res = self.client.post("/api/feedback", json={})
        self.assertEqual(res.status_code, 400)

    def test_delivery_disabled(self):
        with patch("config.RESEND_API_KEY", None):
            res = self.client.post("/api/feedback", json={"feedback": "Great tool, thanks a lot!"})
        self.assertEqual(res.json(),
                         {"error": "Server configuration error: Feedback is currently disabled."})


if __name__ == "__main__":
    unittest.main()
