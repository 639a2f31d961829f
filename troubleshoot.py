"""
AI troubleshooting suggestions for a benchmarked RPC endpoint.
"""

import logging
from typing import Optional

from openai import AsyncOpenAI, OpenAIError

import config

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = """You are an AI assistant that provides troubleshooting suggestions for blockchain RPC endpoints based on benchmark results.

Given the following benchmark results for the {chain} network and RPC URL {rpc_url}:

- Chain Usage Per Second (CUPS): {cups}
- Effective Requests Per Second (RPS): {effective_rps}
- Burst RPS: {burst_rps}

Provide specific, actionable suggestions to troubleshoot the RPC endpoint. Consider potential issues such as network connectivity, server overload, rate limiting, or incorrect RPC URL configuration. Also, consider what reasonable values for the chain would be, and list the source of truth for this expectation.
Your suggestions should be clear, concise, and easy to understand for a user with limited technical knowledge."""


class TroubleshootError(Exception):
    pass


def build_prompt(chain: str, rpc_url: str, cups: float, effective_rps: float, burst_rps: float) -> str:
    return PROMPT_TEMPLATE.format(
        chain=chain,
        rpc_url=rpc_url,
        cups=cups,
        effective_rps=effective_rps,
        burst_rps=burst_rps,
    )


async def troubleshoot_rpc_endpoint(chain: str, rpc_url: str, cups: float,
                                    effective_rps: float, burst_rps: float,
                                    client: Optional[AsyncOpenAI] = None) -> str:
    """Ask the model for suggestions; raises TroubleshootError on any failure."""
    if client is None:
        if not config.OPENAI_API_KEY:
            raise TroubleshootError("OPENAI_API_KEY is not set; suggestions are disabled.")
        client = AsyncOpenAI(api_key=config.OPENAI_API_KEY)

    prompt = build_prompt(chain, rpc_url, cups, effective_rps, burst_rps)
    try:
        response = await client.chat.completions.create(
            messages=[{"role": "user", "content": prompt}],
            model=config.OPENAI_MODEL,
            temperature=0.3,
        )
    except OpenAIError as e:
        logger.error("Troubleshooting request failed for %s: %s", rpc_url, e)
        raise TroubleshootError(str(e)) from e

    suggestions = (response.choices[0].message.content or "").strip() if response.choices else ""
    if not suggestions:
        raise TroubleshootError("The model returned no suggestions.")
    return suggestions
