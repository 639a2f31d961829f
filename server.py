from typing import Optional

from fastapi import BackgroundTasks, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
import logging
import uvicorn

import config
from benchmark import measure_burst_rps, measure_cups, measure_effective_rps
from chains import CHAIN_NAMES, lookup_name
from detect import detect_chain
from failure_report import send_failure_report
from feedback import FeedbackError, send_feedback, validate_feedback
from probes import ProbeError, get_check_function
from troubleshoot import TroubleshootError, troubleshoot_rpc_endpoint
from utils import format_cups, format_rps, is_safe_url

logger = logging.getLogger(__name__)

app = FastAPI(title="Chain Doctor")

# Enable CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class DetectRequest(BaseModel):
    rpcUrl: Optional[str] = None


class BenchmarkRequest(BaseModel):
    rpcUrl: Optional[str] = None
    chainId: Optional[str] = None


class FeedbackRequest(BaseModel):
    feedback: Optional[str] = None


class TroubleshootRequest(BaseModel):
    chain: str
    rpcUrl: str
    cups: float
    effectiveRps: float
    burstRps: float


def bad_request(message):
    return JSONResponse(status_code=400, content={"error": message})


async def check_url(rpc_url):
    """Return an error message if the URL must not be probed from this server."""
    if not rpc_url:
        return "RPC URL is required."
    if config.ALLOW_PRIVATE_RPC:
        return None
    safe, reason = await run_in_threadpool(is_safe_url, rpc_url)
    if not safe:
        return f"RPC URL rejected ({reason})."
    return None


async def setup_benchmark(body: BenchmarkRequest):
    """Validate a benchmark request; returns (check_func, None) or (None, error_response)."""
    error = await check_url(body.rpcUrl)
    if error:
        return None, bad_request(error)
    if not body.chainId:
        return None, bad_request("Chain ID is required.")
    check_func = get_check_function(body.chainId)
    if check_func is None:
        return None, bad_request(f"Unsupported chain: {body.chainId}")
    return check_func, None


def report_failure(background_tasks, request, rpc_url, context, message):
    background_tasks.add_task(
        send_failure_report,
        rpc_url,
        context,
        message,
        request.headers.get("user-agent", "Unknown"),
    )


@app.get("/api/chains")
def get_chains():
    return [
        {"chainId": chain_id, "chainName": name}
        for chain_id, name in CHAIN_NAMES.items()
        if get_check_function(chain_id) is not None
    ]


@app.post("/api/detect")
async def detect(body: DetectRequest):
    error = await check_url(body.rpcUrl)
    if error:
        return bad_request(error)
    chain_id = await detect_chain(body.rpcUrl)
    return {"chainId": chain_id, "chainName": lookup_name(chain_id)}


@app.post("/api/latest-block")
async def latest_block(body: BenchmarkRequest, request: Request, background_tasks: BackgroundTasks):
    check_func, error = await setup_benchmark(body)
    if error:
        return error
    try:
        block = await check_func(body.rpcUrl)
    except ProbeError as e:
        report_failure(background_tasks, request, body.rpcUrl, "Get Latest Block", str(e))
        return {"error": str(e) or "The RPC endpoint is unreachable or invalid."}
    return {"latestBlock": block}


@app.post("/api/cups")
async def cups(body: BenchmarkRequest, request: Request, background_tasks: BackgroundTasks):
    check_func, error = await setup_benchmark(body)
    if error:
        return error
    value = await measure_cups(check_func, body.rpcUrl)
    if value is None:
        report_failure(background_tasks, request, body.rpcUrl, "Get CUPS", "CUPS measurement failed")
    return {"cups": format_cups(value)}


@app.post("/api/effective-rps")
async def effective_rps(body: BenchmarkRequest, request: Request, background_tasks: BackgroundTasks):
    check_func, error = await setup_benchmark(body)
    if error:
        return error
    value = await measure_effective_rps(check_func, body.rpcUrl)
    if value is None:
        report_failure(background_tasks, request, body.rpcUrl, "Get Effective RPS",
                       "Effective RPS measurement failed")
    return {"effectiveRps": format_rps(value)}


@app.post("/api/burst-rps")
async def burst_rps(body: BenchmarkRequest, request: Request, background_tasks: BackgroundTasks):
    check_func, error = await setup_benchmark(body)
    if error:
        return error
    value = await measure_burst_rps(check_func, body.rpcUrl)
    if value is None:
        report_failure(background_tasks, request, body.rpcUrl, "Get Burst RPS",
                       "Burst RPS measurement failed")
    return {"burstRps": format_rps(value)}


@app.post("/api/troubleshoot")
async def troubleshoot(body: TroubleshootRequest):
    try:
        suggestions = await troubleshoot_rpc_endpoint(
            body.chain, body.rpcUrl, body.cups, body.effectiveRps, body.burstRps,
        )
    except TroubleshootError as e:
        return {"error": str(e)}
    return {"suggestions": suggestions}


@app.post("/api/feedback")
async def submit_feedback(body: FeedbackRequest):
    error = validate_feedback(body.feedback)
    if error:
        return bad_request(error)
    try:
        await run_in_threadpool(send_feedback, body.feedback)
    except FeedbackError as e:
        return {"error": str(e)}
    return {"success": "Thank you for your feedback!"}


if __name__ == "__main__":
    logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host="0.0.0.0", port=8000)
