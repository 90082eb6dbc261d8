"""
FastAPI server: analysis endpoints over live chain data.

Each POST route validates its body, runs one analysis against a chain-data
provider scoped to the request and returns camelCase JSON. Errors are always
{"error": message}: SolscopeError with its own status, malformed bodies 400,
anything else 500.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from backend_solscope import __version__
from backend_solscope.analytics import (
    analyze_deployer_network,
    analyze_developer_network,
    analyze_fund_flows,
    analyze_fund_sources,
    get_token_info,
    run_reputability_analysis,
)
from backend_solscope.analytics.narrative import NarrativeExplainer, XaiTextGenerator
from backend_solscope.api_server.schemas import (
    CheckContractRequest,
    DeployerNetworkRequest,
    DeveloperRequest,
    FundFlowResponse,
    FundingGraphResponse,
    FundSourcesRequest,
    HealthResponse,
    NetworkGraphResponse,
    ReputabilityRequest,
    ReputabilityResponse,
    TokenInfoResponse,
)
from backend_solscope.config.env import get_helius_api_key, get_xai_api_key
from backend_solscope.core.exceptions import MissingFieldError, SolscopeError
from backend_solscope.ingestion.helius_client import ChainDataProvider, HeliusClient
from backend_solscope.solscope_logging import get_logger, short_address

logger = get_logger(__name__)


# -----------------------------------------------------------------------------
# Dependencies
# -----------------------------------------------------------------------------


async def get_provider() -> AsyncIterator[ChainDataProvider]:
    """Dependency: one Helius client per request, closed after the response."""
    async with HeliusClient() as client:
        yield client


async def get_explainer() -> AsyncIterator[NarrativeExplainer]:
    """Dependency: narrative explainer backed by xAI (template fallback without a key)."""
    generator = XaiTextGenerator()
    try:
        yield NarrativeExplainer(generator)
    finally:
        await generator.aclose()


def _require(value: str | None, field: str, message: str) -> str:
    value = (value or "").strip()
    if not value:
        raise MissingFieldError(field, message)
    return value


# -----------------------------------------------------------------------------
# App
# -----------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "api_started",
        version=__version__,
        helius_configured=bool(get_helius_api_key()),
        narrative_configured=bool(get_xai_api_key()),
    )
    yield
    logger.info("api_stopped")


app = FastAPI(
    title="Solscope API",
    description="Wallet reputability scores and fund-flow graphs from Solana chain data.",
    version=__version__,
    lifespan=lifespan,
)


@app.exception_handler(SolscopeError)
async def solscope_error_handler(request: Request, exc: SolscopeError) -> JSONResponse:
    """Consistent {"error": message} for domain errors."""
    logger.warning("api_request_failed", path=request.url.path, code=exc.code, status=exc.status_code)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("api_request_invalid", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("api_unhandled_error", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------


@app.post("/api/reputability-score", response_model=ReputabilityResponse)
async def reputability_score(
    body: ReputabilityRequest,
    provider: ChainDataProvider = Depends(get_provider),
    explainer: NarrativeExplainer = Depends(get_explainer),
) -> Any:
    """Reputability score (0-100) with factors, explanation and recommendations."""
    wallet = _require(body.wallet_address, "walletAddress", "Wallet address is required")
    logger.info("reputability_score_called", wallet=short_address(wallet))
    result = await run_reputability_analysis(wallet, provider, explainer)
    return ReputabilityResponse.model_validate(result.to_dict())


@app.post("/api/fund-flow-analysis", response_model=FundFlowResponse)
async def fund_flow_analysis(
    body: DeveloperRequest,
    provider: ChainDataProvider = Depends(get_provider),
) -> Any:
    """Directed fund-flow graph around a developer, with patterns and flow risk."""
    developer = _require(body.developer_address, "developerAddress", "Developer address is required")
    result = await analyze_fund_flows(developer, provider)
    return FundFlowResponse.model_validate(result.to_dict())


@app.post("/api/fund-sources", response_model=FundingGraphResponse)
async def fund_sources(
    body: FundSourcesRequest,
    provider: ChainDataProvider = Depends(get_provider),
) -> Any:
    """Funding sources of a token mint and, when given, its deployer."""
    mint = _require(body.mint_address, "mintAddress", "Mint address is required")
    deployer = (body.deployer_address or "").strip() or None
    result = await analyze_fund_sources(mint, provider, deployer)
    return FundingGraphResponse.model_validate(result.to_dict())


@app.post("/api/developer-network", response_model=FundingGraphResponse)
async def developer_network(
    body: DeveloperRequest,
    provider: ChainDataProvider = Depends(get_provider),
) -> Any:
    developer = _require(body.developer_address, "developerAddress", "Developer address is required")
    result = await analyze_developer_network(developer, provider)
    return FundingGraphResponse.model_validate(result.to_dict())


@app.post("/api/deployer-network", response_model=NetworkGraphResponse)
async def deployer_network(
    body: DeployerNetworkRequest,
    provider: ChainDataProvider = Depends(get_provider),
) -> Any:
    address = _require(body.address, "address", "Address is required")
    result = await analyze_deployer_network(address, provider)
    return NetworkGraphResponse.model_validate(result.to_dict())


@app.post("/api/check-ca", response_model=TokenInfoResponse)
async def check_contract(
    body: CheckContractRequest,
    provider: ChainDataProvider = Depends(get_provider),
) -> Any:
    """Token mint lookup: supply, decimals, authorities and metadata."""
    mint = _require(body.mint_address, "mintAddress", "Contract address is required")
    info = await get_token_info(mint, provider)
    return TokenInfoResponse.model_validate(info.to_dict())


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    """Liveness check: API is up."""
    return HealthResponse(status="ok")
