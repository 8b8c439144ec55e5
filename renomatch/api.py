"""
HTTP surface: POST /api/contractors/smart-match, POST /api/subsidies/live-check.

Run with:  uvicorn renomatch.api:app
"""
from __future__ import annotations

import asyncio
import functools
import logging
import time
from pathlib import Path
from typing import Callable, List, Optional

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from renomatch import config
from renomatch.adapters.directory import JsonContractorDirectory, JsonSchemeRegistry
from renomatch.adapters.rvo import RvoCertificationVerifier, RvoSchemeRegistry
from renomatch.errors import RenoMatchError
from renomatch.llm.enhancer import LLMAdviceEnhancer, build_default_enhancer
from renomatch.matching.engine import MatchingEngine
from renomatch.schemas import ContractorMatchRequest, SubsidyCheckRequest, first_error_message
from renomatch.service import LOG_FORMAT, run_contractor_match, run_subsidy_check
from renomatch.sources import ContractorProvider, SchemeProvider
from renomatch.verification import CancellationToken, CertificationVerifier

logger = logging.getLogger(__name__)

CONTRACTOR_MATCH_FAILED = "Smart contractor matching failed"
SUBSIDY_CHECK_FAILED = "Live subsidy check failed"

APP_VERSION = "0.3.0"


def default_scheme_registries() -> List[SchemeProvider]:
    registries: List[SchemeProvider] = []
    if config.rvo_configured():
        registries.append(RvoSchemeRegistry())
    registries.append(JsonSchemeRegistry(Path(config.SCHEMES_FILE)))
    return registries


def default_verifier() -> Optional[CertificationVerifier]:
    return RvoCertificationVerifier() if config.rvo_configured() else None


def create_app(
        *,
        contractor_provider: Optional[ContractorProvider] = None,
        scheme_registries: Optional[List[SchemeProvider]] = None,
        verifier: Optional[CertificationVerifier] = None,
        engine: Optional[MatchingEngine] = None,
        enhancer_factory: Callable[[], Optional[LLMAdviceEnhancer]] = build_default_enhancer,
) -> FastAPI:
    """Build the app. Every collaborator can be injected; defaults come from env config."""
    provider = contractor_provider or JsonContractorDirectory(Path(config.CONTRACTORS_FILE))
    registries = scheme_registries if scheme_registries is not None else default_scheme_registries()
    verifier = verifier if verifier is not None else default_verifier()
    engine = engine or MatchingEngine(config.load_matching_config())

    app = FastAPI(title="RenoMatch", version=APP_VERSION)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        message = first_error_message(exc.errors())
        logger.info("Rejected request to %s: %s", request.url.path, message)
        return JSONResponse(status_code=400, content={"error": message})

    @app.get("/health")
    def health_check():
        return {
            "status": "healthy",
            "timestamp": time.time(),
            "version": APP_VERSION,
            "rvoConfigured": config.rvo_configured(),
            "llmConfigured": config.llm_configured(),
        }

    @app.post("/api/contractors/smart-match")
    async def smart_match(body: ContractorMatchRequest):
        requirements = body.to_requirements()
        token = CancellationToken()
        loop = asyncio.get_running_loop()
        try:
            # Not shielded: a cancelled request lands here while lookups still run
            result = await loop.run_in_executor(
                None,
                functools.partial(
                    run_contractor_match,
                    requirements,
                    provider=provider,
                    verifier=verifier,
                    engine=engine,
                    cancel_token=token,
                    enhancer=enhancer_factory(),
                ),
            )
        except asyncio.CancelledError:
            # Client went away; stop outstanding certification lookups
            token.cancel()
            raise
        except RenoMatchError as exc:
            logger.error("Smart contractor matching error: %s (%s)", exc.message, exc.error_type.value)
            return JSONResponse(status_code=500, content={"error": CONTRACTOR_MATCH_FAILED})
        except Exception:
            logger.exception("Smart contractor matching error")
            return JSONResponse(status_code=500, content={"error": CONTRACTOR_MATCH_FAILED})
        return result.to_dict()

    @app.post("/api/subsidies/live-check")
    async def live_check(body: SubsidyCheckRequest):
        profile = body.to_profile()
        try:
            result = await run_in_threadpool(
                run_subsidy_check,
                profile,
                registries=registries,
                engine=engine,
                enhancer=enhancer_factory(),
            )
        except RenoMatchError as exc:
            logger.error("Live subsidy check error: %s (%s)", exc.message, exc.error_type.value)
            return JSONResponse(status_code=500, content={"error": SUBSIDY_CHECK_FAILED})
        except Exception:
            logger.exception("Live subsidy check error")
            return JSONResponse(status_code=500, content={"error": SUBSIDY_CHECK_FAILED})
        return result.to_dict()

    return app


logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)

app = create_app()
