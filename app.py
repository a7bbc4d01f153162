# DEPENDENCIES
import sys
import time
import uuid
import signal
import uvicorn
from typing import Any
from typing import Dict
from typing import List
from fastapi import Header
from pydantic import Field
from fastapi import FastAPI
from fastapi import Request
from typing import Optional
from fastapi import Depends
from datetime import datetime
from pydantic import BaseModel
from fastapi import HTTPException
from fastapi.responses import Response
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from utils.logger import log_info
from utils.logger import log_event
from utils.logger import log_error
from config.settings import settings
from utils.logger import ContractAnalyzerLogger
from services.errors import RateLimitExceeded
from services.errors import ContentBlockedError
from services.errors import ContractAnalysisError
from services.errors import InputValidationError
from services.errors import AnalysisNotFoundError
from services.ai_analyzer import create_analyzer
from model_manager.llm_manager import LLMManager
from model_manager.llm_manager import LLMProvider
from reporter.report_exporter import export_csv
from services.moderation import ModerationChecker
from utils.rate_limiter import FixedWindowRateLimiter
from utils.rate_limiter import TokenBucketRateLimiter
from reporter.report_exporter import export_filename
from services.persistence import InMemoryAnalysisStore
from services.redline_generator import RedlineGenerator
from services.analysis_pipeline import AnalysisPipeline
from reporter.report_exporter import PDFReportGenerator
from services.moderation import format_moderation_message


# PYDANTIC SCHEMAS
class HealthResponse(BaseModel):
    status       : str
    version      : str
    timestamp    : str
    ai_enabled   : bool
    ai_provider  : str
    ai_available : bool


class AnalyzeRequest(BaseModel):
    source_text : str
    title       : Optional[str] = Field(default = None, max_length = 200)
    use_ai      : bool          = True


class DemoAnalyzeRequest(BaseModel):
    source_text : str
    use_ai      : bool = False


class RedlineRequest(BaseModel):
    clause     : str  = Field(min_length = 1, max_length = 2000)
    suggestion : str  = Field(min_length = 1, max_length = 1000)
    use_ai     : bool = True


class FlagResponse(BaseModel):
    clause     : str
    severity   : str
    rationale  : str
    suggestion : str
    span_start : Optional[int] = None
    span_end   : Optional[int] = None
    context    : str           = ""
    keywords   : List[str]     = []


class AnalysisResponse(BaseModel):
    overall_risk     : str
    summary          : str
    flags            : List[FlagResponse]
    ai_ran           : bool
    ai_fallback_used : bool
    contract_id      : Optional[str] = None
    analysis_id      : Optional[str] = None
    degraded         : List[str]     = []


class RedlineResponse(BaseModel):
    original   : str
    rewrite    : str
    html       : str
    plain_diff : str
    ai_rewrite : bool


class ErrorResponse(BaseModel):
    error     : str
    detail    : str
    timestamp : str


# SERVICE INITIALIZATION
class AnalysisService:
    """
    Wires the analysis pipeline, redlining, exports and the request-layer rate limiters
    """
    def __init__(self, pipeline: Optional[AnalysisPipeline] = None, redliner: Optional[RedlineGenerator] = None, store: Optional[InMemoryAnalysisStore] = None,
                 analyze_limiter: Optional[TokenBucketRateLimiter] = None, demo_limiter: Optional[FixedWindowRateLimiter] = None):
        if pipeline is None:
            store       = store or InMemoryAnalysisStore()
            llm_manager = LLMManager(provider = LLMProvider(settings.AI_PROVIDER.lower()))
            pipeline    = AnalysisPipeline(analyzer   = create_analyzer(settings.AI_PROVIDER, llm_manager = llm_manager) if settings.AI_ENABLED else None,
                                           moderation = ModerationChecker(),
                                           store      = store,
                                          )
            redliner    = redliner or RedlineGenerator(llm_manager = llm_manager)

        self.pipeline        = pipeline
        self.store           = pipeline.store
        self.redliner        = redliner or RedlineGenerator()
        self.pdf_generator   = PDFReportGenerator(redliner = self.redliner)
        self.analyze_limiter = analyze_limiter or TokenBucketRateLimiter(capacity    = settings.ANALYZE_RATE_CAPACITY,
                                                                         refill_rate = settings.ANALYZE_RATE_PER_SECOND,
                                                                        )
        self.demo_limiter    = demo_limiter or FixedWindowRateLimiter(cooldown_seconds = settings.DEMO_COOLDOWN_SECONDS)


    @property
    def ai_available(self) -> bool:
        analyzer = self.pipeline.analyzer

        if (analyzer is None) or not self.pipeline.ai_enabled:
            return False

        llm_manager = getattr(analyzer, "llm_manager", None)

        return bool(llm_manager.available) if llm_manager is not None else True



# FASTAPI APPLICATION : Global instances
analysis_service : Optional[AnalysisService] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    global analysis_service

    ContractAnalyzerLogger.setup(log_dir  = str(settings.LOG_DIR),
                                 app_name = "contract_analyzer",
                                 level    = settings.LOG_LEVEL,
                                )

    log_info(f"{settings.APP_NAME} v{settings.APP_VERSION} starting up")

    try:
        analysis_service = AnalysisService()

    except Exception as e:
        log_error(e, context = {"component" : "app", "operation" : "startup"})
        raise

    log_info("Services initialized", ai_provider = settings.AI_PROVIDER, use_ai = settings.AI_ENABLED)

    try:
        yield

    finally:
        log_info("Server shutdown complete")


# Define the application
app = FastAPI(title       = settings.APP_NAME,
              version     = settings.APP_VERSION,
              description = "Contract clause risk detection and redlining",
              docs_url    = "/api/docs",
              redoc_url   = "/api/redoc",
              lifespan    = lifespan,
             )

# CORS middleware
app.add_middleware(CORSMiddleware,
                   allow_origins     = settings.CORS_ORIGINS,
                   allow_credentials = settings.CORS_ALLOW_CREDENTIALS,
                   allow_methods     = settings.CORS_ALLOW_METHODS,
                   allow_headers     = settings.CORS_ALLOW_HEADERS,
                  )


# DEPENDENCIES AND HELPERS
def get_service() -> AnalysisService:
    if not analysis_service:
        raise HTTPException(status_code = 503,
                            detail      = "Service not initialized",
                           )

    return analysis_service


def get_owner_id(x_owner_id: Optional[str] = Header(default = None)) -> str:
    """
    Owner identity is established upstream and passed through as an opaque header
    """
    if not x_owner_id or not x_owner_id.strip():
        raise HTTPException(status_code = 401,
                            detail      = "Owner identity required",
                           )

    return x_owner_id.strip()


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")

    if forwarded:
        return forwarded.split(",")[0].strip()

    return request.headers.get("x-real-ip") or (request.client.host if request.client else "unknown")


def error_payload(error: str, detail: str) -> Dict[str, Any]:
    return ErrorResponse(error     = error,
                         detail    = detail,
                         timestamp = datetime.now().isoformat(),
                        ).model_dump()


# API ROUTES
@app.get(f"{settings.API_PREFIX}/health", response_model = HealthResponse)
def health_check(service: AnalysisService = Depends(get_service)):
    return HealthResponse(status       = "healthy",
                          version      = settings.APP_VERSION,
                          timestamp    = datetime.now().isoformat(),
                          ai_enabled   = service.pipeline.ai_enabled,
                          ai_provider  = settings.AI_PROVIDER,
                          ai_available = service.ai_available,
                         )


@app.post(f"{settings.API_PREFIX}/analyze", response_model = AnalysisResponse)
def analyze_contract(body: AnalyzeRequest, owner_id: str = Depends(get_owner_id), service: AnalysisService = Depends(get_service)):
    service.analyze_limiter.check(owner_id)

    outcome = service.pipeline.analyze(owner_id = owner_id,
                                       text     = body.source_text,
                                       title    = body.title,
                                       use_ai   = body.use_ai,
                                      )

    return outcome.to_dict()


@app.post(f"{settings.API_PREFIX}/demo/analyze", response_model = AnalysisResponse)
def analyze_demo(body: DemoAnalyzeRequest, request: Request, service: AnalysisService = Depends(get_service)):
    service.demo_limiter.check(client_ip(request))

    outcome = service.pipeline.analyze_demo(text = body.source_text, use_ai = body.use_ai)

    return outcome.to_dict()


@app.post(f"{settings.API_PREFIX}/redline", response_model = RedlineResponse)
def redline_clause(body: RedlineRequest, owner_id: str = Depends(get_owner_id), service: AnalysisService = Depends(get_service)):
    result = service.redliner.rewrite(clause = body.clause, suggestion = body.suggestion, use_ai = body.use_ai)

    log_event("redline_complete", owner_id = owner_id, ai_ran = result.ai_rewrite)

    return result.to_dict()


@app.get(f"{settings.API_PREFIX}/analyses/{{analysis_id}}/export.csv")
def export_analysis_csv(analysis_id: str, owner_id: str = Depends(get_owner_id), service: AnalysisService = Depends(get_service)):
    analysis = service.store.get_analysis(owner_id, analysis_id)
    flags    = service.store.list_flags(owner_id, analysis_id)

    return Response(content    = export_csv(flags),
                    media_type = "text/csv; charset=utf-8",
                    headers    = {"Content-Disposition": f'attachment; filename="{export_filename(analysis, "csv")}"'},
                   )


@app.get(f"{settings.API_PREFIX}/analyses/{{analysis_id}}/export.pdf")
def export_analysis_pdf(analysis_id: str, owner_id: str = Depends(get_owner_id), service: AnalysisService = Depends(get_service)):
    analysis   = service.store.get_analysis(owner_id, analysis_id)
    flags      = service.store.list_flags(owner_id, analysis_id)
    pdf_buffer = service.pdf_generator.generate_report(analysis, flags)

    return Response(content    = pdf_buffer.getvalue(),
                    media_type = "application/pdf",
                    headers    = {"Content-Disposition": f'attachment; filename="{export_filename(analysis, "pdf")}"'},
                   )


# ERROR HANDLERS AND MIDDLEWARE
@app.exception_handler(ContentBlockedError)
async def content_blocked_handler(request, exc: ContentBlockedError):
    return JSONResponse(status_code = 400,
                        content     = {"error"   : "Content blocked",
                                       "message" : format_moderation_message(exc.categories),
                                      },
                       )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request, exc: RateLimitExceeded):
    return JSONResponse(status_code = 429,
                        content     = error_payload("Rate limit exceeded", str(exc)),
                        headers     = {"Retry-After": str(exc.retry_after)},
                       )


@app.exception_handler(InputValidationError)
async def input_validation_handler(request, exc: InputValidationError):
    return JSONResponse(status_code = 400,
                        content     = error_payload("Invalid input", str(exc)),
                       )


@app.exception_handler(AnalysisNotFoundError)
async def not_found_handler(request, exc: AnalysisNotFoundError):
    return JSONResponse(status_code = 404,
                        content     = error_payload("Not found", "Analysis not found or access denied"),
                       )


@app.exception_handler(ContractAnalysisError)
async def analysis_error_handler(request, exc: ContractAnalysisError):
    log_error(exc, context = {"route" : request.url.path, "error_code" : exc.error_code})

    return JSONResponse(status_code = 500,
                        content     = error_payload("Analysis failed", "Analysis failed. Please try again."),
                       )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request, exc: RequestValidationError):
    fields = ", ".join(".".join(str(part) for part in error["loc"][1:]) or "body" for error in exc.errors())

    return JSONResponse(status_code = 400,
                        content     = error_payload("Invalid input", f"Invalid or missing fields: {fields}"),
                       )


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    return JSONResponse(status_code = exc.status_code,
                        content     = error_payload(str(exc.detail), str(exc.detail)),
                       )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    log_error(exc, context = {"route" : request.url.path})

    return JSONResponse(status_code = 500,
                        content     = error_payload("Internal server error", "Internal server error"),
                       )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    req_id     = request.headers.get("x-request-id") or str(uuid.uuid4())
    start_time = time.time()
    response   = await call_next(request)

    response.headers["X-Request-Id"] = req_id

    log_event("request",
              req_id      = req_id,
              method      = request.method,
              route       = request.url.path,
              status      = response.status_code,
              duration_ms = int((time.time() - start_time) * 1000),
             )

    return response



# MAIN
def main():
    def signal_handler(sig, frame):
        print("\nReceived Ctrl+C, shutting down gracefully...")
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)

    try:
        uvicorn.run("app:app",
                    host      = settings.HOST,
                    port      = settings.PORT,
                    reload    = settings.RELOAD,
                    workers   = settings.WORKERS,
                    log_level = settings.LOG_LEVEL.lower(),
                   )

    except KeyboardInterrupt:
        print("\nServer stopped by user")

    except Exception as e:
        log_error(e, context = {"component" : "app", "operation" : "serve"})
        sys.exit(1)


if __name__ == "__main__":
    main()
