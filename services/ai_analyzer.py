# DEPENDENCIES
import re
import json
import time
from abc import ABC
from typing import Any
from typing import Dict
from typing import List
from typing import Tuple
from typing import Literal
from typing import Callable
from typing import Optional
from pydantic import Field
from abc import abstractmethod
from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import ValidationError
from config.settings import settings
from utils.logger import log_info
from utils.logger import log_event
from utils.logger import log_warning
from services.data_models import Flag
from config.model_config import ModelConfig
from services.data_models import Severity
from services.data_models import FlagSource
from utils.logger import ContractAnalyzerLogger
from services.data_models import AnalyzerMeta
from model_manager.llm_manager import LLMManager
from services.data_models import AnalysisResult
from services.errors import AIUnavailableError
from model_manager.llm_manager import LLMProvider
from model_manager.llm_manager import LLMResponse
from services.errors import SchemaViolationError


# STRICT RESPONSE SCHEMA
class FlagPayload(BaseModel):
    model_config = ConfigDict(extra = "forbid")

    clause     : str                                = Field(min_length = 1, max_length = 600)
    severity   : Literal["low", "medium", "high"]
    rationale  : str                                = Field(min_length = 1, max_length = 400)
    suggestion : str                                = Field(min_length = 1, max_length = 400)


class AnalysisPayload(BaseModel):
    model_config = ConfigDict(extra = "forbid")

    overall_risk : Literal["low", "medium", "high"]
    summary      : str                              = Field(min_length = 1, max_length = 600)
    flags        : List[FlagPayload]                = Field(max_length = 40)


class AIAnalyzer(ABC):
    """
    Capability interface: anything that turns contract text into an AnalysisResult
    """
    name = "abstract"

    @abstractmethod
    def analyze(self, text: str) -> AnalysisResult:
        """
        Analyze contract text; raises AIUnavailableError when no usable result can be produced
        """


class LLMContractAnalyzer(AIAnalyzer):
    """
    Structured-output contract analysis over an LLMManager

    Retry policy: every model gets one attempt plus exactly one retry (the retry after a
    schema violation carries a schema-only instruction). Models are tried in order:
    the configured model first, then each fallback model. When all fail the analyzer
    raises AIUnavailableError; a malformed reply is never partially applied.
    """
    def __init__(self, llm_manager: LLMManager, model: Optional[str] = None, fallback_models: Optional[List[str]] = None,
                 max_chars: Optional[int] = None, total_timeout: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        """
        Arguments:
        ----------
            llm_manager     { LLMManager } : Transport for remote calls

            model              { str }     : Primary model (default: settings.OPENAI_MODEL)

            fallback_models    { list }    : Ordered alternates (default: settings.AI_FALLBACK_MODELS)

            max_chars          { int }     : Input ceiling before truncation (default: settings.MAX_ANALYZE_CHARS)

            total_timeout     { float }    : Budget in seconds for all attempts (default: settings.AI_TOTAL_TIMEOUT)

            clock            { callable }  : Monotonic clock, injectable for tests
        """
        self.llm_manager     = llm_manager
        self.model           = model or settings.OPENAI_MODEL
        self.fallback_models = list(settings.AI_FALLBACK_MODELS if fallback_models is None else fallback_models)
        self.max_chars       = max_chars or settings.MAX_ANALYZE_CHARS
        self.total_timeout   = total_timeout or settings.AI_TOTAL_TIMEOUT
        self.clock           = clock
        self.name            = llm_manager.provider.value


    @property
    def models(self) -> List[str]:
        """
        Primary model followed by distinct fallbacks
        """
        return list(dict.fromkeys([self.model] + self.fallback_models))


    @ContractAnalyzerLogger.log_execution_time("ai_analyze")
    def analyze(self, text: str) -> AnalysisResult:
        """
        Run the remote analysis with retry and model fallback

        Arguments:
        ----------
            text { str } : Contract text

        Returns:
        --------
            { AnalysisResult } : AI flags (source = ai), overall risk, summary and telemetry meta

        Raises:
        -------
            AIUnavailableError : provider not configured, all models failed, or time budget spent
        """
        if not self.llm_manager.available:
            raise AIUnavailableError("AI provider is not configured")

        prepared, truncated = self.prepare_text(text)
        deadline            = self.clock() + self.total_timeout
        attempts            = list()

        log_info("AI analysis started", ai_provider = self.name, text_length = len(prepared), truncated = truncated)

        for model in self.models:
            retry_instruction = None

            for attempt in (1, 2):
                if (self.clock() >= deadline):
                    log_warning("AI analysis time budget exhausted", attempts = len(attempts))
                    raise AIUnavailableError("AI analysis timed out", attempts = attempts)

                response = self._request(prepared, model, retry_instruction)

                if not response.success:
                    attempts.append({"model" : model, "attempt" : attempt, "error_code" : "AI_TRANSPORT"})
                    log_event("ai_attempt_failed", ai_model = model, attempt = attempt, error_code = "AI_TRANSPORT")
                    continue

                try:
                    payload = self.parse_payload(response.text)

                except SchemaViolationError:
                    attempts.append({"model" : model, "attempt" : attempt, "error_code" : "SCHEMA_VIOLATION"})
                    log_event("ai_attempt_failed", ai_model = model, attempt = attempt, error_code = "SCHEMA_VIOLATION")
                    retry_instruction = ModelConfig.SCHEMA_RETRY_INSTRUCTION
                    continue

                return self._build_result(payload, response, truncated, attempts = len(attempts) + 1)

            log_warning("AI model exhausted, trying next", ai_model = model)

        raise AIUnavailableError("All AI models failed", attempts = attempts)


    def prepare_text(self, text: str) -> Tuple[str, bool]:
        """
        Trim and cap the contract text; returns (text, truncated)
        """
        processed = (text or "").strip()

        if (len(processed) > self.max_chars):
            return processed[:self.max_chars] + ModelConfig.TRUNCATION_NOTE, True

        return processed, False


    def _request(self, text: str, model: str, retry_instruction: Optional[str]) -> LLMResponse:
        system_prompt = ModelConfig.ANALYSIS_SYSTEM_PROMPT

        if retry_instruction:
            system_prompt = f"{system_prompt}\n\n{retry_instruction}"

        generation    = ModelConfig.get_generation_config("analysis")

        return self.llm_manager.complete(prompt        = ModelConfig.ANALYSIS_USER_PROMPT.format(text = text),
                                         model         = model,
                                         system_prompt = system_prompt,
                                         temperature   = generation["temperature"],
                                         max_tokens    = min(generation["max_tokens"], settings.AI_MAX_OUTPUT_TOKENS),
                                         json_schema   = ModelConfig.ANALYSIS_SCHEMA,
                                         schema_name   = ModelConfig.ANALYSIS_SCHEMA_NAME,
                                        )


    @staticmethod
    def parse_payload(content: str) -> AnalysisPayload:
        """
        Parse and validate a model reply against the strict analysis schema
        """
        # Clean response (remove markdown code fences if present)
        cleaned = re.sub(r"^\s*```(?:json)?\s*|\s*```\s*$", "", content or "")

        try:
            data = json.loads(cleaned)

        except (json.JSONDecodeError, TypeError) as e:
            raise SchemaViolationError(f"Reply is not valid JSON: {e.__class__.__name__}") from e

        if not isinstance(data, dict):
            raise SchemaViolationError("Reply is not a JSON object")

        try:
            return AnalysisPayload.model_validate(data)

        except ValidationError as e:
            raise SchemaViolationError(f"Reply violates schema ({e.error_count()} errors)") from e


    def _build_result(self, payload: AnalysisPayload, response: LLMResponse, truncated: bool, attempts: int) -> AnalysisResult:
        flags   = [Flag.normalize(item.model_dump(), source = FlagSource.AI) for item in payload.flags]
        summary = payload.summary

        if truncated:
            summary = summary + ModelConfig.SUMMARY_TRUNCATION_NOTE.format(limit = self.max_chars)

        meta    = AnalyzerMeta(provider   = response.provider,
                               model      = response.model,
                               tokens_in  = response.tokens_in,
                               tokens_out = response.tokens_out,
                               latency_ms = response.latency_ms,
                               attempts   = attempts,
                              )

        log_event("ai_analysis_complete",
                  ai_provider   = meta.provider,
                  ai_model      = meta.model,
                  ai_tokens_in  = meta.tokens_in,
                  ai_tokens_out = meta.tokens_out,
                  ai_latency_ms = meta.latency_ms,
                  attempts      = attempts,
                  flag_count    = len(flags),
                  overall_risk  = payload.overall_risk,
                 )

        return AnalysisResult(overall_risk = Severity(payload.overall_risk),
                              summary      = summary,
                              flags        = [flag for flag in flags if flag is not None],
                              ai_ran       = True,
                              meta         = meta,
                             )


class AnalyzerRegistry:
    """
    Named analyzer factories; the implementation is chosen once, at startup, from configuration
    """
    def __init__(self):
        self._factories : Dict[str, Callable[..., AIAnalyzer]] = dict()


    def register(self, name: str, factory: Callable[..., AIAnalyzer]):
        self._factories[name.lower()] = factory


    def names(self) -> List[str]:
        return sorted(self._factories)


    def create(self, name: str, **kwargs: Any) -> AIAnalyzer:
        key = (name or "").lower()

        if key not in self._factories:
            raise ValueError(f"Unknown AI provider: {name!r}. Registered: {', '.join(self.names())}")

        return self._factories[key](**kwargs)


def _openai_analyzer(**kwargs) -> AIAnalyzer:
    llm_manager = kwargs.pop("llm_manager", None) or LLMManager(provider = LLMProvider.OPENAI)

    return LLMContractAnalyzer(llm_manager = llm_manager, **kwargs)


def _ollama_analyzer(**kwargs) -> AIAnalyzer:
    llm_manager = kwargs.pop("llm_manager", None) or LLMManager(provider = LLMProvider.OLLAMA)

    kwargs.setdefault("model", settings.OLLAMA_MODEL)
    kwargs.setdefault("fallback_models", [])

    return LLMContractAnalyzer(llm_manager = llm_manager, **kwargs)


def build_default_registry() -> AnalyzerRegistry:
    registry = AnalyzerRegistry()

    registry.register(LLMProvider.OPENAI.value, _openai_analyzer)
    registry.register(LLMProvider.OLLAMA.value, _ollama_analyzer)

    return registry


def create_analyzer(name: Optional[str] = None, registry: Optional[AnalyzerRegistry] = None, **kwargs: Any) -> AIAnalyzer:
    """
    Build the analyzer selected by `name` (default: settings.AI_PROVIDER)
    """
    registry = registry or build_default_registry()

    return registry.create(name or settings.AI_PROVIDER, **kwargs)
