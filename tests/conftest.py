# DEPENDENCIES
import json
import pytest
from typing import List
from dataclasses import replace
from services.data_models import Flag
from services.data_models import Severity
from services.data_models import FlagSource
from services.data_models import AnalyzerMeta
from services.data_models import AnalysisResult
from services.data_models import ModerationResult
from model_manager.llm_manager import LLMProvider
from model_manager.llm_manager import LLMResponse


SAMPLE_CONTRACT = ("This Agreement shall automatically renew for successive one-year terms. "
                   "Developer agrees to indemnify and hold harmless Client.")


def ok_response(payload, model: str = "gpt-4o-mini") -> LLMResponse:
    text = payload if isinstance(payload, str) else json.dumps(payload)

    return LLMResponse(text = text, provider = "openai", model = model, tokens_in = 120, tokens_out = 40, latency_ms = 15, success = True)


def failed_response(model: str = "gpt-4o-mini") -> LLMResponse:
    return LLMResponse(text          = "",
                       provider      = "openai",
                       model         = model,
                       tokens_in     = None,
                       tokens_out    = None,
                       latency_ms    = 3,
                       success       = False,
                       error_message = "connection reset",
                       error_type    = "APIConnectionError",
                      )


def analysis_payload(flags = None, overall_risk: str = "high", summary: str = "AI summary") -> dict:
    return {"overall_risk" : overall_risk,
            "summary"      : summary,
            "flags"        : flags if flags is not None else [{"clause"     : "Developer agrees to indemnify and hold harmless Client",
                                                               "severity"   : "high",
                                                               "rationale"  : "AI rationale",
                                                               "suggestion" : "AI suggestion",
                                                              }],
           }


class FakeLLMManager:
    """
    Scripted LLM transport: replies are consumed in order, failures once exhausted
    """
    def __init__(self, responses: List[LLMResponse] = None, provider: LLMProvider = LLMProvider.OPENAI, available: bool = True):
        self.provider   = provider
        self.responses  = list(responses or [])
        self.calls      = list()
        self._available = available

    @property
    def available(self) -> bool:
        return self._available

    def complete(self, prompt, model = None, system_prompt = None, **kwargs) -> LLMResponse:
        self.calls.append({"prompt" : prompt, "model" : model, "system_prompt" : system_prompt, **kwargs})

        if not self.responses:
            return failed_response(model or "unknown")

        return replace(self.responses.pop(0), model = model or "unknown")


class FakeAnalyzer:
    name = "fake"

    def __init__(self, result: AnalysisResult = None, error: Exception = None):
        self.result = result
        self.error  = error
        self.calls  = 0

    def analyze(self, text):
        self.calls += 1

        if self.error is not None:
            raise self.error

        return self.result


class FakeModeration:
    def __init__(self, verdict: ModerationResult):
        self.verdict = verdict
        self.calls   = 0

    def check(self, text):
        self.calls += 1
        return self.verdict


@pytest.fixture
def ai_result() -> AnalysisResult:
    return AnalysisResult(overall_risk = Severity.HIGH,
                          summary      = "AI summary",
                          flags        = [Flag(clause     = "Developer agrees to indemnify and hold harmless Client",
                                               severity   = Severity.HIGH,
                                               rationale  = "AI rationale",
                                               suggestion = "AI suggestion",
                                               source     = FlagSource.AI,
                                              ),
                                          Flag(clause     = "Client may terminate at any time",
                                               severity   = Severity.MEDIUM,
                                               rationale  = "One-sided termination",
                                               suggestion = "Require notice",
                                               source     = FlagSource.AI,
                                              ),
                                         ],
                          ai_ran       = True,
                          meta         = AnalyzerMeta(provider = "openai", model = "gpt-4o-mini", tokens_in = 10, tokens_out = 5, latency_ms = 7),
                         )
