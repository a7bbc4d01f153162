import pytest

from conftest import ok_response
from conftest import FakeLLMManager
from conftest import failed_response
from conftest import analysis_payload
from services.data_models import Severity
from services.data_models import FlagSource
from config.model_config import ModelConfig
from services.ai_analyzer import AnalyzerRegistry
from services.errors import AIUnavailableError
from services.ai_analyzer import LLMContractAnalyzer
from services.errors import SchemaViolationError
from services.ai_analyzer import build_default_registry
from model_manager.llm_manager import LLMProvider


def _analyzer(llm, **kwargs):
    kwargs.setdefault("model", "primary-model")
    kwargs.setdefault("fallback_models", ["fallback-a", "fallback-b"])

    return LLMContractAnalyzer(llm_manager = llm, **kwargs)


def test_valid_reply_on_first_attempt():
    llm    = FakeLLMManager([ok_response(analysis_payload())])
    result = _analyzer(llm).analyze("Developer agrees to indemnify and hold harmless Client.")

    assert len(llm.calls) == 1
    assert llm.calls[0]["model"] == "primary-model"
    assert llm.calls[0]["json_schema"] == ModelConfig.ANALYSIS_SCHEMA
    assert result.ai_ran is True
    assert result.overall_risk == Severity.HIGH
    assert result.summary == "AI summary"
    assert result.flags[0].source == FlagSource.AI
    assert result.meta.model == "primary-model"
    assert result.meta.tokens_in == 120
    assert result.meta.attempts == 1


def test_schema_violation_is_retried_once_with_instruction():
    llm    = FakeLLMManager([ok_response({"overall_risk" : "extreme"}), ok_response(analysis_payload())])
    result = _analyzer(llm).analyze("Some contract text.")

    assert len(llm.calls) == 2
    assert [call["model"] for call in llm.calls] == ["primary-model", "primary-model"]
    assert ModelConfig.SCHEMA_RETRY_INSTRUCTION not in llm.calls[0]["system_prompt"]
    assert ModelConfig.SCHEMA_RETRY_INSTRUCTION in llm.calls[1]["system_prompt"]
    assert result.meta.attempts == 2


def test_falls_over_to_next_model_after_two_failures():
    llm    = FakeLLMManager([failed_response(), failed_response(), ok_response(analysis_payload())])
    result = _analyzer(llm).analyze("Some contract text.")

    assert [call["model"] for call in llm.calls] == ["primary-model", "primary-model", "fallback-a"]
    assert result.meta.model == "fallback-a"
    assert result.meta.attempts == 3


def test_all_models_failing_raises_unavailable():
    llm = FakeLLMManager([ok_response("not json")] * 6)

    with pytest.raises(AIUnavailableError) as excinfo:
        _analyzer(llm).analyze("Some contract text.")

    assert [call["model"] for call in llm.calls] == ["primary-model", "primary-model", "fallback-a", "fallback-a", "fallback-b", "fallback-b"]
    assert len(excinfo.value.attempts) == 6
    assert {attempt["error_code"] for attempt in excinfo.value.attempts} == {"SCHEMA_VIOLATION"}


def test_unconfigured_provider_makes_no_calls():
    llm = FakeLLMManager([ok_response(analysis_payload())], available = False)

    with pytest.raises(AIUnavailableError):
        _analyzer(llm).analyze("Some contract text.")

    assert llm.calls == []


def test_time_budget_stops_retries():
    ticks = iter([0.0, 0.0, 100.0])
    llm   = FakeLLMManager([failed_response()])

    with pytest.raises(AIUnavailableError):
        _analyzer(llm, total_timeout = 10.0, clock = lambda: next(ticks)).analyze("Some contract text.")

    assert len(llm.calls) == 1


def test_long_input_is_truncated_with_notes():
    llm    = FakeLLMManager([ok_response(analysis_payload())])
    result = _analyzer(llm, max_chars = 100).analyze("a" * 150)

    assert llm.calls[0]["prompt"].endswith("a" * 100 + ModelConfig.TRUNCATION_NOTE)
    assert result.summary == "AI summary" + ModelConfig.SUMMARY_TRUNCATION_NOTE.format(limit = 100)


def test_parse_payload_strips_code_fences():
    payload = LLMContractAnalyzer.parse_payload('```json\n{"overall_risk": "low", "summary": "ok", "flags": []}\n```')

    assert payload.overall_risk == "low"
    assert payload.flags == []


@pytest.mark.parametrize("reply", ['{"overall_risk": "low", "summary": "ok", "flags": [], "extra": 1}',
                                   '{"overall_risk": "low", "summary": "ok", "flags": [{"clause": "x", "severity": "critical", "rationale": "r", "suggestion": "s"}]}',
                                   '{"overall_risk": "low", "summary": "", "flags": []}',
                                   '["not", "an", "object"]',
                                   'plain text',
                                  ])
def test_parse_payload_rejects_malformed_replies(reply):
    with pytest.raises(SchemaViolationError):
        LLMContractAnalyzer.parse_payload(reply)


def test_default_registry_builds_ollama_analyzer():
    llm      = FakeLLMManager(provider = LLMProvider.OLLAMA)
    analyzer = build_default_registry().create("ollama", llm_manager = llm)

    assert isinstance(analyzer, LLMContractAnalyzer)
    assert analyzer.name == "ollama"
    assert analyzer.models == [analyzer.model]


def test_registry_rejects_unknown_provider():
    with pytest.raises(ValueError):
        AnalyzerRegistry().create("nope")
