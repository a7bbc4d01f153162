import pytest

from services.data_models import Flag
from services.data_models import Severity
from services.data_models import FlagSource
from services.data_models import AnalysisResult
from services.result_merger import ResultMerger


def _result(flags, overall_risk = Severity.LOW, summary = "summary"):
    return AnalysisResult(overall_risk = overall_risk, summary = summary, flags = flags)


def _flag(clause, severity, rationale = "", suggestion = "", source = FlagSource.RULE):
    return Flag(clause = clause, severity = severity, rationale = rationale, suggestion = suggestion, source = source)


@pytest.fixture
def merger():
    return ResultMerger()


def test_colliding_flags_are_merged(merger):
    rule   = _result([_flag("Developer agrees to indemnify Client", Severity.MEDIUM, "rule why", "rule fix")], Severity.MEDIUM, "rule summary")
    ai     = _result([_flag("developer  agrees to INDEMNIFY client", Severity.HIGH, "ai why", "", FlagSource.AI)], Severity.HIGH, "ai summary")
    merged = merger.merge(rule, ai)

    assert len(merged.flags) == 1

    flag = merged.flags[0]

    assert flag.clause == "developer  agrees to INDEMNIFY client"
    assert flag.severity == Severity.HIGH
    assert flag.rationale == "ai why"
    assert flag.suggestion == "rule fix"
    assert merged.overall_risk == Severity.HIGH
    assert merged.summary == "ai summary"
    assert merged.ai_ran is True
    assert merged.ai_fallback_used is False


def test_merge_never_downgrades_severity(merger):
    rule   = _result([_flag("The liability cap is one month of fees", Severity.HIGH)], Severity.HIGH)
    ai     = _result([_flag("The liability cap is one month of fees", Severity.LOW, "minor", "", FlagSource.AI)], Severity.LOW)
    merged = merger.merge(rule, ai)

    assert merged.flags[0].severity == Severity.HIGH
    assert merged.overall_risk == Severity.HIGH


def test_longer_rule_clause_is_kept(merger):
    clause = "Either party may terminate this Agreement for convenience on thirty days notice " * 2
    rule   = _result([_flag(clause + "in writing", Severity.MEDIUM)])
    ai     = _result([_flag(clause, Severity.MEDIUM, source = FlagSource.AI)])
    merged = merger.merge(rule, ai)

    assert len(clause) > merger.KEY_LENGTH
    assert len(merged.flags) == 1
    assert merged.flags[0].clause == clause + "in writing"


def test_distinct_flags_are_unioned_in_order(merger):
    rule   = _result([_flag("Rule clause one", Severity.LOW), _flag("Rule clause two", Severity.MEDIUM)], Severity.MEDIUM)
    ai     = _result([_flag("AI clause", Severity.LOW, source = FlagSource.AI)], Severity.LOW)
    merged = merger.merge(rule, ai)

    assert [flag.clause for flag in merged.flags] == ["Rule clause one", "Rule clause two", "AI clause"]
    assert len(merged.flags) <= len(rule.flags) + len(ai.flags)


def test_overall_risk_is_commutative(merger):
    low  = _result([], Severity.LOW)
    high = _result([], Severity.HIGH)

    assert merger.merge(low, high).overall_risk == merger.merge(high, low).overall_risk == Severity.HIGH


def test_empty_ai_summary_keeps_rule_summary(merger):
    merged = merger.merge(_result([], summary = "rule summary"), _result([], summary = "  "))

    assert merged.summary == "rule summary"


def test_passthrough_marks_fallback(merger):
    rule   = _result([_flag("Rule clause", Severity.LOW)])
    result = merger.passthrough(rule)

    assert result.flags == rule.flags
    assert result.ai_ran is False
    assert result.ai_fallback_used is True
