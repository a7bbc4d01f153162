import pytest

from config.risk_rules import RiskRules
from services.data_models import Severity
from services.data_models import FlagSource
from services.clause_detector import RuleClauseDetector


@pytest.fixture
def detector():
    return RuleClauseDetector()


def test_auto_renewal_and_indemnity_scenario(detector):
    text   = ("This Agreement shall automatically renew for successive one-year terms... "
              "Developer agrees to indemnify and hold harmless Client...")
    result = detector.detect(text)

    severities = {flag.severity for flag in result.flags}

    assert len(result.flags) >= 2
    assert Severity.HIGH in severities
    assert Severity.LOW in severities
    assert result.overall_risk == Severity.HIGH

    indemnity = next(flag for flag in result.flags if "indemnify" in flag.clause)
    assert indemnity.clause == "Developer agrees to indemnify and hold harmless Client"
    assert indemnity.rationale == RiskRules.RATIONALE_MAP["indemn"]
    assert indemnity.source == FlagSource.RULE


def test_empty_text_yields_no_flags(detector):
    result = detector.detect("")

    assert result.flags == []
    assert result.overall_risk == Severity.LOW
    assert result.summary == RiskRules.SUMMARY_TEMPLATES["none"]


def test_non_string_input_is_treated_as_empty(detector):
    result = detector.detect(None)

    assert result.flags == []
    assert result.overall_risk == Severity.LOW


def test_each_pattern_fires_once(detector):
    text   = ("Vendor shall indemnify Client. The indemnification survives. "
              "Any indemnity claim must be notified. Vendor will indemnify again.")
    result = detector.detect(text)

    indemn_flags = [flag for flag in result.flags if flag.rationale == RiskRules.RATIONALE_MAP["indemn"]]

    assert len(indemn_flags) == 1
    assert indemn_flags[0].clause == "Vendor shall indemnify Client"


def test_medium_summary_template(detector):
    result = detector.detect("All disputes go to arbitration.")

    assert len(result.flags) == 1
    assert result.overall_risk == Severity.MEDIUM
    assert result.summary == RiskRules.SUMMARY_TEMPLATES["medium"].format(count = 1)


def test_long_sentence_is_truncated(detector):
    text   = "Any dispute shall be settled by arbitration " + ("under the applicable rules " * 20) + "."
    result = detector.detect(text)
    clause = result.flags[0].clause

    assert len(clause) == RuleClauseDetector.MAX_CLAUSE_LENGTH
    assert clause.endswith("...")


@pytest.mark.parametrize("text", ["Governing law is Delaware.",
                                  "Payment late fee applies. The warranty lasts one year.",
                                  "The non-compete lasts two years. Force majeure applies.",
                                  "Nothing to see here.",
                                 ])
def test_overall_risk_is_max_flag_severity(detector, text):
    result   = detector.detect(text)
    expected = Severity.highest((flag.severity for flag in result.flags), default = Severity.LOW)

    assert result.overall_risk == expected
