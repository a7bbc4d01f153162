import pytest

from services.data_models import Flag
from services.data_models import Severity
from services.data_models import FlagSource
from services.data_models import CLAUSE_MAX_LENGTH
from services.data_models import RATIONALE_MAX_LENGTH
from services.data_models import SUGGESTION_MAX_LENGTH


def test_missing_rationale_and_suggestion_default_to_empty():
    flag = Flag.normalize({"clause" : "Client may terminate at any time", "severity" : "medium"})

    assert flag.rationale == ""
    assert flag.suggestion == ""
    assert flag.context == ""
    assert flag.keywords == ()
    assert flag.span_start is None
    assert flag.span_end is None


def test_none_rationale_and_suggestion_default_to_empty():
    flag = Flag.normalize({"clause" : "Fees are due on receipt", "severity" : "low", "rationale" : None, "suggestion" : None})

    assert flag.rationale == ""
    assert flag.suggestion == ""


@pytest.mark.parametrize("raw_severity, expected", [("HIGH", Severity.HIGH),
                                                    (" Medium ", Severity.MEDIUM),
                                                    ("low", Severity.LOW),
                                                    ("critical", Severity.LOW),
                                                    (None, Severity.LOW),
                                                    (3, Severity.LOW),
                                                   ])
def test_severity_is_parsed_with_low_fallback(raw_severity, expected):
    flag = Flag.normalize({"clause" : "Some clause", "severity" : raw_severity})

    assert flag.severity == expected


@pytest.mark.parametrize("raw", [{"clause" : ""},
                                 {"clause" : "   \n "},
                                 {"clause" : None, "severity" : "high"},
                                 {"severity" : "high", "rationale" : "No clause text"},
                                ])
def test_clauseless_flags_are_dropped(raw):
    assert Flag.normalize(raw) is None


def test_blank_flag_instance_is_dropped():
    assert Flag.normalize(Flag(clause = "  ", severity = Severity.HIGH)) is None


@pytest.mark.parametrize("raw", [None, "indemnify", ["clause", "severity"], 42])
def test_non_mapping_input_is_dropped(raw):
    assert Flag.normalize(raw) is None


def test_text_fields_are_clipped_to_bounds():
    flag = Flag.normalize({"clause"     : "c" * 700,
                           "severity"   : "high",
                           "rationale"  : "r" * 500,
                           "suggestion" : "s" * 500,
                          })

    assert len(flag.clause) == CLAUSE_MAX_LENGTH == 600
    assert len(flag.rationale) == RATIONALE_MAX_LENGTH == 400
    assert len(flag.suggestion) == SUGGESTION_MAX_LENGTH == 400


def test_clause_is_stripped():
    assert Flag.normalize({"clause" : "  Late fees apply.  "}).clause == "Late fees apply."


def test_boolean_spans_are_rejected():
    flag = Flag.normalize({"clause" : "Some clause", "span_start" : True, "span_end" : False})

    assert flag.span_start is None
    assert flag.span_end is None


def test_integer_spans_are_kept():
    flag = Flag.normalize({"clause" : "Some clause", "span_start" : 10, "span_end" : 21})

    assert (flag.span_start, flag.span_end) == (10, 21)


def test_keywords_and_source():
    flag = Flag.normalize({"clause" : "Some clause", "keywords" : ["payment", "", "financial"], "source" : "ai"})

    assert flag.keywords == ("payment", "financial")
    assert flag.source == FlagSource.AI
    assert Flag.normalize({"clause" : "Some clause", "source" : "bogus", "keywords" : "payment"}).source is None
    assert Flag.normalize({"clause" : "Some clause", "keywords" : "payment"}).keywords == ()


def test_public_dict_hides_source():
    payload = Flag.normalize({"clause" : "Some clause", "severity" : "high"}, source = FlagSource.RULE).to_dict()

    assert payload["severity"] == "high"
    assert "source" not in payload


def test_highest_severity():
    assert Severity.highest([Severity.LOW, "high", "medium"]) == Severity.HIGH
    assert Severity.highest([]) == Severity.LOW
    assert Severity.highest([], default = Severity.MEDIUM) == Severity.MEDIUM
