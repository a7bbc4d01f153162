import pytest

from services.data_models import Flag
from services.data_models import Severity
from services.span_locator import SpanLocator


@pytest.fixture
def locator():
    return SpanLocator()


def test_exact_match_returns_offsets(locator):
    source   = "Preamble. The Client SHALL pay all invoices within 30 days. Signatures follow."
    clause   = "the client shall pay all invoices within 30 days"
    location = locator.locate(source, clause)

    assert location.found
    assert source[location.start:location.end].lower() == clause
    assert location.context == source


def test_exact_match_context_is_padded_and_marked(locator):
    source   = ("x" * 300) + " Confidential information stays private. " + ("y" * 300)
    clause   = "Confidential information stays private."
    location = locator.locate(source, clause)

    assert location.context.startswith("...")
    assert location.context.endswith("...")
    assert clause in location.context
    assert len(location.context) == 150 + len(clause) + 150 + 6


def test_middle_words_match(locator):
    source   = ("Preamble text. The Developer shall deliver all source code and documentation "
                "to the Client within ten business days of completion. End.")
    clause   = ("Contractor shall deliver all source code and documentation to the Client "
                "within ten business days of completion")
    location = locator.locate(source, clause)

    assert location.found
    assert source[location.start:location.end] == "deliver all source code and documentation to the Client within ten business"


def test_middle_words_match_tolerates_whitespace(locator):
    source   = ("The Developer shall deliver all source code and\ndocumentation to the Client "
                "within ten business days of completion.")
    clause   = ("Contractor shall deliver all source code and documentation to the Client "
                "within ten business days of completion")
    location = locator.locate(source, clause)

    assert location.found
    assert source[location.start:location.end].startswith("deliver all source code and\ndocumentation")


def test_keyword_sentence_fallback(locator):
    source   = "Hello there. This agreement includes arbitration in Paris. Goodbye now."
    location = locator.locate(source, "A paraphrased clause about disputes")
    sentence = "This agreement includes arbitration in Paris."

    assert location.start == source.index(sentence)
    assert location.end == location.start + len(sentence)
    assert location.context == "Hello there. This agreement includes arbitration in Paris. Goodbye now."


def test_null_span_fallback(locator):
    location = locator.locate("Nothing relevant here.", "z" * 250)

    assert location.start is None
    assert location.end is None
    assert location.context == ("z" * 200) + "..."


@pytest.mark.parametrize("source, clause", [("", "clause"), ("source", ""), (None, "clause"), ("source", None)])
def test_empty_inputs_never_raise(locator, source, clause):
    location = locator.locate(source, clause)

    assert location.start is None
    assert location.context == ""


def test_enrich_fills_span_fields(locator):
    source = "The parties agree. Governing law is the State of Delaware."
    flag   = Flag(clause = "Governing law is the State of Delaware.", severity = Severity.LOW)
    result = locator.enrich(source, flag)

    assert result.span_start == source.index("Governing")
    assert result.span_end == len(source)
    assert result.context == source
    assert flag.span_start is None
