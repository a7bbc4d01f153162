import pytest

from services.data_models import Flag
from services.data_models import Severity
from services.keyword_highlighter import KeywordHighlighter


@pytest.fixture
def highlighter():
    return KeywordHighlighter()


def test_keywords_include_severity_and_topic_tags(highlighter):
    flag     = Flag(clause = "Developer shall indemnify Client", severity = Severity.HIGH, rationale = "Unlimited liability exposure")
    keywords = highlighter.keywords_for(flag)

    assert "critical" in keywords
    assert "liability" in keywords
    assert "indemnification" in keywords
    assert len(keywords) == len(set(keywords))


def test_low_severity_tag(highlighter):
    keywords = highlighter.keywords_for(Flag(clause = "Something neutral", severity = Severity.LOW))

    assert keywords == ["minor issue", "advisory"]


def test_tag_sets_keywords_on_copy(highlighter):
    flag   = Flag(clause = "All fees are payable in advance", severity = Severity.MEDIUM)
    tagged = highlighter.tag(flag)

    assert "payment" in tagged.keywords
    assert "caution" in tagged.keywords
    assert flag.keywords == ()


def test_highlight_noops_on_empty_input():
    assert KeywordHighlighter.highlight("", ["liability"]) == ""
    assert KeywordHighlighter.highlight("Some liability text", []) == "Some liability text"


def test_highlight_prefers_longest_keyword():
    marked = KeywordHighlighter.highlight("The governing law applies", ["law", "governing law"])

    assert marked == "The <mark>governing law</mark> applies"


def test_highlight_matches_whole_words_case_insensitively():
    assert KeywordHighlighter.highlight("lawful law", ["law"]) == "lawful <mark>law</mark>"
    assert KeywordHighlighter.highlight("CRITICAL issue", ["critical"]) == "<mark>CRITICAL</mark> issue"


def test_highlight_escapes_special_characters():
    assert KeywordHighlighter.highlight("Pay $5 (fee) now", ["(fee)"]) == "Pay $5 <mark>(fee)</mark> now"
    assert KeywordHighlighter.highlight("a+b or aab", ["a+b"]) == "<mark>a+b</mark> or aab"
