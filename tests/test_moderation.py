import httpx
import openai
import pytest

from config.settings import settings
from services.moderation import ModerationChecker
from services.moderation import format_moderation_message


MODERATION_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/moderations")


class FakeModerationResponse:
    def __init__(self, body):
        self.body = body

    def model_dump(self, by_alias = False):
        return self.body


class FakeModerations:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls    = list()

    def create(self, model, input):
        self.calls.append({"model" : model, "input" : input})
        outcome = self.outcomes.pop(0)

        if isinstance(outcome, Exception):
            raise outcome

        return FakeModerationResponse(outcome)


class FakeOpenAIClient:
    def __init__(self, outcomes):
        self.moderations = FakeModerations(outcomes)


FLAGGED = {"results" : [{"flagged" : True, "categories" : {"violence" : True, "hate/threatening" : False}}]}
CLEAN   = {"results" : [{"flagged" : False, "categories" : {"violence" : False}}]}


def _checker(client, **kwargs):
    kwargs.setdefault("api_key", "test-key")
    kwargs.setdefault("provider", "openai")
    kwargs.setdefault("enabled", True)

    return ModerationChecker(client = client, models = ["omni-moderation-latest", "text-moderation-latest"], **kwargs)


def test_flagged_categories_are_reported():
    client = FakeOpenAIClient([FLAGGED])
    result = _checker(client).check("some text")

    assert result.flagged is True
    assert result.categories == ["violence"]
    assert result.degraded is False
    assert client.moderations.calls[0]["model"] == "omni-moderation-latest"


def test_clean_text_passes():
    result = _checker(FakeOpenAIClient([CLEAN])).check("some text")

    assert result.flagged is False
    assert result.categories == []


def test_falls_back_to_second_model():
    client = FakeOpenAIClient([openai.APIConnectionError(request = MODERATION_REQUEST), FLAGGED])
    result = _checker(client).check("some text")

    assert [call["model"] for call in client.moderations.calls] == ["omni-moderation-latest", "text-moderation-latest"]
    assert result.flagged is True


def test_fails_open_when_every_model_fails():
    client = FakeOpenAIClient([openai.APIConnectionError(request = MODERATION_REQUEST), openai.APITimeoutError(request = MODERATION_REQUEST)])
    result = _checker(client).check("some text")

    assert result.flagged is False
    assert result.degraded is True


def test_malformed_reply_moves_to_next_model():
    client = FakeOpenAIClient([{"results" : ["x"]}, FLAGGED])
    result = _checker(client).check("some text")

    assert len(client.moderations.calls) == 2
    assert result.flagged is True
    assert result.categories == ["violence"]


@pytest.mark.parametrize("body", [{"results" : ["x"]},
                                  {"results" : "nope"},
                                  {"results" : [{"flagged" : True, "categories" : ["violence"]}]},
                                  ["not", "an", "object"],
                                 ])
def test_malformed_replies_fail_open(body):
    result = _checker(FakeOpenAIClient([body, body])).check("some text")

    assert result.flagged is False
    assert result.degraded is True


def test_only_a_sample_is_sent():
    client = FakeOpenAIClient([CLEAN])

    _checker(client, sample_chars = 10).check("x" * 50)

    assert client.moderations.calls[0]["input"] == "x" * 10


def test_skipped_for_other_providers():
    client = FakeOpenAIClient([])
    result = _checker(client, provider = "ollama").check("some text")

    assert result.flagged is False
    assert result.degraded is False
    assert client.moderations.calls == []


def test_missing_key_is_degraded(monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", None)

    result = ModerationChecker(api_key = None, provider = "openai", enabled = True).check("some text")

    assert result.flagged is False
    assert result.degraded is True


def test_moderation_message_lists_categories():
    message = format_moderation_message(["violence", "hate"])

    assert "categories: violence, hate" in message
    assert message.startswith("We can't analyze this text")
