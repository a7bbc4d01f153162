# DEPENDENCIES
import openai
from typing import Any
from typing import List
from typing import Optional
from config.settings import settings
from utils.logger import log_info
from utils.logger import log_error
from utils.logger import log_warning
from services.data_models import ModerationResult


def format_moderation_message(categories: List[str]) -> str:
    """
    User-facing text for a blocked submission
    """
    return (f"We can't analyze this text because it triggers safety filters (categories: {', '.join(categories)}). "
            "Please remove sensitive content and try again.")


class ModerationChecker:
    """
    Pre-flight safety check in front of the AI path

    Only a leading sample of the text is sent. Moderation models are tried in order; a
    transport error or a malformed reply moves on to the next model, and when every one
    fails the check fails open and the result is marked degraded. The sample and the
    verdict are never written to the logs.
    """
    def __init__(self, api_key: Optional[str] = None, models: Optional[List[str]] = None, sample_chars: Optional[int] = None,
                 timeout: Optional[float] = None, enabled: Optional[bool] = None, provider: Optional[str] = None, client: Any = None):
        self.api_key      = api_key or settings.OPENAI_API_KEY
        self.models       = list(models or settings.MODERATION_MODELS)
        self.sample_chars = sample_chars or settings.MODERATION_SAMPLE_CHARS
        self.timeout      = timeout or settings.MODERATION_TIMEOUT
        self.enabled      = settings.MODERATION_ENABLED if enabled is None else enabled
        self.provider     = (provider or settings.AI_PROVIDER).lower()
        self._client      = client

        if (self._client is None) and self.api_key:
            self._client = openai.OpenAI(api_key     = self.api_key,
                                         base_url    = settings.OPENAI_BASE_URL,
                                         timeout     = self.timeout,
                                         max_retries = 0,
                                        )


    @property
    def active(self) -> bool:
        """
        Moderation only guards the hosted OpenAI provider
        """
        return self.enabled and (self.provider == "openai")


    def check(self, text: str) -> ModerationResult:
        """
        Classify a text sample

        Arguments:
        ----------
            text { str } : Contract text (only the first `sample_chars` characters are sent)

        Returns:
        --------
            { ModerationResult } : flagged + categories, degraded when the check could not run
        """
        if not self.active:
            return ModerationResult(flagged = False)

        if self._client is None:
            log_warning("Moderation skipped: no API key configured", component = "moderation", degraded = True)
            return ModerationResult(flagged = False, degraded = True)

        sample = (text or "")[:self.sample_chars]

        for model in self.models:
            try:
                result = self._parse(self._request(sample, model))

            except (openai.OpenAIError, ValueError) as e:
                log_error(e, context = {"component" : "moderation", "operation" : "check", "ai_model" : model})
                continue

            log_info("Moderation check complete", component = "moderation", ai_model = model)

            return result

        log_warning("Moderation failed, allowing content through", component = "moderation", degraded = True)

        return ModerationResult(flagged = False, degraded = True)


    def _request(self, sample: str, model: str) -> Any:
        response = self._client.moderations.create(model = model, input = sample)

        # Category names keep their API spelling ("hate/threatening")
        return response.model_dump(by_alias = True) if hasattr(response, "model_dump") else response


    @staticmethod
    def _parse(body: Any) -> ModerationResult:
        """
        Verdict from a moderation reply; raises ValueError when the reply has an unexpected shape
        """
        if not isinstance(body, dict):
            raise ValueError("Moderation reply is not an object")

        results = body.get("results")

        if not isinstance(results, list):
            raise ValueError("Moderation reply has no results list")

        if not results:
            return ModerationResult(flagged = False)

        first = results[0]

        if not isinstance(first, dict):
            raise ValueError("Moderation result is not an object")

        if not first.get("flagged"):
            return ModerationResult(flagged = False)

        categories = first.get("categories") or {}

        if not isinstance(categories, dict):
            raise ValueError("Moderation categories are not a mapping")

        return ModerationResult(flagged = True, categories = [name for name, hit in categories.items() if hit])
