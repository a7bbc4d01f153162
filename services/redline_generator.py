# DEPENDENCIES
import json
import html
from typing import List
from typing import Optional
from difflib import SequenceMatcher
from config.settings import settings
from utils.logger import log_info
from utils.logger import log_warning
from config.model_config import ModelConfig
from services.data_models import DiffSegment
from services.data_models import RedlineResult
from utils.text_processor import TextProcessor
from model_manager.llm_manager import LLMManager


class RedlineGenerator:
    """
    Clause rewrites and their word-level redlines

    Rendering:
    - HTML   : deletions in <del>, insertions in <ins>, all literal text escaped first
    - Plain  : deletions as [-text-], insertions as {+text+}
    """
    def __init__(self, llm_manager: Optional[LLMManager] = None, model: Optional[str] = None):
        self.llm_manager = llm_manager
        self.model       = model or settings.REDLINE_MODEL or settings.OPENAI_MODEL


    @staticmethod
    def fallback_rewrite(clause: str, suggestion: str) -> str:
        """
        Deterministic rewrite: the clause with the suggestion appended in parentheses
        """
        return f"{clause} ({suggestion})"


    def rewrite(self, clause: str, suggestion: str, use_ai: bool = True) -> RedlineResult:
        """
        Rewrite a clause to implement a suggestion and redline the change

        Arguments:
        ----------
            clause     { str }  : Original clause text

            suggestion { str }  : Remediation to apply

            use_ai     { bool } : Ask the LLM for a rewrite (falls back to the deterministic rewrite on any failure)

        Returns:
        --------
            { RedlineResult } : Rewrite plus HTML and plain-text diffs
        """
        ai_text = None

        if use_ai and (self.llm_manager is not None) and self.llm_manager.available:
            ai_text = self._ai_rewrite(clause, suggestion)

        if ai_text is None:
            return self.redline(clause, self.fallback_rewrite(clause, suggestion))

        return self.redline(clause, ai_text, ai_rewrite = True)


    def redline(self, original: str, rewrite: str, ai_rewrite: bool = False) -> RedlineResult:
        """
        Word-level diff of `original` against `rewrite`
        """
        segments = self.diff_segments(original, rewrite)

        return RedlineResult(original   = original,
                             rewrite    = rewrite,
                             html       = self.render_html(segments),
                             plain_diff = self.render_plain(segments),
                             segments   = segments,
                             ai_rewrite = ai_rewrite,
                            )


    @staticmethod
    def diff_segments(original: str, rewrite: str) -> List[DiffSegment]:
        """
        Diff on word, whitespace and punctuation tokens; adjacent segments with the same op are coalesced
        """
        old_tokens = TextProcessor.tokenize_words(original)
        new_tokens = TextProcessor.tokenize_words(rewrite)
        matcher    = SequenceMatcher(None, old_tokens, new_tokens, autojunk = False)
        segments   = list()

        def push(op: str, tokens: List[str]):
            text = "".join(tokens)

            if not text:
                return

            if segments and (segments[-1].op == op):
                segments[-1] = DiffSegment(op = op, text = segments[-1].text + text)

            else:
                segments.append(DiffSegment(op = op, text = text))

        for tag, i1, i2, j1, j2 in matcher.get_opcodes():
            if (tag == "equal"):
                push("equal", old_tokens[i1:i2])

            else:
                # replace = delete then insert
                push("delete", old_tokens[i1:i2])
                push("insert", new_tokens[j1:j2])

        return segments


    @staticmethod
    def render_html(segments: List[DiffSegment]) -> str:
        parts = list()

        for segment in segments:
            escaped = html.escape(segment.text, quote = True)

            if (segment.op == "delete"):
                parts.append(f"<del>{escaped}</del>")

            elif (segment.op == "insert"):
                parts.append(f"<ins>{escaped}</ins>")

            else:
                parts.append(escaped)

        return "".join(parts)


    @staticmethod
    def render_plain(segments: List[DiffSegment]) -> str:
        parts = list()

        for segment in segments:
            if (segment.op == "delete"):
                parts.append(f"[-{segment.text}-]")

            elif (segment.op == "insert"):
                parts.append(f"{{+{segment.text}+}}")

            else:
                parts.append(segment.text)

        return "".join(parts)


    def _ai_rewrite(self, clause: str, suggestion: str) -> Optional[str]:
        generation = ModelConfig.get_generation_config("redline")
        response   = self.llm_manager.complete(prompt        = ModelConfig.REDLINE_USER_PROMPT.format(clause = clause, suggestion = suggestion),
                                               model         = self.model,
                                               system_prompt = ModelConfig.REDLINE_SYSTEM_PROMPT,
                                               temperature   = generation["temperature"],
                                               max_tokens    = generation["max_tokens"],
                                               json_mode     = True,
                                              )

        if not response.success:
            log_warning("AI rewrite failed, using fallback", component = "redline", ai_model = self.model, error_type = response.error_type)
            return None

        try:
            parsed = json.loads(response.text)

        except json.JSONDecodeError:
            log_warning("AI rewrite returned invalid JSON, using fallback", component = "redline", ai_model = response.model)
            return None

        rewrite = parsed.get("rewrite") if isinstance(parsed, dict) else None

        if not isinstance(rewrite, str) or not rewrite.strip():
            log_warning("AI rewrite missing, using fallback", component = "redline", ai_model = response.model)
            return None

        log_info("AI rewrite successful", component = "redline", ai_model = response.model, ai_latency_ms = response.latency_ms)

        return rewrite.strip()
