# DEPENDENCIES
import re
from typing import Optional
from config.risk_rules import RiskRules
from services.data_models import Flag
from utils.text_processor import TextProcessor
from services.data_models import SpanLocation


class SpanLocator:
    """
    Best-effort localization of a clause inside its source document

    Tiers, first success wins:
    1. Exact case-insensitive match of the trimmed clause
    2. Middle 12-word slice of the clause (clauses of 12+ words only)
    3. First source sentence containing a risk keyword, with one neighbour each side as context
    Falls back to a null span whose context is the truncated clause itself
    """
    CONTEXT_PADDING      = 150
    MIDDLE_WORDS         = 12
    NULL_CONTEXT_LENGTH  = 200


    def __init__(self, keywords = None):
        self.keywords = tuple(k.lower() for k in (keywords or RiskRules.SPAN_KEYWORDS))


    def locate(self, source: str, clause: str) -> SpanLocation:
        """
        Locate `clause` in `source`

        Arguments:
        ----------
            source { str } : Original contract text

            clause { str } : Clause text to find (may be paraphrased)

        Returns:
        --------
            { SpanLocation } : start/end offsets (None when not found) and a display context
        """
        if not source or not clause or not isinstance(source, str) or not isinstance(clause, str):
            return SpanLocation(start = None, end = None, context = "")

        needle = clause.strip()

        if needle:
            exact = self._search(source, needle)

            if exact is not None:
                return exact

            middle = self._middle_words(needle)

            if middle is not None:
                partial = self._search(source, middle, whitespace_tolerant = True)

                if partial is not None:
                    return partial

        keyword_hit = self._keyword_sentence(source)

        if keyword_hit is not None:
            return keyword_hit

        return SpanLocation(start   = None,
                            end     = None,
                            context = TextProcessor.truncate(clause, self.NULL_CONTEXT_LENGTH, include_ellipsis = False),
                           )


    def enrich(self, source: str, flag: Flag) -> Flag:
        """
        Copy of `flag` with span offsets and context filled in
        """
        location = self.locate(source, flag.clause)

        return flag.with_updates(span_start = location.start,
                                 span_end   = location.end,
                                 context    = location.context,
                                )


    def _search(self, source: str, needle: str, whitespace_tolerant: bool = False) -> Optional[SpanLocation]:
        if whitespace_tolerant:
            pattern = r"\s+".join(re.escape(word) for word in needle.split())

        else:
            pattern = re.escape(needle)

        match = re.search(pattern, source, re.IGNORECASE)

        if match is None:
            return None

        return SpanLocation(start   = match.start(),
                            end     = match.end(),
                            context = self.padded_context(source, match.start(), match.end()),
                           )


    def _middle_words(self, needle: str) -> Optional[str]:
        """
        Middle contiguous slice of words; skips boilerplate that extraction tends to alter
        """
        words = needle.split()

        if (len(words) < self.MIDDLE_WORDS):
            return None

        offset = (len(words) - self.MIDDLE_WORDS) // 2

        return " ".join(words[offset:offset + self.MIDDLE_WORDS])


    def _keyword_sentence(self, source: str) -> Optional[SpanLocation]:
        sentences = TextProcessor.split_sentences(source)

        for index, sentence in enumerate(sentences):
            lowered = sentence.text.lower()

            if not any(keyword in lowered for keyword in self.keywords):
                continue

            window  = sentences[max(0, index - 1):index + 2]
            context = " ".join(item.text for item in window).strip()

            return SpanLocation(start = sentence.start, end = sentence.end, context = context)

        return None


    def padded_context(self, source: str, start: int, end: int, padding: int = None) -> str:
        """
        Source excerpt around [start, end), with `...` where the excerpt was clamped
        """
        padding       = self.CONTEXT_PADDING if padding is None else padding
        context_start = max(0, start - padding)
        context_end   = min(len(source), end + padding)
        context       = source[context_start:context_end]

        if (context_start > 0):
            context = "..." + context

        if (context_end < len(source)):
            context = context + "..."

        return context.strip()
