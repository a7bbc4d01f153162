# DEPENDENCIES
import re
from typing import List
from dataclasses import dataclass


@dataclass(frozen = True)
class Sentence:
    """
    Sentence text with its character offsets in the source
    """
    text  : str
    start : int
    end   : int


class TextProcessor:
    """
    Text processing and normalization utilities
    """
    # Runs of text between sentence terminators
    _SEGMENT_PATTERN  = re.compile(r'[^.!?]+')

    # Sentence = shortest run ending in terminators (plus closing quotes/brackets) or end of line
    _SENTENCE_PATTERN = re.compile(r'[^\n]*?(?:[.!?]+[\'"’”)\]]*(?=\s|$)|(?=\n)|$)')

    # Word-level diff tokens: word runs, whitespace runs, single punctuation marks
    _TOKEN_PATTERN    = re.compile(r'\w+|\s+|[^\w\s]')


    @staticmethod
    def normalize_text(text: str, lowercase: bool = True) -> str:
        """
        Normalize text for matching

        Arguments:
        ----------
            text      { str }  : Input text

            lowercase { bool } : Convert to lowercase

        Returns:
        --------
                { str }        : Whitespace-collapsed text
        """
        if lowercase:
            text = text.lower()

        return re.sub(r'\s+', ' ', text).strip()


    @staticmethod
    def clause_key(clause: str, length: int = 140) -> str:
        """
        De-duplication key: lowercased, whitespace collapsed, clipped to `length`
        """
        return re.sub(r'\s+', ' ', (clause or "").lower())[:length]


    @staticmethod
    def truncate(text: str, limit: int, ellipsis: str = "...", include_ellipsis: bool = True) -> str:
        """
        Clip text to `limit` characters with an ellipsis marker

        Arguments:
        ----------
            text             { str }  : Input text

            limit            { int }  : Maximum length

            ellipsis         { str }  : Marker appended when clipped

            include_ellipsis { bool } : If True the result (marker included) fits in `limit`,
                                        otherwise `limit` characters are kept and the marker appended
        """
        if len(text) <= limit:
            return text

        if include_ellipsis:
            return text[:max(0, limit - len(ellipsis))] + ellipsis

        return text[:limit] + ellipsis


    @classmethod
    def sentence_segments(cls, text: str) -> List[Sentence]:
        """
        Split on runs of `.`, `!`, `?`; segments keep their raw (untrimmed) text and offsets
        """
        return [Sentence(text = match.group(), start = match.start(), end = match.end()) for match in cls._SEGMENT_PATTERN.finditer(text)]


    @classmethod
    def split_sentences(cls, text: str) -> List[Sentence]:
        """
        Sentence boundary detection honouring terminators and newlines

        Returned sentences are stripped of surrounding whitespace and their offsets
        point at the stripped text, so `text[s.start:s.end] == s.text`
        """
        if not text or not text.strip():
            return list()

        sentences = list()

        for match in cls._SENTENCE_PATTERN.finditer(text):
            raw = match.group()

            if not raw.strip():
                continue

            leading = len(raw) - len(raw.lstrip())
            start   = match.start() + leading
            value   = raw.strip()

            sentences.append(Sentence(text = value, start = start, end = start + len(value)))

        return sentences


    @classmethod
    def tokenize_words(cls, text: str) -> List[str]:
        """
        Tokens for word-level diffing; concatenating them reproduces `text`
        """
        return cls._TOKEN_PATTERN.findall(text or "")

