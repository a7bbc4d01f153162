# DEPENDENCIES
import re
from typing import List
from config.risk_rules import RiskRules
from services.data_models import Flag
from utils.logger import log_debug
from services.data_models import Severity
from services.data_models import FlagSource
from utils.text_processor import TextProcessor
from services.data_models import AnalysisResult


class RuleClauseDetector:
    """
    Pattern-based clause detection: the rule-only analyzer and the AI fallback

    Each catalog pattern fires at most once per document (first occurrence)
    """
    CONTEXT_WINDOW    = 120
    MAX_CLAUSE_LENGTH = 240


    def __init__(self, rules: RiskRules = None):
        self.rules     = rules or RiskRules()
        self._patterns = [(pattern, re.compile(re.escape(pattern), re.IGNORECASE)) for pattern in self.rules.PATTERNS]


    def detect(self, text: str) -> AnalysisResult:
        """
        Scan contract text for catalog phrases

        Arguments:
        ----------
            text { str } : Raw contract text

        Returns:
        --------
            { AnalysisResult } : Rule flags, overall risk (max severity, LOW when none) and templated summary
        """
        if not isinstance(text, str):
            text = ""

        flags    = list()
        segments = TextProcessor.sentence_segments(text)

        for pattern, regex in self._patterns:
            match = regex.search(text)

            if match is None:
                continue

            severity, rationale, suggestion = self.rules.rule_for(pattern)
            clause                          = self._clause_context(text, segments, match.start())

            flags.append(Flag(clause     = TextProcessor.truncate(clause, self.MAX_CLAUSE_LENGTH),
                              severity   = Severity(severity),
                              rationale  = rationale,
                              suggestion = suggestion,
                              source     = FlagSource.RULE,
                             ))

        overall_risk = Severity.highest((flag.severity for flag in flags), default = Severity.LOW)

        log_debug("Rule-based analysis complete", overall_risk = overall_risk.value, flag_count = len(flags))

        return AnalysisResult(overall_risk = overall_risk,
                              summary      = self._summarize(flags, overall_risk),
                              flags        = flags,
                             )


    def _clause_context(self, text: str, segments: list, index: int) -> str:
        """
        Enclosing sentence of the match, or a window around it when that sentence is blank
        """
        for segment in segments:
            if segment.start <= index < segment.end:
                if segment.text.strip():
                    return segment.text.strip()

                break

        return self._window(text, index)


    def _window(self, text: str, index: int) -> str:
        return text[max(0, index - self.CONTEXT_WINDOW):index + self.CONTEXT_WINDOW].strip()


    def _summarize(self, flags: List[Flag], overall_risk: Severity) -> str:
        templates = self.rules.SUMMARY_TEMPLATES

        if not flags:
            return templates["none"]

        return templates[overall_risk.value].format(count = len(flags))
