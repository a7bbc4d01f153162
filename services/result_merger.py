# DEPENDENCIES
from typing import Dict
from services.data_models import Flag
from utils.logger import log_debug
from services.data_models import Severity
from services.data_models import FlagSource
from utils.text_processor import TextProcessor
from services.data_models import AnalysisResult


class ResultMerger:
    """
    Combine rule and AI results into one de-duplicated flag set

    Flags are keyed by their normalized clause prefix. On a key collision the longer
    clause is kept, AI rationale/suggestion win when non-empty, and severity resolves
    to the higher of the two with ties going to the AI flag.
    """
    KEY_LENGTH = 140


    def __init__(self, key_length: int = None):
        self.key_length = key_length or self.KEY_LENGTH


    def clause_key(self, clause: str) -> str:
        return TextProcessor.clause_key(clause, self.key_length)


    def merge(self, rule_result: AnalysisResult, ai_result: AnalysisResult) -> AnalysisResult:
        """
        Merge a rule-engine result with an AI result

        Arguments:
        ----------
            rule_result { AnalysisResult } : Output of the clause detector

            ai_result   { AnalysisResult } : Output of the AI analyzer

        Returns:
        --------
            { AnalysisResult } : Merged flags, overall risk never below either input, AI summary preferred
        """
        merged : Dict[str, Flag] = dict()

        for flag in rule_result.flags:
            key = self.clause_key(flag.clause)

            if key not in merged:
                merged[key] = flag

        for flag in ai_result.flags:
            key = self.clause_key(flag.clause)

            if key in merged:
                merged[key] = self._merge_flags(rule_flag = merged[key], ai_flag = flag)

            else:
                merged[key] = flag

        flags        = list(merged.values())
        overall_risk = Severity.highest([rule_result.overall_risk, ai_result.overall_risk] + [flag.severity for flag in flags])
        summary      = ai_result.summary if (ai_result.summary or "").strip() else rule_result.summary

        log_debug("Merged rule and AI flags", flag_count = len(flags), overall_risk = overall_risk.value)

        return AnalysisResult(overall_risk     = overall_risk,
                              summary          = summary,
                              flags            = flags,
                              ai_ran           = True,
                              ai_fallback_used = False,
                              meta             = ai_result.meta,
                             )


    @staticmethod
    def passthrough(rule_result: AnalysisResult) -> AnalysisResult:
        """
        Rule result unchanged, marked as an AI fallback
        """
        return rule_result.with_updates(ai_ran = False, ai_fallback_used = True)


    @staticmethod
    def _merge_flags(rule_flag: Flag, ai_flag: Flag) -> Flag:
        clause     = ai_flag.clause if (len(ai_flag.clause) > len(rule_flag.clause)) else rule_flag.clause
        severity   = ai_flag.severity if (ai_flag.severity.rank >= rule_flag.severity.rank) else rule_flag.severity

        return rule_flag.with_updates(clause     = clause,
                                      severity   = severity,
                                      rationale  = ai_flag.rationale or rule_flag.rationale,
                                      suggestion = ai_flag.suggestion or rule_flag.suggestion,
                                      source     = FlagSource.AI,
                                     )
