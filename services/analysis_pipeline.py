# DEPENDENCIES
from typing import List
from typing import Tuple
from typing import Optional
from config.settings import settings
from utils.logger import log_info
from utils.logger import log_event
from utils.logger import log_error
from utils.logger import log_warning
from services.data_models import Flag
from concurrent.futures import ThreadPoolExecutor
from utils.validators import ContractValidator
from utils.logger import ContractAnalyzerLogger
from services.ai_analyzer import AIAnalyzer
from services.span_locator import SpanLocator
from services.errors import AIUnavailableError
from services.errors import ContentBlockedError
from services.result_merger import ResultMerger
from services.data_models import AnalysisResult
from services.moderation import ModerationChecker
from services.persistence import AnalysisStore
from services.data_models import AnalysisOutcome
from services.clause_detector import RuleClauseDetector
from services.persistence import InMemoryAnalysisStore
from services.keyword_highlighter import KeywordHighlighter
from concurrent.futures import TimeoutError as FutureTimeoutError


class AnalysisPipeline:
    """
    End-to-end contract analysis: validation, rule detection, moderation-gated AI
    analysis, merge, display enrichment and persistence

    The rule path always completes; every AI-side failure short of a moderation block
    degrades to the rule result. Degraded-mode reasons are reported on the outcome.
    """
    def __init__(self, detector: Optional[RuleClauseDetector] = None, analyzer: Optional[AIAnalyzer] = None, moderation: Optional[ModerationChecker] = None,
                 merger: Optional[ResultMerger] = None, locator: Optional[SpanLocator] = None, highlighter: Optional[KeywordHighlighter] = None,
                 store: Optional[AnalysisStore] = None, ai_enabled: Optional[bool] = None, ai_timeout: Optional[float] = None):
        """
        Arguments:
        ----------
            detector    { RuleClauseDetector } : Rule engine

            analyzer        { AIAnalyzer }     : AI adapter; None disables the AI path

            moderation  { ModerationChecker }  : Pre-flight check for the AI path; None skips it

            merger         { ResultMerger }    : Rule/AI reconciliation

            locator         { SpanLocator }    : Span and context enrichment

            highlighter { KeywordHighlighter } : Keyword tagging

            store          { AnalysisStore }   : Persistence collaborator

            ai_enabled         { bool }        : Global AI switch (default: settings.AI_ENABLED)

            ai_timeout         { float }       : Wait bound for the AI path (default: settings.AI_TOTAL_TIMEOUT)
        """
        self.detector    = detector or RuleClauseDetector()
        self.analyzer    = analyzer
        self.moderation  = moderation
        self.merger      = merger or ResultMerger()
        self.locator     = locator or SpanLocator()
        self.highlighter = highlighter or KeywordHighlighter()
        self.store       = store or InMemoryAnalysisStore()
        self.ai_enabled  = settings.AI_ENABLED if ai_enabled is None else ai_enabled
        self.ai_timeout  = ai_timeout or settings.AI_TOTAL_TIMEOUT


    @ContractAnalyzerLogger.log_execution_time("analyze_contract")
    def analyze(self, owner_id: str, text: str, title: Optional[str] = None, use_ai: bool = True) -> AnalysisOutcome:
        """
        Analyze and persist one contract submission

        Arguments:
        ----------
            owner_id { str }  : Opaque owner identity supplied by the caller

            text     { str }  : Contract text

            title    { str }  : Optional contract title

            use_ai   { bool } : Request the AI path (ignored when AI is disabled)

        Returns:
        --------
            { AnalysisOutcome } : Fully formed result, persistence ids and degraded reasons

        Raises:
        -------
            InputValidationError : empty, oversized or placeholder text

            ContentBlockedError  : moderation flagged the text; no AI call was made
        """
        source      = ContractValidator.validate_input(text)
        contract_id = self.store.insert_contract(owner_id = owner_id, text = source, title = title)

        log_info("Analysis started", owner_id = owner_id, contract_id = contract_id, text_length = len(source), use_ai = use_ai)

        result, degraded = self._run(source, use_ai = use_ai)

        # Result is complete before handoff, so a storage failure never sees a partial analysis
        analysis_id      = self.store.insert_analysis(owner_id = owner_id, contract_id = contract_id, result = result)

        if result.flags:
            try:
                self.store.insert_flags(owner_id = owner_id, analysis_id = analysis_id, flags = result.flags)

            except Exception as e:
                log_error(e, context = {"component" : "AnalysisPipeline", "operation" : "insert_flags", "analysis_id" : analysis_id})
                degraded.append("flag_persist_failed")

        outcome          = AnalysisOutcome(result      = result,
                                           contract_id = contract_id,
                                           analysis_id = analysis_id,
                                           degraded    = tuple(degraded),
                                          )

        self._log_outcome(outcome)

        return outcome


    def analyze_demo(self, text: str, use_ai: bool = False) -> AnalysisOutcome:
        """
        Anonymous analysis without persistence; AI runs only when ALLOW_DEMO_AI is set
        """
        source           = ContractValidator.validate_input(text, min_length = settings.DEMO_MIN_LENGTH, max_length = settings.DEMO_MAX_LENGTH)
        result, degraded = self._run(source, use_ai = use_ai and settings.ALLOW_DEMO_AI)
        outcome          = AnalysisOutcome(result = result, degraded = tuple(degraded))

        self._log_outcome(outcome)

        return outcome


    def _run(self, source: str, use_ai: bool) -> Tuple[AnalysisResult, List[str]]:
        degraded = list()

        if not (use_ai and self.ai_enabled and (self.analyzer is not None)):
            return self._finalize(source, self.detector.detect(source)), degraded

        # Rule detection runs on the calling thread while the AI path runs on a worker
        executor = ThreadPoolExecutor(max_workers = 1, thread_name_prefix = "ai-analysis")

        try:
            future      = executor.submit(self._ai_path, source, degraded)
            rule_result = self.detector.detect(source)

            try:
                ai_result = future.result(timeout = self.ai_timeout)
                result    = self.merger.merge(rule_result, ai_result)

            except ContentBlockedError:
                raise

            except AIUnavailableError as e:
                log_warning("AI analysis unavailable, using rule-based results", error_code = e.error_code, attempts = len(e.attempts))
                degraded.append("ai_unavailable")
                result    = self.merger.passthrough(rule_result)

            except FutureTimeoutError:
                future.cancel()
                log_warning("AI analysis timed out, using rule-based results", error_code = "AI_TIMEOUT")
                degraded.append("ai_timeout")
                result    = self.merger.passthrough(rule_result)

            except Exception as e:
                log_error(e, context = {"component" : "AnalysisPipeline", "operation" : "ai_analysis"})
                degraded.append("ai_error")
                result    = self.merger.passthrough(rule_result)

        finally:
            executor.shutdown(wait = False)

        return self._finalize(source, result), degraded


    def _ai_path(self, source: str, degraded: List[str]) -> AnalysisResult:
        if self.moderation is not None:
            verdict = self.moderation.check(source)

            if verdict.flagged:
                log_event("content_blocked", error_code = ContentBlockedError.error_code)
                raise ContentBlockedError(verdict.categories)

            if verdict.degraded:
                degraded.append("moderation_unavailable")

        return self.analyzer.analyze(source)


    def _finalize(self, source: str, result: AnalysisResult) -> AnalysisResult:
        """
        Normalize every flag, then attach span, context and keywords
        """
        flags = list()

        for raw in result.flags:
            flag = Flag.normalize(raw)

            if flag is None:
                continue

            flag = self.locator.enrich(source, flag)
            flags.append(self.highlighter.tag(flag))

        return result.with_updates(flags = flags)


    @staticmethod
    def _log_outcome(outcome: AnalysisOutcome):
        result = outcome.result

        log_event("analysis_complete",
                  contract_id      = outcome.contract_id,
                  analysis_id      = outcome.analysis_id,
                  overall_risk     = result.overall_risk.value,
                  flag_count       = len(result.flags),
                  ai_ran           = result.ai_ran,
                  ai_fallback_used = result.ai_fallback_used,
                  ai_model         = result.meta.model if result.meta else None,
                  degraded         = list(outcome.degraded),
                 )
