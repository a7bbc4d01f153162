# DEPENDENCIES
from enum import Enum
from typing import Any
from typing import Dict
from typing import List
from typing import Tuple
from typing import Iterable
from typing import Optional
from dataclasses import field
from dataclasses import replace
from dataclasses import dataclass


CLAUSE_MAX_LENGTH     = 600
RATIONALE_MAX_LENGTH  = 400
SUGGESTION_MAX_LENGTH = 400


class Severity(str, Enum):
    """
    Risk severity; ordered low < medium < high
    """
    LOW    = "low"
    MEDIUM = "medium"
    HIGH   = "high"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


    @classmethod
    def parse(cls, value: Any, default: "Severity" = None) -> "Severity":
        """
        Coerce a string (any case) to Severity, falling back to `default` (LOW when omitted)
        """
        if isinstance(value, Severity):
            return value

        try:
            return cls(str(value).strip().lower())

        except ValueError:
            return default or cls.LOW


    @classmethod
    def highest(cls, values: Iterable["Severity"], default: "Severity" = None) -> "Severity":
        """
        Maximum severity of `values`, or `default` (LOW when omitted) if empty
        """
        best = None

        for value in values:
            value = cls.parse(value)

            if (best is None) or (value.rank > best.rank):
                best = value

        return best or default or cls.LOW


_SEVERITY_RANK = {Severity.LOW    : 0,
                  Severity.MEDIUM : 1,
                  Severity.HIGH   : 2,
                 }


class FlagSource(str, Enum):
    """
    Provenance tag, only meaningful while merging
    """
    RULE = "rule"
    AI   = "ai"


@dataclass(frozen = True)
class Flag:
    """
    A single detected risk item
    """
    clause     : str
    severity   : Severity
    rationale  : str                 = ""
    suggestion : str                 = ""
    span_start : Optional[int]       = None
    span_end   : Optional[int]       = None
    context    : str                 = ""
    keywords   : Tuple[str, ...]     = ()
    source     : Optional[FlagSource] = None


    @classmethod
    def normalize(cls, raw: Any, source: Optional[FlagSource] = None) -> Optional["Flag"]:
        """
        Build a fully-populated Flag from a loosely-typed mapping

        Missing rationale/suggestion/context default to empty strings, unknown severities
        become LOW, text fields are clipped to their bounds. Returns None when no clause
        text is present, since such a flag cannot be rendered.
        """
        if isinstance(raw, Flag):
            return raw if raw.clause.strip() else None

        if not isinstance(raw, dict):
            return None

        clause = str(raw.get("clause") or "").strip()

        if not clause:
            return None

        span_start = raw.get("span_start")
        span_end   = raw.get("span_end")
        keywords   = raw.get("keywords") if isinstance(raw.get("keywords"), (list, tuple)) else []
        raw_source = raw.get("source")

        if (source is None) and raw_source:
            try:
                source = FlagSource(raw_source)

            except ValueError:
                source = None

        return cls(clause     = clause[:CLAUSE_MAX_LENGTH],
                   severity   = Severity.parse(raw.get("severity")),
                   rationale  = str(raw.get("rationale") or "")[:RATIONALE_MAX_LENGTH],
                   suggestion = str(raw.get("suggestion") or "")[:SUGGESTION_MAX_LENGTH],
                   span_start = span_start if (isinstance(span_start, int) and not isinstance(span_start, bool)) else None,
                   span_end   = span_end if (isinstance(span_end, int) and not isinstance(span_end, bool)) else None,
                   context    = str(raw.get("context") or ""),
                   keywords   = tuple(str(k) for k in keywords if k),
                   source     = source,
                  )


    def with_updates(self, **changes) -> "Flag":
        return replace(self, **changes)


    def to_dict(self) -> Dict[str, Any]:
        """
        Public representation; the provenance tag is not exposed
        """
        return {"clause"     : self.clause,
                "severity"   : self.severity.value,
                "rationale"  : self.rationale,
                "suggestion" : self.suggestion,
                "span_start" : self.span_start,
                "span_end"   : self.span_end,
                "context"    : self.context,
                "keywords"   : list(self.keywords),
               }


@dataclass(frozen = True)
class AnalyzerMeta:
    """
    Telemetry for one successful AI analysis
    """
    provider   : str
    model      : Optional[str] = None
    tokens_in  : Optional[int] = None
    tokens_out : Optional[int] = None
    latency_ms : Optional[int] = None
    attempts   : int           = 1

    def to_dict(self) -> Dict[str, Any]:
        return {"provider"   : self.provider,
                "model"      : self.model,
                "tokens_in"  : self.tokens_in,
                "tokens_out" : self.tokens_out,
                "latency_ms" : self.latency_ms,
                "attempts"   : self.attempts,
               }


@dataclass(frozen = True)
class AnalysisResult:
    """
    Aggregate analysis for one contract submission
    """
    overall_risk     : Severity
    summary          : str
    flags            : List[Flag]             = field(default_factory = list)
    ai_ran           : bool                   = False
    ai_fallback_used : bool                   = False
    meta             : Optional[AnalyzerMeta] = None


    def with_updates(self, **changes) -> "AnalysisResult":
        return replace(self, **changes)


    def to_dict(self) -> Dict[str, Any]:
        return {"overall_risk"     : self.overall_risk.value,
                "summary"          : self.summary,
                "flags"            : [flag.to_dict() for flag in self.flags],
                "ai_ran"           : self.ai_ran,
                "ai_fallback_used" : self.ai_fallback_used,
               }


@dataclass(frozen = True)
class SpanLocation:
    """
    Best-effort location of a clause inside the source document
    """
    start   : Optional[int]
    end     : Optional[int]
    context : str

    @property
    def found(self) -> bool:
        return self.start is not None


@dataclass(frozen = True)
class DiffSegment:
    """
    One word-diff segment: op is "equal", "delete" or "insert"
    """
    op   : str
    text : str


@dataclass(frozen = True)
class RedlineResult:
    """
    Rewrite of a single clause with its rendered word diff
    """
    original    : str
    rewrite     : str
    html        : str
    plain_diff  : str
    segments    : List[DiffSegment] = field(default_factory = list)
    ai_rewrite  : bool              = False

    def to_dict(self) -> Dict[str, Any]:
        return {"original"   : self.original,
                "rewrite"    : self.rewrite,
                "html"       : self.html,
                "plain_diff" : self.plain_diff,
                "ai_rewrite" : self.ai_rewrite,
               }


@dataclass(frozen = True)
class ModerationResult:
    """
    Moderation verdict; degraded marks a fail-open pass after a transport error
    """
    flagged    : bool
    categories : List[str] = field(default_factory = list)
    degraded   : bool      = False


@dataclass(frozen = True)
class AnalysisOutcome:
    """
    Pipeline output: fully formed result plus persistence ids and degraded-mode reasons
    """
    result      : AnalysisResult
    contract_id : Optional[str]  = None
    analysis_id : Optional[str]  = None
    degraded    : Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        payload = self.result.to_dict()

        payload.update({"contract_id" : self.contract_id,
                        "analysis_id" : self.analysis_id,
                        "degraded"    : list(self.degraded),
                       })

        return payload
