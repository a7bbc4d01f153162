# DEPENDENCIES
from .data_models import Flag
from .data_models import Severity
from .span_locator import SpanLocator
from .ai_analyzer import AIAnalyzer
from .result_merger import ResultMerger
from .data_models import AnalysisResult
from .data_models import RedlineResult
from .ai_analyzer import AnalyzerRegistry
from .errors import ContractAnalysisError
from .moderation import ModerationChecker
from .persistence import InMemoryAnalysisStore
from .ai_analyzer import LLMContractAnalyzer
from .redline_generator import RedlineGenerator
from .clause_detector import RuleClauseDetector
from .keyword_highlighter import KeywordHighlighter


__all__ = ['Flag',
           'Severity',
           'AIAnalyzer',
           'SpanLocator',
           'ResultMerger',
           'RedlineResult',
           'AnalysisResult',
           'AnalyzerRegistry',
           'RedlineGenerator',
           'ModerationChecker',
           'KeywordHighlighter',
           'RuleClauseDetector',
           'LLMContractAnalyzer',
           'ContractAnalysisError',
           'InMemoryAnalysisStore',
          ]
