# DEPENDENCIES
from .text_processor import TextProcessor
from .validators import ContractValidator
from .logger import ContractAnalyzerLogger
from .rate_limiter import TokenBucketRateLimiter
from .rate_limiter import FixedWindowRateLimiter


__all__ = ['TextProcessor',
           'ContractValidator',
           'ContractAnalyzerLogger',
           'FixedWindowRateLimiter',
           'TokenBucketRateLimiter',
          ]
