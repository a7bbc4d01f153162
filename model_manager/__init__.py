# DEPENDENCIES
from .llm_manager import LLMManager
from .llm_manager import LLMProvider
from .llm_manager import LLMResponse


__all__ = ['LLMManager',
           'LLMProvider',
           'LLMResponse',
          ]
