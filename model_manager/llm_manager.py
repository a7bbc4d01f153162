# DEPENDENCIES
import time
import openai
import requests
from enum import Enum
from typing import Any
from typing import Dict
from typing import Optional
from dataclasses import dataclass
from config.settings import settings
from utils.logger import log_info
from utils.logger import log_error
from config.model_config import ModelConfig
from utils.logger import ContractAnalyzerLogger


class LLMProvider(Enum):
    """
    Supported LLM providers
    """
    OPENAI = "openai"
    OLLAMA = "ollama"


@dataclass
class LLMResponse:
    """
    Standardized LLM response; the raw provider payload is not kept
    """
    text          : str
    provider      : str
    model         : str
    tokens_in     : Optional[int]
    tokens_out    : Optional[int]
    latency_ms    : int
    success       : bool
    error_message : Optional[str] = None
    error_type    : Optional[str] = None


    @property
    def tokens_used(self) -> int:
        return (self.tokens_in or 0) + (self.tokens_out or 0)


    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to dictionary
        """
        return {"provider"      : self.provider,
                "model"         : self.model,
                "tokens_in"     : self.tokens_in,
                "tokens_out"    : self.tokens_out,
                "latency_ms"    : self.latency_ms,
                "success"       : self.success,
                "error_message" : self.error_message,
               }


class LLMManager:
    """
    Unified LLM transport for OpenAI (and OpenAI-compatible endpoints) and local Ollama

    `complete` never raises for provider failures: it returns an unsuccessful LLMResponse
    so callers decide on retry and fallback policy
    """
    def __init__(self, provider: LLMProvider = LLMProvider.OPENAI, openai_api_key: Optional[str] = None, openai_base_url: Optional[str] = None,
                 ollama_base_url: Optional[str] = None, request_timeout: Optional[float] = None, client: Any = None):
        """
        Initialize LLM Manager

        Arguments:
        ----------
            provider        : Provider used for every call

            openai_api_key  : OpenAI API key (default: settings.OPENAI_API_KEY)

            openai_base_url : Optional OpenAI-compatible base URL

            ollama_base_url : Ollama server URL (default: settings.OLLAMA_BASE_URL)

            request_timeout : Per-call timeout in seconds (default: settings.AI_REQUEST_TIMEOUT)

            client          : Pre-built OpenAI client (tests, custom transports)
        """
        self.provider        = provider
        self.logger          = ContractAnalyzerLogger.get_logger()
        self.request_timeout = request_timeout or settings.AI_REQUEST_TIMEOUT

        # Ollama configuration
        self.ollama_base_url = ollama_base_url or settings.OLLAMA_BASE_URL
        self.ollama_model    = settings.OLLAMA_MODEL
        self.ollama_timeout  = settings.OLLAMA_TIMEOUT

        # OpenAI configuration
        self.openai_api_key  = openai_api_key or settings.OPENAI_API_KEY
        self._openai_client  = client

        if (self._openai_client is None) and (provider == LLMProvider.OPENAI) and self.openai_api_key:
            self._openai_client = openai.OpenAI(api_key     = self.openai_api_key,
                                                base_url    = openai_base_url or settings.OPENAI_BASE_URL,
                                                timeout     = self.request_timeout,
                                                max_retries = 0,
                                               )

        log_info("LLMManager initialized", ai_provider = provider.value)


    @property
    def available(self) -> bool:
        """
        Whether the configured provider can be called at all
        """
        if (self.provider == LLMProvider.OPENAI):
            return self._openai_client is not None

        return True


    # UNIFIED COMPLETION METHOD
    @ContractAnalyzerLogger.log_execution_time("llm_complete")
    def complete(self, prompt: str, model: Optional[str] = None, system_prompt: Optional[str] = None, temperature: float = 0.1, max_tokens: int = 2000,
                 json_schema: Optional[Dict[str, Any]] = None, schema_name: str = "response", json_mode: bool = False) -> LLMResponse:
        """
        Unified completion method

        Arguments:
        ----------
            prompt        : User prompt

            model         : Model name (provider-specific)

            system_prompt : System prompt

            temperature   : Sampling temperature (ignored by reasoning models)

            max_tokens    : Maximum tokens to generate

            json_schema   : Strict JSON schema for structured output

            schema_name   : Schema name reported to the provider

            json_mode     : Force a JSON object reply without a schema

        Returns:
        --------
            { LLMResponse } : LLMResponse object (success = False on any provider failure)
        """
        start_time = time.time()

        try:
            if (self.provider == LLMProvider.OPENAI):
                return self._complete_openai(prompt        = prompt,
                                             model         = model,
                                             system_prompt = system_prompt,
                                             temperature   = temperature,
                                             max_tokens    = max_tokens,
                                             json_schema   = json_schema,
                                             schema_name   = schema_name,
                                             json_mode     = json_mode,
                                            )

            if (self.provider == LLMProvider.OLLAMA):
                return self._complete_ollama(prompt        = prompt,
                                             model         = model,
                                             system_prompt = system_prompt,
                                             temperature   = temperature,
                                             max_tokens    = max_tokens,
                                             json_schema   = json_schema,
                                             json_mode     = json_mode,
                                            )

            raise ValueError(f"Unsupported provider: {self.provider}")

        except Exception as e:
            log_error(e, context = {"component" : "LLMManager", "operation" : "complete", "ai_provider" : self.provider.value, "ai_model" : model})

            return LLMResponse(text          = "",
                               provider      = self.provider.value,
                               model         = model or "unknown",
                               tokens_in     = None,
                               tokens_out    = None,
                               latency_ms    = int((time.time() - start_time) * 1000),
                               success       = False,
                               error_message = str(e)[:300],
                               error_type    = type(e).__name__,
                              )


    # OPENAI PROVIDER
    def _complete_openai(self, prompt: str, model: Optional[str], system_prompt: Optional[str], temperature: float, max_tokens: int,
                         json_schema: Optional[Dict[str, Any]], schema_name: str, json_mode: bool) -> LLMResponse:
        """
        Complete using the OpenAI chat completions API
        """
        if self._openai_client is None:
            raise ValueError("OpenAI not configured. Set OPENAI_API_KEY")

        start_time = time.time()
        model      = model or settings.OPENAI_MODEL

        messages   = list()

        if system_prompt:
            messages.append({"role"    : "system",
                             "content" : system_prompt,
                            })

        messages.append({"role"    : "user",
                         "content" : prompt,
                        })

        api_params = {"model"    : model,
                      "messages" : messages,
                      "timeout"  : self.request_timeout,
                     }

        if ModelConfig.is_reasoning_model(model):
            api_params["max_completion_tokens"] = max_tokens

        else:
            api_params["max_tokens"]  = max_tokens
            api_params["temperature"] = temperature

        if json_schema:
            api_params["response_format"] = {"type"        : "json_schema",
                                             "json_schema" : {"name"   : schema_name,
                                                              "strict" : True,
                                                              "schema" : json_schema,
                                                             },
                                            }

        elif json_mode:
            api_params["response_format"] = {"type" : "json_object"}

        log_info("Calling OpenAI API", ai_model = model)

        response       = self._openai_client.chat.completions.create(**api_params)
        generated_text = response.choices[0].message.content or ""
        usage          = getattr(response, "usage", None)
        latency_ms     = int((time.time() - start_time) * 1000)

        result         = LLMResponse(text       = generated_text,
                                     provider   = LLMProvider.OPENAI.value,
                                     model      = getattr(response, "model", None) or model,
                                     tokens_in  = getattr(usage, "prompt_tokens", None),
                                     tokens_out = getattr(usage, "completion_tokens", None),
                                     latency_ms = latency_ms,
                                     success    = True,
                                    )

        log_info("OpenAI completion successful",
                 ai_model      = result.model,
                 ai_tokens_in  = result.tokens_in,
                 ai_tokens_out = result.tokens_out,
                 ai_latency_ms = latency_ms,
                )

        return result


    # OLLAMA PROVIDER
    def _complete_ollama(self, prompt: str, model: Optional[str], system_prompt: Optional[str], temperature: float, max_tokens: int,
                         json_schema: Optional[Dict[str, Any]], json_mode: bool) -> LLMResponse:
        """
        Complete using local Ollama
        """
        start_time = time.time()
        model      = model or self.ollama_model

        payload    = {"model"   : model,
                      "prompt"  : prompt,
                      "stream"  : False,
                      "options" : {"temperature" : temperature, "num_predict" : max_tokens},
                     }

        if system_prompt:
            payload["system"] = system_prompt

        if json_schema:
            payload["format"] = json_schema

        elif json_mode:
            payload["format"] = "json"

        log_info("Calling Ollama API", ai_model = model)

        response   = requests.post(f"{self.ollama_base_url}/api/generate", json = payload, timeout = self.ollama_timeout)
        response.raise_for_status()

        body       = response.json()
        latency_ms = int((time.time() - start_time) * 1000)

        result     = LLMResponse(text       = body.get("response", ""),
                                 provider   = LLMProvider.OLLAMA.value,
                                 model      = model,
                                 tokens_in  = body.get("prompt_eval_count"),
                                 tokens_out = body.get("eval_count"),
                                 latency_ms = latency_ms,
                                 success    = True,
                                )

        log_info("Ollama completion successful",
                 ai_model      = model,
                 ai_tokens_in  = result.tokens_in,
                 ai_tokens_out = result.tokens_out,
                 ai_latency_ms = latency_ms,
                )

        return result

