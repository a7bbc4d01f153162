# DEPENDENCIES
from typing import Any
from typing import Dict


class ModelConfig:
    """
    Model-specific configurations - FOR AI MODEL SETTINGS ONLY
    """
    SEVERITY_LEVELS    = ["low", "medium", "high"]

    # Strict structured-output schema sent with every analysis request
    ANALYSIS_SCHEMA    : Dict[str, Any] = {"type"                 : "object",
                                           "properties"           : {"overall_risk" : {"type" : "string", "enum" : SEVERITY_LEVELS},
                                                                     "summary"      : {"type" : "string", "minLength" : 1, "maxLength" : 600},
                                                                     "flags"        : {"type"     : "array",
                                                                                       "maxItems" : 40,
                                                                                       "items"    : {"type"                 : "object",
                                                                                                     "properties"           : {"clause"     : {"type" : "string", "minLength" : 1, "maxLength" : 600},
                                                                                                                               "severity"   : {"type" : "string", "enum" : SEVERITY_LEVELS},
                                                                                                                               "rationale"  : {"type" : "string", "minLength" : 1, "maxLength" : 400},
                                                                                                                               "suggestion" : {"type" : "string", "minLength" : 1, "maxLength" : 400},
                                                                                                                              },
                                                                                                     "required"             : ["clause", "severity", "rationale", "suggestion"],
                                                                                                     "additionalProperties" : False,
                                                                                                    },
                                                                                      },
                                                                    },
                                           "required"             : ["overall_risk", "summary", "flags"],
                                           "additionalProperties" : False,
                                          }

    ANALYSIS_SCHEMA_NAME = "contract_analysis"

    ANALYSIS_SYSTEM_PROMPT = """You are an expert contract analyst for freelancers. Output STRICT JSON matching the schema. Be concise and practical.

Focus on identifying clauses that could be problematic for freelancers, such as:
- Unfair payment terms or conditions
- IP ownership issues
- Excessive liability or indemnification
- Non-compete restrictions
- Termination clauses
- Auto-renewal terms
- Limitation of liability favoring only one party
- Vague scope of work definitions
- Unreasonable warranty disclaimers

For each flag:
- Extract the specific problematic clause text
- Assess severity: low (minor concern), medium (should negotiate), high (major red flag)
- Explain why it's problematic in plain language
- Suggest specific improvements or alternatives

Keep your summary under 600 characters and focus on the overall contract fairness and risk level."""

    ANALYSIS_USER_PROMPT     = "Please analyze this contract text and identify potential issues for a freelancer:\n\n{text}"

    SCHEMA_RETRY_INSTRUCTION = ("Your previous reply did not match the required JSON schema. "
                                "Respond with ONLY a JSON object containing exactly the keys overall_risk, summary and flags, "
                                "with no markdown, commentary or extra keys."
                               )

    TRUNCATION_NOTE          = "\n\n[Note: Contract text was truncated for length]"
    SUMMARY_TRUNCATION_NOTE  = " (Note: analysis covers only the first {limit} characters.)"

    REDLINE_SYSTEM_PROMPT    = ("You are a legal writing assistant. Rewrite contract clauses implementing suggestions while maintaining "
                                "neutral, concise, legally consistent language. Return only JSON format: { \"rewrite\": \"...\" }"
                               )

    REDLINE_USER_PROMPT      = ("Original clause: \"{clause}\"\n\nSuggestion: \"{suggestion}\"\n\n"
                                "Rewrite this clause implementing the suggestion. Return JSON: {{ \"rewrite\": \"...\" }} ONLY."
                               )

    # LLM Generation Settings
    LLM_GENERATION           = {"analysis" : {"max_tokens" : 4000, "temperature" : 0.3},
                                "redline"  : {"max_tokens" : 500,  "temperature" : 0.2},
                               }

    # Reasoning-model families reject temperature and use max_completion_tokens
    REASONING_MODEL_PREFIXES = ("gpt-5", "o1", "o3", "o4", "gpt-4.1")


    @classmethod
    def is_reasoning_model(cls, model: str) -> bool:
        return model.startswith(cls.REASONING_MODEL_PREFIXES)


    @classmethod
    def get_generation_config(cls, task: str) -> dict:
        """
        Get generation parameters for a task ("analysis" or "redline")
        """
        return dict(cls.LLM_GENERATION.get(task, cls.LLM_GENERATION["analysis"]))
