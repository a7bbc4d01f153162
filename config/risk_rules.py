# DEPENDENCIES
from typing import Dict
from typing import Tuple


class RiskRules:
    """
    Static risk tables for rule-based clause detection, span fallback and highlighting
    """
    # Ordered: detection emits flags in this order
    PATTERNS                  = ("indemn",
                                 "limitation of liability",
                                 "liability cap",
                                 "arbitration",
                                 "jurisdiction",
                                 "auto-renew",
                                 "automatically renew",
                                 "renewal",
                                 "assignment",
                                 "confidential",
                                 "termination for convenience",
                                 "late fee",
                                 "interest",
                                 "intellectual property",
                                 "ip ownership",
                                 "non-solicit",
                                 "noncompete",
                                 "non-compete",
                                 "warranty",
                                 "as is",
                                 "force majeure",
                                 "governing law",
                                )

    SEVERITY_MAP              = {"indemn"                      : "high",
                                 "limitation of liability"     : "high",
                                 "liability cap"               : "high",
                                 "ip ownership"                : "high",
                                 "noncompete"                  : "high",
                                 "non-compete"                 : "high",
                                 "arbitration"                 : "medium",
                                 "jurisdiction"                : "medium",
                                 "assignment"                  : "medium",
                                 "termination for convenience" : "medium",
                                 "confidential"                : "medium",
                                 "warranty"                    : "medium",
                                 "non-solicit"                 : "medium",
                                 "intellectual property"       : "medium",
                                 "as is"                       : "medium",
                                 "auto-renew"                  : "low",
                                 "automatically renew"         : "low",
                                 "renewal"                     : "low",
                                 "late fee"                    : "low",
                                 "interest"                    : "low",
                                 "force majeure"               : "low",
                                 "governing law"               : "low",
                                }

    RATIONALE_MAP             = {"indemn"                      : "Indemnification clauses can expose you to unlimited liability for third-party claims.",
                                 "limitation of liability"     : "Liability limitations may prevent you from recovering damages for breaches.",
                                 "liability cap"               : "Liability caps can restrict compensation for significant losses or damages.",
                                 "ip ownership"                : "IP ownership terms may transfer your work rights to the client permanently.",
                                 "noncompete"                  : "Non-compete clauses can restrict your ability to work with other clients.",
                                 "non-compete"                 : "Non-compete clauses can restrict your ability to work with other clients.",
                                 "arbitration"                 : "Mandatory arbitration limits your right to pursue claims in court.",
                                 "jurisdiction"                : "Jurisdiction clauses may require disputes to be resolved in inconvenient locations.",
                                 "assignment"                  : "Assignment rights allow the client to transfer the contract without your consent.",
                                 "termination for convenience" : "Termination for convenience allows abrupt contract cancellation without cause.",
                                 "confidential"                : "Confidentiality terms may be overly broad and restrict your future work.",
                                 "warranty"                    : "Warranty clauses may create ongoing obligations and liability exposure.",
                                 "auto-renew"                  : "Auto-renewal clauses can extend commitments beyond your intended timeframe.",
                                 "automatically renew"         : "Auto-renewal clauses can extend commitments beyond your intended timeframe.",
                                 "renewal"                     : "Renewal terms may lock you into unfavorable conditions for extended periods.",
                                 "late fee"                    : "Late fee provisions can result in additional charges for delayed payments.",
                                 "interest"                    : "Interest charges on overdue payments can accumulate significant costs.",
                                 "force majeure"               : "Force majeure clauses define what events excuse performance delays.",
                                 "governing law"               : "Governing law determines which jurisdiction's laws apply to disputes.",
                                 "non-solicit"                 : "Non-solicitation clauses may restrict your ability to work with the client's contacts.",
                                 "intellectual property"       : "IP clauses define ownership and usage rights for created work.",
                                 "as is"                       : "As-is provisions limit warranties and may reduce your legal protections.",
                                }

    SUGGESTION_MAP            = {"indemn"                      : "Negotiate mutual indemnification or cap your indemnity obligations to project value.",
                                 "limitation of liability"     : "Request mutual liability limitations or minimum liability floors.",
                                 "liability cap"               : "Ensure caps don't apply to your own negligence or IP infringement claims.",
                                 "ip ownership"                : "Retain rights to pre-existing work and general methodologies developed.",
                                 "noncompete"                  : "Limit scope to direct competitors and specific time/geographic boundaries.",
                                 "non-compete"                 : "Limit scope to direct competitors and specific time/geographic boundaries.",
                                 "arbitration"                 : "Negotiate for mediation first, or mutual agreement to arbitrate.",
                                 "jurisdiction"                : "Choose a neutral jurisdiction or your home jurisdiction for disputes.",
                                 "assignment"                  : "Require written consent for assignments or limit to corporate transactions.",
                                 "termination for convenience" : "Negotiate notice periods and payment for work completed plus costs.",
                                 "confidential"                : "Define confidentiality scope clearly and include reasonable exceptions.",
                                 "warranty"                    : "Limit warranties to professional standards and exclude consequential damages.",
                                 "auto-renew"                  : "Include opt-out notice periods and right to modify terms upon renewal.",
                                 "automatically renew"         : "Include opt-out notice periods and right to modify terms upon renewal.",
                                 "renewal"                     : "Ensure renewal terms are subject to renegotiation and rate adjustments.",
                                 "late fee"                    : "Cap late fees at reasonable amounts and provide grace periods for payment.",
                                 "interest"                    : "Negotiate reasonable interest rates and payment plan options.",
                                 "force majeure"               : "Ensure events include circumstances beyond your reasonable control.",
                                 "governing law"               : "Choose laws from a jurisdiction familiar to both parties.",
                                 "non-solicit"                 : "Limit to employees you directly worked with and reasonable time periods.",
                                 "intellectual property"       : "Clarify work-for-hire vs. licensed work and retain portfolio rights.",
                                 "as is"                       : "Request specific warranties for critical deliverables and fitness for purpose.",
                                }

    DEFAULT_SEVERITY          = "low"
    DEFAULT_RATIONALE         = "This clause may require careful review."
    DEFAULT_SUGGESTION        = "Consider negotiating more favorable terms."

    SUMMARY_TEMPLATES         = {"none"   : "No significant risk patterns detected. This appears to be a relatively standard agreement.",
                                 "high"   : "Found {count} potential issues including high-risk clauses that could significantly impact your rights and obligations.",
                                 "medium" : "Identified {count} areas for review with moderate risk factors that warrant careful consideration.",
                                 "low"    : "Detected {count} minor clauses that are generally standard but worth understanding.",
                                }

    # Span-location fallback table, distinct from PATTERNS
    SPAN_KEYWORDS             = ("indemn", "indemnif", "indemnity",
                                 "liability", "liable",
                                 "arbitration", "arbitrate",
                                 "jurisdiction", "jurisdict",
                                 "renew", "renewal", "automatic",
                                 "assignment", "assign",
                                 "confidential", "nda", "non-disclosure",
                                 "warranty", "warrant", "guarantee",
                                 "force majeure", "act of god",
                                 "governing law", "applicable law",
                                 "noncompete", "non-compete", "restraint",
                                 "as is", "as-is",
                                 "intellectual property", "ip ownership", "copyright", "trademark",
                                 "termination for convenience", "terminate", "termination", "breach",
                                )

    # (triggers, tags): any trigger substring in clause + rationale adds the tags
    KEYWORD_TAXONOMY          : Tuple[Tuple[Tuple[str, ...], Tuple[str, ...]], ...] = ((("payment", "fee", "cost"),                   ("payment", "financial")),
                                                                                       (("indemn", "liability"),                     ("liability", "indemnification")),
                                                                                       (("terminat", "cancel"),                      ("termination", "cancellation")),
                                                                                       (("confidential", "nda"),                     ("confidentiality", "NDA")),
                                                                                       (("intellect", "copyright", "trademark"),     ("intellectual property", "IP")),
                                                                                       (("govern", "jurisdiction", "dispute"),       ("governing law", "disputes")),
                                                                                       (("deadline", "timeline", "deliver"),         ("deadlines", "delivery")),
                                                                                       (("warrant", "guarantee"),                    ("warranties", "guarantees")),
                                                                                      )

    SEVERITY_TAGS             : Dict[str, Tuple[str, ...]] = {"high"   : ("high risk", "critical", "severe"),
                                                              "medium" : ("moderate risk", "caution"),
                                                              "low"    : ("minor issue", "advisory"),
                                                             }


    @classmethod
    def rule_for(cls, pattern: str) -> Tuple[str, str, str]:
        """
        Severity, rationale and suggestion for a catalog pattern (defaults for unknown patterns)
        """
        return (cls.SEVERITY_MAP.get(pattern, cls.DEFAULT_SEVERITY),
                cls.RATIONALE_MAP.get(pattern, cls.DEFAULT_RATIONALE),
                cls.SUGGESTION_MAP.get(pattern, cls.DEFAULT_SUGGESTION),
               )
