# DEPENDENCIES
import re
from typing import List
from typing import Iterable
from config.risk_rules import RiskRules
from services.data_models import Flag


class KeywordHighlighter:
    """
    Topical keyword tags per flag and safe whole-word highlighting
    """
    def __init__(self, rules: RiskRules = None):
        self.rules = rules or RiskRules()


    def keywords_for(self, flag: Flag) -> List[str]:
        """
        Severity tags plus taxonomy tags triggered by the clause and rationale

        Arguments:
        ----------
            flag { Flag } : Flag to tag

        Returns:
        --------
            { list } : De-duplicated keywords in first-seen order
        """
        if flag is None:
            return list()

        text     = f"{(flag.clause or '').lower()} {(flag.rationale or '').lower()}"
        keywords = list(self.rules.SEVERITY_TAGS.get(flag.severity.value, ()))

        for triggers, tags in self.rules.KEYWORD_TAXONOMY:
            if any(trigger in text for trigger in triggers):
                keywords.extend(tags)

        return list(dict.fromkeys(keywords))


    def tag(self, flag: Flag) -> Flag:
        return flag.with_updates(keywords = tuple(self.keywords_for(flag)))


    @staticmethod
    def highlight(text: str, keywords: Iterable[str], marker: str = "mark") -> str:
        """
        Wrap whole-word, case-insensitive keyword hits in `<marker>` tags

        Keywords are regex-escaped and tried longest first in a single pass, so a
        shorter keyword never splits a longer hit and inserted markup is never re-matched.
        Empty text or an empty keyword set returns `text` unchanged.
        """
        if not text or not keywords:
            return text

        cleaned = sorted({k.strip() for k in keywords if k and k.strip()}, key = len, reverse = True)

        if not cleaned:
            return text

        # \b only anchors next to word characters; keywords that start/end with punctuation use lookarounds
        alternatives = list()

        for keyword in cleaned:
            prefix = r"\b" if re.match(r"\w", keyword) else r"(?<!\w)"
            suffix = r"\b" if re.search(r"\w$", keyword) else r"(?!\w)"

            alternatives.append(f"{prefix}{re.escape(keyword)}{suffix}")

        pattern = re.compile("|".join(alternatives), re.IGNORECASE)

        return pattern.sub(lambda match: f"<{marker}>{match.group(0)}</{marker}>", text)
