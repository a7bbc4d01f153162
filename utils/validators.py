# DEPENDENCIES
import re
from typing import Tuple
from typing import Optional
from config.settings import settings
from services.errors import InputValidationError


class ContractValidator:
    """
    Input guards applied before any analysis runs
    """
    # Notes an upstream extractor leaves instead of real contract text
    PLACEHOLDER_PATTERNS = [r'text\s+extraction\s+is\s+not\s+yet\s+implemented',
                            r'please\s+copy\s+and\s+paste\s+the\s+contract\s+text\s+manually',
                            r'^\s*\w+\s+file\s+"[^"]*"\s+uploaded\s+successfully\.?\s*$',
                           ]


    @staticmethod
    def check_input(text: str, min_length: Optional[int] = None, max_length: Optional[int] = None) -> Tuple[bool, str, str]:
        """
        Validate submitted contract text

        Arguments:
        ----------
            text       { str } : Submitted text

            min_length { int } : Minimum trimmed length (default: settings.MIN_CONTRACT_LENGTH)

            max_length { int } : Maximum raw length (default: settings.MAX_CONTRACT_LENGTH)

        Returns:
        --------
               { tuple }       : (is_valid, validation_type, message) tuple
        """
        min_length = settings.MIN_CONTRACT_LENGTH if min_length is None else min_length
        max_length = settings.MAX_CONTRACT_LENGTH if max_length is None else max_length

        if not isinstance(text, str):
            return (False, "invalid_type", "source_text is required and must be a string")

        trimmed    = text.strip()

        if not trimmed:
            return (False, "empty", "source_text is required and must be a non-empty string")

        if (len(text) > max_length):
            return (False, "too_long", f"Contract text too long. Maximum {max_length:,} characters allowed.")

        if (len(trimmed) < min_length):
            return (False, "too_short", "Contract text too short. Please provide a more substantial contract for analysis.")

        if ContractValidator.is_placeholder_text(trimmed):
            return (False, "placeholder", "The document text could not be extracted. Please copy and paste the contract text manually.")

        return (True, "ok", "Input accepted")


    @staticmethod
    def validate_input(text: str, min_length: Optional[int] = None, max_length: Optional[int] = None) -> str:
        """
        Trimmed text, or InputValidationError with a user-facing message
        """
        is_valid, validation_type, message = ContractValidator.check_input(text, min_length = min_length, max_length = max_length)

        if not is_valid:
            error                 = InputValidationError(message)
            error.validation_type = validation_type
            raise error

        return text.strip()


    @staticmethod
    def is_placeholder_text(text: str) -> bool:
        """
        True when `text` is an extraction placeholder rather than contract content
        """
        if not text:
            return False

        return any(re.search(pattern, text, re.IGNORECASE) for pattern in ContractValidator.PLACEHOLDER_PATTERNS)
