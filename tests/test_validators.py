import pytest

from utils.validators import ContractValidator
from services.errors import InputValidationError


def test_valid_text_is_stripped():
    assert ContractValidator.validate_input("  Payment is due in 30 days.  ") == "Payment is due in 30 days."


@pytest.mark.parametrize("text, validation_type", [(None, "invalid_type"),
                                                   (42, "invalid_type"),
                                                   ("", "empty"),
                                                   (" \n\t ", "empty"),
                                                  ])
def test_missing_text_is_rejected(text, validation_type):
    is_valid, kind, _ = ContractValidator.check_input(text)

    assert is_valid is False
    assert kind == validation_type


def test_oversized_text_is_rejected_with_limit_in_message():
    with pytest.raises(InputValidationError) as excinfo:
        ContractValidator.validate_input("a" * 101, max_length = 100)

    assert excinfo.value.validation_type == "too_long"
    assert "Maximum 100 characters" in str(excinfo.value)


def test_text_at_limit_is_accepted():
    assert ContractValidator.validate_input("a" * 100, max_length = 100) == "a" * 100


def test_short_text_uses_trimmed_length():
    is_valid, kind, _ = ContractValidator.check_input("   short   ", min_length = 10)

    assert is_valid is False
    assert kind == "too_short"


@pytest.mark.parametrize("text", ['DOCX file "msa.docx" uploaded successfully.',
                                  "Advanced PDF text extraction is not yet implemented.",
                                  "Please copy and paste the contract text manually.",
                                 ])
def test_extraction_placeholders_are_rejected(text):
    with pytest.raises(InputValidationError) as excinfo:
        ContractValidator.validate_input(text)

    assert excinfo.value.validation_type == "placeholder"


def test_contract_mentioning_uploads_is_not_a_placeholder():
    text = 'Supplier confirms the file "specs.pdf" uploaded successfully is the final drawing set. Fees are due monthly.'

    assert ContractValidator.is_placeholder_text(text) is False
