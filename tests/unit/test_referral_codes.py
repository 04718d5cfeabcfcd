"""
Unit tests for referral code generation and validation.
"""

import pytest

from app.config.business_constants import REFERRAL_CODE_ALPHABET
from app.services.referral_code_service import (
    generate_referral_code,
    is_generated_referral_code,
)
from app.utils.exceptions import ValidationError
from app.utils.validation import validate_referral_code


class TestGenerateReferralCode:
    """Test FIRSTNAME-XXXXXX generation."""

    def test_prefix_from_first_name(self):
        """Test that the first word becomes the prefix."""
        code = generate_referral_code("Mike Johnson")

        assert code.startswith("MIKE-")
        assert is_generated_referral_code(code)

    def test_prefix_from_email(self):
        """Test that an email uses the part before '@'."""
        assert generate_referral_code("sarah@example.com").startswith("SARAH-")

    def test_prefix_letters_only_and_truncated(self):
        """Test that digits are dropped and long names cut to 10 letters."""
        assert generate_referral_code("j0hn").startswith("JHN-")
        assert generate_referral_code("Maximilianusz").split("-")[0] == "MAXIMILIAN"

    @pytest.mark.parametrize("name", ["", "1234", "@example.com", None])
    def test_fallback_prefix(self, name):
        """Test the USER prefix when no letters are left."""
        assert generate_referral_code(name).startswith("USER-")

    def test_suffix_uses_unambiguous_alphabet(self):
        """Test that the suffix avoids 0/O and 1/I."""
        for _ in range(50):
            suffix = generate_referral_code("alex").split("-")[1]
            assert len(suffix) == 6
            assert set(suffix) <= set(REFERRAL_CODE_ALPHABET)

    def test_generated_codes_pass_validation(self):
        """Test that generated codes are valid member codes."""
        code = generate_referral_code("Christopher")
        assert validate_referral_code(code) == code


class TestValidateReferralCode:
    """Test member-chosen code validation."""

    @pytest.mark.parametrize("code", ["ABC", "MIKE-2026", "A1-B2-C3", "X" * 20])
    def test_valid_codes(self, code):
        """Test accepted codes."""
        assert validate_referral_code(code) == code

    def test_surrounding_whitespace_stripped(self):
        """Test that whitespace is trimmed."""
        assert validate_referral_code("  MIKE-1  ") == "MIKE-1"

    @pytest.mark.parametrize("code", ["", "   ", None])
    def test_required(self, code):
        """Test missing codes."""
        with pytest.raises(ValidationError, match="required"):
            validate_referral_code(code)

    @pytest.mark.parametrize("code", ["AB", "X" * 21, "mike-1", "MIKE 1", "MIKE_1", "MÏKE"])
    def test_invalid_format(self, code):
        """Test rejected formats."""
        with pytest.raises(ValidationError, match="Invalid code format"):
            validate_referral_code(code)

    def test_validation_error_is_value_error(self):
        """Test that callers catching ValueError still see the failure."""
        with pytest.raises(ValueError):
            validate_referral_code("no")
