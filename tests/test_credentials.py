"""
Unit tests for instance code and credential generation.
"""

import string
import pytest

from kaas.exceptions import InvalidConfigurationError
from kaas.utils.credentials import (
    DIGITS,
    LETTERS,
    SPECIALS,
    generate_instance_code_candidate,
    generate_password,
    generate_username,
)


@pytest.mark.unit
class TestInstanceCodeCandidate:
    """Test suite for managed instance code draws."""

    def test_code_is_five_digits_in_range(self):
        for _ in range(200):
            code = generate_instance_code_candidate()
            assert len(code) == 5
            assert code.isdigit()
            assert 10000 <= int(code) <= 99999

    def test_codes_vary(self):
        codes = {generate_instance_code_candidate() for _ in range(50)}
        assert len(codes) > 1


@pytest.mark.unit
class TestGeneratePassword:
    """Test suite for password generation."""

    def test_length_is_exact(self):
        for length in (1, 8, 16, 64):
            assert len(generate_password(length)) == length

    def test_digits_only(self):
        password = generate_password(32, use_letters=False, use_special=False)
        assert set(password) <= set(DIGITS)

    def test_letters_only(self):
        password = generate_password(32, use_special=False, use_numeric=False)
        assert set(password) <= set(LETTERS)

    def test_no_specials(self):
        password = generate_password(200, use_special=False)
        assert not set(password) & set(SPECIALS)

    def test_specials_only(self):
        password = generate_password(32, use_letters=False, use_numeric=False)
        assert set(password) <= set(SPECIALS)

    def test_all_classes_disabled_raises(self):
        with pytest.raises(InvalidConfigurationError):
            generate_password(16, use_letters=False, use_special=False, use_numeric=False)

    def test_non_positive_length_raises(self):
        with pytest.raises(InvalidConfigurationError):
            generate_password(0)


@pytest.mark.unit
class TestGenerateUsername:
    """Test suite for username generation."""

    def test_username_format(self):
        username = generate_username(8)

        assert username.startswith("user_")
        suffix = username[len("user_"):]
        assert len(suffix) == 8
        assert set(suffix) <= set(string.ascii_lowercase)

    def test_non_positive_length_raises(self):
        with pytest.raises(InvalidConfigurationError):
            generate_username(0)
