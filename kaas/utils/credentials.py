"""
Random identifier and credential generation.

All draws go through nanoid, which picks every character independently and
uniformly from the given alphabet using a cryptographically secure source:
- Managed instance codes: "48213" (5 decimal digits, 10000-99999)
- Usernames: "user_kqzmwbte" (lowercase letters)
- Passwords: any mix of letters, specials and digits
"""

import string
from nanoid import generate

from ..exceptions import InvalidConfigurationError

LETTERS = string.ascii_letters
SPECIALS = "!@#$%^&*()-_=+"
DIGITS = string.digits

INSTANCE_CODE_LENGTH = 5


def generate_instance_code_candidate() -> str:
    """
    Draw a uniform 5-digit code in the range 10000-99999.

    The leading digit is drawn from 1-9 so every code has exactly five digits;
    the remaining four are drawn from 0-9, giving 90000 equally likely codes.

    Returns:
        Code string (e.g., "48213")
    """
    return generate("123456789", 1) + generate(DIGITS, INSTANCE_CODE_LENGTH - 1)


def generate_password(
    length: int,
    use_letters: bool = True,
    use_special: bool = True,
    use_numeric: bool = True
) -> str:
    """
    Generate a random password.

    Each character is drawn from the union of every enabled class.

    Args:
        length: Number of characters
        use_letters: Include a-z and A-Z
        use_special: Include punctuation from SPECIALS
        use_numeric: Include 0-9

    Returns:
        Password string of exactly `length` characters

    Raises:
        InvalidConfigurationError: If no class is enabled or length < 1
    """
    if length < 1:
        raise InvalidConfigurationError(f"Password length must be positive, got {length}")

    alphabet = ""
    if use_letters:
        alphabet += LETTERS
    if use_special:
        alphabet += SPECIALS
    if use_numeric:
        alphabet += DIGITS

    if not alphabet:
        raise InvalidConfigurationError("At least one character class must be enabled")

    return generate(alphabet, length)


def generate_username(length: int = 8) -> str:
    """
    Generate a login name for a managed database.

    Lowercase letters only, so it is a valid unquoted PostgreSQL role name.

    Example:
        >>> generate_username()
        "user_kqzmwbte"
    """
    if length < 1:
        raise InvalidConfigurationError(f"Username length must be positive, got {length}")
    return f"user_{generate(string.ascii_lowercase, length)}"
