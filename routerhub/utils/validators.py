"""
Input Validation Utilities

FLOW OVERVIEW
- validate_email(email)
  • Syntax and length checks; returns sanitized lowercased value.
- validate_url(url)
  • Absolute http(s) URL with a host.
- validate_slug(slug)
  • Lowercase letters, digits and hyphens only.
- validate_key_values(values)
  • Non-empty list of strings that all start with 'sk-'.
- validate_comment(content)
  • Non-empty, at most 5000 characters after trimming.
- validate_choice(value, choices, field)
  • Enumerated field check with a readable error.
- sanitize_input(input, max_length)
  • Trim, bound length, normalize, and remove null bytes.
"""

import re
from typing import Optional, Iterable
from dataclasses import dataclass
from urllib.parse import urlparse


@dataclass
class ValidationResult:
    """Result of validation operation"""
    is_valid: bool
    error_message: Optional[str] = None
    sanitized_value: Optional[object] = None


class InputValidator:
    """Validation rules shared by the JSON API routes"""

    EMAIL_PATTERN = re.compile(
        r'^[a-zA-Z0-9.!#$%&\'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$'
    )

    SLUG_PATTERN = re.compile(r'^[a-z0-9-]+$')

    API_KEY_PREFIX = 'sk-'

    COMMENT_MAX_LENGTH = 5000

    @classmethod
    def validate_email(cls, email: str) -> ValidationResult:
        """
        Validate email address

        Args:
            email: Email address to validate

        Returns:
            ValidationResult with validation status and sanitized value
        """
        if not email or not isinstance(email, str):
            return ValidationResult(False, "Email is required")

        email = email.strip()
        if email == "":
            return ValidationResult(False, "Email is required")

        # RFC 5321 limits
        if len(email) > 254:
            return ValidationResult(False, "Email address too long (max 254 characters)")

        if not cls.EMAIL_PATTERN.match(email) or '.' not in email.split('@')[-1]:
            return ValidationResult(False, "Invalid email format")

        local_part, domain = email.split('@')
        if local_part.startswith('.') or local_part.endswith('.') or '..' in local_part:
            return ValidationResult(False, "Invalid email format")

        if domain.startswith('.') or domain.endswith('.') or '..' in domain:
            return ValidationResult(False, "Invalid email format")

        return ValidationResult(True, sanitized_value=email.lower())

    @classmethod
    def validate_url(cls, url: str) -> ValidationResult:
        """Validate an absolute http(s) URL"""
        if not url or not isinstance(url, str):
            return ValidationResult(False, "Invalid URL format")
        url = url.strip()
        try:
            parsed = urlparse(url)
        except ValueError:
            return ValidationResult(False, "Invalid URL format")
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            return ValidationResult(False, "Invalid URL format")
        return ValidationResult(True, sanitized_value=url)

    @classmethod
    def validate_slug(cls, slug: str) -> ValidationResult:
        if not slug or not isinstance(slug, str) or not cls.SLUG_PATTERN.match(slug):
            return ValidationResult(
                False, "Invalid slug format. Use only lowercase letters, numbers and hyphens")
        return ValidationResult(True, sanitized_value=slug)

    @classmethod
    def validate_key_values(cls, values) -> ValidationResult:
        """Every pooled key must be a string starting with 'sk-'"""
        if not isinstance(values, list) or len(values) == 0:
            return ValidationResult(False, "keyValues must be a non-empty array")
        cleaned = []
        for value in values:
            if not isinstance(value, str) or not value.strip().startswith(cls.API_KEY_PREFIX):
                return ValidationResult(False, "All keys must start with \"sk-\"")
            cleaned.append(value.strip())
        return ValidationResult(True, sanitized_value=cleaned)

    @classmethod
    def validate_comment(cls, content) -> ValidationResult:
        if not isinstance(content, str) or not content.strip():
            return ValidationResult(False, "Comment content is required")
        content = content.strip()
        if len(content) > cls.COMMENT_MAX_LENGTH:
            return ValidationResult(
                False, f"Comment is too long (max {cls.COMMENT_MAX_LENGTH} characters)")
        return ValidationResult(True, sanitized_value=content)

    @classmethod
    def validate_choice(cls, value, choices: Iterable[str], field: str) -> ValidationResult:
        choices = tuple(choices)
        if value not in choices:
            quoted = ' or '.join(f'"{choice}"' for choice in choices)
            return ValidationResult(False, f"{field} must be either {quoted}")
        return ValidationResult(True, sanitized_value=value)

    @classmethod
    def sanitize_input(cls, input_string: str, max_length: int = 1000) -> str:
        """
        Sanitize free-text user input

        Args:
            input_string: Input string to sanitize
            max_length: Maximum allowed length

        Returns:
            Sanitized string
        """
        if not input_string:
            return ""

        sanitized = str(input_string).strip()

        if len(sanitized) > max_length:
            sanitized = sanitized[:max_length]

        sanitized = sanitized.replace('\x00', '')

        # Normalize line endings
        sanitized = sanitized.replace('\r\n', '\n').replace('\r', '\n')

        return sanitized


# Convenience functions for common validations
def validate_email(email: str) -> ValidationResult:
    """Validate email address"""
    return InputValidator.validate_email(email)


def validate_url(url: str) -> ValidationResult:
    """Validate an http(s) URL"""
    return InputValidator.validate_url(url)


def validate_slug(slug: str) -> ValidationResult:
    """Validate a URL slug"""
    return InputValidator.validate_slug(slug)


def validate_key_values(values) -> ValidationResult:
    """Validate a pooled key list"""
    return InputValidator.validate_key_values(values)


def validate_comment(content) -> ValidationResult:
    """Validate comment text"""
    return InputValidator.validate_comment(content)


def validate_choice(value, choices, field: str) -> ValidationResult:
    """Validate an enumerated field"""
    return InputValidator.validate_choice(value, choices, field)


def sanitize_input(input_string: str, max_length: int = 1000) -> str:
    """Sanitize user input"""
    return InputValidator.sanitize_input(input_string, max_length)
