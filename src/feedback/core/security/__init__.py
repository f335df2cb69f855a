"""Security utilities - API keys, injection screening and validators.

Re-exports all security-related functions for convenience.
"""

from src.feedback.core.security.api_keys import MIN_TOKEN_LENGTH, parse_bearer, verify_api_key
from src.feedback.core.security.injection import (
    Finding,
    contains_script_injection,
    contains_sql_injection,
    find_suspicious,
    find_suspicious_params,
)
from src.feedback.core.security.validators import (
    decode_image_data_url,
    is_http_url,
    is_https_url,
    is_image_data_url,
    is_uuid4,
    is_valid_email,
    is_valid_screen_resolution,
    sanitize_html,
)

__all__ = [
    # API keys
    "MIN_TOKEN_LENGTH",
    "parse_bearer",
    "verify_api_key",
    # Injection
    "Finding",
    "contains_script_injection",
    "contains_sql_injection",
    "find_suspicious",
    "find_suspicious_params",
    # Validators
    "decode_image_data_url",
    "is_http_url",
    "is_https_url",
    "is_image_data_url",
    "is_uuid4",
    "is_valid_email",
    "is_valid_screen_resolution",
    "sanitize_html",
]
