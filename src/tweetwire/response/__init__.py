"""tweetwire response -- rate-limit extraction and error classification."""
from __future__ import annotations

from tweetwire.response.classifier import (
    RATE_LIMIT_LIMIT,
    RATE_LIMIT_REMAINING,
    RATE_LIMIT_RESET,
    create_api_error,
    decode_json,
    errors_from_envelope,
    errors_from_json,
    parse_errors,
    parse_form_response,
    parse_response,
    raise_for_status,
    read_rate_limit,
    select_json_path,
)

__all__ = [
    "RATE_LIMIT_LIMIT",
    "RATE_LIMIT_REMAINING",
    "RATE_LIMIT_RESET",
    "read_rate_limit",
    "parse_errors",
    "errors_from_json",
    "errors_from_envelope",
    "create_api_error",
    "raise_for_status",
    "decode_json",
    "select_json_path",
    "parse_response",
    "parse_form_response",
]
