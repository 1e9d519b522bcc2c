# security.py
"""
Input hygiene for the trip planner backend.
Cleans free text before it reaches the LLM prompt and flags likely prompt injection.
"""
from __future__ import annotations

import re
import logging
from typing import Any, Iterable, List, Optional
from fastapi import HTTPException, Request

log = logging.getLogger("security")

MAX_DESTINATION_LENGTH = 200
MAX_INTEREST_LENGTH = 50
MAX_INTERESTS = 20

# Suspicious patterns that might indicate prompt injection
PROMPT_INJECTION_PATTERNS = [
    # Direct instruction attempts
    r'\b(ignore|forget|disregard)\s+(previous|above|all|these|your)\s+(instructions?|prompts?|rules?)\b',
    r'\b(act|behave|pretend|roleplay)\s+as\s+(a|an)?\s*\w+',
    r'\bnow\s+(respond|answer|say|tell|write|generate)\b',

    # System prompt manipulation
    r'<\s*/?system\s*>',
    r'<\s*/?assistant\s*>',
    r'^\s*(system|assistant)\s*:',

    # Jailbreak attempts
    r'\b(jailbreak|bypass|override)\b',

    # Code injection attempts
    r'```\s*(python|javascript|bash|sh|cmd|powershell|sql)',
    r'\b__import__\s*\(',
    r'\bos\.(system|popen|exec)',

    # Social engineering
    r'\bi\s+am\s+(your\s+)?(creator|developer|admin|owner)\b',
]

# Compile patterns for efficiency
COMPILED_PATTERNS = [re.compile(pattern, re.IGNORECASE | re.MULTILINE) for pattern in PROMPT_INJECTION_PATTERNS]

_CONTROL_CHARS = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]')

def sanitize_input(text: str, max_length: int, field: str = "input") -> str:
    """
    Clean user text before it's placed in a prompt.

    Strips surrounding whitespace and control characters, then cuts the text
    to max_length. Newlines are kept because free-text input is often multi-line.
    """
    cleaned = _CONTROL_CHARS.sub('', text).strip()
    if len(cleaned) > max_length:
        log.warning("Input length exceeded; truncating", extra={"field": field, "length": len(cleaned), "max_length": max_length})
        cleaned = cleaned[:max_length].rstrip()
    return cleaned

def detect_prompt_injection(text: str) -> tuple[bool, List[str]]:
    """
    Detect potential prompt injection attempts.

    Returns:
        Tuple of (is_suspicious, list_of_matched_patterns)
    """
    suspicious_patterns = []

    for i, pattern in enumerate(COMPILED_PATTERNS):
        if pattern.search(text):
            suspicious_patterns.append(PROMPT_INJECTION_PATTERNS[i])

    return len(suspicious_patterns) > 0, suspicious_patterns

def _flag_injection(text: str, field: str) -> None:
    is_suspicious, patterns = detect_prompt_injection(text)
    if is_suspicious:
        SecurityValidator.log_security_event("prompt_injection_suspected", {
            "field": field,
            "patterns": patterns,
        })

def screen_text(text: Optional[str], max_length: int, field: str) -> Optional[str]:
    """Sanitize an optional field; blank becomes None. Injection is logged, not rejected."""
    if text is None:
        return None
    cleaned = sanitize_input(text, max_length=max_length, field=field)
    if not cleaned:
        return None
    _flag_injection(cleaned, field)
    return cleaned

def screen_prompt(prompt: Optional[str]) -> Optional[str]:
    """
    The free-text prompt may become the destination, so it is passed through
    verbatim: only a blank prompt is dropped. Size is bounded by the body limit.
    """
    if prompt is None or not prompt.strip():
        return None
    _flag_injection(prompt, "prompt")
    return prompt

def clean_interests(interests: Optional[Iterable[Any]]) -> List[str]:
    """
    Sanitize the interests list.

    Non-string and blank entries are dropped and the list is cut to
    MAX_INTERESTS, rather than failing the request.
    """
    if not interests:
        return []

    sanitized_interests = []
    for interest in interests:
        if not isinstance(interest, str):
            continue
        clean_interest = sanitize_input(interest, max_length=MAX_INTEREST_LENGTH, field="interest")
        if clean_interest:
            sanitized_interests.append(clean_interest)

    if len(sanitized_interests) > MAX_INTERESTS:
        log.warning("Too many interests; keeping the first ones", extra={"count": len(sanitized_interests), "max_interests": MAX_INTERESTS})
        sanitized_interests = sanitized_interests[:MAX_INTERESTS]
    return sanitized_interests

def security_headers_middleware():
    """
    Add security headers to responses.
    """
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "camera=(), microphone=(), geolocation=()"

        return response

    return add_security_headers

class SecurityValidator:
    """
    Request-level checks applied before routing.
    """

    @staticmethod
    def validate_request_size(request_size: int, max_size: int = 1024 * 50):
        """Validate request size to prevent DOS attacks."""
        if request_size > max_size:
            log.warning("Request size too large", extra={"size": request_size, "max_size": max_size})
            raise HTTPException(
                status_code=413,
                detail=f"Request too large. Maximum {max_size} bytes allowed."
            )

    @staticmethod
    def log_security_event(event_type: str, details: dict):
        """Log security events for monitoring."""
        log.warning(f"Security event: {event_type}", extra={
            "event_type": event_type,
            **details
        })
