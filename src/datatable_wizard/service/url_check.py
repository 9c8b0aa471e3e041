"""Endpoint URL checks with suggestions for common mistakes."""

import re
from urllib.parse import urlparse

from pydantic import BaseModel

_TYPOS = [
    (re.compile(r"^htps://"), "https://"),
    (re.compile(r"^htp://"), "http://"),
    (re.compile(r"^https:/(?!/)"), "https://"),
    (re.compile(r"^http:/(?!/)"), "http://"),
]

_PRIVATE_PREFIXES = ("192.168.", "10.", "172.")


class UrlSuggestion(BaseModel):
    is_valid: bool
    original: str = ""
    fixed_url: str | None = None
    suggestions: list[str] = []
    is_secure: bool = False


class UrlCheck(BaseModel):
    valid: bool
    error: str | None = None
    warning: str | None = None
    suggestions: list[str] = []
    fixed_url: str | None = None
    severity: str = "success"  # success / warning / error


def is_valid_url(url: str | None) -> bool:
    """True for an absolute http(s) URL with a host."""
    if not url or not isinstance(url, str):
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    if parsed.scheme not in ("http", "https"):
        return False
    return bool(parsed.netloc) and not any(c.isspace() for c in parsed.netloc)


def is_secure_url(url: str | None) -> bool:
    return is_valid_url(url) and urlparse(url).scheme == "https"


def suggest_url_fix(url: str | None) -> UrlSuggestion:
    if not url or not isinstance(url, str):
        return UrlSuggestion(is_valid=False, suggestions=["Please enter a URL"])

    trimmed = url.strip()
    suggestions = []
    fixed = trimmed

    for pattern, correct in _TYPOS:
        if pattern.search(fixed):
            suggestions.append(f'Did you mean "{correct}"?')
            fixed = pattern.sub(correct, fixed, count=1)

    if not fixed.startswith(("http://", "https://")):
        fixed = "https://" + fixed
        suggestions.append("URL should start with http:// or https://")

    if fixed.startswith("http://") and not fixed.startswith("http://localhost"):
        suggestions.append("Consider using HTTPS for better security")
        fixed = "https://" + fixed[len("http://"):]

    if any(c.isspace() for c in trimmed):
        suggestions.append("URL should not contain spaces")
        fixed = re.sub(r"\s", "", fixed)

    is_valid = is_valid_url(fixed)
    if not is_valid and not suggestions:
        suggestions.append("Please enter a valid URL (e.g., https://api.example.com/data)")

    return UrlSuggestion(
        is_valid=is_valid,
        original=url,
        fixed_url=fixed if fixed != url else None,
        suggestions=suggestions,
        is_secure=is_secure_url(fixed),
    )


def validate_url(url: str | None) -> UrlCheck:
    """User-facing check of the endpoint URL.

    A valid URL is judged as typed; the suggestions only describe how an
    invalid one could be fixed.
    """
    if not url or not url.strip():
        return UrlCheck(valid=False, error="URL is required", severity="error")

    if not is_valid_url(url.strip()):
        suggestion = suggest_url_fix(url)
        return UrlCheck(
            valid=False,
            error=suggestion.suggestions[0] if suggestion.suggestions else "Invalid URL format",
            suggestions=suggestion.suggestions,
            fixed_url=suggestion.fixed_url,
            severity="error",
        )

    if not is_secure_url(url.strip()):
        return UrlCheck(valid=True, warning="URL is not secure (HTTPS recommended)", severity="warning")

    return UrlCheck(valid=True)


def extract_domain(url: str) -> str:
    if not is_valid_url(url):
        return ""
    return urlparse(url).hostname or ""


def is_localhost(url: str) -> bool:
    hostname = extract_domain(url).lower()
    if not hostname:
        return False
    return hostname in ("localhost", "127.0.0.1") or hostname.startswith(_PRIVATE_PREFIXES)
