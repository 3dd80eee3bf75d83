"""Credential resolution for Gemini / Veo calls.

A caller may supply an override key (typed into the settings dialog); when
it is blank or implausibly short the session default is used instead.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Optional
from urllib.parse import urlencode

from errors import MissingCredentialError

MIN_OVERRIDE_LENGTH = 5

# Injected by the UI: opens an interactive key picker when the current key
# cannot reach a paid model. May no-op or raise CredentialSelectionCancelled.
EnsureCredentialSelected = Callable[[], Awaitable[None]]


def resolve(override: Optional[str], default: str) -> str:
    """Return ``override`` if it looks like a real key, else ``default``."""
    if override is not None and len(override.strip()) > MIN_OVERRIDE_LENGTH:
        return override.strip()
    return default


def require_credential(key: Optional[str], purpose: str) -> str:
    if not key or not key.strip():
        raise MissingCredentialError(
            f"An API key is required for {purpose}. Add one in settings or set it in .env."
        )
    return key


def with_credential(uri: str, key: str) -> str:
    """Append the key as a ``key=`` query parameter so the media URI is fetchable."""
    sep = "&" if "?" in uri else "?"
    return f"{uri}{sep}{urlencode({'key': key})}"


def mask(key: Optional[str]) -> str:
    """Printable form of a key for progress output."""
    if not key:
        return "(none)"
    return f"...{key[-4:]}" if len(key) > 8 else "****"
