"""Redaction of credentials from log records."""

import os
import re
from typing import List, Optional


class SecretsRedactor:
    """Redact API keys and tokens from text using regex patterns."""

    def __init__(self, patterns: Optional[List[str]] = None) -> None:
        if patterns is None:
            patterns = self._load_default_patterns()

        self.patterns = [re.compile(pattern, re.IGNORECASE) for pattern in patterns]

    def _load_default_patterns(self) -> List[str]:
        """Load redaction patterns from environment or use defaults."""
        env_patterns = os.environ.get("MODELSYNC_SECRETS_PATTERNS")
        if env_patterns:
            return [p.strip() for p in env_patterns.split(",") if p.strip()]

        return [
            # Authorization headers
            r'bearer\s+[a-zA-Z0-9\-_\.=]{8,}',

            # key=value style API keys and tokens
            r'(api[_-]?key|token|secret|password|auth)[\s]*[=:]\s*["\']?[a-zA-Z0-9\-_]{16,}["\']?',

            # Provider key prefixes (OpenAI, Anthropic, OpenRouter, Together)
            r'\b(sk|sk-ant|sk-or|tgp)-[a-zA-Z0-9\-_]{16,}\b',

            # JWT tokens
            r'eyJ[a-zA-Z0-9\-_]+\.[a-zA-Z0-9\-_]+\.[a-zA-Z0-9\-_]+',
        ]

    def redact(self, text: str, replacement: str = "***REDACTED***") -> str:
        if not text:
            return text

        redacted = text
        for pattern in self.patterns:
            redacted = pattern.sub(replacement, redacted)
        return redacted

    def redact_dict(self, data: dict, replacement: str = "***REDACTED***") -> dict:
        """Redact string values of a log record, recursing into dicts and lists."""
        if not data:
            return data

        redacted = {}
        for key, value in data.items():
            if isinstance(value, str):
                redacted[key] = self.redact(value, replacement)
            elif isinstance(value, dict):
                redacted[key] = self.redact_dict(value, replacement)
            elif isinstance(value, list):
                redacted[key] = [
                    self.redact_dict(item, replacement) if isinstance(item, dict)
                    else self.redact(item, replacement) if isinstance(item, str)
                    else item
                    for item in value
                ]
            else:
                redacted[key] = value
        return redacted


_redactor: Optional[SecretsRedactor] = None


def get_redactor() -> SecretsRedactor:
    global _redactor
    if _redactor is None:
        _redactor = SecretsRedactor()
    return _redactor


def redact(text: str, replacement: str = "***REDACTED***") -> str:
    return get_redactor().redact(text, replacement)


def redact_dict(data: dict, replacement: str = "***REDACTED***") -> dict:
    return get_redactor().redact_dict(data, replacement)
