"""
Redaction of sensitive payload fields before traffic is persisted.

Redaction occurs at the recording boundary: every payload is scrubbed before
it enters a Recording. This is a pure pass - no I/O, no randomness, and the
input tree is never mutated; a new tree is built instead.

Matching rules:
- Only object keys are inspected; a key matches when it equals one of the
  sensitive keys, ignoring case (exact match, not substring)
- A matching key keeps its place but its whole value becomes the marker
- Every other object member and every array element is walked recursively
- Scalars pass through unchanged
"""

from __future__ import annotations

from typing import Any, Dict, FrozenSet, Iterable, List

REDACTED = "[REDACTED]"

DEFAULT_SENSITIVE_KEYS = (
    "token",
    "accessToken",
    "refreshToken",
    "password",
    "secret",
    "apiKey",
    "credentials",
)


class RedactionPolicy:
    """
    Deterministic key-based redaction policy.

    Same input -> same output. No mutation of inputs.
    """

    def __init__(
        self,
        sensitive_keys: Iterable[str] = DEFAULT_SENSITIVE_KEYS,
        marker: str = REDACTED,
    ):
        """
        Create a redaction policy.

        Args:
            sensitive_keys: Key names whose values are masked (case-insensitive)
            marker: Replacement value for masked fields
        """
        self.sensitive_keys = tuple(sensitive_keys)
        self.marker = marker
        self._folded: FrozenSet[str] = frozenset(k.casefold() for k in self.sensitive_keys)

    def is_sensitive(self, key: str) -> bool:
        return isinstance(key, str) and key.casefold() in self._folded

    def redact(self, payload: Any) -> Any:
        """
        Redact a payload according to the policy.

        Args:
            payload: Any JSON-like value

        Returns:
            Redacted copy (input not mutated)
        """
        if isinstance(payload, dict):
            return self._redact_dict(payload)
        if isinstance(payload, (list, tuple)):
            return self._redact_list(payload)
        return payload

    def _redact_dict(self, d: Dict[str, Any]) -> Dict[str, Any]:
        result = {}
        for key, value in d.items():
            if self.is_sensitive(key):
                result[key] = self.marker
            else:
                result[key] = self.redact(value)
        return result

    def _redact_list(self, lst: Iterable[Any]) -> List[Any]:
        return [self.redact(item) for item in lst]


def create_default_policy() -> RedactionPolicy:
    """
    Create the default redaction policy.

    Masks tokens, passwords, secrets, API keys and credentials.
    """
    return RedactionPolicy(DEFAULT_SENSITIVE_KEYS)
