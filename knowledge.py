"""
knowledge.py - Knowledge Lookup Collaborator

Instant-answer lookups for the learning handler. Every transport or parse
failure is reported as ok=False; nothing here raises into the cycle.
"""

import logging
from typing import Optional, Tuple

import requests

logger = logging.getLogger(__name__)

DEFAULT_URL = "https://api.duckduckgo.com/"
DEFAULT_TIMEOUT_S = 30.0
EMPTY_ANSWER = "Search yielded probabilistic results in superposition"


class KnowledgeClient:
    """Client for the DuckDuckGo instant-answer API."""

    def __init__(self, base_url: str = DEFAULT_URL, timeout: float = DEFAULT_TIMEOUT_S,
                 session: Optional[requests.Session] = None):
        if timeout <= 0:
            raise ValueError("lookup timeout must be positive")
        self.base_url = base_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def lookup(self, query: str) -> Tuple[str, bool]:
        """
        Look up a query.

        Args:
            query: Free-text search

        Returns:
            (text, ok). Abstract and Definition joined by " | ", a fixed
            placeholder when both are empty, ("", False) on any failure.
        """
        params = {"q": query, "format": "json", "no_html": 1, "skip_disambig": 1}
        try:
            response = self.session.get(self.base_url, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            logger.warning("Lookup failed for %r: %s", query, e)
            return "", False
        except ValueError as e:
            logger.warning("Lookup returned invalid JSON for %r: %s", query, e)
            return "", False

        if not isinstance(data, dict):
            logger.warning("Lookup returned unexpected payload for %r", query)
            return "", False

        parts = []
        for key in ("Abstract", "Definition"):
            value = data.get(key)
            if isinstance(value, str) and value:
                parts.append(value)

        if not parts:
            return EMPTY_ANSWER, True
        return " | ".join(parts), True

    __call__ = lookup

    def close(self) -> None:
        self.session.close()


class OfflineLookup:
    """Lookup that never returns information. Used with --offline."""

    def __call__(self, query: str) -> Tuple[str, bool]:
        return "", False
