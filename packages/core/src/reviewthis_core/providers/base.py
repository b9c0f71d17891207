"""Base inference client implementing the Template Method pattern.

All backends share the same call contract:
    health_check() → _ping()             ← differs per backend
    send(prompt)   → _call_api(prompt)   ← differs per backend
                   → reject empty text

Subclasses implement two things only:
  - _ping: one cheap request proving the server is up
  - _call_api: make one raw generation call and return the text response

Error normalisation lives here so every backend reports failures the same
way: one InferenceError per failed call, never an empty string that could be
confused with a real review. Calls are never retried: a failed file is
recorded as failed and the user re-runs the tool.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class InferenceError(Exception):
    """The inference server could not produce a review for this call."""


class BaseInferenceClient(ABC):
    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def health_check(self) -> None:
        """Raise InferenceError if the server is not reachable."""
        try:
            self._ping()
        except InferenceError:
            raise
        except Exception as e:
            raise InferenceError(f"{self.__class__.__name__} health check failed: {e}") from e

    def send(self, prompt: str) -> str:
        """Send one prompt and return the complete response text unchanged."""
        try:
            text = self._call_api(prompt)
        except InferenceError:
            raise
        except Exception as e:
            raise InferenceError(f"{type(e).__name__}: {e}") from e

        if not text or not text.strip():
            raise InferenceError("empty response from inference server")
        return text

    def close(self) -> None:
        """Release any resources held by the client.

        Default is a no-op so callers can always call close() safely.
        """

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    # ------------------------------------------------------------------ #
    # Abstract: implement in each backend                                  #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _ping(self) -> None:
        """Make a single liveness request; raise on failure."""

    @abstractmethod
    def _call_api(self, prompt: str) -> str:
        """Make a single generation call and return the raw text response.

        Should raise on failure; send() converts every failure into an
        InferenceError.
        """
