"""Text-understanding oracle used for boundary classification."""

import os
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass

from anthropic import Anthropic, APIError

from ..logger import logger
from .errors import OracleParseError, OracleUnavailableError

DEFAULT_MODEL = "claude-sonnet-4-20250514"
DEFAULT_MAX_TOKENS = 8192
DEFAULT_TIMEOUT_SECONDS = 120.0


@dataclass
class OracleResponse:
    """Raw oracle output plus usage accounting."""

    text: str
    input_tokens: int = 0
    output_tokens: int = 0
    model: str | None = None


class BoundaryOracle(ABC):
    """Narrow interface over whatever service classifies page synopses."""

    @abstractmethod
    def complete(self, system_prompt: str, prompt: str) -> OracleResponse:
        """Send one prompt and return the full textual response.

        Raises:
            OracleUnavailableError: If the service fails or times out.
            OracleParseError: If the service answers with no text.
        """


class AnthropicOracle(BoundaryOracle):
    """Oracle backed by the Anthropic Messages API."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        """Initialize the oracle.

        Args:
            api_key: Anthropic API key. If not provided, uses ANTHROPIC_API_KEY env var.
            model: Claude model used for classification.
            max_tokens: Response token ceiling.
            timeout: Seconds before the request is abandoned. A timeout is
                reported as OracleUnavailableError like any other failure.
        """
        api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not api_key:
            raise ValueError(
                "Anthropic API key required: provide api_key or set ANTHROPIC_API_KEY"
            )
        self.model = model
        self.max_tokens = max_tokens
        # No SDK-level retries
        self._client = Anthropic(api_key=api_key, timeout=timeout, max_retries=0)

    def complete(self, system_prompt: str, prompt: str) -> OracleResponse:
        start = time.perf_counter()
        try:
            response = self._client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system_prompt,
                messages=[{"role": "user", "content": prompt}],
            )
        except APIError as e:
            raise OracleUnavailableError(f"oracle request failed: {e}") from e

        text = "".join(
            block.text for block in response.content if block.type == "text"
        )
        if not text.strip():
            raise OracleParseError("empty response from oracle")

        usage = response.usage
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "oracle call completed",
            model=self.model,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
            response_length=len(text),
            duration_ms=round(duration_ms, 2),
        )

        return OracleResponse(
            text=text,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
            model=self.model,
        )
