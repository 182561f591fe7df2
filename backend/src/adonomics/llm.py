"""Forced function-call chat completions through LiteLLM."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Optional

import litellm
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from adonomics.config import Config
from adonomics.errors import ConfigurationError, SynthesisError

logger = logging.getLogger(__name__)

_RETRY_MAX_ATTEMPTS = 3
_RETRY_MIN_DELAY_SECONDS = 1.0
_RETRY_MAX_DELAY_SECONDS = 8.0


def _is_rate_limited(exc: BaseException) -> bool:
    return getattr(exc, "status_code", None) == 429


def _first_tool_call(response: Any) -> Any:
    choices = getattr(response, "choices", None) or []
    if not choices:
        return None
    message = getattr(choices[0], "message", None)
    tool_calls = getattr(message, "tool_calls", None) or []
    return tool_calls[0] if tool_calls else None


class LanguageModelClient:
    """
    Calls a chat model with exactly one tool and forces the model to use it.

    Every failure mode (missing key, timeout, transport error, no tool call,
    wrong tool, unparseable arguments) surfaces as ``SynthesisError``.
    """

    def __init__(
        self,
        config: Config,
        completion: Optional[Callable[..., Awaitable[Any]]] = None,
    ):
        self.config = config
        self._completion = completion
        self._retry_sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    async def call_function(
        self,
        system_prompt: str,
        user_prompt: str,
        tool: dict[str, Any],
    ) -> dict[str, Any]:
        try:
            api_key = self.config.require_language_model()
        except ConfigurationError as exc:
            raise SynthesisError(str(exc)) from exc

        tool_name = tool["function"]["name"]
        completion = self._completion or litellm.acompletion
        request = dict(
            model=self.config.llm_model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            tools=[tool],
            tool_choice={"type": "function", "function": {"name": tool_name}},
            temperature=self.config.llm_temperature,
            max_tokens=self.config.llm_max_tokens,
            api_key=api_key,
        )

        response = None
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception(_is_rate_limited),
                stop=stop_after_attempt(_RETRY_MAX_ATTEMPTS),
                wait=wait_exponential(
                    multiplier=1,
                    min=_RETRY_MIN_DELAY_SECONDS,
                    max=_RETRY_MAX_DELAY_SECONDS,
                ),
                reraise=True,
                before_sleep=self._log_retry_before_sleep,
                sleep=self._retry_sleep,
            ):
                with attempt:
                    response = await asyncio.wait_for(
                        completion(**request),
                        timeout=self.config.llm_timeout_seconds,
                    )
        except asyncio.TimeoutError as exc:
            raise SynthesisError(
                f"Language model call timed out after {self.config.llm_timeout_seconds}s"
            ) from exc
        except Exception as exc:
            raise SynthesisError(f"Language model call failed: {exc}") from exc

        tool_call = _first_tool_call(response)
        if tool_call is None:
            raise SynthesisError("No tool call in language model response")

        function = getattr(tool_call, "function", None)
        name = getattr(function, "name", None)
        if name != tool_name:
            raise SynthesisError(f"Unexpected tool call {name!r}, expected {tool_name!r}")

        raw_arguments = getattr(function, "arguments", None)
        if isinstance(raw_arguments, dict):
            return raw_arguments
        try:
            arguments = json.loads(raw_arguments or "")
        except (TypeError, ValueError) as exc:
            raise SynthesisError(f"Tool arguments are not valid JSON: {exc}") from exc
        if not isinstance(arguments, dict):
            raise SynthesisError("Tool arguments must be a JSON object")
        return arguments

    @staticmethod
    def _log_retry_before_sleep(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        if exc is None:
            return
        wait_seconds = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            "Language model rate-limited (attempt %s/%s): %s. Retrying in %.1fs.",
            retry_state.attempt_number,
            _RETRY_MAX_ATTEMPTS,
            exc,
            wait_seconds,
        )
