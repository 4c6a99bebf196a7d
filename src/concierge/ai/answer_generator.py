"""
Free-text answers from an OpenAI-compatible chat completions endpoint.

The dispatch pipeline only needs one thing from the model: given the text of
a question, produce the text of an answer, or report that it could not. This
module hides the client, the prompt layout and the failure modes (network,
quota, timeout, empty output) behind :meth:`AnswerGenerator.generate`, which
always returns a :class:`GenerationResult`.
"""

from __future__ import annotations

import asyncio
from typing import List

from openai import AsyncOpenAI, OpenAIError
from openai.types.chat import ChatCompletionMessageParam

from concierge.configuration.ai_settings import AISettings
from concierge.datatypes.result_datatypes import GenerationResult
from concierge.util.logger import get_logger

logger = get_logger("answer_generator")


class AnswerGenerator:
    """Single-call gateway to the generative backend.

    Parameters
    ----------
    ai_settings:
        Backend configuration (endpoint, model, key, timeout, system prompt).
    client:
        Optional pre-built client; one is created from ``ai_settings`` otherwise.
    """

    def __init__(self, ai_settings: AISettings, client: AsyncOpenAI | None = None) -> None:
        self.enabled = ai_settings.enabled
        self.model_name = ai_settings.model_name
        self.timeout_seconds = ai_settings.request_timeout_seconds
        self.system_prompt = ai_settings.system_prompt

        if client is None and self.enabled:
            api_key = ai_settings.api_key
            if not api_key:
                logger.warning(
                    "[ANSWER GENERATOR] No API key found in config or $%s; generation will fail",
                    ai_settings.api_key_env,
                )
            client = AsyncOpenAI(
                api_key=api_key or "missing-api-key",
                base_url=ai_settings.base_url,
                timeout=self.timeout_seconds,
                max_retries=0,
            )
        self._client = client

        logger.info(
            "[ANSWER GENERATOR] Initialized (enabled=%s, base_url=%s, model=%s, timeout=%.0fs)",
            self.enabled,
            ai_settings.base_url,
            self.model_name,
            self.timeout_seconds,
        )

    def build_messages(self, text: str) -> List[ChatCompletionMessageParam]:
        messages: List[ChatCompletionMessageParam] = []
        if self.system_prompt:
            messages.append({"role": "system", "content": self.system_prompt})
        messages.append({"role": "user", "content": text})
        return messages

    async def generate(self, text: str) -> GenerationResult:
        """Generate an answer for ``text``.

        Never raises and never retries; every failure is logged and returned
        as ``GenerationResult(success=False)``.
        """
        if not self.enabled or self._client is None:
            return GenerationResult.failed("AI answers are disabled")

        try:
            response = await asyncio.wait_for(
                self._client.chat.completions.create(
                    model=self.model_name,
                    messages=self.build_messages(text),
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning("[ANSWER GENERATOR] Request timed out after %.0fs", self.timeout_seconds)
            return GenerationResult.failed("timeout")
        except OpenAIError as exc:
            logger.error("[ANSWER GENERATOR] Backend error: %s", exc)
            return GenerationResult.failed(str(exc))
        except Exception as exc:
            logger.exception("[ANSWER GENERATOR] Unexpected error generating answer: %s", exc)
            return GenerationResult.failed(str(exc))

        try:
            answer = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as exc:
            logger.error("[ANSWER GENERATOR] Malformed response: %s", exc)
            return GenerationResult.failed("malformed response")

        if not answer or not answer.strip():
            logger.warning("[ANSWER GENERATOR] Backend returned an empty answer")
            return GenerationResult.failed("empty response")

        return GenerationResult.ok(answer.strip())

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
