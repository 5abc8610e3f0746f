"""
Provider-agnostic async completion client.

Supports Anthropic, OpenAI (and OpenAI-compatible endpoints such as Groq or
OpenRouter through base_url), and Google Gemini with a shared
text-completion interface. Every provider failure surfaces as CompletionError.
"""

from __future__ import annotations

import logging
from typing import Optional

from .errors import CompletionError

logger = logging.getLogger("voicejournal.common.llm_client")


class LLMClient:
    """Unified async text completion client across LLM providers."""

    def __init__(
        self,
        provider: str = "openai",
        model: str = "",
        anthropic_api_key: Optional[str] = None,
        openai_api_key: Optional[str] = None,
        google_api_key: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> None:
        self.provider = (provider or "openai").lower()
        self.model = model
        self._client = None

        if self.provider == "anthropic":
            if not anthropic_api_key:
                logger.info("%s API key not provided, LLM client unavailable", self.provider)
                return
            try:
                import anthropic

                self._client = anthropic.AsyncAnthropic(api_key=anthropic_api_key)
            except ImportError:
                logger.warning("anthropic package not installed")
            except Exception as e:
                logger.warning("Failed to initialize Anthropic client: %s", e)
            return

        if self.provider == "openai":
            if not openai_api_key:
                logger.info("%s API key not provided, LLM client unavailable", self.provider)
                return
            try:
                from openai import AsyncOpenAI

                self._client = AsyncOpenAI(api_key=openai_api_key, base_url=base_url or None)
            except ImportError:
                logger.warning("openai package not installed")
            except Exception as e:
                logger.warning("Failed to initialize OpenAI client: %s", e)
            return

        if self.provider == "google":
            if not google_api_key:
                logger.info("%s API key not provided, LLM client unavailable", self.provider)
                return
            try:
                import google.generativeai as genai

                genai.configure(api_key=google_api_key)
                self._client = genai  # Store the module, not a model instance
                self._google_models = {}  # Cache models by system prompt hash
            except ImportError:
                logger.warning("google-generativeai package not installed")
            except Exception as e:
                logger.warning("Failed to initialize Gemini client: %s", e)
            return

        logger.warning("Unsupported LLM provider: %s", self.provider)

    @classmethod
    def from_config(cls, llm_config, model: str) -> "LLMClient":
        """Build a client for one model from an LLMConfig section."""
        return cls(
            provider=llm_config.provider,
            model=model,
            anthropic_api_key=llm_config.anthropic_api_key or None,
            openai_api_key=llm_config.openai_api_key or None,
            google_api_key=llm_config.google_api_key or None,
            base_url=llm_config.base_url or None,
        )

    @property
    def is_available(self) -> bool:
        return self._client is not None

    async def complete(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        temperature: float = 0.5,
        max_tokens: int = 512,
        timeout: float = 30.0,
    ) -> str:
        """Generate a completion for ``prompt``.

        Raises:
            CompletionError: the client is unavailable or the provider call failed.
        """
        if not self.is_available:
            raise CompletionError("LLM client is not available")

        try:
            return await self._complete(prompt, system, temperature, max_tokens, timeout)
        except CompletionError:
            raise
        except Exception as e:
            logger.warning("%s completion failed: %s", self.provider, e)
            raise CompletionError(f"{self.provider} completion failed: {e}") from e

    async def _complete(
        self,
        prompt: str,
        system: Optional[str],
        temperature: float,
        max_tokens: int,
        timeout: float,
    ) -> str:
        if self.provider == "anthropic":
            kwargs = {}
            if system:
                kwargs["system"] = system
            response = await self._client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                messages=[{"role": "user", "content": prompt}],
                timeout=timeout,
                **kwargs,
            )
            return response.content[0].text.strip()

        if self.provider == "openai":
            messages = []
            if system:
                messages.append({"role": "system", "content": system})
            messages.append({"role": "user", "content": prompt})
            response = await self._client.chat.completions.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                messages=messages,
                timeout=timeout,
            )
            return (response.choices[0].message.content or "").strip()

        if self.provider == "google":
            import hashlib

            cache_key = hashlib.md5((system or "").encode()).hexdigest()
            if cache_key not in self._google_models:
                kwargs = {"model_name": self.model}
                if system:
                    kwargs["system_instruction"] = system
                self._google_models[cache_key] = self._client.GenerativeModel(**kwargs)
            model = self._google_models[cache_key]
            response = await model.generate_content_async(
                prompt,
                generation_config={
                    "max_output_tokens": max_tokens,
                    "temperature": temperature,
                },
                request_options={"timeout": timeout},
            )
            return response.text.strip()

        raise CompletionError(f"Unsupported LLM provider: {self.provider}")
