from __future__ import annotations

from typing import Tuple

from openai import AsyncOpenAI, OpenAIError

from watchtower.config import LLMConfig
from watchtower.core.errors import SynthesisError


class OpenAICompatibleSynthesizer:
    provider_id = "openai_compatible"

    def __init__(self, llm_config: LLMConfig) -> None:
        self.llm_config = llm_config

    async def synthesize(self, prompt: str) -> Tuple[str, str]:
        if not self.llm_config.configured:
            raise SynthesisError(f"API key is required for provider {self.llm_config.provider}")

        client = AsyncOpenAI(
            # Local servers accept any token but the SDK insists on one.
            api_key=self.llm_config.api_key or "local",
            base_url=self.llm_config.resolved_base_url(),
            timeout=self.llm_config.timeout,
        )
        model = self.llm_config.resolved_model()
        try:
            response = await client.chat.completions.create(
                model=model,
                temperature=self.llm_config.temperature,
                max_tokens=self.llm_config.max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except OpenAIError as exc:
            raise SynthesisError(f"{self.llm_config.provider} request failed: {exc}") from exc
        finally:
            await client.close()

        if not response.choices:
            raise SynthesisError(f"no response from {self.llm_config.provider}")
        content = (response.choices[0].message.content or "").strip()
        return content, response.model or model
