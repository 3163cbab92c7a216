"""
OpenAI GPT LLM Provider
"""

import logging
import time
from typing import List, Optional

import openai

from legal_intake.errors import ModelUnavailable
from legal_intake.llm.base import LLMProvider, LLMResponse, Message

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """OpenAI GPT API Provider (JSON mode)"""

    provider_name = "openai"

    # GPT-4o pricing
    # https://openai.com/pricing
    cost_per_1k_input = 0.005
    cost_per_1k_output = 0.015

    def __init__(self, api_key: str, model_name: str = "gpt-4o", **kwargs):
        super().__init__(api_key, model_name, **kwargs)
        # SDK 自身的重試關閉，重試政策由 orchestrator 依 stage 決定
        self.client = openai.AsyncOpenAI(api_key=api_key, max_retries=0)

    async def chat(
        self,
        messages: List[Message],
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        """發送對話請求到 OpenAI，強制回傳單一 JSON object"""
        start = time.time()

        response = await self.client.chat.completions.create(
            model=self.model_name,
            messages=[{"role": m.role, "content": m.content} for m in messages],
            temperature=temperature,
            max_tokens=max_tokens,
            response_format={"type": "json_object"},
        )

        latency = (time.time() - start) * 1000

        choice = response.choices[0]
        refusal = getattr(choice.message, "refusal", None)
        if refusal:
            raise ModelUnavailable(self.provider_name, f"request refused: {refusal}")
        if choice.finish_reason == "length":
            # 截斷的 JSON 交給 parser 判定為 ParseFailure
            logger.warning(f"[openai] completion truncated at max_tokens={max_tokens}")

        usage = response.usage
        input_tokens = usage.prompt_tokens if usage else 0
        output_tokens = usage.completion_tokens if usage else 0

        return LLMResponse(
            content=choice.message.content or "",
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost_usd=self.calculate_cost(input_tokens, output_tokens),
            model=self.model_name,
            provider=self.provider_name,
            latency_ms=latency,
        )
