"""
Anthropic Claude LLM Provider
"""

import logging
import time
from typing import List, Optional

import anthropic

from legal_intake.llm.base import LLMProvider, LLMResponse, Message

logger = logging.getLogger(__name__)


class ClaudeProvider(LLMProvider):
    """Anthropic Claude API Provider"""

    provider_name = "claude"

    # Claude Sonnet 4.5 pricing
    # https://www.anthropic.com/pricing
    cost_per_1k_input = 0.003
    cost_per_1k_output = 0.015

    def __init__(
        self,
        api_key: str,
        model_name: str = "claude-sonnet-4-5-20250929",
        **kwargs,
    ):
        super().__init__(api_key, model_name, **kwargs)
        # SDK 自身的重試關閉，重試政策由 orchestrator 依 stage 決定
        self.client = anthropic.AsyncAnthropic(api_key=api_key, max_retries=0)

    async def chat(
        self,
        messages: List[Message],
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        """發送對話請求到 Claude"""
        start = time.time()

        # 分離 system message 和對話訊息
        system_prompt, formatted_messages = self._format_messages(messages)

        request = {
            "model": self.model_name,
            "max_tokens": max_tokens or 4096,
            "messages": formatted_messages,
            "temperature": temperature,
        }
        if system_prompt:
            request["system"] = system_prompt

        response = await self.client.messages.create(**request)

        latency = (time.time() - start) * 1000

        input_tokens = response.usage.input_tokens
        output_tokens = response.usage.output_tokens

        if getattr(response, "stop_reason", None) == "max_tokens":
            # 截斷的 JSON 交給 parser 判定為 ParseFailure
            logger.warning(f"[claude] completion truncated at max_tokens={request['max_tokens']}")

        content = "".join(
            block.text for block in response.content or []
            if getattr(block, "type", "text") == "text"
        )

        return LLMResponse(
            content=content,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost_usd=self.calculate_cost(input_tokens, output_tokens),
            model=self.model_name,
            provider=self.provider_name,
            latency_ms=latency,
        )

    def _format_messages(self, messages: List[Message]) -> tuple[str, List[dict]]:
        """
        轉換訊息格式為 Claude 格式

        Claude 的 system message 需要獨立傳遞
        """
        system_prompt = ""
        formatted = []

        for msg in messages:
            if msg.role == "system":
                system_prompt = msg.content
            else:
                formatted.append({"role": msg.role, "content": msg.content})

        return system_prompt, formatted
