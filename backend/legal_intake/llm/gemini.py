"""
Google Gemini LLM Provider
"""

import logging
import time
from typing import List, Optional, Tuple

import google.generativeai as genai

from legal_intake.errors import ModelUnavailable
from legal_intake.llm.base import LLMProvider, LLMResponse, Message

logger = logging.getLogger(__name__)


class GeminiProvider(LLMProvider):
    """Google Gemini API Provider (JSON mime type)"""

    provider_name = "gemini"

    # Gemini 1.5 Pro pricing
    # https://ai.google.dev/pricing
    cost_per_1k_input = 0.00125
    cost_per_1k_output = 0.00375

    def __init__(self, api_key: str, model_name: str = "gemini-1.5-pro", **kwargs):
        super().__init__(api_key, model_name, **kwargs)
        genai.configure(api_key=api_key)

    async def chat(
        self,
        messages: List[Message],
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        """發送對話請求到 Gemini"""
        start = time.time()

        system_prompt, contents = self._format_messages(messages)

        generation_config = {
            "temperature": temperature,
            "response_mime_type": "application/json",
        }
        if max_tokens:
            generation_config["max_output_tokens"] = max_tokens

        # system instruction 隨每次呼叫的 context 而變，model 物件本身不發網路請求
        model = genai.GenerativeModel(self.model_name, system_instruction=system_prompt)

        # 使用 async 版本，逾時與取消才能在 await 點生效
        response = await model.generate_content_async(
            contents,
            generation_config=generation_config,
        )

        latency = (time.time() - start) * 1000

        if not response.candidates:
            reason = getattr(response.prompt_feedback, "block_reason", None)
            raise ModelUnavailable(self.provider_name, f"prompt blocked ({reason})")

        candidate = response.candidates[0]
        finish = getattr(candidate.finish_reason, "name", str(candidate.finish_reason))
        if finish == "MAX_TOKENS":
            logger.warning(f"[gemini] completion truncated at max_output_tokens={max_tokens}")
        elif finish == "SAFETY":
            raise ModelUnavailable(self.provider_name, "completion blocked by safety filter")

        content = "".join(
            part.text for part in candidate.content.parts if getattr(part, "text", None)
        )

        usage = getattr(response, "usage_metadata", None)
        input_tokens = usage.prompt_token_count if usage else 0
        output_tokens = usage.candidates_token_count if usage else 0

        return LLMResponse(
            content=content,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost_usd=self.calculate_cost(input_tokens, output_tokens),
            model=self.model_name,
            provider=self.provider_name,
            latency_ms=latency,
        )

    def _format_messages(self, messages: List[Message]) -> Tuple[Optional[str], List[dict]]:
        """
        轉換訊息格式為 Gemini 格式

        Gemini 使用 'user' 和 'model' 角色；system message 改用 system_instruction 傳遞
        """
        system_prompt = None
        contents = []

        for msg in messages:
            if msg.role == "system":
                system_prompt = msg.content
            elif msg.role == "assistant":
                contents.append({"role": "model", "parts": [msg.content]})
            else:
                contents.append({"role": "user", "parts": [msg.content]})

        return system_prompt, contents
