"""
LLM Provider Base Classes and Interfaces
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional

from legal_intake.errors import ModelUnavailable

logger = logging.getLogger(__name__)


@dataclass
class Message:
    """對話訊息"""
    role: str  # "system" | "user" | "assistant"
    content: str


@dataclass
class LLMResponse:
    """LLM 回應的標準格式"""
    content: str
    input_tokens: int
    output_tokens: int
    cost_usd: float
    model: str
    provider: str
    latency_ms: float


class LLMProvider(ABC):
    """
    LLM Provider 抽象基底類別

    所有 LLM Provider（Gemini, Claude, OpenAI, Fixture）都必須實作此介面。
    Orchestrator 只依賴 complete()；實例不保存任何單次呼叫的狀態，
    可同時被多個 intake session 共用。
    """

    def __init__(
        self,
        api_key: str,
        model_name: str,
        timeout_seconds: float = 20.0,
        temperature: float = 0.1,
        max_tokens: Optional[int] = 500,
    ):
        self.api_key = api_key
        self.model_name = model_name
        self.timeout_seconds = timeout_seconds
        self.temperature = temperature
        self.max_tokens = max_tokens

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider 名稱 (gemini, claude, openai, fixture)"""
        pass

    @property
    @abstractmethod
    def cost_per_1k_input(self) -> float:
        """每 1000 input tokens 的成本 (USD)"""
        pass

    @property
    @abstractmethod
    def cost_per_1k_output(self) -> float:
        """每 1000 output tokens 的成本 (USD)"""
        pass

    @abstractmethod
    async def chat(
        self,
        messages: List[Message],
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        """
        發送對話請求

        Args:
            messages: 對話歷史
            temperature: 創意度 (0-1)
            max_tokens: 最大回應長度

        Returns:
            LLMResponse: 標準化的回應物件
        """
        pass

    async def complete(
        self,
        prompt: str,
        context: Optional[Mapping[str, Any]] = None,
        timeout_seconds: Optional[float] = None,
    ) -> str:
        """
        單次 completion：回傳原始文字，不解析、不重試

        timeout_seconds 未指定時使用 provider 建立時的設定

        Raises:
            ModelUnavailable: backend 錯誤或逾時
        """
        timeout = timeout_seconds or self.timeout_seconds
        messages = []
        if context:
            messages.append(Message(role="system", content=self._format_context(context)))
        messages.append(Message(role="user", content=prompt))

        try:
            response = await asyncio.wait_for(
                self.chat(
                    messages,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"[{self.provider_name}] completion timed out after {timeout}s"
            )
            raise ModelUnavailable(
                self.provider_name,
                f"timed out after {timeout}s",
            )
        except ModelUnavailable:
            raise
        except Exception as e:
            logger.warning(f"[{self.provider_name}] completion failed: {e}")
            raise ModelUnavailable(self.provider_name, str(e)) from e

        logger.debug(
            f"[{self.provider_name}] {response.input_tokens}+{response.output_tokens} tokens, "
            f"${response.cost_usd:.6f}, {response.latency_ms:.0f}ms"
        )
        return response.content or ""

    def calculate_cost(self, input_tokens: int, output_tokens: int) -> float:
        """計算本次呼叫成本"""
        input_cost = (input_tokens / 1000) * self.cost_per_1k_input
        output_cost = (output_tokens / 1000) * self.cost_per_1k_output
        return round(input_cost + output_cost, 6)

    def _format_context(self, context: Mapping[str, Any]) -> str:
        """格式化上下文"""
        lines = ["You are a legal intake assistant. Respond with a single JSON object only."]
        for key, value in context.items():
            lines.append(f"- {key}: {value}")
        return "\n".join(lines)
