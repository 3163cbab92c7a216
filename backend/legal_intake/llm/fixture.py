"""
Fixture LLM Provider

不呼叫任何外部 API：依 prompt 內容回傳預先準備的文字。
用於測試與本機 demo（LLM_PROVIDER=fixture）。

Each stage prompt carries its response-format keys in quotes, so a prompt
containing '"workflow"' gets a classification payload, '"matter_type"' a
matter payload, and so on. Markers are checked latest stage first.

Reply sequences belong to the provider, so sessions sharing one provider
consume them in call order. Prompts are kept only with record_prompts=True.
"""

import asyncio
import json
from collections import deque
from typing import Any, Deque, Dict, List, Mapping, Optional, Tuple, Union

from legal_intake.llm.base import LLMProvider, LLMResponse, Message

# marker -> canned reply (divorce intake scenario)
DEFAULT_RESPONSES: Dict[str, str] = {
    '"action"': json.dumps({
        "action": "REQUEST_LAWYER_APPROVAL",
        "priority": "medium",
        "reasoning": "Complete family law intake with reachable client",
    }),
    '"quality_score"': json.dumps({
        "quality_score": 85,
        "completeness_score": 90,
        "clarity_score": 80,
        "requires_human_review": False,
        "recommendations": ["Confirm date of separation"],
    }),
    '"full_name"': json.dumps({
        "full_name": "John Doe",
        "email": "john@example.com",
        "phone": "555-1234",
        "matter_description": "Divorce case",
        "opposing_party": None,
    }),
    '"matter_type"': json.dumps({
        "matter_type": "Family Law",
        "urgency": "medium",
        "complexity": 6,
        "intent": "divorce",
        "estimated_value": 5000,
    }),
    '"workflow"': json.dumps({
        "workflow": "MATTER_CREATION",
        "confidence": 0.8,
        "reasoning": "User is asking for help with a divorce case",
    }),
}

# A reply may be text, an exception to raise, or a sequence consumed one call at a time
Reply = Union[str, BaseException]


class FixtureProvider(LLMProvider):
    """Canned-response provider keyed on prompt content"""

    provider_name = "fixture"
    cost_per_1k_input = 0.0
    cost_per_1k_output = 0.0

    def __init__(
        self,
        api_key: str = "",
        model_name: str = "fixture",
        responses: Optional[Mapping[str, Union[Reply, List[Reply]]]] = None,
        delay_seconds: float = 0.0,
        record_prompts: bool = False,
        **kwargs,
    ):
        super().__init__(api_key, model_name, **kwargs)
        merged: Dict[str, Union[Reply, List[Reply]]] = dict(DEFAULT_RESPONSES)
        if responses:
            merged.update(responses)

        # 保持 DEFAULT_RESPONSES 的順序（最後的 stage 優先比對），新 marker 放最前面
        ordered = [k for k in merged if k not in DEFAULT_RESPONSES] + [
            k for k in DEFAULT_RESPONSES if k in merged
        ]
        self._replies: List[Tuple[str, Union[Reply, Deque[Reply]]]] = []
        for marker in ordered:
            reply = merged[marker]
            if isinstance(reply, (list, tuple)):
                self._replies.append((marker, deque(reply)))
            else:
                self._replies.append((marker, reply))

        self.delay_seconds = delay_seconds
        self.record_prompts = record_prompts
        self.prompts: List[str] = []

    def calls_for(self, marker: str) -> int:
        """這個 marker 被呼叫了幾次（需 record_prompts=True）"""
        return sum(1 for p in self.prompts if self._match(p) == marker)

    async def chat(
        self,
        messages: List[Message],
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        prompt = "\n".join(m.content for m in messages if m.role == "user")
        if self.record_prompts:
            self.prompts.append(prompt)

        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)

        content = self._reply_for(prompt)
        return LLMResponse(
            content=content,
            input_tokens=len(prompt.split()),
            output_tokens=len(content.split()),
            cost_usd=0.0,
            model=self.model_name,
            provider=self.provider_name,
            latency_ms=self.delay_seconds * 1000,
        )

    def _match(self, prompt: str) -> Optional[str]:
        for marker, _ in self._replies:
            if marker in prompt:
                return marker
        return None

    def _reply_for(self, prompt: str) -> str:
        for marker, reply in self._replies:
            if marker not in prompt:
                continue
            if isinstance(reply, deque):
                # 序列用完後重複最後一個回應
                reply = reply.popleft() if len(reply) > 1 else reply[0]
            if isinstance(reply, BaseException):
                raise reply
            return reply
        return "I'm here to help with your legal needs. What can I assist you with?"


def payload(**fields: Any) -> str:
    """Serialize a canned reply the way a well-behaved model would."""
    return json.dumps(fields)
