"""
LLM Provider Abstraction Layer
"""

from legal_intake.llm.base import LLMProvider, LLMResponse, Message
from legal_intake.llm.factory import LLMProviderFactory

__all__ = ["LLMProvider", "LLMResponse", "Message", "LLMProviderFactory"]
