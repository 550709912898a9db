"""
Thin async wrapper over LangChain's ChatOpenAI.

All scoring and summary calls go through LLMClient.complete(), which takes a
system prompt and a user prompt and returns the reply text. Parsing the reply
is the caller's job (see response_parser).
"""

import logging
from typing import Optional, Protocol

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from config import LLM_MODEL

logger = logging.getLogger(__name__)


class CompletionClient(Protocol):
    """Anything that can answer a system + user prompt with text."""

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        ...


# =============================================================================
# LLM Configuration
# =============================================================================


def get_llm(
    model: str = LLM_MODEL,
    temperature: float = 0.0,
    max_tokens: Optional[int] = None,
) -> ChatOpenAI:
    """
    Get a configured LLM instance.

    Args:
        model: The OpenAI model to use
        temperature: Temperature setting (0 for deterministic)
        max_tokens: Reply length cap

    Returns:
        Configured ChatOpenAI instance
    """
    return ChatOpenAI(model=model, temperature=temperature, max_tokens=max_tokens)


class LLMClient:
    """
    Issues single request/response completions.

    One ChatOpenAI instance is kept per (temperature, max_tokens) pair.
    """

    def __init__(self, model: str = LLM_MODEL):
        self.model = model
        self._llms: dict[tuple[float, int], ChatOpenAI] = {}

    def _llm_for(self, temperature: float, max_tokens: int) -> ChatOpenAI:
        key = (temperature, max_tokens)
        if key not in self._llms:
            self._llms[key] = get_llm(self.model, temperature, max_tokens)
        return self._llms[key]

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        llm = self._llm_for(temperature, max_tokens)
        logger.debug(f"LLM call: model={self.model} max_tokens={max_tokens}")
        response = await llm.ainvoke(
            [
                SystemMessage(content=system_prompt),
                HumanMessage(content=user_prompt),
            ]
        )
        content = response.content
        if isinstance(content, list):
            # Content blocks: keep the text parts only
            content = "".join(
                block.get("text", "") if isinstance(block, dict) else str(block)
                for block in content
            )
        return content.strip()
