"""CategoryAgent: LLM-backed transaction categorization.

This module defines the CategoryAgent class, which asks a Groq-hosted language model to pick one category
for a transaction. The prompt carries the full category list, the transaction itself, optional web search
context about the merchant and a few previously categorized transactions from the same merchant. The agent
returns the model's cleaned answer; matching that answer against the real category list is left to the
decision engine.
"""

import re

from groq import AsyncGroq

from ai_categorize.agents.base import BaseClassifier
from ai_categorize.agents.prompts import (
    CONTEXT_TEMPLATE,
    HISTORY_HEADER,
    HISTORY_LINE_TEMPLATE,
    HISTORY_PROMPT_LIMIT,
    PROMPT_SUFFIX,
    SYSTEM_PROMPT_TEMPLATE,
    USER_PROMPT_TEMPLATE,
)
from ai_categorize.core.models import Category, ClassificationResult, TransactionSnapshot
from ai_categorize.core.settings import Settings
from ai_categorize.core.utils import get_logger

logger = get_logger("ai-categorize.llm")

THINK_BLOCK = re.compile(r"<think>.*?</think>", re.DOTALL | re.IGNORECASE)
MAX_OUTPUT_LOG_LEN = 300


def build_system_prompt(category_names: list[str]) -> str:
    """Render the system prompt listing every allowed category."""
    return SYSTEM_PROMPT_TEMPLATE.format(category_list="\n".join(f"- {name}" for name in category_names))


def build_user_prompt(
    merchant_name: str,
    description: str,
    amount: str,
    history: list[TransactionSnapshot],
    context: str | None = None,
) -> str:
    """Render the user prompt for one transaction."""
    prompt = USER_PROMPT_TEMPLATE.format(merchant_name=merchant_name, description=description, amount=amount)
    if context:
        prompt += CONTEXT_TEMPLATE.format(context=context)
    categorized = [tx for tx in history if tx.category_name]
    if categorized:
        prompt += HISTORY_HEADER
        for tx in categorized[:HISTORY_PROMPT_LIMIT]:
            prompt += HISTORY_LINE_TEMPLATE.format(description=tx.description, category_name=tx.category_name)
    return prompt + PROMPT_SUFFIX


def clean_output(raw_output: str) -> str | None:
    """Strip reasoning blocks, whitespace and surrounding quotes from the model answer."""
    answer = THINK_BLOCK.sub("", raw_output).strip().strip("\"'` ").strip()
    return answer or None


class CategoryAgent(BaseClassifier):
    """Agent that asks a Groq chat model to pick a category."""

    def __init__(self, llm_client: AsyncGroq, settings: Settings) -> None:
        """Initialize the CategoryAgent with an LLM client and settings."""
        self.llm_client = llm_client
        self.settings = settings

    @classmethod
    def from_settings(cls, settings: Settings) -> "CategoryAgent":
        """Build the agent with a Groq client from settings."""
        return cls(AsyncGroq(api_key=settings.groq_api_key), settings)

    async def categorize(
        self,
        categories: list[Category],
        merchant_name: str,
        description: str,
        amount: str,
        history: list[TransactionSnapshot],
        context: str | None = None,
    ) -> ClassificationResult:
        """Ask the model for a category name for this transaction."""
        messages = [
            {"role": "system", "content": build_system_prompt([c.name for c in categories])},
            {"role": "user", "content": build_user_prompt(merchant_name, description, amount, history, context)},
        ]
        logger.debug(f"AGENT: Calling LLM for '{merchant_name}' (model={self.settings.llm_model})")
        try:
            completion = await self.llm_client.chat.completions.create(
                model=self.settings.llm_model,
                messages=messages,
                temperature=self.settings.llm_temperature,
                max_completion_tokens=self.settings.llm_max_completion_tokens,
            )
        except Exception as exc:
            msg = f"Groq API call failed: {exc}"
            logger.exception(msg)
            raise RuntimeError(msg) from exc

        raw_output = ""
        if completion.choices:
            raw_output = completion.choices[0].message.content or ""
        logger.debug(f"AGENT: LLM output: {raw_output[:MAX_OUTPUT_LOG_LEN]}")
        category = clean_output(raw_output)
        logger.info(f"AGENT: LLM proposed category '{category}' for '{merchant_name}'")
        return ClassificationResult(category=category, raw_output=raw_output)

    async def aclose(self) -> None:
        """Close the underlying Groq client."""
        await self.llm_client.close()
