"""Prompts for CategoryAgent LLM: system and user prompt templates for categorization."""

SYSTEM_PROMPT_TEMPLATE = """You are a financial transaction categorizer. Your job is to assign transactions to the most appropriate category.

Available categories:
{category_list}

Rules:
1. ONLY respond with a category name from the list above
2. If you're unsure, pick the closest match
3. Response format: Just the category name, nothing else
4. Be consistent - similar merchants should have the same category"""

USER_PROMPT_TEMPLATE = """Categorize this transaction:
- Merchant: {merchant_name}
- Description: {description}
- Amount: {amount}"""

CONTEXT_TEMPLATE = "\n\nMerchant context from web search:\n{context}"

HISTORY_HEADER = "\n\nPrevious transactions from this merchant:"
HISTORY_LINE_TEMPLATE = '\n- "{description}" → {category_name}'
HISTORY_PROMPT_LIMIT = 3

PROMPT_SUFFIX = "\n\nCategory:"
