"""Category decision policy: cache validation, manual-override detection and model fallback."""

import re

from ai_categorize.agents.base import BaseClassifier
from ai_categorize.core.models import (
    CacheEntry,
    Category,
    CategoryDecision,
    DecisionSource,
    TransactionSnapshot,
)
from ai_categorize.core.protocols import CategoryProvider, HistoryProvider, MerchantContextProvider
from ai_categorize.core.utils import get_logger
from ai_categorize.services.cache_store import CacheStore

logger = get_logger("ai-categorize.decision")

SKIP_NO_CATEGORIES = "no categories configured"
SKIP_NO_PROPOSAL = "classifier could not determine category"
SKIP_NOT_FOUND = "category not found"

_WORD = re.compile(r"[a-z0-9]+")


def analyze_history(cached: CacheEntry, history: list[TransactionSnapshot]) -> CategoryDecision:
    """Compare a cached category with recent transactions (newest first).

    Returns an override with the newest category when every categorized transaction disagrees with
    the cache, and the cached category otherwise (no history, full agreement or mixed signal).
    """
    cache_decision = CategoryDecision.of(DecisionSource.CACHE, cached.category_id, cached.category_name)
    categorized = [tx for tx in history if tx.is_categorized]
    if not categorized:
        logger.debug("No categorized history, using cache")
        return cache_decision
    if all(tx.category_name == cached.category_name for tx in categorized):
        logger.debug("All history matches cache")
        return cache_decision
    if all(tx.category_name != cached.category_name for tx in categorized):
        most_recent = categorized[0]
        logger.info(f"Detected manual override: '{cached.category_name}' -> '{most_recent.category_name}'")
        return CategoryDecision.of(DecisionSource.OVERRIDE, most_recent.category_id, most_recent.category_name)
    logger.debug("Mixed history, using cache")
    return cache_decision


def _singular(word: str) -> str:
    if word.endswith("ies") and len(word) > 4:
        return word[:-3] + "y"
    if word.endswith("s") and not word.endswith("ss") and len(word) > 3:
        return word[:-1]
    return word


def _words(text: str) -> tuple[str, ...]:
    return tuple(_singular(word) for word in _WORD.findall(text.lower()))


def _contains_run(words: tuple[str, ...], run: tuple[str, ...]) -> bool:
    size = len(run)
    return any(words[i : i + size] == run for i in range(len(words) - size + 1))


def _clean(text: str) -> str:
    return text.strip().strip("\"'").strip().rstrip(".").strip()


def match_category(proposed: str, categories: list[Category]) -> Category | None:
    """Resolve a proposed name against the known categories.

    Tries, in order: an exact case-insensitive match on the whole answer or any of its lines, a plain
    substring match in either direction, and finally whole singularized words in either direction.
    """
    cleaned = _clean(proposed)
    if not cleaned:
        return None
    candidates = [cleaned] + [line for line in map(_clean, cleaned.splitlines()) if line and line != cleaned]
    for candidate in candidates:
        lowered = candidate.lower()
        for category in categories:
            if category.name.lower() == lowered:
                return category

    lowered = cleaned.lower()
    for category in categories:
        name = category.name.lower()
        if name and (name in lowered or lowered in name):
            logger.info(f"Partial category match: '{cleaned}' -> '{category.name}'")
            return category

    wanted = _words(cleaned)
    if not wanted:
        return None
    for category in categories:
        name = _words(category.name)
        if name and (_contains_run(wanted, name) or _contains_run(name, wanted)):
            logger.info(f"Word category match: '{cleaned}' -> '{category.name}'")
            return category
    return None


class DecisionEngine:
    """Decides which category a merchant's transaction should get."""

    def __init__(
        self,
        cache: CacheStore,
        categories: CategoryProvider,
        history: HistoryProvider,
        classifier: BaseClassifier,
        context: MerchantContextProvider,
        history_limit: int = 5,
    ) -> None:
        """Wire the engine to its cache and collaborators."""
        self.cache = cache
        self.categories = categories
        self.history = history
        self.classifier = classifier
        self.context = context
        self.history_limit = history_limit

    async def decide(self, merchant_name: str, description: str, amount: str) -> CategoryDecision:
        """Return the category decision for a transaction paid to ``merchant_name``."""
        categories = await self.categories.list_categories()
        if not categories:
            return CategoryDecision.skip(SKIP_NO_CATEGORIES)
        known_ids = {c.id for c in categories}

        cached = self.cache.get(merchant_name)
        if cached is not None:
            if cached.category_id not in known_ids:
                logger.warning(
                    f"Cached category '{cached.category_name}' for '{merchant_name}' no longer exists, invalidating"
                )
                self.cache.invalidate(merchant_name)
            else:
                history = await self.history.recent_by_merchant(merchant_name, self.history_limit)
                decision = analyze_history(cached, history)
                if decision.source is not DecisionSource.OVERRIDE:
                    return decision
                if decision.category_id in known_ids:
                    self.cache.update_from_override(merchant_name, decision.category_name, decision.category_id)
                    return decision
                logger.warning(f"Override category '{decision.category_name}' no longer exists, asking the model")

        return await self._decide_with_model(categories, merchant_name, description, amount)

    async def _decide_with_model(
        self, categories: list[Category], merchant_name: str, description: str, amount: str
    ) -> CategoryDecision:
        logger.debug(f"Querying classifier for '{merchant_name}'")
        context = await self.context.search(merchant_name)
        history = await self.history.recent_by_merchant(merchant_name, self.history_limit)
        result = await self.classifier.categorize(categories, merchant_name, description, amount, history, context)
        if not result.category:
            return CategoryDecision.skip(SKIP_NO_PROPOSAL)

        category = match_category(result.category, categories)
        if category is None:
            logger.warning(f"Classifier proposed unknown category '{result.category}'")
            return CategoryDecision.skip(SKIP_NOT_FOUND)

        self.cache.set(merchant_name, category.name, category.id)
        return CategoryDecision.of(DecisionSource.MODEL, category.id, category.name)
