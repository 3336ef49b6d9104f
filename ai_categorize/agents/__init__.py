"""Agents package: provides the classifier base class and the LLM categorization agent."""

from .base import BaseClassifier  # noqa: F401
from .category_agent import CategoryAgent  # noqa: F401
