"""
Service Layer Package

Business logic between the Telegram handlers and the record store.

Core Services:
- TaskLogger: day log mutations and completion commits
- OnboardingService: setup wizard persistence and Day 1 activation
- ProgramService: program lookups and the append-only user context

AI Collaborators:
- AIClient: Anthropic / OpenAI completions
- IntentExtractor: free text -> structured intent
- NutritionEstimator: food description -> calories and macros
- PhotoClassifier: workout screenshot vs progress picture
"""

from challenge_bot.services.container import ServiceContainer

__all__ = [
    "ServiceContainer",
]
