"""
Service Container - Dependency Injection Container

Holds the infrastructure (store, AI client, notifier) and builds services
lazily on first access. One container is created in main.py and stored in
the bot's `bot_data["container"]` for handlers and jobs.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional
import logging

from challenge_bot.db.store import RecordStore
from challenge_bot.services.ai_client import AIClient
from challenge_bot.services.notifier import Notifier
from challenge_bot.utils.datetime_helpers import now_utc

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for services.

    Services are lazy-loaded on first access via properties.
    The notifier is set once the bot exists (see bot.create_bot_application).
    """

    # Infrastructure dependencies (injected)
    store: RecordStore
    ai_client: AIClient
    notifier: Optional[Notifier] = None
    clock: Callable[[], datetime] = now_utc

    # Services (lazy-loaded via properties)
    _task_logger: Optional[object] = field(default=None, init=False, repr=False)
    _onboarding_service: Optional[object] = field(default=None, init=False, repr=False)
    _program_service: Optional[object] = field(default=None, init=False, repr=False)
    _intent_extractor: Optional[object] = field(default=None, init=False, repr=False)
    _nutrition: Optional[object] = field(default=None, init=False, repr=False)
    _photo_classifier: Optional[object] = field(default=None, init=False, repr=False)
    _lifecycle: Optional[object] = field(default=None, init=False, repr=False)
    _alerts: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def task_logger(self):
        """Get TaskLogger instance (lazy-loaded)"""
        if self._task_logger is None:
            from challenge_bot.services.task_logger import TaskLogger
            self._task_logger = TaskLogger(self.store, self.clock)
            logger.debug("TaskLogger instantiated")
        return self._task_logger

    @property
    def onboarding_service(self):
        """Get OnboardingService instance (lazy-loaded)"""
        if self._onboarding_service is None:
            from challenge_bot.services.onboarding_service import OnboardingService
            self._onboarding_service = OnboardingService(self.store, self.clock)
            logger.debug("OnboardingService instantiated")
        return self._onboarding_service

    @property
    def program_service(self):
        """Get ProgramService instance (lazy-loaded)"""
        if self._program_service is None:
            from challenge_bot.services.program_service import ProgramService
            self._program_service = ProgramService(self.store, self.clock)
            logger.debug("ProgramService instantiated")
        return self._program_service

    @property
    def intent_extractor(self):
        if self._intent_extractor is None:
            from challenge_bot.services.intent_extractor import IntentExtractor
            self._intent_extractor = IntentExtractor(self.ai_client)
        return self._intent_extractor

    @property
    def nutrition(self):
        if self._nutrition is None:
            from challenge_bot.services.nutrition import NutritionEstimator
            self._nutrition = NutritionEstimator(self.ai_client)
        return self._nutrition

    @property
    def photo_classifier(self):
        if self._photo_classifier is None:
            from challenge_bot.services.photo_classifier import PhotoClassifier
            self._photo_classifier = PhotoClassifier(self.ai_client)
        return self._photo_classifier

    @property
    def lifecycle(self):
        """Get LifecycleScheduler instance (requires the notifier)"""
        if self._lifecycle is None:
            from challenge_bot.scheduler.lifecycle import LifecycleScheduler
            self._lifecycle = LifecycleScheduler(self.store, self._require_notifier(), self.clock)
            logger.debug("LifecycleScheduler instantiated")
        return self._lifecycle

    @property
    def alerts(self):
        """Get AlertScheduler instance (requires the notifier)"""
        if self._alerts is None:
            from challenge_bot.scheduler.alerts import AlertScheduler
            self._alerts = AlertScheduler(self.store, self._require_notifier(), self.ai_client, self.clock)
            logger.debug("AlertScheduler instantiated")
        return self._alerts

    def _require_notifier(self) -> Notifier:
        if self.notifier is None:
            raise RuntimeError(
                "Notifier not set. "
                "Create the bot application before using the schedulers."
            )
        return self.notifier
