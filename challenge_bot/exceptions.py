"""
Standardized exception hierarchy for challenge-bot
Provides rich context, consistent logging, and user-friendly error messages
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class ChallengeBotError(Exception):
    """
    Base exception for all challenge-bot errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - User-friendly messages
    - Structured context
    - Automatic logging

    Example:
        raise ChallengeBotError(
            message="Failed to save day log",
            user_id="123456",
            operation="save_day_log",
            context={"day_number": 12}
        )
    """

    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.user_message = user_message or "Something went wrong on my end. Please try again."
        self.timestamp = datetime.now(timezone.utc)

        # Auto-log on creation
        self._log_error()

    def _log_error(self) -> None:
        """Log error with full context"""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,  # Avoid conflict with logging's 'message' field
            "request_id": self.request_id,
            "user_id": self.user_id,
            "operation": self.operation,
            "error_context": self.context,
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data, exc_info=self.cause)
        else:
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for logs and error replies"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "user_message": self.user_message,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Validation Errors (User Input)
# ==========================================

class ValidationError(ChallengeBotError):
    """
    Raised when user input fails validation

    Examples:
    - Negative water amount
    - Malformed HH:MM alert time
    - Unknown timezone name
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        super().__init__(
            message=message,
            user_message=f"Invalid {field}: {message}" if field else message,
            context={"field": field, "value": value},
            **kwargs
        )


# ==========================================
# Database Errors
# ==========================================

class DatabaseError(ChallengeBotError):
    """
    Base class for database-related errors
    """
    pass


class ConnectionError(DatabaseError):
    """Database connection failed"""

    def __init__(self, message: str = "Database connection failed", **kwargs):
        super().__init__(
            message=message,
            user_message="I'm having trouble reaching my records. Please try again in a moment.",
            **kwargs
        )


class QueryError(DatabaseError):
    """Database query execution failed"""

    def __init__(
        self,
        message: str,
        query: Optional[str] = None,
        **kwargs
    ):
        self.query = query
        super().__init__(
            message=message,
            user_message="I couldn't save that. Please try again.",
            context={"query": query},
            **kwargs
        )


# ==========================================
# External API Errors
# ==========================================

class ExternalAPIError(ChallengeBotError):
    """
    Base class for external API failures
    """

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs
    ):
        self.service = service
        self.status_code = status_code
        kwargs.setdefault(
            "user_message",
            f"I'm having trouble connecting to {service or 'an external service'}. Please try again later."
        )
        super().__init__(
            message=message,
            context={"service": service, "status_code": status_code},
            **kwargs
        )


class AIServiceError(ExternalAPIError):
    """Anthropic/OpenAI call failed or returned an unusable response"""

    def __init__(self, message: str, provider: Optional[str] = None, **kwargs):
        super().__init__(
            message=message,
            service=provider or "the AI service",
            **kwargs
        )


class NutritionEstimateError(AIServiceError):
    """Food description could not be turned into calories and macros"""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            user_message="I had trouble estimating that meal. Try describing your food differently.",
            **kwargs
        )


# ==========================================
# Configuration Errors
# ==========================================

class ConfigurationError(ChallengeBotError):
    """System configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            user_message="The bot is not properly configured. Please contact the admin.",
            context={"config_key": config_key},
            **kwargs
        )


# ==========================================
# Telegram Bot Errors
# ==========================================

class TelegramBotError(ChallengeBotError):
    """Telegram bot operation failed"""
    pass


class MessageSendError(TelegramBotError):
    """Failed to send Telegram message"""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            user_message="I couldn't send your message. Please try again.",
            **kwargs
        )


# ==========================================
# Helper Functions
# ==========================================

def wrap_external_exception(
    error: Exception,
    operation: str,
    user_id: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None
) -> ChallengeBotError:
    """
    Wrap external exceptions (psycopg, anthropic, openai, telegram) into our exception hierarchy

    Args:
        error: Original exception
        operation: What operation was being performed
        user_id: User ID if applicable
        context: Additional context

    Returns:
        Appropriate ChallengeBotError subclass

    Example:
        try:
            await cur.execute(query, params)
        except psycopg.Error as e:
            raise wrap_external_exception(
                e,
                operation="save_day_log",
                user_id="123456",
                context={"query": query}
            )
    """
    import psycopg
    import anthropic
    import openai
    import telegram.error

    # Database errors
    if isinstance(error, psycopg.OperationalError):
        return ConnectionError(
            message=f"Database connection failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )
    elif isinstance(error, psycopg.Error):
        return QueryError(
            message=f"Database query failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            cause=error
        )

    # AI provider errors
    elif isinstance(error, anthropic.APIError):
        return AIServiceError(
            message=f"Anthropic request failed: {str(error)}",
            provider="Anthropic",
            user_id=user_id,
            operation=operation,
            cause=error
        )
    elif isinstance(error, openai.APIError):
        return AIServiceError(
            message=f"OpenAI request failed: {str(error)}",
            provider="OpenAI",
            user_id=user_id,
            operation=operation,
            cause=error
        )

    # Telegram errors
    elif isinstance(error, telegram.error.TelegramError):
        return MessageSendError(
            message=f"Telegram request failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )

    # Generic fallback
    else:
        return ChallengeBotError(
            message=f"{operation} failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )
