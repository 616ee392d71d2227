from .factory import get_ai_client, get_optional_ai_client
from .types import AIClient, AIUnavailableError, CompletionRequest

__all__ = ["AIClient", "AIUnavailableError", "CompletionRequest", "get_ai_client", "get_optional_ai_client"]
