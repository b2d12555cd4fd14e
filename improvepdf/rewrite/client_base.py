from abc import ABC, abstractmethod

from improvepdf.rewrite.models import Completion


class BaseRewriteClient(ABC):
    """Contract for provider-specific chat completion clients."""

    @abstractmethod
    async def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
    ) -> Completion:
        """Return the provider's reply as plain text."""
