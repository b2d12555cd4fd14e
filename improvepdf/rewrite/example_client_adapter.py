"""Offline rewrite client.

Echoes the section it was asked to rewrite, so the pipeline can run end to end
without an AI provider (local development and tests).
"""

from improvepdf.rewrite.client_base import BaseRewriteClient
from improvepdf.rewrite.models import Completion
from improvepdf.rewrite.prompt_loader import TEXT_MARKER


class ExampleClientAdapter(BaseRewriteClient):
    async def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
    ) -> Completion:
        _ = model, temperature, system_prompt
        _, _, section = user_prompt.partition(TEXT_MARKER)
        return Completion(content=section.strip(), total_tokens=0)
