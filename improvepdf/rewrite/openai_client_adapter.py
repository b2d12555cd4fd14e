import httpx
import openai

from improvepdf.rewrite.client_base import BaseRewriteClient
from improvepdf.rewrite.exceptions import RewriteError, RewriteNetworkError
from improvepdf.rewrite.models import Completion


class OpenAIClientAdapter(BaseRewriteClient):
    """Rewrite client built on the OpenAI-compatible chat completions API."""

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        self._client = openai.AsyncOpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
        )

    async def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
    ) -> Completion:
        try:
            response = await self._client.chat.completions.create(
                model=model,
                temperature=temperature,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
            )
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise RewriteNetworkError(f"AI provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise RewriteNetworkError(f"AI provider API error: {exc}") from exc

        if not response.choices:
            raise RewriteError("AI returned no choices")
        content = response.choices[0].message.content
        if content is None:
            raise RewriteError("AI returned empty response")
        usage = getattr(response, "usage", None)
        total_tokens = getattr(usage, "total_tokens", 0) if usage is not None else 0
        return Completion(content=content, total_tokens=int(total_tokens or 0))
