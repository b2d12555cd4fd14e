from improvepdf.config.settings import ConfigurationError, Settings
from improvepdf.rewrite.example_client_adapter import ExampleClientAdapter
from improvepdf.rewrite.openai_client_adapter import OpenAIClientAdapter
from improvepdf.rewrite.rewriter import Rewriter


class RewriterFactory:
    """Creates the configured rewriter."""

    PROVIDERS = ("example", "openai")

    @classmethod
    def create(cls, settings: Settings) -> Rewriter:
        provider = settings.rewrite_provider.lower()
        if provider == "example":
            client = ExampleClientAdapter()
            model = "example"
        elif provider == "openai":
            if not settings.rewrite_openai_api_key:
                raise ConfigurationError(
                    "REWRITE_OPENAI_API_KEY is not set. Configure it, or set "
                    "REWRITE_PROVIDER=example to skip the AI rewrite."
                )
            client = OpenAIClientAdapter(
                api_key=settings.rewrite_openai_api_key,
                timeout_seconds=settings.rewrite_openai_timeout_seconds,
                base_url=settings.rewrite_openai_base_url.strip() or None,
            )
            model = settings.rewrite_openai_model_name
        else:
            raise ValueError(
                f"Unknown rewrite provider '{provider}'. Choose from: {list(cls.PROVIDERS)}"
            )
        return Rewriter(
            client=client,
            model=model,
            temperature=settings.rewrite_openai_temperature,
            min_ratio=settings.rewrite_min_ratio,
            max_ratio=settings.rewrite_max_ratio,
            max_retries=settings.rewrite_max_retries,
            style=settings.rewrite_style,
            max_input_chars=settings.rewrite_max_input_chars,
        )
