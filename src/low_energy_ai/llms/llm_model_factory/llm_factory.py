"""
LLM Factory using registry + resolver pattern.

- Registry: Provider → LangChain constructor mapping
- Resolver: Model name → Provider lookup
- Factory: Instantiates model using registry + resolved provider
"""
from typing import Type

from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI

from low_energy_ai.config import settings

# Registry: Provider → LangChain constructor
LLM_REGISTRY: dict[str, Type[BaseChatModel]] = {
    "openai": ChatOpenAI,
}

PROVIDER_PREFIXES: dict[str, str] = {
    "gpt-": "openai",
    "chatgpt-": "openai",
    "o1": "openai",
    "o3": "openai",
    "o4": "openai",
}

# Model families that take max_completion_tokens instead of max_tokens
COMPLETION_TOKEN_PREFIXES: tuple[str, ...] = ("gpt-5", "o")


def resolve_provider(model: str) -> str:
    """Pure resolver: provider from the model name prefix."""
    for prefix, provider in PROVIDER_PREFIXES.items():
        if model.startswith(prefix):
            return provider

    raise ValueError(
        f"Unsupported model: {model!r}. "
        f"Supported prefixes: {sorted(PROVIDER_PREFIXES.keys())}"
    )


def token_limit_kwargs(model: str, limit: int | None = None) -> dict[str, int]:
    """
    Request parameter carrying the response token cap.

    Older chat models take ``max_tokens``; the gpt-5 family and o-series
    reasoning models reject it and take ``max_completion_tokens``.
    """
    if limit is None:
        limit = settings.MAX_COMPLETION_TOKENS
    if model.startswith(COMPLETION_TOKEN_PREFIXES):
        return {"max_completion_tokens": limit}
    return {"max_tokens": limit}


def create_llm(model: str, **kwargs) -> BaseChatModel:
    """
    Factory: Create LangChain model instance.

    Example:
        model = create_llm("gpt-4.1-mini", temperature=0.5)
        response = model.invoke("Hello")
    """
    provider = resolve_provider(model)
    constructor = LLM_REGISTRY[provider]

    if provider == "openai":
        if settings.OPENAI_API_KEY:
            kwargs.setdefault("api_key", settings.OPENAI_API_KEY)
        if settings.OPENAI_BASE_URL:
            kwargs.setdefault("base_url", settings.OPENAI_BASE_URL)
    return constructor(model=model, **kwargs)


def get_model_provider(model_name: str) -> str:
    return resolve_provider(model_name)
