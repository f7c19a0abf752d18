"""Build langchain chat models and provider adapters from configuration."""

from botocore.config import Config as BotoConfig
from langchain_aws import ChatBedrock
from langchain_core.runnables import Runnable
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_openai import ChatOpenAI

from src.providers.base import ChatModelProvider, ProviderConfig, ProviderName

# Local OpenAI-compatible servers usually ignore the key, but the client needs one
LOCAL_PLACEHOLDER_KEY = "not-needed"


def build_chat_model(config: ProviderConfig, temperature: float) -> Runnable:
    """
    Create the chat model for a provider configuration.

    SDK-level retries are disabled so each call issues exactly one request.

    Args:
        config: Provider configuration
        temperature: Sampling temperature for this call

    Returns:
        A langchain chat model ready for ``ainvoke``
    """
    api_key = config.api_key.get_secret_value() if config.api_key else None

    if config.provider == ProviderName.OPENAI:
        return ChatOpenAI(
            model=config.model_name,
            api_key=api_key,
            temperature=temperature,
            timeout=config.timeout_seconds,
            max_retries=0,
        ).bind(
            # Ask for a bare JSON object, every prompt we send expects one
            response_format={"type": "json_object"}
        )

    if config.provider == ProviderName.LOCAL:
        return ChatOpenAI(
            model=config.model_name,
            api_key=api_key or LOCAL_PLACEHOLDER_KEY,
            base_url=config.base_url,
            temperature=temperature,
            timeout=config.timeout_seconds,
            max_retries=0,
        )

    if config.provider == ProviderName.GEMINI:
        return ChatGoogleGenerativeAI(
            model=config.model_name,
            google_api_key=api_key,
            temperature=temperature,
            timeout=config.timeout_seconds,
            max_retries=0,
        )

    if config.provider == ProviderName.BEDROCK:
        return ChatBedrock(
            model=config.model_name,
            region_name=config.region,
            model_kwargs={"temperature": temperature},
            # total_max_attempts counts the initial request, so 1 means no retries
            config=BotoConfig(
                retries={"total_max_attempts": 1, "mode": "standard"},
                read_timeout=config.timeout_seconds,
            ),
        )

    raise ValueError(f"Unsupported provider: {config.provider}")


def build_provider(config: ProviderConfig) -> ChatModelProvider:
    """Create the provider adapter for a configuration."""
    return ChatModelProvider(config, build_chat_model)
