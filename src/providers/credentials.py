"""Resolve which provider a user's requests go to."""

import logging

from src.auth.keys import KeyCipher
from src.config.settings import ProviderBackend, Settings
from src.errors import NotFoundError, ProviderError, ProviderErrorKind
from src.providers.base import ProviderConfig, ProviderName, TextProvider
from src.providers.factory import build_provider
from src.storage.repositories import ApiKeyRepository

logger = logging.getLogger(__name__)

USER_KEY_PROVIDERS = (ProviderName.GEMINI, ProviderName.OPENAI)


class ProviderResolver:
    """
    Turns a user id into a ready-to-use provider.

    In ``user_key`` deployments the user's stored key is decrypted and used;
    ``bedrock`` and ``local`` deployments share one process-wide backend.
    """

    def __init__(self, settings: Settings, api_keys: ApiKeyRepository, cipher: KeyCipher):
        self._settings = settings
        self._api_keys = api_keys
        self._cipher = cipher

    async def resolve_config(self, user_id: int) -> ProviderConfig:
        """
        Build the provider configuration for a user.

        Raises:
            NotFoundError: If a per-user key is required but none is stored
            ProviderError: If the stored key cannot be used
        """
        settings = self._settings
        common = {
            "temperature": settings.generation_temperature,
            "timeout_seconds": settings.provider_timeout_seconds,
        }

        if settings.provider_backend == ProviderBackend.BEDROCK:
            return ProviderConfig(
                provider=ProviderName.BEDROCK,
                model_name=settings.bedrock_model,
                region=settings.aws_default_region,
                **common,
            )

        if settings.provider_backend == ProviderBackend.LOCAL:
            return ProviderConfig(
                provider=ProviderName.LOCAL,
                model_name=settings.local_model,
                base_url=settings.local_model_url,
                **common,
            )

        stored = await self._api_keys.get(user_id)
        if stored is None:
            logger.warning("User %s: API key not found", user_id)
            raise NotFoundError(
                "AI connection details not found for your account. "
                "Please set your API key first."
            )

        provider = next((p for p in USER_KEY_PROVIDERS if p.value == stored.api_type), None)
        if provider is None:
            logger.error("User %s: unknown stored API type %r", user_id, stored.api_type)
            raise ProviderError(ProviderErrorKind.UNKNOWN, "Configuration error: Unknown API type.")

        model_name = (
            settings.openai_model if provider == ProviderName.OPENAI else settings.gemini_model
        )
        return ProviderConfig(
            provider=provider,
            model_name=model_name,
            api_key=self._cipher.decrypt(stored.encrypted_key),
            **common,
        )

    async def resolve(self, user_id: int) -> TextProvider:
        """Return the provider adapter for a user."""
        config = await self.resolve_config(user_id)
        logger.info("User %s: using %s provider", user_id, config.provider.value)
        return build_provider(config)
