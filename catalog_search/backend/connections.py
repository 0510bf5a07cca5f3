"""
Backend - Locale Connections

Per-locale backend handles, built once at startup and shared read-only.
"""

from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Tuple

from catalog_search.backend.base_client import BaseBackendClient
from catalog_search.errors import ConfigurationError


def split_locale(locale: str) -> Tuple[str, str]:
    """Split ``en_US`` (or ``en-US``) into ``("en", "US")``."""
    language, _, country = locale.replace("-", "_").partition("_")
    return language.lower(), country.upper()


def locale_country(locale: str) -> str:
    return split_locale(locale)[1]


def collection_name(collection: str, locale: str) -> str:
    """Locale-specific collection name, e.g. ``catalogPreview_en``."""
    return f"{collection}_{split_locale(locale)[0]}"


class LocaleConnections(Mapping[str, BaseBackendClient]):
    """Immutable locale -> catalog backend client mapping."""

    def __init__(self, clients: Dict[str, BaseBackendClient]):
        self._clients = MappingProxyType(dict(clients))

    def __getitem__(self, locale: str) -> BaseBackendClient:
        return self._clients[locale]

    def __iter__(self) -> Iterator[str]:
        return iter(self._clients)

    def __len__(self) -> int:
        return len(self._clients)

    def for_locale(self, locale: str) -> BaseBackendClient:
        """Backend client for ``locale``; unknown locales are a configuration error."""
        client = self._clients.get(locale)
        if client is None:
            raise ConfigurationError(f"No backend connection for locale {locale}")
        return client

    async def close(self) -> None:
        for client in self._clients.values():
            await client.close()
