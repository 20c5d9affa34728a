"""CRM namespace helpers on top of CacheService."""

from datetime import timedelta
from typing import Any

from apishield.core.services.cache_service import CacheService

CONTACT = "contact"
CONTACT_LIST = "contact_list"
AI_ANALYSIS = "ai_analysis"
FILE = "file"


class ContactCache:
    """Typed access to the contact, list, AI analysis and file namespaces.

    Entries are tagged so whole groups can be dropped at once: contact
    lists carry ``contact`` and ``list``, AI analyses carry ``ai`` and
    ``analysis``, file metadata carries ``file``.
    """

    def __init__(self, cache: CacheService) -> None:
        self._cache = cache

    @property
    def cache(self) -> CacheService:
        return self._cache

    def set_contact(
        self, contact_id: str, contact: Any, ttl: timedelta | None = None
    ) -> None:
        self._cache.set(CONTACT, contact_id, contact, ttl, [CONTACT])

    def get_contact(self, contact_id: str) -> Any | None:
        return self._cache.get(CONTACT, contact_id)

    def set_contact_list(
        self,
        filters: dict[str, Any],
        contacts: list[Any],
        ttl: timedelta | None = None,
    ) -> None:
        self._cache.set(CONTACT_LIST, filters, contacts, ttl, [CONTACT, "list"])

    def get_contact_list(self, filters: dict[str, Any]) -> list[Any] | None:
        return self._cache.get(CONTACT_LIST, filters)

    def set_ai_analysis(
        self, contact_id: str, analysis: Any, ttl: timedelta | None = None
    ) -> None:
        self._cache.set(AI_ANALYSIS, contact_id, analysis, ttl, ["ai", "analysis"])

    def get_ai_analysis(self, contact_id: str) -> Any | None:
        return self._cache.get(AI_ANALYSIS, contact_id)

    def invalidate_contact(self, contact_id: str) -> None:
        """Drop one contact and its AI analysis, leaving cached lists alone."""
        self._cache.delete(CONTACT, contact_id)
        self._cache.delete(AI_ANALYSIS, contact_id)

    def invalidate_all_contacts(self) -> int:
        """Drop every contact, contact list and AI analysis.

        Returns:
            Number of entries removed.
        """
        return self._cache.invalidate([CONTACT, "list", "ai"])

    def set_file_metadata(
        self, file_id: str, metadata: Any, ttl: timedelta | None = None
    ) -> None:
        self._cache.set(FILE, file_id, metadata, ttl, [FILE])

    def get_file_metadata(self, file_id: str) -> Any | None:
        return self._cache.get(FILE, file_id)

    def invalidate_file(self, file_id: str) -> None:
        self._cache.delete(FILE, file_id)

    def invalidate_all_files(self) -> int:
        return self._cache.delete_by_tag(FILE)
