"""UI-string dictionaries, one per locale."""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping

from inedit_cms.config.content import FALLBACK_LOCALE, SUPPORTED_LOCALES
from inedit_cms.errors import ValidationFailure
from inedit_cms.services.repositories import TranslationsRepository

logger = logging.getLogger(__name__)


class TranslationsService:
    domain = "translations"

    def __init__(self, repository: TranslationsRepository):
        self.repository = repository

    def get_translations(self, locale: str, *, fallback: bool = True) -> Dict[str, str]:
        """Return the dictionary of ``locale``.

        When the locale has no entries and ``fallback`` is set, the English
        dictionary is returned instead.
        """

        translations = self.repository.get(locale)
        if translations is None and fallback and locale != FALLBACK_LOCALE:
            logger.info("No translations for %s, falling back to %s", locale, FALLBACK_LOCALE)
            translations = self.repository.get(FALLBACK_LOCALE)
        return translations or {}

    def upsert_translations(self, locale: str, translations: Mapping[str, str]) -> int:
        """Insert or overwrite each (locale, key) entry. Returns the number written."""

        self._check_locale(locale)
        cleaned = {str(key).strip(): str(value) for key, value in translations.items()}
        if any(not key for key in cleaned):
            raise ValidationFailure("Translation keys cannot be empty.", domain=self.domain)
        if not cleaned:
            return 0
        written = self.repository.upsert(locale, cleaned)
        logger.info("Upserted %s translation(s) for %s", written, locale)
        return written

    def delete_translation_key(self, key: str) -> int:
        """Remove ``key`` from every locale. Returns how many entries were removed."""

        if not key.strip():
            raise ValidationFailure("Translation key cannot be empty.", domain=self.domain)
        removed = self.repository.delete_key(key)
        logger.info("Deleted translation key %s from %s locale(s)", key, removed)
        return removed

    def available_locales(self) -> List[str]:
        return self.repository.locales()

    def _check_locale(self, locale: str) -> None:
        if locale not in SUPPORTED_LOCALES:
            raise ValidationFailure(f"Unsupported locale: {locale}", domain=self.domain)


__all__ = ["TranslationsService"]
