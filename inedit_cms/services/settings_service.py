"""Restaurant settings (singleton record)."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Union

from inedit_cms.config.content import DEFAULT_LOCALE
from inedit_cms.errors import NotFound
from inedit_cms.schemas import SettingsUpdate, parse_payload
from inedit_cms.services.localization import display_text, merge_localized
from inedit_cms.services.repositories import Record, SettingsRepository

logger = logging.getLogger(__name__)

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def default_settings() -> Dict[str, Any]:
    """Seed record used the first time settings are saved."""

    hours = {
        "Friday": ("12:00", "00:00"),
        "Saturday": ("13:00", "00:00"),
        "Sunday": ("13:00", "22:00"),
    }
    return {
        "name": {"en": "Inedit Restaurant", "es": "Restaurante Inedit"},
        "description": {
            "en": "A culinary journey through Mediterranean flavors",
            "es": "Un viaje culinario a través de los sabores mediterráneos",
        },
        "contact_info": {
            "address": {"en": "123 Seaside Avenue, Barcelona", "es": "Avenida Marina 123, Barcelona"},
            "phone": "+34 932 123 456",
            "email": "info@inedit-restaurant.com",
        },
        "opening_hours": [
            {
                "day": day,
                "open": hours.get(day, ("12:00", "23:00"))[0],
                "close": hours.get(day, ("12:00", "23:00"))[1],
                "closed": False,
            }
            for day in WEEKDAYS
        ],
        "social_media": [
            {"platform": "Instagram", "url": "https://instagram.com/inedit"},
            {"platform": "Facebook", "url": "https://facebook.com/inedit"},
            {"platform": "Twitter", "url": "https://twitter.com/inedit"},
        ],
    }


class SettingsService:
    domain = "settings"

    def __init__(self, repository: SettingsRepository):
        self.repository = repository

    def get_settings(self, locale: str = DEFAULT_LOCALE, *, raw: bool = False) -> Record:
        settings = self.repository.get()
        if settings is None:
            raise NotFound("Settings have not been initialized.", domain=self.domain)
        return settings if raw else self._resolve(settings, locale)

    def initialize_settings(self) -> Record:
        """Store the default settings unless a record already exists."""

        existing = self.repository.get()
        if existing is not None:
            return existing
        logger.info("Initializing default restaurant settings")
        return self.repository.save(lambda current: {}, initial=default_settings)

    def update_settings(self, payload: Union[SettingsUpdate, Mapping[str, Any]]) -> Record:
        data = parse_payload(SettingsUpdate, payload)
        sent = data.model_fields_set

        def _build(current: Record) -> Record:
            fields: Record = {}
            if data.name:
                fields["name"] = merge_localized(current.get("name"), data.name)
            if "description" in sent:
                fields["description"] = (
                    merge_localized(current.get("description"), data.description)
                    if data.description is not None
                    else None
                )
            if data.contact_info is not None:
                contact = dict(current.get("contact_info") or {})
                patch = data.contact_info
                if patch.address:
                    contact["address"] = merge_localized(contact.get("address"), patch.address)
                if patch.phone is not None:
                    contact["phone"] = patch.phone
                if patch.email is not None:
                    contact["email"] = patch.email
                fields["contact_info"] = contact
            if data.opening_hours is not None:
                fields["opening_hours"] = [entry.model_dump() for entry in data.opening_hours]
            if data.social_media is not None:
                fields["social_media"] = [entry.model_dump() for entry in data.social_media]
            return fields

        saved = self.repository.save(_build, initial=default_settings)
        logger.info("Updated restaurant settings (%s)", ", ".join(sorted(sent)) or "no fields")
        return saved

    @staticmethod
    def _resolve(settings: Record, locale: str) -> Record:
        contact = settings.get("contact_info") or {}
        return {
            "id": settings.get("id"),
            "name": display_text(settings.get("name"), locale),
            "description": (
                display_text(settings["description"], locale) if settings.get("description") else None
            ),
            "contact_info": {
                "address": display_text(contact.get("address"), locale),
                "phone": contact.get("phone") or "",
                "email": contact.get("email") or "",
            },
            "opening_hours": list(settings.get("opening_hours") or []),
            "social_media": list(settings.get("social_media") or []),
        }


__all__ = ["SettingsService", "default_settings"]
