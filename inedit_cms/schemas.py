from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Type, TypeVar, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StringConstraints,
    ValidationError,
    field_validator,
    model_validator,
)

from inedit_cms.config.content import SUPPORTED_LOCALES
from inedit_cms.errors import ValidationFailure

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"
PRICE_PATTERN = r"^\d+(?:[.,]\d{1,2})?$"

M = TypeVar("M", bound=BaseModel)


def _check_locales(value: Dict[str, str]) -> Dict[str, str]:
    unknown = sorted(set(value) - set(SUPPORTED_LOCALES))
    if unknown:
        raise ValueError(f"Unsupported locale(s): {', '.join(unknown)}")
    return value


def _require_text(value: Dict[str, str]) -> Dict[str, str]:
    if not any(text.strip() for text in value.values()):
        raise ValueError("At least one locale must be filled in.")
    return value


def _coerce_price(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


Slug = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=120, pattern=SLUG_PATTERN)]
Price = Annotated[str, BeforeValidator(_coerce_price), StringConstraints(strip_whitespace=True, pattern=PRICE_PATTERN)]
LocalizedText = Annotated[Dict[str, str], AfterValidator(_check_locales)]
RequiredText = Annotated[Dict[str, str], AfterValidator(_check_locales), AfterValidator(_require_text)]


def parse_payload(model: Type[M], payload: Union[M, Mapping[str, Any]]) -> M:
    """Return ``payload`` as ``model``, turning pydantic errors into ValidationFailure."""

    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        raise ValidationFailure(details or "Invalid payload.") from exc


class ImageRef(BaseModel):
    url: str = Field(..., min_length=1)
    width: Optional[int] = Field(default=None, ge=1)
    height: Optional[int] = Field(default=None, ge=1)

    @model_validator(mode="before")
    @classmethod
    def _coerce_url(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"url": value}
        return value


# ---------- Catalog (menu & beverages) ----------
class CategoryCreate(BaseModel):
    type: Literal["category"] = "category"
    slug: Slug
    localized_names: RequiredText
    localized_descriptions: Optional[LocalizedText] = None
    parent_id: Optional[str] = None


class CategoryUpdate(BaseModel):
    """Partial category update; only the fields sent by the caller are applied.

    ``parent_id`` or ``localized_descriptions`` sent as ``null`` clear the
    stored value.
    """

    slug: Optional[Slug] = None
    localized_names: Optional[LocalizedText] = None
    localized_descriptions: Optional[LocalizedText] = None
    parent_id: Optional[str] = None


class ItemCreate(BaseModel):
    type: Literal["item"] = "item"
    localized_names: RequiredText
    localized_descriptions: Optional[LocalizedText] = None
    price: Price
    category_id: Optional[str] = None
    image: Optional[ImageRef] = None


class ItemUpdate(BaseModel):
    localized_names: Optional[LocalizedText] = None
    localized_descriptions: Optional[LocalizedText] = None
    price: Optional[Price] = None
    category_id: Optional[str] = None
    image: Optional[ImageRef] = None


CatalogPayload = Annotated[Union[CategoryCreate, ItemCreate], Field(discriminator="type")]


class CatalogPayloadEnvelope(BaseModel):
    payload: CatalogPayload


# ---------- Pages ----------
class PageSeo(BaseModel):
    title: Optional[LocalizedText] = None
    description: Optional[LocalizedText] = None
    keywords: List[str] = Field(default_factory=list)


class PageCreate(BaseModel):
    slug: Slug
    title: RequiredText
    content: Dict[str, Any] = Field(default_factory=dict)
    seo: Optional[PageSeo] = None


class PageUpdate(BaseModel):
    slug: Optional[Slug] = None
    title: Optional[LocalizedText] = None
    content: Optional[Dict[str, Any]] = None
    seo: Optional[PageSeo] = None


# ---------- Settings ----------
class OpeningHours(BaseModel):
    day: str = Field(..., min_length=1)
    open: str = ""
    close: str = ""
    closed: bool = False


class SocialLink(BaseModel):
    platform: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)


class ContactInfoUpdate(BaseModel):
    address: Optional[LocalizedText] = None
    phone: Optional[str] = Field(default=None, max_length=32)
    email: Optional[str] = Field(default=None, max_length=254)


class SettingsUpdate(BaseModel):
    name: Optional[LocalizedText] = None
    description: Optional[LocalizedText] = None
    contact_info: Optional[ContactInfoUpdate] = None
    opening_hours: Optional[List[OpeningHours]] = None
    social_media: Optional[List[SocialLink]] = None

    @field_validator("opening_hours")
    @classmethod
    def _one_entry_per_weekday(cls, value: Optional[List[OpeningHours]]) -> Optional[List[OpeningHours]]:
        if value is not None and len(value) != 7:
            raise ValueError("Opening hours must list the 7 days of the week.")
        return value


# ---------- Translations ----------
class TranslationsPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")
    translations: Dict[Annotated[str, StringConstraints(min_length=1)], str]


# ---------- Gallery ----------
class GalleryImageCreate(BaseModel):
    title: RequiredText
    description: Optional[LocalizedText] = None
    image: ImageRef


class GalleryImageUpdate(BaseModel):
    title: Optional[LocalizedText] = None
    description: Optional[LocalizedText] = None
    image: Optional[ImageRef] = None
