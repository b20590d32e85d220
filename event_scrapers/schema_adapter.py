import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from event_scrapers.data_quality.cleaning import clean_and_normalize_text, text_or_default
from event_scrapers.data_quality.dates import UNSPECIFIED_DATE, normalize_date_time

logger = logging.getLogger(__name__)

UNNAMED_TITLE = "Evento sem nome"
UNSPECIFIED_LOCATION = "Local não especificado"


class ListingRecord(BaseModel):
    """
    One scraped catalog listing.

    Serialized with the column-style aliases (``Title``, ``Date``, ``Time``,
    ``Location``, ``Type``, ``URL``, ``ImageURL``) used by the JSON artifact and
    the record store. ``url`` is the only identity key; it may be empty when the
    card carries no link, and such records are never deduplicated.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    title: str = Field(UNNAMED_TITLE, alias="Title", min_length=1)
    date: str = Field(UNSPECIFIED_DATE, alias="Date", min_length=1)
    time: Optional[str] = Field(None, alias="Time")
    location: str = Field(UNSPECIFIED_LOCATION, alias="Location", min_length=1)
    source_type: str = Field(..., alias="Type")
    url: str = Field("", alias="URL")
    image_url: str = Field("", alias="ImageURL")

    @field_validator('url', 'image_url', mode='before')
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


def map_to_listing_record(raw_data: Dict[str, Any], source_type: str, year: Optional[int] = None) -> ListingRecord:
    """
    Builds a ListingRecord from the raw strings pulled out of one card.

    Expected keys: ``title``, ``date_text``, ``location``, ``url``, ``image_url``.
    Missing or blank fields fall back to sentinels; the date text is normalized.
    """
    date, time = normalize_date_time(raw_data.get("date_text"), year=year)
    return ListingRecord(
        title=text_or_default(raw_data.get("title"), UNNAMED_TITLE),
        date=date,
        time=time,
        location=text_or_default(raw_data.get("location"), UNSPECIFIED_LOCATION),
        source_type=source_type,
        url=clean_and_normalize_text(raw_data.get("url")) or "",
        image_url=clean_and_normalize_text(raw_data.get("image_url")) or "",
    )


def records_to_documents(records: List[ListingRecord]) -> List[Dict[str, Any]]:
    return [record.to_document() for record in records]
