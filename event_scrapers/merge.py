"""
Dedup-merge of freshly scraped listings against the record store.

Identity is the listing URL and nothing else. Records with an empty URL never
match a known identifier, so they are always treated as new. A linked URL is
emitted at most once per merge.
"""

import logging
from dataclasses import dataclass, field
from typing import AbstractSet, Iterable, List, Optional

from event_scrapers.schema_adapter import ListingRecord


def listing_identifiers(records: Iterable[ListingRecord]) -> List[str]:
    return [record.url for record in records]


def merge_new_records(fresh: Iterable[ListingRecord], known_ids: AbstractSet[str]) -> List[ListingRecord]:
    """
    Fresh records whose URL is not already known, in their original order.

    A URL repeated within ``fresh`` is kept only on its first occurrence.
    """
    seen = set()
    merged: List[ListingRecord] = []
    for record in fresh:
        if record.url:
            if record.url in known_ids or record.url in seen:
                continue
            seen.add(record.url)
        merged.append(record)
    return merged


@dataclass
class PersistResult:
    scraped_count: int
    known_count: int
    new_records: List[ListingRecord] = field(default_factory=list)
    updated_count: int = 0

    @property
    def nothing_to_persist(self) -> bool:
        return not self.new_records


def persist_new_records(records: List[ListingRecord], store, logger: Optional[logging.Logger] = None) -> PersistResult:
    """
    Reads the store's known identifiers once, computes the delta and appends it.

    Store errors are not caught here; a failed append is never retried.
    """
    log = logger or logging.getLogger(__name__)

    known_ids = frozenset(store.get_known_identifiers())
    new_records = merge_new_records(records, known_ids)
    result = PersistResult(scraped_count=len(records), known_count=len(known_ids), new_records=new_records)

    if result.nothing_to_persist:
        log.info("No new events to add")
        return result

    unlinked = sum(1 for record in new_records if not record.url)
    if unlinked:
        log.warning(f"{unlinked} new event(s) have no URL and cannot be deduplicated on later runs")

    log.info(f"Appending {len(new_records)} new events...")
    append_result = store.append_records(new_records)
    result.updated_count = append_result.updated_count
    log.info(f"Successfully wrote {result.updated_count} events to the record store")
    return result
