import logging
from dataclasses import dataclass
from typing import List, Optional, Set

from pymongo import MongoClient
from pymongo.errors import PyMongoError

from event_scrapers.config import settings
from event_scrapers.schema_adapter import ListingRecord, records_to_documents

URL_FIELD = "URL"


@dataclass(frozen=True)
class AppendResult:
    updated_count: int


class MongoRecordStore:
    """
    Listing record store backed by one MongoDB collection.

    Documents are stored with the record's alias keys, so the identity field is
    ``URL``. No unique index is created on it: records without a link all share
    the empty URL and are appended every run.
    """

    def __init__(
        self,
        uri: Optional[str] = None,
        database: Optional[str] = None,
        collection: Optional[str] = None,
        client: Optional[MongoClient] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.logger = logger or logging.getLogger(__name__)
        self.uri = uri or settings.mongodb.uri
        self.database_name = database or settings.mongodb.database
        self.collection_name = collection or settings.mongodb.collection
        self._owns_client = client is None
        self.client = client or MongoClient(
            self.uri,
            serverSelectionTimeoutMS=settings.mongodb.server_selection_timeout_ms,
        )
        self.collection = self.client[self.database_name][self.collection_name]

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def get_known_identifiers(self) -> Set[str]:
        try:
            identifiers = {url for url in self.collection.distinct(URL_FIELD) if url}
        except PyMongoError as e:
            self.logger.error(f"Reading known identifiers from '{self.collection_name}' failed: {e}", exc_info=True)
            raise
        self.logger.info(f"Found {len(identifiers)} existing events in '{self.database_name}.{self.collection_name}'")
        return identifiers

    def append_records(self, records: List[ListingRecord]) -> AppendResult:
        if not records:
            return AppendResult(updated_count=0)
        documents = records_to_documents(records)
        try:
            result = self.collection.insert_many(documents, ordered=True)
        except PyMongoError as e:
            self.logger.error(f"Appending {len(documents)} events to '{self.collection_name}' failed: {e}", exc_info=True)
            raise
        inserted = len(result.inserted_ids)
        self.logger.info(f"Appended {inserted} events to '{self.database_name}.{self.collection_name}'")
        return AppendResult(updated_count=inserted)

    def close(self) -> None:
        if self._owns_client:
            self.client.close()
            self.logger.debug("MongoDB connection closed.")
