"""
Shared MongoDB repository logic.

Provides async CRUD over one collection using pymongo's asyncio client.
Entities travel as Pydantic models with string identifiers; documents
hold ``ObjectId`` values for ``_id`` and for reference fields.

An identifier that is not a well-formed ``ObjectId`` cannot match any
document, so every lookup treats it exactly like an unknown identifier.
"""

from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any, Dict, Generic, Iterable, List, Mapping, Optional, Sequence, Tuple, Type, TypeVar

import structlog
from bson import ObjectId
from pydantic import BaseModel
from pymongo.asynchronous.database import AsyncDatabase

from shared.metrics import get_catalog_metrics

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

SortSpec = Sequence[Tuple[str, int]]


def parse_object_id(value: Optional[str]) -> Optional[ObjectId]:
    """
    Convert an identifier string to an ``ObjectId``.

    Args:
        value: Identifier as received in a URL or form field

    Returns:
        The ``ObjectId``, or None if the value is empty or malformed
    """
    if isinstance(value, ObjectId):
        return value
    if not value or not ObjectId.is_valid(value):
        return None
    return ObjectId(value)


def is_object_id(value: Optional[str]) -> bool:
    """Check whether a string is a well-formed document identifier."""
    return parse_object_id(value) is not None


class MongoRepository(Generic[ModelT]):
    """
    Base repository for one catalog collection.

    Subclasses declare the collection name, the entity model and which
    fields hold references (single or list) or calendar dates. Everything
    else is stored as-is.
    """

    collection_name: str
    model: Type[ModelT]
    default_sort: SortSpec = ()
    reference_fields: Tuple[str, ...] = ()
    reference_list_fields: Tuple[str, ...] = ()
    date_fields: Tuple[str, ...] = ()

    def __init__(self, database: AsyncDatabase):
        """
        Initialize repository.

        Args:
            database: pymongo async database handle
        """
        self.collection = database[self.collection_name]
        self.metrics = get_catalog_metrics()

    # ------------------------------------------------------------------
    # Document mapping
    # ------------------------------------------------------------------

    def to_document(self, entity: ModelT) -> Dict[str, Any]:
        """Convert an entity to a BSON-ready document without ``_id``."""
        document = entity.model_dump(exclude={"id"}, mode="python")

        for field in self.reference_fields:
            ref = parse_object_id(document.get(field))
            document[field] = ref if ref is not None else document.get(field)

        for field in self.reference_list_fields:
            refs = [parse_object_id(value) for value in document.get(field) or []]
            document[field] = [ref for ref in refs if ref is not None]

        for field in self.date_fields:
            value = document.get(field)
            if isinstance(value, date) and not isinstance(value, datetime):
                document[field] = datetime.combine(value, time.min, tzinfo=timezone.utc)

        for key, value in document.items():
            if isinstance(value, Enum):
                document[key] = value.value

        return document

    def from_document(self, document: Mapping[str, Any]) -> ModelT:
        """Convert a stored document to an entity."""
        data = dict(document)
        data["id"] = str(data.pop("_id"))

        for field in self.reference_fields:
            if data.get(field) is not None:
                data[field] = str(data[field])

        for field in self.reference_list_fields:
            data[field] = [str(value) for value in data.get(field) or []]

        for field in self.date_fields:
            value = data.get(field)
            if isinstance(value, datetime):
                data[field] = value.date()

        return self.model.model_validate(data)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def find(
        self,
        query: Optional[Mapping[str, Any]] = None,
        sort: Optional[SortSpec] = None,
    ) -> List[ModelT]:
        """
        Find every document matching a query.

        Args:
            query: MongoDB filter (all documents when omitted)
            sort: Sequence of (field, direction) pairs; defaults to the
                repository's default ordering

        Returns:
            Matching entities (possibly empty)
        """
        cursor = self.collection.find(dict(query or {}))
        order = list(sort if sort is not None else self.default_sort)
        if order:
            cursor = cursor.sort(order)
        documents = await cursor.to_list(length=None)
        return [self.from_document(document) for document in documents]

    async def find_all(self, sort: Optional[SortSpec] = None) -> List[ModelT]:
        """Return every document of the collection."""
        return await self.find({}, sort=sort)

    async def find_one(self, query: Mapping[str, Any]) -> Optional[ModelT]:
        """Return the first document matching a query, or None."""
        document = await self.collection.find_one(dict(query))
        if document is None:
            return None
        return self.from_document(document)

    async def find_by_id(self, entity_id: Optional[str]) -> Optional[ModelT]:
        """
        Get a document by identifier.

        Args:
            entity_id: Identifier string (may be malformed)

        Returns:
            Entity or None if not found
        """
        oid = parse_object_id(entity_id)
        if oid is None:
            logger.debug("malformed_identifier", collection=self.collection_name, entity_id=entity_id)
            return None

        entity = await self.find_one({"_id": oid})
        if entity is None:
            logger.debug("document_not_found", collection=self.collection_name, entity_id=entity_id)
        return entity

    async def find_many_by_ids(self, entity_ids: Iterable[str]) -> List[ModelT]:
        """Return the documents whose identifiers are listed; unknown ones are skipped."""
        oids = [oid for oid in (parse_object_id(value) for value in entity_ids) if oid is not None]
        if not oids:
            return []
        return await self.find({"_id": {"$in": oids}})

    async def count(self, query: Optional[Mapping[str, Any]] = None) -> int:
        """Count documents matching a query."""
        return await self.collection.count_documents(dict(query or {}))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def insert(self, entity: ModelT) -> ModelT:
        """
        Persist a new document.

        Args:
            entity: Entity without identifier

        Returns:
            The entity carrying its newly assigned identifier
        """
        try:
            result = await self.collection.insert_one(self.to_document(entity))
        except Exception as e:
            logger.error("document_insert_failed", collection=self.collection_name, error=str(e))
            raise

        created = entity.model_copy(update={"id": str(result.inserted_id)})
        self.metrics.documents_written.labels(collection=self.collection_name, operation="insert").inc()
        logger.info("document_inserted", collection=self.collection_name, entity_id=created.id)
        return created

    async def replace(self, entity_id: str, entity: ModelT) -> Optional[ModelT]:
        """
        Overwrite the document stored under an identifier.

        The identifier is taken from ``entity_id``, never from the entity,
        so the stored document keeps its identity.

        Args:
            entity_id: Identifier of the document to overwrite
            entity: New field values

        Returns:
            The stored entity, or None if no document has that identifier
        """
        oid = parse_object_id(entity_id)
        if oid is None:
            return None

        try:
            result = await self.collection.replace_one({"_id": oid}, self.to_document(entity))
        except Exception as e:
            logger.error(
                "document_replace_failed",
                collection=self.collection_name,
                entity_id=entity_id,
                error=str(e),
            )
            raise

        if result.matched_count == 0:
            logger.warning("document_replace_missed", collection=self.collection_name, entity_id=entity_id)
            return None

        self.metrics.documents_written.labels(collection=self.collection_name, operation="replace").inc()
        logger.info("document_replaced", collection=self.collection_name, entity_id=entity_id)
        return entity.model_copy(update={"id": str(oid)})

    async def delete(self, entity_id: str) -> bool:
        """
        Remove the document stored under an identifier.

        Returns:
            True if a document was removed
        """
        oid = parse_object_id(entity_id)
        if oid is None:
            return False

        try:
            result = await self.collection.delete_one({"_id": oid})
        except Exception as e:
            logger.error(
                "document_delete_failed",
                collection=self.collection_name,
                entity_id=entity_id,
                error=str(e),
            )
            raise

        if result.deleted_count:
            self.metrics.documents_written.labels(collection=self.collection_name, operation="delete").inc()
            logger.info("document_deleted", collection=self.collection_name, entity_id=entity_id)
        return bool(result.deleted_count)

