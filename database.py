"""
Database Helper Functions

MongoDB document store used by the back-office services.
Services receive a DocumentStore instance instead of reaching for a module
level connection, so tests can hand them a store over any pymongo-compatible
database.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.database import Database

import config
from errors import Internal


def _to_dict(data: Union[BaseModel, dict]) -> dict:
    if isinstance(data, BaseModel):
        return data.model_dump(exclude_none=True)
    return dict(data)


def _object_id(_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(_id)
    except (InvalidId, TypeError):
        return None


def _now() -> datetime:
    return datetime.now(timezone.utc)


# Utility

def serialize_doc(doc: Optional[dict]) -> Optional[dict]:
    if not doc:
        return None
    d = dict(doc)
    if "_id" in d:
        d["_id"] = str(d["_id"])  # convert ObjectId to string
    return d


class WriteBatch:
    """
    Queue of inserts and partial updates committed together.

    Every update target is looked up before the first write, and a batch with
    a missing target is refused whole. With transactions enabled the writes
    then run inside one MongoDB transaction; without them they are applied in
    queue order.
    """

    def __init__(self, store: "DocumentStore"):
        self._store = store
        self._ops: List[tuple] = []

    def __len__(self) -> int:
        return len(self._ops)

    def create(self, collection_name: str, data: Union[BaseModel, dict]) -> str:
        payload = _to_dict(data)
        now = _now()
        payload["_id"] = ObjectId()
        payload["created_at"] = now
        payload["updated_at"] = now
        self._ops.append(("insert", collection_name, payload))
        return str(payload["_id"])

    def update(self, collection_name: str, _id: str, update_data: Dict[str, Any]) -> None:
        oid = _object_id(_id)
        if oid is None:
            raise Internal(f"Invalid document id '{_id}' in batch")
        changes = _to_dict(update_data)
        changes["updated_at"] = _now()
        self._ops.append(("update", collection_name, {"_id": oid}, {"$set": changes}))

    def _check_targets(self, **kwargs) -> None:
        targets: Dict[str, set] = {}
        for op in self._ops:
            if op[0] == "update":
                targets.setdefault(op[1], set()).add(op[2]["_id"])
        for collection_name, ids in targets.items():
            found = {
                doc["_id"]
                for doc in self._store.db[collection_name].find({"_id": {"$in": list(ids)}}, {"_id": 1}, **kwargs)
            }
            missing = ids - found
            if missing:
                raise Internal(f"Batch refused: {len(missing)} document(s) missing from {collection_name}")

    def _apply(self, session=None) -> None:
        kwargs = {"session": session} if session is not None else {}
        self._check_targets(**kwargs)
        for op in self._ops:
            collection = self._store.db[op[1]]
            if op[0] == "insert":
                collection.insert_one(op[2], **kwargs)
            else:
                result = collection.update_one(op[2], op[3], **kwargs)
                if result.matched_count == 0:
                    raise Internal(f"Document {op[2]['_id']} vanished from {op[1]} during batch")

    def commit(self) -> int:
        count = len(self)
        if not count:
            return 0
        if self._store.transactions:
            with self._store.db.client.start_session() as session:
                session.with_transaction(lambda s: self._apply(s))
        else:
            self._apply()
        self._ops = []
        return count


class DocumentStore:
    def __init__(self, db: Database, transactions: bool = False):
        self.db = db
        self.transactions = transactions

    @classmethod
    def from_env(cls) -> "DocumentStore":
        if not config.DATABASE_URL or not config.DATABASE_NAME:
            raise Internal("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")
        client = MongoClient(config.DATABASE_URL, tz_aware=True)
        return cls(client[config.DATABASE_NAME], transactions=config.DATABASE_TRANSACTIONS)

    # CRUD helpers

    def create_document(self, collection_name: str, data: Union[BaseModel, dict]) -> str:
        payload = _to_dict(data)
        now = _now()
        payload['created_at'] = now
        payload['updated_at'] = now
        result = self.db[collection_name].insert_one(payload)
        return str(result.inserted_id)

    def get_documents(self, collection_name: str, filter_dict: Optional[dict] = None, limit: Optional[int] = None, sort: Optional[list] = None) -> List[dict]:
        cursor = self.db[collection_name].find(filter_dict or {})
        if sort:
            cursor = cursor.sort(sort)
        if limit:
            cursor = cursor.limit(int(limit))
        return [serialize_doc(doc) for doc in cursor]

    def get_document_by_id(self, collection_name: str, _id: str, filter_dict: Optional[dict] = None) -> Optional[dict]:
        oid = _object_id(_id)
        if oid is None:
            return None
        doc = self.db[collection_name].find_one({"_id": oid, **(filter_dict or {})})
        return serialize_doc(doc) if doc else None

    def update_document(self, collection_name: str, _id: str, update_data: Dict[str, Any], expected: Optional[dict] = None) -> bool:
        """Partial update. ``expected`` field values must still match for the write to land."""
        oid = _object_id(_id)
        if oid is None:
            return False
        update = {"$set": _to_dict(update_data)}
        update["$set"]["updated_at"] = _now()
        result = self.db[collection_name].update_one({"_id": oid, **(expected or {})}, update)
        return result.matched_count > 0

    def delete_document(self, collection_name: str, _id: str) -> bool:
        oid = _object_id(_id)
        if oid is None:
            return False
        result = self.db[collection_name].delete_one({"_id": oid})
        return result.deleted_count > 0

    def batch(self) -> WriteBatch:
        return WriteBatch(self)

    def watch_collection(self, collection_name: str) -> Iterator[dict]:
        """Yield the full document for every insert, update or replace on a collection."""
        with self.db[collection_name].watch(full_document="updateLookup") as stream:
            for change in stream:
                if change.get("operationType") not in ("insert", "update", "replace"):
                    continue
                doc = change.get("fullDocument")
                if doc:
                    yield serialize_doc(doc)
