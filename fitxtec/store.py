"""
FITxTEC Analytics — Document store adapters.

The analytics engine only needs five operations on the app's document
database: query sessions by user, overwrite a keyed document, read it
back, append to a collection and list a collection. Paths follow the
Firestore layout ("collection/doc/collection/doc").

    workoutSessions/{id}             sessions (read only)
    userStats/{uid}                  latest stats snapshot (overwrite)
    aiInsights/{uid}/items/{auto}    advice history (append)
    aiInsights/{uid}/latest/data     latest advice (overwrite)
"""
import copy
import uuid

from fitxtec.config import (
    FIRESTORE_PROJECT_ID,
    INSIGHTS_COLLECTION,
    OWNER_KEY,
    SESSIONS_COLLECTION,
    USER_STATS_COLLECTION,
)


def user_stats_path(user_id: str) -> str:
    return f"{USER_STATS_COLLECTION}/{user_id}"


def insight_items_path(user_id: str) -> str:
    return f"{INSIGHTS_COLLECTION}/{user_id}/items"


def latest_insight_path(user_id: str) -> str:
    return f"{INSIGHTS_COLLECTION}/{user_id}/latest/data"


def sort_documents(docs: list[dict], order_by: str = None, descending: bool = False) -> list[dict]:
    """In-memory ordering; documents missing the field sort as 0."""
    if not order_by:
        return docs

    def key(d):
        value = d.get(order_by)
        return value if isinstance(value, (int, float)) and not isinstance(value, bool) else 0

    return sorted(docs, key=key, reverse=descending)


class MemoryStore:
    """Dict-backed store with the same interface as FirestoreStore."""

    def __init__(self, sessions: list[dict] = None):
        self._docs: dict[str, dict] = {}
        for s in sessions or []:
            self.add_document(SESSIONS_COLLECTION, s)

    def _children(self, collection_path: str):
        for path, doc in self._docs.items():
            parent, _, doc_id = path.rpartition("/")
            if parent == collection_path:
                yield doc_id, doc

    def query_sessions(self, user_id: str) -> list[dict]:
        return [
            {**copy.deepcopy(doc), "id": doc_id}
            for doc_id, doc in self._children(SESSIONS_COLLECTION)
            if doc.get(OWNER_KEY) == user_id
        ]

    def set_document(self, path: str, data: dict):
        self._docs[path] = copy.deepcopy(data)

    def get_document(self, path: str) -> dict | None:
        doc = self._docs.get(path)
        return copy.deepcopy(doc) if doc is not None else None

    def add_document(self, collection_path: str, data: dict) -> str:
        doc_id = uuid.uuid4().hex[:20]
        self._docs[f"{collection_path}/{doc_id}"] = copy.deepcopy(data)
        return doc_id

    def list_documents(self, collection_path: str, order_by: str = None,
                       descending: bool = False) -> list[dict]:
        docs = [{**copy.deepcopy(doc), "id": doc_id}
                for doc_id, doc in self._children(collection_path)]
        return sort_documents(docs, order_by, descending)


def get_store():
    """FirestoreStore when a project is configured, else an empty MemoryStore."""
    if FIRESTORE_PROJECT_ID:
        from fitxtec.firestore_client import FirestoreStore
        return FirestoreStore()
    return MemoryStore()
