"""
FITxTEC Analytics — Firestore REST client
Talks to the app's Firestore database through the v1 REST API.
"""
import time

import numpy as np
import pandas as pd
import requests

from fitxtec.config import (
    FIRESTORE_DATABASE,
    FIRESTORE_PROJECT_ID,
    FIRESTORE_TOKEN,
    OWNER_KEY,
    SESSIONS_COLLECTION,
)
from fitxtec.store import sort_documents
from fitxtec.weeks import to_utc

BASE_URL = "https://firestore.googleapis.com/v1"

RATE_LIMIT_DELAY = 0.05  # seconds between requests
MAX_RETRIES = 3
RETRY_BACKOFF = 2  # exponential backoff multiplier
REQUEST_TIMEOUT = 15
PAGE_SIZE = 100


# ─── Value codec ─────────────────────────────────────────────────────

def encode_value(value) -> dict:
    """Python value → Firestore Value JSON."""
    if value is None:
        return {"nullValue": None}
    if isinstance(value, (bool, np.bool_)):
        return {"booleanValue": bool(value)}
    if isinstance(value, (int, np.integer)):
        return {"integerValue": str(int(value))}
    if isinstance(value, (float, np.floating)):
        return {"doubleValue": float(value)}
    if isinstance(value, str):
        return {"stringValue": value}
    if hasattr(value, "tzinfo") and hasattr(value, "year"):
        ts = to_utc(value)
        if ts is None:
            return {"nullValue": None}
        return {"timestampValue": ts.strftime("%Y-%m-%dT%H:%M:%S.%fZ")}
    if isinstance(value, dict):
        return {"mapValue": {"fields": encode_fields(value)}}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(v) for v in value]}}
    raise TypeError(f"Cannot store {type(value).__name__} in Firestore")


def encode_fields(data: dict) -> dict:
    return {str(k): encode_value(v) for k, v in data.items()}


def decode_value(value: dict):
    """Firestore Value JSON → Python value."""
    if "nullValue" in value:
        return None
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "stringValue" in value:
        return value["stringValue"]
    if "timestampValue" in value:
        return pd.Timestamp(value["timestampValue"]).tz_convert("UTC")
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    if "arrayValue" in value:
        return [decode_value(v) for v in value["arrayValue"].get("values", [])]
    if "referenceValue" in value:
        return value["referenceValue"]
    if "bytesValue" in value:
        return value["bytesValue"]
    if "geoPointValue" in value:
        return dict(value["geoPointValue"])
    return None


def decode_fields(fields: dict) -> dict:
    return {k: decode_value(v) for k, v in fields.items()}


def decode_document(doc: dict) -> dict:
    """Document JSON → plain dict with its id under "id"."""
    data = decode_fields(doc.get("fields", {}))
    data["id"] = doc.get("name", "").rsplit("/", 1)[-1]
    return data


# ─── Store ───────────────────────────────────────────────────────────

class FirestoreStore:
    """
    Store adapter over Firestore REST.

    Retries 429/5xx and timeouts with exponential backoff; anything that
    still fails raises a requests exception to the caller. Overwrites
    are plain PATCH (full replace) with no precondition: last write wins.
    """

    def __init__(self, project_id: str = FIRESTORE_PROJECT_ID, token: str = FIRESTORE_TOKEN,
                 database: str = FIRESTORE_DATABASE):
        self.documents_url = f"{BASE_URL}/projects/{project_id}/databases/{database}/documents"
        self.headers = {"Content-Type": "application/json"}
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    def _request(self, method: str, url: str, retry: bool = True, **kwargs) -> requests.Response:
        """Retries 429/5xx and network errors; retry=False sends exactly once."""
        time.sleep(RATE_LIMIT_DELAY)
        attempts = MAX_RETRIES if retry else 1
        for attempt in range(1, attempts + 1):
            try:
                r = requests.request(method, url, headers=self.headers,
                                     timeout=REQUEST_TIMEOUT, **kwargs)
            except (requests.exceptions.Timeout, requests.exceptions.ConnectionError):
                if attempt < attempts:
                    print(f"  ⏳ Firestore unreachable, retrying (attempt {attempt}/{MAX_RETRIES})")
                    time.sleep(RETRY_BACKOFF ** attempt)
                    continue
                raise
            if r.status_code == 429 or r.status_code >= 500:
                if attempt < attempts:
                    wait = RETRY_BACKOFF ** attempt
                    print(f"  ⏳ Firestore {r.status_code}, retrying in {wait}s (attempt {attempt}/{MAX_RETRIES})")
                    time.sleep(wait)
                    continue
                r.raise_for_status()
            return r
        raise requests.exceptions.RetryError(f"Firestore failed after {MAX_RETRIES} attempts")

    def query_sessions(self, user_id: str) -> list[dict]:
        """All session documents owned by user_id (unordered)."""
        body = {
            "structuredQuery": {
                "from": [{"collectionId": SESSIONS_COLLECTION}],
                "where": {
                    "fieldFilter": {
                        "field": {"fieldPath": OWNER_KEY},
                        "op": "EQUAL",
                        "value": encode_value(user_id),
                    }
                },
            }
        }
        r = self._request("POST", f"{self.documents_url}:runQuery", json=body)
        r.raise_for_status()
        # runQuery streams one item per result; items without "document"
        # only carry readTime.
        return [decode_document(item["document"]) for item in r.json() if "document" in item]

    def set_document(self, path: str, data: dict):
        r = self._request("PATCH", f"{self.documents_url}/{path}",
                          json={"fields": encode_fields(data)})
        r.raise_for_status()

    def get_document(self, path: str) -> dict | None:
        r = self._request("GET", f"{self.documents_url}/{path}")
        if r.status_code == 404:
            return None
        r.raise_for_status()
        doc = decode_document(r.json())
        doc.pop("id", None)
        return doc

    def add_document(self, collection_path: str, data: dict) -> str:
        # Appends get an auto id, so a retried POST could store the item twice.
        r = self._request("POST", f"{self.documents_url}/{collection_path}", retry=False,
                          json={"fields": encode_fields(data)})
        r.raise_for_status()
        return r.json()["name"].rsplit("/", 1)[-1]

    def list_documents(self, collection_path: str, order_by: str = None,
                       descending: bool = False) -> list[dict]:
        docs = []
        page_token = None
        while True:
            params = {"pageSize": PAGE_SIZE}
            if page_token:
                params["pageToken"] = page_token
            r = self._request("GET", f"{self.documents_url}/{collection_path}", params=params)
            r.raise_for_status()
            data = r.json()
            docs.extend(decode_document(d) for d in data.get("documents", []))
            page_token = data.get("nextPageToken")
            if not page_token:
                break
        return sort_documents(docs, order_by, descending)
