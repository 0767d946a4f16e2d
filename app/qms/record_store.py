from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from app.qms.db import session_scope
from app.qms.models import StoredRecord

COLLECTIONS = ("processes", "documents", "issues", "actions", "function_instances")


class RecordStoreError(RuntimeError):
    pass


class RecordStore:
    def fetch(self, collection: str) -> list[dict[str, Any]]:
        raise NotImplementedError

    def create(self, collection: str, record: dict[str, Any]) -> None:
        raise NotImplementedError

    def update(self, collection: str, record_id: str, patch: dict[str, Any]) -> None:
        raise NotImplementedError

    def delete(self, collection: str, record_id: str) -> None:
        raise NotImplementedError


def _require_id(record: dict[str, Any]) -> str:
    rid = record.get("id")
    if not rid:
        raise RecordStoreError("Record has no id.")
    return str(rid)


@dataclass
class MemoryRecordStore(RecordStore):
    data: dict[str, dict[str, dict[str, Any]]] = field(default_factory=dict)

    def fetch(self, collection: str) -> list[dict[str, Any]]:
        return [copy.deepcopy(r) for r in self.data.get(collection, {}).values()]

    def create(self, collection: str, record: dict[str, Any]) -> None:
        rid = _require_id(record)
        bucket = self.data.setdefault(collection, {})
        if rid in bucket:
            raise RecordStoreError(f"{collection}/{rid} already exists.")
        bucket[rid] = copy.deepcopy(record)

    def update(self, collection: str, record_id: str, patch: dict[str, Any]) -> None:
        bucket = self.data.get(collection, {})
        if record_id not in bucket:
            raise RecordStoreError(f"{collection}/{record_id} not found.")
        bucket[record_id].update(copy.deepcopy(patch))

    def delete(self, collection: str, record_id: str) -> None:
        self.data.get(collection, {}).pop(record_id, None)


@dataclass(frozen=True)
class SqlRecordStore(RecordStore):
    sessionmaker: sessionmaker

    def fetch(self, collection: str) -> list[dict[str, Any]]:
        with session_scope(self.sessionmaker) as s:
            rows = s.execute(
                select(StoredRecord).where(StoredRecord.collection == collection).order_by(StoredRecord.id)
            ).scalars().all()
            return [json.loads(r.payload_json) for r in rows]

    def create(self, collection: str, record: dict[str, Any]) -> None:
        rid = _require_id(record)
        now = datetime.utcnow()
        with session_scope(self.sessionmaker) as s:
            s.add(
                StoredRecord(
                    collection=collection,
                    record_id=rid,
                    payload_json=json.dumps(record, sort_keys=True),
                    created_at=now,
                    updated_at=now,
                )
            )

    def update(self, collection: str, record_id: str, patch: dict[str, Any]) -> None:
        with session_scope(self.sessionmaker) as s:
            row = s.execute(
                select(StoredRecord).where(
                    StoredRecord.collection == collection,
                    StoredRecord.record_id == record_id,
                )
            ).scalar_one_or_none()
            if row is None:
                raise RecordStoreError(f"{collection}/{record_id} not found.")
            payload = json.loads(row.payload_json)
            payload.update(patch)
            row.payload_json = json.dumps(payload, sort_keys=True)
            row.updated_at = datetime.utcnow()

    def delete(self, collection: str, record_id: str) -> None:
        with session_scope(self.sessionmaker) as s:
            row = s.execute(
                select(StoredRecord).where(
                    StoredRecord.collection == collection,
                    StoredRecord.record_id == record_id,
                )
            ).scalar_one_or_none()
            if row is not None:
                s.delete(row)


def record_store_from_config(config: dict, extensions: dict | None = None) -> RecordStore:
    backend = (config.get("RECORD_STORE") or "sql").strip().lower()
    if backend == "memory":
        return MemoryRecordStore()
    if backend == "sql":
        sm = (extensions or {}).get("sqlalchemy_sessionmaker")
        if sm is None:
            raise RecordStoreError("RECORD_STORE=sql requires init_db() to run first.")
        return SqlRecordStore(sessionmaker=sm)
    raise RecordStoreError(f"Unknown RECORD_STORE backend: {backend!r}")
