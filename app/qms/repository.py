"""
Session repository: the authoritative in-memory state of one running management system.

- One id-keyed collection per entity type (insertion ordered).
- Every mutation swaps in a new collection mapping, so readers never see a
  partially-applied change.
- Each mutation is written through to the record store. Store failures are logged
  and swallowed; the in-memory change stays applied (local-first, optimistic).
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Iterable

from flask import Flask, current_app, has_app_context

from app.qms.modules.actions.models import Action
from app.qms.modules.functions.models import FunctionInstance
from app.qms.modules.processes.models import Document, Process
from app.qms.modules.risk.models import ContextIssue
from app.qms.record_store import COLLECTIONS, RecordStore
from app.qms.utils import Clock, IdFactory, new_id, utc_now_iso

logger = logging.getLogger(__name__)

ENTITY_TYPES: dict[str, type] = {
    "processes": Process,
    "documents": Document,
    "issues": ContextIssue,
    "actions": Action,
    "function_instances": FunctionInstance,
}

EXTENSION_KEY = "qms_repository"


class ManagementRepository:
    def __init__(
        self,
        store: RecordStore | None = None,
        *,
        clock: Clock = utc_now_iso,
        id_factory: IdFactory = new_id,
        today: Callable[[], date] = date.today,
    ):
        self.store = store
        self.clock = clock
        self.new_id = id_factory
        self.today = today
        self._collections: dict[str, dict[str, Any]] = {name: {} for name in COLLECTIONS}
        # (function_id, process_id) -> instance id, and function_id -> first instance id
        self._instance_index: dict[tuple[str, str], str] = {}
        self._function_index: dict[str, str] = {}

    # ── Reads ────────────────────────────────────────────────────────────

    def all(self, collection: str) -> list[Any]:
        return list(self._collections[collection].values())

    def get(self, collection: str, entity_id: str | None) -> Any | None:
        if not entity_id:
            return None
        return self._collections[collection].get(entity_id)

    @property
    def processes(self) -> list[Process]:
        return self.all("processes")

    @property
    def documents(self) -> list[Document]:
        return self.all("documents")

    @property
    def issues(self) -> list[ContextIssue]:
        return self.all("issues")

    @property
    def actions(self) -> list[Action]:
        return self.all("actions")

    @property
    def function_instances(self) -> list[FunctionInstance]:
        return self.all("function_instances")

    def find_instance(self, function_id: str, process_id: str) -> FunctionInstance | None:
        iid = self._instance_index.get((function_id, process_id))
        return self.get("function_instances", iid)

    def find_instance_by_function(self, function_id: str) -> FunctionInstance | None:
        iid = self._function_index.get(function_id)
        return self.get("function_instances", iid)

    # ── Mutations ────────────────────────────────────────────────────────

    def add(self, collection: str, entity: Any) -> list[Any]:
        current = self._collections[collection]
        if entity.id in current:
            raise ValueError(f"{collection}/{entity.id} already exists")
        self._swap(collection, {**current, entity.id: entity})
        self._write_through("create", collection, entity.id, entity.to_record())
        return self.all(collection)

    def replace(self, collection: str, entity: Any) -> list[Any]:
        current = self._collections[collection]
        if entity.id not in current:
            raise KeyError(f"{collection}/{entity.id} not found")
        self._swap(collection, {**current, entity.id: entity})
        self._write_through("update", collection, entity.id, entity.to_record())
        return self.all(collection)

    def remove(self, collection: str, entity_id: str) -> list[Any]:
        current = self._collections[collection]
        if entity_id not in current:
            return self.all(collection)
        self._swap(collection, {k: v for k, v in current.items() if k != entity_id})
        self._write_through("delete", collection, entity_id, None)
        return self.all(collection)

    def _swap(self, collection: str, mapping: dict[str, Any]) -> None:
        self._collections[collection] = mapping
        if collection == "function_instances":
            self._reindex(mapping.values())

    def _reindex(self, instances: Iterable[FunctionInstance]) -> None:
        pair_index: dict[tuple[str, str], str] = {}
        function_index: dict[str, str] = {}
        for fi in instances:
            pair_index.setdefault((fi.function_id, fi.process_id), fi.id)
            function_index.setdefault(fi.function_id, fi.id)
        self._instance_index = pair_index
        self._function_index = function_index

    def _write_through(self, op: str, collection: str, entity_id: str, record: dict | None) -> None:
        if self.store is None:
            return
        try:
            if op == "create":
                self.store.create(collection, record or {})
            elif op == "update":
                self.store.update(collection, entity_id, record or {})
            else:
                self.store.delete(collection, entity_id)
        except Exception:
            # In-memory state stays authoritative; no retry, no rollback.
            logger.exception("STORE: %s %s/%s failed", op, collection, entity_id)

    # ── Loading ──────────────────────────────────────────────────────────

    def hydrate(self) -> int:
        """Load every collection from the record store. Returns the number of records loaded."""
        if self.store is None:
            return 0
        loaded = 0
        for collection, entity_type in ENTITY_TYPES.items():
            mapping: dict[str, Any] = {}
            for record in self.store.fetch(collection):
                entity = entity_type.from_record(record)
                mapping[entity.id] = entity
            self._swap(collection, mapping)
            loaded += len(mapping)
        logger.info("Repository hydrated: %s records", loaded)
        return loaded


def init_repository(app: Flask, store: RecordStore | None) -> ManagementRepository:
    repo = ManagementRepository(store)
    if store is not None and app.config.get("HYDRATE_ON_START", True):
        try:
            repo.hydrate()
        except Exception as e:
            app.logger.error("Repository hydrate failed; starting empty: %s", e)
            repo = ManagementRepository(store)
    app.extensions[EXTENSION_KEY] = repo
    return repo


def get_repository() -> ManagementRepository:
    """Repository of the current Flask app. Fails fast outside an application context."""
    if not has_app_context():
        raise RuntimeError("get_repository() must be called within an application context")
    repo = current_app.extensions.get(EXTENSION_KEY)
    if repo is None:
        raise RuntimeError("Management repository not initialized; call init_repository(app) in create_app()")
    return repo
