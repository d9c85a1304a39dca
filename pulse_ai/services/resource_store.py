"""Storage for knowledge-base resources.

The chat flow only ever reads a full snapshot through ``list_resources``; the
other operations back the admin CRUD routes and the seeding CLI. Backends
implement the ``ResourceStore`` protocol so the storage can be swapped without
touching the chat orchestration.
"""

from __future__ import annotations

import logging
import uuid
from typing import Protocol

from redis.asyncio import Redis

from pulse_ai.core.config import settings
from pulse_ai.core.errors import ResourceNotFoundError
from pulse_ai.schemas.resource import Resource, ResourceCreate, ResourceUpdate
from pulse_ai.services.redis_service import (
    close_redis_client,
    get_redis_client,
    hash_delete,
    hash_get_all_json,
    hash_get_json,
    hash_set_json,
)

logger = logging.getLogger(__name__)


class ResourceStore(Protocol):
    backend: str

    async def list_resources(self) -> list[Resource]: ...

    async def get_resource(self, resource_id: str) -> Resource: ...

    async def create_resource(self, data: ResourceCreate) -> Resource: ...

    async def update_resource(self, resource_id: str, changes: ResourceUpdate) -> Resource: ...

    async def delete_resource(self, resource_id: str) -> None: ...

    async def upsert_by_title(self, category: str, title: str, content: str) -> tuple[Resource, bool]: ...


def _new_id() -> str:
    return uuid.uuid4().hex


def _apply_changes(resource: Resource, changes: ResourceUpdate) -> Resource:
    return resource.model_copy(update=changes.model_dump(exclude_none=True))


class InMemoryResourceStore:
    backend = "memory"

    def __init__(self, resources: list[Resource] | None = None) -> None:
        self._docs: dict[str, Resource] = {r.id: r for r in resources or []}

    async def list_resources(self) -> list[Resource]:
        return list(self._docs.values())

    async def get_resource(self, resource_id: str) -> Resource:
        try:
            return self._docs[resource_id]
        except KeyError:
            raise ResourceNotFoundError(resource_id) from None

    async def create_resource(self, data: ResourceCreate) -> Resource:
        resource = Resource(id=_new_id(), **data.model_dump())
        self._docs[resource.id] = resource
        return resource

    async def update_resource(self, resource_id: str, changes: ResourceUpdate) -> Resource:
        updated = _apply_changes(await self.get_resource(resource_id), changes)
        self._docs[resource_id] = updated
        return updated

    async def delete_resource(self, resource_id: str) -> None:
        if self._docs.pop(resource_id, None) is None:
            raise ResourceNotFoundError(resource_id)

    async def upsert_by_title(self, category: str, title: str, content: str) -> tuple[Resource, bool]:
        for resource in self._docs.values():
            if resource.title == title:
                updated = await self.update_resource(
                    resource.id, ResourceUpdate(category=category, content=content)
                )
                return updated, False
        created = await self.create_resource(
            ResourceCreate(category=category, title=title, content=content)
        )
        return created, True


class RedisResourceStore:
    """Resources kept as JSON documents in a single Redis hash keyed by id."""

    backend = "redis"

    def __init__(self, client: Redis, collection: str = "resources") -> None:
        self.client = client
        self.collection = collection

    async def list_resources(self) -> list[Resource]:
        docs = await hash_get_all_json(self.client, self.collection)
        resources = []
        for resource_id, doc in docs.items():
            try:
                resources.append(Resource(id=resource_id, **_fields(doc)))
            except ValueError:
                logger.warning("[ResourceStore] id=%s has invalid fields, skipped", resource_id)
        return resources

    async def get_resource(self, resource_id: str) -> Resource:
        doc = await hash_get_json(self.client, self.collection, resource_id)
        if doc is None:
            raise ResourceNotFoundError(resource_id)
        return Resource(id=resource_id, **_fields(doc))

    async def create_resource(self, data: ResourceCreate) -> Resource:
        resource = Resource(id=_new_id(), **data.model_dump())
        await self._save(resource)
        logger.info("[ResourceStore] created id=%s title=%s", resource.id, resource.title)
        return resource

    async def update_resource(self, resource_id: str, changes: ResourceUpdate) -> Resource:
        updated = _apply_changes(await self.get_resource(resource_id), changes)
        await self._save(updated)
        logger.info("[ResourceStore] updated id=%s", resource_id)
        return updated

    async def delete_resource(self, resource_id: str) -> None:
        if not await hash_delete(self.client, self.collection, resource_id):
            raise ResourceNotFoundError(resource_id)
        logger.info("[ResourceStore] deleted id=%s", resource_id)

    async def upsert_by_title(self, category: str, title: str, content: str) -> tuple[Resource, bool]:
        for resource in await self.list_resources():
            if resource.title == title:
                updated = await self.update_resource(
                    resource.id, ResourceUpdate(category=category, content=content)
                )
                return updated, False
        created = await self.create_resource(
            ResourceCreate(category=category, title=title, content=content)
        )
        return created, True

    async def _save(self, resource: Resource) -> None:
        await hash_set_json(
            self.client, self.collection, resource.id, resource.model_dump(exclude={"id"})
        )


def _fields(doc: dict) -> dict:
    return {
        "category": str(doc.get("category", "")),
        "title": str(doc.get("title", "")),
        "content": str(doc.get("content", "")),
    }


_store: ResourceStore | None = None


def build_resource_store(backend: str | None = None) -> ResourceStore:
    backend = (backend or settings.RESOURCE_STORE_BACKEND).lower()
    if backend == "memory":
        return InMemoryResourceStore()
    if backend == "redis":
        return RedisResourceStore(get_redis_client(), settings.RESOURCES_COLLECTION)
    raise ValueError(f"Unknown resource store backend: {backend!r}")


def get_resource_store() -> ResourceStore:
    """Return (or lazily create) the process-wide resource store."""
    global _store
    if _store is None:
        _store = build_resource_store()
        logger.info("[ResourceStore] backend=%s collection=%s", _store.backend, settings.RESOURCES_COLLECTION)
    return _store


async def close_resource_store() -> None:
    global _store
    if _store is not None and _store.backend == "redis":
        await close_redis_client()
    _store = None
