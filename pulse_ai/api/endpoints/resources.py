from typing import List

from fastapi import APIRouter, Depends, Response, status

from pulse_ai.schemas.resource import (
    Resource,
    ResourceCreate,
    ResourceUpdate,
    ResourceUpsertResponse,
)
from pulse_ai.services.resource_store import ResourceStore, get_resource_store

router = APIRouter(prefix="/resources", tags=["resources"])


@router.get("", response_model=List[Resource])
async def list_resources(store: ResourceStore = Depends(get_resource_store)):
    return await store.list_resources()


@router.post("", response_model=Resource, status_code=status.HTTP_201_CREATED)
async def create_resource(data: ResourceCreate, store: ResourceStore = Depends(get_resource_store)):
    return await store.create_resource(data)


@router.post("/upsert", response_model=ResourceUpsertResponse)
async def upsert_resource(
    data: ResourceCreate,
    response: Response,
    store: ResourceStore = Depends(get_resource_store),
):
    """Create the resource, or update category/content of the one with the same title."""
    resource, created = await store.upsert_by_title(data.category, data.title, data.content)
    if created:
        response.status_code = status.HTTP_201_CREATED
    return ResourceUpsertResponse(resource=resource, created=created)


@router.get("/{resource_id}", response_model=Resource)
async def get_resource(resource_id: str, store: ResourceStore = Depends(get_resource_store)):
    return await store.get_resource(resource_id)


@router.put("/{resource_id}", response_model=Resource)
async def update_resource(
    resource_id: str,
    changes: ResourceUpdate,
    store: ResourceStore = Depends(get_resource_store),
):
    return await store.update_resource(resource_id, changes)


@router.delete("/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_resource(resource_id: str, store: ResourceStore = Depends(get_resource_store)):
    await store.delete_resource(resource_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
