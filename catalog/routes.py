"""
HTTP routes for the catalog API.

``map_routes`` builds the same four CRUD endpoints for any entity type. The
request and response models are closure-local, so annotations in this module
are evaluated eagerly.
"""

import logging
from typing import Callable, Generic, Type

from fastapi import APIRouter, Depends, FastAPI, HTTPException

from catalog.repository import Repository, T
from catalog.schemas import StatusResponse

logger = logging.getLogger(__name__)


class EntityRoutes(Generic[T]):
    """Binds an entity type to its request/response models."""

    def __init__(self, name: str, create_model: Type, read_model: Type):
        self.name = name
        self.create_model = create_model
        self.read_model = read_model


def map_routes(
    app: FastAPI,
    tag: str,
    entity: EntityRoutes[T],
    get_repository: Callable[[], Repository[T]],
) -> APIRouter:
    """Register list/get/create/delete endpoints for ``entity`` under ``/{tag}``."""
    router = APIRouter(prefix=f"/{tag}", tags=[tag])
    create_model = entity.create_model
    read_model = entity.read_model

    @router.get("/", response_model=list[read_model])
    def list_items(repository: Repository[T] = Depends(get_repository)):
        return [read_model.from_entity(item) for item in repository.get_all()]

    @router.get(
        "/{item_id}",
        response_model=read_model,
        responses={404: {"description": f"{entity.name} not found"}},
    )
    def get_item(item_id: int, repository: Repository[T] = Depends(get_repository)):
        item = repository.get(item_id)
        if item is None:
            raise HTTPException(status_code=404, detail=f"{entity.name} not found")
        return read_model.from_entity(item)

    @router.post("/", response_model=read_model)
    def create_item(
        payload: create_model, repository: Repository[T] = Depends(get_repository)
    ):
        item = payload.to_entity()
        repository.add(item)
        logger.info("Created %s %s", entity.name, item.id)
        return read_model.from_entity(item)

    @router.delete("/{item_id}", response_model=StatusResponse)
    def delete_item(item_id: int, repository: Repository[T] = Depends(get_repository)):
        repository.delete(item_id)
        return StatusResponse(status="ok")

    app.include_router(router)
    return router
