# propmarket/web/property_routes.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, File, Query, UploadFile

from propmarket.models.user import User
from propmarket.services.property_service import PropertyService
from propmarket.web.deps import get_current_user, get_property_service, read_uploads
from propmarket.web.schemas import (
    PropertyEnvelope,
    PropertyIn,
    PropertyListOut,
    PropertyOut,
    PropertyPatch,
)

router = APIRouter(prefix="/api/properties", tags=["properties"])


@router.get("", response_model=PropertyListOut)
async def list_properties(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    svc: PropertyService = Depends(get_property_service),
):
    props = await svc.list_active(limit=limit, offset=offset)
    return PropertyListOut(properties=[PropertyOut.model_validate(p) for p in props], count=len(props))


@router.get("/user/my-properties", response_model=PropertyListOut)
async def my_properties(
    user: User = Depends(get_current_user),
    svc: PropertyService = Depends(get_property_service),
):
    props = await svc.list_for_user(user)
    return PropertyListOut(properties=[PropertyOut.model_validate(p) for p in props])


@router.get("/{property_id}", response_model=PropertyEnvelope)
async def get_property(property_id: int, svc: PropertyService = Depends(get_property_service)):
    prop, owner = await svc.get(property_id)
    out = PropertyOut.model_validate(prop)
    if owner is not None:
        out = out.model_copy(update={"user_name": owner.name, "user_email": owner.email, "user_phone": owner.phone})
    return PropertyEnvelope(property=out)


@router.post("", status_code=201, response_model=PropertyEnvelope)
async def create_property(
    body: PropertyIn,
    user: User = Depends(get_current_user),
    svc: PropertyService = Depends(get_property_service),
):
    prop = await svc.create(user, body.model_dump())
    return PropertyEnvelope(property=PropertyOut.model_validate(prop))


@router.put("/{property_id}", response_model=PropertyEnvelope)
async def update_property(
    property_id: int,
    body: PropertyPatch,
    user: User = Depends(get_current_user),
    svc: PropertyService = Depends(get_property_service),
):
    prop = await svc.update(user, property_id, body.model_dump(exclude_none=True))
    return PropertyEnvelope(property=PropertyOut.model_validate(prop))


@router.put("/{property_id}/images", response_model=PropertyEnvelope)
async def replace_property_images(
    property_id: int,
    images: List[UploadFile] = File(...),
    user: User = Depends(get_current_user),
    svc: PropertyService = Depends(get_property_service),
):
    prop = await svc.update(user, property_id, {}, await read_uploads(images))
    return PropertyEnvelope(property=PropertyOut.model_validate(prop))


@router.delete("/{property_id}")
async def delete_property(
    property_id: int,
    user: User = Depends(get_current_user),
    svc: PropertyService = Depends(get_property_service),
):
    await svc.delete(user, property_id)
    return {"message": "Property deleted successfully"}
