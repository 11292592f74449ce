# propmarket/web/group_offer_routes.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, File, UploadFile

from propmarket.models.user import User
from propmarket.services.group_offer_service import GroupOfferService
from propmarket.web.deps import get_current_user, get_offer_service, read_uploads
from propmarket.web.schemas import OfferEnvelope, OfferIn, OfferListOut, OfferOut, OfferPatch

router = APIRouter(prefix="/api/live-grouping", tags=["live-grouping"])


@router.get("", response_model=OfferListOut)
async def list_offers(svc: GroupOfferService = Depends(get_offer_service)):
    return OfferListOut(properties=[OfferOut.model_validate(o) for o in await svc.list_public()])


@router.get("/{offer_id}", response_model=OfferEnvelope)
async def get_offer(offer_id: int, svc: GroupOfferService = Depends(get_offer_service)):
    return OfferEnvelope(property=OfferOut.model_validate(await svc.get(offer_id)))


@router.post("", status_code=201, response_model=OfferEnvelope)
async def create_offer(
    body: OfferIn,
    user: User = Depends(get_current_user),
    svc: GroupOfferService = Depends(get_offer_service),
):
    offer = await svc.create(user, body.model_dump())
    return OfferEnvelope(property=OfferOut.model_validate(offer))


@router.put("/{offer_id}", response_model=OfferEnvelope)
async def update_offer(
    offer_id: int,
    body: OfferPatch,
    user: User = Depends(get_current_user),
    svc: GroupOfferService = Depends(get_offer_service),
):
    offer = await svc.update(user, offer_id, body.model_dump(exclude_none=True))
    return OfferEnvelope(property=OfferOut.model_validate(offer))


@router.put("/{offer_id}/images", response_model=OfferEnvelope)
async def replace_offer_images(
    offer_id: int,
    images: List[UploadFile] = File(...),
    user: User = Depends(get_current_user),
    svc: GroupOfferService = Depends(get_offer_service),
):
    offer = await svc.update(user, offer_id, {}, await read_uploads(images))
    return OfferEnvelope(property=OfferOut.model_validate(offer))


@router.patch("/{offer_id}/join", response_model=OfferEnvelope)
async def join_offer(
    offer_id: int,
    user: User = Depends(get_current_user),
    svc: GroupOfferService = Depends(get_offer_service),
):
    return OfferEnvelope(property=OfferOut.model_validate(await svc.join(offer_id)))
