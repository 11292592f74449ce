# propmarket/web/deps.py
from __future__ import annotations

from typing import Any, List

from fastapi import Depends, HTTPException, Request, UploadFile, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from propmarket.config import settings
from propmarket.container import build_services
from propmarket.db import get_session
from propmarket.models.user import User
from propmarket.pay.razorpay import RazorpayGateway
from propmarket.repositories.user_repo import UserRepo
from propmarket.services.booking_service import BookingService
from propmarket.services.group_offer_service import GroupOfferService
from propmarket.services.property_service import PropertyService
from propmarket.services.storage import Storage, Upload
from propmarket.services.subscription_service import SubscriptionService

# tokens are issued by the auth service
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def get_gateway(request: Request) -> RazorpayGateway:
    return request.app.state.gateway


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: AsyncSession = Depends(get_session),
) -> User:
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid token",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
        user_id = int(payload.get("sub"))
    except (JWTError, TypeError, ValueError):
        raise unauthorized

    user = await UserRepo(session).get(user_id)
    if user is None:
        raise unauthorized
    return user


def get_services(
    session: AsyncSession = Depends(get_session),
    gateway: RazorpayGateway = Depends(get_gateway),
    storage: Storage = Depends(get_storage),
) -> dict[str, Any]:
    return build_services(session, gateway, storage)


def get_subscription_service(services: dict = Depends(get_services)) -> SubscriptionService:
    return services["subscriptions"]


def get_booking_service(services: dict = Depends(get_services)) -> BookingService:
    return services["bookings"]


def get_offer_service(services: dict = Depends(get_services)) -> GroupOfferService:
    return services["offers"]


def get_property_service(services: dict = Depends(get_services)) -> PropertyService:
    return services["properties"]


async def read_uploads(files: List[UploadFile] | None) -> List[Upload]:
    uploads: List[Upload] = []
    for f in files or []:
        uploads.append((await f.read(), f.content_type, f.filename))
    return uploads
