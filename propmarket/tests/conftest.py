from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Callable, Optional

import httpx
import pytest
from jose import jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from propmarket.config import settings
from propmarket.container import init_db
from propmarket.models import Notification, Property, User
from propmarket.pay.razorpay import RazorpayGateway
from propmarket.repositories.user_repo import UserRepo
from propmarket.services.storage import LocalStorage

KEY_ID = "rzp_test_key"
KEY_SECRET = "rzp_test_secret"

NOW = datetime(2026, 1, 31, 12, 0, tzinfo=timezone.utc)


class OrderApi:
    """Stands in for Razorpay's /orders endpoint."""

    def __init__(self, status: int = 200) -> None:
        self.status = status
        self.calls: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.calls.append(body)
        if self.status != 200:
            return httpx.Response(self.status, json={"error": {"description": "boom"}})
        return httpx.Response(
            200,
            json={
                "id": f"order_{len(self.calls)}",
                "amount": body["amount"],
                "currency": body["currency"],
                "receipt": body["receipt"],
                "status": "created",
            },
        )


def make_gateway(api: Optional[Callable] = None, *, key_id: str = KEY_ID, key_secret: str = KEY_SECRET):
    transport = httpx.MockTransport(api or OrderApi())
    return RazorpayGateway(key_id, key_secret, api_base="https://razorpay.test/v1", transport=transport)


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_db(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def order_api():
    return OrderApi()


@pytest.fixture
def gateway(order_api):
    return make_gateway(order_api)


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(str(tmp_path / "media"), "/media")


@pytest.fixture
def make_user(session):
    counter = {"n": 0}

    async def _make(**fields) -> User:
        counter["n"] += 1
        user = await UserRepo(session).create(
            email=fields.pop("email", f"user{counter['n']}@example.com"),
            name=fields.pop("name", f"User {counter['n']}"),
            phone=fields.pop("phone", None),
            user_type=fields.pop("user_type", "individual"),
        )
        for k, v in fields.items():
            setattr(user, k, v)
        await session.commit()
        return user

    return _make


@pytest.fixture
def make_property(session):
    async def _make(owner: User, **fields) -> Property:
        values = dict(
            title="Sea View 2BHK",
            type="apartment",
            location="Mumbai",
            price="1.2 Cr",
            facilities=[],
            images=[],
            user_id=owner.id,
            user_type=owner.user_type,
            status="active",
        )
        values.update(fields)
        prop = Property(**values)
        session.add(prop)
        await session.commit()
        return prop

    return _make


def token_for(user: User) -> str:
    return jwt.encode({"sub": str(user.id)}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


async def notifications(session: AsyncSession, kind: str | None = None) -> list[Notification]:
    q = select(Notification).order_by(Notification.id)
    if kind:
        q = q.where(Notification.kind == kind)
    return list((await session.execute(q)).scalars().all())
