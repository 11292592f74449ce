# propmarket/web/schemas.py
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _ORM(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ---------- subscriptions ----------

class PlanOut(_ORM):
    id: str
    name: str
    duration: int = Field(validation_alias="months")
    price: Decimal
    description: str
    savings: Optional[str] = None


class CreateOrderIn(BaseModel):
    plan_id: str


class SubscriptionOrderOut(BaseModel):
    orderId: str
    amount: Decimal
    currency: str
    plan: str
    duration: int


class VerifySubscriptionIn(BaseModel):
    razorpay_order_id: str = Field(min_length=1)
    razorpay_payment_id: str = Field(min_length=1)
    razorpay_signature: str = Field(min_length=1)
    plan_id: Optional[str] = None


class SubscriptionOut(BaseModel):
    isSubscribed: bool
    expiry: Optional[datetime]
    plan: Optional[str]
    price: Optional[Decimal]
    subscribedAt: Optional[datetime] = None


class SubscriptionActivatedOut(BaseModel):
    message: str
    subscription: SubscriptionOut


# ---------- bookings ----------

class BookingIn(BaseModel):
    property_id: int
    visit_date: date
    visit_time: str = Field(min_length=1)
    number_of_people: int = Field(ge=1, le=3)
    person1_name: str
    person2_name: Optional[str] = None
    person3_name: Optional[str] = None
    pickup_address: Optional[str] = None
    payment_method: Literal["postvisit", "razorpay_previsit"] = "postvisit"

    @field_validator("person1_name")
    @classmethod
    def _v_person1(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("person1_name must not be empty")
        return v


class BookingOut(_ORM):
    id: int
    property_id: Optional[int]
    property_title: str
    property_location: str
    user_id: int
    user_email: str
    visit_date: date
    visit_time: str
    number_of_people: int
    person1_name: str
    person2_name: Optional[str]
    person3_name: Optional[str]
    pickup_address: Optional[str]
    payment_method: str
    payment_status: str
    razorpay_order_id: Optional[str]
    razorpay_payment_id: Optional[str]
    payment_amount: Optional[Decimal]
    payment_currency: str
    payment_timestamp: Optional[datetime]
    status: str
    created_at: datetime
    property_image: Optional[str] = None


class PaymentOrderOut(BaseModel):
    orderId: str
    amount: Decimal
    currency: str


class BookingCreatedOut(BaseModel):
    booking: BookingOut
    payment: Optional[PaymentOrderOut] = None
    error: Optional[str] = None


class VerifyBookingIn(BaseModel):
    booking_id: int
    razorpay_order_id: str = Field(min_length=1)
    razorpay_payment_id: str = Field(min_length=1)
    razorpay_signature: str = Field(min_length=1)


class BookingVerifiedOut(BaseModel):
    booking: BookingOut
    message: str


class BookingListOut(BaseModel):
    bookings: List[BookingOut]


class BookingEnvelope(BaseModel):
    booking: BookingOut


# ---------- properties ----------

class PropertyIn(BaseModel):
    title: str = Field(min_length=1)
    type: str = Field(min_length=1)
    location: str = Field(min_length=1)
    price: str = Field(min_length=1)
    bhk: Optional[str] = None
    description: Optional[str] = None
    facilities: List[str] = Field(default_factory=list)
    company_name: Optional[str] = None
    project_name: Optional[str] = None
    total_units: Optional[str] = None
    completion_date: Optional[str] = None
    rera_number: Optional[str] = None


class PropertyPatch(BaseModel):
    title: Optional[str] = None
    type: Optional[str] = None
    location: Optional[str] = None
    price: Optional[str] = None
    bhk: Optional[str] = None
    description: Optional[str] = None
    facilities: Optional[List[str]] = None
    company_name: Optional[str] = None
    project_name: Optional[str] = None
    total_units: Optional[str] = None
    completion_date: Optional[str] = None
    rera_number: Optional[str] = None


class PropertyOut(_ORM):
    id: int
    title: str
    type: str
    location: str
    price: str
    bhk: Optional[str]
    description: Optional[str]
    facilities: List[str]
    image_url: Optional[str]
    images: List[str]
    user_id: int
    user_type: str
    company_name: Optional[str]
    project_name: Optional[str]
    total_units: Optional[str]
    completion_date: Optional[str]
    rera_number: Optional[str]
    subscription_expiry: Optional[datetime]
    status: str
    created_at: datetime
    updated_at: datetime
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    user_phone: Optional[str] = None


class PropertyEnvelope(BaseModel):
    property: PropertyOut


class PropertyListOut(BaseModel):
    properties: List[PropertyOut]
    count: Optional[int] = None


# ---------- live grouping ----------

class OfferIn(BaseModel):
    title: str = Field(min_length=1)
    developer: str = Field(min_length=1)
    location: str = Field(min_length=1)
    original_price: str
    group_price: str
    type: str
    total_slots: int = Field(ge=1)
    min_buyers: int = Field(ge=0)
    discount: Optional[str] = None
    savings: Optional[str] = None
    time_left: Optional[str] = None
    benefits: List[str] = Field(default_factory=list)
    area: Optional[str] = None
    possession: Optional[str] = None
    rera_number: Optional[str] = None
    facilities: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    advantages: Optional[Any] = None
    group_details: Optional[Any] = None


class OfferPatch(BaseModel):
    title: Optional[str] = None
    developer: Optional[str] = None
    location: Optional[str] = None
    original_price: Optional[str] = None
    group_price: Optional[str] = None
    type: Optional[str] = None
    total_slots: Optional[int] = Field(default=None, ge=1)
    min_buyers: Optional[int] = Field(default=None, ge=0)
    discount: Optional[str] = None
    savings: Optional[str] = None
    time_left: Optional[str] = None
    benefits: Optional[List[str]] = None
    status: Optional[Literal["Active", "Closing Soon", "Closed"]] = None
    area: Optional[str] = None
    possession: Optional[str] = None
    rera_number: Optional[str] = None
    facilities: Optional[List[str]] = None
    description: Optional[str] = None
    advantages: Optional[Any] = None
    group_details: Optional[Any] = None


class OfferOut(_ORM):
    id: int
    title: str
    developer: str
    location: str
    original_price: str
    group_price: str
    discount: Optional[str]
    savings: Optional[str]
    type: str
    total_slots: int
    filled_slots: int
    min_buyers: int
    time_left: Optional[str]
    status: str
    benefits: List[str]
    area: Optional[str]
    possession: Optional[str]
    rera_number: Optional[str]
    facilities: List[str]
    description: Optional[str]
    advantages: Optional[Any]
    group_details: Optional[Any]
    images: List[str]
    image: Optional[str]
    created_by: Optional[int]
    created_at: datetime


class OfferEnvelope(BaseModel):
    property: OfferOut


class OfferListOut(BaseModel):
    properties: List[OfferOut]
