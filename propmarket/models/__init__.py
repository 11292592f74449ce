from .base import Base
from .user import User
from .property import Property
from .booking import Booking
from .group_offer import GroupOffer
from .payment import Payment
from .notification import Notification

__all__ = ["Base", "User", "Property", "Booking", "GroupOffer", "Payment", "Notification"]
