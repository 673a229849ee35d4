from booth33.schemas.user import UserCreate, UserResponse, UserLogin, Token
from booth33.schemas.event import EventCreate, EventResponse, EventListResponse, RSVPResponse
from booth33.schemas.booking import (
    BookingCreate, BookingResponse, BookingCheckoutResponse, AvailabilityResponse,
)
from booth33.schemas.credit import CreditGrant, CreditTransactionResponse, CreditBalanceResponse
from booth33.schemas.payment import PaymentMethodCreate, PaymentMethodResponse, PaymentTransactionResponse
from booth33.schemas.studio_session import StudioSessionCreate, StudioSessionResponse
from booth33.schemas.notification import NotificationResponse
from booth33.schemas.rewards import RewardsSummaryResponse, ReferralCreate, ReferralResponse

__all__ = [
    "UserCreate", "UserResponse", "UserLogin", "Token",
    "EventCreate", "EventResponse", "EventListResponse", "RSVPResponse",
    "BookingCreate", "BookingResponse", "BookingCheckoutResponse", "AvailabilityResponse",
    "CreditGrant", "CreditTransactionResponse", "CreditBalanceResponse",
    "PaymentMethodCreate", "PaymentMethodResponse", "PaymentTransactionResponse",
    "StudioSessionCreate", "StudioSessionResponse",
    "NotificationResponse",
    "RewardsSummaryResponse", "ReferralCreate", "ReferralResponse",
]
