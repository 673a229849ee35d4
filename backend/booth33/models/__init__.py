from booth33.models.user import User
from booth33.models.booking import Booking
from booth33.models.event import Event, EventRSVP
from booth33.models.credit import CreditAccount, CreditTransaction
from booth33.models.payment import PaymentMethod, PaymentTransaction
from booth33.models.studio_session import StudioSession, SessionFile
from booth33.models.notification import Notification
from booth33.models.rewards import RewardProfile, Referral, MilestoneClaim

__all__ = [
    "User", "Booking", "Event", "EventRSVP",
    "CreditAccount", "CreditTransaction",
    "PaymentMethod", "PaymentTransaction",
    "StudioSession", "SessionFile",
    "Notification",
    "RewardProfile", "Referral", "MilestoneClaim",
]
