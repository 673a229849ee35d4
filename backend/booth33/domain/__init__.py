"""
Pure booking rules: the time grid, slot conflicts, pricing and credit
allocation, status machines and reward tiers. No I/O in this package.
"""

from .conflicts import available_slots, get_event_for_time_slot, is_time_slot_booked
from .pricing import CreditUsage, calculate_credit_usage, price_for_duration
from .timegrid import SLOT_LABELS, TimeSlot

__all__ = [
    "available_slots", "get_event_for_time_slot", "is_time_slot_booked",
    "CreditUsage", "calculate_credit_usage", "price_for_duration",
    "SLOT_LABELS", "TimeSlot",
]
