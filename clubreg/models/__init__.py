from .models import (
    Donation,
    DonationType,
    ExperienceLevel,
    PaymentStatus,
    Registration,
    SiteContent,
    Team,
    TimestampedBase,
    UNIFORM_SIZES,
    VOLUNTEER_CHOICES,
    utcnow,
)

__all__ = [
    "Donation",
    "DonationType",
    "ExperienceLevel",
    "PaymentStatus",
    "Registration",
    "SiteContent",
    "Team",
    "TimestampedBase",
    "UNIFORM_SIZES",
    "VOLUNTEER_CHOICES",
    "utcnow",
]
