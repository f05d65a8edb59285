from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum as SqlEnum,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from clubreg.extensions import db

JSONType = JSON().with_variant(JSONB, 'postgresql')


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_aware(value: datetime | None) -> datetime | None:
    """SQLite drops tzinfo on the way back; treat naive values as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class TimestampedBase(db.Model):
    """Abstract base providing id/created/updated columns."""

    __abstract__ = True

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False,
    )


class PaymentStatus(Enum):
    UNPAID = "unpaid"
    PAID = "paid"
    REFUNDED = "refunded"
    CANCELED = "canceled"


class DonationType(Enum):
    DONATION = "donation"
    REIMBURSEMENT = "reimbursement"


class ExperienceLevel(Enum):
    NEW = "New"
    SOME = "Some"
    EXPERIENCED = "Experienced"


UNIFORM_SIZES = ('YS', 'YM', 'YL', 'AS', 'AM', 'AL', 'AXL')
VOLUNTEER_CHOICES = ('Yes', 'No', 'Maybe')


class Team(TimestampedBase):
    __tablename__ = "team"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=16000)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=20)
    description: Mapped[str | None] = mapped_column(Text)
    open: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    registrations: Mapped[list["Registration"]] = relationship(
        back_populates="team",
        passive_deletes=True,
    )


class Registration(TimestampedBase):
    __tablename__ = "registration"
    __table_args__ = (
        Index("ix_registration_team_status", "team_id", "payment_status"),
        Index("ix_registration_created", "created_at"),
    )

    team_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("team.id", ondelete="SET NULL"),
        index=True,
    )

    # Player
    player_first_name: Mapped[str] = mapped_column(String(255), nullable=False)
    player_last_name: Mapped[str] = mapped_column(String(255), nullable=False)
    date_of_birth: Mapped[str] = mapped_column(String(10), nullable=False)  # YYYY-MM-DD
    school_grade: Mapped[str | None] = mapped_column(String(50))
    primary_position: Mapped[str | None] = mapped_column(String(100))
    experience_level: Mapped[ExperienceLevel | None] = mapped_column(
        SqlEnum(
            ExperienceLevel,
            name="experience_level",
            native_enum=False,
            values_callable=lambda levels: [level.value for level in levels],
        ),
    )
    medical_notes: Mapped[str | None] = mapped_column(Text)
    schedule_requests: Mapped[str | None] = mapped_column(Text)

    # Uniform
    jersey_size: Mapped[str | None] = mapped_column(String(3))
    short_size: Mapped[str | None] = mapped_column(String(3))

    # Guardian 1
    guardian1_first_name: Mapped[str] = mapped_column(String(255), nullable=False)
    guardian1_last_name: Mapped[str] = mapped_column(String(255), nullable=False)
    guardian1_email: Mapped[str] = mapped_column(String(255), nullable=False)
    guardian1_phone: Mapped[str] = mapped_column(String(30), nullable=False)
    guardian1_volunteer: Mapped[str] = mapped_column(String(5), nullable=False, default="No")

    # Guardian 2
    guardian2_first_name: Mapped[str | None] = mapped_column(String(255))
    guardian2_last_name: Mapped[str | None] = mapped_column(String(255))
    guardian2_email: Mapped[str | None] = mapped_column(String(255))
    guardian2_phone: Mapped[str | None] = mapped_column(String(30))
    guardian2_volunteer: Mapped[str] = mapped_column(String(5), nullable=False, default="No")

    # Emergency contact
    emergency_contact_first_name: Mapped[str | None] = mapped_column(String(255))
    emergency_contact_last_name: Mapped[str | None] = mapped_column(String(255))
    emergency_contact_email: Mapped[str | None] = mapped_column(String(255))
    emergency_contact_phone: Mapped[str | None] = mapped_column(String(30))
    emergency_contact_relation: Mapped[str | None] = mapped_column(String(100))

    # Address
    street1: Mapped[str] = mapped_column(String(255), nullable=False)
    street2: Mapped[str | None] = mapped_column(String(255))
    city: Mapped[str] = mapped_column(String(120), nullable=False)
    state: Mapped[str] = mapped_column(String(50), nullable=False)
    zip: Mapped[str] = mapped_column(String(20), nullable=False)

    # Consents
    waiver_accepted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    photo_release_accepted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    age_verification_accepted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    code_of_conduct_accepted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Payment
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="usd")
    checkout_session_id: Mapped[str | None] = mapped_column(String(255), index=True)
    payment_intent_id: Mapped[str | None] = mapped_column(String(255))
    payment_status: Mapped[PaymentStatus] = mapped_column(
        SqlEnum(PaymentStatus, name="payment_status", native_enum=False),
        nullable=False,
        default=PaymentStatus.UNPAID,
    )
    is_waitlist: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    team: Mapped[Team | None] = relationship(back_populates="registrations")

    @property
    def player_name(self) -> str:
        return f"{self.player_first_name} {self.player_last_name}"

    @property
    def guardian1_name(self) -> str:
        return f"{self.guardian1_first_name} {self.guardian1_last_name}"

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID

    def is_abandoned(self, threshold: timedelta, now: datetime | None = None) -> bool:
        """Unpaid, off the waitlist and older than ``threshold``.

        Abandonment is never persisted; it is derived from the record's age.
        """
        if self.is_paid or self.is_waitlist or self.payment_status != PaymentStatus.UNPAID:
            return False
        created = _as_aware(self.created_at)
        if created is None:
            return False
        return (now or utcnow()) - created > threshold


class Donation(TimestampedBase):
    __tablename__ = "donation"
    __table_args__ = (
        Index("ix_donation_created", "created_at"),
    )

    type: Mapped[DonationType] = mapped_column(
        SqlEnum(DonationType, name="donation_type", native_enum=False),
        nullable=False,
        default=DonationType.DONATION,
    )
    donor_name: Mapped[str | None] = mapped_column(String(255))
    donor_email: Mapped[str | None] = mapped_column(String(255))
    comment: Mapped[str | None] = mapped_column(Text)

    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="usd")
    checkout_session_id: Mapped[str | None] = mapped_column(String(255), index=True)
    payment_intent_id: Mapped[str | None] = mapped_column(String(255))
    payment_status: Mapped[PaymentStatus] = mapped_column(
        SqlEnum(PaymentStatus, name="donation_payment_status", native_enum=False),
        nullable=False,
        default=PaymentStatus.UNPAID,
    )
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    @property
    def is_reimbursement(self) -> bool:
        return self.type == DonationType.REIMBURSEMENT


class SiteContent(db.Model):
    """Free-form page text, one JSON document per key."""

    __tablename__ = "site_content"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    content: Mapped[dict] = mapped_column(JSONType, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False,
    )
