from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

# Money and percentages are fixed-point; never Float
MONEY = Numeric(12, 2)
PERCENT = Numeric(5, 2)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="consultant")  # admin, consultant
    provider = Column(String(50), nullable=False)  # google, microsoft
    provider_id = Column(String(255), nullable=False)  # Subject id assigned by the provider
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    clients = relationship("Client", back_populates="created_by_user")
    venues = relationship("Venue", back_populates="created_by_user")


class Client(Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    company = Column(String(255), nullable=True)
    contact_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    created_by_user = relationship("User", back_populates="clients")
    proposals = relationship("Proposal", back_populates="client", passive_deletes=True)
    bookings = relationship("Booking", back_populates="client", passive_deletes=True)


class Venue(Base):
    __tablename__ = "venues"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    location = Column(String(500), nullable=True)
    contact_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    standard_commission = Column(PERCENT, nullable=False, default=0)  # Percentage 0-100
    notes = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    created_by_user = relationship("User", back_populates="venues")
    proposal_venues = relationship("ProposalVenue", back_populates="venue", passive_deletes=True)
    bookings = relationship("Booking", back_populates="venue", passive_deletes=True)


class Proposal(Base):
    __tablename__ = "proposals"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="draft")  # draft, sent
    total_value = Column(MONEY, nullable=False, default=0)
    expected_commission = Column(MONEY, nullable=False, default=0)
    notes = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("Client", back_populates="proposals")
    created_by_user = relationship("User")
    venues = relationship(
        "ProposalVenue",
        back_populates="proposal",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ProposalVenue.id",
    )
    bookings = relationship("Booking", back_populates="proposal", passive_deletes=True)


class ProposalVenue(Base):
    __tablename__ = "proposal_venues"

    id = Column(Integer, primary_key=True, index=True)
    proposal_id = Column(
        Integer, ForeignKey("proposals.id", ondelete="CASCADE"), nullable=False, index=True
    )
    venue_id = Column(Integer, ForeignKey("venues.id", ondelete="RESTRICT"), nullable=False, index=True)
    # Ordered list of {id, description, quantity, unitPrice, total, category}; numbers as strings
    charge_lines = Column(JSON, nullable=False, default=list)
    commission_rate = Column(PERCENT, nullable=True)  # Overrides venue.standard_commission when set
    total_value = Column(MONEY, nullable=False, default=0)
    expected_commission = Column(MONEY, nullable=False, default=0)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    proposal = relationship("Proposal", back_populates="venues")
    venue = relationship("Venue", back_populates="proposal_venues")


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (UniqueConstraint("proposal_id", "venue_id", name="uq_booking_proposal_venue"),)

    id = Column(Integer, primary_key=True, index=True)
    proposal_id = Column(
        Integer, ForeignKey("proposals.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False, index=True)
    venue_id = Column(Integer, ForeignKey("venues.id", ondelete="RESTRICT"), nullable=False, index=True)
    # draft -> proposal_sent -> option -> confirmed -> completed
    status = Column(String(20), nullable=False, default="draft", index=True)
    option_expiry = Column(Date, nullable=True)
    total_value = Column(MONEY, nullable=False, default=0)
    commission_amount = Column(MONEY, nullable=False, default=0)
    # Signed document references: {id, filename, key, contentType, size, uploadedAt}
    documents = Column(JSON, nullable=False, default=list)
    notes = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    proposal = relationship("Proposal", back_populates="bookings")
    client = relationship("Client", back_populates="bookings")
    venue = relationship("Venue", back_populates="bookings")
    created_by_user = relationship("User")
    claims = relationship(
        "CommissionClaim",
        back_populates="booking",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="CommissionClaim.id",
    )


class CommissionClaim(Base):
    __tablename__ = "commission_claims"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(
        Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status = Column(String(20), nullable=False, default="draft")  # draft, sent, paid, overdue
    amount = Column(MONEY, nullable=False)
    sent_date = Column(Date, nullable=True)
    paid_date = Column(Date, nullable=True)
    invoice_number = Column(String(100), unique=True, nullable=True)
    notes = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    booking = relationship("Booking", back_populates="claims")
    created_by_user = relationship("User")
