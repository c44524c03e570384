# app/models.py
"""SQLAlchemy ORM models for listings and their reference data.

Features, details and options are reference data maintained outside the
listing flow. A listing points at them through `listing_features` and
`ListingDetail` rows; `Ordering` stores custom display orders by name.
"""
from sqlalchemy import (
    Column, Integer, Text, Float, JSON, TIMESTAMP, ForeignKey, Table,
    UniqueConstraint, func, Index,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from .db import Base

JSONType = JSON().with_variant(JSONB(), "postgresql")

listing_features = Table(
    "listing_features",
    Base.metadata,
    Column("listing_id", Integer, ForeignKey("listings.id", ondelete="CASCADE"), primary_key=True),
    Column("feature_id", Integer, ForeignKey("features.id"), primary_key=True),
)

class Feature(Base):
    __tablename__ = "features"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(Text, nullable=False, unique=True)
    icon = Column(Text)

class Detail(Base):
    __tablename__ = "details"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(Text, nullable=False, unique=True)
    icon = Column(Text)
    options = relationship("Option", back_populates="detail", order_by="Option.id")

class Option(Base):
    __tablename__ = "options"
    __table_args__ = (UniqueConstraint("detail_id", "name"),)
    id = Column(Integer, primary_key=True, index=True)
    detail_id = Column(Integer, ForeignKey("details.id"), nullable=False, index=True)
    name = Column(Text, nullable=False)
    icon = Column(Text)
    detail = relationship("Detail", back_populates="options")

class ListingDetail(Base):
    __tablename__ = "listing_details"
    id = Column(Integer, primary_key=True)
    listing_id = Column(Integer, ForeignKey("listings.id", ondelete="CASCADE"), nullable=False, index=True)
    detail_id = Column(Integer, ForeignKey("details.id"), nullable=False)
    option_id = Column(Integer, ForeignKey("options.id"), nullable=True)
    detail = relationship("Detail")
    option = relationship("Option")

class ListingDomain(Base):
    __tablename__ = "listing_domains"
    listing_id = Column(Integer, ForeignKey("listings.id", ondelete="CASCADE"), primary_key=True)
    name = Column(Text, primary_key=True)

class Listing(Base):
    __tablename__ = "listings"
    id = Column(Integer, primary_key=True, index=True)
    title = Column(Text, nullable=False, default="")
    price = Column(Text, nullable=False, default="")
    extra = Column(Text, nullable=False, default="")
    # derived from text on every write, used for filtering and sorting
    numeric_price = Column(Float, nullable=False, default=0.0)
    numeric_year = Column(Float)
    numeric_mileage = Column(Float)
    numeric_size = Column(Float)
    numeric_weight = Column(Float)
    videos = Column(JSONType, nullable=False, default=list)
    images = Column(JSONType, nullable=False, default=list)
    pages = Column(JSONType, nullable=False, default=list)
    seller_notes = Column(JSONType, nullable=False, default=list)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    details = relationship(
        "ListingDetail", order_by=ListingDetail.id, cascade="all, delete-orphan"
    )
    features = relationship("Feature", secondary=listing_features, order_by=Feature.id)
    domains = relationship(
        "ListingDomain", order_by=ListingDomain.name, cascade="all, delete-orphan"
    )

class Ordering(Base):
    __tablename__ = "orderings"
    id = Column(Integer, primary_key=True)
    name = Column(Text, nullable=False, unique=True)
    ids = Column(JSONType, nullable=False, default=list)

Index("idx_listings_numeric_price", Listing.numeric_price)
Index("idx_listings_created_at", Listing.created_at)
