"""
Customer feedback: reviews (moderated before display) and enquiries.
"""

from sqlalchemy import Column, Integer, String, Boolean, Text, ForeignKey, CheckConstraint

from app.db.base import Base, TimestampMixin


class Review(Base, TimestampMixin):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    is_approved = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="check_review_rating_range"),
    )


class Enquiry(Base, TimestampMixin):
    __tablename__ = "enquiries"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(30), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(20), nullable=False, default="general")  # general, birthday, booking, complaint
    status = Column(String(20), nullable=False, default="pending")  # pending, responded, closed
