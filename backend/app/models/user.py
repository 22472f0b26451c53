"""
User model with role-based permissions.

Effective permissions are the role's defaults plus any explicitly
granted extras stored on the user row.
"""

import enum

from sqlalchemy import Column, Integer, String, Boolean, JSON, CheckConstraint
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin


class UserRole(str, enum.Enum):
    CUSTOMER = "customer"
    STAFF = "staff"
    MANAGER = "manager"
    ADMIN = "admin"


class Permission(str, enum.Enum):
    VIEW_PACKAGES = "view_packages"
    MANAGE_PACKAGES = "manage_packages"
    VIEW_BOOKINGS = "view_bookings"
    MANAGE_BOOKINGS = "manage_bookings"
    VIEW_USERS = "view_users"
    MANAGE_USERS = "manage_users"
    VIEW_ANALYTICS = "view_analytics"
    MANAGE_SETTINGS = "manage_settings"
    MANAGE_CONTENT = "manage_content"
    MODERATE_REVIEWS = "moderate_reviews"


ROLE_PERMISSIONS: dict[UserRole, frozenset[Permission]] = {
    UserRole.CUSTOMER: frozenset({Permission.VIEW_PACKAGES}),
    UserRole.STAFF: frozenset({
        Permission.VIEW_PACKAGES,
        Permission.VIEW_BOOKINGS,
        Permission.MANAGE_BOOKINGS,
    }),
    UserRole.MANAGER: frozenset({
        Permission.VIEW_PACKAGES,
        Permission.MANAGE_PACKAGES,
        Permission.VIEW_BOOKINGS,
        Permission.MANAGE_BOOKINGS,
        Permission.VIEW_USERS,
        Permission.VIEW_ANALYTICS,
        Permission.MANAGE_CONTENT,
        Permission.MODERATE_REVIEWS,
    }),
    UserRole.ADMIN: frozenset(Permission),
}


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(100), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    phone = Column(String(30), nullable=True)
    role = Column(String(20), nullable=False, default=UserRole.CUSTOMER.value)
    permissions = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    bookings = relationship("Booking", back_populates="user")
    birthday_parties = relationship("BirthdayParty", back_populates="user")

    __table_args__ = (
        CheckConstraint(
            "role IN ('customer', 'staff', 'manager', 'admin')", name="check_user_role"
        ),
    )

    @property
    def effective_permissions(self) -> set[str]:
        granted = {p.value for p in ROLE_PERMISSIONS.get(UserRole(self.role), frozenset())}
        granted.update(self.permissions or [])
        return granted

    def has_permission(self, permission: Permission) -> bool:
        return permission.value in self.effective_permissions

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
