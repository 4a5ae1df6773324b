"""User SQLAlchemy model for the warehouse user directory."""

from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, String

from ..database import Base


class User(Base):
    """
    User model representing warehouse staff.

    Attributes:
        id: Unique identifier (auth provider uid)
        display_name: User's display name
        role: Free-text role label (normalized by the role classifier)
        pickup_opt_in: Whether the user receives pickup-task broadcasts
        fcm_tokens: Device push tokens registered by the user's apps
        created_at: Timestamp when user was created
        updated_at: Timestamp when user was last updated
    """

    __tablename__ = "Users"
    __allow_unmapped__ = True

    # Primary key - provider uid
    id = Column(
        String(128),
        primary_key=True,
        nullable=False,
    )

    # Profile fields
    display_name = Column(
        String(100),
        nullable=True,
    )
    role = Column(
        String(50),
        nullable=True,
        index=True,
    )

    # Notification fields
    pickup_opt_in = Column(
        Boolean,
        nullable=False,
        default=False,
        index=True,
    )
    fcm_tokens = Column(
        JSON,
        nullable=False,
        default=list,
    )

    # Timestamps
    created_at = Column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation of User."""
        return f"<User(id={self.id}, role={self.role})>"
