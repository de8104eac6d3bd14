"""User profile model."""

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from projecthub.db.base import BaseModel


class Profile(BaseModel):
    """Profile of an identity-provider user.

    The row id is the ``sub`` claim of the user's access token, so profiles
    are created by the sync endpoint rather than by a local sign-up flow.
    """

    __tablename__ = "profiles"

    # Basic info
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True, index=True)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    first_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    # Profile info
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    position: Mapped[str | None] = mapped_column(String(255), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    role: Mapped[str | None] = mapped_column(String(50), nullable=True)  # pm, member

    # Account status
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def display_name(self, fallback: str = "User") -> str:
        """Full name, falling back to the local part of the email."""
        if self.full_name:
            return self.full_name
        if self.email:
            return self.email.split("@")[0]
        return fallback

    def __repr__(self) -> str:
        try:
            return f"<Profile {self.email}>"
        except Exception:
            return f"<Profile id={self.id}>"
