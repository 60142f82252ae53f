from typing import Optional, Set
from uuid import uuid4

from sqlalchemy.orm import Session as DbSession

from ..core.domain import ParticipantRef, ParticipantRole, normalize_identity
from ..models import User


class UserDirectory:
    """Looks up registered users by id or email."""

    def __init__(self, db: DbSession):
        self.db = db

    def find(self, id_or_email: str) -> Optional[User]:
        identity = normalize_identity(id_or_email)
        if identity is None:
            return None
        if "@" in identity:
            return self.db.query(User).filter(User.email == identity).first()
        return self.db.get(User, identity)

    def create_user(self, name: str, email: str, timezone: str = "UTC") -> User:
        user = User(id=str(uuid4()), name=name, email=normalize_identity(email), timezone=timezone)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def resolve_display_name(self, id_or_email: str) -> str:
        user = self.find(id_or_email)
        if user is None:
            return id_or_email
        return user.name or user.email

    def resolve_participant(self, id_or_email: str, role=ParticipantRole.LEARNER) -> ParticipantRef:
        """Turn a free-form invitee into a user reference when the user is known."""
        user = self.find(id_or_email)
        if user is not None:
            return ParticipantRef(user_id=user.id, email=user.email, role=role)
        identity = normalize_identity(id_or_email)
        if identity and "@" in identity:
            return ParticipantRef(email=identity, role=role)
        return ParticipantRef(user_id=identity, role=role)

    def identities_for(self, id_or_email: str) -> Set[str]:
        identity = normalize_identity(id_or_email)
        identities = {identity} if identity else set()
        user = self.find(id_or_email)
        if user is not None:
            identities |= {user.id, normalize_identity(user.email)}
        return identities
