from sqlalchemy import Column, CheckConstraint, Date, DateTime, Float, ForeignKey, Index, Integer, Text, UniqueConstraint, Uuid, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from core.database import Base
import uuid


class Profile(Base):
    """
    A pilgrim's profile, owned by the external auth/profile system.

    The training core only reads it: ``latitude``/``longitude`` feed team
    matching and ``address`` is private to its owner (never serialized for
    anyone else).
    """
    __tablename__ = "profiles"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=True)
    location = Column(Text, nullable=True)  # public city/area label
    address = Column(Text, nullable=True)  # private
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    avatar_url = Column(Text, nullable=True)
    phone_number = Column(Text, nullable=True)
    role = Column(Text, default="pilgrim", nullable=False)  # 'pilgrim' | 'admin'
    start_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_profiles_lat_lng", "latitude", "longitude"),
    )

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


# --- COMPLETION LEDGER ---
# A row's existence *is* the completion state: toggling off hard-deletes it.

class WalkCompletion(Base):
    __tablename__ = "walk_completions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    week_number = Column(Integer, nullable=False)
    day_of_week = Column(Text, nullable=False)  # 'Monday'..'Sunday'
    distance_km = Column(Float, nullable=False)
    completed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "week_number", "day_of_week", name="uq_walk_completions_user_week_day"),
        CheckConstraint("week_number BETWEEN 1 AND 52", name="ck_walk_completions_week_number"),
        CheckConstraint("distance_km >= 0", name="ck_walk_completions_distance"),
        Index("ix_walk_completions_user_id", "user_id"),
    )


class TrailCompletion(Base):
    __tablename__ = "trail_completions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    trail_id = Column(Text, nullable=False)
    completed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "trail_id", name="uq_trail_completions_user_trail"),
    )


class BookCompletion(Base):
    __tablename__ = "book_completions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    book_id = Column(Text, nullable=False)
    completed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "book_id", name="uq_book_completions_user_book"),
    )


class VideoCompletion(Base):
    __tablename__ = "video_completions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    video_id = Column(Text, nullable=False)
    completed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "video_id", name="uq_video_completions_user_video"),
    )


class HikeCompletion(Base):
    """Completion of one of the Magnolias group hikes."""
    __tablename__ = "magnolias_hikes_completions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    hike_id = Column(Text, nullable=False)
    completed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "hike_id", name="uq_magnolias_hikes_completions_user_hike"),
    )


# --- PHASE GATE ---
# Lock state per (user, phase) is inferred from row existence in these two tables.

class PhaseUnlock(Base):
    __tablename__ = "phase_unlocks"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    phase_number = Column(Integer, nullable=False)
    unlocked_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "phase_number", name="uq_phase_unlocks_user_phase"),
        CheckConstraint("phase_number BETWEEN 1 AND 5", name="ck_phase_unlocks_phase_number"),
    )


class PhaseCompletion(Base):
    __tablename__ = "phase_completions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    phase_number = Column(Integer, nullable=False)
    completed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "phase_number", name="uq_phase_completions_user_phase"),
        CheckConstraint("phase_number BETWEEN 1 AND 5", name="ck_phase_completions_phase_number"),
    )


# --- TEAMS ---

class Team(Base):
    __tablename__ = "teams"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=True)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    max_members = Column(Integer, nullable=True)  # NULL = unlimited
    whatsapp_link = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    members = relationship(
        "TeamMember",
        back_populates="team",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="[TeamMember.joined_at, TeamMember.id]",
    )
    invitations = relationship("TeamInvitation", back_populates="team", cascade="all, delete-orphan", passive_deletes=True)
    join_requests = relationship("TeamJoinRequest", back_populates="team", cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        CheckConstraint("max_members IS NULL OR max_members >= 1", name="ck_teams_max_members"),
    )

    @property
    def member_count(self) -> int:
        return len(self.members)

    @property
    def has_space(self) -> bool:
        return self.max_members is None or self.member_count < self.max_members

    def has_member(self, user_id) -> bool:
        return any(m.user_id == user_id for m in self.members)

    def is_leader(self, user_id) -> bool:
        return any(m.user_id == user_id and m.role == "leader" for m in self.members)


class TeamMember(Base):
    __tablename__ = "team_members"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    team_id = Column(Uuid(as_uuid=True), ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    role = Column(Text, default="member", nullable=False)  # 'leader' | 'member'
    joined_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    team = relationship("Team", back_populates="members")
    profile = relationship("Profile", lazy="joined")

    __table_args__ = (
        UniqueConstraint("team_id", "user_id", name="uq_team_members_team_user"),
        CheckConstraint("role IN ('leader', 'member')", name="ck_team_members_role"),
        Index("ix_team_members_user_id", "user_id"),
    )


class TeamInvitation(Base):
    __tablename__ = "team_invitations"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    team_id = Column(Uuid(as_uuid=True), ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    invited_by = Column(Uuid(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    invited_user_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    status = Column(Text, default="pending", nullable=False)  # 'pending' | 'accepted' | 'declined'
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    team = relationship("Team", back_populates="invitations")
    inviter = relationship("Profile", foreign_keys=[invited_by])

    __table_args__ = (
        CheckConstraint("status IN ('pending', 'accepted', 'declined')", name="ck_team_invitations_status"),
        # At most one open invitation per (team, invitee); resolved rows are history.
        Index(
            "uq_team_invitations_pending",
            "team_id",
            "invited_user_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
        Index("ix_team_invitations_invited_user_id", "invited_user_id"),
    )


class TeamJoinRequest(Base):
    __tablename__ = "team_join_requests"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    team_id = Column(Uuid(as_uuid=True), ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    requested_by = Column(Uuid(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    status = Column(Text, default="pending", nullable=False)  # 'pending' | 'accepted' | 'declined'
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    team = relationship("Team", back_populates="join_requests")
    requester = relationship("Profile", foreign_keys=[requested_by])

    __table_args__ = (
        CheckConstraint("status IN ('pending', 'accepted', 'declined')", name="ck_team_join_requests_status"),
        Index(
            "uq_team_join_requests_pending",
            "team_id",
            "requested_by",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
        Index("ix_team_join_requests_requested_by", "requested_by"),
    )
