from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from uuid import UUID
from typing import Optional, List, Dict


# --- PROFILES ---

class PublicProfile(BaseModel):
    """What other users may see of a profile. Never includes address or email."""
    id: UUID
    name: str
    location: Optional[str] = None
    avatar_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


# --- TRAINING PLAN ---

class TrainingDayResponse(BaseModel):
    day: str
    distance_km: float
    focus: str

    model_config = ConfigDict(from_attributes=True)


class WeekResponse(BaseModel):
    week_number: int
    phase_number: int
    days: List[TrainingDayResponse]
    weekly_total_km: float

    model_config = ConfigDict(from_attributes=True)


class PhaseResponse(BaseModel):
    number: int
    name: str
    weeks: List[int]
    description: str
    goals: List[str] = []
    state: Optional[str] = None  # locked | unlocked | completed, for the requesting user

    model_config = ConfigDict(from_attributes=True)


class PhaseStatesResponse(BaseModel):
    current_phase: int
    phases: Dict[int, str]


class WalkToggleRequest(BaseModel):
    week_number: int = Field(ge=1, le=52)
    day_of_week: str
    completed: Optional[bool] = None  # None flips the current state


class GateResultResponse(BaseModel):
    newly_completed: List[int] = []
    newly_unlocked: List[int] = []

    model_config = ConfigDict(from_attributes=True)


class WalkToggleResponse(BaseModel):
    week_number: int
    day_of_week: str
    completed: bool
    distance_km: float
    gate: Optional[GateResultResponse] = None
    gate_pending: bool = False

    model_config = ConfigDict(from_attributes=True)


class WalkCompletionResponse(BaseModel):
    id: UUID
    week_number: int
    day_of_week: str
    distance_km: float
    completed_at: datetime

    model_config = ConfigDict(from_attributes=True)


# --- LIBRARY ---

class ItemToggleRequest(BaseModel):
    completed: Optional[bool] = None  # None flips the current state


class ItemToggleResponse(BaseModel):
    kind: str
    item_id: str
    completed: bool

    model_config = ConfigDict(from_attributes=True)


class CompletedItemResponse(BaseModel):
    item_id: str
    completed_at: datetime


# --- PROGRESS ---

class ScoreBreakdownResponse(BaseModel):
    walk_points: float
    phase_points: int
    trail_points: int
    book_points: int
    hike_points: int
    total: float

    model_config = ConfigDict(from_attributes=True)


class InsigniaResponse(BaseModel):
    id: str
    kind: str
    title: str
    description: str
    image: str
    requirement: str
    earned: bool
    stage: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class OnboardingResponse(BaseModel):
    phase_1_unlocked: bool
    created: bool


# --- TEAMS ---

class TeamMemberResponse(BaseModel):
    id: UUID
    team_id: UUID
    user_id: UUID
    role: str
    joined_at: datetime
    profile: Optional[PublicProfile] = None

    model_config = ConfigDict(from_attributes=True)


class TeamSummary(BaseModel):
    id: UUID
    name: Optional[str] = None
    max_members: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class TeamResponse(BaseModel):
    id: UUID
    name: Optional[str] = None
    created_by: UUID
    max_members: Optional[int] = None
    whatsapp_link: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    members: List[TeamMemberResponse] = []
    member_count: int
    total_distance_km: Optional[float] = None

    model_config = ConfigDict(from_attributes=True)


class TeamCreate(BaseModel):
    name: Optional[str] = None
    max_members: Optional[int] = None
    whatsapp_link: Optional[str] = None


class TeamNameUpdate(BaseModel):
    name: Optional[str] = None


class TeamWhatsAppLinkUpdate(BaseModel):
    whatsapp_link: Optional[str] = None


class LeaveTeamResponse(BaseModel):
    team_deleted: bool


class NearbyUserResponse(BaseModel):
    id: UUID
    name: str
    location: Optional[str] = None
    address: Optional[str] = None  # always null for other users
    latitude: float
    longitude: float
    distance_miles: float
    team_id: Optional[UUID] = None
    team_name: Optional[str] = None
    is_team_leader: Optional[bool] = None
    team_max_members: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class MemberEmailResponse(BaseModel):
    user_id: UUID
    email: Optional[str] = None


class TeamDistanceResponse(BaseModel):
    team_id: UUID
    team_name: Optional[str] = None
    member_count: int
    total_distance_km: float

    model_config = ConfigDict(from_attributes=True)


# --- INVITATIONS / JOIN REQUESTS ---

class InvitationCreate(BaseModel):
    invited_user_id: UUID


class InvitationResponse(BaseModel):
    id: UUID
    team_id: UUID
    invited_by: UUID
    invited_user_id: UUID
    status: str
    created_at: datetime
    updated_at: datetime
    team: Optional[TeamSummary] = None
    inviter: Optional[PublicProfile] = None

    model_config = ConfigDict(from_attributes=True)


class JoinRequestResponse(BaseModel):
    id: UUID
    team_id: UUID
    requested_by: UUID
    status: str
    created_at: datetime
    updated_at: datetime
    team: Optional[TeamSummary] = None
    requester: Optional[PublicProfile] = None

    model_config = ConfigDict(from_attributes=True)


# --- ADMIN ---

class AdminMemberAdd(BaseModel):
    user_id: UUID


class UserWithStatsResponse(BaseModel):
    id: UUID
    name: str
    email: Optional[str] = None
    location: Optional[str] = None
    phone_number: Optional[str] = None
    role: str
    start_date: Optional[date] = None
    created_at: datetime
    total_points: float
    total_km: float

    model_config = ConfigDict(from_attributes=True)
