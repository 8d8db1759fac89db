"""
Tests for team membership mutations and the capacity rule.
"""
import threading
import time
import uuid

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from core.exceptions import (
    AlreadyMember,
    CapacityExceeded,
    NotFound,
    PermissionDenied,
    TransientBackendError,
    ValidationError,
)
from models import Profile, Team, TeamMember
from services import team_service
from services.team_matching import get_team, get_user_team, get_user_teams
from services.team_service import (
    add_member_if_capacity,
    admin_add_member,
    admin_delete_team,
    admin_remove_member,
    create_team,
    delete_team,
    join_team,
    leave_team,
    normalize_whatsapp_link,
    update_team_name,
    update_team_whatsapp_link,
)


def member_count(db, team_id):
    return db.query(TeamMember).filter(TeamMember.team_id == team_id).count()


def connection_lost(*args, **kwargs):
    raise OperationalError("UPDATE team_invitations", {}, Exception("server closed the connection unexpectedly"))


class TestCreateTeam:
    def test_creator_becomes_leader(self, db_session, make_profile):
        leader = make_profile()

        team = create_team(db_session, user_id=leader.id, name="  Peregrinos del Sur ", max_members=4)

        assert team.name == "Peregrinos del Sur"
        assert team.max_members == 4
        assert team.member_count == 1
        assert team.is_leader(leader.id)
        assert get_user_team(db_session, leader.id).id == team.id

    def test_blank_name_and_unlimited_capacity(self, db_session, make_profile):
        team = create_team(db_session, user_id=make_profile().id, name="   ")
        assert team.name is None
        assert team.max_members is None

    @pytest.mark.parametrize("max_members", [0, -3])
    def test_invalid_capacity(self, db_session, make_profile, max_members):
        with pytest.raises(ValidationError):
            create_team(db_session, user_id=make_profile().id, max_members=max_members)
        assert db_session.query(Team).count() == 0


class TestCapacity:
    """Member count never exceeds max_members"""

    def test_join_until_full(self, db_session, make_profile, make_team):
        leader, a, b = make_profile(), make_profile(), make_profile()
        team = make_team(leader, members=[a], max_members=3)

        joined = join_team(db_session, user_id=b.id, team_id=team.id)
        assert joined.member_count == 3

        with pytest.raises(CapacityExceeded):
            join_team(db_session, user_id=make_profile().id, team_id=team.id)
        assert member_count(db_session, team.id) == 3

    def test_last_slot_race(self, db_session, make_profile, make_team):
        """Two admissions past the app-level checks: only one insert lands."""
        leader, a, b = make_profile(), make_profile(), make_profile()
        team = make_team(leader, members=[a, b], max_members=4)
        first, second = make_profile(), make_profile()

        add_member_if_capacity(db_session, team_id=team.id, user_id=first.id)
        with pytest.raises(CapacityExceeded):
            add_member_if_capacity(db_session, team_id=team.id, user_id=second.id)
        db_session.commit()

        assert member_count(db_session, team.id) == 4
        members = {m.user_id for m in get_team(db_session, team.id).members}
        assert first.id in members
        assert second.id not in members

    def test_last_slot_race_between_two_sessions(self, file_engine):
        """Second session starts while the first holds an uncommitted insert for the last slot."""
        Session = sessionmaker(bind=file_engine, autoflush=False, expire_on_commit=False)
        with Session() as setup:
            profiles = [Profile(name=f"Peregrino {i}") for i in range(5)]
            setup.add_all(profiles)
            setup.flush()
            team = Team(name="Cuatro", created_by=profiles[0].id, max_members=4)
            setup.add(team)
            setup.flush()
            for i, p in enumerate(profiles[:3]):
                setup.add(TeamMember(team_id=team.id, user_id=p.id, role="leader" if i == 0 else "member"))
            setup.commit()
            team_id = team.id
            first, second = profiles[3].id, profiles[4].id

        inserted = threading.Event()
        outcomes = {}

        def admit(user_id, hold):
            session = Session()
            try:
                add_member_if_capacity(session, team_id=team_id, user_id=user_id)
                if hold:
                    inserted.set()
                    time.sleep(0.3)
                session.commit()
                outcomes[user_id] = "joined"
            except CapacityExceeded:
                session.rollback()
                outcomes[user_id] = "full"
            except Exception as e:
                session.rollback()
                outcomes[user_id] = e
            finally:
                inserted.set()
                session.close()

        holder = threading.Thread(target=admit, args=(first, True))
        holder.start()
        assert inserted.wait(timeout=5)
        contender = threading.Thread(target=admit, args=(second, False))
        contender.start()
        holder.join(timeout=10)
        contender.join(timeout=10)

        assert outcomes == {first: "joined", second: "full"}
        with Session() as check:
            assert member_count(check, team_id) == 4

    def test_unlimited_team_accepts_everyone(self, db_session, make_profile, make_team):
        team = make_team(make_profile(), max_members=None)
        for _ in range(5):
            join_team(db_session, user_id=make_profile().id, team_id=team.id)
        assert member_count(db_session, team.id) == 6

    def test_join_twice(self, db_session, make_profile, make_team):
        leader, member = make_profile(), make_profile()
        team = make_team(leader, members=[member], max_members=4)

        with pytest.raises(AlreadyMember):
            join_team(db_session, user_id=member.id, team_id=team.id)

    def test_duplicate_insert_maps_to_already_member(self, db_session, make_profile, make_team):
        leader = make_profile()
        team = make_team(leader)
        with pytest.raises(AlreadyMember):
            add_member_if_capacity(db_session, team_id=team.id, user_id=leader.id)

    def test_join_missing_team(self, db_session, make_profile):
        with pytest.raises(NotFound):
            join_team(db_session, user_id=make_profile().id, team_id=uuid.uuid4())


class TestLeaveAndDelete:
    def test_leave_keeps_team_with_members(self, db_session, make_profile, make_team):
        leader, member = make_profile(), make_profile()
        team = make_team(leader, members=[member])

        assert leave_team(db_session, user_id=member.id, team_id=team.id) is False
        assert get_user_teams(db_session, member.id) == []
        assert member_count(db_session, team.id) == 1

    def test_last_member_leaving_deletes_team(self, db_session, make_profile, make_team):
        leader = make_profile()
        team = make_team(leader)
        team_id = team.id

        assert leave_team(db_session, user_id=leader.id, team_id=team_id) is True
        assert db_session.query(Team).filter(Team.id == team_id).first() is None

    def test_leave_when_not_member(self, db_session, make_profile, make_team):
        team = make_team(make_profile())
        with pytest.raises(NotFound):
            leave_team(db_session, user_id=make_profile().id, team_id=team.id)

    def test_only_creator_deletes(self, db_session, make_profile, make_team):
        leader, member = make_profile(), make_profile()
        team = make_team(leader, members=[member])
        team_id = team.id

        with pytest.raises(PermissionDenied):
            delete_team(db_session, user_id=member.id, team_id=team_id)

        delete_team(db_session, user_id=leader.id, team_id=team_id)
        assert db_session.query(Team).filter(Team.id == team_id).first() is None
        assert member_count(db_session, team_id) == 0


class TestLeaderEdits:
    def test_rename(self, db_session, make_profile, make_team):
        leader, member = make_profile(), make_profile()
        team = make_team(leader, members=[member])

        assert update_team_name(db_session, user_id=leader.id, team_id=team.id, name="Nuevo").name == "Nuevo"
        with pytest.raises(PermissionDenied):
            update_team_name(db_session, user_id=member.id, team_id=team.id, name="Otro")
        with pytest.raises(PermissionDenied):
            update_team_name(db_session, user_id=make_profile().id, team_id=team.id, name="Otro")
        assert get_team(db_session, team.id).name == "Nuevo"

    def test_name_too_long(self, db_session, make_profile, make_team):
        leader = make_profile()
        team = make_team(leader)
        with pytest.raises(ValidationError):
            update_team_name(db_session, user_id=leader.id, team_id=team.id, name="x" * 81)

    def test_whatsapp_link(self, db_session, make_profile, make_team):
        leader, member = make_profile(), make_profile()
        team = make_team(leader, members=[member])
        link = "https://chat.whatsapp.com/AbCdEf123"

        updated = update_team_whatsapp_link(db_session, user_id=leader.id, team_id=team.id, whatsapp_link=link)
        assert updated.whatsapp_link == link

        with pytest.raises(PermissionDenied):
            update_team_whatsapp_link(db_session, user_id=member.id, team_id=team.id, whatsapp_link=None)

        cleared = update_team_whatsapp_link(db_session, user_id=leader.id, team_id=team.id, whatsapp_link="")
        assert cleared.whatsapp_link is None

    @pytest.mark.parametrize("link", ["not a url", "ftp://example.com/x", "https://"])
    def test_invalid_links(self, link):
        with pytest.raises(ValidationError):
            normalize_whatsapp_link(link)


class TestBackendFailures:
    """Driver errors during a write surface as 503 and leave nothing behind"""

    def test_join_rolls_back_when_connection_drops(self, db_session, make_profile, make_team, monkeypatch):
        leader, joiner = make_profile(), make_profile()
        team = make_team(leader, max_members=4)
        # fails after the membership insert has already run
        monkeypatch.setattr(team_service, "resolve_pending_for_member", connection_lost)

        with pytest.raises(TransientBackendError) as exc_info:
            join_team(db_session, user_id=joiner.id, team_id=team.id)

        assert exc_info.value.status_code == 503
        assert member_count(db_session, team.id) == 1

        monkeypatch.undo()
        assert join_team(db_session, user_id=joiner.id, team_id=team.id).member_count == 2

    def test_leave_rolls_back_when_connection_drops(self, db_session, make_profile, make_team, monkeypatch):
        leader = make_profile()
        team = make_team(leader)
        monkeypatch.setattr(team_service, "get_membership", connection_lost)

        with pytest.raises(TransientBackendError):
            leave_team(db_session, user_id=leader.id, team_id=team.id)
        assert db_session.query(Team).filter(Team.id == team.id).first() is not None


class TestAdminMembership:
    def test_add_member_checks_capacity(self, db_session, make_profile, make_team):
        leader, a, b = make_profile(), make_profile(), make_profile()
        team = make_team(leader, max_members=2)

        assert admin_add_member(db_session, team_id=team.id, user_id=a.id).member_count == 2
        with pytest.raises(CapacityExceeded):
            admin_add_member(db_session, team_id=team.id, user_id=b.id)
        with pytest.raises(AlreadyMember):
            admin_add_member(db_session, team_id=team.id, user_id=a.id)
        assert member_count(db_session, team.id) == 2

    def test_add_unknown_user_or_team(self, db_session, make_profile, make_team):
        team = make_team(make_profile())
        with pytest.raises(NotFound):
            admin_add_member(db_session, team_id=team.id, user_id=uuid.uuid4())
        with pytest.raises(NotFound):
            admin_add_member(db_session, team_id=uuid.uuid4(), user_id=make_profile().id)

    def test_remove_member_cascades_like_leave(self, db_session, make_profile, make_team):
        leader, member = make_profile(), make_profile()
        team = make_team(leader, members=[member])
        team_id = team.id

        assert admin_remove_member(db_session, team_id=team_id, user_id=member.id) is False
        with pytest.raises(NotFound):
            admin_remove_member(db_session, team_id=team_id, user_id=member.id)

        assert admin_remove_member(db_session, team_id=team_id, user_id=leader.id) is True
        assert db_session.query(Team).filter(Team.id == team_id).first() is None

    def test_delete_any_team(self, db_session, make_profile, make_team):
        leader, member = make_profile(), make_profile()
        team = make_team(leader, members=[member])
        team_id = team.id

        admin_delete_team(db_session, team_id=team_id)

        assert db_session.query(Team).filter(Team.id == team_id).first() is None
        assert member_count(db_session, team_id) == 0
        with pytest.raises(NotFound):
            admin_delete_team(db_session, team_id=team_id)
