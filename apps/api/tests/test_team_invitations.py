"""
Tests for the invitation and join-request workflows.
"""
import pytest

from core.exceptions import (
    AlreadyMember,
    CapacityExceeded,
    DuplicatePending,
    NotFound,
    PermissionDenied,
    TeamFull,
)
from models import TeamInvitation, TeamJoinRequest, TeamMember
from services.team_invitations import (
    STATUS_ACCEPTED,
    STATUS_PENDING,
    STATUS_DECLINED,
    accept_invitation,
    accept_join_request,
    create_join_request,
    decline_invitation,
    decline_join_request,
    get_team_join_requests,
    get_user_invitations,
    get_user_join_requests,
    send_invitation,
)
from services.team_service import admin_add_member, join_team


def member_ids(db, team_id):
    return {m.user_id for m in db.query(TeamMember).filter(TeamMember.team_id == team_id).all()}


class TestInvitations:
    """pending -> accepted | declined"""

    def test_invite_and_accept(self, db_session, make_profile, make_team):
        leader, invitee = make_profile(), make_profile(name="Invitada")
        team = make_team(leader, max_members=4)

        invitation = send_invitation(db_session, inviter_id=leader.id, team_id=team.id, invited_user_id=invitee.id)
        pending = get_user_invitations(db_session, invitee.id)
        assert [i.id for i in pending] == [invitation.id]
        assert pending[0].team.id == team.id
        assert pending[0].inviter.id == leader.id

        joined_team_id = accept_invitation(db_session, user_id=invitee.id, invitation_id=invitation.id)

        assert joined_team_id == team.id
        assert invitee.id in member_ids(db_session, team.id)
        db_session.refresh(invitation)
        assert invitation.status == STATUS_ACCEPTED
        assert get_user_invitations(db_session, invitee.id) == []

    def test_second_invitation_while_pending(self, db_session, make_profile, make_team):
        leader, member, invitee = make_profile(), make_profile(), make_profile()
        team = make_team(leader, members=[member], max_members=4)

        send_invitation(db_session, inviter_id=leader.id, team_id=team.id, invited_user_id=invitee.id)
        with pytest.raises(DuplicatePending):
            send_invitation(db_session, inviter_id=member.id, team_id=team.id, invited_user_id=invitee.id)

    def test_reinvite_after_decline(self, db_session, make_profile, make_team):
        leader, invitee = make_profile(), make_profile()
        team = make_team(leader, max_members=4)

        first = send_invitation(db_session, inviter_id=leader.id, team_id=team.id, invited_user_id=invitee.id)
        decline_invitation(db_session, user_id=invitee.id, invitation_id=first.id)
        second = send_invitation(db_session, inviter_id=leader.id, team_id=team.id, invited_user_id=invitee.id)

        assert second.id != first.id

    def test_inviter_must_be_member(self, db_session, make_profile, make_team):
        team = make_team(make_profile())
        with pytest.raises(PermissionDenied):
            send_invitation(db_session, inviter_id=make_profile().id, team_id=team.id, invited_user_id=make_profile().id)

    def test_cannot_invite_member(self, db_session, make_profile, make_team):
        leader, member = make_profile(), make_profile()
        team = make_team(leader, members=[member])
        with pytest.raises(AlreadyMember):
            send_invitation(db_session, inviter_id=leader.id, team_id=team.id, invited_user_id=member.id)

    def test_cannot_invite_into_full_team(self, db_session, make_profile, make_team):
        leader, member = make_profile(), make_profile()
        team = make_team(leader, members=[member], max_members=2)
        with pytest.raises(CapacityExceeded):
            send_invitation(db_session, inviter_id=leader.id, team_id=team.id, invited_user_id=make_profile().id)

    def test_accept_after_team_filled_up(self, db_session, make_profile, make_team):
        """Two invitations into a team with one free slot: the second accept loses."""
        leader, x, y = make_profile(), make_profile(), make_profile()
        team = make_team(leader, max_members=2)

        inv_x = send_invitation(db_session, inviter_id=leader.id, team_id=team.id, invited_user_id=x.id)
        inv_y = send_invitation(db_session, inviter_id=leader.id, team_id=team.id, invited_user_id=y.id)

        accept_invitation(db_session, user_id=x.id, invitation_id=inv_x.id)
        with pytest.raises(TeamFull):
            accept_invitation(db_session, user_id=y.id, invitation_id=inv_y.id)

        assert member_ids(db_session, team.id) == {leader.id, x.id}
        status = db_session.query(TeamInvitation.status).filter(TeamInvitation.id == inv_y.id).scalar()
        assert status == STATUS_DECLINED

    def test_resolved_invitation_cannot_be_reused(self, db_session, make_profile, make_team):
        leader, invitee = make_profile(), make_profile()
        team = make_team(leader, max_members=4)
        invitation = send_invitation(db_session, inviter_id=leader.id, team_id=team.id, invited_user_id=invitee.id)
        decline_invitation(db_session, user_id=invitee.id, invitation_id=invitation.id)

        with pytest.raises(NotFound):
            accept_invitation(db_session, user_id=invitee.id, invitation_id=invitation.id)
        with pytest.raises(NotFound):
            decline_invitation(db_session, user_id=invitee.id, invitation_id=invitation.id)

    def test_only_invitee_can_respond(self, db_session, make_profile, make_team):
        leader, invitee = make_profile(), make_profile()
        team = make_team(leader, max_members=4)
        invitation = send_invitation(db_session, inviter_id=leader.id, team_id=team.id, invited_user_id=invitee.id)

        with pytest.raises(NotFound):
            accept_invitation(db_session, user_id=make_profile().id, invitation_id=invitation.id)


class TestJoinRequests:
    """Applicant asks, a leader resolves"""

    def test_request_and_accept(self, db_session, make_profile, make_team):
        leader, applicant = make_profile(), make_profile()
        team = make_team(leader, max_members=3)

        join_request = create_join_request(db_session, user_id=applicant.id, team_id=team.id)
        pending = get_team_join_requests(db_session, team_id=team.id, leader_id=leader.id)
        assert [r.id for r in pending] == [join_request.id]
        assert pending[0].requester.id == applicant.id

        accepted = accept_join_request(db_session, leader_id=leader.id, team_id=team.id, request_id=join_request.id)

        assert accepted.status == STATUS_ACCEPTED
        assert applicant.id in member_ids(db_session, team.id)
        assert get_team_join_requests(db_session, team_id=team.id, leader_id=leader.id) == []

    def test_duplicate_pending_request(self, db_session, make_profile, make_team):
        leader, applicant = make_profile(), make_profile()
        team = make_team(leader, max_members=3)
        create_join_request(db_session, user_id=applicant.id, team_id=team.id)
        with pytest.raises(DuplicatePending):
            create_join_request(db_session, user_id=applicant.id, team_id=team.id)

    def test_member_cannot_request(self, db_session, make_profile, make_team):
        leader = make_profile()
        team = make_team(leader)
        with pytest.raises(AlreadyMember):
            create_join_request(db_session, user_id=leader.id, team_id=team.id)

    def test_full_team_rejects_request(self, db_session, make_profile, make_team):
        leader = make_profile()
        team = make_team(leader, max_members=1)
        with pytest.raises(CapacityExceeded):
            create_join_request(db_session, user_id=make_profile().id, team_id=team.id)

    def test_only_leader_resolves(self, db_session, make_profile, make_team):
        leader, member, applicant = make_profile(), make_profile(), make_profile()
        team = make_team(leader, members=[member], max_members=4)
        join_request = create_join_request(db_session, user_id=applicant.id, team_id=team.id)

        with pytest.raises(PermissionDenied):
            accept_join_request(db_session, leader_id=member.id, team_id=team.id, request_id=join_request.id)
        with pytest.raises(PermissionDenied):
            decline_join_request(db_session, leader_id=applicant.id, team_id=team.id, request_id=join_request.id)
        with pytest.raises(PermissionDenied):
            get_team_join_requests(db_session, team_id=team.id, leader_id=member.id)

    def test_decline_then_request_again(self, db_session, make_profile, make_team):
        leader, applicant = make_profile(), make_profile()
        team = make_team(leader, max_members=3)
        first = create_join_request(db_session, user_id=applicant.id, team_id=team.id)

        declined = decline_join_request(db_session, leader_id=leader.id, team_id=team.id, request_id=first.id)
        assert declined.status == STATUS_DECLINED

        with pytest.raises(NotFound):
            accept_join_request(db_session, leader_id=leader.id, team_id=team.id, request_id=first.id)

        second = create_join_request(db_session, user_id=applicant.id, team_id=team.id)
        statuses = sorted(r.status for r in get_user_join_requests(db_session, applicant.id))
        assert second.id != first.id
        assert statuses == ["declined", "pending"]

    def test_accept_when_team_filled_up(self, db_session, make_profile, make_team):
        leader, applicant, invitee = make_profile(), make_profile(), make_profile()
        team = make_team(leader, max_members=2)
        join_request = create_join_request(db_session, user_id=applicant.id, team_id=team.id)
        invitation = send_invitation(db_session, inviter_id=leader.id, team_id=team.id, invited_user_id=invitee.id)
        accept_invitation(db_session, user_id=invitee.id, invitation_id=invitation.id)

        with pytest.raises(TeamFull):
            accept_join_request(db_session, leader_id=leader.id, team_id=team.id, request_id=join_request.id)

        status = db_session.query(TeamJoinRequest.status).filter(TeamJoinRequest.id == join_request.id).scalar()
        assert status == STATUS_DECLINED
        assert applicant.id not in member_ids(db_session, team.id)


def status_of(db, model, row_id):
    return db.query(model.status).filter(model.id == row_id).scalar()


class TestResolvedOnMembership:
    """Once the user is in the team, their other pending rows for it are settled"""

    def test_accepting_request_settles_invitation(self, db_session, make_profile, make_team):
        leader, user = make_profile(), make_profile()
        team = make_team(leader, max_members=4)
        invitation = send_invitation(db_session, inviter_id=leader.id, team_id=team.id, invited_user_id=user.id)
        join_request = create_join_request(db_session, user_id=user.id, team_id=team.id)

        accept_join_request(db_session, leader_id=leader.id, team_id=team.id, request_id=join_request.id)

        assert get_user_invitations(db_session, user.id) == []
        assert status_of(db_session, TeamInvitation, invitation.id) == STATUS_ACCEPTED

    def test_accepting_invitation_settles_request(self, db_session, make_profile, make_team):
        leader, user = make_profile(), make_profile()
        team = make_team(leader, max_members=4)
        join_request = create_join_request(db_session, user_id=user.id, team_id=team.id)
        invitation = send_invitation(db_session, inviter_id=leader.id, team_id=team.id, invited_user_id=user.id)

        accept_invitation(db_session, user_id=user.id, invitation_id=invitation.id)

        assert get_team_join_requests(db_session, team_id=team.id, leader_id=leader.id) == []
        assert status_of(db_session, TeamJoinRequest, join_request.id) == STATUS_ACCEPTED

    def test_direct_join_settles_both(self, db_session, make_profile, make_team):
        leader, user = make_profile(), make_profile()
        team = make_team(leader, max_members=4)
        invitation = send_invitation(db_session, inviter_id=leader.id, team_id=team.id, invited_user_id=user.id)
        join_request = create_join_request(db_session, user_id=user.id, team_id=team.id)

        join_team(db_session, user_id=user.id, team_id=team.id)

        assert status_of(db_session, TeamInvitation, invitation.id) == STATUS_ACCEPTED
        assert status_of(db_session, TeamJoinRequest, join_request.id) == STATUS_ACCEPTED

    def test_admin_add_settles_invitation(self, db_session, make_profile, make_team):
        leader, user = make_profile(), make_profile()
        team = make_team(leader, max_members=4)
        invitation = send_invitation(db_session, inviter_id=leader.id, team_id=team.id, invited_user_id=user.id)

        admin_add_member(db_session, team_id=team.id, user_id=user.id)

        assert get_user_invitations(db_session, user.id) == []
        assert status_of(db_session, TeamInvitation, invitation.id) == STATUS_ACCEPTED

    def test_accept_invitation_when_already_member(self, db_session, make_profile, make_team):
        """Membership written outside the workflow: accepting still settles the row."""
        leader, user = make_profile(), make_profile()
        team = make_team(leader, max_members=4)
        invitation = send_invitation(db_session, inviter_id=leader.id, team_id=team.id, invited_user_id=user.id)
        db_session.add(TeamMember(team_id=team.id, user_id=user.id, role="member"))
        db_session.commit()

        assert accept_invitation(db_session, user_id=user.id, invitation_id=invitation.id) == team.id

        assert status_of(db_session, TeamInvitation, invitation.id) == STATUS_ACCEPTED
        assert member_ids(db_session, team.id) == {leader.id, user.id}

    def test_accept_request_when_already_member(self, db_session, make_profile, make_team):
        leader, user = make_profile(), make_profile()
        team = make_team(leader, max_members=4)
        join_request = create_join_request(db_session, user_id=user.id, team_id=team.id)
        db_session.add(TeamMember(team_id=team.id, user_id=user.id, role="member"))
        db_session.commit()

        accepted = accept_join_request(db_session, leader_id=leader.id, team_id=team.id, request_id=join_request.id)

        assert accepted.status == STATUS_ACCEPTED
        assert status_of(db_session, TeamJoinRequest, join_request.id) == STATUS_ACCEPTED

    def test_other_teams_untouched(self, db_session, make_profile, make_team):
        leader_a, leader_b, user = make_profile(), make_profile(), make_profile()
        team_a = make_team(leader_a, max_members=4, name="A")
        team_b = make_team(leader_b, max_members=4, name="B")
        invitation_b = send_invitation(db_session, inviter_id=leader_b.id, team_id=team_b.id, invited_user_id=user.id)

        join_team(db_session, user_id=user.id, team_id=team_a.id)

        assert status_of(db_session, TeamInvitation, invitation_b.id) == STATUS_PENDING
