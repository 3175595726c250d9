"""
Tests for clubs, club membership, teams and rosters.
"""
from __future__ import annotations

import pytest

from clubhouse.persistence.db import get_connection, init_db, set_db_path
from clubhouse.persistence.repositories import NotificationRepository, UserRepository
from clubhouse.services.club_service import ClubService
from clubhouse.services.errors import ConflictError, NotFoundError, PermissionDeniedError, ServiceError


@pytest.fixture
def db_conn(tmp_path):
    db_path = tmp_path / "clubs_test.db"
    set_db_path(db_path)
    init_db(db_path=db_path)
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture
def service():
    return ClubService()


@pytest.fixture
def users(db_conn):
    repo = UserRepository()
    return {
        "root": repo.create(db_conn, "root", role="super_admin"),
        "owner": repo.create(db_conn, "owner", role="club_admin"),
        "coach": repo.create(db_conn, "coach", role="coach"),
        "p1": repo.create(db_conn, "p1"),
        "p2": repo.create(db_conn, "p2"),
        "p3": repo.create(db_conn, "p3"),
    }


@pytest.fixture
def club(db_conn, service, users):
    return service.create_club(db_conn, users["owner"], "Riverside FC", city="Leeds", max_players_per_team=2)


@pytest.fixture
def team(db_conn, service, users, club):
    return service.create_team(db_conn, users["owner"], club.id, "U12 Blue", age_group="U12", gender="male")


def test_create_club_pending_with_creator_as_admin(db_conn, service, users, club):
    assert club.status == "pending"
    assert club.verified is False
    assert service.club_role(db_conn, users["owner"].id, club.id) == "admin"
    assert [c.id for c in service.list_clubs_for_user(db_conn, users["owner"].id)] == [club.id]


def test_duplicate_club_name_rejected(db_conn, service, users, club):
    with pytest.raises(ConflictError):
        service.create_club(db_conn, users["coach"], "riverside fc")


def test_blank_club_name_rejected(db_conn, service, users):
    with pytest.raises(ServiceError):
        service.create_club(db_conn, users["owner"], "   ")


def test_only_super_admin_verifies(db_conn, service, users, club):
    with pytest.raises(PermissionDeniedError):
        service.verify_club(db_conn, users["owner"], club.id)
    verified = service.verify_club(db_conn, users["root"], club.id)
    assert verified.verified is True
    assert verified.status == "active"


def test_update_club_cannot_self_verify(db_conn, service, users, club):
    updated = service.update_club(db_conn, users["owner"], club.id, description="Community club", verified=True)
    assert updated.description == "Community club"
    assert updated.verified is False


def test_non_admin_cannot_update_club(db_conn, service, users, club):
    with pytest.raises(PermissionDeniedError):
        service.update_club(db_conn, users["coach"], club.id, description="x")


def test_set_club_status_validates(db_conn, service, users, club):
    with pytest.raises(ServiceError):
        service.set_club_status(db_conn, users["root"], club.id, "closed")
    assert service.set_club_status(db_conn, users["root"], club.id, "inactive").status == "inactive"


def test_list_clubs_search(db_conn, service, users, club):
    service.create_club(db_conn, users["coach"], "Hilltop United", city="York")
    assert [c.name for c in service.list_clubs(db_conn, search="hill")] == ["Hilltop United"]
    assert [c.name for c in service.list_clubs(db_conn, city="Leeds")] == ["Riverside FC"]


def test_cannot_remove_last_admin(db_conn, service, users, club):
    with pytest.raises(ConflictError):
        service.remove_club_member(db_conn, users["owner"], club.id, users["owner"].id)


def test_remove_club_member_drops_team_rosters(db_conn, service, users, club, team):
    service.add_team_member(db_conn, users["owner"], team.id, users["p1"].id)
    service.remove_club_member(db_conn, users["owner"], club.id, users["p1"].id)
    assert not service.is_on_roster(db_conn, team.id, users["p1"].id)
    assert service.club_role(db_conn, users["p1"].id, club.id) is None


def test_add_club_member_invalid_role(db_conn, service, users, club):
    with pytest.raises(ServiceError):
        service.add_club_member(db_conn, users["owner"], club.id, users["p1"].id, "captain")
    with pytest.raises(NotFoundError):
        service.add_club_member(db_conn, users["owner"], club.id, "ghost")


def test_create_team_inherits_club_limits(team, club):
    assert team.max_players == club.max_players_per_team
    assert team.level == club.level
    assert team.gender == "male"


def test_create_team_rejects_bad_gender(db_conn, service, users, club):
    with pytest.raises(ServiceError):
        service.create_team(db_conn, users["owner"], club.id, "Mixed", gender="mixed")


def test_club_team_limit(db_conn, service, users):
    small = service.create_club(db_conn, users["owner"], "Tiny FC", max_teams=1)
    service.create_team(db_conn, users["owner"], small.id, "First")
    with pytest.raises(ConflictError):
        service.create_team(db_conn, users["owner"], small.id, "Second")


def test_add_team_member_joins_club_and_notifies(db_conn, service, users, club, team):
    member = service.add_team_member(db_conn, users["owner"], team.id, users["p1"].id, jersey_number=9)
    assert member.role == "player"
    assert member.jersey_number == 9
    assert service.club_role(db_conn, users["p1"].id, club.id) == "player"
    notes = NotificationRepository().list_by_user(db_conn, users["p1"].id)
    assert [n.title for n in notes] == ["Added to team"]


def test_jersey_numbers(db_conn, service, users, team):
    service.add_team_member(db_conn, users["owner"], team.id, users["p1"].id, jersey_number=7)
    with pytest.raises(ConflictError):
        service.add_team_member(db_conn, users["owner"], team.id, users["p2"].id, jersey_number=7)
    with pytest.raises(ServiceError):
        service.add_team_member(db_conn, users["owner"], team.id, users["p2"].id, jersey_number=100)


def test_roster_capacity_counts_players_only(db_conn, service, users, team):
    service.add_team_member(db_conn, users["owner"], team.id, users["p1"].id)
    service.add_team_member(db_conn, users["owner"], team.id, users["p2"].id)
    with pytest.raises(ConflictError):
        service.add_team_member(db_conn, users["owner"], team.id, users["p3"].id)
    # coaches do not use player slots; updating an existing player is allowed
    service.add_team_member(db_conn, users["owner"], team.id, users["coach"].id, role="coach")
    service.add_team_member(db_conn, users["owner"], team.id, users["p1"].id, position="GK")
    assert len(service.roster(db_conn, team.id)) == 3


def test_remove_team_member(db_conn, service, users, team):
    service.add_team_member(db_conn, users["owner"], team.id, users["p1"].id)
    service.remove_team_member(db_conn, users["owner"], team.id, users["p1"].id)
    assert service.roster(db_conn, team.id) == []
    with pytest.raises(NotFoundError):
        service.remove_team_member(db_conn, users["owner"], team.id, users["p2"].id)


def test_update_team_max_players_bounds(db_conn, service, users, team):
    service.add_team_member(db_conn, users["owner"], team.id, users["p1"].id)
    service.add_team_member(db_conn, users["owner"], team.id, users["p2"].id)
    with pytest.raises(ServiceError):
        service.update_team(db_conn, users["owner"], team.id, max_players=50)
    with pytest.raises(ConflictError):
        service.update_team(db_conn, users["owner"], team.id, max_players=1)


def test_club_stats(db_conn, service, users, club, team):
    service.add_team_member(db_conn, users["owner"], team.id, users["p1"].id)
    service.add_team_member(db_conn, users["owner"], team.id, users["coach"].id, role="coach")
    stats = service.club_stats(db_conn, club.id)
    assert stats["teams"] == 1
    assert stats["players"] == 1
    assert stats["coaches"] == 1
    assert stats["members"] == 3
    assert stats["matches"] == 0
