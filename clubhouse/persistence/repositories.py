"""
Repository interfaces for clubhouse data.
No business logic, only read/write operations.
"""
from __future__ import annotations

import json
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Any, TypeVar

from clubhouse.models import (
    AnalyticsSnapshot,
    AuditLog,
    Club,
    ClubMember,
    EventAttendee,
    Match,
    MatchEvent,
    Notification,
    Payment,
    ScheduleEvent,
    SystemHealth,
    Team,
    TeamMember,
    Tournament,
    TournamentParticipant,
    User,
)


def _parse_datetime(s: str | None) -> datetime:
    if s is None:
        raise ValueError("expected datetime string")
    dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _parse_optional(s: str | None) -> datetime | None:
    return _parse_datetime(s) if s else None


def to_iso(dt: datetime | None) -> str | None:
    """Store every timestamp as aware UTC ISO text so string comparison orders correctly."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id(id: str | None) -> str:
    return id or str(uuid.uuid4())


_T = TypeVar("_T")


def _reread(obj: _T | None) -> _T:
    """A row just written on this connection; None means the write did not land."""
    if obj is None:
        raise sqlite3.DatabaseError("row not found after write")
    return obj


def _load_json(s: str | None, default: Any) -> Any:
    if not s:
        return default
    return json.loads(s)


# Tables whose rows may be created with a caller-chosen id prefix (sample data)
_PREFIX_DELETABLE = (
    "match_events",
    "matches",
    "tournament_participants",
    "tournaments",
    "event_attendees",
    "schedule_events",
    "payments",
    "team_members",
    "teams",
    "club_members",
    "clubs",
    "users",
)


def delete_rows_with_id_prefix(conn: sqlite3.Connection, prefix: str) -> dict[str, int]:
    """Delete every row whose id (or owning id for join tables) starts with prefix. Returns counts per table."""
    like = prefix + "%"
    key_for = {
        "tournament_participants": "tournament_id",
        "event_attendees": "event_id",
        "team_members": "team_id",
        "club_members": "club_id",
    }
    counts: dict[str, int] = {}
    for table in _PREFIX_DELETABLE:
        col = key_for.get(table, "id")
        cur = conn.execute(f"DELETE FROM {table} WHERE {col} LIKE ?", (like,))
        counts[table] = cur.rowcount
    conn.commit()
    return counts


# ---------- UserRepository ----------


def _row_to_user(r: sqlite3.Row) -> User:
    return User(
        id=r["id"],
        username=r["username"],
        display_name=r["display_name"],
        email=r["email"],
        email_verified=bool(r["email_verified"]),
        role=r["role"],
        status=r["status"],
        password_hash=r["password_hash"],
        created_at=_parse_datetime(r["created_at"]),
        last_activity=_parse_optional(r["last_activity"]),
    )


class UserRepository:
    """CRUD for users. Passwords are stored hashed by the caller."""

    def create(
        self,
        conn: sqlite3.Connection,
        username: str,
        password_hash: str | None = None,
        display_name: str | None = None,
        email: str | None = None,
        role: str = "player",
        status: str = "active",
        email_verified: bool = False,
        created_at: datetime | None = None,
        last_activity: datetime | None = None,
        id: str | None = None,
    ) -> User:
        uid = _new_id(id)
        conn.execute(
            """INSERT INTO users (id, username, display_name, email, email_verified, role, status,
                                  password_hash, created_at, last_activity)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                uid, username, display_name or username, email, 1 if email_verified else 0,
                role, status, password_hash, to_iso(created_at or utcnow()), to_iso(last_activity),
            ),
        )
        conn.commit()
        return _reread(self.get(conn, uid))

    def get(self, conn: sqlite3.Connection, user_id: str) -> User | None:
        row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return _row_to_user(row) if row else None

    def get_by_username(self, conn: sqlite3.Connection, username: str) -> User | None:
        row = conn.execute("SELECT * FROM users WHERE username = ?", (username,)).fetchone()
        return _row_to_user(row) if row else None

    def list_all(
        self, conn: sqlite3.Connection, role: str | None = None, status: str | None = None
    ) -> list[User]:
        sql = "SELECT * FROM users WHERE 1 = 1"
        args: list[Any] = []
        if role:
            sql += " AND role = ?"
            args.append(role)
        if status:
            sql += " AND status = ?"
            args.append(status)
        sql += " ORDER BY created_at"
        return [_row_to_user(r) for r in conn.execute(sql, args).fetchall()]

    def update(
        self,
        conn: sqlite3.Connection,
        user_id: str,
        role: str | None = None,
        status: str | None = None,
        display_name: str | None = None,
        email: str | None = None,
        email_verified: bool | None = None,
    ) -> None:
        fields: dict[str, Any] = {}
        if role is not None:
            fields["role"] = role
        if status is not None:
            fields["status"] = status
        if display_name is not None:
            fields["display_name"] = display_name
        if email is not None:
            fields["email"] = email
        if email_verified is not None:
            fields["email_verified"] = 1 if email_verified else 0
        if not fields:
            return
        sets = ", ".join(f"{k} = ?" for k in fields)
        conn.execute(f"UPDATE users SET {sets} WHERE id = ?", (*fields.values(), user_id))
        conn.commit()

    def touch_activity(self, conn: sqlite3.Connection, user_id: str, at: datetime | None = None) -> None:
        conn.execute("UPDATE users SET last_activity = ? WHERE id = ?", (to_iso(at or utcnow()), user_id))
        conn.commit()

    def count_created_between(self, conn: sqlite3.Connection, start: datetime, end: datetime) -> int:
        row = conn.execute(
            "SELECT COUNT(*) FROM users WHERE created_at >= ? AND created_at < ?",
            (to_iso(start), to_iso(end)),
        ).fetchone()
        return row[0]


# ---------- ClubRepository ----------


def _row_to_club(r: sqlite3.Row) -> Club:
    return Club(
        id=r["id"],
        name=r["name"],
        description=r["description"],
        city=r["city"],
        level=r["level"],
        status=r["status"],
        verified=bool(r["verified"]),
        is_public=bool(r["is_public"]),
        max_teams=r["max_teams"],
        max_players_per_team=r["max_players_per_team"],
        created_by=r["created_by"],
        created_at=_parse_datetime(r["created_at"]),
        updated_at=_parse_optional(r["updated_at"]),
    )


_CLUB_UPDATABLE = (
    "name", "description", "city", "level", "status", "verified", "is_public",
    "max_teams", "max_players_per_team",
)


class ClubRepository:
    """CRUD for clubs."""

    def create(
        self,
        conn: sqlite3.Connection,
        name: str,
        created_by: str,
        description: str = "",
        city: str | None = None,
        level: str = "recreational",
        status: str = "pending",
        verified: bool = False,
        is_public: bool = True,
        max_teams: int = 20,
        max_players_per_team: int = 25,
        created_at: datetime | None = None,
        id: str | None = None,
    ) -> Club:
        cid = _new_id(id)
        conn.execute(
            """INSERT INTO clubs (id, name, description, city, level, status, verified, is_public,
                                  max_teams, max_players_per_team, created_by, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                cid, name, description, city, level, status, 1 if verified else 0,
                1 if is_public else 0, max_teams, max_players_per_team, created_by,
                to_iso(created_at or utcnow()),
            ),
        )
        conn.commit()
        return _reread(self.get(conn, cid))

    def get(self, conn: sqlite3.Connection, club_id: str) -> Club | None:
        row = conn.execute("SELECT * FROM clubs WHERE id = ?", (club_id,)).fetchone()
        return _row_to_club(row) if row else None

    def list(
        self,
        conn: sqlite3.Connection,
        city: str | None = None,
        level: str | None = None,
        status: str | None = None,
        search: str | None = None,
    ) -> list[Club]:
        sql = "SELECT * FROM clubs WHERE 1 = 1"
        args: list[Any] = []
        if city:
            sql += " AND city = ?"
            args.append(city)
        if level:
            sql += " AND level = ?"
            args.append(level)
        if status:
            sql += " AND status = ?"
            args.append(status)
        if search:
            sql += " AND LOWER(name) LIKE ?"
            args.append(f"%{search.lower()}%")
        sql += " ORDER BY name"
        return [_row_to_club(r) for r in conn.execute(sql, args).fetchall()]

    def update(self, conn: sqlite3.Connection, club_id: str, **fields: Any) -> None:
        """Update whitelisted columns. Booleans stored as 0/1."""
        values = {k: v for k, v in fields.items() if k in _CLUB_UPDATABLE and v is not None}
        if not values:
            return
        for k in ("verified", "is_public"):
            if k in values:
                values[k] = 1 if values[k] else 0
        values["updated_at"] = to_iso(utcnow())
        sets = ", ".join(f"{k} = ?" for k in values)
        conn.execute(f"UPDATE clubs SET {sets} WHERE id = ?", (*values.values(), club_id))
        conn.commit()


# ---------- ClubMemberRepository ----------


def _row_to_club_member(r: sqlite3.Row) -> ClubMember:
    return ClubMember(
        club_id=r["club_id"],
        user_id=r["user_id"],
        role=r["role"],
        joined_at=_parse_datetime(r["joined_at"]),
    )


class ClubMemberRepository:
    """Club membership. One row per (club, user)."""

    def add(self, conn: sqlite3.Connection, club_id: str, user_id: str, role: str = "member") -> ClubMember:
        conn.execute(
            """INSERT INTO club_members (club_id, user_id, role, joined_at) VALUES (?, ?, ?, ?)
               ON CONFLICT(club_id, user_id) DO UPDATE SET role = excluded.role""",
            (club_id, user_id, role, to_iso(utcnow())),
        )
        conn.commit()
        return _reread(self.get(conn, club_id, user_id))

    def get(self, conn: sqlite3.Connection, club_id: str, user_id: str) -> ClubMember | None:
        row = conn.execute(
            "SELECT * FROM club_members WHERE club_id = ? AND user_id = ?", (club_id, user_id)
        ).fetchone()
        return _row_to_club_member(row) if row else None

    def list_by_club(self, conn: sqlite3.Connection, club_id: str) -> list[ClubMember]:
        rows = conn.execute(
            "SELECT * FROM club_members WHERE club_id = ? ORDER BY joined_at", (club_id,)
        ).fetchall()
        return [_row_to_club_member(r) for r in rows]

    def list_by_user(self, conn: sqlite3.Connection, user_id: str) -> list[ClubMember]:
        rows = conn.execute(
            "SELECT * FROM club_members WHERE user_id = ? ORDER BY joined_at", (user_id,)
        ).fetchall()
        return [_row_to_club_member(r) for r in rows]

    def remove(self, conn: sqlite3.Connection, club_id: str, user_id: str) -> bool:
        cur = conn.execute(
            "DELETE FROM club_members WHERE club_id = ? AND user_id = ?", (club_id, user_id)
        )
        conn.commit()
        return cur.rowcount > 0


# ---------- TeamRepository ----------


def _row_to_team(r: sqlite3.Row) -> Team:
    return Team(
        id=r["id"],
        club_id=r["club_id"],
        name=r["name"],
        age_group=r["age_group"],
        gender=r["gender"],
        level=r["level"],
        division=r["division"],
        season=r["season"],
        status=r["status"],
        max_players=r["max_players"],
        created_by=r["created_by"],
        created_at=_parse_datetime(r["created_at"]),
    )


_TEAM_UPDATABLE = ("name", "age_group", "gender", "level", "division", "season", "status", "max_players")


class TeamRepository:
    """CRUD for teams."""

    def create(
        self,
        conn: sqlite3.Connection,
        club_id: str,
        name: str,
        created_by: str,
        age_group: str | None = None,
        gender: str = "coed",
        level: str = "recreational",
        division: str | None = None,
        season: str | None = None,
        status: str = "active",
        max_players: int = 25,
        id: str | None = None,
    ) -> Team:
        tid = _new_id(id)
        conn.execute(
            """INSERT INTO teams (id, club_id, name, age_group, gender, level, division, season,
                                  status, max_players, created_by, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                tid, club_id, name, age_group, gender, level, division, season, status,
                max_players, created_by, to_iso(utcnow()),
            ),
        )
        conn.commit()
        return _reread(self.get(conn, tid))

    def get(self, conn: sqlite3.Connection, team_id: str) -> Team | None:
        row = conn.execute("SELECT * FROM teams WHERE id = ?", (team_id,)).fetchone()
        return _row_to_team(row) if row else None

    def list_all(self, conn: sqlite3.Connection) -> list[Team]:
        return [_row_to_team(r) for r in conn.execute("SELECT * FROM teams ORDER BY created_at").fetchall()]

    def list_by_club(self, conn: sqlite3.Connection, club_id: str) -> list[Team]:
        rows = conn.execute(
            "SELECT * FROM teams WHERE club_id = ? ORDER BY name", (club_id,)
        ).fetchall()
        return [_row_to_team(r) for r in rows]

    def list_by_user(self, conn: sqlite3.Connection, user_id: str) -> list[Team]:
        """Teams where user_id is an active roster member."""
        rows = conn.execute(
            """SELECT t.* FROM teams t
               JOIN team_members m ON m.team_id = t.id
               WHERE m.user_id = ? AND m.is_active = 1
               ORDER BY t.name""",
            (user_id,),
        ).fetchall()
        return [_row_to_team(r) for r in rows]

    def count_by_club(self, conn: sqlite3.Connection, club_id: str) -> int:
        return conn.execute("SELECT COUNT(*) FROM teams WHERE club_id = ?", (club_id,)).fetchone()[0]

    def update(self, conn: sqlite3.Connection, team_id: str, **fields: Any) -> None:
        values = {k: v for k, v in fields.items() if k in _TEAM_UPDATABLE and v is not None}
        if not values:
            return
        sets = ", ".join(f"{k} = ?" for k in values)
        conn.execute(f"UPDATE teams SET {sets} WHERE id = ?", (*values.values(), team_id))
        conn.commit()


# ---------- TeamMemberRepository ----------


def _row_to_team_member(r: sqlite3.Row) -> TeamMember:
    return TeamMember(
        team_id=r["team_id"],
        user_id=r["user_id"],
        role=r["role"],
        position=r["position"],
        jersey_number=r["jersey_number"],
        is_active=bool(r["is_active"]),
        joined_at=_parse_datetime(r["joined_at"]),
    )


class TeamMemberRepository:
    """Team rosters."""

    def add(
        self,
        conn: sqlite3.Connection,
        team_id: str,
        user_id: str,
        role: str = "player",
        position: str | None = None,
        jersey_number: int | None = None,
    ) -> TeamMember:
        conn.execute(
            """INSERT INTO team_members (team_id, user_id, role, position, jersey_number, is_active, joined_at)
               VALUES (?, ?, ?, ?, ?, 1, ?)
               ON CONFLICT(team_id, user_id) DO UPDATE SET
                   role = excluded.role, position = excluded.position,
                   jersey_number = excluded.jersey_number, is_active = 1""",
            (team_id, user_id, role, position, jersey_number, to_iso(utcnow())),
        )
        conn.commit()
        return _reread(self.get(conn, team_id, user_id))

    def get(self, conn: sqlite3.Connection, team_id: str, user_id: str) -> TeamMember | None:
        row = conn.execute(
            "SELECT * FROM team_members WHERE team_id = ? AND user_id = ?", (team_id, user_id)
        ).fetchone()
        return _row_to_team_member(row) if row else None

    def list_by_team(self, conn: sqlite3.Connection, team_id: str, active_only: bool = True) -> list[TeamMember]:
        sql = "SELECT * FROM team_members WHERE team_id = ?"
        if active_only:
            sql += " AND is_active = 1"
        sql += " ORDER BY jersey_number IS NULL, jersey_number, joined_at"
        return [_row_to_team_member(r) for r in conn.execute(sql, (team_id,)).fetchall()]

    def list_all(self, conn: sqlite3.Connection, active_only: bool = True) -> list[TeamMember]:
        sql = "SELECT * FROM team_members"
        if active_only:
            sql += " WHERE is_active = 1"
        return [_row_to_team_member(r) for r in conn.execute(sql).fetchall()]

    def deactivate(self, conn: sqlite3.Connection, team_id: str, user_id: str) -> bool:
        cur = conn.execute(
            "UPDATE team_members SET is_active = 0 WHERE team_id = ? AND user_id = ? AND is_active = 1",
            (team_id, user_id),
        )
        conn.commit()
        return cur.rowcount > 0

    def count_active(self, conn: sqlite3.Connection, team_id: str, role: str | None = None) -> int:
        sql = "SELECT COUNT(*) FROM team_members WHERE team_id = ? AND is_active = 1"
        args: list[Any] = [team_id]
        if role:
            sql += " AND role = ?"
            args.append(role)
        return conn.execute(sql, args).fetchone()[0]

    def jersey_holder(self, conn: sqlite3.Connection, team_id: str, jersey_number: int) -> str | None:
        """user_id of the active member wearing jersey_number, or None."""
        row = conn.execute(
            "SELECT user_id FROM team_members WHERE team_id = ? AND jersey_number = ? AND is_active = 1",
            (team_id, jersey_number),
        ).fetchone()
        return row[0] if row else None


# ---------- TournamentRepository ----------


def _row_to_tournament(r: sqlite3.Row) -> Tournament:
    return Tournament(
        id=r["id"],
        name=r["name"],
        description=r["description"],
        club_id=r["club_id"],
        organizer_id=r["organizer_id"],
        type=r["type"],
        status=r["status"],
        min_teams=r["min_teams"],
        max_teams=r["max_teams"],
        registration_deadline=_parse_optional(r["registration_deadline"]),
        start_date=_parse_optional(r["start_date"]),
        end_date=_parse_optional(r["end_date"]),
        entry_fee=r["entry_fee"],
        started_at=_parse_optional(r["started_at"]),
        winner_team_id=r["winner_team_id"],
        created_at=_parse_datetime(r["created_at"]),
    )


class TournamentRepository:
    """CRUD for tournaments. Status changes are validated by TournamentService."""

    def create(
        self,
        conn: sqlite3.Connection,
        name: str,
        club_id: str,
        organizer_id: str,
        type: str,
        max_teams: int,
        min_teams: int = 2,
        description: str = "",
        registration_deadline: datetime | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        entry_fee: float | None = None,
        status: str = "draft",
        id: str | None = None,
    ) -> Tournament:
        tid = _new_id(id)
        conn.execute(
            """INSERT INTO tournaments (id, name, description, club_id, organizer_id, type, status,
                                        min_teams, max_teams, registration_deadline, start_date,
                                        end_date, entry_fee, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                tid, name, description, club_id, organizer_id, type, status, min_teams, max_teams,
                to_iso(registration_deadline), to_iso(start_date), to_iso(end_date), entry_fee,
                to_iso(utcnow()),
            ),
        )
        conn.commit()
        return _reread(self.get(conn, tid))

    def get(self, conn: sqlite3.Connection, tournament_id: str) -> Tournament | None:
        row = conn.execute("SELECT * FROM tournaments WHERE id = ?", (tournament_id,)).fetchone()
        return _row_to_tournament(row) if row else None

    def list(
        self, conn: sqlite3.Connection, club_id: str | None = None, status: str | None = None
    ) -> list[Tournament]:
        sql = "SELECT * FROM tournaments WHERE 1 = 1"
        args: list[Any] = []
        if club_id:
            sql += " AND club_id = ?"
            args.append(club_id)
        if status:
            sql += " AND status = ?"
            args.append(status)
        sql += " ORDER BY created_at DESC"
        return [_row_to_tournament(r) for r in conn.execute(sql, args).fetchall()]

    def update_status(self, conn: sqlite3.Connection, tournament_id: str, status: str) -> None:
        conn.execute("UPDATE tournaments SET status = ? WHERE id = ?", (status, tournament_id))
        conn.commit()

    def update_started_at(self, conn: sqlite3.Connection, tournament_id: str, started_at: datetime) -> None:
        conn.execute("UPDATE tournaments SET started_at = ? WHERE id = ?", (to_iso(started_at), tournament_id))
        conn.commit()

    def update_winner(self, conn: sqlite3.Connection, tournament_id: str, team_id: str | None) -> None:
        conn.execute("UPDATE tournaments SET winner_team_id = ? WHERE id = ?", (team_id, tournament_id))
        conn.commit()


# ---------- TournamentParticipantRepository ----------


def _row_to_participant(r: sqlite3.Row) -> TournamentParticipant:
    return TournamentParticipant(
        tournament_id=r["tournament_id"],
        team_id=r["team_id"],
        seed=r["seed"],
        status=r["status"],
        registered_at=_parse_datetime(r["registered_at"]),
    )


class TournamentParticipantRepository:
    """Teams entered in a tournament. status: registered | withdrawn."""

    def add(
        self, conn: sqlite3.Connection, tournament_id: str, team_id: str, seed: int | None = None
    ) -> TournamentParticipant:
        conn.execute(
            """INSERT INTO tournament_participants (tournament_id, team_id, seed, status, registered_at)
               VALUES (?, ?, ?, 'registered', ?)
               ON CONFLICT(tournament_id, team_id) DO UPDATE SET
                   status = 'registered', seed = excluded.seed, registered_at = excluded.registered_at""",
            (tournament_id, team_id, seed, to_iso(utcnow())),
        )
        conn.commit()
        return _reread(self.get(conn, tournament_id, team_id))

    def get(self, conn: sqlite3.Connection, tournament_id: str, team_id: str) -> TournamentParticipant | None:
        row = conn.execute(
            "SELECT * FROM tournament_participants WHERE tournament_id = ? AND team_id = ?",
            (tournament_id, team_id),
        ).fetchone()
        return _row_to_participant(row) if row else None

    def list_by_tournament(
        self, conn: sqlite3.Connection, tournament_id: str, status: str | None = "registered"
    ) -> list[TournamentParticipant]:
        """Ordered by seed (unseeded last), then registration time."""
        sql = "SELECT * FROM tournament_participants WHERE tournament_id = ?"
        args: list[Any] = [tournament_id]
        if status:
            sql += " AND status = ?"
            args.append(status)
        sql += " ORDER BY seed IS NULL, seed, registered_at"
        return [_row_to_participant(r) for r in conn.execute(sql, args).fetchall()]

    def update_status(self, conn: sqlite3.Connection, tournament_id: str, team_id: str, status: str) -> None:
        conn.execute(
            "UPDATE tournament_participants SET status = ? WHERE tournament_id = ? AND team_id = ?",
            (status, tournament_id, team_id),
        )
        conn.commit()


# ---------- MatchRepository ----------


def _row_to_match(r: sqlite3.Row) -> Match:
    return Match(
        id=r["id"],
        tournament_id=r["tournament_id"],
        round_number=r["round_number"],
        bracket_position=r["bracket_position"],
        home_team_id=r["home_team_id"],
        away_team_id=r["away_team_id"],
        home_score=r["home_score"],
        away_score=r["away_score"],
        status=r["status"],
        scheduled_at=_parse_optional(r["scheduled_at"]),
        started_at=_parse_optional(r["started_at"]),
        ended_at=_parse_optional(r["ended_at"]),
        venue=r["venue"],
        referee_id=r["referee_id"],
        winner_team_id=r["winner_team_id"],
        created_by=r["created_by"],
        created_at=_parse_datetime(r["created_at"]),
    )


class MatchRepository:
    """CRUD for matches. Score and status changes are driven by MatchService."""

    def create(
        self,
        conn: sqlite3.Connection,
        home_team_id: str | None,
        away_team_id: str | None,
        tournament_id: str | None = None,
        round_number: int | None = None,
        bracket_position: int | None = None,
        scheduled_at: datetime | None = None,
        venue: str | None = None,
        referee_id: str | None = None,
        created_by: str | None = None,
        status: str = "scheduled",
        id: str | None = None,
    ) -> Match:
        mid = _new_id(id)
        conn.execute(
            """INSERT INTO matches (id, tournament_id, round_number, bracket_position, home_team_id,
                                    away_team_id, status, scheduled_at, venue, referee_id,
                                    created_by, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                mid, tournament_id, round_number, bracket_position, home_team_id, away_team_id,
                status, to_iso(scheduled_at), venue, referee_id, created_by, to_iso(utcnow()),
            ),
        )
        conn.commit()
        return _reread(self.get(conn, mid))

    def get(self, conn: sqlite3.Connection, match_id: str) -> Match | None:
        row = conn.execute("SELECT * FROM matches WHERE id = ?", (match_id,)).fetchone()
        return _row_to_match(row) if row else None

    def list(
        self,
        conn: sqlite3.Connection,
        tournament_id: str | None = None,
        status: str | None = None,
        team_id: str | None = None,
    ) -> list[Match]:
        sql = "SELECT * FROM matches WHERE 1 = 1"
        args: list[Any] = []
        if tournament_id:
            sql += " AND tournament_id = ?"
            args.append(tournament_id)
        if status:
            sql += " AND status = ?"
            args.append(status)
        if team_id:
            sql += " AND (home_team_id = ? OR away_team_id = ?)"
            args.extend([team_id, team_id])
        sql += " ORDER BY round_number IS NULL, round_number, bracket_position, scheduled_at, created_at"
        return [_row_to_match(r) for r in conn.execute(sql, args).fetchall()]

    def get_by_bracket_slot(
        self, conn: sqlite3.Connection, tournament_id: str, round_number: int, bracket_position: int
    ) -> Match | None:
        row = conn.execute(
            "SELECT * FROM matches WHERE tournament_id = ? AND round_number = ? AND bracket_position = ?",
            (tournament_id, round_number, bracket_position),
        ).fetchone()
        return _row_to_match(row) if row else None

    def update_status(
        self,
        conn: sqlite3.Connection,
        match_id: str,
        status: str,
        started_at: datetime | None = None,
        ended_at: datetime | None = None,
    ) -> None:
        """Set status; started_at / ended_at only overwrite when given."""
        conn.execute(
            """UPDATE matches SET status = ?,
                   started_at = COALESCE(?, started_at),
                   ended_at = COALESCE(?, ended_at)
               WHERE id = ?""",
            (status, to_iso(started_at), to_iso(ended_at), match_id),
        )
        conn.commit()

    def update_score(self, conn: sqlite3.Connection, match_id: str, home_score: int, away_score: int) -> None:
        conn.execute(
            "UPDATE matches SET home_score = ?, away_score = ? WHERE id = ?",
            (home_score, away_score, match_id),
        )
        conn.commit()

    def update_winner(self, conn: sqlite3.Connection, match_id: str, winner_team_id: str | None) -> None:
        conn.execute("UPDATE matches SET winner_team_id = ? WHERE id = ?", (winner_team_id, match_id))
        conn.commit()

    def update_schedule(
        self,
        conn: sqlite3.Connection,
        match_id: str,
        scheduled_at: datetime | None = None,
        venue: str | None = None,
        referee_id: str | None = None,
    ) -> None:
        conn.execute(
            """UPDATE matches SET scheduled_at = COALESCE(?, scheduled_at),
                   venue = COALESCE(?, venue), referee_id = COALESCE(?, referee_id)
               WHERE id = ?""",
            (to_iso(scheduled_at), venue, referee_id, match_id),
        )
        conn.commit()

    def set_team(self, conn: sqlite3.Connection, match_id: str, side: str, team_id: str | None) -> None:
        """Fill a bracket slot. side: 'home' | 'away'."""
        if side not in ("home", "away"):
            raise ValueError(f"side must be 'home' or 'away', got {side!r}")
        conn.execute(f"UPDATE matches SET {side}_team_id = ? WHERE id = ?", (team_id, match_id))
        conn.commit()

    def list_created_since(self, conn: sqlite3.Connection, since: datetime) -> list[Match]:
        rows = conn.execute(
            "SELECT * FROM matches WHERE created_at >= ? ORDER BY created_at", (to_iso(since),)
        ).fetchall()
        return [_row_to_match(r) for r in rows]


# ---------- MatchEventRepository ----------


def _row_to_match_event(r: sqlite3.Row) -> MatchEvent:
    return MatchEvent(
        id=r["id"],
        match_id=r["match_id"],
        type=r["type"],
        minute=r["minute"],
        team_id=r["team_id"],
        player_id=r["player_id"],
        secondary_player_id=r["secondary_player_id"],
        data=_load_json(r["data"], {}),
        created_by=r["created_by"],
        created_at=_parse_datetime(r["created_at"]),
    )


class MatchEventRepository:
    """Append-only timeline, except undo (delete)."""

    def create(
        self,
        conn: sqlite3.Connection,
        match_id: str,
        type: str,
        minute: int,
        team_id: str | None = None,
        player_id: str | None = None,
        secondary_player_id: str | None = None,
        data: dict[str, Any] | None = None,
        created_by: str | None = None,
        id: str | None = None,
    ) -> MatchEvent:
        eid = _new_id(id)
        conn.execute(
            """INSERT INTO match_events (id, match_id, type, minute, team_id, player_id,
                                         secondary_player_id, data, created_by, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                eid, match_id, type, minute, team_id, player_id, secondary_player_id,
                json.dumps(data or {}), created_by, to_iso(utcnow()),
            ),
        )
        conn.commit()
        return _reread(self.get(conn, eid))

    def get(self, conn: sqlite3.Connection, event_id: str) -> MatchEvent | None:
        row = conn.execute("SELECT * FROM match_events WHERE id = ?", (event_id,)).fetchone()
        return _row_to_match_event(row) if row else None

    def list_by_match(self, conn: sqlite3.Connection, match_id: str) -> list[MatchEvent]:
        """Timeline order: minute, then insertion order."""
        rows = conn.execute(
            "SELECT * FROM match_events WHERE match_id = ? ORDER BY minute, rowid", (match_id,)
        ).fetchall()
        return [_row_to_match_event(r) for r in rows]

    def list_by_matches(self, conn: sqlite3.Connection, match_ids: list[str]) -> list[MatchEvent]:
        if not match_ids:
            return []
        placeholders = ", ".join("?" for _ in match_ids)
        rows = conn.execute(
            f"SELECT * FROM match_events WHERE match_id IN ({placeholders}) ORDER BY match_id, minute, rowid",
            match_ids,
        ).fetchall()
        return [_row_to_match_event(r) for r in rows]

    def match_ids_for_player(self, conn: sqlite3.Connection, player_id: str) -> list[str]:
        """Matches in which the player is named on any event."""
        rows = conn.execute(
            "SELECT DISTINCT match_id FROM match_events WHERE player_id = ? OR secondary_player_id = ?",
            (player_id, player_id),
        ).fetchall()
        return [r["match_id"] for r in rows]

    def delete(self, conn: sqlite3.Connection, event_id: str) -> bool:
        cur = conn.execute("DELETE FROM match_events WHERE id = ?", (event_id,))
        conn.commit()
        return cur.rowcount > 0

    def count_between(self, conn: sqlite3.Connection, start: datetime, end: datetime) -> int:
        return conn.execute(
            "SELECT COUNT(*) FROM match_events WHERE created_at >= ? AND created_at < ?",
            (to_iso(start), to_iso(end)),
        ).fetchone()[0]


# ---------- ScheduleEventRepository ----------


def _row_to_schedule_event(r: sqlite3.Row) -> ScheduleEvent:
    return ScheduleEvent(
        id=r["id"],
        title=r["title"],
        type=r["type"],
        status=r["status"],
        club_id=r["club_id"],
        team_id=r["team_id"],
        start_time=_parse_datetime(r["start_time"]),
        duration_minutes=r["duration_minutes"],
        location=r["location"],
        attendance=r["attendance"],
        created_by=r["created_by"],
        created_at=_parse_datetime(r["created_at"]),
    )


class ScheduleEventRepository:
    """Calendar events (practices, games, meetings)."""

    def create(
        self,
        conn: sqlite3.Connection,
        title: str,
        start_time: datetime,
        created_by: str,
        type: str = "practice",
        status: str = "scheduled",
        club_id: str | None = None,
        team_id: str | None = None,
        duration_minutes: int = 60,
        location: str | None = None,
        attendance: int | None = None,
        id: str | None = None,
    ) -> ScheduleEvent:
        eid = _new_id(id)
        conn.execute(
            """INSERT INTO schedule_events (id, title, type, status, club_id, team_id, start_time,
                                            duration_minutes, location, attendance, created_by, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                eid, title, type, status, club_id, team_id, to_iso(start_time), duration_minutes,
                location, attendance, created_by, to_iso(utcnow()),
            ),
        )
        conn.commit()
        return _reread(self.get(conn, eid))

    def get(self, conn: sqlite3.Connection, event_id: str) -> ScheduleEvent | None:
        row = conn.execute("SELECT * FROM schedule_events WHERE id = ?", (event_id,)).fetchone()
        return _row_to_schedule_event(row) if row else None

    def list(
        self,
        conn: sqlite3.Connection,
        team_id: str | None = None,
        club_id: str | None = None,
        status: str | None = None,
        start_from: datetime | None = None,
        team_ids: list[str] | None = None,
    ) -> list[ScheduleEvent]:
        sql = "SELECT * FROM schedule_events WHERE 1 = 1"
        args: list[Any] = []
        if team_id:
            sql += " AND team_id = ?"
            args.append(team_id)
        if club_id:
            sql += " AND club_id = ?"
            args.append(club_id)
        if status:
            sql += " AND status = ?"
            args.append(status)
        if start_from is not None:
            sql += " AND start_time >= ?"
            args.append(to_iso(start_from))
        if team_ids is not None:
            if not team_ids:
                return []
            sql += f" AND team_id IN ({', '.join('?' for _ in team_ids)})"
            args.extend(team_ids)
        sql += " ORDER BY start_time"
        return [_row_to_schedule_event(r) for r in conn.execute(sql, args).fetchall()]

    def update_status(
        self, conn: sqlite3.Connection, event_id: str, status: str, attendance: int | None = None
    ) -> None:
        conn.execute(
            "UPDATE schedule_events SET status = ?, attendance = COALESCE(?, attendance) WHERE id = ?",
            (status, attendance, event_id),
        )
        conn.commit()


# ---------- EventAttendeeRepository ----------


def _row_to_attendee(r: sqlite3.Row) -> EventAttendee:
    return EventAttendee(
        event_id=r["event_id"],
        user_id=r["user_id"],
        status=r["status"],
        notes=r["notes"],
        responded_at=_parse_datetime(r["responded_at"]),
    )


class EventAttendeeRepository:
    """RSVPs. One row per (event, user); responding again overwrites."""

    def upsert(
        self, conn: sqlite3.Connection, event_id: str, user_id: str, status: str, notes: str | None = None
    ) -> EventAttendee:
        conn.execute(
            """INSERT INTO event_attendees (event_id, user_id, status, notes, responded_at)
               VALUES (?, ?, ?, ?, ?)
               ON CONFLICT(event_id, user_id) DO UPDATE SET
                   status = excluded.status, notes = excluded.notes, responded_at = excluded.responded_at""",
            (event_id, user_id, status, notes, to_iso(utcnow())),
        )
        conn.commit()
        row = conn.execute(
            "SELECT * FROM event_attendees WHERE event_id = ? AND user_id = ?", (event_id, user_id)
        ).fetchone()
        return _row_to_attendee(row)

    def list_by_event(self, conn: sqlite3.Connection, event_id: str) -> list[EventAttendee]:
        rows = conn.execute(
            "SELECT * FROM event_attendees WHERE event_id = ? ORDER BY responded_at", (event_id,)
        ).fetchall()
        return [_row_to_attendee(r) for r in rows]

    def count_by_status(self, conn: sqlite3.Connection, event_id: str, status: str) -> int:
        return conn.execute(
            "SELECT COUNT(*) FROM event_attendees WHERE event_id = ? AND status = ?", (event_id, status)
        ).fetchone()[0]


# ---------- PaymentRepository ----------


def _row_to_payment(r: sqlite3.Row) -> Payment:
    return Payment(
        id=r["id"],
        user_id=r["user_id"],
        club_id=r["club_id"],
        amount=r["amount"],
        currency=r["currency"],
        method=r["method"],
        status=r["status"],
        description=r["description"],
        created_at=_parse_datetime(r["created_at"]),
        updated_at=_parse_optional(r["updated_at"]),
    )


class PaymentRepository:
    """Payment records. No provider integration."""

    def create(
        self,
        conn: sqlite3.Connection,
        user_id: str,
        amount: float,
        currency: str = "USD",
        method: str = "card",
        status: str = "pending",
        club_id: str | None = None,
        description: str | None = None,
        id: str | None = None,
    ) -> Payment:
        pid = _new_id(id)
        conn.execute(
            """INSERT INTO payments (id, user_id, club_id, amount, currency, method, status, description, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (pid, user_id, club_id, amount, currency, method, status, description, to_iso(utcnow())),
        )
        conn.commit()
        return _reread(self.get(conn, pid))

    def get(self, conn: sqlite3.Connection, payment_id: str) -> Payment | None:
        row = conn.execute("SELECT * FROM payments WHERE id = ?", (payment_id,)).fetchone()
        return _row_to_payment(row) if row else None

    def list(
        self,
        conn: sqlite3.Connection,
        club_id: str | None = None,
        user_id: str | None = None,
        status: str | None = None,
    ) -> list[Payment]:
        sql = "SELECT * FROM payments WHERE 1 = 1"
        args: list[Any] = []
        if club_id:
            sql += " AND club_id = ?"
            args.append(club_id)
        if user_id:
            sql += " AND user_id = ?"
            args.append(user_id)
        if status:
            sql += " AND status = ?"
            args.append(status)
        sql += " ORDER BY created_at DESC"
        return [_row_to_payment(r) for r in conn.execute(sql, args).fetchall()]

    def update_status(self, conn: sqlite3.Connection, payment_id: str, status: str) -> None:
        conn.execute(
            "UPDATE payments SET status = ?, updated_at = ? WHERE id = ?",
            (status, to_iso(utcnow()), payment_id),
        )
        conn.commit()


# ---------- NotificationRepository ----------


def _row_to_notification(r: sqlite3.Row) -> Notification:
    return Notification(
        id=r["id"],
        user_id=r["user_id"],
        type=r["type"],
        title=r["title"],
        body=r["body"],
        data=_load_json(r["data"], {}),
        read_at=_parse_optional(r["read_at"]),
        created_at=_parse_datetime(r["created_at"]),
    )


class NotificationRepository:
    """Stored in-app notifications."""

    def create(
        self,
        conn: sqlite3.Connection,
        user_id: str,
        type: str,
        title: str,
        body: str,
        data: dict[str, Any] | None = None,
        commit: bool = True,
    ) -> Notification:
        nid = str(uuid.uuid4())
        now = utcnow()
        conn.execute(
            """INSERT INTO notifications (id, user_id, type, title, body, data, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (nid, user_id, type, title, body, json.dumps(data or {}), to_iso(now)),
        )
        if commit:
            conn.commit()
        return Notification(
            id=nid, user_id=user_id, type=type, title=title, body=body,
            data=dict(data or {}), created_at=_parse_datetime(to_iso(now)),
        )

    def get(self, conn: sqlite3.Connection, notification_id: str) -> Notification | None:
        row = conn.execute("SELECT * FROM notifications WHERE id = ?", (notification_id,)).fetchone()
        return _row_to_notification(row) if row else None

    def list_by_user(
        self, conn: sqlite3.Connection, user_id: str, unread_only: bool = False, limit: int = 50
    ) -> list[Notification]:
        sql = "SELECT * FROM notifications WHERE user_id = ?"
        if unread_only:
            sql += " AND read_at IS NULL"
        sql += " ORDER BY created_at DESC, rowid DESC LIMIT ?"
        return [_row_to_notification(r) for r in conn.execute(sql, (user_id, limit)).fetchall()]

    def count_unread(self, conn: sqlite3.Connection, user_id: str) -> int:
        return conn.execute(
            "SELECT COUNT(*) FROM notifications WHERE user_id = ? AND read_at IS NULL", (user_id,)
        ).fetchone()[0]

    def mark_read(self, conn: sqlite3.Connection, notification_id: str) -> None:
        conn.execute(
            "UPDATE notifications SET read_at = COALESCE(read_at, ?) WHERE id = ?",
            (to_iso(utcnow()), notification_id),
        )
        conn.commit()

    def mark_all_read(self, conn: sqlite3.Connection, user_id: str) -> int:
        cur = conn.execute(
            "UPDATE notifications SET read_at = ? WHERE user_id = ? AND read_at IS NULL",
            (to_iso(utcnow()), user_id),
        )
        conn.commit()
        return cur.rowcount

    def count_between(self, conn: sqlite3.Connection, start: datetime, end: datetime) -> tuple[int, int]:
        """(sent, read) for notifications created in [start, end)."""
        row = conn.execute(
            """SELECT COUNT(*), COALESCE(SUM(CASE WHEN read_at IS NOT NULL THEN 1 ELSE 0 END), 0)
               FROM notifications WHERE created_at >= ? AND created_at < ?""",
            (to_iso(start), to_iso(end)),
        ).fetchone()
        return row[0], row[1]


# ---------- AuditLogRepository ----------


def _row_to_audit(r: sqlite3.Row) -> AuditLog:
    return AuditLog(
        id=r["id"],
        user_id=r["user_id"],
        username=r["username"],
        action=r["action"],
        resource=r["resource"],
        resource_id=r["resource_id"],
        details=_load_json(r["details"], {}),
        ip_address=r["ip_address"],
        user_agent=r["user_agent"],
        success=bool(r["success"]),
        error_message=r["error_message"],
        timestamp=_parse_datetime(r["timestamp"]),
    )


class AuditLogRepository:
    """Append-only audit trail."""

    def create(
        self,
        conn: sqlite3.Connection,
        action: str,
        resource: str,
        user_id: str | None = None,
        username: str | None = None,
        resource_id: str | None = None,
        details: dict[str, Any] | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
        success: bool = True,
        error_message: str | None = None,
        timestamp: datetime | None = None,
    ) -> AuditLog:
        aid = str(uuid.uuid4())
        ts = to_iso(timestamp or utcnow())
        conn.execute(
            """INSERT INTO audit_logs (id, user_id, username, action, resource, resource_id, details,
                                       ip_address, user_agent, success, error_message, timestamp)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                aid, user_id, username, action, resource, resource_id, json.dumps(details or {}),
                ip_address, user_agent, 1 if success else 0, error_message, ts,
            ),
        )
        conn.commit()
        return AuditLog(
            id=aid, user_id=user_id, username=username, action=action, resource=resource,
            resource_id=resource_id, details=dict(details or {}), ip_address=ip_address,
            user_agent=user_agent, success=success, error_message=error_message,
            timestamp=_parse_datetime(ts),
        )

    def list(
        self,
        conn: sqlite3.Connection,
        user_id: str | None = None,
        action: str | None = None,
        resource: str | None = None,
        success: bool | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int | None = 100,
    ) -> list[AuditLog]:
        """Newest first."""
        sql = "SELECT * FROM audit_logs WHERE 1 = 1"
        args: list[Any] = []
        if user_id:
            sql += " AND user_id = ?"
            args.append(user_id)
        if action:
            sql += " AND action = ?"
            args.append(action)
        if resource:
            sql += " AND resource = ?"
            args.append(resource)
        if success is not None:
            sql += " AND success = ?"
            args.append(1 if success else 0)
        if start is not None:
            sql += " AND timestamp >= ?"
            args.append(to_iso(start))
        if end is not None:
            sql += " AND timestamp <= ?"
            args.append(to_iso(end))
        sql += " ORDER BY timestamp DESC, rowid DESC"
        if limit is not None:
            sql += " LIMIT ?"
            args.append(limit)
        return [_row_to_audit(r) for r in conn.execute(sql, args).fetchall()]


# ---------- SystemHealthRepository ----------


def _row_to_health(r: sqlite3.Row) -> SystemHealth:
    return SystemHealth(
        id=r["id"],
        status=r["status"],
        uptime=r["uptime"],
        response_time_ms=r["response_time_ms"],
        error_count=r["error_count"],
        cpu=r["cpu"],
        memory=r["memory"],
        disk=r["disk"],
        network_bytes=r["network_bytes"],
        recorded_at=_parse_datetime(r["recorded_at"]),
    )


class SystemHealthRepository:
    def create(
        self,
        conn: sqlite3.Connection,
        status: str,
        uptime: float,
        response_time_ms: float,
        error_count: int = 0,
        cpu: float = 0.0,
        memory: float = 0.0,
        disk: float = 0.0,
        network_bytes: int = 0,
    ) -> SystemHealth:
        hid = str(uuid.uuid4())
        conn.execute(
            """INSERT INTO system_health (id, status, uptime, response_time_ms, error_count,
                                          cpu, memory, disk, network_bytes, recorded_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (hid, status, uptime, response_time_ms, error_count, cpu, memory, disk,
             network_bytes, to_iso(utcnow())),
        )
        conn.commit()
        return _reread(self.get_latest(conn))

    def get_latest(self, conn: sqlite3.Connection) -> SystemHealth | None:
        row = conn.execute(
            "SELECT * FROM system_health ORDER BY recorded_at DESC, rowid DESC LIMIT 1"
        ).fetchone()
        return _row_to_health(row) if row else None


# ---------- AnalyticsSnapshotRepository ----------


def _row_to_snapshot(r: sqlite3.Row) -> AnalyticsSnapshot:
    return AnalyticsSnapshot(
        id=r["id"],
        period=r["period"],
        date=_parse_datetime(r["date"]),
        metrics=_load_json(r["metrics"], {}),
        insights=_load_json(r["insights"], []),
        generated_at=_parse_datetime(r["generated_at"]),
    )


class AnalyticsSnapshotRepository:
    def create(
        self,
        conn: sqlite3.Connection,
        period: str,
        date: datetime,
        metrics: dict[str, Any],
        insights: list[dict[str, Any]],
    ) -> AnalyticsSnapshot:
        sid = str(uuid.uuid4())
        conn.execute(
            """INSERT INTO analytics_snapshots (id, period, date, metrics, insights, generated_at)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (sid, period, to_iso(date), json.dumps(metrics), json.dumps(insights), to_iso(utcnow())),
        )
        conn.commit()
        row = conn.execute("SELECT * FROM analytics_snapshots WHERE id = ?", (sid,)).fetchone()
        return _row_to_snapshot(row)

    def get_latest(self, conn: sqlite3.Connection, period: str) -> AnalyticsSnapshot | None:
        row = conn.execute(
            "SELECT * FROM analytics_snapshots WHERE period = ? ORDER BY generated_at DESC, rowid DESC LIMIT 1",
            (period,),
        ).fetchone()
        return _row_to_snapshot(row) if row else None

    def list(self, conn: sqlite3.Connection, period: str | None = None, limit: int = 30) -> list[AnalyticsSnapshot]:
        sql = "SELECT * FROM analytics_snapshots"
        args: list[Any] = []
        if period:
            sql += " WHERE period = ?"
            args.append(period)
        sql += " ORDER BY generated_at DESC, rowid DESC LIMIT ?"
        args.append(limit)
        return [_row_to_snapshot(r) for r in conn.execute(sql, args).fetchall()]
