"""
SQLite schema for clubs, teams, tournaments, matches and admin records.
Migration-friendly: each table created with IF NOT EXISTS.
"""
from __future__ import annotations


def users_schema() -> str:
    """role: super_admin | club_admin | coach | player | parent | referee. status: active | pending | suspended."""
    return """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        username TEXT NOT NULL,
        display_name TEXT NOT NULL,
        email TEXT,
        email_verified INTEGER NOT NULL DEFAULT 0,
        role TEXT NOT NULL DEFAULT 'player',
        status TEXT NOT NULL DEFAULT 'active',
        password_hash TEXT,
        created_at TEXT NOT NULL,
        last_activity TEXT
    );
    CREATE UNIQUE INDEX IF NOT EXISTS ix_users_username ON users(username);
    CREATE INDEX IF NOT EXISTS ix_users_role ON users(role);
    """


def clubs_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS clubs (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        description TEXT NOT NULL DEFAULT '',
        city TEXT,
        level TEXT NOT NULL DEFAULT 'recreational',
        status TEXT NOT NULL DEFAULT 'pending',
        verified INTEGER NOT NULL DEFAULT 0,
        is_public INTEGER NOT NULL DEFAULT 1,
        max_teams INTEGER NOT NULL DEFAULT 20,
        max_players_per_team INTEGER NOT NULL DEFAULT 25,
        created_by TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT,
        FOREIGN KEY (created_by) REFERENCES users(id)
    );
    CREATE INDEX IF NOT EXISTS ix_clubs_status ON clubs(status);
    """


def club_members_schema() -> str:
    """One row per (club, user). role: admin | coach | player | parent | member."""
    return """
    CREATE TABLE IF NOT EXISTS club_members (
        club_id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        role TEXT NOT NULL DEFAULT 'member',
        joined_at TEXT NOT NULL,
        PRIMARY KEY (club_id, user_id),
        FOREIGN KEY (club_id) REFERENCES clubs(id),
        FOREIGN KEY (user_id) REFERENCES users(id)
    );
    CREATE INDEX IF NOT EXISTS ix_club_members_user ON club_members(user_id);
    """


def teams_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS teams (
        id TEXT PRIMARY KEY,
        club_id TEXT NOT NULL,
        name TEXT NOT NULL,
        age_group TEXT,
        gender TEXT NOT NULL DEFAULT 'coed',
        level TEXT NOT NULL DEFAULT 'recreational',
        division TEXT,
        season TEXT,
        status TEXT NOT NULL DEFAULT 'active',
        max_players INTEGER NOT NULL DEFAULT 25,
        created_by TEXT NOT NULL,
        created_at TEXT NOT NULL,
        FOREIGN KEY (club_id) REFERENCES clubs(id)
    );
    CREATE INDEX IF NOT EXISTS ix_teams_club ON teams(club_id);
    """


def team_members_schema() -> str:
    """Roster. jersey_number unique per team among active members (enforced in service)."""
    return """
    CREATE TABLE IF NOT EXISTS team_members (
        team_id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        role TEXT NOT NULL DEFAULT 'player',
        position TEXT,
        jersey_number INTEGER,
        is_active INTEGER NOT NULL DEFAULT 1,
        joined_at TEXT NOT NULL,
        PRIMARY KEY (team_id, user_id),
        FOREIGN KEY (team_id) REFERENCES teams(id),
        FOREIGN KEY (user_id) REFERENCES users(id)
    );
    CREATE INDEX IF NOT EXISTS ix_team_members_user ON team_members(user_id);
    """


def tournaments_schema() -> str:
    """type: round_robin | single_elimination. status: draft → … → completed | cancelled."""
    return """
    CREATE TABLE IF NOT EXISTS tournaments (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        description TEXT NOT NULL DEFAULT '',
        club_id TEXT NOT NULL,
        organizer_id TEXT NOT NULL,
        type TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'draft',
        min_teams INTEGER NOT NULL DEFAULT 2,
        max_teams INTEGER NOT NULL,
        registration_deadline TEXT,
        start_date TEXT,
        end_date TEXT,
        entry_fee REAL,
        started_at TEXT,
        winner_team_id TEXT,
        created_at TEXT NOT NULL,
        FOREIGN KEY (club_id) REFERENCES clubs(id)
    );
    CREATE INDEX IF NOT EXISTS ix_tournaments_club ON tournaments(club_id);
    CREATE INDEX IF NOT EXISTS ix_tournaments_status ON tournaments(status);
    """


def tournament_participants_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS tournament_participants (
        tournament_id TEXT NOT NULL,
        team_id TEXT NOT NULL,
        seed INTEGER,
        status TEXT NOT NULL DEFAULT 'registered',
        registered_at TEXT NOT NULL,
        PRIMARY KEY (tournament_id, team_id),
        FOREIGN KEY (tournament_id) REFERENCES tournaments(id),
        FOREIGN KEY (team_id) REFERENCES teams(id)
    );
    """


def matches_schema() -> str:
    """Fixture. away_team_id NULL = bye; both team ids NULL = bracket slot not decided yet."""
    return """
    CREATE TABLE IF NOT EXISTS matches (
        id TEXT PRIMARY KEY,
        tournament_id TEXT,
        round_number INTEGER,
        bracket_position INTEGER,
        home_team_id TEXT,
        away_team_id TEXT,
        home_score INTEGER NOT NULL DEFAULT 0,
        away_score INTEGER NOT NULL DEFAULT 0,
        status TEXT NOT NULL DEFAULT 'scheduled',
        scheduled_at TEXT,
        started_at TEXT,
        ended_at TEXT,
        venue TEXT,
        referee_id TEXT,
        winner_team_id TEXT,
        created_by TEXT,
        created_at TEXT NOT NULL,
        FOREIGN KEY (tournament_id) REFERENCES tournaments(id)
    );
    CREATE INDEX IF NOT EXISTS ix_matches_tournament ON matches(tournament_id);
    CREATE INDEX IF NOT EXISTS ix_matches_status ON matches(status);
    """


def match_events_schema() -> str:
    """Timeline entries. data is JSON text."""
    return """
    CREATE TABLE IF NOT EXISTS match_events (
        id TEXT PRIMARY KEY,
        match_id TEXT NOT NULL,
        type TEXT NOT NULL,
        minute INTEGER NOT NULL,
        team_id TEXT,
        player_id TEXT,
        secondary_player_id TEXT,
        data TEXT NOT NULL DEFAULT '{}',
        created_by TEXT,
        created_at TEXT NOT NULL,
        FOREIGN KEY (match_id) REFERENCES matches(id)
    );
    CREATE INDEX IF NOT EXISTS ix_match_events_match ON match_events(match_id);
    """


def schedule_events_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS schedule_events (
        id TEXT PRIMARY KEY,
        title TEXT NOT NULL,
        type TEXT NOT NULL DEFAULT 'practice',
        status TEXT NOT NULL DEFAULT 'scheduled',
        club_id TEXT,
        team_id TEXT,
        start_time TEXT NOT NULL,
        duration_minutes INTEGER NOT NULL DEFAULT 60,
        location TEXT,
        attendance INTEGER,
        created_by TEXT NOT NULL,
        created_at TEXT NOT NULL
    );
    CREATE INDEX IF NOT EXISTS ix_schedule_events_team ON schedule_events(team_id);
    CREATE INDEX IF NOT EXISTS ix_schedule_events_club ON schedule_events(club_id);
    """


def event_attendees_schema() -> str:
    """RSVP. status: going | maybe | not_going."""
    return """
    CREATE TABLE IF NOT EXISTS event_attendees (
        event_id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        status TEXT NOT NULL,
        notes TEXT,
        responded_at TEXT NOT NULL,
        PRIMARY KEY (event_id, user_id),
        FOREIGN KEY (event_id) REFERENCES schedule_events(id)
    );
    """


def payments_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS payments (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        club_id TEXT,
        amount REAL NOT NULL,
        currency TEXT NOT NULL DEFAULT 'USD',
        method TEXT NOT NULL DEFAULT 'card',
        status TEXT NOT NULL DEFAULT 'pending',
        description TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT
    );
    CREATE INDEX IF NOT EXISTS ix_payments_club ON payments(club_id);
    CREATE INDEX IF NOT EXISTS ix_payments_user ON payments(user_id);
    """


def notifications_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS notifications (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        type TEXT NOT NULL,
        title TEXT NOT NULL,
        body TEXT NOT NULL,
        data TEXT NOT NULL DEFAULT '{}',
        read_at TEXT,
        created_at TEXT NOT NULL
    );
    CREATE INDEX IF NOT EXISTS ix_notifications_user ON notifications(user_id);
    """


def audit_logs_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS audit_logs (
        id TEXT PRIMARY KEY,
        user_id TEXT,
        username TEXT,
        action TEXT NOT NULL,
        resource TEXT NOT NULL,
        resource_id TEXT,
        details TEXT NOT NULL DEFAULT '{}',
        ip_address TEXT,
        user_agent TEXT,
        success INTEGER NOT NULL DEFAULT 1,
        error_message TEXT,
        timestamp TEXT NOT NULL
    );
    CREATE INDEX IF NOT EXISTS ix_audit_logs_timestamp ON audit_logs(timestamp);
    CREATE INDEX IF NOT EXISTS ix_audit_logs_user ON audit_logs(user_id);
    """


def system_health_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS system_health (
        id TEXT PRIMARY KEY,
        status TEXT NOT NULL,
        uptime REAL NOT NULL,
        response_time_ms REAL NOT NULL,
        error_count INTEGER NOT NULL DEFAULT 0,
        cpu REAL NOT NULL DEFAULT 0,
        memory REAL NOT NULL DEFAULT 0,
        disk REAL NOT NULL DEFAULT 0,
        network_bytes INTEGER NOT NULL DEFAULT 0,
        recorded_at TEXT NOT NULL
    );
    """


def analytics_snapshots_schema() -> str:
    """One row per generate_analytics run. metrics and insights are JSON text."""
    return """
    CREATE TABLE IF NOT EXISTS analytics_snapshots (
        id TEXT PRIMARY KEY,
        period TEXT NOT NULL,
        date TEXT NOT NULL,
        metrics TEXT NOT NULL,
        insights TEXT NOT NULL,
        generated_at TEXT NOT NULL
    );
    CREATE INDEX IF NOT EXISTS ix_analytics_period ON analytics_snapshots(period, generated_at);
    """


def all_schema_sql() -> str:
    """Return full schema for all tables in dependency order."""
    return "\n".join([
        users_schema(),
        clubs_schema(),
        club_members_schema(),
        teams_schema(),
        team_members_schema(),
        tournaments_schema(),
        tournament_participants_schema(),
        matches_schema(),
        match_events_schema(),
        schedule_events_schema(),
        event_attendees_schema(),
        payments_schema(),
        notifications_schema(),
        audit_logs_schema(),
        system_health_schema(),
        analytics_snapshots_schema(),
    ])
