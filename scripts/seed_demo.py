#!/usr/bin/env python3
"""
Demo seed: sample data -> friendly match -> analytics snapshot.
Run from project root: python3 scripts/seed_demo.py [--db data/demo.db]
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure project root on path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from clubhouse.auth import hash_password
from clubhouse.config import configure_logging
from clubhouse.persistence import UserRepository, get_connection, init_db, set_db_path
from clubhouse.services.admin_service import SAMPLE_PREFIX, AdminService
from clubhouse.services.event_validation import EventDraft
from clubhouse.services.match_service import MatchService


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed a clubhouse database with demo data.")
    parser.add_argument("--db", type=Path, default=PROJECT_ROOT / "data" / "demo.db", help="SQLite file to use")
    parser.add_argument("--admin", default="admin", help="super admin username")
    parser.add_argument("--password", default="admin-password", help="super admin password")
    parser.add_argument("--period", default="daily", choices=["daily", "weekly", "monthly"])
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    configure_logging()
    set_db_path(args.db)
    init_db(db_path=args.db)

    conn = get_connection()
    try:
        users = UserRepository()
        admin_service = AdminService()
        match_service = MatchService()

        # 1. Super admin
        admin = users.get_by_username(conn, args.admin)
        if admin is None:
            admin = users.create(conn, args.admin, hash_password(args.password), role="super_admin")
            print(f"Created super admin: {admin.username}")

        # 2. Sample clubs, teams, events and payments
        counts = admin_service.create_sample_data(conn)
        print("Sample data: " + ", ".join(f"{k}={v}" for k, v in counts.items()))

        # 3. A short friendly
        home = f"{SAMPLE_PREFIX}team-u12-boys"
        away = f"{SAMPLE_PREFIX}team-adult-coed"
        match = match_service.create_match(conn, admin, home, away, venue="Springfield Park")
        match_service.start_match(conn, admin, match.id)
        goal = EventDraft(
            type="goal", minute=23, team_id=home, player_id=f"{SAMPLE_PREFIX}john.doe",
            data={"goal_type": "header"},
        )
        match_service.record_event(conn, admin, match.id, goal)
        ended = match_service.end_match(conn, admin, match.id)
        report = match_service.match_report(conn, match.id)
        print(f"Played match {ended.id}: {report['score']} (winner: {ended.winner_team_id})")

        # 4. Analytics
        snap = admin_service.generate_analytics(conn, args.period)
        m = snap.metrics
        print(f"Analytics ({snap.period}):")
        print(f"  users={m['users']['total']} clubs={m['clubs']['total']} teams={m['teams']['total']}")
        print(f"  payments={m['payments']['total']} conversion={m['payments']['conversion_rate']}%")
        for insight in snap.insights:
            print(f"  [{insight['type']}] {insight['title']}")

        print("\nDemo data ready.")
    finally:
        conn.close()


if __name__ == "__main__":
    main()
