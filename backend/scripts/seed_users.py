#!/usr/bin/env python
"""Idempotent seed script for the demo accounts (MASTER / OPERATOR / CLIENT).

Usage:
    python backend/scripts/seed_users.py               # seed normally
    python backend/scripts/seed_users.py --show-users  # print the account roster after seeding
    python backend/scripts/seed_users.py --dry-run     # run logic then rollback (no DB changes)
    python backend/scripts/seed_users.py --headers     # also create / migrate the table headers
"""
from __future__ import annotations
import os, sys, argparse, textwrap
from sqlalchemy import select, text

# Allow running from repo root
sys.path.append(os.path.abspath('backend'))

from orderboard import create_app, get_db  # type: ignore
from orderboard.constants.seeds import DEMO_USERS
from orderboard.models import Base, User
from orderboard.services.accounts import ensure_seed_users


def print_user_summary(session):
    users = session.execute(select(User).order_by(User.role, User.email)).scalars().all()
    if not users:
        print("[INFO] No users present.")
        return
    email_w = max(len(u.email) for u in users)
    print(f"{'Email'.ljust(email_w)} | Role")
    print('-' * (email_w + 12))
    for u in users:
        print(f"{u.email.ljust(email_w)} | {u.role}")


def parse_args():
    p = argparse.ArgumentParser(
        description="Seed demo accounts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""Examples:\n  seed normally: seed_users.py\n  dry run: seed_users.py --dry-run\n  show users: seed_users.py --show-users\n""")
    )
    p.add_argument('--show-users', action='store_true', help='Print the account roster after seeding')
    p.add_argument('--dry-run', action='store_true', help='Rollback after operations (no commit)')
    p.add_argument('--headers', action='store_true', help='Initialize (or migrate) the table headers singleton')
    return p.parse_args()


def main():
    args = parse_args()
    app = create_app()
    with app.app_context():
        session = get_db()
        try:
            session.execute(text('SELECT 1 FROM users LIMIT 1'))
        except Exception:
            # Auto-create schema for bootstrap; in real env prefer alembic upgrade
            session.rollback()
            Base.metadata.create_all(session.get_bind())
        finally:
            session.commit()

    with app.app_context():
        session = get_db()
        if args.dry_run:
            emails = {u['email'] for u in DEMO_USERS}
            existing = set(session.execute(select(User.email).where(User.email.in_(emails))).scalars())
            print(f"[DRY-RUN] Users would create: {len(emails - existing)}")
        else:
            created = ensure_seed_users(session)
            print(f"[DONE] Users created: {created}")
            if args.headers:
                from orderboard.services.runtime import get_board
                print(f"[DONE] Table headers: {', '.join(get_board().registry.headers)}")
        if args.show_users:
            print_user_summary(session)


if __name__ == '__main__':
    main()
