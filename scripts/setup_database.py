#!/usr/bin/env python3
"""
FraudBucket database setup script

Supports:
- init: First-time schema creation
- reset: Drop and recreate the users table (--mode=data|schema)
- verify: Check DB connectivity and schema
- create-admin: Create the first ADMIN account

Usage:
    python scripts/setup_database.py init
    python scripts/setup_database.py reset --mode schema --yes
    python scripts/setup_database.py verify
    python scripts/setup_database.py create-admin --email admin@example.com \
        --firstname Ada --lastname Admin --phone 555-0100

Environment Variables:
- DATABASE_URL_ADMIN: Admin connection with table creation permissions (primary)
- DATABASE_URL: Fallback
- ADMIN_PASSWORD: Password for create-admin (prompted when unset)
"""

from __future__ import annotations

import argparse
import getpass
import os
import sys
import uuid
from dataclasses import dataclass
from enum import Enum

import psycopg
from psycopg.rows import dict_row

from fraudbucket.core.security import hash_password
from fraudbucket.persistence.user_repository import USERS_DDL

EXPECTED_COLUMNS = [
    "id",
    "firstname",
    "lastname",
    "email",
    "phone",
    "role",
    "password_hash",
    "refresh_token",
    "created_at",
    "updated_at",
]

MIN_PASSWORD_LENGTH = 8


@dataclass
class SetupResult:
    """Result of a setup step."""

    success: bool
    message: str
    details: str | None = None


class ResetMode(Enum):
    """Database reset modes."""

    SCHEMA = "schema"
    DATA = "data"


def to_conninfo(url: str) -> str:
    """Strip SQLAlchemy driver suffixes so psycopg accepts the URL."""
    return url.replace("+asyncpg", "", 1).replace("+psycopg", "", 1)


class DatabaseSetup:
    """Handles database setup for FraudBucket."""

    def __init__(self, admin_url: str):
        self.admin_url = to_conninfo(admin_url)

    def _execute_sql(
        self, conn: psycopg.Connection, sql_content: str, description: str
    ) -> SetupResult:
        """Execute SQL content with error handling."""
        try:
            conn.execute(sql_content)
            conn.commit()
            return SetupResult(success=True, message=description)
        except psycopg.Error as e:
            conn.rollback()
            return SetupResult(
                success=False,
                message=description,
                details=f"{type(e).__name__}: {e}",
            )

    def init(self) -> int:
        """Initialize database schema."""
        print("Initializing database schema...")

        try:
            with psycopg.connect(self.admin_url, autocommit=False) as conn:
                print("  Applying schema...")
                result = self._execute_sql(conn, USERS_DDL, "Schema creation failed")
                if not result.success:
                    print(f"ERROR: {result.details}")
                    return 1
                print("  Schema applied: users")
        except psycopg.Error as e:
            print(f"ERROR: Database connection failed: {e}")
            return 1

        print("Database initialization complete.")
        return 0

    def reset(self, mode: ResetMode, force: bool = False) -> int:
        """Reset the users table (schema or data mode)."""
        print(f"Resetting database tables ({mode.value})...")

        if not force:
            response = input("This will destroy all user accounts. Continue? [y/N]: ")
            if response.lower() != "y":
                print("Aborted.")
                return 1

        try:
            with psycopg.connect(self.admin_url, autocommit=False) as conn:
                if mode == ResetMode.SCHEMA:
                    print("  Dropping users table...")
                    conn.execute("DROP TABLE IF EXISTS users CASCADE")
                    conn.commit()

                    print("  Applying schema...")
                    result = self._execute_sql(conn, USERS_DDL, "Schema recreation failed")
                    if not result.success:
                        print(f"ERROR: {result.details}")
                        return 1
                    print("  Schema applied: users")
                else:
                    print("  Truncating users...")
                    conn.execute("TRUNCATE TABLE users")
                    conn.commit()
                    print("  Table truncated.")
        except psycopg.Error as e:
            print(f"ERROR: Database reset failed: {e}")
            return 1

        print("Database reset complete.")
        return 0

    def verify(self) -> int:
        """Verify database setup."""
        print("Verifying database setup...")

        errors: list[str] = []

        try:
            with psycopg.connect(self.admin_url, autocommit=True, row_factory=dict_row) as conn:
                print("  [OK] Database connection")
                result = conn.execute("""
                    SELECT column_name FROM information_schema.columns
                    WHERE table_name = 'users'
                """).fetchall()
                columns = {row["column_name"] for row in result}
                if not columns:
                    errors.append("Missing table: users")
                else:
                    missing = [c for c in EXPECTED_COLUMNS if c not in columns]
                    if missing:
                        errors.append(f"Missing users columns: {missing}")
                    else:
                        print("  [OK] users table has all columns")

                admins = conn.execute(
                    "SELECT COUNT(*) AS n FROM users WHERE role = 'ADMIN'"
                ).fetchone()
                if admins and admins["n"]:
                    print(f"  [OK] ADMIN accounts: {admins['n']}")
                else:
                    print("  [WARN] No ADMIN account; run create-admin")
        except psycopg.Error as e:
            errors.append(f"Schema check failed: {e}")

        if errors:
            print("\nVerification FAILED:")
            for err in errors:
                print(f"  - {err}")
            return 1

        print("\nVerification PASSED.")
        return 0

    def create_admin(
        self, email: str, password: str, firstname: str, lastname: str, phone: str
    ) -> int:
        """Create an ADMIN account, refusing to overwrite an existing email."""
        if len(password) < MIN_PASSWORD_LENGTH:
            print(f"ERROR: Password must be at least {MIN_PASSWORD_LENGTH} characters")
            return 1

        try:
            with psycopg.connect(self.admin_url, autocommit=False) as conn:
                existing = conn.execute(
                    "SELECT 1 FROM users WHERE email = %s", (email,)
                ).fetchone()
                if existing:
                    print(f"ERROR: A user with email {email} already exists")
                    return 1

                conn.execute(
                    """
                    INSERT INTO users (
                        id, firstname, lastname, email, phone, role, password_hash
                    ) VALUES (%s, %s, %s, %s, %s, 'ADMIN', %s)
                    """,
                    (str(uuid.uuid4()), firstname, lastname, email, phone, hash_password(password)),
                )
                conn.commit()
        except psycopg.Error as e:
            print(f"ERROR: Admin creation failed: {e}")
            return 1

        print(f"ADMIN account created: {email}")
        return 0


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="FraudBucket - Database Setup",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--admin-url",
        help="Admin database URL (overrides env var)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init", help="First-time setup")

    reset_parser = subparsers.add_parser("reset", help="Reset database")
    reset_parser.add_argument(
        "--mode",
        choices=["schema", "data"],
        default="schema",
        help="Reset mode: schema (drop/recreate) or data (truncate only)",
    )
    reset_parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Skip confirmation prompt",
    )

    subparsers.add_parser("verify", help="Verify database setup")

    admin_parser = subparsers.add_parser("create-admin", help="Create an ADMIN account")
    admin_parser.add_argument("--email", required=True)
    admin_parser.add_argument("--firstname", required=True)
    admin_parser.add_argument("--lastname", required=True)
    admin_parser.add_argument("--phone", required=True)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    admin_url = args.admin_url or os.getenv("DATABASE_URL_ADMIN") or os.getenv("DATABASE_URL")

    if not admin_url:
        print("ERROR: DATABASE_URL_ADMIN is required")
        print("Set it as environment variable or via --admin-url")
        return 2

    setup = DatabaseSetup(admin_url)

    if args.command == "init":
        return setup.init()
    if args.command == "reset":
        return setup.reset(ResetMode(args.mode), force=args.yes)
    if args.command == "verify":
        return setup.verify()
    if args.command == "create-admin":
        password = os.getenv("ADMIN_PASSWORD") or getpass.getpass("Admin password: ")
        return setup.create_admin(
            email=args.email,
            password=password,
            firstname=args.firstname,
            lastname=args.lastname,
            phone=args.phone,
        )

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
