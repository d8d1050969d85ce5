"""CLI tool for admin operations.

Usage:
    python -m tradevault.cli create-user
    python -m tradevault.cli import-csv <path> <email>
"""

import getpass
import sys
from pathlib import Path

from sqlmodel import Session, select

from tradevault.database import engine, create_db_and_tables
from tradevault.models.user import User
from tradevault.services.auth import hash_password
from tradevault.services.csv_parser import MalformedInputError, decode_upload, parse_csv_text
from tradevault.services.importer import ImportPersistenceError, import_batch
from tradevault.utils.constants import SOURCE_CSV
from tradevault.utils.logging import setup_logging


def create_user():
    """Create a login interactively."""
    create_db_and_tables()

    email = input("Email: ").strip().lower()
    name = input("Name: ").strip()
    if not email or not name:
        print("Email and name cannot be empty.")
        sys.exit(1)

    with Session(engine) as session:
        existing = session.exec(select(User).where(User.email == email)).first()
        if existing:
            print(f"User '{email}' already exists.")
            sys.exit(1)

    password = getpass.getpass("Password: ")
    if len(password) < 6:
        print("Password must be at least 6 characters.")
        sys.exit(1)
    if password != getpass.getpass("Confirm password: "):
        print("Passwords do not match.")
        sys.exit(1)

    with Session(engine) as session:
        session.add(User(email=email, name=name, hashed_password=hash_password(password)))
        session.commit()

    print(f"\nUser '{email}' created successfully.")


def import_csv(path: str, email: str):
    """Run a local CSV file through the import pipeline for an existing user."""
    setup_logging()
    create_db_and_tables()

    file = Path(path)
    if not file.is_file():
        print(f"File not found: {path}")
        sys.exit(1)

    with Session(engine) as session:
        user = session.exec(select(User).where(User.email == email.strip().lower())).first()
        if not user:
            print(f"No user with email '{email}'.")
            sys.exit(1)

        try:
            rows = parse_csv_text(decode_upload(file.read_bytes()))
        except MalformedInputError as e:
            print(f"Cannot import {path}: {e}")
            sys.exit(1)

        try:
            result = import_batch(session, rows, SOURCE_CSV, user_id=user.id)
        except ImportPersistenceError as e:
            print(f"Import of {path} failed, nothing was saved: {e}")
            sys.exit(1)

    print(f"Inserted:   {result.inserted_count}")
    print(f"Duplicates: {result.skipped_duplicates}")
    print(f"Invalid:    {len(result.invalid_rows)}")
    for row in result.invalid_rows:
        # +2: header line, 1-based numbering
        print(f"  line {row.index + 2}: {', '.join(row.errors)}")


def main():
    if len(sys.argv) < 2:
        print("Usage: python -m tradevault.cli <command>")
        print("Commands: create-user, import-csv <path> <email>")
        sys.exit(1)

    command = sys.argv[1]
    if command == "create-user":
        create_user()
    elif command == "import-csv":
        if len(sys.argv) != 4:
            print("Usage: python -m tradevault.cli import-csv <path> <email>")
            sys.exit(1)
        import_csv(sys.argv[2], sys.argv[3])
    else:
        print(f"Unknown command: {command}")
        sys.exit(1)


if __name__ == "__main__":
    main()
