from __future__ import annotations

import argparse
from typing import Iterable

from sqlalchemy.orm import Session

from schoolportal.core.security import get_password_hash
from schoolportal.db.base import Base
from schoolportal.db.session import SessionLocal, engine
from schoolportal.models.enums import RegistrationStatus, Role
from schoolportal.models.user import User

DEMO_PASSWORD = "password123"

DEMO_USERS = (
    ("teacher@school.test", "Tara", "Teacher", Role.TEACHER, RegistrationStatus.APPROVED),
    ("student@school.test", "Sam", "Student", Role.STUDENT, RegistrationStatus.APPROVED),
    ("pending@school.test", "Pat", "Pending", Role.STUDENT, RegistrationStatus.PENDING),
    ("parent@school.test", "Paula", "Parent", Role.PARENT, RegistrationStatus.APPROVED),
)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed the School Portal database with demo accounts")
    parser.add_argument("--reset", action="store_true", help="Drop and recreate all tables before seeding")
    parser.add_argument("--password", default=DEMO_PASSWORD, help="Password for every demo account")
    return parser.parse_args()


def seed_users(db: Session, password: str, rows: Iterable[tuple] = DEMO_USERS) -> list[User]:
    created = []
    hashed = get_password_hash(password)
    for email, first_name, last_name, role, registration_status in rows:
        if db.query(User).filter(User.email == email).first():
            continue
        user = User(
            email=email,
            hashed_password=hashed,
            first_name=first_name,
            last_name=last_name,
            role=role,
            registration_status=registration_status,
            is_active=True,
        )
        db.add(user)
        created.append(user)
    db.flush()
    return created


def main() -> None:
    args = parse_args()
    if args.reset:
        Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        created = seed_users(db, args.password)
        db.commit()
    finally:
        db.close()
    for user in created:
        print(f"created {user.role.value}: {user.email}")


if __name__ == "__main__":
    main()
