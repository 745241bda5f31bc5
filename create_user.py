"""
Create a user account from the command line

Usage:
    python create_user.py <username> <email> <password> [user|admin|owner]
"""
import sys

from nest.auth import get_user_by_username, hash_password
from nest.domain.permissions import UserRole
from nest.infrastructure.db.models import User
from nest.infrastructure.db.session import get_db
from nest.utils.validation import validate_email, validate_password, validate_username


def main(argv: list[str]) -> int:
    if len(argv) not in (3, 4):
        print(__doc__)
        return 1

    username = validate_username(argv[0])
    email = validate_email(argv[1])
    password = validate_password(argv[2])
    role = UserRole.parse(argv[3] if len(argv) == 4 else "user")

    db = next(get_db())
    try:
        existing = get_user_by_username(db, username)
        if existing:
            print(f"User already exists: {username} (ID: {existing.id})")
            return 0

        user = User(
            username=username,
            email=email,
            password_hash=hash_password(password),
            role=role.value,
        )
        db.add(user)
        db.commit()
        print("Created user:")
        print(f"  Username: {username}")
        print(f"  Email: {email}")
        print(f"  Role: {role.value}")
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
