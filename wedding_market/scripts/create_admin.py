"""Create the initial admin account, or reset its password"""
import argparse
import logging
import sys

from sqlalchemy.orm import Session

from wedding_market.db.session import SessionLocal
from wedding_market.models import Admin, AdminRole
from wedding_market.utils.auth import get_password_hash, validate_password_strength
from wedding_market.exceptions import ValidationError

logger = logging.getLogger(__name__)


def create_admin_user(db: Session, email: str, password: str, name: str = "Marketplace Administrator") -> Admin:
    """Create a super admin, or reactivate and reset an existing one"""
    validate_password_strength(password)
    email = email.strip().lower()

    admin = db.query(Admin).filter(Admin.email == email).first()
    if admin:
        print("⚠️  Admin user already exists, resetting password")
        admin.password_hash = get_password_hash(password)
        admin.is_active = True
        admin.failed_login_attempts = 0
    else:
        admin = Admin(
            name=name,
            email=email,
            password_hash=get_password_hash(password),
            role=AdminRole.SUPER_ADMIN,
            is_active=True
        )
        db.add(admin)

    db.commit()
    db.refresh(admin)
    print("✅ Admin ready")
    print(f"   Email: {admin.email}")
    print(f"   Role: {admin.role.value}")
    print(f"   ID: {admin.id}")
    return admin


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--name", default="Marketplace Administrator")
    args = parser.parse_args(argv)

    db: Session = SessionLocal()
    try:
        create_admin_user(db, args.email, args.password, args.name)
        return 0
    except ValidationError as e:
        print(f"❌ {e.message}")
        return 1
    except Exception:
        db.rollback()
        logger.exception("Error creating admin user")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
