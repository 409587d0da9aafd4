import os
import sys
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from werkzeug.security import generate_password_hash

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.cms.constants import ROLE_SUPERADMIN
from app.cms.models import Base, Organization, User
from app.cms.modules.workflows.service import import_templates


@contextmanager
def _session_scope(database_url: str):
    engine = create_engine(database_url, future=True)
    Base.metadata.create_all(bind=engine)
    sm = sessionmaker(bind=engine, class_=Session, autoflush=False, autocommit=False, expire_on_commit=False, future=True)
    s: Session = sm()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()
        engine.dispose()


def init_db(*, database_url: str | None = None) -> None:
    """
    Create tables and seed the built-in workflow templates, idempotently.

    With DEMO_ORG_NAME and DEMO_SUPERADMIN_EMAIL set, also creates a demo organization
    and its SuperAdmin. An existing user's password is never overwritten.
    """
    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///cms.db").strip()

    # Direct engine/session so this can run before the app (and gunicorn) start.
    with _session_scope(db_url) as s:
        counts = import_templates(s)
        print(f"Workflow templates: {counts['created']} created, {counts['skipped']} already present.")

        org_name = (os.environ.get("DEMO_ORG_NAME") or "").strip()
        admin_email = (os.environ.get("DEMO_SUPERADMIN_EMAIL") or "").strip().lower()
        if not org_name or not admin_email:
            return

        org = s.query(Organization).filter(Organization.name == org_name).one_or_none()
        if not org:
            org = Organization(name=org_name)
            s.add(org)
            s.flush()

        user = s.query(User).filter(User.email == admin_email).one_or_none()
        if not user:
            s.add(
                User(
                    organization_id=org.id,
                    email=admin_email,
                    password_hash=generate_password_hash(os.environ.get("DEMO_SUPERADMIN_PASSWORD") or "change-me"),
                    first_name="Super",
                    last_name="Admin",
                    role=ROLE_SUPERADMIN,
                    is_active=True,
                )
            )
        print(f"Demo organization: {org_name} (id={org.id})")
        print(f"SuperAdmin email: {admin_email}")
        print("SuperAdmin password: (from DEMO_SUPERADMIN_PASSWORD)")


def main() -> None:
    init_db(database_url=None)


if __name__ == "__main__":
    main()
