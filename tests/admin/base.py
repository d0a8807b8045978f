import os
import unittest
from datetime import datetime, timedelta, timezone
from uuid import UUID

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure settings can be initialized in test environments
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")

from backoffice.core.config import settings
from backoffice.core.security import create_jwt, hash_password
from backoffice.db.session import Base, get_db
from backoffice.main import app
from backoffice.models.cms_page import CmsPage
from backoffice.models.faq import Faq
from backoffice.models.geo import City, Country, State
from backoffice.models.role import Role
from backoffice.models.user import User
from backoffice.models.user_role import UserRole
from backoffice.services.permissions import KNOWN_MASK
from backoffice.services.rate_limit import InMemoryRateLimiter, set_rate_limiter

BASE_TIME = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class AdminApiBase(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        cls.SessionLocal = sessionmaker(bind=cls.engine, autocommit=False, autoflush=False)
        Base.metadata.create_all(bind=cls.engine)

    @classmethod
    def tearDownClass(cls):
        Base.metadata.drop_all(bind=cls.engine)
        cls.engine.dispose()

    def setUp(self):
        with self.SessionLocal() as db:
            for table in reversed(Base.metadata.sorted_tables):
                db.execute(table.delete())
            db.commit()

        def override_get_db():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        set_rate_limiter(InMemoryRateLimiter())
        self._acting_admin = None
        self.client = TestClient(app)

    def tearDown(self):
        self.client.close()
        app.dependency_overrides.clear()
        set_rate_limiter(None)

    def _acting_admin_id(self) -> str:
        # One stored account per test backs the tokens minted below.
        if self._acting_admin is None:
            self._acting_admin = self._create_user(
                "Acting Admin",
                "acting.admin@example.com",
                minutes=-24 * 60,
                password="Acting@123",
            )
        return self._acting_admin

    def _auth_headers(self, perms: int = KNOWN_MASK, sub: str | None = None, email: str = "acting.admin@example.com") -> dict[str, str]:
        token = create_jwt(
            {"sub": str(sub or self._acting_admin_id()), "email": email, "roles": ["Administrator"], "perms": int(perms), "typ": "access"},
            settings.JWT_SECRET,
            timedelta(minutes=30),
        )
        return {"Authorization": f"Bearer {token}"}

    def _seed_geo(self) -> dict[str, int]:
        with self.SessionLocal() as db:
            india = Country(name="India")
            japan = Country(name="Japan")
            db.add_all([india, japan])
            db.flush()
            gujarat = State(name="Gujarat", country_id=india.id)
            tokyo = State(name="Tokyo", country_id=japan.id)
            db.add_all([gujarat, tokyo])
            db.flush()
            ahmedabad = City(name="Ahmedabad", state_id=gujarat.id)
            shinjuku = City(name="Shinjuku", state_id=tokyo.id)
            db.add_all([ahmedabad, shinjuku])
            db.commit()
            return {
                "india": india.id,
                "japan": japan.id,
                "gujarat": gujarat.id,
                "tokyo": tokyo.id,
                "ahmedabad": ahmedabad.id,
                "shinjuku": shinjuku.id,
            }

    def _create_role(self, name: str, permissions: int = 0, *, minutes: int = 0, is_active: bool = True, description: str | None = None) -> str:
        with self.SessionLocal() as db:
            role = Role(
                name=name,
                description=description,
                permissions=permissions,
                is_active=is_active,
                created_at=BASE_TIME + timedelta(minutes=minutes),
            )
            db.add(role)
            db.commit()
            return str(role.id)

    def _create_user(
        self,
        full_name: str,
        email: str,
        *,
        minutes: int = 0,
        is_active: bool = True,
        phone_number: str | None = None,
        country_id: int | None = None,
        state_id: int | None = None,
        city_id: int | None = None,
        role_ids: tuple[str, ...] = (),
        password: str = "Secret@123",
        is_deleted: bool = False,
    ) -> str:
        with self.SessionLocal() as db:
            user = User(
                full_name=full_name,
                email=email,
                phone_number=phone_number,
                password_hash=hash_password(password),
                country_id=country_id,
                state_id=state_id,
                city_id=city_id,
                is_active=is_active,
                is_deleted=is_deleted,
                created_at=BASE_TIME + timedelta(minutes=minutes),
            )
            db.add(user)
            db.flush()
            for role_id in role_ids:
                db.add(UserRole(user_id=user.id, role_id=UUID(str(role_id))))
            db.commit()
            return str(user.id)

    def _create_cms(self, key: str, title: str, *, minutes: int = 0, is_active: bool = True, meta_keyword: str | None = None) -> int:
        with self.SessionLocal() as db:
            page = CmsPage(
                key=key,
                title=title,
                meta_keyword=meta_keyword,
                content=f"<p>{title}</p>",
                is_active=is_active,
                created_at=BASE_TIME + timedelta(minutes=minutes),
            )
            db.add(page)
            db.commit()
            return page.id

    def _create_faq(self, question: str, answer: str, *, minutes: int = 0, is_active: bool = True) -> int:
        with self.SessionLocal() as db:
            faq = Faq(question=question, answer=answer, is_active=is_active, created_at=BASE_TIME + timedelta(minutes=minutes))
            db.add(faq)
            db.commit()
            return faq.id
