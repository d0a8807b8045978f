import os
import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from pydantic import ValidationError
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Query, Session

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")

from backoffice.db.session import Base
from backoffice.models.faq import Faq
from backoffice.schemas.listing import ListQuery
from backoffice.services.list_query import (
    Listing,
    _coerce_bool_filter_value,
    _filter_text,
    apply_filters,
    apply_sort,
    boolean_filter,
    exact_filter,
    prefix_filter,
    run_listing,
)
from backoffice.services.listings import FAQ_LISTING

START = datetime(2026, 3, 1, 9, 0, 0, tzinfo=timezone.utc)


class FilterValueTests(unittest.TestCase):
    def test_boolean_values(self):
        self.assertTrue(_coerce_bool_filter_value("true"))
        self.assertTrue(_coerce_bool_filter_value(" True "))
        self.assertFalse(_coerce_bool_filter_value("FALSE"))
        self.assertIsNone(_coerce_bool_filter_value("yes"))
        self.assertIsNone(_coerce_bool_filter_value("1"))

    def test_filter_text_normalizes_json_scalars(self):
        self.assertEqual(_filter_text(None), "")
        self.assertEqual(_filter_text(True), "true")
        self.assertEqual(_filter_text(7), "7")
        self.assertEqual(_filter_text("  jo "), "jo")

    def test_filter_values_must_be_scalars(self):
        lq = ListQuery.model_validate({"filters": {"isActive": True, "id": 7, "name": "x", "blank": None}})
        self.assertIs(lq.filters["isActive"], True)
        self.assertEqual(lq.filters["id"], 7)
        with self.assertRaises(ValidationError):
            ListQuery.model_validate({"filters": {"name": ["x"]}})

    def test_list_query_offset(self):
        self.assertEqual(ListQuery(page=2, page_size=10).offset, 10)
        self.assertEqual(ListQuery.model_validate({"page": 3, "pageSize": 25}).offset, 50)


class ListingQueryTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.engine = create_engine("sqlite+pysqlite:///:memory:")
        Base.metadata.create_all(cls.engine)
        questions = [
            ("Alpha question", True),
            ("alpine question", False),
            ("Beta question", True),
            ("Gamma question", True),
            ("Deleted alpha", True),
        ]
        with Session(cls.engine) as session:
            for idx, (question, active) in enumerate(questions):
                session.add(
                    Faq(
                        question=question,
                        answer=f"answer {idx}",
                        is_active=active,
                        is_deleted=question.startswith("Deleted"),
                        created_at=START + timedelta(minutes=idx),
                    )
                )
            session.commit()

    @classmethod
    def tearDownClass(cls):
        Base.metadata.drop_all(cls.engine)
        cls.engine.dispose()

    def _base(self, session: Session):
        return session.query(Faq).filter(Faq.is_deleted.is_(False))

    def _questions(self, q) -> list[str]:
        return [row.question for row in q.all()]

    def test_filters_are_conjoined(self):
        with Session(self.engine) as session:
            q = apply_filters(self._base(session), FAQ_LISTING, {"question": "ALP", "isActive": "true"})
            self.assertEqual(self._questions(q), ["Alpha question"])

    def test_malformed_boolean_is_same_as_absent(self):
        with Session(self.engine) as session:
            with_bad = apply_filters(self._base(session), FAQ_LISTING, {"question": "alp", "isActive": "nope"})
            without = apply_filters(self._base(session), FAQ_LISTING, {"question": "alp"})
            self.assertEqual(with_bad.count(), 2)
            self.assertEqual(with_bad.count(), without.count())

    def test_filter_keys_are_exact(self):
        with Session(self.engine) as session:
            q = apply_filters(self._base(session), FAQ_LISTING, {"Question": "beta"})
            self.assertEqual(q.count(), 4)

    def test_default_sort_is_newest_first(self):
        with Session(self.engine) as session:
            q = apply_sort(self._base(session), FAQ_LISTING, None, "asc")
            self.assertEqual(
                self._questions(q),
                ["Gamma question", "Beta question", "alpine question", "Alpha question"],
            )

    def test_explicit_sort_direction(self):
        with Session(self.engine) as session:
            q = apply_sort(self._base(session), FAQ_LISTING, "createdAt", " DESC ")
            self.assertEqual(self._questions(q)[0], "Gamma question")
            q = apply_sort(self._base(session), FAQ_LISTING, "createdAt", None)
            self.assertEqual(self._questions(q)[0], "Alpha question")

    def test_run_listing_counts_before_paging(self):
        with Session(self.engine) as session:
            result = run_listing(
                session,
                self._base(session),
                FAQ_LISTING,
                ListQuery(page=2, page_size=2, sort_column="createdAt", sort_direction="asc"),
                lambda row: row.question,
            )
        self.assertTrue(result.success)
        self.assertEqual(result.message, "FAQs Fetched Successfully")
        self.assertEqual(result.data.total_items, 4)
        self.assertEqual(result.data.page, 2)
        self.assertEqual(result.data.data, ["Beta question", "Gamma question"])

    def test_page_past_the_end_is_empty(self):
        with Session(self.engine) as session:
            result = run_listing(session, self._base(session), FAQ_LISTING, ListQuery(page=9, page_size=10), lambda row: row.id)
        self.assertEqual(result.data.total_items, 4)
        self.assertEqual(result.data.data, [])

    def test_custom_listing_definition(self):
        listing = Listing(
            label="Answers",
            default_sort=Faq.id,
            filters={"a": prefix_filter(Faq.answer), "on": boolean_filter(Faq.is_active)},
            sort_columns={"answer": Faq.answer},
        )
        with Session(self.engine) as session:
            result = run_listing(
                session,
                self._base(session),
                listing,
                ListQuery(page=1, page_size=10, filters={"a": "answer", "on": False}),
                lambda row: row.answer,
            )
        self.assertEqual(result.data.data, ["answer 1"])

    def test_exact_filter_matches_whole_value(self):
        listing = Listing(label="Questions", default_sort=Faq.id, filters={"q": exact_filter(Faq.question)})
        with Session(self.engine) as session:
            self.assertEqual(apply_filters(self._base(session), listing, {"q": "Beta"}).count(), 0)
            self.assertEqual(apply_filters(self._base(session), listing, {"q": " Beta question "}).count(), 1)

    def test_id_filter_parses_or_matches_nothing(self):
        with Session(self.engine) as session:
            first_id = self._base(session).order_by(Faq.id).first().id
            self.assertEqual(apply_filters(self._base(session), FAQ_LISTING, {"id": str(first_id)}).count(), 1)
            self.assertEqual(apply_filters(self._base(session), FAQ_LISTING, {"id": first_id}).count(), 1)
            self.assertEqual(apply_filters(self._base(session), FAQ_LISTING, {"id": "one"}).count(), 0)

    def test_data_access_failure_becomes_failure_result(self):
        error = OperationalError("SELECT count(*)", {}, Exception("database is unavailable"))
        with Session(self.engine) as session:
            with patch.object(Query, "count", side_effect=error):
                with self.assertLogs("backoffice.services.list_query", level="ERROR"):
                    result = run_listing(session, self._base(session), FAQ_LISTING, ListQuery(), lambda row: row.id)
        self.assertFalse(result.success)
        self.assertIsNone(result.data)
        self.assertEqual(result.message, "Error Occurred: database is unavailable")


if __name__ == "__main__":
    unittest.main()
