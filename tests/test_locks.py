import threading
import time
from datetime import date
import uuid

import pytest

from intellibook.core.exceptions import FormatError
from intellibook.core.locks import (
    KeyedMutexLock,
    PostgresAdvisoryLock,
    business_lock_key,
    date_lock_key,
    lock_for_dialect,
    lock_keys,
)


class TestLockKeys:

    def test_date_key_is_yyyymmdd(self):
        assert date_lock_key("2026-10-19") == 20261019
        assert date_lock_key(date(2026, 1, 2)) == 20260102

    def test_bad_date_key(self):
        with pytest.raises(FormatError):
            date_lock_key("not-a-date")

    def test_business_key_is_stable_signed_int32(self):
        business_id = uuid.UUID("7d1f5c1e-8a5b-4a57-9d52-2c8a1b4f0e11")
        key = business_lock_key(business_id)
        assert key == business_lock_key(str(business_id))
        assert -2 ** 31 <= key < 2 ** 31

    def test_distinct_businesses_get_distinct_keys(self):
        keys = {business_lock_key(uuid.uuid4()) for _ in range(50)}
        assert len(keys) > 45

    def test_lock_keys_pair(self):
        business_id = uuid.uuid4()
        assert lock_keys(business_id, "2026-10-19") == (business_lock_key(business_id), 20261019)


class TestLockSelection:

    def test_postgres_uses_advisory_lock(self):
        assert isinstance(lock_for_dialect("postgresql"), PostgresAdvisoryLock)

    def test_sqlite_uses_mutex(self):
        assert isinstance(lock_for_dialect("sqlite"), KeyedMutexLock)

    def test_database_picks_lock_from_dialect(self, context):
        assert context.database.dialect == "sqlite"
        assert context.booking_lock.name == "keyed_mutex"


class TestKeyedMutexLock:

    def test_same_key_serializes(self):
        lock = KeyedMutexLock()
        business_id = uuid.uuid4()
        inside = threading.Event()
        release = threading.Event()
        order = []

        def first():
            with lock.hold(None, business_id, "2026-10-19"):
                inside.set()
                release.wait(5)
                order.append("first")

        def second():
            inside.wait(5)
            with lock.hold(None, business_id, "2026-10-19"):
                order.append("second")

        t1 = threading.Thread(target=first)
        t2 = threading.Thread(target=second)
        t1.start()
        t2.start()
        inside.wait(5)
        time.sleep(0.1)
        assert order == []
        release.set()
        t1.join(5)
        t2.join(5)

        assert order == ["first", "second"]
        assert lock.active_keys == 0

    def test_different_keys_do_not_block(self):
        lock = KeyedMutexLock()
        business_id = uuid.uuid4()

        with lock.hold(None, business_id, "2026-10-19"):
            acquired = threading.Event()

            def other_day():
                with lock.hold(None, business_id, "2026-10-20"):
                    acquired.set()

            thread = threading.Thread(target=other_day)
            thread.start()
            thread.join(5)
            assert acquired.is_set()
            assert lock.active_keys == 1

        assert lock.active_keys == 0

    def test_released_on_error(self):
        lock = KeyedMutexLock()
        with pytest.raises(RuntimeError):
            with lock.hold(None, uuid.uuid4(), "2026-10-19"):
                raise RuntimeError("boom")
        assert lock.active_keys == 0


class TestPostgresAdvisoryLock:

    def test_issues_xact_lock_with_both_keys(self):
        calls = []

        class FakeSession:
            def execute(self, statement, params):
                calls.append((str(statement), params))

        business_id = uuid.uuid4()
        with PostgresAdvisoryLock().hold(FakeSession(), business_id, "2026-10-19"):
            pass

        assert calls == [(
            "SELECT pg_advisory_xact_lock(:business_key, :date_key)",
            {"business_key": business_lock_key(business_id), "date_key": 20261019},
        )]
