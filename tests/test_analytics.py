import uuid

import pytest

from concurrent.futures import ThreadPoolExecutor
from datetime import date

from app.core.exceptions import NotFoundError, ValidationError
from app.schemas.analytics import CatchReportEvent
from app.services.analytics_service import analytics_service

from tests.conftest import NOW


def test_concurrent_catch_reports_are_summed(db, session_factory):
    fisherman = uuid.uuid4()

    def report(weight):
        session = session_factory()
        try:
            analytics_service.record_catch(
                session, CatchReportEvent(user_id=fisherman, weight=weight), now=NOW
            )
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=2) as pool:
        list(pool.map(report, [10.0, 15.0]))

    daily = analytics_service.get_daily(db, NOW.date())
    assert daily.total_catches == 2
    assert daily.total_weight == 25.0

    stats = analytics_service.get_user_statistics(db, fisherman)
    assert stats.catch_reports == 2
    assert stats.total_catch == 25.0
    assert stats.emergency_activations == 0


def test_catch_day_comes_from_event(db):
    analytics_service.record_catch(
        db, CatchReportEvent(day=date(2026, 2, 27), weight=4.5), now=NOW
    )
    row = analytics_service.record_catch(db, CatchReportEvent(), now=NOW)

    assert row.day == NOW.date()
    assert row.total_weight == 0.0
    assert analytics_service.get_daily(db, date(2026, 2, 27)).total_weight == 4.5


def test_range_totals(db):
    for day, weight in [(date(2026, 2, 27), 3.0), (date(2026, 2, 28), 7.0), (date(2026, 3, 5), 9.0)]:
        analytics_service.record_catch(db, CatchReportEvent(day=day, weight=weight), now=NOW)

    result = analytics_service.get_range(db, date(2026, 2, 27), date(2026, 3, 1))

    assert [d.day for d in result.days] == [date(2026, 2, 27), date(2026, 2, 28)]
    assert result.total_catches == 2
    assert result.total_weight == 10.0

    with pytest.raises(ValidationError):
        analytics_service.get_range(db, date(2026, 3, 1), date(2026, 2, 1))


def test_emergency_activations_are_counted(db):
    fisherman = uuid.uuid4()

    analytics_service.record_emergency_activation(db, fisherman, now=NOW)
    analytics_service.record_emergency_activation(db, fisherman, now=NOW)

    assert analytics_service.get_user_statistics(db, fisherman).emergency_activations == 2


def test_missing_rows(db):
    with pytest.raises(NotFoundError):
        analytics_service.get_daily(db, date(2020, 1, 1))
    with pytest.raises(NotFoundError):
        analytics_service.get_user_statistics(db, uuid.uuid4())
