"""
Concurrent stats updates against a file-backed SQLite database.

The in-memory test database shares one connection, so this module builds its
own app on a temporary file where every thread gets a real connection.
"""
import threading
from datetime import datetime
from decimal import Decimal

import pytest
from app import create_app
from extensions import db
from models.property import Property
from models.property_stats import PropertyStats
from models.users import User, UserRole
from services.property_stats_service import PropertyStatsService, RatingMode
from services.review_service import ReviewService
from utils.db_helpers import unit_of_work

WORKERS = 8


@pytest.fixture
def file_app(tmp_path):
    application = create_app('testing', {
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'stats.db'}",
        'SQLALCHEMY_ENGINE_OPTIONS': {'connect_args': {'timeout': 30}},
    })
    yield application
    with application.app_context():
        db.session.remove()
        db.engine.dispose()


@pytest.fixture
def seeded(file_app):
    """Create an owner, one listing with a zeroed stats row, and WORKERS investors."""
    with file_app.app_context():
        owner = User(email='owner@example.com', name='Owner', role=UserRole.OWNER)
        db.session.add(owner)
        db.session.flush()
        prop = Property(
            owner_id=owner.id, name='Dockside Lofts', location='Leeds',
            total_investment_goal=Decimal('100000.00'), minimum_investment_amount=Decimal('50.00'),
            listing_start=datetime(2026, 1, 1), listing_end=datetime(2026, 6, 1),
        )
        db.session.add(prop)
        db.session.flush()
        db.session.add(PropertyStatsService.new_stats(prop.id))
        reviewers = [User(email=f'reviewer{i}@example.com', name=f'Reviewer {i}') for i in range(WORKERS)]
        db.session.add_all(reviewers)
        db.session.commit()
        ids = {'property_id': prop.id, 'reviewer_ids': [r.id for r in reviewers]}
        db.session.remove()
    return ids


def _run_concurrently(app, work):
    """Run work(i) for i in range(WORKERS) on separate threads released together."""
    errors = []
    start = threading.Barrier(WORKERS)

    def worker(i):
        with app.app_context():
            try:
                start.wait()
                work(i)
            except Exception as e:
                errors.append(e)
            finally:
                db.session.remove()

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(WORKERS)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return errors


def _stats(app, property_id):
    with app.app_context():
        stats = db.session.get(PropertyStats, property_id)
        values = (stats.overall_rating, stats.rating_count, stats.visit_count)
        db.session.remove()
    return values


def test_concurrent_visits_are_all_counted(file_app, seeded):
    property_id = seeded['property_id']

    def visit(i):
        with unit_of_work():
            PropertyStatsService.record_visit(property_id)

    assert _run_concurrently(file_app, visit) == []
    _, _, visits = _stats(file_app, property_id)
    assert visits == WORKERS, f'expected {WORKERS} visits, got {visits}'


def test_concurrent_rating_inserts_are_all_counted(file_app, seeded):
    property_id = seeded['property_id']

    def rate(i):
        with unit_of_work():
            PropertyStatsService.apply_rating(property_id, 5, RatingMode.INSERT)

    assert _run_concurrently(file_app, rate) == []
    mean, count, _ = _stats(file_app, property_id)
    assert count == WORKERS, f'lost rating updates: count={count}'
    assert mean == pytest.approx(5.0)


def test_concurrent_reviews_keep_running_mean_exact(file_app, seeded):
    property_id = seeded['property_id']
    reviewer_ids = seeded['reviewer_ids']
    ratings = [1, 2, 3, 4, 5, 1, 2, 3]

    def review(i):
        ReviewService.add_review(property_id, reviewer_ids[i], ratings[i])

    assert _run_concurrently(file_app, review) == []
    mean, count, _ = _stats(file_app, property_id)
    assert count == WORKERS
    assert mean == pytest.approx(sum(ratings) / len(ratings))


def test_concurrent_rating_removals_end_at_zero(file_app, seeded):
    property_id = seeded['property_id']
    with file_app.app_context():
        stats = db.session.get(PropertyStats, property_id)
        stats.overall_rating = 4.0
        stats.rating_count = WORKERS
        db.session.commit()
        db.session.remove()

    def remove(i):
        with unit_of_work():
            PropertyStatsService.apply_rating(property_id, 4, RatingMode.REMOVE)

    assert _run_concurrently(file_app, remove) == []
    mean, count, _ = _stats(file_app, property_id)
    assert (mean, count) == (0.0, 0)
