"""
Shared pytest fixtures for the EstateShare test suite.

All tests run against an in-memory SQLite database (TestingConfig).
A single app context is pushed for the whole session so that SQLAlchemy
objects remain attached throughout.  After each test, clean_db wipes all
rows so tests are fully independent.
"""
from datetime import datetime
from decimal import Decimal

import pytest
from app import create_app
from extensions import db as _db


# ---------------------------------------------------------------------------
# Application / database lifecycle
# ---------------------------------------------------------------------------

@pytest.fixture(scope='session')
def app():
    """Create a test Flask application with an in-memory SQLite database."""
    application = create_app('testing')
    ctx = application.app_context()
    ctx.push()
    _db.create_all()
    yield application
    _db.session.remove()
    _db.drop_all()
    ctx.pop()


@pytest.fixture(autouse=True)
def clean_db(app):
    """Wipe every table after each test so tests never share state."""
    yield
    _db.session.rollback()
    for table in reversed(_db.metadata.sorted_tables):
        _db.session.execute(table.delete())
    _db.session.commit()
    _db.session.expunge_all()


@pytest.fixture
def client(app):
    return app.test_client()


# ---------------------------------------------------------------------------
# Common model helpers
# ---------------------------------------------------------------------------

@pytest.fixture
def make_user(app):
    """Return a factory creating committed users."""
    from models.users import User, UserRole
    counter = {'n': 0}

    def _make(role=UserRole.INVESTOR, name=None, created_at=None):
        counter['n'] += 1
        u = User(
            email=f'user{counter["n"]}@example.com',
            name=name or f'User {counter["n"]}',
            role=role,
        )
        if created_at is not None:
            u.created_at = created_at
        _db.session.add(u)
        _db.session.commit()
        return u
    return _make


@pytest.fixture
def owner(make_user):
    from models.users import UserRole
    return make_user(role=UserRole.OWNER, name='Olivia Owner')


@pytest.fixture
def investor(make_user):
    return make_user(name='Ivan Investor')


@pytest.fixture
def make_property(app, owner):
    """Return a factory creating a property and its empty stats row."""
    from models.property import Property, PropertyStatus
    from services.property_stats_service import PropertyStatsService

    def _make(name='Harbour View Flats', tig=Decimal('500000.00'), price=Decimal('250000.00'),
              with_stats=True, created_at=None, status=PropertyStatus.PUBLISHED, owner_id=None):
        p = Property(
            owner_id=owner_id or owner.id,
            name=name,
            description='Two-bed apartments by the marina',
            location='Lagos',
            category=['residential'],
            price=price,
            total_investment_goal=tig,
            minimum_investment_amount=Decimal('100.00'),
            listing_start=datetime(2026, 1, 1),
            listing_end=datetime(2026, 12, 31),
            status=status,
        )
        if created_at is not None:
            p.created_at = created_at
        _db.session.add(p)
        _db.session.flush()
        if with_stats:
            _db.session.add(PropertyStatsService.new_stats(p.id))
        _db.session.commit()
        return p
    return _make


@pytest.fixture
def prop(make_property):
    return make_property()


@pytest.fixture
def make_investment(app):
    """Return a factory inserting an investment row directly (no stats update)."""
    from models.investment import Investment, InvestmentStatus

    def _make(property_id, investor_id, amount, estimated_returns, status=InvestmentStatus.FINISH,
              date=None, shares=10):
        inv = Investment(
            property_id=property_id,
            investor_id=investor_id,
            amount=Decimal(str(amount)),
            estimated_returns=Decimal(str(estimated_returns)),
            shares_assigned=shares,
            status=status,
            property_owner='Olivia Owner',
            date=date or datetime(2026, 1, 15),
        )
        _db.session.add(inv)
        _db.session.commit()
        return inv
    return _make
