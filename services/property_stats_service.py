"""
Property Stats Service
======================
Maintains the PropertyStats cache row for each property.

Cache model
-----------
One row per property (keyed by property_id) holding:

  annual_yield, total_investment_amount,
  total_estimated_returns, number_of_investors - full recomputation over the
                                                  property's finished investments
  overall_rating, rating_count                 - incremental running mean over reviews
  visit_count                                  - atomic +1 per property view

Rows are found-or-created lazily by every updater, so a missing row is never
an error.  None of the updaters commit: they run inside the caller's unit of
work (utils.db_helpers.unit_of_work) so the stats change commits or rolls back
together with the write that triggered it.

Concurrency
-----------
Every read-modify-write locks the row with SELECT ... FOR UPDATE.  Visits
bypass the ORM read entirely with an atomic UPDATE.

Primary entry points
--------------------
  apply_rating()          - insert / update / remove one rating
  recompute_yield()       - rebuild yield and totals from finished investments
  bump_investor_count()   - +/-1 pre-update fired on investment create/delete
  record_visit()          - count one property view
  get_aggregate()         - read accessor (None when no row exists)
  rebuild_all()           - full audit: orphans, missing rows, totals, ratings
"""
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum

from flask import current_app
from sqlalchemy import func, update

from extensions import db
from models.investment import Investment, InvestmentStatus
from models.property import Property
from models.property_stats import PropertyStats
from models.review import Review
from utils.db_helpers import locked_query
from utils.errors import InvalidRatingUpdate

TWO_PLACES = Decimal('0.01')


class RatingMode(Enum):
    INSERT = 'insert'
    UPDATE = 'update'
    REMOVE = 'remove'


def round_money(value):
    """Quantize a Decimal to 2dp (persistence step only)."""
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


class PropertyStatsService:
    """
    Incremental and full-recompute updaters for the PropertyStats cache.

    Callers own the transaction; nothing here commits.
    """

    @staticmethod
    def _now():
        return datetime.now(timezone.utc).replace(tzinfo=None)

    @staticmethod
    def new_stats(property_id, **values):
        """Build a zeroed stats row (column defaults only apply on INSERT)."""
        fields = {
            'annual_yield': Decimal('0'),
            'total_investment_amount': Decimal('0'),
            'total_estimated_returns': Decimal('0'),
            'number_of_investors': 0,
            'overall_rating': 0.0,
            'rating_count': 0,
            'visit_count': 0,
            'last_calculated': PropertyStatsService._now(),
        }
        fields.update(values)
        return PropertyStats(property_id=property_id, **fields)

    @staticmethod
    def get_locked_stats(property_id, create=True):
        """
        Return the stats row for *property_id* locked for update.

        Creates (and flushes) a zeroed row when none exists and *create* is
        True.  Concurrent lazy creation of the same row surfaces as an
        IntegrityError that aborts the caller's unit of work.
        """
        stats = locked_query(PropertyStats, property_id=property_id).first()
        if stats is None and create:
            stats = PropertyStatsService.new_stats(property_id)
            db.session.add(stats)
            db.session.flush()
        return stats

    @staticmethod
    def get_aggregate(property_id):
        """Read accessor; returns None when the property has no stats row yet."""
        return db.session.get(PropertyStats, property_id)

    # ------------------------------------------------------------------
    # Rating aggregator
    # ------------------------------------------------------------------

    @staticmethod
    def apply_rating(property_id, new_rating, mode, old_rating=None):
        """
        Fold one rating change into the running mean.

        Args:
            property_id: Property whose stats row is updated.
            new_rating:  The rating being inserted, the replacement value on
                         update, or the rating being removed.
            mode:        RatingMode (or its string value).
            old_rating:  Previous rating; required for RatingMode.UPDATE.

        Returns the updated PropertyStats row.
        """
        mode = RatingMode(mode)
        if mode is RatingMode.UPDATE and old_rating is None:
            raise InvalidRatingUpdate('Previous rating is required to update a rating')

        stats = PropertyStatsService.get_locked_stats(property_id, create=False)

        if stats is None:
            if mode is RatingMode.INSERT:
                stats = PropertyStatsService.new_stats(
                    property_id, overall_rating=float(new_rating), rating_count=1
                )
                db.session.add(stats)
                db.session.flush()
                return stats
            stats = PropertyStatsService.new_stats(property_id)
            db.session.add(stats)

        count = stats.rating_count or 0
        mean = stats.overall_rating or 0.0

        if mode is RatingMode.INSERT:
            new_count = count + 1
            mean = (mean * count + new_rating) / new_count
            count = new_count
        elif mode is RatingMode.UPDATE:
            if new_rating == old_rating:
                return stats
            mean = (mean * count - old_rating + new_rating) / count if count > 0 else 0.0
        else:
            new_count = count - 1
            mean = (mean * count - new_rating) / new_count if new_count > 0 else 0.0
            count = new_count

        if count < 0 or mean < 0:
            current_app.logger.warning(
                f'Clamped rating stats for property {property_id}: count={count} mean={mean}'
            )
        stats.rating_count = max(count, 0)
        stats.overall_rating = max(mean, 0.0)
        db.session.flush()
        return stats

    # ------------------------------------------------------------------
    # Investor / yield recalculator
    # ------------------------------------------------------------------

    @staticmethod
    def calculate_investment_totals(property_id):
        """
        Sum finished investments for a property without rounding.

        Returns: (total_investment, total_returns, investor_ids)
        """
        investments = Investment.query.filter_by(
            property_id=property_id,
            status=InvestmentStatus.FINISH
        ).all()

        total_investment = Decimal('0')
        total_returns = Decimal('0')
        investor_ids = set()
        for inv in investments:
            total_investment += Decimal(str(inv.amount))
            total_returns += Decimal(str(inv.estimated_returns))
            investor_ids.add(inv.investor_id)

        return total_investment, total_returns, investor_ids

    @staticmethod
    def calculate_yield(total_investment, total_returns):
        """Annual yield percentage; 0 when nothing is invested."""
        if total_investment <= 0:
            return Decimal('0')
        return (total_returns - total_investment) / total_investment * 100

    @staticmethod
    def recompute_yield(property_id):
        """Rebuild yield, totals and investor count from finished investments."""
        stats = PropertyStatsService.get_locked_stats(property_id)

        total_investment, total_returns, investor_ids = \
            PropertyStatsService.calculate_investment_totals(property_id)
        annual_yield = PropertyStatsService.calculate_yield(total_investment, total_returns)

        stats.annual_yield = round_money(annual_yield)
        stats.total_investment_amount = round_money(total_investment)
        stats.total_estimated_returns = round_money(total_returns)
        stats.number_of_investors = len(investor_ids)
        stats.last_calculated = PropertyStatsService._now()
        db.session.flush()

        current_app.logger.debug(
            f'Recomputed stats for property {property_id}: invested={stats.total_investment_amount} '
            f'returns={stats.total_estimated_returns} yield={stats.annual_yield} '
            f'investors={stats.number_of_investors}'
        )
        return stats

    @staticmethod
    def bump_investor_count(property_id, delta):
        """
        Adjust number_of_investors by +1/-1 with a floor of 0.

        Fired on every investment create/delete before recompute_yield(), which
        then overwrites the count from finished investments only.  The bump is
        flushed so readers inside the same transaction see it.
        """
        if delta not in (1, -1):
            raise ValueError(f'Investor count delta must be +1 or -1, got {delta!r}')

        stats = PropertyStatsService.get_locked_stats(property_id)
        stats.number_of_investors = max((stats.number_of_investors or 0) + delta, 0)
        db.session.flush()
        return stats

    # ------------------------------------------------------------------
    # Visit counter
    # ------------------------------------------------------------------

    @staticmethod
    def record_visit(property_id):
        """Count one view of the property (no dedup, never decremented)."""
        result = db.session.execute(
            update(PropertyStats)
            .where(PropertyStats.property_id == property_id)
            .values(visit_count=PropertyStats.visit_count + 1)
        )
        if result.rowcount == 0:
            db.session.add(PropertyStatsService.new_stats(property_id, visit_count=1))
        db.session.flush()

    # ------------------------------------------------------------------
    # Full audit / rebuild
    # ------------------------------------------------------------------

    @staticmethod
    def recount_ratings(property_id):
        """Rebuild rating mean and count from the review table."""
        stats = PropertyStatsService.get_locked_stats(property_id)
        count, total = db.session.query(
            func.count(Review.id), func.coalesce(func.sum(Review.rating), 0)
        ).filter(Review.property_id == property_id).one()

        stats.rating_count = count
        stats.overall_rating = float(total) / count if count else 0.0
        db.session.flush()
        return stats

    @staticmethod
    def rebuild_all():
        """
        Audit and rebuild every stats row from raw investments and reviews.

        Removes rows whose property no longer exists, creates missing rows,
        then recomputes totals/yield and rating fields.  Visit counts have no
        raw source and are preserved.  The caller commits.

        Returns a summary dict.
        """
        property_ids = [pid for (pid,) in db.session.query(Property.id).all()]

        orphaned = PropertyStats.query.filter(
            PropertyStats.property_id.notin_(property_ids)
        ).delete(synchronize_session=False) if property_ids else PropertyStats.query.delete()

        existing = {pid for (pid,) in db.session.query(PropertyStats.property_id).all()}
        created = 0
        for property_id in property_ids:
            if property_id not in existing:
                db.session.add(PropertyStatsService.new_stats(property_id))
                created += 1
        db.session.flush()

        for property_id in property_ids:
            PropertyStatsService.recompute_yield(property_id)
            PropertyStatsService.recount_ratings(property_id)

        current_app.logger.info(
            f'Property stats rebuilt: {len(property_ids)} properties, '
            f'{created} rows created, {orphaned} orphaned rows removed'
        )
        return {
            'properties': len(property_ids),
            'created': created,
            'orphaned_removed': orphaned,
        }
