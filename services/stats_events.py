"""
Domain-event handlers that keep PropertyStats in step with writes.

The writing services call these explicitly, after staging their own change
and inside the same unit of work; nothing is wired through ORM callbacks.

  investment created/deleted -> bump_investor_count(+/-1), then recompute_yield
  investment updated         -> recompute_yield (for the old property too if it moved)
  review created/updated/deleted -> apply_rating
  property viewed            -> record_visit
"""
from extensions import db
from services.property_stats_service import PropertyStatsService, RatingMode
from utils.errors import InvalidRatingUpdate


class StatsEvents:

    @staticmethod
    def on_investment_created(investment):
        db.session.flush()
        PropertyStatsService.bump_investor_count(investment.property_id, 1)
        return PropertyStatsService.recompute_yield(investment.property_id)

    @staticmethod
    def on_investment_updated(investment, previous_property_id=None):
        """Recompute regardless of which field changed."""
        db.session.flush()
        if previous_property_id is not None and previous_property_id != investment.property_id:
            PropertyStatsService.recompute_yield(previous_property_id)
        return PropertyStatsService.recompute_yield(investment.property_id)

    @staticmethod
    def on_investment_deleted(investment):
        """Call after ``db.session.delete(investment)``."""
        db.session.flush()
        PropertyStatsService.bump_investor_count(investment.property_id, -1)
        return PropertyStatsService.recompute_yield(investment.property_id)

    @staticmethod
    def on_review_created(review):
        return PropertyStatsService.apply_rating(review.property_id, review.rating, RatingMode.INSERT)

    @staticmethod
    def on_review_updated(review, old_rating):
        if old_rating is None:
            raise InvalidRatingUpdate('Previous rating is required to update a rating')
        if review.rating == old_rating:
            return PropertyStatsService.get_aggregate(review.property_id)
        return PropertyStatsService.apply_rating(
            review.property_id, review.rating, RatingMode.UPDATE, old_rating=old_rating
        )

    @staticmethod
    def on_review_deleted(review):
        return PropertyStatsService.apply_rating(review.property_id, review.rating, RatingMode.REMOVE)

    @staticmethod
    def on_property_viewed(property_id):
        PropertyStatsService.record_visit(property_id)
