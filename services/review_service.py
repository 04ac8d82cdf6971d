"""
Review Service
One review per reviewer per property; every rating change is folded into the
property's running mean inside the same transaction.
"""
from extensions import db
from models.property import Property
from models.review import Review
from models.users import User
from services.stats_events import StatsEvents
from utils.db_helpers import unit_of_work, get_or_404
from utils.errors import BadRequestError, ConflictError


class ReviewService:

    @staticmethod
    def parse_rating(value):
        """Ratings must be whole numbers from 1 to 5."""
        if isinstance(value, bool):
            raise BadRequestError('Rating must be an integer between 1 and 5')
        try:
            rating = int(str(value))
        except (TypeError, ValueError):
            raise BadRequestError('Rating must be an integer between 1 and 5')
        if rating < 1 or rating > 5:
            raise BadRequestError('Rating must be an integer between 1 and 5')
        return rating

    @staticmethod
    def add_review(property_id, reviewer_id, rating, comment=None):
        rating = ReviewService.parse_rating(rating)

        with unit_of_work():
            get_or_404(Property, property_id)
            get_or_404(User, reviewer_id, 'Reviewer')

            existing = Review.query.filter_by(property_id=property_id, reviewer_id=reviewer_id).first()
            if existing:
                raise ConflictError('You have already reviewed this property')

            review = Review(property_id=property_id, reviewer_id=reviewer_id, rating=rating, comment=comment)
            db.session.add(review)
            db.session.flush()
            StatsEvents.on_review_created(review)

        return review

    @staticmethod
    def update_review(review_id, rating=None, comment=None):
        """Change a review; the stats update is skipped when the rating is unchanged."""
        new_rating = ReviewService.parse_rating(rating) if rating is not None else None

        with unit_of_work():
            review = get_or_404(Review, review_id)
            old_rating = review.rating

            if comment is not None:
                review.comment = comment
            if new_rating is not None and new_rating != old_rating:
                review.rating = new_rating
                StatsEvents.on_review_updated(review, old_rating)

        return review

    @staticmethod
    def delete_review(review_id):
        with unit_of_work():
            review = get_or_404(Review, review_id)
            StatsEvents.on_review_deleted(review)
            db.session.delete(review)

    @staticmethod
    def view_reviews_by_property(property_id):
        return Review.query.filter_by(property_id=property_id).order_by(Review.created_at.desc()).all()

    @staticmethod
    def to_dict(review):
        return {
            'id': review.id,
            'property_id': review.property_id,
            'reviewer_id': review.reviewer_id,
            'rating': review.rating,
            'comment': review.comment,
        }
