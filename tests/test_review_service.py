"""
Tests for services/review_service.py
"""
import pytest

from models.review import Review
from services.property_stats_service import PropertyStatsService
from services.review_service import ReviewService
from utils.errors import BadRequestError, ConflictError, NotFoundError


@pytest.fixture
def reviewers(make_user):
    return [make_user() for _ in range(3)]


class TestAddReview:

    def test_ratings_fold_into_running_mean(self, prop, reviewers):
        for reviewer, rating in zip(reviewers, [5, 3, 4]):
            ReviewService.add_review(prop.id, reviewer.id, rating, 'Solid listing')

        stats = PropertyStatsService.get_aggregate(prop.id)
        assert stats.rating_count == 3
        assert stats.overall_rating == pytest.approx(4.0)

    def test_duplicate_review_rejected(self, prop, investor):
        ReviewService.add_review(prop.id, investor.id, 4)

        with pytest.raises(ConflictError):
            ReviewService.add_review(prop.id, investor.id, 1)

        assert Review.query.filter_by(property_id=prop.id).count() == 1
        assert PropertyStatsService.get_aggregate(prop.id).rating_count == 1

    @pytest.mark.parametrize('rating', [0, 6, 'excellent', None, True])
    def test_invalid_rating_rejected(self, prop, investor, rating):
        with pytest.raises(BadRequestError):
            ReviewService.add_review(prop.id, investor.id, rating)
        assert PropertyStatsService.get_aggregate(prop.id).rating_count == 0

    def test_unknown_property(self, investor):
        with pytest.raises(NotFoundError):
            ReviewService.add_review(424242, investor.id, 4)


class TestUpdateReview:

    def test_rating_change_preserves_count(self, prop, reviewers):
        ReviewService.add_review(prop.id, reviewers[0].id, 5)
        review = ReviewService.add_review(prop.id, reviewers[1].id, 3)

        ReviewService.update_review(review.id, rating=1)

        stats = PropertyStatsService.get_aggregate(prop.id)
        assert stats.rating_count == 2
        assert stats.overall_rating == pytest.approx(3.0)

    def test_comment_only_update_leaves_stats(self, prop, investor):
        review = ReviewService.add_review(prop.id, investor.id, 4, 'Good')
        before = PropertyStatsService.get_aggregate(prop.id).last_calculated

        updated = ReviewService.update_review(review.id, comment='Great location')

        assert updated.comment == 'Great location'
        stats = PropertyStatsService.get_aggregate(prop.id)
        assert (stats.overall_rating, stats.rating_count) == (4.0, 1)
        assert stats.last_calculated == before


class TestDeleteReview:

    def test_delete_removes_rating(self, prop, reviewers):
        ReviewService.add_review(prop.id, reviewers[0].id, 5)
        review = ReviewService.add_review(prop.id, reviewers[1].id, 3)

        ReviewService.delete_review(review.id)

        stats = PropertyStatsService.get_aggregate(prop.id)
        assert stats.rating_count == 1
        assert stats.overall_rating == pytest.approx(5.0)
        assert Review.query.count() == 1

    def test_delete_missing_review(self):
        with pytest.raises(NotFoundError):
            ReviewService.delete_review(31337)
