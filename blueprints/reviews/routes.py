from flask import request
from . import reviews_bp
from services.review_service import ReviewService
from utils.errors import BadRequestError
from utils.responses import success


@reviews_bp.route('', methods=['GET'])
def reviews_by_property():
    property_id = request.args.get('property_id', type=int)
    if not property_id:
        raise BadRequestError('Property ID is required')
    reviews = ReviewService.view_reviews_by_property(property_id)
    return success([ReviewService.to_dict(r) for r in reviews], 'Reviews retrieved successfully')


@reviews_bp.route('', methods=['POST'])
def create_review():
    data = request.get_json(silent=True) or {}
    review = ReviewService.add_review(
        data.get('property_id'), data.get('reviewer_id'), data.get('rating'), data.get('comment')
    )
    return success(ReviewService.to_dict(review), 'Review added successfully', 201)


@reviews_bp.route('/<int:review_id>', methods=['PUT'])
def update_review(review_id):
    data = request.get_json(silent=True) or {}
    review = ReviewService.update_review(review_id, rating=data.get('rating'), comment=data.get('comment'))
    return success(ReviewService.to_dict(review), 'Review updated successfully')


@reviews_bp.route('/<int:review_id>', methods=['DELETE'])
def delete_review(review_id):
    ReviewService.delete_review(review_id)
    return success(None, 'Review deleted successfully')
