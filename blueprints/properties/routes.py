from flask import current_app, request
from . import properties_bp
from extensions import limiter
from services.property_service import PropertyService
from services.property_stats_service import PropertyStatsService
from utils.errors import NotFoundError
from utils.responses import success


def _view_rate_limit():
    return current_app.config.get('PROPERTY_VIEW_RATE_LIMIT', '120 per minute')


@properties_bp.route('', methods=['GET'])
def list_properties():
    """Search listings: ?q=, ?category=a,b, ?min_price=, ?max_price=, ?owner_id=, ?page=, ?size="""
    category = request.args.get('category')
    result = PropertyService.view_properties(
        q=request.args.get('q'),
        category=[tag for tag in category.split(',') if tag] if category else None,
        min_price=request.args.get('min_price'),
        max_price=request.args.get('max_price'),
        owner_id=request.args.get('owner_id', type=int),
        page=request.args.get('page', type=int),
        size=request.args.get('size', type=int),
    )
    result['properties'] = [PropertyService.to_dict(p) for p in result['properties']]
    return success(result, 'Properties retrieved successfully')


@properties_bp.route('', methods=['POST'])
def create_property():
    """Create a listing (and its empty stats row)"""
    prop = PropertyService.add_property(request.get_json(silent=True) or {})
    return success(PropertyService.to_dict(prop), 'Property created successfully', 201)


@properties_bp.route('/<int:property_id>', methods=['GET'])
@limiter.limit(_view_rate_limit)
def view_property(property_id):
    """Property detail; counts as a visit unless ?track=false"""
    record_visit = request.args.get('track', 'true').lower() != 'false'
    prop = PropertyService.view_property(property_id, record_visit=record_visit)
    return success(PropertyService.to_dict(prop), 'Property retrieved successfully')


@properties_bp.route('/<int:property_id>', methods=['PUT'])
def update_property(property_id):
    prop = PropertyService.update_property(property_id, request.get_json(silent=True) or {})
    return success(PropertyService.to_dict(prop), 'Property updated successfully')


@properties_bp.route('/<int:property_id>', methods=['DELETE'])
def delete_property(property_id):
    PropertyService.delete_property(property_id)
    return success(None, 'Property deleted successfully')


@properties_bp.route('/<int:property_id>/tokenomics', methods=['PUT'])
def update_tokenomics(property_id):
    PropertyService.update_tokenomics(property_id, request.get_json(silent=True) or {})
    prop = PropertyService.view_property(property_id, record_visit=False)
    return success(PropertyService.to_dict(prop), 'Tokenomics updated successfully')


@properties_bp.route('/<int:property_id>/stats', methods=['GET'])
def property_stats(property_id):
    stats = PropertyStatsService.get_aggregate(property_id)
    if stats is None:
        raise NotFoundError('Property stats not found')
    return success(stats.to_dict(), 'Property stats retrieved successfully')
