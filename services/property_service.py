"""
Property Service
Listing creation, search, updates and removal, detail views (which count as visits) and tokenomics.
"""
import json
from datetime import datetime
from decimal import Decimal, InvalidOperation

from flask import current_app
from sqlalchemy import String, cast, or_

from extensions import db
from models.property import Property, PropertyStatus
from models.tokenomics import Tokenomics
from models.users import User
from services.property_stats_service import PropertyStatsService
from services.stats_events import StatsEvents
from utils.db_helpers import unit_of_work, get_or_404, paginate
from utils.errors import BadRequestError, ConflictError

DISTRIBUTION_KEYS = ('team', 'advisors', 'investors', 'other')
UPDATABLE_FIELDS = (
    'name', 'description', 'location', 'category', 'price',
    'total_investment_goal', 'minimum_investment_amount', 'price_to_rent_ratio',
    'listing_start', 'listing_end', 'status',
)


class PropertyService:

    @staticmethod
    def _to_decimal(value, field):
        try:
            return Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise BadRequestError(f'{field} must be a number')

    @staticmethod
    def _to_datetime(value, field):
        if isinstance(value, datetime):
            return value
        try:
            return datetime.fromisoformat(str(value))
        except ValueError:
            raise BadRequestError(f'{field} must be an ISO-8601 datetime')

    @staticmethod
    def parse_category(category):
        """Accept a list, a JSON-encoded list, or a single tag string."""
        if isinstance(category, list):
            return category
        if isinstance(category, str):
            try:
                parsed = json.loads(category)
            except ValueError:
                return [category]
            return parsed if isinstance(parsed, list) else [category]
        raise BadRequestError('category must be a list of tags')

    @staticmethod
    def validate_property_data(data):
        """Report every missing field at once, then coerce types."""
        required = {
            'owner_id': 'owner_id',
            'category': 'category',
            'name': 'name',
            'description': 'description',
            'location': 'location',
            'total_investment_goal': 'Total Investment Goal (TIG)',
            'minimum_investment_amount': 'Minimum Investment Amount (MIA)',
            'listing_start': 'listing_start',
            'listing_end': 'listing_end',
        }
        missing = [label for key, label in required.items() if not data.get(key)]
        if missing:
            raise BadRequestError(f"Missing required fields: {', '.join(missing)}")

        listing_start = PropertyService._to_datetime(data['listing_start'], 'listing_start')
        listing_end = PropertyService._to_datetime(data['listing_end'], 'listing_end')
        if listing_start >= listing_end:
            raise BadRequestError('Listing end date must be after start date')

        status = data.get('status', PropertyStatus.DRAFT)
        if status not in PropertyStatus.ALL:
            raise BadRequestError(f"Invalid status '{status}'")

        mia = PropertyService._to_decimal(data['minimum_investment_amount'], 'minimum_investment_amount')
        par = data.get('price_to_rent_ratio')
        return {
            'owner_id': data['owner_id'],
            'name': data['name'],
            'description': data['description'],
            'location': data['location'],
            'category': PropertyService.parse_category(data['category']),
            'total_investment_goal': PropertyService._to_decimal(data['total_investment_goal'], 'total_investment_goal'),
            'minimum_investment_amount': mia,
            'price_to_rent_ratio': PropertyService._to_decimal(par, 'price_to_rent_ratio') if par is not None else None,
            'price': PropertyService._to_decimal(data['price'], 'price') if data.get('price') is not None else mia,
            'listing_start': listing_start,
            'listing_end': listing_end,
            'status': status,
        }

    @staticmethod
    def add_property(data):
        """Create a listing together with its zeroed stats row."""
        cleaned = PropertyService.validate_property_data(data)

        with unit_of_work():
            get_or_404(User, cleaned['owner_id'], 'Owner')
            prop = Property(**cleaned)
            db.session.add(prop)
            db.session.flush()
            db.session.add(PropertyStatsService.new_stats(prop.id))

        current_app.logger.info(f'Property {prop.id} created: {prop.name}')
        return prop

    @staticmethod
    def view_property(property_id, record_visit=True):
        """Fetch a property; a viewer-facing read also counts as a visit."""
        if not record_visit:
            return get_or_404(Property, property_id, 'Property')

        with unit_of_work():
            prop = get_or_404(Property, property_id, 'Property')
            StatsEvents.on_property_viewed(property_id)

        db.session.refresh(prop)
        return prop

    @staticmethod
    def view_properties(q=None, category=None, min_price=None, max_price=None,
                        owner_id=None, page=None, size=None):
        """
        Search listings.

        *q* matches name, description or location (case-insensitive).  Every
        tag in *category* must be present on the listing.  Listing reads do
        not count as visits.
        """
        query = Property.query
        if q:
            pattern = f'%{q}%'
            query = query.filter(or_(
                Property.name.ilike(pattern),
                Property.description.ilike(pattern),
                Property.location.ilike(pattern),
            ))
        if category:
            # Tags are stored as a JSON array, so match each quoted tag in its text form
            for tag in PropertyService.parse_category(category):
                query = query.filter(cast(Property.category, String).like(f'%"{tag}"%'))
        if min_price is not None:
            query = query.filter(Property.price >= PropertyService._to_decimal(min_price, 'min_price'))
        if max_price is not None:
            query = query.filter(Property.price <= PropertyService._to_decimal(max_price, 'max_price'))
        if owner_id is not None:
            query = query.filter(Property.owner_id == owner_id)

        query = query.order_by(Property.updated_at.desc(), Property.id.desc())
        items, count, total_pages = paginate(query, page, size)
        return {'properties': items, 'count': count, 'total_pages': total_pages}

    @staticmethod
    def update_property(property_id, data):
        """
        Apply a partial update to a listing.

        Status may move freely between draft, under_review and published;
        a sold listing stays sold.
        """
        changes = {k: v for k, v in data.items() if k in UPDATABLE_FIELDS}

        for field in ('price', 'total_investment_goal', 'minimum_investment_amount', 'price_to_rent_ratio'):
            if changes.get(field) is not None:
                changes[field] = PropertyService._to_decimal(changes[field], field)
                if changes[field] < 0:
                    raise BadRequestError(f'{field} cannot be negative')
        for field in ('listing_start', 'listing_end'):
            if field in changes:
                changes[field] = PropertyService._to_datetime(changes[field], field)
        if 'category' in changes:
            changes['category'] = PropertyService.parse_category(changes['category'])
        for field in ('name', 'total_investment_goal', 'minimum_investment_amount',
                      'listing_start', 'listing_end', 'status'):
            if field in changes and changes[field] in (None, ''):
                raise BadRequestError(f'{field} cannot be empty')
        if 'status' in changes and changes['status'] not in PropertyStatus.ALL:
            raise BadRequestError(f"Invalid status '{changes['status']}'")

        with unit_of_work():
            prop = get_or_404(Property, property_id, 'Property')
            if prop.status == PropertyStatus.SOLD and changes.get('status', prop.status) != PropertyStatus.SOLD:
                raise ConflictError('A sold property cannot change status')

            start = changes.get('listing_start', prop.listing_start)
            end = changes.get('listing_end', prop.listing_end)
            if start and end and start >= end:
                raise BadRequestError('Listing end date must be after start date')

            previous_status = prop.status
            for key, value in changes.items():
                setattr(prop, key, value)

        if prop.status != previous_status:
            current_app.logger.info(f'Property {property_id} status {previous_status} -> {prop.status}')
        else:
            current_app.logger.info(f'Property {property_id} updated: {", ".join(sorted(changes)) or "no changes"}')
        return prop

    @staticmethod
    def delete_property(property_id):
        """
        Remove a listing with its stats, tokenomics and reviews.

        Investments are financial records and are never cascaded, so a
        property that has any cannot be deleted.
        """
        with unit_of_work():
            prop = get_or_404(Property, property_id, 'Property')
            if prop.investments.count():
                raise ConflictError('Property has investments and cannot be deleted')
            db.session.delete(prop)

        current_app.logger.info(f'Property {property_id} deleted')

    @staticmethod
    def validate_tokenomics_data(data):
        missing = []
        supply = data.get('total_token_supply')
        price = data.get('token_price')
        distribution = data.get('distribution')

        try:
            supply = int(supply) if supply is not None else None
        except (TypeError, ValueError):
            supply = None
        if not supply or supply <= 0:
            missing.append('total_token_supply')
        price = PropertyService._to_decimal(price, 'token_price') if price is not None else None
        if not price or price <= 0:
            missing.append('token_price')
        if not distribution:
            missing.append('distribution')
        if not data.get('distribution_description'):
            missing.append('distribution_description')
        if missing:
            raise BadRequestError(f"Missing or invalid tokenomics fields: {', '.join(missing)}")

        shares = {}
        for key in DISTRIBUTION_KEYS:
            shares[key] = PropertyService._to_decimal(distribution.get(key) or 0, f'distribution {key}')
            if shares[key] < 0:
                raise BadRequestError(f'Distribution {key} percentage cannot be negative')
        if sum(shares.values()) != 100:
            raise BadRequestError('Distribution percentages must sum to 100%')

        return supply, price, shares

    @staticmethod
    def update_tokenomics(property_id, data):
        """Create or replace a property's tokenomics; remaining tokens reset to supply."""
        supply, price, shares = PropertyService.validate_tokenomics_data(data)

        with unit_of_work():
            prop = get_or_404(Property, property_id, 'Property')
            tokenomics = prop.tokenomics
            if tokenomics is None:
                tokenomics = Tokenomics(property_id=prop.id)
                db.session.add(tokenomics)

            tokenomics.total_token_supply = supply
            tokenomics.remaining_tokens = supply
            tokenomics.token_price = price
            tokenomics.team_percent = shares['team']
            tokenomics.advisors_percent = shares['advisors']
            tokenomics.investors_percent = shares['investors']
            tokenomics.other_percent = shares['other']
            tokenomics.distribution_description = data['distribution_description']

        return tokenomics

    @staticmethod
    def to_dict(prop):
        tokenomics = prop.tokenomics
        return {
            'id': prop.id,
            'owner_id': prop.owner_id,
            'name': prop.name,
            'description': prop.description,
            'location': prop.location,
            'category': prop.category or [],
            'price': float(prop.price) if prop.price is not None else None,
            'metrics': {
                'TIG': float(prop.total_investment_goal) if prop.total_investment_goal is not None else None,
                'MIA': float(prop.minimum_investment_amount) if prop.minimum_investment_amount is not None else None,
                'PAR': float(prop.price_to_rent_ratio) if prop.price_to_rent_ratio is not None else None,
            },
            'listing_period': {
                'start': prop.listing_start.isoformat() if prop.listing_start else None,
                'end': prop.listing_end.isoformat() if prop.listing_end else None,
            },
            'status': prop.status,
            'stats': prop.stats.to_dict() if prop.stats is not None else None,
            'tokenomics': {
                'total_token_supply': tokenomics.total_token_supply,
                'remaining_tokens': tokenomics.remaining_tokens,
                'token_price': float(tokenomics.token_price),
                'distribution': tokenomics.distribution,
                'distribution_description': tokenomics.distribution_description,
            } if tokenomics is not None else None,
        }
