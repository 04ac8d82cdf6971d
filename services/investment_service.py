"""
Investment Service
Create, update and delete investments, keeping PropertyStats in the same
transaction as the investment row.
"""
from datetime import datetime
from decimal import Decimal, InvalidOperation

from flask import current_app

from extensions import db
from models.investment import Investment, InvestmentStatus
from models.property import Property
from models.users import User
from services.stats_events import StatsEvents
from utils.db_helpers import unit_of_work, get_or_404, paginate
from utils.errors import BadRequestError

REQUIRED_FIELDS = (
    'property_id', 'investor_id', 'amount', 'shares_assigned',
    'estimated_returns', 'status', 'property_owner',
)
UPDATABLE_FIELDS = (
    'property_id', 'amount', 'date', 'shares_assigned',
    'estimated_returns', 'status', 'property_owner',
)


class InvestmentService:

    @staticmethod
    def _parse_decimal(value, field):
        try:
            return Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise BadRequestError(f'{field} must be a number')

    @staticmethod
    def _parse_date(value):
        if value is None or isinstance(value, datetime):
            return value
        try:
            return datetime.fromisoformat(str(value))
        except ValueError:
            raise BadRequestError('date must be an ISO-8601 datetime')

    @staticmethod
    def validate_investment_data(data, partial=False):
        """
        Check and coerce an investment payload.

        Every missing field is reported at once.  With *partial* only the
        supplied fields are checked (updates).
        """
        if not partial:
            missing = [field for field in REQUIRED_FIELDS if data.get(field) in (None, '')]
            if missing:
                raise BadRequestError(f"Missing or invalid fields: {', '.join(missing)}")

        cleaned = dict(data)
        for field in ('amount', 'estimated_returns'):
            if field in cleaned:
                cleaned[field] = InvestmentService._parse_decimal(cleaned[field], field)
                if cleaned[field] < 0:
                    raise BadRequestError(f'{field} cannot be negative')
        if 'shares_assigned' in cleaned:
            try:
                cleaned['shares_assigned'] = int(cleaned['shares_assigned'])
            except (TypeError, ValueError):
                raise BadRequestError('shares_assigned must be an integer')
        if 'status' in cleaned and cleaned['status'] not in InvestmentStatus.ALL:
            raise BadRequestError(
                f"Invalid status '{cleaned['status']}'. Expected one of: {', '.join(InvestmentStatus.ALL)}"
            )
        if 'date' in cleaned:
            cleaned['date'] = InvestmentService._parse_date(cleaned['date'])
        return cleaned

    @staticmethod
    def add_investment(data):
        """Create an investment and update its property's stats atomically."""
        cleaned = InvestmentService.validate_investment_data(data)

        with unit_of_work():
            get_or_404(Property, cleaned['property_id'])
            get_or_404(User, cleaned['investor_id'], 'Investor')

            investment = Investment(**{
                key: value for key, value in cleaned.items()
                if key in REQUIRED_FIELDS + ('date',) and value is not None
            })
            db.session.add(investment)
            StatsEvents.on_investment_created(investment)

        current_app.logger.info(
            f'Investment {investment.id} created: {investment.amount} in property {investment.property_id}'
        )
        return investment

    @staticmethod
    def update_investment(investment_id, data):
        """Apply *data* to an investment; stats are recomputed whatever changed."""
        cleaned = InvestmentService.validate_investment_data(
            {k: v for k, v in data.items() if k in UPDATABLE_FIELDS}, partial=True
        )

        with unit_of_work():
            investment = get_or_404(Investment, investment_id)
            previous_property_id = investment.property_id
            if 'property_id' in cleaned:
                get_or_404(Property, cleaned['property_id'])

            for key, value in cleaned.items():
                setattr(investment, key, value)
            StatsEvents.on_investment_updated(investment, previous_property_id=previous_property_id)

        return investment

    @staticmethod
    def delete_investment(investment_id):
        with unit_of_work():
            investment = get_or_404(Investment, investment_id)
            db.session.delete(investment)
            StatsEvents.on_investment_deleted(investment)

        current_app.logger.info(f'Investment {investment_id} deleted')

    @staticmethod
    def view_investments(property_id=None, investor_id=None, status=None,
                         min_amount=None, max_amount=None, page=None, size=None):
        """
        Filtered, newest-first investment listing.

        Returns {'investments', 'count', 'total_pages'}; pagination applies only
        when both *page* and *size* are positive.
        """
        query = Investment.query
        if property_id:
            query = query.filter_by(property_id=property_id)
        if investor_id:
            query = query.filter_by(investor_id=investor_id)
        if status:
            query = query.filter_by(status=status)
        if min_amount is not None:
            query = query.filter(Investment.amount >= InvestmentService._parse_decimal(min_amount, 'min_amount'))
        if max_amount is not None:
            query = query.filter(Investment.amount <= InvestmentService._parse_decimal(max_amount, 'max_amount'))

        investments, count, total_pages = paginate(
            query.order_by(Investment.date.desc(), Investment.id.desc()), page, size
        )
        return {'investments': investments, 'count': count, 'total_pages': total_pages}

    @staticmethod
    def to_dict(investment):
        return {
            'id': investment.id,
            'property_id': investment.property_id,
            'investor_id': investment.investor_id,
            'amount': float(investment.amount),
            'date': investment.date.isoformat() if investment.date else None,
            'shares_assigned': investment.shares_assigned,
            'estimated_returns': float(investment.estimated_returns),
            'status': investment.status,
            'property_owner': investment.property_owner,
        }
