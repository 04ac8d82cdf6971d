"""
Tests for services/investment_service.py
"""
from datetime import datetime
from decimal import Decimal

import pytest

from extensions import db
from models.investment import Investment, InvestmentStatus
from services.investment_service import InvestmentService
from services.property_stats_service import PropertyStatsService
from utils.errors import BadRequestError, NotFoundError


@pytest.fixture
def payload(prop, investor):
    return {
        'property_id': prop.id,
        'investor_id': investor.id,
        'amount': '1000.00',
        'shares_assigned': '25',
        'estimated_returns': '1150.00',
        'status': InvestmentStatus.FINISH,
        'property_owner': 'Olivia Owner',
        'date': '2026-02-01T09:00:00',
    }


class TestValidation:

    def test_all_missing_fields_reported(self):
        with pytest.raises(BadRequestError) as exc:
            InvestmentService.validate_investment_data({'amount': '10'})
        message = exc.value.message
        for field in ('property_id', 'investor_id', 'shares_assigned', 'estimated_returns', 'status'):
            assert field in message, f'{field} missing from error message'

    def test_types_coerced(self, payload):
        cleaned = InvestmentService.validate_investment_data(payload)
        assert cleaned['amount'] == Decimal('1000.00')
        assert cleaned['shares_assigned'] == 25
        assert cleaned['date'] == datetime(2026, 2, 1, 9, 0)

    def test_unknown_status(self, payload):
        payload['status'] = 'refunded'
        with pytest.raises(BadRequestError):
            InvestmentService.validate_investment_data(payload)

    def test_negative_amount(self, payload):
        payload['amount'] = '-5'
        with pytest.raises(BadRequestError):
            InvestmentService.validate_investment_data(payload)

    def test_bad_date(self, payload):
        payload['date'] = 'next tuesday'
        with pytest.raises(BadRequestError):
            InvestmentService.validate_investment_data(payload)

    def test_zero_amounts_are_not_missing(self, payload):
        payload['amount'] = 0
        payload['estimated_returns'] = '0'
        cleaned = InvestmentService.validate_investment_data(payload)
        assert cleaned['amount'] == Decimal('0')
        assert cleaned['estimated_returns'] == Decimal('0')

    def test_blank_field_reported_missing(self, payload):
        payload['property_owner'] = ''
        with pytest.raises(BadRequestError) as exc:
            InvestmentService.validate_investment_data(payload)
        assert 'property_owner' in exc.value.message


class TestAddInvestment:

    def test_creates_investment_and_updates_stats(self, payload, prop):
        inv = InvestmentService.add_investment(payload)

        assert inv.id is not None
        assert inv.amount == Decimal('1000.00')
        stats = PropertyStatsService.get_aggregate(prop.id)
        assert stats.total_investment_amount == Decimal('1000.00')
        assert stats.annual_yield == Decimal('15.00')
        assert stats.number_of_investors == 1

    def test_unknown_investor(self, payload):
        payload['investor_id'] = 999
        with pytest.raises(NotFoundError):
            InvestmentService.add_investment(payload)
        assert Investment.query.count() == 0

    def test_stats_failure_rolls_back_investment(self, payload, prop, monkeypatch):
        def boom(property_id):
            raise RuntimeError('stats store unavailable')

        monkeypatch.setattr(PropertyStatsService, 'recompute_yield', staticmethod(boom))

        with pytest.raises(RuntimeError):
            InvestmentService.add_investment(payload)

        assert Investment.query.count() == 0
        stats = PropertyStatsService.get_aggregate(prop.id)
        assert stats.number_of_investors == 0, 'investor bump must roll back with the investment'


class TestUpdateDelete:

    def test_update_unknown_investment(self):
        with pytest.raises(NotFoundError):
            InvestmentService.update_investment(12345, {'amount': '10'})

    def test_amount_update_recomputes(self, payload, prop):
        inv = InvestmentService.add_investment(payload)

        InvestmentService.update_investment(inv.id, {'amount': '1100.00', 'investor_id': 999})

        stats = PropertyStatsService.get_aggregate(prop.id)
        assert stats.total_investment_amount == Decimal('1100.00')
        assert stats.annual_yield == Decimal('4.55')
        assert db.session.get(Investment, inv.id).investor_id == payload['investor_id']

    def test_delete_last_investment_zeroes_stats(self, payload, prop):
        inv = InvestmentService.add_investment(payload)

        InvestmentService.delete_investment(inv.id)

        stats = PropertyStatsService.get_aggregate(prop.id)
        assert stats.number_of_investors == 0
        assert stats.total_investment_amount == Decimal('0')
        assert stats.annual_yield == Decimal('0')


# ---------------------------------------------------------------------------
# Listing / filtering
# ---------------------------------------------------------------------------

class TestViewInvestments:

    @pytest.fixture
    def listed(self, payload, make_user):
        """Five investments of 100..500, dated one day apart; the 300 one is pending."""
        other = make_user()
        for day, amount in enumerate((100, 200, 300, 400, 500), start=1):
            InvestmentService.add_investment(dict(
                payload,
                investor_id=payload['investor_id'] if amount != 300 else other.id,
                amount=str(amount),
                estimated_returns=str(amount + 50),
                status=InvestmentStatus.PENDING if amount == 300 else InvestmentStatus.FINISH,
                date=f'2026-03-{day:02d}T00:00:00',
            ))
        return other

    def test_filters(self, listed, prop):
        assert InvestmentService.view_investments(property_id=prop.id)['count'] == 5
        assert InvestmentService.view_investments(investor_id=listed.id)['count'] == 1
        assert InvestmentService.view_investments(status=InvestmentStatus.FINISH)['count'] == 4

    def test_amount_range(self, listed):
        result = InvestmentService.view_investments(min_amount='200', max_amount=400)
        amounts = [inv.amount for inv in result['investments']]
        assert amounts == [Decimal('400.00'), Decimal('300.00'), Decimal('200.00')]

    def test_invalid_amount_bound(self, listed):
        with pytest.raises(BadRequestError):
            InvestmentService.view_investments(min_amount='lots')

    def test_pagination(self, listed):
        first = InvestmentService.view_investments(page=1, size=2)
        last = InvestmentService.view_investments(page=3, size=2)

        assert first['count'] == 5
        assert first['total_pages'] == 3
        assert [inv.amount for inv in first['investments']] == [Decimal('500.00'), Decimal('400.00')]
        assert [inv.amount for inv in last['investments']] == [Decimal('100.00')]

    def test_without_page_size_returns_everything(self, listed):
        result = InvestmentService.view_investments(page=2)
        assert len(result['investments']) == 5
        assert result['total_pages'] == 1
