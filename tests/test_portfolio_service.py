"""
Tests for services/portfolio_service.py
"""
from datetime import datetime

import pytest

from models.investment import InvestmentStatus
from services.investment_service import InvestmentService
from services.portfolio_service import PortfolioService
from services.property_service import PropertyService

NOW = datetime(2026, 6, 1)


def _tokenomics(property_id, supply):
    PropertyService.update_tokenomics(property_id, {
        'total_token_supply': supply,
        'token_price': '10.00',
        'distribution': {'team': 10, 'advisors': 5, 'investors': 80, 'other': 5},
        'distribution_description': 'Founders vest over two years',
    })


def _invest(prop, investor, amount, returns, shares, status, date):
    return InvestmentService.add_investment({
        'property_id': prop.id, 'investor_id': investor.id, 'amount': amount,
        'shares_assigned': shares, 'estimated_returns': returns, 'status': status,
        'property_owner': 'Olivia Owner', 'date': date,
    })


class TestShareRatio:

    def test_uses_token_supply(self, prop, investor, make_investment):
        _tokenomics(prop.id, 1000)
        inv = make_investment(prop.id, investor.id, 100, 110, shares=50)
        assert PortfolioService.share_ratio(inv) == pytest.approx(0.05)

    def test_falls_back_to_investment_goal(self, make_property, investor, make_investment):
        prop = make_property(tig=500000)
        inv = make_investment(prop.id, investor.id, 100, 110, shares=5000)
        assert PortfolioService.share_ratio(inv) == pytest.approx(0.01)

    def test_falls_back_to_one(self, make_property, investor, make_investment):
        prop = make_property(tig=None)
        inv = make_investment(prop.id, investor.id, 100, 110, shares=3)
        assert PortfolioService.share_ratio(inv) == pytest.approx(3.0)


class TestRentAccrual:

    def test_months_elapsed_counts_whole_thirty_day_periods(self):
        start = datetime(2026, 1, 1)
        assert PortfolioService.months_elapsed(start, datetime(2026, 1, 30)) == 0
        assert PortfolioService.months_elapsed(start, datetime(2026, 1, 31)) == 1
        assert PortfolioService.months_elapsed(start, NOW) == 5

    def test_monthly_rent(self, prop, investor, make_investment):
        inv = make_investment(prop.id, investor.id, 1000, 1120)
        assert PortfolioService.monthly_rent(inv) == pytest.approx(10.0)


class TestInvestorPortfolio:

    def test_full_report(self, make_property, investor):
        tokenised = make_property(name='Tokenised')
        _tokenomics(tokenised.id, 1000)
        plain = make_property(name='Plain')

        _invest(tokenised, investor, '1000', '1120', 100, InvestmentStatus.FINISH, '2026-01-01T00:00:00')
        _invest(plain, investor, '500', '560', 5000, InvestmentStatus.PENDING, '2026-05-20T00:00:00')

        report = PortfolioService.get_investor_portfolio(investor.id, now=NOW)

        assert report['total_investments'] == 2
        assert report['total_invested_amount'] == 1500.0
        assert report['account_value'] == pytest.approx(112.0)
        assert report['value_change'] == {'amount': -1388.0, 'percentage': -92.53}
        assert report['investments'] == {
            'processing': {'count': 1, 'amount': 500.0},
            'completed': {'count': 1, 'amount': 1000.0},
        }
        assert report['rentals'] == {'balance': 10.0, 'total_earned': 50.0, 'pending_payouts': 10.0}
        assert report['portfolio']['total_property_value'] == 500000.0

        top = report['top_investments']
        assert [p['property_name'] for p in top] == ['Tokenised', 'Plain']
        assert top[0]['current_value'] == pytest.approx(112.0)
        assert top[0]['rental_yield'] == 12.0
        assert top[1]['current_value'] == 0.0

    def test_top_investments_limit(self, prop, investor, make_investment):
        for amount in (100, 200, 300):
            make_investment(prop.id, investor.id, amount, amount + 10)

        report = PortfolioService.get_investor_portfolio(investor.id, now=NOW, top_limit=2)

        assert report['total_investments'] == 3
        assert len(report['top_investments']) == 2

    def test_investor_without_investments(self, investor):
        report = PortfolioService.get_investor_portfolio(investor.id, now=NOW)
        assert report['total_investments'] == 0
        assert report['account_value'] == 0
        assert report['value_change'] == {'amount': 0.0, 'percentage': 0}
        assert report['top_investments'] == []
