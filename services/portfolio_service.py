"""
Portfolio Service
=================
Values an investor's holdings from their investments and the PropertyStats
cache of each property.

Share ratio
-----------
  shares_assigned / (tokenomics.total_token_supply or property TIG or 1)

The fallback chain guarantees a non-zero denominator.  The ratio prorates the
property's cached total_estimated_returns into the investor's current value.

Rental accrual
--------------
  monthly_rent   = (estimated_returns - amount) / 12
  months_elapsed = whole 30-day periods since the investment date

When monthly_rent is finite and months_elapsed > 0, monthly_rent * months_elapsed
is added to total_earned and one month's rent to the pending balance.
"""
import math
from datetime import datetime, timezone
from decimal import Decimal

from flask import current_app

from models.investment import Investment
from services.analytics_service import change

DAYS_PER_MONTH = 30


class PortfolioService:
    """Investor position value, rental income and status breakdown."""

    @staticmethod
    def share_ratio(investment):
        prop = investment.property
        tokenomics = prop.tokenomics if prop is not None else None
        denominator = (
            (tokenomics.total_token_supply if tokenomics is not None else None)
            or (float(prop.total_investment_goal) if prop is not None and prop.total_investment_goal else None)
            or 1
        )
        return float(investment.shares_assigned or 0) / float(denominator)

    @staticmethod
    def months_elapsed(investment_date, now):
        return math.floor((now - investment_date).total_seconds() / (DAYS_PER_MONTH * 86400))

    @staticmethod
    def monthly_rent(investment):
        return (float(investment.estimated_returns) - float(investment.amount)) / 12

    @staticmethod
    def get_investor_portfolio(investor_id, now=None, top_limit=None):
        """
        Build the portfolio report for one investor (investments of any status).

        Returns a dict:
            total_investments, total_invested_amount, account_value,
            value_change {amount, percentage},
            investments {processing {count, amount}, completed {count, amount}},
            rentals {balance, total_earned, pending_payouts},
            portfolio {total_property_value, value_change},
            top_investments [...]
        """
        now = now or datetime.now(timezone.utc).replace(tzinfo=None)
        if top_limit is None:
            top_limit = current_app.config.get('TOP_INVESTMENTS_LIMIT', 5)

        investments = Investment.query.filter_by(investor_id=investor_id).order_by(
            Investment.date.asc(), Investment.id.asc()
        ).all()

        total_invested = Decimal('0')
        current_value = 0.0
        total_earned = 0.0
        rental_balance = 0.0
        completed = {'count': 0, 'amount': Decimal('0')}
        processing = {'count': 0, 'amount': Decimal('0')}
        property_values = {}
        positions = []

        for inv in investments:
            amount = Decimal(str(inv.amount))
            total_invested += amount

            bucket = completed if inv.is_finished else processing
            bucket['count'] += 1
            bucket['amount'] += amount

            prop = inv.property
            stats = prop.stats if prop is not None else None
            ratio = PortfolioService.share_ratio(inv)
            position_value = float(stats.total_estimated_returns or 0) * ratio if stats is not None else 0.0
            current_value += position_value

            rent = PortfolioService.monthly_rent(inv)
            months = PortfolioService.months_elapsed(inv.date, now)
            if math.isfinite(rent) and months > 0:
                total_earned += rent * months
                rental_balance += rent

            if prop is not None:
                property_values[prop.id] = float(prop.price or 0)
                positions.append({
                    'investment_id': inv.id,
                    'property_id': prop.id,
                    'property_name': prop.name,
                    'location': prop.location,
                    'invested_amount': float(amount),
                    'current_value': round(position_value, 2),
                    'value_change': change(position_value, amount),
                    'rental_yield': float(stats.annual_yield or 0) if stats is not None else 0.0,
                    'investment_date': inv.date.isoformat(),
                })

        positions.sort(key=lambda p: p['current_value'], reverse=True)
        value_change = change(current_value, total_invested)

        return {
            'total_investments': len(investments),
            'total_invested_amount': float(total_invested),
            'account_value': round(current_value, 2),
            'value_change': value_change,
            'investments': {
                'processing': {'count': processing['count'], 'amount': float(processing['amount'])},
                'completed': {'count': completed['count'], 'amount': float(completed['amount'])},
            },
            'rentals': {
                'balance': round(rental_balance, 2),
                'total_earned': round(total_earned, 2),
                'pending_payouts': round(rental_balance, 2),
            },
            'portfolio': {
                'total_property_value': round(sum(property_values.values()), 2),
                'value_change': value_change,
            },
            'top_investments': positions[:top_limit],
        }
