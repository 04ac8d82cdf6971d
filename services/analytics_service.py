"""
Analytics Service
=================
Time-bucketed dashboard metrics computed straight from raw investment,
property and user rows (no cache involved).

Windows
-------
  day   - last 30 days, bucketed per calendar day      ('2026-03-14')
  week  - last 84 days, bucketed per ISO week          ('Week 11')
  month - last 12 calendar months, bucketed per month  ('2026-03')

The current window is [anchor - W, anchor]; the previous window is the equal
length immediately before it, [anchor - 2W, anchor - W).  Scalar deltas compare
the two with change(), which reports a 0% change when the previous value is 0.

Scopes
------
One algorithm serves every dashboard; MetricsScope narrows the rows:

  MetricsScope.platform()        - every investment (admin dashboard)
  MetricsScope.investor(user_id) - one investor's own investments
  MetricsScope.owner(user_id)    - investments in one owner's listings

Primary entry points
--------------------
  get_time_metrics()  - series + period-over-period deltas
  get_owner_stats()   - listing/investment summary for a property owner
  change()            - shared zero-guarded delta helper
"""
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from dateutil.relativedelta import relativedelta
from flask import current_app

from models.investment import Investment, InvestmentStatus
from models.property import Property
from models.users import User, UserRole
from utils.errors import BadRequestError


class TimePeriod(str, Enum):
    DAY = 'day'
    WEEK = 'week'
    MONTH = 'month'


WINDOW_LENGTHS = {
    TimePeriod.DAY: relativedelta(days=30),
    TimePeriod.WEEK: relativedelta(days=84),
    TimePeriod.MONTH: relativedelta(months=12),
}


def change(current, previous):
    """
    Period-over-period delta.

    Returns {'amount': current - previous, 'percentage': % of previous}, with
    percentage 0 when previous is not positive.
    """
    current = float(current or 0)
    previous = float(previous or 0)
    amount = current - previous
    percentage = (amount / previous) * 100 if previous > 0 else 0
    return {'amount': round(amount, 2), 'percentage': round(percentage, 2)}


class MetricsScope:
    """Which rows a metrics report covers."""
    PLATFORM = 'platform'
    INVESTOR = 'investor'
    OWNER = 'owner'

    def __init__(self, kind, subject_id=None):
        if kind not in (self.PLATFORM, self.INVESTOR, self.OWNER):
            raise BadRequestError(f'Unknown metrics scope: {kind}')
        if kind != self.PLATFORM and subject_id is None:
            raise BadRequestError(f'A user id is required for {kind} metrics')
        self.kind = kind
        self.subject_id = subject_id

    @classmethod
    def platform(cls):
        return cls(cls.PLATFORM)

    @classmethod
    def investor(cls, investor_id):
        return cls(cls.INVESTOR, investor_id)

    @classmethod
    def owner(cls, owner_id):
        return cls(cls.OWNER, owner_id)

    @property
    def default_statuses(self):
        """Revenue counts finished investments; an investor sees everything not cancelled."""
        if self.kind == self.INVESTOR:
            return tuple(s for s in InvestmentStatus.ALL if s != InvestmentStatus.CANCEL)
        return (InvestmentStatus.FINISH,)

    def __repr__(self):
        return f'<MetricsScope {self.kind} {self.subject_id}>'


class AnalyticsService:
    """Windowed time-series and delta calculations for dashboards."""

    @staticmethod
    def parse_period(period):
        try:
            return TimePeriod(period)
        except ValueError:
            raise BadRequestError(
                f"Invalid period '{period}'. Expected one of: day, week, month"
            )

    @staticmethod
    def get_windows(period, anchor):
        """
        Return ((current_start, current_end), (previous_start, previous_end)).

        current_end is the anchor itself; previous_end equals current_start and
        is exclusive.
        """
        span = WINDOW_LENGTHS[period]
        current_start = anchor - span
        previous_start = current_start - span
        return (current_start, anchor), (previous_start, current_start)

    @staticmethod
    def bucket_for(period, moment):
        """
        Truncate *moment* to its calendar bucket.

        Returns (sort_key, label).  Week buckets sort on (ISO year, ISO week) so
        a window spanning new year orders correctly even though the labels
        restart at Week 01.
        """
        if period is TimePeriod.DAY:
            day = moment.date()
            return day.toordinal(), day.isoformat()
        if period is TimePeriod.WEEK:
            iso_year, iso_week, _ = moment.isocalendar()
            return (iso_year, iso_week), f'Week {iso_week:02d}'
        return (moment.year, moment.month), f'{moment.year:04d}-{moment.month:02d}'

    @staticmethod
    def _scoped_investments(scope, statuses):
        query = Investment.query
        if statuses:
            query = query.filter(Investment.status.in_(statuses))
        if scope.kind == MetricsScope.INVESTOR:
            query = query.filter(Investment.investor_id == scope.subject_id)
        elif scope.kind == MetricsScope.OWNER:
            query = query.join(Property, Investment.property_id == Property.id).filter(
                Property.owner_id == scope.subject_id
            )
        return query

    @staticmethod
    def _between(query, column, start, end, end_inclusive):
        query = query.filter(column >= start)
        return query.filter(column <= end) if end_inclusive else query.filter(column < end)

    @staticmethod
    def build_series(period, investments):
        """
        Group investments into buckets.

        Returns a list of {'period', 'investment_amount', 'investor_count'}
        ordered ascending by bucket.
        """
        buckets = {}
        for inv in investments:
            key, label = AnalyticsService.bucket_for(period, inv.date)
            bucket = buckets.setdefault(key, {'label': label, 'amount': Decimal('0'), 'investors': set()})
            bucket['amount'] += Decimal(str(inv.amount))
            bucket['investors'].add(inv.investor_id)

        return [
            {
                'period': bucket['label'],
                'investment_amount': float(bucket['amount']),
                'investor_count': len(bucket['investors']),
            }
            for _, bucket in sorted(buckets.items(), key=lambda item: item[0])
        ]

    @staticmethod
    def _delta(current, previous):
        return {
            'current': float(current),
            'previous': float(previous),
            'change': change(current, previous),
        }

    @staticmethod
    def _count_in_windows(query, column, windows):
        (cur_start, cur_end), (prev_start, prev_end) = windows
        current = AnalyticsService._between(query, column, cur_start, cur_end, True).count()
        previous = AnalyticsService._between(query, column, prev_start, prev_end, False).count()
        return AnalyticsService._delta(current, previous)

    @staticmethod
    def get_time_metrics(period, scope=None, anchor=None, statuses=None):
        """
        Time series and period-over-period deltas for a dashboard.

        Args:
            period:   'day' | 'week' | 'month' (or TimePeriod)
            scope:    MetricsScope, defaults to platform-wide
            anchor:   end of the current window (naive UTC), defaults to now
            statuses: investment statuses that qualify; defaults per scope

        Returns a dict with 'series', 'revenue' and 'investments' for every
        scope, 'new_listings' for platform/owner scopes and 'new_owners' /
        'new_investors' for the platform scope.
        """
        period = AnalyticsService.parse_period(period)
        scope = scope or MetricsScope.platform()
        anchor = anchor or datetime.now(timezone.utc).replace(tzinfo=None)
        statuses = tuple(statuses) if statuses else scope.default_statuses

        windows = AnalyticsService.get_windows(period, anchor)
        (cur_start, cur_end), (prev_start, prev_end) = windows

        base = AnalyticsService._scoped_investments(scope, statuses)
        current = AnalyticsService._between(base, Investment.date, cur_start, cur_end, True).all()
        previous = AnalyticsService._between(base, Investment.date, prev_start, prev_end, False).all()

        current_revenue = sum((Decimal(str(inv.amount)) for inv in current), Decimal('0'))
        previous_revenue = sum((Decimal(str(inv.amount)) for inv in previous), Decimal('0'))

        report = {
            'period': period.value,
            'scope': scope.kind,
            'subject_id': scope.subject_id,
            'window': {'start': cur_start.isoformat(), 'end': cur_end.isoformat()},
            'previous_window': {'start': prev_start.isoformat(), 'end': prev_end.isoformat()},
            'series': AnalyticsService.build_series(period, current),
            'revenue': AnalyticsService._delta(current_revenue, previous_revenue),
            'investments': AnalyticsService._delta(len(current), len(previous)),
        }

        if scope.kind in (MetricsScope.PLATFORM, MetricsScope.OWNER):
            listings = Property.query
            if scope.kind == MetricsScope.OWNER:
                listings = listings.filter(Property.owner_id == scope.subject_id)
            report['new_listings'] = AnalyticsService._count_in_windows(
                listings, Property.created_at, windows
            )

        if scope.kind == MetricsScope.PLATFORM:
            report['new_owners'] = AnalyticsService._count_in_windows(
                User.query.filter(User.role == UserRole.OWNER), User.created_at, windows
            )
            report['new_investors'] = AnalyticsService._count_in_windows(
                User.query.filter(User.role == UserRole.INVESTOR), User.created_at, windows
            )

        current_app.logger.debug(
            f'Time metrics {period.value} for {scope}: {len(current)} current, {len(previous)} previous investments'
        )
        return report

    @staticmethod
    def get_owner_stats(owner_id, now=None):
        """
        Listing and investment summary for a property owner.

        completed/pending percentage_change is the share of each bucket that
        arrived in the last month (0 when the bucket is empty).
        """
        now = now or datetime.now(timezone.utc).replace(tzinfo=None)
        one_month_ago = now - relativedelta(months=1)

        properties = Property.query.filter_by(owner_id=owner_id).all()

        total_invested = Decimal('0')
        investor_ids = set()
        first_investment = {}
        completed = pending = 0
        recent_completed = recent_pending = recent_investments = 0

        for prop in properties:
            if prop.stats is not None:
                total_invested += Decimal(str(prop.stats.total_investment_amount or 0))

            for inv in prop.investments.order_by(Investment.date.asc()).all():
                investor_ids.add(inv.investor_id)
                if inv.investor_id not in first_investment or inv.date < first_investment[inv.investor_id]:
                    first_investment[inv.investor_id] = inv.date

                is_recent = inv.date > one_month_ago
                if inv.is_finished:
                    completed += 1
                    recent_completed += 1 if is_recent else 0
                else:
                    pending += 1
                    recent_pending += 1 if is_recent else 0
                recent_investments += 1 if is_recent else 0

        new_investors = sum(1 for first in first_investment.values() if first > one_month_ago)

        return {
            'total_listings': len(properties),
            'active_listings': sum(1 for p in properties if not p.is_draft),
            'total_investment_amount': float(total_invested),
            'total_investors_count': len(investor_ids),
            'investments': {
                'completed': {
                    'count': completed,
                    'percentage_change': round(recent_completed / completed * 100, 2) if completed else 0,
                },
                'pending': {
                    'count': pending,
                    'percentage_change': round(recent_pending / pending * 100, 2) if pending else 0,
                },
            },
            'recent_activity': {
                'new_investors': new_investors,
                'new_investments': recent_investments,
            },
        }
