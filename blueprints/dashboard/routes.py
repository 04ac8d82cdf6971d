from flask import request
from . import dashboard_bp
from models.users import User
from services.analytics_service import AnalyticsService, MetricsScope
from services.portfolio_service import PortfolioService
from utils.db_helpers import get_or_404
from utils.responses import success


@dashboard_bp.route('/metrics')
def platform_metrics():
    """Platform-wide admin dashboard"""
    report = AnalyticsService.get_time_metrics(request.args.get('period', 'month'))
    return success(report, 'Metrics retrieved successfully')


@dashboard_bp.route('/investors/<int:investor_id>/metrics')
def investor_metrics(investor_id):
    get_or_404(User, investor_id, 'Investor')
    report = AnalyticsService.get_time_metrics(
        request.args.get('period', 'month'), MetricsScope.investor(investor_id)
    )
    return success(report, 'Investor metrics retrieved successfully')


@dashboard_bp.route('/investors/<int:investor_id>/portfolio')
def investor_portfolio(investor_id):
    get_or_404(User, investor_id, 'Investor')
    return success(PortfolioService.get_investor_portfolio(investor_id), 'Investor stats retrieved successfully')


@dashboard_bp.route('/owners/<int:owner_id>/stats')
def owner_stats(owner_id):
    get_or_404(User, owner_id, 'Owner')
    stats = AnalyticsService.get_owner_stats(owner_id)
    if request.args.get('period'):
        stats['time_series'] = AnalyticsService.get_time_metrics(
            request.args['period'], MetricsScope.owner(owner_id)
        )
    return success(stats, 'Owner stats retrieved successfully')
