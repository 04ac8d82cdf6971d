# Models package - Import all models for Flask-SQLAlchemy

from models.investment import Investment, InvestmentStatus
from models.property import Property, PropertyStatus
from models.property_stats import PropertyStats
from models.review import Review
from models.tokenomics import Tokenomics
from models.users import User, UserRole

__all__ = [
    'Investment',
    'InvestmentStatus',
    'Property',
    'PropertyStatus',
    'PropertyStats',
    'Review',
    'Tokenomics',
    'User',
    'UserRole',
]
