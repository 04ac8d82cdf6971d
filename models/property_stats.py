from extensions import db
from datetime import datetime, timezone


class PropertyStats(db.Model):
    """
    Cache table of derived per-property statistics.

    Raw investments and reviews are the source of truth; every column here can
    be rebuilt from them (see PropertyStatsService.rebuild_all).
    """
    __tablename__ = 'property_stats'

    property_id = db.Column(db.Integer, db.ForeignKey('properties.id', ondelete='CASCADE'), primary_key=True)

    # Recomputed from finished investments
    annual_yield = db.Column('yield', db.Numeric(10, 2), nullable=False, default=0)  # percentage
    total_investment_amount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    total_estimated_returns = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    number_of_investors = db.Column(db.Integer, nullable=False, default=0)

    # Running mean over reviews (kept unrounded)
    overall_rating = db.Column(db.Float, nullable=False, default=0.0)
    rating_count = db.Column(db.Integer, nullable=False, default=0)

    # Monotonic, never decremented
    visit_count = db.Column(db.Integer, nullable=False, default=0)

    last_calculated = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc).replace(tzinfo=None))

    property = db.relationship('Property', back_populates='stats')

    def __repr__(self):
        return (f'<PropertyStats {self.property_id}: yield={self.annual_yield} '
                f'rating={self.overall_rating}/{self.rating_count} visits={self.visit_count}>')

    def to_dict(self):
        return {
            'property_id': self.property_id,
            'yield': float(self.annual_yield or 0),
            'total_investment_amount': float(self.total_investment_amount or 0),
            'total_estimated_returns': float(self.total_estimated_returns or 0),
            'number_of_investors': self.number_of_investors or 0,
            'overall_rating': self.overall_rating or 0.0,
            'rating_count': self.rating_count or 0,
            'visit_count': self.visit_count or 0,
            'last_calculated': self.last_calculated.isoformat() if self.last_calculated else None,
        }
