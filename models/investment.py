from extensions import db
from datetime import datetime, timezone


class InvestmentStatus:
    PRESALE = 'presale'
    INITIAL_RELEASE = 'initial_release'
    VESTING = 'vesting'
    FINISH = 'finish'  # Only finished investments count towards yield/returns
    PENDING = 'pending'
    CANCEL = 'cancel'

    ALL = (PRESALE, INITIAL_RELEASE, VESTING, FINISH, PENDING, CANCEL)


class Investment(db.Model):
    """A single purchase of shares in a property"""
    __tablename__ = 'investments'

    id = db.Column(db.Integer, primary_key=True)
    property_id = db.Column(db.Integer, db.ForeignKey('properties.id'), nullable=False, index=True)
    investor_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)

    amount = db.Column(db.Numeric(12, 2), nullable=False)
    date = db.Column(db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc).replace(tzinfo=None))
    shares_assigned = db.Column(db.Integer, nullable=False)
    estimated_returns = db.Column(db.Numeric(12, 2), nullable=False)
    status = db.Column(db.String(20), nullable=False, default=InvestmentStatus.PENDING, index=True)
    property_owner = db.Column(db.String(255))

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc).replace(tzinfo=None))

    @property
    def is_finished(self):
        return self.status == InvestmentStatus.FINISH

    # Relationships (keep below the @property helpers: `property` shadows the builtin)
    property = db.relationship('Property', back_populates='investments')
    investor = db.relationship('User', back_populates='investments')

    def __repr__(self):
        return f'<Investment {self.id}: {self.amount} in property {self.property_id} ({self.status})>'
