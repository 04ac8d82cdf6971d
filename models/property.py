from extensions import db
from datetime import datetime, timezone


class PropertyStatus:
    """Listing lifecycle: draft -> under_review -> published -> sold"""
    DRAFT = 'draft'
    UNDER_REVIEW = 'under_review'
    PUBLISHED = 'published'
    SOLD = 'sold'

    ALL = (DRAFT, UNDER_REVIEW, PUBLISHED, SOLD)


class Property(db.Model):
    """A listed property that investors buy fractional shares in"""
    __tablename__ = 'properties'

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    location = db.Column(db.String(255))
    category = db.Column(db.JSON, default=list)  # list of tag strings
    price = db.Column(db.Numeric(12, 2))

    # Metrics
    total_investment_goal = db.Column(db.Numeric(14, 2))  # TIG
    minimum_investment_amount = db.Column(db.Numeric(12, 2))  # MIA
    price_to_rent_ratio = db.Column(db.Numeric(8, 2))  # PAR (optional)

    # Listing window
    listing_start = db.Column(db.DateTime)
    listing_end = db.Column(db.DateTime)

    status = db.Column(db.String(20), nullable=False, default=PropertyStatus.DRAFT)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc).replace(tzinfo=None), nullable=False)
    updated_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc).replace(tzinfo=None), onupdate=lambda: datetime.now(timezone.utc).replace(tzinfo=None))

    # Relationships
    owner = db.relationship('User', back_populates='properties')
    stats = db.relationship('PropertyStats', back_populates='property', uselist=False,
                            cascade='all, delete-orphan')
    tokenomics = db.relationship('Tokenomics', back_populates='property', uselist=False,
                                 cascade='all, delete-orphan')
    investments = db.relationship('Investment', back_populates='property', lazy='dynamic')
    reviews = db.relationship('Review', back_populates='property', cascade='all, delete-orphan')

    def __repr__(self):
        return f'<Property {self.name}>'

    @property
    def is_draft(self):
        return self.status == PropertyStatus.DRAFT
