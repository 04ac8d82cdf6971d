from extensions import db
from datetime import datetime, timezone


class Review(db.Model):
    """A 1-5 star rating of a property (one per reviewer per property)"""
    __tablename__ = 'reviews'
    __table_args__ = (
        db.UniqueConstraint('property_id', 'reviewer_id', name='uix_review_property_reviewer'),
    )

    id = db.Column(db.Integer, primary_key=True)
    property_id = db.Column(db.Integer, db.ForeignKey('properties.id', ondelete='CASCADE'), nullable=False, index=True)
    reviewer_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    rating = db.Column(db.Integer, nullable=False)
    comment = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc).replace(tzinfo=None))
    updated_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc).replace(tzinfo=None), onupdate=lambda: datetime.now(timezone.utc).replace(tzinfo=None))

    # Relationships
    property = db.relationship('Property', back_populates='reviews')
    reviewer = db.relationship('User')

    def __repr__(self):
        return f'<Review {self.id}: {self.rating}* property={self.property_id}>'
