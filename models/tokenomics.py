from extensions import db


class Tokenomics(db.Model):
    """Token supply and distribution for a property (at most one per property)"""
    __tablename__ = 'tokenomics'

    property_id = db.Column(db.Integer, db.ForeignKey('properties.id', ondelete='CASCADE'), primary_key=True)

    total_token_supply = db.Column(db.Integer)
    remaining_tokens = db.Column(db.Integer)
    token_price = db.Column(db.Numeric(12, 2))

    # Distribution percentages - must sum to 100
    team_percent = db.Column(db.Numeric(5, 2), default=0)
    advisors_percent = db.Column(db.Numeric(5, 2), default=0)
    investors_percent = db.Column(db.Numeric(5, 2), default=0)
    other_percent = db.Column(db.Numeric(5, 2), default=0)
    distribution_description = db.Column(db.Text)

    @property
    def distribution(self):
        return {
            'team': float(self.team_percent or 0),
            'advisors': float(self.advisors_percent or 0),
            'investors': float(self.investors_percent or 0),
            'other': float(self.other_percent or 0),
        }

    # Keep below the @property helpers: `property` shadows the builtin
    property = db.relationship('Property', back_populates='tokenomics')

    def __repr__(self):
        return f'<Tokenomics property={self.property_id} supply={self.total_token_supply}>'
