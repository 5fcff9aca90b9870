from datetime import datetime

from .extensions import db


class User(db.Model):
    __tablename__ = 'users'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(80), unique=True, nullable=False)
    # werkzeug hash, the column keeps its legacy name
    password = db.Column(db.String(255), nullable=False)
    age = db.Column(db.Integer, nullable=False)
    initial_bankroll = db.Column(db.Float, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    leverages = db.relationship('Leverage', backref='user', lazy='dynamic')

    def __repr__(self):
        return f"<User {self.name}>"


class Leverage(db.Model):
    __tablename__ = 'leverages'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)

    initial_value = db.Column(db.Float, nullable=False)
    odd = db.Column(db.Float, nullable=False, default=1.1)
    max_bets = db.Column(db.Integer, nullable=False, default=60)
    current_day = db.Column(db.Integer, nullable=False, default=1)

    status = db.Column(db.String(20), nullable=False, default='active')  # active, completed
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    completed_at = db.Column(db.DateTime, nullable=True)

    # Closing snapshot, only set once completed
    final_value = db.Column(db.Float, nullable=True)
    profit = db.Column(db.Float, nullable=True)

    def to_record(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "initial_value": self.initial_value,
            "odd": self.odd,
            "max_bets": self.max_bets,
            "current_day": self.current_day,
            "status": self.status,
            "created_at": self.created_at,
            "completed_at": self.completed_at,
            "final_value": self.final_value,
            "profit": self.profit,
        }

    def __repr__(self):
        return f"<Leverage {self.name} day {self.current_day}/{self.max_bets}>"
