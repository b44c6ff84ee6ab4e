# models/criterion.py

from datetime import datetime
from extensions import db
from sqlalchemy import CheckConstraint
from ids import new_id


class Criterion(db.Model):
    __tablename__ = 'criteria'
    id = db.Column(db.String(64), primary_key=True, default=lambda: new_id('c'))
    name = db.Column(db.String, nullable=False)
    weight = db.Column(db.Float, nullable=False, default=1.0)
    description = db.Column(db.Text, nullable=False, default='')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Связи с оценками нет: оценки хранят критерии в словаре ratings,
    # поэтому удаление критерия уже выставленные оценки не трогает.

    __table_args__ = (
        CheckConstraint("weight >= 0", name="check_criterion_weight"),
    )

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'weight': self.weight, 'description': self.description or ''}
