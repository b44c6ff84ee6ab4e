# models/judge.py

from datetime import datetime
from extensions import db
from ids import new_id


class Judge(db.Model):
    __tablename__ = 'judges'
    id = db.Column(db.String(64), primary_key=True, default=lambda: new_id('j'))
    name = db.Column(db.String(100), nullable=False)
    # Треки, которые судья имеет право оценивать (один судья — несколько треков)
    tracks = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    scores = db.relationship('Score', backref='judge', lazy=True, cascade="all, delete-orphan")

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'tracks': list(self.tracks or [])}
