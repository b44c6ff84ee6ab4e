# models/project.py

from datetime import datetime
from extensions import db
from sqlalchemy import CheckConstraint
from ids import new_id


class Project(db.Model):
    __tablename__ = 'projects'
    id = db.Column(db.String(64), primary_key=True, default=lambda: new_id('p'))
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False, default='')
    track = db.Column(db.String(50), nullable=False, index=True)
    trl = db.Column(db.Integer, nullable=False, default=1)
    # Список внешних ссылок (репозиторий, демо, презентация)
    links = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Каскадное удаление на уровне ORM: вместе с проектом уходят все его оценки
    scores = db.relationship('Score', backref='project', lazy=True, cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("trl >= 0", name="check_project_trl"),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description or '',
            'track': self.track,
            'trl': self.trl,
            'links': list(self.links or []),
        }
