# models/score.py

from datetime import datetime
from extensions import db
from sqlalchemy import CheckConstraint


class Score(db.Model):
    __tablename__ = 'scores'
    # id приходит от клиента (upsert по идентификатору), поэтому без default
    id = db.Column(db.String(64), primary_key=True)
    project_id = db.Column(db.String(64), db.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False)
    judge_id = db.Column(db.String(64), db.ForeignKey('judges.id', ondelete='CASCADE'), nullable=False)
    # {criterion_id: балл}
    ratings = db.Column(db.JSON, nullable=False, default=dict)
    # TRL, который выставило жюри (независимо от заявленного проектом)
    trl = db.Column(db.Integer, nullable=True)
    notes = db.Column(db.Text, nullable=False, default='')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    scored_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        # Одна актуальная оценка судьи на проект
        db.UniqueConstraint('project_id', 'judge_id', name='unique_project_judge_score'),
        CheckConstraint("trl IS NULL OR trl >= 0", name="check_score_trl"),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'projectId': self.project_id,
            'judgeId': self.judge_id,
            'ratings': dict(self.ratings or {}),
            'trl': self.trl,
            'notes': self.notes or '',
        }
