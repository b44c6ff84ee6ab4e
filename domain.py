# domain.py
# Сущности оценки: проекты, судьи, критерии, оценки и общий снимок данных.
# На проводе используются ключи в camelCase, как их отдаёт API.

from dataclasses import dataclass, field, replace
from typing import Optional

TRACKS = ['AI', 'Robotics', 'FinTech', 'HealthTech', 'Sustainability', 'Open']


@dataclass
class Project:
    id: str
    name: str
    description: str
    track: str
    trl: int
    links: list = field(default_factory=list)

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data['id'],
            name=data['name'],
            description=data.get('description') or '',
            track=data['track'],
            trl=int(data.get('trl') or 0),
            links=list(data.get('links') or []),
        )

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'track': self.track,
            'trl': self.trl,
            'links': list(self.links),
        }


@dataclass
class ProjectDraft:
    name: str
    description: str
    track: str
    trl: int
    links: list = field(default_factory=list)

    @classmethod
    def from_dict(cls, data):
        return cls(
            name=data['name'],
            description=data.get('description') or '',
            track=data['track'],
            trl=int(data.get('trl') or 0),
            links=list(data.get('links') or []),
        )

    def with_id(self, project_id):
        return Project(project_id, self.name, self.description, self.track, self.trl, list(self.links))

    def to_dict(self):
        data = self.with_id('').to_dict()
        del data['id']
        return data


@dataclass
class Judge:
    id: str
    name: str
    tracks: list = field(default_factory=list)

    @classmethod
    def from_dict(cls, data):
        return cls(id=data['id'], name=data['name'], tracks=list(data.get('tracks') or []))

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'tracks': list(self.tracks)}


@dataclass
class JudgeDraft:
    name: str
    tracks: list = field(default_factory=list)

    @classmethod
    def from_dict(cls, data):
        return cls(name=data['name'], tracks=list(data.get('tracks') or []))

    def with_id(self, judge_id):
        return Judge(judge_id, self.name, list(self.tracks))

    def to_dict(self):
        return {'name': self.name, 'tracks': list(self.tracks)}


@dataclass
class Criterion:
    id: str
    name: str
    weight: float
    description: str = ''

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data['id'],
            name=data['name'],
            weight=float(data['weight']),
            description=data.get('description') or '',
        )

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'weight': self.weight, 'description': self.description}


@dataclass
class CriterionDraft:
    name: str
    weight: float
    description: str = ''

    @classmethod
    def from_dict(cls, data):
        return cls(name=data['name'], weight=float(data['weight']), description=data.get('description') or '')

    def with_id(self, criterion_id):
        return Criterion(criterion_id, self.name, self.weight, self.description)

    def to_dict(self):
        return {'name': self.name, 'weight': self.weight, 'description': self.description}


@dataclass
class Score:
    id: str
    project_id: str
    judge_id: str
    ratings: dict = field(default_factory=dict)
    trl: Optional[int] = None
    notes: str = ''

    @classmethod
    def from_dict(cls, data):
        trl = data.get('trl')
        return cls(
            id=data['id'],
            project_id=data['projectId'],
            judge_id=data['judgeId'],
            ratings={str(k): float(v) for k, v in (data.get('ratings') or {}).items()},
            trl=int(trl) if trl is not None else None,
            notes=data.get('notes') or '',
        )

    def to_dict(self):
        return {
            'id': self.id,
            'projectId': self.project_id,
            'judgeId': self.judge_id,
            'ratings': dict(self.ratings),
            'trl': self.trl,
            'notes': self.notes,
        }


@dataclass
class Snapshot:
    projects: list = field(default_factory=list)
    judges: list = field(default_factory=list)
    criteria: list = field(default_factory=list)
    scores: list = field(default_factory=list)

    @classmethod
    def from_dict(cls, data):
        return cls(
            projects=[Project.from_dict(p) for p in data.get('projects', [])],
            judges=[Judge.from_dict(j) for j in data.get('judges', [])],
            criteria=[Criterion.from_dict(c) for c in data.get('criteria', [])],
            scores=[Score.from_dict(s) for s in data.get('scores', [])],
        )

    def to_dict(self):
        return {
            'projects': [p.to_dict() for p in self.projects],
            'judges': [j.to_dict() for j in self.judges],
            'criteria': [c.to_dict() for c in self.criteria],
            'scores': [s.to_dict() for s in self.scores],
        }

    def copy(self):
        # Достаточно пересобрать сущности: вложенные списки/словари копируются в from_dict
        return Snapshot.from_dict(self.to_dict())

    # --- Поиск по идентификатору ---
    def find_project(self, project_id):
        return next((p for p in self.projects if p.id == project_id), None)

    def find_judge(self, judge_id):
        return next((j for j in self.judges if j.id == judge_id), None)

    def find_criterion(self, criterion_id):
        return next((c for c in self.criteria if c.id == criterion_id), None)

    def find_score(self, score_id):
        return next((s for s in self.scores if s.id == score_id), None)

    def score_for(self, project_id, judge_id):
        return next((s for s in self.scores if s.project_id == project_id and s.judge_id == judge_id), None)

    # --- Изменения снимка (без побочных эффектов на хранилище) ---
    def add_projects(self, projects):
        self.projects.extend(projects)

    def replace_project(self, project):
        self.projects = [project if p.id == project.id else p for p in self.projects]

    def remove_project(self, project_id):
        # Каскад: оценки проекта удаляются вместе с ним
        self.projects = [p for p in self.projects if p.id != project_id]
        self.scores = [s for s in self.scores if s.project_id != project_id]

    def add_judge(self, judge):
        self.judges.append(judge)

    def replace_judge(self, judge):
        self.judges = [judge if j.id == judge.id else j for j in self.judges]

    def remove_judge(self, judge_id):
        self.judges = [j for j in self.judges if j.id != judge_id]
        self.scores = [s for s in self.scores if s.judge_id != judge_id]

    def add_criterion(self, criterion):
        self.criteria.append(criterion)

    def replace_criterion(self, criterion):
        self.criteria = [criterion if c.id == criterion.id else c for c in self.criteria]

    def remove_criterion(self, criterion_id):
        # Оценки не трогаем: подсчёт сам пропускает удалённые критерии
        self.criteria = [c for c in self.criteria if c.id != criterion_id]

    def upsert_score(self, score):
        # Сначала ищем по id, затем по паре (проект, судья): у судьи одна оценка на проект
        for index, existing in enumerate(self.scores):
            if existing.id == score.id:
                self.scores[index] = score
                return score
        for index, existing in enumerate(self.scores):
            if existing.project_id == score.project_id and existing.judge_id == score.judge_id:
                stored = replace(score, id=existing.id)
                self.scores[index] = stored
                return stored
        self.scores.append(score)
        return score

    def remove_score(self, score_id):
        self.scores = [s for s in self.scores if s.id != score_id]


__all__ = [
    'TRACKS', 'Project', 'ProjectDraft', 'Judge', 'JudgeDraft',
    'Criterion', 'CriterionDraft', 'Score', 'Snapshot',
]
