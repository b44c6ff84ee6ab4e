# scoring.py
# Подсчёт итоговых баллов: взвешенная оценка одного судьи и сводка по проекту.

from dataclasses import dataclass, field
from statistics import median_low
from typing import Optional


@dataclass
class ProjectAggregate:
    project_id: str
    track: str
    mean_composite: Optional[float]
    count: int
    per_judge: dict = field(default_factory=dict)
    trl_consensus: Optional[int] = None

    @property
    def is_scored(self):
        return self.count > 0

    def to_dict(self):
        return {
            'projectId': self.project_id,
            'track': self.track,
            'meanComposite': self.mean_composite,
            'count': self.count,
            'perJudge': dict(self.per_judge),
            'trlConsensus': self.trl_consensus,
            'isScored': self.is_scored,
        }


def compute_composite(score, criteria):
    """
    Взвешенное среднее оценок судьи по критериям.

    Оценки по критериям, которых больше нет, пропускаются, а сумма весов
    берётся только по учтённым критериям. Если ни один критерий не совпал
    (или их веса в сумме дают ноль), возвращает None.
    """
    weights = {c.id: c.weight for c in criteria}

    weighted_sum = 0.0
    total_weight = 0.0
    for criterion_id, rating in score.ratings.items():
        weight = weights.get(criterion_id)
        if weight is None:
            continue
        weighted_sum += rating * weight
        total_weight += weight

    if total_weight == 0:
        return None
    return weighted_sum / total_weight


def aggregate_for_project(project, scores, criteria):
    """Сводка по проекту: среднее по судьям, число судей, TRL жюри."""
    project_scores = [s for s in scores if s.project_id == project.id]

    per_judge = {}
    for s in project_scores:
        per_judge[s.judge_id] = compute_composite(s, criteria)

    composites = [value for value in per_judge.values() if value is not None]
    mean_composite = round(sum(composites) / len(composites), 2) if composites else None

    # Консенсус TRL — нижняя медиана, чтобы остаться на шкале целых уровней
    jury_trls = [s.trl for s in project_scores if s.trl is not None]
    trl_consensus = median_low(jury_trls) if jury_trls else None

    return ProjectAggregate(
        project_id=project.id,
        track=project.track,
        mean_composite=mean_composite,
        count=len(per_judge),
        per_judge=per_judge,
        trl_consensus=trl_consensus,
    )


def rank_projects(projects, scores, criteria):
    aggregates = [aggregate_for_project(p, scores, criteria) for p in projects]
    scored = [a for a in aggregates if a.mean_composite is not None]
    unscored = [a for a in aggregates if a.mean_composite is None]
    # sort стабилен: при равенстве сохраняется исходный порядок проектов
    scored.sort(key=lambda a: a.mean_composite, reverse=True)
    return scored + unscored


def leaders_by_track(projects, scores, criteria):
    """
    Находит лидеров (1 место) в каждом треке. При равенстве баллов лидеров несколько.
    Треки без единой оценки в результат не попадают.
    """
    leaders = {}
    for aggregate in rank_projects(projects, scores, criteria):
        if aggregate.mean_composite is None:
            continue
        current = leaders.get(aggregate.track)
        if not current:
            leaders[aggregate.track] = [aggregate]
        elif aggregate.mean_composite == current[0].mean_composite:
            current.append(aggregate)
    return leaders
