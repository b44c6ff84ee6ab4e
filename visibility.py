# visibility.py
# Что видит судья: проекты своих треков и только собственные оценки.
# Все функции чистые, результат пересчитывается при каждом изменении данных.


def projects_visible_to(judge, all_projects):
    tracks = set(judge.tracks)
    if not tracks:
        return []
    return [p for p in all_projects if p.track in tracks]


def scores_by_judge(judge, all_scores):
    return [s for s in all_scores if s.judge_id == judge.id]


def can_score(judge, project):
    return project.track in set(judge.tracks)


def judge_progress(judge, all_projects, all_scores):
    """
    Делит видимые судье проекты на ещё не оценённые и уже оценённые им.
    Возвращает пару списков (pending, judged), порядок проектов сохраняется.
    """
    scored_project_ids = {s.project_id for s in scores_by_judge(judge, all_scores)}

    pending = []
    judged = []
    for project in projects_visible_to(judge, all_projects):
        if project.id in scored_project_ids:
            judged.append(project)
        else:
            pending.append(project)
    return pending, judged
