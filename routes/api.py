# routes/api.py
# JSON API авторитетного хранилища: проекты, судьи, критерии и оценки

from flask import Blueprint, request, jsonify, abort, current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.exceptions import HTTPException
from extensions import db
from models import Project, Judge, Criterion, Score
from domain import ProjectDraft, JudgeDraft, CriterionDraft, Snapshot
from scoring import rank_projects


api_bp = Blueprint('api', __name__, url_prefix='/api')


@api_bp.errorhandler(HTTPException)
def handle_http_error(e):
    # Любой не-2xx ответ несёт машиночитаемое сообщение
    return jsonify({'message': e.description}), e.code


def get_or_404(model, ident, message):
    obj = db.session.get(model, ident) if ident else None
    if obj is None:
        abort(404, description=message)
    return obj


def json_body(expected=dict):
    payload = request.get_json(silent=True)
    if not isinstance(payload, expected):
        abort(400, description='Некорректное тело запроса.')
    return payload


def parse(draft_cls, payload):
    try:
        return draft_cls.from_dict(payload)
    except (KeyError, TypeError, ValueError) as e:
        abort(400, description=f'Некорректные данные: {e}')


def commit_or_400(message):
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        current_app.logger.warning('%s: %s', message, e.orig)
        abort(400, description=message)
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception(message)
        abort(500, description=message)


# --- Полный снимок данных ---
@api_bp.route('/data', methods=['GET'])
def get_all_data():
    return jsonify({
        'projects': [p.to_dict() for p in Project.query.order_by(Project.created_at, Project.id).all()],
        'judges': [j.to_dict() for j in Judge.query.order_by(Judge.created_at, Judge.id).all()],
        'criteria': [c.to_dict() for c in Criterion.query.order_by(Criterion.created_at, Criterion.id).all()],
        'scores': [s.to_dict() for s in Score.query.order_by(Score.created_at, Score.id).all()],
    })


@api_bp.route('/results', methods=['GET'])
def get_results():
    snapshot = Snapshot.from_dict({
        'projects': [p.to_dict() for p in Project.query.all()],
        'criteria': [c.to_dict() for c in Criterion.query.all()],
        'scores': [s.to_dict() for s in Score.query.all()],
    })
    ranking = rank_projects(snapshot.projects, snapshot.scores, snapshot.criteria)
    return jsonify([a.to_dict() for a in ranking])


# --- БЛОК CRUD для Project ---
@api_bp.route('/projects', methods=['POST'])
def create_projects():
    items = json_body(expected=list)

    # Каждый проект сохраняется отдельно: при ошибке на середине пакета
    # уже созданные проекты остаются и возвращаются клиенту
    created = []
    for index, item in enumerate(items):
        try:
            draft = ProjectDraft.from_dict(item)
            project = Project(name=draft.name, description=draft.description, track=draft.track,
                              trl=draft.trl, links=draft.links)
            db.session.add(project)
            db.session.commit()
            created.append(project.to_dict())
        except (KeyError, TypeError, ValueError, AttributeError, IntegrityError) as e:
            db.session.rollback()
            current_app.logger.warning('Не удалось создать проект #%s: %s', index, e)
            payload = {'message': f'Ошибка в проекте #{index + 1}: {e}'}
            if created:
                payload['created'] = created
            return jsonify(payload), 400

    current_app.logger.info('Создано проектов: %s', len(created))
    return jsonify(created), 201


@api_bp.route('/projects/<project_id>', methods=['PUT'])
def update_project(project_id):
    project = get_or_404(Project, project_id, 'Проект не найден.')
    draft = parse(ProjectDraft, json_body())

    project.name = draft.name
    project.description = draft.description
    project.track = draft.track
    project.trl = draft.trl
    project.links = draft.links
    commit_or_400('Ошибка при обновлении проекта.')
    return jsonify(project.to_dict())


@api_bp.route('/projects/<project_id>', methods=['DELETE'])
def delete_project(project_id):
    project = get_or_404(Project, project_id, 'Проект не найден.')
    db.session.delete(project)
    commit_or_400('Ошибка при удалении проекта.')
    current_app.logger.info('Проект %s удалён вместе с оценками', project_id)
    return jsonify({'success': True})


# --- БЛОК CRUD для Judge ---
@api_bp.route('/judges', methods=['POST'])
def create_judge():
    draft = parse(JudgeDraft, json_body())
    judge = Judge(name=draft.name, tracks=draft.tracks)
    db.session.add(judge)
    commit_or_400('Ошибка при создании судьи.')
    return jsonify(judge.to_dict()), 201


@api_bp.route('/judges/<judge_id>', methods=['PUT'])
def update_judge(judge_id):
    judge = get_or_404(Judge, judge_id, 'Судья не найден.')
    draft = parse(JudgeDraft, json_body())
    judge.name = draft.name
    judge.tracks = draft.tracks
    commit_or_400('Ошибка при обновлении судьи.')
    return jsonify(judge.to_dict())


@api_bp.route('/judges/<judge_id>', methods=['DELETE'])
def delete_judge(judge_id):
    judge = get_or_404(Judge, judge_id, 'Судья не найден.')
    db.session.delete(judge)
    commit_or_400('Ошибка при удалении судьи.')
    current_app.logger.info('Судья %s удалён вместе с оценками', judge_id)
    return jsonify({'success': True})


# --- БЛОК CRUD для Criterion ---
@api_bp.route('/criteria', methods=['POST'])
def create_criterion():
    draft = parse(CriterionDraft, json_body())
    criterion = Criterion(name=draft.name, weight=draft.weight, description=draft.description)
    db.session.add(criterion)
    commit_or_400('Ошибка при создании критерия.')
    return jsonify(criterion.to_dict()), 201


@api_bp.route('/criteria/<criterion_id>', methods=['PUT'])
def update_criterion(criterion_id):
    criterion = get_or_404(Criterion, criterion_id, 'Критерий не найден.')
    draft = parse(CriterionDraft, json_body())
    criterion.name = draft.name
    criterion.weight = draft.weight
    criterion.description = draft.description
    commit_or_400('Ошибка при обновлении критерия.')
    return jsonify(criterion.to_dict())


@api_bp.route('/criteria/<criterion_id>', methods=['DELETE'])
def delete_criterion(criterion_id):
    criterion = get_or_404(Criterion, criterion_id, 'Критерий не найден.')
    # Оценки по этому критерию остаются: при подсчёте он просто пропускается
    db.session.delete(criterion)
    commit_or_400('Ошибка при удалении критерия.')
    return jsonify({'success': True})


# --- БЛОК для Score (upsert) ---
@api_bp.route('/scores', methods=['POST'])
def create_or_update_score():
    payload = json_body()
    score_id = payload.get('id')
    if not score_id:
        abort(400, description='У оценки должен быть id.')

    project = get_or_404(Project, payload.get('projectId'), 'Проект не найден.')
    judge = get_or_404(Judge, payload.get('judgeId'), 'Судья не найден.')

    try:
        ratings = {str(k): float(v) for k, v in (payload.get('ratings') or {}).items()}
        trl = int(payload['trl']) if payload.get('trl') is not None else None
    except (AttributeError, TypeError, ValueError) as e:
        abort(400, description=f'Некорректные данные: {e}')

    score = db.session.get(Score, score_id)
    if score is None:
        # Другой id, но та же пара (проект, судья) — перезаписываем существующую оценку
        score = Score.query.filter_by(project_id=project.id, judge_id=judge.id).first()
    if score is None:
        score = Score(id=score_id)
        db.session.add(score)

    score.project_id = project.id
    score.judge_id = judge.id
    score.ratings = ratings
    score.trl = trl
    score.notes = payload.get('notes') or ''
    commit_or_400('Ошибка при сохранении оценки.')
    return jsonify(score.to_dict())


@api_bp.route('/scores/<score_id>', methods=['DELETE'])
def delete_score(score_id):
    score = get_or_404(Score, score_id, 'Оценка не найдена.')
    db.session.delete(score)
    commit_or_400('Ошибка при удалении оценки.')
    return jsonify({'success': True})
