# seed_data.py
# Тестовые данные хакатона: ими заполняется база (flask seed-db)
# и локальное хранилище, когда сервер недоступен и сохранённых данных нет.

from domain import Snapshot

MOCK_PROJECTS = [
    {
        'id': 'p_seed_1',
        'name': 'MediScan',
        'description': 'Распознавание патологий на рентгеновских снимках.',
        'track': 'AI',
        'trl': 4,
        'links': ['https://github.com/example/mediscan'],
    },
    {
        'id': 'p_seed_2',
        'name': 'GreenGrid',
        'description': 'Балансировка домашней солнечной генерации и хранения.',
        'track': 'Sustainability',
        'trl': 3,
        'links': [],
    },
    {
        'id': 'p_seed_3',
        'name': 'ArmBot',
        'description': 'Недорогой манипулятор для сортировки посылок.',
        'track': 'Robotics',
        'trl': 5,
        'links': ['https://example.com/armbot-demo'],
    },
    {
        'id': 'p_seed_4',
        'name': 'LedgerLite',
        'description': 'Учёт расходов малого бизнеса с автоматической категоризацией.',
        'track': 'FinTech',
        'trl': 6,
        'links': [],
    },
]

MOCK_JUDGES = [
    {'id': 'j_seed_1', 'name': 'Анна Смирнова', 'tracks': ['AI', 'HealthTech']},
    {'id': 'j_seed_2', 'name': 'Игорь Петров', 'tracks': ['Robotics', 'Sustainability']},
    {'id': 'j_seed_3', 'name': 'Мария Козлова', 'tracks': ['FinTech', 'AI']},
]

MOCK_CRITERIA = [
    {'id': 'c_seed_1', 'name': 'Инновационность', 'weight': 2.0, 'description': 'Новизна идеи и подхода.'},
    {'id': 'c_seed_2', 'name': 'Техническая реализация', 'weight': 2.0, 'description': 'Качество и сложность решения.'},
    {'id': 'c_seed_3', 'name': 'Презентация', 'weight': 1.0, 'description': 'Понятность питча и демо.'},
]

MOCK_SCORES = [
    {
        'id': 's_seed_1',
        'projectId': 'p_seed_1',
        'judgeId': 'j_seed_1',
        'ratings': {'c_seed_1': 8, 'c_seed_2': 7, 'c_seed_3': 9},
        'trl': 4,
        'notes': 'Сильный датасет, нужна клиническая валидация.',
    },
]


def seed_snapshot():
    return Snapshot.from_dict({
        'projects': MOCK_PROJECTS,
        'judges': MOCK_JUDGES,
        'criteria': MOCK_CRITERIA,
        'scores': MOCK_SCORES,
    })


def seed_database():
    from extensions import db
    from models import Project, Judge, Criterion, Score

    # --- 1. ОЧИСТКА ДАННЫХ ---
    print("Очистка старых данных...")
    # Идем в обратном порядке зависимостей
    db.session.query(Score).delete()
    db.session.query(Criterion).delete()
    db.session.query(Judge).delete()
    db.session.query(Project).delete()
    db.session.commit()
    print("Очистка завершена.")

    # --- 2. СОЗДАНИЕ ДАННЫХ ---
    print("Добавление тестовых данных...")
    snapshot = seed_snapshot()
    try:
        db.session.add_all([
            Project(id=p.id, name=p.name, description=p.description, track=p.track, trl=p.trl, links=p.links)
            for p in snapshot.projects
        ])
        db.session.add_all([Judge(id=j.id, name=j.name, tracks=j.tracks) for j in snapshot.judges])
        db.session.add_all([
            Criterion(id=c.id, name=c.name, weight=c.weight, description=c.description)
            for c in snapshot.criteria
        ])
        db.session.commit()

        db.session.add_all([
            Score(id=s.id, project_id=s.project_id, judge_id=s.judge_id, ratings=s.ratings, trl=s.trl, notes=s.notes)
            for s in snapshot.scores
        ])
        db.session.commit()
        print("Тестовые данные успешно добавлены!")
    except Exception as e:
        db.session.rollback()
        print(f"Произошла ошибка при добавлении данных: {e}")
        raise


if __name__ == '__main__':
    from app import create_app

    # Создаем экземпляр приложения, чтобы получить контекст
    app = create_app()
    with app.app_context():
        seed_database()
