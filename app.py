# app.py
# Основной файл Flask-приложения с использованием паттерна Application Factory

import os

from flask import Flask
from config import Config
from extensions import db, migrate

# Важно импортировать модели здесь, чтобы Alembic (Migrate) мог их видеть
from models import Project, Judge, Criterion, Score  # noqa: F401


def create_app(config_class=Config):
    # Создаем экземпляр приложения
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.json.sort_keys = False

    if app.config['SQLALCHEMY_DATABASE_URI'].startswith('sqlite:///'):
        os.makedirs(os.path.join(app.config['BASE_DIR'], 'instance'), exist_ok=True)

    # --- Инициализируем расширения С ПРИЛОЖЕНИЕМ ---
    db.init_app(app)
    migrate.init_app(app, db)

    # --- Регистрируем Blueprint с API ---
    from routes.api import api_bp

    app.register_blueprint(api_bp)

    @app.cli.command('init-db')
    def init_db_command():
        """Создать таблицы без миграций (для быстрого старта)."""
        db.create_all()
        print('Таблицы созданы.')

    @app.cli.command('seed-db')
    def seed_db_command():
        """Очистить базу и заполнить тестовыми данными."""
        from seed_data import seed_database
        db.create_all()
        seed_database()

    return app
