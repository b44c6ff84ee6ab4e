# config.py
# Конфигурация приложения Flask и клиентской сессии

import os


class Config:
    # Абсолютный путь к базе данных
    BASE_DIR = os.path.abspath(os.path.dirname(__file__))
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'DATABASE_URL',
        f'sqlite:///{os.path.join(BASE_DIR, "instance", "evaluation.db")}'
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SECRET_KEY = os.environ.get('SECRET_KEY', 'your-secret-key-change-me')  # Замени на случайный ключ в продакшене

    # --- Клиентская часть: удалённый API и локальное хранилище ---
    EVAL_API_URL = os.environ.get('EVAL_API_URL', 'http://localhost:3001/api')
    EVAL_API_TIMEOUT = float(os.environ.get('EVAL_API_TIMEOUT', '5'))
    EVAL_LOCAL_STORE = os.environ.get(
        'EVAL_LOCAL_STORE',
        os.path.join(BASE_DIR, 'instance', 'local_store.json')
    )


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
