# local_store.py
# Локальное хранилище на случай недоступности сервера.
# Файл работает как key/value: весь снимок лежит под одним ключом DB_KEY,
# читается лениво при первом обращении и перезаписывается целиком при каждом изменении.

import json
import logging
import os

from domain import Snapshot
from seed_data import seed_snapshot

logger = logging.getLogger(__name__)

DB_KEY = 'hah_eval_db'


class LocalStore:
    def __init__(self, path, key=DB_KEY, seed=seed_snapshot):
        self.path = path
        self.key = key
        self._seed = seed
        self._snapshot = None

    def _read_file(self):
        if not os.path.exists(self.path):
            return {}
        with open(self.path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError('local store root is not an object')
        return data

    def read(self):
        if self._snapshot is not None:
            return self._snapshot

        try:
            record = self._read_file().get(self.key)
            if record is not None:
                self._snapshot = Snapshot.from_dict(record)
                return self._snapshot
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            # Повреждённые данные считаем отсутствующими
            logger.error('Failed to read local store %s: %s', self.path, e)

        logger.info('Local store %s is empty, seeding with mock data', self.path)
        self._snapshot = self._seed()
        self.write(self._snapshot)
        return self._snapshot

    def write(self, snapshot):
        self._snapshot = snapshot
        try:
            try:
                data = self._read_file()
            except (OSError, ValueError) as e:
                logger.warning('Overwriting unreadable local store %s: %s', self.path, e)
                data = {}
            data[self.key] = snapshot.to_dict()

            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
        except OSError as e:
            logger.error('Failed to save local store %s: %s', self.path, e)

    def reset(self):
        """Забыть кэш в памяти; следующий read() снова прочитает файл."""
        self._snapshot = None
