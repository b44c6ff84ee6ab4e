# gateway.py
# Шлюзы хранения. PersistenceGateway — общий асинхронный контракт сессии;
# ApiGateway ходит в удалённый JSON API, LocalGateway работает с локальным хранилищем.

import logging
from abc import ABC, abstractmethod

import httpx

import ids
from domain import Criterion, Judge, Project, Score, Snapshot

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Базовая ошибка любого вызова шлюза."""


class TransportError(GatewayError):
    """Хранилище недоступно, не ответило вовремя или вернуло не-2xx / некорректный ответ."""


class NotFoundError(GatewayError):
    """Изменение или удаление ссылается на несуществующий идентификатор."""


class PartialBatchError(TransportError):
    """Пакетное создание оборвалось на середине; в created — то, что успело сохраниться."""

    def __init__(self, message, created):
        super().__init__(message)
        self.created = created


class PersistenceGateway(ABC):
    @abstractmethod
    async def get_all(self): ...

    # --- Проекты ---
    @abstractmethod
    async def create_projects(self, drafts): ...

    @abstractmethod
    async def update_project(self, project): ...

    @abstractmethod
    async def delete_project(self, project_id): ...

    # --- Судьи ---
    @abstractmethod
    async def create_judge(self, draft): ...

    @abstractmethod
    async def update_judge(self, judge): ...

    @abstractmethod
    async def delete_judge(self, judge_id): ...

    # --- Критерии ---
    @abstractmethod
    async def create_criterion(self, draft): ...

    @abstractmethod
    async def update_criterion(self, criterion): ...

    @abstractmethod
    async def delete_criterion(self, criterion_id): ...

    # --- Оценки ---
    @abstractmethod
    async def create_or_update_score(self, score): ...

    @abstractmethod
    async def delete_score(self, score_id): ...


def _parse(factory, data, method, path):
    # Ответ 2xx неверной формы — такая же ошибка транспорта, как и обрыв связи
    try:
        return factory(data)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise TransportError(f'Некорректный ответ {method} {path}: {e!r}') from e


SNAPSHOT_KEYS = ('projects', 'judges', 'criteria', 'scores')


def _snapshot_from(data):
    # Сервер всегда отдаёт все четыре коллекции; без них ответ считаем битым
    missing = [key for key in SNAPSHOT_KEYS if not isinstance(data[key], list)]
    if missing:
        raise TypeError(f'не списки: {", ".join(missing)}')
    return Snapshot.from_dict(data)


def _parse_list(factory, data, method, path):
    if not isinstance(data, list):
        raise TransportError(f'Некорректный ответ {method} {path}: ожидался список')
    return [_parse(factory, item, method, path) for item in data]


class ApiGateway(PersistenceGateway):
    """Асинхронный клиент JSON API оценки."""

    def __init__(self, base_url, timeout=5.0, transport=None):
        self.base_url = base_url.rstrip('/')
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def aclose(self):
        await self._client.aclose()

    async def _request(self, method, path, payload=None):
        try:
            resp = await self._client.request(method, path, json=payload)
        except httpx.HTTPError as e:
            raise TransportError(f'{method} {path}: {e}') from e

        data = self._decode_json(resp, method, path)
        if resp.is_success:
            return data

        message = data.get('message') if isinstance(data, dict) else None
        message = message or f'{method} {path} вернул HTTP {resp.status_code}'
        if resp.status_code == 404:
            raise NotFoundError(message)
        if isinstance(data, dict) and data.get('created'):
            created = _parse_list(Project.from_dict, data['created'], method, path)
            raise PartialBatchError(message, created)
        raise TransportError(message)

    @staticmethod
    def _decode_json(response, method, path):
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f'Не удалось разобрать JSON из {method} {path} (HTTP {response.status_code}): {e}'
            ) from e

    async def _call(self, factory, method, path, payload=None):
        data = await self._request(method, path, payload)
        return _parse(factory, data, method, path)

    async def get_all(self):
        return await self._call(_snapshot_from, 'GET', '/data')

    async def create_projects(self, drafts):
        data = await self._request('POST', '/projects', [d.to_dict() for d in drafts])
        return _parse_list(Project.from_dict, data, 'POST', '/projects')

    async def update_project(self, project):
        return await self._call(Project.from_dict, 'PUT', f'/projects/{project.id}', project.to_dict())

    async def delete_project(self, project_id):
        await self._request('DELETE', f'/projects/{project_id}')

    async def create_judge(self, draft):
        return await self._call(Judge.from_dict, 'POST', '/judges', draft.to_dict())

    async def update_judge(self, judge):
        return await self._call(Judge.from_dict, 'PUT', f'/judges/{judge.id}', judge.to_dict())

    async def delete_judge(self, judge_id):
        await self._request('DELETE', f'/judges/{judge_id}')

    async def create_criterion(self, draft):
        return await self._call(Criterion.from_dict, 'POST', '/criteria', draft.to_dict())

    async def update_criterion(self, criterion):
        return await self._call(Criterion.from_dict, 'PUT', f'/criteria/{criterion.id}', criterion.to_dict())

    async def delete_criterion(self, criterion_id):
        await self._request('DELETE', f'/criteria/{criterion_id}')

    async def create_or_update_score(self, score):
        return await self._call(Score.from_dict, 'POST', '/scores', score.to_dict())

    async def delete_score(self, score_id):
        await self._request('DELETE', f'/scores/{score_id}')


def _clone(entity):
    return type(entity).from_dict(entity.to_dict())


class LocalGateway(PersistenceGateway):
    """Шлюз поверх локального хранилища; новые id выдаются в локальном пространстве."""

    def __init__(self, store):
        self.store = store

    def _commit(self, snapshot):
        self.store.write(snapshot)

    async def get_all(self):
        return self.store.read().copy()

    async def create_projects(self, drafts):
        snapshot = self.store.read()
        created = [d.with_id(ids.new_id('p', local=True)) for d in drafts]
        snapshot.add_projects(created)
        self._commit(snapshot)
        return [_clone(p) for p in created]

    async def update_project(self, project):
        snapshot = self.store.read()
        if snapshot.find_project(project.id) is None:
            raise NotFoundError(f'Проект {project.id} не найден.')
        snapshot.replace_project(_clone(project))
        self._commit(snapshot)
        return _clone(project)

    async def delete_project(self, project_id):
        snapshot = self.store.read()
        if snapshot.find_project(project_id) is None:
            raise NotFoundError(f'Проект {project_id} не найден.')
        snapshot.remove_project(project_id)
        self._commit(snapshot)

    async def create_judge(self, draft):
        snapshot = self.store.read()
        judge = draft.with_id(ids.new_id('j', local=True))
        snapshot.add_judge(judge)
        self._commit(snapshot)
        return _clone(judge)

    async def update_judge(self, judge):
        snapshot = self.store.read()
        if snapshot.find_judge(judge.id) is None:
            raise NotFoundError(f'Судья {judge.id} не найден.')
        snapshot.replace_judge(_clone(judge))
        self._commit(snapshot)
        return _clone(judge)

    async def delete_judge(self, judge_id):
        snapshot = self.store.read()
        if snapshot.find_judge(judge_id) is None:
            raise NotFoundError(f'Судья {judge_id} не найден.')
        snapshot.remove_judge(judge_id)
        self._commit(snapshot)

    async def create_criterion(self, draft):
        snapshot = self.store.read()
        criterion = draft.with_id(ids.new_id('c', local=True))
        snapshot.add_criterion(criterion)
        self._commit(snapshot)
        return _clone(criterion)

    async def update_criterion(self, criterion):
        snapshot = self.store.read()
        if snapshot.find_criterion(criterion.id) is None:
            raise NotFoundError(f'Критерий {criterion.id} не найден.')
        snapshot.replace_criterion(_clone(criterion))
        self._commit(snapshot)
        return _clone(criterion)

    async def delete_criterion(self, criterion_id):
        snapshot = self.store.read()
        if snapshot.find_criterion(criterion_id) is None:
            raise NotFoundError(f'Критерий {criterion_id} не найден.')
        snapshot.remove_criterion(criterion_id)
        self._commit(snapshot)

    async def create_or_update_score(self, score):
        snapshot = self.store.read()
        if snapshot.find_project(score.project_id) is None:
            raise NotFoundError(f'Проект {score.project_id} не найден.')
        if snapshot.find_judge(score.judge_id) is None:
            raise NotFoundError(f'Судья {score.judge_id} не найден.')
        stored = snapshot.upsert_score(_clone(score))
        self._commit(snapshot)
        return _clone(stored)

    async def delete_score(self, score_id):
        snapshot = self.store.read()
        if snapshot.find_score(score_id) is None:
            raise NotFoundError(f'Оценка {score_id} не найдена.')
        snapshot.remove_score(score_id)
        self._commit(snapshot)
