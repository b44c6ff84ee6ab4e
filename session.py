# session.py
# Клиентская сессия: держит снимок данных в памяти согласованным с тем хранилищем,
# которое сейчас авторитетно.
#
# CONNECTING -> ONLINE, если первый get_all удался, иначе OFFLINE с локальным
# (или засеянным) снимком. В ONLINE изменения идут сначала на сервер, и снимок
# меняется только после успеха. Ошибка транспорта переводит сессию в OFFLINE,
# после чего авторитетно локальное хранилище, и неудавшееся изменение повторяется там.
# Вернуться в онлайн можно только новым load(); очереди повторов нет.

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

import ids
from config import Config
from domain import Score
from gateway import ApiGateway, GatewayError, LocalGateway, NotFoundError, PartialBatchError, TransportError
from local_store import LocalStore
from scoring import rank_projects
from visibility import can_score, judge_progress, projects_visible_to, scores_by_judge

logger = logging.getLogger(__name__)

NOTICE_START_OFFLINE = (
    'Не удалось подключиться к серверу. Приложение работает в офлайн-режиме с локальными данными. '
    'Запустите сервер и перезагрузите страницу, чтобы включить полную функциональность.'
)
NOTICE_CONNECTION_LOST = (
    'Соединение с сервером потеряно. Включён офлайн-режим, изменения сохраняются локально. '
    'Убедитесь, что сервер запущен, и перезагрузите страницу для переподключения.'
)

CONFIRM_DELETE_PROJECT = 'Удалить проект? Все его оценки тоже будут удалены, действие необратимо.'
CONFIRM_DELETE_JUDGE = 'Удалить судью? Все его оценки тоже будут удалены, действие необратимо.'
CONFIRM_DELETE_CRITERION = 'Удалить критерий? Это может повлиять на уже выставленные оценки.'
CONFIRM_DELETE_SCORE = 'Удалить оценку? Действие необратимо.'

NOT_LOADED = 'Данные ещё не загружены.'


class Mode(Enum):
    CONNECTING = 'connecting'
    ONLINE = 'online'
    OFFLINE = 'offline'


class Role(Enum):
    ADMIN = 'admin'
    JUDGE = 'judge'


@dataclass
class OperationResult:
    ok: bool
    value: Any = None
    error: Optional[str] = None
    # False, если изменение попало только в локальное хранилище
    synced: bool = True
    cancelled: bool = False


@dataclass
class JudgeView:
    judge: Any
    projects: list = field(default_factory=list)
    scores: list = field(default_factory=list)
    pending: list = field(default_factory=list)
    judged: list = field(default_factory=list)


def _deny(message):
    return False


class SessionController:
    def __init__(self, remote, local_store, confirm=None):
        self.remote = remote
        self.local_store = local_store
        self.local = LocalGateway(local_store)
        self._confirm = confirm or _deny
        self._lock = asyncio.Lock()

        self.mode = Mode.CONNECTING
        self.notice = None
        self.snapshot = None
        self.role = None
        self.judge_id = None

    # --- Состояние ---
    @property
    def is_offline(self):
        return self.mode is Mode.OFFLINE

    @property
    def projects(self):
        return list(self.snapshot.projects) if self.snapshot else []

    @property
    def judges(self):
        return list(self.snapshot.judges) if self.snapshot else []

    @property
    def criteria(self):
        return list(self.snapshot.criteria) if self.snapshot else []

    @property
    def scores(self):
        return list(self.snapshot.scores) if self.snapshot else []

    async def load(self):
        async with self._lock:
            self.mode = Mode.CONNECTING
            try:
                snapshot = await self.remote.get_all()
            except GatewayError as e:
                logger.warning('Failed to connect to backend: %s', e)
                self.snapshot = await self.local.get_all()
                self.mode = Mode.OFFLINE
                self.notice = NOTICE_START_OFFLINE
            else:
                self.snapshot = snapshot
                self.mode = Mode.ONLINE
                self.notice = None
                self._cache()
            return self.mode

    async def aclose(self):
        """Закрыть соединение с удалённым хранилищем."""
        close = getattr(self.remote, 'aclose', None)
        if close is not None:
            await close()

    def _cache(self):
        # Копия, чтобы локальный шлюз не менял снимок сессии в обход контроллера
        self.local_store.write(self.snapshot.copy())

    def _go_offline(self, error, context):
        logger.warning('%s: %s', context, error)
        self.mode = Mode.OFFLINE
        if not self.notice:
            self.notice = NOTICE_CONNECTION_LOST
        # С этого момента авторитетно локальное хранилище: переносим в него текущий снимок
        self._cache()

    async def _mutate(self, context, call, apply):
        """
        Провести изменение через нужный шлюз.

        call(gateway) выполняет запрос, apply(value) применяет результат к снимку.
        Ошибки шлюзов наружу не выходят: вместо них возвращается
        OperationResult с ok=False.
        """
        async with self._lock:
            if self.mode is Mode.CONNECTING:
                return OperationResult(False, error=NOT_LOADED)

            if self.mode is Mode.ONLINE:
                try:
                    value = await call(self.remote)
                except NotFoundError as e:
                    return OperationResult(False, error=str(e))
                except TransportError as e:
                    self._go_offline(e, context)
                else:
                    apply(value)
                    self._cache()
                    return OperationResult(True, value)

            try:
                value = await call(self.local)
            except NotFoundError as e:
                return OperationResult(False, error=str(e), synced=False)
            apply(value)
            return OperationResult(True, value, synced=False)

    async def _confirmed(self, message):
        answer = self._confirm(message)
        if inspect.isawaitable(answer):
            answer = await answer
        return bool(answer)

    async def _destroy(self, message, context, call, apply):
        if not await self._confirmed(message):
            return OperationResult(False, error='Отменено пользователем.', cancelled=True)
        return await self._mutate(context, call, apply)

    # --- Проекты ---
    async def add_projects(self, drafts):
        drafts = list(drafts)
        async with self._lock:
            if self.mode is Mode.CONNECTING:
                return OperationResult(False, error=NOT_LOADED)

            created = []
            if self.mode is Mode.ONLINE:
                try:
                    created = await self.remote.create_projects(drafts)
                except NotFoundError as e:
                    return OperationResult(False, error=str(e))
                except PartialBatchError as e:
                    # Часть пакета уже на сервере: оставляем её, остаток сохраняем локально
                    created = list(e.created)
                    self.snapshot.add_projects(created)
                    drafts = drafts[len(created):]
                    self._go_offline(e, 'Failed to add projects')
                except TransportError as e:
                    self._go_offline(e, 'Failed to add projects')
                else:
                    self.snapshot.add_projects(created)
                    self._cache()
                    return OperationResult(True, created)

            local_created = await self.local.create_projects(drafts)
            self.snapshot.add_projects(local_created)
            return OperationResult(True, created + local_created, synced=False)

    async def edit_project(self, project):
        return await self._mutate(
            f'Failed to update project {project.id}',
            lambda gw: gw.update_project(project),
            lambda saved: self.snapshot.replace_project(saved),
        )

    async def delete_project(self, project_id):
        return await self._destroy(
            CONFIRM_DELETE_PROJECT,
            f'Failed to delete project {project_id}',
            lambda gw: gw.delete_project(project_id),
            lambda _: self.snapshot.remove_project(project_id),
        )

    # --- Судьи ---
    async def add_judge(self, draft):
        return await self._mutate(
            'Failed to add judge',
            lambda gw: gw.create_judge(draft),
            lambda judge: self.snapshot.add_judge(judge),
        )

    async def edit_judge(self, judge):
        return await self._mutate(
            f'Failed to update judge {judge.id}',
            lambda gw: gw.update_judge(judge),
            lambda saved: self.snapshot.replace_judge(saved),
        )

    async def delete_judge(self, judge_id):
        result = await self._destroy(
            CONFIRM_DELETE_JUDGE,
            f'Failed to delete judge {judge_id}',
            lambda gw: gw.delete_judge(judge_id),
            lambda _: self.snapshot.remove_judge(judge_id),
        )
        if result.ok and self.judge_id == judge_id:
            self.logout()
        return result

    # --- Критерии ---
    async def add_criterion(self, draft):
        return await self._mutate(
            'Failed to add criterion',
            lambda gw: gw.create_criterion(draft),
            lambda criterion: self.snapshot.add_criterion(criterion),
        )

    async def edit_criterion(self, criterion):
        return await self._mutate(
            f'Failed to update criterion {criterion.id}',
            lambda gw: gw.update_criterion(criterion),
            lambda saved: self.snapshot.replace_criterion(saved),
        )

    async def delete_criterion(self, criterion_id):
        return await self._destroy(
            CONFIRM_DELETE_CRITERION,
            f'Failed to delete criterion {criterion_id}',
            lambda gw: gw.delete_criterion(criterion_id),
            lambda _: self.snapshot.remove_criterion(criterion_id),
        )

    # --- Оценки ---
    async def submit_score(self, project_id, judge_id, ratings, trl=None, notes=''):
        if self.snapshot is None:
            return OperationResult(False, error=NOT_LOADED)
        project = self.snapshot.find_project(project_id)
        judge = self.snapshot.find_judge(judge_id)
        if project is None or judge is None:
            return OperationResult(False, error='Проект или судья не найден.')
        if not can_score(judge, project):
            return OperationResult(False, error='Проект не входит в треки судьи.')

        existing = self.snapshot.score_for(project_id, judge_id)

        def build(gw):
            # Повторная отправка перезаписывает оценку пары (проект, судья), а не дублирует её
            if existing is not None:
                score_id = existing.id
            else:
                score_id = ids.new_id('s', local=gw is self.local)
            return Score(score_id, project_id, judge_id, dict(ratings), trl, notes or '')

        return await self._mutate(
            f'Failed to save score for project {project_id}',
            lambda gw: gw.create_or_update_score(build(gw)),
            lambda saved: self.snapshot.upsert_score(saved),
        )

    async def delete_score(self, score_id):
        return await self._destroy(
            CONFIRM_DELETE_SCORE,
            f'Failed to delete score {score_id}',
            lambda gw: gw.delete_score(score_id),
            lambda _: self.snapshot.remove_score(score_id),
        )

    # --- Вход и роли ---
    def login_admin(self):
        self.role = Role.ADMIN
        self.judge_id = None

    def login_judge(self, judge_id):
        judge = self.snapshot.find_judge(judge_id) if self.snapshot else None
        if judge is None:
            return OperationResult(False, error='Судья не найден.')
        self.role = Role.JUDGE
        self.judge_id = judge.id
        return OperationResult(True, judge)

    async def register_judge(self, draft):
        # Сначала создаём судью, и только потом привязываем к нему сессию
        result = await self.add_judge(draft)
        if not result.ok:
            return result
        self.role = Role.JUDGE
        self.judge_id = result.value.id
        return result

    def logout(self):
        self.role = None
        self.judge_id = None

    # --- Производные представления ---
    def judge_view(self):
        if self.role is not Role.JUDGE or self.snapshot is None:
            return None
        judge = self.snapshot.find_judge(self.judge_id)
        if judge is None:
            # Профиль судьи пропал (например, удалён) — выходим из сессии
            self.logout()
            return None
        pending, judged = judge_progress(judge, self.snapshot.projects, self.snapshot.scores)
        return JudgeView(
            judge=judge,
            projects=projects_visible_to(judge, self.snapshot.projects),
            scores=scores_by_judge(judge, self.snapshot.scores),
            pending=pending,
            judged=judged,
        )

    def results(self):
        if self.snapshot is None:
            return []
        return rank_projects(self.snapshot.projects, self.snapshot.scores, self.snapshot.criteria)


def build_session(config=Config, confirm=None, transport=None):
    remote = ApiGateway(config.EVAL_API_URL, timeout=config.EVAL_API_TIMEOUT, transport=transport)
    store = LocalStore(config.EVAL_LOCAL_STORE)
    return SessionController(remote, store, confirm=confirm)
