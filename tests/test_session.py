import asyncio
from dataclasses import replace

import httpx

from domain import CriterionDraft, JudgeDraft, ProjectDraft
from gateway import ApiGateway
from ids import is_local_id
from config import TestConfig
from session import NOTICE_CONNECTION_LOST, NOTICE_START_OFFLINE, Mode, Role, SessionController, build_session

BASE_URL = "http://testserver/api"


class SwitchableTransport(httpx.MockTransport):
    """Forwards to the real app until ``down`` or ``garbled`` is set.

    ``down`` refuses connections, ``garbled`` answers 200 with a body of the wrong shape.
    """

    def __init__(self, inner):
        self.inner = inner
        self.down = False
        self.garbled = False
        self.calls = []
        super().__init__(self._handle)

    def _handle(self, request):
        self.calls.append((request.method, request.url.path))
        if self.down:
            raise httpx.ConnectError("connection refused", request=request)
        if self.garbled:
            return httpx.Response(200, json={"ok": True})
        return self.inner.handler(request)


def make_session(transport, store, confirm=lambda message: True):
    return SessionController(ApiGateway(BASE_URL, transport=transport), store, confirm=confirm)


def test_load_online_caches_snapshot(seeded, flask_transport, store):
    async def scenario():
        session = make_session(flask_transport, store)
        assert await session.load() is Mode.ONLINE
        assert session.notice is None
        assert [p.id for p in session.projects][0] == "p_seed_1"
        store.reset()
        assert store.read().find_score("s_seed_1") is not None
        await session.aclose()

    asyncio.run(scenario())


def test_load_failure_starts_offline_with_local_snapshot(down_transport, store):
    async def scenario():
        session = make_session(down_transport, store)
        assert await session.load() is Mode.OFFLINE
        assert session.notice == NOTICE_START_OFFLINE
        assert session.judges

        result = await session.add_judge(JudgeDraft("Offline judge", ["AI"]))
        assert result.ok and not result.synced
        assert is_local_id(result.value.id)
        await session.aclose()

    asyncio.run(scenario())


def test_online_mutations_are_write_through(seeded, flask_transport, store, client):
    async def scenario():
        session = make_session(flask_transport, store)
        await session.load()

        result = await session.add_projects([ProjectDraft("Live", "", "AI", 2)])
        assert result.ok and result.synced
        assert not is_local_id(result.value[0].id)
        server = client.get("/api/data").get_json()
        assert result.value[0].id in [p["id"] for p in server["projects"]]

        criterion = (await session.add_criterion(CriterionDraft("Impact", 1.0))).value
        assert (await session.edit_criterion(replace(criterion, weight=3.0))).ok
        assert session.snapshot.find_criterion(criterion.id).weight == 3.0
        await session.aclose()

    asyncio.run(scenario())


def test_not_found_does_not_touch_snapshot(seeded, flask_transport, store, client):
    async def scenario():
        session = make_session(flask_transport, store)
        await session.load()
        client.delete("/api/projects/p_seed_2")

        project = replace(session.snapshot.find_project("p_seed_2"), name="Changed")
        result = await session.edit_project(project)
        assert not result.ok
        assert session.mode is Mode.ONLINE
        assert session.snapshot.find_project("p_seed_2").name == "GreenGrid"
        await session.aclose()

    asyncio.run(scenario())


def test_connection_lost_mid_session_keeps_edits_locally(seeded, flask_transport, store):
    transport = SwitchableTransport(flask_transport)

    async def scenario():
        session = make_session(transport, store)
        assert await session.load() is Mode.ONLINE

        transport.down = True
        result = await session.submit_score("p_seed_1", "j_seed_3", {"c_seed_1": 6})
        assert result.ok and not result.synced
        assert session.mode is Mode.OFFLINE
        assert session.notice == NOTICE_CONNECTION_LOST
        assert is_local_id(result.value.id)

        # Дальнейшие изменения идут только в локальное хранилище
        calls_before = len(transport.calls)
        added = await session.add_projects([ProjectDraft("Offline", "", "AI", 1)])
        assert added.ok and is_local_id(added.value[0].id)
        assert len(transport.calls) == calls_before

        store.reset()
        persisted = store.read()
        assert persisted.find_project(added.value[0].id) is not None
        assert persisted.score_for("p_seed_1", "j_seed_3") is not None

        # Вернуться в онлайн можно только новой загрузкой
        transport.down = False
        assert session.mode is Mode.OFFLINE
        assert await session.load() is Mode.ONLINE
        await session.aclose()

    asyncio.run(scenario())


def test_resubmitting_score_overwrites(seeded, flask_transport, store, client):
    async def scenario():
        session = make_session(flask_transport, store)
        await session.load()
        first = await session.submit_score("p_seed_3", "j_seed_2", {"c_seed_1": 4}, trl=3)
        second = await session.submit_score("p_seed_3", "j_seed_2", {"c_seed_1": 9}, trl=5, notes="better")
        assert first.value.id == second.value.id

        own = [s for s in session.scores if s.judge_id == "j_seed_2"]
        assert len(own) == 1 and own[0].ratings == {"c_seed_1": 9.0}
        server_scores = [s for s in client.get("/api/data").get_json()["scores"] if s["judgeId"] == "j_seed_2"]
        assert len(server_scores) == 1
        await session.aclose()

    asyncio.run(scenario())


def test_score_outside_judge_tracks_is_refused(seeded, flask_transport, store):
    async def scenario():
        session = make_session(flask_transport, store)
        await session.load()
        # j_seed_1 оценивает AI и HealthTech, ArmBot — Robotics
        result = await session.submit_score("p_seed_3", "j_seed_1", {"c_seed_1": 5})
        assert not result.ok
        await session.aclose()

    asyncio.run(scenario())


def test_destructive_operations_need_confirmation(seeded, flask_transport, store):
    transport = SwitchableTransport(flask_transport)
    asked = []

    def refuse(message):
        asked.append(message)
        return False

    async def scenario():
        session = make_session(transport, store, confirm=refuse)
        await session.load()
        calls_before = len(transport.calls)

        for result in [
            await session.delete_project("p_seed_1"),
            await session.delete_judge("j_seed_1"),
            await session.delete_criterion("c_seed_1"),
            await session.delete_score("s_seed_1"),
        ]:
            assert not result.ok and result.cancelled

        assert len(asked) == 4
        assert len(transport.calls) == calls_before
        assert session.snapshot.find_project("p_seed_1") is not None
        await session.aclose()

    asyncio.run(scenario())


def test_async_confirmation_and_cascade(seeded, flask_transport, store):
    async def confirm(message):
        return True

    async def scenario():
        session = make_session(flask_transport, store, confirm=confirm)
        await session.load()
        assert (await session.delete_project("p_seed_1")).ok
        assert session.snapshot.find_score("s_seed_1") is None
        assert session.snapshot.find_project("p_seed_1") is None
        await session.aclose()

    asyncio.run(scenario())


def test_register_new_judge_binds_session(seeded, flask_transport, store):
    async def scenario():
        session = make_session(flask_transport, store)
        await session.load()
        result = await session.register_judge(JudgeDraft("Новый судья", ["Robotics"]))
        assert result.ok
        assert session.role is Role.JUDGE
        assert session.judge_id == result.value.id

        view = session.judge_view()
        assert [p.id for p in view.projects] == ["p_seed_3"]
        assert [p.id for p in view.pending] == ["p_seed_3"]
        assert view.scores == []
        await session.aclose()

    asyncio.run(scenario())


def test_login_and_judge_view(seeded, flask_transport, store):
    async def scenario():
        session = make_session(flask_transport, store)
        await session.load()
        assert not session.login_judge("j_missing").ok
        assert session.role is None

        assert session.login_judge("j_seed_1").ok
        view = session.judge_view()
        assert [p.id for p in view.projects] == ["p_seed_1"]
        assert [p.id for p in view.judged] == ["p_seed_1"]

        await session.delete_judge("j_seed_1")
        assert session.role is None
        assert session.judge_view() is None

        session.login_admin()
        assert session.role is Role.ADMIN
        # Оценки удалённого судьи ушли вместе с ним
        assert not any(a.is_scored for a in session.results())
        await session.aclose()

    asyncio.run(scenario())


def test_mutation_before_load_fails():
    class Unused:
        pass

    async def scenario():
        session = SessionController(Unused(), Unused())
        result = await session.add_projects([ProjectDraft("X", "", "AI", 1)])
        assert not result.ok
        assert session.mode is Mode.CONNECTING
        await session.aclose()

    asyncio.run(scenario())


def test_build_session_from_config(tmp_path, down_transport):
    class OfflineConfig(TestConfig):
        EVAL_API_URL = BASE_URL
        EVAL_LOCAL_STORE = str(tmp_path / "client" / "store.json")

    session = build_session(OfflineConfig, transport=down_transport)

    async def scenario():
        assert await session.load() is Mode.OFFLINE
        await session.aclose()

    asyncio.run(scenario())
    assert (tmp_path / "client" / "store.json").exists()
    assert session.remote._client.is_closed


def test_malformed_reply_switches_to_offline(seeded, flask_transport, store):
    transport = SwitchableTransport(flask_transport)

    async def scenario():
        session = make_session(transport, store)
        assert await session.load() is Mode.ONLINE

        transport.garbled = True
        project = replace(session.snapshot.find_project("p_seed_2"), name="GreenGrid 2")
        result = await session.edit_project(project)
        assert result.ok and not result.synced
        assert session.mode is Mode.OFFLINE
        assert session.notice == NOTICE_CONNECTION_LOST
        assert session.snapshot.find_project("p_seed_2").name == "GreenGrid 2"

        store.reset()
        assert store.read().find_project("p_seed_2").name == "GreenGrid 2"
        await session.aclose()

    asyncio.run(scenario())


def test_partial_batch_keeps_server_part_and_finishes_locally(seeded, flask_transport, store, client):
    async def scenario():
        session = make_session(flask_transport, store)
        await session.load()

        drafts = [
            ProjectDraft("Ok", "", "AI", 1),
            ProjectDraft(None, "", "AI", 1),
            ProjectDraft("Z", "", "AI", 1),
        ]
        result = await session.add_projects(drafts)
        assert result.ok
        assert result.synced is False
        assert session.mode is Mode.OFFLINE

        first, *rest = result.value
        assert first.name == "Ok" and not is_local_id(first.id)
        assert len(rest) == 2 and all(is_local_id(p.id) for p in rest)
        server = client.get("/api/data").get_json()
        assert first.id in [p["id"] for p in server["projects"]]

        store.reset()
        persisted = store.read()
        for project in result.value:
            assert persisted.find_project(project.id) is not None
            assert session.snapshot.find_project(project.id) is not None
        await session.aclose()

    asyncio.run(scenario())


def test_offline_unknown_ids_leave_snapshot_alone(down_transport, store):
    async def scenario():
        session = make_session(down_transport, store)
        assert await session.load() is Mode.OFFLINE
        before = session.snapshot.to_dict()

        project = replace(session.snapshot.find_project("p_seed_1"), id="p_missing", name="Ghost")
        edited = await session.edit_project(project)
        assert not edited.ok and not edited.synced

        deleted = await session.delete_score("s_missing")
        assert not deleted.ok and not deleted.cancelled

        assert session.snapshot.to_dict() == before
        assert session.mode is Mode.OFFLINE
        await session.aclose()

    asyncio.run(scenario())
