import asyncio

import pytest

from sentence_studio.auth.token_handler import TokenHandler
from sentence_studio.main import app
from sentence_studio.tasks.background_worker import BackgroundWorker, worker


def make_job(*results):
    queue = list(results)
    calls = []

    async def job(batch_size):
        calls.append(batch_size)
        return queue.pop(0)

    job.calls = calls
    return job


def test_status_before_any_run():
    status = BackgroundWorker(interval_hours=1, batch_size=5, job=make_job()).get_status()

    assert status == {
        "running": False,
        "last_run": "Never",
        "next_run": "Not scheduled yet",
        "run_count": 0,
        "total_generated": 0,
        "task_active": False,
    }


def test_run_once_accumulates():
    job = make_job({"generated": 3, "failed": 1}, {"generated": 2, "failed": 0})
    background = BackgroundWorker(interval_hours=1, batch_size=5, job=job)

    asyncio.run(background.run_once())
    result = asyncio.run(background.run_once())

    assert result == {"generated": 2, "failed": 0}
    assert job.calls == [5, 5]
    status = background.get_status()
    assert status["run_count"] == 2
    assert status["total_generated"] == 5
    assert status["last_run"] != "Never"


def test_start_and_stop():
    async def scenario():
        background = BackgroundWorker(interval_hours=1, batch_size=5, job=make_job())
        background.start()
        await asyncio.sleep(0)
        running = background.get_status()
        background.stop()
        await asyncio.gather(background.backfill_task, return_exceptions=True)
        return running, background.get_status()

    running, stopped = asyncio.run(scenario())

    assert running["running"] is True
    assert running["task_active"] is True
    assert running["next_run"] != "Not scheduled yet"
    assert stopped["running"] is False
    assert stopped["task_active"] is False


def test_env_defaults(monkeypatch):
    monkeypatch.setenv("AUDIO_BACKFILL_INTERVAL_HOURS", "6")
    monkeypatch.setenv("AUDIO_BACKFILL_BATCH_SIZE", "20")

    background = BackgroundWorker(job=make_job())

    assert background.interval_hours == 6.0
    assert background.batch_size == 20


def test_worker_status_route(anonymous_client):
    response = anonymous_client.get("/api/status/worker")

    assert response.status_code == 200
    assert set(response.json()) == {"running", "last_run", "next_run", "run_count", "total_generated",
                                    "task_active"}


def test_health_route(anonymous_client):
    response = anonymous_client.get("/api/status/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_run_now_requires_admin(client):
    response = client.post("/api/status/backfill/run-now")

    assert response.status_code == 403


@pytest.fixture
def admin_client(client):
    app.dependency_overrides[TokenHandler.verify_access_token] = lambda: {"sub": "1", "role": "admin"}
    return client


def test_run_now_as_admin(admin_client, monkeypatch):
    monkeypatch.setattr(worker, "job", make_job({"generated": 4, "failed": 0}))
    monkeypatch.setattr(worker, "run_count", 0)
    monkeypatch.setattr(worker, "total_generated", 0)

    response = admin_client.post("/api/status/backfill/run-now")

    assert response.status_code == 200
    body = response.json()
    assert body["result"] == {"generated": 4, "failed": 0}
    assert body["worker"]["total_generated"] == 4
