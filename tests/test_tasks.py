from painel.scraper.tasks import Task, TaskStatus, TaskStore


def test_new_task_starts_pending():
    store = TaskStore(ttl_seconds=0)
    task_id = store.create()

    task = store.get(task_id)
    assert task is not None
    assert task.to_dict() == {
        "status": "PENDING",
        "message": "Inicializando...",
        "result": None,
        "stats": None,
        "errors": [],
    }


def test_task_ids_are_unique():
    store = TaskStore(ttl_seconds=0)
    ids = {store.create() for _ in range(50)}
    assert len(ids) == 50
    assert len(store) == 50


def test_unknown_task_is_none():
    assert TaskStore(ttl_seconds=0).get("missing") is None


def test_terminal_status_is_final():
    task = Task(task_id="t1")
    task.mark_running("Iniciando navegador...")
    task.complete("Concluído! 0/0 relatórios processados.")

    task.fail("Erro fatal: boom")
    task.mark_running("again")

    assert task.status is TaskStatus.COMPLETED
    assert task.message == "Concluído! 0/0 relatórios processados."
    assert task.finished_at is not None


def test_evict_expired_only_drops_finished_tasks():
    store = TaskStore(ttl_seconds=10)
    done_id = store.create()
    running_id = store.create()
    done = store.get(done_id)
    done.complete("ok")
    store.get(running_id).mark_running("busy")

    assert store.evict_expired(now=done.finished_at + 5) == 0
    assert store.evict_expired(now=done.finished_at + 11) == 1
    assert store.get(done_id) is None
    assert store.get(running_id) is not None


def test_zero_ttl_never_evicts():
    store = TaskStore(ttl_seconds=0)
    task_id = store.create()
    store.get(task_id).fail("Erro fatal: x")
    assert store.evict_expired(now=10**12) == 0
