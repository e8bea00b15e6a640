"""Tests for the session registry."""

import threading

import pytest

from xoduel.errors import CodeCollision, SessionFull, SessionNotFound
from xoduel.registry import CODE_ALPHABET, SessionRegistry
from xoduel.session import Phase


def _codes(*codes):
    it = iter(codes)
    return lambda: next(it)


def test_create_assigns_code_and_first_mark():
    registry = SessionRegistry()
    session = registry.create("p1", "Ann")
    assert len(session.code) == 4
    assert all(c in CODE_ALPHABET for c in session.code)
    assert session.phase is Phase.FORMING
    assert [p.mark for p in session.participants] == ["X"]
    assert registry.get(session.code) is session


def test_join_is_case_insensitive():
    registry = SessionRegistry(code_factory=_codes("AB12"))
    registry.create("p1", "Ann")
    session = registry.join(" ab12 ", "p2", "Bob")
    assert session.code == "AB12"
    assert [(p.name, p.mark) for p in session.participants] == [
        ("Ann", "X"),
        ("Bob", "O"),
    ]
    assert "ab12" in registry


def test_join_unknown_code():
    registry = SessionRegistry()
    with pytest.raises(SessionNotFound) as excinfo:
        registry.join("ZZZZ", "p2", "Bob")
    assert excinfo.value.reason == "session-not-found"


def test_join_full_session():
    registry = SessionRegistry(code_factory=_codes("AB12"))
    registry.create("p1", "Ann")
    registry.join("AB12", "p2", "Bob")
    with pytest.raises(SessionFull) as excinfo:
        registry.join("AB12", "p3", "Cid")
    assert excinfo.value.reason == "session-full"
    assert len(registry.get("AB12").participants) == 2


def test_creator_cannot_join_own_session():
    registry = SessionRegistry(code_factory=_codes("AB12"))
    registry.create("p1", "Ann")
    with pytest.raises(SessionFull):
        registry.join("AB12", "p1", "Ann")


def test_colliding_code_is_redrawn():
    registry = SessionRegistry(code_factory=_codes("AB12", "AB12", "cd34"))
    first = registry.create("p1", "Ann")
    second = registry.create("p2", "Bob")
    assert first.code == "AB12"
    assert second.code == "CD34"


def test_exhausted_code_space_raises():
    registry = SessionRegistry(code_factory=lambda: "AB12", max_attempts=3)
    registry.create("p1", "Ann")
    with pytest.raises(CodeCollision):
        registry.create("p2", "Bob")
    assert len(registry) == 1


def test_remove_is_idempotent_and_frees_code():
    registry = SessionRegistry(code_factory=lambda: "AB12")
    session = registry.create("p1", "Ann")
    assert registry.remove("ab12") is session
    assert registry.remove("AB12") is None
    assert registry.get("AB12") is None
    assert registry.create("p2", "Bob").code == "AB12"


def test_concurrent_creates_keep_codes_unique():
    registry = SessionRegistry(code_length=3)
    sessions = []
    lock = threading.Lock()

    def worker(index):
        session = registry.create(f"p{index}", f"Player {index}")
        with lock:
            sessions.append(session)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(64)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    codes = [s.code for s in sessions]
    assert len(set(codes)) == 64
    assert sorted(registry.codes()) == sorted(codes)


def test_discard_ignores_replaced_session():
    registry = SessionRegistry(code_factory=lambda: "AB12")
    old = registry.create("p1", "Ann")
    registry.remove("AB12")
    fresh = registry.create("p2", "Bob")

    registry.discard(old)
    assert registry.get("AB12") is fresh

    registry.discard(fresh)
    assert registry.get("AB12") is None


def test_join_terminated_session_is_not_found():
    registry = SessionRegistry(code_factory=lambda: "AB12")
    session = registry.create("p1", "Ann")
    session.phase = Phase.TERMINATED
    with pytest.raises(SessionNotFound):
        registry.join("AB12", "p2", "Bob")
    assert len(session.participants) == 1


def test_concurrent_joins_seat_exactly_one():
    registry = SessionRegistry(code_factory=lambda: "AB12")
    session = registry.create("p0", "Ann")
    seated, rejected = [], []
    lock = threading.Lock()
    barrier = threading.Barrier(16)

    def worker(index):
        barrier.wait()
        try:
            registry.join("AB12", f"p{index}", f"Player {index}")
        except SessionFull:
            with lock:
                rejected.append(index)
        else:
            with lock:
                seated.append(index)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(1, 17)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(seated) == 1
    assert len(rejected) == 15
    assert len(session.participants) == 2
    assert session.participants[1].participant_id == f"p{seated[0]}"


def test_concurrent_join_and_remove():
    codes = iter(f"C{i:03d}" for i in range(32))
    registry = SessionRegistry(code_factory=lambda: next(codes))
    sessions = [registry.create(f"host{i}", "Host") for i in range(32)]
    failures = []
    lock = threading.Lock()
    barrier = threading.Barrier(96)

    def joiner(code, index):
        barrier.wait()
        try:
            registry.join(code, f"guest{index}", "Guest")
        except (SessionFull, SessionNotFound):
            pass
        except Exception as exc:  # pragma: no cover - surfaced by the assert below
            with lock:
                failures.append(exc)

    def remover(code):
        barrier.wait()
        registry.remove(code)

    threads = []
    for i, session in enumerate(sessions):
        threads.append(threading.Thread(target=joiner, args=(session.code, 2 * i)))
        threads.append(threading.Thread(target=joiner, args=(session.code, 2 * i + 1)))
        threads.append(threading.Thread(target=remover, args=(session.code,)))
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert failures == []
    assert len(registry) == 0
    for session in sessions:
        assert 1 <= len(session.participants) <= 2
        assert session.participants[0].participant_id.startswith("host")
