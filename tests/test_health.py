import threading

from xmr_pool_rpc.rpc.constants import SICK_THRESHOLD
from xmr_pool_rpc.rpc.health import HealthSnapshot, ReadWriteLock, UpstreamHealth


def test_starts_alive_with_zero_counters():
    health = UpstreamHealth("main")
    assert health.is_sick() is False
    assert health.snapshot() == HealthSnapshot(sick=False, sick_rate=0, success_rate=0)


def test_fifth_failure_is_first_sick_reading():
    health = UpstreamHealth("main")
    for i in range(SICK_THRESHOLD - 1):
        health.mark_sick()
        assert health.is_sick() is False, f"sick after {i + 1} failures"
    health.mark_sick()
    assert health.is_sick() is True
    assert health.snapshot().sick_rate == SICK_THRESHOLD


def test_sick_rate_keeps_counting_past_threshold():
    health = UpstreamHealth("main")
    for _ in range(SICK_THRESHOLD + 3):
        health.mark_sick()
    snap = health.snapshot()
    assert snap.sick is True
    assert snap.sick_rate == SICK_THRESHOLD + 3
    assert snap.success_rate == 0


def test_five_successes_recover_and_reset_counters():
    health = UpstreamHealth("main")
    for _ in range(SICK_THRESHOLD):
        health.mark_sick()

    for _ in range(SICK_THRESHOLD - 1):
        health.mark_alive()
        assert health.is_sick() is True

    health.mark_alive()
    assert health.snapshot() == HealthSnapshot(sick=False, sick_rate=0, success_rate=0)


def test_success_resets_failure_streak_but_not_sick_flag():
    health = UpstreamHealth("main")
    for _ in range(SICK_THRESHOLD):
        health.mark_sick()

    health.mark_alive()
    snap = health.snapshot()
    assert snap.sick is True
    assert snap.sick_rate == 0
    assert snap.success_rate == 1


def test_failure_resets_success_streak():
    health = UpstreamHealth("main")
    for _ in range(SICK_THRESHOLD):
        health.mark_sick()
    for _ in range(SICK_THRESHOLD - 1):
        health.mark_alive()

    health.mark_sick()
    snap = health.snapshot()
    assert snap.sick is True
    assert snap.success_rate == 0
    assert snap.sick_rate == 1

    # Recovery needs a full new streak
    for _ in range(SICK_THRESHOLD - 1):
        health.mark_alive()
    assert health.is_sick() is True
    health.mark_alive()
    assert health.is_sick() is False


def test_short_failure_streak_is_cleared_by_success():
    health = UpstreamHealth("main")
    for _ in range(SICK_THRESHOLD - 1):
        health.mark_sick()
    health.mark_alive()

    # A fresh streak is needed to go sick
    for _ in range(SICK_THRESHOLD - 1):
        health.mark_sick()
    assert health.is_sick() is False


def test_at_most_one_streak_counter_non_zero():
    health = UpstreamHealth("main")
    pattern = [True, True, False, True, False, False, True, True, True, True, True, False]
    for failed in pattern:
        if failed:
            health.mark_sick()
        else:
            health.mark_alive()
        snap = health.snapshot()
        assert snap.sick_rate == 0 or snap.success_rate == 0


def test_mark_sick_reports_streak_start_only_once():
    health = UpstreamHealth("main")
    starts = [health.mark_sick() for _ in range(SICK_THRESHOLD + 2)]
    assert starts == [True] + [False] * (SICK_THRESHOLD + 1)


def test_failures_while_sick_never_start_a_streak():
    health = UpstreamHealth("main")
    for _ in range(SICK_THRESHOLD):
        health.mark_sick()
    health.mark_alive()
    assert health.mark_sick() is False


def test_new_streak_after_partial_recovery_is_reported():
    health = UpstreamHealth("main")
    assert health.mark_sick() is True
    assert health.mark_sick() is False
    health.mark_alive()
    assert health.mark_sick() is True


def test_custom_threshold():
    health = UpstreamHealth("main", threshold=2)
    health.mark_sick()
    assert health.is_sick() is False
    health.mark_sick()
    assert health.is_sick() is True


def test_readers_share_the_lock():
    lock = ReadWriteLock()
    inside = threading.Barrier(2, timeout=5)

    def reader():
        with lock.read_locked():
            # Both readers must be inside at once for the barrier to release
            inside.wait()

    threads = [threading.Thread(target=reader) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5)
    assert not inside.broken


def test_writer_excludes_readers():
    lock = ReadWriteLock()
    events = []
    writer_in = threading.Event()
    release_writer = threading.Event()

    def writer():
        with lock.write_locked():
            writer_in.set()
            release_writer.wait(timeout=5)
            events.append("writer done")

    def reader():
        with lock.read_locked():
            events.append("reader")

    w = threading.Thread(target=writer)
    w.start()
    assert writer_in.wait(timeout=5)
    r = threading.Thread(target=reader)
    r.start()
    r.join(timeout=0.2)
    assert events == []
    release_writer.set()
    w.join(timeout=5)
    r.join(timeout=5)
    assert events == ["writer done", "reader"]
