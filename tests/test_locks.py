"""Per-key serialisation of grid writers."""

import threading
import time

from scheduling.locks import KeyedLocks


def test_same_key_writers_do_not_interleave():
    locks = KeyedLocks()
    events = []

    def writer(name):
        with locks.hold(("grid", 1, "2026-03-02")):
            events.append(f"{name}-start")
            time.sleep(0.05)
            events.append(f"{name}-end")

    threads = [threading.Thread(target=writer, args=(n,)) for n in ("a", "b")]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    # each writer finishes before the other starts
    assert events[0].split("-")[0] == events[1].split("-")[0]
    assert events[2].split("-")[0] == events[3].split("-")[0]


def test_different_keys_run_in_parallel():
    locks = KeyedLocks()
    inside = threading.Event()
    release = threading.Event()

    def holder():
        with locks.hold(("grid", 1, "2026-03-02")):
            inside.set()
            release.wait(2)

    t = threading.Thread(target=holder)
    t.start()
    assert inside.wait(2)

    entered = threading.Event()

    def other():
        with locks.hold(("grid", 2, "2026-03-02")):
            entered.set()

    t2 = threading.Thread(target=other)
    t2.start()
    assert entered.wait(2)

    release.set()
    t.join()
    t2.join()


def test_unused_keys_are_released():
    locks = KeyedLocks()
    with locks.hold("a"):
        assert len(locks) == 1
    assert len(locks) == 0
