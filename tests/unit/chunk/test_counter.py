from concurrent.futures import ThreadPoolExecutor

from s3upload.chunk.counter import ProgressCounter


def test_counter_starts_at_zero():
    assert ProgressCounter().get() == 0


def test_increment_and_decrement_return_new_value():
    counter = ProgressCounter()

    assert counter.increment(5) == 5
    assert counter.increment(3) == 8
    assert counter.decrement(6) == 2
    assert counter.get() == 2


def test_reset():
    counter = ProgressCounter(42)
    counter.reset()

    assert counter.get() == 0


def test_concurrent_increments_are_not_lost():
    counter = ProgressCounter()
    workers = 8
    per_worker = 2000

    def bump(_: int) -> None:
        for _ in range(per_worker):
            counter.increment(1)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        list(pool.map(bump, range(workers)))

    assert counter.get() == workers * per_worker


def test_concurrent_increments_and_decrements_balance():
    counter = ProgressCounter()

    def churn(_: int) -> None:
        for _ in range(1000):
            counter.increment(7)
            counter.decrement(7)

    with ThreadPoolExecutor(max_workers=6) as pool:
        list(pool.map(churn, range(6)))

    assert counter.get() == 0
