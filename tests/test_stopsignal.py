import threading

from shardsim.stopsignal import StopSignal


def test_reaches_threshold():
    signal = StopSignal(3)
    signal.increment()
    signal.increment()
    assert not signal.gap_enough()
    signal.increment()
    assert signal.gap_enough()


def test_reset_clears_gap():
    signal = StopSignal(2)
    signal.increment()
    signal.increment()
    signal.reset()
    assert signal.gap == 0
    assert not signal.gap_enough()


def test_zero_threshold_is_immediately_enough():
    assert StopSignal(0).gap_enough()


def test_concurrent_increments_are_counted():
    signal = StopSignal(10_000)

    def work():
        for _ in range(500):
            signal.increment()

    threads = [threading.Thread(target=work) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert signal.gap == 8 * 500