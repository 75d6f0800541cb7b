"""
Process helpers for running the collection pass on several processes.
"""
import time
import multiprocessing

from ..log import logger


class CallerProcess(multiprocessing.Process):
    """
    One worker of a multi-process job. The worker object is built by
    ``func`` in the parent and its ``run()`` is called in the child.

    It's a shield for ``func``
    """

    def __init__(self, func, *args, **kwargs):
        multiprocessing.Process.__init__(self)
        self.single_process = func(*args, **kwargs)

    def run(self):
        self.single_process.run()


def process_runner(processes, poll_interval=1):
    """Start and monitor ``processes``. Return the ones that failed."""

    for p in processes:
        p.start()

    # listen for signal while any process is alive
    try:
        while any(p.is_alive() for p in processes):
            time.sleep(poll_interval)

    except KeyboardInterrupt:
        logger.warning('KeyboardInterrupt detected, terminating all processes...')
        for p in processes:
            p.terminate()

        raise

    # Make sure all process are finished
    for p in processes:
        p.join()

    return [p for p in processes if p.exitcode != 0]
