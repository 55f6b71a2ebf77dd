import logging
import os
import threading
import time

logger = logging.getLogger(__name__)


def sweep_temp_dir(temp_dir, max_age, now=None):
    """Delete files in ``temp_dir`` last modified more than ``max_age`` seconds ago."""
    if not os.path.isdir(temp_dir):
        return 0
    now = time.time() if now is None else now
    removed = 0
    for name in os.listdir(temp_dir):
        path = os.path.join(temp_dir, name)
        try:
            if os.path.isfile(path) and now - os.path.getmtime(path) > max_age:
                os.remove(path)
                removed += 1
        except OSError as e:
            logger.error(f"Error cleaning up temp file {path}: {e}")
    return removed


def run_sweep(cache, temp_dir, max_age):
    expired = cache.sweep()
    removed = sweep_temp_dir(temp_dir, max_age)
    if expired or removed:
        logger.info(f"Sweep removed {expired} cache entries and {removed} temp files")


def start_sweeper(cache, temp_dir, max_age, interval):
    """Start a daemon thread sweeping the cache and temp dir every ``interval`` seconds.

    Set the returned event to stop the thread.
    """
    stop = threading.Event()

    def loop():
        while not stop.wait(interval):
            try:
                run_sweep(cache, temp_dir, max_age)
            except Exception as e:
                logger.error(f"Sweep failed: {e}")

    thread = threading.Thread(target=loop, name='ytdownloader-sweeper')
    thread.daemon = True
    thread.start()
    return stop
