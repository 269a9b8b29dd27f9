from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, List


def gather(calls: List[Callable], max_workers: int) -> List:
    """Run the calls on a thread pool and return their results in order.

    Waits for every call to finish; the first failure (in call order) is then
    re-raised, so one failing fetch fails the whole batch.
    """
    if not calls:
        return []
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(calls)))) as pool:
        futures = [pool.submit(call) for call in calls]
        wait(futures)
    return [f.result() for f in futures]
