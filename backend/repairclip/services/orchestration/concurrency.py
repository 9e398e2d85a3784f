"""
Structured fan-out for stages that fetch or extract several files at once.
"""

import asyncio
from typing import Any, Coroutine, List


async def run_concurrently(*aws: Coroutine[Any, Any, Any]) -> List[Any]:
    """Await all of ``aws`` concurrently and return their results in order.

    When one fails, the others are cancelled and awaited before the first
    failure is re-raised unwrapped, so nothing keeps writing into a workspace
    that is being cleaned up.
    """
    try:
        async with asyncio.TaskGroup() as group:
            tasks = [group.create_task(aw) for aw in aws]
    except ExceptionGroup as failures:
        raise failures.exceptions[0]
    return [task.result() for task in tasks]
