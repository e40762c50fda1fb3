"""Wake-up signal for the background scheduler loop."""

import asyncio


class SchedulerTrigger:
    """Lets data-change events run the scheduler before its next tick."""

    def __init__(self):
        self._condition: asyncio.Condition | None = None
        self._pending = False

    def _get_condition(self) -> asyncio.Condition:
        # Created lazily so it binds to the running loop
        if self._condition is None:
            self._condition = asyncio.Condition()
        return self._condition

    async def notify(self):
        """Ask the loop to run a cycle now."""
        condition = self._get_condition()
        async with condition:
            self._pending = True
            condition.notify_all()

    async def wait(self, timeout: float) -> bool:
        """
        Wait for a trigger or the end of the interval.

        Returns:
            True if triggered, False if timeout occurred
        """
        condition = self._get_condition()
        async with condition:
            if not self._pending:
                try:
                    await asyncio.wait_for(condition.wait(), timeout=timeout)
                except asyncio.TimeoutError:
                    return False
            self._pending = False
            return True


# Global trigger instance
trigger = SchedulerTrigger()
