import asyncio
import unittest

from watchtower.core.concurrency import gather_group
from watchtower.core.errors import GroupFetchError


async def _value(value, delay=0.0):
    await asyncio.sleep(delay)
    return value


async def _fail(message, delay=0.0):
    await asyncio.sleep(delay)
    raise ValueError(message)


class GatherGroupTest(unittest.IsolatedAsyncioTestCase):
    async def test_results_keep_submission_order_regardless_of_completion(self):
        results = await gather_group("order", [_value("slow", 0.03), _value("fast"), _value("mid", 0.01)])
        self.assertEqual(results, ["slow", "fast", "mid"])

    async def test_partial_failure_silently_drops_failed_members(self):
        results = await gather_group("partial", [_value(1), _fail("boom"), _value(3)])
        self.assertEqual(results, [1, 3])

    async def test_total_failure_raises_one_consolidated_error(self):
        with self.assertRaises(GroupFetchError) as ctx:
            await gather_group("total", [_fail("first"), _fail("second", 0.01)])
        self.assertEqual([str(error) for error in ctx.exception.errors], ["first", "second"])
        self.assertEqual(str(ctx.exception), "first; second")

    async def test_empty_group_returns_empty_list(self):
        self.assertEqual(await gather_group("empty", []), [])


if __name__ == "__main__":
    unittest.main()
