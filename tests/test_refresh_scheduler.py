import unittest

from watchtower.modules.dashboard.messages import RefreshTick
from watchtower.modules.dashboard.scheduler import RefreshScheduler


class RefreshSchedulerTest(unittest.IsolatedAsyncioTestCase):
    async def test_start_registers_single_interval_job(self):
        posted = []
        scheduler = RefreshScheduler(interval_seconds=120, post=posted.append)
        scheduler.start()
        scheduler.start()
        try:
            jobs = scheduler.scheduler.get_jobs()
            self.assertEqual([job.id for job in jobs], [RefreshScheduler.JOB_ID])
            self.assertEqual(jobs[0].trigger.interval.total_seconds(), 120)
            self.assertEqual(posted, [])
        finally:
            scheduler.shutdown()
        self.assertIsNone(scheduler.scheduler)

    async def test_job_posts_refresh_tick(self):
        posted = []
        scheduler = RefreshScheduler(interval_seconds=60, post=posted.append)
        await scheduler._tick()
        self.assertEqual(posted, [RefreshTick()])


if __name__ == "__main__":
    unittest.main()
