import unittest
from datetime import datetime, timedelta
from unittest import mock

from aiwire.pipeline.scheduler import CrawlScheduler
from aiwire.storage import postgres_settings
from aiwire.storage.postgres_settings import RunSettings, SettingsFeed, SettingsWatcher


def _settings(interval, enabled=True):
    return RunSettings(crawl_interval_minutes=interval, auto_crawl_enabled=enabled)


class TestCrawlScheduler(unittest.TestCase):
    def setUp(self):
        self.run_job = mock.Mock()
        self.scheduler = CrawlScheduler(self.run_job, poll_seconds=0.01)

    def test_three_changes_leave_one_job_with_last_interval(self):
        for interval in (30, 60, 15):
            self.scheduler.apply(_settings(interval))
        jobs = self.scheduler.jobs
        self.assertEqual(len(jobs), 1)
        self.assertIs(jobs[0], self.scheduler.active_job)
        self.assertEqual(jobs[0].interval, 15)
        self.assertEqual(jobs[0].unit, "minutes")

    def test_disabling_removes_the_job(self):
        self.scheduler.apply(_settings(30))
        self.scheduler.apply(_settings(30, enabled=False))
        self.assertEqual(self.scheduler.jobs, [])
        self.assertIsNone(self.scheduler.active_job)

    def test_missing_settings_means_no_job(self):
        self.scheduler.apply(_settings(30))
        self.scheduler.apply(None)
        self.assertEqual(self.scheduler.jobs, [])

    def test_due_job_runs_the_pipeline(self):
        self.scheduler.apply(_settings(30))
        self.scheduler.active_job.next_run = datetime.now() - timedelta(seconds=1)
        self.scheduler.run_pending()
        self.run_job.assert_called_once_with()
        self.assertGreater(self.scheduler.active_job.next_run, datetime.now())

    def test_not_due_job_does_not_run(self):
        self.scheduler.apply(_settings(30))
        self.scheduler.run_pending()
        self.run_job.assert_not_called()

    def test_failing_run_does_not_escape(self):
        self.run_job.side_effect = RuntimeError("boom")
        self.scheduler.apply(_settings(30))
        self.scheduler.active_job.next_run = datetime.now() - timedelta(seconds=1)
        self.scheduler.run_pending()
        self.assertEqual(len(self.scheduler.jobs), 1)

    def test_replaced_job_does_not_run(self):
        self.scheduler.apply(_settings(30))
        stale = self.scheduler.active_job
        self.scheduler.apply(_settings(30, enabled=False))
        stale.run()
        self.run_job.assert_not_called()

        self.scheduler.apply(_settings(30))
        stale = self.scheduler.active_job
        self.scheduler.apply(_settings(60))
        stale.run()
        self.run_job.assert_not_called()
        self.scheduler.active_job.run()
        self.run_job.assert_called_once_with()

    def test_settings_feed_drives_scheduler(self):
        feed = SettingsFeed()
        feed.subscribe(self.scheduler.apply)
        broken = mock.Mock(side_effect=RuntimeError("bad subscriber"))
        feed.subscribe(broken)
        feed.publish(_settings(45))
        feed.publish(_settings(90))
        self.assertEqual(len(self.scheduler.jobs), 1)
        self.assertEqual(self.scheduler.active_job.interval, 90)
        self.assertEqual(broken.call_count, 2)

    def test_start_and_stop(self):
        self.scheduler.start()
        self.scheduler.stop()
        self.scheduler.wait()
        self.run_job.assert_not_called()


class TestSettingsWatcher(unittest.TestCase):
    def test_reloads_once_listening(self):
        store = mock.Mock(pg_dsn="postgresql://localhost/aiwire")
        store.load.return_value = _settings(20)
        feed = mock.Mock()
        watcher = SettingsWatcher(store, feed, poll_seconds=0.5)

        def notifies(timeout):
            watcher._stop.set()
            return iter(())

        conn = mock.MagicMock()
        conn.notifies.side_effect = notifies
        with mock.patch.object(postgres_settings.psycopg, "connect") as connect:
            connect.return_value.__enter__.return_value = conn
            watcher._listen()

        conn.execute.assert_called_once_with(f"LISTEN {postgres_settings.SETTINGS_CHANNEL}")
        conn.notifies.assert_called_once_with(timeout=0.5)
        feed.publish.assert_called_once_with(store.load.return_value)


if __name__ == "__main__":
    unittest.main()
