"""test_pipeline_worker.py - Qt signal bridge and command-line entry point"""

import json
import os
import unittest
import zipfile
from unittest import mock

from PyQt6.QtCore import QCoreApplication

from base_test import FakeTranslator, SleepRecorder, TempDirTestCase, command, map_document
import main
from src.core.constants import API_KEY_ENV
from src.core.translation_pipeline import TranslationPipeline
from src.ui.pipeline_worker import PipelineWorker

app = QCoreApplication.instance() or QCoreApplication([])


class TestPipelineWorker(TempDirTestCase):

    def make_worker(self, archive_path, output_path=None, translator=None):
        pipeline = TranslationPipeline({"inter_batch_delay_ms": 0},
                                       translator=translator or FakeTranslator(),
                                       sleep=SleepRecorder())
        worker = PipelineWorker({}, archive_path, output_path, pipeline=pipeline)
        self.events = {"stage": [], "file": [], "progress": [], "log": [], "finished": []}
        worker.stage_changed.connect(lambda s: self.events["stage"].append(s))
        worker.file_updated.connect(lambda *a: self.events["file"].append(a))
        worker.progress_updated.connect(lambda d: self.events["progress"].append(d))
        worker.log_message.connect(lambda *a: self.events["log"].append(a))
        worker.finished.connect(lambda *a: self.events["finished"].append(a))
        return worker

    def test_run_forwards_events_and_writes_output(self):
        source = self.make_zip({"www/data/Map001.json": map_document(command(401, "Hello there"))})
        out = os.path.join(self.tmp, "Game_arabic.zip")
        worker = self.make_worker(source, out)
        worker.run()

        self.assertEqual(self.events["stage"], ["scanned", "translating", "done"])
        self.assertIn(("www/data/Map001.json", "done", 100), self.events["file"])
        self.assertEqual(self.events["progress"][-1]["percent"], 100)
        (ok, message), = self.events["finished"]
        self.assertTrue(ok)
        self.assertIn("1 files translated", message)

        with zipfile.ZipFile(out) as z:
            doc = json.loads(z.read("www/data/Map001.json"))
        self.assertEqual(doc["events"][1]["pages"][0]["list"][0]["parameters"], ["<Hello there>"])

    def test_unreadable_archive_reports_failure(self):
        worker = self.make_worker(os.path.join(self.tmp, "missing.zip"))
        worker.run()
        (ok, message), = self.events["finished"]
        self.assertFalse(ok)
        self.assertIn("missing.zip", message)

    def test_stop_before_run(self):
        source = self.make_zip({"www/data/Map001.json": map_document(command(401, "Hello there"))})
        backend = FakeTranslator()
        worker = self.make_worker(source, translator=backend)
        worker.stop()
        worker.run()
        self.assertEqual(backend.calls, [])
        (ok, message), = self.events["finished"]
        self.assertTrue(ok)
        self.assertIn("Stopped", message)


class TestCommandLine(TempDirTestCase):

    def setUp(self):
        super().setUp()
        self.cwd = os.getcwd()
        os.chdir(self.tmp)

    def tearDown(self):
        os.chdir(self.cwd)
        super().tearDown()

    def test_dry_run_writes_archive(self):
        source = self.make_zip({
            "www/data/Items.json": [None, {"name": "Potion", "description": "Heals 50 HP"}],
            "www/js/main.js": "// game",
        })
        out = os.path.join(self.tmp, "out.zip")
        self.assertEqual(main.main([source, "--dry-run", "--out", out]), 0)
        with zipfile.ZipFile(out) as z:
            self.assertEqual(sorted(z.namelist()), ["www/data/Items.json", "www/js/main.js"])
            items = json.loads(z.read("www/data/Items.json"))
        self.assertEqual(items[1]["name"], "Potion")

    def test_missing_api_key(self):
        source = self.make_zip({"www/data/Items.json": [None, {"name": "Potion"}]})
        with mock.patch.dict(os.environ, {API_KEY_ENV: ""}):
            self.assertEqual(main.main([source]), 1)

    def test_bad_archive(self):
        self.assertEqual(main.main([os.path.join(self.tmp, "nope.zip"), "--dry-run"]), 1)

    def test_save_settings_omits_key(self):
        source = self.make_zip({"www/data/Items.json": [None, {"name": "Potion"}]})
        main.main([source, "--dry-run", "--lang", "French", "--api-key", "sk-x",
                   "--save-settings", "--out", os.path.join(self.tmp, "o.zip")])
        with open(os.path.join(self.tmp, "settings.json"), encoding="utf-8") as f:
            saved = json.load(f)
        self.assertEqual(saved["target_lang"], "French")
        self.assertNotIn("api_key", saved)


if __name__ == '__main__':
    unittest.main()
