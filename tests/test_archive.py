"""test_archive.py - reading game zips and writing the translated copy"""

import json
import os
import unittest
import zipfile

from base_test import TempDirTestCase, command, map_document
from src.core.scanner import scan_archive
from src.utils.archive import ArchiveError, GameArchive, default_output_path, write_translated_archive


class TestGameArchive(TempDirTestCase):

    def test_entries_and_text(self):
        path = self.make_zip({
            "www/": None,
            "www/data/Map001.json": map_document(command(401, "Hello")),
            "www/img/readme.txt": "just text",
        })
        with GameArchive(path) as archive:
            entries = {e.name: e for e in archive.entries()}
            self.assertTrue(entries["www/"].is_dir)
            self.assertFalse(entries["www/data/Map001.json"].is_dir)
            self.assertEqual(entries["www/img/readme.txt"].read_text(), "just text")

    def test_bom_is_dropped(self):
        path = os.path.join(self.tmp, "bom.zip")
        with zipfile.ZipFile(path, "w") as z:
            z.writestr("data/Items.json", "\ufeff[null]".encode("utf-8"))
        with GameArchive(path) as archive:
            self.assertEqual(json.loads(archive.read_text("data/Items.json")), [None])

    def test_unreadable_container_is_fatal(self):
        bogus = os.path.join(self.tmp, "bogus.zip")
        with open(bogus, "wb") as f:
            f.write(b"definitely not a zip")
        with self.assertRaises(ArchiveError):
            GameArchive(bogus).open()
        with self.assertRaises(ArchiveError):
            GameArchive(os.path.join(self.tmp, "missing.zip")).open()

    def test_scan_real_zip(self):
        path = self.make_zip({
            "www/data/": None,
            "www/data/Map002.json": map_document(command(401, "Second map")),
            "www/data/System.json": {"gameTitle": "Tea Quest"},
            "www/data/Broken.json": "{",
            "www/data/Items.json": "{",
        })
        with GameArchive(path) as archive:
            records = scan_archive(archive)
        self.assertEqual([r.name for r in records], ["www/data/System.json", "www/data/Map002.json"])


class TestWriteTranslatedArchive(TempDirTestCase):

    def test_merges_replacements_with_unchanged_entries(self):
        source = self.make_zip({
            "www/": None,
            "www/data/Map001.json": map_document(command(401, "Hello")),
            "www/js/plugins.js": "var $plugins = [];",
        })
        dest = os.path.join(self.tmp, "out", "Game_arabic.zip")
        replaced = write_translated_archive(source, dest, {"www/data/Map001.json": '{"events":"مرحبا"}'})

        self.assertEqual(replaced, 1)
        with zipfile.ZipFile(dest) as z:
            self.assertEqual(sorted(z.namelist()), ["www/", "www/data/Map001.json", "www/js/plugins.js"])
            self.assertEqual(z.read("www/data/Map001.json").decode("utf-8"), '{"events":"مرحبا"}')
            self.assertEqual(z.read("www/js/plugins.js"), b"var $plugins = [];")
            self.assertIsNone(z.testzip())
        self.assertFalse(os.path.exists(os.path.join(self.tmp, "out", ".Game_arabic.zip.tmp")))

    def test_default_output_name(self):
        self.assertEqual(default_output_path("/games/Game.zip", "Arabic"), "/games/Game_arabic.zip")


if __name__ == '__main__':
    unittest.main()
