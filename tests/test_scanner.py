import tempfile
import unittest
from pathlib import Path

from wav_meta.config import LibrarySettings
from wav_meta.scanner import LibraryScanner


class TestLibraryScanner(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name).resolve()
        for rel in ("day1/a.wav", "day1/B.WAV", "day1/notes.txt", "day2/c.wav", "trash/d.wav"):
            path = self.root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(b"")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_iter_files_filters_extensions_and_excludes(self) -> None:
        scanner = LibraryScanner(
            LibrarySettings(roots=[str(self.root)], exclude_patterns=["*/trash/*"])
        )
        names = [p.relative_to(self.root).as_posix() for p in scanner.iter_files()]
        self.assertEqual(names, ["day1/B.WAV", "day1/a.wav", "day2/c.wav"])

    def test_expand_mixes_files_and_directories_without_duplicates(self) -> None:
        scanner = LibraryScanner(LibrarySettings())
        files = scanner.expand([self.root / "day2", self.root / "day2" / "c.wav", self.root / "day1" / "a.wav"])
        self.assertEqual(files, [self.root / "day2" / "c.wav", self.root / "day1" / "a.wav"])

    def test_missing_root_yields_nothing(self) -> None:
        scanner = LibraryScanner(LibrarySettings(roots=[str(self.root / "nope")]))
        self.assertEqual(list(scanner.iter_files()), [])


if __name__ == "__main__":
    unittest.main()
