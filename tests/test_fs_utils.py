import tempfile
import unittest
from pathlib import Path

from wav_meta import fs_utils
from wav_meta.fs_utils import path_exists


class TestFsUtils(unittest.TestCase):
    def test_path_exists_true_false(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            tmp = Path(tmpdir)
            p = tmp / "take.wav"
            self.assertEqual(path_exists(p), False)
            p.write_bytes(b"x")
            self.assertEqual(path_exists(p), True)

    def test_path_exists_false_when_parent_missing(self) -> None:
        p = Path("/this/path/does/not/exist/take.wav")
        self.assertEqual(path_exists(p), False)


class TestAsyncHelpers(unittest.IsolatedAsyncioTestCase):
    async def test_copy_into_new_directory_and_remove(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            tmp = Path(tmpdir)
            src = tmp / "take.wav"
            await fs_utils.write_bytes(src, b"RIFF")
            dest = tmp / "a" / "b" / "take.wav"
            await fs_utils.ensure_directory(dest.parent)
            await fs_utils.copy_file(src, dest)
            self.assertEqual(await fs_utils.read_bytes(dest), b"RIFF")
            self.assertTrue(await fs_utils.exists(dest))
            await fs_utils.remove(dest)
            await fs_utils.remove(dest)
            self.assertFalse(await fs_utils.exists(dest))


if __name__ == "__main__":
    unittest.main()
