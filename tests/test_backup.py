import tempfile
import unittest
from pathlib import Path

from wav_meta.backup import BACKUP_SUFFIX, TransactionStateError, stage_write


class TestStagedWrite(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.path = self.tmp / "take.wav"
        self.path.write_bytes(b"original")

    async def asyncTearDown(self) -> None:
        self._tmp.cleanup()

    def _backups(self) -> list[Path]:
        return sorted(self.tmp.glob(f"*{BACKUP_SUFFIX}"))

    async def test_commit_removes_backup(self) -> None:
        staged = await stage_write(self.path)
        self.assertTrue(staged.backup_path.exists())
        self.path.write_bytes(b"changed")
        await staged.commit()
        self.assertEqual(self.path.read_bytes(), b"changed")
        self.assertEqual(self._backups(), [])

    async def test_commit_can_keep_backup(self) -> None:
        staged = await stage_write(self.path, keep_backup=True)
        await staged.commit()
        self.assertEqual([p.read_bytes() for p in self._backups()], [b"original"])

    async def test_rollback_restores_original_bytes(self) -> None:
        staged = await stage_write(self.path)
        self.path.write_bytes(b"half-written")
        await staged.rollback()
        self.assertEqual(self.path.read_bytes(), b"original")
        self.assertEqual(self._backups(), [])

    async def test_context_manager_rolls_back_on_error(self) -> None:
        with self.assertRaises(RuntimeError):
            async with await stage_write(self.path):
                self.path.write_bytes(b"broken")
                raise RuntimeError("boom")
        self.assertEqual(self.path.read_bytes(), b"original")
        self.assertEqual(self._backups(), [])

    async def test_each_stage_gets_its_own_backup(self) -> None:
        first = await stage_write(self.path)
        second = await stage_write(self.path)
        self.assertNotEqual(first.backup_path, second.backup_path)
        await first.commit()
        await second.commit()

    async def test_cannot_finish_twice(self) -> None:
        staged = await stage_write(self.path)
        await staged.commit()
        with self.assertRaises(TransactionStateError):
            await staged.rollback()

    async def test_missing_file_cannot_be_staged(self) -> None:
        with self.assertRaises(FileNotFoundError):
            await stage_write(self.tmp / "missing.wav")
        self.assertEqual(self._backups(), [])


if __name__ == "__main__":
    unittest.main()
