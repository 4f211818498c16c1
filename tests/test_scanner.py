"""End-to-end scans over temporary directory trees."""
import hashlib
import tempfile
import unittest
from pathlib import Path

from dupaudit import (Cancellation, CompareMode, DuplicateScanner, Processor, ScanCancelled, ScanState, VerifyArgs,
                      WalkPolicy, processor_verify_args)

from .test_utils import CollectingProgress, CountingDigest, write_file


class ScannerWithProcessorTest(unittest.TestCase):
    """Scans in hash modes backed by a real worker pool."""

    def test_identical_files_found(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            write_file(root, 'a.txt', 'hello')
            write_file(root, 'b/a.txt', 'hello')

            with Processor(2) as processor:
                scanner = DuplicateScanner(CompareMode.HASH_SHA256,
                                           processor_verify_args(processor, CompareMode.HASH_SHA256))
                result = scanner.scan([root])

            self.assertIs(ScanState.DONE, result.state)
            self.assertIs(ScanState.DONE, scanner.state)
            report = list(result.report(10))
            self.assertEqual(1, len(report))
            self.assertEqual([root / 'a.txt', root / 'b' / 'a.txt'], [r.path for r in report[0].members])
            self.assertEqual(hashlib.sha256(b'hello').hexdigest(), report[0].identity)

    def test_large_files_sampled_then_digested(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            payload = bytes(range(256)) * 64
            write_file(root, 'big1.bin', payload)
            write_file(root, 'big2.bin', payload)
            write_file(root, 'big3.bin', payload[:-1] + b'\x00')

            with Processor(2) as processor:
                args = processor_verify_args(processor, CompareMode.HASH_MD5, sample_size=1024, sample_threshold=4096)
                result = DuplicateScanner(CompareMode.HASH_MD5, args).scan([root])

            report = list(result.report(10))
            self.assertEqual(1, len(report))
            self.assertEqual(['big1.bin', 'big2.bin'], [r.name for r in report[0].members])
            self.assertEqual(hashlib.md5(payload).hexdigest(), report[0].identity)


class ScannerTest(unittest.TestCase):
    def scan(self, mode: CompareMode, roots: list[Path], **kwargs):
        digest = CountingDigest()
        verify_args = VerifyArgs(digest=digest, concurrency=4) if mode.verifies_content else None
        scanner = DuplicateScanner(mode, verify_args, **kwargs)
        return scanner.scan(roots), digest

    def test_different_content_no_duplicates(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            write_file(root, 'x.txt', 'hello')
            write_file(root, 'y.txt', 'world')

            result, digest = self.scan(CompareMode.HASH_SHA256, [root])

            self.assertIs(ScanState.NO_DUPLICATES, result.state)
            self.assertTrue(result.is_empty)
            self.assertEqual(2, len(digest.calls))
            self.assertEqual([], list(result.report(10)))

    def test_fast_mode_case_insensitive_names(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            write_file(root, 'a/report.csv', b'x' * 100)
            write_file(root, 'b/Report.CSV', b'y' * 100)

            result, digest = self.scan(CompareMode.FAST_NAME_SIZE, [root / 'a', root / 'b'])

            self.assertIs(ScanState.DONE, result.state)
            report = list(result.report(10))
            self.assertEqual(1, len(report))
            self.assertEqual(2, report[0].total_count)
            self.assertEqual([], digest.calls)

    def test_empty_root(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            result, _ = self.scan(CompareMode.HASH_SHA256, [Path(tmpdir)])

            self.assertIs(ScanState.NO_FILES, result.state)
            self.assertEqual(0, result.files_enumerated)
            self.assertTrue(result.is_empty)

    def test_no_candidates(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            write_file(root, 'a', '1')
            write_file(root, 'b', '22')

            result, digest = self.scan(CompareMode.HASH_SHA1, [root])

            self.assertIs(ScanState.NO_CANDIDATES, result.state)
            self.assertEqual(2, result.files_enumerated)
            self.assertEqual([], digest.calls)

    def test_unique_sizes_never_hashed(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            for i in range(1, 8):
                write_file(root, f'unique{i}', 'u' * i * 10)
            write_file(root, 'dup/one', 'same')
            write_file(root, 'dup/two', 'same')

            result, digest = self.scan(CompareMode.HASH_SHA256, [root])

            self.assertEqual({root / 'dup' / 'one', root / 'dup' / 'two'}, set(digest.calls))
            self.assertEqual(1, len(list(result.report(10))))

    def test_repeated_scans_are_identical(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            for i in range(6):
                write_file(root, f'd{i % 3}/f{i}', f'content {i % 2}')

            first, _ = self.scan(CompareMode.HASH_SHA256, [root])
            second, _ = self.scan(CompareMode.HASH_SHA256, [root])

            self.assertEqual(list(first.report(2)), list(second.report(2)))

    def test_overlapping_roots_not_self_duplicates(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            write_file(root, 'sub/only.txt', 'content')

            result, _ = self.scan(CompareMode.HASH_SHA256, [root, root / 'sub', root])

            self.assertEqual(1, result.files_enumerated)
            self.assertIs(ScanState.NO_CANDIDATES, result.state)

    def test_exclude_patterns(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            write_file(root, 'keep/a.txt', 'same')
            write_file(root, 'cache/a.txt', 'same')
            write_file(root, 'keep/b.tmp', 'same')

            result, _ = self.scan(CompareMode.HASH_SHA256, [root], policy=WalkPolicy(['cache', '*.tmp']))

            self.assertEqual(1, result.files_enumerated)

    def test_progress_events(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            write_file(root, 'a', 'same')
            write_file(root, 'b', 'same')
            write_file(root, 'c', 'other!')
            progress = CollectingProgress()

            self.scan(CompareMode.HASH_SHA256, [root], progress=progress)

            self.assertEqual(3, len(progress.enumerated))
            self.assertEqual([1], progress.size_classes)
            self.assertEqual([(1, 2), (2, 2)], progress.hashed)

    def test_cancelled_scan_raises(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir).resolve()
            write_file(root, 'a', 'same')
            cancellation = Cancellation()
            cancellation.cancel()

            with self.assertRaises(ScanCancelled):
                self.scan(CompareMode.HASH_SHA256, [root], cancellation=cancellation)

    def test_hash_mode_requires_backend(self):
        with self.assertRaises(ValueError):
            DuplicateScanner(CompareMode.HASH_SHA256)

    def test_scanner_is_single_use(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            scanner = DuplicateScanner(CompareMode.FAST_NAME_SIZE)
            scanner.scan([Path(tmpdir)])

            with self.assertRaises(RuntimeError):
                scanner.scan([Path(tmpdir)])


if __name__ == '__main__':
    unittest.main()
