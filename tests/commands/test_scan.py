"""Tests for the scan pipeline: walker, worker pool and collector wired together."""
import os
import tempfile
import threading
import unittest
from pathlib import Path
from unittest import mock

from hashdup.commands.scan import Collector, ScanOptions, do_scan
from hashdup.index.duplicate_index import DuplicateIndex, FileRecord, SkipRecord, SkipReason
from hashdup.utils.channel import Channel

from ..test_utils import CollectingReporter, make_tree, membership


class FailingReporter(CollectingReporter):
    def progress(self, processed: int, unique: int):
        raise RuntimeError('reporter failed')



class ScanTest(unittest.TestCase):
    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.root = Path(self._tmpdir.name)

    def tearDown(self):
        self._tmpdir.cleanup()

    def _scan(self, **options) -> DuplicateIndex:
        return do_scan(self.root, ScanOptions(**options), CollectingReporter())

    def test_hello_world(self):
        files = make_tree(self.root, {'A': b'hello', 'B': b'hello', 'C': b'world', 'D': b''})

        index = self._scan()

        self.assertEqual([('5d41402a', [files['A'], files['B']])], sorted(
            (fingerprint, sorted(paths)) for fingerprint, paths in index.duplicates()))
        self.assertEqual([files['C']], index['7d793037'])
        self.assertEqual([SkipRecord(files['D'], SkipReason.EMPTY)], index.skipped)
        self.assertTrue(index.frozen)

    def test_size_ceiling(self):
        files = make_tree(self.root, {
            'at1': b'a' * 10,
            'at2': b'a' * 10,
            'over1': b'b' * 11,
            'over2': b'b' * 11,
        })

        index = self._scan(max_file_size=10)

        self.assertEqual({frozenset([files['at1'], files['at2']])}, membership(index.duplicates()))
        self.assertEqual({files['over1'], files['over2']}, {r.path for r in index.skipped})
        self.assertEqual(2, index.skip_counts()[SkipReason.TOO_LARGE])

    def test_partition_and_completeness(self):
        contents = {}
        for i in range(60):
            contents[f'dir{i % 4}/sub{i % 3}/file{i}'] = f'content {i % 7}'.encode()
        contents['empty1'] = b''
        contents['big'] = b'x' * 200
        files = make_tree(self.root, contents)

        index = self._scan(max_file_size=100, worker_count=8)

        grouped = [path for _, paths in index.items() for path in paths]
        skipped = [record.path for record in index.skipped]
        self.assertEqual(len(grouped), len(set(grouped)))
        self.assertFalse(set(grouped) & set(skipped))
        self.assertEqual(set(files.values()), set(grouped) | set(skipped))
        self.assertEqual(60, index.processed)
        self.assertEqual(7, len(index))

    def test_worker_count_does_not_change_membership(self):
        contents = {f'd{i % 5}/f{i}': bytes([i % 9]) * (i + 1 if i % 9 else 1) for i in range(80)}
        make_tree(self.root, contents)

        single = membership(self._scan(worker_count=1).duplicates())
        many = membership(self._scan(worker_count=16).duplicates())
        again = membership(self._scan(worker_count=16, queue_size=1).duplicates())

        self.assertTrue(single)
        self.assertEqual(single, many)
        self.assertEqual(single, again)

    def test_unreadable_directory_does_not_stop_siblings(self):
        files = make_tree(self.root, {
            'a/one': b'dup',
            'locked/two': b'dup',
            'z/three': b'dup',
        })
        locked = self.root / 'locked'
        real_iterdir = Path.iterdir

        def iterdir(path):
            if path == locked:
                raise PermissionError(13, 'Permission denied', str(path))
            return real_iterdir(path)

        with mock.patch.object(Path, 'iterdir', iterdir), self.assertLogs('hashdup.commands.scan', 'WARNING'):
            index = self._scan()

        self.assertEqual({frozenset([files['a/one'], files['z/three']])}, membership(index.duplicates()))
        self.assertEqual([SkipReason.WALK_ERROR], [r.reason for r in index.skipped])
        self.assertEqual(locked, index.skipped[0].path)

    def test_unopenable_file_skipped(self):
        files = make_tree(self.root, {'a': b'dup', 'b': b'dup', 'c': b'dup'})
        real_open = open

        def failing_open(file, *args, **kwargs):
            if Path(file) == files['b']:
                raise PermissionError(13, 'Permission denied', str(file))
            return real_open(file, *args, **kwargs)

        with mock.patch('builtins.open', failing_open), self.assertLogs('hashdup.utils.processor', 'WARNING'):
            index = self._scan()

        self.assertEqual({frozenset([files['a'], files['c']])}, membership(index.duplicates()))
        self.assertEqual([SkipRecord(files['b'], SkipReason.OPEN_ERROR, index.skipped[0].detail)], index.skipped)

    @unittest.skipIf(os.name != 'posix', "symlinks and FIFOs")
    def test_non_regular_entries_skipped(self):
        files = make_tree(self.root, {'a': b'dup', 'b': b'dup'})
        (self.root / 'link').symlink_to(files['a'])
        os.mkfifo(self.root / 'fifo')

        index = self._scan()

        self.assertEqual({frozenset([files['a'], files['b']])}, membership(index.duplicates()))
        self.assertEqual(2, index.skip_counts()[SkipReason.NOT_REGULAR])

    def test_missing_root(self):
        with self.assertLogs('hashdup.commands.scan', 'WARNING'):
            index = do_scan(self.root / 'missing', ScanOptions(), CollectingReporter())

        self.assertEqual(0, len(index))
        self.assertEqual([SkipReason.WALK_ERROR], [r.reason for r in index.skipped])

    def test_progress_notifications(self):
        make_tree(self.root, {f'f{i}': str(i % 3).encode() for i in range(25)})
        reporter = CollectingReporter()

        do_scan(self.root, ScanOptions(progress_interval=10), reporter)

        self.assertEqual([10, 20], [processed for processed, _ in reporter.progress_calls])
        self.assertTrue(all(1 <= unique <= 3 for _, unique in reporter.progress_calls))
        self.assertEqual([(25, 0)], reporter.finished_calls)

    def test_worker_failure_propagates(self):
        make_tree(self.root, {f'f{i}': b'x' for i in range(50)})

        with mock.patch('hashdup.commands.scan.process_file', side_effect=MemoryError), \
                self.assertLogs('hashdup.utils.worker_pool', 'ERROR'):
            with self.assertRaises(MemoryError):
                self._scan(worker_count=4)

    def test_reporter_failure_propagates(self):
        make_tree(self.root, {f'f{i}': str(i).encode() for i in range(200)})
        outcome = []

        def scan():
            try:
                do_scan(self.root, ScanOptions(progress_interval=1, worker_count=2), FailingReporter())
            except RuntimeError as e:
                outcome.append(e)

        with self.assertLogs('hashdup.commands.scan', 'ERROR'):
            thread = threading.Thread(target=scan, daemon=True)
            thread.start()
            thread.join(timeout=30)

        self.assertFalse(thread.is_alive())
        self.assertEqual(1, len(outcome))
        self.assertEqual('reporter failed', str(outcome[0]))

    def test_invalid_options(self):
        for options in [ScanOptions(worker_count=0), ScanOptions(queue_size=0), ScanOptions(progress_interval=0),
                        ScanOptions(algorithm='nope')]:
            with self.subTest(options=options):
                with self.assertRaises(ValueError):
                    do_scan(self.root, options, CollectingReporter())


class CollectorTest(unittest.TestCase):
    def test_collects_until_closed(self):
        index = DuplicateIndex()
        reporter = CollectingReporter()
        collector = Collector(index, 2, reporter)
        results = Channel(1)

        collector.start(results)
        results.put(FileRecord('aa', Path('1')))
        results.put(SkipRecord(Path('2'), SkipReason.EMPTY))
        results.put(FileRecord('aa', Path('3')))
        results.put(FileRecord('bb', Path('4')))
        results.close()

        self.assertIs(index, collector.join())
        self.assertEqual([Path('1'), Path('3')], index['aa'])
        self.assertEqual([(2, 1)], reporter.progress_calls)
        self.assertEqual([(3, 1)], reporter.finished_calls)

    def test_reporter_failure_raised_from_join(self):
        index = DuplicateIndex()
        collector = Collector(index, 1, FailingReporter())
        results = Channel(1)

        with self.assertLogs('hashdup.commands.scan', 'ERROR'):
            collector.start(results)
            for i in range(10):
                results.put(FileRecord(f'{i:02x}', Path(str(i))))
            results.close()

            with self.assertRaises(RuntimeError):
                collector.join()

        self.assertEqual([Path('0')], index['00'])


if __name__ == '__main__':
    unittest.main()
