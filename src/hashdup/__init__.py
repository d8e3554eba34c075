from .scanner import Scanner
from .commands.scan import ScanOptions, ProgressReporter, do_scan
from .index.duplicate_index import DuplicateIndex, FileRecord, SkipRecord, SkipReason
from .index.settings import ScanSettings
from .index.verify import verify_duplicates
from .utils.fingerprint import Fingerprinter
