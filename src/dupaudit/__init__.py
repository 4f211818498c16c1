from .records import FileRecord, CandidateGroup, HashedRecord, DuplicateGroup, size_key, name_size_key
from .modes import CompareMode, DEFAULT_COMPARE_MODE
from .grouping import group_by_attribute, candidate_groups
from .progress import ProgressReporter, ConsoleProgress
from .settings import AuditSettings
from .utils.cancellation import Cancellation, ScanCancelled
from .utils.processor import Processor
from .utils.walker import WalkPolicy, enumerate_files
from .verifier import ContentVerifier, VerifyArgs, do_verify
from .report import build_report
from .scanner import DuplicateScanner, ScanResult, ScanState, processor_verify_args
from .export import export_csv
from .console import ReportRenderer
