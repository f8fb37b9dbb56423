from .models import EmotionRecord, ScoreResult, Diagnostic, DiagnosticKind, new_record, corrected
from .buckets import SoundCategory, BucketPreset, recommend_category
from .config import Strategy, CeilingMode, ScoreConfig, PROFILES, get_profile, config_from_env, load_config, resolve_config
from .engine import ScoreEngine, score_records
from .errors import ScoreEngineError, ConfigError, RowError, CaptureError
from .ingest import record_from_row, records_from_rows, load_rows
from .window import week_window, most_recent
from .capture import capture_record, CaptureCooldown

__version__ = "1.0.0"
