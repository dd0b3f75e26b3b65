from hbs.core.buckets.accountant import compute_stats, count_tokens_for_turns
from hbs.core.buckets.bucket_manager import BucketManager, bucket_counts_by_level, reset_state
from hbs.core.buckets.fingerprint import check_dirty, clamp_to_history_end, compute_fingerprint
from hbs.core.buckets.guard import BuildGuard
from hbs.core.buckets.models import (
    Bucket,
    EngineState,
    RenderConfig,
    TokenStats,
    Turn,
    create_state,
    eligible_turns,
)
from hbs.core.buckets.view import build_virtual_view, to_messages

__all__ = [
    "Bucket",
    "BucketManager",
    "BuildGuard",
    "EngineState",
    "RenderConfig",
    "TokenStats",
    "Turn",
    "bucket_counts_by_level",
    "build_virtual_view",
    "check_dirty",
    "clamp_to_history_end",
    "compute_fingerprint",
    "compute_stats",
    "count_tokens_for_turns",
    "create_state",
    "eligible_turns",
    "reset_state",
    "to_messages",
]
