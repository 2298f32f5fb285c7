"""Domain layer: pure types and logic (no I/O, no external libs).

Keep this layer free of side-effects. Define entities and small pure helpers only.
"""

from .chunking import ChunkingConfig, Section, TextChunker, chunk_text
from .features import ClauseOrder, SentenceFeatures, extract_features
from .fingerprint import (
    FAILED_SKELETON,
    SentenceBankEntry,
    StructuralFingerprint,
    build_fingerprint,
)
from .jobs import BatchJob, BatchSection, JobKind, JobStatus, SectionStatus
from .levels import TransformLevel
from .matching import (
    CascadingFilterMatcher,
    Matcher,
    ScoredEntry,
    WeightedTopNMatcher,
    build_matcher,
)
from .retry import ExponentialBackoffPolicy, FixedDelayPolicy, RetryPolicy, call_with_retry
from .scoring import CoarseSkeletonScorer, PositionalSkeletonScorer, Scorer, get_scorer
from .sentences import count_words, split_to_sentences

__all__ = [
    "split_to_sentences",
    "count_words",
    "ClauseOrder",
    "SentenceFeatures",
    "extract_features",
    "StructuralFingerprint",
    "SentenceBankEntry",
    "FAILED_SKELETON",
    "build_fingerprint",
    "Scorer",
    "CoarseSkeletonScorer",
    "PositionalSkeletonScorer",
    "get_scorer",
    "Matcher",
    "ScoredEntry",
    "CascadingFilterMatcher",
    "WeightedTopNMatcher",
    "build_matcher",
    "Section",
    "ChunkingConfig",
    "TextChunker",
    "chunk_text",
    "TransformLevel",
    "JobKind",
    "JobStatus",
    "SectionStatus",
    "BatchJob",
    "BatchSection",
    "RetryPolicy",
    "FixedDelayPolicy",
    "ExponentialBackoffPolicy",
    "call_with_retry",
]
