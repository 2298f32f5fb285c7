from .batch_scheduler import BatchScheduler
from .build_bank import BuildSentenceBankUseCase
from .import_bank import ExportSentenceBankUseCase, ImportSentenceBankUseCase
from .job_progress import JobProgressUseCase
from .match_sentences import MatchSentenceUseCase, MatchTextUseCase
from .section_transform import SectionTransformer
from .style_transfer import SelectStylePatternsUseCase
from .submit_job import SubmitBatchJobUseCase

__all__ = [
    "BuildSentenceBankUseCase",
    "ImportSentenceBankUseCase",
    "ExportSentenceBankUseCase",
    "MatchSentenceUseCase",
    "MatchTextUseCase",
    "SelectStylePatternsUseCase",
    "SubmitBatchJobUseCase",
    "JobProgressUseCase",
    "SectionTransformer",
    "BatchScheduler",
]
