"""jobtrail – personal job application tracker with AI-generated documents."""

from .assistant import AssistantChat
from .autosave import ResumeAutosave
from .config import Settings
from .generation import AIContentGenerator, GenerationDependencyError, GenerationError
from .jobs import Job, JobOrigin, JobStatus, new_job
from .notifier import Message, MessageLog, MessageRole, TransitionNotifier
from .partition import Partition, active_content_field, classify, partition
from .persistence import JsonFileService, PersistenceError, SupabaseService
from .regeneration import (
    COVER_LETTER_PLACEHOLDER,
    INTERVIEW_GUIDE_PLACEHOLDER,
    RegenerationController,
    RegenerationInProgressError,
)
from .resume import Project, Resume, ResumeSection
from .stats import JobStats, summarize
from .store import JobStore, UnknownJobError

__all__ = [
    "Job",
    "JobOrigin",
    "JobStatus",
    "new_job",
    "Partition",
    "classify",
    "partition",
    "active_content_field",
    "JobStore",
    "UnknownJobError",
    "PersistenceError",
    "JsonFileService",
    "SupabaseService",
    "Message",
    "MessageLog",
    "MessageRole",
    "TransitionNotifier",
    "AIContentGenerator",
    "GenerationError",
    "GenerationDependencyError",
    "RegenerationController",
    "RegenerationInProgressError",
    "COVER_LETTER_PLACEHOLDER",
    "INTERVIEW_GUIDE_PLACEHOLDER",
    "Resume",
    "ResumeSection",
    "Project",
    "ResumeAutosave",
    "AssistantChat",
    "JobStats",
    "summarize",
    "Settings",
]
