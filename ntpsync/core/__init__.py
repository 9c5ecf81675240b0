"""
Core Layer - synchronization engine.

Queries NTP servers through a bounded worker pool, decides whether the
clock needs a correction and applies it, optionally on a background thread.
"""

from .async_queue import TaskQueue
from .thread_pool import ThreadPool
from .cancel import CancelToken
from .config import SyncConfig
from .report import Level, Reporter, Severity
from .query import ntp_query, compute_correction, validate_response
from .sync import (
    ExecutionGuard, QueryOutcome, SyncResult, ServerStats, PreviewResult, Synchronizer,
)
from .background import BackgroundRunner, RunState

__all__ = [
    'TaskQueue',
    'ThreadPool',
    'CancelToken',
    'SyncConfig',
    'Level',
    'Reporter',
    'Severity',
    'ntp_query',
    'compute_correction',
    'validate_response',
    'ExecutionGuard',
    'QueryOutcome',
    'SyncResult',
    'ServerStats',
    'PreviewResult',
    'Synchronizer',
    'BackgroundRunner',
    'RunState',
]
