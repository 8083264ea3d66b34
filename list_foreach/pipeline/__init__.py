"""Concurrent fetch-and-paginate engine."""

from .dispatcher import DispatchCoordinator
from .emitter import ResultEmitter
from .reader import EOF, RecordReader
from .runner import Runner, build_backoff
from .seeds import Expander, JqExpander, SeedProducer, resolve_collection
from .worker import PaginationWorker, WorkerContext, page_url

__all__ = [
    "DispatchCoordinator",
    "ResultEmitter",
    "EOF",
    "RecordReader",
    "Runner",
    "build_backoff",
    "Expander",
    "JqExpander",
    "SeedProducer",
    "resolve_collection",
    "PaginationWorker",
    "WorkerContext",
    "page_url",
]
