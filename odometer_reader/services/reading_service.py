"""Background reading service.

Readings run on a single worker thread so the caller (UI, CLI loop) never
blocks on inference and photographs are processed one at a time. A queued
reading can be cancelled through its ``Future``; a reading that has started
always runs to completion.
"""
from __future__ import annotations

import logging
import threading
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

import numpy as np

from ..config.settings import Config
from ..core.entities import PipelineResult
from ..core.logging_config import CorrelationContext
from .pipeline import OdometerPipeline
from .reading_quality import ReadingAssessment, assess_reading

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReadingRecord:
    result: PipelineResult
    assessment: ReadingAssessment
    source: Optional[str] = None
    correlation_id: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)


class OdometerReadingService:
    """Queues readings on one worker and keeps a short in-memory history."""

    def __init__(self, pipeline: OdometerPipeline, config: Optional[Config] = None):
        self.pipeline = pipeline
        self.config = config or pipeline.config
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="OdometerReader")
        self._history: deque = deque(maxlen=self.config.history_size)
        self._history_lock = threading.Lock()
        self._closed = False

    def submit(self, image: np.ndarray, source: Optional[str] = None) -> "Future[ReadingRecord]":
        """Queue a reading; returns immediately with a Future."""
        if self._closed:
            raise RuntimeError("Reading service has been shut down")
        return self._executor.submit(self._process, image, source)

    def read(self, image: np.ndarray, source: Optional[str] = None) -> ReadingRecord:
        """Queue a reading and wait for it."""
        return self.submit(image, source).result()

    def _process(self, image: np.ndarray, source: Optional[str]) -> ReadingRecord:
        with CorrelationContext() as corr_id:
            logger.info(f"Reading started{f' for {source}' if source else ''}")
            try:
                result = self.pipeline.read(image)
            except Exception as e:
                logger.error(f"Reading failed: {type(e).__name__}: {e}")
                raise

            assessment = assess_reading(result, self.config)
            if assessment.should_retake:
                logger.warning(f"Reading flagged ({assessment.status.value}): {assessment.message}")

            record = ReadingRecord(
                result=result,
                assessment=assessment,
                source=source,
                correlation_id=corr_id,
            )
            with self._history_lock:
                self._history.append(record)
            return record

    def history(self) -> List[ReadingRecord]:
        """Most recent readings, newest first."""
        with self._history_lock:
            return list(reversed(self._history))

    def clear_history(self) -> None:
        with self._history_lock:
            self._history.clear()

    def shutdown(self, wait: bool = True, cancel_pending: bool = False) -> None:
        self._closed = True
        self._executor.shutdown(wait=wait, cancel_futures=cancel_pending)

    def __enter__(self) -> "OdometerReadingService":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()
