"""Background resume analysis.

Uploads return immediately; the analysis runs on a worker thread with its own
database session. Each submission yields a ``Future`` that resolves to a
``ResumeProcessingResult`` and never raises: failures are recorded on the resume
row (``ai_status``/``ai_error``) and reported through the result.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from backend.clients.ai_client import ProcessedResume
from backend.models.candidate import Resume, ResumeProcessingStatus

logger = logging.getLogger(__name__)


@dataclass
class ResumeProcessingResult:
    resume_id: str
    status: ResumeProcessingStatus
    processed: ProcessedResume | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status is ResumeProcessingStatus.COMPLETED


class ResumeProcessingQueue:
    def __init__(self, session_factory: sessionmaker, ai_client, executor: ThreadPoolExecutor | None = None, workers: int = 2) -> None:
        self.session_factory = session_factory
        self.ai_client = ai_client
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=workers, thread_name_prefix='resume-worker')

    def submit(self, resume_id: str) -> Future:
        return self._executor.submit(self._process, resume_id)

    def shutdown(self, wait: bool = True) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    def _set_status(self, db, resume: Resume, status: ResumeProcessingStatus, error: str | None = None) -> None:
        resume.ai_status = status
        resume.ai_error = error
        db.commit()

    def _record_failure(self, db, resume_id: str, error: str) -> None:
        try:
            db.rollback()
            resume = db.get(Resume, resume_id)
            if resume is not None:
                self._set_status(db, resume, ResumeProcessingStatus.FAILED, error)
        except SQLAlchemyError:
            db.rollback()
            logger.exception('Could not record failure for resume %s', resume_id)

    def _process(self, resume_id: str) -> ResumeProcessingResult:
        db = self.session_factory()
        try:
            resume = db.get(Resume, resume_id)
            if resume is None:
                logger.warning('Resume %s disappeared before processing', resume_id)
                return ResumeProcessingResult(resume_id, ResumeProcessingStatus.FAILED, error='resume not found')

            self._set_status(db, resume, ResumeProcessingStatus.PROCESSING)
            extracted_text = self.ai_client.extract_text(resume.file_path)
            processed = self.ai_client.process_resume(extracted_text)
            resume.extracted_text = extracted_text
            resume.ai_processed = True
            self._set_status(db, resume, ResumeProcessingStatus.COMPLETED)
            logger.info('Resume %s processed', resume_id)
            return ResumeProcessingResult(resume_id, ResumeProcessingStatus.COMPLETED, processed=processed)
        except Exception as exc:
            error = str(exc) or type(exc).__name__
            logger.exception('Resume %s processing failed', resume_id)
            self._record_failure(db, resume_id, error)
            return ResumeProcessingResult(resume_id, ResumeProcessingStatus.FAILED, error=error)
        finally:
            db.close()
