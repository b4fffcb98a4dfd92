"""
Contact submission pipeline - core business logic.

This module handles a single contact form request end to end:
1. Rate limit the client
2. Validate and normalize the payload
3. Send the owner notification (failure fails the request)
4. Send the auto-reply, if enabled (failure is logged only)
5. Return a ContactResponse (status code + JSON body)

No exceptions propagate out of handle(); every outcome is a ContactResponse.
"""

import logging
import threading
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from .models import ContactResponse, ContactSubmission, PipelineState, iso_timestamp
from .rate_limiter import RateLimiter
from .validator import ContactRequestValidator
from services.email import EmailDispatcher

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = 'Message sent successfully!'
RATE_LIMITED_ERROR = 'Too many requests. Please try again later.'
DISPATCH_FAILED_ERROR = 'Failed to send your message. Please try again in a few minutes.'


@dataclass
class PipelineStats:
    """Request outcome counters for the lifetime of the process."""
    received: int = 0
    rate_limited: int = 0
    rejected: int = 0
    dispatch_failures: int = 0
    completed: int = 0
    auto_reply_failures: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


class ContactPipeline:
    """
    Orchestrates rate limiting, validation and email dispatch.

    State machine per request:
        RECEIVED -> RATE_CHECKED -> VALIDATED -> OWNER_NOTIFIED
        -> (AUTO_REPLY_ATTEMPTED) -> COMPLETED
    with early exits RATE_LIMITED (429), REJECTED (400) and
    DISPATCH_FAILED (500).
    """

    def __init__(
        self,
        rate_limiter: RateLimiter,
        validator: ContactRequestValidator,
        dispatcher: EmailDispatcher,
        auto_reply_enabled: bool = True
    ):
        self.rate_limiter = rate_limiter
        self.validator = validator
        self.dispatcher = dispatcher
        self.auto_reply_enabled = auto_reply_enabled
        self.stats = PipelineStats()
        self._stats_lock = threading.Lock()

    @classmethod
    def from_config(cls, config, transport) -> 'ContactPipeline':
        """Wire the pipeline components from configuration."""
        return cls(
            rate_limiter=RateLimiter(
                window_ms=config.rate_limit_window_ms,
                max_requests=config.rate_limit_max_requests,
                max_clients=config.rate_limit_max_clients,
            ),
            validator=ContactRequestValidator(
                max_name_length=config.max_name_length,
                max_subject_length=config.max_subject_length,
                max_message_length=config.max_message_length,
            ),
            dispatcher=EmailDispatcher.from_config(config, transport),
            auto_reply_enabled=config.auto_reply_enabled,
        )

    def handle(self, client_id: Optional[str], payload: Any, now_ms: Optional[int] = None) -> ContactResponse:
        """
        Process a single contact submission.

        Args:
            client_id: Client identifier used for rate limiting
            payload: Parsed JSON request body
            now_ms: Current time in epoch milliseconds (defaults to wall clock)

        Returns:
            ContactResponse for the terminal state
        """
        self._count('received')

        decision = self.rate_limiter.admit(client_id, now_ms=now_ms)
        if not decision.admitted:
            self._count('rate_limited')
            return ContactResponse(
                status_code=429,
                body={
                    'success': False,
                    'error': RATE_LIMITED_ERROR,
                    'retryAfter': f"{decision.retry_after_seconds} seconds",
                    'timestamp': iso_timestamp(),
                },
                state=PipelineState.RATE_LIMITED,
                headers={'Retry-After': str(decision.retry_after_seconds)},
            )

        validation = self.validator.validate(payload)
        if not validation.is_valid:
            logger.info(f"Rejected submission from {client_id}: {validation.error}")
            self._count('rejected')
            return self._error(400, validation.error, PipelineState.REJECTED)

        submission = validation.submission

        if not self._notify_owner(submission):
            self._count('dispatch_failures')
            return self._error(500, DISPATCH_FAILED_ERROR, PipelineState.DISPATCH_FAILED)

        if self.auto_reply_enabled:
            self._send_auto_reply(submission)

        logger.info(f"Contact form submitted: {submission.name} <{submission.email}>")
        self._count('completed')

        return ContactResponse(
            status_code=200,
            body={
                'success': True,
                'message': SUCCESS_MESSAGE,
                'timestamp': iso_timestamp(),
            },
            state=PipelineState.COMPLETED,
        )

    def _notify_owner(self, submission: ContactSubmission) -> bool:
        try:
            result = self.dispatcher.notify_owner(submission)
        except Exception as e:
            logger.error(f"Owner notification raised: {e}", exc_info=True)
            return False
        return result.success

    def _send_auto_reply(self, submission: ContactSubmission) -> None:
        try:
            result = self.dispatcher.auto_reply(submission)
            succeeded = result.success
        except Exception as e:
            logger.warning(f"Auto-reply raised: {e}", exc_info=True)
            succeeded = False

        if not succeeded:
            self._count('auto_reply_failures')

    def _error(self, status_code: int, error: str, state: PipelineState) -> ContactResponse:
        return ContactResponse(
            status_code=status_code,
            body={
                'success': False,
                'error': error,
                'timestamp': iso_timestamp(),
            },
            state=state,
        )

    def _count(self, name: str) -> None:
        with self._stats_lock:
            setattr(self.stats, name, getattr(self.stats, name) + 1)
