"""State machine sequencing image selection, submission and retries."""

import asyncio
import contextlib
import logging
from collections.abc import Callable

from dental_classifier.client.cancellation import CancellationToken
from dental_classifier.client.classification_client import (
    ClassificationClient,
)
from dental_classifier.client.classifier_options import ClassifierOptions
from dental_classifier.client.exceptions import (
    ClassifierError,
    ServiceWarmingError,
    SubmissionCancelledError,
    SubmissionInProgressError,
)
from dental_classifier.client.image_validator import ImageValidator
from dental_classifier.client.models import (
    AttemptPhase,
    ClassificationResult,
    ControllerState,
    ImageCandidate,
    SubmissionSnapshot,
    ValidationResult,
)
from dental_classifier.client.preview import PreviewResource
from dental_classifier.client.progress_estimator import ProgressEstimator
from dental_classifier.client.retry_policy import RetryPolicy

SnapshotListener = Callable[[SubmissionSnapshot], None]
UnexpectedErrorHandler = Callable[[BaseException], None]


class SubmissionController:
    """Own the selected image and drive its classification.

    The controller moves between IDLE, HAS_IMAGE, SUBMITTING, SUCCEEDED and
    FAILED. After every transition it publishes a SubmissionSnapshot to its
    listeners, which is all a rendering layer needs; retry timers and
    progress ticks stay internal.

    At most one submission is in flight. A reset cancels it: the pending
    request or retry delay is abandoned, the progress timer is stopped and
    a late response is discarded.

    Example:
        ```python
        async with SubmissionController(ClassifierOptions()) as controller:
            controller.subscribe(render)
            await controller.select_file(ImageCandidate.from_path(path))
            snapshot = await controller.submit()
        ```

    """

    def __init__(
        self,
        options: ClassifierOptions,
        client: ClassificationClient | None = None,
        validator: ImageValidator | None = None,
        retry_policy: RetryPolicy | None = None,
        on_unexpected_error: UnexpectedErrorHandler | None = None,
    ) -> None:
        """Initialize the controller.

        Args:
            options: Configuration shared by the default collaborators.
            client: Client performing single attempts.
            validator: Validator for selected files.
            retry_policy: Policy deciding retries and backoff.
            on_unexpected_error: Called with any failure that is not a
                classifier error, after it has been logged.

        """
        self.logger = logging.getLogger(__name__)
        self.options = options
        self.client = (
            client if client is not None else ClassificationClient(options)
        )
        self.validator = (
            validator if validator is not None else ImageValidator(options)
        )
        self.retry_policy = (
            retry_policy
            if retry_policy is not None
            else RetryPolicy.from_options(options)
        )
        self.on_unexpected_error = on_unexpected_error

        self._listeners: list[SnapshotListener] = []
        self._progress = ProgressEstimator(options)
        self._token: CancellationToken | None = None

        self._state = ControllerState.IDLE
        self._phase: AttemptPhase | None = None
        self._candidate: ImageCandidate | None = None
        self._preview: PreviewResource | None = None
        self._attempt_number = 0
        self._result: ClassificationResult | None = None
        self._error: ClassifierError | None = None
        self._rejection: ClassifierError | None = None
        self._server_starting = False
        self._last_error: ClassifierError | None = None
        # Bumped by selections, submit and reset; older selections are stale
        self._selection = 0

    @property
    def snapshot(self) -> SubmissionSnapshot:
        """The current read-only state."""
        return SubmissionSnapshot(
            state=self._state,
            phase=self._phase,
            progress_percent=self._progress.value,
            attempt_number=self._attempt_number,
            has_image=self._candidate is not None,
            preview=self._preview.uri if self._preview else None,
            result=self._result,
            error=self._error,
            rejection=self._rejection,
            server_starting=self._server_starting,
            last_error=self._last_error,
        )

    @property
    def candidate(self) -> ImageCandidate | None:
        """The accepted image, if one is held."""
        return self._candidate

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register a listener for snapshots.

        Returns:
            A callable that removes the listener.

        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return unsubscribe

    async def select_file(self, candidate: ImageCandidate) -> ValidationResult:
        """Validate a file and hold it if accepted.

        A rejected file leaves the held image, its preview and any result
        untouched and records the rejection for display. Only the latest
        selection is applied; an older one still decoding is discarded.

        Raises:
            SubmissionInProgressError: If a submission is in flight.
            SubmissionCancelledError: If a later selection or a reset took
                over while this file was being validated.

        """
        if self._state is ControllerState.SUBMITTING:
            raise SubmissionInProgressError

        self._selection += 1
        selection = self._selection
        self._phase = AttemptPhase.VALIDATING
        self._emit()

        try:
            result = await self.validator.validate(candidate)
        except BaseException:
            if selection == self._selection:
                self._phase = self._resting_phase()
                self._emit()
            raise

        if self._state is ControllerState.SUBMITTING:
            # A submit was started while this file was being decoded
            raise SubmissionInProgressError
        if selection != self._selection:
            self.logger.debug(
                "Discarding superseded selection of %s", candidate.filename
            )
            raise SubmissionCancelledError

        if not result.accepted:
            self._phase = self._resting_phase()
            self._rejection = self.validator.error_for(result)
            self._emit()
            return result

        self._release_preview()
        self._preview = PreviewResource.for_candidate(candidate)
        self._candidate = candidate
        self._state = ControllerState.HAS_IMAGE
        self._phase = None
        self._attempt_number = 0
        self._result = None
        self._error = None
        self._rejection = None
        self._server_starting = False
        self._last_error = None
        _ = self._progress.reset()
        self._emit()
        return result

    async def submit(self) -> SubmissionSnapshot:
        """Classify the held image, retrying while the service warms up.

        Returns:
            The snapshot after the submission ended. If the submission was
            reset mid-flight this is the post-reset snapshot.

        Raises:
            SubmissionInProgressError: If a submission is already in flight.

        """
        if self._state is ControllerState.SUBMITTING:
            raise SubmissionInProgressError
        candidate = self._candidate
        if candidate is None:
            self.logger.warning("Submit requested without a selected image")
            return self.snapshot

        self._selection += 1
        token = CancellationToken()
        self._token = token
        self._state = ControllerState.SUBMITTING
        self._phase = AttemptPhase.ENCODING
        self._attempt_number = 0
        self._result = None
        self._error = None
        self._rejection = None
        self._server_starting = False
        self._last_error = None
        _ = self._progress.reset()
        self._emit()

        try:
            result = await self._run_attempts(token, candidate)
        except SubmissionCancelledError:
            self.logger.debug("Submission cancelled")
        except ClassifierError as e:
            if not token.cancelled:
                self._fail(e)
        except asyncio.CancelledError:
            # The awaiting task itself was cancelled; drop back to HAS_IMAGE
            token.cancel()
            if self._token is token:
                self._abandon()
            raise
        except Exception as e:
            if not token.cancelled:
                self.logger.exception("Unexpected failure during submission")
                if self.on_unexpected_error is not None:
                    self.on_unexpected_error(e)
                unexpected = ClassifierError()
                unexpected.__cause__ = e
                self._fail(unexpected)
        else:
            if not token.cancelled:
                self._succeed(result)
        finally:
            if self._token is token:
                self._token = None

        return self.snapshot

    def reset(self) -> None:
        """Cancel any submission and return to IDLE."""
        self._selection += 1
        if self._token is not None:
            self.logger.info(
                "Cancelling submission at attempt %d", self._attempt_number
            )
            self._token.cancel()
            self._token = None

        self._release_preview()
        self._candidate = None
        self._state = ControllerState.IDLE
        self._phase = None
        self._attempt_number = 0
        self._result = None
        self._error = None
        self._rejection = None
        self._server_starting = False
        self._last_error = None
        _ = self._progress.reset()
        self._emit()

    async def aclose(self) -> None:
        """Cancel any submission, release the preview and close the client."""
        self._selection += 1
        if self._token is not None:
            self._token.cancel()
            self._token = None
        self._release_preview()
        self._candidate = None
        await self.client.close()

    async def __aenter__(self) -> "SubmissionController":
        """Context manager entry point."""
        return self

    async def __aexit__(self, *_: object) -> None:
        """Context manager exit point."""
        await self.aclose()

    async def _run_attempts(
        self, token: CancellationToken, candidate: ImageCandidate
    ) -> ClassificationResult:
        attempt_index = 0
        while True:
            token.raise_if_cancelled()
            attempt_index += 1
            self._attempt_number = attempt_index
            try:
                return await self._attempt(token, candidate)
            except SubmissionCancelledError:
                raise
            except ClassifierError as error:
                # Stopping the progress timer is a suspension point
                token.raise_if_cancelled()
                if not self.retry_policy.should_retry(error, attempt_index):
                    final = self.retry_policy.terminal_error(
                        error, attempt_index
                    )
                    if final is error:
                        raise
                    raise final from error

                delay = self.retry_policy.delay_for(attempt_index - 1)
                self._last_error = error
                if isinstance(error, ServiceWarmingError):
                    self._server_starting = True
                self.logger.warning(
                    "Attempt %d failed (%s): %s",
                    attempt_index,
                    error.kind.value,
                    error,
                )
                self.logger.info(
                    "Attempt %d failed, retrying in %.1fs",
                    attempt_index,
                    delay,
                )
                self._phase = self._waiting_phase()
                self._emit()
                await token.sleep(delay)

    async def _attempt(
        self, token: CancellationToken, candidate: ImageCandidate
    ) -> ClassificationResult:
        self._phase = self._waiting_phase()
        self._emit()

        def current_phase() -> AttemptPhase | None:
            # A stale timer must not advance the next submission
            if token is self._token and not token.cancelled:
                return self._phase
            return None

        def on_progress(_: int) -> None:
            if token is self._token and not token.cancelled:
                self._emit()

        ticker = asyncio.create_task(
            self._progress.run(current_phase, on_progress)
        )
        try:
            return await token.guard(self.client.submit(candidate))
        finally:
            _ = ticker.cancel()
            # Unlike awaiting the ticker, wait only raises if we are cancelled
            _ = await asyncio.wait({ticker})

    def _waiting_phase(self) -> AttemptPhase:
        if self._server_starting:
            return AttemptPhase.SERVER_WARMING
        return AttemptPhase.AWAITING_SERVER

    def _resting_phase(self) -> AttemptPhase | None:
        if self._state is ControllerState.SUCCEEDED:
            return AttemptPhase.SUCCEEDED
        if self._state is ControllerState.FAILED:
            return AttemptPhase.FAILED
        return None

    def _succeed(self, result: ClassificationResult) -> None:
        self.logger.info(
            "Classification succeeded after %d attempt(s) with %d predictions",
            self._attempt_number,
            len(result),
        )
        self._state = ControllerState.SUCCEEDED
        self._phase = AttemptPhase.SUCCEEDED
        self._result = result
        self._error = None
        self._server_starting = False
        self._last_error = None
        _ = self._progress.complete()
        self._emit()

    def _fail(self, error: ClassifierError) -> None:
        self.logger.error(
            "Classification failed after %d attempt(s) (%s): %s",
            self._attempt_number,
            error.kind.value,
            error,
        )
        self._state = ControllerState.FAILED
        self._phase = AttemptPhase.FAILED
        self._result = None
        self._error = error
        self._server_starting = False
        self._last_error = None
        _ = self._progress.reset()
        self._emit()

    def _abandon(self) -> None:
        self.logger.info(
            "Submission abandoned at attempt %d", self._attempt_number
        )
        self._state = ControllerState.HAS_IMAGE
        self._phase = None
        self._server_starting = False
        self._last_error = None
        _ = self._progress.reset()
        self._emit()

    def _release_preview(self) -> None:
        if self._preview is not None:
            self._preview.release()
            self._preview = None

    def _emit(self) -> None:
        snapshot = self.snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                self.logger.exception("Snapshot listener failed")
                if self.on_unexpected_error is not None:
                    self.on_unexpected_error(e)
