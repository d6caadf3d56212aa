"""Edit orchestration: submit, background processing and status reads."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from printapic.domain.edits import (
    INSTRUCTIONS,
    OPERATION_PRICES,
    STATUS_MESSAGES,
    STICKER_OPERATION,
    EditRecord,
    EditStatus,
    EditStatusView,
    EditSubmission,
)
from printapic.domain.errors import (
    CapacityExceeded,
    InsufficientFunds,
    InvalidTransition,
    NotFound,
    UnsupportedOperation,
)
from printapic.domain.models import PhotoRecord, UserRecord
from printapic.services.edit_store import EditStore
from printapic.services.ledger import TokenLedger
from printapic.services.provider import EditProviderClient
from printapic.services.workers import EditWorkerPool

logger = logging.getLogger(__name__)

EDIT_DEBIT_REASON = "Sticker processing"
EDIT_REFUND_REASON = "Refund: edit failed"


@dataclass
class EditService:
    """Drives an edit through pending -> processing -> done | failed.

    ``submit`` validates the request, records a pending edit and hands its
    id to the worker pool. ``process`` runs on a worker: it calls the
    provider, debits the user, stores the result as a new photo and only
    then marks the edit done. Any failure marks the edit failed, removes a
    result photo that was already stored and returns a debit that was
    already taken.
    """

    store: EditStore
    provider: EditProviderClient
    ledger: TokenLedger
    workers: EditWorkerPool
    claim_attempts: int = 3

    def submit(
        self,
        user: UserRecord,
        photo_id: UUID,
        operation: str,
        instruction_key: str,
    ) -> EditSubmission:
        """Validate and queue an edit; returns before any provider work."""
        photo = self.store.get_owned_photo(photo_id, user.id)
        if operation != STICKER_OPERATION:
            raise UnsupportedOperation(
                f"Unsupported operation: {operation}. Only 'sticker' is supported."
            )
        if instruction_key not in INSTRUCTIONS:
            raise UnsupportedOperation(f"Unsupported instruction: {instruction_key}")
        cost = OPERATION_PRICES[operation]
        if self.ledger.balance(user.id) < cost:
            raise InsufficientFunds(f"This edit costs {cost} token(s)")
        if not self.workers.has_capacity():
            raise CapacityExceeded(
                "Too many edits in progress, please try again shortly"
            )

        edit = self.store.create_edit(
            user_id=user.id,
            photo_id=photo.id,
            operation=operation,
            instruction_key=instruction_key,
            tokens_cost=cost,
        )
        self.workers.enqueue(edit.id)
        logger.info("Queued edit %s for photo %s", edit.id, photo.id)
        return EditSubmission(
            edit_id=edit.id,
            status=EditStatus.PENDING,
            message="Sticker processing started. Check back for results.",
        )

    async def process(self, edit_id: UUID) -> None:
        """Run one edit to a terminal state. Never raises for edit failures."""
        edit = self._claim(edit_id)
        if edit is None:
            return

        debited = False
        derived: PhotoRecord | None = None
        try:
            photo = self.store.get_photo(edit.photo_id)
            image_bytes = self.store.load_photo_bytes(photo)
            result_bytes = await self.provider.submit_edit(
                image_bytes, edit.instruction_key
            )
            if edit.tokens_cost > 0:
                self.ledger.apply(
                    edit.user_id, -edit.tokens_cost, EDIT_DEBIT_REASON, edit.id
                )
                debited = True
            derived = self.store.create_derived_photo(
                user_id=edit.user_id,
                image_bytes=result_bytes,
                caption=f"{edit.operation} ({edit.instruction_key})",
                source_photo_id=photo.id,
            )
            self.store.transition_edit(
                edit.id,
                EditStatus.PROCESSING,
                EditStatus.DONE,
                result_photo_id=derived.id,
                completed=datetime.now(tz=UTC),
            )
        except Exception:
            logger.exception("Edit processing failed", extra={"edit_id": edit.id})
            self._fail(edit, refund=debited, derived=derived)
            return

        logger.info("Edit %s completed", edit.id)

    def _claim(self, edit_id: UUID) -> EditRecord | None:
        """Move the edit from pending to processing, or return None to skip it."""
        errored = False
        for attempt in range(1, self.claim_attempts + 1):
            try:
                edit = self.store.get_edit(edit_id)
                if errored and edit.status is EditStatus.PROCESSING:
                    # The previous attempt's write landed before its error.
                    return edit
                self.store.transition_edit(
                    edit_id, EditStatus.PENDING, EditStatus.PROCESSING
                )
                return edit
            except (NotFound, InvalidTransition) as exc:
                logger.warning("Skipping edit %s: %s", edit_id, exc)
                return None
            except Exception:
                errored = True
                logger.exception(
                    "Could not claim edit",
                    extra={"edit_id": edit_id, "attempt": attempt},
                )
        self._fail_unclaimed(edit_id)
        return None

    def _fail_unclaimed(self, edit_id: UUID) -> None:
        try:
            edit = self.store.get_edit(edit_id)
            if edit.status is EditStatus.PENDING:
                self.store.transition_edit(
                    edit_id, EditStatus.PENDING, EditStatus.PROCESSING
                )
            self.store.transition_edit(
                edit_id, EditStatus.PROCESSING, EditStatus.FAILED
            )
        except Exception:
            logger.exception(
                "Could not mark unclaimed edit failed; it stays until recovery",
                extra={"edit_id": edit_id},
            )

    def _fail(
        self, edit: EditRecord, refund: bool, derived: PhotoRecord | None = None
    ) -> None:
        if derived is not None:
            try:
                self.store.discard_photo(derived)
            except Exception:
                logger.exception(
                    "Could not discard result photo", extra={"edit_id": edit.id}
                )
        if refund:
            try:
                self.ledger.apply(
                    edit.user_id, edit.tokens_cost, EDIT_REFUND_REASON, edit.id
                )
            except Exception:
                logger.exception("Refund failed", extra={"edit_id": edit.id})
        try:
            self.store.transition_edit(
                edit.id, EditStatus.PROCESSING, EditStatus.FAILED
            )
        except Exception:
            logger.exception("Could not mark edit failed", extra={"edit_id": edit.id})

    def get_status(self, edit_id: UUID, user: UserRecord) -> EditStatusView:
        """Return the caller's view of an edit they own."""
        edit = self.store.get_owned_edit(edit_id, user.id)
        result_url = (
            self.store.result_url(edit) if edit.status is EditStatus.DONE else None
        )
        return EditStatusView(
            id=edit.id,
            status=edit.status,
            tokens_cost=edit.tokens_cost,
            completed=edit.completed,
            message=STATUS_MESSAGES[edit.status],
            result_url=result_url,
        )

    def recover(self) -> int:
        """Requeue pending edits and fail ones orphaned mid-processing.

        Called once at startup, before new submissions arrive. Returns the
        number of edits queued.
        """
        for edit in self.store.list_edits(status=EditStatus.PROCESSING):
            try:
                self.store.transition_edit(
                    edit.id, EditStatus.PROCESSING, EditStatus.FAILED
                )
            except InvalidTransition:
                continue
            logger.warning("Marked interrupted edit %s as failed", edit.id)

        queued = 0
        pending = self.store.list_edits(
            status=EditStatus.PENDING,
            limit=self.workers.max_queue_size,
            newest_first=False,
        )
        for edit in pending:
            if not self.workers.has_capacity():
                break
            self.workers.enqueue(edit.id)
            queued += 1
        if queued:
            logger.info("Requeued %d pending edits", queued)
        return queued
