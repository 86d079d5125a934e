# backend/tutorbook/services/booking_commit_service.py
"""
Payment Confirmation & Commit for Tutorbook

Second half of the booking protocol:

1. Authorize: ask the processor what happened to the payment.
   authorized -> continue, declined -> PaymentDeclinedException,
   indeterminate -> PaymentIndeterminateException (retry with the same intent).
2. Commit: claim the seat in one transaction (see BookedSlotRepository).
   A full date raises AvailabilityConflictException.
3. Any other commit failure after money moved is NOT shown to the student.
   The confirmation is returned as ``reconciliation_required``, a
   ReconciliationRecord is written and the failure is logged at ERROR.
   Points-only intents moved no money, so their commit errors propagate.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
import logging
from typing import NoReturn, Optional, Union

from sqlalchemy.orm import Session

from ..core.enums import AuthorizationOutcome, BookingOutcome, IntentStatus
from ..core.exceptions import (
    AvailabilityConflictException,
    CommitReconciliationException,
    DomainException,
    PaymentDeclinedException,
    PaymentIndeterminateException,
    ServiceException,
    ValidationException,
    booking_context,
)
from ..core.timezone_utils import to_date_key, to_local_date
from ..domain.booking import BookingConfirmation, BookingIntent
from ..models.booked_slot import BookedSlot
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .payment_gateway import AuthorizationResult, PaymentGateway, is_points_only_reference

logger = logging.getLogger(__name__)


class BookingCommitService(BaseService):
    def __init__(self, db: Session, payment_gateway: PaymentGateway):
        super().__init__(db)
        self.payment_gateway = payment_gateway
        self.booked_slot_repository = RepositoryFactory.create_booked_slot_repository(db)
        self.reconciliation_repository = RepositoryFactory.create_reconciliation_repository(db)

    def verify_authorization(
        self,
        payment_reference: str,
        schedule_id: Optional[str] = None,
        scheduled_date: Optional[date] = None,
    ) -> AuthorizationResult:
        """
        Resolve the processor outcome for ``payment_reference``.

        Raises:
            PaymentDeclinedException: Processor declined; carries its reason
            PaymentIndeterminateException: Outcome unknown; safe to retry
        """
        result = self.payment_gateway.get_authorization(payment_reference)
        context = booking_context(
            schedule_id=schedule_id,
            scheduled_date=scheduled_date,
            payment_reference=payment_reference,
            processor_status=result.processor_status,
        )
        if result.outcome is AuthorizationOutcome.AUTHORIZED:
            return result
        if result.outcome is AuthorizationOutcome.DECLINED:
            prometheus_metrics.inc_booking_outcome("declined")
            self.logger.info("Payment %s declined: %s", payment_reference, result.reason)
            raise PaymentDeclinedException(result.reason, details=context)
        prometheus_metrics.inc_booking_outcome("indeterminate")
        self.logger.warning(
            "Payment %s outcome indeterminate (%s)", payment_reference, result.reason
        )
        raise PaymentIndeterminateException(details=context)

    def commit(self, intent: BookingIntent) -> BookedSlot:
        """
        Claim the seat for an authorized intent.

        Raises:
            AvailabilityConflictException: The date filled up after the intent was created
        """
        if not intent.payment_reference:
            raise ValidationException("Booking intent has no payment reference")
        with self.transaction():
            slot = self.booked_slot_repository.commit_booking(
                schedule_id=intent.schedule_id,
                scheduled_date=intent.scheduled_date,
                student_id=intent.student_id,
                payment_reference=intent.payment_reference,
                points_applied=intent.points_applied,
                amount_paid=intent.final_amount,
            )
        return slot

    @BaseService.measure_operation("finalize_intent")
    def finalize_intent(self, intent: BookingIntent) -> BookingConfirmation:
        """In-process confirmation, used when points covered the whole price."""
        if not intent.payment_reference:
            raise ValidationException("Booking intent has no payment reference")
        self.verify_authorization(
            intent.payment_reference, intent.schedule_id, intent.scheduled_date
        )
        return self._commit_with_policy(intent.with_status(IntentStatus.AUTHORIZED))

    @BaseService.measure_operation("confirm_booking")
    def confirm_booking(
        self,
        student_id: str,
        schedule_id: str,
        scheduled_date: Union[date, str],
        payment_reference: str,
    ) -> BookingConfirmation:
        """
        Confirm a payment completed by the client and commit the seat.

        The intent is rebuilt from the processor record; its metadata must name
        the same schedule, date and student as the request.

        Raises:
            ValidationException: Reference does not match this booking
            PaymentDeclinedException / PaymentIndeterminateException: see verify_authorization
            AvailabilityConflictException: Date is full
        """
        booking_date = to_local_date(scheduled_date)
        date_key = to_date_key(booking_date)
        context = booking_context(
            schedule_id=schedule_id, scheduled_date=date_key, payment_reference=payment_reference
        )

        if is_points_only_reference(payment_reference):
            existing = self.booked_slot_repository.get_by_payment_reference(payment_reference)
            if existing is None or existing.student_id != student_id:
                raise ValidationException(
                    "Unknown points-only booking reference",
                    code="UNKNOWN_PAYMENT",
                    details=context,
                )
            return self._confirmation_from_slot(existing)

        result = self.verify_authorization(payment_reference, schedule_id, booking_date)
        metadata = result.metadata
        if (
            metadata.get("schedule_id") != schedule_id
            or metadata.get("scheduled_date") != date_key
            or metadata.get("student_id") != student_id
        ):
            self.logger.warning(
                "Payment %s metadata does not match confirm request", payment_reference
            )
            raise ValidationException(
                "Payment does not match this booking",
                code="PAYMENT_MISMATCH",
                details=context,
            )

        points_applied = int(metadata.get("points_applied") or 0)
        base_price = Decimal(metadata.get("base_price") or result.amount + points_applied)
        intent = BookingIntent(
            schedule_id=schedule_id,
            scheduled_date=booking_date,
            student_id=student_id,
            base_price=base_price,
            points_requested=points_applied,
            points_applied=points_applied,
            final_amount=result.amount,
            payment_reference=payment_reference,
            status=IntentStatus.AUTHORIZED,
        )
        return self._commit_with_policy(intent)

    def _commit_with_policy(self, intent: BookingIntent) -> BookingConfirmation:
        try:
            slot = self.commit(intent)
        except AvailabilityConflictException:
            prometheus_metrics.inc_booking_outcome("conflict")
            self.logger.warning(
                "Seat conflict committing %s on %s for payment %s",
                intent.schedule_id,
                to_date_key(intent.scheduled_date),
                intent.payment_reference,
            )
            raise
        except Exception as exc:
            if not intent.requires_payment:
                self._raise_points_only_failure(intent, exc)
            return self._record_reconciliation(intent, exc)

        prometheus_metrics.inc_booking_outcome(BookingOutcome.COMMITTED.value)
        prometheus_metrics.inc_points_redeemed(intent.points_applied)
        self.log_operation(
            "commit_booking",
            schedule_id=intent.schedule_id,
            scheduled_date=to_date_key(intent.scheduled_date),
            student_id=intent.student_id,
            booked_slot_id=slot.id,
            payment_reference=intent.payment_reference,
        )
        return self._confirmation_from_slot(slot)

    def _raise_points_only_failure(self, intent: BookingIntent, cause: Exception) -> NoReturn:
        prometheus_metrics.inc_booking_outcome("failed")
        self.logger.warning(
            "Points-only commit failed for %s on %s (%s): %s",
            intent.schedule_id,
            to_date_key(intent.scheduled_date),
            intent.payment_reference,
            cause,
        )
        if isinstance(cause, DomainException):
            raise cause
        raise ServiceException(
            "We could not complete your booking. No points were redeemed.",
            code="BOOKING_COMMIT_FAILED",
            details=booking_context(
                schedule_id=intent.schedule_id,
                scheduled_date=intent.scheduled_date,
                payment_reference=intent.payment_reference,
                error_type=type(cause).__name__,
            ),
        ) from cause

    def _record_reconciliation(
        self, intent: BookingIntent, cause: Exception
    ) -> BookingConfirmation:
        payment_reference = intent.payment_reference or ""
        error = CommitReconciliationException(
            f"Payment {payment_reference} succeeded but the seat commit failed: {cause}",
            details=booking_context(
                schedule_id=intent.schedule_id,
                scheduled_date=intent.scheduled_date,
                payment_reference=payment_reference,
                student_id=intent.student_id,
                error_type=type(cause).__name__,
            ),
        )
        self.logger.error(
            "Commit reconciliation required: %s details=%s",
            error.message,
            error.details,
            exc_info=cause,
        )
        prometheus_metrics.inc_booking_outcome(BookingOutcome.RECONCILIATION_REQUIRED.value)

        record_id: Optional[str] = None
        try:
            with self.transaction():
                record = self.reconciliation_repository.create(
                    schedule_id=intent.schedule_id,
                    scheduled_date=intent.scheduled_date,
                    student_id=intent.student_id,
                    payment_reference=payment_reference,
                    amount=intent.final_amount,
                    points_applied=intent.points_applied,
                    reason=str(cause) or type(cause).__name__,
                    error_type=type(cause).__name__,
                )
                record_id = record.id
        except Exception:
            # The log line above is the record of last resort
            self.logger.critical(
                "Could not persist reconciliation record for payment %s",
                payment_reference,
                exc_info=True,
            )

        return BookingConfirmation(
            outcome=BookingOutcome.RECONCILIATION_REQUIRED,
            schedule_id=intent.schedule_id,
            scheduled_date=intent.scheduled_date,
            student_id=intent.student_id,
            payment_reference=payment_reference,
            points_redeemed=intent.points_applied,
            amount_paid=intent.final_amount,
            reconciliation_id=record_id,
        )

    @staticmethod
    def _confirmation_from_slot(slot: BookedSlot) -> BookingConfirmation:
        return BookingConfirmation(
            outcome=BookingOutcome.COMMITTED,
            schedule_id=slot.schedule_id,
            scheduled_date=slot.scheduled_date,
            student_id=slot.student_id,
            payment_reference=slot.payment_reference,
            points_redeemed=int(slot.points_redeemed or 0),
            amount_paid=Decimal(str(slot.amount_paid)),
            booked_slot_id=slot.id,
            session_id=slot.session_id,
        )
