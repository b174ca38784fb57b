"""
Kiosk session state machine.

    sign-in --submit--> sign-in-success --finish--> sign-in
    sign-in --request sign-out--> sign-out --cancel--> sign-in
    sign-out --submit--> sign-out-success --finish--> sign-in

A failed action never changes state. Its user-facing message is kept in
``last_error`` and the exception is re-raised.
"""
from __future__ import annotations

import logging

from ..core.errors import (
    AlreadySignedOutError,
    InvalidTransitionError,
    NotFoundError,
    SubmissionInProgressError,
    ValidationError,
)
from ..schemas.form_config import KioskConfig
from ..schemas.place import Location
from ..schemas.sessions import SessionState, SessionView
from ..schemas.visits import SignInResult, SignOutResult, VisitorSubmission
from .attachments import decode_signature
from .geolocation import nearest_location_with_distance
from .positioning import PositionProvider
from .records import RecordLifecycleClient
from .review_links import get_review_url

logger = logging.getLogger(__name__)


class SessionController:
    def __init__(
        self,
        client: RecordLifecycleClient,
        config: KioskConfig,
        log: logging.Logger | None = None,
    ) -> None:
        self._client = client
        self._config = config
        self._log = log or logger

        self.state = SessionState.SIGN_IN
        self.values: dict[str, str] = {}
        self.signature = ""
        self.sign_out_name = ""

        self.is_submitting = False
        self.is_signing_out = False
        self.is_rating = False

        self.locations: list[Location] = []
        self.detected_location: Location | None = None

        self.last_sign_in: SignInResult | None = None
        self.last_sign_out: SignOutResult | None = None
        self.signed_in_name: str | None = None
        self.signed_out_name: str | None = None
        self.review_url: str | None = None
        self.rating: int | None = None
        self.last_error: str | None = None

    def _require(self, *states: SessionState) -> None:
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise InvalidTransitionError(f"Action not available in state {self.state.value} (expected {allowed})")

    def _transition(self, target: SessionState) -> None:
        self._log.info("Session state %s -> %s", self.state.value, target.value)
        self.state = target

    def _fail(self, exc: Exception, fallback: str) -> None:
        if isinstance(exc, ValidationError):
            self.last_error = exc.message
        elif isinstance(exc, NotFoundError):
            self.last_error = self._config.messages.sign_out_not_found
        elif isinstance(exc, AlreadySignedOutError):
            self.last_error = self._config.messages.already_signed_out
        else:
            self.last_error = fallback
        self._log.warning("Session action failed in state %s: %s", self.state.value, exc)

    def snapshot(self) -> SessionView:
        return SessionView(
            state=self.state,
            values=dict(self.values),
            has_signature=bool(self.signature),
            sign_out_name=self.sign_out_name,
            is_submitting=self.is_submitting,
            is_signing_out=self.is_signing_out,
            is_rating=self.is_rating,
            detected_location=self.detected_location,
            last_sign_in=self.last_sign_in,
            last_sign_out=self.last_sign_out,
            signed_in_name=self.signed_in_name,
            signed_out_name=self.signed_out_name,
            review_url=self.review_url,
            rating=self.rating,
            last_error=self.last_error,
        )

    # form input

    def update_field(self, field_id: str, value: str) -> None:
        self._require(SessionState.SIGN_IN)
        field = self._config.field(field_id)
        if field is None:
            raise ValidationError(field_id, f"Unknown form field: {field_id}")
        if field.is_signature:
            self.signature = value
        else:
            self.values[field_id] = value

    def set_signature(self, signature: str) -> None:
        self._require(SessionState.SIGN_IN)
        self.signature = signature

    def clear_signature(self) -> None:
        self._require(SessionState.SIGN_IN)
        self.signature = ""

    def set_sign_out_name(self, name: str) -> None:
        self._require(SessionState.SIGN_OUT)
        self.sign_out_name = name

    def _signature_is_valid(self) -> bool:
        if not self.signature:
            return False
        try:
            decode_signature(self.signature)
        except ValueError:
            return False
        return True

    def validate(self) -> None:
        messages = self._config.messages
        for field in self._config.ordered_fields():
            if not field.required:
                continue
            if field.is_signature:
                if not self._signature_is_valid():
                    raise ValidationError(field.id, messages.validation_message(field))
            elif not self.values.get(field.id, "").strip():
                raise ValidationError(field.id, messages.validation_message(field))

    # bootstrap

    async def bootstrap(self, provider: PositionProvider | None) -> Location | None:
        """
        Load the facility directory and match the device position against it.

        Runs alongside form filling and never changes state. The directory is
        fetched once per session; repeated calls only redo the match. Failures
        are logged; the kiosk works without a detected facility.
        """
        if not self.locations and not await self._load_locations():
            return None

        if provider is None:
            return None
        try:
            position = await provider.current_position()
        except Exception as exc:
            self._log.error("Failed to read device position: %s", exc)
            return None
        if position is None:
            self._log.info("Location permission not granted, skipping facility detection")
            return None

        match = nearest_location_with_distance(position.latitude, position.longitude, self.locations)
        if match is None:
            self._log.info("No facility with coordinates to match against")
            return None

        location, distance = match
        self.detected_location = location
        self._log.info("Nearest location: %s (%.2f miles away)", location.name, distance)
        return location

    # sign-in

    async def submit_sign_in(self) -> SignInResult:
        self._require(SessionState.SIGN_IN)
        if self.is_submitting:
            raise SubmissionInProgressError("A sign-in is already being submitted")
        try:
            self.validate()
        except ValidationError as exc:
            self._fail(exc, exc.message)
            raise

        submission = VisitorSubmission(
            values=dict(self.values),
            signature=self.signature,
            location=self.detected_location.sys_id if self.detected_location else None,
        )
        self.is_submitting = True
        self.last_error = None
        try:
            result = await self._client.submit_visitor_sign_in(submission)
        except Exception as exc:
            self._fail(exc, self._config.messages.submit_error)
            raise
        finally:
            self.is_submitting = False

        self.last_sign_in = result
        self.signed_in_name = self.values.get(self._config.service_now.columns.visitor_name_field)
        self._transition(SessionState.SIGN_IN_SUCCESS)
        return result

    # sign-out

    def request_sign_out(self) -> None:
        self._require(SessionState.SIGN_IN)
        if self.is_submitting:
            raise SubmissionInProgressError("A sign-in is being submitted")
        self.last_error = None
        self._transition(SessionState.SIGN_OUT)

    def cancel_sign_out(self) -> None:
        self._require(SessionState.SIGN_OUT)
        if self.is_signing_out:
            raise SubmissionInProgressError("A sign-out is being submitted")
        self.sign_out_name = ""
        self.last_error = None
        self._transition(SessionState.SIGN_IN)

    async def _load_locations(self) -> bool:
        try:
            self.locations = await self._client.fetch_locations()
        except Exception as exc:
            self._log.error("Failed to load facility directory: %s", exc)
            return False
        return True

    def _find_location(self, facility_id: str) -> Location | None:
        return next((location for location in self.locations if location.sys_id == facility_id), None)

    async def _facility_for(self, facility_id: str | None) -> Location | None:
        if not facility_id:
            return self.detected_location
        # sign-out can finish before bootstrap has loaded the directory
        if self._find_location(facility_id) is None:
            await self._load_locations()
        return self._find_location(facility_id) or self.detected_location

    async def submit_sign_out(self, visitor_name: str | None = None) -> SignOutResult:
        self._require(SessionState.SIGN_OUT)
        if self.is_signing_out:
            raise SubmissionInProgressError("A sign-out is already being submitted")
        if visitor_name is not None:
            self.sign_out_name = visitor_name
        name = self.sign_out_name.strip()
        if not name:
            exc = ValidationError("visitorName", self._config.messages.validation_error_name)
            self._fail(exc, exc.message)
            raise exc

        self.is_signing_out = True
        self.last_error = None
        try:
            try:
                result = await self._client.submit_visitor_sign_out(name)
            except Exception as exc:
                self._fail(exc, self._config.messages.sign_out_error)
                raise
            facility = await self._facility_for(result.facility_id)
        finally:
            self.is_signing_out = False

        self.last_sign_out = result
        self.signed_out_name = name
        self.review_url = get_review_url(facility)
        self.rating = None
        self._transition(SessionState.SIGN_OUT_SUCCESS)
        return result

    async def submit_rating(self, rating: int) -> None:
        self._require(SessionState.SIGN_OUT_SUCCESS)
        if self.rating is not None:
            raise InvalidTransitionError("A rating was already recorded for this visit")
        if self.is_rating:
            raise SubmissionInProgressError("A rating is already being submitted")
        if not 1 <= rating <= 5:
            exc = ValidationError("rating", "Rating must be between 1 and 5")
            self._fail(exc, exc.message)
            raise exc

        self.is_rating = True
        self.last_error = None
        try:
            await self._client.update_visitor_rating(self.last_sign_out.record_id, rating)
        except Exception as exc:
            self._fail(exc, self._config.messages.rating_error)
            raise
        finally:
            self.is_rating = False
        self.rating = rating

    # done

    def finish(self) -> None:
        self._require(SessionState.SIGN_IN_SUCCESS, SessionState.SIGN_OUT_SUCCESS)
        if self.is_rating:
            raise SubmissionInProgressError("A rating is being submitted")
        if self.state == SessionState.SIGN_IN_SUCCESS:
            self.values = {}
            self.signature = ""
            self.last_sign_in = None
            self.signed_in_name = None
        else:
            self.sign_out_name = ""
            self.last_sign_out = None
            self.signed_out_name = None
            self.review_url = None
            self.rating = None
        self.last_error = None
        self._transition(SessionState.SIGN_IN)
