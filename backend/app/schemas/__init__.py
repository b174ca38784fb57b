from .form_config import (
    AppText,
    BackendConfig,
    ButtonText,
    FormConfigOut,
    FormField,
    KioskConfig,
    Messages,
    RecordColumns,
)
from .place import Coordinates, Location, NearestLocationResponse
from .sessions import (
    BootstrapRequest,
    FieldUpdate,
    RatingRequest,
    SessionState,
    SessionView,
    SignatureUpdate,
    SignOutRequest,
)
from .visits import SignInResult, SignOutResult, VisitorRecord, VisitorSubmission

__all__ = [
    "AppText",
    "BackendConfig",
    "ButtonText",
    "FormConfigOut",
    "FormField",
    "KioskConfig",
    "Messages",
    "RecordColumns",
    "Coordinates",
    "Location",
    "NearestLocationResponse",
    "BootstrapRequest",
    "FieldUpdate",
    "RatingRequest",
    "SessionState",
    "SessionView",
    "SignatureUpdate",
    "SignOutRequest",
    "SignInResult",
    "SignOutResult",
    "VisitorRecord",
    "VisitorSubmission",
]
