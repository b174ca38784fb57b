from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _ConfigModel(BaseModel):
    # The config document is edited by hand and uses camelCase keys.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class FormField(_ConfigModel):
    id: str
    type: str = "text"
    label: str
    placeholder: str | None = None
    required: bool = True
    auto_capitalize: str | None = None
    keyboard_type: str | None = None
    order: int = 0
    options: list[str] | None = None
    column: str | None = Field(default=None, alias="serviceNowField")

    @property
    def is_signature(self) -> bool:
        return self.type == "signature"


class VersionEntry(_ConfigModel):
    version: str
    timestamp: str
    changes: str = ""


class AppText(_ConfigModel):
    title: str = "Visitor Sign-In"
    subtitle: str = "Please complete all fields"


class ButtonText(_ConfigModel):
    submit: str = "Submit Sign-In"
    sign_out: str = "Sign Out"


class Messages(_ConfigModel):
    location_detecting: str = "Detecting your location..."
    submit_success: str = "Your visit has been recorded."
    submit_error: str = "Failed to submit sign-in. Please check your connection and try again."
    sign_out_error: str = "Failed to sign out. Please check your connection and try again."
    sign_out_not_found: str = "No sign-in record found for today. Please check the name and try again."
    already_signed_out: str = "This visitor has already signed out."
    rating_error: str = "Failed to record your rating. Please try again."
    validation_error_name: str = "Please enter your name"
    validation_error_visiting: str = "Please enter who you are visiting"
    validation_error_purpose: str = "Please enter the purpose of your visit"
    validation_error_phone: str = "Please enter your phone number"
    validation_error_signature: str = "Please provide your signature"

    def validation_message(self, field: FormField) -> str:
        by_field = {
            "visitorName": self.validation_error_name,
            "visitingPerson": self.validation_error_visiting,
            "purpose": self.validation_error_purpose,
            "phoneNumber": self.validation_error_phone,
        }
        if field.is_signature:
            return self.validation_error_signature
        return by_field.get(field.id, f"Please enter {field.label.rstrip(' *').lower()}")


class RecordColumns(_ConfigModel):
    visitor_name_field: str = "visitorName"
    sign_in_time: str = "u_sign_in_time"
    sign_out_time: str = "u_sign_out_time"
    sign_out_name: str = "u_visitor_name_signed_out"
    facility: str = "u_facility"
    signature: str = "u_signature"
    rating: str = "u_rating"


class BackendConfig(_ConfigModel):
    instance_url: str = ""
    username: str = ""
    password: str = Field(default="", repr=False)
    table_name: str = "u_visitor_log"
    location_table: str = "cmn_location"
    columns: RecordColumns = Field(default_factory=RecordColumns)

    @property
    def base_url(self) -> str:
        return self.instance_url.rstrip("/")


class KioskConfig(_ConfigModel):
    version: str = "1.0.0"
    version_history: list[VersionEntry] = Field(default_factory=list)
    app: AppText = Field(default_factory=AppText)
    form_fields: list[FormField] = Field(default_factory=list)
    buttons: ButtonText = Field(default_factory=ButtonText)
    messages: Messages = Field(default_factory=Messages)
    service_now: BackendConfig = Field(default_factory=BackendConfig)

    def ordered_fields(self) -> list[FormField]:
        return sorted(self.form_fields, key=lambda f: f.order)

    def field(self, field_id: str) -> FormField | None:
        return next((f for f in self.form_fields if f.id == field_id), None)


class FormConfigOut(_ConfigModel):
    """Front-end view of the config document. Backend credentials are never included."""

    version: str
    app: AppText
    form_fields: list[FormField]
    buttons: ButtonText
    messages: Messages
