from typing import Annotated, ClassVar, Dict, List, Type, TypeVar

import pydantic
from pydantic import BaseModel, EmailStr, Field, field_validator

from course_portal.auth.password import MAX_PASSWORD_BYTES, password_too_long
from course_portal.errors import ValidationError

MIN_PASSWORD_LENGTH = 6

NonEmptyStr = Annotated[str, Field(min_length=1)]


class SignupForm(BaseModel):
    name: NonEmptyStr
    email: EmailStr
    srn: NonEmptyStr
    password: Annotated[str, Field(min_length=MIN_PASSWORD_LENGTH)]

    # Field order here is the order messages are shown in
    messages: ClassVar[Dict[str, str]] = {
        "name": "Name is required",
        "email": "Valid email is required",
        "srn": "SRN is required",
        "password": f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
    }
    # Messages for fields rejected by a custom validator
    value_error_messages: ClassVar[Dict[str, str]] = {
        "password": f"Password must be at most {MAX_PASSWORD_BYTES} bytes",
    }

    @field_validator("name", "email", "srn", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("password")
    @classmethod
    def fits_bcrypt(cls, value):
        if password_too_long(value):
            raise ValueError("password too long")
        return value


class LoginForm(BaseModel):
    email: EmailStr
    password: NonEmptyStr

    messages: ClassVar[Dict[str, str]] = {
        "email": "Valid email required",
        "password": "Password required",
    }

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, value):
        return value.strip() if isinstance(value, str) else value


FormT = TypeVar("FormT", SignupForm, LoginForm)


def parse_form(form_cls: Type[FormT], data: Dict[str, str]) -> FormT:
    """Validate submitted form fields, raising ``ValidationError`` with
    one user-facing message per failing field."""
    try:
        return form_cls(**data)
    except pydantic.ValidationError as exc:
        failed: Dict[str, str] = {}
        for err in exc.errors():
            if err["loc"]:
                failed.setdefault(str(err["loc"][0]), err["type"])
        custom = getattr(form_cls, "value_error_messages", {})
        messages: List[str] = []
        for field, msg in form_cls.messages.items():
            if field not in failed:
                continue
            if failed[field] == "value_error" and field in custom:
                msg = custom[field]
            messages.append(msg)
        raise ValidationError(messages or ["Invalid form"])
