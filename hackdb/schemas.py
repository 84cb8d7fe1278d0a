"""
Form schemas, session state, and form validation.

Forms are validated by `validate_form`, a pure function: raw request data
goes in, and either a validated form or a field→reason map comes out.
Nothing here touches the response or the database.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Annotated, Any, Generic, TypeVar
from uuid import UUID

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    StringConstraints,
    ValidationError,
    field_validator,
)

from hackdb.models.hack import (
    AUTHOR_MAX_LENGTH,
    DESCRIPTION_MAX_LENGTH,
    TITLE_MAX_LENGTH,
)
from hackdb.models.user import USERNAME_MAX_LENGTH

STARS_MAX = 999
DIFFICULTY_MIN = 0
DIFFICULTY_UNKNOWN = -1
DIFFICULTY_MAX = 5
PASSWORD_MIN_LENGTH = 12
# bcrypt only looks at the first 72 bytes
PASSWORD_MAX_BYTES = 72
# Rendered as href targets, so script-capable schemes are refused
WEB_URL_SCHEMES = ("http://", "https://")


def _require_web_url(v: str) -> str:
    if not v.lower().startswith(WEB_URL_SCHEMES):
        raise ValueError("Must be an http:// or https:// URL")
    return v


AuthorStr = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=AUTHOR_MAX_LENGTH),
]
WebUrlStr = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1),
    AfterValidator(_require_web_url),
]
HashStr = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)
]
UsernameStr = Annotated[
    str,
    StringConstraints(
        strip_whitespace=True, min_length=1, max_length=USERNAME_MAX_LENGTH
    ),
]


class SessionState(BaseModel):
    """What the current request knows about its browser session."""

    session_id: str | None = None
    user_id: UUID | None = None
    can_edit: bool = False

    model_config = ConfigDict(frozen=True)

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


class HackForm(BaseModel):
    """Fields of the add-hack form."""

    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    author: AuthorStr
    description: str = Field(..., min_length=1, max_length=DESCRIPTION_MAX_LENGTH)
    youtube: WebUrlStr
    requiredstars: int = Field(..., ge=0, le=STARS_MAX)
    totalstars: int = Field(..., ge=0, le=STARS_MAX)
    difficulty: int = Field(..., ge=DIFFICULTY_MIN, le=DIFFICULTY_MAX)

    def to_hack_data(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "author": self.author,
            "description": self.description,
            "youtube_link": self.youtube,
            "required_stars": self.requiredstars,
            "total_stars": self.totalstars,
            "difficulty": self.difficulty,
        }


class HackEditForm(HackForm):
    """Fields of the edit-hack form. Difficulty may be -1 for "unknown"."""

    difficulty: int = Field(..., ge=DIFFICULTY_UNKNOWN, le=DIFFICULTY_MAX)


class VersionForm(BaseModel):
    versionstring: str = Field(..., min_length=1, max_length=255)
    ipfshash: HashStr

    def to_version_data(self) -> dict[str, Any]:
        return {"version_string": self.versionstring, "ipfs_hash": self.ipfshash}


class LinkForm(BaseModel):
    linkname: str = Field(..., min_length=1)
    linklocation: WebUrlStr

    def to_link_data(self) -> dict[str, Any]:
        return {"name": self.linkname, "location": self.linklocation}


class LoginForm(BaseModel):
    email: EmailStr
    password: str = ""


class RegisterForm(BaseModel):
    email: EmailStr
    username: UsernameStr
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)
    confirmpassword: str = ""

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        if len(v.encode("utf-8")) > PASSWORD_MAX_BYTES:
            raise ValueError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes")
        return v

    @property
    def passwords_match(self) -> bool:
        return self.password == self.confirmpassword


FormT = TypeVar("FormT", bound=BaseModel)


@dataclass
class FormResult(Generic[FormT]):
    data: FormT | None = None
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.data is not None


def validate_form(form_cls: type[FormT], raw: Mapping[str, Any]) -> FormResult[FormT]:
    """Validate raw request data against a form class.

    Only the first failure per field is reported.
    """
    try:
        return FormResult(data=form_cls.model_validate(dict(raw)))
    except ValidationError as e:
        errors: dict[str, str] = {}
        for error in e.errors():
            name = str(error["loc"][0]) if error["loc"] else "__all__"
            errors.setdefault(name, error["msg"])
        return FormResult(errors=errors)
