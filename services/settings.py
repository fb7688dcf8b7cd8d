"""Guest settings collected once from the Flask configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Mapping

REGISTRATION_OPEN = "open"
REGISTRATION_MODERATE = "moderate"
REGISTRATION_CLOSED = "closed"

REGISTRATION_MODES = (REGISTRATION_OPEN, REGISTRATION_MODERATE, REGISTRATION_CLOSED)


def _as_tuple(value: Any) -> tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        value = value.split(",")
    return tuple(item.strip() for item in value if item and item.strip())


@dataclass(frozen=True)
class GuestSettings:
    """Every setting the guest services consume."""

    registration_mode: str = REGISTRATION_MODERATE
    register_email_is_valid: bool = False
    register_role_default: str = "guest"
    allowed_roles: tuple[str, ...] = ()
    notify_register: tuple[str, ...] = ()
    user_setting_keys: tuple[str, ...] = ("agreed_terms", "locale")
    default_site: str | None = None
    short_tokens: bool = False
    reset_token_ttl: timedelta = timedelta(days=1)
    redirect_default: str = "home"
    redirect_strict: bool = False
    terms_page: str = ""
    terms_request_regex: str = ""
    main_title: str = "Guest"
    messages: Mapping[str, Mapping[str, str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.registration_mode not in REGISTRATION_MODES:
            raise ValueError(
                "Registration mode must be one of: {}.".format(", ".join(REGISTRATION_MODES))
            )

    @property
    def is_open(self) -> bool:
        return self.registration_mode == REGISTRATION_OPEN

    @property
    def is_closed(self) -> bool:
        return self.registration_mode == REGISTRATION_CLOSED

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "GuestSettings":
        """Build the settings from a Flask ``app.config`` mapping."""

        mode = (config.get("GUEST_REGISTRATION_MODE") or REGISTRATION_MODERATE).strip().lower()
        return cls(
            registration_mode=mode,
            register_email_is_valid=bool(config.get("GUEST_REGISTER_EMAIL_IS_VALID")),
            register_role_default=config.get("GUEST_REGISTER_ROLE_DEFAULT") or "guest",
            allowed_roles=_as_tuple(config.get("GUEST_ALLOWED_ROLES")),
            notify_register=_as_tuple(config.get("GUEST_NOTIFY_REGISTER")),
            user_setting_keys=_as_tuple(config.get("GUEST_USER_SETTINGS", ("agreed_terms",))),
            default_site=config.get("GUEST_DEFAULT_SITE") or None,
            short_tokens=bool(config.get("GUEST_SHORT_TOKENS")),
            reset_token_ttl=timedelta(seconds=int(config.get("GUEST_RESET_TOKEN_TTL", 86400))),
            redirect_default=config.get("GUEST_REDIRECT") or "home",
            redirect_strict=bool(config.get("GUEST_REDIRECT_STRICT")),
            terms_page=config.get("GUEST_TERMS_PAGE") or "",
            terms_request_regex=config.get("GUEST_TERMS_REQUEST_REGEX") or "",
            main_title=config.get("GUEST_MAIN_TITLE") or "Guest",
            messages=dict(config.get("GUEST_MESSAGES") or {}),
        )
