from __future__ import annotations

from pydantic import BaseModel, ConfigDict, model_validator


class CreateRaceParams(BaseModel):
    """Form fields accepted by the race creation endpoint.

    ``start_delay`` and ``chat_message_delay`` are in seconds, ``time_limit``
    in hours.
    """

    model_config = ConfigDict(frozen=True)

    goal: str | None = None
    custom_goal: str | None = None
    team_race: bool | None = None
    invitational: bool | None = None
    unlisted: bool | None = None
    info_user: str | None = None
    info_bot: str | None = None
    require_even_teams: bool | None = None
    start_delay: int = 15
    time_limit: int = 24
    time_limit_auto_complete: bool | None = None
    streaming_required: bool | None = None
    auto_start: bool | None = None
    allow_comments: bool | None = None
    hide_comments: bool | None = None
    allow_prerace_chat: bool | None = None
    allow_midrace_chat: bool | None = None
    allow_non_entrant_chat: bool | None = None
    chat_message_delay: int = 0

    @model_validator(mode="after")
    def _one_goal(self) -> CreateRaceParams:
        if (self.goal is None) == (self.custom_goal is None):
            raise ValueError("exactly one of goal or custom_goal must be set")
        return self

    def to_form(self) -> dict[str, str]:
        form: dict[str, str] = {}
        for key, value in self.model_dump(exclude_none=True).items():
            if isinstance(value, bool):
                form[key] = "true" if value else "false"
            else:
                form[key] = str(value)
        return form
