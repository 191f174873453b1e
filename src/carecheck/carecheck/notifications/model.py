from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time
from typing import Optional

from ..core.enums import CheckAction


def _parse_clock(value: object, default: time) -> time:
    if isinstance(value, time):
        return value
    if not value:
        return default
    hours, minutes = str(value).split(":")[:2]
    return time(int(hours), int(minutes))


@dataclass(frozen=True)
class NotificationPreferences:
    """Per family member settings; missing keys fall back to these defaults."""

    push_enabled: bool = False
    email_enabled: bool = False
    sms_enabled: bool = False
    check_in: bool = True
    check_out: bool = True
    quiet_hours_enabled: bool = False
    quiet_start: time = time(22, 0)
    quiet_end: time = time(8, 0)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "NotificationPreferences":
        data = data or {}
        quiet = data.get("quiet_hours") or {}
        defaults = cls()
        return cls(
            push_enabled=bool(data.get("push_enabled", defaults.push_enabled)),
            email_enabled=bool(data.get("email_enabled", defaults.email_enabled)),
            sms_enabled=bool(data.get("sms_enabled", defaults.sms_enabled)),
            check_in=bool(data.get("check_in", defaults.check_in)),
            check_out=bool(data.get("check_out", defaults.check_out)),
            quiet_hours_enabled=bool(quiet.get("enabled", defaults.quiet_hours_enabled)),
            quiet_start=_parse_clock(quiet.get("start"), defaults.quiet_start),
            quiet_end=_parse_clock(quiet.get("end"), defaults.quiet_end),
        )

    def channels(self) -> list[str]:
        enabled = [("push", self.push_enabled), ("email", self.email_enabled), ("sms", self.sms_enabled)]
        return [name for name, on in enabled if on]

    def in_quiet_hours(self, clock: time) -> bool:
        if not self.quiet_hours_enabled:
            return False
        # Quiet hours may span midnight (22:00 -> 08:00).
        if self.quiet_start > self.quiet_end:
            return clock >= self.quiet_start or clock <= self.quiet_end
        return self.quiet_start <= clock <= self.quiet_end

    def wants(self, action: CheckAction, local_clock: time) -> bool:
        if not self.channels():
            return False
        toggle = self.check_in if action == CheckAction.CHECK_IN else self.check_out
        return toggle and not self.in_quiet_hours(local_clock)


@dataclass(frozen=True)
class Recipient:
    recipient_id: int
    beneficiary_id: int
    name: str
    preferences: NotificationPreferences


@dataclass(frozen=True)
class CheckNotification:
    caregiver_name: str
    action: CheckAction
    beneficiary_name: str
    timestamp: datetime
    local_time: str

    @property
    def title(self) -> str:
        verb = "arrived" if self.action == CheckAction.CHECK_IN else "left"
        return f"{self.caregiver_name} {verb}"

    @property
    def body(self) -> str:
        verb = "checked in with" if self.action == CheckAction.CHECK_IN else "checked out from"
        return f"{self.caregiver_name} {verb} {self.beneficiary_name} at {self.local_time}"
