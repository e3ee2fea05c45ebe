"""
发布状态机
Publish state machine
"""

from __future__ import annotations


class PublishStage:
    INIT = "init"
    BROWSER_OPEN = "browser_open"
    AUTH_CHECKED = "auth_checked"
    LOGGING_IN = "logging_in"
    ON_CREATION_PAGE = "on_creation_page"
    PHOTOS_TRANSFERRED = "photos_transferred"
    FORM_FILLED = "form_filled"
    SUBMITTED = "submitted"
    URL_CAPTURED = "url_captured"
    DONE = "done"
    FAILED = "failed"


VALID_TRANSITIONS: dict[str, set[str]] = {
    PublishStage.INIT: {PublishStage.BROWSER_OPEN},
    PublishStage.BROWSER_OPEN: {PublishStage.AUTH_CHECKED},
    PublishStage.AUTH_CHECKED: {PublishStage.LOGGING_IN, PublishStage.ON_CREATION_PAGE},
    PublishStage.LOGGING_IN: {PublishStage.ON_CREATION_PAGE},
    PublishStage.ON_CREATION_PAGE: {PublishStage.PHOTOS_TRANSFERRED},
    PublishStage.PHOTOS_TRANSFERRED: {PublishStage.FORM_FILLED},
    PublishStage.FORM_FILLED: {PublishStage.SUBMITTED},
    PublishStage.SUBMITTED: {PublishStage.URL_CAPTURED},
    PublishStage.URL_CAPTURED: {PublishStage.DONE},
    PublishStage.DONE: set(),
    PublishStage.FAILED: set(),
}

TERMINAL_STAGES = {PublishStage.DONE, PublishStage.FAILED}


def can_transition(current: str, target: str) -> bool:
    if target == PublishStage.FAILED:
        return current not in TERMINAL_STAGES
    return target in VALID_TRANSITIONS.get(current, set())
