"""
Email templates for client notifications.
"""

from dataclasses import dataclass
from enum import Enum
from html import escape
from typing import Any, Callable

from publisphere.v1.integrations.errors import NotificationRejectedError

_BUTTON_STYLE = (
    "background-color: #3B82F6; color: white; padding: 10px 20px; "
    "text-decoration: none; border-radius: 5px; display: inline-block;"
)
_PANEL_STYLE = "background-color: #f5f5f5; padding: 15px; border-radius: 5px; margin: 20px 0;"


class NotificationType(str, Enum):
    """Notification types understood by the sender."""

    PUBLISH_SUCCESS = "publish_success"
    PUBLISH_FAILURE = "publish_failure"
    CONTENT_READY = "content_ready"
    WEEKLY_SUMMARY = "weekly_summary"
    GMB_REMINDER = "gmb_reminder"


@dataclass(frozen=True)
class RenderedMessage:
    subject: str
    html: str


def _field(data: dict[str, Any], key: str, default: str = "") -> str:
    value = data.get(key)
    return escape(str(value)) if value is not None else default


def _button(url: str, label: str) -> str:
    if not url:
        return ""
    return f'<p><a href="{url}" style="{_BUTTON_STYLE}">{label}</a></p>'


def _publish_success(data: dict[str, Any]) -> RenderedMessage:
    title = _field(data, "title", "Untitled")
    return RenderedMessage(
        subject=f"✅ Article Published: {title}",
        html=(
            "<h1>Article Published Successfully</h1>"
            f"<p>Your article \"<strong>{title}</strong>\" was successfully published "
            f"to {_field(data, 'site_name', 'your site')}.</p>"
            f"{_button(_field(data, 'url'), 'View Article')}"
        ),
    )


def _publish_failure(data: dict[str, Any]) -> RenderedMessage:
    title = _field(data, "title", "Untitled")
    return RenderedMessage(
        subject=f"❌ Publishing Failed: {title}",
        html=(
            "<h1>Publishing Failed</h1>"
            f"<p>We couldn't publish \"<strong>{title}</strong>\" "
            f"to {_field(data, 'site_name', 'your site')}.</p>"
            '<div style="background-color: #fee; border-left: 4px solid #f44; '
            f'padding: 15px; margin: 20px 0;"><strong>Error:</strong> '
            f"{_field(data, 'error', 'unknown error')}</div>"
            "<h3>What to do:</h3><ul>"
            "<li>Check your WordPress connection</li>"
            "<li>Review article content</li>"
            "<li>Try publishing manually</li></ul>"
            f"{_button(_field(data, 'url'), 'View Article')}"
        ),
    )


def _content_ready(data: dict[str, Any]) -> RenderedMessage:
    return RenderedMessage(
        subject="📅 Content Ready to Publish Tomorrow",
        html=(
            "<h1>Content Ready for Review</h1>"
            "<p>Your scheduled article is ready to publish tomorrow:</p>"
            f'<div style="{_PANEL_STYLE}">'
            f"<strong>Title:</strong> {_field(data, 'title', 'Untitled')}<br>"
            f"<strong>WordPress:</strong> {_field(data, 'site_name')}<br>"
            f"<strong>Scheduled:</strong> {_field(data, 'date')} at {_field(data, 'time')}"
            "</div>"
            f"{_button(_field(data, 'url'), 'Review Now')}"
        ),
    )


def _weekly_summary(data: dict[str, Any]) -> RenderedMessage:
    return RenderedMessage(
        subject="📊 Your Weekly Content Summary",
        html=(
            "<h1>Weekly Content Summary</h1>"
            "<p>Here's what happened this week:</p>"
            f'<div style="{_PANEL_STYLE}">'
            '<h3 style="margin-top: 0;">Content Statistics</h3>'
            f"<p><strong>Articles Generated:</strong> {_field(data, 'articles', '0')}</p>"
            f"<p><strong>GMB Posts Created:</strong> {_field(data, 'gmb_posts', '0')}</p>"
            f"<p><strong>Content Published:</strong> {_field(data, 'published', '0')}</p>"
            "</div>"
        ),
    )


def _gmb_reminder(data: dict[str, Any]) -> RenderedMessage:
    title = _field(data, "title", "Untitled")
    return RenderedMessage(
        subject=f"📍 Time to post on Google Business Profile: {title}",
        html=(
            "<h1>Your Google Business Profile post is due</h1>"
            "<p>Copy the post below into your Business Profile:</p>"
            f'<div style="{_PANEL_STYLE}"><strong>{title}</strong><br>'
            f"{_field(data, 'content')}</div>"
            f"{_button(_field(data, 'url'), 'Open Post')}"
        ),
    )


_RENDERERS: dict[NotificationType, Callable[[dict[str, Any]], RenderedMessage]] = {
    NotificationType.PUBLISH_SUCCESS: _publish_success,
    NotificationType.PUBLISH_FAILURE: _publish_failure,
    NotificationType.CONTENT_READY: _content_ready,
    NotificationType.WEEKLY_SUMMARY: _weekly_summary,
    NotificationType.GMB_REMINDER: _gmb_reminder,
}


def render(notification_type: str, data: dict[str, Any]) -> RenderedMessage:
    """Render a notification; unknown types are rejected, not guessed."""
    try:
        kind = NotificationType(notification_type)
    except ValueError:
        raise NotificationRejectedError(
            f"Unknown notification type: {notification_type}"
        ) from None
    return _RENDERERS[kind](data or {})
