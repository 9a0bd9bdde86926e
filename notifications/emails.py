from datetime import date, time
from typing import Iterable, Optional
from django.utils.html import escape

BRAND = "TimeToMeet"

_PAGE = """<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
  </head>
  <body style="font-family: 'Inter', Arial, sans-serif; line-height: 1.6; color: #374151; max-width: 600px; margin: 0 auto; padding: 20px;">
    <div style="background: {banner}; padding: 30px; border-radius: 12px 12px 0 0; text-align: center;">
      <h1 style="color: white; margin: 0; font-size: 28px; font-weight: 600;">{title}</h1>
    </div>
    <div style="background: white; padding: 30px; border: 1px solid #e5e7eb; border-top: none; border-radius: 0 0 12px 12px;">
      {body}
      <hr style="border: none; border-top: 1px solid #e5e7eb; margin: 30px 0;">
      <p style="font-size: 14px; color: #9ca3af; text-align: center; margin: 0;">{footer}</p>
    </div>
  </body>
</html>"""

_BUTTON = ('<div style="text-align: center; margin: 30px 0;">'
           '<a href="{href}" style="background: #2563eb; color: white; padding: 12px 24px; text-decoration: none; '
           'border-radius: 6px; font-weight: 500; display: inline-block;">{label}</a></div>')


def format_date(value: Optional[date]) -> str:
    return value.strftime("%A, %B %d, %Y") if value else "TBD"


def format_time(value: Optional[time]) -> str:
    return value.strftime("%I:%M %p").lstrip("0") if value else "TBD"


def _meeting_card(title: str, lines: Iterable[str]) -> str:
    rows = "".join(f'<p style="margin: 5px 0; color: #6b7280;">{line}</p>' for line in lines)
    return ('<div style="background: #f8fafc; padding: 20px; border-radius: 8px; margin: 20px 0; border-left: 4px solid #500000;">'
            f'<h2 style="color: #500000; margin: 0 0 10px 0; font-size: 20px;">{escape(title)}</h2>{rows}</div>')


def _item_card(title: str, details: Iterable[str], accent: str) -> str:
    rows = "".join(f'<p style="margin: 0; color: #6b7280; font-size: 14px;">{d}</p>' for d in details)
    return (f'<div style="background: #f8fafc; padding: 15px; border-radius: 6px; margin: 10px 0; border-left: 3px solid {accent};">'
            f'<h4 style="margin: 0 0 8px 0; color: #374151; font-size: 16px;">{escape(title)}</h4>{rows}</div>')


def invitation_html(meeting, inviter_name: str, link: str) -> str:
    lines = [
        f"<strong>Date:</strong> {format_date(meeting.scheduled_date)}",
        f"<strong>Time:</strong> {format_time(meeting.scheduled_time)}",
    ]
    if meeting.location:
        lines.append(f"<strong>Location:</strong> {escape(meeting.location)}")
    lines.append(f"<strong>Invited by:</strong> {escape(inviter_name or 'Meeting Organizer')}")

    body = ('<p style="font-size: 18px; margin-bottom: 20px;">You\'ve been invited to join a meeting!</p>'
            + _meeting_card(meeting.title, lines)
            + '<p style="margin: 20px 0;">Please create an account or log in to view meeting details, '
              'participate in discussions, and manage tasks.</p>'
            + _BUTTON.format(href=escape(link), label="View Meeting Details"))
    return _PAGE.format(title="Meeting Invitation", banner="linear-gradient(135deg, #2563eb 0%, #1d4ed8 100%)", body=body,
                        footer=f"This invitation was sent from {BRAND}. If you didn't expect this invitation, you can safely ignore this email.")


def summary_html(meeting, discussion_items, todos) -> str:
    """Summary of completed discussion items and the meeting's action items."""
    if discussion_items:
        items_html = "".join(
            _item_card(item.title, [escape(item.description)] if item.description else [], "#500000")
            for item in discussion_items
        )
    else:
        items_html = '<p style="color: #9ca3af; font-style: italic;">No discussion items were completed in this meeting.</p>'

    if todos:
        cards = []
        for todo in todos:
            details = []
            if todo.assigned_email:
                details.append(f"<strong>Assigned to:</strong> {escape(todo.assigned_email)}")
            if todo.due_date:
                details.append(f"<strong>Due:</strong> {todo.due_date.strftime('%b %d, %Y')}")
            cards.append(_item_card(todo.title, details, "#2563eb"))
        todos_html = "".join(cards)
    else:
        todos_html = '<p style="color: #9ca3af; font-style: italic;">No action items were created in this meeting.</p>'

    heading = '<h3 style="color: #374151; margin: 0 0 15px 0; font-size: 18px; border-bottom: 2px solid {color}; padding-bottom: 8px;">{text}</h3>'
    body = (_meeting_card(meeting.title, [f"<strong>Date:</strong> {format_date(meeting.scheduled_date)}"])
            + '<div style="margin: 30px 0;">' + heading.format(color="#500000", text="Discussion Items Covered") + items_html + '</div>'
            + '<div style="margin: 30px 0;">' + heading.format(color="#2563eb", text="Action Items") + todos_html + '</div>')
    return _PAGE.format(title="Meeting Summary", banner="linear-gradient(135deg, #500000 0%, #7c2d12 100%)", body=body,
                        footer=f"This summary was generated from {BRAND}. Keep track of your action items and follow up on discussion points.")


def reminder_html(meeting, link: str) -> str:
    lines = [
        f"<strong>Date:</strong> {format_date(meeting.scheduled_date)}",
        f"<strong>Time:</strong> {format_time(meeting.scheduled_time)}",
    ]
    if meeting.location:
        lines.append(f"<strong>Location:</strong> {escape(meeting.location)}")
    body = ('<p>This is a reminder about your upcoming meeting tomorrow.</p>'
            + _meeting_card(meeting.title, lines)
            + _BUTTON.format(href=escape(link), label="View Meeting Details"))
    return _PAGE.format(title="Meeting Reminder", banner="linear-gradient(135deg, #059669 0%, #047857 100%)", body=body,
                        footer=f"You are receiving this because you were invited to this meeting on {BRAND}.")


def password_reset_html(link: str) -> str:
    body = ('<p>We received a request to reset the password for your account. Click the button below to choose a new password.</p>'
            + _BUTTON.format(href=escape(link), label="Reset Password")
            + f'<p style="color: #6b7280; font-size: 14px;">If you can\'t click the button, copy and paste this link: {escape(link)}</p>')
    return _PAGE.format(title="Reset Your Password", banner="linear-gradient(135deg, #2563eb 0%, #1d4ed8 100%)", body=body,
                        footer="If you didn't request a password reset, you can safely ignore this email.")
