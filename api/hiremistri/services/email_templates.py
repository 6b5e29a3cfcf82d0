"""Subjects and HTML bodies for lifecycle emails."""

from __future__ import annotations

from html import escape

FOOTER = "This is an automated notification from Hire Mistri."

STATUS_MESSAGES = {
    "accepted": "Congratulations! Your application has been accepted.",
    "rejected": "Your application has been reviewed but not selected for this position.",
}


def _wrap(heading: str, name: str, body: str) -> str:
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        f'<h2 style="color: #333;">{escape(heading)}</h2>'
        f"<p>Hello {escape(name or 'there')},</p>"
        f"{body}"
        f'<p style="margin-top: 30px; color: #666; font-size: 12px;">{FOOTER}</p>'
        "</div>"
    )


def application_received(*, client_name: str, job_title: str, worker_name: str) -> tuple[str, str]:
    subject = f'New Application for "{job_title}"'
    body = (
        f"<p>You have received a new application for your job: <strong>{escape(job_title)}</strong></p>"
        f"<p><strong>Applicant:</strong> {escape(worker_name or 'A worker')}</p>"
        "<p>Please review the application in your dashboard.</p>"
    )
    return subject, _wrap("New Application Received", client_name, body)


def application_status(*, worker_name: str, job_title: str, status: str) -> tuple[str, str]:
    message = STATUS_MESSAGES.get(status, "Your application status has been updated.")
    subject = f'Application Update: "{job_title}"'
    body = (
        f"<p>{escape(message)}</p>"
        f"<p><strong>Job:</strong> {escape(job_title)}</p>"
        f"<p><strong>Status:</strong> {escape(status.capitalize())}</p>"
    )
    return subject, _wrap("Application Status Update", worker_name, body)


def application_withdrawn(*, client_name: str, job_title: str, worker_name: str) -> tuple[str, str]:
    subject = f'Application Withdrawn: "{job_title}"'
    body = (
        f"<p><strong>{escape(worker_name or 'A worker')}</strong> withdrew their application for "
        f"<strong>{escape(job_title)}</strong>.</p>"
    )
    return subject, _wrap("Application Withdrawn", client_name, body)


def job_status(*, name: str, job_title: str, status: str) -> tuple[str, str]:
    subject = f'Job Status Update: "{job_title}"'
    body = (
        f"<p>Your job <strong>{escape(job_title)}</strong> status has been updated to: "
        f"<strong>{escape(status.capitalize())}</strong></p>"
    )
    return subject, _wrap("Job Status Update", name, body)


def job_expired(*, name: str, job_title: str) -> tuple[str, str]:
    subject = f'Job Closed: "{job_title}"'
    body = (
        f"<p>Your job <strong>{escape(job_title)}</strong> reached its expiration date and was closed automatically.</p>"
        "<p>You can post it again from your dashboard if you still need help.</p>"
    )
    return subject, _wrap("Job Expired", name, body)


def new_message(*, recipient_name: str, sender_name: str, job_title: str | None) -> tuple[str, str]:
    subject = f"New Message from {sender_name}"
    regarding = f' regarding "{escape(job_title)}"' if job_title else ""
    body = (
        f"<p>You have received a new message from <strong>{escape(sender_name)}</strong>{regarding}.</p>"
        "<p>Please check your messages in the Hire Mistri dashboard.</p>"
    )
    return subject, _wrap("New Message", recipient_name, body)
