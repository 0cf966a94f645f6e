"""Transactional email bodies.

Each builder returns ``(subject, html, text)``. Substitution uses
:class:`string.Template`, so placeholders are written ``$name``.
"""
from html import escape
from string import Template
from clinic.core.config import settings

_LAYOUT = Template("""<!DOCTYPE html>
<html>
  <body style="font-family: Arial, sans-serif; color: #1f2937; max-width: 600px; margin: 0 auto;">
    <h2 style="color: #0f766e;">$clinic</h2>
    $content
    <p style="color: #6b7280; font-size: 12px;">This is an automated message from $clinic.</p>
  </body>
</html>""")

_REGISTRATION_RECEIVED = Template(
    "<p>Dear $name,</p>"
    "<p>Thank you for registering with $clinic. Your registration has been received "
    "and is waiting for review by our staff. We will email you once it has been processed.</p>"
)

_REGISTRATION_APPROVED = Template(
    "<p>Dear $name,</p>"
    "<p>Your registration with $clinic has been approved. Your patient ID is "
    "<strong>$code</strong>. Please keep it for your next visit.</p>"
)

_REGISTRATION_DENIED = Template(
    "<p>Dear $name,</p>"
    "<p>We were unable to approve your registration with $clinic.</p>"
    "<p><strong>Reason:</strong> $reason</p>"
    "<p>Please contact the clinic if you have any questions.</p>"
)

_APPOINTMENT_REMINDER = Template(
    "<p>Dear $name,</p>"
    "<p>This is a reminder of your appointment at $clinic.</p>"
    "<ul><li><strong>Date:</strong> $date</li><li><strong>Time:</strong> $time</li></ul>"
    "$notes"
)

_PASSWORD_RESET = Template(
    "<p>A password reset was requested for the $clinic admin account <strong>$username</strong>.</p>"
    '<p><a href="$link">Reset your password</a></p>'
    "<p>The link expires in $minutes minutes. If you did not request a reset you can ignore this email.</p>"
)

def _wrap(content: str) -> str:
    return _LAYOUT.substitute(clinic=escape(settings.CLINIC_NAME), content=content)

def _text(*lines: str) -> str:
    return "\n\n".join(lines)

def registration_received(name: str):
    clinic = settings.CLINIC_NAME
    html = _wrap(_REGISTRATION_RECEIVED.substitute(name=escape(name), clinic=escape(clinic)))
    text = _text(f"Dear {name},", f"Thank you for registering with {clinic}. Your registration is waiting for review.")
    return f"Registration received - {clinic}", html, text

def registration_approved(name: str, patient_code: str):
    clinic = settings.CLINIC_NAME
    html = _wrap(_REGISTRATION_APPROVED.substitute(name=escape(name), clinic=escape(clinic), code=escape(patient_code)))
    text = _text(f"Dear {name},", f"Your registration with {clinic} has been approved. Your patient ID is {patient_code}.")
    return f"Registration approved - {clinic}", html, text

def registration_denied(name: str, reason: str):
    clinic = settings.CLINIC_NAME
    html = _wrap(_REGISTRATION_DENIED.substitute(name=escape(name), clinic=escape(clinic), reason=escape(reason)))
    text = _text(f"Dear {name},", f"We were unable to approve your registration with {clinic}.", f"Reason: {reason}")
    return f"Registration update - {clinic}", html, text

def appointment_reminder(name: str, date_label: str, time_label: str, notes: str | None = None):
    clinic = settings.CLINIC_NAME
    notes_html = f"<p><strong>Notes:</strong> {escape(notes)}</p>" if notes else ""
    html = _wrap(_APPOINTMENT_REMINDER.substitute(
        name=escape(name), clinic=escape(clinic), date=escape(date_label), time=escape(time_label), notes=notes_html,
    ))
    lines = [f"Dear {name},", f"This is a reminder of your appointment at {clinic} on {date_label} at {time_label}."]
    if notes:
        lines.append(f"Notes: {notes}")
    return f"Appointment reminder - {clinic}", html, _text(*lines)

def password_reset(username: str, link: str):
    clinic = settings.CLINIC_NAME
    minutes = settings.PASSWORD_RESET_EXPIRES_MINUTES
    html = _wrap(_PASSWORD_RESET.substitute(
        clinic=escape(clinic), username=escape(username), link=escape(link, quote=True), minutes=minutes,
    ))
    text = _text(f"A password reset was requested for {username}.", f"Reset link: {link}", f"The link expires in {minutes} minutes.")
    return f"Password reset - {clinic}", html, text

def render_placeholders(template: str, values: dict) -> str:
    """Replace ``{{key}}`` markers, used by admin-editable reminder templates."""
    out = template
    for key, value in values.items():
        out = out.replace("{{" + key + "}}", str(value))
    return out

def reminder(subject_template: str, body_template: str, values: dict):
    """Render an admin-configured reminder template."""
    subject = render_placeholders(subject_template, values)
    text = render_placeholders(body_template, values)
    html = _wrap(f'<div style="line-height: 1.6;">{escape(text).replace(chr(10), "<br>")}</div>')
    return subject, html, text
