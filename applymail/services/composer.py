"""
Notification email composer.

Renders the HTML body sent to the recruiter for one submission. Rendering is
pure: the receipt time is passed in and the photo is referenced by content-id.
"""

import re
from datetime import datetime
from html import escape
from typing import Optional, Tuple
from urllib.parse import quote

from applymail.schemas.application import ApplicationSubmission

PHOTO_CONTENT_ID = "photo@application"
TIMESTAMP_FORMAT = "%d/%m/%Y %H:%M:%S"


def phone_digits(phone: str) -> str:
    """Keep only the digits of a phone number"""
    return re.sub(r"\D", "", phone or "")


def normalize_phone(phone: str) -> str:
    """
    E.164-style number for dial links.

    Numbers starting with ``+`` are kept verbatim; anything else is reduced to
    its digits and prefixed with ``+``. Returns an empty string when there are
    no digits at all.
    """
    if not phone:
        return ""
    if phone.startswith("+"):
        return phone
    digits = phone_digits(phone)
    return f"+{digits}" if digits else ""


def format_timestamp(received_at: datetime) -> str:
    """fr-FR date and time, e.g. ``19/10/2026 14:03:22``"""
    return received_at.strftime(TIMESTAMP_FORMAT)


def build_subject(submission: ApplicationSubmission, prefix: str = "Application") -> str:
    return f"{prefix}: {submission.first_name} {submission.last_name} - {submission.target_role}"


def _photo_block(content_id: str) -> str:
    return f"""
        <div style="text-align: center; padding: 20px; background: #f8f9fa; border-bottom: 1px solid #e9ecef;">
          <div style="display: inline-block; border: 3px solid #e0e7ff; border-radius: 12px; padding: 6px; background: white;">
            <img src="cid:{content_id}" alt="Photo du candidat"
                 style="width: 140px; height: 140px; object-fit: cover; border-radius: 8px; display: block;">
          </div>
          <p style="font-size: 12px; color: #6c757d; margin-top: 8px; font-style: italic;">Photo du candidat</p>
        </div>"""


def _call_to_action_block(phone: str) -> str:
    dial_number = quote(normalize_phone(phone), safe="")
    digits = phone_digits(phone)
    return f"""
          <div style="text-align: center; margin: 20px 0;">
            <a href="tel:{dial_number}"
               style="display: inline-block; min-width: 120px; background: #27ae60; color: white; text-decoration: none; padding: 10px 16px; border-radius: 50px; font-weight: 600; font-size: 14px; margin: 0 6px;">
              📞 Appeler
            </a>
            <a href="https://wa.me/{digits}" target="_blank"
               style="display: inline-block; min-width: 120px; background: #25D366; color: white; text-decoration: none; padding: 10px 16px; border-radius: 50px; font-weight: 600; font-size: 14px; margin: 0 6px;">
              💬 WhatsApp
            </a>
          </div>"""


def render_notification(
    submission: ApplicationSubmission,
    has_photo: bool,
    received_at: datetime,
) -> Tuple[str, Optional[str]]:
    """
    Render the notification HTML for a submission.

    Args:
        submission: Validated applicant fields
        has_photo: Whether a photo was stored and will be attached inline
        received_at: Receipt time shown at the bottom of the email

    Returns:
        (html, content_id) where content_id is the inline photo reference, or
        None when no photo was stored
    """
    content_id = PHOTO_CONTENT_ID if has_photo else None
    phone = submission.phone

    fields = [
        ("👤 Nom complet", f"{submission.first_name} {submission.last_name}"),
        ("🌍 Nationalité", submission.nationality or "—"),
        ("🎂 Âge", f"{submission.age} ans" if submission.age else "Non spécifié"),
        ("💍 Situation", submission.marital_status or "Non spécifiée"),
        ("💼 Poste visé", submission.target_role or "—"),
        ("📞 Téléphone", phone or "—"),
    ]
    rows = "\n".join(
        f"            <p><strong>{label} :</strong> {escape(value)}</p>"
        for label, value in fields
    )

    photo = _photo_block(content_id) if content_id else ""
    actions = _call_to_action_block(phone) if phone and phone.strip() else ""

    html = f"""
      <div style="font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; max-width: 600px; margin: 0 auto; background: #ffffff; border-radius: 12px; overflow: hidden;">
        <div style="background: linear-gradient(135deg, #002147, #003f88); color: white; padding: 20px; text-align: center;">
          <h1 style="margin: 0; font-size: 20px; font-weight: 600; letter-spacing: 0.5px;">🚢 CANDIDATURE MARIN</h1>
        </div>{photo}
        <div style="padding: 20px; background: #fafafa;">
          <h2 style="color: #003a66; font-size: 16px; margin-top: 0; border-bottom: 2px solid #dee2e6; padding-bottom: 10px;">
            📋 Informations du Candidat
          </h2>
          <div style="margin: 15px 0; line-height: 1.6; font-size: 14px; color: #333;">
{rows}
          </div>{actions}
          <div style="text-align: right; margin-top: 20px; padding-top: 12px; border-top: 1px dashed #ddd; color: #777; font-size: 12px; font-style: italic;">
            📩 Reçu le {format_timestamp(received_at)}
          </div>
        </div>
      </div>
    """
    return html, content_id
