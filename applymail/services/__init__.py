"""
Services module exports.
"""

# File receiver
from .uploads import FileReceiver, generate_storage_path

# Field validation
from .validation import validate_submission

# Notification composer
from .composer import build_subject, render_notification, normalize_phone

# Mail dispatch
from .mailer import MailClient, ResendMailClient, SmtpMailClient, build_mail_client, dispatch_notification

# Cleanup
from .cleanup import cleanup_files, sweep_upload_dir

# Pipeline
from .pipeline import ApplicationOutcome, ApplicationPipeline

__all__ = [
    'FileReceiver',
    'generate_storage_path',
    'validate_submission',
    'build_subject',
    'render_notification',
    'normalize_phone',
    'MailClient',
    'ResendMailClient',
    'SmtpMailClient',
    'build_mail_client',
    'dispatch_notification',
    'cleanup_files',
    'sweep_upload_dir',
    'ApplicationOutcome',
    'ApplicationPipeline'
]
