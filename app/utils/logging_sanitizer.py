"""
Logging Sanitizer Utility

Provides utilities to sanitize sensitive data before logging.
Prevents accidental logging of passwords, tokens, invite tokens and other
sensitive information, and keeps user-supplied text from forging log or
audit lines.
"""

import re
from typing import Dict, Any, Optional
from werkzeug.datastructures import ImmutableMultiDict


# Fields that should never be logged
SENSITIVE_FIELDS = {
    'password',
    'password_confirm',
    'confirm_password',
    'current_password',
    'new_password',
    'old_password',
    'password_hash',
    'secret',
    'token',
    'invite_token',
    'api_key',
    'auth_token',
    'access_token',
    'refresh_token',
    'session_id',
    'csrf_token',
    'smtp_password',
}

_LINE_BREAKS = re.compile(r'[\r\n]+')
_INVITE_LINK_TOKEN = re.compile(r'([?&]invite=)[^&\s]+')


def sanitize_dict(data: Dict[str, Any], redact_text: str = '[REDACTED]') -> Dict[str, Any]:
    """
    Sanitize a dictionary by replacing sensitive field values with redaction text.
    
    Args:
        data: Dictionary to sanitize
        redact_text: Text to use for redacted values (default: '[REDACTED]')
        
    Returns:
        Sanitized dictionary with sensitive values replaced
        
    Example:
        >>> data = {'email': 'a@example.com', 'invite_token': 'ab12'}
        >>> sanitize_dict(data)
        {'email': 'a@example.com', 'invite_token': '[REDACTED]'}
    """
    if not data:
        return data
        
    sanitized = {}
    for key, value in data.items():
        # Check if key (case-insensitive) matches any sensitive field
        if key.lower() in SENSITIVE_FIELDS:
            sanitized[key] = redact_text
        elif isinstance(value, dict):
            # Recursively sanitize nested dictionaries
            sanitized[key] = sanitize_dict(value, redact_text)
        else:
            sanitized[key] = value
            
    return sanitized


def sanitize_form_data(form_data: ImmutableMultiDict, redact_text: str = '[REDACTED]') -> Dict[str, Any]:
    """
    Sanitize Flask request.form data for safe logging.
    
    Args:
        form_data: Flask request.form (ImmutableMultiDict)
        redact_text: Text to use for redacted values (default: '[REDACTED]')
        
    Returns:
        Sanitized dictionary safe for logging
    """
    return sanitize_dict(dict(form_data), redact_text)


def strip_newlines(text: Optional[str]) -> str:
    """
    Collapse CR/LF runs into single spaces so free text (campaign names,
    escalation messages) stays on one audit or log line.
    """
    if text is None:
        return ''
    return _LINE_BREAKS.sub(' ', str(text)).strip()


def redact_invite_links(text: Optional[str], redact_text: str = '[REDACTED]') -> str:
    """
    Replace the token in registration links (``?invite=<token>``) so invite
    emails can be logged without handing out a working link.
    """
    if text is None:
        return ''
    return _INVITE_LINK_TOKEN.sub(lambda m: m.group(1) + redact_text, str(text))


def sanitize_exception_message(exception: Exception) -> str:
    """
    Sanitize exception messages to ensure they don't contain sensitive data.
    
    Args:
        exception: Exception to sanitize
        
    Returns:
        Sanitized exception message
    """
    message = strip_newlines(str(exception))
    
    # Check for common patterns that might indicate a secret in the message
    if any(field in message.lower() for field in SENSITIVE_FIELDS):
        return f"{type(exception).__name__}: [Message contains sensitive data]"
    
    return message
