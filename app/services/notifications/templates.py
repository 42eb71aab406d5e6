"""
Subject and body text for attestation notifications
"""


def _campaign_lines(campaign):
    lines = [f"Campaign: {campaign.name}"]
    if getattr(campaign, 'description', None):
        lines.append(campaign.description)
    end_date = getattr(campaign, 'end_date', None)
    if end_date:
        lines.append(f"Please complete by: {end_date.strftime('%Y-%m-%d')}")
    return lines


def _greeting(first_name=None, last_name=None):
    name = f"{first_name or ''} {last_name or ''}".strip()
    return f"Hello {name}," if name else "Hello,"


def _register_url(frontend_url, token):
    return f"{frontend_url}/register?invite={token}"


def compose_message(kind, campaign, frontend_url, **context):
    """
    Build (subject, body) for a notification kind.

    Raises:
        KeyError: A value the kind needs is missing from context
        ValueError: Unknown kind
    """
    attestation_url = context.get('attestation_url') or f"{frontend_url}/my-attestations"

    if kind == 'launch':
        subject = f"Asset attestation required: {campaign.name}"
        body = [
            "Hello,",
            "",
            "A new asset attestation campaign has started. Please review the assets assigned to you "
            "and confirm their status.",
            "",
            *_campaign_lines(campaign),
            "",
            f"Start your attestation: {attestation_url}",
        ]

    elif kind == 'reminder':
        subject = f"Reminder: asset attestation pending for {campaign.name}"
        body = [
            "Hello,",
            "",
            "Your asset attestation has not been completed yet.",
            "",
            *_campaign_lines(campaign),
            "",
            f"Complete your attestation: {attestation_url}",
        ]

    elif kind == 'escalation':
        subject = f"Attestation overdue for {context['employee_name']}"
        body = [
            "Hello,",
            "",
            f"{context['employee_name']} ({context['employee_email']}) has not completed the asset "
            f"attestation for {campaign.name}.",
        ]
        if context.get('custom_message'):
            body += ["", f"Message from the attestation team: {context['custom_message']}"]
        body += ["", *_campaign_lines(campaign)]

    elif kind in ('invite', 'unregistered_reminder'):
        prefix = "Reminder: " if kind == 'unregistered_reminder' else ""
        subject = f"{prefix}Register to attest your assets for {campaign.name}"
        asset_count = context.get('asset_count', 0)
        body = [
            _greeting(context.get('first_name'), context.get('last_name')),
            "",
            f"You have {asset_count} asset(s) registered to you that need to be attested. "
            "Create your account to take part in the campaign.",
            "",
            *_campaign_lines(campaign),
            "",
            f"Register: {_register_url(frontend_url, context['invite_token'])}",
        ]

    elif kind == 'unregistered_escalation':
        subject = f"Team member has not registered for {campaign.name}"
        body = [
            _greeting(context.get('manager_name')),
            "",
            f"{context['employee_name']} ({context['employee_email']}) holds {context.get('asset_count', 0)} "
            f"asset(s) but has not registered to complete the attestation for {campaign.name}.",
            "",
            *_campaign_lines(campaign),
        ]

    elif kind == 'completion_admin':
        subject = f"Attestation completed: {context['employee_name']}"
        body = [
            "Hello,",
            "",
            f"{context['employee_name']} ({context['employee_email']}) completed the asset attestation "
            f"for {campaign.name}.",
        ]

    else:
        raise ValueError(f"Unknown notification kind: {kind}")

    return subject, "\n".join(body) + "\n"
