"""
AttestationNarrator - detail composer for attestation audit entries

Keeps the wording of audit trail details in one place and out of the
transition logic. Free text supplied by users is stripped of line breaks
before it reaches the audit log.
"""

from typing import Optional

from app.utils.logging_sanitizer import strip_newlines


class AttestationNarrator:
    """Composes audit detail strings for campaign, record and invite events"""

    # ========== Campaigns ==========

    @staticmethod
    def campaign_created(campaign) -> str:
        detail = f"Created attestation campaign: {strip_newlines(campaign.name)}"
        if campaign.target_type == campaign.TARGET_SELECTED:
            detail += f" (targeting {len(campaign.target_user_ids)} selected users)"
        elif campaign.target_type == campaign.TARGET_COMPANIES:
            detail += f" (targeting {len(campaign.target_company_ids)} companies)"
        else:
            detail += " (targeting all users)"
        return detail

    @staticmethod
    def campaign_updated(campaign, changed_fields) -> str:
        return f"Updated attestation campaign: {strip_newlines(campaign.name)} | Fields: {', '.join(sorted(changed_fields))}"

    @staticmethod
    def campaign_started(campaign, result) -> str:
        detail = (
            f"Started attestation campaign: {strip_newlines(campaign.name)} | "
            f"{result.records_created} records created, {result.emails_sent} emails sent"
        )
        if result.invites_created:
            detail += f", {result.invites_created} invites created, {result.invite_emails_sent} invite emails sent"
        if result.failures:
            detail += f" | {result.failures} item(s) failed"
        return detail

    @staticmethod
    def campaign_status_changed(campaign, from_status: str, to_status: str, reason: Optional[str] = None) -> str:
        detail = f"Campaign {strip_newlines(campaign.name)}: {from_status} → {to_status}"
        if reason:
            detail += f" | Reason: {strip_newlines(reason)}"
        return detail

    @staticmethod
    def campaign_deleted(campaign) -> str:
        return f"Deleted attestation campaign: {strip_newlines(campaign.name)} ({campaign.status})"

    # ========== Records ==========

    @staticmethod
    def asset_attested(asset, previous_status: Optional[str], attested_status: str) -> str:
        return f"Asset status changed from {previous_status} to {attested_status} during attestation ({asset.label})"

    @staticmethod
    def new_asset_staged(entry) -> str:
        return f"Added new asset during attestation: {strip_newlines(entry.label)}"

    @staticmethod
    def new_asset_promoted(entry, asset) -> str:
        return f"Asset created from attestation: {strip_newlines(entry.label)} (asset ID: {asset.id})"

    @staticmethod
    def new_asset_promotion_failed(entry, error: str) -> str:
        return f"Promotion of staged asset {strip_newlines(entry.label)} failed: {strip_newlines(error)}"

    @staticmethod
    def record_completed(record, promoted: int, failed: int) -> str:
        detail = f"Completed attestation for campaign {strip_newlines(record.campaign.name)}"
        if promoted or failed:
            detail += f" | {promoted} new asset(s) promoted, {failed} failed"
        return detail

    @staticmethod
    def reminder_sent(email: str) -> str:
        return f"Sent reminder to {email}"

    @staticmethod
    def escalation_sent(employee_email: str, manager_email: str, custom_message: Optional[str] = None) -> str:
        detail = f"Sent escalation for {employee_email} to manager {manager_email}"
        if custom_message:
            detail += f" | Message: {strip_newlines(custom_message)}"
        return detail

    @staticmethod
    def bulk_reminder(campaign, sent: int, failed: int) -> str:
        return f"Bulk reminders for {strip_newlines(campaign.name)}: {sent} sent, {failed} failed"

    # ========== Invites ==========

    @staticmethod
    def invite_resent(invite) -> str:
        return f"Resent attestation invite to {invite.employee_email}"

    @staticmethod
    def invites_resent(campaign, sent: int, failed: int) -> str:
        return f"Resent invites for {strip_newlines(campaign.name)}: {sent} sent, {failed} failed"

    @staticmethod
    def invite_converted(invite, record) -> str:
        return f"Converted pending invite for {invite.employee_email} into attestation record {record.id}"

    @staticmethod
    def campaign_auto_closed(campaign) -> str:
        return f"Auto-closed attestation campaign {strip_newlines(campaign.name)} after end date"
