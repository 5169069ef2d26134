from __future__ import annotations

try:
    from .models import Member, MembershipStatus
except ImportError:  # pragma: no cover
    # Support running with CWD=nest (e.g., `python -m uvicorn main:app`).
    from models import Member, MembershipStatus

STATUS_LABELS: dict[MembershipStatus, str] = {
    MembershipStatus.SIGNED_IN: "Signed In",
    MembershipStatus.PENDING_INVITATION: "Pending Invitation",
    MembershipStatus.NO_ACCOUNT: "Not Invited",
}

_BASE_ACTIONS = ("edit_profile", "send_message")


def classify(member: Member) -> MembershipStatus:
    """Membership status policy:

    - Linked to a login identity => signed_in
    - Else an email on file (invite sent, not accepted) => pending_invitation
    - Else => no_account
    """

    if member.has_account_link:
        return MembershipStatus.SIGNED_IN
    if member.has_contact_email:
        return MembershipStatus.PENDING_INVITATION
    return MembershipStatus.NO_ACCOUNT


def status_label(status: MembershipStatus) -> str:
    return STATUS_LABELS[status]


def member_actions(status: MembershipStatus) -> list[str]:
    """Actions the UI may offer for a member in the given status."""
    actions = list(_BASE_ACTIONS)
    if status is MembershipStatus.PENDING_INVITATION:
        actions.append("resend_invitation")
    actions.append("remove_member")
    return actions
