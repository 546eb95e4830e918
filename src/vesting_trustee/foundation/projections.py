"""
Foundation Module Projections - the FoundationLedger read model

Tracks the lifetime of the single foundation grant: not granted, active,
or revoked. Once granted the trustee can never grant again, so the ledger
remembers that a grant happened even after it is revoked.
"""

from vesting_trustee.foundation.models import FoundationGrant
from vesting_trustee.kernel.events import Event


class FoundationLedger:
    """
    State of one foundation trustee

    Built from events: NewGrant, TokensUnlocked, GrantRevoked
    """

    def __init__(self, trustee_id: str) -> None:
        self.trustee_id = trustee_id
        self.grant: dict | None = None
        self.revocation: dict | None = None
        self.version = 0

    def apply_event(self, event: Event) -> None:
        """
        Apply an event of this trustee's stream

        Args:
            event: Event to apply
        """
        if event.stream_id != self.trustee_id:
            return

        if event.event_type == "NewGrant":
            self._apply_new_grant(event)
        elif event.event_type == "TokensUnlocked":
            self._apply_tokens_unlocked(event)
        elif event.event_type == "GrantRevoked":
            self._apply_grant_revoked(event)

        self.version = event.version

    def _apply_new_grant(self, event: Event) -> None:
        payload = event.payload
        self.grant = {
            "beneficiary": payload["holder"],
            "start_time": payload["start_time"],
            "allocation": payload["value"],
            "transferred": 0,
            "granted_by": payload["granter"],
            "granted_at": payload["granted_at"],
            "version": event.version,
        }

    def _apply_tokens_unlocked(self, event: Event) -> None:
        if self.grant is not None:
            self.grant["transferred"] += event.payload["value"]
            self.grant["version"] = event.version

    def _apply_grant_revoked(self, event: Event) -> None:
        payload = event.payload
        if self.grant is not None:
            self.revocation = {
                "beneficiary": payload["holder"],
                "refund": payload["refund"],
                "transferred": payload["transferred"],
                "revoked_by": payload["revoked_by"],
                "revoked_at": payload["revoked_at"],
                "start_time": self.grant["start_time"],
            }
            self.grant = None

    # ========== Query Methods ==========

    @property
    def ever_granted(self) -> bool:
        return self.grant is not None or self.revocation is not None

    @property
    def is_revoked(self) -> bool:
        return self.revocation is not None

    @property
    def total_vesting(self) -> int:
        """Units still committed to the active grant"""
        if self.grant is None:
            return 0
        return self.grant["allocation"] - self.grant["transferred"]

    def get_grant(self) -> FoundationGrant | None:
        """The active grant as a model, if any"""
        return FoundationGrant.from_record(self.grant) if self.grant is not None else None
