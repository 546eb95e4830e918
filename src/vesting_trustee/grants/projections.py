"""
Grant Module Projections - the GrantBook read model

The GrantBook is rebuilt from the trustee's event stream. It maps each
holder to at most one grant record and keeps total_vesting, the sum of
value - transferred over all grants on the book.

Holders whose grant was revoked are remembered separately so an unlock can
tell "revoked" apart from "never granted". A new grant to the same holder
clears that mark.
"""

from vesting_trustee.grants.models import Grant
from vesting_trustee.kernel.events import Event


class GrantBook:
    """
    Registry of grants for one generic trustee

    Built from events: NewGrant, TokensUnlocked, GrantRevoked, GrantClosed

    Query methods: get, get_grant, is_revoked, list_all
    """

    def __init__(self, trustee_id: str) -> None:
        self.trustee_id = trustee_id
        self.grants: dict[str, dict] = {}
        self.revoked: dict[str, dict] = {}
        self.total_vesting = 0
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
        elif event.event_type == "GrantClosed":
            self._apply_grant_closed(event)

        self.version = event.version

    def _apply_new_grant(self, event: Event) -> None:
        payload = event.payload
        holder = payload["holder"]

        self.grants[holder] = {
            "grant_id": payload["grant_id"],
            "holder": holder,
            "value": payload["value"],
            "start": payload["start"],
            "cliff": payload["cliff"],
            "end": payload["end"],
            "installment_length": payload["installment_length"],
            "transferred": 0,
            "revocable": payload["revocable"],
            "granted_by": payload["granter"],
            "granted_at": payload["granted_at"],
            "version": event.version,
        }
        self.revoked.pop(holder, None)
        self.total_vesting += payload["value"]

    def _apply_tokens_unlocked(self, event: Event) -> None:
        payload = event.payload
        grant = self.grants.get(payload["holder"])

        if grant is not None:
            grant["transferred"] += payload["value"]
            grant["version"] = event.version
            self.total_vesting -= payload["value"]

    def _apply_grant_revoked(self, event: Event) -> None:
        payload = event.payload
        grant = self.grants.pop(payload["holder"], None)

        if grant is not None:
            self.total_vesting -= payload["refund"]
            self.revoked[payload["holder"]] = {
                "grant_id": grant["grant_id"],
                "refund": payload["refund"],
                "transferred": payload["transferred"],
                "revoked_by": payload["revoked_by"],
                "revoked_at": payload["revoked_at"],
            }

    def _apply_grant_closed(self, event: Event) -> None:
        payload = event.payload
        grant = self.grants.pop(payload["holder"], None)

        if grant is not None:
            self.revoked[payload["holder"]] = {
                "grant_id": grant["grant_id"],
                "refund": 0,
                "transferred": payload["transferred"],
                "revoked_by": payload["closed_by"],
                "revoked_at": payload["closed_at"],
            }

    # ========== Query Methods ==========

    def get(self, holder: str) -> dict | None:
        """
        Get the grant record of a holder

        Returns:
            Grant dict or None if the holder has no grant on the book
        """
        return self.grants.get(holder)

    def get_grant(self, holder: str) -> Grant | None:
        """Get the grant of a holder as a model"""
        record = self.grants.get(holder)
        return Grant.from_record(record) if record is not None else None

    def is_revoked(self, holder: str) -> bool:
        """Whether the holder's last grant was revoked (and not replaced)"""
        return holder in self.revoked

    def list_all(self) -> list[dict]:
        """List all grants on the book, ordered by holder"""
        return [self.grants[holder] for holder in sorted(self.grants)]

    def outstanding_sum(self) -> int:
        """Recompute value - transferred over all grants (equals total_vesting)"""
        return sum(g["value"] - g["transferred"] for g in self.grants.values())
