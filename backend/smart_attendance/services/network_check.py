"""Network proximity check against the session's anchor hotspot.

Known limitation: the claimant's device self-reports its SSID, IP and MAC.
Nothing here binds those values cryptographically to the device, so a pass is
a soft signal that the claimant is on the class network segment, not a
security boundary.
"""
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Dict, Optional

from smart_attendance.models.attendance_session import subnet_prefix
from smart_attendance.utils.errors import NetworkMismatch, SubnetMismatch
from smart_attendance.utils.validators import Validator

@dataclass(frozen=True)
class NetworkResult:
    """Accepted network evidence."""
    verified: bool
    observed_ip: str
    observed_ssid: str
    observed_mac: Optional[str]
    timestamp: datetime

    def to_dict(self) -> Dict:
        data = asdict(self)
        data['timestamp'] = self.timestamp.isoformat()
        return data

class NetworkProximityCheck:
    """SSID equality plus /24 subnet match with the anchor device."""

    @staticmethod
    def verify(session, evidence: Dict) -> NetworkResult:
        Validator.require_fields(evidence, ['ssid', 'ip_address'])

        observed_ssid = str(evidence['ssid'])
        observed_ip = Validator.ipv4(evidence['ip_address'])
        observed_mac = evidence.get('mac_address')

        # Exact, case-sensitive SSID match
        if observed_ssid != session.ssid:
            raise NetworkMismatch(expected_ssid=session.ssid, observed_ssid=observed_ssid)

        if subnet_prefix(observed_ip) != session.anchor_subnet:
            raise SubnetMismatch(observed_ip=observed_ip)

        return NetworkResult(
            verified=True,
            observed_ip=observed_ip,
            observed_ssid=observed_ssid,
            observed_mac=observed_mac,
            timestamp=datetime.utcnow()
        )
