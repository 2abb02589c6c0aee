"""
Incremental reputation: live reward/penalty over per-resource trust.

Instead of averaging past sessions, every relevant event nudges trust up or
down. Penalties are twice the size of rewards, so abuse costs trust faster
than good behavior earns it back. Each resource class has a degradation
factor scaling how strongly a signal moves it.

Only the disconnect feedback step writes back into the shared
ResourceTrustTable; everything before that works on the session's own copy.

The table has no size bound and no expiry. Long-running processes that see
many distinct addresses and names will grow it without limit.
"""

from __future__ import annotations

import threading
from enum import Enum

from smtpd_reputation.analysis_engine.scorer import clamp
from smtpd_reputation.session.models import NEUTRAL_TRUST, Session
from smtpd_reputation.smtpd_logging import get_logger

logger = get_logger(__name__)

BASE_PENALTY = 0.10
BASE_REWARD = 0.05

# Overall-trust blend weights
CONNECT_IP_WEIGHT = 0.5
CONNECT_RDNS_WEIGHT = 0.3
IDENTIFY_IP_WEIGHT = 0.5
IDENTIFY_RDNS_WEIGHT = 0.3
IDENTIFY_HELO_WEIGHT = 0.2


class ResourceClass(str, Enum):
    """Resource whose trust a signal adjusts."""

    IP = "ip"
    RDNS = "rdns"
    HELO = "helo"
    MAIL_FROM = "mail_from"
    MAIL_FROM_DOMAIN = "mail_from_domain"
    RCPT = "rcpt"


DEGRADATION_FACTORS: dict[ResourceClass, float] = {
    ResourceClass.IP: 1.0,
    ResourceClass.RDNS: 0.8,
    ResourceClass.HELO: 0.6,
    ResourceClass.MAIL_FROM: 0.4,
    ResourceClass.MAIL_FROM_DOMAIN: 0.2,
    ResourceClass.RCPT: 0.5,
}


def penalize(resource: ResourceClass, current: float) -> float:
    return clamp(current - BASE_PENALTY * DEGRADATION_FACTORS[resource])


def reward(resource: ResourceClass, current: float) -> float:
    return clamp(current + BASE_REWARD * DEGRADATION_FACTORS[resource])


def adjust(resource: ResourceClass, current: float, good: bool) -> float:
    """reward() when good, else penalize()."""
    return reward(resource, current) if good else penalize(resource, current)


class ResourceTrustTable:
    """
    Process-wide trust per address, reverse-DNS name and HELO name.

    Unseen or empty keys read as the neutral value. Single lock for all three maps.
    """

    def __init__(self, neutral: float = NEUTRAL_TRUST) -> None:
        self._neutral = neutral
        self._ip: dict[str, float] = {}
        self._rdns: dict[str, float] = {}
        self._helo: dict[str, float] = {}
        self._lock = threading.Lock()

    def _lookup(self, table: dict[str, float], key: str | None) -> float:
        if not key:
            return self._neutral
        with self._lock:
            return table.get(key, self._neutral)

    def ip_trust(self, key: str | None) -> float:
        return self._lookup(self._ip, key)

    def rdns_trust(self, key: str | None) -> float:
        return self._lookup(self._rdns, key)

    def host_trust(self, key: str | None) -> float:
        return self._lookup(self._helo, key)

    def update(
        self,
        *,
        ip: tuple[str, float] | None = None,
        rdns: tuple[str, float] | None = None,
        helo: tuple[str, float] | None = None,
    ) -> None:
        """Write back (key, trust) pairs; None or empty-key pairs are skipped."""
        with self._lock:
            for table, pair in ((self._ip, ip), (self._rdns, rdns), (self._helo, helo)):
                if pair is not None and pair[0]:
                    table[pair[0]] = clamp(pair[1])

    def __len__(self) -> int:
        with self._lock:
            return len(self._ip) + len(self._rdns) + len(self._helo)


class IncrementalReputationAdjuster:
    """Applies reward/penalty to a session's running trust as events arrive."""

    def __init__(self, table: ResourceTrustTable | None = None) -> None:
        self.table = table if table is not None else ResourceTrustTable()

    def on_connect(self, session: Session) -> float:
        trust = session.trust
        ip = self.table.ip_trust(session.address)
        rdns = self.table.rdns_trust(session.rdns_name)

        ip = adjust(ResourceClass.IP, ip, session.rdns)
        rdns = adjust(ResourceClass.RDNS, rdns, session.rdns)
        ip = adjust(ResourceClass.IP, ip, session.fcrdns)
        rdns = adjust(ResourceClass.RDNS, rdns, session.fcrdns)

        trust.ip = ip
        trust.rdns = rdns
        trust.overall = clamp(ip * CONNECT_IP_WEIGHT + rdns * CONNECT_RDNS_WEIGHT)
        return trust.overall

    def on_identify(self, session: Session) -> float:
        trust = session.trust
        trust.helo = self.table.host_trust(session.helo_key)
        if session.rdns:
            good = session.helo_matches_rdns
            trust.ip = adjust(ResourceClass.IP, trust.ip, good)
            trust.rdns = adjust(ResourceClass.RDNS, trust.rdns, good)
            trust.helo = adjust(ResourceClass.HELO, trust.helo, good)
        trust.overall = clamp(
            trust.ip * IDENTIFY_IP_WEIGHT
            + trust.rdns * IDENTIFY_RDNS_WEIGHT
            + trust.helo * IDENTIFY_HELO_WEIGHT
        )
        return trust.overall

    def on_mail(self, session: Session, ok: bool) -> float:
        session.trust.overall = adjust(ResourceClass.MAIL_FROM, session.trust.overall, ok)
        return session.trust.overall

    def on_rcpt(self, session: Session, ok: bool) -> float:
        session.trust.overall = adjust(ResourceClass.RCPT, session.trust.overall, ok)
        return session.trust.overall

    def feedback(self, session: Session) -> None:
        """Fold the session's final overall trust into the shared table."""
        trust = session.trust
        overall = trust.overall
        ip = clamp((trust.ip + overall * DEGRADATION_FACTORS[ResourceClass.IP]) / 2)
        rdns = clamp((trust.rdns + overall * DEGRADATION_FACTORS[ResourceClass.RDNS]) / 2)
        helo = clamp((trust.helo + overall * DEGRADATION_FACTORS[ResourceClass.HELO]) / 2)
        self.table.update(
            ip=(session.address or "", ip),
            rdns=(session.rdns_name or "", rdns),
            helo=(session.helo_key or "", helo),
        )
        logger.debug(
            "resource_trust_feedback",
            session_id=session.session_id,
            address=session.address,
            overall=round(overall, 4),
            ip_trust=round(ip, 4),
            rdns_trust=round(rdns, 4),
            helo_trust=round(helo, 4),
        )

    def trust(self, session: Session) -> float:
        return session.trust.overall
