import hashlib
import hmac
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from models.cancellation_request import CancellationRequest
from scheduling.errors import AlreadyUsed, CodeExpired, CodeMismatch


def numeric_code(length: int = 6) -> str:
    return "".join(str(secrets.randbelow(10)) for _ in range(length))


@dataclass(frozen=True)
class Authorization:
    """
    Proof that a cancellation code was verified. Lives only for the
    transaction that performs the cancellation; never stored.
    """
    booking_id: int
    request_id: int
    verified_at: datetime


class CancellationGate:
    """
    Issues and checks one-time cancellation codes.
    Only a keyed hash of each code is stored; the raw code is returned once
    so it can be delivered out of band.
    """

    def __init__(self, session, secret_key: str, ttl_seconds: int = 600, max_attempts: int = 5,
                 code_length: int = 6, clock=datetime.utcnow, code_factory=None):
        self.session = session
        self.secret_key = (secret_key or "").encode("utf-8")
        self.ttl_seconds = ttl_seconds
        self.max_attempts = max_attempts
        self.code_length = code_length
        self.clock = clock
        self.code_factory = code_factory or (lambda: numeric_code(self.code_length))

    def _hash_code(self, booking_id: int, code: str) -> str:
        message = f"{booking_id}:{code}".encode("utf-8")
        return hmac.new(self.secret_key, message, hashlib.sha256).hexdigest()

    def _latest(self, booking_id: int):
        return (
            self.session.query(CancellationRequest)
            .filter_by(booking_id=booking_id)
            .order_by(CancellationRequest.issued_at.desc(), CancellationRequest.id.desc())
            .first()
        )

    def issue(self, booking_id: int, ip: str = None):
        """
        Returns (request, raw_code). Any earlier unverified request for the
        booking stops being valid.
        """
        now = self.clock()
        outstanding = (
            self.session.query(CancellationRequest)
            .filter_by(booking_id=booking_id, verified_at=None, invalidated_at=None)
            .all()
        )
        for row in outstanding:
            row.invalidated_at = now

        code = str(self.code_factory())
        row = CancellationRequest(
            booking_id=booking_id,
            code_hash=self._hash_code(booking_id, code),
            issued_at=now,
            expires_at=now + timedelta(seconds=self.ttl_seconds),
            ip=ip,
        )
        self.session.add(row)
        self.session.flush()
        return row, code

    def verify(self, booking_id: int, code: str) -> Authorization:
        now = self.clock()
        row = self._latest(booking_id)
        if row is None:
            raise CodeMismatch("No cancellation code was issued for this booking")

        if row.verified:
            raise AlreadyUsed()

        if row.invalidated_at is not None or row.expires_at < now:
            raise CodeExpired()

        supplied = self._hash_code(booking_id, (code or "").strip())
        if not hmac.compare_digest(supplied, row.code_hash):
            row.attempts += 1
            if row.attempts >= self.max_attempts:
                row.invalidated_at = now
            self.session.flush()
            raise CodeMismatch(attempts_left=max(self.max_attempts - row.attempts, 0))

        row.verified_at = now
        self.session.flush()
        return Authorization(booking_id=booking_id, request_id=row.id, verified_at=now)
