"""
Check-in Service: CodeRecord Model
State: UNISSUED | ISSUED | REDEEMED
"""

from datetime import datetime, timezone
from checkin_service.extensions import db

UNISSUED = "UNISSUED"
ISSUED = "ISSUED"
REDEEMED = "REDEEMED"
STATES = (UNISSUED, ISSUED, REDEEMED)


def _iso(value):
    return value.isoformat() if value else None


class CodeRecord(db.Model):
    __tablename__ = "code_records"

    code = db.Column(db.String(16), primary_key=True)
    state = db.Column(
        db.Enum(*STATES, name="code_state"),
        nullable=False,
        default=ISSUED,
        index=True,
    )
    name = db.Column(db.String(255), nullable=True)
    email = db.Column(db.String(255), nullable=True, unique=True)
    entry_count = db.Column(db.Integer, nullable=False, default=0)
    issued_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    released_at = db.Column(db.DateTime(timezone=True), nullable=True)
    redeemed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    last_entry_at = db.Column(db.DateTime(timezone=True), nullable=True)

    __table_args__ = (
        db.CheckConstraint("entry_count >= 0", name="ck_code_records_entry_count"),
    )

    @property
    def is_redeemed(self):
        return self.state == REDEEMED

    def to_dict(self):
        return {
            "code":          self.code,
            "state":         self.state,
            "name":          self.name,
            "email":         self.email,
            "entries":       self.entry_count,
            "issued_at":     _iso(self.issued_at),
            "released_at":   _iso(self.released_at),
            "redeemed_at":   _iso(self.redeemed_at),
            "last_entry_at": _iso(self.last_entry_at),
        }
