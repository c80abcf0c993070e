"""
Check-in Service: Redemption Ledger
Owns every CodeRecord state change: release, redeem, and the read paths.

Each transition is a single conditional UPDATE guarded by the current state
(see VALID_TRANSITIONS). When no row is affected the record is re-read only
to pick the right error; the decision itself is made by the database.
"""

import logging
import re
from datetime import datetime, timezone

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from checkin_service.exceptions import (
    AlreadyRedeemed,
    CodeNotFound,
    IdentityConflict,
    InvalidInput,
    InvalidTransition,
    NotRedeemed,
)
from checkin_service.extensions import db
from checkin_service.models import CodeRecord, ISSUED, REDEEMED, STATES, UNISSUED

logger = logging.getLogger(__name__)

EMAIL_REGEX = r'^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$'

VALID_TRANSITIONS = {
    UNISSUED: {ISSUED},
    ISSUED: {REDEEMED},
    REDEEMED: set(),
}

def _sources_for(target):
    return [state for state, targets in VALID_TRANSITIONS.items() if target in targets]


def normalize_code(raw):
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidInput("Missing field: code")
    return raw.strip().upper()


def key_filter(key):
    """
    Column filter for an identity key: an email when it contains '@',
    otherwise a registration code.
    """
    if not isinstance(key, str) or not key.strip():
        raise InvalidInput("Provide a code or an email")
    key = key.strip()
    if "@" in key:
        return CodeRecord.email == key.lower()
    return CodeRecord.code == key.upper()


def find_record(key):
    return CodeRecord.query.filter(key_filter(key)).populate_existing().first()


def load_updated(result):
    """
    Load the row a conditional UPDATE .. RETURNING code just changed, inside
    the same transaction, replacing any stale copy in the session.
    """
    code = result.scalar_one_or_none()
    if code is None:
        return None
    return db.session.get(CodeRecord, code, populate_existing=True)


def _transition(code, target, **values):
    """Move `code` into `target` if it currently sits in an allowed source state."""
    stmt = (
        update(CodeRecord)
        .where(CodeRecord.code == code, CodeRecord.state.in_(_sources_for(target)))
        .values(state=target, **values)
        .returning(CodeRecord.code)
    )
    return load_updated(db.session.execute(stmt, execution_options={"synchronize_session": False}))


def _validate_identity(name, email):
    if not isinstance(name, str) or not name.strip():
        raise InvalidInput("Missing field: name")
    if email is None or (isinstance(email, str) and not email.strip()):
        return name.strip(), None
    if not isinstance(email, str) or not re.match(EMAIL_REGEX, email.strip()):
        raise InvalidInput("Invalid email format")
    return name.strip(), email.strip().lower()


def redeem(code, name, email=None):
    """
    Attach an identity to an ISSUED code, exactly once.

    Of two concurrent redemptions of the same code only one UPDATE matches
    state = ISSUED; the other sees no row and gets AlreadyRedeemed.
    """
    code = normalize_code(code)
    name, email = _validate_identity(name, email)

    try:
        record = _transition(
            code,
            REDEEMED,
            name=name,
            email=email,
            redeemed_at=datetime.now(timezone.utc),
        )
    except IntegrityError:
        # unique email
        db.session.rollback()
        raise IdentityConflict()

    if record is None:
        db.session.rollback()
        existing = db.session.get(CodeRecord, code)
        # held codes are indistinguishable from unknown ones for registrants
        if existing is None or existing.state == UNISSUED:
            raise CodeNotFound()
        logger.info("Rejected second redemption of code %s", code)
        raise AlreadyRedeemed()

    db.session.commit()
    logger.info("Code %s redeemed", code)
    return record


def release(codes):
    """Release held UNISSUED codes so they can be redeemed. All-or-nothing."""
    max_batch = current_app.config["MAX_BATCH_SIZE"]
    if not isinstance(codes, list) or not codes:
        raise InvalidInput("codes must be a non-empty list")
    if len(codes) > max_batch:
        raise InvalidInput(f"At most {max_batch} codes can be released at once")

    codes = [normalize_code(raw) for raw in codes]
    now = datetime.now(timezone.utc)
    released = []
    for code in codes:
        record = _transition(code, ISSUED, released_at=now)
        if record is None:
            db.session.rollback()
            existing = db.session.get(CodeRecord, code)
            if existing is None:
                raise CodeNotFound(f"Code {code} not found")
            raise InvalidTransition(f"Cannot transition {code} from {existing.state} to {ISSUED}")
        released.append(record)

    db.session.commit()
    logger.info("Released %d held codes", len(released))
    return released


def lookup(key, require_redeemed=True):
    """
    Public lookups only see REDEEMED records; admin lookups see every state.
    """
    record = find_record(key)
    if record is None:
        if require_redeemed:
            raise CodeNotFound("Invalid code or user not registered")
        raise CodeNotFound()
    if require_redeemed and not record.is_redeemed:
        raise NotRedeemed()
    return record


def list_records(state=None, page=1, per_page=50):
    query = CodeRecord.query
    if state:
        state = state.upper()
        if state not in STATES:
            raise InvalidInput(f"state must be one of {', '.join(STATES)}")
        query = query.filter_by(state=state)

    pagination = (
        query.order_by(CodeRecord.issued_at.desc(), CodeRecord.code.asc())
        .paginate(page=page, per_page=per_page, error_out=False)
    )
    return {
        "data": [record.to_dict() for record in pagination.items],
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": pagination.total,
            "total_pages": pagination.pages,
        },
    }
