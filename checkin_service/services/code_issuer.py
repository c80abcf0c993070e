"""
Check-in Service: Code Issuer
Mints batches of unique registration codes.

Uniqueness is enforced by the database: each candidate is written with an
INSERT .. ON CONFLICT DO NOTHING against the primary key, so two issuers
(threads, workers or service instances) can never both store the same code.
A candidate that comes back without a returned row collided and is redrawn.
"""

import logging
import secrets
import string
from datetime import datetime, timezone

from flask import current_app
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from checkin_service.exceptions import CodeSpaceExhausted, InvalidCount
from checkin_service.extensions import db
from checkin_service.models import CodeRecord, ISSUED, UNISSUED

logger = logging.getLogger(__name__)

ALPHABET = string.ascii_uppercase + string.digits

_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def generate_code(length, choice=secrets.choice):
    return "".join(choice(ALPHABET) for _ in range(length))


def register_code_if_new(code, state, now):
    """
    True -> the code was new and is now stored;
    False -> a record with this code already existed.
    """
    dialect = db.session.get_bind().dialect.name
    insert = _UPSERT_INSERTS.get(dialect)
    if insert is None:
        raise RuntimeError(f"Unsupported database dialect for code issuance: {dialect}")

    stmt = (
        insert(CodeRecord)
        .values(
            code=code,
            state=state,
            entry_count=0,
            issued_at=now,
            released_at=now if state == ISSUED else None,
        )
        .on_conflict_do_nothing(index_elements=["code"])
        .returning(CodeRecord.code)
    )
    res = db.session.execute(stmt)
    return res.scalar_one_or_none() is not None


def parse_count(raw, max_batch):
    """Accepts an int or a decimal string; anything else is an InvalidCount."""
    message = f"Count must be an integer between 1 and {max_batch}"
    if isinstance(raw, bool):
        raise InvalidCount(message)
    if isinstance(raw, str):
        try:
            raw = int(raw.strip())
        except ValueError:
            raise InvalidCount(message)
    if not isinstance(raw, int) or not 1 <= raw <= max_batch:
        raise InvalidCount(message)
    return raw


def _issue_one(batch, state, now, length, max_attempts, choice):
    for attempt in range(1, max_attempts + 1):
        candidate = generate_code(length, choice)
        if candidate in batch:
            continue
        if register_code_if_new(candidate, state, now):
            return candidate
        logger.warning("Code collision while issuing (attempt %d/%d)", attempt, max_attempts)
    raise CodeSpaceExhausted()


def issue_codes(count, hold=False, choice=secrets.choice):
    """
    Issue `count` new codes and return them in generation order.

    Codes are stored as ISSUED (ready to redeem), or as UNISSUED when `hold`
    is set so they stay unusable until released. The batch is all-or-nothing:
    if any slot runs out of attempts nothing is written.
    """
    config = current_app.config
    count = parse_count(count, config["MAX_BATCH_SIZE"])
    length = config["CODE_LENGTH"]
    max_attempts = config["ISSUE_MAX_ATTEMPTS"]
    state = UNISSUED if hold else ISSUED
    now = datetime.now(timezone.utc)

    codes = []
    batch = set()
    try:
        for _ in range(count):
            code = _issue_one(batch, state, now, length, max_attempts, choice)
            batch.add(code)
            codes.append(code)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Issued %d codes in state %s", len(codes), state)
    return codes
