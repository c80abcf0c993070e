"""
Check-in Service: Gate Scanner
Records a door entry for a registered attendee.
"""

import logging
from datetime import datetime, timezone

from flask import current_app
from sqlalchemy import update

from checkin_service.exceptions import CodeNotFound, EntryLimitReached, NotRedeemed
from checkin_service.extensions import db
from checkin_service.models import CodeRecord, REDEEMED
from checkin_service.services.ledger import find_record, key_filter, load_updated

logger = logging.getLogger(__name__)


def scan(key):
    """
    Increment the entry counter of the REDEEMED record matching `key`
    (a code or an email) and return the updated record.

    The increment happens inside the UPDATE, so concurrent scans of one
    code each add exactly one entry.
    """
    match = key_filter(key)
    limit = current_app.config.get("MAX_ENTRIES_PER_CODE") or 0

    conditions = [match, CodeRecord.state == REDEEMED]
    if limit > 0:
        conditions.append(CodeRecord.entry_count < limit)

    stmt = (
        update(CodeRecord)
        .where(*conditions)
        .values(
            entry_count=CodeRecord.entry_count + 1,
            last_entry_at=datetime.now(timezone.utc),
        )
        .returning(CodeRecord.code)
    )
    record = load_updated(db.session.execute(stmt, execution_options={"synchronize_session": False}))

    if record is None:
        db.session.rollback()
        existing = find_record(key)
        if existing is None:
            raise CodeNotFound("Invalid code or user not registered")
        if not existing.is_redeemed:
            raise NotRedeemed()
        logger.info("Entry limit of %d reached for code %s", limit, existing.code)
        raise EntryLimitReached(f"Entry limit of {limit} reached for this code")

    db.session.commit()
    logger.info("Code %s scanned, entries=%d", record.code, record.entry_count)
    return record
