from checkin_service.models.code_record import CodeRecord, UNISSUED, ISSUED, REDEEMED, STATES

__all__ = ["CodeRecord", "UNISSUED", "ISSUED", "REDEEMED", "STATES"]
