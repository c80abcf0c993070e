import unittest

from checkin_service.exceptions import CodeNotFound, EntryLimitReached, InvalidInput, NotRedeemed
from checkin_service.services.code_issuer import issue_codes
from checkin_service.services.ledger import lookup, redeem
from checkin_service.services.scanner import scan
from tests.base import CheckinTestCase


class ScannerTestCase(CheckinTestCase):
    def setUp(self):
        super().setUp()
        self.ctx = self.app.app_context()
        self.ctx.push()

    def tearDown(self):
        self.ctx.pop()
        super().tearDown()


class TestScan(ScannerTestCase):
    def test_each_scan_adds_one_entry(self):
        code = issue_codes(1)[0]
        redeem(code, "Ada", "ada@example.com")

        for expected in range(1, 6):
            record = scan(code)
            self.assertEqual(record.entry_count, expected)
            self.assertIsNotNone(record.last_entry_at)

        self.assertEqual(lookup(code).entry_count, 5)

    def test_scan_by_email(self):
        code = issue_codes(1)[0]
        redeem(code, "Ada", "ada@example.com")
        record = scan("Ada@Example.com")
        self.assertEqual(record.code, code)
        self.assertEqual(record.entry_count, 1)

    def test_unredeemed_code_cannot_be_scanned(self):
        code = issue_codes(1)[0]
        with self.assertRaises(NotRedeemed):
            scan(code)
        self.assertEqual(lookup(code, require_redeemed=False).entry_count, 0)

    def test_held_code_cannot_be_scanned(self):
        code = issue_codes(1, hold=True)[0]
        with self.assertRaises(NotRedeemed):
            scan(code)

    def test_unknown_code(self):
        with self.assertRaises(CodeNotFound):
            scan("NOPE00")
        with self.assertRaises(CodeNotFound):
            scan("nobody@example.com")

    def test_missing_key(self):
        for bad in (None, "", "   "):
            with self.assertRaises(InvalidInput):
                scan(bad)


class TestScanWithEntryLimit(ScannerTestCase):
    config_overrides = {"MAX_ENTRIES_PER_CODE": 2}

    def test_scans_stop_at_the_limit(self):
        code = issue_codes(1)[0]
        redeem(code, "Ada")
        scan(code)
        self.assertEqual(scan(code).entry_count, 2)

        with self.assertRaises(EntryLimitReached):
            scan(code)
        self.assertEqual(lookup(code).entry_count, 2)


if __name__ == '__main__':
    unittest.main()
