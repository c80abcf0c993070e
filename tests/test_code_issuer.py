import re
import unittest

from checkin_service.exceptions import CodeSpaceExhausted, InvalidCount
from checkin_service.extensions import db
from checkin_service.models import CodeRecord, ISSUED, UNISSUED
from checkin_service.services.code_issuer import ALPHABET, generate_code, issue_codes, parse_count
from tests.base import CheckinTestCase, scripted_choice

CODE_PATTERN = re.compile(r"^[A-Z0-9]{6}$")


class TestGenerateCode(unittest.TestCase):
    def test_alphabet_is_uppercase_letters_and_digits(self):
        self.assertEqual(len(ALPHABET), 36)
        self.assertEqual(len(set(ALPHABET)), 36)

    def test_generated_code_is_well_formed(self):
        for _ in range(50):
            self.assertRegex(generate_code(6), CODE_PATTERN)

    def test_parse_count(self):
        self.assertEqual(parse_count(1, 100), 1)
        self.assertEqual(parse_count("42", 100), 42)
        self.assertEqual(parse_count(100, 100), 100)
        for bad in (0, -1, 101, "abc", "", None, 2.5, True, [3]):
            with self.assertRaises(InvalidCount, msg=repr(bad)):
                parse_count(bad, 100)


class TestIssueCodes(CheckinTestCase):
    def setUp(self):
        super().setUp()
        self.ctx = self.app.app_context()
        self.ctx.push()

    def tearDown(self):
        self.ctx.pop()
        super().tearDown()

    def test_issues_requested_number_of_distinct_codes(self):
        codes = issue_codes(25)
        self.assertEqual(len(codes), 25)
        self.assertEqual(len(set(codes)), 25)
        for code in codes:
            self.assertRegex(code, CODE_PATTERN)

        stored = {r.code: r for r in CodeRecord.query.all()}
        self.assertEqual(set(stored), set(codes))
        self.assertTrue(all(r.state == ISSUED for r in stored.values()))
        self.assertTrue(all(r.entry_count == 0 for r in stored.values()))

    def test_new_batch_never_repeats_earlier_codes(self):
        first = issue_codes(100)
        second = issue_codes(100)
        self.assertFalse(set(first) & set(second))
        self.assertEqual(CodeRecord.query.count(), 200)

    def test_out_of_range_counts_are_rejected(self):
        for count in (0, -5, 101, 1000):
            with self.assertRaises(InvalidCount):
                issue_codes(count)
        self.assertEqual(CodeRecord.query.count(), 0)

    def test_hold_stores_codes_as_unissued(self):
        codes = issue_codes(3, hold=True)
        records = CodeRecord.query.filter(CodeRecord.code.in_(codes)).all()
        self.assertEqual(len(records), 3)
        for record in records:
            self.assertEqual(record.state, UNISSUED)
            self.assertIsNone(record.released_at)

    def test_collision_with_stored_code_is_redrawn(self):
        issue_codes(1, choice=scripted_choice(["AAAAAA"]))
        codes = issue_codes(1, choice=scripted_choice(["AAAAAA", "BBBBBB"]))
        self.assertEqual(codes, ["BBBBBB"])
        self.assertEqual(CodeRecord.query.count(), 2)

    def test_collision_within_batch_is_redrawn(self):
        codes = issue_codes(2, choice=scripted_choice(["CCCCCC", "CCCCCC", "DDDDDD"]))
        self.assertEqual(codes, ["CCCCCC", "DDDDDD"])

    def test_exhausted_attempts_roll_back_the_whole_batch(self):
        self.app.config["ISSUE_MAX_ATTEMPTS"] = 3
        issue_codes(1, choice=scripted_choice(["AAAAAA"]))

        with self.assertRaises(CodeSpaceExhausted):
            issue_codes(2, choice=scripted_choice(["ZZZZZZ"] + ["AAAAAA"] * 3))

        db.session.remove()
        self.assertEqual([r.code for r in CodeRecord.query.all()], ["AAAAAA"])


if __name__ == '__main__':
    unittest.main()
