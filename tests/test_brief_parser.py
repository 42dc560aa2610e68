import unittest

from watchtower.modules.intel.parser import (
    parse_brief_response,
    parse_country_risks,
    parse_threats,
    split_sections,
)


class BriefParserTest(unittest.TestCase):
    def test_sections_are_case_insensitive_and_keep_inline_text(self):
        sections = split_sections("summary: Calm overall.\nMore detail here.\nThreats:\n• One")
        self.assertEqual(sections["SUMMARY"], "Calm overall.\nMore detail here.")
        self.assertEqual(sections["THREATS"], "• One")

    def test_preamble_before_first_header_is_ignored(self):
        summary, threats, risks = parse_brief_response("Sure! Here you go.\nSUMMARY:\nAll quiet.")
        self.assertEqual(summary, "All quiet.")
        self.assertEqual(threats, [])
        self.assertEqual(risks, [])

    def test_threat_bullets_are_stripped(self):
        block = "• Alpha\n- Beta\n* Gamma\n\n  Delta  "
        self.assertEqual(parse_threats(block), ["Alpha", "Beta", "Gamma", "Delta"])

    def test_malformed_risk_rows_are_skipped_per_row(self):
        block = "\n".join(
            [
                "Ukraine|85|Active war",
                "Nowhere|high|bad score",
                "|40|missing country",
                "Taiwan | 120 | clamped",
                "Chile|-5",
                "no pipes at all",
            ]
        )
        risks = parse_country_risks(block)
        self.assertEqual([(risk.country, risk.score) for risk in risks], [("Ukraine", 85), ("Taiwan", 100), ("Chile", 0)])
        self.assertEqual(risks[0].reason, "Active war")
        self.assertEqual(risks[2].reason, "")

    def test_reason_may_contain_pipes(self):
        risks = parse_country_risks("Iran|70|talks | stalled")
        self.assertEqual(risks[0].reason, "talks | stalled")

    def test_missing_sections_yield_empty_results(self):
        self.assertEqual(parse_brief_response(""), ("", [], []))


if __name__ == "__main__":
    unittest.main()
