import shutil
import tempfile
import unittest
from pathlib import Path

from openpyxl import Workbook

from gradebook.ingest import GradebookLoadError, load_rows, load_rows_from_bytes, sheet_names
from gradebook.pipeline import build_report
from gradebook.rules import load_rules

FULL_HEADER = ["Sl No", "Class No.", "Emplid", "Campus ID", "Quiz (30)", "Mid-Sem (75)", "Lab Test (60)",
               "Weekly Labs (30)", "Pre-Compre (195)", "Compre (105)", "Total (300)"]


def write_workbook(path, sheets):
    wb = Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(name)
        for r in rows:
            ws.append(r)
    wb.save(path)
    return path


class TestExcel(unittest.TestCase):
    def setUp(self):
        self.test_dir = Path(tempfile.mkdtemp())
        self.path = write_workbook(self.test_dir / "marks.xlsx", {
            "Sheet1": [
                ["CAMPUS_ID", "EMPLID", "QUIZ", "MIDSEM", "LABTEST", "WEEKLYLABS", "COMPRE", "TOTAL"],
                ["2024A3PS0001P", 41001, 10, 20.5, 30, 20, 70, 150.5],
                ["2024A4PS0002P", 41002, "AB", 20, None, 20, 70, None],
            ],
            "Other": [["x"], ["y"]],
        })

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_first_sheet_as_text(self):
        rows = load_rows(self.path)
        self.assertEqual(len(rows), 3)
        self.assertEqual(rows[1], ["2024A3PS0001P", "41001", "10", "20.5", "30", "20", "70", "150.5"])

    def test_trailing_blanks_trimmed_inner_blanks_kept(self):
        rows = load_rows(self.path)
        self.assertEqual(rows[2], ["2024A4PS0002P", "41002", "AB", "20", "", "20", "70"])

    def test_sheet_by_name_and_position(self):
        self.assertEqual(load_rows(self.path, "Other"), [["x"], ["y"]])
        self.assertEqual(load_rows(self.path, 1), [["x"], ["y"]])

    def test_missing_sheet(self):
        with self.assertRaises(GradebookLoadError):
            load_rows(self.path, "Marks")
        with self.assertRaises(GradebookLoadError):
            load_rows(self.path, 5)

    def test_from_bytes(self):
        data = self.path.read_bytes()
        self.assertEqual(sheet_names(data, "marks.xlsx"), ["Sheet1", "Other"])
        self.assertEqual(len(load_rows_from_bytes(data, "marks.xlsx")), 3)

    def test_missing_file(self):
        with self.assertRaises(GradebookLoadError):
            load_rows(self.test_dir / "nope.xlsx")

    def test_corrupt_workbook(self):
        bad = self.test_dir / "bad.xlsx"
        bad.write_bytes(b"not a zip file")
        with self.assertRaises(GradebookLoadError):
            load_rows(bad)

    def test_unsupported_type(self):
        p = self.test_dir / "marks.pdf"
        p.write_bytes(b"%PDF")
        with self.assertRaises(GradebookLoadError):
            load_rows(p)


class TestCsv(unittest.TestCase):
    def setUp(self):
        self.test_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_semicolon_csv(self):
        p = self.test_dir / "marks.csv"
        p.write_text(
            "CAMPUS_ID;EMPLID;QUIZ;MIDSEM;LABTEST;WEEKLYLABS;COMPRE;TOTAL\n"
            "2024A3PS0001P;41001;10;20;30;20;70;150\n"
            "2024A4PS0002P;41002;NA;20;30;20;70;\n",
            encoding="utf-8",
        )
        rows = load_rows(p)
        self.assertEqual(rows[1][0], "2024A3PS0001P")
        self.assertEqual(rows[1][7], "150")
        # "NA" stays text, the spelled-out empty total is kept
        self.assertEqual(rows[2], ["2024A4PS0002P", "41002", "NA", "20", "30", "20", "70", ""])

    def test_blank_trailing_scores_keep_the_row(self):
        p = self.test_dir / "marks.csv"
        p.write_text(
            ",".join(FULL_HEADER) + "\n"
            "1,3,E1,2024A3PS0001P,20,50,40,25,135,80,215\n"
            "2,3,E2,2024A3PS0002P,30,50,40,25,135,,\n",
            encoding="utf-8",
        )
        rows = load_rows(p)
        self.assertEqual([len(r) for r in rows], [11, 11, 11])
        self.assertEqual(rows[2][9:], ["", ""])

        report = build_report(rows, load_rules())
        self.assertEqual(len(report.students), 2)
        self.assertEqual(report.summary["short_rows"], 0)
        self.assertAlmostEqual(report.averages["quiz"], 25.0)
        # no reported total, nothing to audit
        self.assertIsNone(report.students[1].discrepancy)

    def test_row_wider_than_header(self):
        p = self.test_dir / "marks.csv"
        p.write_text(
            ",".join(FULL_HEADER) + "\n"
            "1,3,E1,2024A3PS0001P,20,50,40,25,135,80,215,note\n"
            "2,3,E2,2024A3PS0002P,30,50,40,25,135,80,225\n",
            encoding="utf-8",
        )
        rows = load_rows(p)
        self.assertEqual([len(r) for r in rows], [11, 12, 11])
        self.assertEqual(rows[1][11], "note")
        self.assertEqual(rows[2][10], "225")
        self.assertEqual(len(build_report(rows, load_rules()).students), 2)

    def test_csv_has_one_sheet(self):
        p = self.test_dir / "marks.csv"
        p.write_text("a,b\n1,2\n", encoding="utf-8")
        self.assertEqual(sheet_names(p.read_bytes(), "marks.csv"), ["CSV"])
        with self.assertRaises(GradebookLoadError):
            load_rows(p, 1)


if __name__ == "__main__":
    unittest.main()
