import unittest

from gradebook.extract import Student
from gradebook.ranking import RankedEntry, ordinal, top_students, top_students_by_component


def make_student(sid, **scores):
    return Student(class_no="", student_id=sid, cohort_id="", branch_code="",
                   scores={k: float(v) for k, v in scores.items()})


class TestOrdinal(unittest.TestCase):
    def test_labels(self):
        self.assertEqual([ordinal(n) for n in (1, 2, 3, 4)], ["1st", "2nd", "3rd", "4th"])
        self.assertEqual([ordinal(n) for n in (11, 12, 13, 21, 22, 101, 111)],
                         ["11th", "12th", "13th", "21st", "22nd", "101st", "111th"])


class TestTopStudents(unittest.TestCase):
    def test_ties_keep_input_order(self):
        students = [
            make_student("low", quiz=80),
            make_student("tie_first", quiz=85),
            make_student("best", quiz=90),
            make_student("tie_second", quiz=85),
        ]
        self.assertEqual(top_students(students, "quiz"), [
            RankedEntry("1st", "best", 90.0),
            RankedEntry("2nd", "tie_first", 85.0),
            RankedEntry("3rd", "tie_second", 85.0),
        ])

    def test_missing_component_does_not_compete(self):
        students = [make_student("E1", quiz=1), make_student("E2", pre_compre=150),
                    make_student("E3"), make_student("E4", pre_compre=170)]
        ranked = top_students(students, "pre_compre")
        self.assertEqual(len(ranked), 2)
        self.assertEqual([e.student_id for e in ranked], ["E4", "E2"])

    def test_zero_score_still_ranked(self):
        ranked = top_students([make_student("E1", quiz=0)], "quiz")
        self.assertEqual(ranked, [RankedEntry("1st", "E1", 0.0)])

    def test_custom_k(self):
        students = [make_student(f"E{i}", total=i) for i in range(10)]
        ranked = top_students(students, "total", k=5)
        self.assertEqual([e.student_id for e in ranked], ["E9", "E8", "E7", "E6", "E5"])
        self.assertEqual(ranked[-1].rank, "5th")
        self.assertEqual(top_students(students, "total", k=0), [])

    def test_by_component_skips_unobserved(self):
        students = [make_student("E1", quiz=3, total=50), make_student("E2", quiz=4)]
        ranked = top_students_by_component(students)
        self.assertEqual(list(ranked), ["quiz", "total"])
        self.assertEqual([e.student_id for e in ranked["quiz"]], ["E2", "E1"])

    def test_empty(self):
        self.assertEqual(top_students([], "quiz"), [])
        self.assertEqual(top_students_by_component([]), {})


if __name__ == "__main__":
    unittest.main()
