import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from ats_engine.features.cv_text import (  # noqa: E402
    cv_to_text,
    has_consistent_date_formats,
    normalize_skills,
    skills_are_categorized,
    skills_quality,
)
from ats_engine.schemas.cv import CategorizedSkills, FlatSkills, ParsedCV  # noqa: E402


class CVSchemaTests(unittest.TestCase):
    def test_skill_list_becomes_flat_union_member(self):
        cv = ParsedCV.model_validate({"skills": ["Python", " ", "SQL", {"name": "Docker"}]})
        self.assertIsInstance(cv.skills, FlatSkills)
        self.assertEqual(normalize_skills(cv.skills), ["Python", "SQL", "Docker"])
        self.assertFalse(skills_are_categorized(cv.skills))

    def test_skill_mapping_becomes_categorized_union_member(self):
        cv = ParsedCV.model_validate({"skills": {"languages": ["Python", "Go"], "cloud": "AWS"}})
        self.assertIsInstance(cv.skills, CategorizedSkills)
        self.assertEqual(sorted(normalize_skills(cv.skills)), ["AWS", "Go", "Python"])
        self.assertTrue(skills_are_categorized(cv.skills))

    def test_comma_separated_skill_string_is_split(self):
        cv = ParsedCV.model_validate({"skills": "Python, SQL; Docker"})
        self.assertEqual(normalize_skills(cv.skills), ["Python", "SQL", "Docker"])

    def test_missing_skills_normalize_to_empty(self):
        cv = ParsedCV()
        self.assertIsNone(cv.skills)
        self.assertEqual(normalize_skills(cv.skills), [])
        self.assertEqual(skills_quality(cv), 0.0)

    def test_categorized_skills_get_quality_bonus(self):
        flat = ParsedCV.model_validate({"skills": ["a", "b", "c", "d", "e"]})
        grouped = ParsedCV.model_validate({"skills": {"core": ["a", "b", "c", "d", "e"]}})
        self.assertAlmostEqual(skills_quality(flat), 0.5)
        self.assertAlmostEqual(skills_quality(grouped), 0.7)

    def test_loose_upstream_values_are_coerced(self):
        cv = ParsedCV.model_validate(
            {
                "personal_info": {"name": "Ada", "phone": 5551234},
                "experience": [{"role": "Engineer", "start_date": 2019}, "not-a-mapping"],
                "education": [{"degree": "BSc", "gpa": 3.8}],
                "achievements": "Shipped the billing platform",
                "document_format": ".DOCX",
            }
        )
        self.assertEqual(cv.personal_info.phone, "5551234")
        self.assertEqual(len(cv.experience), 1)
        self.assertEqual(cv.experience[0].start_date, "2019")
        self.assertEqual(cv.education[0].gpa, "3.8")
        self.assertEqual(cv.achievements, ["Shipped the billing platform"])
        self.assertEqual(cv.document_format, "docx")

    def test_unreadable_fields_default_without_losing_the_entry(self):
        cv = ParsedCV.model_validate(
            {
                "personal_info": {"name": {"first": "Ada"}, "email": "ada@example.com"},
                "experience": [
                    {"role": "Engineer", "current": "sometimes"},
                    {"role": "Lead", "current": "Present", "description": ["not", "text"]},
                ],
                "skills": {"kind": "categorized", "categories": "Python"},
            }
        )
        self.assertIsNone(cv.personal_info.name)
        self.assertEqual(cv.personal_info.email, "ada@example.com")
        self.assertEqual([exp.role for exp in cv.experience], ["Engineer", "Lead"])
        self.assertEqual([exp.current for exp in cv.experience], [False, True])
        self.assertIsNone(cv.experience[1].description)
        self.assertEqual(normalize_skills(cv.skills), [])

    def test_text_rendering_joins_sections(self):
        cv = ParsedCV.model_validate(
            {
                "personal_info": {"summary": "Backend engineer"},
                "experience": [{"role": "Engineer", "company": "Acme", "description": "Built APIs"}],
                "skills": ["Python"],
            }
        )
        self.assertEqual(cv_to_text(cv), "Backend engineer Engineer Acme Built APIs Python")

    def test_mixed_date_formats_are_inconsistent(self):
        cv = ParsedCV.model_validate(
            {"experience": [{"start_date": "2019-01-01", "end_date": "Mar 2021"}]}
        )
        self.assertFalse(has_consistent_date_formats(cv))


if __name__ == "__main__":
    unittest.main()
