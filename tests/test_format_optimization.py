import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from ats_engine.core.config.scoring import reset_scoring_config  # noqa: E402
from ats_engine.schemas.cv import ParsedCV  # noqa: E402
from ats_engine.services.format_optimization import (  # noqa: E402
    GENERAL_FORMAT_RECOMMENDATIONS,
    FormatOptimizationService,
    load_template_library,
)

UNEVEN_CV = {
    "personal_info": {
        "name": "Grace Hopper",
        "email": "grace-at-example",
        "phone": "555-0100",
        "summary": "Software developer leading cloud platform strategy.",
    },
    "experience": [
        {
            "role": "Lead Engineer",
            "company": "Navy Labs",
            "start_date": "2019-01-01",
            "end_date": "2023-01-01",
            "description": "Built compilers.",
        },
        {"role": "Engineer", "start_date": "Mar 2015", "end_date": "2018-12-01"},
    ],
    "education": [{"degree": "PhD", "institution": "Yale"}],
    "skills": ["COBOL"],
}


class FormatAnalysisTests(unittest.TestCase):
    def test_empty_cv_reports_structure_gaps(self):
        analysis = FormatOptimizationService().analyze_format_compatibility(ParsedCV())

        self.assertEqual(
            analysis.issues,
            [
                "Missing essential section: personal_info",
                "Missing essential section: experience",
                "Missing recommended section: education",
                "Missing recommended section: skills",
                "Phone number missing from contact information",
                "Contact information section not properly structured",
            ],
        )
        self.assertEqual(analysis.overall_score, 35)
        self.assertEqual(
            analysis.recommendations,
            [
                "Add all essential sections for complete ATS parsing",
                "Add phone number to contact information",
                *GENERAL_FORMAT_RECOMMENDATIONS,
            ],
        )
        self.assertEqual(analysis.best_templates, ["ats-professional"])

    def test_consistency_issues_and_template_picks(self):
        analysis = FormatOptimizationService().analyze_format_compatibility(ParsedCV.model_validate(UNEVEN_CV))

        self.assertEqual(
            analysis.issues,
            [
                "1 experience entries are incomplete",
                "Inconsistent date formatting detected",
                "Email format appears invalid",
            ],
        )
        self.assertEqual(analysis.overall_score, 65)
        self.assertEqual(
            analysis.recommendations[:3],
            [
                "Complete all experience entries with role, company, and description",
                "Standardize all dates to MM/YYYY format",
                "Ensure email address follows standard format",
            ],
        )
        self.assertEqual(analysis.best_templates, ["ats-professional", "tech-optimized", "executive-standard"])

    def test_long_flat_skill_lists_and_descriptions_are_flagged(self):
        cv = ParsedCV.model_validate(
            {
                "personal_info": {"name": "Lin", "phone": "1"},
                "experience": [{"role": "Analyst", "company": "Acme", "description": "x" * 1001}],
                "skills": [f"skill{i}" for i in range(51)],
            }
        )
        analysis = FormatOptimizationService().analyze_format_compatibility(cv)
        self.assertIn("Too many individual skills listed - consider grouping by category", analysis.issues)
        self.assertIn("Some experience descriptions may be too lengthy", analysis.issues)
        self.assertIn("Consider condensing lengthy sections for better ATS processing", analysis.recommendations)


class TemplateLibraryTests(unittest.TestCase):
    def tearDown(self):
        reset_scoring_config()

    def test_industry_filter_sorts_by_average_compatibility(self):
        templates = FormatOptimizationService().get_ats_templates("technology")
        self.assertEqual(
            [template.id for template in templates],
            ["ats-professional", "tech-optimized", "executive-standard"],
        )
        self.assertAlmostEqual(templates[0].average_compatibility, 92.5)

    def test_role_filter_keeps_universal_templates(self):
        ids = [template.id for template in FormatOptimizationService().get_ats_templates(role="Executive")]
        self.assertEqual(
            ids,
            ["ats-professional", "finance-standard", "tech-optimized", "executive-standard", "healthcare-compliant"],
        )

    def test_unfiltered_library_lists_every_template(self):
        templates = FormatOptimizationService().get_ats_templates()
        self.assertEqual(len(templates), 6)
        self.assertEqual(templates[-1].id, "creative-ats")

    def test_unreadable_templates_are_skipped(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "scoring.yaml"
            path.write_text(
                "scoring: {}\n"
                "ats_systems: {}\n"
                "industries: {}\n"
                "templates:\n"
                "  - id: no-name\n"
                "  - just a string\n"
                "  - {id: plain, name: Plain, compatibility: {workday: 80}}\n",
                encoding="utf-8",
            )
            with patch.dict(os.environ, {"ATS_SCORING_CONFIG": str(path)}):
                reset_scoring_config()
                with self.assertLogs("ats_engine.services.format_optimization", level="WARNING"):
                    templates = load_template_library()

        self.assertEqual([template.id for template in templates], ["plain"])
        self.assertEqual(templates[0].average_compatibility, 80)


if __name__ == "__main__":
    unittest.main()
