import asyncio
import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from ats_engine.schemas.ats import PrioritizedRecommendation  # noqa: E402
from ats_engine.schemas.cv import ParsedCV  # noqa: E402
from ats_engine.services.content_optimization import (  # noqa: E402
    ContentOptimizationService,
    recommended_keywords,
    work_in_keywords,
)
from ats_engine.services.orchestrator import ATSOptimizationOrchestrator, analyze_cv  # noqa: E402

MISSING_KEYWORDS = PrioritizedRecommendation(
    id="keywords-missing",
    category="keywords",
    description="Missing 2 critical keywords: Kafka, Spark. Integrate these keywords naturally",
    keywords=["Kafka", "Spark"],
)


def _pipeline_cv() -> ParsedCV:
    return ParsedCV.model_validate(
        {
            "personal_info": {"summary": "Data engineer building pipelines. Loves SQL."},
            "experience": [
                {"role": "Engineer", "description": "Built Spark jobs on AWS. Cut costs by 20%."},
                {"role": "Intern", "description": "No sentence break here"},
            ],
        }
    )


class RecommendedKeywordTests(unittest.TestCase):
    def test_keywords_come_from_keyword_recommendations_only(self):
        structure = PrioritizedRecommendation(
            id="structure", category="structure", description="Missing sections: Education, Skills."
        )
        self.assertEqual(recommended_keywords([structure, MISSING_KEYWORDS]), ["Kafka", "Spark"])

    def test_description_is_read_when_no_keyword_list_is_given(self):
        rec = PrioritizedRecommendation(
            id="legacy",
            category="keywords",
            description="Missing 3 critical keywords: Kafka, Go, Spark. Integrate these keywords",
        )
        self.assertEqual(recommended_keywords([rec]), ["Kafka", "Spark"])

    def test_text_without_sentence_break_or_room_is_left_alone(self):
        self.assertEqual(work_in_keywords("No sentence break here", ["Kafka"]), ("No sentence break here", []))
        self.assertEqual(work_in_keywords("A. B", ["Kafka"], max_chars=10), ("A. B", []))


class ContentOptimizationTests(unittest.TestCase):
    def test_keywords_are_worked_into_summary_and_descriptions(self):
        cv = _pipeline_cv()
        result = ContentOptimizationService().generate_optimized_content(cv, [MISSING_KEYWORDS])

        self.assertEqual(
            result.cv.personal_info.summary,
            "Data engineer building pipelines, including Kafka, Spark. Loves SQL.",
        )
        self.assertEqual(
            result.cv.experience[0].description,
            "Built Spark jobs on AWS, including Kafka. Cut costs by 20%.",
        )
        self.assertEqual(result.cv.experience[1].description, "No sentence break here")
        self.assertEqual(result.changed_sections, ["summary", "experience[0]"])
        self.assertEqual(result.keywords, ["Kafka", "Spark"])

        self.assertEqual(cv.personal_info.summary, "Data engineer building pipelines. Loves SQL.")
        self.assertEqual(cv.experience[0].description, "Built Spark jobs on AWS. Cut costs by 20%.")

    def test_no_keyword_recommendations_means_no_changes(self):
        cv = _pipeline_cv()
        result = ContentOptimizationService().generate_optimized_content(cv, [])
        self.assertEqual(result.cv, cv)
        self.assertEqual(result.changed_sections, [])

    def test_orchestrator_applies_recommendations_from_an_analysis(self):
        payload = {
            "personal_info": {"name": "Ada", "summary": "Data engineer with Python and SQL experience."},
            "experience": [{"role": "Engineer", "company": "Acme", "description": "Wrote Python ETL jobs."}],
        }
        result = asyncio.run(analyze_cv(payload, target_keywords=["Python", "Kafka"], offline=True))
        self.assertEqual(result.keywords.missing, ["Kafka"])

        cv = ParsedCV.model_validate(payload)
        optimized = ATSOptimizationOrchestrator().apply_optimizations(cv, result.recommendations)
        self.assertIn("including Kafka", optimized.cv.personal_info.summary)
        self.assertIn("Kafka", optimized.keywords)


if __name__ == "__main__":
    unittest.main()
