import asyncio
import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from ats_engine.ai.types import CompletionRequest  # noqa: E402
from ats_engine.features.keyword_extractor import (  # noqa: E402
    KeywordExtractor,
    count_occurrences,
    normalize_target_keywords,
)
from ats_engine.schemas.cv import ParsedCV  # noqa: E402
from ats_engine.services.ats_llm import generate_text  # noqa: E402
from ats_engine.services.basic_analysis import build_basic_analysis  # noqa: E402
from ats_engine.services.keyword_analysis import KeywordAnalysisService  # noqa: E402


class CannedClient:
    def __init__(self, text: str, name: str = "canned"):
        self.name = name
        self.text = text
        self.requests: list[CompletionRequest] = []

    async def complete(self, request: CompletionRequest) -> str:
        self.requests.append(request)
        return self.text


class FailingClient:
    name = "failing"

    async def complete(self, request: CompletionRequest) -> str:
        raise RuntimeError("upstream 503")


class SlowClient:
    name = "slow"

    async def complete(self, request: CompletionRequest) -> str:
        await asyncio.sleep(1)
        return "too late"


def _engineer_cv() -> ParsedCV:
    return ParsedCV.model_validate(
        {
            "personal_info": {"name": "Ada", "summary": "Backend engineer working with Python and AWS."},
            "experience": [
                {
                    "role": "Engineer",
                    "company": "Acme",
                    "description": "Built Python services on AWS. Led migration of Python jobs to Kubernetes.",
                }
            ],
            "skills": {"languages": ["Python", "SQL"], "cloud": ["AWS"]},
        }
    )


class KeywordAnalysisTests(unittest.TestCase):
    def test_found_and_missing_partition_the_targets(self):
        service = KeywordAnalysisService()
        targets = ["Python", "AWS", "Terraform", "Kubernetes", "Rust"]
        analysis = service.local_analysis(_engineer_cv(), targets)

        found = [match.keyword for match in analysis.primary_keywords]
        self.assertEqual(len(found) + len(analysis.missing_keywords), len(targets))
        self.assertEqual(found, ["Python", "AWS", "Kubernetes"])
        self.assertEqual(analysis.missing_keywords, ["Terraform", "Rust"])

    def test_duplicate_targets_are_counted_once(self):
        targets = ["Python", "python", "AWS", "Kafka", "kafka", "  ", "AWS "]
        self.assertEqual(normalize_target_keywords(targets), ["Python", "AWS", "Kafka"])

        analysis = KeywordAnalysisService().local_analysis(_engineer_cv(), targets)
        found = [match.keyword for match in analysis.primary_keywords]
        self.assertEqual(found, ["Python", "AWS"])
        self.assertEqual(analysis.missing_keywords, ["Kafka"])
        self.assertEqual(len(found) + len(analysis.missing_keywords), len(normalize_target_keywords(targets)))

        summary = build_basic_analysis(_engineer_cv(), targets).keywords
        self.assertEqual(summary.found, found)
        self.assertEqual(summary.missing, analysis.missing_keywords)

    def test_single_mention_density(self):
        cv = ParsedCV.model_validate({"personal_info": {"summary": "Experienced Python developer"}})
        analysis = asyncio.run(
            KeywordAnalysisService().perform_semantic_keyword_analysis(cv, target_keywords=["Python", "AWS"])
        )
        self.assertEqual([match.keyword for match in analysis.primary_keywords], ["Python"])
        self.assertEqual(analysis.missing_keywords, ["AWS"])
        self.assertAlmostEqual(analysis.keyword_density, 1 / 3)

    def test_relevance_boosts_and_context(self):
        extractor = KeywordExtractor()
        sections = {"summary": "python", "experience": "python", "skills": "python", "achievements": ""}
        self.assertAlmostEqual(extractor.calculate_keyword_relevance("Python", None, sections), 0.8)
        self.assertAlmostEqual(extractor.calculate_keyword_relevance("led", None, {}), 0.6)

        contexts = extractor.extract_keyword_context("python", "Python one. Python two! Python three? Python four.")
        self.assertEqual(len(contexts), 3)
        self.assertTrue(all(len(item) <= 100 for item in contexts))

    def test_count_occurrences_is_case_insensitive(self):
        self.assertEqual(count_occurrences("aws", "AWS, aws and Aws"), 3)
        self.assertEqual(count_occurrences("", "anything"), 0)

    def test_failed_service_returns_same_shape_as_local(self):
        cv = _engineer_cv()
        local = KeywordAnalysisService().local_analysis(cv, ["Python", "Go"])
        failed = asyncio.run(
            KeywordAnalysisService(FailingClient()).perform_semantic_keyword_analysis(cv, target_keywords=["Python", "Go"])
        )
        self.assertEqual(failed, local)

    def test_service_suggestions_populate_trending_keywords(self):
        client = CannedClient(
            "Suggested keywords:\n"
            "- Terraform: infrastructure as code\n"
            "- Python: already present\n"
            "- CI/CD pipelines (mentioned in many postings)\n"
            "Overall the CV is solid.\n"
        )
        analysis = asyncio.run(
            KeywordAnalysisService(client).perform_semantic_keyword_analysis(
                _engineer_cv(), job_description="Platform role", target_keywords=["Python"]
            )
        )
        self.assertEqual(analysis.trending_keywords, ["Terraform", "CI/CD pipelines"])
        self.assertIn("Job Description: Platform role", client.requests[0].prompt)

    def test_generate_keywords_uses_service_lines(self):
        client = CannedClient("- Python\n- Kubernetes\n* Python\n- x\n")
        keywords = asyncio.run(KeywordAnalysisService(client).generate_keywords("We need Python"))
        self.assertEqual(keywords, ["Python", "Kubernetes"])

    def test_generate_keywords_falls_back_to_industry_list(self):
        keywords = asyncio.run(
            KeywordAnalysisService().generate_keywords("Anything", industry="Technology", role="Data Engineer")
        )
        self.assertEqual(keywords[:5], ["experience", "management", "team", "project", "development"])
        self.assertIn("engineer", keywords)
        self.assertGreater(len(keywords), 5)

    def test_generate_text_times_out_to_none(self):
        request = CompletionRequest(prompt="hello")
        result = asyncio.run(generate_text(SlowClient(), request, timeout_s=0.01, label="test"))
        self.assertIsNone(result)

    def test_generate_text_skips_blank_answers(self):
        request = CompletionRequest(prompt="hello")
        self.assertIsNone(asyncio.run(generate_text(CannedClient("   "), request, timeout_s=1, label="test")))
        self.assertIsNone(asyncio.run(generate_text(None, request, timeout_s=1, label="test")))


if __name__ == "__main__":
    unittest.main()
