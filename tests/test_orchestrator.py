import asyncio
import copy
import dataclasses
import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from ats_engine.ai.factory import get_ai_client, get_optional_ai_client  # noqa: E402
from ats_engine.ai.types import AIUnavailableError, CompletionRequest  # noqa: E402
from ats_engine.core.config import settings  # noqa: E402
from ats_engine.schemas.cv import ParsedCV  # noqa: E402
from ats_engine.services.basic_analysis import build_basic_analysis  # noqa: E402
from ats_engine.services.keyword_analysis import KeywordAnalysisService  # noqa: E402
from ats_engine.services.orchestrator import ATSOptimizationOrchestrator, analyze_cv  # noqa: E402
from ats_engine.services.system_simulation import SystemSimulationService  # noqa: E402

CV_PAYLOAD = {
    "personal_info": {
        "name": "Katherine Johnson",
        "email": "kj@example.com",
        "phone": "555-0199",
        "summary": "Data engineer with 6 years of experience building Python pipelines and SQL warehouses.",
    },
    "experience": [
        {
            "role": "Data Engineer",
            "company": "Orbital",
            "start_date": "2019-01-01",
            "current": True,
            "description": "Developed Python ETL jobs on AWS and reduced warehouse costs by 25% across 3 teams.",
        }
    ],
    "education": [{"degree": "BSc", "institution": "WVU", "field": "Mathematics", "end_date": "2017-05-01"}],
    "skills": {"languages": ["Python", "SQL"], "platforms": ["AWS", "Airflow", "dbt"]},
    "achievements": ["Cut report latency by 40%"],
}

TARGETS = ["Python", "SQL", "Spark", "Kafka"]
FALLBACK_IDS = ["fallback-structure", "fallback-content", "fallback-keywords"]


class CannedClient:
    name = "canned"

    def __init__(self, text: str):
        self.text = text

    async def complete(self, request: CompletionRequest) -> str:
        return self.text


class BrokenScoring:
    def calculate_advanced_score(self, *args, **kwargs):
        raise ValueError("weights missing")


class BrokenRecommendations:
    def generate_prioritized_recommendations(self, ctx):
        raise KeyError("generator table")


class BrokenSimulation(SystemSimulationService):
    async def simulate_ats_systems(self, cv):
        raise RuntimeError("profiles unavailable")


class OrchestratorTests(unittest.TestCase):
    def test_offline_run_completes_every_stage(self):
        result = asyncio.run(analyze_cv(CV_PAYLOAD, "Data Engineer", TARGETS, industry="technology", offline=True))

        self.assertFalse(result.metadata.degraded)
        self.assertEqual(result.metadata.stages, ["collecting", "scoring", "recommending", "verifying", "done"])
        self.assertTrue(0 <= result.overall <= 100)
        self.assertEqual(result.passes, result.overall >= 75)
        self.assertEqual(len(result.keywords.found) + len(result.keywords.missing), len(TARGETS))
        self.assertEqual(result.keywords.missing, ["Spark", "Kafka"])
        self.assertLessEqual(len(result.recommendations), 15)
        self.assertTrue(result.verification.verified)
        self.assertEqual(result.verification.confidence, 75)
        self.assertEqual(len(result.system_simulations or []), 7)
        self.assertIsNotNone(result.advanced_score)
        self.assertEqual(result.advanced_score.recommendations, result.recommendations)

    def test_offline_runs_are_deterministic(self):
        first = asyncio.run(analyze_cv(CV_PAYLOAD, target_keywords=TARGETS, offline=True))
        second = asyncio.run(analyze_cv(CV_PAYLOAD, target_keywords=TARGETS, offline=True))
        self.assertEqual(first.overall, second.overall)
        self.assertEqual(first.breakdown, second.breakdown)
        self.assertEqual([rec.id for rec in first.recommendations], [rec.id for rec in second.recommendations])

    def test_scoring_failure_degrades_to_basic_analysis(self):
        orchestrator = ATSOptimizationOrchestrator(scoring_service=BrokenScoring())
        cv = ParsedCV.model_validate(CV_PAYLOAD)
        result = asyncio.run(orchestrator.analyze(cv, target_keywords=TARGETS))

        self.assertTrue(result.metadata.degraded)
        self.assertTrue(result.metadata.version.endswith("-fallback"))
        self.assertEqual(result.metadata.confidence, 0.7)
        self.assertEqual(result.metadata.stages[-1], "failed")
        self.assertEqual([rec.id for rec in result.recommendations], FALLBACK_IDS)
        self.assertEqual(result.verification.confidence, 75)
        self.assertEqual(result.keywords.recommended, result.keywords.missing)
        self.assertEqual(orchestrator.stage, "failed")

        breakdown = result.breakdown
        self.assertEqual(
            result.overall,
            round(breakdown.parsing * 0.4 + breakdown.formatting * 0.3 + breakdown.content * 0.3),
        )

    def test_collection_failure_degrades_to_basic_analysis(self):
        orchestrator = ATSOptimizationOrchestrator(simulation_service=BrokenSimulation())
        result = asyncio.run(orchestrator.analyze(ParsedCV.model_validate(CV_PAYLOAD)))
        self.assertTrue(result.metadata.degraded)
        self.assertEqual(result.metadata.stages, ["collecting", "failed"])

    def test_recommendation_failure_keeps_advanced_result(self):
        orchestrator = ATSOptimizationOrchestrator(recommendation_service=BrokenRecommendations())
        result = asyncio.run(orchestrator.analyze(ParsedCV.model_validate(CV_PAYLOAD), target_keywords=TARGETS))
        self.assertFalse(result.metadata.degraded)
        self.assertEqual([rec.id for rec in result.recommendations], FALLBACK_IDS)

    def test_job_description_supplies_missing_targets(self):
        keywords = KeywordAnalysisService(CannedClient("- Python\n- Terraform\n"))
        orchestrator = ATSOptimizationOrchestrator(keyword_service=keywords)
        result = asyncio.run(
            orchestrator.analyze(ParsedCV.model_validate(CV_PAYLOAD), job_description="Python and Terraform role")
        )
        self.assertEqual(result.keywords.found, ["Python"])
        self.assertEqual(result.keywords.missing, ["Terraform"])

    def test_malformed_field_defaults_only_that_field(self):
        payload = copy.deepcopy(CV_PAYLOAD)
        payload["experience"][0]["current"] = "sometimes"
        payload["personal_info"]["name"] = ["not", "a", "name"]
        payload["experience"].append("not-a-mapping")
        result = asyncio.run(analyze_cv(payload, target_keywords=TARGETS, offline=True))

        expected_payload = copy.deepcopy(CV_PAYLOAD)
        expected_payload["experience"][0]["current"] = False
        expected_payload["personal_info"]["name"] = None
        expected = asyncio.run(analyze_cv(expected_payload, target_keywords=TARGETS, offline=True))

        self.assertFalse(result.metadata.degraded)
        self.assertEqual(result.overall, expected.overall)
        self.assertGreater(result.overall, 40)
        self.assertEqual(result.keywords.found, ["Python", "SQL"])

    def test_non_mapping_payload_is_analyzed_as_empty_cv(self):
        result = asyncio.run(analyze_cv(["not", "a", "cv"], offline=True))  # type: ignore[arg-type]
        empty = asyncio.run(analyze_cv({}, offline=True))
        self.assertEqual(result.overall, empty.overall)

    def test_format_and_template_operations_are_exposed(self):
        orchestrator = ATSOptimizationOrchestrator()
        templates = orchestrator.get_ats_templates("finance", "analyst")
        self.assertEqual([template.id for template in templates], ["ats-professional", "finance-standard"])

        analysis = orchestrator.analyze_format_compatibility(ParsedCV.model_validate(CV_PAYLOAD))
        self.assertEqual(analysis.issues, [])
        self.assertEqual(analysis.overall_score, 100)
        self.assertEqual(analysis.best_templates[0], "ats-professional")

    def test_basic_analysis_is_deterministic(self):
        cv = ParsedCV.model_validate(CV_PAYLOAD)
        first = build_basic_analysis(cv, TARGETS)
        second = build_basic_analysis(cv, TARGETS)
        self.assertEqual(first.overall, second.overall)
        self.assertEqual(first.keywords.found, ["Python", "SQL"])
        self.assertTrue(0 <= first.overall <= 100)

    def test_disabled_services_yield_no_client(self):
        disabled = dataclasses.replace(settings, llm_enabled=False)
        self.assertIsNone(get_optional_ai_client("primary", disabled))
        with self.assertRaises(AIUnavailableError) as ctx:
            get_ai_client("secondary", disabled)
        self.assertEqual(ctx.exception.code, "llm_disabled")

    def test_unknown_provider_is_rejected(self):
        odd = dataclasses.replace(settings, llm_enabled=True, secondary_provider="mystery")
        with self.assertRaises(AIUnavailableError) as ctx:
            get_ai_client("secondary", odd)
        self.assertEqual(ctx.exception.code, "llm_unsupported")


if __name__ == "__main__":
    unittest.main()
