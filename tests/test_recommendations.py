import asyncio
import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from ats_engine.schemas.ats import PrioritizedRecommendation  # noqa: E402
from ats_engine.schemas.cv import ParsedCV  # noqa: E402
from ats_engine.services.competitor_analysis import CompetitorAnalysisService  # noqa: E402
from ats_engine.services.keyword_analysis import KeywordAnalysisService  # noqa: E402
from ats_engine.services.recommendations import (  # noqa: E402
    GENERATORS,
    RecommendationContext,
    RecommendationService,
    fallback_recommendations,
    prioritize,
    rank_value,
)
from ats_engine.services.scoring import ATSScoringService  # noqa: E402
from ats_engine.services.system_simulation import SystemSimulationService  # noqa: E402


def _context(cv: ParsedCV, keywords: list[str], industry: str | None = None) -> RecommendationContext:
    semantic = KeywordAnalysisService().local_analysis(cv, keywords, industry)
    simulations = asyncio.run(SystemSimulationService().simulate_ats_systems(cv))
    competitor = CompetitorAnalysisService().fallback_analysis(cv, industry)
    score = ATSScoringService().calculate_advanced_score(cv, semantic, simulations, competitor)
    return RecommendationContext(
        cv=cv,
        score=score,
        semantic=semantic,
        simulations=simulations,
        competitor=competitor,
        industry=industry,
    )


def _sparse_cv() -> ParsedCV:
    return ParsedCV.model_validate(
        {
            "personal_info": {"phone": "555-0100"},
            "experience": [{"role": "Clerk", "description": "Did things", "start_date": "2020", "end_date": "03/2021"}],
            "skills": ["Excel"],
        }
    )


def _numbered(count: int) -> list[PrioritizedRecommendation]:
    priorities = ["low", "medium", "high", "critical"]
    return [
        PrioritizedRecommendation(
            id=f"synthetic-{index}",
            priority=priorities[index % 4],
            impact=50 + index,
            estimated_score_improvement=index % 20,
        )
        for index in range(count)
    ]


def _explode(ctx):
    raise RuntimeError("generator bug")


class RecommendationTests(unittest.TestCase):
    def test_sparse_cv_gets_ranked_recommendations(self):
        ctx = _context(_sparse_cv(), ["Python", "SQL", "Excel"], industry="technology")
        recs = RecommendationService().generate_prioritized_recommendations(ctx)

        self.assertLessEqual(len(recs), 15)
        ranks = [rank_value(rec) for rec in recs]
        self.assertEqual(ranks, sorted(ranks, reverse=True))

        by_id = {rec.id: rec for rec in recs}
        self.assertEqual(by_id["structure-missing-sections"].priority, "critical")
        self.assertIn("keywords-missing", by_id)
        self.assertEqual(by_id["keywords-missing"].keywords, ["Python", "SQL"])
        self.assertIn("structure-dates", by_id)
        self.assertEqual(recs[0].id, "structure-missing-sections")

    def test_list_is_capped_and_sorted(self):
        ranked = prioritize(_numbered(40))
        self.assertEqual(len(ranked), 15)
        ranks = [rank_value(rec) for rec in ranked]
        self.assertEqual(ranks, sorted(ranks, reverse=True))

    def test_duplicate_ids_keep_first(self):
        first = PrioritizedRecommendation(id="dup", title="first")
        second = PrioritizedRecommendation(id="dup", title="second", priority="critical")
        self.assertEqual([rec.title for rec in prioritize([first, second])], ["first"])

    def test_ties_keep_generation_order(self):
        recs = [PrioritizedRecommendation(id=f"tie-{index}") for index in range(5)]
        self.assertEqual([rec.id for rec in prioritize(recs)], [rec.id for rec in recs])

    def test_rank_value_combines_priority_impact_and_gain(self):
        rec = PrioritizedRecommendation(id="x", priority="high", impact=85, estimated_score_improvement=15)
        self.assertEqual(rank_value(rec), 75 + 30 + 15)
        rec = PrioritizedRecommendation(id="y", priority="low", impact=60, estimated_score_improvement=0)
        self.assertEqual(rank_value(rec), 25 + 10)

    def test_broken_generator_only_drops_its_own_items(self):
        ctx = _context(_sparse_cv(), ["Python"])
        service = RecommendationService((("broken", _explode), *GENERATORS))
        recs = service.generate_prioritized_recommendations(ctx)
        self.assertTrue(recs)
        self.assertNotIn("fallback-structure", [rec.id for rec in recs])

    def test_all_generators_failing_returns_fallback_set(self):
        ctx = _context(_sparse_cv(), ["Python"])
        service = RecommendationService((("a", _explode), ("b", _explode)))
        recs = service.generate_prioritized_recommendations(ctx)
        self.assertEqual([rec.id for rec in recs], [rec.id for rec in fallback_recommendations()])
        self.assertEqual(len(recs), 3)

    def test_ids_are_stable_across_runs(self):
        ctx = _context(_sparse_cv(), ["Python"])
        first = [rec.id for rec in RecommendationService().generate_prioritized_recommendations(ctx)]
        second = [rec.id for rec in RecommendationService().generate_prioritized_recommendations(ctx)]
        self.assertEqual(first, second)


if __name__ == "__main__":
    unittest.main()
