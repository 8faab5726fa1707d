import pytest

from evolver.models.generation import FitnessScores
from evolver.services.fitness import (
    FITNESS_DIMENSIONS,
    assess_surprise,
    evaluate,
    weakest_dimension,
)
from evolver.services.randomness import make_rng
from evolver.services.synthesizer import synthesize

from conftest import mood


class TestEvaluate:
    @pytest.mark.parametrize("seed", range(10))
    def test_scores_within_unit_interval(self, seed):
        rng = make_rng(seed)
        emotion = mood(energy=rng.random(), chaos=rng.random(), complexity=rng.random(), space=rng.random())
        scores = evaluate(synthesize(emotion, "p", rng), emotion)
        for name in FITNESS_DIMENSIONS:
            assert 0.0 <= getattr(scores, name) <= 1.0

    def test_deterministic(self, root):
        """Test that scoring the same inputs twice gives the same scores."""
        first = evaluate(root.music_params, root.mood)
        second = evaluate(root.music_params, root.mood)
        assert first == second

    def test_tempo_matching_energy_scores_higher(self, root):
        params = root.music_params.model_copy(deep=True)
        params.tempo = 60 + root.mood.energy * 120
        matched = evaluate(params, root.mood).emotional_resonance
        params.tempo = 200
        assert evaluate(params, root.mood).emotional_resonance < matched


class TestSurprise:
    def test_common_time_major_scale(self, root):
        params = root.music_params.model_copy(deep=True)
        params.time_signature = (4, 4)
        params.scale = ["C", "D", "E", "F", "G", "A", "B"]
        assert assess_surprise(params) == pytest.approx(0.3)

    def test_irregular_meter_and_short_scale(self, root):
        params = root.music_params.model_copy(deep=True)
        params.time_signature = (7, 8)
        params.scale = ["C", "D", "E", "G", "A"]
        assert assess_surprise(params) == pytest.approx(0.7)


class TestWeakestDimension:
    def test_lowest_score(self):
        scores = FitnessScores(
            emotional_resonance=0.8, coherence=0.7, interest=0.6, surprise=0.2, technical_quality=0.9
        )
        assert weakest_dimension(scores) == "surprise"

    def test_ties_break_in_fixed_order(self):
        scores = FitnessScores(
            emotional_resonance=0.5, coherence=0.5, interest=0.5, surprise=0.5, technical_quality=0.5
        )
        assert weakest_dimension(scores) == "emotional_resonance"
