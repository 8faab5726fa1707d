import pytest

from evolver.models.generation import FitnessScores, MutationType
from evolver.services.mutation_selector import describe_mutation, match_feedback, select_strategy


def scores(**overrides) -> FitnessScores:
    values = dict(emotional_resonance=0.8, coherence=0.8, interest=0.8, surprise=0.8, technical_quality=0.8)
    values.update(overrides)
    return FitnessScores(**values)


class TestFeedbackPrecedence:
    @pytest.mark.parametrize("temperature", [0.0, 0.5, 0.95, 1.0])
    @pytest.mark.parametrize("weak", ["emotional_resonance", "coherence", "interest", "surprise"])
    def test_darker_feedback_always_harmonic(self, temperature, weak):
        """Test that "darker" wins over both temperature and fitness."""
        strategy = select_strategy(scores(**{weak: 0.1}), temperature, "make it darker and heavier")
        assert strategy.type == MutationType.HARMONIC
        assert strategy.intensity == pytest.approx(0.6)

    @pytest.mark.parametrize(
        "text, expected, intensity",
        [
            ("MORE ENERGY please", MutationType.RHYTHMIC, 0.7),
            ("a bit faster", MutationType.RHYTHMIC, 0.7),
            ("sadder", MutationType.HARMONIC, 0.6),
            ("simpler", MutationType.STRUCTURAL, 0.5),
            ("less going on", MutationType.STRUCTURAL, 0.5),
            ("get weird", MutationType.RADICAL, 0.9),
            ("something experimental", MutationType.RADICAL, 0.9),
        ],
    )
    def test_feedback_table(self, text, expected, intensity):
        strategy = select_strategy(scores(), 0.2, text)
        assert strategy.type == expected
        assert strategy.intensity == pytest.approx(intensity)

    def test_first_rule_wins(self):
        """Test that the earlier rule wins when several phrases appear."""
        assert match_feedback("faster but darker").mutation == MutationType.RHYTHMIC
        assert match_feedback("darker and weird").mutation == MutationType.HARMONIC

    def test_unrecognised_feedback_falls_through(self):
        assert match_feedback("lovely") is None
        strategy = select_strategy(scores(coherence=0.1), 0.2, "lovely")
        assert strategy.type == MutationType.STRUCTURAL


class TestTemperature:
    def test_high_temperature_goes_radical(self):
        strategy = select_strategy(scores(surprise=0.1), 0.9)
        assert strategy.type == MutationType.RADICAL
        assert strategy.intensity == pytest.approx(0.97)
        assert strategy.description == "dramatic radical mutation"

    def test_threshold_is_exclusive(self):
        assert select_strategy(scores(surprise=0.1), 0.8).type == MutationType.HARMONIC


class TestWeakestDimension:
    @pytest.mark.parametrize(
        "weak, expected",
        [
            ("emotional_resonance", MutationType.TIMBRAL),
            ("coherence", MutationType.STRUCTURAL),
            ("interest", MutationType.RHYTHMIC),
            ("surprise", MutationType.HARMONIC),
            ("technical_quality", MutationType.TEXTURAL),
        ],
    )
    def test_addresses_weakest_dimension(self, weak, expected):
        strategy = select_strategy(scores(**{weak: 0.1}), 0.5)
        assert strategy.type == expected
        assert strategy.intensity == pytest.approx(0.5)
        assert strategy.targets

    def test_intensity_scales_with_temperature(self):
        assert select_strategy(scores(interest=0.1), 0.0).intensity == pytest.approx(0.3)
        assert select_strategy(scores(interest=0.1), 0.75).intensity == pytest.approx(0.6)


class TestDescribeMutation:
    @pytest.mark.parametrize(
        "intensity, label",
        [(0.2, "subtle"), (0.4, "subtle"), (0.5, "moderate"), (0.7, "moderate"), (0.71, "dramatic")],
    )
    def test_intensity_labels(self, intensity, label):
        assert describe_mutation(MutationType.TIMBRAL, intensity) == f"{label} timbral mutation"
