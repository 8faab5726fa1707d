import pytest

from evolver.errors import InvalidInputError
from evolver.models.generation import MutableField, MutationStrategy, MutationType
from evolver.services.mutation import (
    apply_mutation,
    coerce_locked_fields,
    generate_radical_scale,
    mutate_key,
    mutate_rhythm,
    mutate_scale,
    mutate_tempo,
    restore_locked_fields,
)
from evolver.services.randomness import make_rng
from evolver.services.synthesizer import synthesize
from evolver.services.theory import CHROMATIC, NAMED_SCALES

from conftest import ScriptedRandom, mood

FIELD_ATTRS = {
    MutableField.TEMPO: "tempo",
    MutableField.KEY: "key",
    MutableField.SCALE: "scale",
    MutableField.TIME_SIGNATURE: "time_signature",
    MutableField.EFFECTS: "effects",
    MutableField.SYNTHS: "synths",
    MutableField.PATTERNS: "patterns",
}


def strategy(mutation: MutationType, intensity: float) -> MutationStrategy:
    return MutationStrategy(type=mutation, description=f"{mutation.value} test", intensity=intensity)


@pytest.fixture
def layered_params():
    """Parameters with a bass and a melody layer."""
    params = synthesize(mood(complexity=0.5, chaos=0.2), "two layers", make_rng(11))
    assert len(params.patterns) == 2
    return params


class TestStructural:
    def test_simplify_beats_add(self, layered_params):
        """Test that intensity 0.65 on two layers drops one and adds none."""
        result = apply_mutation(layered_params, strategy(MutationType.STRUCTURAL, 0.65), [], make_rng(0))
        assert len(result.patterns) == 1
        assert result.patterns[0] == layered_params.patterns[0]

    def test_adds_copy_of_first_layer(self, layered_params):
        single = layered_params.model_copy(deep=True)
        single.patterns = single.patterns[:1]
        result = apply_mutation(single, strategy(MutationType.STRUCTURAL, 0.75), [], make_rng(0))
        assert len(result.patterns) == 2
        assert result.patterns[1] == result.patterns[0]
        assert result.patterns[1] is not result.patterns[0]

    def test_low_intensity_leaves_layers(self, layered_params):
        result = apply_mutation(layered_params, strategy(MutationType.STRUCTURAL, 0.5), [], make_rng(0))
        assert len(result.patterns) == 2


class TestLocking:
    @pytest.mark.parametrize("mutation", list(MutationType))
    @pytest.mark.parametrize("field", list(MutableField))
    def test_locked_field_unchanged(self, layered_params, mutation, field):
        """Test that a locked field survives every mutation type untouched."""
        attr = FIELD_ATTRS[field]
        for seed in range(5):
            result = apply_mutation(layered_params, strategy(mutation, 0.95), [field], make_rng(seed))
            assert getattr(result, attr) == getattr(layered_params, attr)

    @pytest.mark.parametrize("mutation", list(MutationType))
    def test_everything_locked_is_identity(self, layered_params, mutation):
        result = apply_mutation(layered_params, strategy(mutation, 0.9), list(MutableField), make_rng(3))
        assert result == layered_params

    def test_string_lock_names(self, layered_params):
        result = apply_mutation(layered_params, strategy(MutationType.RHYTHMIC, 0.9), ["tempo"], make_rng(1))
        assert result.tempo == layered_params.tempo

    def test_unknown_lock_name(self):
        with pytest.raises(InvalidInputError):
            coerce_locked_fields(["tempo", "melody"])


class TestCopySemantics:
    @pytest.mark.parametrize("mutation", list(MutationType))
    def test_input_not_mutated(self, layered_params, mutation):
        """Test that the parent's parameters are unchanged after mutation."""
        before = layered_params.model_copy(deep=True)
        apply_mutation(layered_params, strategy(mutation, 0.95), [], make_rng(8))
        assert layered_params == before


class TestHelpers:
    def test_tempo_clamped(self):
        assert mutate_tempo(199.0, 1.0, ScriptedRandom([0.99])) == 200.0
        assert mutate_tempo(41.0, 1.0, ScriptedRandom([0.0])) == 40.0

    def test_subtle_key_change_moves_up_a_fifth(self):
        assert mutate_key("C", 0.3, make_rng(0)) == "G"
        assert mutate_key("Am", 0.3, make_rng(0)) == "Em"
        assert mutate_key("F#m", 0.3, make_rng(0)) == "C#m"

    def test_subtle_scale_change_swaps_one_pitch(self):
        scale = list(NAMED_SCALES["major"])
        result = mutate_scale(scale, 0.2, ScriptedRandom([0.0, 0.99]))
        assert result == ["B", "D", "E", "F", "G", "A", "B"]
        assert scale == list(NAMED_SCALES["major"])

    def test_dramatic_scale_change_picks_another_mode(self):
        scale = list(NAMED_SCALES["major"])
        for seed in range(10):
            result = mutate_scale(scale, 0.8, make_rng(seed))
            assert tuple(result) in NAMED_SCALES.values()
            assert result != scale

    def test_rhythm_keeps_length(self):
        durations = ["4n", "8n", "4n", "2n", "8n"]
        assert len(mutate_rhythm(durations, 0.2, make_rng(1))) == 5
        assert len(mutate_rhythm(durations, 0.9, make_rng(1))) == 5

    @pytest.mark.parametrize("seed", range(10))
    def test_radical_scale_shape(self, seed):
        scale = generate_radical_scale(make_rng(seed))
        assert 5 <= len(scale) <= 7
        assert all(pitch in CHROMATIC for pitch in scale)


class TestClamping:
    @pytest.mark.parametrize("seed", range(10))
    def test_timbral_and_textural_stay_in_range(self, layered_params, seed):
        params = layered_params
        rng = make_rng(seed)
        for _ in range(20):
            params = apply_mutation(params, strategy(MutationType.TIMBRAL, 1.0), [], rng)
            params = apply_mutation(params, strategy(MutationType.TEXTURAL, 1.0), [], rng)
        assert 0.1 <= params.effects.reverb.room_size <= 0.9
        assert 0.0 <= params.effects.delay.feedback <= 0.9
        assert 0.0 <= params.effects.reverb.wet <= 1.0
        assert 0.0 <= params.effects.delay.wet <= 1.0
        for synth in params.synths:
            assert 0.001 <= synth.envelope.attack <= 2.0
            assert 0.01 <= synth.envelope.release <= 5.0

    @pytest.mark.parametrize("seed", range(10))
    def test_radical_tempo_in_range(self, layered_params, seed):
        result = apply_mutation(layered_params, strategy(MutationType.RADICAL, 1.0), [], make_rng(seed))
        assert 40 <= result.tempo <= 200


class TestRestoreLockedFields:
    def test_locked_values_come_back(self, layered_params):
        changed = layered_params.model_copy(deep=True)
        changed.tempo = 170.0
        changed.key = "F#"
        changed.effects.reverb.wet = 0.99

        restored = restore_locked_fields(changed, layered_params, [MutableField.TEMPO, "effects"])
        assert restored.tempo == layered_params.tempo
        assert restored.effects == layered_params.effects
        assert restored.key == "F#"
        assert changed.tempo == 170.0

    def test_no_locks_is_a_copy(self, layered_params):
        restored = restore_locked_fields(layered_params, layered_params, [])
        assert restored == layered_params
        assert restored is not layered_params
