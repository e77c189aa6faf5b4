"""
Unit tests for Settings and the component-config helpers.
"""

import pytest
from pydantic import ValidationError

from config import Settings, get_settings
from logos_core.adaptive.curriculum_sequencer import OrderingMode


class TestSettingsDefaults:
    def test_defaults(self):
        settings = Settings()
        assert settings.irt_min_responses == 3
        assert settings.fsrs_desired_retention == 0.9
        assert settings.fsrs_latency_threshold_ms == 3000

    def test_get_settings_cached(self):
        assert get_settings() is get_settings()


class TestHelpers:
    def test_irt_config(self):
        config = Settings(irt_max_iterations=10).get_irt_config()
        assert config.max_iterations == 10
        assert config.min_responses == 3

    def test_fsrs_config(self):
        config = Settings().get_fsrs_config()
        assert config.initial_stability == (0.4, 0.9, 2.4, 5.8)
        assert config.maximum_interval_days == 365

    def test_priority_weights(self):
        weights = Settings(priority_weight_frequency=0.5).get_priority_weights()
        assert weights.frequency == 0.5
        assert weights.novelty == pytest.approx(0.10)

    def test_urgency_config(self):
        assert Settings().get_urgency_config().new_item_urgency == 1.5

    def test_sequencer_config(self):
        config = Settings(curriculum_ordering="frequency").get_sequencer_config()
        assert config.ordering == OrderingMode.FREQUENCY
        assert config.prerequisite_stage == 2


class TestEnvironment:
    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("LOGOS_FSRS_DESIRED_RETENTION", "0.85")
        monkeypatch.setenv("LOGOS_FSRS_INITIAL_STABILITY", "[1.0, 2.0, 3.0, 4.0]")
        settings = Settings()
        assert settings.fsrs_desired_retention == 0.85
        assert settings.fsrs_initial_stability == [1.0, 2.0, 3.0, 4.0]

    def test_level_adjusted_ranking_flag(self, monkeypatch):
        assert Settings().priority_level_adjusted is False
        monkeypatch.setenv("LOGOS_PRIORITY_LEVEL_ADJUSTED", "true")
        assert Settings().priority_level_adjusted is True


class TestValidation:
    def test_non_increasing_stability(self):
        with pytest.raises(ValidationError):
            Settings(fsrs_initial_stability=[1.0, 0.5, 2.0, 3.0])

    def test_difficulty_range(self):
        with pytest.raises(ValidationError):
            Settings(fsrs_initial_difficulty=[11.0, 6.5, 5.0, 3.5])

    def test_retention_range(self):
        with pytest.raises(ValidationError):
            Settings(fsrs_desired_retention=1.0)
