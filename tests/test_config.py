import pytest
import yaml

from siteforge.core.config import AttemptPolicy, Config

ENV_VARS = ["OPENAI_API_KEY", "OPENAI_BASE_URL", "OPENAI_TIMEOUT", "OPENAI_DISABLE_PROXY", "SITEFORGE_OFFLINE"]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = Config()
    assert config.generation.max_attempts == 3
    assert config.generation.consecutive_timeout_limit == 2
    assert [p.model_tier for p in config.generation.attempt_policies] == ["fast", "standard", "capable"]
    assert config.generation.attempt_policies[-1].prompt_variant == "compact"
    assert config.classification.chunking_word_threshold == 50


def test_policy_for_reuses_last_row():
    gen = Config().generation
    assert gen.policy_for(1).model_tier == "fast"
    assert gen.policy_for(3).model_tier == "capable"
    assert gen.policy_for(7).model_tier == "capable"


def test_from_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({
        "api": {"openai_api_key": "sk-from-file", "max_requests_per_minute": 10},
        "generation": {
            "max_attempts": 2,
            "attempt_policies": [{"model_tier": "only", "model": "gpt-4o", "timeout_seconds": 45}],
        },
        "classification": {"chunking_word_threshold": 20},
        "data": {"projects_dir": str(tmp_path / "projects")},
    }))

    config = Config.from_yaml(str(path))
    assert config.api.openai_api_key == "sk-from-file"
    assert config.api.max_requests_per_minute == 10
    assert config.generation.max_attempts == 2
    assert config.generation.attempt_policies == [AttemptPolicy("only", "gpt-4o", 45)]
    assert config.classification.chunking_word_threshold == 20
    assert config.validate() == []


def test_environment_overrides_file(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({"api": {"openai_api_key": "sk-from-file"}}))
    monkeypatch.setenv("OPENAI_API_KEY", "sk-from-env")
    monkeypatch.setenv("OPENAI_TIMEOUT", "15")
    monkeypatch.setenv("SITEFORGE_OFFLINE", "yes")

    config = Config.from_yaml(str(path))
    assert config.api.openai_api_key == "sk-from-env"
    assert config.api.openai_timeout == 15.0
    assert config.api.offline_mode is True


def test_default_reads_environment(monkeypatch):
    monkeypatch.setenv("OPENAI_DISABLE_PROXY", "1")
    monkeypatch.setenv("OPENAI_BASE_URL", "http://localhost:8000/v1")
    config = Config.default()
    assert config.api.disable_proxy is True
    assert config.api.openai_base_url == "http://localhost:8000/v1"


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        Config.from_yaml(str(tmp_path / "missing.yaml"))


def test_validate_reports_problems():
    config = Config()
    config.generation.attempt_policies.append(AttemptPolicy("odd", "m", 0, prompt_variant="tiny"))
    config.classification.page_patterns["Broken"] = "(unclosed"

    errors = config.validate()
    assert any("OPENAI_API_KEY" in e for e in errors)
    assert any("positive timeout" in e for e in errors)
    assert any("prompt_variant" in e for e in errors)
    assert any("page_patterns[Broken]" in e for e in errors)


def test_offline_mode_needs_no_key():
    config = Config()
    config.api.offline_mode = True
    assert config.validate() == []


def test_save_to_file_omits_key(tmp_path):
    config = Config()
    config.api.openai_api_key = "sk-secret"
    path = tmp_path / "saved.yaml"
    config.save_to_file(str(path))

    assert "sk-secret" not in path.read_text()
    reloaded = Config.from_yaml(str(path))
    assert reloaded.api.openai_api_key is None
    assert reloaded.generation.attempt_policies == config.generation.attempt_policies
