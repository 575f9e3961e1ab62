import pytest
from pydantic import ValidationError

from repo_extractor.domain.entities import DiscoveryPolicy, HeaderStyle
from repo_extractor.infrastructure.config import Settings, get_settings


def test_defaults(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    settings = get_settings()

    assert settings.github_token is None
    assert settings.branch_candidates == ["main", "master", "develop"]
    assert settings.discovery_order == ["tree", "scrape", "clone"]
    assert settings.discovery_policy is DiscoveryPolicy.FIRST_NON_EMPTY
    assert settings.header_style is HeaderStyle.SEPARATOR
    assert settings.max_lines_per_file == 2000
    assert settings.scrape_max_depth == 20


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_example")
    monkeypatch.setenv("DISCOVERY_ORDER", '["clone", "tree"]')
    monkeypatch.setenv("DISCOVERY_POLICY", "most_files")
    monkeypatch.setenv("MAX_FILES", "50")

    settings = get_settings()

    assert settings.github_token is not None
    assert settings.github_token.get_secret_value() == "ghp_example"
    assert "ghp_example" not in repr(settings)
    assert settings.discovery_order == ["clone", "tree"]
    assert settings.discovery_policy is DiscoveryPolicy.MOST_FILES
    assert settings.max_files == 50


@pytest.mark.parametrize("order", [["tree", "ftp"], ["tree", "tree"], []])
def test_invalid_discovery_order(order: list[str]) -> None:
    with pytest.raises(ValidationError):
        Settings(discovery_order=order)


def test_blank_branch_candidates_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(branch_candidates=["  "])
