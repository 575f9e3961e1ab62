import httpx
import pytest

from repo_extractor.domain.entities import DiscoveryPolicy
from repo_extractor.infrastructure.config import Settings
from repo_extractor.infrastructure.memory_log_store import MemoryLogStore
from repo_extractor.interface.dependencies import build_use_case


@pytest.mark.parametrize(
    "order",
    [
        ["tree", "scrape", "clone"],
        ["clone", "tree", "scrape"],
        ["scrape"],
    ],
)
@pytest.mark.asyncio
async def test_strategies_follow_discovery_order(order: list[str]) -> None:
    settings = Settings(discovery_order=order)
    async with httpx.AsyncClient() as client:
        use_case = build_use_case(settings, client, MemoryLogStore())

    assert [s.name for s in use_case._strategies] == order


@pytest.mark.asyncio
async def test_settings_reach_the_use_case() -> None:
    settings = Settings(discovery_policy=DiscoveryPolicy.MOST_FILES, max_files=7, fetch_concurrency=3)
    async with httpx.AsyncClient() as client:
        use_case = build_use_case(settings, client, None)

    assert use_case._policy is DiscoveryPolicy.MOST_FILES
    assert use_case._max_files == 7
    assert use_case._concurrency == 3
