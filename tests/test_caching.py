"""Tests for Redis caching implementation."""

from unittest.mock import MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.ext.asyncio import AsyncSession

from vetflow.core.redis_client import CacheManager
from vetflow.services.user_service import UserService


def test_cache_manager_get_json():
    """Test CacheManager get_json method."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis)

    # Cache miss
    mock_redis.get.return_value = None
    assert cache_manager.get_json("test_key") is None
    mock_redis.get.assert_called_once_with("test_key")

    # Cache hit
    mock_redis.reset_mock()
    mock_redis.get.return_value = '{"name": "Test", "value": 123}'
    assert cache_manager.get_json("test_key") == {"name": "Test", "value": 123}


def test_cache_manager_set_json():
    """Test CacheManager set_json method."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis)

    assert cache_manager.set_json("test_key", {"name": "Test"}) is True
    mock_redis.set.assert_called_once()

    mock_redis.reset_mock()
    assert cache_manager.set_json("test_key", {"name": "Test"}, ttl=300) is True
    mock_redis.setex.assert_called_once()


def test_cache_manager_delete_pattern():
    """Test CacheManager delete_pattern method."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis)
    mock_redis.scan_iter.return_value = ["veterinarian:1", "veterinarian:list:active"]
    mock_redis.delete.return_value = 2

    assert cache_manager.delete_pattern("veterinarian:*") == 2
    mock_redis.scan_iter.assert_called_once_with(match="veterinarian:*")
    mock_redis.delete.assert_called_once_with("veterinarian:1", "veterinarian:list:active")


def test_cache_manager_namespaces_keys():
    mock_redis = MagicMock()
    mock_redis.get.return_value = None
    cache_manager = CacheManager(redis_client=mock_redis, prefix="vetflow")

    cache_manager.get_json("veterinarian:1")
    cache_manager.set_json("veterinarian:1", {"id": 1}, ttl=60)

    mock_redis.get.assert_called_once_with("vetflow:veterinarian:1")
    assert mock_redis.setex.call_args.args[:2] == ("vetflow:veterinarian:1", 60)


def test_cache_manager_fails_open():
    """Redis errors read as a miss and never raise."""
    mock_redis = MagicMock()
    mock_redis.get.side_effect = RedisConnectionError("down")
    mock_redis.setex.side_effect = RedisConnectionError("down")
    mock_redis.delete.side_effect = RedisConnectionError("down")
    cache_manager = CacheManager(redis_client=mock_redis)

    assert cache_manager.get_json("key") is None
    assert cache_manager.set_json("key", {"a": 1}, ttl=10) is False
    assert cache_manager.delete("key") is False


@pytest.mark.asyncio
async def test_veterinarian_list_is_cached(db_session: AsyncSession, vet_user: dict):
    """The second lookup is served from the cache."""
    mock_redis = MagicMock()
    mock_redis.get.return_value = None
    service = UserService(CacheManager(redis_client=mock_redis))

    veterinarians = await service.list_veterinarians(db_session)

    assert [v["id"] for v in veterinarians] == [vet_user["id"]]
    key, ttl, _ = mock_redis.setex.call_args.args
    assert key == "veterinarian:list:active"
    assert ttl == UserService.VETERINARIAN_LIST_CACHE_TTL

    mock_redis.get.return_value = '[{"id": 42, "username": "cached"}]'
    cached = await service.list_veterinarians(db_session)
    assert cached == [{"id": 42, "username": "cached"}]


@pytest.mark.asyncio
async def test_user_update_invalidates_veterinarian_cache(db_session: AsyncSession, vet_user: dict):
    from vetflow.schemas.users import UserUpdate

    mock_redis = MagicMock()
    mock_redis.scan_iter.return_value = ["veterinarian:list:active"]
    service = UserService(CacheManager(redis_client=mock_redis))

    await service.update_user(db_session, vet_user["id"], UserUpdate(first_name="Annie"))

    mock_redis.scan_iter.assert_called_once_with(match="veterinarian:*")
    mock_redis.delete.assert_called_once_with("veterinarian:list:active")
