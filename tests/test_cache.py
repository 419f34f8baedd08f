import pytest

from jobengine.cache import RedisCache


class _FakeRedis:
    def __init__(self, keys):
        self.keys = keys
        self.scans = []
        self.closed = False

    async def scan_iter(self, match=None, count=None):
        self.scans.append((match, count))
        prefix = (match or "*").rstrip("*")
        for key in self.keys:
            if key.decode().startswith(prefix):
                yield key

    async def exists(self, key):
        return int(key.encode() in self.keys)

    async def aclose(self):
        self.closed = True


@pytest.mark.anyio
async def test_keys_matching_uses_scan_and_decodes():
    client = _FakeRedis([b"blacklist:a", b"blacklist:b", b"session:c"])
    cache = RedisCache(client, scan_count=50)

    keys = await cache.keys_matching("blacklist:*")

    assert keys == ["blacklist:a", "blacklist:b"]
    assert client.scans == [("blacklist:*", 50)]


@pytest.mark.anyio
async def test_exists_and_close():
    client = _FakeRedis([b"blacklist:a"])
    cache = RedisCache(client)

    assert await cache.exists("blacklist:a") is True
    assert await cache.exists("blacklist:gone") is False

    await cache.close()
    assert client.closed
