# backend/ticketing/redis_tools.py
import os

import redis.asyncio as redis_client

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
REDIS_KEY_PREFIX = os.getenv("REDIS_KEY_PREFIX", "ticketing")


def make_redis(url: str | None = None):
    # decode_responses so record payloads come back as str
    return redis_client.from_url(url or REDIS_URL, encoding="utf-8", decode_responses=True)


# Lua script for atomic check-all-versions-then-write-all.
# KEYS[1..n]      record hashes (fields: v = version, d = JSON payload)
# KEYS[n+1..2n]   per-collection key sets
# ARGV[1]         n
# ARGV[2..n+1]    expected versions (-1 = must not exist)
# ARGV[n+2..2n+1] JSON payloads
# ARGV[2n+2..3n+1] record keys (members of the collection sets)
# Returns 0 on success, i when the i-th expectation failed (nothing written).
CONDITIONAL_WRITE = """
local n = tonumber(ARGV[1])
for i = 1, n do
  local expected = tonumber(ARGV[1 + i])
  local current = redis.call("HGET", KEYS[i], "v")
  if expected == -1 then
    if current then
      return i
    end
  elseif (not current) or tonumber(current) ~= expected then
    return i
  end
end
for i = 1, n do
  local expected = tonumber(ARGV[1 + i])
  local version = 1
  if expected ~= -1 then
    version = expected + 1
  end
  redis.call("HSET", KEYS[i], "v", version, "d", ARGV[1 + n + i])
  redis.call("SADD", KEYS[n + i], ARGV[1 + 2 * n + i])
end
return 0
"""
