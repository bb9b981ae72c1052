[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "shardcache"
version = "0.1.0"
description = "A sharded on-disk byte cache with LRU eviction and TTL expiration"
requires-python = ">=3.10"
dependencies = []
keywords = ["cache", "disk-cache", "lru", "ttl", "sharding"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Topic :: System :: Filesystems",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
shardcache-example = "shardcache.example:main"

[tool.hatch.build.targets.wheel]
packages = ["shardcache"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
