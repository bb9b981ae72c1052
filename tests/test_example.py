import os

from shardcache.cache import Config, DiskCache
from shardcache.example import main


def _run(tmp_path, capsys):
    cache_dir = tmp_path / "cache"
    status = main(["--cache-dir", str(cache_dir)])
    return status, capsys.readouterr().out, cache_dir


def test_main_returns_zero(tmp_path, capsys):
    status, _, _ = _run(tmp_path, capsys)
    assert status == 0


def test_main_prints_values_in_order(tmp_path, capsys):
    _, out, _ = _run(tmp_path, capsys)
    markers = [
        "DiskCache example started...",
        "1. Basic Set and Get:",
        "Got: Hello, World!",
        "2. Overwrite:",
        "After overwrite: Hello, DiskCache!",
        "3. Delete:",
        "Key deleted successfully (expected error):",
        "Example completed successfully!",
    ]
    positions = [out.index(marker) for marker in markers]
    assert positions == sorted(positions)


def test_main_leaves_no_entry_behind(tmp_path, capsys):
    _, _, cache_dir = _run(tmp_path, capsys)
    assert cache_dir.is_dir()
    assert not (cache_dir / "greeting").exists()
    with DiskCache(Config(cache_dir, 1024, 3600, 3600)) as cache:
        assert len(cache) == 0
        assert cache.size() == 0


def test_main_can_run_twice_on_same_directory(tmp_path, capsys):
    _run(tmp_path, capsys)
    status, out, _ = _run(tmp_path, capsys)
    assert status == 0
    assert "Got: Hello, World!" in out


def test_main_uses_default_directory(tmp_path, capsys, monkeypatch):
    monkeypatch.chdir(tmp_path)
    status = main([])
    capsys.readouterr()
    assert status == 0
    assert os.path.isdir(tmp_path / "example_cache")