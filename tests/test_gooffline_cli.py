"""Tests for the command line entry point."""

import logging
from unittest.mock import patch

import pytest

import gooffline
from args import parse_args
from constants import ExitCodes
from resolution.orchestrator import OfflineResolver
from resolution.session import init_sessions

from conftest import MAIN_REPO, PLUGIN_REPO, FakeRepositoryClient

CONFIG = """
fail_on_errors: {fail}
reactor:
  - group_id: com.x
    artifact_id: app
    version: "1.0"
    dependencies:
      - group_id: com.y
        artifact_id: lib
        version: "2.0"
"""


def _write(tmp_path, fail="true"):
    path = tmp_path / "gooffline.yml"
    path.write_text(CONFIG.format(fail=fail), encoding="utf-8")
    return str(path)


def _fake_resolver(client):
    def build(config):
        return OfflineResolver(
            init_sessions(client, [MAIN_REPO], [PLUGIN_REPO]),
            max_workers=config.max_workers,
            download_batch_size=config.download_batch_size,
        )
    return build


def test_parse_args():
    args = parse_args(["-c", "offline.yml", "--loglevel", "DEBUG"])
    assert args.CONFIG == "offline.yml"
    assert args.LOG_LEVEL == "DEBUG"
    assert args.LOG_FILE is None


def test_config_is_required():
    with pytest.raises(SystemExit):
        parse_args([])


def test_success(tmp_path):
    client = FakeRepositoryClient()
    with patch("gooffline.build_resolver", side_effect=_fake_resolver(client)):
        assert gooffline.main(["-c", _write(tmp_path)]) == ExitCodes.SUCCESS.value
    assert client.fetched()["central"]


def test_download_errors_fail_the_run(tmp_path):
    client = FakeRepositoryClient(missing=["com.y:lib:jar:2.0"])
    with patch("gooffline.build_resolver", side_effect=_fake_resolver(client)):
        assert gooffline.main(["-c", _write(tmp_path)]) == ExitCodes.DOWNLOAD_ERRORS.value


def test_errors_are_tolerated_without_fail_on_errors(tmp_path):
    client = FakeRepositoryClient(missing=["com.y:lib:jar:2.0"])
    with patch("gooffline.build_resolver", side_effect=_fake_resolver(client)):
        assert gooffline.main(["-c", _write(tmp_path, fail="false")]) == ExitCodes.SUCCESS.value


def test_invalid_configuration(tmp_path):
    assert gooffline.main(["-c", str(tmp_path / "missing.yml")]) == ExitCodes.FILE_ERROR.value


def test_log_file(tmp_path):
    log_file = tmp_path / "run.log"
    client = FakeRepositoryClient()
    root = logging.getLogger()
    before = list(root.handlers)
    try:
        with patch("gooffline.build_resolver", side_effect=_fake_resolver(client)):
            gooffline.main(["-c", _write(tmp_path), "--logfile", str(log_file)])
    finally:
        for handler in root.handlers[:]:
            if handler not in before:
                root.removeHandler(handler)
                handler.close()
    assert "Logging to file" in log_file.read_text(encoding="utf-8")
