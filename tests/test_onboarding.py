"""Tests for dirbak.onboarding module."""

from unittest.mock import MagicMock, patch

import pytest

from dirbak.archive import seven_zip_executable
from dirbak.onboarding import (
    EnvironmentCheckResult,
    check_python,
    check_seven_zip,
    display_environment_checks,
    run_doctor,
    run_environment_checks,
    run_init,
)


@pytest.fixture
def temp_dirbak_home(tmp_path, monkeypatch):
    """Set DIRBAK_HOME to a temporary directory."""
    home = tmp_path / ".dirbak"
    monkeypatch.setenv("DIRBAK_HOME", str(home))
    return home


def test_check_python():
    """check_python should always succeed."""
    result = check_python()
    assert result.available is True
    assert result.name == "Python"
    assert result.version


def test_check_seven_zip_on_path():
    """check_seven_zip returns available=True when 7z is found on PATH."""
    with patch("dirbak.onboarding.shutil.which", return_value="/usr/bin/7z"):
        with patch("dirbak.onboarding.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(stdout="\n7-Zip 23.01 (x64)\n", stderr="")
            result = check_seven_zip()
            assert result.available is True
            assert "23.01" in result.version


def test_check_seven_zip_missing_from_path():
    """check_seven_zip returns available=False when 7z is not found."""
    with patch("dirbak.onboarding.shutil.which", return_value=None):
        result = check_seven_zip()
        assert result.available is False
        assert "--seven-zip-dir" in result.message


def test_check_seven_zip_in_directory(tmp_path):
    """An explicit directory must contain the executable."""
    missing = check_seven_zip(tmp_path)
    assert missing.available is False
    assert str(seven_zip_executable(tmp_path)) in missing.message

    seven_zip_executable(tmp_path).write_text("")
    with patch("dirbak.onboarding.subprocess.run", side_effect=OSError("not executable")):
        found = check_seven_zip(tmp_path)
    assert found.available is True
    assert found.version == "unknown"


def test_run_environment_checks():
    with patch("dirbak.onboarding.shutil.which", return_value=None):
        checks = run_environment_checks()
    assert [check.name for check in checks] == ["Python", "7-Zip"]


def test_display_environment_checks():
    checks = [
        EnvironmentCheckResult(name="Python", available=True, version="3.12.0", message=""),
        EnvironmentCheckResult(name="7-Zip", available=False, version="", message="missing"),
    ]
    assert display_environment_checks(checks) is False
    assert display_environment_checks(checks[:1]) is True


def test_run_init_is_idempotent(temp_dirbak_home):
    run_init()
    (temp_dirbak_home / "blacklist.txt").write_text("dist/*\n")
    run_init()
    assert (temp_dirbak_home / "config.yaml").exists()
    assert (temp_dirbak_home / "blacklist.txt").read_text() == "dist/*\n"


def test_run_doctor_reports_missing_seven_zip(temp_dirbak_home):
    with patch("dirbak.onboarding.shutil.which", return_value=None):
        assert run_doctor() is False
