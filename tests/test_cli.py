"""
Tests for the command-line interface
"""

import json

import pytest

from construction_stages.__main__ import main


@pytest.fixture
def payload_file(tmp_path):
    def write(payload):
        path = tmp_path / "payload.json"
        path.write_text(json.dumps(payload))
        return str(path)
    return write


class TestValidateCommand:
    """Tests for `construction-stages validate`"""

    def test_valid_payload(self, payload_file, capsys):
        """Should print the record with defaults applied"""
        path = payload_file({"name": "Foundation", "startDate": "2024-01-01T00:00:00Z"})
        assert main(["--log-level", "WARNING", "validate", path]) == 0
        record = json.loads(capsys.readouterr().out)
        assert record["status"] == "NEW"

    def test_debug_logs_stay_off_stdout(self, payload_file, capsys):
        """Should keep stdout parseable as JSON at any log level"""
        path = payload_file({"name": "Foundation", "startDate": "2024-01-01T00:00:00Z"})
        assert main(["--log-level", "DEBUG", "validate", path]) == 0
        captured = capsys.readouterr()
        assert json.loads(captured.out)["status"] == "NEW"
        assert "Logging configured" in captured.err

    def test_invalid_payload(self, payload_file, capsys):
        path = payload_file({"name": "", "startDate": "2024-01-01T00:00:00Z", "color": "blue"})
        assert main(["validate", path]) == 1
        out = capsys.readouterr().out
        assert "name: The name field is required." in out
        assert "color: The color field must be a valid HEX color code." in out

    def test_not_an_object(self, payload_file):
        assert main(["validate", payload_file(["a"])]) == 2

    def test_missing_file(self, tmp_path):
        assert main(["validate", str(tmp_path / "nope.json")]) == 2


class TestInitDbCommand:
    def test_creates_database(self, tmp_path):
        db_path = tmp_path / "data" / "stages.db"
        assert main(["init-db", "--db", str(db_path)]) == 0
        assert db_path.exists()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
