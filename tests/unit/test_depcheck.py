from __future__ import annotations

import subprocess
import sys
from pathlib import Path

SCRIPT_PATH = Path(__file__).resolve().parents[2] / "tools" / "depcheck.py"


def _run(*args: str) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        [sys.executable, str(SCRIPT_PATH), *args],
        capture_output=True,
        text=True,
        check=False,
    )


def test_depcheck_fails_on_framework_import_in_domain(tmp_path: Path) -> None:
    domain_dir = tmp_path / "domain"
    domain_dir.mkdir(parents=True)
    violating_file = domain_dir / "model.py"
    violating_file.write_text("import sqlalchemy\n", encoding="utf-8")

    result = _run("--src", str(tmp_path), "--layer", "domain")

    combined_output = f"{result.stdout}\n{result.stderr}"
    assert result.returncode != 0
    assert "sqlalchemy" in combined_output
    assert str(violating_file) in combined_output


def test_depcheck_keeps_application_off_infrastructure(tmp_path: Path) -> None:
    application_dir = tmp_path / "application"
    application_dir.mkdir(parents=True)
    (application_dir / "ok.py").write_text("from pydantic import BaseModel\n", encoding="utf-8")
    (application_dir / "bad.py").write_text(
        "from rms.infrastructure.db.session import get_engine\n", encoding="utf-8"
    )

    result = _run("--src", str(tmp_path), "--layer", "application")

    assert result.returncode != 0
    assert "rms.infrastructure.db.session" in result.stdout
    assert "pydantic" not in result.stdout


def test_depcheck_passes_on_project_sources() -> None:
    result = _run()
    assert result.returncode == 0, result.stdout
