# tests/test_cli.py
# ============================================================
# Unit Tests: CLI Output & Benchmark Script
# ============================================================
# `show` is driven through Typer's CliRunner against a record in
# a temporary key-value store. The benchmark is called directly
# with a loader that cannot load any engine.
# ============================================================

import asyncio

import pytest
from typer.testing import CliRunner

from cli.main import app
from config.settings import settings
from conftest import make_pdf
from resumind.errors import LoadFailure
from resumind.pipeline.models import PipelineRecord
from resumind.services.storage import FileKeyValueStore
from scripts import benchmark

runner = CliRunner()


def _save(kv_dir, record: PipelineRecord) -> None:
    asyncio.run(FileKeyValueStore(kv_dir).set(f"record-{record.id}", record.to_json()))


class TestShowCommand:

    @pytest.fixture(autouse=True)
    def kv_dir(self, tmp_path, monkeypatch):
        monkeypatch.setattr(settings, "kv_dir", str(tmp_path))
        return tmp_path

    def test_scores_listed_in_category_order(self, kv_dir):
        feedback = {
            "skills": {"score": 55, "tips": []},
            "overallScore": 71,
            "ATS": {"score": 90, "tips": []},
            "toneAndStyle": {"score": 64, "tips": []},
            "notes": {"score": 1},
        }
        _save(kv_dir, PipelineRecord(
            id="abc", resume_path="/r/1", image_path="/i/1",
            company_name="Acme", job_title="Backend Engineer", feedback=feedback,
        ))

        result = runner.invoke(app, ["show", "abc"])

        assert result.exit_code == 0
        out = result.output
        assert out.index("Overall") < out.index("ATS") < out.index("toneAndStyle") < out.index("skills")
        assert "notes" not in out

    def test_pending_feedback(self, kv_dir):
        _save(kv_dir, PipelineRecord(id="p1", resume_path="/r/1", image_path="/i/1"))

        result = runner.invoke(app, ["show", "p1"])

        assert result.exit_code == 0
        assert "pending" in result.output

    def test_missing_record_exits_nonzero(self):
        result = runner.invoke(app, ["show", "nope"])
        assert result.exit_code == 1


class TestBenchmarkScript:

    @pytest.mark.asyncio
    async def test_load_failure_is_reported_not_raised(self, tmp_path, monkeypatch, capsys):
        class BrokenLoader:
            async def acquire(self, strategy="primary"):
                raise LoadFailure(
                    "No rendering engine could be loaded",
                    causes={"primary": ImportError("no fitz"), "fallback": FileNotFoundError("no pdftoppm")},
                )

        converted = []

        async def fake_convert(*args, **kwargs):
            converted.append(args)

        monkeypatch.setattr(benchmark, "engine_loader", BrokenLoader())
        monkeypatch.setattr(benchmark, "convert_page", fake_convert)
        pdf = tmp_path / "cv.pdf"
        pdf.write_bytes(make_pdf())

        ok = await benchmark.run_benchmark(str(pdf), [1.0], runs=1)

        assert ok is False
        assert converted == []
        out = capsys.readouterr().out
        assert "No rendering engine could be loaded" in out
        assert "no pdftoppm" in out
