from __future__ import annotations

import tempfile
from pathlib import Path

from typer.testing import CliRunner

from gridpdf import config
from gridpdf.main import app
from gridpdf.models import GenerationStatus, list_generations, reset_engine
from gridpdf.pipeline.ingest import FileSpec, load_files
from gridpdf.pipeline.run import run_batch


INVOICE_DATA = """
files:
  - name: Invoice 001
    data:
      invoice: {number: "001", date: "2024-01-02", due_date: "2024-02-01"}
      company: {name: Acme, address: 1 Main St, email: a@acme.test}
      client: {name: Globex, address: 9 Side Rd, email: b@globex.test}
      items:
        - {description: Widgets, quantity: 2, unit_price: "5.00", amount: "10.00"}
      totals: {subtotal: "10.00", tax: "1.00", total: "11.00"}
  - name: Invoice 002
    data:
      invoice: {number: "002", date: "2024-01-03", due_date: "2024-02-02"}
      company: {name: Acme}
      client: {name: Initech}
      items: []
      totals: {subtotal: "0.00", tax: "0.00", total: "0.00"}
"""


def _setup(temp_dir: str) -> Path:
    out_dir = Path(temp_dir) / "out"
    config.set_out_dir(out_dir)
    reset_engine()
    return out_dir


def test_batch_outputs_expected_artifacts() -> None:
    with tempfile.TemporaryDirectory() as temp_dir:
        out_dir = _setup(temp_dir)
        data_path = Path(temp_dir) / "data.yaml"
        data_path.write_text(INVOICE_DATA, encoding="utf-8")

        results = run_batch(load_files(data_path), "invoice", out_dir=out_dir, previews=True)
        assert results["FAILED"] == []
        assert len(results["SUCCESS"]) == 2
        for slug in ("invoice-001", "invoice-002"):
            assert (out_dir / f"{slug}.pdf").exists()
            assert (out_dir / f"{slug}.png").exists()

        records = list_generations()
        assert len(records) == 2
        assert {record.status for record in records} == {GenerationStatus.SUCCESS}


def test_batch_keeps_going_after_a_failure(monkeypatch) -> None:
    from gridpdf.pipeline import run

    real_generate = run.generate_pdf_from_template

    def flaky_generate(template, data, output_path, options=None, helpers=None):  # noqa: ANN001 - test helper
        if data.get("broken"):
            raise RuntimeError("boom")
        return real_generate(template, data, output_path, options, helpers=helpers)

    monkeypatch.setattr(run, "generate_pdf_from_template", flaky_generate)
    with tempfile.TemporaryDirectory() as temp_dir:
        out_dir = _setup(temp_dir)
        files = [
            FileSpec(name="bad", data={"broken": True}),
            FileSpec(name="good", data={"invoice": {"number": "1"}}),
        ]
        results = run_batch(files, "invoice", out_dir=out_dir)
        assert results["FAILED"] == ["bad"]
        assert len(results["SUCCESS"]) == 1
        assert (out_dir / "good.pdf").exists()

        records = {record.name: record for record in list_generations()}
        assert records["bad"].status == GenerationStatus.FAILED
        assert records["bad"].error == "boom"
        assert records["good"].status == GenerationStatus.SUCCESS


def test_cli_generate_and_history() -> None:
    runner = CliRunner()
    with tempfile.TemporaryDirectory() as temp_dir:
        out_dir = Path(temp_dir) / "out"
        data_path = Path(temp_dir) / "data.yaml"
        data_path.write_text(INVOICE_DATA, encoding="utf-8")

        result = runner.invoke(app, ["generate", "-d", str(data_path), "-t", "invoice", "-o", str(out_dir)])
        assert result.exit_code == 0, result.output
        assert "SUCCESS: 2" in result.output
        assert (out_dir / "invoice-001.pdf").exists()

        history = runner.invoke(app, ["history", "-o", str(out_dir)])
        assert history.exit_code == 0, history.output
        assert "Invoice 001" in history.output

        unknown = runner.invoke(app, ["generate", "-d", str(data_path), "-t", "receipt", "-o", str(out_dir)])
        assert unknown.exit_code == 2


def test_batch_refuses_to_overwrite_same_slug() -> None:
    with tempfile.TemporaryDirectory() as temp_dir:
        out_dir = _setup(temp_dir)
        files = [
            FileSpec(name="Invoice 1", data={"invoice": {"number": "first"}}),
            FileSpec(name="invoice-1", data={"invoice": {"number": "second"}}),
        ]
        results = run_batch(files, "invoice", out_dir=out_dir)
        assert results["SUCCESS"] == [str(out_dir / "invoice-1.pdf")]
        assert results["FAILED"] == ["invoice-1"]

        records = {record.name: record for record in list_generations()}
        assert "already written for Invoice 1" in records["invoice-1"].error
