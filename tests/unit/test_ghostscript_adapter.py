import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from app.separation.exceptions import ExternalToolError, OutputError
from app.separation.ghostscript_adapter import GhostscriptSeparationExtractor


def _completed(
    returncode: int = 0, stderr: str = "", stdout: str = ""
) -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(
        args=[], returncode=returncode, stdout=stdout, stderr=stderr
    )


def _write_outputs(out_dir: Path, *names: str) -> None:
    out_dir.mkdir(parents=True, exist_ok=True)
    for name in names:
        (out_dir / name).write_bytes(b"II*\x00")


class TestBuildArgs:
    def test_renders_page_one_of_isolated_document(self, tmp_path: Path) -> None:
        extractor = GhostscriptSeparationExtractor(binary="gswin64c")

        args = extractor.build_args(tmp_path / "page.pdf", 150, tmp_path / "seps")

        assert args[0] == "gswin64c"
        assert {"-q", "-dSAFER", "-dBATCH", "-dNOPAUSE", "-sDEVICE=tiffsep"} <= set(args)
        assert "-r150" in args
        assert "-dFirstPage=1" in args
        assert "-dLastPage=1" in args
        assert f"-sOutputFile={tmp_path / 'seps' / 'sep.tif'}" in args
        assert args[-1] == str(tmp_path / "page.pdf")


class TestExtract:
    def test_returns_separations_without_composite(self, tmp_path: Path) -> None:
        out_dir = tmp_path / "seps"
        extractor = GhostscriptSeparationExtractor()

        def _run(*_args: object, **_kwargs: object) -> subprocess.CompletedProcess[str]:
            _write_outputs(out_dir, "sep.tif", "sep(Cyan).tif", "sep(Black).tif", "notes.txt")
            return _completed()

        with patch("app.separation.ghostscript_adapter.subprocess.run", side_effect=_run):
            files = extractor.extract(tmp_path / "page.pdf", 144, out_dir)

        assert [f.name for f in files] == ["sep(Black).tif", "sep(Cyan).tif"]

    def test_passes_timeout(self, tmp_path: Path) -> None:
        extractor = GhostscriptSeparationExtractor(timeout_seconds=42)
        _write_outputs(tmp_path / "seps", "sep(Cyan).tif")

        with patch(
            "app.separation.ghostscript_adapter.subprocess.run", return_value=_completed()
        ) as mock_run:
            extractor.extract(tmp_path / "page.pdf", 144, tmp_path / "seps")

        assert mock_run.call_args.kwargs["timeout"] == 42

    def test_nonzero_exit_includes_diagnostics(self, tmp_path: Path) -> None:
        extractor = GhostscriptSeparationExtractor()

        with patch(
            "app.separation.ghostscript_adapter.subprocess.run",
            return_value=_completed(returncode=1, stderr="Error: /undefined in --run--"),
        ):
            with pytest.raises(ExternalToolError, match="/undefined in --run--"):
                extractor.extract(tmp_path / "page.pdf", 144, tmp_path / "seps")

    def test_missing_binary(self, tmp_path: Path) -> None:
        extractor = GhostscriptSeparationExtractor(binary="gs")

        with patch(
            "app.separation.ghostscript_adapter.subprocess.run",
            side_effect=FileNotFoundError("gs"),
        ):
            with pytest.raises(ExternalToolError, match="not found"):
                extractor.extract(tmp_path / "page.pdf", 144, tmp_path / "seps")

    def test_timeout(self, tmp_path: Path) -> None:
        extractor = GhostscriptSeparationExtractor(timeout_seconds=1)

        with patch(
            "app.separation.ghostscript_adapter.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="gs", timeout=1),
        ):
            with pytest.raises(ExternalToolError, match="timed out"):
                extractor.extract(tmp_path / "page.pdf", 144, tmp_path / "seps")

    def test_zero_separations_is_output_error(self, tmp_path: Path) -> None:
        extractor = GhostscriptSeparationExtractor()

        def _run(*_args: object, **_kwargs: object) -> subprocess.CompletedProcess[str]:
            _write_outputs(tmp_path / "seps", "sep.tif")
            return _completed()

        with patch("app.separation.ghostscript_adapter.subprocess.run", side_effect=_run):
            with pytest.raises(OutputError):
                extractor.extract(tmp_path / "page.pdf", 144, tmp_path / "seps")

    def test_warnings_on_stderr_are_not_fatal(self, tmp_path: Path) -> None:
        extractor = GhostscriptSeparationExtractor()
        _write_outputs(tmp_path / "seps", "sep(Cyan).tif")

        with patch(
            "app.separation.ghostscript_adapter.subprocess.run",
            return_value=_completed(stderr="warning: font substituted"),
        ):
            files = extractor.extract(tmp_path / "page.pdf", 144, tmp_path / "seps")

        assert len(files) == 1


class TestVersion:
    def test_returns_stripped_version(self) -> None:
        with patch(
            "app.separation.ghostscript_adapter.subprocess.run",
            return_value=_completed(stdout="10.02.1\n"),
        ):
            assert GhostscriptSeparationExtractor().version() == "10.02.1"
