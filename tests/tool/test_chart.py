"""Tests for the image-bump `chart upgrade` command."""

from pathlib import Path

import pytest

from image_bump.tool.image_bump import main

VALUES = """\
image: alpine:3.19.0
gateway:
  image: ghcr.io/openfaas/gateway:0.26.0
  replicas: 1
watchdog:
  image: ghcr.io/openfaas/of-watchdog:0.11.5
build:
  image: golang:1.24.0
"""


@pytest.fixture(name="values_file")
def values_file_fixture(tmp_path: Path) -> Path:
    """Fixture for a values.yaml file of a chart."""
    path = tmp_path / "values.yaml"
    path.write_text(VALUES)
    return path


def test_chart_upgrade(values_file: Path) -> None:
    """Test writing the upgraded images back to the values file."""
    main(["chart", "upgrade", "--file", str(values_file), "--write"])
    assert values_file.read_text() == (
        "image: alpine:3.20.3\n"
        "gateway:\n"
        "  image: ghcr.io/openfaas/gateway:0.27.1\n"
        "  replicas: 1\n"
        "watchdog:\n"
        "  image: ghcr.io/openfaas/of-watchdog:0.11.5\n"
        "build:\n"
        "  image: golang:1.25.0\n"
    )


def test_chart_upgrade_dry_run(
    values_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Test the upgraded values are printed without writing."""
    main(["chart", "upgrade", "-f", str(values_file), "--verbose"])
    assert values_file.read_text() == VALUES
    captured = capsys.readouterr()
    assert "image: alpine:3.20.3\n" in captured.out
    assert "replicas: 1\n" in captured.out
    assert "UPGRADE" in captured.err
    assert "ghcr.io/openfaas/gateway:0.27.1" in captured.err


def test_chart_upgrade_config(values_file: Path) -> None:
    """Test pinned and ignored images from the config file."""
    (values_file.parent / "image-bump.yaml").write_text(
        "pin_major_minor:\n- golang\nignore:\n- alpine\n"
    )
    main(["chart", "upgrade", "-f", str(values_file), "-w", "-c", "1"])
    content = values_file.read_text()
    assert "image: golang:1.24.4\n" in content
    assert "image: alpine:3.19.0\n" in content
    assert "image: ghcr.io/openfaas/gateway:0.27.1\n" in content


def test_chart_upgrade_failure(
    values_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Test nothing is written when any image fails to resolve."""
    content = VALUES + "nginx:\n  image: nginx:1.25.0\n"
    values_file.write_text(content)
    with pytest.raises(SystemExit) as exc:
        main(["chart", "upgrade", "-f", str(values_file), "-w"])
    assert exc.value.code == 1
    assert values_file.read_text() == content
    assert "unable to list tags for nginx" in capsys.readouterr().err


@pytest.mark.parametrize(
    ("filename", "content", "match"),
    [
        ("values.txt", VALUES, "--file must be a YAML file"),
        ("values.yaml", "replicas: 1\n", "no images found in"),
        ("values.yaml", "- alpine:3.19.0\n", "Expected a mapping"),
    ],
)
def test_chart_upgrade_invalid_input(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
    filename: str,
    content: str,
    match: str,
) -> None:
    """Test values files that cannot be upgraded."""
    path = tmp_path / filename
    path.write_text(content)
    with pytest.raises(SystemExit) as exc:
        main(["chart", "upgrade", "-f", str(path)])
    assert exc.value.code == 1
    assert match in capsys.readouterr().err


def test_chart_upgrade_invalid_workers(values_file: Path) -> None:
    """Test the number of workers must be positive."""
    with pytest.raises(SystemExit) as exc:
        main(["chart", "upgrade", "-f", str(values_file), "--workers", "0"])
    assert exc.value.code == 1


def test_chart_verify(
    values_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Test every image in the values file exists on its registry."""
    main(["chart", "verify", "--file", str(values_file)])
    assert values_file.read_text() == VALUES
    assert "missing" not in capsys.readouterr().err


def test_chart_verify_missing(
    values_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Test a table of the missing images and their components."""
    values_file.write_text(
        VALUES.replace("gateway:0.26.0", "gateway:0.99.0")
        + "proxy:\n  image: nginx:1.25.0\n"
    )
    with pytest.raises(SystemExit) as exc:
        main(["chart", "verify", "-f", str(values_file)])
    assert exc.value.code == 1
    err = capsys.readouterr().err
    assert f"2 images are missing in {values_file}" in err
    lines = err.splitlines()
    table = lines[lines.index("COMPONENT        IMAGE") :]
    assert table[1:3] == [
        "gateway.image    ghcr.io/openfaas/gateway:0.99.0",
        "proxy.image      nginx:1.25.0",
    ]
    assert "verifying failed" in err


def test_chart_verify_missing_verbose(
    values_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Test the lookup error of each missing image is shown."""
    values_file.write_text(VALUES + "proxy:\n  image: nginx:1.25.0\n")
    with pytest.raises(SystemExit) as exc:
        main(["chart", "verify", "-f", str(values_file), "--verbose"])
    assert exc.value.code == 1
    err = capsys.readouterr().err
    assert "1 images are missing" in err
    assert "ERROR" in err
    assert "unable to list tags for nginx" in err


@pytest.mark.parametrize(
    ("filename", "content", "match"),
    [
        ("values.txt", VALUES, "--file must be a YAML file"),
        ("values.yaml", "replicas: 1\n", "no images found in"),
    ],
)
def test_chart_verify_invalid_input(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
    filename: str,
    content: str,
    match: str,
) -> None:
    """Test values files that cannot be verified."""
    path = tmp_path / filename
    path.write_text(content)
    with pytest.raises(SystemExit) as exc:
        main(["chart", "verify", "-f", str(path)])
    assert exc.value.code == 1
    assert match in capsys.readouterr().err


def test_chart_verify_has_no_write_flag(values_file: Path) -> None:
    """Test verify never accepts --write."""
    with pytest.raises(SystemExit) as exc:
        main(["chart", "verify", "-f", str(values_file), "--write"])
    assert exc.value.code == 2
