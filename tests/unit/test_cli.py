from __future__ import annotations

import logging

import pytest

from psif import config_utils, run


@pytest.fixture(autouse=True)
def _no_global_logging(monkeypatch):
    calls = []
    monkeypatch.setattr(config_utils, "configure_logging", lambda level, suppress_warnings=False: calls.append(level))
    return calls


def test_collect_overrides_maps_flags(tmp_path) -> None:
    path = tmp_path / "extra.txt"
    path.write_text("grid.p.count=7\n", encoding="utf-8")
    args = run.build_parser().parse_args(
        [
            "--overrides-file",
            str(path),
            "--override",
            "grid.q.count=5",
            "model.fc_closure=S6",
            "--jobs",
            "2",
            "--progress",
            "--point",
            "-1.0",
            "0.3",
        ]
    )

    assert run._collect_overrides(args) == [
        "grid.p.count=7",
        "grid.q.count=5",
        "model.fc_closure=S6",
        "sweep.jobs=2",
        "sweep.progress=true",
        "highlight.q1=-1.0",
        "highlight.p1=0.3",
    ]


def test_main_prints_summary_zones_and_profile(capsys, _no_global_logging) -> None:
    with pytest.warns(Warning):
        run.main(["--override", "grid.q.count=6", "grid.p.count=4", "--quiet"])

    out = capsys.readouterr().out
    assert _no_global_logging == [logging.WARNING]
    assert "Grid summary" in out
    assert "diff_S8_pyrite" in out
    assert "Consistency zones" in out
    assert "overlap" in out
    assert "Profile at q=-0.5 p=0.65: eb=1.8" in out
    assert "pyrite(S5)=1.050  S8(post-disproportionation)=7.150  offset=6.100 per mil" in out


def test_main_rejects_invalid_override(capsys) -> None:
    with pytest.raises(config_utils.ConfigurationError):
        run.main(["--override", "grid.q.count=0"])
