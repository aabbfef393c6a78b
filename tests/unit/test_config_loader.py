import tempfile
from pathlib import Path

import pytest
from pydantic import ValidationError

from tidydraws.config.loader import load_config
from tidydraws.config.schema import SummaryConfig


def test_load_config_defaults():
    cfg = load_config()
    assert cfg.reshape.separator == r"[, ]+"
    assert cfg.reshape.collapse == "error"
    assert cfg.summary.point == "median"
    assert cfg.summary.widths == [0.66, 0.95]
    assert cfg.plot.template == "tidydraws_light"


def test_load_config_merges_overrides(monkeypatch):
    base = """
reshape:
  separator: "${TIDYDRAWS_SEP}"
summary:
  point: mean
  widths: [0.95, 0.5]
plot:
  dpi: 150
"""
    override = """
summary:
  interval: hdi
"""
    with tempfile.TemporaryDirectory() as tmpdir:
        monkeypatch.setenv("TIDYDRAWS_SEP", ":")
        base_path = Path(tmpdir) / "base.yaml"
        override_path = Path(tmpdir) / "override.yaml"
        base_path.write_text(base, encoding="utf-8")
        override_path.write_text(override, encoding="utf-8")

        cfg = load_config([base_path, override_path])
        assert cfg.reshape.separator == ":"
        assert cfg.summary.point == "mean"
        assert cfg.summary.interval == "hdi"
        assert cfg.summary.widths == [0.5, 0.95]
        assert cfg.plot.dpi == 150


def test_load_config_empty_file(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config(path).summary.interval == "qi"


@pytest.mark.parametrize(
    "yaml_text",
    [
        "summary:\n  widths: [1.0]\n",
        "summary:\n  widths: []\n",
        "summary:\n  point: trimmed\n",
        "reshape:\n  collapse: first\n",
        "reshape:\n  separator: '[unclosed'\n",
    ],
)
def test_load_config_rejects_invalid_values(tmp_path, yaml_text):
    path = tmp_path / "bad.yaml"
    path.write_text(yaml_text, encoding="utf-8")
    with pytest.raises(ValidationError):
        load_config(path)


def test_summary_widths_deduplicated():
    assert SummaryConfig(widths=[0.8, 0.5, 0.8]).widths == [0.5, 0.8]


def test_overrides_apply_after_files(tmp_path):
    path = tmp_path / "cfg.yaml"
    path.write_text("summary:\n  point: mean\n  widths: [0.5]\n", encoding="utf-8")
    cfg = load_config(path, overrides={"summary.point": "mode", "summary.widths": None})
    assert cfg.summary.point == "mode"
    assert cfg.summary.widths == [0.5]


def test_overrides_create_missing_sections():
    cfg = load_config(overrides={"reshape.collapse": "last", "plot.n_dots": 20})
    assert cfg.reshape.collapse == "last"
    assert cfg.plot.n_dots == 20


def test_overrides_are_validated():
    with pytest.raises(ValidationError):
        load_config(overrides={"summary.widths": [1.5]})


def test_non_mapping_yaml_rejected(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- 0.5\n- 0.9\n", encoding="utf-8")
    with pytest.raises(ValueError, match="mapping"):
        load_config(path)
