# [TESTER] v1

from __future__ import annotations

from pathlib import Path

import pytest

from pairswap.integration.config import EngineConfig, load_engine_config


def test_defaults() -> None:
    cfg = EngineConfig()
    assert cfg.share_decimals == 6
    assert cfg.check_invariants is True
    assert cfg.log_effects is False
    assert cfg.max_fee_denominator is None


def test_load_from_yaml(tmp_path: Path) -> None:
    path = tmp_path / "engine.yaml"
    path.write_text(
        "share_decimals: 9\nlog_effects: true\nmax_fee_denominator: 10000\n",
        encoding="utf-8",
    )
    cfg = load_engine_config(path)
    assert cfg == EngineConfig(share_decimals=9, log_effects=True, max_fee_denominator=10_000)


def test_empty_yaml_yields_defaults(tmp_path: Path) -> None:
    path = tmp_path / "engine.yaml"
    path.write_text("", encoding="utf-8")
    assert load_engine_config(str(path)) == EngineConfig()


def test_rejects_bad_config(tmp_path: Path) -> None:
    path = tmp_path / "engine.yaml"
    path.write_text("share_decimal: 9\n", encoding="utf-8")
    with pytest.raises(ValueError, match="share_decimal"):
        load_engine_config(path)

    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(TypeError):
        load_engine_config(path)

    with pytest.raises(ValueError):
        EngineConfig(share_decimals=19)
    with pytest.raises(TypeError):
        EngineConfig(check_invariants="yes")  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        EngineConfig(max_fee_denominator=0)
