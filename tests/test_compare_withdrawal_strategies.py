#!/usr/bin/env python3
"""
Tests for the command-line comparison script.
"""

import matplotlib
matplotlib.use('Agg')

import pytest

from compare_withdrawal_strategies import main, parse_args
from withdrawal import POLICY_INFO


def test_parse_args_maps_flags():
    args = parse_args(['--portfolio', '2000000', '--inflation', '3', '--jobs', '-1',
                       '--simulations', '50', '-o', 'out.pdf', '-q'])
    assert args.portfolio == 2_000_000
    assert args.inflation == 3.0
    assert args.jobs == -1
    assert args.simulations == 50
    assert args.output == 'out.pdf'
    assert args.quiet


def test_zero_jobs_rejected(capsys):
    with pytest.raises(SystemExit) as exc_info:
        parse_args(['--jobs', '0'])
    assert exc_info.value.code == 2
    assert '--jobs' in capsys.readouterr().err


def test_main_quiet_returns_comparison(capsys):
    comparison = main(n_simulations=20, inflation_pct=3.0, verbose=False)

    assert comparison.params.inflation_rate == 0.03
    assert comparison.params.n_simulations == 20
    assert len(comparison.results) == 5
    assert capsys.readouterr().out == ""


def test_main_prints_table_and_recommendation(capsys):
    comparison = main(n_simulations=20, verbose=True)
    out = capsys.readouterr().out

    assert "STRATEGY COMPARISON" in out
    assert "Ending wealth percentiles" in out
    assert f"RECOMMENDED: {POLICY_INFO[comparison.recommended].name}" in out
    for info in POLICY_INFO.values():
        assert info.name in out


def test_main_writes_pdf(tmp_path):
    output = tmp_path / "report.pdf"
    main(n_simulations=10, output_path=str(output), verbose=False)
    assert output.exists()
