"""
Tests for the CLI interface.
"""

import json

import pandas as pd
import pytest

from strategy_screener.__main__ import main, parse_args

MARKET_ARGS = ["--price", "100", "--dte", "30", "--rate", "0.01", "--vol", "0.2"]


@pytest.fixture
def chain_csv(tmp_path, chain_frame):
    """Fixture chain written to disk."""
    path = tmp_path / "chain.csv"
    chain_frame.to_csv(path, index=False)
    return str(path)


class TestParseArgs:
    """Tests for argument parsing."""

    def test_requires_chain(self):
        """Should require the chain file argument."""
        with pytest.raises(SystemExit):
            parse_args([])

    def test_defaults_are_unset(self):
        """Flags default to None so config values are not overridden."""
        args = parse_args(["chain.csv"])

        assert args.chain == "chain.csv"
        assert args.price is None
        assert args.policy is None
        assert args.max_rows is None
        assert args.legacy_layout is False
        assert args.json is False

    def test_accepts_all_options(self):
        """Should accept all command-line options."""
        args = parse_args([
            "chain.csv", *MARKET_ARGS,
            "--policy", "independent",
            "--max-rows", "12",
            "--start", "2",
            "--jobs", "4",
            "--timeout", "60",
            "--metric", "probability_of_profit",
            "--top", "10",
            "--min-pop", "0.5",
            "--extended",
            "--debug",
        ])

        assert args.price == 100.0
        assert args.policy == "independent"
        assert args.max_rows == 12
        assert args.jobs == 4
        assert args.timeout == 60.0
        assert args.top == 10
        assert args.min_pop == 0.5
        assert args.extended is True

    def test_rejects_unknown_policy(self):
        """Only registered policies are accepted."""
        with pytest.raises(SystemExit):
            parse_args(["chain.csv", "--policy", "random"])


class TestMain:
    """Tests for main entry point."""

    def test_report_output(self, chain_csv, capsys):
        """Default output is the text report."""
        exit_code = main([chain_csv, *MARKET_ARGS, "--max-rows", "5", "--top", "3"])
        captured = capsys.readouterr()

        assert exit_code == 0
        assert "Screening 5 chain rows" in captured.out
        assert "Rank #1" in captured.out
        assert "Rank #3" in captured.out
        assert "Rank #4" not in captured.out

    def test_json_output(self, chain_csv, capsys):
        """JSON mode prints a parsable document and nothing else."""
        exit_code = main([chain_csv, *MARKET_ARGS, "--max-rows", "5", "--top", "5", "--json"])
        captured = capsys.readouterr()

        assert exit_code == 0
        data = json.loads(captured.out)
        assert data["policy"] == "nested_offset"
        assert data["total_candidates"] == 100
        assert data["skipped"] == 0
        assert len(data["strategies"]) == 5
        assert data["strategies"][0]["rank"] == 1

    def test_json_output_is_strict(self, tmp_path, capsys):
        """Infinite ratios are printed as strings, never as bare Infinity."""
        path = tmp_path / "zero_premium.csv"
        pd.DataFrame({
            "strike": [110.0, 100.0, 100.0],
            "call_bid": [0.0] * 3,
            "call_ask": [0.0] * 3,
            "put_bid": [0.0] * 3,
            "put_ask": [0.0] * 3,
        }).to_csv(path, index=False)

        def reject_constant(token):
            raise ValueError(f"non-standard JSON constant {token}")

        exit_code = main([str(path), *MARKET_ARGS, "--max-rows", "3", "--json"])
        captured = capsys.readouterr()

        assert exit_code == 0
        data = json.loads(captured.out, parse_constant=reject_constant)
        ratios = [s["risk_reward_ratio"] for s in data["strategies"]]
        assert "inf" in ratios
        assert all(r == "inf" or isinstance(r, float) for r in ratios)

    def test_csv_file(self, chain_csv, tmp_path, capsys):
        """CSV results are written to the given file."""
        output = tmp_path / "results.csv"

        exit_code = main([chain_csv, *MARKET_ARGS, "--max-rows", "4", "--csv", str(output)])
        captured = capsys.readouterr()

        assert exit_code == 0
        assert "Results saved to" in captured.out
        frame = pd.read_csv(output)
        assert list(frame.columns)[:2] == ["Risk Reward Ratio", "Probability of Profit"]
        assert len(frame) == 36

    def test_extended_csv_file(self, chain_csv, tmp_path):
        """--extended switches the CSV layout."""
        output = tmp_path / "results.csv"

        exit_code = main([
            chain_csv, *MARKET_ARGS, "--max-rows", "3", "--csv", str(output), "--extended",
        ])

        assert exit_code == 0
        frame = pd.read_csv(output)
        assert frame.columns[0] == "Strategy Name"
        assert frame["Strategy Name"].str.startswith("Iron Condor").all()

    def test_missing_market_parameters(self, chain_csv, capsys):
        """Missing market values are an error, not a default."""
        exit_code = main([chain_csv, "--price", "100"])
        captured = capsys.readouterr()

        assert exit_code == 1
        assert "Missing market parameters" in captured.err
        assert "days_to_expiry" in captured.err

    def test_missing_chain_file(self, tmp_path, capsys):
        """A missing chain file fails cleanly."""
        exit_code = main([str(tmp_path / "nope.csv"), *MARKET_ARGS])
        captured = capsys.readouterr()

        assert exit_code == 1
        assert "Failed to load chain file" in captured.err

    def test_config_file(self, chain_csv, tmp_path, capsys):
        """Market and screener values come from --config, flags override."""
        config = tmp_path / "scan.yaml"
        config.write_text(
            "market:\n"
            "  underlying_price: 100\n"
            "  days_to_expiry: 30\n"
            "  risk_free_rate: 0.01\n"
            "  volatility: 0.2\n"
            "screener:\n"
            "  max_rows: 3\n"
            "  top_n: 50\n"
        )

        exit_code = main([chain_csv, "--config", str(config), "--max-rows", "4", "--json"])
        captured = capsys.readouterr()

        assert exit_code == 0
        data = json.loads(captured.out)
        assert data["total_candidates"] == 36
        assert len(data["strategies"]) == 36

    def test_legacy_layout(self, tmp_path, capsys):
        """Positional layout reads call 5, strike 6 and put 7."""
        sheet = pd.DataFrame({
            "a": [0] * 4, "b": [0] * 4, "c": [0] * 4, "d": [0] * 4, "e": [0] * 4,
            "Call LTP": [9.0, 5.5, 2.5, 1.0],
            "Strike": [95.0, 100.0, 105.0, 110.0],
            "Put LTP": [0.8, 2.0, 4.5, 8.5],
        })
        path = tmp_path / "sheet.csv"
        sheet.to_csv(path, index=False)

        exit_code = main([str(path), *MARKET_ARGS, "--legacy-layout", "--json"])
        captured = capsys.readouterr()

        assert exit_code == 0
        data = json.loads(captured.out)
        assert data["total_candidates"] == 36
        first = data["strategies"][0]
        assert {leg["strike"] for leg in first["legs"]} <= {95.0, 100.0, 105.0, 110.0}
