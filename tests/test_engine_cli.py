from engine import build_parser, config_from_args, main


def test_parser_defaults():
    config = config_from_args(build_parser().parse_args([]))
    assert (config.rows, config.cols) == (33, 21)
    assert config.use_patterns is None
    assert not config.mirror_vertical


def test_parser_flags():
    args = build_parser().parse_args(["--size", "showdown", "--mirror-diagonal", "--no-patterns", "--seed", "4"])
    config = config_from_args(args)
    assert (config.rows, config.cols) == (60, 60)
    assert config.mirror_diagonal and config.use_patterns is False and config.seed == 4


def test_main_prints_map_code(capsys):
    assert main(["--seed", "3", "--wall", "0", "--water", "0", "--grass", "0"]) == 0
    out = capsys.readouterr().out.split("\n")
    assert out[:33] == ["." * 21] * 33
    assert "seed: 3" in out


def test_main_reports_bad_config(capsys):
    assert main(["--wall", "120"]) == 2
    assert "Invalid configuration" in capsys.readouterr().out
