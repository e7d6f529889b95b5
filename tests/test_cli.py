"""
Command-line runner tests (fungerun.main).
"""

import json

import pytest

import fungerun


@pytest.fixture
def program(tmp_path):
    def write(source, name="prog.b98"):
        path = tmp_path / name
        path.write_text(source, encoding='utf-8')
        return str(path)
    return write


# ─── Exit status ──────────────────────────

class TestExitStatus:
    def test_normal_completion(self, program, capsys):
        assert fungerun.main([program('"!iH",,,@')]) == 0
        assert capsys.readouterr().out == "Hi!"

    def test_quit_code(self, program):
        assert fungerun.main([program("25*q")]) == 10

    def test_surrogate_output_completes(self, program, capsys):
        assert fungerun.main([program("66*6*44*4*4**,@")]) == 0
        captured = capsys.readouterr()
        assert captured.out == "�"
        assert "Internal VM error" not in captured.err

    def test_tick_limit(self, program, capsys):
        assert fungerun.main([program(">"), "--max-ticks", "5"]) == fungerun.EXIT_TIMEOUT
        assert "Tick limit" in capsys.readouterr().err

    def test_missing_program(self, tmp_path, capsys):
        assert fungerun.main([str(tmp_path / "missing.b98")]) == 1
        assert "Load error" in capsys.readouterr().err

    def test_bad_config_file(self, program, tmp_path, capsys):
        config = tmp_path / "bad.json"
        config.write_text("{", encoding='utf-8')
        assert fungerun.main([program("@"), "--config", str(config)]) == 1
        assert "Config error" in capsys.readouterr().err


# ─── Options ──────────────────────────────

class TestOptions:
    def test_profile_changes_unknown_policy(self, program, capsys):
        # reflect sends the IP back over the 1 and round onto the far @
        src = program("1☺.@")
        assert fungerun.main([src, "-q", "--profile", "befunge98"]) == 0
        assert capsys.readouterr().out == ""
        assert fungerun.main([src, "-q", "--profile", "lenient"]) == 0
        assert capsys.readouterr().out == "1 "

    def test_config_file(self, program, tmp_path):
        config = tmp_path / "run.json"
        config.write_text(json.dumps({"profile": "strict", "max_ticks": 3}),
                          encoding='utf-8')
        assert fungerun.main([program(">"), "--config", str(config)]) == fungerun.EXIT_TIMEOUT

    def test_program_arguments_mixed_with_options(self, program):
        assert fungerun.main([program("@"), "alpha", "beta", "--seed", "1"]) == 0

    def test_program_arguments_parsed(self):
        args = fungerun.build_parser().parse_args(["p.b98", "alpha", "beta", "-v"])
        assert args.args == ["alpha", "beta"]
        assert args.verbose == 1

    def test_dump(self, program, capsys):
        assert fungerun.main([program("'Zs @"), "--dump"]) == 0
        assert "'ZsZ@" in capsys.readouterr().err

    def test_trace(self, program, capsys):
        assert fungerun.main([program("1@"), "--trace"]) == 0
        err = capsys.readouterr().err
        assert "IP0" in err
        assert "exec @" in err

    def test_free_markers(self, program, capsys):
        assert fungerun.main([program("1    .@"), "--free-markers",
                              "--max-ticks", "3"]) == 0
        assert capsys.readouterr().out == "1 "

    def test_log_file(self, program, tmp_path):
        log_file = tmp_path / "run.log"
        assert fungerun.main([program("@"), "--log-file", str(log_file)]) == 0
        assert "Stopped: DONE" in log_file.read_text(encoding='utf-8')

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            fungerun.main(["--version"])
        assert exc.value.code == 0
        assert "fungerun" in capsys.readouterr().out
