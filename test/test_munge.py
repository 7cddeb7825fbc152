import pytest

import munge
from munge_engine import TechniqueConfig, iter_variants


def read_lines(path):
    return path.read_text(encoding='utf-8').splitlines()


def test_single_word_to_file(tmp_path):
    out = tmp_path / "out.txt"
    assert munge.main(["-w", "hello", "-c", "-o", str(out)]) == 0
    assert read_lines(out) == ["hello", "Hello", "HELLO"]


def test_every_line_is_newline_terminated(tmp_path):
    out = tmp_path / "out.txt"
    assert munge.main(["-w", "ab", "-d", "-o", str(out)]) == 0
    assert out.read_bytes() == b"ab\nabab\n"


def test_wordlist_to_file(tmp_path):
    words = tmp_path / "words.txt"
    words.write_bytes(b"foo\r\nbar\n\nbaz")
    out = tmp_path / "out.txt"
    assert munge.main(["-i", str(words), "-d", "--no-progress", "-o", str(out)]) == 0
    assert out.read_bytes() == b"foo\nfoofoo\nbar\nbarbar\n\n\nbaz\nbazbaz\n"


def test_wordlist_keeps_inner_carriage_return(tmp_path, capsys):
    words = tmp_path / "words.txt"
    words.write_bytes(b"foo\rbar\nbaz\r\n")
    out = tmp_path / "out.txt"
    assert munge.main(["-i", str(words), "-d", "--no-progress", "-o", str(out)]) == 0
    assert out.read_bytes() == b"foo\rbar\nfoo\rbarfoo\rbar\nbaz\nbazbaz\n"
    assert "Munged 2 words into 4 lines" in capsys.readouterr().out
    assert munge.count_input_lines(str(words)) == 2
    assert list(munge.iter_input_lines(str(words))) == ["foo\rbar", "baz"]


def test_word_then_wordlist(tmp_path):
    words = tmp_path / "words.txt"
    words.write_text("two\n", encoding='utf-8')
    out = tmp_path / "out.txt"
    assert munge.main(["-w", "one", "-i", str(words), "-d", "--no-progress", "-o", str(out)]) == 0
    assert read_lines(out) == ["one", "oneone", "two", "twotwo"]


def test_all_flag(tmp_path):
    out = tmp_path / "out.txt"
    assert munge.main(["-w", "foo bar", "--all", "-o", str(out)]) == 0
    config = TechniqueConfig.from_flags(all_techniques=True)
    assert read_lines(out) == list(iter_variants("foo bar", config))


def test_output_stdout(capsys):
    assert munge.main(["-w", "ab", "-d", "--output-stdout"]) == 0
    captured = capsys.readouterr()
    assert captured.out == "ab\nabab\n"
    assert "Munged wordlist saved to STDOUT" in captured.err


def test_single_substitution_flag(capsys):
    assert munge.main(["-w", "pass", "-cs", "-ss", "--output-stdout"]) == 0
    captured = capsys.readouterr()
    assert captured.out == "pass\np@$$\n"
    assert "[WARNING]" not in captured.err


def test_single_substitution_without_leet_warns(capsys):
    assert munge.main(["-w", "pass", "-d", "-ss", "--output-stdout"]) == 0
    captured = capsys.readouterr()
    assert captured.out == "pass\npasspass\n"
    assert "[WARNING] -ss has no effect" in captured.err


def test_output_stdout_overrides_output_file(tmp_path, capsys):
    out = tmp_path / "out.txt"
    assert munge.main(["-w", "ab", "-d", "-o", str(out), "--output-stdout"]) == 0
    captured = capsys.readouterr()
    assert captured.out == "ab\nabab\n"
    assert "[WARNING] --output-stdout given, ignoring output file" in captured.err
    assert not out.exists()


def test_insane_single_word(capsys):
    assert munge.main(["-w", "ab", "-1ns4n3", "--output-stdout"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines == ["ab", "@b", "4b", "@b", "4b", "@B", "4B", "@B", "4B"]


def test_insane_rejects_wordlist(tmp_path, capsys):
    words = tmp_path / "words.txt"
    words.write_text("one\n", encoding='utf-8')
    out = tmp_path / "out.txt"
    assert munge.main(["-i", str(words), "-1ns4n3", "-o", str(out)]) == 1
    assert "single-word" in capsys.readouterr().err
    assert not out.exists()


def test_insane_rejects_other_techniques(tmp_path, capsys):
    out = tmp_path / "out.txt"
    assert munge.main(["-w", "ab", "-1ns4n3", "-c", "-o", str(out)]) == 1
    assert "cannot be combined" in capsys.readouterr().err


def test_requires_a_technique(tmp_path, capsys):
    assert munge.main(["-w", "hello", "-o", str(tmp_path / "out.txt")]) == 1
    assert "at least one option" in capsys.readouterr().err


def test_requires_input(tmp_path, capsys):
    assert munge.main(["-c", "-o", str(tmp_path / "out.txt")]) == 1
    assert "Provide a single word" in capsys.readouterr().err


def test_requires_output(capsys):
    assert munge.main(["-w", "hello", "-c"]) == 1
    assert "No output file specified" in capsys.readouterr().err


def test_missing_input_file(tmp_path, capsys):
    missing = tmp_path / "missing.txt"
    assert munge.main(["-i", str(missing), "-c", "-o", str(tmp_path / "out.txt")]) == 1
    assert "does not exist" in capsys.readouterr().err


def test_unwritable_output(tmp_path, capsys):
    out = tmp_path / "no_such_dir" / "out.txt"
    assert munge.main(["-w", "hello", "-c", "-o", str(out)]) == 1
    assert "[ERROR]" in capsys.readouterr().err


def test_processes_must_be_positive(tmp_path):
    with pytest.raises(SystemExit):
        munge.main(["-w", "hello", "-c", "-j", "0", "-o", str(tmp_path / "out.txt")])


def test_hex_lines_keep_raw_bytes(tmp_path):
    words = tmp_path / "words.txt"
    words.write_bytes(b"$HEX[ff41]\n$HEX[68656c6c6f]\n$HEX[zz]\n")
    out = tmp_path / "out.txt"
    assert munge.main(["-i", str(words), "-d", "--no-progress", "-o", str(out)]) == 0
    assert out.read_bytes().split(b"\n") == [
        b"\xffA", b"\xffA\xffA",
        b"hello", b"hellohello",
        b"$HEX[zz]", b"$HEX[zz]$HEX[zz]",
        b"",
    ]


def test_parallel_output_matches_serial(tmp_path):
    words = tmp_path / "words.txt"
    words.write_text("\n".join(["alpha", "beta gamma", "Summer2024", "$HEX[6f6b]"] * 20) + "\n", encoding='utf-8')
    serial = tmp_path / "serial.txt"
    parallel = tmp_path / "parallel.txt"
    flags = ["-c", "-cs", "-d", "-ws", "-a", "--no-progress"]
    assert munge.main(["-i", str(words), "-o", str(serial)] + flags) == 0
    assert munge.main(["-i", str(words), "-o", str(parallel), "-j", "2"] + flags) == 0
    assert serial.read_bytes() == parallel.read_bytes()


def test_worker_munge_line():
    config = TechniqueConfig(duplicate=True)
    block, count = munge.worker_munge_line(("abc", config))
    assert block == "abc\nabcabc\n"
    assert count == 2
