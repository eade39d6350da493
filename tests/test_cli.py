import json

from collada_helper import quad_geometry, triangle_geometry, write_source
from mdlgen.cli import main


def _sources(tmp_path):
    src = tmp_path / "src"
    src.mkdir()
    write_source(src, "a", [triangle_geometry("tri")])
    write_source(src, "b", [quad_geometry("quad")])
    return src


def test_compile_success_exit_code(tmp_path, capsys):
    src = _sources(tmp_path)
    out = tmp_path / "out"
    rc = main(["compile", str(src), str(out), "--workers", "2"])
    assert rc == 0
    assert (out / "tri.mdl").is_file()
    assert (out / "quad.mdl").is_file()
    err = capsys.readouterr().err
    assert "Compile summary: sources=2 artifacts=2 errors=0" in err


def test_compile_with_errors_exits_nonzero(tmp_path, capsys):
    src = _sources(tmp_path)
    (src / "c.dae").write_text("<oops")
    rc = main(["compile", str(src), str(tmp_path / "out")])
    assert rc == 1
    err = capsys.readouterr().err
    assert "c.dae: E_XML" in err
    assert "errors=1" in err


def test_compile_json_reporter_emits_summary_event(tmp_path, capsys):
    src = _sources(tmp_path)
    rc = main(["-r", "json", "compile", str(src), str(tmp_path / "out")])
    assert rc == 0
    events = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    summaries = [e for e in events if e.get("event") == "summary"]
    assert any(s["summary_type"] == "compile" for s in summaries)


def test_missing_input_directory(tmp_path, capsys):
    rc = main(["compile", str(tmp_path / "nope"), str(tmp_path / "out")])
    assert rc == 1
    assert "E_IO" in capsys.readouterr().err


def test_inspect_json(tmp_path, capsys):
    src = _sources(tmp_path)
    out = tmp_path / "out"
    main(["-r", "silent", "compile", str(src), str(out)])
    capsys.readouterr()
    rc = main(["-r", "silent", "inspect", str(out / "quad.mdl"), "--json"])
    assert rc == 0
    info = json.loads(capsys.readouterr().out)
    assert info["vertex_count"] == 4
    assert info["index_count"] == 6
    assert info["triangle_count"] == 2
    assert info["bounds"] == {"min": [0.0, 0.0, 0.0], "max": [1.0, 1.0, 0.0]}


def test_inspect_corrupt_file(tmp_path, capsys):
    bad = tmp_path / "bad.mdl"
    bad.write_bytes(b"\x01\x00")
    rc = main(["inspect", str(bad)])
    assert rc == 1
    assert "E_TRUNCATED" in capsys.readouterr().err


def test_validate(tmp_path, capsys):
    src = _sources(tmp_path)
    out = tmp_path / "out"
    main(["-r", "silent", "compile", str(src), str(out)])
    bad = out / "bad.mdl"
    bad.write_bytes((out / "tri.mdl").read_bytes()[:-1])
    capsys.readouterr()
    assert main(["validate", str(out / "tri.mdl")]) == 0
    rc = main(["validate", str(out / "tri.mdl"), str(bad)])
    assert rc == 1
    err = capsys.readouterr().err
    assert "bad.mdl: E_SIZE_MISMATCH" in err
    assert "failed=1" in err
