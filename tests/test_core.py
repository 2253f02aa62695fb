# tests/test_core.py
from mule import run_model


def test_small_run(tmp_path):
    path = tmp_path / "bowl.dat"
    path.write_text("".join(f"{x} {(x - 5) ** 2}\n" for x in range(11)))
    result = run_model(
        {
            "directory": str(path),
            "lowerboundary": "0",
            "upperboundary": "10",
            "width": "1",
            "initial": "0",
            "end": "10",
            "pbc": "0",
        }
    )
    assert len(result.trajectory) == 11
    assert result.meta["barrier"] == 25.0
