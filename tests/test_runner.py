import json

import numpy as np
import pytest

from mule import (
    DEFAULT_ACCURACY,
    ConfigurationError,
    NdGrid,
    Pmf,
    RunParams,
    UnreachableTargetError,
    load_run_params,
    run_model,
)
from mule.runner import params_from_dict, parse_flag, parse_vector


def write_valley(path):
    """2D NAMD PMF with a ridge along x = 2 that is lowest at y = 4."""
    energies = np.zeros((5, 5))
    energies[2, :] = [9.0, 8.0, 7.0, 6.0, 1.0]
    pmf = Pmf((0.0, 0.0), (1.0, 1.0), (4.0, 4.0), data=NdGrid.from_array(energies))
    pmf.write_namd_file(path)
    return energies


def test_parse_vector_and_flag():
    assert parse_vector("-20, 0.5 ,3") == (-20.0, 0.5, 3.0)
    assert parse_vector([1, 2]) == (1.0, 2.0)
    assert parse_vector(4) == (4.0,)
    assert parse_vector(None) == ()
    assert parse_vector("1, 0", parse_flag) == (True, False)
    assert parse_flag("yes") and not parse_flag("0") and parse_flag(2)
    with pytest.raises(ConfigurationError):
        parse_vector("1, two")
    with pytest.raises(ConfigurationError):
        parse_flag("maybe")


def test_params_from_ini_section():
    config = {
        "mule": {
            "directory": "./data/ref.pmf",
            "lowerboundary": "-20, 0",
            "upperboundary": "20, 3",
            "width": "0.2, 0.1",
            "initial": "-20, 1.0",
            "end": "20, 1.0",
            "pbc": "0, 1",
            "writeexploredpoints": "1",
            "target": "20, 1.0, 0.1, 0.0, 0, 2, 1, 1",
        }
    }
    params = params_from_dict(config)

    assert params.dimension == 2
    assert params.lowerboundary == (-20.0, 0.0)
    assert params.width == (0.2, 0.1)
    assert params.pbc == (False, True)
    assert params.write_explored_points is True
    assert params.targets == [((20.0, 1.0), (0.1, 0.0)), ((0.0, 2.0), (1.0, 1.0))]
    assert not params.namd_format
    assert params.prefix == "./data/ref"


def test_params_keys_ignore_case_and_separators():
    params = params_from_dict(
        {
            "Directory": "ref.pmf",
            "initial": [0, 0],
            "end": [1, 1],
            "pbc": [False, False],
            "write_explored_points": True,
            "energy-cutoff": 12.5,
            "output_prefix": "out/path",
        }
    )
    assert params.namd_format
    assert params.write_explored_points
    assert params.energy_cutoff == 12.5
    assert params.prefix == "out/path"
    assert params.targets == []


def test_params_errors():
    base = {"directory": "ref.pmf", "initial": "0, 0", "end": "1, 1", "pbc": "0, 0"}

    for key in ("directory", "initial", "end", "pbc"):
        broken = {k: v for k, v in base.items() if k != key}
        with pytest.raises(ConfigurationError):
            params_from_dict(broken)

    with pytest.raises(ConfigurationError):
        params_from_dict({**base, "end": "1, 1, 1"})
    with pytest.raises(ConfigurationError):
        params_from_dict({**base, "lowerboundary": "0, 0"})
    with pytest.raises(ConfigurationError):
        params_from_dict({**base, "target": "1, 1, 1"})
    with pytest.raises(ConfigurationError):
        params_from_dict({**base, "accuracy": 0})
    with pytest.raises(ConfigurationError):
        params_from_dict({**base, "accuracy": "1e-8, 1e-6"})
    with pytest.raises(ConfigurationError):
        params_from_dict({**base, "cutoff": "5, 6"})


def test_empty_scalar_entries_use_defaults():
    base = {"directory": "ref.pmf", "initial": "0, 0", "end": "1, 1", "pbc": "0, 0"}
    params = params_from_dict({**base, "accuracy": "", "cutoff": " , "})
    assert params.accuracy == DEFAULT_ACCURACY
    assert params.energy_cutoff is None

    params = params_from_dict({**base, "accuracy": "1e-6", "cutoff": 7})
    assert params.accuracy == 1e-6
    assert params.energy_cutoff == 7.0


def test_unknown_key_is_logged(caplog):
    params_from_dict(
        {"directory": "ref.pmf", "initial": "0", "end": "1", "pbc": "0", "colour": "red"}
    )
    assert "colour" in caplog.text


def test_run_model_on_namd_file(tmp_path):
    write_valley(tmp_path / "valley.pmf")
    result = run_model(
        {
            "directory": str(tmp_path / "valley.pmf"),
            "initial": "0, 0",
            "end": "4, 0",
            "pbc": "0, 0",
        }
    )

    assert result.trajectory[0].tolist() == [0.0, 0.0]
    assert result.trajectory[-1].tolist() == [4.0, 0.0]
    # the only low crossing of the ridge is at (2, 4)
    assert [2.0, 4.0] in result.trajectory.tolist()
    assert result.meta["barrier"] == 1.0
    assert result.meta["prefix"] == str(tmp_path / "valley")
    assert result.meta["shape"] == (5, 5)
    assert result.explored is None


def test_run_model_with_plain_file_and_explored(tmp_path):
    path = tmp_path / "line.dat"
    path.write_text("".join(f"{x} {e}\n" for x, e in enumerate([0, 3, 1, 2, 0])))
    params = RunParams(
        directory=str(path),
        initial=(0.0,),
        end=(4.0,),
        pbc=(False,),
        lowerboundary=(0.0,),
        upperboundary=(4.0,),
        width=(1.0,),
        write_explored_points=True,
    )
    result = run_model(params)
    assert result.energies.tolist() == [0.0, 3.0, 1.0, 2.0, 0.0]
    assert len(result.explored) == result.meta["explored_point_num"] == 5


def test_periodic_run_goes_around(tmp_path):
    path = tmp_path / "ring.dat"
    path.write_text("".join(f"{x} {e}\n" for x, e in enumerate([0, 9, 9, 9, 1, 0])))
    config = {
        "directory": str(path),
        "lowerboundary": "0",
        "upperboundary": "5",
        "width": "1",
        "initial": "0",
        "end": "4",
        "pbc": "1",
    }
    result = run_model(config)
    assert result.trajectory[:, 0].tolist() == [0.0, 5.0, 4.0]
    assert result.meta["barrier"] == 1.0


def test_cutoff_makes_end_unreachable(tmp_path):
    write_valley(tmp_path / "valley.pmf")
    config = {
        "directory": str(tmp_path / "valley.pmf"),
        "initial": "0, 0",
        "end": "4, 0",
        "pbc": "0, 0",
        "cutoff": "0.5",
    }
    with pytest.raises(UnreachableTargetError):
        run_model(config)


def test_load_run_params_from_json(tmp_path):
    path = tmp_path / "run.json"
    path.write_text(
        json.dumps(
            {
                "mule": {
                    "directory": "ref.pmf",
                    "initial": [0, 1],
                    "end": [2, 3],
                    "pbc": [0, 1],
                    "target": [1, 1, 0.5, 0.5],
                }
            }
        )
    )
    params = load_run_params(path)
    assert params.initial == (0.0, 1.0)
    assert params.pbc == (False, True)
    assert params.targets == [((1.0, 1.0), (0.5, 0.5))]
