import h5py
import numpy as np
import pytest

from conftest import make_config
from gb_anisotropy.anisotropy import GBAnisotropy, GBCalibration
from gb_anisotropy.errors import GBDataError
from gb_anisotropy.io import load_calibration, save_calibration, save_fields


@pytest.fixture
def calibration(three_grain_file):
    config = make_config(3, wGB=5.0, data_file=three_grain_file, inclination_anisotropy=True,
                         temperature=600.0)
    return GBCalibration.from_config(config)


class TestCalibrationFile:
    """HDF5 persistence of the shared calibration"""

    def test_round_trip(self, tmp_path, calibration):
        path = tmp_path / "calibration.h5"
        save_calibration(path, calibration)
        loaded = load_calibration(path)

        assert loaded.config == calibration.config
        assert loaded.mu == calibration.mu
        assert loaded.sigma_big == calibration.sigma_big
        assert loaded.sigma_small == calibration.sigma_small
        assert loaded.table.converted
        np.testing.assert_array_equal(loaded.table.sigma, calibration.table.sigma)
        np.testing.assert_array_equal(loaded.table.mobility, calibration.table.mobility)
        assert loaded.pairs.items() == calibration.pairs.items()

    def test_loaded_calibration_evaluates_identically(self, tmp_path, calibration):
        path = tmp_path / "calibration.h5"
        save_calibration(path, calibration)
        loaded = load_calibration(path)

        rng = np.random.default_rng(3)
        eta = rng.random((5, 3))
        grad_eta = rng.normal(size=(5, 3, 2))

        original = GBAnisotropy(calibration.config, calibration).evaluate_fields(eta, grad_eta)
        restored = GBAnisotropy(loaded.config, loaded).evaluate_fields(eta, grad_eta)
        np.testing.assert_array_equal(restored.kappa, original.kappa)
        np.testing.assert_array_equal(restored.L, original.L)

    def test_file_layout(self, tmp_path, calibration):
        path = tmp_path / "calibration.h5"
        save_calibration(path, calibration)

        with h5py.File(path, "r") as h5file:
            assert set(h5file) == {"parameters", "table", "pairs"}
            assert h5file["pairs/index"].shape == (3, 2)
            assert h5file["parameters/wGB"][()] == 5.0

    def test_missing_file(self, tmp_path):
        with pytest.raises(GBDataError):
            load_calibration(tmp_path / "missing.h5")

    def test_missing_group(self, tmp_path, calibration):
        path = tmp_path / "calibration.h5"
        save_calibration(path, calibration)
        with h5py.File(path, "a") as h5file:
            del h5file["pairs"]

        with pytest.raises(GBDataError, match="missing group.*pairs"):
            load_calibration(path)

    def test_missing_dataset(self, tmp_path, calibration):
        path = tmp_path / "calibration.h5"
        save_calibration(path, calibration)
        with h5py.File(path, "a") as h5file:
            del h5file["table/mobility"]

        with pytest.raises(GBDataError, match="incomplete"):
            load_calibration(path)

    def test_field_snapshot_file_is_not_a_calibration(self, tmp_path, calibration):
        props = GBAnisotropy(calibration.config, calibration).evaluate_fields(
            np.full((2, 3), 0.4), np.zeros((2, 3, 2)))
        path = tmp_path / "fields.h5"
        save_fields(path, 0, props)

        with pytest.raises(GBDataError, match="not a GB calibration file"):
            load_calibration(path)


class TestFieldSnapshots:
    """step_{n} groups of evaluated fields"""

    def test_snapshots(self, tmp_path, calibration):
        material = GBAnisotropy(calibration.config, calibration)
        eta = np.full((4, 3, 3), 0.4)
        grad_eta = np.zeros((4, 3, 3, 2))
        props = material.evaluate_fields(eta, grad_eta)

        path = tmp_path / "fields.h5"
        save_fields(path, 0, props, x_nm=np.arange(4.0))
        save_fields(path, 0, props)
        save_fields(path, 10, props)

        with h5py.File(path, "r") as h5file:
            assert set(h5file) == {"step_0", "step_10"}
            assert "x_nm" not in h5file["step_0"]
            np.testing.assert_array_equal(h5file["step_10/kappa_op"][()], props.kappa)
            assert h5file["step_10/mu"].shape == (4, 3)
