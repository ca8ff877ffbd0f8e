import logging
from dataclasses import asdict, fields

import h5py
import numpy as np

from gb_anisotropy.anisotropy import GBCalibration
from gb_anisotropy.calibration import CalibratedPairParams, PairParams
from gb_anisotropy.config import GBAnisotropyConfig
from gb_anisotropy.errors import GBDataError
from gb_anisotropy.gb_data import GrainPairTable

logger = logging.getLogger(__name__)


def _read_scalar(group, name):
    value = group[name][()]
    if isinstance(value, bytes):
        return value.decode()
    if isinstance(value, np.generic):
        return value.item()
    return value


def save_calibration(path, calibration):
    """Writes the shared calibration so that workers can load it without re-solving."""
    with h5py.File(path, "w") as h5file:
        params = h5file.create_group("parameters")
        for name, value in asdict(calibration.config).items():
            params[name] = value
        params["mu"] = calibration.mu
        params["sigma_big"] = calibration.sigma_big
        params["sigma_small"] = calibration.sigma_small

        table = h5file.create_group("table")
        table["sigma"] = calibration.table.sigma
        table["mobility"] = calibration.table.mobility
        table["activation_energy"] = calibration.table.activation_energy
        table.attrs["converted"] = calibration.table.converted

        items = calibration.pairs.items()
        pairs = h5file.create_group("pairs")
        pairs["index"] = np.array([pair for pair, _ in items], dtype=int).reshape(-1, 2)
        for name in ("kappa", "gamma", "a", "g2"):
            pairs[name] = np.array([getattr(p, name) for _, p in items], dtype=float)

    logger.info("Saved GB calibration (%d pairs) to %s", len(calibration.pairs), path)


CALIBRATION_GROUPS = ("parameters", "table", "pairs")


def _read_calibration(h5file):
    params = h5file["parameters"]
    config_values = {f.name: _read_scalar(params, f.name) for f in fields(GBAnisotropyConfig)}
    config = GBAnisotropyConfig(**config_values)

    table_group = h5file["table"]
    table = GrainPairTable(sigma=table_group["sigma"][()],
                           mobility=table_group["mobility"][()],
                           activation_energy=table_group["activation_energy"][()],
                           converted=bool(table_group.attrs["converted"]))

    pairs_group = h5file["pairs"]
    index = pairs_group["index"][()]
    columns = {name: pairs_group[name][()] for name in ("kappa", "gamma", "a", "g2")}
    pair_params = {
        (int(m), int(n)): PairParams(**{name: float(columns[name][i]) for name in columns})
        for i, (m, n) in enumerate(index)
    }

    return GBCalibration(config=config, table=table,
                         pairs=CalibratedPairParams(table.num_grains, pair_params),
                         mu=_read_scalar(params, "mu"),
                         sigma_big=_read_scalar(params, "sigma_big"),
                         sigma_small=_read_scalar(params, "sigma_small"))


def load_calibration(path):
    try:
        h5file = h5py.File(path, "r")
    except OSError as exc:
        raise GBDataError(f"Can't open GB calibration file {path!r}: {exc}") from exc

    with h5file:
        missing = [name for name in CALIBRATION_GROUPS if name not in h5file]
        if missing:
            raise GBDataError(f"{path!r} is not a GB calibration file: missing group(s) {', '.join(missing)}")
        try:
            calibration = _read_calibration(h5file)
        except KeyError as exc:
            raise GBDataError(f"{path!r}: incomplete GB calibration file ({exc})") from exc

    logger.info("Loaded GB calibration (%d pairs) from %s", len(calibration.pairs), path)
    return calibration


def save_fields(path, step, properties, x_nm=None):
    """Appends a step_{n} snapshot of evaluated property fields."""
    with h5py.File(path, "a") as h5file:
        name = f"step_{step}"
        if name in h5file:
            del h5file[name]
        grp = h5file.create_group(name)
        if x_nm is not None:
            grp["x_nm"] = x_nm
        for key, value in properties.as_material_properties().items():
            grp[key] = np.asarray(value)
