import argparse
import logging
import os

import numpy as np

from gb_anisotropy.anisotropy import GBAnisotropy, GBCalibration
from gb_anisotropy.config import GBAnisotropyConfig
from gb_anisotropy.errors import GBAnisotropyError
from gb_anisotropy.io import save_calibration, save_fields
from gb_anisotropy.plots import plot_pair_parameters, plot_property_fields
from gb_anisotropy.utils import initial_polycrystal, order_parameter_gradients
from gb_anisotropy.verification import check_pair


def build_parser():
    p = argparse.ArgumentParser(description="Calibrate anisotropic GB properties and evaluate them on a polycrystal")
    p.add_argument("data_file", help="GB data file: 2 header lines, then energy, mobility and activation energy matrices")
    p.add_argument("--num-grains", type=int, required=True, help="number of grains / order parameters")
    p.add_argument("--wGB", type=float, required=True, help="diffuse GB width in length-scale units")
    p.add_argument("--inclination", action="store_true", help="enable 2D inclination anisotropy")
    p.add_argument("--temperature", type=float, default=300.0, help="temperature in K")
    p.add_argument("--length-scale", type=float, default=1.0e-9, help="length scale in m")
    p.add_argument("--time-scale", type=float, default=1.0e-9, help="time scale in s")
    p.add_argument("--molar-volume", type=float, default=7.11e-6, help="molar volume in m^3/mol")
    p.add_argument("--delta-sigma", type=float, default=0.1)
    p.add_argument("--delta-mob", type=float, default=0.1)
    p.add_argument("--Lx", type=float, default=120.0, help="domain length in length-scale units")
    p.add_argument("--Ly", type=float, default=60.0, help="domain height in length-scale units")
    p.add_argument("--Nx", type=int, default=128)
    p.add_argument("--Ny", type=int, default=64)
    p.add_argument("--tilt", type=float, default=0.3, help="boundary tilt in radians")
    p.add_argument("--check", action="store_true", help="relax a 1D bicrystal per pair to check sigma")
    p.add_argument("--output-dir", default="gb_anisotropy_out")
    p.add_argument("--no-plots", action="store_true")
    p.add_argument("-v", "--verbose", action="store_true")
    return p


def config_values(args):
    """Maps command-line options onto GBAnisotropyConfig parameter names."""
    return {
        "data_file": args.data_file,
        "wGB": args.wGB,
        "inclination_anisotropy": args.inclination,
        "num_grains": args.num_grains,
        "temperature": args.temperature,
        "length_scale": args.length_scale,
        "time_scale": args.time_scale,
        "molar_volume_value": args.molar_volume,
        "delta_sigma": args.delta_sigma,
        "delta_mob": args.delta_mob,
    }


def run(args):
    config = GBAnisotropyConfig.from_mapping(config_values(args))

    os.makedirs(args.output_dir, exist_ok=True)

    # --- 1. Calibration (once) ---
    calibration = GBCalibration.from_config(config)
    print("--- GB Calibration ---")
    print(f"Grains: {calibration.num_grains}, wGB = {config.wGB}")
    print(f"sigma range: [{calibration.sigma_small:.4f}, {calibration.sigma_big:.4f}] eV/ls^2, mu = {calibration.mu:.5f}")
    for (m, n), p in calibration.pairs.items():
        print(f"  pair ({m},{n}): kappa*={p.kappa:.5f} gamma*={p.gamma:.5f} a*={p.a:.5f} g2={p.g2:.5f}")

    save_calibration(os.path.join(args.output_dir, "calibration.h5"), calibration)

    if args.check:
        for pair, _ in calibration.pairs.items():
            result = check_pair(calibration, pair)
            print(f"  check {pair}: sigma={result.sigma:.5f} (target {result.sigma_target:.5f}, "
                  f"error {100 * result.sigma_error:.2f}%) | width={result.width:.4f}")

    # --- 2. Evaluation on a synthetic polycrystal ---
    material = GBAnisotropy(config, calibration)
    dx = args.Lx / args.Nx
    dy = args.Ly / args.Ny
    eta, x, _ = initial_polycrystal(args.Lx, args.Ly, args.Nx, args.Ny, config.num_grains,
                                    width_init=config.wGB, tilt=args.tilt)
    grad_eta = order_parameter_gradients(eta, dx, dy)

    properties = material.evaluate_fields(eta, grad_eta, args.temperature)

    print(f"--- Evaluated Properties ({args.Nx}x{args.Ny}) ---")
    for name in ("kappa", "gamma", "L"):
        field = getattr(properties, name)
        print(f"  {name}: min={np.min(field):.5g} max={np.max(field):.5g}")

    x_nm = x * config.length_scale * 1e9
    save_fields(os.path.join(args.output_dir, "properties.h5"), 0, properties, x_nm=x_nm)

    if not args.no_plots:
        plot_pair_parameters(args.output_dir, calibration)
        plot_property_fields(args.output_dir, 0, properties, eta, args.Lx, args.Ly, config.length_scale)

    return calibration, properties


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")
    try:
        run(args)
    except GBAnisotropyError as exc:
        print(f"Error: {exc}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
