from dataclasses import dataclass, fields

from gb_anisotropy.errors import ConfigurationError


@dataclass(frozen=True)
class GBAnisotropyConfig:
    """
    Construction-time parameters of the anisotropic GB material.

    Units follow the input file: wGB is given in length-scale units
    (nm for the default length_scale), temperature in K, molar volume in m^3/mol.
    """
    data_file: str
    wGB: float
    inclination_anisotropy: bool
    num_grains: int
    mesh_dimension: int = 2
    temperature: float = 300.0
    length_scale: float = 1.0e-9     # m
    time_scale: float = 1.0e-9       # s
    molar_volume_value: float = 7.11e-6  # m^3/mol, copper
    delta_sigma: float = 0.1
    delta_mob: float = 0.1
    max_iterations: int = 1000
    tolerance: float = 1.0e-9
    initial_guess: float = 0.75

    def __post_init__(self):
        self.validate()

    def validate(self):
        positive = ("wGB", "temperature", "length_scale", "time_scale",
                    "molar_volume_value", "tolerance", "initial_guess")
        for name in positive:
            value = getattr(self, name)
            if not value > 0.0:
                raise ConfigurationError(f"{name} must be positive, got {value!r}")

        if self.max_iterations < 1:
            raise ConfigurationError(f"max_iterations must be >= 1, got {self.max_iterations!r}")

        if self.num_grains < 2:
            raise ConfigurationError(
                f"At least two coupled order parameters are required, got num_grains={self.num_grains}")

        if self.mesh_dimension not in (1, 2, 3):
            raise ConfigurationError(f"mesh_dimension must be 1, 2 or 3, got {self.mesh_dimension!r}")

        if self.inclination_anisotropy and self.mesh_dimension == 3:
            raise ConfigurationError("Inclination dependence is not supported for 3D problems")

        if self.inclination_anisotropy and self.mesh_dimension < 2:
            raise ConfigurationError("Inclination dependence needs a 2D gradient")

    @classmethod
    def from_mapping(cls, values):
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigurationError(f"Unknown GB anisotropy parameters: {', '.join(unknown)}")

        missing = sorted(name for name in ("data_file", "wGB", "inclination_anisotropy", "num_grains")
                         if name not in values)
        if missing:
            raise ConfigurationError(f"Missing required GB anisotropy parameters: {', '.join(missing)}")

        return cls(**values)
