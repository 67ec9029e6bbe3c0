from __future__ import annotations


class EDSClassificationError(ValueError):
    pass


class SchemaError(EDSClassificationError):
    """Input table is not usable for the selected scheme."""


class UnsupportedSchemeError(EDSClassificationError):
    def __init__(self, algorithm: object, supported: tuple[str, ...] = ()) -> None:
        self.algorithm = algorithm
        self.supported = tuple(supported)
        choices = ", ".join(self.supported) if self.supported else "none"
        super().__init__(f"Algorithm not supported: {algorithm!r}. Choose one of: {choices}.")


class ModelUnavailableError(EDSClassificationError):
    pass


class SpectrumFormatError(EDSClassificationError):
    pass


class ConfigError(EDSClassificationError):
    pass
