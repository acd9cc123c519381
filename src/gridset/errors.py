from __future__ import annotations


class InvalidArgumentError(ValueError):
    pass


class UnitAssumptionWarning(UserWarning):
    """Advisory emitted when meters-per-unit had to be guessed for a grid set.

    Builders collect instances in ``GridSetResult.warnings`` instead of raising
    them; callers that want interpreter warnings can pass them to
    ``warnings.warn``.
    """

    def __init__(
        self,
        gridset_name: str,
        assumed_meters_per_unit: float = 1.0,
        scale_driven: bool = False,
    ) -> None:
        self.gridset_name = gridset_name
        self.assumed_meters_per_unit = float(assumed_meters_per_unit)
        self.scale_driven = bool(scale_driven)
        if scale_driven:
            message = (
                f"GridSet {gridset_name} was defined without metersPerUnit, "
                f"assuming {self.assumed_meters_per_unit:g}m/unit. "
                "All scales will be off if this is incorrect."
            )
        else:
            message = (
                f"GridSet {gridset_name} was defined without metersPerUnit. "
                f"Assuming {self.assumed_meters_per_unit:g}m per SRS unit for WMTS scale output."
            )
        super().__init__(message)

    def __reduce__(self):
        return (
            type(self),
            (self.gridset_name, self.assumed_meters_per_unit, self.scale_driven),
        )

    @property
    def message(self) -> str:
        return str(self.args[0])
