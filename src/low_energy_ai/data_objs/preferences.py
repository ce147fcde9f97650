from pydantic import BaseModel, ConfigDict, Field

PREFERENCE_MIN = 1
PREFERENCE_MAX = 5


def clamp_preference(value: int) -> int:
    """Clamp a raw slider value into [PREFERENCE_MIN, PREFERENCE_MAX]."""
    return max(PREFERENCE_MIN, min(PREFERENCE_MAX, int(value)))


class PreferenceVector(BaseModel):
    """Momentary user intent, one value per slider."""

    model_config = ConfigDict(frozen=True)

    efficiency: int = Field(ge=PREFERENCE_MIN, le=PREFERENCE_MAX)
    speed: int = Field(ge=PREFERENCE_MIN, le=PREFERENCE_MAX)
    complexity: int = Field(ge=PREFERENCE_MIN, le=PREFERENCE_MAX)

    @classmethod
    def clamped(cls, efficiency: int, speed: int, complexity: int) -> "PreferenceVector":
        """Build a vector from untrusted widget values without failing."""
        return cls(
            efficiency=clamp_preference(efficiency),
            speed=clamp_preference(speed),
            complexity=clamp_preference(complexity),
        )

    def as_tuple(self) -> tuple[int, int, int]:
        return self.efficiency, self.speed, self.complexity
