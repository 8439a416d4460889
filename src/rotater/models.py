from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

RiskLevel = Literal["Low", "Medium", "High", "Critical"]
RISK_LEVELS = ("Low", "Medium", "High", "Critical")
ALERT_LEVELS = ("High", "Critical")


class CamelModel(BaseModel):
    """Base for wire types: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)


class BoundingBox(CamelModel):
    lat_min: float
    lat_max: float
    lon_min: float
    lon_max: float


class ClimateStats(CamelModel):
    date: str  # YYYY-MM
    temperature: float  # Celsius
    rainfall: float  # mm
    ndvi: float  # 0-1
    anomaly: float

    @property
    def year(self) -> int:
        return int(self.date[:4])

    @property
    def month(self) -> int:
        return int(self.date[5:7])


class LocationData(CamelModel):
    lat: float
    lon: float
    name: Optional[str] = None
    bbox: Optional[BoundingBox] = None


class ResolvedLocation(CamelModel):
    lat: float
    lon: float
    bbox: Optional[BoundingBox] = None
    resolved_name: str


class Prediction(CamelModel):
    month: str
    risk_level: RiskLevel = "Medium"
    predicted_temp: float = 0
    description: str = ""

    @field_validator("risk_level", mode="before")
    @classmethod
    def normalise_risk_level(cls, value):
        # Models are inconsistent about casing; anything unknown is treated as Medium
        text = str(value or "").strip().capitalize()
        return text if text in RISK_LEVELS else "Medium"

    @field_validator("predicted_temp", "description", mode="before")
    @classmethod
    def null_to_default(cls, value, info):
        # JSON-mode replies send explicit nulls for fields they leave blank
        if value is None:
            return cls.model_fields[info.field_name].default
        return value

    @property
    def is_alert(self) -> bool:
        return self.risk_level in ALERT_LEVELS


class ClimateInsights(CamelModel):
    summary: str
    predictions: List[Prediction] = []


class Calamity(CamelModel):
    year: int
    type: Literal["Flood", "Drought", "Cyclone", "Heatwave"]
    intensity: str
    month: str

    @property
    def is_severe(self) -> bool:
        return self.intensity == "Severe"


class ChatMessage(CamelModel):
    role: Literal["user", "model"]
    text: str


class Notification(CamelModel):
    id: str
    title: str
    description: str
    severity: RiskLevel
    timestamp: str
