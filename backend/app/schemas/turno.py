from datetime import date, datetime
from typing import Optional, List

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

# The frontend speaks camelCase; Python attributes stay snake_case.
CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)

FECHA_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
HORA_PATTERN = r"^\d{2}:\d{2}$"

MAX_TURNOS_PER_BATCH = 20

# Accept both spellings the frontend has used for the batch size.
N_TURNOS_ALIASES = AliasChoices("nTurnos", "turno", "n_turnos")


def _check_calendar_date(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    try:
        date.fromisoformat(v)
    except ValueError:
        raise ValueError("fecha must be a valid calendar date (YYYY-MM-DD)")
    return v


class TurnoBatchCreate(BaseModel):
    model_config = CAMEL

    nombre: str = Field(min_length=1)
    servicio: str = Field(min_length=1)
    otro_servicio: Optional[str] = None
    fecha: str = Field(pattern=FECHA_PATTERN)
    hora: str = Field(pattern=HORA_PATTERN)
    telefono: Optional[str] = None
    n_turnos: int = Field(ge=1, le=MAX_TURNOS_PER_BATCH, validation_alias=N_TURNOS_ALIASES)

    @model_validator(mode="before")
    @classmethod
    def null_count_falls_back_to_alias(cls, data):
        # {"nTurnos": null, "turno": 3} means 3.
        if isinstance(data, dict) and "nTurnos" in data and data["nTurnos"] is None:
            data = {k: v for k, v in data.items() if k != "nTurnos"}
        return data

    @field_validator("fecha")
    @classmethod
    def check_fecha(cls, v: Optional[str]) -> Optional[str]:
        return _check_calendar_date(v)


class TurnoUpdate(BaseModel):
    """
    Partial edit. Callers strip empty values first, so every field that
    reaches this model was actually provided.
    """

    model_config = CAMEL

    nombre: Optional[str] = Field(default=None, min_length=1)
    servicio: Optional[str] = Field(default=None, min_length=1)
    otro_servicio: Optional[str] = None
    fecha: Optional[str] = Field(default=None, pattern=FECHA_PATTERN)
    hora: Optional[str] = Field(default=None, pattern=HORA_PATTERN)
    telefono: Optional[str] = None
    n_turnos: Optional[int] = Field(
        default=None, ge=1, le=MAX_TURNOS_PER_BATCH, validation_alias=N_TURNOS_ALIASES
    )

    @field_validator("fecha")
    @classmethod
    def check_fecha(cls, v: Optional[str]) -> Optional[str]:
        return _check_calendar_date(v)


class TurnoOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    nombre: str
    servicio: str
    otro_servicio: Optional[str] = None
    # Rendered as a plain "YYYY-MM-DD" string.
    fecha: date
    hora: str
    telefono: Optional[str] = None
    grupo_id: Optional[str] = None
    turno_index: Optional[int] = None
    expires_at: datetime
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TurnoItemOut(BaseModel):
    ok: bool = True
    item: TurnoOut


class TurnoListOut(BaseModel):
    ok: bool = True
    items: List[TurnoOut]


class BatchCreatedOut(BaseModel):
    model_config = CAMEL

    ok: bool = True
    group_id: str
    count: int
