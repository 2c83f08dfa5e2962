from sqlalchemy import Column, Integer, String, Date, DateTime
from sqlalchemy.sql import func

from app.core.base import Base


class Turno(Base):
    __tablename__ = "turnos"

    id = Column(Integer, primary_key=True, index=True)

    nombre = Column(String(255), nullable=False)
    # When the client picks "otros", this holds the free-text service instead.
    servicio = Column(String(255), nullable=False)
    otro_servicio = Column(String(255), nullable=True)

    fecha = Column(Date, nullable=False)
    hora = Column(String(5), nullable=False)  # HH:MM
    telefono = Column(String(50), nullable=True)

    # Rows booked together share grupo_id and are numbered 1..N by turno_index.
    grupo_id = Column(String(36), nullable=True, index=True)
    turno_index = Column(Integer, nullable=True)

    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
