from datetime import date, datetime
from sqlalchemy import String, Integer, Date, DateTime, Index
from sqlalchemy.orm import Mapped, mapped_column
from asn_monitor.db import Base

class Asn(Base):
    __tablename__ = "asns"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    nama: Mapped[str] = mapped_column(String(160), nullable=False)
    nip: Mapped[str] = mapped_column(String(40), nullable=False)
    tmt_pns: Mapped[date | None] = mapped_column(Date, nullable=True)
    riwayat_tmt_kgb: Mapped[date | None] = mapped_column(Date, nullable=True)
    riwayat_tmt_pangkat: Mapped[date | None] = mapped_column(Date, nullable=True)

    # derivados de riwayat_*; solo los escribe el store
    jadwal_kgb_berikutnya: Mapped[date | None] = mapped_column(Date, nullable=True)
    jadwal_pangkat_berikutnya: Mapped[date | None] = mapped_column(Date, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_asns_created_at", "created_at"),
        Index("ix_asns_jadwal_kgb", "jadwal_kgb_berikutnya"),
        Index("ix_asns_jadwal_pangkat", "jadwal_pangkat_berikutnya"),
    )
