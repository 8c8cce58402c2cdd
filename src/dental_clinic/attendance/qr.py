"""Daily attendance QR codes: token generation, validation and PNG rendering."""
from __future__ import annotations

import io
import math
import uuid
from datetime import date
from typing import Optional

import qrcode

from ..common.logger import get_logger
from ..core.constants import DEFAULT_QR_RADIUS_METERS
from .model import DailyQRCode, QRValidation
from .repository import QRCodeRepository

logger = get_logger(__name__)

EARTH_RADIUS_METERS = 6_371_000


def haversine_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def render_png(data: str) -> io.BytesIO:
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=2,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    buf.seek(0)
    return buf


class QRCodeService:
    def __init__(self, codes: QRCodeRepository, *, default_radius: int = DEFAULT_QR_RADIUS_METERS):
        self._codes = codes
        self._default_radius = int(default_radius)

    def get_or_create_daily_code(
        self,
        clinic_id: int,
        today: date,
        *,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        radius_meters: Optional[int] = None,
    ) -> DailyQRCode:
        existing = self._codes.get_for_date(int(clinic_id), today)
        if existing and existing.is_active:
            return existing

        code = self._codes.create(
            clinic_id=int(clinic_id),
            qr_code=str(uuid.uuid4()),
            valid_date=today,
            latitude=latitude,
            longitude=longitude,
            radius_meters=int(radius_meters or self._default_radius),
        )
        logger.info("QR code issued for clinic %s on %s", clinic_id, today)
        return code

    def validate(
        self,
        code: str,
        today: date,
        *,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> QRValidation:
        qr = self._codes.get_by_code((code or "").strip())
        if not qr or not qr.is_active:
            return QRValidation(is_valid=False, message="유효하지 않은 QR 코드입니다")
        if qr.valid_date != today:
            return QRValidation(is_valid=False, message="만료된 QR 코드입니다. 오늘의 QR 코드를 스캔해주세요")

        if None in (latitude, longitude, qr.latitude, qr.longitude):
            return QRValidation(is_valid=True, clinic_id=qr.clinic_id)

        distance = round(haversine_meters(latitude, longitude, qr.latitude, qr.longitude))
        if distance > qr.radius_meters:
            return QRValidation(
                is_valid=False,
                clinic_id=qr.clinic_id,
                message=f"병원에서 {distance}m 떨어져 있습니다. {qr.radius_meters}m 이내로 접근해주세요",
                distance_meters=distance,
            )
        return QRValidation(is_valid=True, clinic_id=qr.clinic_id, distance_meters=distance)
